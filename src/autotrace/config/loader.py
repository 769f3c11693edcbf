"""
autotrace.config.loader - Locate, parse and merge configuration.

Resolution order (later wins):
    1. ``DEFAULT_CONFIG``
    2. ``.autotrace.toml`` found by walking up from the start directory
    3. ``AUTOTRACE_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit

from autotrace.config.defaults import DEFAULT_CONFIG

CONFIG_FILENAME = ".autotrace.toml"
ENV_PREFIX = "AUTOTRACE_"


def find_config_file(start: Path) -> Path | None:
    """Find ``.autotrace.toml`` in ``start`` or any parent directory.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the config file, or None if not found.
    """
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested dicts are merged key by key; any other value in ``override``
    replaces the value in ``base``.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment variable value into a typed Python value.

    JSON arrays and objects are decoded, ``true``/``false`` become booleans,
    and anything else (including malformed JSON) is returned unchanged.
    """
    stripped = value.strip()
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``AUTOTRACE_SECTION_KEY`` environment variables to config.

    ``AUTOTRACE_SOURCES_SYNC_DELAY=0`` sets ``config["sources"]["sync_delay"]``.
    Numeric strings are converted when the existing value is numeric.
    A variable with no section part (``AUTOTRACE_VERBOSE``) sets a top-level key.
    """
    for env_name, raw in os.environ.items():
        if not env_name.startswith(ENV_PREFIX):
            continue
        rest = env_name[len(ENV_PREFIX) :].lower()
        if not rest:
            continue
        value = _try_parse_env_value(raw)

        section, key = _split_env_name(rest, config)
        if not key:
            config[section] = _coerce_like(config.get(section), value)
            continue

        target = config.setdefault(section, {})
        if not isinstance(target, dict):
            continue
        target[key] = _coerce_like(target.get(key), value)
    return config


def _split_env_name(rest: str, config: dict[str, Any]) -> tuple[str, str]:
    # Longest known section wins so "schema_links_base_url" maps to schema_links
    sections = sorted(
        (name for name, value in config.items() if isinstance(value, dict)),
        key=len,
        reverse=True,
    )
    for name in sections:
        if rest.startswith(name + "_"):
            return name, rest[len(name) + 1 :]
    section, _, key = rest.partition("_")
    return section, key


def _coerce_like(existing: Any, value: Any) -> Any:
    """Convert string ``value`` to the numeric type of ``existing``."""
    if not isinstance(value, str) or isinstance(existing, bool):
        return value
    if isinstance(existing, int):
        try:
            return int(value)
        except ValueError:
            return value
    if isinstance(existing, float):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def load_config(path: Path | None) -> dict[str, Any]:
    """Load configuration from a TOML file merged over the defaults.

    Args:
        path: Path to an ``.autotrace.toml`` file, or None for defaults only.

    Returns:
        Plain-dict configuration with environment overrides applied.

    Raises:
        FileNotFoundError: If ``path`` is given but does not exist.
    """
    user: dict[str, Any] = {}
    if path is not None:
        content = Path(path).read_text(encoding="utf-8")
        user = tomlkit.parse(content).unwrap()
    config = merge_configs(DEFAULT_CONFIG, user)
    return _apply_env_overrides(config)


def get_config(config_path: Path | None = None, start: Path | None = None) -> dict[str, Any]:
    """Resolve and load the effective configuration.

    Uses ``config_path`` when given, otherwise searches upward from
    ``start`` (default: current directory).
    """
    if config_path is None:
        config_path = find_config_file(start or Path.cwd())
    return load_config(config_path)
