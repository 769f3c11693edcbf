"""Tests for configuration discovery, merging and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from autotrace.config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os

    for name in list(os.environ):
        if name.startswith("AUTOTRACE_"):
            monkeypatch.delenv(name)


class TestFindConfigFile:
    def test_finds_file_in_start_directory(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("verbose = true\n")
        assert find_config_file(tmp_path) == path.resolve()

    def test_walks_up_to_parent(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path.resolve()

    def test_returns_none_when_absent(self, tmp_path):
        nested = tmp_path / "empty"
        nested.mkdir()
        found = find_config_file(nested)
        assert found is None or not str(found).startswith(str(tmp_path))


class TestMergeConfigs:
    def test_nested_sections_merge_key_by_key(self):
        merged = merge_configs(DEFAULT_CONFIG, {"server": {"port": 8000}})
        assert merged["server"]["port"] == 8000
        assert merged["server"]["host"] == DEFAULT_CONFIG["server"]["host"]

    def test_base_is_not_mutated(self):
        merge_configs(DEFAULT_CONFIG, {"graph": {"counts": {"REQ": 1}}})
        assert DEFAULT_CONFIG["graph"]["counts"]["REQ"] == 100

    def test_scalar_replaces_dict(self):
        merged = merge_configs({"a": {"b": 1}}, {"a": 2})
        assert merged == {"a": 2}


class TestLoadConfig:
    def test_defaults_only(self):
        config = load_config(None)
        assert config["server"]["port"] == 5050
        assert config["graph"]["mode"] == "tree"

    def test_toml_values_override_defaults(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text(
            "[graph]\nmode = \"network\"\nseed = 3\n\n[graph.counts]\nREQ = 12\n"
        )
        config = load_config(path)
        assert config["graph"]["mode"] == "network"
        assert config["graph"]["seed"] == 3
        assert config["graph"]["counts"]["REQ"] == 12
        assert config["graph"]["counts"]["TC"] == 200

    def test_missing_explicit_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_get_config_searches_from_start(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[server]\nport = 9100\n")
        assert get_config(start=tmp_path)["server"]["port"] == 9100

    def test_get_config_prefers_explicit_path(self, tmp_path):
        other = tmp_path / "custom.toml"
        other.write_text("[server]\nport = 9200\n")
        (tmp_path / CONFIG_FILENAME).write_text("[server]\nport = 9100\n")
        assert get_config(Path(other), start=tmp_path)["server"]["port"] == 9200


class TestTryParseEnvValue:
    def test_json_list(self):
        assert _try_parse_env_value('["a", "b"]') == ["a", "b"]

    def test_json_object(self):
        assert _try_parse_env_value('{"REQ": 5}') == {"REQ": 5}

    def test_booleans(self):
        assert _try_parse_env_value("TRUE") is True
        assert _try_parse_env_value("false") is False

    def test_malformed_json_passthrough(self):
        assert _try_parse_env_value("[oops") == "[oops"

    def test_plain_string_passthrough(self):
        assert _try_parse_env_value("network") == "network"


class TestEnvOverrides:
    def test_numeric_value_coerced_to_existing_type(self, monkeypatch):
        monkeypatch.setenv("AUTOTRACE_SOURCES_SYNC_DELAY", "0")
        config = _apply_env_overrides(merge_configs(DEFAULT_CONFIG, {}))
        assert config["sources"]["sync_delay"] == 0.0
        assert isinstance(config["sources"]["sync_delay"], float)

    def test_int_value(self, monkeypatch):
        monkeypatch.setenv("AUTOTRACE_SERVER_PORT", "6060")
        assert load_config(None)["server"]["port"] == 6060

    def test_top_level_flag(self, monkeypatch):
        monkeypatch.setenv("AUTOTRACE_VERBOSE", "true")
        assert load_config(None)["verbose"] is True

    def test_section_name_with_underscore(self, monkeypatch):
        monkeypatch.setenv("AUTOTRACE_SCHEMA_LINKS_BASE_URL", "http://trace.local/api")
        config = load_config(None)
        assert config["schema_links"]["base_url"] == "http://trace.local/api"
        assert "schema" not in config

    def test_json_object_value(self, monkeypatch):
        monkeypatch.setenv("AUTOTRACE_GRAPH_COUNTS", '{"REQ": 4, "ARCH": 2, "DD": 3, "TC": 5}')
        assert load_config(None)["graph"]["counts"]["TC"] == 5

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[graph]\nmode = \"network\"\n")
        monkeypatch.setenv("AUTOTRACE_GRAPH_MODE", "tree")
        assert load_config(path)["graph"]["mode"] == "tree"
