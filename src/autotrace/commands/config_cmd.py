"""
autotrace.commands.config_cmd - Inspect configuration.
"""

import argparse
import json
import sys
from pathlib import Path

from autotrace.config import find_config_file, get_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    if action == "path":
        return _show_path(args)
    if action == "show":
        return _show(args)
    print("Usage: autotrace config {show,path}", file=sys.stderr)
    return 1


def _show_path(args: argparse.Namespace) -> int:
    path = args.config or find_config_file(Path.cwd())
    if path is None:
        print("No .autotrace.toml found (using defaults)")
        return 1
    print(path)
    return 0


def _show(args: argparse.Namespace) -> int:
    config = get_config(args.config)
    if args.key:
        value = config
        for part in args.key.split("."):
            if not isinstance(value, dict) or part not in value:
                print(f"Unknown config key: {args.key}", file=sys.stderr)
                return 1
            value = value[part]
        config = value
    if args.json or isinstance(config, (dict, list)):
        print(json.dumps(config, indent=2, default=str))
    else:
        print(config)
    return 0
