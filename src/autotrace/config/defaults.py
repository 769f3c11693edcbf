"""
autotrace.config.defaults - Built-in configuration values.

Every section here can be overridden from ``.autotrace.toml`` or from
``AUTOTRACE_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "verbose": False,
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
    "graph": {
        "mode": "tree",
        "seed": None,
        "width": 960,
        "height": 600,
        "counts": {
            "REQ": 100,
            "ARCH": 45,
            "DD": 80,
            "TC": 200,
        },
    },
    "layout": {
        # Seconds between ticks of the background layout loop
        "tick_interval": 0.0,
        "zoom_min": 0.1,
        "zoom_max": 4.0,
    },
    "sources": {
        "sync_delay": 3.0,
        "jira_connect_delay": 1.5,
    },
    "documents": {
        "parse_delay": 2.0,
    },
    "assistant": {
        "model": "gemini-2.5-flash",
        "history_window": 10,
        "api_key_env": "API_KEY",
    },
    "schema_links": {
        "base_url": "",
        "timeout": 5,
    },
}
