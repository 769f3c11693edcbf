"""
autotrace.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "graph_cmd",
    "matrix_cmd",
    "serve",
]
