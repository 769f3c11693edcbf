"""autotrace.server - Flask REST server for the traceability workspace."""

from autotrace.server.app import create_app

__all__ = ["create_app"]
