"""
autotrace - Traceability workspace for automotive software projects

Manages requirements, architecture, detailed design and test artifacts,
edits traceability matrices between artifact types, lays out the full
trace graph with a force simulation, and answers questions through a
citation-aware assistant.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("autotrace")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__author__ = "AutoTrace"
__license__ = "MIT"

from autotrace.graph import ArtifactType, NodeStatus, TraceLink, TraceNode
from autotrace.graph.store import TraceStore
from autotrace.projects.store import ProjectStore

__all__ = [
    "__version__",
    "ArtifactType",
    "NodeStatus",
    "TraceLink",
    "TraceNode",
    "TraceStore",
    "ProjectStore",
]
