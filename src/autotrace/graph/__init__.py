"""Graph module - Trace data structures.

Exports:
- ArtifactType: Enum of artifact kinds (Requirement, Design, Code, Test, Risk)
- NodeStatus: Enum of artifact review states
- TraceNode: Immutable matrix node
- TraceLink: Directed link between two node ids
- Relation: Preset (source type, target type) pair for a record
- MutationEntry / MutationLog: Toggle history for undo

Note: TraceStore is in autotrace.graph.store, the dashboard generator in
autotrace.graph.generator.
"""

from autotrace.graph.mutations import MutationEntry, MutationLog
from autotrace.graph.relations import AVAILABLE_RELATIONS, Relation, TraceLink
from autotrace.graph.TraceNode import ArtifactType, NodeStatus, TraceNode

__all__ = [
    "ArtifactType",
    "NodeStatus",
    "TraceNode",
    "TraceLink",
    "Relation",
    "AVAILABLE_RELATIONS",
    "MutationEntry",
    "MutationLog",
]
