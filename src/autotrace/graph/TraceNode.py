"""TraceNode - Typed artifact node of the traceability matrix.

This module provides the node-side data structures:
- ArtifactType: Enum of artifact types (Requirement, Design, ...)
- NodeStatus: Enum of artifact lifecycle states
- TraceNode: Immutable artifact node identified by its id
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ArtifactType(Enum):
    """Types of artifacts that can be traced."""

    REQUIREMENT = "Requirement"
    DESIGN = "Design"
    CODE = "Code"
    TEST = "Test"
    RISK = "Risk"

    @classmethod
    def parse(cls, value: str | ArtifactType) -> ArtifactType:
        """Resolve an ArtifactType from its value or member name.

        Accepts ``"Requirement"``, ``"REQUIREMENT"`` or ``"requirement"``.

        Raises:
            ValueError: If no artifact type matches.
        """
        if isinstance(value, ArtifactType):
            return value
        for member in cls:
            if value == member.value or value.upper() == member.name:
                return member
        raise ValueError(f"Unknown artifact type: {value}")


class NodeStatus(Enum):
    """Lifecycle status of an artifact."""

    DRAFT = "Draft"
    APPROVED = "Approved"
    VERIFIED = "Verified"
    FAILED = "Failed"


@dataclass(frozen=True)
class TraceNode:
    """An artifact in the traceability matrix.

    Identity is the ``id`` string (e.g. ``REQ-001``). Nodes are immutable
    once created; there is no edit operation.

    Attributes:
        id: Unique identifier within the node set.
        label: Human-readable display label.
        type: The artifact type.
        status: The lifecycle status.
    """

    id: str
    label: str
    type: ArtifactType
    status: NodeStatus = NodeStatus.DRAFT

    def __str__(self) -> str:
        """Return string representation for display."""
        return f"{self.id}: {self.label}"
