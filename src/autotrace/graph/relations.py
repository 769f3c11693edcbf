"""Relations - Links between artifacts and the relation presets.

This module defines:
- TraceLink: A directed traceability edge between two node ids
- Relation: A named (source type, target type) pair offered when a
  traceability scope is created
"""

from __future__ import annotations

from dataclasses import dataclass

from autotrace.graph.TraceNode import ArtifactType


@dataclass(frozen=True)
class TraceLink:
    """A directed traceability edge.

    Links are ordered pairs of node ids. Self-loops are allowed; duplicates
    are prevented by the store's toggle logic, not by this type.

    Attributes:
        source: Source node id.
        target: Target node id.
    """

    source: str
    target: str

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.source} -> {self.target}"


@dataclass(frozen=True)
class Relation:
    """A relation preset between two artifact types.

    Attributes:
        id: Preset identifier (e.g. ``REQ-TC``).
        label: Display label.
        source_type: Artifact type shown as matrix rows.
        target_type: Artifact type shown as matrix columns.
    """

    id: str
    label: str
    source_type: ArtifactType
    target_type: ArtifactType


AVAILABLE_RELATIONS: tuple[Relation, ...] = (
    Relation("REQ-TC", "Requirement ↔ Test Case", ArtifactType.REQUIREMENT, ArtifactType.TEST),
    Relation(
        "REQ-ARCH", "Requirement ↔ Architecture", ArtifactType.REQUIREMENT, ArtifactType.DESIGN
    ),
    Relation("ARCH-DD", "Architecture ↔ Code/DD", ArtifactType.DESIGN, ArtifactType.CODE),
    Relation("DD-TC", "Code ↔ Test Case", ArtifactType.CODE, ArtifactType.TEST),
)


def find_relation(relation_id: str) -> Relation:
    """Look up a relation preset by id.

    Raises:
        KeyError: If the preset does not exist.
    """
    for relation in AVAILABLE_RELATIONS:
        if relation.id == relation_id:
            return relation
    raise KeyError(f"Unknown relation '{relation_id}'")
