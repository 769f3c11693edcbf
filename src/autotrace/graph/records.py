"""Traceability records - Named scopes over a (source type, target type) pair.

A record selects which slice of the shared node/link store the matrix
editor shows. Records are created from a relation preset and deleted by
explicit user action.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator
from uuid import uuid4

from autotrace.graph.relations import find_relation
from autotrace.graph.TraceNode import ArtifactType

JUST_NOW = "Just now"
DEFAULT_DESCRIPTION = "No description provided."
DEFAULT_AUTHOR = "Current User"


class RecordStatus(Enum):
    """Review status of a traceability record."""

    DRAFT = "Draft"
    VERIFIED = "Verified"
    IN_PROGRESS = "In Progress"


@dataclass(frozen=True)
class TraceRecord:
    """A traceability scope.

    Attributes:
        id: Record identifier (``tr-...``).
        name: Scope name.
        description: Free-text purpose.
        relation_label: Label of the relation preset it was created from.
        source_type: Artifact type shown as rows.
        target_type: Artifact type shown as columns.
        last_updated: Display timestamp ("Just now" after a save).
        author: Creator.
        coverage: Coverage percentage (0-100).
        status: Review status.
    """

    id: str
    name: str
    description: str
    relation_label: str
    source_type: ArtifactType
    target_type: ArtifactType
    last_updated: str
    author: str
    coverage: int = 0
    status: RecordStatus = RecordStatus.DRAFT


class RecordStore:
    """Ordered listing of traceability records (newest first)."""

    def __init__(self, records: Iterable[TraceRecord] = ()) -> None:
        self._records: list[TraceRecord] = list(records)
        self._lock = threading.RLock()

    def __iter__(self) -> Iterator[TraceRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> list[TraceRecord]:
        """Return the records in display order."""
        return list(self._records)

    def get(self, record_id: str) -> TraceRecord:
        """Return the record with ``record_id``.

        Raises:
            KeyError: If no such record exists.
        """
        for record in self._records:
            if record.id == record_id:
                return record
        raise KeyError(f"Record '{record_id}' not found")

    def create(self, name: str, relation_id: str, description: str = "") -> TraceRecord:
        """Create a record from a relation preset and put it first.

        Raises:
            ValueError: If ``name`` is blank.
            KeyError: If ``relation_id`` is not a known preset.
        """
        if not name.strip():
            raise ValueError("Scope name is required")
        relation = find_relation(relation_id)
        record = TraceRecord(
            id=f"tr-{uuid4().hex[:12]}",
            name=name.strip(),
            description=description.strip() or DEFAULT_DESCRIPTION,
            relation_label=relation.label,
            source_type=relation.source_type,
            target_type=relation.target_type,
            last_updated=JUST_NOW,
            author=DEFAULT_AUTHOR,
            coverage=0,
            status=RecordStatus.DRAFT,
        )
        with self._lock:
            self._records.insert(0, record)
        return record

    def delete(self, record_id: str) -> TraceRecord:
        """Remove exactly the record with ``record_id``.

        Raises:
            KeyError: If no such record exists.
        """
        with self._lock:
            record = self.get(record_id)
            self._records = [r for r in self._records if r.id != record_id]
            return record

    def touch(self, record_id: str) -> TraceRecord:
        """Set ``last_updated`` of a record to "Just now"."""
        return self._replace(record_id, last_updated=JUST_NOW)

    def _replace(self, record_id: str, **changes) -> TraceRecord:
        with self._lock:
            updated = replace(self.get(record_id), **changes)
            self._records = [updated if r.id == record_id else r for r in self._records]
            return updated
