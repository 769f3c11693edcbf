"""Mutation records for matrix edits.

Every toggle in the matrix editor appends a MutationEntry to the store's
MutationLog. The log doubles as the "unsaved changes" ledger: it is
cleared on save and popped on undo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

ADD_LINK = "add_link"
REMOVE_LINK = "remove_link"


@dataclass(frozen=True)
class MutationEntry:
    """Single link toggle.

    Attributes:
        operation: ``add_link`` or ``remove_link``.
        source_id: Source node id of the toggled link.
        target_id: Target node id of the toggled link.
        position: Index the link occupied before removal (for undo), or
            the index it was appended at.
        id: Unique mutation id (hex UUID4).
        timestamp: When the toggle happened.
    """

    operation: str
    source_id: str
    target_id: str
    position: int
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.source_id} -> {self.target_id})"


class MutationLog:
    """Append-only toggle history since the last save.

    Example:
        >>> log = MutationLog()
        >>> log.append(MutationEntry(ADD_LINK, "REQ-001", "TC-301", 0))
        >>> len(log)
        1
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        """Append a mutation entry to the log."""
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def pop(self) -> MutationEntry | None:
        """Remove and return the most recent entry, or None if empty."""
        return self._entries.pop() if self._entries else None

    def clear(self) -> None:
        """Clear all entries from the log."""
        self._entries.clear()


__all__ = ["ADD_LINK", "REMOVE_LINK", "MutationEntry", "MutationLog"]
