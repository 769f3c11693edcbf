"""Matrix view and editor for a traceability record.

``build_matrix`` projects the shared store onto a record's
(source type, target type) pair. ``MatrixEditor`` tracks which record is
open and implements the toggle / save / leave actions.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from autotrace.graph.records import RecordStore, TraceRecord
from autotrace.graph.store import TraceStore
from autotrace.graph.TraceNode import TraceNode

SAVE_MESSAGE = "Traceability matrix saved successfully!"


@dataclass
class MatrixView:
    """Grid of link presence between two artifact types.

    Attributes:
        record: The record this view was built for.
        rows: Nodes of the record's source type.
        columns: Nodes of the record's target type.
        cells: ``cells[i][j]`` is True if ``rows[i] -> columns[j]`` is linked.
        empty_message: Explanation when rows or columns are empty, else None.
    """

    record: TraceRecord
    rows: list[TraceNode] = field(default_factory=list)
    columns: list[TraceNode] = field(default_factory=list)
    cells: list[list[bool]] = field(default_factory=list)
    empty_message: str | None = None

    @property
    def is_empty(self) -> bool:
        """True if there is nothing to link."""
        return not self.rows or not self.columns

    @property
    def link_count(self) -> int:
        """Number of linked cells in this view."""
        return sum(sum(1 for cell in row if cell) for row in self.cells)

    @property
    def coverage(self) -> int:
        """Percentage of rows with at least one linked column (0 if no rows)."""
        if not self.rows:
            return 0
        covered = sum(1 for row in self.cells if any(row))
        return round(covered * 100 / len(self.rows))

    def is_linked(self, source_id: str, target_id: str) -> bool:
        """Look up a single cell by node ids."""
        for i, row_node in enumerate(self.rows):
            if row_node.id != source_id:
                continue
            for j, col_node in enumerate(self.columns):
                if col_node.id == target_id:
                    return self.cells[i][j]
        return False


def build_matrix(store: TraceStore, record: TraceRecord) -> MatrixView:
    """Project the store onto a record's source/target types.

    Only nodes whose type matches the record are included. Links between
    other types are ignored by the view but stay in the store.
    """
    rows = list(store.nodes_by_type(record.source_type))
    columns = list(store.nodes_by_type(record.target_type))
    cells = [[store.has_link(r.id, c.id) for c in columns] for r in rows]

    empty_message = None
    if not rows and not columns:
        empty_message = (
            f"No {record.source_type.value} or {record.target_type.value} "
            "artifacts exist yet."
        )
    elif not rows:
        empty_message = f"No {record.source_type.value} artifacts to use as rows."
    elif not columns:
        empty_message = f"No {record.target_type.value} artifacts to use as columns."

    return MatrixView(
        record=record,
        rows=rows,
        columns=columns,
        cells=cells,
        empty_message=empty_message,
    )


class MatrixEditor:
    """List/detail controller over the record listing and the link store.

    At most one record is open at a time. Toggles go straight into the
    shared store; ``save`` only clears the unsaved flag and stamps the
    open record.
    """

    def __init__(self, store: TraceStore, records: RecordStore) -> None:
        self.store = store
        self.records = records
        self._active_id: str | None = None
        self._lock = threading.RLock()

    @property
    def active_record(self) -> TraceRecord | None:
        """The open record, or None in list view."""
        if self._active_id is None:
            return None
        try:
            return self.records.get(self._active_id)
        except KeyError:
            self._active_id = None
            return None

    @property
    def unsaved(self) -> bool:
        return self.store.unsaved

    def open(self, record_id: str, confirm: bool = False) -> MatrixView:
        """Open the matrix for a record, starting a fresh session.

        Switching records counts as leaving the current matrix, so unsaved
        toggles must be confirmed first. Confirmed toggles stay applied.

        Raises:
            KeyError: If the record does not exist.
            UnsavedChangesError: If there are unsaved toggles and
                ``confirm`` is False.
        """
        with self._lock:
            record = self.records.get(record_id)
            self.store.begin_session(confirm=confirm)
            self._active_id = record.id
            return build_matrix(self.store, record)

    def view(self) -> MatrixView | None:
        """Rebuild the view for the open record."""
        record = self.active_record
        if record is None:
            return None
        return build_matrix(self.store, record)

    def toggle(self, source_id: str, target_id: str) -> bool:
        """Toggle a cell. Returns True if linked afterwards."""
        return self.store.toggle_link(source_id, target_id)

    def save(self) -> str:
        """Clear the unsaved flag and stamp the open record.

        Returns:
            The confirmation message shown to the user.
        """
        with self._lock:
            self.store.mark_saved()
            if self._active_id is not None:
                try:
                    self.records.touch(self._active_id)
                except KeyError:
                    self._active_id = None
        return SAVE_MESSAGE

    def leave(self, confirm: bool = False) -> None:
        """Return to the list view.

        Raises:
            UnsavedChangesError: If unsaved and not confirmed.
        """
        with self._lock:
            self.store.discard_session(confirm=confirm)
            self._active_id = None

    def delete_record(self, record_id: str) -> TraceRecord:
        """Delete a record, closing it if it is open."""
        with self._lock:
            record = self.records.delete(record_id)
            if self._active_id == record_id:
                self._active_id = None
            return record
