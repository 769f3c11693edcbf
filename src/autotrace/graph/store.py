"""Trace Store - Node index and shared link set for the matrix editor.

The store holds every seeded TraceNode and the single, unfiltered list of
TraceLinks shared by all traceability records. Record-specific filtering
happens in ``autotrace.graph.matrix``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from autotrace.graph.mutations import ADD_LINK, REMOVE_LINK, MutationEntry, MutationLog
from autotrace.graph.relations import TraceLink
from autotrace.graph.TraceNode import ArtifactType, TraceNode


class UnsavedChangesError(RuntimeError):
    """Raised when leaving the matrix editor with unsaved toggles."""


@dataclass
class TraceStore:
    """Container for trace nodes and links.

    Links keep insertion order; membership checks go through a set so a
    toggle never inserts a duplicate pair. Mutations run under one
    re-entrant lock, so toggles from concurrent request threads never
    interleave.
    """

    _index: dict[str, TraceNode] = field(default_factory=dict, init=False, repr=False)
    _links: list[TraceLink] = field(default_factory=list, init=False)
    _link_set: set[TraceLink] = field(default_factory=set, init=False, repr=False)
    _mutation_log: MutationLog = field(default_factory=MutationLog, init=False, repr=False)
    _unsaved: bool = field(default=False, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    @classmethod
    def from_seed(
        cls,
        nodes: Iterable[TraceNode],
        links: Iterable[TraceLink] = (),
    ) -> TraceStore:
        """Build a store from seed nodes and links.

        Seed links are loaded without marking the store as unsaved.
        Duplicate seed links are dropped.
        """
        store = cls()
        for node in nodes:
            store.add_node(node)
        for link in links:
            if link not in store._link_set:
                store._links.append(link)
                store._link_set.add(link)
        return store

    # ─────────────────────────────────────────────────────────────────────────
    # Nodes
    # ─────────────────────────────────────────────────────────────────────────

    def add_node(self, node: TraceNode) -> None:
        """Add a seed node.

        Raises:
            ValueError: If a node with the same id already exists.
        """
        if node.id in self._index:
            raise ValueError(f"Duplicate node id '{node.id}'")
        self._index[node.id] = node

    def find_by_id(self, node_id: str) -> TraceNode | None:
        """Find node by id, or None if not found."""
        return self._index.get(node_id)

    def all_nodes(self) -> Iterator[TraceNode]:
        """Iterate all nodes in seed order."""
        yield from self._index.values()

    def nodes_by_type(self, artifact_type: ArtifactType) -> Iterator[TraceNode]:
        """Iterate nodes of one artifact type in seed order."""
        for node in self._index.values():
            if node.type == artifact_type:
                yield node

    def node_count(self) -> int:
        """Return total number of nodes."""
        return len(self._index)

    # ─────────────────────────────────────────────────────────────────────────
    # Links
    # ─────────────────────────────────────────────────────────────────────────

    def iter_links(self) -> Iterator[TraceLink]:
        """Iterate all links in insertion order."""
        yield from self.links()

    def links(self) -> list[TraceLink]:
        """Return a copy of the link list."""
        with self._lock:
            return list(self._links)

    def link_count(self) -> int:
        """Return number of links."""
        return len(self._links)

    def has_link(self, source_id: str, target_id: str) -> bool:
        """Check whether the directed link ``source_id -> target_id`` exists."""
        return TraceLink(source_id, target_id) in self._link_set

    def toggle_link(self, source_id: str, target_id: str) -> bool:
        """Add the link if absent, remove it if present.

        No type validation is performed against any record; the caller
        decides which nodes are shown. Marks the store as unsaved.

        Returns:
            True if the link exists after the toggle, False otherwise.
        """
        link = TraceLink(source_id, target_id)
        with self._lock:
            self._unsaved = True
            if link in self._link_set:
                position = self._links.index(link)
                del self._links[position]
                self._link_set.discard(link)
                self._mutation_log.append(
                    MutationEntry(REMOVE_LINK, source_id, target_id, position)
                )
                return False

            self._links.append(link)
            self._link_set.add(link)
            self._mutation_log.append(
                MutationEntry(ADD_LINK, source_id, target_id, len(self._links) - 1)
            )
            return True

    # ─────────────────────────────────────────────────────────────────────────
    # Unsaved-changes tracking
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def unsaved(self) -> bool:
        """True if links were toggled since the last save or session start."""
        return self._unsaved

    @property
    def mutation_log(self) -> MutationLog:
        """Access the toggle history since the last save."""
        return self._mutation_log

    def begin_session(self, confirm: bool = False) -> None:
        """Start a fresh editing session (opening a matrix).

        Raises:
            UnsavedChangesError: If toggles from the previous session are
                unsaved and ``confirm`` is False.
        """
        self.discard_session(confirm=confirm)

    def mark_saved(self) -> None:
        """Clear the unsaved flag and the toggle history."""
        with self._lock:
            self._unsaved = False
            self._mutation_log.clear()

    def discard_session(self, confirm: bool = False) -> None:
        """Leave the editor.

        Toggled links stay in the shared link set; only the unsaved flag
        and the history are cleared.

        Raises:
            UnsavedChangesError: If there are unsaved toggles and
                ``confirm`` is False.
        """
        with self._lock:
            if self._unsaved and not confirm:
                raise UnsavedChangesError(
                    "You have unsaved changes. Are you sure you want to leave?"
                )
            self._unsaved = False
            self._mutation_log.clear()

    def undo_last(self) -> MutationEntry | None:
        """Reverse the most recent toggle.

        The store stays unsaved while history remains.

        Returns:
            The undone entry, or None if there is nothing to undo.
        """
        with self._lock:
            entry = self._mutation_log.pop()
            if entry is None:
                return None

            link = TraceLink(entry.source_id, entry.target_id)
            if entry.operation == ADD_LINK:
                self._links.remove(link)
                self._link_set.discard(link)
            elif entry.operation == REMOVE_LINK:
                self._links.insert(min(entry.position, len(self._links)), link)
                self._link_set.add(link)
            self._unsaved = len(self._mutation_log) > 0
            return entry
