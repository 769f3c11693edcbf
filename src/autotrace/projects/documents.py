"""Document workflow.

A document moves Unparsed -> Parsing -> ReviewNeeded -> Verified ->
Structured, one step at a time:

- ``parse`` starts parsing and schedules completion after a mock delay
- ``open_review`` / ``confirm_review`` edit image descriptions, then verify
- ``open_structure`` / ``confirm_structure`` extract typed items, then
  mark the document structured

Every status change is a reducer dispatched to the ``ProjectStore``.
"""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any

from autotrace.projects import reducers
from autotrace.projects.models import (
    STRUCTURE_TYPES,
    ContentBlock,
    DataSource,
    DocumentArtifact,
    InvalidTransitionError,
    ParsingStatus,
    SourceType,
    StructuredItem,
)
from autotrace.projects.seed import MOCK_PARSED_CONTENT, MOCK_STRUCTURED_ITEMS
from autotrace.projects.store import ProjectStore

__all__ = [
    "DocumentWorkflow",
    "InvalidTransitionError",
    "ReviewSession",
    "StructureSession",
    "browser_items",
]

CONTENT_PREVIEW_LENGTH = 100
IMAGE_PLACEHOLDER = "[Image]"

DocKey = tuple[str, str, str]


class ReviewSession:
    """Editable copy of a document's parsed blocks."""

    def __init__(self, blocks: tuple[ContentBlock, ...] = MOCK_PARSED_CONTENT) -> None:
        self.blocks: list[ContentBlock] = list(blocks)
        self.active_image: str | None = None

    def images(self) -> list[ContentBlock]:
        return [b for b in self.blocks if b.is_image]

    def block(self, block_id: str) -> ContentBlock:
        for block in self.blocks:
            if block.id == block_id:
                return block
        raise KeyError(f"Block '{block_id}' not found")

    def focus(self, block_id: str) -> ContentBlock:
        """Select an image in the sidebar."""
        block = self.block(block_id)
        self.active_image = block.id
        return block

    def update_description(self, block_id: str, description: str) -> ContentBlock:
        """Replace an image's description.

        Raises:
            KeyError: If the block does not exist.
            ValueError: If the block is not an image.
        """
        block = self.block(block_id)
        if not block.is_image:
            raise ValueError(f"Block '{block_id}' is not an image")
        updated = replace(block, description=description)
        self.blocks = [updated if b.id == block_id else b for b in self.blocks]
        return updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "blocks": [b.to_dict() for b in self.blocks],
            "images": [b.id for b in self.images()],
            "activeImage": self.active_image,
        }


@dataclass
class StructureSession:
    """Extraction of structured items from a verified document's blocks."""

    blocks: tuple[ContentBlock, ...] = MOCK_PARSED_CONTENT
    items: list[StructuredItem] = field(default_factory=lambda: list(MOCK_STRUCTURED_ITEMS))
    selected: list[str] = field(default_factory=list)
    active_item: str | None = None

    def _check_block(self, block_id: str) -> None:
        if not any(b.id == block_id for b in self.blocks):
            raise KeyError(f"Block '{block_id}' not found")

    def toggle_block(self, block_id: str) -> bool:
        """Select or deselect a block. Returns True if selected afterwards."""
        self._check_block(block_id)
        if block_id in self.selected:
            self.selected.remove(block_id)
            return False
        self.selected.append(block_id)
        return True

    def clear_selection(self) -> None:
        self.selected = []

    def focus(self, item_id: str) -> StructuredItem:
        for item in self.items:
            if item.id == item_id:
                self.active_item = item.id
                return item
        raise KeyError(f"Item '{item_id}' not found")

    def filter(self, item_type: str | None = None) -> list[StructuredItem]:
        """Items of one type, or all items for None / ``"ALL"``."""
        if item_type in (None, "", "ALL"):
            return list(self.items)
        return [i for i in self.items if i.type == item_type]

    def create_item(self, item_type: str, item_id: str | None = None) -> StructuredItem:
        """Build an item from the selected blocks, in selection order.

        Text blocks contribute their content, images ``[Image]``. The joined
        text is cut to 100 characters with a ``...`` suffix.

        Raises:
            ValueError: If nothing is selected or the type is unknown.
        """
        if item_type not in STRUCTURE_TYPES:
            raise ValueError(
                f"Unknown item type '{item_type}' (expected one of {', '.join(STRUCTURE_TYPES)})"
            )
        if not self.selected:
            raise ValueError("Select at least one content block")

        by_id = {b.id: b for b in self.blocks}
        content = " ".join(by_id[bid].content or IMAGE_PLACEHOLDER for bid in self.selected)
        if len(content) > CONTENT_PREVIEW_LENGTH:
            content = content[:CONTENT_PREVIEW_LENGTH] + "..."

        item = StructuredItem(
            id=item_id or f"NEW-{int(time.time() * 1000)}",
            type=item_type,
            content=content,
            linked_block_ids=tuple(self.selected),
        )
        self.items.append(item)
        self.selected = []
        self.active_item = item.id
        return item

    def to_dict(self, item_type: str | None = None) -> dict[str, Any]:
        return {
            "blocks": [b.to_dict() for b in self.blocks],
            "items": [i.to_dict() for i in self.filter(item_type)],
            "selected": list(self.selected),
            "activeItem": self.active_item,
        }


def browser_items(sources: tuple[DataSource, ...]) -> list[dict[str, Any]]:
    """Rows of the document browser.

    Disabled sources are skipped. A Git source is one repository row;
    other sources contribute one row per enabled document.
    """
    items: list[dict[str, Any]] = []
    for source in sources:
        if not source.enabled:
            continue
        if source.type is SourceType.GIT:
            enabled = sum(1 for d in source.documents if d.enabled)
            items.append(
                {
                    "id": source.id,
                    "isGit": True,
                    "name": source.name,
                    "sourceName": "Git Repository",
                    "type": "Repository",
                    "size": f"{enabled} Enabled Files",
                    "status": source.status.value,
                }
            )
            continue
        for doc in source.documents:
            if not doc.enabled:
                continue
            items.append(
                {
                    "id": doc.id,
                    "isGit": False,
                    "name": doc.name,
                    "sourceName": source.name,
                    "type": doc.type,
                    "size": doc.size or "-",
                    "status": doc.parsing_status.value,
                    "dsId": source.id,
                    "sourceType": source.type.value,
                }
            )
    return items


class DocumentWorkflow:
    """Status transitions and editor sessions for project documents.

    Args:
        store: The project store (single writer).
        parse_delay: Seconds before a parsing document needs review.
        verbose: Print progress to stderr.
    """

    def __init__(self, store: ProjectStore, parse_delay: float = 2.0, verbose: bool = False):
        self.store = store
        self.parse_delay = parse_delay
        self.verbose = verbose
        self._timers: list[threading.Timer] = []
        self._reviews: dict[DocKey, ReviewSession] = {}
        self._structures: dict[DocKey, StructureSession] = {}

    def document(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        return self.store.get(project_id).find_source(source_id).find_document(doc_id)

    def _advance(
        self, project_id: str, source_id: str, doc_id: str, target: ParsingStatus
    ) -> DocumentArtifact:
        self.store.dispatch(reducers.advance_document, project_id, source_id, doc_id, target)
        return self.document(project_id, source_id, doc_id)

    def _require(self, doc: DocumentArtifact, status: ParsingStatus, action: str) -> None:
        if doc.parsing_status is not status:
            raise InvalidTransitionError(
                f"Cannot {action} document '{doc.name}' while it is {doc.parsing_status.value}"
            )

    def _require_enabled(self, doc: DocumentArtifact) -> None:
        if not doc.enabled:
            raise InvalidTransitionError(f"Document '{doc.name}' is disabled")

    # ─────────────────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────────────────

    def grouped(self, project_id: str) -> list[dict[str, Any]]:
        """Documents grouped by data source."""
        return [
            {
                "source": {"id": s.id, "name": s.name, "type": s.type.value},
                "documents": [d.to_dict() for d in s.documents],
            }
            for s in self.store.get(project_id).data_sources
        ]

    def browser(self, project_id: str) -> list[dict[str, Any]]:
        return browser_items(self.store.get(project_id).data_sources)

    def structure_candidates(self, project_id: str) -> list[dict[str, Any]]:
        """Enabled, verified documents that can be structured."""
        result = []
        for source in self.store.get(project_id).data_sources:
            for doc in source.documents:
                if doc.parsing_status is ParsingStatus.VERIFIED and doc.enabled:
                    result.append({"dsId": source.id, "document": doc.to_dict()})
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Parsing
    # ─────────────────────────────────────────────────────────────────────────

    def parse(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        """Start parsing and schedule completion.

        Raises:
            KeyError: If any id is unknown.
            InvalidTransitionError: If the document is not Unparsed or is disabled.
        """
        self._require_enabled(self.document(project_id, source_id, doc_id))
        doc = self._advance(project_id, source_id, doc_id, ParsingStatus.PARSING)
        timer = threading.Timer(
            self.parse_delay, self._parse_done, args=(project_id, source_id, doc_id)
        )
        timer.daemon = True
        self._timers = [t for t in self._timers if t.is_alive()]
        self._timers.append(timer)
        timer.start()
        return doc

    def _parse_done(self, project_id: str, source_id: str, doc_id: str) -> None:
        try:
            self.complete_parse(project_id, source_id, doc_id)
        except (KeyError, InvalidTransitionError) as e:
            print(f"[parse] Skipped parse completion: {e}", file=sys.stderr)

    def complete_parse(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        """Parsing -> ReviewNeeded against the current snapshot."""
        doc = self._advance(project_id, source_id, doc_id, ParsingStatus.REVIEW_NEEDED)
        if self.verbose:
            print(f"[parse] {doc.name} ready for review", file=sys.stderr)
        return doc

    def wait_pending(self, timeout: float | None = None) -> None:
        for timer in list(self._timers):
            timer.join(timeout)
        self._timers = [t for t in self._timers if t.is_alive()]

    def cancel_pending(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    # ─────────────────────────────────────────────────────────────────────────
    # Review
    # ─────────────────────────────────────────────────────────────────────────

    def open_review(self, project_id: str, source_id: str, doc_id: str) -> ReviewSession:
        """Return the review session of a document awaiting review."""
        doc = self.document(project_id, source_id, doc_id)
        self._require(doc, ParsingStatus.REVIEW_NEEDED, "review")
        key = (project_id, source_id, doc_id)
        if key not in self._reviews:
            self._reviews[key] = ReviewSession()
        return self._reviews[key]

    def confirm_review(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        """ReviewNeeded -> Verified."""
        doc = self._advance(project_id, source_id, doc_id, ParsingStatus.VERIFIED)
        self._reviews.pop((project_id, source_id, doc_id), None)
        return doc

    # ─────────────────────────────────────────────────────────────────────────
    # Structure
    # ─────────────────────────────────────────────────────────────────────────

    def open_structure(self, project_id: str, source_id: str, doc_id: str) -> StructureSession:
        """Return the structure session of a verified document."""
        doc = self.document(project_id, source_id, doc_id)
        self._require(doc, ParsingStatus.VERIFIED, "structure")
        self._require_enabled(doc)
        key = (project_id, source_id, doc_id)
        if key not in self._structures:
            self._structures[key] = StructureSession()
        return self._structures[key]

    def confirm_structure(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        """Verified -> Structured."""
        doc = self._advance(project_id, source_id, doc_id, ParsingStatus.STRUCTURED)
        self._structures.pop((project_id, source_id, doc_id), None)
        return doc
