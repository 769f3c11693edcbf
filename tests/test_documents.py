"""Tests for the document workflow, review and structure sessions."""

from __future__ import annotations

from dataclasses import replace

import pytest

from autotrace.projects import (
    DocumentWorkflow,
    InvalidTransitionError,
    ParsingStatus,
    ReviewSession,
    StructureSession,
)
from autotrace.projects import reducers
from autotrace.projects.documents import CONTENT_PREVIEW_LENGTH, browser_items
from autotrace.projects.seed import MOCK_PARSED_CONTENT


@pytest.fixture
def workflow(project_store):
    wf = DocumentWorkflow(project_store, parse_delay=60.0)
    yield wf
    wf.cancel_pending()


# ─────────────────────────────────────────────────────────────────────────────
# Listing
# ─────────────────────────────────────────────────────────────────────────────


class TestDocumentListing:
    def test_grouped_by_source(self, workflow):
        groups = workflow.grouped("1")
        assert [g["source"]["id"] for g in groups] == ["ds-1", "ds-2", "ds-3"]
        assert len(groups[0]["documents"]) == 3

    def test_browser_rows(self, workflow):
        rows = workflow.browser("1")
        assert rows[0]["isGit"] is True
        assert rows[0]["size"] == "3 Enabled Files"
        assert [r["id"] for r in rows[1:]] == ["doc-2-1", "doc-3-1"]
        assert rows[1]["dsId"] == "ds-2"

    def test_browser_skips_disabled(self, project_store):
        sources = project_store.get("1").data_sources
        disabled = (replace(sources[0], enabled=False),) + sources[1:]
        rows = browser_items(disabled)
        assert all(not r["isGit"] for r in rows)

    def test_structure_candidates(self, workflow):
        candidates = workflow.structure_candidates("1")
        assert [(c["dsId"], c["document"]["id"]) for c in candidates] == [("ds-1", "doc-1-1")]


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


class TestParsing:
    def test_parse_then_complete(self, workflow):
        doc = workflow.parse("1", "ds-1", "doc-1-3")
        assert doc.parsing_status is ParsingStatus.PARSING
        doc = workflow.complete_parse("1", "ds-1", "doc-1-3")
        assert doc.parsing_status is ParsingStatus.REVIEW_NEEDED

    def test_timer_completes_parse(self, project_store):
        wf = DocumentWorkflow(project_store, parse_delay=0.0)
        wf.parse("1", "ds-2", "doc-2-1")
        wf.wait_pending(timeout=5)
        assert wf.document("1", "ds-2", "doc-2-1").parsing_status is ParsingStatus.REVIEW_NEEDED

    def test_finished_timers_are_dropped_on_next_parse(self, project_store):
        wf = DocumentWorkflow(project_store, parse_delay=0.0)
        wf.parse("1", "ds-2", "doc-2-1")
        wf._timers[-1].join(5)
        wf.parse("1", "ds-1", "doc-1-3")
        assert len(wf._timers) == 1
        wf.wait_pending(timeout=5)
        assert wf._timers == []

    def test_parse_only_from_unparsed(self, workflow):
        with pytest.raises(InvalidTransitionError):
            workflow.parse("1", "ds-1", "doc-1-1")

    def test_parse_twice_rejected(self, workflow):
        workflow.parse("1", "ds-1", "doc-1-3")
        with pytest.raises(InvalidTransitionError):
            workflow.parse("1", "ds-1", "doc-1-3")

    def test_disabled_document_not_parsed(self, workflow, project_store):
        project_store.dispatch(reducers.toggle_document, "1", "ds-1", "doc-1-3")
        with pytest.raises(InvalidTransitionError, match="disabled"):
            workflow.parse("1", "ds-1", "doc-1-3")
        assert workflow.document("1", "ds-1", "doc-1-3").parsing_status is ParsingStatus.UNPARSED

    def test_completion_keeps_project_edits(self, workflow, project_store):
        workflow.parse("1", "ds-1", "doc-1-3")
        project_store.edit("1", description="Edited while parsing")
        workflow.complete_parse("1", "ds-1", "doc-1-3")
        assert project_store.get("1").description == "Edited while parsing"


# ─────────────────────────────────────────────────────────────────────────────
# Review
# ─────────────────────────────────────────────────────────────────────────────


class TestReview:
    def test_session_exposes_images(self):
        session = ReviewSession()
        assert [b.id for b in session.images()] == ["img1", "img2", "img3"]
        assert session.to_dict()["activeImage"] is None

    def test_update_image_description(self):
        session = ReviewSession()
        updated = session.update_description("img2", "Table 1: Connector Pinout")
        assert updated.description == "Table 1: Connector Pinout"
        assert session.block("img2").description == "Table 1: Connector Pinout"
        # Seed content is never modified
        assert MOCK_PARSED_CONTENT[5].description.endswith("(Needs Review)")

    def test_text_block_has_no_description(self):
        with pytest.raises(ValueError):
            ReviewSession().update_description("t1", "nope")

    def test_focus(self):
        session = ReviewSession()
        session.focus("img3")
        assert session.active_image == "img3"

    def test_open_review_requires_review_needed(self, workflow):
        with pytest.raises(InvalidTransitionError):
            workflow.open_review("1", "ds-1", "doc-1-1")

    def test_session_persists_until_confirmed(self, workflow):
        session = workflow.open_review("1", "ds-1", "doc-1-2")
        session.update_description("img1", "edited")
        assert workflow.open_review("1", "ds-1", "doc-1-2") is session

        doc = workflow.confirm_review("1", "ds-1", "doc-1-2")
        assert doc.parsing_status is ParsingStatus.VERIFIED
        with pytest.raises(InvalidTransitionError):
            workflow.open_review("1", "ds-1", "doc-1-2")


# ─────────────────────────────────────────────────────────────────────────────
# Structure
# ─────────────────────────────────────────────────────────────────────────────


class TestStructure:
    def test_seeded_items(self):
        session = StructureSession()
        assert [i.id for i in session.filter("ARCH")] == ["SYS-ARCH-01", "HW-IF-01"]
        assert session.filter("REQ") == []
        assert len(session.filter("ALL")) == 2

    def test_create_item_joins_selection(self):
        session = StructureSession()
        session.toggle_block("t1")
        session.toggle_block("img1")
        item = session.create_item("REQ", "REQ-NEW")
        assert item.content == "1. Introduction [Image]"
        assert item.linked_block_ids == ("t1", "img1")
        assert session.selected == []
        assert session.active_item == "REQ-NEW"

    def test_create_item_truncates(self):
        session = StructureSession()
        session.toggle_block("t2")
        item = session.create_item("ARCH")
        assert len(item.content) == CONTENT_PREVIEW_LENGTH + 3
        assert item.content.endswith("...")
        assert item.id.startswith("NEW-")

    def test_toggle_block_deselects(self):
        session = StructureSession()
        assert session.toggle_block("t3") is True
        assert session.toggle_block("t3") is False

    def test_unknown_block(self):
        with pytest.raises(KeyError):
            StructureSession().toggle_block("zz")

    def test_empty_selection_rejected(self):
        with pytest.raises(ValueError):
            StructureSession().create_item("REQ")

    def test_unknown_type_rejected(self):
        session = StructureSession()
        session.toggle_block("t1")
        with pytest.raises(ValueError):
            session.create_item("BUG")

    def test_open_and_confirm(self, workflow):
        session = workflow.open_structure("1", "ds-1", "doc-1-1")
        assert workflow.open_structure("1", "ds-1", "doc-1-1") is session
        doc = workflow.confirm_structure("1", "ds-1", "doc-1-1")
        assert doc.parsing_status is ParsingStatus.STRUCTURED

    def test_structure_requires_verified(self, workflow):
        with pytest.raises(InvalidTransitionError):
            workflow.open_structure("1", "ds-3", "doc-3-1")
