"""Tests for syntax highlighting and the overview page."""

from __future__ import annotations

import pytest

from autotrace.graph.generator import generate_graph
from autotrace.graph.records import RecordStore
from autotrace.html import OverviewGenerator
from autotrace.html.highlighting import PREVIEW_LIMIT, highlight_source, pygments_css
from autotrace.layout import LayoutSession
from autotrace.projects import Project
from autotrace.projects.seed import seed_projects, seed_records

SMALL_COUNTS = {"REQ": 10, "ARCH": 5, "DD": 8, "TC": 20}

# ─────────────────────────────────────────────────────────────────────────────
# Highlighting
# ─────────────────────────────────────────────────────────────────────────────


class TestHighlightSource:
    def test_c_source(self):
        source = highlight_source("src/main.c", "#include <stdio.h>\nint main() {}\n")
        assert source.language == "c"
        assert source.line_count == 2
        assert "<span" in source.lines[1]
        assert source.truncated is False

    def test_unknown_extension_is_text(self):
        source = highlight_source("notes.unknownext", "a < b")
        assert source.language == "text"
        assert source.lines == ("a &lt; b",)

    def test_multiline_comment_state_kept(self):
        source = highlight_source("x.c", "/* one\ntwo */\nint x;")
        assert source.line_count == 3
        assert "two" in source.lines[1]
        assert "c1" in source.lines[1] or "cm" in source.lines[1]

    def test_truncates_large_files(self):
        raw = "x" * (PREVIEW_LIMIT + 10)
        source = highlight_source("big.txt", raw)
        assert source.truncated is True
        assert source.raw == raw
        assert len("".join(source.lines)) == PREVIEW_LIMIT

    def test_custom_limit(self):
        source = highlight_source("notes.txt", "abcdef", limit=3)
        assert source.truncated is True
        assert source.lines == ("abc",)

    def test_to_dict_omits_raw(self):
        data = highlight_source("src/main.c", "int x;").to_dict()
        assert data["path"] == "src/main.c"
        assert "raw" not in data

    def test_css_is_scoped(self):
        assert ".code" in pygments_css(scope=".code")


# ─────────────────────────────────────────────────────────────────────────────
# Overview page
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def generator():
    data = generate_graph(seed=5, counts=SMALL_COUNTS)
    session = LayoutSession(data, mode="tree", seed=5)
    session.settle()
    layout = session.snapshot()
    session.stop()
    return OverviewGenerator(
        projects=seed_projects(),
        records=RecordStore(seed_records()),
        data=data,
        layout=layout,
        version="9.9.9",
    )


class TestOverviewGenerator:
    def test_stats(self, generator):
        stats = generator.stats()
        assert stats.project_count == 2
        assert stats.record_count == 3
        assert stats.node_count == sum(SMALL_COUNTS.values())
        assert stats.link_count == len(generator.data.links)

    def test_svg_uses_layout_positions(self, generator):
        nodes, links = generator.svg()
        assert len(nodes) == len(generator.data.nodes)
        assert len(links) == len(generator.data.links)
        first = generator.layout["nodes"][0]
        assert (nodes[0].cx, nodes[0].cy) == (first["x"], first["y"])

    def test_svg_skips_nodes_without_position(self, generator):
        generator.layout = {"nodes": [], "mode": "tree"}
        assert generator.svg() == ([], [])

    def test_code_preview(self, generator):
        preview = generator.code_preview()
        assert preview["path"] == "src/main.c"
        assert preview["language"] == "c"

    def test_code_preview_disabled(self, generator):
        generator.preview_path = None
        assert generator.code_preview() is None
        assert "Repository preview" not in generator.generate()

    def test_generate(self, generator):
        html = generator.generate()
        assert html.startswith("<!DOCTYPE html>")
        assert "ADAS L2+ System" in html
        assert "System Requirements Traceability" in html
        assert html.count("<circle") == sum(SMALL_COUNTS.values())
        assert "Traceability graph (tree)" in html
        assert "Repository preview" in html
        assert "autotrace 9.9.9" in html
        assert "static snapshot" in html

    def test_context_extra_overrides(self, generator):
        assert generator.context(static=False)["static"] is False

    def test_project_names_escaped(self, generator):
        generator.projects = [Project(id="x", name="<b>Bold</b>")]
        html = generator.render(static=False)
        assert "&lt;b&gt;Bold&lt;/b&gt;" in html
        assert "static snapshot" not in html
