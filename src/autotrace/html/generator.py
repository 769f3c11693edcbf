"""Overview page generator.

Builds the template context for the workspace overview (projects, trace
records, dashboard metrics and a laid-out graph) and renders it with
Jinja2. The Flask index route and ``autotrace graph --html`` share it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from autotrace.graph.serialize import serialize_metrics, serialize_record
from autotrace.html.highlighting import highlight_source, pygments_css

if TYPE_CHECKING:
    from autotrace.graph.generator import GraphData
    from autotrace.graph.records import RecordStore
    from autotrace.projects.models import Project


@dataclass
class OverviewStats:
    """Header counts."""

    project_count: int = 0
    record_count: int = 0
    node_count: int = 0
    link_count: int = 0


@dataclass
class SvgNode:
    id: str
    name: str
    cx: float
    cy: float
    r: float
    color: str


@dataclass
class SvgLink:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class OverviewGenerator:
    """Collect overview data and render the page.

    Args:
        projects: Projects to list.
        records: Trace record listing.
        data: Dashboard dataset.
        layout: ``LayoutSession.snapshot()`` output for ``data``.
        version: Package version shown in the footer.
        preview_path: Demo repository file shown highlighted, or None.
    """

    projects: list[Project]
    records: RecordStore
    data: GraphData
    layout: dict[str, Any]
    version: str = ""
    preview_path: str | None = "src/main.c"
    _svg: tuple[list[SvgNode], list[SvgLink]] | None = field(default=None, init=False, repr=False)

    def stats(self) -> OverviewStats:
        return OverviewStats(
            project_count=len(self.projects),
            record_count=len(self.records),
            node_count=len(self.data.nodes),
            link_count=len(self.data.links),
        )

    def svg(self) -> tuple[list[SvgNode], list[SvgLink]]:
        """Circles and lines for the graph snapshot."""
        if self._svg is not None:
            return self._svg

        positions = {n["id"]: n for n in self.layout.get("nodes", [])}
        nodes = []
        for node in self.data.nodes:
            pos = positions.get(node.id)
            if pos is None:
                continue
            nodes.append(
                SvgNode(node.id, node.name, pos["x"], pos["y"], pos["r"], node.layer.color)
            )
        links = []
        for link in self.data.links:
            source = positions.get(link.source)
            target = positions.get(link.target)
            if source and target:
                links.append(SvgLink(source["x"], source["y"], target["x"], target["y"]))
        self._svg = (nodes, links)
        return self._svg

    def code_preview(self) -> dict[str, Any] | None:
        """Highlighted file from the demo repository, or None if disabled."""
        if not self.preview_path:
            return None
        from autotrace.projects.seed import MOCK_GIT_TREE
        from autotrace.projects.sources import find_tree_entry

        entry = find_tree_entry(MOCK_GIT_TREE, self.preview_path)
        return highlight_source(self.preview_path, entry.get("content", "")).to_dict()

    def context(self, **extra: Any) -> dict[str, Any]:
        nodes, links = self.svg()
        context = {
            "stats": self.stats(),
            "projects": self.projects,
            "records": [serialize_record(r) for r in self.records],
            "metrics": serialize_metrics(self.data.metrics),
            "svg_nodes": nodes,
            "svg_links": links,
            "mode": self.layout.get("mode", ""),
            "width": self.layout.get("width", 960),
            "height": self.layout.get("height", 600),
            "version": self.version,
            "pygments_css": pygments_css(),
            "code_preview": self.code_preview(),
        }
        context.update(extra)
        return context

    def render(self, **extra: Any) -> str:
        """Render the overview template with autoescaping on."""
        from jinja2 import Environment, PackageLoader, select_autoescape

        env = Environment(
            loader=PackageLoader("autotrace.html", "templates"),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )
        template = env.get_template("overview.html.j2")
        return template.render(**self.context(**extra))

    def generate(self) -> str:
        """Render the overview as a standalone HTML document."""
        return self.render(static=True)
