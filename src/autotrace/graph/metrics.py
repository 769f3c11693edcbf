"""Dashboard graph metrics.

This module defines the metrics panel data:
- GraphMetrics: orphaned requirements, unverified placeholder, link totals
- compute_metrics: derive GraphMetrics from a generated dataset
- DashboardStats: stat cards and chart series for a project dashboard
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autotrace.graph.generator import GraphData
    from autotrace.projects.models import Project


@dataclass(frozen=True)
class GraphMetrics:
    """Traceability health of a generated dataset.

    Attributes:
        orphaned_requirements: REQ nodes with no incident link.
        orphaned_ratio: ``orphaned_requirements`` / REQ count (0 if none).
        unverified_requirements: Placeholder count (not derived from links).
        total_links: Number of links in the dataset.
        total_nodes: Number of nodes in the dataset.
        density: Node count per layer name.
    """

    orphaned_requirements: int
    orphaned_ratio: float
    unverified_requirements: int
    total_links: int
    total_nodes: int
    density: dict[str, int] = field(default_factory=dict)


def orphaned_requirement_ids(data: GraphData) -> list[str]:
    """Return ids of REQ nodes that no link touches."""
    from autotrace.graph.generator import Layer

    incident: set[str] = set()
    for link in data.links:
        incident.add(link.source)
        incident.add(link.target)
    return [n.id for n in data.nodes_in(Layer.REQ) if n.id not in incident]


def compute_metrics(data: GraphData) -> GraphMetrics:
    """Compute the metrics panel for a dataset."""
    from autotrace.graph.generator import Layer

    orphans = len(orphaned_requirement_ids(data))
    req_count = len(data.nodes_in(Layer.REQ))
    return GraphMetrics(
        orphaned_requirements=orphans,
        orphaned_ratio=(orphans / req_count) if req_count else 0.0,
        unverified_requirements=data.unverified_placeholder,
        total_links=len(data.links),
        total_nodes=len(data.nodes),
        density={layer.value: len(data.nodes_in(layer)) for layer in Layer},
    )


# Chart series shown next to the graph; static in this workspace.
STATUS_DISTRIBUTION = (
    ("Approved", 45),
    ("Draft", 20),
    ("In Review", 15),
    ("Obsolete", 5),
)
COVERAGE_BY_LEVEL = (
    ("Sys Req", 100),
    ("Sys Arch", 92),
    ("Soft Req", 85),
    ("Soft Arch", 78),
    ("Unit Test", 65),
)
WEEKLY_TREND = (
    ("W1", 2, 10),
    ("W2", 5, 25),
    ("W3", 3, 45),
    ("W4", 8, 60),
    ("W5", 4, 85),
)


@dataclass(frozen=True)
class DashboardStats:
    """Stat cards of a project dashboard."""

    requirements: int
    tests: int
    bugs: int
    coverage: int
    data_sources: int
    documents: int

    def cards(self) -> list[dict[str, object]]:
        """Render the stat cards (title, value, subtitle)."""
        return [
            {"title": "Requirements", "value": self.requirements, "sub": "Total tracked"},
            {"title": "Test Cases", "value": self.tests, "sub": "Linked to requirements"},
            {"title": "Open Bugs", "value": self.bugs, "sub": "Needs attention"},
            {"title": "Coverage", "value": f"{self.coverage}%", "sub": "Requirement coverage"},
        ]


def chart_series() -> dict[str, list[dict[str, object]]]:
    """Chart data in the shape the dashboard charts consume."""
    return {
        "status": [{"name": n, "value": v} for n, v in STATUS_DISTRIBUTION],
        "traceability": [{"name": n, "coverage": c} for n, c in COVERAGE_BY_LEVEL],
        "trend": [{"name": n, "bugs": b, "tests": t} for n, b, t in WEEKLY_TREND],
    }


def dashboard_stats(project: Project) -> DashboardStats:
    """Aggregate the stat cards for a project.

    A project without data sources yields zero-valued document counts.
    """
    documents = sum(len(source.documents) for source in project.data_sources)
    return DashboardStats(
        requirements=project.stats.requirements,
        tests=project.stats.tests,
        bugs=project.stats.bugs,
        coverage=project.stats.coverage,
        data_sources=len(project.data_sources),
        documents=documents,
    )


__all__ = [
    "COVERAGE_BY_LEVEL",
    "DashboardStats",
    "GraphMetrics",
    "STATUS_DISTRIBUTION",
    "WEEKLY_TREND",
    "chart_series",
    "compute_metrics",
    "dashboard_stats",
    "orphaned_requirement_ids",
]
