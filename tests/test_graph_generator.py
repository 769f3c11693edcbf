"""Tests for the layered graph generator and its metrics."""

from __future__ import annotations

from collections import Counter

import pytest

from autotrace.graph.generator import (
    DEFAULT_COUNTS,
    GraphData,
    Layer,
    LayerNode,
    RandomGraphGenerator,
    generate_graph,
)
from autotrace.graph.metrics import (
    chart_series,
    compute_metrics,
    dashboard_stats,
    orphaned_requirement_ids,
)
from autotrace.graph.relations import TraceLink
from autotrace.projects.models import Project


def _layer_of(node_id: str) -> str:
    return node_id.split("-")[0]


class TestGenerator:
    def test_default_counts(self):
        data = generate_graph(seed=1)
        counts = Counter(n.layer for n in data.nodes)
        assert counts == Counter(DEFAULT_COUNTS)
        assert len(data.nodes) == 425

    def test_ids_are_one_based_per_layer(self):
        data = generate_graph(seed=1, counts={"REQ": 3, "ARCH": 2, "DD": 2, "TC": 2})
        assert [n.id for n in data.nodes_in(Layer.REQ)] == ["REQ-1", "REQ-2", "REQ-3"]
        assert data.find_by_id("TC-2").name == "Test Case 2"

    def test_seed_is_deterministic(self):
        assert generate_graph(seed=42).links == generate_graph(seed=42).links

    def test_string_seed_accepted(self):
        assert generate_graph(seed="5").links == generate_graph(seed=5).links

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_every_test_has_exactly_one_parent(self, seed):
        data = generate_graph(seed=seed)
        parents = Counter(link.target for link in data.links if link.target.startswith("TC-"))
        assert set(parents) == {n.id for n in data.nodes_in(Layer.TC)}
        assert set(parents.values()) == {1}
        for link in data.links:
            if link.target.startswith("TC-"):
                assert _layer_of(link.source) in ("DD", "REQ")

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_every_design_has_one_architecture_parent(self, seed):
        data = generate_graph(seed=seed)
        parents = [link for link in data.links if link.target.startswith("DD-")]
        assert len(parents) == DEFAULT_COUNTS[Layer.DD]
        assert all(_layer_of(link.source) == "ARCH" for link in parents)

    def test_requirements_link_to_architecture_about_ninety_percent(self):
        linked = 0
        runs = 20
        for seed in range(runs):
            data = generate_graph(seed=seed)
            linked += sum(
                1 for link in data.links if link.source.startswith("REQ-") and
                link.target.startswith("ARCH-")
            )
        ratio = linked / (runs * DEFAULT_COUNTS[Layer.REQ])
        assert 0.85 < ratio < 0.95

    def test_empty_parent_layer_produces_no_dangling_links(self):
        data = generate_graph(seed=3, counts={"REQ": 4, "ARCH": 0, "DD": 3, "TC": 5})
        ids = {n.id for n in data.nodes}
        for link in data.links:
            assert link.source in ids and link.target in ids

    def test_generator_protocol_allows_injection(self):
        class Fixed:
            def generate(self) -> GraphData:
                return GraphData(
                    nodes=[LayerNode("REQ-1", Layer.REQ, "Requirement 1", 6.0)],
                    counts={Layer.REQ: 1},
                )

        data = Fixed().generate()
        assert data.metrics.orphaned_requirements == 1

    def test_counts_accept_layer_keys(self):
        generator = RandomGraphGenerator(seed=0, counts={Layer.TC: 3})
        assert generator.counts[Layer.TC] == 3
        assert generator.counts[Layer.REQ] == 100


class TestMetrics:
    def test_orphans_have_no_incident_links(self):
        data = generate_graph(seed=9)
        incident = {link.source for link in data.links} | {link.target for link in data.links}
        orphans = orphaned_requirement_ids(data)
        assert all(o not in incident for o in orphans)
        linked = [n.id for n in data.nodes_in(Layer.REQ) if n.id not in orphans]
        assert all(n in incident for n in linked)

    def test_orphan_count_matches_metrics(self):
        data = generate_graph(seed=9)
        metrics = data.metrics
        assert metrics.orphaned_requirements == len(orphaned_requirement_ids(data))
        assert metrics.orphaned_ratio == pytest.approx(metrics.orphaned_requirements / 100)

    def test_metrics_computed_once(self):
        data = generate_graph(seed=2)
        assert data.metrics is data.metrics

    def test_density_and_totals(self):
        data = generate_graph(seed=2, counts={"REQ": 5, "ARCH": 2, "DD": 3, "TC": 4})
        metrics = compute_metrics(data)
        assert metrics.density == {"REQ": 5, "ARCH": 2, "DD": 3, "TC": 4}
        assert metrics.total_nodes == 14
        assert metrics.total_links == len(data.links)

    def test_unverified_is_placeholder_below_twenty(self):
        for seed in range(10):
            assert 0 <= generate_graph(seed=seed).metrics.unverified_requirements < 20

    def test_no_requirements_ratio_zero(self):
        data = GraphData(
            nodes=[LayerNode("TC-1", Layer.TC, "Test Case 1", 4.0)],
            links=[TraceLink("TC-1", "TC-1")],
        )
        assert data.metrics.orphaned_ratio == 0.0


class TestDashboardStats:
    def test_new_project_is_zero_valued(self):
        stats = dashboard_stats(Project(id="p", name="X"))
        assert [card["value"] for card in stats.cards()] == [0, 0, 0, "0%"]
        assert stats.data_sources == 0
        assert stats.documents == 0

    def test_seeded_project_counts_documents(self, project_store):
        stats = dashboard_stats(project_store.get("1"))
        assert stats.requirements == 142
        assert stats.data_sources == 3
        assert stats.documents == 5

    def test_chart_series_shapes(self):
        series = chart_series()
        assert series["status"][0] == {"name": "Approved", "value": 45}
        assert series["traceability"][-1] == {"name": "Unit Test", "coverage": 65}
        assert series["trend"][0] == {"name": "W1", "bugs": 2, "tests": 10}
