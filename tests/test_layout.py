"""Tests for the quadtree, forces, simulation and the layout session."""

from __future__ import annotations

import math
import random
import time

import pytest

from autotrace.graph.generator import generate_graph
from autotrace.layout import LayoutMode, LayoutSession, SimNode, Simulation, build_simulation
from autotrace.layout.forces import (
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    PositionForce,
    x_force,
)
from autotrace.layout.quadtree import QuadTree
from autotrace.layout.session import DRAG_ALPHA_TARGET, HOVER_SCALE, TREE_COLUMNS
from autotrace.layout.simulation import ALPHA_DECAY, ALPHA_MIN

SMALL = {"REQ": 6, "ARCH": 3, "DD": 4, "TC": 8}


def _nodes(*coords):
    return [SimNode(id=f"n{i}", index=i, x=x, y=y) for i, (x, y) in enumerate(coords)]


@pytest.fixture
def small_data():
    return generate_graph(seed=11, counts=SMALL)


@pytest.fixture
def session(small_data):
    s = LayoutSession(small_data, mode="tree", seed=11)
    yield s
    s.stop()


# ─────────────────────────────────────────────────────────────────────────────
# Quadtree
# ─────────────────────────────────────────────────────────────────────────────


class TestQuadTree:
    def test_empty_tree(self):
        tree = QuadTree([], x=lambda n: n.x, y=lambda n: n.y)
        assert tree.root is None
        assert tree.items() == []

    def test_items_round_trip(self):
        nodes = _nodes((0, 0), (10, 10), (5, 2), (9, 1))
        tree = QuadTree(nodes, x=lambda n: n.x, y=lambda n: n.y)
        assert sorted(n.id for n in tree.items()) == ["n0", "n1", "n2", "n3"]

    def test_coincident_points_share_a_leaf(self):
        nodes = _nodes((3, 3), (3, 3), (8, 8))
        tree = QuadTree(nodes, x=lambda n: n.x, y=lambda n: n.y)
        assert len(tree.items()) == 3

    def test_accumulate_centroid_and_value(self):
        nodes = _nodes((0, 0), (10, 0))
        tree = QuadTree(nodes, x=lambda n: n.x, y=lambda n: n.y)
        tree.accumulate(strength=lambda n: -2.0, radius=lambda n: 4.0)
        assert tree.root.value == pytest.approx(-4.0)
        assert tree.root.cx == pytest.approx(5.0)
        assert tree.root.cy == pytest.approx(0.0)
        assert tree.root.max_r == 4.0

    def test_visit_skips_children_when_callback_returns_true(self):
        nodes = _nodes((0, 0), (10, 10), (1, 9))
        tree = QuadTree(nodes, x=lambda n: n.x, y=lambda n: n.y)
        visited = []
        tree.visit(lambda quad: visited.append(quad) or True)
        assert visited == [tree.root]


# ─────────────────────────────────────────────────────────────────────────────
# Forces
# ─────────────────────────────────────────────────────────────────────────────


class TestForces:
    def test_link_pulls_distant_nodes_together(self):
        a, b = _nodes((0, 0), (100, 0))
        force = LinkForce([("n0", "n1")], distance=30)
        force.initialize([a, b], random.Random(0))
        force(1.0)
        assert a.vx > 0
        assert b.vx < 0

    def test_link_unknown_node_raises(self):
        with pytest.raises(KeyError):
            LinkForce([("n0", "zz")]).initialize(_nodes((0, 0)), random.Random(0))

    def test_many_body_negative_strength_repels(self):
        a, b = _nodes((0, 0), (10, 0))
        force = ManyBodyForce(strength=-30)
        force.initialize([a, b], random.Random(0))
        force(1.0)
        assert a.vx < 0
        assert b.vx > 0

    def test_center_moves_mean_to_target(self):
        nodes = _nodes((0, 0), (10, 20))
        force = CenterForce(100, 100)
        force.initialize(nodes, random.Random(0))
        force(1.0)
        assert sum(n.x for n in nodes) / 2 == pytest.approx(100)
        assert sum(n.y for n in nodes) / 2 == pytest.approx(100)

    def test_collide_separates_overlapping_nodes(self):
        a, b = _nodes((0, 0), (1, 0))
        force = CollideForce(radius=10)
        force.initialize([a, b], random.Random(0))
        force(1.0)
        assert a.vx < 0 < b.vx

    def test_position_force_pulls_toward_target(self):
        (node,) = _nodes((0, 0))
        force = x_force(lambda n: 50.0, strength=0.5)
        force.initialize([node], random.Random(0))
        force(1.0)
        assert node.vx == pytest.approx(25.0)

    def test_position_force_rejects_bad_axis(self):
        with pytest.raises(ValueError):
            PositionForce("z")


# ─────────────────────────────────────────────────────────────────────────────
# Simulation
# ─────────────────────────────────────────────────────────────────────────────


class TestSimulation:
    def test_unpositioned_nodes_get_finite_positions(self):
        sim = Simulation([SimNode(id="a"), SimNode(id="b")])
        assert all(math.isfinite(n.x) and math.isfinite(n.y) for n in sim)

    def test_alpha_decays_each_tick(self):
        sim = Simulation(_nodes((0, 0), (5, 5)), seed=1)
        sim.tick()
        assert sim.alpha == pytest.approx(1 - ALPHA_DECAY)
        assert sim.tick_count == 1

    def test_settles_in_about_three_hundred_ticks(self):
        sim = Simulation(_nodes((0, 0), (5, 5)), seed=1)
        ticks = sim.run_until_settled()
        assert sim.settled
        assert sim.alpha < ALPHA_MIN
        assert 295 <= ticks <= 305

    def test_pinned_node_stays_put(self):
        sim = Simulation(_nodes((0, 0), (1, 1)), seed=1)
        sim.add_force("charge", ManyBodyForce(strength=-100))
        sim.pin("n0", 20, 30)
        sim.tick(10)
        node = sim.node("n0")
        assert (node.x, node.y) == (20, 30)
        assert node.pinned

    def test_unpin_releases(self):
        sim = Simulation(_nodes((0, 0)), seed=1)
        sim.pin("n0")
        assert not sim.unpin("n0").pinned

    def test_unknown_node(self):
        with pytest.raises(KeyError):
            Simulation(_nodes((0, 0))).node("nope")

    def test_find_nearest(self):
        sim = Simulation(_nodes((0, 0), (10, 10)))
        assert sim.find(9, 9).id == "n1"
        assert sim.find(50, 50, radius=5) is None

    def test_force_registry(self):
        sim = Simulation(_nodes((0, 0)))
        sim.add_force("center", CenterForce())
        assert sim.force_names() == ["center"]
        sim.remove_force("center")
        assert sim.force("center") is None


class TestBuildSimulation:
    def test_tree_mode_starts_nodes_in_layer_columns(self, small_data):
        sim = build_simulation(small_data, LayoutMode.TREE, 1000, 600, seed=3)
        for node in sim:
            assert node.x == pytest.approx(1000 * TREE_COLUMNS[node.group])
            assert abs(node.y - 300) <= 25

    def test_tree_mode_has_column_forces(self, small_data):
        sim = build_simulation(small_data, LayoutMode.TREE, 1000, 600)
        assert set(sim.force_names()) == {"link", "charge", "center", "x", "y", "collide"}

    def test_network_mode_has_no_column_forces(self, small_data):
        sim = build_simulation(small_data, LayoutMode.NETWORK, 1000, 600)
        assert "x" not in sim.force_names()
        assert "y" not in sim.force_names()

    def test_tree_layout_orders_layers_left_to_right(self, small_data):
        sim = build_simulation(small_data, LayoutMode.TREE, 1000, 600, seed=3)
        sim.run_until_settled()

        def mean_x(group):
            xs = [n.x for n in sim if n.group == group]
            return sum(xs) / len(xs)

        assert mean_x("REQ") < mean_x("ARCH") < mean_x("DD") < mean_x("TC")


# ─────────────────────────────────────────────────────────────────────────────
# Layout session
# ─────────────────────────────────────────────────────────────────────────────


class TestLayoutMode:
    def test_parse(self):
        assert LayoutMode.parse("NETWORK") is LayoutMode.NETWORK
        assert LayoutMode.parse(LayoutMode.TREE) is LayoutMode.TREE

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            LayoutMode.parse("radial")


class TestLayoutSession:
    def test_background_loop_settles(self, session):
        session.start()
        deadline = time.time() + 10
        while not session.simulation.settled and time.time() < deadline:
            time.sleep(0.01)
        assert session.simulation.settled
        assert session.running

    def test_no_ticks_after_stop(self, session):
        session.start()
        time.sleep(0.05)
        session.stop()
        assert not session.running
        ticks = session.simulation.tick_count
        session.tick(5)
        time.sleep(0.05)
        assert session.simulation.tick_count == ticks

    def test_restart_after_stop_not_supported(self, session):
        session.stop()
        with pytest.raises(RuntimeError):
            session.start()

    def test_drag_pins_and_heats(self, session):
        session.settle()
        session.drag_start("REQ-1")
        assert session.simulation.alpha_target == DRAG_ALPHA_TARGET
        assert session.active
        session.drag("REQ-1", 12.0, 34.0)
        session.tick(3)
        node = session.simulation.node("REQ-1")
        assert (node.x, node.y) == (12.0, 34.0)

    def test_drag_end_releases_and_cools(self, session):
        session.drag_start("REQ-1")
        session.drag_end("REQ-1")
        assert not session.simulation.node("REQ-1").pinned
        assert session.simulation.alpha_target == 0.0
        assert session.dragging == set()

    def test_drag_without_start(self, session):
        with pytest.raises(ValueError):
            session.drag("REQ-1", 0, 0)

    def test_drag_unknown_node(self, session):
        with pytest.raises(KeyError):
            session.drag_start("REQ-999")

    def test_hover_enlarges_radius(self, session):
        tooltip = session.hover("ARCH-1")
        assert tooltip == {"id": "ARCH-1", "name": "Architecture 1", "group": "ARCH",
                           "r": 8.0 * HOVER_SCALE}
        hovered = [n for n in session.snapshot()["nodes"] if n["id"] == "ARCH-1"][0]
        assert hovered["r"] == 12.0
        assert session.hover(None) is None
        assert session.hovered is None

    def test_hover_unknown(self, session):
        with pytest.raises(KeyError):
            session.hover("TC-999")

    def test_zoom_clamped(self, session):
        assert session.zoom(10).k == 4.0
        assert session.zoom(0.01).k == 0.1

    def test_zoom_keeps_anchor_fixed(self, session):
        t = session.zoom(2.0, x=100, y=50)
        # World point under (100, 50) was (100, 50) at k=1
        assert t.k * 100 + t.x == pytest.approx(100)
        assert t.k * 50 + t.y == pytest.approx(50)

    def test_pan(self, session):
        session.pan(5, -3)
        assert session.transform.to_dict() == {"k": 1.0, "x": 5.0, "y": -3.0}

    @pytest.mark.parametrize("k", [math.nan, math.inf, -math.inf])
    def test_zoom_rejects_non_finite_scale(self, session, k):
        with pytest.raises(ValueError, match="finite"):
            session.zoom(k)
        assert session.transform.k == 1.0

    def test_zoom_and_pan_reject_non_finite_offsets(self, session):
        with pytest.raises(ValueError):
            session.zoom(2.0, x=math.nan)
        with pytest.raises(ValueError):
            session.pan(math.inf, 0)
        assert session.transform.to_dict() == {"k": 1.0, "x": 0.0, "y": 0.0}

    def test_drag_rejects_non_finite_position(self, session):
        session.drag_start("REQ-1")
        before = session.simulation.node("REQ-1").fx
        with pytest.raises(ValueError, match="finite"):
            session.drag("REQ-1", math.nan, 0.0)
        assert session.simulation.node("REQ-1").fx == before

    def test_snapshot_shape(self, session, small_data):
        snap = session.snapshot()
        assert snap["mode"] == "tree"
        assert len(snap["nodes"]) == len(small_data.nodes)
        assert len(snap["links"]) == len(small_data.links)
        assert snap["running"] is False

    def test_switch_mode_keeps_dataset_and_transform(self, session, small_data):
        session.pan(10, 10)
        new = session.switch_mode("network")
        try:
            assert new.mode is LayoutMode.NETWORK
            assert new.data is small_data
            assert new.transform == session.transform
            assert session.stopped
            assert not new.running
        finally:
            new.stop()

    def test_switch_mode_restarts_running_session(self, session):
        session.start()
        new = session.switch_mode(LayoutMode.NETWORK)
        try:
            assert new.running
            assert not session.running
        finally:
            new.stop()
