"""Layout session - one running simulation over a dashboard dataset.

The session owns a ``Simulation`` configured for a layout mode and runs
it on a daemon thread. The thread ticks while the layout is hot (alpha at
or above ``alpha_min``) or a drag is active, then idles until reheated.
``stop()`` joins the thread; no tick runs after it returns.

Interaction follows the dashboard's pointer contract:

- drag start pins the node and heats the layout (alpha target 0.3)
- drag moves the pin
- drag end releases the pin and lets the layout cool (alpha target 0)
- hover enlarges the node and exposes its tooltip
- zoom/pan update a view transform clamped to the zoom range
"""

from __future__ import annotations

import math
import random
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from autotrace.graph.generator import GraphData, Layer
from autotrace.layout.forces import (
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    SimNode,
    x_force,
    y_force,
)
from autotrace.layout.simulation import Simulation

DRAG_ALPHA_TARGET = 0.3
HOVER_SCALE = 1.5
INITIAL_JITTER = 50.0


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {value!r}")

TREE_COLUMNS: dict[str, float] = {
    Layer.REQ.value: 0.10,
    Layer.ARCH.value: 0.35,
    Layer.DD.value: 0.60,
    Layer.TC.value: 0.85,
}


class LayoutMode(Enum):
    NETWORK = "network"
    TREE = "tree"

    @classmethod
    def parse(cls, value: str | LayoutMode) -> LayoutMode:
        """Parse a mode name.

        Raises:
            ValueError: If the name is not a known mode.
        """
        if isinstance(value, LayoutMode):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown layout mode '{value}' (expected network or tree)") from None


@dataclass(frozen=True)
class ModePreset:
    """Force parameters for one layout mode."""

    link_distance: float
    charge: float
    collide_radius: float
    column_strength: float | None = None
    vertical_strength: float | None = None


MODE_PRESETS: dict[LayoutMode, ModePreset] = {
    LayoutMode.NETWORK: ModePreset(link_distance=30, charge=-50, collide_radius=10),
    LayoutMode.TREE: ModePreset(
        link_distance=50,
        charge=-30,
        collide_radius=8,
        column_strength=1.5,
        vertical_strength=0.05,
    ),
}


@dataclass
class ViewTransform:
    """Zoom/pan transform of the canvas: ``screen = k * world + (x, y)``."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"k": self.k, "x": self.x, "y": self.y}


def build_simulation(
    data: GraphData,
    mode: LayoutMode,
    width: float,
    height: float,
    seed: int | None = None,
) -> Simulation:
    """Create a simulation for ``data`` with the forces of ``mode``.

    In tree mode nodes start in their layer's column band with random
    vertical jitter; in network mode they start on the default spiral.
    """
    preset = MODE_PRESETS[mode]
    rng = random.Random(seed)
    nodes = []
    for node in data.nodes:
        sim_node = SimNode(id=node.id, group=node.layer.value, r=node.r)
        if mode is LayoutMode.TREE:
            sim_node.x = width * TREE_COLUMNS.get(sim_node.group, 0.5)
            sim_node.y = height / 2 + (rng.random() - 0.5) * INITIAL_JITTER
        nodes.append(sim_node)

    sim = Simulation(nodes, seed=seed)
    sim.add_force(
        "link",
        LinkForce(((link.source, link.target) for link in data.links), distance=preset.link_distance),
    )
    sim.add_force("charge", ManyBodyForce(strength=preset.charge))
    sim.add_force("center", CenterForce(width / 2, height / 2))
    if preset.column_strength is not None:
        sim.add_force(
            "x",
            x_force(lambda n: width * TREE_COLUMNS.get(n.group, 0.5), preset.column_strength),
        )
    if preset.vertical_strength is not None:
        sim.add_force("y", y_force(height / 2, preset.vertical_strength))
    sim.add_force("collide", CollideForce(preset.collide_radius))
    return sim


class LayoutSession:
    """Background-ticking layout over one dataset in one mode.

    Args:
        data: Generated dashboard dataset.
        mode: ``"tree"`` or ``"network"``.
        width: Canvas width.
        height: Canvas height.
        tick_interval: Seconds to sleep between ticks (0 for none).
        zoom_min: Lower bound of the zoom scale.
        zoom_max: Upper bound of the zoom scale.
        seed: Seed for initial jitter and collision jiggle.
        verbose: Print lifecycle messages to stderr.
    """

    def __init__(
        self,
        data: GraphData,
        mode: str | LayoutMode = LayoutMode.TREE,
        width: float = 960,
        height: float = 600,
        tick_interval: float = 0.0,
        zoom_min: float = 0.1,
        zoom_max: float = 4.0,
        seed: int | None = None,
        verbose: bool = False,
    ) -> None:
        self.data = data
        self.mode = LayoutMode.parse(mode)
        self.width = width
        self.height = height
        self.tick_interval = tick_interval
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.seed = seed
        self.verbose = verbose
        self.simulation = build_simulation(data, self.mode, width, height, seed)
        self.transform = ViewTransform()
        self.hovered: str | None = None
        self._dragging: set[str] = set()
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._thread: threading.Thread | None = None

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def active(self) -> bool:
        """True while the loop should tick."""
        return bool(self._dragging) or not self.simulation.settled

    def start(self) -> LayoutSession:
        """Start the tick loop. Starting a stopped session is not supported."""
        if self._stop.is_set():
            raise RuntimeError("Layout session was stopped")
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._run, name=f"layout-{self.mode.value}", daemon=True
            )
            self._thread.start()
            self._log(f"started {self.mode.value} layout ({len(self.data.nodes)} nodes)")
        return self

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the tick loop and wait for the thread to exit."""
        self._stop.set()
        self._wake.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._log(f"stopped {self.mode.value} layout after {self.simulation.tick_count} ticks")

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _run(self) -> None:
        while not self._stop.is_set():
            with self._lock:
                if self._stop.is_set():
                    break
                hot = self.active
                if hot:
                    self.simulation.tick()
                else:
                    self._wake.clear()
            if not hot:
                self._wake.wait()
            elif self.tick_interval > 0:
                self._stop.wait(self.tick_interval)

    def settle(self, max_ticks: int = 1000) -> int:
        """Tick synchronously until settled. Returns ticks performed."""
        with self._lock:
            return self.simulation.run_until_settled(max_ticks)

    def tick(self, iterations: int = 1) -> None:
        """Advance synchronously (for callers not using the thread)."""
        with self._lock:
            if self._stop.is_set():
                return
            self.simulation.tick(iterations)

    def _restart(self) -> None:
        self._wake.set()

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[layout] {message}", file=sys.stderr)

    # ─────────────────────────────────────────────────────────────────────────
    # Interaction
    # ─────────────────────────────────────────────────────────────────────────

    def drag_start(self, node_id: str) -> None:
        """Pin a node at its current position and heat the layout.

        Raises:
            KeyError: If the node is unknown.
        """
        with self._lock:
            self.simulation.pin(node_id)
            if not self._dragging:
                self.simulation.alpha_target = DRAG_ALPHA_TARGET
            self._dragging.add(node_id)
        self._restart()

    def drag(self, node_id: str, x: float, y: float) -> None:
        """Move a pinned node.

        Raises:
            KeyError: If the node is unknown.
            ValueError: If the node is not being dragged or the position is
                not finite.
        """
        _require_finite(x=x, y=y)
        with self._lock:
            if node_id not in self._dragging:
                raise ValueError(f"Node '{node_id}' is not being dragged")
            self.simulation.pin(node_id, x, y)
        self._restart()

    def drag_end(self, node_id: str) -> None:
        """Release a pinned node back to the simulation."""
        with self._lock:
            self.simulation.unpin(node_id)
            self._dragging.discard(node_id)
            if not self._dragging:
                self.simulation.alpha_target = 0.0

    @property
    def dragging(self) -> set[str]:
        return set(self._dragging)

    def hover(self, node_id: str | None) -> dict[str, Any] | None:
        """Set or clear the hovered node.

        Returns:
            Tooltip ``{id, name, group, r}`` with the enlarged radius, or
            None when cleared.

        Raises:
            KeyError: If the node is unknown.
        """
        if node_id is None:
            self.hovered = None
            return None
        node = self.data.find_by_id(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        self.hovered = node_id
        return {
            "id": node.id,
            "name": node.name,
            "group": node.layer.value,
            "r": node.r * HOVER_SCALE,
        }

    def zoom(self, k: float, x: float = 0.0, y: float = 0.0) -> ViewTransform:
        """Zoom to scale ``k`` about screen point ``(x, y)``, clamped to the zoom range.

        Raises:
            ValueError: If any argument is NaN or infinite.
        """
        _require_finite(k=k, x=x, y=y)
        k = min(max(k, self.zoom_min), self.zoom_max)
        t = self.transform
        # Keep the world point under (x, y) fixed
        wx = (x - t.x) / t.k
        wy = (y - t.y) / t.k
        self.transform = ViewTransform(k=k, x=x - wx * k, y=y - wy * k)
        return self.transform

    def pan(self, dx: float, dy: float) -> ViewTransform:
        _require_finite(dx=dx, dy=dy)
        t = self.transform
        self.transform = ViewTransform(k=t.k, x=t.x + dx, y=t.y + dy)
        return self.transform

    # ─────────────────────────────────────────────────────────────────────────
    # Snapshot
    # ─────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        """JSON-compatible view of the current layout."""
        with self._lock:
            nodes = [
                {
                    "id": n.id,
                    "group": n.group,
                    "x": round(n.x, 3),
                    "y": round(n.y, 3),
                    "r": n.r * HOVER_SCALE if n.id == self.hovered else n.r,
                    "fixed": n.pinned,
                }
                for n in self.simulation.nodes
            ]
            return {
                "mode": self.mode.value,
                "alpha": self.simulation.alpha,
                "ticks": self.simulation.tick_count,
                "settled": self.simulation.settled,
                "running": self.running,
                "hovered": self.hovered,
                "transform": self.transform.to_dict(),
                "width": self.width,
                "height": self.height,
                "nodes": nodes,
                "links": [
                    {"source": link.source, "target": link.target} for link in self.data.links
                ],
            }

    def switch_mode(self, mode: str | LayoutMode) -> LayoutSession:
        """Stop this session and return a new one over the same dataset.

        The new session is started if this one was running.
        """
        was_running = self.running
        self.stop()
        new = LayoutSession(
            self.data,
            mode=mode,
            width=self.width,
            height=self.height,
            tick_interval=self.tick_interval,
            zoom_min=self.zoom_min,
            zoom_max=self.zoom_max,
            seed=self.seed,
            verbose=self.verbose,
        )
        new.transform = self.transform
        if was_running:
            new.start()
        return new
