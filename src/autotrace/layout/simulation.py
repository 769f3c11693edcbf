"""Force simulation with alpha cooling.

Velocity-Verlet integration over ``SimNode`` objects. Each tick moves
``alpha`` toward ``alpha_target`` by ``alpha_decay``, applies every
registered force, then damps velocities and advances positions. Pinned
nodes (``fx``/``fy`` set) are held in place.
"""

from __future__ import annotations

import math
import random
from typing import Iterable, Iterator

from autotrace.layout.forces import Force, SimNode

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class Simulation:
    """A d3-style force simulation.

    The simulation does not run on its own; callers drive it with
    ``tick()``. ``LayoutSession`` wraps it in a background loop.

    Args:
        nodes: Nodes to simulate. Nodes without a position are placed on
            a phyllotaxis spiral.
        seed: Seed for the jiggle RNG.
    """

    def __init__(self, nodes: Iterable[SimNode], seed: int | None = None) -> None:
        self.nodes: list[SimNode] = list(nodes)
        self.rng = random.Random(seed)
        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY
        self.tick_count = 0
        self._forces: dict[str, Force] = {}
        self._by_id = {n.id: n for n in self.nodes}
        self._initialize_nodes()

    def _initialize_nodes(self) -> None:
        for i, node in enumerate(self.nodes):
            node.index = i
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if math.isnan(node.x) or math.isnan(node.y):
                radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * _INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)
            if math.isnan(node.vx) or math.isnan(node.vy):
                node.vx = node.vy = 0.0

    # ─────────────────────────────────────────────────────────────────────────
    # Forces
    # ─────────────────────────────────────────────────────────────────────────

    def add_force(self, name: str, force: Force) -> Simulation:
        """Register (or replace) a named force and initialize it."""
        force.initialize(self.nodes, self.rng)
        self._forces[name] = force
        return self

    def remove_force(self, name: str) -> None:
        self._forces.pop(name, None)

    def force(self, name: str) -> Force | None:
        return self._forces.get(name)

    def force_names(self) -> list[str]:
        return list(self._forces)

    # ─────────────────────────────────────────────────────────────────────────
    # Stepping
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def settled(self) -> bool:
        """True once alpha has cooled below ``alpha_min``."""
        return self.alpha < self.alpha_min

    def tick(self, iterations: int = 1) -> None:
        """Advance the simulation by ``iterations`` steps."""
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            for force in self._forces.values():
                force(self.alpha)

            keep = 1 - self.velocity_decay
            for node in self.nodes:
                if node.fx is None:
                    node.vx *= keep
                    node.x += node.vx
                else:
                    node.x = node.fx
                    node.vx = 0.0
                if node.fy is None:
                    node.vy *= keep
                    node.y += node.vy
                else:
                    node.y = node.fy
                    node.vy = 0.0
            self.tick_count += 1

    def run_until_settled(self, max_ticks: int = 1000) -> int:
        """Tick until settled or ``max_ticks`` is reached.

        Returns:
            Number of ticks performed.
        """
        done = 0
        while not self.settled and done < max_ticks:
            self.tick()
            done += 1
        return done

    def reheat(self, alpha: float = 1.0) -> None:
        """Raise alpha so the layout moves again."""
        self.alpha = max(self.alpha, alpha)

    # ─────────────────────────────────────────────────────────────────────────
    # Nodes
    # ─────────────────────────────────────────────────────────────────────────

    def __iter__(self) -> Iterator[SimNode]:
        return iter(self.nodes)

    def node(self, node_id: str) -> SimNode:
        """Return the node with ``node_id``.

        Raises:
            KeyError: If the node is not in the simulation.
        """
        try:
            return self._by_id[node_id]
        except KeyError:
            raise KeyError(f"Node '{node_id}' not found") from None

    def pin(self, node_id: str, x: float | None = None, y: float | None = None) -> SimNode:
        """Fix a node at ``(x, y)``, defaulting to its current position."""
        node = self.node(node_id)
        node.fx = node.x if x is None else x
        node.fy = node.y if y is None else y
        return node

    def unpin(self, node_id: str) -> SimNode:
        node = self.node(node_id)
        node.fx = None
        node.fy = None
        return node

    def find(self, x: float, y: float, radius: float = math.inf) -> SimNode | None:
        """Return the node closest to ``(x, y)`` within ``radius``."""
        best: SimNode | None = None
        best_d2 = radius * radius
        for node in self.nodes:
            d2 = (node.x - x) ** 2 + (node.y - y) ** 2
            if d2 < best_d2:
                best, best_d2 = node, d2
        return best
