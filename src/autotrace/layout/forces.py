"""Layout forces.

Each force is initialized with the simulation's node list and RNG, then
called once per tick with the current alpha. Forces only touch node
velocities (``vx``, ``vy``), except ``CenterForce`` which shifts
positions directly.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from autotrace.layout.quadtree import Quad, QuadTree


@dataclass(eq=False)
class SimNode:
    """A node under simulation.

    Attributes:
        id: Node id.
        index: Position in the simulation's node list.
        group: Layer name, used by per-group positioning forces.
        r: Base radius.
        x, y: Position.
        vx, vy: Velocity.
        fx, fy: Fixed position while pinned, else None.
    """

    id: str
    index: int = 0
    group: str = ""
    r: float = 5.0
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None


def jiggle(rng: random.Random) -> float:
    """Tiny random offset to separate coincident nodes."""
    return (rng.random() - 0.5) * 1e-6


class Force:
    """Base class for forces."""

    def initialize(self, nodes: Sequence[SimNode], rng: random.Random) -> None:
        self.nodes = nodes
        self.rng = rng

    def __call__(self, alpha: float) -> None:
        raise NotImplementedError


class LinkForce(Force):
    """Spring force along links.

    Strength defaults to ``1 / min(degree(source), degree(target))`` and the
    correction is split between endpoints by degree (bias), so heavily
    connected nodes move less.

    Args:
        links: ``(source_id, target_id)`` pairs.
        distance: Rest length.
        iterations: Relaxation passes per tick.
    """

    def __init__(
        self,
        links: Iterable[tuple[str, str]],
        distance: float = 30.0,
        iterations: int = 1,
    ) -> None:
        self.link_ids = list(links)
        self.distance = distance
        self.iterations = iterations
        self._resolved: list[tuple[SimNode, SimNode, float, float]] = []

    def initialize(self, nodes: Sequence[SimNode], rng: random.Random) -> None:
        super().initialize(nodes, rng)
        by_id = {n.id: n for n in nodes}
        degree: dict[str, int] = {}
        pairs: list[tuple[SimNode, SimNode]] = []
        for source_id, target_id in self.link_ids:
            source = by_id.get(source_id)
            target = by_id.get(target_id)
            if source is None or target is None:
                raise KeyError(f"Link references unknown node: {source_id} -> {target_id}")
            pairs.append((source, target))
            degree[source.id] = degree.get(source.id, 0) + 1
            degree[target.id] = degree.get(target.id, 0) + 1

        self._resolved = []
        for source, target in pairs:
            ds = degree[source.id]
            dt = degree[target.id]
            strength = 1.0 / min(ds, dt)
            bias = ds / (ds + dt)
            self._resolved.append((source, target, strength, bias))

    def __call__(self, alpha: float) -> None:
        for _ in range(self.iterations):
            for source, target, strength, bias in self._resolved:
                x = target.x + target.vx - source.x - source.vx or jiggle(self.rng)
                y = target.y + target.vy - source.y - source.vy or jiggle(self.rng)
                length = math.sqrt(x * x + y * y)
                length = (length - self.distance) / length * alpha * strength
                x *= length
                y *= length
                target.vx -= x * bias
                target.vy -= y * bias
                source.vx += x * (1 - bias)
                source.vy += y * (1 - bias)


class ManyBodyForce(Force):
    """Mutual charge (negative repels) approximated with Barnes-Hut.

    Args:
        strength: Charge per node.
        theta: Barnes-Hut accuracy; a quad is treated as a single body when
            ``width / distance < theta``.
        distance_min: Lower bound on interaction distance.
        distance_max: Upper bound on interaction distance.
    """

    def __init__(
        self,
        strength: float = -30.0,
        theta: float = 0.9,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
    ) -> None:
        self.strength = strength
        self.theta2 = theta * theta
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max

    def __call__(self, alpha: float) -> None:
        tree = QuadTree(self.nodes, x=lambda n: n.x, y=lambda n: n.y)
        tree.accumulate(strength=lambda n: self.strength)
        for node in self.nodes:
            tree.visit(lambda quad, node=node: self._apply(quad, node, alpha))

    def _apply(self, quad: Quad, node: SimNode, alpha: float) -> bool:
        if not quad.value:
            return True

        x = quad.cx - node.x
        y = quad.cy - node.y
        w = quad.width
        dist2 = x * x + y * y

        # Far enough away: treat the quad as one body
        if w * w / self.theta2 < dist2:
            if dist2 < self.distance_max2:
                x, y, dist2 = self._separate(x, y, dist2)
                node.vx += x * quad.value * alpha / dist2
                node.vy += y * quad.value * alpha / dist2
            return True

        if not quad.is_leaf or dist2 >= self.distance_max2:
            return False

        for item, px, py in quad.points:
            if item is node:
                continue
            dx = px - node.x
            dy = py - node.y
            d2 = dx * dx + dy * dy
            dx, dy, d2 = self._separate(dx, dy, d2)
            weight = self.strength * alpha / d2
            node.vx += dx * weight
            node.vy += dy * weight
        return True

    def _separate(self, x: float, y: float, dist2: float) -> tuple[float, float, float]:
        if x == 0:
            x = jiggle(self.rng)
            dist2 += x * x
        if y == 0:
            y = jiggle(self.rng)
            dist2 += y * y
        if dist2 < self.distance_min2:
            dist2 = math.sqrt(self.distance_min2 * dist2)
        return x, y, dist2


class CenterForce(Force):
    """Translate all nodes so their mean position sits at ``(x, y)``."""

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0) -> None:
        self.x = x
        self.y = y
        self.strength = strength

    def __call__(self, alpha: float) -> None:
        if not self.nodes:
            return
        n = len(self.nodes)
        sx = sum(node.x for node in self.nodes) / n - self.x
        sy = sum(node.y for node in self.nodes) / n - self.y
        sx *= self.strength
        sy *= self.strength
        for node in self.nodes:
            node.x -= sx
            node.y -= sy


class CollideForce(Force):
    """Push overlapping circles apart.

    Args:
        radius: Collision radius per node (constant or accessor).
        strength: Fraction of the overlap resolved per iteration.
        iterations: Passes per tick.
    """

    def __init__(
        self,
        radius: float | Callable[[SimNode], float] = 1.0,
        strength: float = 1.0,
        iterations: int = 1,
    ) -> None:
        self.radius = radius if callable(radius) else (lambda node, r=radius: r)
        self.strength = strength
        self.iterations = iterations

    def __call__(self, alpha: float) -> None:
        radii = {node.index: self.radius(node) for node in self.nodes}
        for _ in range(self.iterations):
            tree = QuadTree(self.nodes, x=lambda n: n.x + n.vx, y=lambda n: n.y + n.vy)
            tree.accumulate(radius=lambda n: radii[n.index])
            for node in self.nodes:
                self._collide(tree, node, radii)

    def _collide(self, tree: QuadTree, node: SimNode, radii: dict[int, float]) -> None:
        ri = radii[node.index]
        ri2 = ri * ri
        xi = node.x + node.vx
        yi = node.y + node.vy

        def apply(quad: Quad) -> bool:
            reach = ri + quad.max_r
            if quad.is_leaf:
                for other, _, _ in quad.points:
                    # Each pair is resolved once, from the lower index
                    if other.index <= node.index:
                        continue
                    rj = radii[other.index]
                    r = ri + rj
                    x = xi - other.x - other.vx
                    y = yi - other.y - other.vy
                    dist2 = x * x + y * y
                    if dist2 >= r * r:
                        continue
                    if x == 0:
                        x = jiggle(self.rng)
                        dist2 += x * x
                    if y == 0:
                        y = jiggle(self.rng)
                        dist2 += y * y
                    dist = math.sqrt(dist2)
                    push = (r - dist) / dist * self.strength
                    x *= push
                    y *= push
                    share = rj * rj / (ri2 + rj * rj)
                    node.vx += x * share
                    node.vy += y * share
                    other.vx -= x * (1 - share)
                    other.vy -= y * (1 - share)
                return True
            return (
                quad.x0 > xi + reach
                or quad.x1 < xi - reach
                or quad.y0 > yi + reach
                or quad.y1 < yi - reach
            )

        tree.visit(apply)


class PositionForce(Force):
    """Pull nodes toward a target coordinate on one axis.

    Args:
        axis: ``"x"`` or ``"y"``.
        target: Target coordinate (constant or per-node accessor).
        strength: Fraction of the distance applied per tick.
    """

    def __init__(
        self,
        axis: str,
        target: float | Callable[[SimNode], float] = 0.0,
        strength: float = 0.1,
    ) -> None:
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        self.axis = axis
        self.target = target if callable(target) else (lambda node, t=target: t)
        self.strength = strength
        self._targets: list[float] = []

    def initialize(self, nodes: Sequence[SimNode], rng: random.Random) -> None:
        super().initialize(nodes, rng)
        self._targets = [self.target(node) for node in nodes]

    def __call__(self, alpha: float) -> None:
        k = self.strength * alpha
        if self.axis == "x":
            for node, tx in zip(self.nodes, self._targets):
                node.vx += (tx - node.x) * k
        else:
            for node, ty in zip(self.nodes, self._targets):
                node.vy += (ty - node.y) * k


def x_force(target: float | Callable[[SimNode], float] = 0.0, strength: float = 0.1) -> PositionForce:
    return PositionForce("x", target, strength)


def y_force(target: float | Callable[[SimNode], float] = 0.0, strength: float = 0.1) -> PositionForce:
    return PositionForce("y", target, strength)
