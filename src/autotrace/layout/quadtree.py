"""Barnes-Hut quadtree over simulation nodes.

Used by the many-body force (aggregated charge per quadrant) and by the
collision force (maximum radius per quadrant for pruning).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

MAX_DEPTH = 32


@dataclass
class Quad:
    """One quadrant. Leaves hold points; internal quads hold four children.

    Children are ordered NW, NE, SW, SE. Coincident points share a leaf.
    """

    x0: float
    y0: float
    x1: float
    y1: float
    points: list = field(default_factory=list)
    children: list[Quad | None] | None = None
    # Aggregates filled by QuadTree.accumulate
    value: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    max_r: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def width(self) -> float:
        return self.x1 - self.x0


class QuadTree:
    """Quadtree over objects with coordinates given by accessor functions.

    Args:
        items: Objects to index.
        x: Accessor returning an item's x coordinate.
        y: Accessor returning an item's y coordinate.
    """

    def __init__(
        self,
        items: Iterable,
        x: Callable[[object], float],
        y: Callable[[object], float],
    ) -> None:
        self._x = x
        self._y = y
        entries = [(item, x(item), y(item)) for item in items]
        if not entries:
            self.root: Quad | None = None
            return

        x0 = min(e[1] for e in entries)
        y0 = min(e[2] for e in entries)
        x1 = max(e[1] for e in entries)
        y1 = max(e[2] for e in entries)
        # Square extent, at least 1 unit wide
        size = max(x1 - x0, y1 - y0, 1.0)
        self.root = Quad(x0, y0, x0 + size, y0 + size)
        for item, ix, iy in entries:
            self._insert(self.root, item, ix, iy, 0)

    def _insert(self, quad: Quad, item, ix: float, iy: float, depth: int) -> None:
        while True:
            if quad.is_leaf:
                if not quad.points or depth >= MAX_DEPTH:
                    quad.points.append((item, ix, iy))
                    return
                _, px, py = quad.points[0]
                if px == ix and py == iy:
                    quad.points.append((item, ix, iy))
                    return
                # Split and push existing points down one level
                existing = quad.points
                quad.points = []
                quad.children = [None, None, None, None]
                for entry in existing:
                    child = self._child_for(quad, entry[1], entry[2])
                    child.points.append(entry)
            quad = self._child_for(quad, ix, iy)
            depth += 1

    @staticmethod
    def _child_for(quad: Quad, ix: float, iy: float) -> Quad:
        xm = (quad.x0 + quad.x1) / 2
        ym = (quad.y0 + quad.y1) / 2
        right = ix >= xm
        bottom = iy >= ym
        index = (2 if bottom else 0) + (1 if right else 0)
        assert quad.children is not None
        child = quad.children[index]
        if child is None:
            child = Quad(
                xm if right else quad.x0,
                ym if bottom else quad.y0,
                quad.x1 if right else xm,
                quad.y1 if bottom else ym,
            )
            quad.children[index] = child
        return child

    def accumulate(
        self,
        strength: Callable[[object], float] | None = None,
        radius: Callable[[object], float] | None = None,
    ) -> None:
        """Fill per-quad aggregates bottom-up.

        ``value`` is the summed strength and ``(cx, cy)`` the centroid
        weighted by absolute strength. ``max_r`` is the largest radius
        below the quad.
        """
        if self.root is not None:
            self._accumulate(self.root, strength, radius)

    def _accumulate(self, quad: Quad, strength, radius) -> None:
        if quad.is_leaf:
            total = 0.0
            weight = 0.0
            sx = sy = 0.0
            max_r = 0.0
            for item, ix, iy in quad.points:
                s = strength(item) if strength else 1.0
                total += s
                weight += abs(s)
                sx += abs(s) * ix
                sy += abs(s) * iy
                if radius:
                    max_r = max(max_r, radius(item))
            quad.value = total
            if weight:
                quad.cx, quad.cy = sx / weight, sy / weight
            elif quad.points:
                quad.cx, quad.cy = quad.points[0][1], quad.points[0][2]
            quad.max_r = max_r
            return

        total = 0.0
        weight = 0.0
        sx = sy = 0.0
        max_r = 0.0
        for child in quad.children or ():
            if child is None:
                continue
            self._accumulate(child, strength, radius)
            w = abs(child.value)
            total += child.value
            weight += w
            sx += w * child.cx
            sy += w * child.cy
            max_r = max(max_r, child.max_r)
        quad.value = total
        if weight:
            quad.cx, quad.cy = sx / weight, sy / weight
        else:
            quad.cx, quad.cy = (quad.x0 + quad.x1) / 2, (quad.y0 + quad.y1) / 2
        quad.max_r = max_r

    def visit(self, callback: Callable[[Quad], bool]) -> None:
        """Visit quads pre-order. If ``callback`` returns True, skip the children."""
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            quad = stack.pop()
            if callback(quad) or quad.is_leaf:
                continue
            for child in reversed(quad.children or ()):
                if child is not None:
                    stack.append(child)

    def items(self) -> list:
        """Return all indexed items."""
        result: list = []

        def collect(quad: Quad) -> bool:
            result.extend(entry[0] for entry in quad.points)
            return False

        self.visit(collect)
        return result
