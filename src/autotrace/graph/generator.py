"""Synthetic trace graph for the dashboard visualization.

Builds four layers of artifacts (REQ, ARCH, DD, TC) and links each child
layer to a random parent, modelling both V-model verification paths:

- REQ -> ARCH with 90% probability (the rest stay orphaned)
- ARCH -> DD, one parent per design
- DD -> TC (70%) or REQ -> TC (30%), one parent per test

The randomness sits behind ``GraphGenerator`` so callers can inject a
seeded or hand-built dataset.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING, Mapping, Protocol

from autotrace.graph.relations import TraceLink

if TYPE_CHECKING:
    from autotrace.graph.metrics import GraphMetrics


class Layer(Enum):
    """Dashboard graph layers, in V-model order."""

    REQ = "REQ"
    ARCH = "ARCH"
    DD = "DD"
    TC = "TC"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def radius(self) -> float:
        return _RADII[self]

    @property
    def color(self) -> str:
        return _COLORS[self]


_DISPLAY_NAMES = {
    Layer.REQ: "Requirement",
    Layer.ARCH: "Architecture",
    Layer.DD: "Design",
    Layer.TC: "Test Case",
}
_RADII = {Layer.REQ: 6.0, Layer.ARCH: 8.0, Layer.DD: 5.0, Layer.TC: 4.0}
_COLORS = {
    Layer.REQ: "#3b82f6",
    Layer.ARCH: "#8b5cf6",
    Layer.DD: "#10b981",
    Layer.TC: "#f59e0b",
}

DEFAULT_COUNTS: dict[Layer, int] = {
    Layer.REQ: 100,
    Layer.ARCH: 45,
    Layer.DD: 80,
    Layer.TC: 200,
}

REQ_LINK_PROBABILITY = 0.9
TC_TO_DESIGN_PROBABILITY = 0.7
UNVERIFIED_PLACEHOLDER_MAX = 20


@dataclass(frozen=True)
class LayerNode:
    """A node of the dashboard graph.

    Attributes:
        id: ``<LAYER>-<n>`` (1-based).
        layer: The layer this node belongs to.
        name: Display name (``Requirement 3``).
        r: Base drawing radius.
    """

    id: str
    layer: Layer
    name: str
    r: float


@dataclass
class GraphData:
    """A generated dataset. Metrics are computed once and cached."""

    nodes: list[LayerNode] = field(default_factory=list)
    links: list[TraceLink] = field(default_factory=list)
    counts: dict[Layer, int] = field(default_factory=dict)
    unverified_placeholder: int = 0

    def nodes_in(self, layer: Layer) -> list[LayerNode]:
        return [n for n in self.nodes if n.layer == layer]

    def find_by_id(self, node_id: str) -> LayerNode | None:
        return self._by_id.get(node_id)

    @cached_property
    def _by_id(self) -> dict[str, LayerNode]:
        return {n.id: n for n in self.nodes}

    @cached_property
    def metrics(self) -> GraphMetrics:
        """Graph metrics, computed on first access only."""
        from autotrace.graph.metrics import compute_metrics

        return compute_metrics(self)


class GraphGenerator(Protocol):
    """Anything that can produce a dashboard dataset."""

    def generate(self) -> GraphData: ...


def _parse_counts(counts: Mapping[Layer | str, int] | None) -> dict[Layer, int]:
    result = dict(DEFAULT_COUNTS)
    if counts:
        for key, value in counts.items():
            layer = key if isinstance(key, Layer) else Layer(str(key).upper())
            result[layer] = int(value)
    return result


class RandomGraphGenerator:
    """Seedable implementation of the layered random generator.

    Args:
        seed: Seed for the private RNG; None for non-deterministic output.
        counts: Nodes per layer (defaults to 100/45/80/200).
    """

    def __init__(
        self,
        seed: int | str | None = None,
        counts: Mapping[Layer | str, int] | None = None,
    ) -> None:
        self.seed = int(seed) if seed not in (None, "") else None
        self.counts = _parse_counts(counts)

    def generate(self) -> GraphData:
        rng = random.Random(self.seed)
        counts = self.counts
        nodes: list[LayerNode] = []
        links: list[TraceLink] = []

        for layer in Layer:
            for i in range(1, counts[layer] + 1):
                nodes.append(
                    LayerNode(
                        id=f"{layer.value}-{i}",
                        layer=layer,
                        name=f"{layer.display_name} {i}",
                        r=layer.radius,
                    )
                )

        def pick(layer: Layer) -> str:
            return f"{layer.value}-{int(rng.random() * counts[layer]) + 1}"

        # REQ -> ARCH: many requirements to one architecture element
        for i in range(1, counts[Layer.REQ] + 1):
            if rng.random() > 1 - REQ_LINK_PROBABILITY and counts[Layer.ARCH]:
                links.append(TraceLink(f"REQ-{i}", pick(Layer.ARCH)))

        # ARCH -> DD: one architecture element to many designs
        for i in range(1, counts[Layer.DD] + 1):
            if counts[Layer.ARCH]:
                links.append(TraceLink(pick(Layer.ARCH), f"DD-{i}"))

        # DD -> TC, or REQ -> TC directly
        for i in range(1, counts[Layer.TC] + 1):
            if rng.random() > 1 - TC_TO_DESIGN_PROBABILITY and counts[Layer.DD]:
                links.append(TraceLink(pick(Layer.DD), f"TC-{i}"))
            elif counts[Layer.REQ]:
                links.append(TraceLink(pick(Layer.REQ), f"TC-{i}"))

        return GraphData(
            nodes=nodes,
            links=links,
            counts=dict(counts),
            unverified_placeholder=int(rng.random() * UNVERIFIED_PLACEHOLDER_MAX),
        )


def generate_graph(
    seed: int | str | None = None,
    counts: Mapping[Layer | str, int] | None = None,
) -> GraphData:
    """Generate a dataset with ``RandomGraphGenerator``."""
    return RandomGraphGenerator(seed=seed, counts=counts).generate()
