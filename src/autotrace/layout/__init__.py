"""Force-directed layout for the dashboard graph.

Exports:
- Simulation: alpha-cooled force simulation
- LayoutSession: background tick loop with drag/hover/zoom interaction
- LayoutMode: network or tree
"""

from autotrace.layout.forces import SimNode
from autotrace.layout.session import LayoutMode, LayoutSession, build_simulation
from autotrace.layout.simulation import Simulation

__all__ = [
    "LayoutMode",
    "LayoutSession",
    "SimNode",
    "Simulation",
    "build_simulation",
]
