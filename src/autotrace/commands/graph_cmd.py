"""
autotrace.commands.graph_cmd - Generate and lay out the dashboard graph.

Prints the traceability metrics of a generated dataset, the settled node
positions as JSON, or a static HTML overview.
"""

import argparse
import json
import sys
from pathlib import Path

from autotrace.config import get_config
from autotrace.graph.generator import generate_graph
from autotrace.graph.serialize import serialize_metrics
from autotrace.layout import LayoutSession


def run(args: argparse.Namespace) -> int:
    """Run the graph command."""
    config = get_config(args.config)
    graph_cfg = config.get("graph", {})

    seed = args.seed if args.seed is not None else graph_cfg.get("seed")
    mode = args.mode or graph_cfg.get("mode", "tree")
    data = generate_graph(seed=seed, counts=graph_cfg.get("counts"))

    session = LayoutSession(
        data,
        mode=mode,
        width=float(graph_cfg.get("width", 960)),
        height=float(graph_cfg.get("height", 600)),
        seed=seed,
        verbose=args.verbose,
    )
    if args.ticks is not None:
        session.tick(args.ticks)
    else:
        session.settle()
    snapshot = session.snapshot()

    if args.verbose:
        print(
            f"[layout] {snapshot['ticks']} ticks, alpha={snapshot['alpha']:.4f}",
            file=sys.stderr,
        )

    if args.html:
        return _write_html(args.html, data, snapshot)

    if args.json:
        print(json.dumps(snapshot, indent=2))
        return 0

    metrics = serialize_metrics(data.metrics)
    print(f"Nodes: {metrics['total_nodes']}  Links: {metrics['total_links']}")
    for layer, count in metrics["density"].items():
        print(f"  {layer:<20} {count}")
    print(
        f"Orphaned requirements: {metrics['orphaned_requirements']} "
        f"({metrics['orphaned_ratio']:.0%})"
    )
    return 0


def _write_html(path: Path, data, snapshot) -> int:
    from autotrace import __version__
    from autotrace.graph.records import RecordStore
    from autotrace.html import OverviewGenerator
    from autotrace.projects.seed import seed_projects, seed_records

    generator = OverviewGenerator(
        projects=list(seed_projects()),
        records=RecordStore(seed_records()),
        data=data,
        layout=snapshot,
        version=__version__,
    )
    path.write_text(generator.generate(), encoding="utf-8")
    print(f"Generated: {path}")
    return 0
