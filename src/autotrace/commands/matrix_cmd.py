"""
autotrace.commands.matrix_cmd - Print traceability matrices of the seed data.
"""

import argparse

from autotrace.graph.matrix import build_matrix
from autotrace.graph.records import RecordStore
from autotrace.graph.serialize import to_csv, to_markdown
from autotrace.graph.store import TraceStore
from autotrace.projects.seed import TRACE_LINKS, TRACE_NODES, seed_records


def run(args: argparse.Namespace) -> int:
    """Run the matrix command.

    Without ``--record`` every record is printed, in listing order.
    """
    store = TraceStore.from_seed(TRACE_NODES, TRACE_LINKS)
    records = RecordStore(seed_records())

    selected = [records.get(args.record)] if args.record else records.list()
    for i, record in enumerate(selected):
        view = build_matrix(store, record)
        if args.format == "csv":
            print(to_csv(view), end="")
        else:
            if i:
                print()
            print(to_markdown(view))
    return 0
