"""Graph Serialization - Export trace data to JSON-compatible dicts.

This module provides functions to serialize nodes, records, matrix views,
generated dashboard datasets and layout snapshots for the REST API, plus
markdown and CSV renderings of a matrix for the CLI.
"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from autotrace.graph.generator import GraphData, LayerNode
    from autotrace.graph.matrix import MatrixView
    from autotrace.graph.metrics import GraphMetrics
    from autotrace.graph.records import TraceRecord
    from autotrace.graph.relations import Relation, TraceLink
    from autotrace.graph.store import TraceStore
    from autotrace.graph.TraceNode import TraceNode


def serialize_node(node: TraceNode) -> dict[str, Any]:
    """Serialize a TraceNode to a JSON-compatible dict."""
    return {
        "id": node.id,
        "label": node.label,
        "type": node.type.value,
        "status": node.status.value,
    }


def serialize_link(link: TraceLink) -> dict[str, str]:
    return {"source": link.source, "target": link.target}


def serialize_relation(relation: Relation) -> dict[str, str]:
    return {
        "id": relation.id,
        "label": relation.label,
        "source_type": relation.source_type.value,
        "target_type": relation.target_type.value,
    }


def serialize_record(record: TraceRecord) -> dict[str, Any]:
    """Serialize a TraceRecord for the record listing."""
    return {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "relation_label": record.relation_label,
        "source_type": record.source_type.value,
        "target_type": record.target_type.value,
        "last_updated": record.last_updated,
        "author": record.author,
        "coverage": record.coverage,
        "status": record.status.value,
    }


def serialize_store(store: TraceStore) -> dict[str, Any]:
    """Serialize the whole trace store.

    Returns:
        Dict with ``nodes``, ``links`` and ``unsaved``.
    """
    return {
        "nodes": [serialize_node(n) for n in store.all_nodes()],
        "links": [serialize_link(link) for link in store.iter_links()],
        "unsaved": store.unsaved,
    }


def serialize_matrix(view: MatrixView) -> dict[str, Any]:
    """Serialize a MatrixView.

    Cells are emitted as a list of rows of booleans, aligned with
    ``rows`` and ``columns``.
    """
    return {
        "record": serialize_record(view.record),
        "rows": [serialize_node(n) for n in view.rows],
        "columns": [serialize_node(n) for n in view.columns],
        "cells": [list(row) for row in view.cells],
        "link_count": view.link_count,
        "coverage": view.coverage,
        "empty": view.is_empty,
        "empty_message": view.empty_message,
    }


def serialize_metrics(metrics: GraphMetrics) -> dict[str, Any]:
    return {
        "orphaned_requirements": metrics.orphaned_requirements,
        "orphaned_ratio": round(metrics.orphaned_ratio, 4),
        "unverified_requirements": metrics.unverified_requirements,
        "total_links": metrics.total_links,
        "total_nodes": metrics.total_nodes,
        "density": dict(metrics.density),
    }


def serialize_layer_node(node: LayerNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "group": node.layer.value,
        "name": node.name,
        "r": node.r,
        "color": node.layer.color,
    }


def serialize_graph_data(data: GraphData) -> dict[str, Any]:
    """Serialize a generated dashboard dataset, including its cached metrics."""
    return {
        "nodes": [serialize_layer_node(n) for n in data.nodes],
        "links": [serialize_link(link) for link in data.links],
        "counts": {layer.value: count for layer, count in data.counts.items()},
        "metrics": serialize_metrics(data.metrics),
    }


def to_markdown(view: MatrixView) -> str:
    """Render a matrix view as a markdown table.

    Linked cells are marked with ``x``. An empty view renders its
    explanatory message instead of a table.
    """
    lines = [f"# {view.record.name}", ""]
    lines.append(
        f"{view.record.source_type.value} -> {view.record.target_type.value}"
        f" ({view.link_count} links, {view.coverage}% coverage)"
    )
    lines.append("")

    if view.is_empty:
        lines.append(view.empty_message or "")
        return "\n".join(lines)

    header = ["ID"] + [c.id for c in view.columns]
    lines.append("| " + " | ".join(header) + " |")
    lines.append("|" + "|".join("---" for _ in header) + "|")
    for row_node, row in zip(view.rows, view.cells):
        marks = ["x" if cell else "" for cell in row]
        lines.append("| " + " | ".join([row_node.id] + marks) + " |")

    return "\n".join(lines)


def to_csv(view: MatrixView) -> str:
    """Render a matrix view as CSV with one ``source,target,linked`` row per cell."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["source", "target", "linked"])
    for row_node, row in zip(view.rows, view.cells):
        for col_node, cell in zip(view.columns, row):
            writer.writerow([row_node.id, col_node.id, "1" if cell else "0"])
    return output.getvalue()
