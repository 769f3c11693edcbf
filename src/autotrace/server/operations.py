"""Pure operations behind the REST API.

Each function takes the ``Workspace`` plus plain arguments and returns a
JSON-compatible dict. Domain errors become
``{"success": False, "error": msg, "reason": ...}`` where ``reason`` is
one of ``not_found``, ``invalid`` or ``conflict``; the Flask layer maps
the reason to a status code.
"""

from __future__ import annotations

import functools
from dataclasses import asdict
from typing import Any, Callable

from autotrace.assistant import lookup_citation
from autotrace.graph.metrics import chart_series, dashboard_stats
from autotrace.graph.relations import AVAILABLE_RELATIONS
from autotrace.graph.schema_links import SchemaLinkError, mock_schema_links
from autotrace.graph.serialize import (
    serialize_graph_data,
    serialize_matrix,
    serialize_metrics,
    serialize_record,
    serialize_relation,
)
from autotrace.graph.store import UnsavedChangesError
from autotrace.html.highlighting import highlight_source
from autotrace.layout import LayoutMode
from autotrace.layout.session import MODE_PRESETS
from autotrace.projects import (
    ConfirmationRequired,
    InvalidTransitionError,
    SourceForm,
    SourceNotReadyError,
)
from autotrace.workspace import Workspace

NOT_FOUND = "not_found"
INVALID = "invalid"
CONFLICT = "conflict"

_CONFLICTS = (
    InvalidTransitionError,
    UnsavedChangesError,
    ConfirmationRequired,
    SourceNotReadyError,
)


def _failure(error: Exception) -> dict[str, Any]:
    if isinstance(error, _CONFLICTS):
        reason = CONFLICT
    elif isinstance(error, KeyError):
        reason = NOT_FOUND
    else:
        reason = INVALID
    # KeyError wraps its message in quotes when str()'d
    message = error.args[0] if isinstance(error, KeyError) and error.args else str(error)
    return {"success": False, "error": str(message), "reason": reason}


def _guarded(fn: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (KeyError, ValueError, *_CONFLICTS) as e:
            return _failure(e)

    return wrapper


# ─────────────────────────────────────────────────────────────────────────────
# Status
# ─────────────────────────────────────────────────────────────────────────────


def _get_status(ws: Workspace, version: str) -> dict[str, Any]:
    return {
        "version": version,
        "project_count": len(ws.projects),
        "node_count": ws.trace.node_count(),
        "link_count": ws.trace.link_count(),
        "record_count": len(ws.records),
        "dirty": ws.trace.unsaved,
        "assistant_ready": ws.chat.has_credentials,
        "layout": {"mode": ws.layout.mode.value, "running": ws.layout.running},
    }


# ─────────────────────────────────────────────────────────────────────────────
# Projects
# ─────────────────────────────────────────────────────────────────────────────


def _list_projects(ws: Workspace) -> dict[str, Any]:
    return {"success": True, "projects": [p.to_dict() for p in ws.projects.list()]}


@_guarded
def _get_project(ws: Workspace, project_id: str) -> dict[str, Any]:
    return {"success": True, "project": ws.projects.get(project_id).to_dict()}


@_guarded
def _create_project(ws: Workspace, data: dict[str, Any]) -> dict[str, Any]:
    project = ws.projects.create(
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        type=data.get("type", "General"),
        members=data.get("members") or (),
    )
    return {"success": True, "project": project.to_dict()}


@_guarded
def _edit_project(ws: Workspace, project_id: str, data: dict[str, Any]) -> dict[str, Any]:
    changes = {k: data[k] for k in ("name", "description", "type", "members") if k in data}
    project = ws.projects.edit(project_id, **changes)
    return {"success": True, "project": project.to_dict()}


@_guarded
def _delete_project(ws: Workspace, project_id: str, confirm: bool) -> dict[str, Any]:
    project = ws.projects.delete(project_id, confirm=confirm)
    return {"success": True, "message": f"Deleted project {project.name}"}


@_guarded
def _get_dashboard(ws: Workspace, project_id: str) -> dict[str, Any]:
    stats = dashboard_stats(ws.projects.get(project_id))
    return {
        "success": True,
        "cards": stats.cards(),
        "data_sources": stats.data_sources,
        "documents": stats.documents,
        "charts": chart_series(),
        "graph_metrics": serialize_metrics(ws.graph.metrics),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Data sources
# ─────────────────────────────────────────────────────────────────────────────


@_guarded
def _list_sources(ws: Workspace, project_id: str) -> dict[str, Any]:
    return {"success": True, "sources": [s.to_dict() for s in ws.sources.list_sources(project_id)]}


@_guarded
def _add_source(ws: Workspace, project_id: str, data: dict[str, Any]) -> dict[str, Any]:
    source = ws.sources.add_source(project_id, SourceForm.from_dict(data))
    return {"success": True, "source": source.to_dict()}


@_guarded
def _delete_source(ws: Workspace, project_id: str, source_id: str, confirm: bool) -> dict[str, Any]:
    source = ws.sources.delete_source(project_id, source_id, confirm=confirm)
    return {"success": True, "message": f"Deleted data source {source.name}"}


@_guarded
def _toggle_source(ws: Workspace, project_id: str, source_id: str) -> dict[str, Any]:
    return {"success": True, "source": ws.sources.toggle_source(project_id, source_id).to_dict()}


@_guarded
def _toggle_document(
    ws: Workspace, project_id: str, source_id: str, doc_id: str
) -> dict[str, Any]:
    doc = ws.sources.toggle_document(project_id, source_id, doc_id)
    return {"success": True, "document": doc.to_dict()}


@_guarded
def _get_git_tree(ws: Workspace, project_id: str, source_id: str) -> dict[str, Any]:
    return {"success": True, "tree": ws.sources.git_tree(project_id, source_id)}


@_guarded
def _get_git_file(ws: Workspace, project_id: str, source_id: str, path: str) -> dict[str, Any]:
    if not path:
        raise ValueError("path required")
    content = ws.sources.read_file(project_id, source_id, path)
    source = highlight_source(path, content)
    return {
        "success": True,
        "path": path,
        "lines": content.split("\n"),
        "highlighted_lines": list(source.lines),
        "language": source.language,
        "line_count": source.line_count,
        "truncated": source.truncated,
    }


@_guarded
def _connect_jira(ws: Workspace, data: dict[str, Any]) -> dict[str, Any]:
    projects = ws.sources.connect_jira(
        str(data.get("url", "")), str(data.get("email", "")), str(data.get("token", ""))
    )
    return {"success": True, "projects": [p.to_dict() for p in projects]}


# ─────────────────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────────────────


@_guarded
def _list_documents(ws: Workspace, project_id: str) -> dict[str, Any]:
    return {
        "success": True,
        "groups": ws.documents.grouped(project_id),
        "browser": ws.documents.browser(project_id),
        "structure_candidates": ws.documents.structure_candidates(project_id),
    }


@_guarded
def _parse_document(ws: Workspace, project_id: str, source_id: str, doc_id: str) -> dict[str, Any]:
    doc = ws.documents.parse(project_id, source_id, doc_id)
    return {"success": True, "document": doc.to_dict()}


@_guarded
def _get_review(ws: Workspace, project_id: str, source_id: str, doc_id: str) -> dict[str, Any]:
    session = ws.documents.open_review(project_id, source_id, doc_id)
    return {"success": True, **session.to_dict()}


@_guarded
def _edit_review(
    ws: Workspace, project_id: str, source_id: str, doc_id: str, data: dict[str, Any]
) -> dict[str, Any]:
    block_id = str(data.get("block_id", ""))
    if not block_id or "description" not in data:
        raise ValueError("block_id and description required")
    session = ws.documents.open_review(project_id, source_id, doc_id)
    block = session.update_description(block_id, str(data["description"]))
    return {"success": True, "block": block.to_dict()}


@_guarded
def _confirm_review(ws: Workspace, project_id: str, source_id: str, doc_id: str) -> dict[str, Any]:
    doc = ws.documents.confirm_review(project_id, source_id, doc_id)
    return {"success": True, "document": doc.to_dict()}


@_guarded
def _get_structure(
    ws: Workspace, project_id: str, source_id: str, doc_id: str, item_type: str | None = None
) -> dict[str, Any]:
    session = ws.documents.open_structure(project_id, source_id, doc_id)
    return {"success": True, **session.to_dict(item_type)}


@_guarded
def _select_block(
    ws: Workspace, project_id: str, source_id: str, doc_id: str, block_id: str
) -> dict[str, Any]:
    session = ws.documents.open_structure(project_id, source_id, doc_id)
    selected = session.toggle_block(block_id)
    return {"success": True, "block_id": block_id, "selected": selected,
            "selection": list(session.selected)}


@_guarded
def _create_item(
    ws: Workspace, project_id: str, source_id: str, doc_id: str, data: dict[str, Any]
) -> dict[str, Any]:
    session = ws.documents.open_structure(project_id, source_id, doc_id)
    item = session.create_item(str(data.get("type", "")), data.get("id") or None)
    return {"success": True, "item": item.to_dict()}


@_guarded
def _confirm_structure(
    ws: Workspace, project_id: str, source_id: str, doc_id: str
) -> dict[str, Any]:
    doc = ws.documents.confirm_structure(project_id, source_id, doc_id)
    return {"success": True, "document": doc.to_dict()}


# ─────────────────────────────────────────────────────────────────────────────
# Trace matrix
# ─────────────────────────────────────────────────────────────────────────────


def _list_relations() -> dict[str, Any]:
    return {"success": True, "relations": [serialize_relation(r) for r in AVAILABLE_RELATIONS]}


def _list_records(ws: Workspace) -> dict[str, Any]:
    return {"success": True, "records": [serialize_record(r) for r in ws.records]}


@_guarded
def _create_record(ws: Workspace, data: dict[str, Any]) -> dict[str, Any]:
    record = ws.records.create(
        name=str(data.get("name", "")),
        relation_id=str(data.get("relation_id", "")),
        description=str(data.get("description", "")),
    )
    return {"success": True, "record": serialize_record(record)}


@_guarded
def _delete_record(ws: Workspace, record_id: str, confirm: bool) -> dict[str, Any]:
    ws.records.get(record_id)
    if not confirm:
        raise ConfirmationRequired("Are you sure you want to delete this scope?")
    record = ws.editor.delete_record(record_id)
    return {"success": True, "message": f"Deleted record {record.name}"}


@_guarded
def _open_matrix(ws: Workspace, record_id: str, confirm: bool = False) -> dict[str, Any]:
    view = ws.editor.open(record_id, confirm=confirm)
    return {"success": True, "matrix": serialize_matrix(view), "unsaved": ws.editor.unsaved}


@_guarded
def _toggle_link(ws: Workspace, source_id: str, target_id: str) -> dict[str, Any]:
    for node_id in (source_id, target_id):
        if ws.trace.find_by_id(node_id) is None:
            raise KeyError(f"Node '{node_id}' not found")
    linked = ws.editor.toggle(source_id, target_id)
    return {
        "success": True,
        "linked": linked,
        "unsaved": ws.editor.unsaved,
        "link_count": ws.trace.link_count(),
    }


def _save_matrix(ws: Workspace) -> dict[str, Any]:
    message = ws.editor.save()
    record = ws.editor.active_record
    return {
        "success": True,
        "message": message,
        "record": serialize_record(record) if record else None,
    }


def _undo_toggle(ws: Workspace) -> dict[str, Any]:
    entry = ws.trace.undo_last()
    if entry is None:
        return {"success": False, "error": "Nothing to undo", "reason": INVALID}
    return {
        "success": True,
        "undone": {
            "operation": entry.operation,
            "source": entry.source_id,
            "target": entry.target_id,
        },
        "unsaved": ws.trace.unsaved,
    }


@_guarded
def _leave_matrix(ws: Workspace, confirm: bool) -> dict[str, Any]:
    ws.editor.leave(confirm=confirm)
    return {"success": True}


@_guarded
def _get_schema_links(ws: Workspace) -> dict[str, Any]:
    if ws.schema_client is None:
        return mock_schema_links().to_dict()
    try:
        return ws.schema_client.list_links().to_dict()
    except SchemaLinkError as e:
        return {"success": False, "error": str(e), "reason": CONFLICT}


@_guarded
def _create_schema_edge(ws: Workspace, project_id: str) -> dict[str, Any]:
    if not project_id:
        raise ValueError("project_id required")
    if ws.schema_client is None:
        return {"success": True, "message": "No traceability backend configured; edge not sent"}
    try:
        ws.schema_client.create_edge(project_id)
    except SchemaLinkError as e:
        return {"success": False, "error": str(e), "reason": CONFLICT}
    return {"success": True, "message": f"Edge creation requested for project {project_id}"}


# ─────────────────────────────────────────────────────────────────────────────
# Dashboard graph
# ─────────────────────────────────────────────────────────────────────────────


@_guarded
def _get_graph(ws: Workspace, mode: str | None = None) -> dict[str, Any]:
    """Dataset plus the force preset of ``mode`` (default: the running mode).

    Read-only; switching the running layout goes through ``_set_mode``.
    """
    current = ws.layout.mode
    preset_mode = LayoutMode.parse(mode) if mode else current
    return {
        "success": True,
        "mode": current.value,
        "preset_mode": preset_mode.value,
        "preset": asdict(MODE_PRESETS[preset_mode]),
        **serialize_graph_data(ws.graph),
    }


def _get_layout(ws: Workspace) -> dict[str, Any]:
    return {"success": True, **ws.layout.snapshot()}


@_guarded
def _set_mode(ws: Workspace, mode: str) -> dict[str, Any]:
    target = LayoutMode.parse(mode)
    if target is not ws.layout.mode:
        ws.switch_layout(target)
    return {"success": True, "mode": ws.layout.mode.value}


def _number(data: dict[str, Any], key: str, default: float | None = None) -> float:
    value = data.get(key, default)
    if value is None or isinstance(value, bool):
        raise ValueError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None


@_guarded
def _drag(ws: Workspace, data: dict[str, Any]) -> dict[str, Any]:
    phase = data.get("phase", "")
    node_id = str(data.get("id", ""))
    if not node_id:
        raise ValueError("id required")
    layout = ws.layout
    if phase == "start":
        layout.drag_start(node_id)
    elif phase == "move":
        layout.drag(node_id, _number(data, "x"), _number(data, "y"))
    elif phase == "end":
        layout.drag_end(node_id)
    else:
        raise ValueError(f"Unknown drag phase: {phase}")
    return {"success": True, "dragging": sorted(layout.dragging)}


@_guarded
def _hover(ws: Workspace, node_id: str | None) -> dict[str, Any]:
    return {"success": True, "tooltip": ws.layout.hover(node_id or None)}


@_guarded
def _zoom(ws: Workspace, data: dict[str, Any]) -> dict[str, Any]:
    layout = ws.layout
    if "k" in data:
        layout.zoom(_number(data, "k"), _number(data, "x", 0.0), _number(data, "y", 0.0))
    if "dx" in data or "dy" in data:
        layout.pan(_number(data, "dx", 0.0), _number(data, "dy", 0.0))
    return {"success": True, "transform": layout.transform.to_dict()}


# ─────────────────────────────────────────────────────────────────────────────
# Assistant
# ─────────────────────────────────────────────────────────────────────────────


def _get_messages(ws: Workspace) -> dict[str, Any]:
    return {
        "success": True,
        "has_credentials": ws.chat.has_credentials,
        "messages": ws.chat.transcript(),
    }


@_guarded
def _send_message(ws: Workspace, prompt: str) -> dict[str, Any]:
    reply = ws.chat.send(prompt)
    if reply is None:
        raise ValueError("prompt required")
    return {"success": True, "reply": reply.to_dict()}


@_guarded
def _get_citation(ws: Workspace, artifact_id: str) -> dict[str, Any]:
    return {"success": True, "item": lookup_citation(artifact_id).to_dict()}
