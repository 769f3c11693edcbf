"""autotrace.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper - all logic delegates to pure functions in
``autotrace.server.operations``. Routes translate the ``reason`` of a
failed result into an HTTP status code.

State pattern:
    _state = {"workspace": workspace, "version": __version__,
              "start_time": time.time()}
"""

from __future__ import annotations

import sys
import time
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from autotrace import __version__
from autotrace.server.operations import (
    CONFLICT,
    NOT_FOUND,
    _add_source,
    _confirm_review,
    _confirm_structure,
    _connect_jira,
    _create_item,
    _create_project,
    _create_record,
    _create_schema_edge,
    _delete_project,
    _delete_record,
    _delete_source,
    _drag,
    _edit_project,
    _edit_review,
    _get_citation,
    _get_dashboard,
    _get_git_file,
    _get_git_tree,
    _get_graph,
    _get_layout,
    _get_messages,
    _get_project,
    _get_review,
    _get_schema_links,
    _get_status,
    _get_structure,
    _hover,
    _leave_matrix,
    _list_documents,
    _list_projects,
    _list_records,
    _list_relations,
    _list_sources,
    _open_matrix,
    _parse_document,
    _save_matrix,
    _select_block,
    _send_message,
    _set_mode,
    _toggle_document,
    _toggle_link,
    _toggle_source,
    _undo_toggle,
    _zoom,
)
from autotrace.workspace import Workspace

_STATUS_CODES = {NOT_FOUND: 404, CONFLICT: 409}


def _respond(result: dict[str, Any]):
    if result.get("success", True):
        return jsonify(result), 200
    return jsonify(result), _STATUS_CODES.get(result.get("reason"), 400)


_CONFIRM_WORDS = ("1", "true", "yes")


def _is_confirm(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, (str, int)) and str(value).strip().lower() in _CONFIRM_WORDS


def _confirmed(data: dict[str, Any]) -> bool:
    """Read the ``confirm`` flag from the JSON body or the query string.

    Only ``true`` or the strings "1", "true" and "yes" confirm; anything
    else, including the string "false", does not.
    """
    if "confirm" in data:
        return _is_confirm(data["confirm"])
    return _is_confirm(request.args.get("confirm", ""))


def _body() -> dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def create_app(workspace: Workspace) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        workspace: Seeded workspace holding every store the routes act on.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    CORS(app)

    # Disable browser caching so every poll sees the live stores
    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    _state: dict[str, Any] = {
        "workspace": workspace,
        "version": __version__,
        "start_time": time.time(),
    }
    verbose = bool(workspace.config.get("verbose", False))

    def ws() -> Workspace:
        return _state["workspace"]

    # ─────────────────────────────────────────────────────────────────
    # Template route
    # ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        """Serve the overview page."""
        from autotrace.html.generator import OverviewGenerator

        w = ws()
        gen = OverviewGenerator(
            projects=w.projects.list(),
            records=w.records,
            data=w.graph,
            layout=w.layout.snapshot(),
            version=_state["version"],
        )
        return gen.render(static=False)

    # ─────────────────────────────────────────────────────────────────
    # Status and projects
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Workspace counts and dirty flag."""
        result = _get_status(ws(), _state["version"])
        result["uptime"] = round(time.time() - _state["start_time"], 1)
        return jsonify(result)

    @app.route("/api/projects", methods=["GET", "POST"])
    def api_projects():
        if request.method == "POST":
            result = _create_project(ws(), _body())
            if result.get("success") and verbose:
                print(f"[server] Created project {result['project']['id']}", file=sys.stderr)
            return _respond(result)
        return jsonify(_list_projects(ws()))

    @app.route("/api/projects/<project_id>", methods=["GET", "PUT", "DELETE"])
    def api_project(project_id: str):
        if request.method == "PUT":
            return _respond(_edit_project(ws(), project_id, _body()))
        if request.method == "DELETE":
            return _respond(_delete_project(ws(), project_id, _confirmed(_body())))
        return _respond(_get_project(ws(), project_id))

    @app.route("/api/projects/<project_id>/dashboard")
    def api_dashboard(project_id: str):
        """GET /api/projects/<pid>/dashboard - Stat cards, charts and graph metrics."""
        return _respond(_get_dashboard(ws(), project_id))

    # ─────────────────────────────────────────────────────────────────
    # Data sources
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/projects/<project_id>/sources", methods=["GET", "POST"])
    def api_sources(project_id: str):
        if request.method == "POST":
            return _respond(_add_source(ws(), project_id, _body()))
        return _respond(_list_sources(ws(), project_id))

    @app.route("/api/projects/<project_id>/sources/<source_id>", methods=["DELETE"])
    def api_source_delete(project_id: str, source_id: str):
        return _respond(_delete_source(ws(), project_id, source_id, _confirmed(_body())))

    @app.route("/api/projects/<project_id>/sources/<source_id>/toggle", methods=["POST"])
    def api_source_toggle(project_id: str, source_id: str):
        return _respond(_toggle_source(ws(), project_id, source_id))

    @app.route(
        "/api/projects/<project_id>/sources/<source_id>/documents/<doc_id>/toggle",
        methods=["POST"],
    )
    def api_document_toggle(project_id: str, source_id: str, doc_id: str):
        return _respond(_toggle_document(ws(), project_id, source_id, doc_id))

    @app.route("/api/projects/<project_id>/sources/<source_id>/tree")
    def api_source_tree(project_id: str, source_id: str):
        """GET .../tree - Explorer tree of a synced Git source."""
        return _respond(_get_git_tree(ws(), project_id, source_id))

    @app.route("/api/projects/<project_id>/sources/<source_id>/file")
    def api_source_file(project_id: str, source_id: str):
        """GET .../file?path=src/main.cpp - Highlighted file content."""
        path = request.args.get("path", "")
        return _respond(_get_git_file(ws(), project_id, source_id, path))

    @app.route("/api/jira/connect", methods=["POST"])
    def api_jira_connect():
        """POST /api/jira/connect - Mock credential check returning Jira projects."""
        return _respond(_connect_jira(ws(), _body()))

    # ─────────────────────────────────────────────────────────────────
    # Documents
    # ─────────────────────────────────────────────────────────────────

    doc_base = "/api/projects/<project_id>/sources/<source_id>/documents/<doc_id>"

    @app.route("/api/projects/<project_id>/documents")
    def api_documents(project_id: str):
        return _respond(_list_documents(ws(), project_id))

    @app.route(f"{doc_base}/parse", methods=["POST"])
    def api_document_parse(project_id: str, source_id: str, doc_id: str):
        return _respond(_parse_document(ws(), project_id, source_id, doc_id))

    @app.route(f"{doc_base}/review", methods=["GET", "POST"])
    def api_document_review(project_id: str, source_id: str, doc_id: str):
        if request.method == "POST":
            return _respond(_edit_review(ws(), project_id, source_id, doc_id, _body()))
        return _respond(_get_review(ws(), project_id, source_id, doc_id))

    @app.route(f"{doc_base}/review/confirm", methods=["POST"])
    def api_document_review_confirm(project_id: str, source_id: str, doc_id: str):
        return _respond(_confirm_review(ws(), project_id, source_id, doc_id))

    @app.route(f"{doc_base}/structure")
    def api_document_structure(project_id: str, source_id: str, doc_id: str):
        """GET .../structure?type=REQ - Structured items, optionally filtered."""
        item_type = request.args.get("type") or None
        return _respond(_get_structure(ws(), project_id, source_id, doc_id, item_type))

    @app.route(f"{doc_base}/structure/select", methods=["POST"])
    def api_document_structure_select(project_id: str, source_id: str, doc_id: str):
        block_id = str(_body().get("block_id", ""))
        return _respond(_select_block(ws(), project_id, source_id, doc_id, block_id))

    @app.route(f"{doc_base}/structure/items", methods=["POST"])
    def api_document_structure_create(project_id: str, source_id: str, doc_id: str):
        return _respond(_create_item(ws(), project_id, source_id, doc_id, _body()))

    @app.route(f"{doc_base}/structure/confirm", methods=["POST"])
    def api_document_structure_confirm(project_id: str, source_id: str, doc_id: str):
        return _respond(_confirm_structure(ws(), project_id, source_id, doc_id))

    # ─────────────────────────────────────────────────────────────────
    # Trace matrix
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/trace/relations")
    def api_trace_relations():
        return jsonify(_list_relations())

    @app.route("/api/trace/records", methods=["GET", "POST"])
    def api_trace_records():
        if request.method == "POST":
            return _respond(_create_record(ws(), _body()))
        return jsonify(_list_records(ws()))

    @app.route("/api/trace/records/<record_id>", methods=["DELETE"])
    def api_trace_record_delete(record_id: str):
        return _respond(_delete_record(ws(), record_id, _confirmed(_body())))

    @app.route("/api/trace/records/<record_id>/matrix")
    def api_trace_matrix(record_id: str):
        """GET /api/trace/records/<rid>/matrix?confirm= - Open the record's matrix."""
        return _respond(_open_matrix(ws(), record_id, _confirmed({})))

    @app.route("/api/trace/toggle", methods=["POST"])
    def api_trace_toggle():
        data = _body()
        source_id = data.get("source", "")
        target_id = data.get("target", "")
        if not source_id or not target_id:
            return jsonify({"success": False, "error": "source and target required"}), 400
        return _respond(_toggle_link(ws(), source_id, target_id))

    @app.route("/api/trace/save", methods=["POST"])
    def api_trace_save():
        return _respond(_save_matrix(ws()))

    @app.route("/api/trace/undo", methods=["POST"])
    def api_trace_undo():
        return _respond(_undo_toggle(ws()))

    @app.route("/api/trace/leave", methods=["POST"])
    def api_trace_leave():
        return _respond(_leave_matrix(ws(), _confirmed(_body())))

    @app.route("/api/trace/schema-links")
    def api_trace_schema_links():
        """GET /api/trace/schema-links - Schema-link listing (remote or offline)."""
        return _respond(_get_schema_links(ws()))

    @app.route("/api/trace/schema-links/edges", methods=["POST"])
    def api_trace_schema_edge():
        return _respond(_create_schema_edge(ws(), str(_body().get("project_id", ""))))

    # ─────────────────────────────────────────────────────────────────
    # Dashboard graph
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/graph")
    def api_graph():
        """GET /api/graph?mode=tree - Dataset and the force preset of a mode."""
        return _respond(_get_graph(ws(), request.args.get("mode") or None))

    @app.route("/api/graph/layout")
    def api_graph_layout():
        return jsonify(_get_layout(ws()))

    @app.route("/api/graph/mode", methods=["POST"])
    def api_graph_mode():
        return _respond(_set_mode(ws(), str(_body().get("mode", ""))))

    @app.route("/api/graph/drag", methods=["POST"])
    def api_graph_drag():
        return _respond(_drag(ws(), _body()))

    @app.route("/api/graph/hover", methods=["POST"])
    def api_graph_hover():
        return _respond(_hover(ws(), _body().get("id")))

    @app.route("/api/graph/zoom", methods=["POST"])
    def api_graph_zoom():
        return _respond(_zoom(ws(), _body()))

    # ─────────────────────────────────────────────────────────────────
    # Assistant
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/assistant/messages")
    def api_assistant_messages():
        return jsonify(_get_messages(ws()))

    @app.route("/api/assistant/send", methods=["POST"])
    def api_assistant_send():
        """POST /api/assistant/send - Append a prompt and return the reply."""
        return _respond(_send_message(ws(), str(_body().get("prompt", ""))))

    @app.route("/api/assistant/citations/<artifact_id>")
    def api_assistant_citation(artifact_id: str):
        return _respond(_get_citation(ws(), artifact_id))

    return app
