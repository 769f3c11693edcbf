"""Workspace - the process-lifetime state behind the server and CLI.

Bundles every store with its collaborators so state is injected rather
than global. ``Workspace.from_config`` wires a fresh workspace from the
merged configuration and the seed data.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from typing import Any

from autotrace.assistant import ChatSession, GeminiClient, GenerationClient
from autotrace.graph.generator import GraphData, generate_graph
from autotrace.graph.matrix import MatrixEditor
from autotrace.graph.records import RecordStore
from autotrace.graph.schema_links import SchemaLinkClient
from autotrace.graph.store import TraceStore
from autotrace.layout import LayoutMode, LayoutSession
from autotrace.projects import DocumentWorkflow, ProjectStore, SourceManager
from autotrace.projects.seed import TRACE_LINKS, TRACE_NODES, seed_projects, seed_records


def _seed_value(raw: Any) -> int | None:
    if raw in (None, ""):
        return None
    return int(raw)


@dataclass
class Workspace:
    """All mutable state of one running instance."""

    config: dict[str, Any]
    projects: ProjectStore
    sources: SourceManager
    documents: DocumentWorkflow
    trace: TraceStore
    records: RecordStore
    editor: MatrixEditor
    chat: ChatSession
    graph: GraphData
    layout: LayoutSession
    schema_client: SchemaLinkClient | None = None
    _layout_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        client: GenerationClient | None = None,
    ) -> Workspace:
        """Build a seeded workspace.

        Args:
            config: Merged configuration (see ``autotrace.config``).
            client: Generation client; defaults to ``GeminiClient`` with the
                key read from ``assistant.api_key_env``.
        """
        verbose = bool(config.get("verbose", False))
        graph_cfg = config.get("graph", {})
        layout_cfg = config.get("layout", {})
        sources_cfg = config.get("sources", {})
        documents_cfg = config.get("documents", {})
        assistant_cfg = config.get("assistant", {})
        schema_cfg = config.get("schema_links", {})

        projects = ProjectStore(seed_projects())
        trace = TraceStore.from_seed(TRACE_NODES, TRACE_LINKS)
        records = RecordStore(seed_records())

        if client is None:
            client = GeminiClient.from_env(
                assistant_cfg.get("api_key_env", "API_KEY"),
                model=assistant_cfg.get("model", "gemini-2.5-flash"),
            )
        if not client.has_credentials:
            print(
                "[assistant] API key is missing; assistant replies will report it.",
                file=sys.stderr,
            )

        seed = _seed_value(graph_cfg.get("seed"))
        graph = generate_graph(seed=seed, counts=graph_cfg.get("counts"))
        layout = LayoutSession(
            graph,
            mode=graph_cfg.get("mode", "tree"),
            width=float(graph_cfg.get("width", 960)),
            height=float(graph_cfg.get("height", 600)),
            tick_interval=float(layout_cfg.get("tick_interval", 0.0)),
            zoom_min=float(layout_cfg.get("zoom_min", 0.1)),
            zoom_max=float(layout_cfg.get("zoom_max", 4.0)),
            seed=seed,
            verbose=verbose,
        )

        base_url = schema_cfg.get("base_url") or ""
        schema_client = (
            SchemaLinkClient(base_url, timeout=float(schema_cfg.get("timeout", 5)))
            if base_url
            else None
        )

        return cls(
            config=config,
            projects=projects,
            sources=SourceManager(
                projects,
                sync_delay=float(sources_cfg.get("sync_delay", 3.0)),
                jira_connect_delay=float(sources_cfg.get("jira_connect_delay", 1.5)),
                verbose=verbose,
            ),
            documents=DocumentWorkflow(
                projects,
                parse_delay=float(documents_cfg.get("parse_delay", 2.0)),
                verbose=verbose,
            ),
            trace=trace,
            records=records,
            editor=MatrixEditor(trace, records),
            chat=ChatSession(client, history_window=int(assistant_cfg.get("history_window", 10))),
            graph=graph,
            layout=layout,
            schema_client=schema_client,
        )

    def switch_layout(self, mode: str | LayoutMode) -> LayoutSession:
        """Replace the layout session with one in ``mode`` over the same dataset.

        The dataset and its cached metrics are kept.
        """
        with self._layout_lock:
            self.layout = self.layout.switch_mode(mode)
            return self.layout

    def close(self) -> None:
        """Stop the layout loop and cancel pending mock operations."""
        self.layout.stop()
        self.sources.cancel_pending()
        self.documents.cancel_pending()
