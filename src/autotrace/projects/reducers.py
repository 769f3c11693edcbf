"""Pure reducers over the project collection.

Every function takes the current snapshot (a tuple of projects) and
returns a new snapshot. Nothing is mutated in place. ``ProjectStore``
applies them under its lock, so delayed callbacks always see the latest
state.

Unknown ids raise ``KeyError``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable

from autotrace.projects.models import (
    DataSource,
    DocumentArtifact,
    ParsingStatus,
    Project,
    ProjectType,
    SyncStatus,
)

Snapshot = tuple[Project, ...]

JUST_NOW = "Just now"


def _map_project(
    projects: Snapshot, project_id: str, fn: Callable[[Project], Project]
) -> Snapshot:
    found = False
    result = []
    for project in projects:
        if project.id == project_id:
            found = True
            project = fn(project)
        result.append(project)
    if not found:
        raise KeyError(f"Project '{project_id}' not found")
    return tuple(result)


def _map_source(
    projects: Snapshot,
    project_id: str,
    source_id: str,
    fn: Callable[[DataSource], DataSource],
) -> Snapshot:
    def update(project: Project) -> Project:
        project.find_source(source_id)
        return replace(
            project,
            data_sources=tuple(
                fn(s) if s.id == source_id else s for s in project.data_sources
            ),
        )

    return _map_project(projects, project_id, update)


def _map_document(
    projects: Snapshot,
    project_id: str,
    source_id: str,
    doc_id: str,
    fn: Callable[[DocumentArtifact], DocumentArtifact],
) -> Snapshot:
    def update(source: DataSource) -> DataSource:
        source.find_document(doc_id)
        return replace(
            source,
            documents=tuple(fn(d) if d.id == doc_id else d for d in source.documents),
        )

    return _map_source(projects, project_id, source_id, update)


# ─────────────────────────────────────────────────────────────────────────────
# Projects
# ─────────────────────────────────────────────────────────────────────────────


def add_project(projects: Snapshot, project: Project) -> Snapshot:
    """Insert a project at the front of the listing.

    Raises:
        ValueError: If the id is already taken.
    """
    if any(p.id == project.id for p in projects):
        raise ValueError(f"Duplicate project id '{project.id}'")
    return (project,) + tuple(projects)


def edit_project(
    projects: Snapshot,
    project_id: str,
    *,
    name: str | None = None,
    description: str | None = None,
    type: ProjectType | str | None = None,
    members: Iterable[str] | None = None,
) -> Snapshot:
    """Update the editable fields of a project. ``None`` leaves a field as is."""
    changes: dict = {}
    if name is not None:
        if not name.strip():
            raise ValueError("Project name is required")
        changes["name"] = name.strip()
    if description is not None:
        changes["description"] = description
    if type is not None:
        changes["type"] = ProjectType.parse(type)
    if members is not None:
        changes["members"] = tuple(members)
    return _map_project(projects, project_id, lambda p: replace(p, **changes))


def delete_project(projects: Snapshot, project_id: str) -> Snapshot:
    if not any(p.id == project_id for p in projects):
        raise KeyError(f"Project '{project_id}' not found")
    return tuple(p for p in projects if p.id != project_id)


# ─────────────────────────────────────────────────────────────────────────────
# Data sources
# ─────────────────────────────────────────────────────────────────────────────


def add_source(projects: Snapshot, project_id: str, source: DataSource) -> Snapshot:
    """Append a data source to a project."""
    return _map_project(
        projects,
        project_id,
        lambda p: replace(p, data_sources=p.data_sources + (source,)),
    )


def delete_source(projects: Snapshot, project_id: str, source_id: str) -> Snapshot:
    def update(project: Project) -> Project:
        project.find_source(source_id)
        return replace(
            project,
            data_sources=tuple(s for s in project.data_sources if s.id != source_id),
        )

    return _map_project(projects, project_id, update)


def toggle_source(projects: Snapshot, project_id: str, source_id: str) -> Snapshot:
    return _map_source(
        projects, project_id, source_id, lambda s: replace(s, enabled=not s.enabled)
    )


def mark_synced(projects: Snapshot, project_id: str, source_id: str) -> Snapshot:
    """Complete a sync: status Synced, last sync "Just now"."""
    return _map_source(
        projects,
        project_id,
        source_id,
        lambda s: replace(s, status=SyncStatus.SYNCED, last_sync=JUST_NOW),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────────────────


def toggle_document(
    projects: Snapshot, project_id: str, source_id: str, doc_id: str
) -> Snapshot:
    return _map_document(
        projects, project_id, source_id, doc_id, lambda d: replace(d, enabled=not d.enabled)
    )


def advance_document(
    projects: Snapshot,
    project_id: str,
    source_id: str,
    doc_id: str,
    target: ParsingStatus,
) -> Snapshot:
    """Move a document one step forward to ``target``.

    Raises:
        InvalidTransitionError: If ``target`` is not the next state.
    """

    def update(doc: DocumentArtifact) -> DocumentArtifact:
        doc.parsing_status.check_transition(target)
        return replace(doc, parsing_status=target)

    return _map_document(projects, project_id, source_id, doc_id, update)
