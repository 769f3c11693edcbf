"""Project Store - single writer over the project collection.

The store holds an immutable snapshot and replaces it atomically. Every
update is a reducer from ``autotrace.projects.reducers`` applied under the
store lock to the *current* snapshot, so a delayed callback (sync or parse
completion) never overwrites edits made while it was pending.
"""

from __future__ import annotations

import threading
import time
from datetime import date
from typing import Callable, Iterable

from autotrace.projects import reducers
from autotrace.projects.models import Project, ProjectStats, ProjectType
from autotrace.projects.reducers import Snapshot


class ConfirmationRequired(RuntimeError):
    """Raised when a destructive action is attempted without ``confirm``."""


class ProjectStore:
    """In-memory project collection.

    Args:
        projects: Initial projects, in display order.
    """

    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._lock = threading.RLock()
        self._projects: Snapshot = tuple(projects)
        self._version = 0

    # ─────────────────────────────────────────────────────────────────────────
    # Snapshot access
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        """Incremented on every successful dispatch."""
        return self._version

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._projects

    def list(self) -> list[Project]:
        return list(self.snapshot())

    def __len__(self) -> int:
        return len(self.snapshot())

    def get(self, project_id: str) -> Project:
        """Return a project by id.

        Raises:
            KeyError: If no such project exists.
        """
        for project in self.snapshot():
            if project.id == project_id:
                return project
        raise KeyError(f"Project '{project_id}' not found")

    def dispatch(self, reducer: Callable[..., Snapshot], *args, **kwargs) -> Snapshot:
        """Apply ``reducer(current, *args, **kwargs)`` and store the result.

        If the reducer raises, the snapshot is left unchanged.
        """
        with self._lock:
            updated = reducer(self._projects, *args, **kwargs)
            self._projects = tuple(updated)
            self._version += 1
            return self._projects

    # ─────────────────────────────────────────────────────────────────────────
    # Project CRUD
    # ─────────────────────────────────────────────────────────────────────────

    def _new_id(self) -> str:
        candidate = int(time.time() * 1000)
        taken = {p.id for p in self._projects}
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def create(
        self,
        name: str,
        description: str = "",
        type: ProjectType | str = ProjectType.GENERAL,
        members: Iterable[str] = (),
    ) -> Project:
        """Create a project with zero stats and no sources, listed first.

        Raises:
            ValueError: If ``name`` is blank or ``type`` is unknown.
        """
        if not name or not name.strip():
            raise ValueError("Project name is required")
        with self._lock:
            project = Project(
                id=self._new_id(),
                name=name.strip(),
                description=description,
                type=ProjectType.parse(type),
                members=tuple(members),
                created_at=date.today().isoformat(),
                stats=ProjectStats(),
                data_sources=(),
            )
            self.dispatch(reducers.add_project, project)
        return project

    def edit(self, project_id: str, **changes) -> Project:
        """Edit name, description, type or members."""
        self.dispatch(reducers.edit_project, project_id, **changes)
        return self.get(project_id)

    def delete(self, project_id: str, confirm: bool = False) -> Project:
        """Delete a project.

        Raises:
            KeyError: If the project does not exist.
            ConfirmationRequired: If ``confirm`` is False.
        """
        project = self.get(project_id)
        if not confirm:
            raise ConfirmationRequired("Are you sure you want to delete this project?")
        self.dispatch(reducers.delete_project, project_id)
        return project
