"""Data source onboarding.

Validates the add-source form, builds the new source with its mock
discovered documents, and completes the sync after a delay on a
``threading.Timer``. The completion is dispatched to the ``ProjectStore``
as a reducer, so edits made while the sync was pending are kept.
"""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass
from typing import Any

from autotrace.projects import reducers
from autotrace.projects.models import (
    MASKED_TOKEN,
    DataSource,
    DocumentArtifact,
    GitConfig,
    JiraConfig,
    LocalConfig,
    SourceType,
    SyncStatus,
)
from autotrace.projects.seed import MOCK_GIT_TREE
from autotrace.projects.store import ConfirmationRequired, ProjectStore

JIRA_CREDENTIALS_MESSAGE = "Please fill in URL, Email, and Token."
DELETE_SOURCE_MESSAGE = "Delete this data source?"


@dataclass(frozen=True)
class JiraProject:
    key: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "name": self.name}


MOCK_JIRA_PROJECTS: tuple[JiraProject, ...] = (
    JiraProject("ADAS", "ADAS Platform (ADAS)"),
    JiraProject("INF", "Infotainment System (INF)"),
    JiraProject("BATT", "Battery Control (BATT)"),
    JiraProject("PLAT", "Platform Core (PLAT)"),
)


class SourceNotReadyError(RuntimeError):
    """Raised when opening a source that has not finished syncing."""


@dataclass
class SourceForm:
    """The add-source form.

    Git sources need ``url`` and ``branch``. Jira sources need a
    successful connection (``jira_connected``) and a selected
    ``project_key``. Local sources need only a name.
    """

    name: str
    type: SourceType = SourceType.LOCAL
    url: str = ""
    branch: str = "main"
    username: str = ""
    token: str = ""
    email: str = ""
    project_key: str = ""
    jira_connected: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceForm:
        """Build a form from a request payload.

        Raises:
            ValueError: If the source type is unknown.
        """
        raw_type = data.get("type", SourceType.LOCAL.value)
        try:
            source_type = SourceType(raw_type)
        except ValueError:
            raise ValueError(f"Unknown data source type '{raw_type}'") from None
        return cls(
            name=str(data.get("name", "")),
            type=source_type,
            url=str(data.get("url", "")),
            branch=str(data.get("branch", "main")),
            username=str(data.get("username", "")),
            token=str(data.get("token", "")),
            email=str(data.get("email", "")),
            project_key=str(data.get("projectKey", data.get("project_key", ""))),
            jira_connected=bool(data.get("jiraConnected", data.get("jira_connected", False))),
        )

    def validate(self) -> None:
        """Check required fields.

        Raises:
            ValueError: Naming the first missing field.
        """
        if not self.name.strip():
            raise ValueError("Source name is required")
        if self.type is SourceType.GIT:
            if not self.url.strip():
                raise ValueError("Repository URL is required")
            if not self.branch.strip():
                raise ValueError("Branch is required")
        elif self.type is SourceType.JIRA:
            if not self.jira_connected:
                raise ValueError("Connect to Jira before adding the source")
            if not self.project_key:
                raise ValueError("Select a Jira project")


def build_source(form: SourceForm, stamp: int | None = None) -> DataSource:
    """Create a syncing data source with the documents its type discovers.

    Args:
        form: A validated form.
        stamp: Millisecond timestamp used in generated ids.
    """
    stamp = stamp if stamp is not None else int(time.time() * 1000)

    if form.type is SourceType.LOCAL:
        file_name = f"upload_{stamp}.docx"
        config: Any = LocalConfig(file_name=file_name)
        documents: tuple[DocumentArtifact, ...] = (
            DocumentArtifact(
                f"d-{stamp}", file_name, "File", size="2.1 MB", last_modified="Just now"
            ),
        )
    elif form.type is SourceType.GIT:
        config = GitConfig(
            url=form.url.strip(),
            branch=form.branch.strip(),
            username=form.username,
            token=MASKED_TOKEN if form.token else None,
        )
        documents = (
            DocumentArtifact(f"d-{stamp}-1", "README.md", "Markdown", size="2KB"),
            DocumentArtifact(f"d-{stamp}-2", "docs/design_spec.pdf", "PDF", size="1.2MB"),
        )
    else:
        config = JiraConfig(
            url=form.url.strip(),
            project_key=form.project_key,
            email=form.email,
            token=MASKED_TOKEN,
        )
        documents = (
            DocumentArtifact(
                f"d-{stamp}", f"Jira Issues ({form.project_key})", "Issue Set", size="N/A"
            ),
        )

    return DataSource(
        id=f"ds-{stamp}",
        name=form.name.strip(),
        config=config,
        status=SyncStatus.SYNCING,
        enabled=True,
        last_sync="Syncing...",
        documents=documents,
    )


def connect_jira(url: str, email: str, token: str, delay: float = 0.0) -> list[JiraProject]:
    """Mock connection check returning the visible Jira projects.

    Raises:
        ValueError: If any credential is missing.
    """
    if not url or not email or not token:
        raise ValueError(JIRA_CREDENTIALS_MESSAGE)
    if delay > 0:
        time.sleep(delay)
    return list(MOCK_JIRA_PROJECTS)


def find_tree_entry(tree: dict, path: str) -> dict:
    """Resolve a ``/``-separated path in a mock repository tree.

    Raises:
        KeyError: If the path does not exist.
    """
    node = tree
    for part in [p for p in path.strip("/").split("/") if p]:
        for child in node.get("children", ()):
            if child["name"] == part:
                node = child
                break
        else:
            raise KeyError(f"Path '{path}' not found")
    return node


class SourceManager:
    """Data source actions for projects held in a ``ProjectStore``.

    Args:
        store: The project store (single writer).
        sync_delay: Seconds before a new source becomes Synced.
        jira_connect_delay: Seconds the mock Jira connection takes.
        verbose: Print sync progress to stderr.
    """

    def __init__(
        self,
        store: ProjectStore,
        sync_delay: float = 3.0,
        jira_connect_delay: float = 1.5,
        verbose: bool = False,
    ) -> None:
        self.store = store
        self.sync_delay = sync_delay
        self.jira_connect_delay = jira_connect_delay
        self.verbose = verbose
        self._timers: list[threading.Timer] = []
        self._stamp_lock = threading.Lock()
        self._last_stamp = 0

    def _stamp(self) -> int:
        with self._stamp_lock:
            stamp = max(int(time.time() * 1000), self._last_stamp + 1)
            self._last_stamp = stamp
            return stamp

    def list_sources(self, project_id: str) -> list[DataSource]:
        return list(self.store.get(project_id).data_sources)

    def add_source(self, project_id: str, form: SourceForm) -> DataSource:
        """Validate the form, add a Syncing source and schedule its sync.

        Raises:
            KeyError: If the project does not exist.
            ValueError: If the form is incomplete.
        """
        form.validate()
        self.store.get(project_id)
        source = build_source(form, self._stamp())
        self.store.dispatch(reducers.add_source, project_id, source)
        self._schedule_sync(project_id, source.id)
        return source

    def _schedule_sync(self, project_id: str, source_id: str) -> None:
        timer = threading.Timer(self.sync_delay, self._sync_done, args=(project_id, source_id))
        timer.daemon = True
        self._timers = [t for t in self._timers if t.is_alive()]
        self._timers.append(timer)
        timer.start()

    def _sync_done(self, project_id: str, source_id: str) -> None:
        try:
            self.complete_sync(project_id, source_id)
        except KeyError as e:
            print(f"[sync] Skipped sync completion: {e}", file=sys.stderr)

    def complete_sync(self, project_id: str, source_id: str) -> DataSource:
        """Mark a source Synced ("Just now") against the current snapshot."""
        self.store.dispatch(reducers.mark_synced, project_id, source_id)
        if self.verbose:
            print(f"[sync] {project_id}/{source_id} synced", file=sys.stderr)
        return self.store.get(project_id).find_source(source_id)

    def wait_pending(self, timeout: float | None = None) -> None:
        """Block until every scheduled sync has run."""
        for timer in list(self._timers):
            timer.join(timeout)
        self._timers = [t for t in self._timers if t.is_alive()]

    def cancel_pending(self) -> None:
        """Cancel scheduled syncs that have not fired (shutdown only)."""
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    def connect_jira(self, url: str, email: str, token: str) -> list[JiraProject]:
        return connect_jira(url, email, token, delay=self.jira_connect_delay)

    def delete_source(self, project_id: str, source_id: str, confirm: bool = False) -> DataSource:
        """Remove a data source.

        Raises:
            KeyError: If the project or source does not exist.
            ConfirmationRequired: If ``confirm`` is False.
        """
        source = self.store.get(project_id).find_source(source_id)
        if not confirm:
            raise ConfirmationRequired(DELETE_SOURCE_MESSAGE)
        self.store.dispatch(reducers.delete_source, project_id, source_id)
        return source

    def toggle_source(self, project_id: str, source_id: str) -> DataSource:
        self.store.dispatch(reducers.toggle_source, project_id, source_id)
        return self.store.get(project_id).find_source(source_id)

    def toggle_document(self, project_id: str, source_id: str, doc_id: str) -> DocumentArtifact:
        self.store.dispatch(reducers.toggle_document, project_id, source_id, doc_id)
        return self.store.get(project_id).find_source(source_id).find_document(doc_id)

    def open_source(self, project_id: str, source_id: str) -> DataSource:
        """Return a source for its detail view.

        Raises:
            SourceNotReadyError: If the source is not Synced yet.
        """
        source = self.store.get(project_id).find_source(source_id)
        if source.status is not SyncStatus.SYNCED:
            raise SourceNotReadyError(f"Data source '{source.name}' is still {source.status.value}")
        return source

    def git_tree(self, project_id: str, source_id: str) -> dict:
        """Return the repository tree of a synced Git source.

        Raises:
            ValueError: If the source is not a Git source.
        """
        source = self.open_source(project_id, source_id)
        if source.type is not SourceType.GIT:
            raise ValueError(f"Data source '{source.name}' is not a Git repository")
        return MOCK_GIT_TREE

    def read_file(self, project_id: str, source_id: str, path: str) -> str:
        """Return the content of a file in a Git source.

        Raises:
            KeyError: If the path is missing.
            ValueError: If the path is a folder.
        """
        entry = find_tree_entry(self.git_tree(project_id, source_id), path)
        if entry.get("type") != "file":
            raise ValueError(f"'{path}' is a folder")
        return entry.get("content", "")
