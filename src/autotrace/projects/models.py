"""Project data model.

All types are frozen; updates go through ``autotrace.projects.reducers``,
which return new snapshots built with ``dataclasses.replace``.

A data source carries a tagged configuration (``GitConfig``,
``JiraConfig`` or ``LocalConfig``); its ``type`` is derived from the
config so the two cannot disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

MASKED_TOKEN = "******"


class ProjectType(Enum):
    GENERAL = "General"
    KNOWLEDGE_BASE = "KnowledgeBase"

    @classmethod
    def parse(cls, value: str | ProjectType) -> ProjectType:
        """Parse a project type name.

        Raises:
            ValueError: If the value is not a known type.
        """
        if isinstance(value, ProjectType):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown project type '{value}'") from None


class SourceType(Enum):
    LOCAL = "Local"
    GIT = "Git"
    JIRA = "Jira"


class SyncStatus(Enum):
    SYNCING = "Syncing"
    SYNCED = "Synced"
    ERROR = "Error"


class InvalidTransitionError(ValueError):
    """Raised when a document status change skips or reverses a step."""


class ParsingStatus(Enum):
    """Document processing state. Only forward single steps are legal."""

    UNPARSED = "Unparsed"
    PARSING = "Parsing"
    REVIEW_NEEDED = "ReviewNeeded"
    VERIFIED = "Verified"
    STRUCTURED = "Structured"

    @property
    def next(self) -> ParsingStatus | None:
        """The only legal successor, or None for the final state."""
        order = list(ParsingStatus)
        position = order.index(self)
        return order[position + 1] if position + 1 < len(order) else None

    def check_transition(self, target: ParsingStatus) -> None:
        """Raise unless ``target`` is the direct successor of this state.

        Raises:
            InvalidTransitionError: On a skip, reversal or self-transition.
        """
        if self.next is not target:
            raise InvalidTransitionError(
                f"Cannot move document from {self.value} to {target.value}"
            )


@dataclass(frozen=True)
class ProjectStats:
    requirements: int = 0
    tests: int = 0
    bugs: int = 0
    coverage: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "requirements": self.requirements,
            "tests": self.tests,
            "bugs": self.bugs,
            "coverage": self.coverage,
        }


@dataclass(frozen=True)
class GitConfig:
    url: str
    branch: str = "main"
    username: str = ""
    token: str | None = None

    kind = SourceType.GIT

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"url": self.url, "branch": self.branch}
        if self.username:
            result["username"] = self.username
        if self.token is not None:
            result["token"] = self.token
        return result


@dataclass(frozen=True)
class JiraConfig:
    url: str
    project_key: str
    email: str = ""
    token: str | None = MASKED_TOKEN

    kind = SourceType.JIRA

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"url": self.url, "projectKey": self.project_key}
        if self.email:
            result["email"] = self.email
        if self.token is not None:
            result["token"] = self.token
        return result


@dataclass(frozen=True)
class LocalConfig:
    file_name: str

    kind = SourceType.LOCAL

    def to_dict(self) -> dict[str, Any]:
        return {"fileName": self.file_name}


SourceConfig = Union[GitConfig, JiraConfig, LocalConfig]


@dataclass(frozen=True)
class DocumentArtifact:
    """A document discovered in a data source.

    Attributes:
        id: Document identifier.
        name: File or query name.
        type: Free-form kind (``Markdown``, ``PDF``, ``Issue Set``...).
        parsing_status: Position in the processing workflow.
        size: Display size, if known.
        last_modified: Display timestamp, if known.
        enabled: Whether the document is offered for actions.
    """

    id: str
    name: str
    type: str
    parsing_status: ParsingStatus = ParsingStatus.UNPARSED
    size: str | None = None
    last_modified: str | None = None
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "parsingStatus": self.parsing_status.value,
            "size": self.size,
            "lastModified": self.last_modified,
            "isEnabled": self.enabled,
        }


@dataclass(frozen=True)
class DataSource:
    id: str
    name: str
    config: SourceConfig
    status: SyncStatus = SyncStatus.SYNCING
    enabled: bool = True
    last_sync: str = "Syncing..."
    documents: tuple[DocumentArtifact, ...] = ()

    @property
    def type(self) -> SourceType:
        return self.config.kind

    def find_document(self, doc_id: str) -> DocumentArtifact:
        """Raises KeyError if the document is not in this source."""
        for doc in self.documents:
            if doc.id == doc_id:
                return doc
        raise KeyError(f"Document '{doc_id}' not found in source '{self.id}'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
            "isEnabled": self.enabled,
            "lastSync": self.last_sync,
            "config": self.config.to_dict(),
            "documents": [d.to_dict() for d in self.documents],
        }


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: str = ""
    type: ProjectType = ProjectType.GENERAL
    members: tuple[str, ...] = ()
    created_at: str = ""
    stats: ProjectStats = field(default_factory=ProjectStats)
    data_sources: tuple[DataSource, ...] = ()

    def find_source(self, source_id: str) -> DataSource:
        """Raises KeyError if the source is not in this project."""
        for source in self.data_sources:
            if source.id == source_id:
                return source
        raise KeyError(f"Data source '{source_id}' not found in project '{self.id}'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "members": list(self.members),
            "createdAt": self.created_at,
            "stats": self.stats.to_dict(),
            "dataSources": [s.to_dict() for s in self.data_sources],
        }


STRUCTURE_TYPES = ("REQ", "ARCH", "DD", "TC")


@dataclass(frozen=True)
class ContentBlock:
    """A block extracted from a parsed document.

    Text blocks carry ``content``; image blocks carry ``src``, an editable
    ``description`` and the surrounding ``context`` sentence.
    """

    id: str
    type: str
    content: str | None = None
    src: str | None = None
    description: str | None = None
    context: str | None = None

    @property
    def is_image(self) -> bool:
        return self.type == "image"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "type": self.type}
        for key in ("content", "src", "description", "context"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class StructuredItem:
    """A typed artifact extracted from a set of content blocks."""

    id: str
    type: str
    content: str
    linked_block_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "content": self.content,
            "linkedBlockIds": list(self.linked_block_ids),
        }
