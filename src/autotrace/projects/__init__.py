"""Projects module - project collection, data sources and documents.

Exports:
- Project, DataSource, DocumentArtifact: frozen data model
- ProjectStore: single writer applying reducers to the current snapshot
- SourceManager: data source onboarding and mock sync
- DocumentWorkflow: document status machine and editor sessions
"""

from autotrace.projects.documents import DocumentWorkflow, ReviewSession, StructureSession
from autotrace.projects.models import (
    DataSource,
    DocumentArtifact,
    GitConfig,
    InvalidTransitionError,
    JiraConfig,
    LocalConfig,
    ParsingStatus,
    Project,
    ProjectStats,
    ProjectType,
    SourceType,
    SyncStatus,
)
from autotrace.projects.sources import SourceForm, SourceManager, SourceNotReadyError
from autotrace.projects.store import ConfirmationRequired, ProjectStore

__all__ = [
    "ConfirmationRequired",
    "DataSource",
    "DocumentArtifact",
    "DocumentWorkflow",
    "GitConfig",
    "InvalidTransitionError",
    "JiraConfig",
    "LocalConfig",
    "ParsingStatus",
    "Project",
    "ProjectStats",
    "ProjectStore",
    "ProjectType",
    "ReviewSession",
    "SourceForm",
    "SourceManager",
    "SourceNotReadyError",
    "SourceType",
    "StructureSession",
    "SyncStatus",
]
