"""Shared fixtures for autotrace tests."""

from __future__ import annotations

import pytest

from autotrace.config import DEFAULT_CONFIG, merge_configs
from autotrace.graph.records import RecordStore
from autotrace.graph.store import TraceStore
from autotrace.projects import ProjectStore
from autotrace.projects.seed import TRACE_LINKS, TRACE_NODES, seed_projects, seed_records

SMALL_COUNTS = {"REQ": 10, "ARCH": 5, "DD": 8, "TC": 20}


class FakeClient:
    """Generation client double recording every call."""

    def __init__(self, reply="REQ-001 is covered by TC-301.", has_credentials=True, error=None):
        self.reply = reply
        self.has_credentials = has_credentials
        self.error = error
        self.calls: list[tuple[str, list[dict[str, str]]]] = []

    def generate(self, prompt, history):
        self.calls.append((prompt, list(history)))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def failing_client():
    return FakeClient(error=ConnectionError("down"))


@pytest.fixture
def config():
    """Configuration with a small seeded graph and no mock delays."""
    return merge_configs(
        DEFAULT_CONFIG,
        {
            "graph": {"seed": 7, "counts": dict(SMALL_COUNTS)},
            "sources": {"sync_delay": 0.0, "jira_connect_delay": 0.0},
            "documents": {"parse_delay": 60.0},
        },
    )


@pytest.fixture
def workspace(config, fake_client):
    from autotrace.workspace import Workspace

    ws = Workspace.from_config(config, client=fake_client)
    yield ws
    ws.close()


@pytest.fixture
def trace_store():
    return TraceStore.from_seed(TRACE_NODES, TRACE_LINKS)


@pytest.fixture
def records():
    return RecordStore(seed_records())


@pytest.fixture
def project_store():
    return ProjectStore(seed_projects())
