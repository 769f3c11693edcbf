"""Schema links - REST-shaped traceability relation listing.

A schema link names a relation type between two artifact schemas
(e.g. ``verifies`` between ``requirement`` and ``test_case``). The
listing endpoint returns a ``SchemaLinkResponse`` envelope; edge creation
posts a ``project_id`` and ignores the response body.

Public API
----------
- ``SchemaLinkItem`` / ``SchemaLinkResponse`` - payload types
- ``mock_schema_links`` - offline listing derived from the relation presets
- ``SchemaLinkClient`` - urllib client for a remote traceability backend
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass, field
from typing import Any

from autotrace.graph.relations import AVAILABLE_RELATIONS, Relation
from autotrace.graph.TraceNode import ArtifactType

TIMEOUT_SECONDS = 5

_SCHEMA_NAMES = {
    ArtifactType.REQUIREMENT: ("requirement", "System and software requirements"),
    ArtifactType.DESIGN: ("architecture", "Architecture and design modules"),
    ArtifactType.CODE: ("detailed_design", "Detailed design and source code units"),
    ArtifactType.TEST: ("test_case", "Verification test cases"),
    ArtifactType.RISK: ("risk", "Hazards and safety risks"),
}

_RELATION_TYPES = {
    "REQ-TC": "verifies",
    "REQ-ARCH": "satisfies",
    "ARCH-DD": "implements",
    "DD-TC": "tests",
}


@dataclass(frozen=True)
class SchemaNodeInfo:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class SchemaLinkItem:
    """One relation type between two schemas."""

    id: str
    relation_type: str
    description: str
    status: str
    source_schema: SchemaNodeInfo
    target_schema: SchemaNodeInfo
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaLinkItem:
        """Parse one listing entry.

        Raises:
            KeyError: If a required field is missing.
        """
        return cls(
            id=str(data["id"]),
            relation_type=data["relation_type"],
            description=data.get("description", ""),
            status=data.get("status", ""),
            source_schema=SchemaNodeInfo(**_schema_fields(data["source_schema"])),
            target_schema=SchemaNodeInfo(**_schema_fields(data["target_schema"])),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


def _schema_fields(data: dict[str, Any]) -> dict[str, str]:
    return {
        "id": str(data["id"]),
        "name": data["name"],
        "description": data.get("description", ""),
    }


@dataclass(frozen=True)
class SchemaLinkResponse:
    """Envelope of the listing endpoint."""

    success: bool
    message: str
    code: int
    data: list[SchemaLinkItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "code": self.code,
            "data": [item.to_dict() for item in self.data],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaLinkResponse:
        return cls(
            success=bool(data.get("success", False)),
            message=data.get("message", ""),
            code=int(data.get("code", 0)),
            data=[SchemaLinkItem.from_dict(item) for item in data.get("data") or []],
        )


def _schema_info(artifact_type: ArtifactType) -> SchemaNodeInfo:
    name, description = _SCHEMA_NAMES[artifact_type]
    return SchemaNodeInfo(id=f"schema-{name}", name=name, description=description)


def _schema_link_for(relation: Relation, timestamp: str) -> SchemaLinkItem:
    return SchemaLinkItem(
        id=f"sl-{relation.id.lower()}",
        relation_type=_RELATION_TYPES.get(relation.id, "traces"),
        description=relation.label,
        status="active",
        source_schema=_schema_info(relation.source_type),
        target_schema=_schema_info(relation.target_type),
        created_at=timestamp,
        updated_at=timestamp,
    )


def mock_schema_links(timestamp: str = "2023-10-01T00:00:00Z") -> SchemaLinkResponse:
    """Build the offline listing from ``AVAILABLE_RELATIONS``."""
    return SchemaLinkResponse(
        success=True,
        message="OK",
        code=200,
        data=[_schema_link_for(r, timestamp) for r in AVAILABLE_RELATIONS],
    )


class SchemaLinkError(RuntimeError):
    """Raised when the traceability backend cannot be reached or parsed."""


class SchemaLinkClient:
    """Thin urllib client for a traceability backend.

    Args:
        base_url: Backend root, e.g. ``https://trace.example.com/api``.
        timeout: Socket timeout in seconds.
    """

    def __init__(self, base_url: str, timeout: float = TIMEOUT_SECONDS) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def list_links(self) -> SchemaLinkResponse:
        """GET the schema-link listing.

        Raises:
            SchemaLinkError: On network failure or malformed payload.
        """
        req = urllib.request.Request(
            f"{self.base_url}/traceability/schema-links",
            headers={"Accept": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                payload = json.loads(resp.read())
            return SchemaLinkResponse.from_dict(payload)
        except (urllib.error.URLError, OSError, KeyError, TypeError, json.JSONDecodeError) as e:
            raise SchemaLinkError(f"Cannot load schema links: {e}") from e

    def create_edge(self, project_id: str) -> None:
        """POST ``{"project_id": ...}`` to the edge-creation endpoint.

        The response body is ignored.

        Raises:
            SchemaLinkError: On network failure.
        """
        body = json.dumps({"project_id": project_id}).encode("utf-8")
        req = urllib.request.Request(
            f"{self.base_url}/traceability/edges",
            data=body,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout):
                pass
        except (urllib.error.URLError, OSError) as e:
            raise SchemaLinkError(f"Cannot create traceability edge: {e}") from e
