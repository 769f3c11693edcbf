"""Tests for the schema-link listing and its HTTP client."""

from __future__ import annotations

import io
import json
import urllib.error
import urllib.request

import pytest

from autotrace.graph.schema_links import (
    SchemaLinkClient,
    SchemaLinkError,
    SchemaLinkItem,
    SchemaLinkResponse,
    mock_schema_links,
)

REMOTE_PAYLOAD = {
    "success": True,
    "message": "OK",
    "code": 200,
    "data": [
        {
            "id": 17,
            "relation_type": "verifies",
            "description": "Requirement verified by test",
            "status": "active",
            "source_schema": {"id": 1, "name": "requirement"},
            "target_schema": {"id": 4, "name": "test_case", "description": "Tests"},
            "created_at": "2024-01-01",
            "updated_at": "2024-01-02",
        }
    ],
}


@pytest.fixture
def captured_requests(monkeypatch):
    """Capture urlopen captured_requests and answer with ``REMOTE_PAYLOAD``."""
    captured: list[urllib.request.Request] = []

    def fake_urlopen(req, timeout=None):
        captured.append(req)
        return io.BytesIO(json.dumps(REMOTE_PAYLOAD).encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    return captured


class TestMockListing:
    def test_one_entry_per_relation(self):
        response = mock_schema_links()
        assert response.success is True
        assert response.code == 200
        assert [item.relation_type for item in response.data] == [
            "verifies",
            "satisfies",
            "implements",
            "tests",
        ]

    def test_schema_names(self):
        item = mock_schema_links().data[0]
        assert item.id == "sl-req-tc"
        assert item.source_schema.name == "requirement"
        assert item.target_schema.name == "test_case"

    def test_to_dict_nests_schemas(self):
        data = mock_schema_links(timestamp="T").to_dict()
        entry = data["data"][2]
        assert entry["source_schema"]["id"] == "schema-architecture"
        assert entry["created_at"] == "T"


class TestPayloadParsing:
    def test_from_dict(self):
        response = SchemaLinkResponse.from_dict(REMOTE_PAYLOAD)
        item = response.data[0]
        assert item.id == "17"
        assert item.source_schema.id == "1"
        assert item.source_schema.description == ""
        assert item.target_schema.description == "Tests"

    def test_null_data(self):
        response = SchemaLinkResponse.from_dict({"success": False, "code": 500, "data": None})
        assert response.data == []
        assert response.success is False

    def test_missing_required_field(self):
        with pytest.raises(KeyError):
            SchemaLinkItem.from_dict({"id": 1})


class TestSchemaLinkClient:
    def test_list_links(self, captured_requests):
        client = SchemaLinkClient("https://trace.example.com/api/")
        response = client.list_links()
        assert response.data[0].relation_type == "verifies"
        assert captured_requests[0].full_url == "https://trace.example.com/api/traceability/schema-links"
        assert captured_requests[0].get_method() == "GET"

    def test_create_edge_posts_project_id(self, captured_requests):
        SchemaLinkClient("https://trace.example.com/api").create_edge("42")
        req = captured_requests[0]
        assert req.full_url == "https://trace.example.com/api/traceability/edges"
        assert req.get_method() == "POST"
        assert json.loads(req.data) == {"project_id": "42"}

    def test_network_failure(self, monkeypatch):
        def refuse(req, timeout=None):
            raise urllib.error.URLError("connection refused")

        monkeypatch.setattr(urllib.request, "urlopen", refuse)
        client = SchemaLinkClient("http://localhost:1")
        with pytest.raises(SchemaLinkError):
            client.list_links()
        with pytest.raises(SchemaLinkError):
            client.create_edge("1")

    def test_malformed_payload(self, monkeypatch):
        monkeypatch.setattr(
            urllib.request, "urlopen", lambda req, timeout=None: io.BytesIO(b"not json")
        )
        with pytest.raises(SchemaLinkError):
            SchemaLinkClient("http://x").list_links()
