"""Static knowledge base the assistant cites from.

``KNOWLEDGE_BASE`` backs the citation detail panel. ``PROJECT_CONTEXT`` is
the artifact listing sent to the model as part of the system instruction.
"""

from __future__ import annotations

from dataclasses import dataclass

from autotrace.graph.TraceNode import ArtifactType
from autotrace.projects.seed import TRACE_NODES

PROJECT_NAME = "ADAS L2+ System"


@dataclass(frozen=True)
class KnowledgeItem:
    id: str
    label: str
    type: ArtifactType
    status: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type.value,
            "status": self.status,
            "description": self.description,
        }


KNOWLEDGE_BASE: tuple[KnowledgeItem, ...] = (
    KnowledgeItem(
        "REQ-001", "Adaptive Cruise Control", ArtifactType.REQUIREMENT, "Approved",
        "System must maintain set speed and safe distance from vehicle ahead.",
    ),
    KnowledgeItem(
        "REQ-002", "Emergency Braking", ArtifactType.REQUIREMENT, "Approved",
        "System must automatically engage brakes when collision is imminent.",
    ),
    KnowledgeItem(
        "REQ-003", "Lane Keep Assist", ArtifactType.REQUIREMENT, "Draft",
        "System provides steering torque to keep vehicle within detected lane markers.",
    ),
    KnowledgeItem(
        "REQ-004", "Blind Spot Detection", ArtifactType.REQUIREMENT, "Approved",
        "Visual alert in side mirror when obstacle detected in blind zone.",
    ),
    KnowledgeItem(
        "ARCH-101", "Module: Radar Sensor Interface", ArtifactType.DESIGN, "Approved",
        "Handles raw data frames from MMIC radar unit via Ethernet.",
    ),
    KnowledgeItem(
        "ARCH-102", "Module: Brake Actuator Logic", ArtifactType.DESIGN, "Draft",
        "Computes required deceleration and commands hydraulic pump.",
    ),
    KnowledgeItem(
        "DD-201", "radar_driver.c", ArtifactType.CODE, "Verified",
        "Low level driver implementation for radar hardware abstraction.",
    ),
    KnowledgeItem(
        "DD-202", "brake_controller.cpp", ArtifactType.CODE, "Verified",
        "PID control loop implementation for brake pressure.",
    ),
    KnowledgeItem(
        "TC-301", "Verify: Radar Signal Quality", ArtifactType.TEST, "Verified",
        "Injects known signal patterns and verifies SNR > 20dB.",
    ),
    KnowledgeItem(
        "TC-302", "Verify: Emergency Stop Trigger", ArtifactType.TEST, "Failed",
        "Measures latency between object detection and brake pressure rise. "
        "Current: 250ms (Fail).",
    ),
    KnowledgeItem(
        "TC-303", "Verify: Lane Departure Warning", ArtifactType.TEST, "Verified",
        "Simulate drift across solid line at 80kph.",
    ),
)

_BY_ID = {item.id: item for item in KNOWLEDGE_BASE}

# One-line summaries appended to the context listing
_CONTEXT_SUMMARIES = {
    "REQ-001": "Maintain set speed and distance.",
    "REQ-002": "Auto-brake on collision detection.",
    "REQ-003": "Keep vehicle within lane markers.",
    "REQ-004": "Alert driver of side obstacles.",
    "TC-301": "Tests signal to noise ratio.",
    "TC-302": "Latency test for braking.",
}

_CONTEXT_SECTIONS = (
    ("Requirements", ArtifactType.REQUIREMENT),
    ("Architecture", ArtifactType.DESIGN),
    ("Detailed Design / Code", ArtifactType.CODE),
    ("Test Cases", ArtifactType.TEST),
)


def is_known(artifact_id: str) -> bool:
    return artifact_id in _BY_ID


def lookup_citation(artifact_id: str) -> KnowledgeItem:
    """Return the knowledge item for a cited id.

    Raises:
        KeyError: If the id is not in the knowledge base.
    """
    try:
        return _BY_ID[artifact_id]
    except KeyError:
        raise KeyError(f"No artifact '{artifact_id}' in the knowledge base") from None


def build_project_context() -> str:
    """Artifact listing of the demo project, grouped by artifact type."""
    lines = [
        f'You are working on the "{PROJECT_NAME}" project. '
        "Here are the existing project artifacts you can reference:",
    ]
    for title, artifact_type in _CONTEXT_SECTIONS:
        lines.append("")
        lines.append(f"[{title}]")
        for node in TRACE_NODES:
            if node.type is not artifact_type:
                continue
            line = f"- {node.id}: {node.label} (Status: {node.status.value})"
            summary = _CONTEXT_SUMMARIES.get(node.id)
            if summary:
                line += f" - {summary}"
            lines.append(line)
    return "\n".join(lines)


PROJECT_CONTEXT = build_project_context()
