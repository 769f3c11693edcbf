"""Seed data for a fresh workspace.

Two demo projects, the trace matrix artifacts and records, and the mock
content served by the source browser and the document editors.
"""

from __future__ import annotations

from autotrace.graph.records import RecordStatus, TraceRecord
from autotrace.graph.relations import TraceLink
from autotrace.graph.TraceNode import ArtifactType, NodeStatus, TraceNode
from autotrace.projects.models import (
    ContentBlock,
    DataSource,
    DocumentArtifact,
    GitConfig,
    JiraConfig,
    LocalConfig,
    ParsingStatus,
    Project,
    ProjectStats,
    ProjectType,
    StructuredItem,
    SyncStatus,
)

MEMBER_OPTIONS = (
    "Alice Chen",
    "Bob Smith",
    "Charlie Wang",
    "David Kim",
    "Eve Johnson",
)


def seed_projects() -> list[Project]:
    return [
        Project(
            id="1",
            name="ADAS L2+ System",
            description=(
                "Advanced Driver Assistance System including Lane Keep Assist and "
                "Adaptive Cruise Control for 2025 Platform."
            ),
            type=ProjectType.GENERAL,
            members=("Alice Chen", "Bob Smith"),
            created_at="2023-09-15",
            stats=ProjectStats(requirements=142, tests=315, bugs=7, coverage=78),
            data_sources=(
                DataSource(
                    id="ds-1",
                    name="ADAS Core Repo",
                    config=GitConfig(url="https://github.com/company/adas-core.git", branch="main"),
                    status=SyncStatus.SYNCED,
                    last_sync="10 mins ago",
                    documents=(
                        DocumentArtifact(
                            "doc-1-1", "README.md", "Markdown",
                            ParsingStatus.VERIFIED, "4 KB", "2023-10-20",
                        ),
                        DocumentArtifact(
                            "doc-1-2", "docs/architecture_spec.md", "Markdown",
                            ParsingStatus.REVIEW_NEEDED, "12 KB", "2023-10-18",
                        ),
                        DocumentArtifact(
                            "doc-1-3", "src/radar_control.c", "Source Code",
                            ParsingStatus.UNPARSED, "45 KB", "2023-10-22",
                        ),
                    ),
                ),
                DataSource(
                    id="ds-2",
                    name="Jira Issues",
                    config=JiraConfig(
                        url="https://jira.company.com/projects/ADAS",
                        project_key="ADAS",
                        token=None,
                    ),
                    status=SyncStatus.SYNCED,
                    last_sync="1 hour ago",
                    documents=(
                        DocumentArtifact(
                            "doc-2-1", "ADAS Requirements (All)", "Issue Query",
                            ParsingStatus.UNPARSED, "142 Issues", "Today",
                        ),
                    ),
                ),
                DataSource(
                    id="ds-3",
                    name="System_Architecture_Spec_v2.docx",
                    config=LocalConfig(file_name="System_Architecture_Spec_v2.docx"),
                    status=SyncStatus.SYNCED,
                    last_sync="2 hours ago",
                    documents=(
                        DocumentArtifact(
                            "doc-3-1", "System_Architecture_Spec_v2.docx", "Word Doc",
                            ParsingStatus.REVIEW_NEEDED, "2.4 MB", "Yesterday",
                        ),
                    ),
                ),
            ),
        ),
        Project(
            id="2",
            name="Battery Management Unit (BMS)",
            description=(
                "Firmware development for high-voltage battery control module "
                "conforming to ASIL-D safety requirements."
            ),
            type=ProjectType.GENERAL,
            members=("David Kim", "Eve Johnson"),
            created_at="2023-10-02",
            stats=ProjectStats(requirements=89, tests=204, bugs=2, coverage=92),
        ),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Trace matrix
# ─────────────────────────────────────────────────────────────────────────────

TRACE_NODES: tuple[TraceNode, ...] = (
    TraceNode("REQ-001", "Adaptive Cruise Control", ArtifactType.REQUIREMENT, NodeStatus.APPROVED),
    TraceNode("REQ-002", "Emergency Braking", ArtifactType.REQUIREMENT, NodeStatus.APPROVED),
    TraceNode("REQ-003", "Lane Keep Assist", ArtifactType.REQUIREMENT, NodeStatus.DRAFT),
    TraceNode("REQ-004", "Blind Spot Detection", ArtifactType.REQUIREMENT, NodeStatus.APPROVED),
    TraceNode("ARCH-101", "Module: Radar Sensor Interface", ArtifactType.DESIGN, NodeStatus.APPROVED),
    TraceNode("ARCH-102", "Module: Brake Actuator Logic", ArtifactType.DESIGN, NodeStatus.DRAFT),
    TraceNode("ARCH-103", "Module: Camera Processing Unit", ArtifactType.DESIGN, NodeStatus.APPROVED),
    TraceNode("ARCH-104", "Module: HMI Warning System", ArtifactType.DESIGN, NodeStatus.APPROVED),
    TraceNode("DD-201", "radar_driver.c", ArtifactType.CODE, NodeStatus.VERIFIED),
    TraceNode("DD-202", "brake_controller.cpp", ArtifactType.CODE, NodeStatus.VERIFIED),
    TraceNode("DD-203", "camera_obj_detect.py", ArtifactType.CODE, NodeStatus.VERIFIED),
    TraceNode("DD-204", "hmi_display_manager.ts", ArtifactType.CODE, NodeStatus.VERIFIED),
    TraceNode("TC-301", "Verify: Radar Signal Quality", ArtifactType.TEST, NodeStatus.VERIFIED),
    TraceNode("TC-302", "Verify: Emergency Stop Trigger", ArtifactType.TEST, NodeStatus.FAILED),
    TraceNode("TC-303", "Verify: Lane Departure Warning", ArtifactType.TEST, NodeStatus.VERIFIED),
    TraceNode("TC-304", "Verify: Blind Spot LED Activation", ArtifactType.TEST, NodeStatus.VERIFIED),
)

TRACE_LINKS: tuple[TraceLink, ...] = (
    TraceLink("REQ-001", "ARCH-101"),
    TraceLink("REQ-002", "ARCH-102"),
    TraceLink("REQ-003", "ARCH-103"),
    TraceLink("ARCH-101", "DD-201"),
    TraceLink("ARCH-102", "DD-202"),
    TraceLink("DD-201", "TC-301"),
    TraceLink("REQ-001", "TC-301"),
    TraceLink("REQ-004", "TC-304"),
)


def seed_records() -> list[TraceRecord]:
    return [
        TraceRecord(
            id="tr-1",
            name="System Requirements Traceability",
            description="Validation of system requirements against architectural design modules.",
            relation_label="Requirement ↔ Architecture",
            source_type=ArtifactType.REQUIREMENT,
            target_type=ArtifactType.DESIGN,
            last_updated="2023-10-24",
            author="Alice Chen",
            coverage=100,
            status=RecordStatus.VERIFIED,
        ),
        TraceRecord(
            id="tr-2",
            name="Safety Critical Validation",
            description=(
                "Traceability matrix for ASIL-D safety requirements and system validation tests."
            ),
            relation_label="Requirement ↔ Test Case",
            source_type=ArtifactType.REQUIREMENT,
            target_type=ArtifactType.TEST,
            last_updated="2023-10-25",
            author="Bob Smith",
            coverage=85,
            status=RecordStatus.IN_PROGRESS,
        ),
        TraceRecord(
            id="tr-3",
            name="Design Implementation Status",
            description="Tracking architectural modules to code implementation.",
            relation_label="Architecture ↔ Code/DD",
            source_type=ArtifactType.DESIGN,
            target_type=ArtifactType.CODE,
            last_updated="Today",
            author="Charlie Wang",
            coverage=50,
            status=RecordStatus.DRAFT,
        ),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Source browser and document editors
# ─────────────────────────────────────────────────────────────────────────────

MOCK_GIT_TREE: dict = {
    "name": "root",
    "type": "folder",
    "children": [
        {
            "name": "src",
            "type": "folder",
            "children": [
                {
                    "name": "main.c",
                    "type": "file",
                    "content": (
                        '#include <stdio.h>\n#include "radar.h"\n\nint main() {\n'
                        "  init_radar();\n  while(1) {\n    process_signals();\n  }\n"
                        "  return 0;\n}"
                    ),
                },
                {
                    "name": "radar.c",
                    "type": "file",
                    "content": (
                        '#include "radar.h"\n\nvoid init_radar() {\n  // Hardware init\n}\n\n'
                        "void process_signals() {\n  // FFT processing\n}"
                    ),
                },
                {
                    "name": "radar.h",
                    "type": "file",
                    "content": (
                        "#ifndef RADAR_H\n#define RADAR_H\n\nvoid init_radar();\n"
                        "void process_signals();\n\n#endif"
                    ),
                },
            ],
        },
        {
            "name": "tests",
            "type": "folder",
            "children": [
                {
                    "name": "test_radar.c",
                    "type": "file",
                    "content": "void test_init() {\n  assert(radar_status == OK);\n}",
                },
            ],
        },
        {
            "name": "README.md",
            "type": "file",
            "content": "# ADAS Core\n\nCore control logic for ADAS system.",
        },
    ],
}

MOCK_PARSED_CONTENT: tuple[ContentBlock, ...] = (
    ContentBlock("t1", "text", content="1. Introduction"),
    ContentBlock(
        "t2",
        "text",
        content=(
            "The purpose of this document is to define the system architecture for the "
            "ADAS L2+ feature set. The system relies on a fusion of camera and radar sensors."
        ),
    ),
    ContentBlock(
        "img1",
        "image",
        src="https://placehold.co/600x300/e2e8f0/64748b?text=System+Block+Diagram",
        description="Figure 1: High-level System Block Diagram showing Sensor fusion unit.",
        context="Figure 1 illustrates the high-level data flow.",
    ),
    ContentBlock("t3", "text", content="2. Hardware Interfaces"),
    ContentBlock(
        "t4",
        "text",
        content=(
            "The primary interface between the sensor module and the ECU is via automotive "
            "Ethernet. Below is the pinout configuration."
        ),
    ),
    ContentBlock(
        "img2",
        "image",
        src="https://placehold.co/400x200/e2e8f0/64748b?text=Pinout+Table+Image",
        description="Table 1: Connector Pinout Configuration (Needs Review)",
        context="Table 1: Connector Pinout",
    ),
    ContentBlock("t5", "text", content="3. Software Components"),
    ContentBlock(
        "t6",
        "text",
        content=(
            "The software stack is composed of the OS abstraction layer, the RTE, "
            "and the Application layer."
        ),
    ),
    ContentBlock(
        "img3",
        "image",
        src="https://placehold.co/500x400/e2e8f0/64748b?text=Software+Stack",
        description="Figure 2: AUTOSAR Layered Architecture",
        context="As shown in Figure 2, the stack follows standard AUTOSAR methodology.",
    ),
)

MOCK_STRUCTURED_ITEMS: tuple[StructuredItem, ...] = (
    StructuredItem(
        "SYS-ARCH-01",
        "ARCH",
        "System relies on a fusion of camera and radar sensors.",
        ("t2", "img1"),
    ),
    StructuredItem(
        "HW-IF-01",
        "ARCH",
        "Primary interface is automotive Ethernet.",
        ("t4", "img2"),
    ),
)
