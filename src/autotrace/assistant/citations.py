"""Citation scanning for assistant replies.

Replies are split on artifact-id-shaped tokens (``REQ-001``, ``TC-302``...).
Known ids become ``citation`` segments the UI renders as buttons; unknown
ids become ``code`` segments shown in monospace; everything else is
``text``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from autotrace.assistant.knowledge import is_known

CITATION_PATTERN = re.compile(r"((?:REQ|ARCH|DD|TC)-\d+)")
_FULL_MATCH = re.compile(r"(?:REQ|ARCH|DD|TC)-\d+")

TEXT = "text"
CITATION = "citation"
CODE = "code"


@dataclass(frozen=True)
class Segment:
    kind: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "text": self.text}


def format_message(text: str) -> list[Segment]:
    """Split ``text`` into text, citation and code segments.

    Empty text segments between adjacent ids are dropped.
    """
    segments: list[Segment] = []
    for part in CITATION_PATTERN.split(text):
        if not part:
            continue
        if _FULL_MATCH.fullmatch(part):
            segments.append(Segment(CITATION if is_known(part) else CODE, part))
        else:
            segments.append(Segment(TEXT, part))
    return segments


def cited_ids(text: str) -> list[str]:
    """Known ids cited in ``text``, in order of first appearance."""
    seen: list[str] = []
    for segment in format_message(text):
        if segment.kind == CITATION and segment.text not in seen:
            seen.append(segment.text)
    return seen
