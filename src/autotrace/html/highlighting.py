"""Pygments rendering for files in the mock Git explorer.

Used by the REST file endpoint and the repository preview on the
overview page.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

PREVIEW_LIMIT = 512_000


@dataclass(frozen=True)
class SourceFile:
    """A repository file split into highlighted HTML lines.

    ``raw`` keeps the untruncated text; ``lines`` covers at most
    ``PREVIEW_LIMIT`` characters of it.
    """

    path: str
    raw: str
    lines: tuple[str, ...]
    language: str
    truncated: bool = False

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "lines": list(self.lines),
            "language": self.language,
            "truncated": self.truncated,
        }


def _lexer_for(path: str):
    try:
        lexer = get_lexer_for_filename(path)
    except ClassNotFound:
        return TextLexer(), "text"
    return lexer, lexer.name.lower()


def highlight_source(path: str, content: str, limit: int = PREVIEW_LIMIT) -> SourceFile:
    """Highlight ``content`` with the lexer matching ``path``.

    The whole text goes through the lexer in one pass before it is split
    into lines, so block comments spanning lines keep their token class.
    Unknown extensions fall back to plain escaped text.
    """
    truncated = len(content) > limit
    visible = content[:limit]
    lexer, language = _lexer_for(path)

    rendered = highlight(visible, lexer, HtmlFormatter(nowrap=True)).split("\n")
    if rendered and rendered[-1] == "":
        rendered.pop()

    return SourceFile(
        path=path,
        raw=content,
        lines=tuple(rendered),
        language=language,
        truncated=truncated,
    )


def pygments_css(scope: str = ".highlight", style: str = "default") -> str:
    """Token CSS rules limited to elements under ``scope``."""
    return HtmlFormatter(style=style).get_style_defs(scope)
