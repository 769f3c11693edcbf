"""HTML module - overview page and source highlighting."""

from autotrace.html.generator import OverviewGenerator
from autotrace.html.highlighting import SourceFile, highlight_source, pygments_css

__all__ = ["OverviewGenerator", "SourceFile", "highlight_source", "pygments_css"]
