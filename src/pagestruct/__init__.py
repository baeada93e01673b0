"""pagestruct - Layout structure analysis for positioned PDF text.

pagestruct takes the text lines of a PDF page, each with its position, width
and font information, and recovers the page's layout: how many columns it
has, which lines belong together in a text block, and which heading level a
classified heading should receive.

Key Features
------------
- Document metrics (base font size, line spacing) from a page sample
- Adaptive gap statistics that tell line spacing from paragraph breaks
- Column detection from both x-clustering and a visual strip scan
- Text block grouping driven by a table of named boundary rules
- Heading levels from outline, numbering, font size and context
- Page-break continuation hints across pages

Requirements
------------
- Python 3.10+

Examples
--------
Analyze a whole document:

    >>> from pagestruct import PositionedLine, analyze_document
    >>> lines = [
    ...     PositionedLine(page=1, x=72, y=72, width=200, text="Introduction", font_size=18),
    ...     PositionedLine(page=1, x=72, y=110, width=460, text="Body text starts here.", font_size=11),
    ... ]
    >>> layout = analyze_document(lines)
    >>> [element.text for element in layout.elements]
    ['Introduction', 'Body text starts here.']

Assign levels to elements a classifier has marked as headings:

    >>> from pagestruct import promote_headings
    >>> elements = promote_headings(layout.elements, {0}, layout.metrics.base_font_size)
    >>> elements[0].level
    1

See Also
--------
pagestruct.analyzers : The individual analysis steps
pagestruct.options : Tunable layout options

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "pagestruct requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from pagestruct.analyzers.headings import HeadingHierarchyAnalyzer, assign_heading_levels  # noqa: E402
from pagestruct.config import load_config_file, load_options, options_from_config  # noqa: E402
from pagestruct.exceptions import ConfigurationError, PageStructError, ValidationError  # noqa: E402
from pagestruct.layout import analyze_document, analyze_page, promote_headings  # noqa: E402
from pagestruct.logging_utils import configure_logging  # noqa: E402
from pagestruct.models import (  # noqa: E402
    Block,
    Column,
    DocumentLayout,
    DocumentMetrics,
    DocumentStructure,
    DocumentType,
    ElementKind,
    GapProfile,
    HeadingCandidate,
    OutlineItem,
    PageBreakContext,
    PageLayout,
    PositionedLine,
    StructuralElement,
    TextSpan,
    Viewport,
)
from pagestruct.options import LayoutOptions  # noqa: E402

__all__ = [
    "__version__",
    "analyze_document",
    "analyze_page",
    "promote_headings",
    "assign_heading_levels",
    "HeadingHierarchyAnalyzer",
    "LayoutOptions",
    "load_config_file",
    "load_options",
    "options_from_config",
    "configure_logging",
    "PageStructError",
    "ValidationError",
    "ConfigurationError",
    "Block",
    "Column",
    "DocumentLayout",
    "DocumentMetrics",
    "DocumentStructure",
    "DocumentType",
    "ElementKind",
    "GapProfile",
    "HeadingCandidate",
    "OutlineItem",
    "PageBreakContext",
    "PageLayout",
    "PositionedLine",
    "StructuralElement",
    "TextSpan",
    "Viewport",
]
