#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/models.py
"""Data model for page layout analysis.

This module defines the value types that flow between the analyzers: the
positioned lines given as input, the intermediate statistics (metrics, gap
profiles, density strips, columns, blocks) and the structural elements handed
back to the caller.

Input and result types are frozen dataclasses. The only mutable type is
:class:`Block`, which accumulates lines while it is open and is frozen by
:meth:`Block.close` once a boundary is detected.

"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from pagestruct.constants import (
    DEFAULT_BASE_FONT_SIZE,
    DEFAULT_MEDIAN_FONT_SIZE,
    DEFAULT_MODE_SPACING,
    DEFAULT_PARAGRAPH_GAP_THRESHOLD,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    ESTIMATED_CHAR_WIDTH_RATIO,
)

__all__ = [
    "Block",
    "BlockContext",
    "Column",
    "ColumnCandidates",
    "ColumnGap",
    "DocumentLayout",
    "DocumentMetrics",
    "DocumentStructure",
    "DocumentType",
    "ElementKind",
    "FontSizeHierarchy",
    "GapAnalysis",
    "GapProfile",
    "HeadingCandidate",
    "LineContext",
    "OutlineItem",
    "PageBreakContext",
    "PageLayout",
    "PositionedLine",
    "Strip",
    "StructuralElement",
    "TextSpan",
    "Viewport",
    "VisualStructure",
]


def _is_valid_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class DocumentType(str, Enum):
    """Classification of a gap distribution."""

    HOMOGENEOUS = "homogeneous"
    MOSTLY_HOMOGENEOUS = "mostly-homogeneous"
    BIMODAL = "bimodal"
    GRADUAL = "gradual"
    UNKNOWN = "unknown"


class ElementKind(str, Enum):
    """Kind of a structural element produced by the orchestrator."""

    BLOCK = "block"
    HEADING = "heading"


# =============================================================================
# Input types
# =============================================================================


@dataclass(frozen=True)
class TextSpan:
    """A run of text inside a line with its own geometry and style.

    Parameters
    ----------
    x : float
        Left edge of the run
    width : float
        Width of the run
    text : str, default ""
        Text of the run
    is_bold : bool, default False
        Whether the run is set in a bold face
    is_italic : bool, default False
        Whether the run is set in an italic face

    """

    x: float
    width: float
    text: str = ""
    is_bold: bool = False
    is_italic: bool = False

    @property
    def right(self) -> float:
        """Right edge of the run."""
        return self.x + self.width

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextSpan:
        """Build a span from a mapping using snake_case or camelCase keys."""
        return cls(
            x=float(data.get("x", 0.0) or 0.0),
            width=float(data.get("width", 0.0) or 0.0),
            text=str(data.get("text", data.get("str", "")) or ""),
            is_bold=bool(data.get("is_bold", data.get("isBold", False))),
            is_italic=bool(data.get("is_italic", data.get("isItalic", False))),
        )


@dataclass(frozen=True)
class PositionedLine:
    """A line of text with page-relative geometry and font attributes.

    Parameters
    ----------
    page : int
        Page number the line belongs to
    x : float
        Left edge of the line
    y : float
        Vertical position of the line; larger values are further down the page
    width : float
        Width of the line. Zero when unknown.
    text : str
        Text of the line
    font_size : float
        Dominant font size of the line
    is_bold : bool, default False
        Whether the line is set in a bold face
    is_italic : bool, default False
        Whether the line is set in an italic face
    spans : tuple of TextSpan, default ()
        Optional per-run geometry for sub-line formatting

    """

    page: int
    x: float
    y: float
    width: float
    text: str
    font_size: float
    is_bold: bool = False
    is_italic: bool = False
    spans: tuple[TextSpan, ...] = ()

    @property
    def right(self) -> Optional[float]:
        """Right edge from the width or the spans, or None when neither is known."""
        if _is_valid_number(self.width) and self.width > 0:
            return self.x + self.width
        if self.spans:
            return max(self.x, max(span.right for span in self.spans))
        return None

    def right_edge(self, base_font_size: float) -> float:
        """Return the right edge, estimating it from the text length when unknown.

        Parameters
        ----------
        base_font_size : float
            Font size used to estimate glyph widths

        Returns
        -------
        float
            Right edge of the line

        """
        right = self.right
        if right is not None:
            return right
        return self.x + len(self.text) * base_font_size * ESTIMATED_CHAR_WIDTH_RATIO

    @property
    def stripped_text(self) -> str:
        return self.text.strip()

    @property
    def has_bold_run(self) -> bool:
        """True if the line or any of its spans is bold."""
        return self.is_bold or any(span.is_bold for span in self.spans)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PositionedLine:
        """Build a line from a mapping.

        Both snake_case keys (``font_size``) and the camelCase keys emitted by
        browser-side extractors (``fontSize``, ``pageNum``, ``items``) are
        accepted.

        Parameters
        ----------
        data : Mapping[str, Any]
            Line description

        Returns
        -------
        PositionedLine
            The parsed line

        """
        raw_spans = data.get("spans", data.get("items", ())) or ()
        return cls(
            page=int(data.get("page", data.get("pageNum", 1)) or 1),
            x=float(data.get("x", 0.0) or 0.0),
            y=float(data.get("y", 0.0) or 0.0),
            width=float(data.get("width", 0.0) or 0.0),
            text=str(data.get("text", "") or ""),
            font_size=float(data.get("font_size", data.get("fontSize", 0.0)) or 0.0),
            is_bold=bool(data.get("is_bold", data.get("isBold", False))),
            is_italic=bool(data.get("is_italic", data.get("isItalic", False))),
            spans=tuple(TextSpan.from_dict(span) for span in raw_spans if isinstance(span, Mapping)),
        )


@dataclass(frozen=True)
class Viewport:
    """Page dimensions in the same units as line coordinates."""

    width: float = DEFAULT_VIEWPORT_WIDTH
    height: float = DEFAULT_VIEWPORT_HEIGHT


@dataclass(frozen=True)
class OutlineItem:
    """A node of a document's bookmark tree.

    Parameters
    ----------
    title : str
        Bookmark title
    items : tuple of OutlineItem, default ()
        Child bookmarks

    """

    title: str
    items: tuple[OutlineItem, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutlineItem:
        """Build an outline node from ``{"title": ..., "items": [...]}``.

        Children that are not mappings are skipped.
        """
        children = data.get("items") or ()
        return cls(
            title=str(data.get("title") or ""),
            items=tuple(cls.from_dict(child) for child in children if isinstance(child, Mapping)),
        )

    @classmethod
    def from_list(cls, data: Iterable[Any]) -> tuple[OutlineItem, ...]:
        """Build a forest of outline nodes, skipping malformed entries."""
        return tuple(cls.from_dict(entry) for entry in data if isinstance(entry, Mapping))


# =============================================================================
# Metrics and gap statistics
# =============================================================================


@dataclass(frozen=True)
class DocumentMetrics:
    """Document-wide font and spacing metrics.

    Parameters
    ----------
    base_font_size : float
        Most frequent body font size
    median_font_size : float
        Median of the sampled font sizes
    mode_spacing : float
        Most frequent vertical distance between lines
    paragraph_gap_threshold : float
        Default gap above which a paragraph break is assumed

    """

    base_font_size: float = DEFAULT_BASE_FONT_SIZE
    median_font_size: float = DEFAULT_MEDIAN_FONT_SIZE
    mode_spacing: float = DEFAULT_MODE_SPACING
    paragraph_gap_threshold: float = DEFAULT_PARAGRAPH_GAP_THRESHOLD


@dataclass(frozen=True)
class GapProfile:
    """Statistical profile of the vertical gaps of one column or page.

    A profile is derived once per gap set; gaps from different columns must
    never be mixed into one profile.
    """

    document_type: DocumentType
    homogeneity_level: float
    normal_gap_max: float
    paragraph_gap_min: float
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0
    coefficient_of_variation: float = 0.0
    p25: float = 0.0
    p75: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    confidence: float = 0.0
    close_to_mean_ratio: float = 0.0
    cluster_centers: tuple[float, ...] = ()
    small_cluster_size: int = 0
    large_cluster_size: int = 0
    gap_count: int = 0

    @property
    def is_homogeneous_spacing(self) -> bool:
        return self.document_type is DocumentType.HOMOGENEOUS or self.homogeneity_level >= 0.8


@dataclass(frozen=True)
class LineContext:
    """Textual and geometric context of the gap between two lines.

    Built by :func:`pagestruct.analyzers.gaps.build_line_context`.
    """

    current_text: str = ""
    next_text: str = ""
    current_font_size: float = DEFAULT_BASE_FONT_SIZE
    next_font_size: float = DEFAULT_BASE_FONT_SIZE
    prev_gap: Optional[float] = None
    next_gap: Optional[float] = None
    is_outlier: bool = False

    @property
    def font_size_change(self) -> float:
        return abs(self.current_font_size - self.next_font_size)


@dataclass(frozen=True)
class BlockContext:
    """Summary of the block that is open when a gap is evaluated."""

    combined_text: str = ""
    line_count: int = 0

    @property
    def block_length(self) -> int:
        return len(self.combined_text.strip())


@dataclass(frozen=True)
class GapAnalysis:
    """Gaps collected from a sequence of lines together with their profile.

    Attributes
    ----------
    gaps : tuple of float
        Positive same-page gaps in line order
    contexts : tuple of LineContext
        Context of each gap, aligned with ``gaps``
    profile : GapProfile
        Profile built from ``gaps``
    continuation_count : int
        Gaps whose text strongly suggests a continuation
    break_count : int
        Gaps whose text strongly suggests a new paragraph

    """

    gaps: tuple[float, ...]
    contexts: tuple[LineContext, ...]
    profile: GapProfile
    continuation_count: int = 0
    break_count: int = 0


# =============================================================================
# Visual structure and columns
# =============================================================================


@dataclass(frozen=True)
class Strip:
    """A fixed-width vertical slice of the page and its text density."""

    index: int
    x_start: float
    x_end: float
    line_count: int
    total_line_width: float
    coverage_ratio: float
    density: float
    is_dense: bool
    is_empty: bool
    is_empty_or_sparse: bool

    @property
    def x_center(self) -> float:
        return (self.x_start + self.x_end) / 2


@dataclass(frozen=True)
class ColumnGap:
    """An empty vertical run of strips that separates columns."""

    x_start: float
    x_end: float
    is_between_columns: bool
    strip_count: int

    @property
    def width(self) -> float:
        return self.x_end - self.x_start

    @property
    def boundary(self) -> float:
        return (self.x_start + self.x_end) / 2


@dataclass(frozen=True)
class VisualStructure:
    """Result of the density scan of one page."""

    strips: tuple[Strip, ...] = ()
    column_gaps: tuple[ColumnGap, ...] = ()
    column_boundaries: tuple[float, ...] = ()
    bucket_width: float = 0.0
    viewport: Viewport = field(default_factory=Viewport)


@dataclass(frozen=True)
class Column:
    """A horizontal range holding one reading flow of lines.

    Parameters
    ----------
    x : float
        Left edge of the column
    max_x : float
        Right edge of the column
    lines : tuple of PositionedLine
        Lines of the column sorted top to bottom

    """

    x: float
    max_x: float
    lines: tuple[PositionedLine, ...] = ()

    @property
    def width(self) -> float:
        return self.max_x - self.x

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def overlaps(self, other: Column) -> bool:
        """True if the ``[x, max_x)`` ranges of the two columns intersect."""
        return self.x < other.max_x and other.x < self.max_x


@dataclass(frozen=True)
class ColumnCandidates:
    """Columns proposed by one detection strategy."""

    method: str
    columns: tuple[Column, ...] = ()

    def __len__(self) -> int:
        return len(self.columns)


# =============================================================================
# Blocks and structural elements
# =============================================================================


@dataclass
class Block:
    """An ordered run of lines within one column.

    The block is open while lines are being appended; :meth:`close` records the
    gap that ended it and freezes the line list.
    """

    lines: list[PositionedLine] | tuple[PositionedLine, ...] = field(default_factory=list)
    start_y: float = 0.0
    end_y: float = 0.0
    total_gap: float = 0.0
    gap_count: int = 0
    boundary_gap: Optional[float] = None
    closed: bool = False

    @property
    def average_gap(self) -> float:
        return self.total_gap / self.gap_count if self.gap_count > 0 else 0.0

    @property
    def text(self) -> str:
        return " ".join(line.text.strip() for line in self.lines if line.text.strip())

    @property
    def texts(self) -> list[str]:
        return [line.text for line in self.lines]

    def add_line(self, line: PositionedLine) -> None:
        """Append a line to the open block."""
        if self.closed:
            raise RuntimeError("Cannot add lines to a closed block")
        if not self.lines:
            self.start_y = line.y
        self.lines.append(line)  # type: ignore[union-attr]
        self.end_y = line.y

    def add_gap(self, gap: float) -> None:
        """Record an in-block gap."""
        self.total_gap += gap
        self.gap_count += 1

    def close(self, boundary_gap: Optional[float] = None) -> Block:
        """Freeze the block and record the gap that closed it.

        Returns
        -------
        Block
            The block itself, for chaining

        """
        self.lines = tuple(self.lines)
        self.boundary_gap = boundary_gap
        self.closed = True
        return self


@dataclass(frozen=True)
class StructuralElement:
    """A block or heading located on a page and in a column.

    Parameters
    ----------
    kind : ElementKind
        Whether the element is a plain block or a heading
    column_index : int
        Zero-based column index, 0 on single-column pages
    lines : tuple of PositionedLine
        Lines that make up the element
    y_start : float
        Y position of the first line
    y_end : float
        Y position of the last line
    page : int
        Page number
    level : int, optional
        Heading level 1-6 for headings
    average_gap : float, default 0.0
        Average gap between the element's lines
    boundary_gap : float, optional
        Gap that separated the element from the next one

    """

    kind: ElementKind
    column_index: int
    lines: tuple[PositionedLine, ...]
    y_start: float
    y_end: float
    page: int
    level: Optional[int] = None
    average_gap: float = 0.0
    boundary_gap: Optional[float] = None

    @property
    def text(self) -> str:
        return " ".join(line.text.strip() for line in self.lines if line.text.strip())

    @property
    def texts(self) -> list[str]:
        return [line.text for line in self.lines]

    @property
    def font_size(self) -> float:
        """Largest font size among the element's lines."""
        sizes = [line.font_size for line in self.lines if _is_valid_number(line.font_size) and line.font_size > 0]
        return max(sizes) if sizes else 0.0

    @property
    def is_bold(self) -> bool:
        return bool(self.lines) and all(line.has_bold_run for line in self.lines)

    @property
    def is_italic(self) -> bool:
        return bool(self.lines) and all(line.is_italic for line in self.lines)

    def as_heading(self, level: int) -> StructuralElement:
        """Return a heading copy of this element with the given level."""
        return replace(self, kind=ElementKind.HEADING, level=level)

    @classmethod
    def from_block(cls, block: Block, column_index: int = 0) -> StructuralElement:
        """Convert a closed block into a structural element."""
        lines = tuple(block.lines)
        return cls(
            kind=ElementKind.BLOCK,
            column_index=column_index,
            lines=lines,
            y_start=block.start_y,
            y_end=block.end_y,
            page=lines[0].page if lines else 0,
            average_gap=block.average_gap,
            boundary_gap=block.boundary_gap,
        )


# =============================================================================
# Headings
# =============================================================================


@dataclass(frozen=True)
class HeadingCandidate:
    """A line or element already classified as a heading.

    Parameters
    ----------
    text : str
        Heading text
    font_size : float
        Font size of the heading
    is_bold : bool, default False
        Whether the heading is bold
    is_italic : bool, default False
        Whether the heading is italic
    numbering_depth : int, optional
        Depth of a leading enumeration such as "2.1." (depth 2)
    level : int, optional
        Assigned heading level 1-6

    """

    text: str
    font_size: float
    is_bold: bool = False
    is_italic: bool = False
    numbering_depth: Optional[int] = None
    level: Optional[int] = None

    def with_level(self, level: int) -> HeadingCandidate:
        return replace(self, level=level)


@dataclass(frozen=True)
class FontSizeHierarchy:
    """Mapping from heading font size to level built by clustering.

    Attributes
    ----------
    base_font_size : float
        Body font size used for the ratio fallback
    hierarchy : dict[float, int]
        Level of each clustered heading font size
    groups : tuple of tuple of float
        Font sizes per level, largest group first
    unique_sizes : tuple of float
        Distinct clustered font sizes, largest first

    """

    base_font_size: float
    hierarchy: dict[float, int] = field(default_factory=dict)
    groups: tuple[tuple[float, ...], ...] = ()
    unique_sizes: tuple[float, ...] = ()

    def level_for(self, font_size: float) -> Optional[int]:
        return self.hierarchy.get(font_size)


# =============================================================================
# Page and document results
# =============================================================================


@dataclass(frozen=True)
class PageLayout:
    """Layout analysis result of a single page."""

    page: int
    elements: tuple[StructuralElement, ...] = ()
    columns: tuple[Column, ...] = ()
    profiles: tuple[GapProfile, ...] = ()
    metrics: DocumentMetrics = field(default_factory=DocumentMetrics)
    visual_structure: Optional[VisualStructure] = None

    @property
    def is_multi_column(self) -> bool:
        return len(self.columns) >= 2


@dataclass(frozen=True)
class DocumentStructure:
    """Coarse summary of a document's typographic variety."""

    is_homogeneous: bool = True
    has_font_variation: bool = False
    has_style_variation: bool = False
    likely_has_headings: bool = False
    total_elements: int = 0
    unique_font_sizes: tuple[float, ...] = ()
    first_element_text: Optional[str] = None


@dataclass(frozen=True)
class PageBreakContext:
    """How one page ends and the next begins."""

    prev_ends_with_comma: bool = False
    prev_ends_with_dash: bool = False
    prev_ends_with_colon_or_semicolon: bool = False
    prev_ends_with_sentence_end: bool = False
    prev_ends_incomplete: bool = False
    next_starts_with_lowercase: bool = False
    next_starts_with_capital: bool = False
    next_starts_with_punctuation: bool = False
    prev_page_end: str = ""
    next_page_start: str = ""

    @property
    def likely_continuation(self) -> bool:
        """True when the text probably runs on across the page break."""
        return self.prev_ends_incomplete or self.next_starts_with_lowercase or self.next_starts_with_punctuation


@dataclass(frozen=True)
class DocumentLayout:
    """Layout analysis result of a whole document."""

    metrics: DocumentMetrics
    pages: tuple[PageLayout, ...] = ()
    structure: DocumentStructure = field(default_factory=DocumentStructure)
    page_breaks: tuple[PageBreakContext, ...] = ()
    outline: tuple[OutlineItem, ...] = ()

    @property
    def elements(self) -> list[StructuralElement]:
        """All elements in reading order: page, then column, then top to bottom."""
        return [element for page in self.pages for element in page.elements]
