#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/layout.py
"""Page and document layout analysis.

This module ties the analyzers together. A page is split into columns, each
column gets its own gap profile, and its lines are grouped into blocks that
become :class:`~pagestruct.models.StructuralElement` objects in reading order.

Examples
--------
Analyze the lines of one page:

    >>> from pagestruct import PositionedLine, analyze_page
    >>> lines = [
    ...     PositionedLine(page=1, x=50, y=0, width=60, text="Title", font_size=24),
    ...     PositionedLine(page=1, x=50, y=40, width=300, text="Body text.", font_size=12),
    ... ]
    >>> [element.text for element in analyze_page(lines).elements]
    ['Title', 'Body text.']

"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any, Optional, Union

from pagestruct.analyzers.blocks import analyze_text_blocks
from pagestruct.analyzers.columns import detect_columns, find_column_for_line
from pagestruct.analyzers.gaps import build_gap_profile, collect_gaps
from pagestruct.analyzers.headings import assign_heading_levels
from pagestruct.analyzers.metrics import analyze_metrics, sample_lines_for_metrics
from pagestruct.analyzers.structure import analyze_page_break, analyze_structure
from pagestruct.analyzers.visual import analyze_visual_structure
from pagestruct.constants import DEFAULT_BASE_FONT_SIZE
from pagestruct.models import (
    Column,
    DocumentLayout,
    DocumentMetrics,
    GapProfile,
    HeadingCandidate,
    OutlineItem,
    PageLayout,
    PositionedLine,
    StructuralElement,
    Viewport,
)
from pagestruct.options import LayoutOptions

logger = logging.getLogger(__name__)

__all__ = ["analyze_document", "analyze_page", "promote_headings"]


def _top_to_bottom(lines: Iterable[PositionedLine]) -> list[PositionedLine]:
    return sorted(lines, key=lambda line: (line.page, line.y))


def _nearest_column(line: PositionedLine, columns: Sequence[Column], base_font_size: float) -> int:
    center = (line.x + line.right_edge(base_font_size)) / 2
    return min(range(len(columns)), key=lambda idx: abs(center - (columns[idx].x + columns[idx].max_x) / 2))


def _attach_orphan_lines(
    lines: Sequence[PositionedLine], columns: Sequence[Column], base_font_size: float
) -> list[Column]:
    """Give every page line to exactly one column, each column sorted top to bottom.

    Lines the column detector left unassigned go to the column that contains
    them, or to the nearest one.
    """
    owner: dict[int, int] = {}
    for idx, column in enumerate(columns):
        for line in column.lines:
            owner.setdefault(id(line), idx)

    column_lines: list[list[PositionedLine]] = [[] for _ in columns]
    orphans = 0
    for line in lines:
        idx = owner.get(id(line))
        if idx is None:
            orphans += 1
            idx = find_column_for_line(line, columns, base_font_size)
            if idx is None:
                idx = _nearest_column(line, columns, base_font_size)
        column_lines[idx].append(line)

    if orphans:
        logger.debug("Attached %d unassigned line(s) to columns", orphans)
    return [replace(column, lines=tuple(_top_to_bottom(assigned))) for column, assigned in zip(columns, column_lines)]


def _column_elements(
    lines: Sequence[PositionedLine], column_index: int, metrics: DocumentMetrics
) -> tuple[GapProfile, list[StructuralElement]]:
    profile = build_gap_profile(collect_gaps(lines))
    blocks = analyze_text_blocks(lines, profile, metrics)
    return profile, [StructuralElement.from_block(block, column_index) for block in blocks]


def analyze_page(
    lines: Sequence[PositionedLine],
    viewport: Optional[Viewport] = None,
    metrics: Optional[DocumentMetrics] = None,
    options: Optional[LayoutOptions] = None,
) -> PageLayout:
    """Split one page into structural elements.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of a single page, in any order
    viewport : Viewport, optional
        Page dimensions; defaults to the options' default viewport
    metrics : DocumentMetrics, optional
        Document metrics; computed from ``lines`` when omitted
    options : LayoutOptions, optional
        Layout analysis settings

    Returns
    -------
    PageLayout
        Elements in reading order. On a multi-column page each column is
        analyzed with a gap profile built from its own lines only, and the
        columns are emitted left to right, each top to bottom, with every
        element tagged by its column index. Empty input yields an empty
        layout.

    """
    options = options or LayoutOptions()
    lines = list(lines or ())
    if not lines:
        return PageLayout(page=0, metrics=metrics or DocumentMetrics())

    page = lines[0].page
    metrics = metrics or analyze_metrics(lines)
    viewport = viewport or Viewport(options.default_viewport_width, options.default_viewport_height)

    structure = None
    columns: list[Column] = []
    if options.detect_columns:
        structure = analyze_visual_structure(lines, viewport, metrics, options)
        columns = detect_columns(lines, viewport, metrics, options, structure)

    if len(columns) < 2:
        profile, elements = _column_elements(_top_to_bottom(lines), 0, metrics)
        logger.debug("Page %s: single column, %d elements", page, len(elements))
        return PageLayout(
            page=page,
            elements=tuple(elements),
            profiles=(profile,),
            metrics=metrics,
            visual_structure=structure,
        )

    columns = _attach_orphan_lines(lines, columns, metrics.base_font_size)
    profiles: list[GapProfile] = []
    elements = []
    for idx, column in enumerate(columns):
        profile, column_elements = _column_elements(column.lines, idx, metrics)
        profiles.append(profile)
        elements.extend(column_elements)

    logger.debug(
        "Page %s: %d columns (%s), %d elements",
        page,
        len(columns),
        ", ".join(f"{column.x:.0f}-{column.max_x:.0f}" for column in columns),
        len(elements),
    )
    return PageLayout(
        page=page,
        elements=tuple(elements),
        columns=tuple(columns),
        profiles=tuple(profiles),
        metrics=metrics,
        visual_structure=structure,
    )


def _group_by_page(lines: Iterable[PositionedLine]) -> dict[int, list[PositionedLine]]:
    pages: dict[int, list[PositionedLine]] = {}
    for line in lines:
        pages.setdefault(line.page, []).append(line)
    return dict(sorted(pages.items()))


def _normalize_outline(outline: Optional[Iterable[Any]]) -> tuple[OutlineItem, ...]:
    if not outline:
        return ()
    return tuple(
        entry if isinstance(entry, OutlineItem) else OutlineItem.from_dict(entry)
        for entry in outline
        if isinstance(entry, (OutlineItem, Mapping))
    )


def analyze_document(
    lines: Iterable[PositionedLine],
    viewports: Optional[Mapping[int, Viewport]] = None,
    outline: Optional[Iterable[Union[OutlineItem, Mapping[str, Any]]]] = None,
    options: Optional[LayoutOptions] = None,
) -> DocumentLayout:
    """Analyze every page of a document.

    Parameters
    ----------
    lines : Iterable[PositionedLine]
        All lines of the document, in page order
    viewports : Mapping[int, Viewport], optional
        Page dimensions keyed by page number; missing pages use the options'
        default viewport
    outline : Iterable of OutlineItem or mapping, optional
        Document bookmarks, kept on the result for :func:`promote_headings`.
        Malformed entries are dropped.
    options : LayoutOptions, optional
        Layout analysis settings

    Returns
    -------
    DocumentLayout
        Metrics computed from the first ``options.metrics_sample_pages``
        pages, one :class:`PageLayout` per page in page order, a structure
        summary and one page-break context per pair of consecutive pages

    """
    options = options or LayoutOptions()
    viewports = viewports or {}
    by_page = _group_by_page(lines)

    sample = sample_lines_for_metrics(
        (line for page_lines in by_page.values() for line in page_lines), options.metrics_sample_pages
    )
    metrics = analyze_metrics(sample, num_pages=len(by_page))

    pages = [
        analyze_page(page_lines, viewports.get(page), metrics, options) for page, page_lines in by_page.items()
    ]

    page_breaks = []
    for previous, following in zip(pages, pages[1:]):
        prev_text = previous.elements[-1].text if previous.elements else ""
        next_text = following.elements[0].text if following.elements else ""
        page_breaks.append(analyze_page_break(prev_text, next_text))

    elements = [element for page in pages for element in page.elements]
    logger.info("Analyzed %d page(s) into %d elements", len(pages), len(elements))
    return DocumentLayout(
        metrics=metrics,
        pages=tuple(pages),
        structure=analyze_structure(elements),
        page_breaks=tuple(page_breaks),
        outline=_normalize_outline(outline),
    )


def promote_headings(
    elements: Sequence[StructuralElement],
    heading_indices: Collection[int],
    base_font_size: float = DEFAULT_BASE_FONT_SIZE,
    outline: Optional[Sequence[Union[OutlineItem, Mapping[str, Any]]]] = None,
) -> list[StructuralElement]:
    """Turn classified elements into leveled headings.

    Parameters
    ----------
    elements : Sequence[StructuralElement]
        Elements in reading order
    heading_indices : Collection[int]
        Indices of the elements a classifier identified as headings
    base_font_size : float, default 12.0
        Body font size of the document
    outline : Sequence of OutlineItem or mapping, optional
        Document bookmarks used to corroborate levels

    Returns
    -------
    list[StructuralElement]
        Copy of ``elements`` with the selected ones converted to headings.
        Indices outside ``elements`` are ignored.

    Examples
    --------
    >>> layout = analyze_document(lines)  # doctest: +SKIP
    >>> promote_headings(layout.elements, {0, 3}, layout.metrics.base_font_size, layout.outline)  # doctest: +SKIP

    """
    result = list(elements)
    indices = sorted({idx for idx in heading_indices if 0 <= idx < len(result)})
    skipped = len(set(heading_indices)) - len(indices)
    if skipped:
        logger.warning("Ignoring %d heading index(es) outside the element list", skipped)
    if not indices:
        return result

    candidates = [
        HeadingCandidate(
            text=result[idx].text,
            font_size=result[idx].font_size,
            is_bold=result[idx].is_bold,
            is_italic=result[idx].is_italic,
        )
        for idx in indices
    ]
    for idx, heading in zip(indices, assign_heading_levels(candidates, base_font_size, outline)):
        result[idx] = result[idx].as_heading(heading.level)
    return result
