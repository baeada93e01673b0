#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/visual.py
"""Visual structure scan for column gap detection.

The page is cut into narrow vertical strips and the amount of text that falls
into each strip is measured. Runs of empty or sparse strips flanked by dense
ones are the white gutters between columns.

"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Optional

from pagestruct.constants import (
    COLUMN_GAP_MIN_BUCKETS,
    COLUMN_GAP_MIN_FONT_RATIO,
    COLUMN_GAP_PROXIMITY_FONT_RATIO,
    COLUMN_GAP_WIDE_FONT_RATIO,
    DENSE_AVERAGE_RATIO,
    DENSE_COVERAGE_RATIO,
    DENSE_MAX_DENSITY_RATIO,
    DENSE_SOME_COVERAGE_RATIO,
    SPARSE_AVERAGE_RATIO,
    SPARSE_COVERAGE_RATIO,
    Y_COVERAGE_QUANTUM,
)
from pagestruct.models import ColumnGap, DocumentMetrics, PositionedLine, Strip, Viewport, VisualStructure
from pagestruct.options import LayoutOptions

logger = logging.getLogger(__name__)

__all__ = ["analyze_visual_structure", "is_column_gap", "render_density_map"]


def _measure_strips(
    lines: Sequence[PositionedLine], viewport: Viewport, bucket_width: float, base_font_size: float
) -> list[Strip]:
    """Count the text that overlaps each strip and classify its density."""
    num_buckets = max(1, math.ceil(viewport.width / bucket_width))
    counts = [0] * num_buckets
    widths = [0.0] * num_buckets
    coverage: list[set[int]] = [set() for _ in range(num_buckets)]

    for line in lines:
        left = line.x
        right = line.right_edge(base_font_size)
        start = max(0, math.floor(left / bucket_width))
        end = min(num_buckets, math.ceil(right / bucket_width))
        for idx in range(start, end):
            x_start = idx * bucket_width
            overlap = min(right, x_start + bucket_width) - max(left, x_start)
            if overlap > 0:
                counts[idx] += 1
                widths[idx] += overlap
                coverage[idx].add(math.floor(line.y / Y_COVERAGE_QUANTUM))

    average_count = len(lines) / num_buckets
    max_density = max(counts) / bucket_width
    coverage_cells = viewport.height / Y_COVERAGE_QUANTUM

    strips = []
    for idx in range(num_buckets):
        count = counts[idx]
        coverage_ratio = len(coverage[idx]) / coverage_cells if coverage_cells > 0 else 0.0
        density = count / bucket_width
        is_dense = (
            count >= average_count * DENSE_AVERAGE_RATIO
            or coverage_ratio >= DENSE_COVERAGE_RATIO
            or (count > 0 and coverage_ratio >= DENSE_SOME_COVERAGE_RATIO)
            or (density > 0 and density >= max_density * DENSE_MAX_DENSITY_RATIO)
        )
        is_empty_or_sparse = count == 0 or (
            count < average_count * SPARSE_AVERAGE_RATIO and coverage_ratio < SPARSE_COVERAGE_RATIO
        )
        strips.append(
            Strip(
                index=idx,
                x_start=idx * bucket_width,
                x_end=(idx + 1) * bucket_width,
                line_count=count,
                total_line_width=widths[idx],
                coverage_ratio=coverage_ratio,
                density=density,
                is_dense=is_dense,
                is_empty=count == 0,
                is_empty_or_sparse=is_empty_or_sparse,
            )
        )
    return strips


def _left_neighbour_is_dense(strips: Sequence[Strip], run_start: int) -> bool:
    """Whether the strip left of a run starting at ``run_start`` is dense; a run at the page edge has none."""
    return run_start > 0 and strips[run_start - 1].is_dense


def _find_column_gaps(strips: Sequence[Strip], bucket_width: float, base_font_size: float) -> list[ColumnGap]:
    """Scan the strips left to right for runs of empty space wide enough to split columns."""
    min_width = max(base_font_size * COLUMN_GAP_MIN_FONT_RATIO, bucket_width * COLUMN_GAP_MIN_BUCKETS)
    wide_width = base_font_size * COLUMN_GAP_WIDE_FONT_RATIO
    gaps: list[ColumnGap] = []
    run: list[Strip] = []

    for idx, strip in enumerate(strips):
        if strip.is_empty_or_sparse:
            run.append(strip)
            continue
        if run:
            width = run[-1].x_end - run[0].x_start
            left_is_dense = _left_neighbour_is_dense(strips, idx - len(run))
            is_between_columns = left_is_dense and strip.is_dense
            if width >= min_width and (is_between_columns or width >= wide_width):
                gaps.append(
                    ColumnGap(
                        x_start=run[0].x_start,
                        x_end=run[-1].x_end,
                        is_between_columns=is_between_columns,
                        strip_count=len(run),
                    )
                )
            run = []

    # A run reaching the right edge only counts when text sits to its left
    if run:
        width = run[-1].x_end - run[0].x_start
        left_is_dense = _left_neighbour_is_dense(strips, len(strips) - len(run))
        if width >= min_width and left_is_dense:
            gaps.append(
                ColumnGap(x_start=run[0].x_start, x_end=run[-1].x_end, is_between_columns=False, strip_count=len(run))
            )
    return gaps


def _unique_boundaries(gaps: Sequence[ColumnGap], base_font_size: float) -> list[float]:
    """Midpoints of the gaps, dropping any closer than one font size to the previous kept one."""
    unique: list[float] = []
    for boundary in sorted(gap.boundary for gap in gaps):
        if not unique or boundary - unique[-1] >= base_font_size:
            unique.append(boundary)
    return unique


def render_density_map(structure: VisualStructure) -> str:
    """Render the strips as a one-line map.

    Dense strips are drawn as ``█``, sparse strips as ``░`` and empty strips
    as a space.
    """
    chars = []
    for strip in structure.strips:
        if strip.is_empty:
            chars.append(" ")
        elif strip.is_dense:
            chars.append("█")
        else:
            chars.append("░")
    return "".join(chars)


def analyze_visual_structure(
    lines: Sequence[PositionedLine],
    viewport: Optional[Viewport] = None,
    metrics: Optional[DocumentMetrics] = None,
    options: Optional[LayoutOptions] = None,
) -> VisualStructure:
    """Find the empty vertical strips that separate columns on a page.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one page
    viewport : Viewport, optional
        Page dimensions; defaults to the options' default viewport
    metrics : DocumentMetrics, optional
        Document metrics providing the base font size
    options : LayoutOptions, optional
        Strip width settings

    Returns
    -------
    VisualStructure
        Strips, qualifying column gaps and the sorted, de-duplicated column
        boundaries. Empty input yields a structure with no strips.

    Notes
    -----
    Strips are ``max(min_bucket_width, base_font_size * bucket_width_ratio)``
    wide. A run of empty or sparse strips is a column gap when it is at least
    ``max(1.2 * base, 2 * strip width)`` wide and either lies between two
    dense strips or is at least ``2.5 * base`` wide. A run touching the right
    page edge qualifies when the strip to its left is dense.

    """
    options = options or LayoutOptions()
    metrics = metrics or DocumentMetrics()
    viewport = viewport or Viewport(options.default_viewport_width, options.default_viewport_height)

    if not lines:
        return VisualStructure(viewport=viewport)

    base_font_size = metrics.base_font_size
    bucket_width = max(options.min_bucket_width, base_font_size * options.bucket_width_ratio)

    strips = _measure_strips(lines, viewport, bucket_width, base_font_size)
    column_gaps = _find_column_gaps(strips, bucket_width, base_font_size)
    boundaries = _unique_boundaries(column_gaps, base_font_size)

    structure = VisualStructure(
        strips=tuple(strips),
        column_gaps=tuple(column_gaps),
        column_boundaries=tuple(boundaries),
        bucket_width=bucket_width,
        viewport=viewport,
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Density map |%s|", render_density_map(structure))
        for gap in column_gaps:
            logger.debug(
                "Column gap %.1f-%.1f (%d strips, between columns: %s)",
                gap.x_start,
                gap.x_end,
                gap.strip_count,
                gap.is_between_columns,
            )
    return structure


def is_column_gap(x: float, structure: Optional[VisualStructure], base_font_size: float) -> bool:
    """Report whether an x-position falls in or near a detected column gap.

    Parameters
    ----------
    x : float
        Horizontal position to test
    structure : VisualStructure, optional
        Result of :func:`analyze_visual_structure`
    base_font_size : float
        Body font size; positions within twice this distance of a boundary
        count as inside the gap

    Returns
    -------
    bool
        True if ``x`` lies inside a gap or close to a column boundary

    """
    if structure is None or not structure.column_gaps:
        return False
    if any(gap.x_start <= x <= gap.x_end for gap in structure.column_gaps):
        return True
    tolerance = base_font_size * COLUMN_GAP_PROXIMITY_FONT_RATIO
    return any(abs(x - boundary) <= tolerance for boundary in structure.column_boundaries)
