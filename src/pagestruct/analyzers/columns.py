#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/columns.py
"""Column detection.

Two independent strategies propose column sets for a page:

- x-clustering groups lines by their left edge and assigns every line to the
  best scoring column;
- visual-structure cuts the page at the empty vertical strips found by
  :func:`pagestruct.analyzers.visual.analyze_visual_structure`.

:func:`reconcile_columns` picks one of the proposals and
:func:`validate_columns` repairs overlapping ranges. A page that ends up with
a single column is reported as having no segmentation at all.

"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from pagestruct.analyzers._statistics import cluster_objects, is_valid_number, percentile
from pagestruct.analyzers.visual import analyze_visual_structure
from pagestruct.constants import (
    COLUMN_MIN_GAP_FONT_RATIO,
    COLUMN_RIGHT_EDGE_PERCENTILE,
    COLUMN_RIGHT_MARGIN_FONT_RATIO,
    DEFAULT_BASE_FONT_SIZE,
    DEFAULT_X_TOLERANCE,
    FIND_COLUMN_MIN_OVERLAP_RATIO,
    HORIZONTAL_SCORE_WEIGHT,
    NEAREST_COLUMN_WIDTH_RATIO,
    OVERLAP_COLUMN_WEIGHT,
    OVERLAP_LINE_WEIGHT,
    PROXIMITY_FAR_SCORE,
    PROXIMITY_MEDIUM_FONT_RATIO,
    PROXIMITY_MEDIUM_SCORE,
    PROXIMITY_NEAR_FONT_RATIO,
    PROXIMITY_NEAR_SCORE,
    PROXIMITY_SCORE_WEIGHT,
    PROXIMITY_UNKNOWN_SCORE,
    X_TOLERANCE_FONT_RATIO,
)
from pagestruct.models import Column, ColumnCandidates, DocumentMetrics, PositionedLine, Viewport, VisualStructure
from pagestruct.options import LayoutOptions

logger = logging.getLogger(__name__)

__all__ = [
    "X_CLUSTERING",
    "VISUAL_STRUCTURE",
    "column_bounds",
    "detect_columns",
    "detect_columns_by_visual_structure",
    "detect_columns_by_x_clustering",
    "find_column_for_line",
    "reconcile_columns",
    "validate_columns",
]

X_CLUSTERING = "x-clustering"
VISUAL_STRUCTURE = "visual-structure"


def _overlap(left: float, right: float, start: float, end: float) -> float:
    return max(0.0, min(right, end) - max(left, start))


def column_bounds(lines: Sequence[PositionedLine], base_font_size: float) -> tuple[float, float]:
    """Return ``(min x, 90th percentile right edge + half a font size)`` for some lines."""
    min_x = min(line.x for line in lines)
    rights = sorted(line.right_edge(base_font_size) for line in lines)
    max_x = percentile(rights, COLUMN_RIGHT_EDGE_PERCENTILE * 100) + base_font_size * COLUMN_RIGHT_MARGIN_FONT_RATIO
    return min_x, max_x


def _proximity_score(line: PositionedLine, column_lines: Sequence[PositionedLine], base_font_size: float) -> float:
    """Score how close ``line`` sits vertically to the lines already in a column."""
    if not column_lines:
        return PROXIMITY_UNKNOWN_SCORE
    distance = min(abs(line.y - other.y) for other in column_lines)
    if distance <= base_font_size * PROXIMITY_NEAR_FONT_RATIO:
        return PROXIMITY_NEAR_SCORE
    if distance <= base_font_size * PROXIMITY_MEDIUM_FONT_RATIO:
        return PROXIMITY_MEDIUM_SCORE
    return PROXIMITY_FAR_SCORE


def _assign_lines(
    lines: Sequence[PositionedLine],
    candidates: Sequence[Column],
    base_font_size: float,
    min_score: float,
) -> list[list[PositionedLine]]:
    """Give every line to the best scoring candidate, or to the nearest one.

    The score is ``0.7 * horizontal + 0.3 * proximity``. Proximity is
    measured against the lines assigned so far, or against the candidate's
    own cluster lines while none are assigned yet.
    """
    assigned: list[list[PositionedLine]] = [[] for _ in candidates]

    for line in lines:
        left = line.x
        right = line.right_edge(base_font_size)
        line_width = right - left

        best_idx: Optional[int] = None
        best_score = -1.0
        for idx, column in enumerate(candidates):
            overlap = _overlap(left, right, column.x, column.max_x)
            line_ratio = overlap / line_width if line_width > 0 else 0.0
            column_ratio = overlap / column.width if column.width > 0 else 0.0
            horizontal = line_ratio * OVERLAP_LINE_WEIGHT + column_ratio * OVERLAP_COLUMN_WEIGHT
            proximity = _proximity_score(line, assigned[idx] or column.lines, base_font_size)
            score = horizontal * HORIZONTAL_SCORE_WEIGHT + proximity * PROXIMITY_SCORE_WEIGHT
            if score > best_score:
                best_idx, best_score = idx, score

        if best_idx is not None and best_score >= min_score:
            assigned[best_idx].append(line)
            continue

        # Fall back to the column whose left edge is closest
        nearest_idx: Optional[int] = None
        nearest_distance = float("inf")
        for idx, column in enumerate(candidates):
            distance = abs(left - column.x)
            if distance < nearest_distance and distance <= column.width * NEAREST_COLUMN_WIDTH_RATIO:
                nearest_idx, nearest_distance = idx, distance
        if nearest_idx is not None:
            assigned[nearest_idx].append(line)
        else:
            logger.debug("Line at x=%.1f y=%.1f left unassigned by x-clustering", line.x, line.y)

    return assigned


def detect_columns_by_x_clustering(
    lines: Sequence[PositionedLine],
    metrics: Optional[DocumentMetrics] = None,
    options: Optional[LayoutOptions] = None,
) -> ColumnCandidates:
    """Propose columns by clustering the left edges of lines.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one page
    metrics : DocumentMetrics, optional
        Document metrics providing the base font size
    options : LayoutOptions, optional
        Minimum line counts and the assignment score threshold

    Returns
    -------
    ColumnCandidates
        Columns sorted left to right, each holding its lines sorted top to
        bottom

    Notes
    -----
    Left edges are chain-clustered with a tolerance of
    ``max(3, 2 * base_font_size)``. Each cluster seeds a candidate from the
    lines within the tolerance of its leftmost edge; candidates with fewer
    than the minimum line count are dropped. When more than one candidate
    survives, every line is reassigned by score, bounds are recomputed from
    the assigned lines and undersized columns are dropped again.

    """
    options = options or LayoutOptions()
    base_font_size = (metrics or DocumentMetrics()).base_font_size
    lines = [line for line in lines if is_valid_number(line.x) and line.x >= 0]
    if not lines:
        return ColumnCandidates(method=X_CLUSTERING)

    min_lines = options.min_lines_for(len(lines))
    tolerance = max(DEFAULT_X_TOLERANCE, base_font_size * X_TOLERANCE_FONT_RATIO)
    clusters = cluster_objects(lines, key=lambda line: line.x, tolerance=tolerance)

    candidates: list[Column] = []
    for cluster in clusters:
        anchor = cluster[0].x
        members = sorted((line for line in lines if abs(line.x - anchor) <= tolerance), key=lambda line: line.y)
        if len(members) < min_lines:
            continue
        min_x, max_x = column_bounds(members, base_font_size)
        candidates.append(Column(x=min_x, max_x=max_x, lines=tuple(members)))

    logger.debug(
        "x-clustering: %d clusters, %d candidates (tolerance %.1f, min lines %d)",
        len(clusters),
        len(candidates),
        tolerance,
        min_lines,
    )

    if len(candidates) > 1:
        assigned = _assign_lines(lines, candidates, base_font_size, options.column_assignment_min_score)
        columns = []
        for column_lines in assigned:
            if len(column_lines) < min_lines:
                continue
            min_x, max_x = column_bounds(column_lines, base_font_size)
            columns.append(Column(x=min_x, max_x=max_x, lines=tuple(sorted(column_lines, key=lambda line: line.y))))
        candidates = columns

    candidates.sort(key=lambda column: column.x)
    return ColumnCandidates(method=X_CLUSTERING, columns=tuple(candidates))


def detect_columns_by_visual_structure(
    lines: Sequence[PositionedLine],
    viewport: Optional[Viewport] = None,
    metrics: Optional[DocumentMetrics] = None,
    options: Optional[LayoutOptions] = None,
    structure: Optional[VisualStructure] = None,
) -> ColumnCandidates:
    """Propose columns from the empty vertical strips of a page.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one page
    viewport : Viewport, optional
        Page dimensions
    metrics : DocumentMetrics, optional
        Document metrics providing the base font size
    options : LayoutOptions, optional
        Minimum line counts, overlap ratio and strip width settings
    structure : VisualStructure, optional
        A precomputed scan of the same lines; computed when omitted

    Returns
    -------
    ColumnCandidates
        One column per span between consecutive boundaries (page edges
        included) that holds enough lines. A line belongs to the first span
        that covers at least ``column_overlap_ratio`` of its width.

    """
    options = options or LayoutOptions()
    metrics = metrics or DocumentMetrics()
    if not lines:
        return ColumnCandidates(method=VISUAL_STRUCTURE)

    if structure is None:
        structure = analyze_visual_structure(lines, viewport, metrics, options)
    if not structure.column_boundaries:
        return ColumnCandidates(method=VISUAL_STRUCTURE)

    base_font_size = metrics.base_font_size
    min_lines = options.min_lines_for(len(lines))
    edges = [0.0, *structure.column_boundaries, structure.viewport.width]

    taken: set[int] = set()
    columns: list[Column] = []
    for start, end in zip(edges, edges[1:]):
        members = []
        for idx, line in enumerate(lines):
            if idx in taken:
                continue
            right = line.right_edge(base_font_size)
            width = right - line.x
            ratio = _overlap(line.x, right, start, end) / width if width > 0 else 0.0
            if ratio >= options.column_overlap_ratio:
                members.append((idx, line))
        if len(members) < min_lines:
            continue
        taken.update(idx for idx, _ in members)
        column_lines = sorted((line for _, line in members), key=lambda line: line.y)
        min_x, max_x = column_bounds(column_lines, base_font_size)
        columns.append(Column(x=min_x, max_x=max_x, lines=tuple(column_lines)))

    columns.sort(key=lambda column: column.x)
    return ColumnCandidates(method=VISUAL_STRUCTURE, columns=tuple(columns))


def reconcile_columns(x_result: ColumnCandidates, visual_result: ColumnCandidates) -> ColumnCandidates:
    """Choose between the two column proposals.

    When one proposal is empty the other wins. When both found the same
    number of columns the visual-structure proposal wins; otherwise the one
    with more columns wins.
    """
    if not x_result and not visual_result:
        return ColumnCandidates(method="none")
    if not x_result:
        return visual_result
    if not visual_result:
        return x_result
    if len(x_result) == len(visual_result):
        return visual_result
    return visual_result if len(visual_result) > len(x_result) else x_result


def validate_columns(columns: Sequence[Column], base_font_size: float = DEFAULT_BASE_FONT_SIZE) -> list[Column]:
    """Repair overlapping column ranges.

    Columns are sorted by their left edge. Where a column starts before its
    left neighbour ends, both are cut at the midpoint. Columns that are
    closer than ``1.5 * base_font_size`` are logged and kept.

    Parameters
    ----------
    columns : Sequence[Column]
        Columns to validate
    base_font_size : float, default 12.0
        Body font size

    Returns
    -------
    list[Column]
        Columns sorted left to right whose ``[x, max_x)`` ranges do not
        overlap

    """
    ordered = sorted(columns, key=lambda column: column.x)
    validated: list[Column] = []
    min_gap = base_font_size * COLUMN_MIN_GAP_FONT_RATIO

    for column in ordered:
        if column.max_x < column.x:
            column = replace(column, max_x=column.x)
        if not validated:
            validated.append(column)
            continue

        previous = validated[-1]
        gap = column.x - previous.max_x
        if gap < 0:
            midpoint = max(previous.x, (previous.max_x + column.x) / 2)
            logger.warning(
                "Columns at x=%.1f and x=%.1f overlap by %.1f, splitting at %.1f",
                previous.x,
                column.x,
                -gap,
                midpoint,
            )
            validated[-1] = replace(previous, max_x=midpoint)
            column = replace(column, x=midpoint, max_x=max(column.max_x, midpoint))
        elif gap < min_gap:
            logger.warning("Columns at x=%.1f and x=%.1f are only %.1f apart", previous.x, column.x, gap)
        validated.append(column)

    return validated


def find_column_for_line(
    line: PositionedLine, columns: Sequence[Column], base_font_size: float = DEFAULT_BASE_FONT_SIZE
) -> Optional[int]:
    """Return the index of the column a line belongs to.

    The column containing the line's horizontal center wins; otherwise the
    column covering the largest share of the line, if that share is at least
    30%.

    Parameters
    ----------
    line : PositionedLine
        Line to place
    columns : Sequence[Column]
        Candidate columns
    base_font_size : float, default 12.0
        Used to estimate the right edge of lines without a width

    Returns
    -------
    int or None
        Index into ``columns``, or None when no column fits

    """
    right = line.right_edge(base_font_size)
    center = (line.x + right) / 2
    for idx, column in enumerate(columns):
        if column.x <= center < column.max_x:
            return idx

    width = right - line.x
    if width <= 0:
        return None
    best_idx: Optional[int] = None
    best_ratio = FIND_COLUMN_MIN_OVERLAP_RATIO
    for idx, column in enumerate(columns):
        ratio = _overlap(line.x, right, column.x, column.max_x) / width
        if ratio >= best_ratio:
            best_idx, best_ratio = idx, ratio
    return best_idx


def detect_columns(
    lines: Sequence[PositionedLine],
    viewport: Optional[Viewport] = None,
    metrics: Optional[DocumentMetrics] = None,
    options: Optional[LayoutOptions] = None,
    structure: Optional[VisualStructure] = None,
) -> list[Column]:
    """Detect the columns of a page.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one page
    viewport : Viewport, optional
        Page dimensions
    metrics : DocumentMetrics, optional
        Document metrics providing the base font size
    options : LayoutOptions, optional
        Column detection settings
    structure : VisualStructure, optional
        A precomputed visual scan of the same lines

    Returns
    -------
    list[Column]
        Two or more validated columns sorted left to right, or an empty list
        when the page is a single column

    """
    lines = list(lines or ())
    if not lines:
        return []
    metrics = metrics or DocumentMetrics()

    x_result = detect_columns_by_x_clustering(lines, metrics, options)
    visual_result = detect_columns_by_visual_structure(lines, viewport, metrics, options, structure)
    chosen = reconcile_columns(x_result, visual_result)
    logger.debug(
        "Column proposals: %s=%d %s=%d, chose %s",
        x_result.method,
        len(x_result),
        visual_result.method,
        len(visual_result),
        chosen.method,
    )

    if len(chosen) <= 1:
        return []
    return validate_columns(chosen.columns, metrics.base_font_size)
