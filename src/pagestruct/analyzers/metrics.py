#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/metrics.py
"""Document metrics: base font size, line spacing and paragraph threshold.

The metrics are computed once per document from a sample of lines on the
leading pages and feed every downstream analyzer.

"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence

from pagestruct.analyzers._statistics import is_valid_number, mode
from pagestruct.constants import (
    DEFAULT_BASE_FONT_SIZE,
    DEFAULT_METRICS_SAMPLE_PAGES,
    DEFAULT_MODE_SPACING,
    FONT_SIZE_ROUNDING_STEP,
    PARAGRAPH_THRESHOLD_FONT_MULTIPLIER,
    PARAGRAPH_THRESHOLD_SPACING_MULTIPLIER,
    SPACING_NOISE_FONT_MULTIPLIER,
)
from pagestruct.models import DocumentMetrics, PositionedLine

logger = logging.getLogger(__name__)

__all__ = ["analyze_metrics", "round_half_up", "sample_lines_for_metrics"]


def round_half_up(value: float, step: float = 1.0) -> float:
    """Round to the nearest multiple of ``step``, halves rounding up."""
    return math.floor(value / step + 0.5) * step


def sample_lines_for_metrics(
    lines: Iterable[PositionedLine], max_pages: int = DEFAULT_METRICS_SAMPLE_PAGES
) -> list[PositionedLine]:
    """Return the lines of the first ``max_pages`` distinct pages.

    Parameters
    ----------
    lines : Iterable[PositionedLine]
        All lines of the document
    max_pages : int, default 2
        Number of leading pages to keep

    Returns
    -------
    list[PositionedLine]
        Lines of the sampled pages, in input order, skipping blank lines

    """
    lines = [line for line in lines if line.text.strip()]
    pages = sorted({line.page for line in lines})[: max(1, max_pages)]
    keep = set(pages)
    return [line for line in lines if line.page in keep]


def _mode_spacing(lines: Sequence[PositionedLine], base_font_size: float) -> float | None:
    """Most frequent integer spacing between sorted Y coordinates, per page."""
    y_by_page: dict[int, list[float]] = defaultdict(list)
    for line in lines:
        if is_valid_number(line.y) and line.y > 0:
            y_by_page[line.page].append(float(line.y))

    noise_limit = base_font_size * SPACING_NOISE_FONT_MULTIPLIER
    rounded_spacings: list[float] = []
    for page in sorted(y_by_page):
        ys = sorted(y_by_page[page])
        for previous, current in zip(ys, ys[1:]):
            spacing = current - previous
            if 0 < spacing < noise_limit:
                rounded_spacings.append(round_half_up(spacing))

    return mode(rounded_spacings)


def analyze_metrics(lines: Iterable[PositionedLine], num_pages: int = 1) -> DocumentMetrics:
    """Compute document metrics from a sample of lines.

    Parameters
    ----------
    lines : Iterable[PositionedLine]
        Sample lines, usually from :func:`sample_lines_for_metrics`
    num_pages : int, default 1
        Page count of the document; values below 1 are treated as 1

    Returns
    -------
    DocumentMetrics
        Computed metrics, or the documented defaults when the sample holds no
        usable font sizes or spacings

    Notes
    -----
    The base font size is the mode of the font sizes rounded to the nearest
    0.5. Font sizes are sorted first, so on a tie the smallest tied size wins.
    Spacings of ``base_font_size * 10`` or more are treated as page-break noise.

    """
    sample = list(lines or ())
    if num_pages < 1:
        logger.debug("Invalid page count %r for metrics, using 1", num_pages)
        num_pages = 1

    if not sample:
        logger.debug("No lines sampled for metrics, using defaults")
        return DocumentMetrics()

    font_sizes = sorted(float(line.font_size) for line in sample if is_valid_number(line.font_size) and line.font_size > 0)
    base_font_size = mode(round_half_up(size, FONT_SIZE_ROUNDING_STEP) for size in font_sizes)
    if base_font_size is None:
        base_font_size = DEFAULT_BASE_FONT_SIZE
    median_font_size = font_sizes[len(font_sizes) // 2] if font_sizes else base_font_size

    mode_spacing = _mode_spacing(sample, base_font_size)
    if mode_spacing is None:
        mode_spacing = DEFAULT_MODE_SPACING

    paragraph_gap_threshold = max(
        mode_spacing * PARAGRAPH_THRESHOLD_SPACING_MULTIPLIER,
        base_font_size * PARAGRAPH_THRESHOLD_FONT_MULTIPLIER,
    )

    metrics = DocumentMetrics(
        base_font_size=base_font_size,
        median_font_size=median_font_size,
        mode_spacing=mode_spacing,
        paragraph_gap_threshold=paragraph_gap_threshold,
    )
    logger.debug(
        "Metrics computed from %d lines over %d page(s): base=%.2f median=%.2f spacing=%.2f threshold=%.2f",
        len(sample),
        num_pages,
        metrics.base_font_size,
        metrics.median_font_size,
        metrics.mode_spacing,
        metrics.paragraph_gap_threshold,
    )
    return metrics
