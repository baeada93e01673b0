#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for page layout analysis.

This module defines the options that tune column detection, the visual
structure scan and document-level sampling. Thresholds that are not exposed
here live in :mod:`pagestruct.constants`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pagestruct.constants import (
    BUCKET_WIDTH_FONT_RATIO,
    DEFAULT_COLUMN_ASSIGNMENT_MIN_SCORE,
    DEFAULT_COLUMN_OVERLAP_RATIO,
    DEFAULT_METRICS_SAMPLE_PAGES,
    DEFAULT_MIN_COLUMN_LINE_FRACTION,
    DEFAULT_MIN_LINES_PER_COLUMN,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    MIN_BUCKET_WIDTH,
)
from pagestruct.options.base import CloneFrozenMixin


# src/pagestruct/options/layout.py
@dataclass(frozen=True)
class LayoutOptions(CloneFrozenMixin):
    """Configuration options for layout analysis.

    Parameters
    ----------
    metrics_sample_pages : int, default 2
        Number of leading pages sampled to compute document metrics.
    min_lines_per_column : int, default 3
        Absolute minimum number of lines a column must hold.
    min_column_line_fraction : float, default 0.05
        Minimum share of the page's lines a column must hold. The effective
        minimum is ``max(min_lines_per_column, floor(fraction * total_lines))``.
    column_assignment_min_score : float, default 0.40
        Minimum combined horizontal/proximity score for assigning a line to
        an x-clustered column before falling back to the nearest column.
    column_overlap_ratio : float, default 0.5
        Share of a line's width that must fall inside a visual-structure span
        for the line to belong to it.
    min_bucket_width : float, default 10.0
        Lower bound for the width of the vertical strips used by the visual
        structure scan, in page units.
    bucket_width_ratio : float, default 0.5
        Strip width as a fraction of the base font size.
    detect_columns : bool, default True
        Whether to run column detection at all. When False every page is
        analyzed as a single column.
    default_viewport_width : float, default 800.0
        Page width used when no viewport is supplied for a page.
    default_viewport_height : float, default 600.0
        Page height used when no viewport is supplied for a page.

    """

    metrics_sample_pages: int = field(
        default=DEFAULT_METRICS_SAMPLE_PAGES,
        metadata={"help": "Leading pages sampled for base font size and spacing", "importance": "core"},
    )
    min_lines_per_column: int = field(
        default=DEFAULT_MIN_LINES_PER_COLUMN,
        metadata={"help": "Absolute minimum number of lines per detected column", "importance": "advanced"},
    )
    min_column_line_fraction: float = field(
        default=DEFAULT_MIN_COLUMN_LINE_FRACTION,
        metadata={"help": "Minimum share of page lines per detected column (0.0-1.0)", "importance": "advanced"},
    )
    column_assignment_min_score: float = field(
        default=DEFAULT_COLUMN_ASSIGNMENT_MIN_SCORE,
        metadata={"help": "Minimum score to assign a line to an x-clustered column", "importance": "advanced"},
    )
    column_overlap_ratio: float = field(
        default=DEFAULT_COLUMN_OVERLAP_RATIO,
        metadata={"help": "Share of a line that must overlap a visual column span", "importance": "advanced"},
    )
    min_bucket_width: float = field(
        default=MIN_BUCKET_WIDTH,
        metadata={"help": "Minimum width of density strips for column gap detection", "importance": "advanced"},
    )
    bucket_width_ratio: float = field(
        default=BUCKET_WIDTH_FONT_RATIO,
        metadata={"help": "Density strip width as a fraction of the base font size", "importance": "advanced"},
    )
    detect_columns: bool = field(
        default=True,
        metadata={"help": "Detect multi-column layouts before grouping lines into blocks", "importance": "core"},
    )
    default_viewport_width: float = field(
        default=DEFAULT_VIEWPORT_WIDTH,
        metadata={"help": "Page width assumed when a page has no viewport", "importance": "advanced"},
    )
    default_viewport_height: float = field(
        default=DEFAULT_VIEWPORT_HEIGHT,
        metadata={"help": "Page height assumed when a page has no viewport", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate numeric ranges for layout options.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.metrics_sample_pages < 1:
            raise ValueError(f"metrics_sample_pages must be at least 1, got {self.metrics_sample_pages}")
        if self.min_lines_per_column < 1:
            raise ValueError(f"min_lines_per_column must be at least 1, got {self.min_lines_per_column}")

        # Validate ratio thresholds (0.0-1.0)
        for name in ("min_column_line_fraction", "column_assignment_min_score", "column_overlap_ratio"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in range [0.0, 1.0], got {value}")

        # Validate positive values
        for name in ("min_bucket_width", "bucket_width_ratio", "default_viewport_width", "default_viewport_height"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def min_lines_for(self, total_lines: int) -> int:
        """Return the minimum line count for a column on a page.

        Parameters
        ----------
        total_lines : int
            Number of lines on the page

        Returns
        -------
        int
            ``max(min_lines_per_column, floor(total_lines * min_column_line_fraction))``

        """
        return max(self.min_lines_per_column, int(total_lines * self.min_column_line_fraction))
