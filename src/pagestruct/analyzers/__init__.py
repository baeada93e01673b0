#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Layout analyzers.

Each module covers one step of page analysis and can be used on its own:

- :mod:`~pagestruct.analyzers.metrics`: base font size and line spacing
- :mod:`~pagestruct.analyzers.gaps`: vertical gap statistics and paragraph boundaries
- :mod:`~pagestruct.analyzers.visual`: empty vertical strips between columns
- :mod:`~pagestruct.analyzers.columns`: column detection and reconciliation
- :mod:`~pagestruct.analyzers.blocks`: grouping the lines of a column into blocks
- :mod:`~pagestruct.analyzers.headings`: heading level assignment
- :mod:`~pagestruct.analyzers.structure`: document summaries and page breaks
"""

from __future__ import annotations

from pagestruct.analyzers.blocks import (
    BOUNDARY_RULES,
    BoundaryRule,
    LinePair,
    analyze_text_blocks,
    evaluate_boundary_rules,
    is_block_boundary,
)
from pagestruct.analyzers.columns import (
    detect_columns,
    detect_columns_by_visual_structure,
    detect_columns_by_x_clustering,
    find_column_for_line,
    reconcile_columns,
    validate_columns,
)
from pagestruct.analyzers.gaps import (
    analyze_gaps,
    build_gap_profile,
    build_line_context,
    cluster_gaps,
    collect_gaps,
    is_paragraph_boundary,
)
from pagestruct.analyzers.headings import (
    HeadingHierarchyAnalyzer,
    analyze_font_size_hierarchy,
    assign_heading_levels,
    determine_heading_level,
    extract_numbering_level,
    match_heading_to_outline,
    validate_heading_hierarchy,
)
from pagestruct.analyzers.metrics import analyze_metrics, sample_lines_for_metrics
from pagestruct.analyzers.structure import analyze_page_break, analyze_structure
from pagestruct.analyzers.visual import analyze_visual_structure, is_column_gap

__all__ = [
    "BOUNDARY_RULES",
    "BoundaryRule",
    "HeadingHierarchyAnalyzer",
    "LinePair",
    "analyze_font_size_hierarchy",
    "analyze_gaps",
    "analyze_metrics",
    "analyze_page_break",
    "analyze_structure",
    "analyze_text_blocks",
    "analyze_visual_structure",
    "assign_heading_levels",
    "build_gap_profile",
    "build_line_context",
    "cluster_gaps",
    "collect_gaps",
    "detect_columns",
    "detect_columns_by_visual_structure",
    "detect_columns_by_x_clustering",
    "determine_heading_level",
    "evaluate_boundary_rules",
    "extract_numbering_level",
    "find_column_for_line",
    "is_block_boundary",
    "is_column_gap",
    "is_paragraph_boundary",
    "match_heading_to_outline",
    "reconcile_columns",
    "sample_lines_for_metrics",
    "validate_columns",
    "validate_heading_hierarchy",
]
