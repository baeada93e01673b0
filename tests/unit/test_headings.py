"""Unit tests for heading level assignment.

Covers font size clustering, outline and numbering lookups, the ratio band
fallback and the monotonic hierarchy pass.
"""

import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pagestruct.analyzers.headings import (
    HeadingHierarchyAnalyzer,
    analyze_font_size_hierarchy,
    assign_heading_levels,
    determine_heading_level,
    extract_numbering_level,
    match_heading_to_outline,
    normalize_font_size,
    ratio_band_level,
    validate_heading_hierarchy,
)
from pagestruct.models import HeadingCandidate, OutlineItem

OUTLINE = [
    OutlineItem("Introduction", (OutlineItem("Background"),)),
    OutlineItem("Methods and Materials", (OutlineItem("Data Collection"),)),
]


def _headings(*specs):
    return [HeadingCandidate(text=text, font_size=size) for text, size in specs]


@pytest.mark.unit
class TestNormalizeFontSize:
    """Test font size sanitizing."""

    @pytest.mark.parametrize("value", [math.nan, math.inf, -1.0, 0, "12", None, True])
    def test_invalid_sizes(self, value):
        """Test that unusable sizes are rejected."""
        assert normalize_font_size(value) is None

    def test_clamping(self):
        """Test that sizes are clamped into the supported range."""
        assert normalize_font_size(0.01) == 0.1
        assert normalize_font_size(5000) == 1000.0
        assert normalize_font_size(14) == 14.0


@pytest.mark.unit
class TestFontSizeHierarchy:
    """Test clustering of heading font sizes."""

    def test_distinct_sizes(self):
        """Test that clearly different sizes get their own levels."""
        hierarchy = analyze_font_size_hierarchy(_headings(("A", 24), ("B", 18), ("C", 18), ("D", 14)))
        assert hierarchy.hierarchy == {24.0: 1, 18.0: 2, 14.0: 3}
        assert hierarchy.unique_sizes == (24.0, 18.0, 14.0)

    def test_singleton_joins_nearby_group(self):
        """Test that a lone size close to a group joins it."""
        hierarchy = analyze_font_size_hierarchy(_headings(("A", 20), ("B", 18), ("C", 18)))
        assert hierarchy.level_for(20.0) == 1
        assert hierarchy.level_for(18.0) == 1

    def test_invalid_sizes_dropped(self):
        """Test that headings without a usable size do not enter the clusters."""
        hierarchy = analyze_font_size_hierarchy(_headings(("A", math.nan), ("B", -3)))
        assert hierarchy.hierarchy == {}

    def test_levels_capped(self):
        """Test that more than six size groups all fit in six levels."""
        sizes = [60, 48, 38, 30, 24, 19, 15, 12]
        hierarchy = analyze_font_size_hierarchy(_headings(*((str(s), s) for s in sizes)))
        assert max(hierarchy.hierarchy.values()) == 6
        assert hierarchy.level_for(60.0) == 1


@pytest.mark.unit
class TestOutlineAndNumbering:
    """Test the outline and enumeration lookups."""

    def test_exact_match_is_case_and_space_insensitive(self):
        """Test normalized title matching."""
        assert match_heading_to_outline("Data  collection", OUTLINE) == 2
        assert match_heading_to_outline("INTRODUCTION", OUTLINE) == 1

    def test_substring_match(self):
        """Test that a close substring match uses the entry's depth."""
        assert match_heading_to_outline("2 Methods and Materials", OUTLINE) == 1
        assert match_heading_to_outline("Methods", OUTLINE) is None

    def test_far_from_clustered_level(self, caplog):
        """Test that an outline level far from the font level is ignored."""
        assert match_heading_to_outline("Data Collection", OUTLINE, clustered_level=5) is None
        assert "too far" in caplog.text

    def test_malformed_entries_skipped(self):
        """Test that non-mapping outline entries are ignored."""
        outline = [{"title": "Intro"}, "junk", {"title": "Methods", "items": [{"title": "Data"}, 7]}]
        assert match_heading_to_outline("Data", outline) == 2

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2.1. Subsection", (3, 2)),
            ("1. Introduction", (2, 1)),
            ("3) Results", (2, 1)),
            ("1.2.3. Deep section", (4, 3)),
            ("Introduction", None),
            ("", None),
        ],
    )
    def test_extract_numbering_level(self, text, expected):
        """Test leading section number parsing."""
        assert extract_numbering_level(text) == expected


@pytest.mark.unit
class TestDetermineHeadingLevel:
    """Test the level decision for a single heading."""

    @pytest.mark.parametrize(
        "font_size,expected",
        [(24, 1), (18, 1), (16, 2), (15, 3), (13.5, 4), (12.7, 5), (12, 6)],
    )
    def test_ratio_bands(self, font_size, expected):
        """Test the fixed ratio bands against a 12pt body."""
        assert ratio_band_level(font_size, 12.0) == expected

    def test_ratio_band_without_base(self):
        """Test that a zero base size gives the default level."""
        assert ratio_band_level(20, 0) == 2

    def test_numbering_overrides_font_size(self):
        """Test that a numbered heading takes its numbering level."""
        heading = HeadingCandidate("2.1. Subsection", 24)
        hierarchy = analyze_font_size_hierarchy([heading])
        assert determine_heading_level(heading, hierarchy) == 3

    def test_numbering_depth_field(self):
        """Test that a numbering depth supplied by the caller is honoured."""
        heading = HeadingCandidate("Subsection", 24, numbering_depth=2)
        assert determine_heading_level(heading, analyze_font_size_hierarchy([heading])) == 3

    def test_invalid_font_size(self):
        """Test that a heading without a usable size is level 2."""
        heading = HeadingCandidate("Broken", math.nan)
        assert determine_heading_level(heading, analyze_font_size_hierarchy([])) == 2

    def test_unclustered_size_nests_under_previous_heading(self):
        """Test that a size outside the clusters nests one level below the previous heading."""
        hierarchy = analyze_font_size_hierarchy(_headings(("A", 24), ("B", 18), ("C", 18)))
        heading = HeadingCandidate("Aside", 15)
        assert determine_heading_level(heading, hierarchy, previous_headings=[HeadingCandidate("A", 24, level=1)]) == 2
        assert determine_heading_level(heading, hierarchy, previous_headings=[HeadingCandidate("D", 13, level=4)]) == 5

    def test_unclustered_size_without_previous_uses_ratio_band(self):
        """Test that the ratio bands decide when nothing precedes the heading."""
        hierarchy = analyze_font_size_hierarchy(_headings(("A", 24), ("B", 18), ("C", 18)))
        assert determine_heading_level(HeadingCandidate("Aside", 15), hierarchy) == 3

    def test_relative_level_close_to_cluster_wins(self):
        """Test that nesting under the previous heading is kept when it is one level off the cluster."""
        hierarchy = analyze_font_size_hierarchy(_headings(("Title", 24), ("Part A", 18), ("Part B", 18)))
        previous = [HeadingCandidate("Title", 24, level=1), HeadingCandidate("Part A", 18, level=2)]
        assert hierarchy.level_for(18.0) == 2
        assert determine_heading_level(HeadingCandidate("Part B", 18), hierarchy, previous_headings=previous) == 3

    def test_relative_level_far_from_cluster_rejected(self):
        """Test that the clustered level stands when nesting would be too deep."""
        hierarchy = analyze_font_size_hierarchy(_headings(("Title", 24), ("Part", 18)))
        previous = [HeadingCandidate("Deep", 12, level=5)]
        assert determine_heading_level(HeadingCandidate("Title", 24), hierarchy, previous_headings=previous) == 1

    def test_lookup_failure_falls_back_to_ratio(self, caplog):
        """Test that a broken outline entry degrades to the ratio bands."""
        heading = HeadingCandidate("Intro", 24)
        hierarchy = analyze_font_size_hierarchy([heading])
        assert determine_heading_level(heading, hierarchy, outline=[OutlineItem(title=123)]) == 1
        assert "using font size ratio" in caplog.text


@pytest.mark.unit
class TestHierarchyValidation:
    """Test the monotonic clamp."""

    def test_skip_is_clamped(self):
        """Test that a jump of several levels is pulled up."""
        headings = [HeadingCandidate("A", 20, level=1), HeadingCandidate("B", 12, level=4)]
        assert [h.level for h in validate_heading_hierarchy(headings)] == [1, 2]

    def test_first_heading_kept(self):
        """Test that the first heading keeps its level."""
        headings = [HeadingCandidate("A", 20, level=3), HeadingCandidate("B", 12, level=4)]
        assert [h.level for h in validate_heading_hierarchy(headings)] == [3, 4]

    @given(st.lists(st.integers(min_value=1, max_value=6), min_size=1, max_size=20))
    @settings(max_examples=100, deadline=None)
    def test_never_skips_levels(self, levels):
        """Property: every level is at most one deeper than the deepest before it."""
        headings = [HeadingCandidate(f"H{i}", 12, level=level) for i, level in enumerate(levels)]
        result = [h.level for h in validate_heading_hierarchy(headings)]
        assert result[0] == levels[0]
        for i in range(1, len(result)):
            assert result[i] <= max(result[:i]) + 1
            assert result[i] <= levels[i]


@pytest.mark.unit
class TestHeadingHierarchyAnalyzer:
    """Test leveling whole heading sequences."""

    def test_font_size_levels(self):
        """Test that larger headings get shallower levels."""
        leveled = HeadingHierarchyAnalyzer(base_font_size=12).analyze(_headings(("Title", 24), ("Part", 18)))
        assert [h.level for h in leveled] == [1, 2]
        assert [h.text for h in leveled] == ["Title", "Part"]

    def test_same_size_headings_nest_in_sequence(self):
        """Test that a repeated heading size nests under the one before it."""
        headings = _headings(("Title", 24), ("Part A", 18), ("Part B", 18))
        assert [h.level for h in assign_heading_levels(headings, 12)] == [1, 2, 3]

    def test_outline_levels(self):
        """Test that outline depth decides the level."""
        headings = _headings(("Introduction", 18), ("Background", 14))
        assert [h.level for h in assign_heading_levels(headings, 12.0, OUTLINE)] == [1, 2]

    def test_numbered_heading_is_clamped_after_title(self):
        """Test that a deep numbered heading right after the title becomes level 2."""
        headings = _headings(("Title", 24), ("1.2.3. Deep section", 14))
        assert [h.level for h in assign_heading_levels(headings)] == [1, 2]

    def test_subsection_keeps_numbering_level(self):
        """Test that a numbered subsection stays at its numbering level."""
        headings = _headings(("1. Introduction", 18), ("2.1. Subsection", 24))
        assert [h.level for h in assign_heading_levels(headings)] == [2, 3]

    def test_empty(self):
        """Test that no headings give no levels."""
        assert assign_heading_levels([]) == []

    def test_build_hierarchy(self):
        """Test that the analyzer exposes its font size clustering."""
        analyzer = HeadingHierarchyAnalyzer(base_font_size=10)
        hierarchy = analyzer.build_hierarchy(_headings(("A", 20)))
        assert hierarchy.base_font_size == 10
        assert hierarchy.hierarchy == {20.0: 1}
