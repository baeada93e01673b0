"""Integration tests for page and document layout analysis.

These tests run the full pipeline: metrics, column detection, per-column gap
profiles, block grouping, heading promotion and document summaries.
"""

from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from utils import end_to_end_page, homogeneous_page, make_line, two_column_page

import pagestruct
from pagestruct import (
    DocumentLayout,
    ElementKind,
    LayoutOptions,
    OutlineItem,
    PageLayout,
    Viewport,
    analyze_document,
    analyze_page,
    promote_headings,
)
from pagestruct.models import DocumentMetrics


@pytest.mark.integration
class TestAnalyzePage:
    """Test single page analysis."""

    def test_title_intro_conclusion(self, end_to_end_lines):
        """Test that font jumps and a large gap split the page into four elements."""
        layout = analyze_page(end_to_end_lines)

        assert isinstance(layout, PageLayout)
        assert [element.text for element in layout.elements] == [
            "Title",
            "Intro paragraph text. Intro continues without break.",
            "Conclusion",
            "Final text.",
        ]
        assert layout.columns == ()
        assert not layout.is_multi_column
        assert all(element.column_index == 0 for element in layout.elements)
        assert all(element.kind is ElementKind.BLOCK for element in layout.elements)
        assert layout.metrics.base_font_size == 12.0
        assert layout.page == 1

    def test_homogeneous_page_is_one_block(self, homogeneous_lines):
        """Test that evenly spaced text without paragraph gaps stays together."""
        layout = analyze_page(homogeneous_lines)
        assert len(layout.elements) == 1
        assert len(layout.elements[0].lines) == 20
        assert layout.profiles[0].homogeneity_level == 1.0

    def test_two_columns_in_reading_order(self, two_column_lines, tall_viewport):
        """Test that columns are read left to right, each top to bottom."""
        layout = analyze_page(two_column_lines, tall_viewport)

        assert layout.is_multi_column
        assert [column.line_count for column in layout.columns] == [20, 20]
        assert len(layout.profiles) == 2

        column_indices = [element.column_index for element in layout.elements]
        assert column_indices == sorted(column_indices)
        assert set(column_indices) == {0, 1}
        for element in layout.elements:
            expected_x = 50.0 if element.column_index == 0 else 450.0
            assert all(line.x == expected_x for line in element.lines)
        for column_index in (0, 1):
            ys = [e.y_start for e in layout.elements if e.column_index == column_index]
            assert ys == sorted(ys)

    def test_single_column_out_of_order(self, end_to_end_lines):
        """Test that a shuffled single-column page is grouped as if read top to bottom."""
        title, intro, intro_more, conclusion, final = end_to_end_lines
        layout = analyze_page([conclusion, final, title, intro, intro_more])

        assert [element.text for element in layout.elements] == [
            "Title",
            "Intro paragraph text. Intro continues without break.",
            "Conclusion",
            "Final text.",
        ]

    def test_late_spanning_line_sorted_into_column(self, two_column_lines, tall_viewport):
        """Test that a full-width title given after the column text opens its column."""
        title = make_line("A Spanning Title", y=40, x=50, width=680, font_size=24)
        layout = analyze_page(two_column_lines + [title], tall_viewport)

        assert layout.is_multi_column
        title_elements = [element for element in layout.elements if element.text == "A Spanning Title"]
        assert len(title_elements) == 1
        title_element = title_elements[0]
        assert title_element.y_start == 40
        column_elements = [e for e in layout.elements if e.column_index == title_element.column_index]
        assert column_elements[0] is title_element
        for element in layout.elements:
            ys = [line.y for line in element.lines]
            assert ys == sorted(ys)
            assert element.y_start <= element.y_end

    def test_column_detection_disabled(self, two_column_lines, tall_viewport):
        """Test that disabling column detection analyzes the page as one flow."""
        layout = analyze_page(two_column_lines, tall_viewport, options=LayoutOptions(detect_columns=False))
        assert layout.columns == ()
        assert layout.visual_structure is None
        assert {element.column_index for element in layout.elements} == {0}

    def test_given_metrics_are_kept(self, end_to_end_lines):
        """Test that supplied metrics are used as is."""
        metrics = DocumentMetrics(base_font_size=11.0)
        assert analyze_page(end_to_end_lines, metrics=metrics).metrics is metrics

    def test_empty_page(self):
        """Test that an empty page yields an empty layout."""
        layout = analyze_page([])
        assert layout.elements == ()
        assert layout.columns == ()

    @given(
        st.lists(
            st.tuples(
                st.floats(min_value=0, max_value=700),
                st.floats(min_value=0, max_value=590),
                st.floats(min_value=10, max_value=400),
                st.sampled_from([10.0, 12.0, 16.0]),
            ),
            min_size=1,
            max_size=40,
        )
    )
    @settings(max_examples=50, deadline=None)
    def test_every_line_lands_in_one_element(self, specs):
        """Property: each input line appears in exactly one element."""
        lines = [make_line(f"Line {i} text", y=y, x=x, width=w, font_size=s) for i, (x, y, w, s) in enumerate(specs)]
        layout = analyze_page(lines)
        placed = Counter(id(line) for element in layout.elements for line in element.lines)
        assert placed == Counter(id(line) for line in lines)
        for element in layout.elements:
            ys = [line.y for line in element.lines]
            assert ys == sorted(ys)


@pytest.mark.integration
class TestAnalyzeDocument:
    """Test whole document analysis."""

    def test_pages_and_page_breaks(self):
        """Test that pages are analyzed in order with one break context between them."""
        lines = homogeneous_page(page=2) + end_to_end_page()
        layout = analyze_document(lines)

        assert isinstance(layout, DocumentLayout)
        assert [page.page for page in layout.pages] == [1, 2]
        assert len(layout.elements) == 5
        assert layout.elements[0].text == "Title"
        assert len(layout.page_breaks) == 1
        page_break = layout.page_breaks[0]
        assert page_break.prev_ends_with_sentence_end
        assert page_break.next_starts_with_capital
        assert not page_break.likely_continuation

    def test_structure_summary(self, end_to_end_lines):
        """Test the document summary over all elements."""
        structure = analyze_document(end_to_end_lines).structure
        assert structure.has_font_variation
        assert structure.likely_has_headings
        assert structure.total_elements == 4
        assert structure.unique_font_sizes == (12.0, 24.0)

    def test_viewports_per_page(self):
        """Test that per-page viewports drive column detection."""
        lines = two_column_page(page=1) + homogeneous_page(page=2)
        layout = analyze_document(lines, viewports={1: Viewport(800, 1000), 2: Viewport(800, 1000)})
        assert layout.pages[0].is_multi_column
        assert not layout.pages[1].is_multi_column

    def test_continuation_across_pages(self):
        """Test that a sentence split by a page break is flagged."""
        lines = [
            make_line("The experiment was run on,", y=100, page=1),
            make_line("samples collected in spring.", y=100, page=2),
        ]
        layout = analyze_document(lines)
        assert layout.page_breaks[0].likely_continuation
        assert layout.page_breaks[0].prev_ends_with_comma

    def test_outline_normalized(self):
        """Test that mapping outlines are converted and malformed entries dropped."""
        layout = analyze_document(end_to_end_page(), outline=[{"title": "Title", "items": [{"title": "Conclusion"}]}, 3])
        assert layout.outline == (OutlineItem("Title", (OutlineItem("Conclusion"),)),)

    def test_empty_document(self):
        """Test that a document without lines has no pages."""
        layout = analyze_document([])
        assert layout.pages == ()
        assert layout.elements == []
        assert layout.page_breaks == ()
        assert layout.metrics == DocumentMetrics()


@pytest.mark.integration
class TestPromoteHeadings:
    """Test turning classified elements into leveled headings."""

    def test_font_size_levels(self, end_to_end_lines):
        """Test that a second heading of the same size nests under the first."""
        layout = analyze_document(end_to_end_lines)
        elements = promote_headings(layout.elements, {0, 2}, layout.metrics.base_font_size)

        assert [element.kind for element in elements] == [
            ElementKind.HEADING,
            ElementKind.BLOCK,
            ElementKind.HEADING,
            ElementKind.BLOCK,
        ]
        assert [element.level for element in elements] == [1, None, 2, None]
        assert layout.elements[0].kind is ElementKind.BLOCK

    def test_outline_levels(self, end_to_end_lines):
        """Test that the document outline nests headings."""
        layout = analyze_document(end_to_end_lines, outline=[{"title": "Title", "items": [{"title": "Conclusion"}]}])
        elements = promote_headings(layout.elements, [0, 2], layout.metrics.base_font_size, layout.outline)
        assert [elements[0].level, elements[2].level] == [1, 2]

    def test_out_of_range_indices_ignored(self, end_to_end_lines, caplog):
        """Test that indices outside the element list are skipped with a warning."""
        layout = analyze_document(end_to_end_lines)
        elements = promote_headings(layout.elements, {0, 99, -1}, layout.metrics.base_font_size)
        assert elements[0].kind is ElementKind.HEADING
        assert len(elements) == 4
        assert "Ignoring 2 heading index" in caplog.text

    def test_no_headings(self, end_to_end_lines):
        """Test that an empty selection returns the elements unchanged."""
        layout = analyze_document(end_to_end_lines)
        assert promote_headings(layout.elements, set()) == layout.elements


@pytest.mark.integration
def test_package_exports():
    """Test the public package surface."""
    assert pagestruct.__version__ == "1.0.0"
    for name in pagestruct.__all__:
        assert hasattr(pagestruct, name)
