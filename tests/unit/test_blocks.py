"""Unit tests for text block grouping and the named boundary rules."""

import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from utils import body_text, make_line

from pagestruct.analyzers.blocks import (
    BOUNDARY_RULES,
    BoundaryRule,
    LinePair,
    analyze_text_blocks,
    evaluate_boundary_rules,
    is_block_boundary,
)
from pagestruct.analyzers.gaps import build_gap_profile
from pagestruct.models import Block, TextSpan

# Mean gap 20, homogeneous
PROFILE = build_gap_profile([20.0] * 10)


def _pair(current, following, gap, block_lines=None, block_gaps=()):
    block = Block()
    for line in block_lines or [current]:
        block.add_line(line)
    for block_gap in block_gaps:
        block.add_gap(block_gap)
    return LinePair(current=current, next=following, gap=gap, block=block, profile=PROFILE)


@pytest.mark.unit
class TestBoundaryRules:
    """Test each boundary rule in isolation."""

    def test_rule_table(self):
        """Test that every rule is named, weighted and described."""
        names = [rule.name for rule in BOUNDARY_RULES]
        assert names == [
            "intra_block_gap_outlier",
            "blank_line_gap",
            "font_size_jump",
            "short_block_font_change",
            "paragraph_to_heading",
            "bold_heading",
            "plain_heading",
        ]
        assert all(rule.weight == 1.0 and rule.description for rule in BOUNDARY_RULES)

    def test_intra_block_gap_outlier(self):
        """Test that a gap three times the block's average gap fires."""
        pair = _pair(make_line(body_text(1)), make_line(body_text(2)), 60.0, block_gaps=[20.0])
        assert evaluate_boundary_rules(pair) == ["intra_block_gap_outlier"]

    def test_blank_line_gap(self):
        """Test that a gap of eight font sizes fires."""
        current, following = make_line(body_text(1)), make_line(body_text(2))
        assert "blank_line_gap" in evaluate_boundary_rules(_pair(current, following, 96.0))
        assert "blank_line_gap" not in evaluate_boundary_rules(_pair(current, following, 95.0))

    def test_font_size_jump(self):
        """Test that a font change above 20% fires."""
        pair = _pair(make_line(body_text(1)), make_line(body_text(2), font_size=18), 10.0)
        assert "font_size_jump" in evaluate_boundary_rules(pair)
        pair = _pair(make_line(body_text(1)), make_line(body_text(2), font_size=13), 10.0)
        assert "font_size_jump" not in evaluate_boundary_rules(pair)

    def test_short_block_font_change(self):
        """Test that a short block followed by a moderate font change fires."""
        pair = _pair(make_line("Short block"), make_line("Next", font_size=14), 10.0)
        assert evaluate_boundary_rules(pair) == ["short_block_font_change"]

    def test_paragraph_to_heading(self):
        """Test that a long block followed by a short capitalized line fires."""
        block_lines = [make_line(body_text(i), y=20 * i) for i in range(3)]
        pair = _pair(block_lines[-1], make_line("Results"), 30.0, block_lines=block_lines)
        assert "paragraph_to_heading" in evaluate_boundary_rules(pair)
        pair = _pair(block_lines[-1], make_line("Results"), 29.0, block_lines=block_lines)
        assert "paragraph_to_heading" not in evaluate_boundary_rules(pair)

    def test_bold_heading(self):
        """Test that a short bold line before a paragraph fires."""
        pair = _pair(make_line("Methods", is_bold=True), make_line(body_text(1)), 10.0)
        assert "bold_heading" in evaluate_boundary_rules(pair)
        pair = _pair(make_line("Methods.", is_bold=True), make_line(body_text(1)), 10.0)
        assert "bold_heading" not in evaluate_boundary_rules(pair)

    def test_bold_span_counts_as_bold(self):
        """Test that a bold run inside the line is enough for the bold rule."""
        current = make_line("Methods", spans=(TextSpan(x=50, width=60, text="Methods", is_bold=True),))
        pair = _pair(current, make_line(body_text(1)), 10.0)
        assert "bold_heading" in evaluate_boundary_rules(pair)

    def test_plain_heading(self):
        """Test that a short capitalized line before a paragraph fires."""
        pair = _pair(make_line("Background"), make_line(body_text(1)), 6.0)
        assert evaluate_boundary_rules(pair) == ["plain_heading"]
        pair = _pair(make_line("Background"), make_line(body_text(1)), 5.0)
        assert evaluate_boundary_rules(pair) == []

    def test_plain_heading_needs_free_space(self):
        """Test that a line whose last span reaches the margin is not a plain heading."""
        current = make_line(
            "Background of the study and the related work in the field",
            spans=(TextSpan(x=50, width=400, text="Background of the study and the related work in the field"),),
        )
        pair = _pair(current, make_line(body_text(1)), 10.0)
        assert "plain_heading" not in evaluate_boundary_rules(pair)

    def test_custom_rules(self):
        """Test that a caller supplied rule table replaces the defaults."""
        always = BoundaryRule("always", lambda pair: True, weight=0.5)
        pair = _pair(make_line(body_text(1)), make_line(body_text(2)), 20.0)
        assert not is_block_boundary(pair, [always])
        assert is_block_boundary(pair, [always, always])
        assert not is_block_boundary(pair, [])


@pytest.mark.unit
class TestAnalyzeTextBlocks:
    """Test the block walk over a column."""

    def test_empty_input(self):
        """Test that no lines give no blocks."""
        assert analyze_text_blocks([]) == []

    def test_single_line(self):
        """Test that one line is one closed block."""
        blocks = analyze_text_blocks([make_line("Only line")])
        assert len(blocks) == 1
        assert blocks[0].closed
        assert blocks[0].boundary_gap is None

    def test_page_break_closes_block(self):
        """Test that lines on different pages never share a block."""
        lines = [
            make_line(body_text(1), y=100, page=1),
            make_line(body_text(2), y=120, page=1),
            make_line(body_text(3), y=100, page=2),
            make_line(body_text(4), y=120, page=2),
        ]
        blocks = analyze_text_blocks(lines)
        assert [len(block.lines) for block in blocks] == [2, 2]
        assert {line.page for line in blocks[0].lines} == {1}
        assert blocks[0].boundary_gap is None

    def test_zero_gap_is_same_line(self):
        """Test that a zero gap continues the block as a 0.1 gap."""
        blocks = analyze_text_blocks([make_line(body_text(1), y=100), make_line(body_text(2), y=100)])
        assert len(blocks) == 1
        assert blocks[0].gap_count == 1
        assert blocks[0].average_gap == pytest.approx(0.1)

    def test_negative_gap_continues(self):
        """Test that an upward step continues the block."""
        blocks = analyze_text_blocks([make_line(body_text(1), y=100), make_line(body_text(2), y=90)])
        assert len(blocks) == 1
        assert blocks[0].average_gap == pytest.approx(0.1)

    def test_non_finite_gap_continues(self):
        """Test that a missing position continues the block without a gap."""
        blocks = analyze_text_blocks([make_line(body_text(1), y=100), make_line(body_text(2), y=math.nan)])
        assert len(blocks) == 1
        assert blocks[0].gap_count == 0

    def test_boundary_gap_recorded(self, end_to_end_lines):
        """Test that every closed block but the last records the gap that ended it."""
        blocks = analyze_text_blocks(end_to_end_lines)
        assert [block.texts for block in blocks] == [
            ["Title"],
            ["Intro paragraph text.", "Intro continues without break."],
            ["Conclusion"],
            ["Final text."],
        ]
        assert [block.boundary_gap for block in blocks] == [40, 100, 40, None]

    def test_homogeneous_column_is_one_block(self, homogeneous_lines):
        """Test that evenly spaced body text stays in one block."""
        blocks = analyze_text_blocks(homogeneous_lines)
        assert len(blocks) == 1
        assert len(blocks[0].lines) == 20

    @given(
        st.lists(
            st.tuples(
                st.floats(min_value=0, max_value=800, allow_nan=False),
                st.sampled_from([9.0, 12.0, 18.0]),
                st.text(alphabet="abcXYZ .,-", max_size=40),
            ),
            max_size=30,
        )
    )
    @settings(max_examples=100, deadline=None)
    def test_blocks_partition_lines(self, specs):
        """Property: blocks partition the input lines in order."""
        lines = [make_line(text, y=y, font_size=size) for y, size, text in sorted(specs)]
        blocks = analyze_text_blocks(lines)
        assert [line for block in blocks for line in block.lines] == lines
        assert all(block.closed and block.lines for block in blocks)


@pytest.mark.unit
class TestBlock:
    """Test the mutable block type."""

    def test_closed_block_rejects_lines(self):
        """Test that appending to a closed block raises."""
        block = Block()
        block.add_line(make_line("a"))
        block.close(12.0)
        with pytest.raises(RuntimeError):
            block.add_line(make_line("b"))
        assert isinstance(block.lines, tuple)
        assert block.boundary_gap == 12.0

    def test_positions_and_text(self):
        """Test start and end positions and the joined text."""
        block = Block()
        block.add_line(make_line(" first ", y=10))
        block.add_line(make_line("", y=20))
        block.add_line(make_line("second", y=30))
        assert (block.start_y, block.end_y) == (10, 30)
        assert block.text == "first second"
