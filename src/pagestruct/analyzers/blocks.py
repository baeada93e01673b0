#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/blocks.py
"""Group the lines of one column into text blocks.

Consecutive lines are walked top to bottom. A pair of lines is a block
boundary when :func:`pagestruct.analyzers.gaps.is_paragraph_boundary` says so,
or when the boundary rules of :data:`BOUNDARY_RULES` that fire carry enough
weight. Each rule is a named predicate over a :class:`LinePair` so it can be
tested, tuned or disabled on its own.

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional

from pagestruct.analyzers._statistics import is_valid_number
from pagestruct.analyzers._text_patterns import ends_sentence, starts_with_capital
from pagestruct.analyzers.gaps import build_gap_profile, build_line_context, collect_gaps, is_paragraph_boundary
from pagestruct.constants import (
    BLANK_LINE_FONT_RATIO,
    BOLD_HEADING_GAP_RATIO,
    BOUNDARY_SCORE_THRESHOLD,
    DEFAULT_BASE_FONT_SIZE,
    FONT_CHANGE_RATIO,
    INTRA_BLOCK_GAP_RATIO,
    LINE_FREE_SPACE_HIGH,
    LINE_FREE_SPACE_MODERATE,
    LINE_FREE_SPACE_REFERENCE,
    LONG_TEXT,
    NEXT_PARAGRAPH_MIN_LENGTH,
    PARAGRAPH_TO_HEADING_GAP_RATIO,
    PLAIN_HEADING_GAP_RATIO,
    PLAIN_HEADING_SHORT_GAP_RATIO,
    SHORT_BLOCK_FONT_CHANGE_RATIO,
    SHORT_TEXT,
    SHORT_TEXT_MAX,
    VERY_SHORT_TEXT,
    ZERO_GAP_SUBSTITUTE,
)
from pagestruct.models import Block, BlockContext, DocumentMetrics, GapProfile, LineContext, PositionedLine

logger = logging.getLogger(__name__)

__all__ = [
    "BOUNDARY_RULES",
    "BoundaryRule",
    "LinePair",
    "analyze_text_blocks",
    "evaluate_boundary_rules",
    "is_block_boundary",
]


@dataclass(frozen=True)
class LinePair:
    """Two consecutive lines of a column and the block open above them.

    Parameters
    ----------
    current : PositionedLine
        Upper line, already part of ``block``
    next : PositionedLine
        Lower line
    gap : float
        Effective gap between the lines; zero gaps are replaced by 0.1
    block : Block
        The open block
    profile : GapProfile
        Gap profile of the column
    base_font_size : float
        Document base font size, used when a line carries no font size
    line_context : LineContext, optional
        Neighbouring gap context handed to the paragraph boundary check

    """

    current: PositionedLine
    next: PositionedLine
    gap: float
    block: Block
    profile: GapProfile
    base_font_size: float = DEFAULT_BASE_FONT_SIZE
    line_context: Optional[LineContext] = None

    @property
    def current_text(self) -> str:
        return self.current.stripped_text

    @property
    def next_text(self) -> str:
        return self.next.stripped_text

    @property
    def current_font_size(self) -> float:
        size = self.current.font_size
        return size if is_valid_number(size) and size > 0 else self.base_font_size

    @property
    def next_font_size(self) -> float:
        size = self.next.font_size
        return size if is_valid_number(size) and size > 0 else self.base_font_size

    @property
    def font_change_ratio(self) -> float:
        """Relative font size change from the current line to the next."""
        return abs(self.next_font_size - self.current_font_size) / self.current_font_size

    @property
    def block_length(self) -> int:
        return len(self.block.text)

    @property
    def mean_gap(self) -> float:
        return self.profile.mean

    @property
    def next_is_paragraph(self) -> bool:
        """Next line looks like the first line of a body paragraph."""
        return starts_with_capital(self.next_text) and len(self.next_text) > NEXT_PARAGRAPH_MIN_LENGTH

    def block_context(self) -> BlockContext:
        return BlockContext(combined_text=self.block.text, line_count=len(self.block.lines))


BoundaryPredicate = Callable[[LinePair], bool]


@dataclass(frozen=True)
class BoundaryRule:
    """A named boundary heuristic.

    Parameters
    ----------
    name : str
        Stable identifier of the rule
    predicate : Callable[[LinePair], bool]
        Returns True when the rule fires for a line pair
    weight : float, default 1.0
        Contribution of the rule to the boundary score
    description : str, default ""
        One-line summary of what the rule detects

    """

    name: str
    predicate: BoundaryPredicate
    weight: float = 1.0
    description: str = ""


def _intra_block_gap_outlier(pair: LinePair) -> bool:
    average = pair.block.average_gap
    return average > 0 and pair.gap >= average * INTRA_BLOCK_GAP_RATIO


def _blank_line_gap(pair: LinePair) -> bool:
    return pair.gap >= pair.current_font_size * BLANK_LINE_FONT_RATIO


def _font_size_jump(pair: LinePair) -> bool:
    return pair.font_change_ratio > FONT_CHANGE_RATIO


def _short_block_font_change(pair: LinePair) -> bool:
    return 0 < pair.block_length < SHORT_TEXT_MAX and pair.font_change_ratio > SHORT_BLOCK_FONT_CHANGE_RATIO


def _paragraph_to_heading(pair: LinePair) -> bool:
    next_length = len(pair.next_text)
    return (
        pair.mean_gap > 0
        and 0 < next_length < SHORT_TEXT_MAX
        and starts_with_capital(pair.next_text)
        and pair.gap >= pair.mean_gap * PARAGRAPH_TO_HEADING_GAP_RATIO
        and pair.block_length > LONG_TEXT
    )


def _bold_heading(pair: LinePair) -> bool:
    text = pair.current_text
    return (
        pair.mean_gap > 0
        and pair.current.has_bold_run
        and 0 < len(text) < SHORT_TEXT
        and not ends_sentence(text)
        and pair.next_is_paragraph
        and pair.gap >= pair.mean_gap * BOLD_HEADING_GAP_RATIO
    )


def _has_free_space(line: PositionedLine, text: str) -> bool:
    """Estimate whether a line stops well short of the right margin."""
    is_short = 0 < len(text) < SHORT_TEXT
    is_very_short = 0 < len(text) < VERY_SHORT_TEXT
    if line.spans:
        width_ratio = line.spans[-1].right / LINE_FREE_SPACE_REFERENCE
        return (
            width_ratio < LINE_FREE_SPACE_HIGH
            or (width_ratio < LINE_FREE_SPACE_MODERATE and is_short)
            or (is_very_short and not ends_sentence(text))
        )
    return is_short and not ends_sentence(text)


def _plain_heading(pair: LinePair) -> bool:
    text = pair.current_text
    if pair.mean_gap <= 0 or not 0 < len(text) < SHORT_TEXT or ends_sentence(text):
        return False
    if not (starts_with_capital(text) and pair.next_is_paragraph and _has_free_space(pair.current, text)):
        return False
    ratio = PLAIN_HEADING_SHORT_GAP_RATIO if len(text) < VERY_SHORT_TEXT else PLAIN_HEADING_GAP_RATIO
    return pair.gap >= pair.mean_gap * ratio


BOUNDARY_RULES: tuple[BoundaryRule, ...] = (
    BoundaryRule(
        "intra_block_gap_outlier",
        _intra_block_gap_outlier,
        description="Gap at least 3x the average gap inside the open block",
    ),
    BoundaryRule(
        "blank_line_gap",
        _blank_line_gap,
        description="Gap at least 8x the current font size, an empty line",
    ),
    BoundaryRule(
        "font_size_jump",
        _font_size_jump,
        description="Font size changes by more than 20% to the next line",
    ),
    BoundaryRule(
        "short_block_font_change",
        _short_block_font_change,
        description="Block under 150 characters followed by a 15% font size change",
    ),
    BoundaryRule(
        "paragraph_to_heading",
        _paragraph_to_heading,
        description="Long block followed by a short capitalized line after a 1.5x mean gap",
    ),
    BoundaryRule(
        "bold_heading",
        _bold_heading,
        description="Short bold line without a period followed by a paragraph",
    ),
    BoundaryRule(
        "plain_heading",
        _plain_heading,
        description="Short capitalized line with free space followed by a paragraph",
    ),
)


def evaluate_boundary_rules(pair: LinePair, rules: Sequence[BoundaryRule] = BOUNDARY_RULES) -> list[str]:
    """Return the names of the rules that fire for a line pair."""
    return [rule.name for rule in rules if rule.predicate(pair)]


def is_block_boundary(pair: LinePair, rules: Sequence[BoundaryRule] = BOUNDARY_RULES) -> bool:
    """Decide whether a block ends between the two lines of a pair.

    Parameters
    ----------
    pair : LinePair
        The line pair to evaluate
    rules : Sequence[BoundaryRule], default BOUNDARY_RULES
        Rules to score

    Returns
    -------
    bool
        True if the paragraph boundary check fires or the summed weight of
        the firing rules reaches the boundary threshold

    """
    if is_paragraph_boundary(pair.gap, pair.profile, pair.line_context, pair.block_context()):
        return True
    score = 0.0
    for rule in rules:
        if rule.predicate(pair):
            score += rule.weight
            if score >= BOUNDARY_SCORE_THRESHOLD:
                logger.debug("Boundary before %r: rule %s", pair.next_text[:40], rule.name)
                return True
    return False


def analyze_text_blocks(
    lines: Sequence[PositionedLine],
    profile: Optional[GapProfile] = None,
    metrics: Optional[DocumentMetrics] = None,
    rules: Sequence[BoundaryRule] = BOUNDARY_RULES,
) -> list[Block]:
    """Group the lines of one column into closed blocks.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one column sorted top to bottom
    profile : GapProfile, optional
        Gap profile of this column; built from ``lines`` when omitted. A
        profile of another column or of the whole page must not be passed.
    metrics : DocumentMetrics, optional
        Document metrics providing the base font size
    rules : Sequence[BoundaryRule], default BOUNDARY_RULES
        Boundary rules to apply

    Returns
    -------
    list[Block]
        Closed blocks that partition ``lines`` in order. Empty input yields an
        empty list.

    Notes
    -----
    Zero gaps count as 0.1 (same-line continuation). Negative gaps are kept
    in the open block as 0.1 gaps and non-finite gaps are kept without a gap.
    A pair that straddles a page break closes the open block.

    """
    lines = list(lines or ())
    if not lines:
        return []

    metrics = metrics or DocumentMetrics()
    if profile is None:
        profile = build_gap_profile(collect_gaps(lines))

    blocks: list[Block] = []
    block = Block()
    block.add_line(lines[0])

    for index in range(len(lines) - 1):
        current, following = lines[index], lines[index + 1]

        if current.page != following.page:
            blocks.append(block.close())
            block = Block()
            block.add_line(following)
            continue

        gap = following.y - current.y
        if not is_valid_number(gap):
            block.add_line(following)
            continue
        if gap < 0:
            block.add_gap(ZERO_GAP_SUBSTITUTE)
            block.add_line(following)
            continue

        effective_gap = gap if gap > 0 else ZERO_GAP_SUBSTITUTE
        pair = LinePair(
            current=current,
            next=following,
            gap=effective_gap,
            block=block,
            profile=profile,
            base_font_size=metrics.base_font_size,
            line_context=build_line_context(lines, index),
        )
        if is_block_boundary(pair, rules):
            blocks.append(block.close(effective_gap))
            block = Block()
        else:
            block.add_gap(effective_gap)
        block.add_line(following)

    blocks.append(block.close())
    logger.debug("Grouped %d lines into %d blocks", len(lines), len(blocks))
    return blocks
