#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/gaps.py
"""Vertical gap analysis and paragraph boundary detection.

This module turns the vertical distances between consecutive lines into a
:class:`~pagestruct.models.GapProfile` and decides, for a single gap, whether
it separates two paragraphs.

The profile classifies the spacing of a column as homogeneous, mostly
homogeneous, bimodal or gradual. Homogeneous spacing means the typesetter did
not use vertical whitespace between paragraphs, so only clear outliers may
break. For the other types the gap is compared with the profile thresholds and,
inside the ambiguous band between them, visual, semantic and contextual cues
are scored and combined.

Gaps are only measured between lines on the same page, and a profile must only
ever be built from the lines of a single column.

"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pagestruct.analyzers._statistics import is_valid_number, mean, percentile, population_std_dev
from pagestruct.analyzers._text_patterns import (
    ends_sentence,
    ends_with_colon,
    ends_with_hyphen,
    starts_with_capital,
    starts_with_list_marker,
    starts_with_lowercase,
)
from pagestruct.constants import (
    BIMODAL_MIN_SEPARATION_RATIO,
    BIMODAL_MIN_SMALL_CLUSTER_SHARE,
    BIMODAL_NORMAL_RATIO,
    BIMODAL_PARAGRAPH_RATIO,
    BIMODAL_SCORE_WEIGHTS,
    CONFIDENCE_BIMODAL,
    CONFIDENCE_GRADUAL,
    CONFIDENCE_HOMOGENEOUS,
    CONFIDENCE_MOSTLY_HOMOGENEOUS,
    CONTEXT_FONT_WEIGHT,
    CONTEXT_LENGTH_WEIGHT,
    CONTEXT_SEQUENCE_WEIGHT,
    DEFAULT_BASE_FONT_SIZE,
    DEFAULT_NORMAL_GAP_MAX,
    DEFAULT_PARAGRAPH_GAP_MIN,
    DEFAULT_SCORE_WEIGHT_SLOPES,
    DEFAULT_SCORE_WEIGHTS,
    FONT_CHANGE_BREAK_GAP_RATIO,
    FONT_CHANGE_NORMAL_GAP_RATIO,
    FONT_CHANGE_RATIO,
    FONT_SCORE_LARGE,
    FONT_SCORE_LARGE_CHANGE,
    FONT_SCORE_MODERATE,
    FONT_SCORE_MODERATE_CHANGE,
    FONT_SCORE_SMALL,
    FONT_SCORE_SMALL_CHANGE,
    GAP_CLUSTER_COUNT,
    GAP_CLUSTER_EPSILON,
    GAP_CLUSTER_MAX_ITERATIONS,
    GAP_OUTLIER_NEIGHBOR_RATIO,
    GRADUAL_NORMAL_STD_RATIO,
    GRADUAL_PARAGRAPH_STD_RATIO,
    GRADUAL_SCORE_WEIGHTS,
    HEADING_AFTER_LONG_BLOCK_GAP_RATIO,
    HEADING_AFTER_LONG_BLOCK_LENGTH,
    HOMOGENEITY_CLOSE_FAINT,
    HOMOGENEITY_CLOSE_HIGH,
    HOMOGENEITY_CLOSE_LOW,
    HOMOGENEITY_CLOSE_MEDIUM,
    HOMOGENEITY_CLOSE_PERFECT,
    HOMOGENEITY_CLOSE_WEAK,
    HOMOGENEITY_CV_FAINT,
    HOMOGENEITY_CV_HIGH,
    HOMOGENEITY_CV_LOW,
    HOMOGENEITY_CV_MEDIUM,
    HOMOGENEITY_CV_PERFECT,
    HOMOGENEITY_CV_WEAK,
    HOMOGENEITY_IQR_LOW,
    HOMOGENEITY_IQR_MEDIUM,
    HOMOGENEITY_STD_HIGH,
    HOMOGENEITY_STD_PERFECT,
    HOMOGENEITY_TAIL_FAINT,
    HOMOGENEITY_TAIL_WEAK,
    HOMOGENEOUS_FONT_CHANGE_GAP_RATIO,
    HOMOGENEOUS_MIN_LEVEL,
    HOMOGENEOUS_NORMAL_RATIO,
    HOMOGENEOUS_OUTLIER_MEAN_RATIO,
    HOMOGENEOUS_PARAGRAPH_RATIO,
    LENGTH_SCORE_BOTH_LONG,
    LENGTH_SCORE_LONG_TO_SHORT,
    LENGTH_SCORE_SHORT_TO_LONG,
    LIST_BLOCK_PREFIX_LENGTH,
    LIST_BREAK_GAP_RATIO,
    LIST_CONTINUATION_GAP_RATIO,
    LONG_BLOCK_DAMPING_FACTOR,
    LONG_BLOCK_DAMPING_LENGTH,
    LONG_BLOCK_DAMPING_VISUAL_MAX,
    LONG_TEXT,
    LONG_TO_SHORT_GAP_RATIO,
    LONG_TO_SHORT_SEMANTIC_GAP_RATIO,
    MEDIUM_TEXT,
    MOSTLY_HOMOGENEOUS_HARD_BREAK_RATIO,
    MOSTLY_HOMOGENEOUS_MIN_LEVEL,
    MOSTLY_HOMOGENEOUS_NORMAL_RATIO,
    MOSTLY_HOMOGENEOUS_OUTLIER_MEAN_RATIO,
    MOSTLY_HOMOGENEOUS_PARAGRAPH_RATIO,
    MOSTLY_HOMOGENEOUS_SCORE_WEIGHTS,
    NEIGHBOR_DEVIATION_BOOST,
    NEIGHBOR_LARGE_RATIO,
    NEIGHBOR_SMALL_RATIO,
    SCORE_AGREE_SEMANTIC_HIGH,
    SCORE_AGREE_SEMANTIC_LOW,
    SCORE_AGREE_VISUAL_HIGH,
    SCORE_AGREE_VISUAL_LOW,
    SCORE_BREAK_THRESHOLD,
    SCORE_CONTINUE_THRESHOLD,
    SCORE_DEFAULT_COMBINED_MIN,
    SCORE_DEFAULT_VISUAL_MIN,
    SCORE_FONT_CHANGE_GAP_RATIO,
    SEMANTIC_CONTINUATION,
    SEMANTIC_HYPHEN,
    SEMANTIC_NEUTRAL,
    SEMANTIC_NEW_SENTENCE,
    SEQUENCE_LARGE_RATIO,
    SEQUENCE_SCORE_HIGH,
    SEQUENCE_SCORE_LOW,
    SEQUENCE_SMALL_RATIO,
    SHORT_BLOCK_BREAK_GAP_RATIO,
    SHORT_NEXT_LINE_LENGTH,
    SHORT_NEXT_SEMANTIC_BOOST,
    SHORT_TEXT,
    SHORT_TEXT_MAX,
    THRESHOLD_SEPARATION_RATIO,
    VERY_SHORT_NEXT_GAP_RATIO,
    VERY_SHORT_NEXT_SEMANTIC_BOOST,
    VISUAL_BAND_MIN_RANGE,
    VISUAL_OUTLIER_BOOST_MAX,
    GapWeights,
)
from pagestruct.models import (
    BlockContext,
    DocumentType,
    GapAnalysis,
    GapProfile,
    LineContext,
    PositionedLine,
)

logger = logging.getLogger(__name__)

__all__ = [
    "analyze_gaps",
    "build_gap_profile",
    "build_line_context",
    "cluster_gaps",
    "collect_gaps",
    "is_paragraph_boundary",
    "score_weights",
]


# =============================================================================
# Gap statistics
# =============================================================================


def cluster_gaps(gaps: Sequence[float], k: int = GAP_CLUSTER_COUNT) -> tuple[list[float], list[int]]:
    """Split gaps into ``k`` clusters with one-dimensional k-means.

    For two clusters the initial centers sit halfway between the minimum and
    the median, and halfway between the median and the maximum. Empty
    clusters keep their previous center.

    Parameters
    ----------
    gaps : Sequence[float]
        Gap values in line order
    k : int, default 2
        Number of clusters

    Returns
    -------
    tuple[list[float], list[int]]
        Cluster centers sorted ascending, and the cluster index of each gap.
        With fewer than ``k`` gaps the gaps themselves are the centers and
        every gap is assigned to cluster 0.

    """
    if len(gaps) < k:
        return sorted(gaps), [0] * len(gaps)

    ordered = sorted(gaps)
    low, high = ordered[0], ordered[-1]
    if k == 2:
        median = ordered[len(ordered) // 2]
        centers = [low + (median - low) * 0.5, median + (high - median) * 0.5]
    else:
        centers = [low + (high - low) * (i / (k - 1)) for i in range(k)]

    assignments: list[int] = []
    for _ in range(GAP_CLUSTER_MAX_ITERATIONS):
        assignments = []
        for gap in gaps:
            distances = [abs(gap - center) for center in centers]
            assignments.append(distances.index(min(distances)))

        new_centers = []
        for idx, center in enumerate(centers):
            members = [gap for gap, assigned in zip(gaps, assignments) if assigned == idx]
            new_centers.append(mean(members) if members else center)

        converged = all(abs(new - old) <= GAP_CLUSTER_EPSILON for new, old in zip(new_centers, centers))
        centers = new_centers
        if converged:
            break

    return sorted(centers), assignments


def _homogeneity_level(
    cv: float, std_dev: float, close_ratio: float, iqr_ratio: float, tail_ratio: float
) -> float:
    """Score how uniform a gap distribution is, from 0.0 to 1.0.

    The ladder is checked top down; the 0.2 rung is tested before the 0.3
    rung, so a distribution that satisfies both is scored 0.2.
    """
    if cv < HOMOGENEITY_CV_PERFECT or (std_dev < HOMOGENEITY_STD_PERFECT and close_ratio > HOMOGENEITY_CLOSE_PERFECT):
        return 1.0
    if cv < HOMOGENEITY_CV_HIGH or (std_dev < HOMOGENEITY_STD_HIGH and close_ratio > HOMOGENEITY_CLOSE_HIGH):
        return 0.8
    if cv < HOMOGENEITY_CV_MEDIUM and (close_ratio > HOMOGENEITY_CLOSE_MEDIUM or iqr_ratio < HOMOGENEITY_IQR_MEDIUM):
        return 0.6
    if cv < HOMOGENEITY_CV_LOW and (close_ratio > HOMOGENEITY_CLOSE_LOW or iqr_ratio < HOMOGENEITY_IQR_LOW):
        return 0.4
    if cv < HOMOGENEITY_CV_WEAK and (close_ratio > HOMOGENEITY_CLOSE_WEAK or tail_ratio < HOMOGENEITY_TAIL_WEAK):
        return 0.2
    if cv < HOMOGENEITY_CV_FAINT and close_ratio > HOMOGENEITY_CLOSE_FAINT and tail_ratio < HOMOGENEITY_TAIL_FAINT:
        return 0.3
    return 0.0


def build_gap_profile(gaps: Sequence[float]) -> GapProfile:
    """Build the statistical profile of a set of gaps.

    Parameters
    ----------
    gaps : Sequence[float]
        Positive, finite, same-page gaps of one column. Other values are
        ignored.

    Returns
    -------
    GapProfile
        The profile. An empty gap set yields an ``unknown`` profile with
        ``normal_gap_max=18`` and ``paragraph_gap_min=24``.

    """
    values = [float(g) for g in gaps if is_valid_number(g) and g > 0]
    if not values:
        return GapProfile(
            document_type=DocumentType.UNKNOWN,
            homogeneity_level=0.0,
            normal_gap_max=DEFAULT_NORMAL_GAP_MAX,
            paragraph_gap_min=DEFAULT_PARAGRAPH_GAP_MIN,
            confidence=0.0,
        )

    ordered = sorted(values)
    n = len(values)
    mu = mean(values)
    std_dev = population_std_dev(values, mu)
    cv = std_dev / mu if mu > 0 else 0.0

    median = ordered[n // 2]
    p25 = percentile(ordered, 25)
    p75 = percentile(ordered, 75)
    p90 = percentile(ordered, 90)
    p95 = percentile(ordered, 95)
    p99 = percentile(ordered, 99)

    close_ratio = sum(1 for g in values if abs(g - mu) <= std_dev) / n
    iqr_ratio = (p75 - p25) / mu if mu > 0 else 0.0
    tail_ratio = (p90 - p75) / p75 if p75 > 0 else 0.0

    centers, assignments = cluster_gaps(values)
    small = [g for g, a in zip(values, assignments) if a == 0]
    large = [g for g, a in zip(values, assignments) if a == 1]
    small_mean = mean(small) if small else centers[0]
    large_mean = mean(large) if large else (centers[1] if len(centers) > 1 else centers[0])
    separation_ratio = (large_mean - small_mean) / mu if mu > 0 else 0.0

    level = _homogeneity_level(cv, std_dev, close_ratio, iqr_ratio, tail_ratio)

    if level >= HOMOGENEOUS_MIN_LEVEL:
        document_type = DocumentType.HOMOGENEOUS
        normal_gap_max = mu * HOMOGENEOUS_NORMAL_RATIO
        paragraph_gap_min = mu * HOMOGENEOUS_PARAGRAPH_RATIO
        confidence = CONFIDENCE_HOMOGENEOUS
    elif level >= MOSTLY_HOMOGENEOUS_MIN_LEVEL:
        document_type = DocumentType.MOSTLY_HOMOGENEOUS
        normal_gap_max = mu * MOSTLY_HOMOGENEOUS_NORMAL_RATIO
        paragraph_gap_min = max(p95, mu * MOSTLY_HOMOGENEOUS_PARAGRAPH_RATIO)
        confidence = CONFIDENCE_MOSTLY_HOMOGENEOUS
    elif separation_ratio > BIMODAL_MIN_SEPARATION_RATIO and len(small) > n * BIMODAL_MIN_SMALL_CLUSTER_SHARE:
        document_type = DocumentType.BIMODAL
        normal_gap_max = max(small_mean * BIMODAL_NORMAL_RATIO, p75)
        paragraph_gap_min = min(large_mean * BIMODAL_PARAGRAPH_RATIO, p90)
        if paragraph_gap_min <= normal_gap_max:
            paragraph_gap_min = normal_gap_max * THRESHOLD_SEPARATION_RATIO
        confidence = CONFIDENCE_BIMODAL
    else:
        document_type = DocumentType.GRADUAL
        normal_gap_max = p75
        paragraph_gap_min = p90
        if paragraph_gap_min <= normal_gap_max:
            paragraph_gap_min = normal_gap_max * THRESHOLD_SEPARATION_RATIO
        # Widen a band narrower than one standard deviation
        if paragraph_gap_min - normal_gap_max < std_dev:
            normal_gap_max = mu + std_dev * GRADUAL_NORMAL_STD_RATIO
            paragraph_gap_min = mu + std_dev * GRADUAL_PARAGRAPH_STD_RATIO
        confidence = CONFIDENCE_GRADUAL

    logger.debug(
        "Gap profile: type=%s level=%.2f cv=%.4f close=%.2f normal_max=%.2f paragraph_min=%.2f (%d gaps)",
        document_type.value,
        level,
        cv,
        close_ratio,
        normal_gap_max,
        paragraph_gap_min,
        n,
    )

    return GapProfile(
        document_type=document_type,
        homogeneity_level=level,
        normal_gap_max=normal_gap_max,
        paragraph_gap_min=paragraph_gap_min,
        mean=mu,
        median=median,
        std_dev=std_dev,
        coefficient_of_variation=cv,
        p25=p25,
        p75=p75,
        p90=p90,
        p95=p95,
        p99=p99,
        confidence=confidence,
        close_to_mean_ratio=close_ratio,
        cluster_centers=tuple(centers),
        small_cluster_size=len(small),
        large_cluster_size=len(large),
        gap_count=n,
    )


# =============================================================================
# Gap collection
# =============================================================================


def _same_page_gap(lines: Sequence[PositionedLine], index: int) -> float | None:
    """Gap between ``lines[index]`` and ``lines[index + 1]``, None across pages."""
    if index < 0 or index + 1 >= len(lines):
        return None
    current, following = lines[index], lines[index + 1]
    if current.page != following.page:
        return None
    return following.y - current.y


def _font_size_or_default(line: PositionedLine) -> float:
    size = line.font_size
    return float(size) if is_valid_number(size) and size > 0 else DEFAULT_BASE_FONT_SIZE


def build_line_context(lines: Sequence[PositionedLine], index: int) -> LineContext:
    """Describe the gap between ``lines[index]`` and the following line.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one column sorted top to bottom
    index : int
        Index of the upper line of the pair

    Returns
    -------
    LineContext
        Texts and font sizes of both lines and the neighbouring same-page
        gaps. A gap is an outlier when it exceeds both neighbours by half.

    """
    current = lines[index]
    following = lines[index + 1]
    gap = _same_page_gap(lines, index)
    prev_gap = _same_page_gap(lines, index - 1)
    next_gap = _same_page_gap(lines, index + 1)

    is_outlier = False
    if gap is not None and prev_gap is not None and next_gap is not None:
        is_outlier = gap > prev_gap * GAP_OUTLIER_NEIGHBOR_RATIO and gap > next_gap * GAP_OUTLIER_NEIGHBOR_RATIO

    return LineContext(
        current_text=current.stripped_text,
        next_text=following.stripped_text,
        current_font_size=_font_size_or_default(current),
        next_font_size=_font_size_or_default(following),
        prev_gap=prev_gap,
        next_gap=next_gap,
        is_outlier=is_outlier,
    )


def collect_gaps(lines: Sequence[PositionedLine]) -> list[float]:
    """Return the positive, finite gaps between consecutive same-page lines."""
    gaps = []
    for index in range(len(lines) - 1):
        gap = _same_page_gap(lines, index)
        if gap is not None and is_valid_number(gap) and gap > 0:
            gaps.append(float(gap))
    return gaps


def analyze_gaps(lines: Sequence[PositionedLine]) -> GapAnalysis:
    """Collect the gaps of a column and build their profile.

    Parameters
    ----------
    lines : Sequence[PositionedLine]
        Lines of one column sorted top to bottom. Pairs that straddle a page
        break never contribute a gap.

    Returns
    -------
    GapAnalysis
        Gaps, per-gap contexts, the profile, and counts of gaps whose text
        strongly suggests a continuation or a new paragraph

    """
    lines = list(lines or ())
    gaps: list[float] = []
    contexts: list[LineContext] = []
    continuation_count = 0
    break_count = 0

    for index in range(len(lines) - 1):
        gap = _same_page_gap(lines, index)
        if gap is None or not is_valid_number(gap) or gap <= 0:
            continue
        context = build_line_context(lines, index)
        gaps.append(float(gap))
        contexts.append(context)

        strong_continuation = ends_with_hyphen(context.current_text) or (
            not ends_sentence(context.current_text) and starts_with_lowercase(context.next_text)
        )
        strong_break = ends_sentence(context.current_text) and starts_with_capital(context.next_text)
        if strong_continuation and not strong_break:
            continuation_count += 1
        elif strong_break and not strong_continuation:
            break_count += 1

    profile = build_gap_profile(gaps)
    logger.debug(
        "Analyzed %d gaps over %d lines: %d continuation cues, %d break cues",
        len(gaps),
        len(lines),
        continuation_count,
        break_count,
    )
    return GapAnalysis(
        gaps=tuple(gaps),
        contexts=tuple(contexts),
        profile=profile,
        continuation_count=continuation_count,
        break_count=break_count,
    )


# =============================================================================
# Paragraph boundary decision
# =============================================================================


def score_weights(profile: GapProfile) -> GapWeights:
    """Return the (visual, semantic, contextual) weights for a profile."""
    if profile.document_type is DocumentType.BIMODAL:
        return BIMODAL_SCORE_WEIGHTS
    if profile.document_type is DocumentType.GRADUAL:
        return GRADUAL_SCORE_WEIGHTS
    if profile.document_type is DocumentType.MOSTLY_HOMOGENEOUS:
        return MOSTLY_HOMOGENEOUS_SCORE_WEIGHTS
    level = profile.homogeneity_level
    visual, semantic, contextual = (
        base + slope * level for base, slope in zip(DEFAULT_SCORE_WEIGHTS, DEFAULT_SCORE_WEIGHT_SLOPES)
    )
    return visual, semantic, contextual


def _priority_override(
    gap: float, profile: GapProfile, ctx: LineContext, block: BlockContext
) -> bool | None:
    """Apply list, heading and font-change overrides; None when undecided."""
    if starts_with_list_marker(ctx.next_text):
        return True

    block_start = block.combined_text.strip()[:LIST_BLOCK_PREFIX_LENGTH]
    if starts_with_list_marker(block_start):
        if starts_with_lowercase(ctx.next_text) and gap <= profile.paragraph_gap_min * LIST_CONTINUATION_GAP_RATIO:
            return False
        if starts_with_capital(ctx.next_text) and gap >= profile.paragraph_gap_min * LIST_BREAK_GAP_RATIO:
            return True

    # Short heading-like block followed by a capitalized line
    block_is_short = 0 < block.block_length < SHORT_TEXT_MAX
    if (
        block_is_short
        and (not ends_sentence(ctx.current_text) or ends_with_colon(ctx.current_text))
        and gap >= profile.paragraph_gap_min * SHORT_BLOCK_BREAK_GAP_RATIO
        and starts_with_capital(ctx.next_text)
    ):
        return True

    if ctx.font_size_change > ctx.current_font_size * FONT_CHANGE_RATIO:
        if gap >= profile.paragraph_gap_min * FONT_CHANGE_BREAK_GAP_RATIO:
            return True
        if gap >= profile.normal_gap_max * FONT_CHANGE_NORMAL_GAP_RATIO and (
            ends_sentence(ctx.current_text) or starts_with_capital(ctx.next_text)
        ):
            return True

    return None


def _homogeneous_decision(gap: float, profile: GapProfile, ctx: LineContext, block: BlockContext) -> bool:
    """Only outlier gaps or a font jump after a short block break homogeneous text."""
    if gap >= profile.mean * HOMOGENEOUS_OUTLIER_MEAN_RATIO:
        logger.debug("Homogeneous spacing: gap %.2f is an outlier (mean %.2f)", gap, profile.mean)
        return True
    if ctx.font_size_change > ctx.current_font_size * FONT_CHANGE_RATIO:
        is_short_block = 0 < block.block_length < SHORT_TEXT_MAX
        if is_short_block or gap >= profile.mean * HOMOGENEOUS_FONT_CHANGE_GAP_RATIO:
            return True
    return False


def _mostly_homogeneous_decision(gap: float, profile: GapProfile, ctx: LineContext) -> bool:
    """Break only on outlier gaps, confirmed by the text or by sheer size."""
    floor = profile.mean * MOSTLY_HOMOGENEOUS_OUTLIER_MEAN_RATIO
    outlier_threshold = max(profile.p95 or floor, floor)
    if gap < outlier_threshold:
        return False
    if (
        ends_sentence(ctx.current_text)
        and starts_with_capital(ctx.next_text)
        and not ends_with_hyphen(ctx.current_text)
    ):
        return True
    return gap >= profile.mean * MOSTLY_HOMOGENEOUS_HARD_BREAK_RATIO


def _semantic_score(ctx: LineContext) -> float:
    current, following = ctx.current_text, ctx.next_text
    if ends_with_hyphen(current):
        return SEMANTIC_HYPHEN
    if not ends_sentence(current) and starts_with_lowercase(following):
        return SEMANTIC_CONTINUATION
    if ends_sentence(current) and starts_with_capital(following):
        return SEMANTIC_NEW_SENTENCE
    return SEMANTIC_NEUTRAL


def _contextual_score(gap: float, profile: GapProfile, ctx: LineContext, block_length: int) -> float:
    """Combine block-length, font-change and neighbour-sequence factors."""
    next_length = len(ctx.next_text)

    length_score = SEMANTIC_NEUTRAL
    if (
        block_length > MEDIUM_TEXT
        and next_length < SHORT_TEXT
        and gap >= profile.paragraph_gap_min * LONG_TO_SHORT_GAP_RATIO
    ):
        length_score = LENGTH_SCORE_LONG_TO_SHORT
    elif block_length < SHORT_TEXT and next_length > LONG_TEXT:
        length_score = LENGTH_SCORE_SHORT_TO_LONG
    elif block_length > LONG_BLOCK_DAMPING_LENGTH and next_length > LONG_BLOCK_DAMPING_LENGTH:
        length_score = LENGTH_SCORE_BOTH_LONG

    change = ctx.font_size_change
    font_score = SEMANTIC_NEUTRAL
    if change > ctx.current_font_size * FONT_SCORE_LARGE_CHANGE:
        font_score = FONT_SCORE_LARGE
    elif change > ctx.current_font_size * FONT_SCORE_MODERATE_CHANGE:
        font_score = FONT_SCORE_MODERATE
    elif change < ctx.current_font_size * FONT_SCORE_SMALL_CHANGE:
        font_score = FONT_SCORE_SMALL

    sequence_score = SEMANTIC_NEUTRAL
    if ctx.prev_gap is not None and ctx.next_gap is not None:
        neighbour_average = (ctx.prev_gap + ctx.next_gap) / 2
        if gap > neighbour_average * SEQUENCE_LARGE_RATIO:
            sequence_score = SEQUENCE_SCORE_HIGH
        elif gap < neighbour_average * SEQUENCE_SMALL_RATIO:
            sequence_score = SEQUENCE_SCORE_LOW

    return (
        length_score * CONTEXT_LENGTH_WEIGHT
        + font_score * CONTEXT_FONT_WEIGHT
        + sequence_score * CONTEXT_SEQUENCE_WEIGHT
    )


def _ambiguous_band_decision(gap: float, profile: GapProfile, ctx: LineContext, block: BlockContext) -> bool:
    """Score a gap that falls between ``normal_gap_max`` and ``paragraph_gap_min``."""
    block_length = block.block_length
    next_length = len(ctx.next_text)
    next_is_short = next_length < SHORT_TEXT

    band = profile.paragraph_gap_min - profile.normal_gap_max
    visual = SEMANTIC_NEUTRAL
    if band > VISUAL_BAND_MIN_RANGE:
        visual = min(1.0, max(0.0, (gap - profile.normal_gap_max) / band))

    if ctx.is_outlier and ctx.prev_gap is not None and ctx.next_gap is not None and profile.mean > 0:
        boost = min(VISUAL_OUTLIER_BOOST_MAX, (gap - max(ctx.prev_gap, ctx.next_gap)) / profile.mean)
        visual = min(1.0, visual + boost)

    semantic = _semantic_score(ctx)
    if block_length > LONG_BLOCK_DAMPING_LENGTH and visual < LONG_BLOCK_DAMPING_VISUAL_MAX:
        semantic *= LONG_BLOCK_DAMPING_FACTOR

    # Long paragraph followed by a short capitalized line reads as a heading
    if (
        block_length > HEADING_AFTER_LONG_BLOCK_LENGTH
        and next_is_short
        and starts_with_capital(ctx.next_text)
        and gap >= profile.mean * HEADING_AFTER_LONG_BLOCK_GAP_RATIO
    ):
        logger.debug("Long block followed by short line at gap %.2f, breaking", gap)
        return True

    if (
        block_length > HEADING_AFTER_LONG_BLOCK_LENGTH
        and next_is_short
        and gap >= profile.paragraph_gap_min * LONG_TO_SHORT_SEMANTIC_GAP_RATIO
    ):
        semantic = max(semantic, SHORT_NEXT_SEMANTIC_BOOST)

    if next_length < SHORT_NEXT_LINE_LENGTH and gap >= profile.normal_gap_max * VERY_SHORT_NEXT_GAP_RATIO:
        semantic = max(semantic, VERY_SHORT_NEXT_SEMANTIC_BOOST)

    if ctx.prev_gap is not None and ctx.next_gap is not None:
        neighbour_average = (ctx.prev_gap + ctx.next_gap) / 2
        if gap > neighbour_average * NEIGHBOR_LARGE_RATIO and neighbour_average <= profile.normal_gap_max:
            visual = min(1.0, visual + NEIGHBOR_DEVIATION_BOOST)
        elif gap < neighbour_average * NEIGHBOR_SMALL_RATIO and neighbour_average >= profile.paragraph_gap_min:
            visual = max(0.0, visual - NEIGHBOR_DEVIATION_BOOST)

    contextual = _contextual_score(gap, profile, ctx, block_length)
    visual_weight, semantic_weight, contextual_weight = score_weights(profile)
    combined = visual * visual_weight + semantic * semantic_weight + contextual * contextual_weight

    if combined > SCORE_BREAK_THRESHOLD:
        return True
    if combined < SCORE_CONTINUE_THRESHOLD:
        return False
    if visual > SCORE_AGREE_VISUAL_HIGH and semantic > SCORE_AGREE_SEMANTIC_HIGH:
        return True
    if visual < SCORE_AGREE_VISUAL_LOW and semantic < SCORE_AGREE_SEMANTIC_LOW:
        return False
    if (
        ctx.font_size_change > ctx.current_font_size * FONT_CHANGE_RATIO
        and gap >= profile.normal_gap_max * SCORE_FONT_CHANGE_GAP_RATIO
    ):
        return True
    return combined > SCORE_DEFAULT_COMBINED_MIN and visual > SCORE_DEFAULT_VISUAL_MIN


def is_paragraph_boundary(
    gap: float,
    profile: GapProfile,
    line_context: LineContext | None = None,
    block_context: BlockContext | None = None,
) -> bool:
    """Decide whether a vertical gap separates two paragraphs.

    Parameters
    ----------
    gap : float
        Vertical distance between the two lines
    profile : GapProfile
        Profile of the column the lines belong to
    line_context : LineContext, optional
        Texts, font sizes and neighbouring gaps of the two lines
    block_context : BlockContext, optional
        The block that is open above the gap

    Returns
    -------
    bool
        True if the gap is a paragraph boundary

    Notes
    -----
    The decision runs in priority order:

    1. List, heading and font-change overrides.
    2. Homogeneous and mostly homogeneous profiles only break on outliers.
    3. Gaps at or above ``paragraph_gap_min`` break, gaps at or below
       ``normal_gap_max`` continue.
    4. Gaps in between are scored and the weighted score decides, with ties
       resolved towards continuation.

    """
    ctx = line_context or LineContext()
    block = block_context or BlockContext()

    override = _priority_override(gap, profile, ctx, block)
    if override is not None:
        return override

    if profile.document_type is DocumentType.HOMOGENEOUS or profile.homogeneity_level >= HOMOGENEOUS_MIN_LEVEL:
        return _homogeneous_decision(gap, profile, ctx, block)
    if (
        profile.document_type is DocumentType.MOSTLY_HOMOGENEOUS
        or profile.homogeneity_level >= MOSTLY_HOMOGENEOUS_MIN_LEVEL
    ):
        return _mostly_homogeneous_decision(gap, profile, ctx)

    if gap >= profile.paragraph_gap_min:
        return True
    if gap <= profile.normal_gap_max:
        return False

    return _ambiguous_band_decision(gap, profile, ctx, block)
