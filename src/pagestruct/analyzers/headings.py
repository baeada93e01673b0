#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/headings.py
"""Heading level assignment.

Lines or blocks that a classifier has already identified as headings are given
levels 1-6. Levels come from, in order of preference:

1. the document outline (bookmarks), when a title matches;
2. leading enumeration such as ``2.1.``;
3. font size clustering across all headings;
4. one level below the previous heading, for sizes outside the clusters;
5. fixed bands of the ratio between heading and body font size.

A final pass keeps the hierarchy from skipping levels.

"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, Union

from pagestruct.analyzers._statistics import is_valid_number, mean, population_std_dev
from pagestruct.constants import (
    DEFAULT_BASE_FONT_SIZE,
    DEFAULT_HEADING_LEVEL,
    HEADING_ABS_DIFF_LOOSE,
    HEADING_ABS_DIFF_TIGHT,
    HEADING_MAX_FONT_SIZE,
    HEADING_MIN_FONT_SIZE,
    HEADING_RATIO_BANDS,
    HEADING_TOLERANCE_LOOSE,
    HEADING_TOLERANCE_TIGHT,
    HEADING_VARIABILITY_RATIO,
    MAX_HEADING_LEVEL,
    OUTLINE_MAX_LEVEL_DIFF,
    OUTLINE_SIMILARITY_MIN,
    RELATIVE_MAX_LEVEL_DIFF,
)
from pagestruct.models import FontSizeHierarchy, HeadingCandidate, OutlineItem

logger = logging.getLogger(__name__)

__all__ = [
    "HeadingHierarchyAnalyzer",
    "analyze_font_size_hierarchy",
    "assign_heading_levels",
    "determine_heading_level",
    "extract_numbering_level",
    "match_heading_to_outline",
    "normalize_font_size",
    "ratio_band_level",
    "validate_heading_hierarchy",
]

NUMBERING_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?[.)]\s*")
_WHITESPACE_PATTERN = re.compile(r"\s+")

OutlineEntry = Union[OutlineItem, Mapping[str, Any]]


def normalize_font_size(font_size: Any) -> Optional[float]:
    """Clamp a font size to ``[0.1, 1000]``; None for non-numeric, non-finite or non-positive values."""
    if not is_valid_number(font_size) or font_size <= 0:
        return None
    return max(HEADING_MIN_FONT_SIZE, min(HEADING_MAX_FONT_SIZE, float(font_size)))


def analyze_font_size_hierarchy(
    headings: Iterable[HeadingCandidate], base_font_size: float = DEFAULT_BASE_FONT_SIZE
) -> FontSizeHierarchy:
    """Cluster heading font sizes into levels.

    Parameters
    ----------
    headings : Iterable[HeadingCandidate]
        Heading candidates; entries with an invalid font size are dropped
    base_font_size : float, default 12.0
        Body font size, kept for the ratio fallback

    Returns
    -------
    FontSizeHierarchy
        Level of each clustered font size. The largest group is level 1 and
        every smaller group one level deeper, capped at 6.

    Notes
    -----
    Sizes are sorted descending and grouped while neighbouring sizes differ
    by at most 7% relative and 12% of the group average (8% and 15% when the
    sizes vary by more than 20% of their mean). Singleton groups join the
    nearest larger group within the absolute threshold, or stay on their own.

    """
    sizes = [size for size in (normalize_font_size(h.font_size) for h in headings) if size is not None]
    if not sizes:
        return FontSizeHierarchy(base_font_size=base_font_size)

    average = mean(sizes)
    if population_std_dev(sizes, average) > average * HEADING_VARIABILITY_RATIO:
        tolerance, abs_ratio = HEADING_TOLERANCE_TIGHT, HEADING_ABS_DIFF_TIGHT
    else:
        tolerance, abs_ratio = HEADING_TOLERANCE_LOOSE, HEADING_ABS_DIFF_LOOSE

    ordered = sorted(sizes, reverse=True)
    groups: list[list[float]] = []
    current = [ordered[0]]
    for previous, size in zip(ordered, ordered[1:]):
        group_average = mean(current)
        diff = abs(size - previous)
        if diff <= group_average * abs_ratio and diff / group_average <= tolerance:
            current.append(size)
        else:
            groups.append(current)
            current = [size]
    groups.append(current)

    merged = [group for group in groups if len(group) > 1]
    singletons = [group[0] for group in groups if len(group) == 1]
    for size in singletons:
        best: Optional[list[float]] = None
        best_diff = float("inf")
        for group in merged:
            group_average = mean(group)
            diff = abs(size - group_average)
            if diff <= group_average * abs_ratio and diff < best_diff:
                best, best_diff = group, diff
        if best is not None:
            best.append(size)
        else:
            merged.append([size])

    merged.sort(key=mean, reverse=True)
    hierarchy: dict[float, int] = {}
    for idx, group in enumerate(merged):
        level = min(idx + 1, MAX_HEADING_LEVEL)
        for size in group:
            hierarchy[size] = level

    logger.debug(
        "Heading font hierarchy: %s",
        ", ".join(f"{size:.1f}pt->H{level}" for size, level in sorted(hierarchy.items(), reverse=True)),
    )
    return FontSizeHierarchy(
        base_font_size=base_font_size,
        hierarchy=hierarchy,
        groups=tuple(tuple(group) for group in merged),
        unique_sizes=tuple(sorted(hierarchy, reverse=True)),
    )


def _normalize_title(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text.strip().lower())


def _outline_levels(entries: Iterable[Any], depth: int = 1, levels: Optional[dict[str, int]] = None) -> dict[str, int]:
    """Flatten an outline into ``{normalized title: depth}``, skipping malformed entries."""
    if levels is None:
        levels = {}
    for entry in entries:
        if isinstance(entry, Mapping):
            entry = OutlineItem.from_dict(entry)
        if not isinstance(entry, OutlineItem):
            logger.debug("Skipping malformed outline entry %r", entry)
            continue
        if entry.title:
            levels[_normalize_title(entry.title)] = depth
        if entry.items:
            _outline_levels(entry.items, depth + 1, levels)
    return levels


def match_heading_to_outline(
    text: str, outline: Optional[Sequence[OutlineEntry]], clustered_level: Optional[int] = None
) -> Optional[int]:
    """Look a heading up in the document outline.

    Parameters
    ----------
    text : str
        Heading text
    outline : Sequence of OutlineItem or mapping, optional
        Top-level outline entries
    clustered_level : int, optional
        Level from font size clustering

    Returns
    -------
    int or None
        Depth of the matching outline entry (capped at 6), or None when no
        entry matches or the outline level is more than 2 away from
        ``clustered_level``

    Examples
    --------
    >>> outline = [OutlineItem("Methods", (OutlineItem("Data Collection"),))]
    >>> match_heading_to_outline("Data  collection", outline)
    2

    """
    if not outline or not text or not isinstance(text, str):
        return None

    levels = _outline_levels(outline)
    heading = _normalize_title(text)
    level = levels.get(heading)
    if level is None:
        for title, depth in levels.items():
            if title and (title in heading or heading in title):
                similarity = min(len(title), len(heading)) / max(len(title), len(heading))
                if similarity > OUTLINE_SIMILARITY_MIN:
                    level = depth
                    break
    if level is None:
        return None

    level = min(level, MAX_HEADING_LEVEL)
    if clustered_level is not None and abs(level - clustered_level) > OUTLINE_MAX_LEVEL_DIFF:
        logger.warning(
            "Outline level %d for %r is too far from clustered level %d, ignoring outline",
            level,
            text[:40],
            clustered_level,
        )
        return None
    return level


def extract_numbering_level(text: str) -> Optional[tuple[int, int]]:
    """Read a leading section number such as ``2.1.`` or ``3)``.

    Returns
    -------
    tuple[int, int] or None
        ``(level, depth)`` where depth counts the numeric groups and
        ``level = min(depth + 1, 6)``, or None without numbering

    Examples
    --------
    >>> extract_numbering_level("2.1. Subsection")
    (3, 2)
    >>> extract_numbering_level("1. Introduction")
    (2, 1)

    """
    if not text or not isinstance(text, str):
        return None
    match = NUMBERING_PATTERN.match(text.strip())
    if not match:
        return None
    depth = sum(1 for group in match.groups() if group)
    return min(depth + 1, MAX_HEADING_LEVEL), depth


def ratio_band_level(font_size: float, base_font_size: float) -> int:
    """Map ``font_size / base_font_size`` to a level with fixed bands."""
    if base_font_size <= 0:
        return DEFAULT_HEADING_LEVEL
    ratio = font_size / base_font_size
    for min_ratio, level in HEADING_RATIO_BANDS:
        if ratio >= min_ratio:
            return level
    return MAX_HEADING_LEVEL


def _relative_level(previous_headings: Sequence[HeadingCandidate], clustered: Optional[int]) -> Optional[int]:
    """One level below the last leveled heading.

    With a clustered level the result must lie within one level of it,
    otherwise ``None`` is returned and the clustered level stands.
    """
    for previous in reversed(previous_headings):
        if previous.level is None:
            continue
        level = min(previous.level + 1, MAX_HEADING_LEVEL)
        if clustered is not None and abs(level - clustered) > RELATIVE_MAX_LEVEL_DIFF:
            return None
        return level
    return None


def _determine_level(
    heading: HeadingCandidate,
    font_size: float,
    hierarchy: FontSizeHierarchy,
    outline: Optional[Sequence[OutlineEntry]],
    previous_headings: Sequence[HeadingCandidate],
) -> int:
    clustered = hierarchy.level_for(font_size)

    if outline:
        outline_level = match_heading_to_outline(heading.text, outline, clustered)
        if outline_level is not None:
            return outline_level

    numbering = extract_numbering_level(heading.text)
    if numbering is not None:
        return numbering[0]
    if heading.numbering_depth:
        return min(heading.numbering_depth + 1, MAX_HEADING_LEVEL)

    if clustered is not None:
        relative = _relative_level(previous_headings, clustered)
        return relative if relative is not None else clustered

    # Font size outside the clustered set
    relative = _relative_level(previous_headings, None)
    if relative is not None:
        return relative
    return ratio_band_level(font_size, hierarchy.base_font_size)


def determine_heading_level(
    heading: HeadingCandidate,
    hierarchy: FontSizeHierarchy,
    outline: Optional[Sequence[OutlineEntry]] = None,
    previous_headings: Sequence[HeadingCandidate] = (),
) -> int:
    """Choose the level of one heading.

    Parameters
    ----------
    heading : HeadingCandidate
        The heading to level
    hierarchy : FontSizeHierarchy
        Result of :func:`analyze_font_size_hierarchy` over all headings
    outline : Sequence of OutlineItem or mapping, optional
        Document outline
    previous_headings : Sequence[HeadingCandidate], default ()
        Headings before this one, with their levels

    Returns
    -------
    int
        Level 1-6. A numbered heading takes its numbering level, so
        ``"2.1. Subsection"`` is always level 3. Headings with an invalid font
        size get level 2. Failures while matching fall back to the font size
        ratio bands.

    """
    font_size = normalize_font_size(heading.font_size)
    if font_size is None:
        return DEFAULT_HEADING_LEVEL
    try:
        return _determine_level(heading, font_size, hierarchy, outline, previous_headings)
    except (ArithmeticError, AttributeError, TypeError, ValueError) as exc:
        logger.warning("Heading level lookup failed for %r, using font size ratio: %s", heading.text[:40], exc)
        return ratio_band_level(font_size, hierarchy.base_font_size)


def validate_heading_hierarchy(headings: Sequence[HeadingCandidate]) -> list[HeadingCandidate]:
    """Clamp levels so the hierarchy never skips a level.

    After the first heading, a level more than one deeper than the deepest
    level seen so far is raised to that bound, so
    ``level[i + 1] <= max(level[0..i]) + 1`` holds.

    Examples
    --------
    >>> hs = [HeadingCandidate("A", 20, level=1), HeadingCandidate("B", 12, level=4)]
    >>> [h.level for h in validate_heading_hierarchy(hs)]
    [1, 2]

    """
    corrected: list[HeadingCandidate] = []
    max_seen = 0
    for heading in headings:
        level = heading.level if heading.level is not None else DEFAULT_HEADING_LEVEL
        if corrected and level > max_seen + 1:
            logger.debug("Heading %r level %d clamped to %d", heading.text[:40], level, max_seen + 1)
            level = max_seen + 1
        max_seen = max(max_seen, level)
        corrected.append(heading.with_level(level))
    return corrected


class HeadingHierarchyAnalyzer:
    """Assign levels to the headings of a document.

    Parameters
    ----------
    base_font_size : float, default 12.0
        Body font size of the document
    outline : Sequence of OutlineItem or mapping, optional
        Document outline used to corroborate levels

    Examples
    --------
    >>> analyzer = HeadingHierarchyAnalyzer(base_font_size=12)
    >>> leveled = analyzer.analyze([HeadingCandidate("Title", 24), HeadingCandidate("Part", 18)])
    >>> [h.level for h in leveled]
    [1, 2]

    """

    def __init__(
        self, base_font_size: float = DEFAULT_BASE_FONT_SIZE, outline: Optional[Sequence[OutlineEntry]] = None
    ):
        self.base_font_size = base_font_size
        self.outline = list(outline) if outline else None

    def build_hierarchy(self, headings: Iterable[HeadingCandidate]) -> FontSizeHierarchy:
        return analyze_font_size_hierarchy(headings, self.base_font_size)

    def analyze(self, headings: Sequence[HeadingCandidate]) -> list[HeadingCandidate]:
        """Level every heading in document order and enforce a monotonic hierarchy."""
        headings = list(headings)
        if not headings:
            return []
        hierarchy = self.build_hierarchy(headings)
        leveled: list[HeadingCandidate] = []
        for heading in headings:
            level = determine_heading_level(heading, hierarchy, self.outline, leveled)
            leveled.append(heading.with_level(level))
        return validate_heading_hierarchy(leveled)


def assign_heading_levels(
    headings: Sequence[HeadingCandidate],
    base_font_size: float = DEFAULT_BASE_FONT_SIZE,
    outline: Optional[Sequence[OutlineEntry]] = None,
) -> list[HeadingCandidate]:
    """Return copies of ``headings`` with levels assigned.

    Shortcut for ``HeadingHierarchyAnalyzer(base_font_size, outline).analyze(headings)``.
    """
    return HeadingHierarchyAnalyzer(base_font_size, outline).analyze(headings)
