#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/structure.py
"""Document-level structure summaries.

Cheap signals that a downstream classifier can use to decide whether a
document is worth searching for headings, and whether text continues across a
page break.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Optional

from pagestruct.analyzers._text_patterns import (
    ends_sentence,
    starts_with_capital,
    starts_with_lowercase,
    starts_with_punctuation,
)
from pagestruct.analyzers.metrics import round_half_up
from pagestruct.constants import (
    FONT_SIZE_ROUNDING_STEP,
    MEDIUM_TEXT,
    PAGE_BREAK_NEXT_START_LENGTH,
    PAGE_BREAK_PREV_END_LENGTH,
    SHORT_TEXT_MAX,
)
from pagestruct.models import DocumentStructure, PageBreakContext, StructuralElement

logger = logging.getLogger(__name__)

__all__ = ["analyze_page_break", "analyze_structure"]

_COMMA_END = re.compile(r",\s*$")
_DASH_END = re.compile(r"[-—–]\s*$")
_COLON_OR_SEMICOLON_END = re.compile(r"[:;]\s*$")


def analyze_structure(elements: Sequence[StructuralElement]) -> DocumentStructure:
    """Summarize the typographic variety of a document.

    Parameters
    ----------
    elements : Sequence[StructuralElement]
        Elements in reading order

    Returns
    -------
    DocumentStructure
        Font sizes are compared after rounding to 0.5 pt. Headings are likely
        when fonts or styles vary, or when a short first element (under 150
        characters) is followed by a long one (over 200 characters).

    """
    if not elements:
        return DocumentStructure()

    sizes = [element.font_size for element in elements if element.font_size > 0]
    unique_sizes = sorted({round_half_up(size, FONT_SIZE_ROUNDING_STEP) for size in sizes})
    has_font_variation = len(unique_sizes) > 1
    has_style_variation = any(element.is_bold or element.is_italic for element in elements)

    first_text: Optional[str] = elements[0].text
    likely_has_headings = has_font_variation or has_style_variation
    if not likely_has_headings and len(elements) > 1:
        likely_has_headings = len(first_text) < SHORT_TEXT_MAX and len(elements[1].text) > MEDIUM_TEXT

    structure = DocumentStructure(
        is_homogeneous=not has_font_variation and not has_style_variation,
        has_font_variation=has_font_variation,
        has_style_variation=has_style_variation,
        likely_has_headings=likely_has_headings,
        total_elements=len(elements),
        unique_font_sizes=tuple(unique_sizes),
        first_element_text=first_text,
    )
    logger.debug("Document structure: %s", structure)
    return structure


def analyze_page_break(prev_text: Optional[str], next_text: Optional[str]) -> PageBreakContext:
    """Describe how the previous page ends and the next one begins.

    Parameters
    ----------
    prev_text : str, optional
        Text at the end of the previous page
    next_text : str, optional
        Text at the start of the next page

    Returns
    -------
    PageBreakContext
        Previous page ending incomplete means it ends in a comma, dash, colon
        or semicolon rather than a sentence end.

    Examples
    --------
    >>> analyze_page_break("the results were,", "and then").likely_continuation
    True
    >>> analyze_page_break("The end.", "Chapter Two").likely_continuation
    False

    """
    prev = (prev_text or "").strip()
    following = (next_text or "").strip()

    ends_with_comma = bool(_COMMA_END.search(prev))
    ends_with_dash = bool(_DASH_END.search(prev))
    ends_with_colon_or_semicolon = bool(_COLON_OR_SEMICOLON_END.search(prev))
    ends_with_sentence_end = ends_sentence(prev)

    return PageBreakContext(
        prev_ends_with_comma=ends_with_comma,
        prev_ends_with_dash=ends_with_dash,
        prev_ends_with_colon_or_semicolon=ends_with_colon_or_semicolon,
        prev_ends_with_sentence_end=ends_with_sentence_end,
        prev_ends_incomplete=(ends_with_comma or ends_with_dash or ends_with_colon_or_semicolon)
        and not ends_with_sentence_end,
        next_starts_with_lowercase=starts_with_lowercase(following),
        next_starts_with_capital=starts_with_capital(following),
        next_starts_with_punctuation=starts_with_punctuation(following),
        prev_page_end=prev[-PAGE_BREAK_PREV_END_LENGTH:],
        next_page_start=following[:PAGE_BREAK_NEXT_START_LENGTH],
    )
