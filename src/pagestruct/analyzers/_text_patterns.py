#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/_text_patterns.py
"""Text cues used by the boundary heuristics."""

from __future__ import annotations

import re

SENTENCE_END_PATTERN = re.compile(r"[.!?]\s*$")
PUNCTUATION_END_PATTERN = re.compile(r"[,;:—–-]\s*$")
HYPHEN_END_PATTERN = re.compile(r"[-—–]\s*$")
COLON_END_PATTERN = re.compile(r":\s*$")
LIST_ITEM_START_PATTERN = re.compile(r"^\s*([•\-*+▪▫◦‣⁃]|\d+[.)])\s+")
LEADING_PUNCTUATION_PATTERN = re.compile(r"^[.,;:—–-]")


def ends_sentence(text: str) -> bool:
    return bool(SENTENCE_END_PATTERN.search(text))


def ends_with_hyphen(text: str) -> bool:
    return bool(HYPHEN_END_PATTERN.search(text))


def ends_with_punctuation(text: str) -> bool:
    return bool(PUNCTUATION_END_PATTERN.search(text))


def ends_with_colon(text: str) -> bool:
    return bool(COLON_END_PATTERN.search(text))


def starts_with_capital(text: str) -> bool:
    """True if the first character is an uppercase letter in any script."""
    return bool(text) and text[0].isupper()


def starts_with_lowercase(text: str) -> bool:
    return bool(text) and text[0].islower()


def starts_with_list_marker(text: str) -> bool:
    return bool(LIST_ITEM_START_PATTERN.match(text))


def starts_with_punctuation(text: str) -> bool:
    return bool(LEADING_PUNCTUATION_PATTERN.match(text))
