#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for the pagestruct layout analyzers.

Options are frozen dataclasses so a single instance can be shared across
pages and columns that are analyzed independently.
"""

from __future__ import annotations

from pagestruct.options.base import CloneFrozenMixin
from pagestruct.options.layout import LayoutOptions

__all__ = [
    "CloneFrozenMixin",
    "LayoutOptions",
]
