#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Base classes for analyzer options.

This module defines the foundation shared by the frozen option dataclasses
used throughout the layout analysis pipeline.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields, replace
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    Options objects are immutable so they can be shared between pages and
    columns analyzed independently; this mixin adds the ability to derive
    modified copies.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)

    @classmethod
    def field_names(cls) -> list[str]:
        """Return the names of all dataclass fields in declaration order."""
        return [f.name for f in fields(cls)]  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        """Return the option values as a plain dictionary.

        Returns
        -------
        dict[str, Any]
            Mapping from field name to value

        """
        return {name: getattr(self, name) for name in self.field_names()}
