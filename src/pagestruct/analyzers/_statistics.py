#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pagestruct/analyzers/_statistics.py
"""Small statistical helpers shared by the layout analyzers.

This private module keeps the exact percentile, mode and clustering
conventions in one place so every analyzer derives the same numbers from the
same input.

"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

__all__ = [
    "cluster_objects",
    "finite_positive",
    "is_valid_number",
    "mean",
    "mode",
    "percentile",
    "population_std_dev",
]


def is_valid_number(value: Any) -> bool:
    """Return True for finite ints and floats (bools excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def finite_positive(values: Iterable[Any]) -> list[float]:
    """Keep only finite values strictly greater than zero."""
    return [float(v) for v in values if is_valid_number(v) and v > 0]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float], center: float | None = None) -> float:
    """Population standard deviation, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    mu = mean(values) if center is None else center
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Return the nearest-rank percentile of an ascending sequence.

    Uses ``sorted_values[min(floor(n * pct / 100), n - 1)]`` without
    interpolation.

    Parameters
    ----------
    sorted_values : Sequence[float]
        Values sorted ascending
    pct : float
        Percentile in the range 0-100

    Returns
    -------
    float
        The percentile value, or 0.0 when the sequence is empty

    """
    if not sorted_values:
        return 0.0
    index = int(math.floor(len(sorted_values) * (pct / 100.0)))
    return sorted_values[min(index, len(sorted_values) - 1)]


def mode(values: Iterable[T]) -> T | None:
    """Return the most frequent value.

    On a tie the value that was seen first wins, so callers that pass sorted
    input get the smallest of the tied values.
    """
    counts: dict[T, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    best: T | None = None
    best_count = 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def cluster_objects(objects: Iterable[T], key: Callable[[T], float], tolerance: float) -> list[list[T]]:
    """Group objects whose keys chain together within a tolerance.

    Objects are sorted by key and each one is compared with the last member of
    the current cluster, not with the cluster mean, so a slow drift of values
    stays in one cluster.

    Parameters
    ----------
    objects : Iterable
        Objects to cluster
    key : Callable
        Function returning the numeric key of an object
    tolerance : float
        Maximum key difference between neighbouring members

    Returns
    -------
    list of list
        Clusters in ascending key order

    """
    ordered = sorted(objects, key=key)
    if not ordered:
        return []

    clusters: list[list[T]] = []
    current = [ordered[0]]
    for obj in ordered[1:]:
        if abs(key(obj) - key(current[-1])) <= tolerance:
            current.append(obj)
        else:
            clusters.append(current)
            current = [obj]
    clusters.append(current)
    return clusters
