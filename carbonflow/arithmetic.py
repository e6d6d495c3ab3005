# -*- coding: utf-8 -*-
"""
CarbonFlow Deterministic Score Arithmetic

Decimal helpers shared by every scorer so that weighted sums, percentages
and integer rounding behave identically across the codebase.

Features:
- Conversion through ``str`` so 0.1 + 0.2 == 0.3
- ROUND_HALF_UP integer rounding (2.5 -> 3, never banker's rounding)
- Score clamping to [0, 100]

Author: CarbonFlow Platform Team
Date: October 2026
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Union

Number = Union[Decimal, float, int]

_ONE = Decimal("1")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal through its string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(to_decimal(value).quantize(_ONE, rounding=ROUND_HALF_UP))


def clamp_score(value: Number) -> int:
    """Round half-up and clamp to an integer score in [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def percentage(part: int, whole: int) -> int:
    """Return ``part / whole`` as a clamped integer percentage (0 if empty)."""
    if whole <= 0:
        return 0
    return clamp_score(Decimal(part) * 100 / Decimal(whole))


def weighted_sum(values: Mapping[str, Number], weights: Mapping[str, Number]) -> Decimal:
    """Return sum(values[k] * weights[k]) over the keys of ``weights``.

    Raises:
        KeyError: If a weighted key has no value.
    """
    return sum(
        (to_decimal(values[key]) * to_decimal(w) for key, w in weights.items()),
        Decimal(0),
    )


def weighted_mean(pairs: Any) -> Decimal:
    """Return the weighted mean of ``(value, weight)`` pairs (0 if no weight)."""
    total = Decimal(0)
    weight_total = Decimal(0)
    for value, weight in pairs:
        w = to_decimal(weight)
        total += to_decimal(value) * w
        weight_total += w
    if weight_total == 0:
        return Decimal(0)
    return total / weight_total


def mean(values: Any) -> Decimal:
    """Return the arithmetic mean of ``values`` (0 if empty)."""
    items = [to_decimal(v) for v in values]
    if not items:
        return Decimal(0)
    return sum(items, Decimal(0)) / len(items)


__all__ = [
    "Number",
    "clamp_score",
    "mean",
    "percentage",
    "round_half_up",
    "to_decimal",
    "weighted_mean",
    "weighted_sum",
]
