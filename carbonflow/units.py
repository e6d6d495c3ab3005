# -*- coding: utf-8 -*-
"""
Activity Unit Conversion

Conversion factors between activity units of the same physical category.
Each category has one base unit; every other unit is expressed as a
multiple of it, so any two units of a category convert through the base.

Unit names are normalised before lookup: lower-cased, trimmed, with
spaces and ``*`` replaced by ``-`` ("t*km" and "t km" both become "t-km").

Example:
    >>> from carbonflow.units import conversion_factor
    >>> conversion_factor("t", "kg") == 1000
    True
    >>> conversion_factor("kg", "kgCO2e/kg") == 1
    True

Author: CarbonFlow Platform Team
Date: October 2026
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_D = Decimal

UNIT_BASES: Dict[str, Dict[str, Decimal]] = {
    # base: g
    "mass": {
        "g": _D(1), "gram": _D(1), "gr": _D(1),
        "mg": _D("0.001"), "milligram": _D("0.001"),
        "kg": _D(1000), "kilogram": _D(1000),
        "t": _D(1000000), "ton": _D(1000000), "tonne": _D(1000000),
        "metric-ton": _D(1000000),
        "kt": _D(1000000000),
        "lb": _D("453.59237"), "pound": _D("453.59237"),
        "oz": _D("28.349523125"), "ounce": _D("28.349523125"),
        "short-ton": _D(907185), "long-ton": _D(1016047),
    },
    # base: m
    "distance": {
        "m": _D(1), "meter": _D(1),
        "km": _D(1000), "kilometer": _D(1000),
        "cm": _D("0.01"), "centimeter": _D("0.01"),
        "mm": _D("0.001"), "millimeter": _D("0.001"),
        "mi": _D("1609.344"), "mile": _D("1609.344"),
        "nmi": _D(1852),
        "ft": _D("0.3048"), "foot": _D("0.3048"),
        "in": _D("0.0254"), "inch": _D("0.0254"),
        "yd": _D("0.9144"), "yard": _D("0.9144"),
    },
    # base: m2
    "area": {
        "m2": _D(1), "sq-m": _D(1),
        "km2": _D(1000000), "sq-km": _D(1000000),
        "ha": _D(10000), "hectare": _D(10000),
        "cm2": _D("0.0001"), "sq-cm": _D("0.0001"),
        "ft2": _D("0.092903"), "sq-ft": _D("0.092903"),
        "acre": _D("4046.86"),
    },
    # base: L
    "volume": {
        "l": _D(1), "liter": _D(1), "litre": _D(1),
        "ml": _D("0.001"), "milliliter": _D("0.001"),
        "m3": _D(1000), "cubic-meter": _D(1000),
        "cm3": _D("0.001"),
        "gal": _D("3.78541"), "uk-gal": _D("4.54609"),
        "ft3": _D("28.3168"), "cubic-foot": _D("28.3168"),
    },
    # base: kWh
    "energy": {
        "kwh": _D(1), "kw-h": _D(1),
        "mwh": _D(1000), "mw-h": _D(1000),
        "gwh": _D(1000000), "gw-h": _D(1000000),
        "j": _D(1) / _D(3600000), "joule": _D(1) / _D(3600000),
        "kj": _D(1) / _D(3600), "kilojoule": _D(1) / _D(3600),
        "mj": _D(1) / _D("3.6"), "megajoule": _D(1) / _D("3.6"),
        "gj": _D(1000) / _D("3.6"), "gigajoule": _D(1000) / _D("3.6"),
        "btu": _D("0.000293071"),
        "kcal": _D(4184) / _D(3600000),
    },
    # base: h
    "time": {
        "s": _D(1) / _D(3600), "sec": _D(1) / _D(3600), "second": _D(1) / _D(3600),
        "min": _D(1) / _D(60), "minute": _D(1) / _D(60),
        "h": _D(1), "hr": _D(1), "hour": _D(1),
        "day": _D(24), "week": _D(168),
        "year": _D(8766),
    },
    # base: t-km
    "transport": {
        "t-km": _D(1), "tkm": _D(1), "tonne-km": _D(1),
        "kg-km": _D("0.001"), "kgkm": _D("0.001"),
        "t-mi": _D("1.60934"),
        "pkm": _D(1), "passenger-km": _D(1),
        "vkm": _D(1), "vehicle-km": _D(1),
    },
    # base: item
    "items": {
        "item": _D(1), "unit": _D(1), "piece": _D(1), "pcs": _D(1),
        "set": _D(1), "pair": _D(2), "dozen": _D(12),
    },
}


def normalize_unit(unit: Optional[str]) -> str:
    """Lower-case, trim and hyphenate a unit name."""
    if not isinstance(unit, str):
        return ""
    return unit.strip().lower().replace(" ", "-").replace("*", "-")


def factor_denominator(factor_unit: Optional[str]) -> str:
    """Return the activity unit an emission factor is expressed per.

    ``kgCO2e/kg`` yields ``kg``; a unit without a slash is returned as is.
    """
    normalized = normalize_unit(factor_unit)
    if "/" in normalized:
        return normalized.rsplit("/", 1)[1]
    return normalized


def conversion_factor(
    activity_unit: Optional[str],
    factor_unit: Optional[str],
) -> Optional[Decimal]:
    """Return the multiplier from ``activity_unit`` to the factor's unit.

    Args:
        activity_unit: Unit of the activity quantity.
        factor_unit: Emission factor unit, either a bare activity unit or
            ``<mass>/<activity unit>``.

    Returns:
        Decimal multiplier, ``1`` when the units match, or None when
        either unit is unknown or they belong to different categories.
    """
    source = normalize_unit(activity_unit)
    target = factor_denominator(factor_unit)
    if not source or not target:
        return None
    if source == target:
        return _D(1)
    for rates in UNIT_BASES.values():
        if source in rates and target in rates:
            return rates[source] / rates[target]
    logger.debug("No unit conversion between %r and %r", activity_unit, factor_unit)
    return None


__all__ = [
    "UNIT_BASES",
    "conversion_factor",
    "factor_denominator",
    "normalize_unit",
]
