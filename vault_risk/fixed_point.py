"""Fixed-point helpers for 1e18-scaled (or token-decimal) on-chain integers.

Raw on-chain quantities stay integers until they are turned into ratios; the
conversion goes through :class:`fractions.Fraction` so no precision is lost
before the final comparison.
"""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Any

WAD_DECIMALS = 18
WAD = 10**WAD_DECIMALS


def parse_uint(value: Any) -> int:
    """Parse an unsigned integer from an int or a base-10 / 0x-hex string.

    Floats are rejected: large on-chain values do not survive a float.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an unsigned integer: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            parsed = int(text, 16)
        elif text.isdigit():
            parsed = int(text)
        else:
            raise ValueError(f"Not an unsigned integer: {value!r}")
    else:
        raise ValueError(f"Not an unsigned integer: {value!r}")
    if parsed < 0:
        raise ValueError(f"Negative value where unsigned expected: {value!r}")
    return parsed


def to_fraction(raw: int, decimals: int = WAD_DECIMALS) -> Fraction:
    """Exact rational value of a fixed-point integer."""
    return Fraction(raw, 10**decimals)


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp to ``[lo, hi]``; NaN collapses to ``lo``."""
    if math.isnan(value):
        return lo
    return max(lo, min(hi, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def to_ratio(raw: int, decimals: int = WAD_DECIMALS) -> float:
    """Fixed-point integer → ratio clamped to ``[0, 1]``."""
    return clamp01(float(to_fraction(raw, decimals)))


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Division that returns ``default`` instead of NaN/inf."""
    if denominator == 0 or not math.isfinite(denominator) or not math.isfinite(numerator):
        return default
    result = numerator / denominator
    if not math.isfinite(result):
        return default
    return result


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Zero-safe division clamped to ``[0, 1]``."""
    return clamp01(safe_div(numerator, denominator, default))
