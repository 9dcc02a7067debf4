# foodsense/utils/numbers.py
from __future__ import annotations

import math
from typing import Any, Optional


def _parse_float(val: Any) -> Optional[float]:
    if val is None or isinstance(val, bool):
        return None
    try:
        return float(str(val).strip()) if isinstance(val, str) else float(val)
    except (TypeError, ValueError):
        return None


def coerce_float(val: Any, default: float = 0.0) -> float:
    """
    Best-effort numeric coercion for upstream values:
      - None / NaN / inf / unparseable -> default
      - "12.5" -> 12.5
    """
    out = _parse_float(val)
    if out is None or math.isnan(out) or math.isinf(out):
        return default
    return out


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_to_domain(val: Any, lo: float, hi: float) -> float:
    """
    Clamp an untrusted value into [lo, hi].

    Missing, NaN and unparseable values count as ``lo``; infinities are
    out-of-range values like any other and land on the nearest bound.
    """
    out = _parse_float(val)
    if out is None or math.isnan(out):
        return lo
    return clamp(out, lo, hi)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))
