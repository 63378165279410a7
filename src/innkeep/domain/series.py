from __future__ import annotations

import math
from typing import Dict, Iterable, List

# Per-year values keyed "y0".."yN". y0 is acquisition / pre-opening.
YearSeries = Dict[str, float]


def year_key(i: int) -> str:
    return f"y{i}"


def year_index(key: str) -> int:
    return int(key[1:])


def year_keys(horizon: int) -> List[str]:
    """["y0", "y1", ..., "y<horizon>"]"""
    return [year_key(i) for i in range(horizon + 1)]


def zero_series(horizon: int) -> YearSeries:
    return {k: 0.0 for k in year_keys(horizon)}


def clamp_pre_op(series: YearSeries) -> YearSeries:
    """Operating series carry nothing in y0."""
    if "y0" in series:
        series["y0"] = 0.0
    return series


def years_through(series: YearSeries, through_year_index: int | None) -> List[float]:
    """Ordered values y0..y<through> (all years when through is None)."""
    keys = sorted(series.keys(), key=year_index)
    if through_year_index is not None:
        keys = [k for k in keys if year_index(k) <= through_year_index]
    return [float(series[k]) for k in keys]


def series_sum(series: YearSeries, keys: Iterable[str] | None = None) -> float:
    if keys is None:
        return float(sum(series.values()))
    return float(sum(series.get(k, 0.0) for k in keys))


def safe_div(num: float, den: float, default: float = 0.0) -> float:
    """num / den, or `default` when the denominator is zero or the result is not finite."""
    if den == 0:
        return default
    out = num / den
    if not math.isfinite(out):
        return default
    return out
