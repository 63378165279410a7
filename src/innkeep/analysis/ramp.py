# src/innkeep/analysis/ramp.py
from __future__ import annotations

from typing import Dict, Sequence

from innkeep.adapters.config import config
from innkeep.domain.deal import Deal
from innkeep.domain.series import YearSeries, year_key
from innkeep.domain.underwriting import Multipliers

RAMP_YEARS = 4


def build_multipliers(
    years: int,
    revenue_ramp4: Sequence[float],
    cost_ramp4: Sequence[float],
    growth_pct: float,
    inflation_pct: float,
) -> Multipliers:
    """
    Year-by-year macro multipliers for years 1..`years`.

    `growth_pct` / `inflation_pct` are fractions here (0.03 = 3%). Index
    multipliers compound from year 1 with year 0 implicitly 1.0; the ramp
    curves cover Y1..Y4 and read as 1.0 afterwards.
    """
    ys = list(range(1, years + 1))

    def _ramp(curve: Sequence[float], i: int) -> float:
        return float(curve[i - 1]) if i <= RAMP_YEARS else 1.0

    return Multipliers(
        years=ys,
        inflation=[(1.0 + inflation_pct) ** i for i in ys],
        topline_growth=[(1.0 + growth_pct) ** i for i in ys],
        revenue_ramp=[_ramp(revenue_ramp4, i) for i in ys],
        cost_ramp=[_ramp(cost_ramp4, i) for i in ys],
    )


def multipliers_for_deal(deal: Deal, years: int | None = None) -> Multipliers:
    """Multipliers from a deal's ramp settings (percent inputs)."""
    ramp = deal.assumptions.ramp
    return build_multipliers(
        years if years is not None else config.HORIZON_YEARS,
        ramp.revenue_ramp,
        ramp.cost_ramp,
        ramp.topline_growth_pct / 100.0,
        ramp.inflation_pct / 100.0,
    )


def ramped_topline_factor(m: Multipliers, year: int) -> float:
    """
    Topline volume factor for one year.

    Ramp and compounding growth are alternative regimes here: years 1..4 use
    the ramp curve, later years use the growth index only.
    """
    if year <= 0:
        return 1.0
    if year <= RAMP_YEARS:
        return m.at("revenue_ramp", year)
    return m.at("topline_growth", year)


def year_index_factors(m: Multipliers) -> Dict[str, YearSeries]:
    """
    YearSeries views of every multiplier, y0 = 1.0.
    """
    out: Dict[str, YearSeries] = {}
    for name in ("inflation", "topline_growth", "revenue_ramp", "cost_ramp"):
        series: YearSeries = {"y0": 1.0}
        for i in m.years:
            series[year_key(i)] = m.at(name, i)
        out[name] = series
    return out
