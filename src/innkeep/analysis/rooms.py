# src/innkeep/analysis/rooms.py
from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, List, Optional, Sequence

from innkeep.adapters.config import config
from innkeep.analysis.ramp import multipliers_for_deal
from innkeep.domain.deal import Deal, MonthRow, RoomRevenueModel, RoomRevenueTotals, RoomType
from innkeep.domain.series import YearSeries, safe_div, year_key
from innkeep.domain.underwriting import Multipliers, RoomsKpis

DAYS_PER_YEAR = 365

# Monthly occupancy %, Jan..Dec
SEASONALITY_PRESETS: Dict[str, List[float]] = {
    "beach": [50, 55, 60, 70, 80, 88, 92, 90, 78, 65, 55, 50],           # summer peak
    "winterResort": [70, 75, 85, 75, 60, 45, 35, 35, 45, 60, 75, 85],    # winter peak
    "majorCity": [62, 64, 72, 78, 82, 80, 78, 76, 82, 84, 76, 70],       # strong year-round
    "businessCity": [68, 70, 78, 82, 80, 70, 65, 66, 80, 84, 78, 72],    # softer Jul/Aug
}

# used when a deal has no room revenue model yet
DEFAULT_ADR = 140.0
DEFAULT_PRESET = "majorCity"


def _clamp01(x: float) -> float:
    return min(1.0, max(0.0, x))


def total_rooms(room_types: Sequence[RoomType]) -> int:
    return sum(int(rt.rooms or 0) for rt in room_types)


def adr_by_type(overall_adr: float, adr_weight: float) -> float:
    """ADR for a room type given its weight index (100 = overall ADR)."""
    return overall_adr * (adr_weight / 100.0)


def weighted_adr(room_types: Sequence[RoomType], base_adr: float) -> float:
    """Room-count weighted ADR across the mix; `base_adr` when there are no rooms."""
    rooms = total_rooms(room_types)
    if rooms <= 0:
        return base_adr
    revenue_per_night = sum(rt.rooms * adr_by_type(base_adr, rt.adr_weight) for rt in room_types)
    return revenue_per_night / rooms


def compute_month_row(i: int, year: int, rooms: int, adr: float, occ_pct: float) -> MonthRow:
    """
    One calendar month of room revenue. `i` is 0..11; days come from the
    real calendar for `year` (February has 29 days in leap years).
    """
    month = i + 1
    days = calendar.monthrange(year, month)[1]
    rooms_available = float(rooms * days)
    rooms_sold = rooms_available * (occ_pct / 100.0)
    return MonthRow(
        month=month,
        adr=adr,
        occ_pct=occ_pct,
        days=days,
        rooms_available=rooms_available,
        rooms_sold=rooms_sold,
        rooms_revenue=rooms_sold * adr,
        revpar=adr * (occ_pct / 100.0),
    )


def rollup_totals(rows: Sequence[MonthRow]) -> RoomRevenueTotals:
    rooms_available = sum(r.rooms_available for r in rows)
    rooms_sold = sum(r.rooms_sold for r in rows)
    rooms_revenue = sum(r.rooms_revenue for r in rows)
    avg_adr = safe_div(rooms_revenue, rooms_sold)
    avg_occ_pct = safe_div(rooms_sold, rooms_available) * 100.0
    return RoomRevenueTotals(
        rooms_available=rooms_available,
        rooms_sold=rooms_sold,
        rooms_revenue=rooms_revenue,
        avg_adr=avg_adr,
        avg_occ_pct=avg_occ_pct,
        avg_revpar=avg_adr * (avg_occ_pct / 100.0),
    )


def build_room_revenue_model(
    rooms: int,
    adr: float | Sequence[float],
    occupancy_by_month: Sequence[float] | str,
    year: Optional[int] = None,
) -> RoomRevenueModel:
    """
    Twelve month rows plus totals.

    `occupancy_by_month` is either 12 percentages or a preset name from
    SEASONALITY_PRESETS; `adr` is a flat rate or 12 monthly rates.
    Unknown preset names raise KeyError.
    """
    preset: Optional[str] = None
    if isinstance(occupancy_by_month, str):
        preset = occupancy_by_month
        occupancy_by_month = SEASONALITY_PRESETS[preset]
    if len(occupancy_by_month) != 12:
        raise ValueError("occupancy_by_month must have 12 entries")

    adrs = [float(adr)] * 12 if isinstance(adr, (int, float)) else [float(a) for a in adr]
    if len(adrs) != 12:
        raise ValueError("adr must be a number or 12 monthly values")

    y = year if year is not None else date.today().year
    months = [compute_month_row(i, y, rooms, adrs[i], float(occupancy_by_month[i])) for i in range(12)]
    return RoomRevenueModel(seasonality_preset=preset, months=months, totals=rollup_totals(months))


def default_room_revenue_model(deal: Deal) -> RoomRevenueModel:
    return build_room_revenue_model(deal.total_rooms, DEFAULT_ADR, DEFAULT_PRESET)


def room_revenue_totals(deal: Deal) -> RoomRevenueTotals:
    """
    Stabilized room totals for a deal: the entered model (totals re-derived
    from its months when they were not supplied), else the default model.
    """
    model = deal.room_revenue
    if model is None:
        return default_room_revenue_model(deal).totals
    if model.months and model.totals.rooms_available == 0:
        return rollup_totals(model.months)
    return model.totals


def rooms_kpis_by_year(
    deal: Deal,
    multipliers: Optional[Multipliers] = None,
    horizon: Optional[int] = None,
) -> RoomsKpis:
    """
    Year-by-year room KPIs from the stabilized base:

      ADR_y = ADR_base * revenue_ramp_y * growth_index_y
      OCC_y = clamp01(OCC_base * revenue_ramp_y)     (no growth on occupancy)
      RS_y  = rooms * 365 * OCC_y

    Year 0 is pre-opening and carries zeros.
    """
    n = horizon if horizon is not None else config.HORIZON_YEARS
    m = multipliers if multipliers is not None else multipliers_for_deal(deal, n)

    totals = room_revenue_totals(deal)
    adr_base = totals.avg_adr
    occ_base = totals.avg_occ_pct / 100.0
    ra = float(deal.total_rooms * DAYS_PER_YEAR)

    adr: YearSeries = {"y0": 0.0}
    occ: YearSeries = {"y0": 0.0}
    revpar: YearSeries = {"y0": 0.0}
    available: YearSeries = {"y0": 0.0}
    sold: YearSeries = {"y0": 0.0}
    revenue: YearSeries = {"y0": 0.0}

    for i in range(1, n + 1):
        k = year_key(i)
        ramp = m.at("revenue_ramp", i)
        adr_y = adr_base * ramp * m.at("topline_growth", i)
        occ_y = _clamp01(occ_base * ramp)
        adr[k] = adr_y
        occ[k] = occ_y
        available[k] = ra
        sold[k] = ra * occ_y
        revpar[k] = adr_y * occ_y
        revenue[k] = adr_y * sold[k]

    return RoomsKpis(
        adr=adr,
        occupancy=occ,
        revpar=revpar,
        rooms_available=available,
        rooms_sold=sold,
        rooms_revenue=revenue,
    )
