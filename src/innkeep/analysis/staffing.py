# src/innkeep/analysis/staffing.py
from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.analysis.ramp import multipliers_for_deal, ramped_topline_factor
from innkeep.analysis.rooms import room_revenue_totals
from innkeep.domain.deal import (
    MEAL_KEYS,
    Deal,
    PayrollRole,
    StaffingAssumptions,
    StaffingOverrides,
)
from innkeep.domain.series import safe_div
from innkeep.domain.underwriting import RequiredStaffing

logger = get_logger(__name__)

HOURS_PER_WEEK_TOTAL = 24 * 7
DAYS_PER_YEAR = 365

# throughput per staff member per hour
COVERS_PER_SERVER_HOUR = 12
COVERS_PER_CHEF_HOUR = 20
COVERS_PER_BARTENDER_HOUR = 25
TREATMENT_HOURS = 1.0

BENCHMARKS: Dict[str, str] = {
    "housekeeping": "12-18 rooms/attendant per 8h shift (10 low, 25+ unrealistic)",
    "frontOffice": "about 5.25 FTE per 24/7 post (168 hrs/week over ~32 productive hrs/FTE)",
    "fbService": "10-14 diners per server per hour",
    "kitchen": "15-25 diners per chef per hour",
    "bar": "20-30 drinks/covers per bartender per hour",
    "wellness": "5-7 treatments/therapist/day (bookable ~6 hrs/day)",
}

DEPARTMENT_LABELS: Dict[str, str] = {
    "frontOffice": "Front Office",
    "housekeeping": "Housekeeping",
    "fbService": "F&B Service",
    "kitchen": "Kitchen",
    "bar": "Bar",
    "wellness": "Wellness/Spa",
}


def benchmark_text(dept: str) -> str:
    return BENCHMARKS.get(dept, "Industry standard productivity benchmarks")


def create_default_assumptions() -> StaffingAssumptions:
    return StaffingAssumptions(
        hours_per_week=config.STAFF_HOURS_PER_WEEK,
        utilization_factor=config.STAFF_UTILIZATION,
    )


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def rooms_sold_for_year(deal: Deal, year: int) -> float:
    """
    Annual rooms sold used for staffing: the stabilized base scaled by the
    revenue ramp in Y1..Y4 and by the growth index afterwards.
    """
    base = room_revenue_totals(deal).rooms_sold
    m = multipliers_for_deal(deal, max(year, 1))
    return base * ramped_topline_factor(m, year)


def rooms_sold_per_day(deal: Deal, year: int) -> float:
    return rooms_sold_for_year(deal, year) / DAYS_PER_YEAR


def covers_per_day(deal: Deal, year: int) -> Dict[str, int]:
    """In-house guests captured plus external covers, per meal period."""
    covers = {k: 0 for k in MEAL_KEYS}
    fnb = deal.fnb_revenue
    if fnb is None:
        return covers
    guests = rooms_sold_per_day(deal, year) * fnb.avg_guests_per_occ_room
    for key in MEAL_KEYS:
        meal = fnb.meals.get(key)
        if meal is None:
            continue
        raw = guests * (meal.guest_capture_pct / 100.0) + meal.external_covers_per_day
        covers[key] = max(0, _round_half_up(raw))
    return covers


def _provided(roles: Sequence[PayrollRole], dept: str, keywords: Sequence[str] = ()) -> float:
    total = 0.0
    for role in roles:
        if role.dept != dept:
            continue
        title = role.title.lower()
        if keywords and not any(kw in title for kw in keywords):
            continue
        total += role.ftes
    return total


def _line(dept: str, role: str, required: float, provided: float, reason: str) -> RequiredStaffing:
    return RequiredStaffing(
        dept=dept,
        role=role,
        required_fte=required,
        provided_fte=provided,
        gap_fte=required - provided,
        reason=reason,
    )


def calculate_required_staffing(
    deal: Deal,
    year: int,
    assumptions: Optional[StaffingAssumptions] = None,
    overrides: Optional[StaffingOverrides] = None,
) -> List[RequiredStaffing]:
    """
    Required vs provided FTE per operational department for one operating
    year. Demand comes from the underwriting model (rooms sold, F&B covers,
    spa treatments); supply from payroll roles matched by department and
    title keyword. Overrides replace covers / hours / treatments per period.
    Kitchen demand pools all active periods: ceil(total covers / 20) chefs
    over the longest period's hours, not a per-period sum.
    """
    a = assumptions if assumptions is not None else create_default_assumptions()
    o = overrides if overrides is not None else StaffingOverrides()

    productive = a.hours_per_week * a.utilization_factor
    roles = deal.payroll_model.roles if deal.payroll_model is not None else []
    out: List[RequiredStaffing] = []

    # front office
    if a.front_office_24x7:
        hours = a.day_posts * a.hours_per_week + a.night_posts * (HOURS_PER_WEEK_TOTAL - a.hours_per_week)
        out.append(
            _line(
                "frontOffice",
                "Reception Staff",
                safe_div(hours, productive),
                _provided(roles, "rooms", ("reception", "front")),
                "24/7 coverage with day/night posts",
            )
        )

    # housekeeping
    sold_per_day = rooms_sold_per_day(deal, year)
    rpa = o.rooms_per_attendant if o.rooms_per_attendant is not None else a.rooms_per_attendant
    attendants = math.ceil(safe_div(sold_per_day, rpa))
    out.append(
        _line(
            "housekeeping",
            "Room Attendants",
            safe_div(attendants * a.housekeeping_shift_hours * 7, productive),
            _provided(roles, "rooms", ("housekeeping",)),
            f"{sold_per_day:.0f} rooms/day / {rpa:g} per attendant",
        )
    )

    # F&B service and kitchen
    covers = covers_per_day(deal, year)
    periods = []
    for key, active, hours in (
        ("breakfast", a.breakfast_active, a.breakfast_hours),
        ("lunch", a.lunch_active, a.lunch_hours),
        ("dinner", a.dinner_active, a.dinner_hours),
    ):
        ov = getattr(o, key)
        periods.append(
            {
                "name": key,
                "active": active,
                "hours": ov.hours if ov is not None and ov.hours is not None else hours,
                "covers": ov.covers_per_day if ov is not None and ov.covers_per_day is not None else covers[key],
            }
        )
    active_periods = [p for p in periods if p["active"]]

    service_hours = sum(math.ceil(p["covers"] / COVERS_PER_SERVER_HOUR) * p["hours"] for p in active_periods)
    out.append(
        _line(
            "fbService",
            "F&B Service Staff",
            safe_div(service_hours * 7, productive),
            _provided(roles, "fnb", ("waiter", "service")),
            "Based on expected covers and service periods",
        )
    )

    kitchen_covers = sum(p["covers"] for p in active_periods)
    kitchen_hours = max((p["hours"] for p in active_periods), default=0.0)
    chefs = math.ceil(kitchen_covers / COVERS_PER_CHEF_HOUR)
    out.append(
        _line(
            "kitchen",
            "Kitchen Staff",
            safe_div(chefs * kitchen_hours * 7, productive),
            _provided(roles, "fnb", ("chef", "cook")),
            f"{kitchen_covers:g} covers/day across active periods",
        )
    )

    # bar
    if a.bar_active:
        bar_ov = o.bar
        bar_covers = bar_ov.covers_per_day if bar_ov is not None and bar_ov.covers_per_day is not None else covers["bar"]
        bar_hours = bar_ov.hours if bar_ov is not None and bar_ov.hours is not None else a.bar_hours
        bartenders = math.ceil(bar_covers / COVERS_PER_BARTENDER_HOUR)
        out.append(
            _line(
                "bar",
                "Bar Staff",
                safe_div(bartenders * bar_hours * 7, productive),
                _provided(roles, "fnb", ("bar",)),
                f"{bar_covers:g} covers/day over {bar_hours:g} hours",
            )
        )

    # spa, only when treatments are planned
    spa = deal.other_revenue.spa if deal.other_revenue is not None else None
    treatments = spa.treatments_per_day if spa is not None else 0.0
    open_hours = spa.open_hours if spa is not None else a.spa_hours
    if o.spa is not None:
        if o.spa.treatments_per_day is not None:
            treatments = o.spa.treatments_per_day
        if o.spa.open_hours is not None:
            open_hours = o.spa.open_hours
    if treatments > 0:
        plural = "" if treatments == 1 else "s"
        out.append(
            _line(
                "wellness",
                "Spa Therapists",
                safe_div(treatments * TREATMENT_HOURS * 7, productive),
                _provided(roles, "wellness"),
                f"{treatments:g} treatment{plural}/day over {open_hours:g} hours",
            )
        )

    logger.debug(
        "staffing_calculated",
        extra={
            "context": {
                "deal_id": deal.id,
                "year": year,
                "productive_hours": productive,
                "gaps": {r.dept: round(r.gap_fte, 2) for r in out},
            }
        },
    )
    return out
