# src/innkeep/analysis/fnb.py
from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, List, Optional, Sequence

from innkeep.domain.deal import FnBState
from innkeep.domain.series import safe_div
from innkeep.domain.underwriting import FnbResults, MealRevenue, MonthlyFnbResults

DAYS_PER_YEAR = 365


def _meal_revenue(state: FnBState, meal_key: str, rooms_sold: float, days: int) -> MealRevenue:
    meal = state.meals[meal_key]
    # in-house guests who eat in: rooms sold * guests/room * capture * check
    internal = (
        rooms_sold
        * state.avg_guests_per_occ_room
        * (meal.guest_capture_pct / 100.0)
        * meal.avg_check_guest
    )
    external = meal.external_covers_per_day * days * meal.avg_check_external
    return MealRevenue(internal=internal, external=external, total=internal + external)


def compute_advanced_annual(
    state: FnBState,
    rooms_available_year: float,
    rooms_sold_year: float,
) -> FnbResults:
    by_meal: Dict[str, MealRevenue] = {}
    for key in state.meals:
        by_meal[key] = _meal_revenue(state, key, rooms_sold_year, DAYS_PER_YEAR)

    internal_total = sum(r.internal for r in by_meal.values())
    external_total = sum(r.external for r in by_meal.values())
    total = internal_total + external_total
    return FnbResults(
        internal_total=internal_total,
        external_total=external_total,
        total_fnb=total,
        fnb_revpar=safe_div(total, rooms_available_year),
        by_meal=by_meal,
    )


def monthly_series(
    state: FnBState,
    rooms_sold_by_month: Sequence[float],
    year: Optional[int] = None,
) -> List[MonthlyFnbResults]:
    """Per-month F&B revenue; external covers use the actual days in each month."""
    y = year if year is not None else date.today().year
    out: List[MonthlyFnbResults] = []
    for idx, rooms_sold in enumerate(rooms_sold_by_month):
        month = idx + 1
        days = calendar.monthrange(y, month)[1]
        by_meal = {key: _meal_revenue(state, key, rooms_sold, days) for key in state.meals}
        out.append(
            MonthlyFnbResults(
                month=month,
                by_meal=by_meal,
                month_total=sum(r.total for r in by_meal.values()),
            )
        )
    return out
