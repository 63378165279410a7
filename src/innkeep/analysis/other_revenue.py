# src/innkeep/analysis/other_revenue.py
from innkeep.domain.deal import OtherRevenueState
from innkeep.domain.series import safe_div
from innkeep.domain.underwriting import OtherRevenueResults

DAYS_PER_YEAR = 365


def calculate_other_revenue(
    state: OtherRevenueState,
    total_rooms_revenue: float,
    rooms_available_year: float,
) -> OtherRevenueResults:
    """
    Spa = treatments/day * 365 * price.
    Other = % of rooms revenue, or a fixed monthly amount * 12, by mode.
    """
    spa_revenue = state.spa.treatments_per_day * DAYS_PER_YEAR * state.spa.avg_price_per_treatment

    if state.other.mode == "percentage":
        other_revenue = total_rooms_revenue * (state.other.percentage_of_rooms / 100.0)
    else:
        other_revenue = state.other.monthly_fixed * 12.0

    total = spa_revenue + other_revenue
    return OtherRevenueResults(
        spa_revenue=spa_revenue,
        other_revenue=other_revenue,
        total_ancillary=total,
        ancillary_revpar=safe_div(total, rooms_available_year),
    )
