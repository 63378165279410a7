# src/innkeep/analysis/opex.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from innkeep.domain.deal import OpexItem, OpexState
from innkeep.domain.underwriting import OpexResults


@dataclass
class OpexRevenueBase:
    """Stabilized revenue / volume figures the opex drivers apply to."""
    rooms_revenue: float = 0.0
    fnb_revenue: float = 0.0
    other_revenue: float = 0.0
    total_revenue: float = 0.0
    rooms_sold: float = 0.0


DRIVER_LABELS = {
    "PCT_ROOMS_REVENUE": "% of Rooms Revenue",
    "PCT_FNB_REVENUE": "% of F&B Revenue",
    "PCT_OTHER_REVENUE": "% of Other Revenue",
    "PCT_TOTAL_REVENUE": "% of Total Revenue",
    "PER_ROOM_NIGHT_SOLD": "per Room Night Sold",
    "FIXED_PER_MONTH": "Fixed per Month",
}

PERCENT_DRIVERS = frozenset(
    {"PCT_ROOMS_REVENUE", "PCT_FNB_REVENUE", "PCT_OTHER_REVENUE", "PCT_TOTAL_REVENUE"}
)


def driver_label(driver: str) -> str:
    return DRIVER_LABELS.get(driver, "Unknown")


def calculate_opex_item(item: OpexItem, base: OpexRevenueBase) -> float:
    v = item.value
    d = item.driver
    if d == "PCT_ROOMS_REVENUE":
        return v / 100.0 * base.rooms_revenue
    if d == "PCT_FNB_REVENUE":
        return v / 100.0 * base.fnb_revenue
    if d == "PCT_OTHER_REVENUE":
        return v / 100.0 * base.other_revenue
    if d == "PCT_TOTAL_REVENUE":
        return v / 100.0 * base.total_revenue
    if d == "PER_ROOM_NIGHT_SOLD":
        return v * base.rooms_sold
    if d == "FIXED_PER_MONTH":
        return v * 12.0
    return 0.0


def calculate_opex_results(state: OpexState, base: OpexRevenueBase) -> OpexResults:
    by_item: Dict[str, float] = {}
    by_section: Dict[str, float] = {"DIRECT": 0.0, "INDIRECT": 0.0, "OTHER": 0.0}
    for item in state.items:
        amount = calculate_opex_item(item, base)
        by_item[item.id] = amount
        by_section[item.section] += amount

    return OpexResults(
        direct_total=by_section["DIRECT"],
        indirect_total=by_section["INDIRECT"],
        other_total=by_section["OTHER"],
        grand_total=sum(by_section.values()),
        by_item=by_item,
        by_section=by_section,
    )


def create_default_opex_state() -> OpexState:
    """Typical starting values for an upscale European hotel."""
    rows: List[tuple] = [
        # DIRECT
        ("rooms-commission", "Rooms Commission", 15, "PCT_ROOMS_REVENUE", "DIRECT"),
        ("guest-supplies-cleaning", "Guest Supplies, Cleaning", 8, "PER_ROOM_NIGHT_SOLD", "DIRECT"),
        ("cost-of-goods-sold", "Cost of Goods Sold", 30, "PCT_FNB_REVENUE", "DIRECT"),
        ("me-costs", "M&E Costs (Meeting & Events)", 2, "PCT_OTHER_REVENUE", "DIRECT"),
        ("wellness-other-costs", "Wellness Other Costs", 1500, "FIXED_PER_MONTH", "DIRECT"),
        ("other-direct-costs", "Other Direct Costs", 2000, "FIXED_PER_MONTH", "DIRECT"),
        # INDIRECT
        ("other-ag", "Other A&G", 2, "PCT_TOTAL_REVENUE", "INDIRECT"),
        ("tech-subscriptions", "Tech Subscriptions", 800, "FIXED_PER_MONTH", "INDIRECT"),
        ("other-sm", "Other S&M", 3, "PCT_TOTAL_REVENUE", "INDIRECT"),
        ("maintenance-other", "Maintenance Other", 2, "PCT_TOTAL_REVENUE", "INDIRECT"),
        ("utilities", "Utilities", 3, "PCT_TOTAL_REVENUE", "INDIRECT"),
        # OTHER
        ("management-fees", "Management Fees", 3, "PCT_TOTAL_REVENUE", "OTHER"),
        ("property-taxes", "Property Taxes", 1, "PCT_TOTAL_REVENUE", "OTHER"),
        ("insurance", "Insurance", 1, "PCT_TOTAL_REVENUE", "OTHER"),
        ("rent", "Rent", 0, "FIXED_PER_MONTH", "OTHER"),
    ]
    return OpexState(
        items=[
            OpexItem(id=i, label=label, value=float(v), driver=drv, section=sec)
            for i, label, v, drv, sec in rows
        ]
    )
