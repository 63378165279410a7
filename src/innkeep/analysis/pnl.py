# src/innkeep/analysis/pnl.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.analysis.fnb import compute_advanced_annual
from innkeep.analysis.opex import PERCENT_DRIVERS
from innkeep.analysis.other_revenue import calculate_other_revenue
from innkeep.analysis.payroll import calc_advanced
from innkeep.analysis.ramp import multipliers_for_deal
from innkeep.analysis.rooms import room_revenue_totals, rooms_kpis_by_year
from innkeep.domain.deal import DEPT_KEYS, Deal, OpexItem
from innkeep.domain.series import YearSeries, safe_div, year_key, year_keys, zero_series

logger = get_logger(__name__)

# (id, label, group) in USALI order
PNL_LAYOUT: List[tuple] = [
    ("rooms-available", "Rooms Available", "KPIS"),
    ("rooms-sold", "Rooms Sold", "KPIS"),
    ("adr", "ADR", "KPIS"),
    ("occupancy", "Occupancy %", "KPIS"),
    ("revpar", "RevPAR", "KPIS"),
    ("rooms-revenue", "Rooms Revenue", "REVENUE"),
    ("fnb-revenue", "F&B Revenue", "REVENUE"),
    ("spa-revenue", "Spa Revenue", "REVENUE"),
    ("other-operating-revenue", "Other Operating Revenue", "REVENUE"),
    ("total-revenue", "Total Revenue", "REVENUE"),
    ("rooms-direct-payroll", "Rooms Direct Payroll", "DIRECT"),
    ("rooms-commission", "Rooms Commission", "DIRECT"),
    ("guest-supplies-cleaning", "Guest Supplies & Cleaning", "DIRECT"),
    ("rooms-direct-costs", "Rooms Direct Costs", "DIRECT"),
    ("fnb-direct-payroll", "F&B Direct Payroll", "DIRECT"),
    ("cost-of-goods-sold", "Cost of Goods Sold", "DIRECT"),
    ("fnb-direct-costs", "F&B Direct Costs", "DIRECT"),
    ("me-costs", "M&E Costs", "DIRECT"),
    ("wellness-direct-payroll", "Wellness Direct Payroll", "DIRECT"),
    ("wellness-other-costs", "Wellness Other Costs", "DIRECT"),
    ("wellness-direct-costs", "Wellness Direct Costs", "DIRECT"),
    ("other-direct-costs", "Other Direct Costs", "DIRECT"),
    ("total-direct-costs", "Total Direct Costs", "DIRECT"),
    ("goi", "Gross Operating Income", "SUMMARY"),
    ("ag-payroll", "A&G Payroll", "UNDISTRIBUTED"),
    ("other-ag", "Other A&G", "UNDISTRIBUTED"),
    ("ag-total", "Administrative & General", "UNDISTRIBUTED"),
    ("tech-subscriptions", "Information & Telecom", "UNDISTRIBUTED"),
    ("sm-payroll", "S&M Payroll", "UNDISTRIBUTED"),
    ("other-sm", "Other S&M", "UNDISTRIBUTED"),
    ("sm-total", "Sales & Marketing", "UNDISTRIBUTED"),
    ("pom-payroll", "Maintenance Payroll", "UNDISTRIBUTED"),
    ("maintenance-other", "Maintenance Other", "UNDISTRIBUTED"),
    ("pom-total", "Property Operations & Maintenance", "UNDISTRIBUTED"),
    ("utilities", "Utilities", "UNDISTRIBUTED"),
    ("total-indirect-costs", "Total Undistributed Costs", "UNDISTRIBUTED"),
    ("gop", "Gross Operating Profit", "SUMMARY"),
    ("management-fees", "Management Fees", "FIXED"),
    ("property-taxes", "Property Taxes", "FIXED"),
    ("insurance", "Insurance", "FIXED"),
    ("ebitdar", "EBITDAR", "SUMMARY"),
    ("rent", "Rent", "FIXED"),
    ("ebitda", "EBITDA", "SUMMARY"),
]

LINE_LABELS: Dict[str, str] = {lid: label for lid, label, _ in PNL_LAYOUT}


@dataclass
class PnlResult:
    """
    Year-by-year operating statement, y0..yN.

    y0 is pre-opening (all zeros); years after `horizon` (the exit year, or
    the full projection when holding) are zero as well.
    """
    years: List[str]
    horizon: int
    lines: Dict[str, YearSeries]
    labels: Dict[str, str] = field(default_factory=lambda: dict(LINE_LABELS))

    def line(self, line_id: str) -> YearSeries:
        return self.lines.get(line_id) or {k: 0.0 for k in self.years}

    @property
    def total_revenue(self) -> YearSeries:
        return self.line("total-revenue")

    @property
    def gop(self) -> YearSeries:
        return self.line("gop")

    @property
    def ebitda(self) -> YearSeries:
        return self.line("ebitda")

    def ratios(self, line_id: str) -> Dict[str, YearSeries]:
        """
        % of total revenue, per occupied room (POR) and per available room
        key (PAR) for one line.
        """
        values = self.line(line_id)
        tr = self.total_revenue
        sold = self.line("rooms-sold")
        keys = self.line("rooms-available")
        out: Dict[str, YearSeries] = {"pct_of_tr": {}, "por": {}, "par": {}}
        for k in self.years:
            v = values.get(k, 0.0)
            rooms_keys = keys.get(k, 0.0) / 365.0
            out["pct_of_tr"][k] = safe_div(v, tr.get(k, 0.0)) * 100.0
            out["por"][k] = safe_div(v, sold.get(k, 0.0))
            out["par"][k] = safe_div(v, rooms_keys)
        return out

    def to_frame(self) -> pd.DataFrame:
        """Lines as rows (USALI order), year keys as columns."""
        order = [lid for lid, _, _ in PNL_LAYOUT if lid in self.lines]
        df = pd.DataFrame.from_dict({lid: self.lines[lid] for lid in order}, orient="index")
        df = df.reindex(columns=self.years).fillna(0.0)
        df.index.name = "line"
        df.insert(0, "label", [self.labels.get(lid, lid) for lid in order])
        return df


def pnl_horizon(deal: Deal) -> int:
    """
    Last operating year shown: the exit year for SALE / REFINANCE, else the
    full projection. An exit year below 1 is treated as a hold.
    """
    exit_year = deal.assumptions.exit.exit_year
    if exit_year is None or exit_year < 1:
        return config.HORIZON_YEARS
    return min(config.HORIZON_YEARS, int(exit_year))


def _opex_line(
    item: OpexItem,
    revenue: Dict[str, float],
    rooms_sold: float,
    cost_ramp: float,
    inflation: float,
) -> float:
    """
    One opex item for one year. Percentage drivers follow their (already
    ramped and grown) revenue base with the cost ramp on top; per-room-night
    and fixed drivers are money amounts and also carry inflation.
    """
    v = item.value
    d = item.driver
    if d in PERCENT_DRIVERS:
        base = {
            "PCT_ROOMS_REVENUE": revenue["rooms"],
            "PCT_FNB_REVENUE": revenue["fnb"],
            "PCT_OTHER_REVENUE": revenue["spa"] + revenue["other"],
            "PCT_TOTAL_REVENUE": revenue["total"],
        }[d]
        return base * (v / 100.0) * cost_ramp
    if d == "PER_ROOM_NIGHT_SOLD":
        return rooms_sold * v * cost_ramp * inflation
    if d == "FIXED_PER_MONTH":
        return v * 12.0 * cost_ramp * inflation
    return 0.0


def build_pnl(deal: Deal) -> PnlResult:
    n = config.HORIZON_YEARS
    horizon = pnl_horizon(deal)
    years = year_keys(n)
    m = multipliers_for_deal(deal, n)
    kpis = rooms_kpis_by_year(deal, m, n)
    totals = room_revenue_totals(deal)

    # stabilized (un-ramped) annual bases
    fnb_base = 0.0
    if deal.fnb_revenue is not None:
        fnb_base = compute_advanced_annual(
            deal.fnb_revenue, totals.rooms_available, totals.rooms_sold
        ).total_fnb

    spa_base = 0.0
    if deal.other_revenue is not None:
        spa_base = calculate_other_revenue(
            deal.other_revenue, totals.rooms_revenue, totals.rooms_available
        ).spa_revenue

    payroll_base: Dict[str, float] = {k: 0.0 for k in DEPT_KEYS}
    if deal.payroll_model is not None:
        payroll = calc_advanced(deal.payroll_model.roles, deal.total_rooms)
        payroll_base = {k: payroll.by_department[k].total for k in DEPT_KEYS}

    opex_items = deal.opex.items if deal.opex is not None else []

    lines: Dict[str, YearSeries] = {lid: zero_series(n) for lid, _, _ in PNL_LAYOUT}
    # unmapped opex ids still count toward their section
    extra_ids = [it.id for it in opex_items if it.id not in lines]
    for eid in extra_ids:
        lines[eid] = zero_series(n)

    for i in range(1, horizon + 1):
        k = year_key(i)
        ramp = m.at("revenue_ramp", i)
        growth = m.at("topline_growth", i)
        cost_ramp = m.at("cost_ramp", i)
        infl = m.at("inflation", i)

        rooms_rev = kpis.rooms_revenue[k]
        fnb_rev = fnb_base * ramp * growth
        spa_rev = spa_base * ramp * growth
        other_rev = 0.0
        if deal.other_revenue is not None:
            other = deal.other_revenue.other
            if other.mode == "percentage":
                other_rev = rooms_rev * (other.percentage_of_rooms / 100.0)
            else:
                # fixed amounts ramp but do not grow
                other_rev = other.monthly_fixed * 12.0 * ramp
        total_rev = rooms_rev + fnb_rev + spa_rev + other_rev
        revenue = {"rooms": rooms_rev, "fnb": fnb_rev, "spa": spa_rev, "other": other_rev, "total": total_rev}

        lines["rooms-available"][k] = kpis.rooms_available[k]
        lines["rooms-sold"][k] = kpis.rooms_sold[k]
        lines["adr"][k] = kpis.adr[k]
        lines["occupancy"][k] = kpis.occupancy[k] * 100.0
        lines["revpar"][k] = kpis.revpar[k]
        lines["rooms-revenue"][k] = rooms_rev
        lines["fnb-revenue"][k] = fnb_rev
        lines["spa-revenue"][k] = spa_rev
        lines["other-operating-revenue"][k] = other_rev
        lines["total-revenue"][k] = total_rev

        pay = {dept: payroll_base[dept] * cost_ramp * infl for dept in DEPT_KEYS}

        section_totals = {"DIRECT": 0.0, "INDIRECT": 0.0, "OTHER": 0.0}
        rent = 0.0
        for item in opex_items:
            amount = _opex_line(item, revenue, kpis.rooms_sold[k], cost_ramp, infl)
            lines[item.id][k] += amount
            if item.id == "rent":
                rent += amount
            else:
                section_totals[item.section] += amount

        lines["rooms-direct-payroll"][k] = pay["rooms"]
        lines["fnb-direct-payroll"][k] = pay["fnb"]
        lines["wellness-direct-payroll"][k] = pay["wellness"]
        lines["ag-payroll"][k] = pay["ag"]
        lines["sm-payroll"][k] = pay["sales"]
        lines["pom-payroll"][k] = pay["maintenance"]

        lines["rooms-direct-costs"][k] = (
            pay["rooms"] + lines["rooms-commission"][k] + lines["guest-supplies-cleaning"][k]
        )
        lines["fnb-direct-costs"][k] = pay["fnb"] + lines["cost-of-goods-sold"][k]
        lines["wellness-direct-costs"][k] = pay["wellness"] + lines["wellness-other-costs"][k]
        lines["ag-total"][k] = pay["ag"] + lines["other-ag"][k]
        lines["sm-total"][k] = pay["sales"] + lines["other-sm"][k]
        lines["pom-total"][k] = pay["maintenance"] + lines["maintenance-other"][k]

        direct = pay["rooms"] + pay["fnb"] + pay["wellness"] + section_totals["DIRECT"]
        indirect = pay["ag"] + pay["sales"] + pay["maintenance"] + section_totals["INDIRECT"]
        goi = total_rev - direct
        gop = goi - indirect
        ebitdar = gop - section_totals["OTHER"]

        lines["total-direct-costs"][k] = direct
        lines["goi"][k] = goi
        lines["total-indirect-costs"][k] = indirect
        lines["gop"][k] = gop
        lines["ebitdar"][k] = ebitdar
        lines["ebitda"][k] = ebitdar - rent

    logger.debug(
        "pnl_built",
        extra={"context": {"deal_id": deal.id, "horizon": horizon, "ebitda": lines["ebitda"]}},
    )
    return PnlResult(years=years, horizon=horizon, lines=lines)


def select_ebitda_by_year(deal: Deal) -> YearSeries:
    return build_pnl(deal).ebitda


def ebitda_margin_by_year(pnl: PnlResult) -> YearSeries:
    return {k: safe_div(pnl.ebitda.get(k, 0.0), pnl.total_revenue.get(k, 0.0)) for k in pnl.years}


def gop_margin_by_year(pnl: PnlResult) -> YearSeries:
    return {k: safe_div(pnl.gop.get(k, 0.0), pnl.total_revenue.get(k, 0.0)) for k in pnl.years}


def stabilized_year(deal: Deal) -> int:
    """
    First year where neither ramp curve is still active (revenue >= 1,
    costs <= 1); year 5 when the curves never settle inside Y1..Y4.
    """
    ramp = deal.assumptions.ramp
    for idx in range(4):
        if ramp.revenue_ramp[idx] >= 1.0 and ramp.cost_ramp[idx] <= 1.0:
            return idx + 1
    return 5

