# src/innkeep/analysis/exit.py
from __future__ import annotations

from typing import Optional

from innkeep.adapters.config import config
from innkeep.analysis.debt import build_debt_schedule, loan_balance_at_end_of_year
from innkeep.analysis.pnl import PnlResult, build_pnl
from innkeep.domain.deal import Deal, SaleSettings
from innkeep.domain.series import safe_div, year_key
from innkeep.domain.underwriting import RefinanceSummary, SaleSummary


def net_sale_proceeds(noi: float, sale: SaleSettings) -> float:
    """
    NOI capitalized at the exit cap rate, net of selling costs. Zero when
    NOI or the cap rate is not positive.
    """
    if noi <= 0 or sale.exit_cap_rate <= 0:
        return 0.0
    gross = noi / (sale.exit_cap_rate / 100.0)
    return max(0.0, gross * (1.0 - sale.selling_costs_pct / 100.0))


def _ebitda_at(pnl: PnlResult, year: int) -> float:
    return pnl.ebitda.get(year_key(year), 0.0)


def calculate_sale_summary(deal: Deal, pnl: Optional[PnlResult] = None) -> SaleSummary:
    sale = deal.assumptions.exit.sale
    pnl = pnl if pnl is not None else build_pnl(deal)
    ebitda = _ebitda_at(pnl, sale.exit_year)

    price = safe_div(ebitda, sale.exit_cap_rate / 100.0) if ebitda > 0 else 0.0
    selling_costs = price * (sale.selling_costs_pct / 100.0)
    net = price - selling_costs
    return SaleSummary(
        reference_ebitda=ebitda,
        exit_cap_rate=sale.exit_cap_rate,
        estimated_sale_price=price,
        selling_costs=selling_costs,
        net_sale_proceeds=net,
        total_capex=deal.project_cost,
        development_profit=net - deal.project_cost,
    )


def calculate_refinance_summary(deal: Deal, pnl: Optional[PnlResult] = None) -> RefinanceSummary:
    """
    Cash-out refinance at the refinance year. The asset is valued on that
    year's EBITDA at REFINANCE_VALUATION_CAP_RATE_PCT; the existing loan is
    repaid from the new one.
    """
    refi = deal.assumptions.exit.refinance
    pnl = pnl if pnl is not None else build_pnl(deal)
    ebitda = _ebitda_at(pnl, refi.refinance_year)

    value = max(0.0, safe_div(ebitda, config.REFINANCE_VALUATION_CAP_RATE_PCT / 100.0))
    new_loan = value * (refi.ltv_at_refinance / 100.0)
    costs = new_loan * (refi.refinance_costs_pct / 100.0)

    outstanding = 0.0
    financing = deal.assumptions.financing
    if financing is not None and deal.project_cost > 0:
        schedule = build_debt_schedule(financing, deal.project_cost)
        outstanding = loan_balance_at_end_of_year(schedule, refi.refinance_year)

    return RefinanceSummary(
        reference_ebitda=ebitda,
        refinance_ltv=refi.ltv_at_refinance,
        property_value=value,
        new_loan_amount=new_loan,
        refinance_costs=costs,
        outstanding_balance=outstanding,
        net_cash_out=new_loan - costs - outstanding,
    )
