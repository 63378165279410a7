# src/innkeep/analysis/cashflow.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.analysis.debt import (
    build_debt_schedule,
    debt_service_for_year,
    interest_and_principal_for_year,
    loan_balance_at_end_of_year,
)
from innkeep.analysis.exit import calculate_refinance_summary, calculate_sale_summary, net_sale_proceeds
from innkeep.analysis.pnl import PnlResult, build_pnl, stabilized_year
from innkeep.domain.deal import Deal
from innkeep.domain.metrics import compute_dscr, equity_multiple, safe_irr
from innkeep.domain.rules import (
    assess_dscr,
    assess_equity_multiple,
    assess_irr,
    assess_yield_on_cost,
)
from innkeep.domain.series import (
    YearSeries,
    clamp_pre_op,
    safe_div,
    series_sum,
    year_key,
    year_keys,
    years_through,
    zero_series,
)
from innkeep.domain.underwriting import (
    CashflowKpis,
    CashflowRow,
    CashflowStatement,
    DebtScheduleResult,
    LeveredCashflow,
    ProjectIrrs,
    ReturnsSummary,
    UnleveredCashflow,
)

logger = get_logger(__name__)

# Sign convention: + is an inflow to the investor, - an outflow.


@dataclass
class _DebtFlows:
    debt_draw: YearSeries
    interest: YearSeries            # <= 0
    principal: YearSeries           # <= 0
    refinance_proceeds: YearSeries
    schedule: Optional[DebtScheduleResult]


def _exit_in_horizon(deal: Deal) -> Optional[int]:
    """
    Exit year when it falls inside y1..yN, else None. Out-of-range years
    (reported by inspect_deal_inputs) are modelled as a hold.
    """
    exit_year = deal.assumptions.exit.exit_year
    if exit_year is None or not 1 <= exit_year <= config.HORIZON_YEARS:
        return None
    return exit_year


def _outstanding_after(schedule: DebtScheduleResult, year: int) -> float:
    """Balance after the last scheduled payment up to the end of `year`."""
    if not schedule.months:
        return schedule.loan_amount
    idx = min(year * 12, len(schedule.months)) - 1
    if idx < 0:
        return schedule.loan_amount
    return schedule.months[idx].balance


def _debt_flows(deal: Deal, pnl: PnlResult) -> _DebtFlows:
    n = config.HORIZON_YEARS
    flows = _DebtFlows(
        debt_draw=zero_series(n),
        interest=zero_series(n),
        principal=zero_series(n),
        refinance_proceeds=zero_series(n),
        schedule=None,
    )

    financing = deal.assumptions.financing
    project_cost = deal.project_cost
    if financing is None or project_cost <= 0:
        return flows

    schedule = build_debt_schedule(financing, project_cost)
    flows.schedule = schedule
    if schedule.loan_amount == 0:
        return flows

    exit_settings = deal.assumptions.exit
    exit_year = _exit_in_horizon(deal)
    # debt flows run through the exit year (or the whole projection when holding)
    last_year = exit_year if exit_year is not None else n

    flows.debt_draw["y0"] = schedule.loan_amount

    if config.INTEREST_SPLIT_MODE == "approximate":
        interest_amt = schedule.annual_debt_service * config.APPROX_INTEREST_SHARE
        principal_amt = schedule.annual_debt_service - interest_amt
        for i in range(1, last_year + 1):
            k = year_key(i)
            flows.interest[k] = -interest_amt
            flows.principal[k] = -principal_amt
        if exit_year is not None and exit_settings.strategy == "REFINANCE":
            # the new loan retires the balance actually owed at the refinance year
            flows.principal[year_key(exit_year)] -= loan_balance_at_end_of_year(schedule, exit_year)
        elif exit_year is not None and schedule.has_balloon:
            flows.principal[year_key(exit_year)] -= schedule.balloon_payment
    else:
        for i in range(1, last_year + 1):
            k = year_key(i)
            interest, principal = interest_and_principal_for_year(schedule, i)
            flows.interest[k] = -interest
            flows.principal[k] = -principal

        # whatever is still owed is repaid at maturity or at the exit, whichever comes first
        maturity = max(1, int(financing.loan_term_years))
        payoff_year: Optional[int] = None
        if maturity <= last_year:
            payoff_year = maturity
        elif exit_year is not None:
            payoff_year = exit_year
        if payoff_year is not None:
            payoff = _outstanding_after(schedule, payoff_year)
            flows.principal[year_key(payoff_year)] -= payoff

    if exit_settings.strategy == "REFINANCE" and exit_year is not None:
        summary = calculate_refinance_summary(deal, pnl)
        k = year_key(exit_year)
        # new loan net of costs comes in; the old balance leaves via principal
        flows.debt_draw[k] += summary.new_loan_amount - summary.refinance_costs
        flows.refinance_proceeds[k] = summary.net_cash_out

    clamp_pre_op(flows.interest)
    clamp_pre_op(flows.principal)
    return flows


def _tax_rate_pct(deal: Deal) -> float:
    financing = deal.assumptions.financing
    if financing is None:
        return config.DEFAULT_TAX_RATE_PCT
    return financing.tax_rate_on_ebt


def _build(deal: Deal, pnl: Optional[PnlResult] = None):
    pnl = pnl if pnl is not None else build_pnl(deal)
    n = config.HORIZON_YEARS
    years = year_keys(n)
    project_cost = deal.project_cost

    ebitda = clamp_pre_op({k: pnl.ebitda.get(k, 0.0) for k in years})
    debt = _debt_flows(deal, pnl)

    depreciation = deal.assumptions.ramp.depreciation_pct_of_capex / 100.0 * project_cost
    tax_rate = _tax_rate_pct(deal) / 100.0

    cash_taxes: YearSeries = {}
    for k in years:
        interest = -debt.interest.get(k, 0.0)
        ebt = ebitda[k] - depreciation - interest
        cash_taxes[k] = -max(0.0, ebt * tax_rate)
    clamp_pre_op(cash_taxes)

    capex = zero_series(n)
    capex["y0"] = -project_cost

    proceeds = zero_series(n)
    exit_settings = deal.assumptions.exit
    if exit_settings.strategy == "SALE":
        ey = exit_settings.sale.exit_year
        if 1 <= ey <= n:
            proceeds[year_key(ey)] = net_sale_proceeds(ebitda[year_key(ey)], exit_settings.sale)

    unlevered_cf = {k: ebitda[k] + cash_taxes[k] + capex[k] + proceeds[k] for k in years}

    unlevered = UnleveredCashflow(
        years=years,
        ebitda=ebitda,
        cash_taxes=cash_taxes,
        capex=capex,
        net_sale_proceeds=proceeds,
        unlevered_cf=unlevered_cf,
        depreciation=depreciation,
    )

    levered_cf = {
        k: unlevered_cf[k] + debt.debt_draw[k] + debt.interest[k] + debt.principal[k]
        for k in years
    }
    levered = LeveredCashflow(
        years=years,
        levered_cf=levered_cf,
        debt_draw=debt.debt_draw,
        interest_expense=debt.interest,
        principal_repayment=debt.principal,
        refinance_proceeds=debt.refinance_proceeds,
    )

    logger.debug(
        "cashflows_built",
        extra={
            "context": {
                "deal_id": deal.id,
                "project_cost": project_cost,
                "split_mode": config.INTEREST_SPLIT_MODE,
                "unlevered_total": series_sum(unlevered_cf),
                "levered_total": series_sum(levered_cf),
            }
        },
    )
    return pnl, unlevered, levered, debt.schedule


def compute_unlevered_cashflow_by_year(deal: Deal, pnl: Optional[PnlResult] = None) -> UnleveredCashflow:
    _, unlevered, _, _ = _build(deal, pnl)
    return unlevered


def compute_levered_cashflow_by_year(deal: Deal, pnl: Optional[PnlResult] = None) -> LeveredCashflow:
    _, _, levered, _ = _build(deal, pnl)
    return levered


def _irrs(unlevered: UnleveredCashflow, levered: LeveredCashflow, through: Optional[int]) -> ProjectIrrs:
    return ProjectIrrs(
        unlevered_irr=safe_irr(years_through(unlevered.unlevered_cf, through)),
        levered_irr=safe_irr(years_through(levered.levered_cf, through)),
    )


def compute_project_irrs(deal: Deal, through_year_index: Optional[int] = None) -> ProjectIrrs:
    """
    Unlevered / levered IRR over y0..`through_year_index` (all years when None).
    Each is None when the flows have no sign change or the solver fails.
    """
    _, unlevered, levered, _ = _build(deal)
    return _irrs(unlevered, levered, through_year_index)


def _row(id_: str, label: str, group: str, values: YearSeries) -> CashflowRow:
    return CashflowRow(id=id_, label=label, group=group, values=dict(values))


def build_cashflow_statement(deal: Deal) -> CashflowStatement:
    pnl, unlevered, levered, _ = _build(deal)
    revenue = clamp_pre_op({k: pnl.total_revenue.get(k, 0.0) for k in unlevered.years})

    rows: List[CashflowRow] = [
        _row("total-revenue", "Total Revenue", "memo", revenue),
        _row("ebitda", "EBITDA / NOI", "memo", unlevered.ebitda),
        _row("ebitda-ucf", "EBITDA / NOI", "unlevered", unlevered.ebitda),
        _row("cash-taxes", "Cash Taxes", "unlevered", unlevered.cash_taxes),
        _row("capex", "CapEx", "unlevered", unlevered.capex),
        _row("net-sale-proceeds", "Net Sale Proceeds", "unlevered", unlevered.net_sale_proceeds),
        _row("unlevered-cf", "Unlevered Cash Flow", "unlevered", unlevered.unlevered_cf),
        _row("ucf-lcf", "Unlevered Cash Flow", "levered", unlevered.unlevered_cf),
        _row("debt-draw", "Debt Draw", "levered", levered.debt_draw),
        _row("interest-expense", "Interest Expense", "levered", levered.interest_expense),
        _row("principal-repayment", "Principal Repayment", "levered", levered.principal_repayment),
        _row("levered-cf", "Levered Cash Flow", "levered", levered.levered_cf),
    ]

    irrs = _irrs(unlevered, levered, None)
    kpis = CashflowKpis(
        unlevered_10y=series_sum(unlevered.unlevered_cf),
        levered_10y=series_sum(levered.levered_cf),
        tax_10y=abs(series_sum(unlevered.cash_taxes)),
        avg_ebitda_margin=safe_div(series_sum(unlevered.ebitda), series_sum(revenue)),
        unlevered_irr=irrs.unlevered_irr,
        levered_irr=irrs.levered_irr,
    )
    return CashflowStatement(
        years=unlevered.years,
        rows=rows,
        kpis=kpis,
        exit_year=deal.assumptions.exit.exit_year,
    )


def compute_returns_summary(deal: Deal) -> ReturnsSummary:
    """
    Headline investment figures: IRRs, equity multiple, DSCR by operating
    year, yield on cost on stabilized EBITDA and development profit.
    """
    pnl, unlevered, levered, schedule = _build(deal)
    project_cost = deal.project_cost
    loan = schedule.loan_amount if schedule is not None else 0.0
    equity = project_cost - loan

    exit_year = _exit_in_horizon(deal)
    last_year = exit_year if exit_year is not None else config.HORIZON_YEARS

    irrs = _irrs(unlevered, levered, None)
    multiple = equity_multiple(years_through(levered.levered_cf, None))

    dscr_by_year: Dict[str, float] = {}
    if schedule is not None and schedule.loan_amount > 0 and last_year >= 1:
        year_ids = list(range(1, last_year + 1))
        noi = np.array([unlevered.ebitda[year_key(i)] for i in year_ids], dtype=float)
        ds = np.array([debt_service_for_year(schedule, i) for i in year_ids], dtype=float)
        dscr = compute_dscr(noi, ds)
        for i, v in zip(year_ids, dscr):
            # years with nothing due carry no coverage figure
            if ds[i - 1] > 0:
                dscr_by_year[year_key(i)] = float(v)
    min_dscr = min(dscr_by_year.values()) if dscr_by_year else None

    stab = min(stabilized_year(deal), max(1, last_year))
    stab_ebitda = unlevered.ebitda.get(year_key(stab), 0.0)
    yoc = safe_div(stab_ebitda, project_cost)

    development_profit: Optional[float] = None
    strategy = deal.assumptions.exit.strategy
    if strategy == "SALE":
        development_profit = calculate_sale_summary(deal, pnl).development_profit
    elif strategy == "REFINANCE":
        development_profit = calculate_refinance_summary(deal, pnl).net_cash_out

    return ReturnsSummary(
        project_cost=project_cost,
        loan_amount=loan,
        equity=equity,
        unlevered_irr=irrs.unlevered_irr,
        levered_irr=irrs.levered_irr,
        equity_multiple=multiple,
        dscr_by_year=dscr_by_year,
        min_dscr=min_dscr,
        stabilized_year=stab,
        stabilized_ebitda=stab_ebitda,
        yield_on_cost=yoc,
        development_profit=development_profit,
        assessments={
            "unlevered_irr": assess_irr(irrs.unlevered_irr),
            "levered_irr": assess_irr(irrs.levered_irr),
            "equity_multiple": assess_equity_multiple(multiple),
            "min_dscr": assess_dscr(min_dscr),
            "yield_on_cost": assess_yield_on_cost(yoc),
        },
    )
