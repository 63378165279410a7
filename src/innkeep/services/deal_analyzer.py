# src/innkeep/services/deal_analyzer.py
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.analysis.cashflow import build_cashflow_statement, compute_returns_summary
from innkeep.analysis.debt import build_debt_schedule, calculate_financing_amounts
from innkeep.analysis.exit import calculate_refinance_summary, calculate_sale_summary
from innkeep.analysis.pnl import build_pnl, ebitda_margin_by_year, gop_margin_by_year
from innkeep.analysis.ramp import multipliers_for_deal
from innkeep.analysis.staffing import DEPARTMENT_LABELS, benchmark_text, calculate_required_staffing
from innkeep.domain.deal import Deal, StaffingAssumptions, StaffingOverrides
from innkeep.domain.rules import assess_gop_pct, assess_staffing_gap, suggested_action
from innkeep.services.guardrails import apply_guardrails, staffing_hard_rule_flags
from innkeep.services.validation import inspect_deal_inputs, prepare_deal

logger = get_logger(__name__)


def _as_deal(deal: Deal | dict[str, Any]) -> Deal:
    if isinstance(deal, Deal):
        return deal
    return prepare_deal(deal)


def analyze_staffing(
    deal: Deal | dict[str, Any],
    year: int,
    assumptions: StaffingAssumptions | None = None,
    overrides: StaffingOverrides | None = None,
) -> dict[str, Any]:
    """
    Staffing sense-check for one operating year: rows with gap status and a
    suggested action, department totals and hard-rule flags.
    """
    deal = _as_deal(deal)
    rows = calculate_required_staffing(deal, year, assumptions, overrides)

    out_rows = []
    for r in rows:
        row = asdict(r)
        row["department"] = DEPARTMENT_LABELS.get(r.dept, r.dept)
        row["status"] = assess_staffing_gap(r.gap_fte)
        row["suggested_action"] = suggested_action(r.gap_fte)
        row["benchmark"] = benchmark_text(r.dept)
        out_rows.append(row)

    flags = staffing_hard_rule_flags(rows)
    return {
        "year": year,
        "rows": out_rows,
        "totals": {
            "required_fte": sum(r.required_fte for r in rows),
            "provided_fte": sum(r.provided_fte for r in rows),
            "gap_fte": sum(r.gap_fte for r in rows),
        },
        "flags": flags,
    }


def analyze_deal(
    deal: Deal | dict[str, Any],
    *,
    staffing_year: int | None = None,
    include_schedule: bool = False,
) -> dict[str, Any]:
    """
    Main analysis entrypoint.

    Runs the whole chain for one deal snapshot (ramp -> P&L and debt ->
    cash flow & returns -> staffing) and returns a JSON-ready dict. Nothing
    is stored; the same deal always produces the same result.

    `include_schedule=True` adds the full monthly debt table.
    """
    deal = _as_deal(deal)
    inputs = inspect_deal_inputs(deal)

    multipliers = multipliers_for_deal(deal)
    pnl = build_pnl(deal)

    financing = deal.assumptions.financing
    debt: dict[str, Any] = {}
    if financing is not None:
        amounts = calculate_financing_amounts(deal.project_cost, financing.ltc_pct)
        schedule = build_debt_schedule(financing, deal.project_cost)
        debt = asdict(amounts)
        debt.update(
            {
                "monthly_payment": schedule.monthly_payment,
                "monthly_io_payment": schedule.monthly_io_payment,
                "annual_debt_service": schedule.annual_debt_service,
                "balloon_payment": schedule.balloon_payment,
                "has_balloon": schedule.has_balloon,
            }
        )
        if include_schedule:
            debt["months"] = [asdict(m) for m in schedule.months]

    statement = build_cashflow_statement(deal)
    returns = compute_returns_summary(deal)

    strategy = deal.assumptions.exit.strategy
    exit_: dict[str, Any] = {"strategy": strategy, "exit_year": deal.assumptions.exit.exit_year}
    if strategy == "SALE":
        exit_["sale"] = asdict(calculate_sale_summary(deal, pnl))
    elif strategy == "REFINANCE":
        exit_["refinance"] = asdict(calculate_refinance_summary(deal, pnl))

    gop_margin = gop_margin_by_year(pnl)
    stab_key = f"y{returns.stabilized_year}"
    returns.assessments["stabilized_gop_margin"] = assess_gop_pct(gop_margin.get(stab_key, 0.0))

    year = staffing_year if staffing_year is not None else returns.stabilized_year
    staffing = analyze_staffing(deal, year)

    result: dict[str, Any] = {
        "deal_id": deal.id,
        "name": deal.name,
        "currency": deal.currency,
        "inputs": inputs,
        "multipliers": asdict(multipliers),
        "pnl": {
            "years": pnl.years,
            "horizon": pnl.horizon,
            "lines": pnl.lines,
            "total_revenue": pnl.total_revenue,
            "ebitda": pnl.ebitda,
            "gop_margin": gop_margin,
            "ebitda_margin": ebitda_margin_by_year(pnl),
        },
        "debt": debt,
        "cashflow": asdict(statement),
        "returns": asdict(returns),
        "exit": exit_,
        "staffing": staffing,
    }

    result = apply_guardrails(result)

    logger.info(
        "deal_analyzed",
        extra={
            "context": {
                "deal_id": deal.id,
                "env": config.ENV,
                "complete": inputs["complete"],
                "project_cost": returns.project_cost,
                "unlevered_irr": returns.unlevered_irr,
                "levered_irr": returns.levered_irr,
                "flags": len(result["guardrails"]["flags"]),
            }
        },
    )
    return result
