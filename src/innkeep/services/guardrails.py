# src/innkeep/services/guardrails.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from innkeep.adapters.logging_utils import get_logger
from innkeep.domain.rules import THRESHOLDS
from innkeep.domain.underwriting import RequiredStaffing

logger = get_logger(__name__)

# housekeeping rooms per provided FTE outside this band is suspicious
HK_ROOMS_PER_FTE_LOW = 10.0
HK_ROOMS_PER_FTE_HIGH = 25.0
HK_BASELINE_ROOMS_PER_FTE = 15.0


def _flag(code: str, severity: str, message: str, **context: Any) -> Dict[str, Any]:
    return {"code": code, "severity": severity, "message": message, "context": context}


def _find(staffing: Sequence[RequiredStaffing], dept: str) -> Optional[RequiredStaffing]:
    for row in staffing:
        if row.dept == dept:
            return row
    return None


def staffing_hard_rule_flags(staffing: Sequence[RequiredStaffing]) -> List[Dict[str, Any]]:
    """
    Structural staffing problems that a gap band alone does not express:
    uncovered 24/7 reception, active F&B with nobody assigned, and
    housekeeping productivity outside a plausible range.
    """
    flags: List[Dict[str, Any]] = []

    front = _find(staffing, "frontOffice")
    if front is not None and front.gap_fte >= 1.0:
        flags.append(
            _flag(
                "FRONT_OFFICE_24X7_UNCOVERED",
                "error",
                "Impossible to cover 24/7 shifts with current staffing",
                dept="frontOffice",
                gap_fte=front.gap_fte,
            )
        )

    for dept, label in (("fbService", "service"), ("kitchen", "kitchen")):
        row = _find(staffing, dept)
        if row is not None and row.required_fte > 0 and row.provided_fte == 0:
            flags.append(
                _flag(
                    f"{dept.upper()}_UNSTAFFED",
                    "error",
                    f"Active F&B service periods but no {label} staff assigned",
                    dept=dept,
                    required_fte=row.required_fte,
                )
            )

    hk = _find(staffing, "housekeeping")
    if hk is not None and hk.provided_fte > 0:
        rooms_per_fte = hk.required_fte * HK_BASELINE_ROOMS_PER_FTE / hk.provided_fte
        if rooms_per_fte < HK_ROOMS_PER_FTE_LOW:
            flags.append(
                _flag(
                    "HOUSEKEEPING_PRODUCTIVITY_LOW",
                    "warning",
                    "Housekeeping productivity is low (< 10 rooms/FTE)",
                    dept="housekeeping",
                    rooms_per_fte=rooms_per_fte,
                )
            )
        elif rooms_per_fte > HK_ROOMS_PER_FTE_HIGH:
            flags.append(
                _flag(
                    "HOUSEKEEPING_PRODUCTIVITY_UNREALISTIC",
                    "warning",
                    "Housekeeping productivity looks unrealistically high (> 25 rooms/FTE)",
                    dept="housekeeping",
                    rooms_per_fte=rooms_per_fte,
                )
            )

    return flags


def apply_guardrails(result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Attach sanity checks to an analysis result built by `analyze_deal`.

    Produces:
        result["guardrails"] = {
            "has_flags": bool,
            "flags": [{"code", "severity", "message", "context"}, ...],
        }

    Nothing is blocked; the flags only tell the caller where to look.
    """
    flags: List[Dict[str, Any]] = []

    returns = result.get("returns") or {}
    debt = result.get("debt") or {}
    pnl = result.get("pnl") or {}
    exit_ = result.get("exit") or {}

    # ------------------------------------------------------------------
    # 1) Debt coverage
    # ------------------------------------------------------------------
    min_dscr = returns.get("min_dscr")
    if min_dscr is not None:
        if min_dscr < 1.0:
            flags.append(
                _flag(
                    "DSCR_BELOW_ONE",
                    "error",
                    "EBITDA does not cover debt service in at least one year.",
                    min_dscr=min_dscr,
                )
            )
        elif min_dscr < THRESHOLDS["dscr"]["ok"]:
            flags.append(
                _flag(
                    "DSCR_BELOW_LENDER_MINIMUM",
                    "warning",
                    "Minimum DSCR is below the usual 1.20x lender covenant.",
                    min_dscr=min_dscr,
                )
            )

    if debt.get("has_balloon"):
        flags.append(
            _flag(
                "BALLOON_AT_MATURITY",
                "warning",
                "Loan is not fully amortized within its term; a balloon is due at maturity.",
                balloon_payment=debt.get("balloon_payment"),
            )
        )

    # ------------------------------------------------------------------
    # 2) Operating margins
    # ------------------------------------------------------------------
    stab_key = f"y{returns.get('stabilized_year', 0)}"
    gop_margin = (pnl.get("gop_margin") or {}).get(stab_key)
    if gop_margin is not None and (pnl.get("total_revenue") or {}).get(stab_key, 0.0) > 0:
        if gop_margin < THRESHOLDS["gop_pct"]["low"]:
            flags.append(
                _flag(
                    "GOP_MARGIN_LOW",
                    "warning",
                    "Stabilized GOP margin is below 20% of revenue.",
                    gop_margin=gop_margin,
                    year=stab_key,
                )
            )
        elif gop_margin > THRESHOLDS["gop_pct"]["high"]:
            flags.append(
                _flag(
                    "GOP_MARGIN_OPTIMISTIC",
                    "warning",
                    "Stabilized GOP margin above 55% looks optimistic.",
                    gop_margin=gop_margin,
                    year=stab_key,
                )
            )

    stab_ebitda = returns.get("stabilized_ebitda")
    if stab_ebitda is not None and stab_ebitda <= 0:
        flags.append(
            _flag(
                "NEGATIVE_STABILIZED_EBITDA",
                "error",
                "Stabilized EBITDA is zero or negative.",
                stabilized_ebitda=stab_ebitda,
            )
        )

    # ------------------------------------------------------------------
    # 3) Exit & returns
    # ------------------------------------------------------------------
    sale = exit_.get("sale")
    if sale is not None and sale.get("reference_ebitda", 0.0) <= 0:
        flags.append(
            _flag(
                "NO_SALE_PROCEEDS",
                "warning",
                "Exit-year EBITDA is not positive, so the sale produces no proceeds.",
                reference_ebitda=sale.get("reference_ebitda"),
            )
        )

    if returns and returns.get("levered_irr") is None:
        flags.append(
            _flag(
                "LEVERED_IRR_UNDEFINED",
                "warning",
                "Levered cash flows have no sign change; IRR is undefined.",
            )
        )

    # ------------------------------------------------------------------
    # 4) Staffing
    # ------------------------------------------------------------------
    staffing = result.get("staffing") or {}
    flags.extend(staffing.get("flags") or [])

    # ------------------------------------------------------------------
    # Attach & log
    # ------------------------------------------------------------------
    result.setdefault("guardrails", {})
    result["guardrails"]["flags"] = flags
    result["guardrails"]["has_flags"] = bool(flags)

    if flags:
        logger.warning(
            "deal_guardrails_flags",
            extra={"context": {"deal_id": result.get("deal_id"), "flags": flags}},
        )

    return result
