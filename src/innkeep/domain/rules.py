from typing import Literal, Optional

from innkeep.adapters.config import config

ThresholdStatus = Literal["excellent", "good", "ok", "weak", "unrealistic", "n/a"]

THRESHOLDS = {
    # EBITDA / total investment
    "yield_on_cost": {"good": 0.10, "ok": 0.07},
    # GOP / total revenue; above "high" is probably optimistic
    "gop_pct": {"low": 0.20, "high": 0.55},
    "irr": {"excellent": 0.18, "good": 0.12, "ok": 0.08},
    "equity_multiple": {"excellent": 2.5, "good": 2.0, "ok": 1.5},
    "dscr": {"good": 1.35, "ok": 1.20},
}


def assess_yield_on_cost(yoc: float) -> ThresholdStatus:
    t = THRESHOLDS["yield_on_cost"]
    if yoc >= t["good"]:
        return "good"
    if yoc >= t["ok"]:
        return "ok"
    return "weak"


def assess_gop_pct(gop_pct: float) -> ThresholdStatus:
    t = THRESHOLDS["gop_pct"]
    if gop_pct < t["low"]:
        return "weak"
    if gop_pct > t["high"]:
        return "unrealistic"
    return "good"


def assess_irr(irr: Optional[float]) -> ThresholdStatus:
    if irr is None:
        return "n/a"
    t = THRESHOLDS["irr"]
    if irr >= t["excellent"]:
        return "excellent"
    if irr >= t["good"]:
        return "good"
    if irr >= t["ok"]:
        return "ok"
    return "weak"


def assess_equity_multiple(multiple: Optional[float]) -> ThresholdStatus:
    if multiple is None:
        return "n/a"
    t = THRESHOLDS["equity_multiple"]
    if multiple >= t["excellent"]:
        return "excellent"
    if multiple >= t["good"]:
        return "good"
    if multiple >= t["ok"]:
        return "ok"
    return "weak"


def assess_dscr(dscr: Optional[float]) -> ThresholdStatus:
    if dscr is None:
        return "n/a"
    t = THRESHOLDS["dscr"]
    if dscr >= t["good"]:
        return "good"
    if dscr >= t["ok"]:
        return "ok"
    return "weak"


# ----------------------------
# Staffing gaps (FTE, required - provided)
# ----------------------------

def assess_staffing_gap(gap_fte: float) -> str:
    if gap_fte >= config.GAP_CRITICAL_FTE:
        return "critical"
    if gap_fte >= config.GAP_WARNING_FTE:
        return "understaffed"
    if gap_fte <= config.GAP_OVERSTAFF_FTE:
        return "overstaffed"
    return "ok"


def suggested_action(gap_fte: float) -> str:
    if gap_fte >= 0.5:
        return f"Hire +{gap_fte:.1f} FTE or add part-time coverage"
    if gap_fte >= 0.2:
        return f"Add +{gap_fte:.1f} FTE or extend existing hours"
    if gap_fte <= -0.5:
        return f"Consider reducing {-gap_fte:.1f} FTE or expanding service"
    if gap_fte <= -0.3:
        return f"Slight overstaffing of {-gap_fte:.1f} FTE"
    return "Staffing levels appropriate"
