from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

IRR_MAX_ITER = 1000
IRR_TOL = 1e-8

# bracket for the bisection fallback, as periodic rates
_BISECT_LO = -0.9999
_BISECT_HI = 10.0


def npv(rate: float, cashflows: Sequence[float]) -> float:
    """
    Net present value with the first flow at t=0 (undiscounted).
    """
    cf = np.asarray(cashflows, dtype=float)
    t = np.arange(cf.shape[0], dtype=float)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        return float(np.sum(cf / np.power(1.0 + rate, t)))


def _newton_irr(cf: np.ndarray, guess: float) -> Optional[float]:
    t = np.arange(cf.shape[0], dtype=float)
    r = guess
    for _ in range(IRR_MAX_ITER):
        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            denom = np.power(1.0 + r, t)
            f = float(np.sum(cf / denom))
            d = float(-np.sum(t * cf / (denom * (1.0 + r))))
        if not math.isfinite(f) or not math.isfinite(d) or d == 0.0:
            return None
        r_next = r - f / d
        if not math.isfinite(r_next):
            return None
        if abs(r_next - r) < IRR_TOL:
            return r_next
        r = r_next
    return None


def _bisect_irr(cf: np.ndarray) -> Optional[float]:
    lo, hi = _BISECT_LO, _BISECT_HI
    f_lo, f_hi = npv(lo, cf), npv(hi, cf)
    if not (math.isfinite(f_lo) and math.isfinite(f_hi)) or f_lo * f_hi > 0:
        return None
    for _ in range(IRR_MAX_ITER):
        mid = 0.5 * (lo + hi)
        f_mid = npv(mid, cf)
        if not math.isfinite(f_mid):
            return None
        if abs(f_mid) < IRR_TOL or (hi - lo) < IRR_TOL:
            return mid
        if f_lo * f_mid < 0:
            hi, f_hi = mid, f_mid
        else:
            lo, f_lo = mid, f_mid
    return 0.5 * (lo + hi)


def safe_irr(cashflows: Sequence[float], guess: float = 0.1) -> Optional[float]:
    """
    Periodic IRR of `cashflows` (t=0 first), or None when it is undefined.

    Needs at least one positive and one negative flow. Newton's method from
    `guess` runs first; if it diverges we bisect over (-99.99%, 1000%).
    Never returns a non-finite number.
    """
    cf = np.asarray(list(cashflows), dtype=float)
    if cf.size == 0 or not np.all(np.isfinite(cf)):
        return None
    if not (np.any(cf > 0) and np.any(cf < 0)):
        return None

    r = _newton_irr(cf, guess)
    if r is None or r <= -1.0:
        r = _bisect_irr(cf)
    if r is None or not math.isfinite(r):
        return None
    return float(r)


def equity_multiple(levered_cashflows: Sequence[float]) -> Optional[float]:
    """
    Distributions / contributions over the hold. None without any contribution.
    """
    cf = np.asarray(list(levered_cashflows), dtype=float)
    contributions = -float(np.sum(cf[cf < 0]))
    if contributions <= 0:
        return None
    distributions = float(np.sum(cf[cf > 0]))
    return distributions / contributions


def compute_dscr(noi: np.ndarray, annual_debt_service: np.ndarray) -> np.ndarray:
    """
    DSCR = NOI / Annual Debt Service.

    Debt service is taken as a positive amount. Where it is zero the ratio
    is +inf (no debt to cover).
    """
    noi = np.asarray(noi, dtype=float)
    debt = np.abs(np.asarray(annual_debt_service, dtype=float))
    with np.errstate(divide="ignore", invalid="ignore"):
        dscr = noi / debt
        dscr[debt == 0.0] = np.inf
    return dscr
