# src/innkeep/services/validation.py

from typing import Any

from innkeep.adapters.config import config
from innkeep.domain.deal import Deal

# inputs the projection needs before its numbers mean anything
REQUIRED_SECTIONS = [
    "room_types",
    "budget",
    "room_revenue",
    "financing",
]

# inputs that default to zero revenue / cost when absent
OPTIONAL_SECTIONS = [
    "fnb_revenue",
    "other_revenue",
    "payroll_model",
    "opex",
]


def _coerce_percent_strings(val: Any) -> Any:
    """
    Turn "6.5%" / " 70 % " into 6.5 / 70.0 anywhere in a nested payload.
    Percent inputs are 0-100 throughout, so the number is kept as written.
    """
    if isinstance(val, dict):
        return {k: _coerce_percent_strings(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_coerce_percent_strings(v) for v in val]
    if isinstance(val, str):
        s = val.strip()
        if s.endswith("%"):
            try:
                return float(s[:-1].strip())
            except ValueError:
                return val
    return val


def prepare_deal(raw: dict[str, Any]) -> Deal:
    """
    Build a Deal from a raw JSON-like payload.

    Raises pydantic.ValidationError when the payload does not fit the model.
    """
    return Deal.model_validate(_coerce_percent_strings(raw))


def _is_missing(deal: Deal, section: str) -> bool:
    if section == "room_types":
        return deal.total_rooms <= 0
    if section == "financing":
        return deal.assumptions.financing is None
    if section == "budget":
        return deal.budget is None or deal.project_cost <= 0
    return getattr(deal, section) is None


def inspect_deal_inputs(deal: Deal) -> dict[str, Any]:
    """
    Report which inputs are missing and which combinations look inconsistent.

    Computation never depends on this; missing inputs already flow through
    the engine as zeros. Callers use it to mark a projection as incomplete.
    """
    missing = [s for s in REQUIRED_SECTIONS if _is_missing(deal, s)]
    defaulted = [s for s in OPTIONAL_SECTIONS if _is_missing(deal, s)]
    warnings: list[str] = []

    fin = deal.assumptions.financing
    if fin is not None:
        if fin.io_period_years > fin.loan_term_years:
            warnings.append("Interest-only period is longer than the loan term.")
        if fin.amort_years <= 0 and fin.ltc_pct > 0:
            warnings.append("Amortization period is zero; the loan never amortizes.")
        if fin.interest_rate_pct < 0:
            warnings.append("Interest rate is negative.")
        if not (0 <= fin.ltc_pct <= 100):
            warnings.append("Loan-to-cost is outside 0-100%.")
        if fin.loan_term_years < fin.io_period_years + fin.amort_years:
            warnings.append("Loan term ends before full amortization; a balloon will remain.")

    exit_year = deal.assumptions.exit.exit_year
    if exit_year is not None:
        if exit_year < 1:
            warnings.append("Exit year must be at least 1.")
        elif exit_year > config.HORIZON_YEARS:
            warnings.append(
                f"Exit year {exit_year} is beyond the {config.HORIZON_YEARS}-year projection; no exit is modelled."
            )

    if deal.assumptions.exit.strategy == "SALE" and deal.assumptions.exit.sale.exit_cap_rate <= 0:
        warnings.append("Exit cap rate is zero; sale proceeds will be zero.")

    return {
        "complete": not missing,
        "missing": missing,
        "defaulted_to_zero": defaulted,
        "warnings": warnings,
    }
