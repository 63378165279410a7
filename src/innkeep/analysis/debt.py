# src/innkeep/analysis/debt.py
from __future__ import annotations

import math
from typing import List, Tuple

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.domain.deal import FinancingSettings
from innkeep.domain.underwriting import DebtScheduleMonth, DebtScheduleResult, FinancingAmounts

logger = get_logger(__name__)


def calculate_financing_amounts(project_cost: float, ltc_pct: float) -> FinancingAmounts:
    loan_amount = project_cost * (ltc_pct / 100.0)
    return FinancingAmounts(
        project_cost=project_cost,
        loan_amount=loan_amount,
        equity_amount=project_cost - loan_amount,
    )


def _annuity_payment(loan: float, monthly_rate: float, n_months: int) -> float:
    """
    Level payment that retires `loan` over `n_months`:
    M = P * r / (1 - (1 + r)^-n)
    """
    if n_months <= 0:
        # never amortizes; no payment is defined
        return 0.0
    if monthly_rate == 0 or monthly_rate <= -1.0:
        return loan / n_months
    # 1 - (1 + r)^-n without losing tiny rates to rounding
    den = -math.expm1(-n_months * math.log1p(monthly_rate))
    if den == 0:
        return loan / n_months
    return loan * monthly_rate / den


def build_debt_schedule(financing: FinancingSettings, project_cost: float) -> DebtScheduleResult:
    """
    Monthly amortization table over the full loan term.

    Phases, by month m (1-based):
      m <= IO months               -> interest only, principal 0
      IO < m <= IO + amort months  -> level annuity payment
      beyond that (within term)    -> nothing due
    Whatever is still outstanding at the end of the term is the balloon.
    """
    amounts = calculate_financing_amounts(project_cost, financing.ltc_pct)
    loan = amounts.loan_amount

    if loan == 0:
        return DebtScheduleResult(
            loan_amount=0.0,
            months=[],
            monthly_payment=0.0,
            monthly_io_payment=0.0,
            annual_debt_service=0.0,
            balloon_payment=0.0,
            has_balloon=False,
        )

    i = financing.interest_rate_pct / 100.0 / 12.0
    n_amort = int(financing.amort_years) * 12
    n_term = int(financing.loan_term_years) * 12
    n_io = int(financing.io_period_years) * 12

    monthly_payment = _annuity_payment(loan, i, n_amort)
    monthly_io_payment = loan * i

    months: List[DebtScheduleMonth] = []
    balance = loan
    for m in range(1, n_term + 1):
        if m <= n_io:
            interest = balance * i
            principal = 0.0
            payment = interest
        elif m - n_io <= n_amort:
            interest = balance * i
            principal = min(monthly_payment - interest, balance)
            payment = interest + principal
            balance = max(0.0, balance - principal)
        else:
            interest = principal = payment = 0.0

        months.append(
            DebtScheduleMonth(
                month=m,
                payment=payment,
                interest=interest,
                principal=principal,
                balance=balance,
            )
        )

    annual_debt_service = sum(row.payment for row in months[:12])

    final_balance = months[-1].balance if months else loan
    has_balloon = final_balance > config.BALLOON_THRESHOLD
    balloon_payment = final_balance if has_balloon else 0.0

    logger.debug(
        "debt_schedule_built",
        extra={
            "context": {
                "loan_amount": loan,
                "term_months": n_term,
                "io_months": n_io,
                "amort_months": n_amort,
                "annual_debt_service": annual_debt_service,
                "balloon_payment": balloon_payment,
            }
        },
    )

    return DebtScheduleResult(
        loan_amount=loan,
        months=months,
        monthly_payment=monthly_payment,
        monthly_io_payment=monthly_io_payment,
        annual_debt_service=annual_debt_service,
        balloon_payment=balloon_payment,
        has_balloon=has_balloon,
        io_months=n_io,
        amort_months=n_amort,
        term_months=n_term,
    )


def _year_rows(schedule: DebtScheduleResult, year: int) -> List[DebtScheduleMonth]:
    if year < 1:
        return []
    return schedule.months[(year - 1) * 12 : year * 12]


def debt_service_for_year(schedule: DebtScheduleResult, year: int) -> float:
    """Total payments in loan year `year` (1-based); 0 outside the term."""
    return sum(row.payment for row in _year_rows(schedule, year))


def monthly_debt_service_for_year(schedule: DebtScheduleResult, year: int) -> float:
    return debt_service_for_year(schedule, year) / 12.0


def interest_and_principal_for_year(schedule: DebtScheduleResult, year: int) -> Tuple[float, float]:
    rows = _year_rows(schedule, year)
    return sum(r.interest for r in rows), sum(r.principal for r in rows)


def loan_balance_at_end_of_year(schedule: DebtScheduleResult, year: int) -> float:
    """
    Outstanding balance after the last payment of `year`.

    Year 0 is the drawn amount. Years past the end of the schedule read as 0.
    """
    if year <= 0:
        return schedule.loan_amount
    idx = year * 12 - 1
    if idx >= len(schedule.months):
        return 0.0
    return schedule.months[idx].balance
