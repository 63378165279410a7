from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from innkeep.domain.series import YearSeries

StaffingDept = Literal["frontOffice", "housekeeping", "fbService", "kitchen", "bar", "wellness"]
StaffingStatus = Literal["ok", "understaffed", "overstaffed", "critical"]


@dataclass
class Multipliers:
    years: List[int]              # [1, 2, ..., N]
    inflation: List[float]        # (1 + inflation)^i
    topline_growth: List[float]   # (1 + growth)^i
    revenue_ramp: List[float]     # Y1..Y4 from the curve, 1.0 afterwards
    cost_ramp: List[float]

    def at(self, name: str, year: int) -> float:
        """Multiplier for a 1-based year; year 0 and out-of-range years read as 1.0."""
        values: List[float] = getattr(self, name)
        if 1 <= year <= len(values):
            return values[year - 1]
        return 1.0


# ----------------------------
# Debt
# ----------------------------

@dataclass
class FinancingAmounts:
    project_cost: float
    loan_amount: float
    equity_amount: float


@dataclass
class DebtScheduleMonth:
    month: int        # 1-based
    payment: float
    interest: float
    principal: float
    balance: float    # after this month's payment


@dataclass
class DebtScheduleResult:
    loan_amount: float
    months: List[DebtScheduleMonth]
    monthly_payment: float       # amortizing payment
    monthly_io_payment: float    # interest-only payment on the opening balance
    annual_debt_service: float   # first 12 payments
    balloon_payment: float
    has_balloon: bool
    io_months: int = 0
    amort_months: int = 0
    term_months: int = 0


# ----------------------------
# Revenue / cost aggregation
# ----------------------------

@dataclass
class RoomsKpis:
    adr: YearSeries
    occupancy: YearSeries          # fraction 0..1
    revpar: YearSeries
    rooms_available: YearSeries
    rooms_sold: YearSeries
    rooms_revenue: YearSeries


@dataclass
class MealRevenue:
    internal: float
    external: float
    total: float


@dataclass
class FnbResults:
    internal_total: float
    external_total: float
    total_fnb: float
    fnb_revpar: float
    by_meal: Dict[str, MealRevenue]


@dataclass
class MonthlyFnbResults:
    month: int
    by_meal: Dict[str, MealRevenue]
    month_total: float


@dataclass
class OtherRevenueResults:
    spa_revenue: float
    other_revenue: float
    total_ancillary: float
    ancillary_revpar: float


@dataclass
class DeptPayroll:
    total: float = 0.0
    ftes: float = 0.0


@dataclass
class RolePayroll:
    total: float
    ftes: float
    base_salary: float


@dataclass
class PayrollResults:
    total_annual: float
    monthly_payroll: float
    per_room_annual: float
    total_ftes: float
    by_department: Dict[str, DeptPayroll]
    by_role: Dict[str, RolePayroll]


@dataclass
class OpexResults:
    direct_total: float
    indirect_total: float
    other_total: float
    grand_total: float
    by_item: Dict[str, float]
    by_section: Dict[str, float]


# ----------------------------
# Cash flow & returns
# ----------------------------

@dataclass
class UnleveredCashflow:
    years: List[str]
    ebitda: YearSeries
    cash_taxes: YearSeries          # <= 0
    capex: YearSeries               # y0 = -project_cost
    net_sale_proceeds: YearSeries
    unlevered_cf: YearSeries
    depreciation: float = 0.0       # annual, straight-line on project cost


@dataclass
class LeveredCashflow:
    years: List[str]
    levered_cf: YearSeries
    debt_draw: YearSeries           # y0 = +loan; refinance proceeds at the refi year
    interest_expense: YearSeries    # <= 0
    principal_repayment: YearSeries  # <= 0, includes exit payoff
    refinance_proceeds: YearSeries  # net cash out at the refinance year (memo)


@dataclass
class ProjectIrrs:
    unlevered_irr: Optional[float]
    levered_irr: Optional[float]


@dataclass
class SaleSummary:
    reference_ebitda: float
    exit_cap_rate: float
    estimated_sale_price: float
    selling_costs: float
    net_sale_proceeds: float
    total_capex: float
    development_profit: float


@dataclass
class RefinanceSummary:
    reference_ebitda: float
    refinance_ltv: float
    property_value: float
    new_loan_amount: float
    refinance_costs: float
    outstanding_balance: float
    net_cash_out: float


@dataclass
class CashflowRow:
    id: str
    label: str
    group: Literal["memo", "unlevered", "levered"]
    values: YearSeries


@dataclass
class CashflowKpis:
    unlevered_10y: float
    levered_10y: float
    tax_10y: float
    avg_ebitda_margin: float
    unlevered_irr: Optional[float]
    levered_irr: Optional[float]


@dataclass
class CashflowStatement:
    years: List[str]
    rows: List[CashflowRow]
    kpis: CashflowKpis
    exit_year: Optional[int]


@dataclass
class ReturnsSummary:
    project_cost: float
    loan_amount: float
    equity: float
    unlevered_irr: Optional[float]
    levered_irr: Optional[float]
    equity_multiple: Optional[float]
    dscr_by_year: Dict[str, float]
    min_dscr: Optional[float]
    stabilized_year: int
    stabilized_ebitda: float
    yield_on_cost: float
    development_profit: Optional[float]
    assessments: Dict[str, str] = field(default_factory=dict)


# ----------------------------
# Staffing
# ----------------------------

@dataclass
class RequiredStaffing:
    dept: StaffingDept
    role: str
    required_fte: float
    provided_fte: float
    gap_fte: float      # required - provided; positive means understaffed
    reason: str
