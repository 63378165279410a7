from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

# All percentages on the input side are 0-100 ("6.5" means 6.5%).

CurrencyCode = Literal["EUR", "GBP", "USD"]
MealKey = Literal["breakfast", "lunch", "dinner", "bar"]
DeptKey = Literal["rooms", "fnb", "wellness", "ag", "sales", "maintenance"]
OpexDriver = Literal[
    "PCT_ROOMS_REVENUE",
    "PCT_FNB_REVENUE",
    "PCT_OTHER_REVENUE",
    "PCT_TOTAL_REVENUE",
    "PER_ROOM_NIGHT_SOLD",
    "FIXED_PER_MONTH",
]
OpexSection = Literal["DIRECT", "INDIRECT", "OTHER"]
ExitStrategy = Literal["SALE", "REFINANCE", "HOLD_FOREVER"]

MEAL_KEYS: tuple[str, ...] = ("breakfast", "lunch", "dinner", "bar")
DEPT_KEYS: tuple[str, ...] = ("rooms", "fnb", "wellness", "ag", "sales", "maintenance")


class RoomType(BaseModel):
    name: str
    rooms: int = Field(default=0, ge=0)
    adr_weight: float = Field(default=100.0, description="index %, 100 = base ADR, 140 = +40%")


# ----------------------------
# CapEx budget
# ----------------------------

class Budget(BaseModel):
    # 1 site acquisition
    net_purchase_price: float = 0.0
    re_transfer_tax: float = 0.0
    deal_costs: float = 0.0
    # 2 construction
    construction_costs: float = 0.0
    ffe_ose: float = 0.0
    # 3 development
    professional_fees: float = 0.0
    planning_charges: float = 0.0
    development_fee: float = 0.0
    # 4 other development
    insurance_admin: float = 0.0
    other_dev: float = 0.0
    # 5 pre-opening
    pre_opening: float = 0.0
    # 6 contingency, % of everything above
    contingency_pct: float = 0.0

    # GRAND TOTAL excl. VAT; derived from the lines above when not supplied
    grand_total: float | None = None
    _derived_total: bool = PrivateAttr(default=False)

    @property
    def contingency_base(self) -> float:
        return (
            self.net_purchase_price
            + self.re_transfer_tax
            + self.deal_costs
            + self.construction_costs
            + self.ffe_ose
            + self.professional_fees
            + self.planning_charges
            + self.development_fee
            + self.insurance_admin
            + self.other_dev
            + self.pre_opening
        )

    @property
    def contingency_amount(self) -> float:
        return self.contingency_base * (self.contingency_pct / 100.0)

    @model_validator(mode="after")
    def _fill_grand_total(self) -> "Budget":
        if self.grand_total is None:
            self.grand_total = self.contingency_base + self.contingency_amount
            self._derived_total = True
        return self


# ----------------------------
# Revenue models
# ----------------------------

class MonthRow(BaseModel):
    month: int = Field(..., ge=1, le=12)
    adr: float
    occ_pct: float
    days: int
    rooms_available: float
    rooms_sold: float
    rooms_revenue: float
    revpar: float


class RoomRevenueTotals(BaseModel):
    rooms_available: float = 0.0
    rooms_sold: float = 0.0
    rooms_revenue: float = 0.0
    avg_adr: float = 0.0
    avg_occ_pct: float = 0.0
    avg_revpar: float = 0.0


class RoomRevenueModel(BaseModel):
    seasonality_preset: str | None = None
    months: list[MonthRow] = Field(default_factory=list)
    totals: RoomRevenueTotals = Field(default_factory=RoomRevenueTotals)


class MealPeriod(BaseModel):
    guest_capture_pct: float = 0.0
    avg_check_guest: float = 0.0
    external_covers_per_day: float = 0.0
    avg_check_external: float = 0.0


def _default_meals() -> dict[str, MealPeriod]:
    return {k: MealPeriod() for k in MEAL_KEYS}


class FnBState(BaseModel):
    avg_guests_per_occ_room: float = 2.0
    meals: dict[MealKey, MealPeriod] = Field(default_factory=_default_meals)


class SpaSettings(BaseModel):
    treatments_per_day: float = 0.0
    avg_price_per_treatment: float = 0.0
    open_hours: float = 10.0


class OtherIncomeSettings(BaseModel):
    mode: Literal["percentage", "fixed"] = "percentage"
    percentage_of_rooms: float = 0.0
    monthly_fixed: float = 0.0


class OtherRevenueState(BaseModel):
    spa: SpaSettings = Field(default_factory=SpaSettings)
    other: OtherIncomeSettings = Field(default_factory=OtherIncomeSettings)


# ----------------------------
# Costs
# ----------------------------

class PayrollRole(BaseModel):
    id: str | None = None
    dept: DeptKey
    title: str
    ftes: float = Field(default=0.0, ge=0)
    base_salary: float = Field(default=0.0, description="annual gross per FTE, before employer on-costs")
    employer_cost_pct: float = 0.0


class PayrollModel(BaseModel):
    roles: list[PayrollRole] = Field(default_factory=list)


class OpexItem(BaseModel):
    id: str
    label: str = ""
    value: float = 0.0
    driver: OpexDriver
    section: OpexSection


class OpexState(BaseModel):
    items: list[OpexItem] = Field(default_factory=list)

    def value_of(self, item_id: str) -> float:
        for item in self.items:
            if item.id == item_id:
                return item.value
        return 0.0


# ----------------------------
# Assumptions
# ----------------------------

class RampSettings(BaseModel):
    # Y1..Y4 as fractions of stabilized performance
    revenue_ramp: list[float] = Field(default_factory=lambda: [0.80, 0.90, 1.00, 1.00])
    # Y1..Y4 cost premium vs stabilized (>1 in early years)
    cost_ramp: list[float] = Field(default_factory=lambda: [1.10, 1.05, 1.00, 1.00])
    topline_growth_pct: float = 3.0
    inflation_pct: float = 2.0
    depreciation_pct_of_capex: float = 3.0

    @field_validator("revenue_ramp", "cost_ramp")
    @classmethod
    def _four_years(cls, v: list[float]) -> list[float]:
        if len(v) != 4:
            raise ValueError("ramp curves must have exactly 4 entries (Y1..Y4)")
        return v


class FinancingSettings(BaseModel):
    """
    Loan terms. Consistency between the fields (e.g. IO period longer than
    the loan term, negative rates) is NOT checked here; the debt engine
    produces a best-effort schedule for such inputs.
    """
    ltc_pct: float = 40.0
    interest_rate_pct: float = 5.5
    amort_years: int = 25
    loan_term_years: int = 20
    io_period_years: int = 0
    tax_rate_on_ebt: float = 25.0


class SaleSettings(BaseModel):
    exit_year: int = 5
    exit_cap_rate: float = 6.5
    selling_costs_pct: float = 3.0


class RefinanceSettings(BaseModel):
    refinance_year: int = 5
    ltv_at_refinance: float = 70.0
    refinance_costs_pct: float = 2.0


class ExitSettings(BaseModel):
    strategy: ExitStrategy = "SALE"
    sale: SaleSettings = Field(default_factory=SaleSettings)
    refinance: RefinanceSettings = Field(default_factory=RefinanceSettings)

    @property
    def exit_year(self) -> int | None:
        """Year of the terminal event, None when holding forever."""
        if self.strategy == "SALE":
            return self.sale.exit_year
        if self.strategy == "REFINANCE":
            return self.refinance.refinance_year
        return None


class Assumptions(BaseModel):
    ramp: RampSettings = Field(default_factory=RampSettings)
    financing: FinancingSettings | None = None
    exit: ExitSettings = Field(default_factory=ExitSettings)


# ----------------------------
# Root aggregate
# ----------------------------

class Deal(BaseModel):
    id: str
    name: str = ""
    currency: CurrencyCode = "EUR"

    purchase_price: float = 0.0
    gfa_sqm: float = 0.0
    room_types: list[RoomType] = Field(default_factory=list)

    budget: Budget | None = None
    room_revenue: RoomRevenueModel | None = None
    fnb_revenue: FnBState | None = None
    other_revenue: OtherRevenueState | None = None
    payroll_model: PayrollModel | None = None
    opex: OpexState | None = None

    assumptions: Assumptions = Field(default_factory=Assumptions)

    @model_validator(mode="after")
    def _purchase_price_into_budget(self) -> "Deal":
        # the budget's net purchase price loads from the deal unless entered
        if self.purchase_price <= 0:
            return self
        if self.budget is None:
            self.budget = Budget(net_purchase_price=self.purchase_price)
        elif self.budget._derived_total and "net_purchase_price" not in self.budget.model_fields_set:
            lines = self.budget.model_dump(exclude={"grand_total"})
            lines["net_purchase_price"] = self.purchase_price
            self.budget = Budget(**lines)
        return self

    @property
    def total_rooms(self) -> int:
        return sum(int(r.rooms or 0) for r in self.room_types)

    @property
    def project_cost(self) -> float:
        """Budget grand total; 0 when neither a budget nor a purchase price is entered."""
        if self.budget is None:
            return 0.0
        return float(self.budget.grand_total or 0.0)


# ----------------------------
# Staffing sense-check inputs
# ----------------------------

class StaffingAssumptions(BaseModel):
    hours_per_week: float = 40.0
    utilization_factor: float = 0.80

    front_office_24x7: bool = True
    day_posts: float = 1.0
    night_posts: float = 1.0

    breakfast_active: bool = True
    breakfast_hours: float = 3.0
    lunch_active: bool = True
    lunch_hours: float = 4.0
    dinner_active: bool = True
    dinner_hours: float = 5.0
    bar_active: bool = True
    bar_hours: float = 8.0

    rooms_per_attendant: float = 15.0
    housekeeping_shift_hours: float = 8.0
    spa_hours: float = 10.0


class PeriodOverride(BaseModel):
    hours: float | None = None
    covers_per_day: float | None = None


class SpaOverride(BaseModel):
    treatments_per_day: float | None = None
    open_hours: float | None = None


class StaffingOverrides(BaseModel):
    breakfast: PeriodOverride | None = None
    lunch: PeriodOverride | None = None
    dinner: PeriodOverride | None = None
    bar: PeriodOverride | None = None
    spa: SpaOverride | None = None
    rooms_per_attendant: float | None = None
