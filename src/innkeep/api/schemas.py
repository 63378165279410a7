# src/innkeep/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from innkeep.domain.deal import FinancingSettings, StaffingAssumptions, StaffingOverrides


class AnalyzeRequest(BaseModel):
    """
    Typed request for /analyze.

    `deal` stays a plain dict so percent strings ("6.5%") can be normalized
    before the Deal model validates it.
    """
    deal: dict[str, Any]
    staffing_year: int | None = Field(default=None, ge=1)
    include_schedule: bool = False


class AnalyzeResponse(BaseModel):
    """
    The analyzer returns a rich nested dict.
    Permissive so new result sections don't break the endpoint.
    """
    model_config = ConfigDict(extra="allow")

    deal_id: str


class DebtScheduleRequest(BaseModel):
    financing: FinancingSettings
    project_cost: float = Field(..., ge=0)
    include_months: bool = True


class DebtScheduleResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    loan_amount: float
    monthly_payment: float
    annual_debt_service: float
    balloon_payment: float
    has_balloon: bool


class StaffingRequest(BaseModel):
    deal: dict[str, Any]
    year: int = Field(default=1, ge=1)
    assumptions: StaffingAssumptions | None = None
    overrides: StaffingOverrides | None = None


class StaffingResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    year: int
    rows: list[dict[str, Any]]
    totals: dict[str, float]
    flags: list[dict[str, Any]]
