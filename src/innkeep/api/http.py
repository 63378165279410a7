# src/innkeep/api/http.py
from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import ValidationError

from innkeep.adapters.config import config
from innkeep.adapters.logging_utils import get_logger
from innkeep.analysis.debt import build_debt_schedule
from innkeep.services.deal_analyzer import analyze_deal, analyze_staffing
from innkeep.services.validation import prepare_deal
from .schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    DebtScheduleRequest,
    DebtScheduleResponse,
    StaffingRequest,
    StaffingResponse,
)

logger = get_logger(__name__)

app = FastAPI(title="innkeep")


def _json_safe(obj: Any) -> Any:
    """Non-finite floats (inf DSCR, NaN) become None; JSON has no encoding for them."""
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "env": config.ENV, "horizon_years": config.HORIZON_YEARS}


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze_endpoint(payload: AnalyzeRequest) -> AnalyzeResponse:
    """
    Full underwriting run for one deal snapshot. Nothing is persisted.
    """
    try:
        deal = prepare_deal(payload.deal)
        result = analyze_deal(
            deal,
            staffing_year=payload.staffing_year,
            include_schedule=payload.include_schedule,
        )
    except (ValidationError, ValueError, KeyError) as e:
        logger.warning("analyze_rejected", extra={"context": {"error": str(e)}})
        raise HTTPException(status_code=400, detail=str(e)) from e
    return AnalyzeResponse(**_json_safe(result))


@app.post("/debt-schedule", response_model=DebtScheduleResponse)
def debt_schedule_endpoint(payload: DebtScheduleRequest) -> DebtScheduleResponse:
    schedule = build_debt_schedule(payload.financing, payload.project_cost)
    out = asdict(schedule)
    if not payload.include_months:
        out.pop("months")
    return DebtScheduleResponse(**_json_safe(out))


@app.post("/staffing", response_model=StaffingResponse)
def staffing_endpoint(payload: StaffingRequest) -> StaffingResponse:
    try:
        deal = prepare_deal(payload.deal)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    result = analyze_staffing(deal, payload.year, payload.assumptions, payload.overrides)
    return StaffingResponse(**_json_safe(result))
