# src/innkeep/adapters/config.py
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # -----------------------------
    # Projection horizon
    # -----------------------------
    # y0 (acquisition / pre-opening) .. yN
    HORIZON_YEARS: int = Field(default=10)

    # -----------------------------
    # Debt
    # -----------------------------
    # remaining balance above this (currency units) at the end of the
    # schedule is reported as a balloon
    BALLOON_THRESHOLD: float = Field(default=1000.0)

    # "schedule"    -> exact per-year interest / principal from the monthly table
    # "approximate" -> split year-1 debt service into interest / principal shares
    INTEREST_SPLIT_MODE: Literal["schedule", "approximate"] = Field(default="schedule")
    APPROX_INTEREST_SHARE: float = Field(default=0.80)

    # -----------------------------
    # Tax / exit defaults (percent, 0-100)
    # -----------------------------
    DEFAULT_TAX_RATE_PCT: float = Field(default=25.0)
    REFINANCE_VALUATION_CAP_RATE_PCT: float = Field(default=6.5)

    # -----------------------------
    # Staffing defaults
    # -----------------------------
    STAFF_HOURS_PER_WEEK: float = Field(default=40.0)
    STAFF_UTILIZATION: float = Field(default=0.80)

    # gap bands in FTE (required - provided)
    GAP_CRITICAL_FTE: float = Field(default=0.5)
    GAP_WARNING_FTE: float = Field(default=0.2)
    GAP_OVERSTAFF_FTE: float = Field(default=-0.3)

    model_config = SettingsConfigDict(
        env_prefix="INNKEEP_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("STAFF_UTILIZATION", "APPROX_INTEREST_SHARE", mode="before")
    @classmethod
    def _to_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("value must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if not (0.0 < f <= 1.0):
            raise ValueError("value must be in (0, 1]")
        return f

    @field_validator("BALLOON_THRESHOLD", "STAFF_HOURS_PER_WEEK", mode="before")
    @classmethod
    def _non_negative(cls, v: Any) -> Any:
        f = float(v)
        if f < 0:
            raise ValueError("must be >= 0")
        return f

    @field_validator("HORIZON_YEARS", mode="before")
    @classmethod
    def _horizon_range(cls, v: Any) -> Any:
        n = int(v)
        if not (1 <= n <= 50):
            raise ValueError("HORIZON_YEARS must be between 1 and 50")
        return n


config = AppConfig()
