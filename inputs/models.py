"""
Validated shapes of the data external collaborators hand to the engine.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import InvalidParameter
from core.schema import MarketCondition


class GoalInput(BaseModel):
    """A savings goal as supplied by the goal provider. Rates are annual percentages."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    goal_id: Optional[int] = None
    name: Optional[str] = None
    target_amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    target_date: Optional[date] = None
    monthly_contribution: float = Field(ge=0, allow_inf_nan=False)
    expected_return_rate: float = Field(allow_inf_nan=False)
    currency: str = "ARS"

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("currency must not be blank")
        return v


class MarketContext(BaseModel):
    """Best-effort market observations; every field may be missing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    historical_performance: Optional[float] = Field(default=None, allow_inf_nan=False)
    volatility_factor: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    market_condition: Optional[MarketCondition] = None

    @field_validator("market_condition", mode="before")
    @classmethod
    def _normalise_condition(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in MarketCondition.__members__:
                return None
        return v


def parse_goal(goal: Any) -> GoalInput:
    """Accept a GoalInput or a mapping; schema violations become InvalidParameter."""
    if isinstance(goal, GoalInput):
        return goal
    try:
        return GoalInput.model_validate(goal)
    except ValidationError as e:
        raise InvalidParameter(f"Invalid goal: {e}") from e


def parse_market_context(context: Any) -> MarketContext:
    if context is None:
        return MarketContext()
    if isinstance(context, MarketContext):
        return context
    try:
        return MarketContext.model_validate(context)
    except ValidationError as e:
        raise InvalidParameter(f"Invalid market context: {e}") from e
