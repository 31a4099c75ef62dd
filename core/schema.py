"""
Value objects exchanged between engine components.

Rates are annual percentages throughout (10.0 means 10%/yr); periods are
months. Every object is frozen and rebuilt per request.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidParameter
from .utils import monthly_rate, require_finite


class MarketCondition(str, Enum):
    BULLISH = "BULLISH"
    NEUTRAL = "NEUTRAL"
    BEARISH = "BEARISH"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Severity(str, Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"


class ProjectionType(str, Enum):
    OPTIMISTIC = "OPTIMISTIC"
    REALISTIC = "REALISTIC"
    PESSIMISTIC = "PESSIMISTIC"
    MONTE_CARLO = "MONTE_CARLO"


@dataclass(frozen=True)
class ProjectionParameters:
    """
    Inputs for one compounding run.

    Validated on construction: numeric fields must be finite, periods a
    positive integer, and the monthly return / inflation rates must stay
    above -100%.
    """

    present_value: float
    monthly_contribution: float
    annual_return_rate: float
    periods: int
    inflation_rate: Optional[float] = None
    contribution_growth_rate: Optional[float] = None
    dividend_yield: Optional[float] = None
    reinvest_dividends: bool = False

    def __post_init__(self):
        for name in ("present_value", "monthly_contribution", "annual_return_rate"):
            object.__setattr__(self, name, require_finite(name, getattr(self, name)))
        for name in ("inflation_rate", "contribution_growth_rate", "dividend_yield"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, require_finite(name, value))

        periods = self.periods
        integral = isinstance(periods, (int, np.integer)) or (
            isinstance(periods, float) and periods.is_integer()
        )
        if isinstance(periods, bool) or not integral:
            raise InvalidParameter(f"periods must be an integer, got {periods!r}")
        if int(periods) < 1:
            raise InvalidParameter(f"periods must be >= 1, got {periods}")
        object.__setattr__(self, "periods", int(periods))

        monthly_rate("annual_return_rate", self.annual_return_rate)
        monthly_rate("inflation_rate", self.inflation_rate)
        object.__setattr__(self, "reinvest_dividends", bool(self.reinvest_dividends))

    def with_overrides(self, **changes: Any) -> "ProjectionParameters":
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise InvalidParameter(f"Unknown projection parameters: {sorted(unknown)}")
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class MonthlyProjectionRecord:
    month: int
    capital_beginning: float
    contribution: float
    growth: float
    dividends: float
    capital_ending: float
    real_value: float
    cumulative_contributions: float


@dataclass(frozen=True)
class ProjectionResult:
    future_value: float
    real_future_value: float
    total_contributions: float
    total_growth: float
    total_dividends: float
    effective_annual_return: float  # %
    real_annual_return: float  # %
    monthly_projections: Tuple[MonthlyProjectionRecord, ...] = ()

    def to_dataframe(self) -> pd.DataFrame:
        """Month-by-month ledger as a table (empty when the ledger was not recorded)."""
        columns = [f.name for f in dataclasses.fields(MonthlyProjectionRecord)]
        return pd.DataFrame(
            [dataclasses.astuple(r) for r in self.monthly_projections], columns=columns
        )

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame([
            {"Metric": "Future Value", "Value": self.future_value},
            {"Metric": "Real Future Value", "Value": self.real_future_value},
            {"Metric": "Total Contributions", "Value": self.total_contributions},
            {"Metric": "Total Growth", "Value": self.total_growth},
            {"Metric": "Total Dividends", "Value": self.total_dividends},
            {"Metric": "Effective Annual Return (%)", "Value": self.effective_annual_return},
            {"Metric": "Real Annual Return (%)", "Value": self.real_annual_return},
        ])


@dataclass(frozen=True)
class BreakEvenResult:
    months: int
    total_contributions: float
    total_growth: float


@dataclass(frozen=True)
class CompoundGrowthScenario:
    scenario_name: str
    parameters: ProjectionParameters
    result: ProjectionResult
    probability_weight: Optional[float] = None


@dataclass(frozen=True)
class DynamicAdjustment:
    original_rate: float
    adjusted_rate: float
    rationale: str
    historical_performance: float
    volatility_factor: float
    market_condition: MarketCondition
    confidence_score: int
    applied_rules: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SensitivityResult:
    parameter: str
    variation: float
    original_value: float
    new_value: float
    future_value: float
    real_future_value: float
    impact_percentage: float
    risk_level: Optional[RiskLevel]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class SensitivitySummary:
    most_sensitive_parameter: str
    least_sensitive_parameter: str
    average_impact: float
    risk_assessment: str


@dataclass(frozen=True)
class SensitivityAnalysis:
    goal_id: Optional[int]
    analysis_date: date
    base_scenario: ProjectionResult
    parameters_analyzed: Tuple[str, ...]
    results: Tuple[SensitivityResult, ...]
    summary: SensitivitySummary

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for r in self.results:
            row = dataclasses.asdict(r)
            row["risk_level"] = r.risk_level.value if r.risk_level is not None else None
            rows.append(row)
        return pd.DataFrame(rows)


@dataclass(frozen=True)
class StressTestScenario:
    name: str
    description: str
    parameters: Mapping[str, float]
    probability: float  # % likelihood assumed for the scenario
    severity: Severity


@dataclass(frozen=True)
class StressTestOutcome:
    scenario: StressTestScenario
    result: Optional[ProjectionResult]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class VolatilityMetrics:
    standard_deviation: float
    coefficient_of_variation: float
    value_at_risk_95: float
    expected_shortfall_95: float


@dataclass(frozen=True)
class MonteCarloResult:
    goal_id: Optional[int]
    simulations: int
    target_amount: float
    confidence_intervals: Mapping[str, float]  # "p5", "p10", ... "p95"
    success_probability: float  # 0-100
    expected_shortfall: float
    volatility_metrics: VolatilityMetrics
    mean: float

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"Percentile": k, "Real Future Value": v} for k, v in self.confidence_intervals.items()]
        )


@dataclass(frozen=True)
class GoalProjection:
    """One persisted scenario row."""

    goal_id: Optional[int]
    projection_date: date
    scenario_name: str
    projection_type: ProjectionType
    parameters: ProjectionParameters
    result: ProjectionResult
    confidence_level: int
    probability_weight: Optional[float] = None


@dataclass(frozen=True)
class GoalProjectionSummary:
    goal: Any  # inputs.models.GoalInput
    current_projection: GoalProjection
    scenarios: Tuple[GoalProjection, ...]
    dynamic_adjustment: DynamicAdjustment

    def scenario(self, projection_type: ProjectionType) -> GoalProjection:
        for s in self.scenarios:
            if s.projection_type == projection_type:
                return s
        raise KeyError(projection_type)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "Scenario": s.scenario_name,
                "Type": s.projection_type.value,
                "Annual Return (%)": s.parameters.annual_return_rate,
                "Future Value": s.result.future_value,
                "Real Future Value": s.result.real_future_value,
                "Confidence": s.confidence_level,
            }
            for s in self.scenarios
        ])
