"""
Engine configuration.

Every threshold, iteration cap, scenario library and sensitivity grid the
engine uses lives here as an immutable dataclass. Defaults reproduce the
production behaviour; tenants override with dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import InvalidParameter
from .schema import ProjectionType, Severity, StressTestScenario

ADJUSTMENT_RULES = ("performance", "volatility", "regime")

SENSITIVITY_PARAMETERS = (
    "annual_return_rate",
    "inflation_rate",
    "monthly_contribution",
    "contribution_growth_rate",
)


@dataclass(frozen=True)
class SolverConfig:
    # 600 months = the "no horizon exceeds 50 years" assumption
    max_months: int = 600
    irr_initial_rate: float = 0.10
    irr_tolerance: float = 1e-4
    irr_max_iterations: int = 1000
    irr_rate_floor: float = -0.99
    time_to_goal_cap_raises: bool = True
    # fallback inflation estimate (%/yr) for inflation-adjusted solvers
    default_inflation_rate: float = 120.0

    def __post_init__(self):
        if self.max_months < 1:
            raise InvalidParameter("max_months must be at least 1")
        if self.irr_max_iterations < 1:
            raise InvalidParameter("irr_max_iterations must be at least 1")
        if self.irr_tolerance <= 0:
            raise InvalidParameter("irr_tolerance must be positive")


@dataclass(frozen=True)
class AdjusterConfig:
    rule_order: Tuple[str, ...] = ADJUSTMENT_RULES
    base_confidence: float = 85.0

    # performance vs expectation
    performance_gap_threshold: float = 2.0
    mean_reversion_weight: float = 0.6
    gap_confidence_penalty: float = 3.0
    min_gap_confidence: float = 60.0

    # volatility
    volatility_threshold: float = 25.0
    volatility_rate_multiplier: float = 0.9
    volatility_confidence_multiplier: float = 0.85

    # market regime
    bullish_rate_multiplier: float = 1.10
    bullish_confidence_multiplier: float = 1.1
    max_confidence: float = 95.0
    bearish_rate_multiplier: float = 0.85
    bearish_confidence_multiplier: float = 0.8

    rate_floor: float = -50.0
    rate_cap: float = 50.0

    def __post_init__(self):
        unknown = [r for r in self.rule_order if r not in ADJUSTMENT_RULES]
        if unknown:
            raise InvalidParameter(
                f"Unknown adjustment rules: {unknown}. Available: {list(ADJUSTMENT_RULES)}"
            )
        if len(set(self.rule_order)) != len(self.rule_order):
            raise InvalidParameter("rule_order must not repeat a rule")
        if self.rate_floor > self.rate_cap:
            raise InvalidParameter("rate_floor must not exceed rate_cap")


@dataclass(frozen=True)
class ScenarioDefinition:
    """Deterministic scenario expressed as deltas on the base parameters."""

    name: str
    projection_type: ProjectionType
    confidence_level: int
    return_delta: float = 0.0
    contribution_growth_delta: float = 0.0
    inflation_delta: float = 0.0


DEFAULT_SCENARIOS: Tuple[ScenarioDefinition, ...] = (
    ScenarioDefinition("Optimistic Scenario", ProjectionType.OPTIMISTIC, 25,
                       return_delta=3.0, contribution_growth_delta=2.0),
    ScenarioDefinition("Realistic Scenario", ProjectionType.REALISTIC, 70),
    ScenarioDefinition("Pessimistic Scenario", ProjectionType.PESSIMISTIC, 90,
                       return_delta=-4.0, inflation_delta=20.0),
)


@dataclass(frozen=True)
class ScenarioConfig:
    definitions: Tuple[ScenarioDefinition, ...] = DEFAULT_SCENARIOS
    monte_carlo_name: str = "Monte Carlo Simulation"
    monte_carlo_confidence: int = 80
    include_monte_carlo: bool = True
    multiple_scenario_variations: Tuple[float, ...] = (-2.0, -1.0, 0.0, 1.0, 2.0, 3.0)
    # std dev (pp) of the bell curve weighting multiple-scenario variations
    probability_weight_std: float = 2.0


@dataclass(frozen=True)
class SensitivityConfig:
    grid: Dict[str, Tuple[float, ...]] = field(default_factory=lambda: {
        "annual_return_rate": (-5.0, -3.0, -2.0, -1.0, 1.0, 2.0, 3.0, 5.0),
        "inflation_rate": (-40.0, -20.0, -10.0, 10.0, 20.0, 40.0, 60.0),
        "monthly_contribution": (-50.0, -30.0, -20.0, -10.0, 10.0, 20.0, 30.0, 50.0),
        "contribution_growth_rate": (-15.0, -10.0, -5.0, 5.0, 10.0, 15.0, 20.0),
    })
    # |impact %| below medium -> LOW, below high -> MEDIUM, else HIGH
    medium_risk_threshold: float = 10.0
    high_risk_threshold: float = 25.0
    # average impact >= moderate -> "Moderate", > high -> "High"
    moderate_rating_threshold: float = 10.0
    high_rating_threshold: float = 20.0

    def __post_init__(self):
        unknown = [p for p in self.grid if p not in SENSITIVITY_PARAMETERS]
        if unknown:
            raise InvalidParameter(
                f"Unsupported sensitivity parameters: {unknown}. "
                f"Available: {list(SENSITIVITY_PARAMETERS)}"
            )
        if self.medium_risk_threshold > self.high_risk_threshold:
            raise InvalidParameter("medium_risk_threshold must not exceed high_risk_threshold")


@dataclass(frozen=True)
class MonteCarloConfig:
    n_trials: int = 1000
    seed: Optional[int] = 42
    min_trials: int = 100
    max_trials: int = 50_000

    # sampling standard deviations
    return_std: float = 8.0  # pp
    inflation_std: float = 30.0  # pp
    contribution_std_fraction: float = 0.10  # of base contribution
    contribution_growth_std: float = 10.0  # pp

    percentiles: Tuple[int, ...] = (5, 10, 25, 50, 75, 90, 95)
    tail_fraction: float = 0.05

    # joint sampling through the heuristic correlation table (off: independent draws)
    use_correlations: bool = False

    max_workers: int = 1
    chunk_size: int = 500

    def __post_init__(self):
        if not (self.min_trials <= self.n_trials <= self.max_trials):
            raise InvalidParameter(
                f"n_trials must be within [{self.min_trials}, {self.max_trials}], got {self.n_trials}"
            )
        for name in ("return_std", "inflation_std", "contribution_std_fraction",
                     "contribution_growth_std"):
            if getattr(self, name) < 0:
                raise InvalidParameter(f"{name} must be non-negative")
        if not 0 < self.tail_fraction < 1:
            raise InvalidParameter("tail_fraction must be in (0, 1)")
        if self.max_workers < 1 or self.chunk_size < 1:
            raise InvalidParameter("max_workers and chunk_size must be at least 1")


@dataclass(frozen=True)
class ProjectionDefaults:
    """Fallbacks for provider data and the assumptions baked into base parameters."""

    current_capital: float = 25_000.0
    volatility_factor: float = 18.5
    inflation_rate: float = 120.0
    contribution_growth_rate: float = 25.0
    dividend_yield: float = 3.0
    reinvest_dividends: bool = True
    horizon_months: int = 12
    target_amount: float = 100_000.0


DEFAULT_STRESS_SCENARIOS: Tuple[StressTestScenario, ...] = (
    StressTestScenario(
        name="Financial Crisis",
        description="40% market drawdown followed by a gradual recovery",
        parameters={"annual_return_rate": -15.0, "inflation_rate": 180.0},
        probability=5.0,
        severity=Severity.SEVERE,
    ),
    StressTestScenario(
        name="Moderate Recession",
        description="Negative returns for two years",
        parameters={"annual_return_rate": -5.0, "inflation_rate": 150.0},
        probability=15.0,
        severity=Severity.MODERATE,
    ),
    StressTestScenario(
        name="High Inflation",
        description="Runaway inflation short of hyperinflation",
        parameters={"annual_return_rate": 5.0, "inflation_rate": 250.0},
        probability=20.0,
        severity=Severity.MODERATE,
    ),
    StressTestScenario(
        name="Stagnation",
        description="Zero real economic growth over an extended period",
        parameters={"annual_return_rate": 2.0, "inflation_rate": 120.0},
        probability=25.0,
        severity=Severity.MILD,
    ),
)


@dataclass(frozen=True)
class EngineConfig:
    solver: SolverConfig = field(default_factory=SolverConfig)
    adjuster: AdjusterConfig = field(default_factory=AdjusterConfig)
    scenarios: ScenarioConfig = field(default_factory=ScenarioConfig)
    sensitivity: SensitivityConfig = field(default_factory=SensitivityConfig)
    monte_carlo: MonteCarloConfig = field(default_factory=MonteCarloConfig)
    defaults: ProjectionDefaults = field(default_factory=ProjectionDefaults)
    stress_scenarios: Tuple[StressTestScenario, ...] = DEFAULT_STRESS_SCENARIOS
