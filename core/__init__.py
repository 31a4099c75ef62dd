"""
Core package: configuration, value objects, errors, and shared numeric helpers.
No business logic lives here.
"""

from .config import (
    AdjusterConfig,
    EngineConfig,
    MonteCarloConfig,
    ProjectionDefaults,
    ScenarioConfig,
    ScenarioDefinition,
    SensitivityConfig,
    SolverConfig,
)
from .errors import InvalidParameter, NonConvergence, ProjectionError, UpstreamDataUnavailable
from .schema import (
    MarketCondition,
    ProjectionParameters,
    ProjectionResult,
    ProjectionType,
    RiskLevel,
    Severity,
)
from .utils import annual_to_monthly_rate, months_between, nearest_rank_percentile

__all__ = [
    "AdjusterConfig",
    "EngineConfig",
    "MonteCarloConfig",
    "ProjectionDefaults",
    "ScenarioConfig",
    "ScenarioDefinition",
    "SensitivityConfig",
    "SolverConfig",
    "InvalidParameter",
    "NonConvergence",
    "ProjectionError",
    "UpstreamDataUnavailable",
    "MarketCondition",
    "ProjectionParameters",
    "ProjectionResult",
    "ProjectionType",
    "RiskLevel",
    "Severity",
    "annual_to_monthly_rate",
    "months_between",
    "nearest_rank_percentile",
]
