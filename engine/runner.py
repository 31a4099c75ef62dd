"""
Projection runner: orchestrates one goal through the full pipeline.

  goal + current capital (providers)
    → DynamicRateAdjuster                 adjusted return assumption
    → build_projection_parameters         base ProjectionParameters
    → ScenarioGenerator                   Optimistic / Realistic / Pessimistic / Monte Carlo
    → SensitivityAnalyzer / StressTester / MonteCarloSimulator

Provider lookups are awaited one after another before any math runs; the
math itself is synchronous. Outputs are handed to a ProjectionSink keyed by
(goal_id, scenario_name, analysis_date).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple

from adjustment.adjuster import DynamicRateAdjuster
from core.config import EngineConfig
from core.errors import ProjectionError
from core.schema import (
    DynamicAdjustment,
    GoalProjectionSummary,
    MarketCondition,
    MonteCarloResult,
    ProjectionParameters,
    ProjectionType,
    SensitivityAnalysis,
    StressTestOutcome,
)
from core.utils import months_between
from distributions.random_source import RandomSource
from inputs.models import GoalInput, MarketContext, parse_goal
from inputs.providers import (
    CapitalProvider,
    MarketContextProvider,
    ProjectionKey,
    ProjectionSink,
    fetch_current_capital,
    fetch_market_context,
)
from risk.monte_carlo import MonteCarloSimulator
from risk.sensitivity import SensitivityAnalyzer
from risk.stress import StressTester

from .calculator import CompoundingCalculator
from .scenarios import ScenarioGenerator

logger = logging.getLogger(__name__)

SENSITIVITY_KEY = "Sensitivity Analysis"
MONTE_CARLO_KEY = "Monte Carlo Analysis"


@dataclass(frozen=True)
class PreparedGoal:
    goal: GoalInput
    params: ProjectionParameters
    adjustment: DynamicAdjustment
    as_of: date


class ProjectionEngine:
    """
    Usage:
        engine = ProjectionEngine(capital_provider=portfolio, market_provider=market)
        summary = await engine.generate_goal_projections(goal)
        engine.persist_summary(summary, sink)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        capital_provider: Optional[CapitalProvider] = None,
        market_provider: Optional[MarketContextProvider] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self.config = config or EngineConfig()
        self.capital_provider = capital_provider
        self.market_provider = market_provider

        cfg = self.config
        self.calculator = CompoundingCalculator(cfg.solver)
        self.adjuster = DynamicRateAdjuster(cfg.adjuster)
        self.monte_carlo = MonteCarloSimulator(self.calculator, cfg.monte_carlo, random_source)
        self.scenario_generator = ScenarioGenerator(self.calculator, cfg.scenarios, self.monte_carlo)
        self.sensitivity_analyzer = SensitivityAnalyzer(self.calculator, cfg.sensitivity)
        self.stress_tester = StressTester(self.calculator, cfg.stress_scenarios)

    # ------------------------------------------------------------------
    # Parameter assembly
    # ------------------------------------------------------------------

    def horizon_months(self, goal: GoalInput, as_of: date) -> int:
        """Whole months from as_of to the goal's target date, at least 1."""
        if goal.target_date is None:
            return self.config.defaults.horizon_months
        return max(1, months_between(as_of, goal.target_date))

    def build_projection_parameters(
        self,
        goal: GoalInput,
        current_capital: float,
        annual_return_rate: float,
        *,
        as_of: Optional[date] = None,
    ) -> ProjectionParameters:
        d = self.config.defaults
        return ProjectionParameters(
            present_value=current_capital,
            monthly_contribution=goal.monthly_contribution,
            annual_return_rate=annual_return_rate,
            periods=self.horizon_months(goal, as_of or date.today()),
            inflation_rate=d.inflation_rate,
            contribution_growth_rate=d.contribution_growth_rate,
            dividend_yield=d.dividend_yield,
            reinvest_dividends=d.reinvest_dividends,
        )

    def adjust_rate(self, goal: GoalInput, context: MarketContext) -> DynamicAdjustment:
        """Run the adjuster, filling absent observations with neutral values."""
        historical = context.historical_performance
        if historical is None:
            historical = goal.expected_return_rate
        volatility = context.volatility_factor
        if volatility is None:
            volatility = self.config.defaults.volatility_factor
        return self.adjuster.adjust(
            goal.expected_return_rate,
            historical_performance=historical,
            volatility_factor=volatility,
            market_condition=context.market_condition or MarketCondition.NEUTRAL,
        )

    async def prepare(self, goal: Any, *, as_of: Optional[date] = None) -> PreparedGoal:
        goal = parse_goal(goal)
        as_of = as_of or date.today()
        capital = await fetch_current_capital(
            self.capital_provider, self.config.defaults.current_capital
        )
        context = await fetch_market_context(self.market_provider)
        adjustment = self.adjust_rate(goal, context)
        params = self.build_projection_parameters(
            goal, capital, adjustment.adjusted_rate, as_of=as_of
        )
        return PreparedGoal(goal=goal, params=params, adjustment=adjustment, as_of=as_of)

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def generate_goal_projections(
        self, goal: Any, *, as_of: Optional[date] = None
    ) -> GoalProjectionSummary:
        prepared = await self.prepare(goal, as_of=as_of)
        scenarios = self.scenario_generator.generate(
            prepared.params, goal_id=prepared.goal.goal_id, projection_date=prepared.as_of
        )
        current = next(
            (s for s in scenarios if s.projection_type == ProjectionType.REALISTIC), scenarios[0]
        )
        logger.info(
            "Generated %d projections for goal %s (rate %.2f -> %.2f)",
            len(scenarios), prepared.goal.goal_id,
            prepared.adjustment.original_rate, prepared.adjustment.adjusted_rate,
        )
        return GoalProjectionSummary(
            goal=prepared.goal,
            current_projection=current,
            scenarios=tuple(scenarios),
            dynamic_adjustment=prepared.adjustment,
        )

    async def analyze_sensitivity(
        self, goal: Any, *, as_of: Optional[date] = None
    ) -> SensitivityAnalysis:
        prepared = await self.prepare(goal, as_of=as_of)
        return self.sensitivity_analyzer.analyze(
            prepared.params, goal_id=prepared.goal.goal_id, analysis_date=prepared.as_of
        )

    async def stress_test(
        self, goal: Any, *, as_of: Optional[date] = None
    ) -> List[StressTestOutcome]:
        prepared = await self.prepare(goal, as_of=as_of)
        return self.stress_tester.run(prepared.params)

    async def analyze_monte_carlo(
        self, goal: Any, *, n_trials: Optional[int] = None, as_of: Optional[date] = None
    ) -> MonteCarloResult:
        prepared = await self.prepare(goal, as_of=as_of)
        target = prepared.goal.target_amount
        if target is None:
            target = self.config.defaults.target_amount
        return self.monte_carlo.analyze(
            prepared.params, target, goal_id=prepared.goal.goal_id, n_trials=n_trials
        )

    # ------------------------------------------------------------------
    # Persistence hand-off
    # ------------------------------------------------------------------

    def persist_summary(self, summary: GoalProjectionSummary, sink: ProjectionSink) -> None:
        for projection in summary.scenarios:
            key = ProjectionKey(projection.goal_id, projection.scenario_name, projection.projection_date)
            sink.save_projection(key, projection)

    def persist_sensitivity(self, analysis: SensitivityAnalysis, sink: ProjectionSink) -> None:
        sink.save_sensitivity(
            ProjectionKey(analysis.goal_id, SENSITIVITY_KEY, analysis.analysis_date), analysis
        )

    def persist_monte_carlo(
        self, result: MonteCarloResult, sink: ProjectionSink, *, analysis_date: Optional[date] = None
    ) -> None:
        sink.save_monte_carlo(
            ProjectionKey(result.goal_id, MONTE_CARLO_KEY, analysis_date or date.today()), result
        )

    async def recalculate_all(
        self, goals: Iterable[Any], sink: ProjectionSink, *, as_of: Optional[date] = None
    ) -> Tuple[int, int]:
        """
        Regenerate and persist projections for every goal. A goal that fails
        is logged and skipped. Returns (succeeded, failed).
        """
        succeeded = failed = 0
        for goal in goals:
            try:
                summary = await self.generate_goal_projections(goal, as_of=as_of)
            except ProjectionError:
                logger.exception("Failed to update projections for goal %r", goal)
                failed += 1
                continue
            self.persist_summary(summary, sink)
            succeeded += 1
        return succeeded, failed
