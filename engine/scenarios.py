"""
Scenario generator: four named projections from one base parameter set.

  Optimistic   +3pp return, +2pp contribution growth   confidence 25
  Realistic    base case                                confidence 70
  Pessimistic  -4pp return, +20pp inflation             confidence 90
  Monte Carlo  median of N simulated trials             confidence 80

Deltas and confidence levels come from ScenarioConfig; each scenario runs
independently through the calculator and becomes its own GoalProjection row.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from core.config import ScenarioConfig, ScenarioDefinition
from core.schema import GoalProjection, ProjectionParameters, ProjectionType
from risk.monte_carlo import MonteCarloSimulator

from .calculator import CompoundingCalculator


def apply_scenario(base: ProjectionParameters, definition: ScenarioDefinition) -> ProjectionParameters:
    changes = {}
    if definition.return_delta:
        changes["annual_return_rate"] = base.annual_return_rate + definition.return_delta
    if definition.contribution_growth_delta:
        changes["contribution_growth_rate"] = (
            (base.contribution_growth_rate or 0.0) + definition.contribution_growth_delta
        )
    if definition.inflation_delta:
        changes["inflation_rate"] = (base.inflation_rate or 0.0) + definition.inflation_delta
    return base.with_overrides(**changes) if changes else base


class ScenarioGenerator:
    def __init__(
        self,
        calculator: Optional[CompoundingCalculator] = None,
        config: Optional[ScenarioConfig] = None,
        monte_carlo: Optional[MonteCarloSimulator] = None,
    ):
        self.calculator = calculator or CompoundingCalculator()
        self.config = config or ScenarioConfig()
        self.monte_carlo = monte_carlo or MonteCarloSimulator(self.calculator)

    def generate(
        self,
        base_params: ProjectionParameters,
        *,
        goal_id: Optional[int] = None,
        projection_date: Optional[date] = None,
    ) -> List[GoalProjection]:
        projection_date = projection_date or date.today()
        rows = []
        for definition in self.config.definitions:
            params = apply_scenario(base_params, definition)
            rows.append(GoalProjection(
                goal_id=goal_id,
                projection_date=projection_date,
                scenario_name=definition.name,
                projection_type=definition.projection_type,
                parameters=params,
                result=self.calculator.calculate_future_value(params),
                confidence_level=definition.confidence_level,
            ))

        if self.config.include_monte_carlo:
            rows.append(GoalProjection(
                goal_id=goal_id,
                projection_date=projection_date,
                scenario_name=self.config.monte_carlo_name,
                projection_type=ProjectionType.MONTE_CARLO,
                parameters=base_params,
                result=self.monte_carlo.aggregate_median(base_params),
                confidence_level=self.config.monte_carlo_confidence,
            ))
        return rows
