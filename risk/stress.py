"""
Stress testing against a fixed library of adverse macro scenarios.

Each scenario overrides parameters on the base case outright (it does not
shift them). A scenario that fails is returned with its error attached and
the rest of the batch still runs.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from core.config import DEFAULT_STRESS_SCENARIOS
from core.errors import ProjectionError
from core.schema import ProjectionParameters, StressTestOutcome, StressTestScenario
from engine.calculator import CompoundingCalculator

logger = logging.getLogger(__name__)


class StressTester:
    def __init__(
        self,
        calculator: Optional[CompoundingCalculator] = None,
        scenarios: Sequence[StressTestScenario] = DEFAULT_STRESS_SCENARIOS,
    ):
        self.calculator = calculator or CompoundingCalculator()
        self.scenarios = tuple(scenarios)

    def run(self, base_params: ProjectionParameters) -> List[StressTestOutcome]:
        outcomes = []
        for scenario in self.scenarios:
            try:
                stressed = base_params.with_overrides(**dict(scenario.parameters))
                result = self.calculator.calculate_future_value(stressed)
            except ProjectionError as e:
                logger.warning("Stress scenario '%s' failed: %s", scenario.name, e)
                outcomes.append(StressTestOutcome(scenario=scenario, result=None, error=str(e)))
                continue
            outcomes.append(StressTestOutcome(scenario=scenario, result=result))
        return outcomes


def best_and_worst(
    outcomes: Sequence[StressTestOutcome],
) -> Tuple[Optional[StressTestOutcome], Optional[StressTestOutcome]]:
    """(best, worst) successful outcome by real future value; (None, None) if all failed."""
    ok = [o for o in outcomes if not o.failed]
    if not ok:
        return None, None
    best = max(ok, key=lambda o: o.result.real_future_value)
    worst = min(ok, key=lambda o: o.result.real_future_value)
    return best, worst
