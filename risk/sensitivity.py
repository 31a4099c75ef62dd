"""
One-at-a-time sensitivity analysis.

Each parameter in the configured grid is perturbed on its own, the
projection is recomputed, and the change in nominal future value is
classified:

  |impact| <  10%  → LOW
  |impact| <  25%  → MEDIUM
  |impact| >= 25%  → HIGH

The summary names the parameters with the highest and lowest mean |impact|
and rates the goal's overall exposure (Low / Moderate / High). With no successful
point to average, the rating is Unavailable rather than Low.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np

from core.config import SensitivityConfig
from core.errors import ProjectionError
from core.schema import (
    ProjectionParameters,
    ProjectionResult,
    RiskLevel,
    SensitivityAnalysis,
    SensitivityResult,
    SensitivitySummary,
)
from engine.calculator import CompoundingCalculator, apply_parameter_variation, parameter_value

logger = logging.getLogger(__name__)

UNAVAILABLE_RATING = "Unavailable"


def impact_percentage(future_value: float, base_future_value: float) -> float:
    if base_future_value == 0:
        return 0.0
    return (future_value - base_future_value) / base_future_value * 100.0


class SensitivityAnalyzer:
    def __init__(
        self,
        calculator: Optional[CompoundingCalculator] = None,
        config: Optional[SensitivityConfig] = None,
    ):
        self.calculator = calculator or CompoundingCalculator()
        self.config = config or SensitivityConfig()

    def assess_risk_level(self, impact: float) -> RiskLevel:
        impact = abs(impact)
        if impact < self.config.medium_risk_threshold:
            return RiskLevel.LOW
        if impact < self.config.high_risk_threshold:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    def analyze(
        self,
        base_params: ProjectionParameters,
        *,
        goal_id: Optional[int] = None,
        analysis_date: Optional[date] = None,
    ) -> SensitivityAnalysis:
        base_result = self.calculator.calculate_future_value(base_params)

        results: List[SensitivityResult] = []
        for parameter, variations in self.config.grid.items():
            results.extend(self.analyze_parameter(base_params, base_result, parameter, variations))

        return SensitivityAnalysis(
            goal_id=goal_id,
            analysis_date=analysis_date or date.today(),
            base_scenario=base_result,
            parameters_analyzed=tuple(self.config.grid),
            results=tuple(results),
            summary=self.summarize(results),
        )

    def analyze_parameter(
        self,
        base_params: ProjectionParameters,
        base_result: ProjectionResult,
        parameter: str,
        variations: Sequence[float],
    ) -> List[SensitivityResult]:
        """
        Perturb one parameter across its variations. A point whose projection
        fails is recorded with its error and the remaining points still run.
        """
        original_value = parameter_value(base_params, parameter)
        out = []
        for variation in variations:
            try:
                modified = apply_parameter_variation(base_params, parameter, variation)
                result = self.calculator.calculate_future_value(modified, include_ledger=False)
            except ProjectionError as e:
                logger.warning("Sensitivity point %s%+g failed: %s", parameter, variation, e)
                out.append(SensitivityResult(
                    parameter=parameter,
                    variation=variation,
                    original_value=original_value,
                    new_value=float("nan"),
                    future_value=float("nan"),
                    real_future_value=float("nan"),
                    impact_percentage=float("nan"),
                    risk_level=None,
                    error=str(e),
                ))
                continue

            impact = impact_percentage(result.future_value, base_result.future_value)
            out.append(SensitivityResult(
                parameter=parameter,
                variation=variation,
                original_value=original_value,
                new_value=parameter_value(modified, parameter),
                future_value=result.future_value,
                real_future_value=result.real_future_value,
                impact_percentage=impact,
                risk_level=self.assess_risk_level(impact),
            ))
        return out

    def summarize(self, results: Sequence[SensitivityResult]) -> SensitivitySummary:
        impacts: Dict[str, List[float]] = {}
        for r in results:
            if r.failed:
                continue
            impacts.setdefault(r.parameter, []).append(abs(r.impact_percentage))

        if not impacts:
            return SensitivitySummary("", "", 0.0, UNAVAILABLE_RATING)

        means = {p: float(np.mean(v)) for p, v in impacts.items()}
        # first parameter wins ties, in grid order
        most = max(means, key=means.get)
        least = min(means, key=means.get)
        average = round(float(np.mean(list(means.values()))), 2)

        cfg = self.config
        if average > cfg.high_rating_threshold:
            rating = "High"
        elif average >= cfg.moderate_rating_threshold:
            rating = "Moderate"
        else:
            rating = "Low"

        return SensitivitySummary(
            most_sensitive_parameter=most,
            least_sensitive_parameter=least,
            average_impact=average,
            risk_assessment=rating,
        )
