"""
Monte Carlo simulator: runs many calculator trials over sampled parameters
and aggregates them into percentile bands and tail-risk statistics.

Instead of: "real future value = 182,000" (one number, no context)
The caller gets: "median 176,000; 10th pctl 121,000; 64% chance of reaching
the target; if it is missed, the average gap is 23,000"

Sampling happens up front in the calling process, so the trial results are
identical whether trials are evaluated inline or in a process pool.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from core.config import MonteCarloConfig
from core.errors import InvalidParameter
from core.schema import (
    MonteCarloResult,
    ProjectionParameters,
    ProjectionResult,
    VolatilityMetrics,
)
from core.utils import nearest_rank_percentile, require_finite
from distributions.random_source import NumpyRandomSource, RandomSource
from distributions.sampler import ParameterSampler, SampledParameters
from engine.calculator import CompoundingCalculator

logger = logging.getLogger(__name__)


def _run_trials(
    calculator: CompoundingCalculator, trials: Sequence[ProjectionParameters]
) -> List[ProjectionResult]:
    """Worker entry point; module level so it pickles into a process pool."""
    return [calculator.calculate_future_value(p, include_ledger=False) for p in trials]


@dataclass(frozen=True)
class SimulationRun:
    sampled: SampledParameters
    results: Tuple[ProjectionResult, ...]  # one per trial, in sampling order

    @property
    def real_future_values(self) -> np.ndarray:
        return np.array([r.real_future_value for r in self.results], dtype=float)

    @property
    def future_values(self) -> np.ndarray:
        return np.array([r.future_value for r in self.results], dtype=float)


def summarize_outcomes(
    values: Sequence[float],
    target_amount: float,
    *,
    percentiles: Sequence[int] = (5, 10, 25, 50, 75, 90, 95),
    tail_fraction: float = 0.05,
) -> Dict:
    """
    Distribution statistics for a set of simulated outcomes.

    Returns
    -------
    Dict with:
      "confidence_intervals": {"p5": ..., "p95": ...} nearest-rank percentiles
      "success_probability":  % of outcomes >= target
      "expected_shortfall":   mean (target - outcome) over failing outcomes, 0 if none fail
      "volatility_metrics":   VolatilityMetrics (sample std, CV, VaR95, ES95)
      "mean":                 arithmetic mean
    """
    arr = np.sort(np.asarray(values, dtype=float))
    n = len(arr)
    if n == 0:
        raise InvalidParameter("No outcomes to summarize.")

    ladder = {f"p{p}": nearest_rank_percentile(arr, p) for p in sorted(percentiles)}

    success = arr >= target_amount
    shortfalls = target_amount - arr[~success]
    mean = float(np.mean(arr))
    std = float(np.std(arr, ddof=1)) if n > 1 else 0.0

    tail_n = max(1, int(math.floor(n * tail_fraction)))
    tail_pct = tail_fraction * 100.0

    return {
        "confidence_intervals": ladder,
        "success_probability": float(success.sum()) / n * 100.0,
        "expected_shortfall": float(np.mean(shortfalls)) if len(shortfalls) else 0.0,
        "volatility_metrics": VolatilityMetrics(
            standard_deviation=std,
            coefficient_of_variation=std / mean if mean != 0 else 0.0,
            value_at_risk_95=nearest_rank_percentile(arr, tail_pct),
            expected_shortfall_95=float(np.mean(arr[:tail_n])),
        ),
        "mean": mean,
    }


class MonteCarloSimulator:
    """
    Usage:
        sim = MonteCarloSimulator(config=MonteCarloConfig(n_trials=5000, seed=7))
        result = sim.analyze(base_params, target_amount=150_000, goal_id=3)
        result.success_probability → e.g. 63.2

    Without an injected random source each call reseeds from config.seed, so
    repeated calls with the same inputs return identical results. An injected
    source is used as-is and advances between calls.
    """

    def __init__(
        self,
        calculator: Optional[CompoundingCalculator] = None,
        config: Optional[MonteCarloConfig] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self.calculator = calculator or CompoundingCalculator()
        self.config = config or MonteCarloConfig()
        self.random_source = random_source

    def simulate(self, base: ProjectionParameters, n_trials: Optional[int] = None) -> SimulationRun:
        cfg = self.config
        n = cfg.n_trials if n_trials is None else int(n_trials)
        if not (cfg.min_trials <= n <= cfg.max_trials):
            raise InvalidParameter(
                f"n_trials must be within [{cfg.min_trials}, {cfg.max_trials}], got {n}"
            )

        source = self.random_source or NumpyRandomSource(cfg.seed)
        sampled = ParameterSampler(cfg, source).sample(base, n)

        if cfg.max_workers > 1 and n > cfg.chunk_size:
            chunks = [sampled.trials(i, i + cfg.chunk_size) for i in range(0, n, cfg.chunk_size)]
            with ProcessPoolExecutor(max_workers=cfg.max_workers) as executor:
                parts = list(executor.map(_run_trials, [self.calculator] * len(chunks), chunks))
            results = [r for part in parts for r in part]
        else:
            results = _run_trials(self.calculator, sampled.trials())

        logger.debug("Ran %d Monte Carlo trials (workers=%d)", n, cfg.max_workers)
        return SimulationRun(sampled=sampled, results=tuple(results))

    def analyze(
        self,
        base: ProjectionParameters,
        target_amount: float,
        *,
        goal_id: Optional[int] = None,
        n_trials: Optional[int] = None,
    ) -> MonteCarloResult:
        """Success probability and tail risk of the real future value against a target."""
        target_amount = require_finite("target_amount", target_amount)
        run = self.simulate(base, n_trials)
        stats = summarize_outcomes(
            run.real_future_values,
            target_amount,
            percentiles=self.config.percentiles,
            tail_fraction=self.config.tail_fraction,
        )
        logger.info(
            "Monte Carlo goal=%s trials=%d success=%.1f%%",
            goal_id, len(run.results), stats["success_probability"],
        )
        return MonteCarloResult(
            goal_id=goal_id,
            simulations=len(run.results),
            target_amount=target_amount,
            **stats,
        )

    def aggregate_median(self, base: ProjectionParameters, n_trials: Optional[int] = None) -> ProjectionResult:
        """
        Collapse a simulation into one ProjectionResult: median future values,
        mean of the remaining totals and returns, and the deterministic
        base-case ledger.
        """
        run = self.simulate(base, n_trials)
        base_result = self.calculator.calculate_future_value(base)

        def mean_of(attr: str) -> float:
            return float(np.mean([getattr(r, attr) for r in run.results]))

        return ProjectionResult(
            future_value=nearest_rank_percentile(np.sort(run.future_values), 50),
            real_future_value=nearest_rank_percentile(np.sort(run.real_future_values), 50),
            total_contributions=mean_of("total_contributions"),
            total_growth=mean_of("total_growth"),
            total_dividends=mean_of("total_dividends"),
            effective_annual_return=mean_of("effective_annual_return"),
            real_annual_return=mean_of("real_annual_return"),
            monthly_projections=base_result.monthly_projections,
        )
