"""
Monte Carlo Sampler: generates N randomized parameter sets around a base case.

Input:  base ProjectionParameters + MonteCarloConfig (standard deviations)
Output: (N × 4) table of sampled parameters, one row per trial

Each row is one plausible future:
  Trial 1: return=14.1%, inflation=102%, contribution=1,040, growth=31%
  Trial 2: return=3.7%,  inflation=155%, contribution=  930, growth=18%

Method:
  1. Standard normal draws via Box-Muller from the injected RandomSource,
     one block of N per parameter (return, inflation, contribution, growth)
  2. Optionally couple the blocks through the Cholesky factor of the
     heuristic correlation table
  3. Scale to each marginal and floor inflation / contribution at 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from core.config import MonteCarloConfig
from core.schema import ProjectionParameters

from .correlation import SAMPLER_ORDER, _ensure_positive_definite, correlation_matrix
from .random_source import NumpyRandomSource, RandomSource, box_muller


@dataclass
class SampledParameters:
    """
    Output of Monte Carlo sampling: N trials of
    (annual_return_rate, inflation_rate, monthly_contribution, contribution_growth_rate).
    """
    base: ProjectionParameters
    annual_return_rate: np.ndarray        # shape (n_trials,)
    inflation_rate: np.ndarray            # shape (n_trials,)
    monthly_contribution: np.ndarray      # shape (n_trials,)
    contribution_growth_rate: np.ndarray  # shape (n_trials,)

    @property
    def n_trials(self) -> int:
        return len(self.annual_return_rate)

    def get_trial(self, idx: int) -> ProjectionParameters:
        """Base parameters with trial `idx`'s sampled values substituted."""
        return self.base.with_overrides(
            annual_return_rate=float(self.annual_return_rate[idx]),
            inflation_rate=float(self.inflation_rate[idx]),
            monthly_contribution=float(self.monthly_contribution[idx]),
            contribution_growth_rate=float(self.contribution_growth_rate[idx]),
        )

    def trials(self, start: int = 0, stop: Optional[int] = None) -> List[ProjectionParameters]:
        stop = self.n_trials if stop is None else min(stop, self.n_trials)
        return [self.get_trial(i) for i in range(start, stop)]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({
            "trial_id": np.arange(self.n_trials),
            "annual_return_rate": self.annual_return_rate,
            "inflation_rate": self.inflation_rate,
            "monthly_contribution": self.monthly_contribution,
            "contribution_growth_rate": self.contribution_growth_rate,
        })

    def summary(self) -> pd.DataFrame:
        """Percentile summary of sampled parameters."""
        pcts = [5, 25, 50, 75, 95]
        rows = []
        for name in SAMPLER_ORDER:
            arr = getattr(self, name)
            row = {"Variable": name, "Mean": np.mean(arr), "Std": np.std(arr)}
            for p in pcts:
                row[f"P{p:02d}"] = np.percentile(arr, p)
            rows.append(row)
        return pd.DataFrame(rows)


class ParameterSampler:
    """
    Draws randomized parameter sets around a base case.

    Usage:
        sampler = ParameterSampler(MonteCarloConfig(n_trials=1000, seed=7))
        sampled = sampler.sample(base_params)
        sampled.get_trial(0)  → ProjectionParameters for trial 0
    """

    def __init__(
        self,
        config: Optional[MonteCarloConfig] = None,
        random_source: Optional[RandomSource] = None,
    ):
        self.config = config or MonteCarloConfig()
        self.random_source = random_source or NumpyRandomSource(self.config.seed)

    def sample(self, base: ProjectionParameters, n_trials: Optional[int] = None) -> SampledParameters:
        cfg = self.config
        n = cfg.n_trials if n_trials is None else int(n_trials)

        # (n, 4) standard normals, columns in SAMPLER_ORDER
        z = np.column_stack([box_muller(self.random_source, n) for _ in SAMPLER_ORDER])
        if cfg.use_correlations:
            chol = np.linalg.cholesky(_ensure_positive_definite(correlation_matrix(SAMPLER_ORDER)))
            z = z @ chol.T

        base_inflation = base.inflation_rate or 0.0
        base_growth = base.contribution_growth_rate or 0.0
        contribution_std = abs(base.monthly_contribution) * cfg.contribution_std_fraction

        annual_return = base.annual_return_rate + cfg.return_std * z[:, 0]
        inflation = np.maximum(base_inflation + cfg.inflation_std * z[:, 1], 0.0)
        contribution = np.maximum(base.monthly_contribution + contribution_std * z[:, 2], 0.0)
        growth = base_growth + cfg.contribution_growth_std * z[:, 3]

        return SampledParameters(
            base=base,
            annual_return_rate=annual_return,
            inflation_rate=inflation,
            monthly_contribution=contribution,
            contribution_growth_rate=growth,
        )
