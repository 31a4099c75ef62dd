"""
Heuristic correlation structure between projection parameters.

The table is a narrative aid ("returns tend to be lower when inflation is
high"). The Monte Carlo sampler draws parameters independently unless
MonteCarloConfig.use_correlations is switched on, in which case
ParameterSampler factors this table into correlated normal draws.

Rationale:
  return    ↔ inflation:     -0.30  (high inflation erodes real returns)
  return    ↔ contribution:  +0.10  (good years slightly encourage saving)
  inflation ↔ contribution:  +0.60  (contributions are indexed to prices)
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

PARAMETER_CORRELATIONS: Dict[frozenset, float] = {
    frozenset({"annual_return_rate", "inflation_rate"}): -0.3,
    frozenset({"annual_return_rate", "monthly_contribution"}): 0.1,
    frozenset({"inflation_rate", "monthly_contribution"}): 0.6,
}

DEFAULT_PARAMETERS = ["annual_return_rate", "inflation_rate", "monthly_contribution"]

# Order used by the sampler when coupling draws
SAMPLER_ORDER = [
    "annual_return_rate",
    "inflation_rate",
    "monthly_contribution",
    "contribution_growth_rate",
]

_LABELS = {
    "annual_return_rate": "Annual Return",
    "inflation_rate": "Inflation",
    "monthly_contribution": "Monthly Contribution",
    "contribution_growth_rate": "Contribution Growth",
}


def estimate_correlation(param1: str, param2: str) -> float:
    """Heuristic pairwise correlation; 1.0 on the diagonal, 0.0 for unknown pairs."""
    if param1 == param2:
        return 1.0
    return PARAMETER_CORRELATIONS.get(frozenset({param1, param2}), 0.0)


def analyze_parameter_correlations(
    parameters: Iterable[str] = DEFAULT_PARAMETERS,
) -> Dict[str, Dict[str, float]]:
    params = list(parameters)
    return {p1: {p2: estimate_correlation(p1, p2) for p2 in params} for p1 in params}


def correlation_matrix(parameters: Sequence[str] = SAMPLER_ORDER) -> np.ndarray:
    params = list(parameters)
    return np.array([[estimate_correlation(a, b) for b in params] for a in params], dtype=float)


def _ensure_positive_definite(matrix: np.ndarray) -> np.ndarray:
    """
    Force a correlation matrix to be positive definite by eigenvalue clipping,
    then renormalise so the diagonal is exactly 1.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(matrix)
    eigenvalues = np.maximum(eigenvalues, 1e-8)
    fixed = eigenvectors @ np.diag(eigenvalues) @ eigenvectors.T
    d = np.sqrt(np.diag(fixed))
    fixed = fixed / np.outer(d, d)
    np.fill_diagonal(fixed, 1.0)
    return fixed


def correlation_matrix_to_dataframe(
    matrix: np.ndarray, parameters: Sequence[str] = SAMPLER_ORDER
) -> pd.DataFrame:
    labels = [_LABELS.get(p, p) for p in parameters]
    return pd.DataFrame(matrix, index=labels, columns=labels)


def describe_correlations(parameters: Iterable[str] = DEFAULT_PARAMETERS) -> List[str]:
    """One sentence per non-trivial pair, strongest first."""
    params = list(parameters)
    pairs = []
    for i, a in enumerate(params):
        for b in params[i + 1:]:
            rho = estimate_correlation(a, b)
            if rho != 0.0:
                pairs.append((a, b, rho))
    pairs.sort(key=lambda x: abs(x[2]), reverse=True)

    sentences = []
    for a, b, rho in pairs:
        strength = "strong" if abs(rho) >= 0.5 else "moderate" if abs(rho) >= 0.25 else "weak"
        direction = "positive" if rho > 0 else "negative"
        sentences.append(
            f"{_LABELS.get(a, a)} and {_LABELS.get(b, b)} show a {strength} "
            f"{direction} correlation ({rho:+.2f})."
        )
    return sentences
