"""
Risk outputs: sensitivity, stress testing, and Monte Carlo aggregation.
"""

from .monte_carlo import MonteCarloSimulator, SimulationRun, summarize_outcomes
from .sensitivity import SensitivityAnalyzer, impact_percentage
from .stress import StressTester, best_and_worst

__all__ = [
    "MonteCarloSimulator",
    "SimulationRun",
    "summarize_outcomes",
    "SensitivityAnalyzer",
    "impact_percentage",
    "StressTester",
    "best_and_worst",
]
