"""
Rate adjustment: turn observed performance, volatility and regime into an
adjusted return assumption with a confidence score.
"""

from .adjuster import DynamicRateAdjuster, classify_market_condition
from .base import AdjustmentInputs, AdjustmentRule, AdjustmentState
from .rules import MarketRegimeRule, PerformanceGapRule, VolatilityRule

__all__ = [
    "DynamicRateAdjuster",
    "classify_market_condition",
    "AdjustmentInputs",
    "AdjustmentRule",
    "AdjustmentState",
    "MarketRegimeRule",
    "PerformanceGapRule",
    "VolatilityRule",
]
