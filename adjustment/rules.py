"""
The three production adjustment rules.

PerformanceGapRule  partial mean reversion toward observed performance
VolatilityRule      haircut under high volatility
MarketRegimeRule    scale up in bull markets, down in bear markets
"""

from __future__ import annotations

from core.schema import MarketCondition

from .base import AdjustmentInputs, AdjustmentRule, AdjustmentState


class PerformanceGapRule(AdjustmentRule):
    """
    If observed performance differs from the expected rate by more than the
    threshold, move the rate by a fraction of the gap. Confidence drops in
    proportion to the gap, with a floor.
    """

    name = "performance"

    def apply(self, state: AdjustmentState, inputs: AdjustmentInputs) -> AdjustmentState:
        cfg = self.config
        gap = inputs.historical_performance - inputs.original_rate
        if abs(gap) <= cfg.performance_gap_threshold:
            return state
        return state.triggered(
            self.name,
            f"Adjusted for observed performance gap of {gap:+.1f}pp",
            rate=state.rate + gap * cfg.mean_reversion_weight,
            confidence=max(cfg.min_gap_confidence, cfg.base_confidence - abs(gap) * cfg.gap_confidence_penalty),
        )


class VolatilityRule(AdjustmentRule):
    name = "volatility"

    def apply(self, state: AdjustmentState, inputs: AdjustmentInputs) -> AdjustmentState:
        cfg = self.config
        if inputs.volatility_factor <= cfg.volatility_threshold:
            return state
        return state.triggered(
            self.name,
            f"Reduced for high market volatility ({inputs.volatility_factor:.1f})",
            rate=state.rate * cfg.volatility_rate_multiplier,
            confidence=state.confidence * cfg.volatility_confidence_multiplier,
        )


class MarketRegimeRule(AdjustmentRule):
    name = "regime"

    def apply(self, state: AdjustmentState, inputs: AdjustmentInputs) -> AdjustmentState:
        cfg = self.config
        if inputs.market_condition == MarketCondition.BULLISH:
            return state.triggered(
                self.name,
                "Raised for bullish market conditions",
                rate=state.rate * cfg.bullish_rate_multiplier,
                confidence=min(cfg.max_confidence, state.confidence * cfg.bullish_confidence_multiplier),
            )
        if inputs.market_condition == MarketCondition.BEARISH:
            return state.triggered(
                self.name,
                "Reduced for bearish market conditions",
                rate=state.rate * cfg.bearish_rate_multiplier,
                confidence=state.confidence * cfg.bearish_confidence_multiplier,
            )
        return state


RULES = {
    PerformanceGapRule.name: PerformanceGapRule,
    VolatilityRule.name: VolatilityRule,
    MarketRegimeRule.name: MarketRegimeRule,
}
