"""
Dynamic rate adjuster: recalibrates a goal's expected return against
observed performance, volatility and market regime.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from core.config import AdjusterConfig
from core.errors import InvalidParameter
from core.schema import DynamicAdjustment, MarketCondition
from core.utils import require_finite

from .base import AdjustmentInputs, AdjustmentState
from .rules import RULES

logger = logging.getLogger(__name__)

NO_ADJUSTMENT = "No adjustment required"


def classify_market_condition(value: Union[str, MarketCondition, None]) -> MarketCondition:
    """Normalise a regime label; anything unrecognised is NEUTRAL."""
    if isinstance(value, MarketCondition):
        return value
    if value is None:
        return MarketCondition.NEUTRAL
    try:
        return MarketCondition(str(value).strip().upper())
    except ValueError:
        logger.warning("Unknown market condition %r, treating as NEUTRAL", value)
        return MarketCondition.NEUTRAL


class DynamicRateAdjuster:
    """
    Applies the configured rules in order, then clamps the rate.

    Usage:
        adjuster = DynamicRateAdjuster()
        adj = adjuster.adjust(10.0, historical_performance=15.0,
                              volatility_factor=18.5, market_condition="NEUTRAL")
        adj.adjusted_rate  → 13.0
    """

    def __init__(self, config: Optional[AdjusterConfig] = None):
        self.config = config or AdjusterConfig()
        try:
            self.rules = [RULES[name](self.config) for name in self.config.rule_order]
        except KeyError as e:
            raise InvalidParameter(f"Unknown adjustment rule {e}") from e

    def adjust(
        self,
        original_rate: float,
        historical_performance: float,
        volatility_factor: float,
        market_condition: Union[str, MarketCondition, None] = MarketCondition.NEUTRAL,
    ) -> DynamicAdjustment:
        cfg = self.config
        inputs = AdjustmentInputs(
            original_rate=require_finite("original_rate", original_rate),
            historical_performance=require_finite("historical_performance", historical_performance),
            volatility_factor=require_finite("volatility_factor", volatility_factor),
            market_condition=classify_market_condition(market_condition),
        )

        state = AdjustmentState(rate=inputs.original_rate, confidence=cfg.base_confidence)
        for rule in self.rules:
            state = rule.apply(state, inputs)

        adjusted = max(cfg.rate_floor, min(cfg.rate_cap, state.rate))
        confidence = int(round(max(0.0, min(100.0, state.confidence))))
        rationale = " | ".join(state.clauses) if state.clauses else NO_ADJUSTMENT

        logger.debug(
            "Rate %.2f -> %.2f (confidence %d, rules=%s)",
            inputs.original_rate, adjusted, confidence, state.applied_rules,
        )
        return DynamicAdjustment(
            original_rate=inputs.original_rate,
            adjusted_rate=adjusted,
            rationale=rationale,
            historical_performance=inputs.historical_performance,
            volatility_factor=inputs.volatility_factor,
            market_condition=inputs.market_condition,
            confidence_score=confidence,
            applied_rules=state.applied_rules,
        )
