"""
Base classes for rate-adjustment rules.

A rule reads the observed market inputs and returns an updated
AdjustmentState; the adjuster threads one state through every rule in
configured order, so rule order changes the compounded outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from core.config import AdjusterConfig
from core.schema import MarketCondition


@dataclass(frozen=True)
class AdjustmentInputs:
    original_rate: float
    historical_performance: float
    volatility_factor: float
    market_condition: MarketCondition


@dataclass(frozen=True)
class AdjustmentState:
    """Running rate/confidence plus the rationale clauses collected so far."""

    rate: float
    confidence: float
    clauses: Tuple[str, ...] = ()
    applied_rules: Tuple[str, ...] = ()

    def triggered(self, rule: str, clause: str, *, rate: float, confidence: float) -> "AdjustmentState":
        return replace(
            self,
            rate=rate,
            confidence=confidence,
            clauses=self.clauses + (clause,),
            applied_rules=self.applied_rules + (rule,),
        )


class AdjustmentRule:
    """Interface for one adjustment step."""

    name: str = ""

    def __init__(self, config: Optional[AdjusterConfig] = None):
        self.config = config or AdjusterConfig()

    def apply(self, state: AdjustmentState, inputs: AdjustmentInputs) -> AdjustmentState:
        raise NotImplementedError
