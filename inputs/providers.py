"""
Boundaries to external collaborators.

Providers are awaited sequentially before any math runs. Lookup failures
never fail the request: fetch_current_capital() and fetch_market_context()
log the problem and substitute the documented neutral fallback.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.errors import ProjectionError, UpstreamDataUnavailable
from core.schema import GoalProjection, MonteCarloResult, SensitivityAnalysis

from .models import MarketContext, parse_market_context

logger = logging.getLogger(__name__)


class CapitalProvider:
    """Supplies the investor's current capital."""

    async def get_current_capital(self) -> Optional[float]:
        raise NotImplementedError


class MarketContextProvider:
    """Supplies observed performance, volatility and market regime."""

    async def get_market_context(self) -> Optional[MarketContext]:
        raise NotImplementedError


@dataclass(frozen=True)
class StaticCapitalProvider(CapitalProvider):
    value: Optional[float]

    async def get_current_capital(self) -> Optional[float]:
        return self.value


@dataclass(frozen=True)
class StaticMarketContextProvider(MarketContextProvider):
    context: Optional[MarketContext]

    async def get_market_context(self) -> Optional[MarketContext]:
        return self.context


@dataclass(frozen=True)
class ProjectionKey:
    goal_id: Optional[int]
    scenario_name: str
    analysis_date: date


class ProjectionSink:
    """Consumer of engine outputs. Storage mechanics belong to the implementation."""

    def save_projection(self, key: ProjectionKey, projection: GoalProjection) -> None:
        raise NotImplementedError

    def save_sensitivity(self, key: ProjectionKey, analysis: SensitivityAnalysis) -> None:
        raise NotImplementedError

    def save_monte_carlo(self, key: ProjectionKey, result: MonteCarloResult) -> None:
        raise NotImplementedError


async def fetch_current_capital(provider: Optional[CapitalProvider], default: float) -> float:
    """Current capital, or `default` when the provider is absent, fails, or reports nothing usable."""
    if provider is None:
        logger.info("No capital provider configured, using default capital %.2f", default)
        return default
    try:
        value = await provider.get_current_capital()
        if value is None:
            raise UpstreamDataUnavailable("capital provider returned nothing")
        value = float(value)
        if not math.isfinite(value) or value <= 0:
            raise UpstreamDataUnavailable(f"capital provider returned unusable value {value}")
    except Exception as e:  # provider failures of any kind fall back
        logger.warning("Current capital unavailable (%s), using default %.2f", e, default)
        return default
    return value


async def fetch_market_context(provider: Optional[MarketContextProvider]) -> MarketContext:
    """Market context, or an empty (all-neutral) context when the lookup fails."""
    if provider is None:
        return MarketContext()
    try:
        raw = await provider.get_market_context()
        return parse_market_context(raw)
    except ProjectionError as e:
        logger.warning("Market context rejected (%s), using neutral defaults", e)
    except Exception as e:  # provider failures of any kind fall back
        logger.warning("Market context unavailable (%s), using neutral defaults", e)
    return MarketContext()
