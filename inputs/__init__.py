"""
Inputs: validated goal / market-context models and provider boundaries.
"""

from .models import GoalInput, MarketContext, parse_goal, parse_market_context
from .providers import (
    CapitalProvider,
    MarketContextProvider,
    ProjectionKey,
    ProjectionSink,
    StaticCapitalProvider,
    StaticMarketContextProvider,
    fetch_current_capital,
    fetch_market_context,
)

__all__ = [
    "GoalInput",
    "MarketContext",
    "parse_goal",
    "parse_market_context",
    "CapitalProvider",
    "MarketContextProvider",
    "ProjectionKey",
    "ProjectionSink",
    "StaticCapitalProvider",
    "StaticMarketContextProvider",
    "fetch_current_capital",
    "fetch_market_context",
]
