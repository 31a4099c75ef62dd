from __future__ import annotations

import math
import sys
from datetime import date, datetime
from typing import Sequence, Union

import numpy as np
from dateutil.relativedelta import relativedelta

from .errors import InvalidParameter

DateLike = Union[date, datetime]

_MAX_LOG_FLOAT = math.log(sys.float_info.max)


def annual_to_monthly_rate(annual_pct: float | None) -> float:
    """Convert an annual percentage (e.g. 12.0) to a simple monthly decimal rate (0.01)."""
    if annual_pct is None:
        return 0.0
    return float(annual_pct) / 100.0 / 12.0


def monthly_rate(name: str, annual_pct: float | None) -> float:
    """annual_to_monthly_rate(), rejecting a monthly rate of -100% or less."""
    rate = annual_to_monthly_rate(annual_pct)
    if rate <= -1.0:
        raise InvalidParameter(f"{name} implies a monthly rate of -100% or less, got {annual_pct}")
    return rate


def require_compoundable(name: str, rate: float, periods: int) -> None:
    """Reject a monthly rate whose growth factor (1 + rate)^periods is not a finite float."""
    if rate > 0 and periods * math.log1p(rate) >= _MAX_LOG_FLOAT:
        raise InvalidParameter(
            f"{name} compounded over {periods} months exceeds the floating-point range"
        )


def require_finite(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidParameter(f"{name} must be numeric, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite, got {value}")
    return value


def nearest_rank_percentile(sorted_values: Sequence[float], percentile: float) -> float:
    """
    Nearest-rank percentile of an already sorted sequence.

    Index is ceil(p/100 * n) - 1, clamped into [0, n-1]. Returns 0.0 for an
    empty input.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    idx = math.ceil(percentile / 100.0 * n) - 1
    idx = max(0, min(n - 1, idx))
    return float(sorted_values[idx])


def months_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar months from start to end (negative if end precedes start)."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def cagr_percent(present_value: float, future_value: float, years: float) -> float:
    """
    Annualized growth rate (%) solving FV = PV * (1 + r)^years.

    Undefined when PV <= 0 or the value ratio is not positive; reported as 0.0.
    """
    if years <= 0 or present_value <= 0:
        return 0.0
    ratio = future_value / present_value
    if ratio <= 0:
        return 0.0
    return (ratio ** (1.0 / years) - 1.0) * 100.0
