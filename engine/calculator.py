"""
Compounding calculator: month-by-month capital ledger plus closed-form and
iterative solvers.

Conventions:
  - Rates come in as annual percentages and are applied monthly as
    annual / 100 / 12 (nominal, not effective).
  - Contributions are made at month end: capital_t = capital_{t-1} * (1 + r) + pmt_t,
    matching the ordinary-annuity payment formula used by the solvers.
  - Zero monthly return is routed through explicit linear formulas.
  - Iterative solvers stop at SolverConfig caps and raise NonConvergence.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from core.config import SENSITIVITY_PARAMETERS, SolverConfig
from core.errors import InvalidParameter, NonConvergence
from core.schema import (
    BreakEvenResult,
    CompoundGrowthScenario,
    MonthlyProjectionRecord,
    ProjectionParameters,
    ProjectionResult,
)
from core.utils import (
    annual_to_monthly_rate,
    cagr_percent,
    monthly_rate,
    require_compoundable,
    require_finite,
)


def apply_parameter_variation(
    params: ProjectionParameters, parameter_name: str, variation: float
) -> ProjectionParameters:
    """
    Perturb one parameter.

    Rates (return, inflation, contribution growth) shift by `variation`
    percentage points; monthly_contribution scales by (1 + variation / 100).
    """
    if parameter_name == "annual_return_rate":
        return params.with_overrides(annual_return_rate=params.annual_return_rate + variation)
    if parameter_name == "inflation_rate":
        return params.with_overrides(inflation_rate=(params.inflation_rate or 0.0) + variation)
    if parameter_name == "monthly_contribution":
        return params.with_overrides(
            monthly_contribution=params.monthly_contribution * (1 + variation / 100.0)
        )
    if parameter_name == "contribution_growth_rate":
        return params.with_overrides(
            contribution_growth_rate=(params.contribution_growth_rate or 0.0) + variation
        )
    raise InvalidParameter(f"Cannot vary parameter '{parameter_name}'")


def parameter_value(params: ProjectionParameters, parameter_name: str) -> float:
    if parameter_name not in SENSITIVITY_PARAMETERS:
        raise InvalidParameter(f"Cannot vary parameter '{parameter_name}'")
    return float(getattr(params, parameter_name) or 0.0)


def scenario_probability_weight(variation: float, std: float = 2.0) -> float:
    """Bell-curve weight for a return shift; the unshifted case weighs 1.0."""
    return round(math.exp(-0.5 * (variation / std) ** 2), 2)


@dataclass(frozen=True)
class CompoundingCalculator:
    """Stateless arithmetic over ProjectionParameters. Safe to pickle into worker processes."""

    config: SolverConfig = field(default_factory=SolverConfig)

    def calculate_future_value(
        self, params: ProjectionParameters, *, include_ledger: bool = True
    ) -> ProjectionResult:
        """
        Run the monthly ledger.

        Each month: grow the contribution (from month 2), compute dividends and
        growth on the opening capital, add contribution + growth (+ dividends
        when reinvested), and deflate by cumulative inflation.

        Parameters
        ----------
        params : ProjectionParameters
        include_ledger : bool
            Record one MonthlyProjectionRecord per month. Monte Carlo trials
            turn this off.
        """
        monthly_return = annual_to_monthly_rate(params.annual_return_rate)
        monthly_inflation = annual_to_monthly_rate(params.inflation_rate)
        monthly_contribution_growth = annual_to_monthly_rate(params.contribution_growth_rate)
        monthly_dividend_yield = annual_to_monthly_rate(params.dividend_yield)

        reinvested = monthly_dividend_yield if params.reinvest_dividends else 0.0
        require_compoundable("annual_return_rate", monthly_return + reinvested, params.periods)
        require_compoundable("inflation_rate", monthly_inflation, params.periods)
        require_compoundable("contribution_growth_rate", monthly_contribution_growth, params.periods)

        capital = params.present_value
        total_contributions = params.present_value
        total_dividends = 0.0
        contribution = params.monthly_contribution
        ledger: List[MonthlyProjectionRecord] = []

        for month in range(1, params.periods + 1):
            capital_beginning = capital

            if month > 1 and monthly_contribution_growth:
                contribution *= 1 + monthly_contribution_growth

            dividends = capital * monthly_dividend_yield
            growth = capital * monthly_return

            capital += contribution + growth
            total_contributions += contribution
            total_dividends += dividends
            if params.reinvest_dividends:
                capital += dividends

            if include_ledger:
                ledger.append(MonthlyProjectionRecord(
                    month=month,
                    capital_beginning=capital_beginning,
                    contribution=contribution,
                    growth=growth,
                    dividends=dividends,
                    capital_ending=capital,
                    real_value=capital / (1 + monthly_inflation) ** month,
                    cumulative_contributions=total_contributions,
                ))

        future_value = capital
        if not math.isfinite(future_value):
            raise InvalidParameter("Projected capital exceeds the floating-point range")
        real_future_value = future_value / (1 + monthly_inflation) ** params.periods
        total_growth = future_value - total_contributions - (
            0.0 if params.reinvest_dividends else total_dividends
        )
        years = params.periods / 12.0

        return ProjectionResult(
            future_value=future_value,
            real_future_value=real_future_value,
            total_contributions=total_contributions,
            total_growth=total_growth,
            total_dividends=total_dividends,
            effective_annual_return=cagr_percent(params.present_value, future_value, years),
            real_annual_return=cagr_percent(params.present_value, real_future_value, years),
            monthly_projections=tuple(ledger),
        )

    def calculate_required_contribution(
        self,
        present_value: float,
        future_value: float,
        annual_return_rate: float,
        periods: int,
        inflation_adjusted: bool = True,
        *,
        inflation_rate: Optional[float] = None,
    ) -> float:
        """
        Monthly payment reaching `future_value` after `periods` months.

        PMT = (FV - PV * (1 + r)^n) / [((1 + r)^n - 1) / r], or (FV - PV) / n
        when r == 0. When inflation-adjusted, the target is first inflated by
        cumulative inflation over the horizon. A negative result means the
        present value alone overshoots the target.
        """
        present_value = require_finite("present_value", present_value)
        target = require_finite("future_value", future_value)
        annual_return_rate = require_finite("annual_return_rate", annual_return_rate)
        periods = _require_periods(periods)
        monthly_return = monthly_rate("annual_return_rate", annual_return_rate)
        require_compoundable("annual_return_rate", monthly_return, periods)

        if inflation_adjusted:
            monthly_inflation = monthly_rate("inflation_rate", self._inflation(inflation_rate))
            require_compoundable("inflation_rate", monthly_inflation, periods)
            target = target * (1 + monthly_inflation) ** periods

        if monthly_return == 0:
            return (target - present_value) / periods

        growth_factor = (1 + monthly_return) ** periods
        annuity_factor = (growth_factor - 1) / monthly_return
        return (target - present_value * growth_factor) / annuity_factor

    def calculate_time_to_goal(
        self,
        present_value: float,
        future_value: float,
        monthly_contribution: float,
        annual_return_rate: float,
        inflation_adjusted: bool = True,
        *,
        inflation_rate: Optional[float] = None,
    ) -> float:
        """
        Months until `future_value` is reached.

        Without inflation: closed form ln(ratio) / ln(1 + r) with
        ratio = (FV*r + PMT) / (PV*r + PMT); fractional months are returned.
        With inflation: simulate month by month (capped at max_months) until
        the deflated capital reaches the nominal target; whole months.
        """
        present_value = require_finite("present_value", present_value)
        target = require_finite("future_value", future_value)
        contribution = require_finite("monthly_contribution", monthly_contribution)
        annual_return_rate = require_finite("annual_return_rate", annual_return_rate)
        monthly_return = monthly_rate("annual_return_rate", annual_return_rate)
        monthly_inflation = (
            monthly_rate("inflation_rate", self._inflation(inflation_rate))
            if inflation_adjusted else 0.0
        )

        if present_value >= target:
            return 0

        if inflation_adjusted:
            capital = present_value
            deflator = 1.0
            for month in range(1, self.config.max_months + 1):
                capital = capital * (1 + monthly_return) + contribution
                deflator *= 1 + monthly_inflation
                if not (math.isfinite(capital) and math.isfinite(deflator)):
                    raise InvalidParameter(
                        f"Projection exceeds the floating-point range after {month} months"
                    )
                if capital / deflator >= target:
                    return month
            if self.config.time_to_goal_cap_raises:
                raise NonConvergence(
                    f"Inflation-adjusted goal not reached within {self.config.max_months} months",
                    iterations=self.config.max_months,
                )
            return self.config.max_months

        if monthly_return == 0:
            if contribution <= 0:
                raise NonConvergence("Goal unreachable: no growth and no contributions")
            return (target - present_value) / contribution

        numerator = target * monthly_return + contribution
        denominator = present_value * monthly_return + contribution
        if denominator == 0 or numerator / denominator <= 0:
            raise NonConvergence("Goal unreachable with the given contribution and return")
        months = math.log(numerator / denominator) / math.log(1 + monthly_return)
        if months < 0:
            raise NonConvergence("Goal unreachable with the given contribution and return")
        return months

    def calculate_break_even(
        self, present_value: float, monthly_contribution: float, annual_return_rate: float
    ) -> BreakEvenResult:
        """First month in which cumulative growth covers cumulative net contributions."""
        present_value = require_finite("present_value", present_value)
        contribution = require_finite("monthly_contribution", monthly_contribution)
        monthly_return = monthly_rate(
            "annual_return_rate", require_finite("annual_return_rate", annual_return_rate)
        )

        capital = present_value
        total_contributions = present_value
        for month in range(1, self.config.max_months + 1):
            capital = capital * (1 + monthly_return) + contribution
            total_contributions += contribution
            total_growth = capital - total_contributions
            if total_growth >= total_contributions - present_value:
                return BreakEvenResult(
                    months=month,
                    total_contributions=total_contributions,
                    total_growth=total_growth,
                )

        raise NonConvergence(
            f"Break-even not reached within {self.config.max_months} months",
            iterations=self.config.max_months,
        )

    def calculate_irr(self, initial_investment: float, cash_flows: Sequence[float]) -> float:
        """
        Internal rate of return (% per period) by Newton-Raphson on NPV.

        Cash flow t (0-based) is discounted over t + 1 periods. The iterate is
        floored at irr_rate_floor.
        """
        initial_investment = require_finite("initial_investment", initial_investment)
        flows = [require_finite(f"cash_flows[{i}]", cf) for i, cf in enumerate(cash_flows)]
        if not flows:
            raise InvalidParameter("cash_flows must not be empty")

        cfg = self.config
        rate = cfg.irr_initial_rate
        for iteration in range(cfg.irr_max_iterations):
            npv = -initial_investment
            derivative = 0.0
            for t, cf in enumerate(flows):
                period = t + 1
                npv += cf / (1 + rate) ** period
                derivative -= period * cf / (1 + rate) ** (period + 1)

            if abs(npv) < cfg.irr_tolerance:
                return rate * 100.0
            if derivative == 0:
                raise NonConvergence("IRR derivative vanished", iterations=iteration)

            rate = max(rate - npv / derivative, cfg.irr_rate_floor)

        raise NonConvergence(
            f"IRR did not converge within {cfg.irr_max_iterations} iterations",
            iterations=cfg.irr_max_iterations,
        )

    def calculate_present_value(
        self, future_value: float, annual_discount_rate: float, periods: int
    ) -> float:
        discount = monthly_rate(
            "annual_discount_rate", require_finite("annual_discount_rate", annual_discount_rate)
        )
        periods = _require_periods(periods)
        require_compoundable("annual_discount_rate", discount, periods)
        return require_finite("future_value", future_value) / (1 + discount) ** periods

    def perform_sensitivity_analysis(
        self,
        base_params: ProjectionParameters,
        parameter_name: str,
        variations: Iterable[float],
    ) -> List[Tuple[float, ProjectionResult]]:
        """Recompute the projection once per variation of a single parameter."""
        out = []
        for variation in variations:
            modified = apply_parameter_variation(base_params, parameter_name, variation)
            out.append((variation, self.calculate_future_value(modified)))
        return out

    def generate_multiple_scenarios(
        self,
        base_params: ProjectionParameters,
        return_variations: Sequence[float] = (-2.0, -1.0, 0.0, 1.0, 2.0, 3.0),
        *,
        weight_std: float = 2.0,
    ) -> List[CompoundGrowthScenario]:
        """One projection per shift of the annual return, weighted by plausibility."""
        scenarios = []
        for variation in return_variations:
            modified = apply_parameter_variation(base_params, "annual_return_rate", variation)
            scenarios.append(CompoundGrowthScenario(
                scenario_name=(
                    f"Return {variation:+g}pp ({modified.annual_return_rate:.1f}% annual)"
                ),
                parameters=modified,
                result=self.calculate_future_value(modified),
                probability_weight=scenario_probability_weight(variation, weight_std),
            ))
        return scenarios

    def _inflation(self, inflation_rate: Optional[float]) -> float:
        if inflation_rate is None:
            return self.config.default_inflation_rate
        return require_finite("inflation_rate", inflation_rate)


def _require_periods(periods) -> int:
    if isinstance(periods, bool) or not isinstance(periods, int) or periods < 1:
        raise InvalidParameter(f"periods must be a positive integer, got {periods!r}")
    return periods
