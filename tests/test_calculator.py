import math

import pytest

from core.config import SolverConfig
from core.errors import InvalidParameter, NonConvergence
from core.schema import ProjectionParameters
from engine.calculator import (
    CompoundingCalculator,
    apply_parameter_variation,
    scenario_probability_weight,
)


# ---------------------------------------------------------------------------
# Future value
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("low,high", [(0.0, 1.0), (5.0, 10.0), (-3.0, 3.0), (10.0, 40.0)])
def test_future_value_increases_with_return(calculator, base_params, low, high):
    fv_low = calculator.calculate_future_value(base_params.with_overrides(annual_return_rate=low))
    fv_high = calculator.calculate_future_value(base_params.with_overrides(annual_return_rate=high))
    assert fv_high.future_value > fv_low.future_value


def test_zero_rate_is_linear(calculator):
    params = ProjectionParameters(
        present_value=5_000.0, monthly_contribution=250.0, annual_return_rate=0.0, periods=36
    )
    result = calculator.calculate_future_value(params)
    assert result.future_value == pytest.approx(5_000 + 250 * 36)
    assert result.real_future_value == pytest.approx(result.future_value)
    assert result.total_growth == pytest.approx(0.0)


def test_first_months_of_ledger(calculator, base_params):
    result = calculator.calculate_future_value(base_params)
    first, second = result.monthly_projections[:2]

    assert first.capital_beginning == 25_000.0
    assert first.contribution == pytest.approx(1_000.0)
    assert first.dividends == pytest.approx(62.5)
    assert first.growth == pytest.approx(25_000 * 10 / 1200)
    # dividends reinvested on top of contribution + growth
    assert first.capital_ending == pytest.approx(25_000 + 1_000 + 62.5 + 25_000 * 10 / 1200)
    assert first.real_value == pytest.approx(first.capital_ending / 1.1)

    # contribution growth starts in month 2
    assert second.contribution == pytest.approx(1_000 * (1 + 25 / 1200))


def test_concrete_case_is_reproducible(calculator, base_params):
    a = calculator.calculate_future_value(base_params)
    b = calculator.calculate_future_value(base_params)

    assert a == b
    assert len(a.monthly_projections) == 60
    assert a.monthly_projections[-1].capital_ending == pytest.approx(a.future_value)
    assert a.real_future_value == pytest.approx(a.future_value / 1.1 ** 60)
    # 120%/yr inflation swamps a 10%/yr return
    assert a.real_future_value < a.total_contributions
    assert a.total_growth == pytest.approx(a.future_value - a.total_contributions)
    assert a.effective_annual_return > 0


def test_ledger_can_be_skipped(calculator, base_params):
    full = calculator.calculate_future_value(base_params)
    bare = calculator.calculate_future_value(base_params, include_ledger=False)
    assert bare.monthly_projections == ()
    assert bare.future_value == full.future_value
    assert len(full.to_dataframe()) == 60
    assert bare.to_dataframe().empty


def test_dividends_not_reinvested_are_excluded_from_growth(calculator, base_params):
    params = base_params.with_overrides(reinvest_dividends=False)
    result = calculator.calculate_future_value(params)
    reinvested = calculator.calculate_future_value(base_params)
    assert result.future_value < reinvested.future_value
    assert result.total_growth == pytest.approx(
        result.future_value - result.total_contributions - result.total_dividends
    )


def test_cagr_is_zero_without_present_value(calculator):
    params = ProjectionParameters(
        present_value=0.0, monthly_contribution=100.0, annual_return_rate=8.0, periods=24
    )
    result = calculator.calculate_future_value(params)
    assert result.effective_annual_return == 0.0
    assert result.real_annual_return == 0.0


@pytest.mark.parametrize("periods", [0, -3, 1.5, True, "12"])
def test_invalid_periods_rejected(periods):
    with pytest.raises(InvalidParameter):
        ProjectionParameters(
            present_value=1_000.0, monthly_contribution=0.0, annual_return_rate=5.0, periods=periods
        )


@pytest.mark.parametrize("short,long", [(1, 2), (12, 24), (60, 120), (119, 360)])
def test_future_value_grows_with_periods(calculator, base_params, short, long):
    fv_short = calculator.calculate_future_value(base_params.with_overrides(periods=short))
    fv_long = calculator.calculate_future_value(base_params.with_overrides(periods=long))
    assert fv_long.future_value >= fv_short.future_value


@pytest.mark.parametrize("low,high", [(0.0, 100.0), (1_000.0, 1_000.01), (500.0, 5_000.0)])
def test_future_value_grows_with_contribution(calculator, base_params, low, high):
    fv_low = calculator.calculate_future_value(base_params.with_overrides(monthly_contribution=low))
    fv_high = calculator.calculate_future_value(base_params.with_overrides(monthly_contribution=high))
    assert fv_high.future_value >= fv_low.future_value


@pytest.mark.parametrize("inflation,periods", [(12.0, 12), (120.0, 60), (6.0, 360), (24.0, 240)])
def test_real_value_is_pure_deflation_without_growth(calculator, inflation, periods):
    params = ProjectionParameters(
        present_value=10_000.0,
        monthly_contribution=0.0,
        annual_return_rate=0.0,
        periods=periods,
        inflation_rate=inflation,
    )
    result = calculator.calculate_future_value(params)
    assert result.future_value == pytest.approx(10_000.0)
    assert result.real_future_value == pytest.approx(10_000.0 / (1 + inflation / 1200) ** periods)


@pytest.mark.parametrize("changes", [
    {"periods": 4_000, "inflation_rate": 250.0},
    {"periods": 1_200, "annual_return_rate": 10_000.0},
    {"periods": 2_000, "contribution_growth_rate": 5_000.0},
])
def test_growth_beyond_float_range_rejected(calculator, base_params, changes):
    with pytest.raises(InvalidParameter):
        calculator.calculate_future_value(base_params.with_overrides(**changes))


# ---------------------------------------------------------------------------
# Solvers
# ---------------------------------------------------------------------------

def test_required_contribution_round_trip(calculator, plain_params):
    target = 150_000.0
    pmt = calculator.calculate_required_contribution(
        plain_params.present_value, target, plain_params.annual_return_rate,
        plain_params.periods, inflation_adjusted=False,
    )
    result = calculator.calculate_future_value(plain_params.with_overrides(monthly_contribution=pmt))
    assert result.future_value == pytest.approx(target, rel=1e-9)


def test_required_contribution_zero_rate(calculator):
    pmt = calculator.calculate_required_contribution(1_000, 13_000, 0.0, 24, inflation_adjusted=False)
    assert pmt == pytest.approx(500.0)


def test_required_contribution_inflation_raises_payment(calculator):
    nominal = calculator.calculate_required_contribution(1_000, 50_000, 8.0, 36, inflation_adjusted=False)
    adjusted = calculator.calculate_required_contribution(1_000, 50_000, 8.0, 36, inflation_rate=24.0)
    defaulted = calculator.calculate_required_contribution(1_000, 50_000, 8.0, 36)
    assert nominal < adjusted < defaulted


def test_time_to_goal_inverts_future_value(calculator, plain_params):
    fv = calculator.calculate_future_value(plain_params).future_value
    months = calculator.calculate_time_to_goal(
        plain_params.present_value, fv, plain_params.monthly_contribution,
        plain_params.annual_return_rate, inflation_adjusted=False,
    )
    assert months == pytest.approx(120, rel=1e-9)


@pytest.mark.parametrize("low,high", [(100.0, 200.0), (500.0, 501.0), (1_000.0, 5_000.0)])
def test_time_to_goal_shrinks_with_contribution(calculator, low, high):
    slow = calculator.calculate_time_to_goal(1_000, 100_000, low, 7.0, inflation_adjusted=False)
    fast = calculator.calculate_time_to_goal(1_000, 100_000, high, 7.0, inflation_adjusted=False)
    assert fast < slow


def test_time_to_goal_already_met(calculator):
    assert calculator.calculate_time_to_goal(10_000, 5_000, 0, 5.0) == 0


def test_time_to_goal_zero_rate(calculator):
    assert calculator.calculate_time_to_goal(0, 1_200, 100, 0.0, inflation_adjusted=False) == 12
    with pytest.raises(NonConvergence):
        calculator.calculate_time_to_goal(0, 1_200, 0, 0.0, inflation_adjusted=False)


def test_time_to_goal_unreachable_closed_form(calculator):
    # withdrawals outpace growth
    with pytest.raises(NonConvergence):
        calculator.calculate_time_to_goal(1_000, 100_000, -500, 5.0, inflation_adjusted=False)


def test_time_to_goal_inflation_adjusted(calculator):
    months = calculator.calculate_time_to_goal(1_000, 10_000, 1_000, 12.0, inflation_rate=6.0)
    nominal = calculator.calculate_time_to_goal(1_000, 10_000, 1_000, 12.0, inflation_adjusted=False)
    assert isinstance(months, int)
    assert months >= math.floor(nominal)


def test_time_to_goal_cap():
    raising = CompoundingCalculator(SolverConfig(max_months=120))
    with pytest.raises(NonConvergence) as exc:
        raising.calculate_time_to_goal(1_000, 1_000_000, 10, 5.0, inflation_rate=120.0)
    assert exc.value.iterations == 120

    capped = CompoundingCalculator(SolverConfig(max_months=120, time_to_goal_cap_raises=False))
    assert capped.calculate_time_to_goal(1_000, 1_000_000, 10, 5.0, inflation_rate=120.0) == 120


def test_break_even_without_growth_never_converges(calculator):
    with pytest.raises(NonConvergence):
        calculator.calculate_break_even(0, 500, 0.0)


def test_break_even_reached(calculator):
    result = calculator.calculate_break_even(0, 100, 12.0)
    assert 1 < result.months <= 600
    assert result.total_growth >= result.total_contributions


def test_irr_single_flow(calculator):
    assert calculator.calculate_irr(1_000, [1_100]) == pytest.approx(10.0, abs=0.01)


def test_irr_multiple_flows(calculator):
    rate = calculator.calculate_irr(1_000, [300, 400, 500])
    r = rate / 100
    npv = -1_000 + 300 / (1 + r) + 400 / (1 + r) ** 2 + 500 / (1 + r) ** 3
    assert npv == pytest.approx(0.0, abs=1e-3)


def test_irr_requires_cash_flows(calculator):
    with pytest.raises(InvalidParameter):
        calculator.calculate_irr(1_000, [])


def test_present_value(calculator):
    assert calculator.calculate_present_value(1_000, 12.0, 12) == pytest.approx(1_000 / 1.01 ** 12)


@pytest.mark.parametrize("low,high", [(-2.0, 0.0), (0.0, 1.0), (5.0, 10.0), (10.0, 20.0)])
def test_time_to_goal_shrinks_with_return(calculator, low, high):
    slow = calculator.calculate_time_to_goal(1_000, 100_000, 500, low, inflation_adjusted=False)
    fast = calculator.calculate_time_to_goal(1_000, 100_000, 500, high, inflation_adjusted=False)
    assert fast <= slow


@pytest.mark.parametrize("solve", [
    lambda c: c.calculate_time_to_goal(1_000, 100_000, 500, -1_200.0, inflation_adjusted=False),
    lambda c: c.calculate_time_to_goal(1_000, 100_000, 500, 5.0, inflation_rate=-1_200.0),
    lambda c: c.calculate_required_contribution(1_000, 50_000, -1_200.0, 36, inflation_adjusted=False),
    lambda c: c.calculate_required_contribution(1_000, 50_000, 8.0, 36, inflation_rate=-1_500.0),
    lambda c: c.calculate_break_even(0, 100, -1_200.0),
    lambda c: c.calculate_present_value(1_000, -1_200.0, 12),
])
def test_solvers_reject_total_monthly_loss(calculator, solve):
    with pytest.raises(InvalidParameter):
        solve(calculator)


@pytest.mark.parametrize("solve", [
    lambda c: c.calculate_required_contribution(1_000, 50_000, 8.0, 4_000, inflation_rate=250.0),
    lambda c: c.calculate_required_contribution(1_000, 50_000, 10_000.0, 1_200, inflation_adjusted=False),
    lambda c: c.calculate_present_value(1_000, 250.0, 4_000),
    # deflator passes the float range long before max_months
    lambda c: c.calculate_time_to_goal(1_000, 1_000_000, 10, 5.0, inflation_rate=100_000.0),
])
def test_solvers_reject_growth_beyond_float_range(calculator, solve):
    with pytest.raises(InvalidParameter):
        solve(calculator)


# ---------------------------------------------------------------------------
# Variations
# ---------------------------------------------------------------------------

def test_apply_parameter_variation(base_params):
    assert apply_parameter_variation(base_params, "annual_return_rate", -2).annual_return_rate == 8.0
    assert apply_parameter_variation(base_params, "inflation_rate", 20).inflation_rate == 140.0
    assert apply_parameter_variation(base_params, "monthly_contribution", -50).monthly_contribution == 500.0
    assert apply_parameter_variation(base_params, "contribution_growth_rate", 5).contribution_growth_rate == 30.0

    bare = ProjectionParameters(present_value=0.0, monthly_contribution=10.0, annual_return_rate=5.0, periods=12)
    assert apply_parameter_variation(bare, "inflation_rate", 10).inflation_rate == 10.0

    with pytest.raises(InvalidParameter):
        apply_parameter_variation(base_params, "present_value", 10)


def test_perform_sensitivity_analysis(calculator, base_params):
    points = calculator.perform_sensitivity_analysis(base_params, "annual_return_rate", [-1, 0, 1])
    assert [v for v, _ in points] == [-1, 0, 1]
    assert points[1][1].future_value == calculator.calculate_future_value(base_params).future_value
    assert points[0][1].future_value < points[2][1].future_value


def test_generate_multiple_scenarios(calculator, base_params):
    scenarios = calculator.generate_multiple_scenarios(base_params)
    assert len(scenarios) == 6
    weights = {s.parameters.annual_return_rate: s.probability_weight for s in scenarios}
    assert weights[10.0] == 1.0
    assert weights[12.0] == scenario_probability_weight(2.0) == 0.61
    values = [s.result.future_value for s in scenarios]
    assert values == sorted(values)
