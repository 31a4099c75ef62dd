import pytest

from core.config import MonteCarloConfig, SolverConfig
from core.schema import ProjectionParameters
from engine.calculator import CompoundingCalculator


@pytest.fixture
def calculator():
    return CompoundingCalculator(SolverConfig())


@pytest.fixture
def base_params():
    """25k start, 1k/month, 10%/yr over five years with the default assumptions."""
    return ProjectionParameters(
        present_value=25_000.0,
        monthly_contribution=1_000.0,
        annual_return_rate=10.0,
        periods=60,
        inflation_rate=120.0,
        contribution_growth_rate=25.0,
        dividend_yield=3.0,
        reinvest_dividends=True,
    )


@pytest.fixture
def plain_params():
    """No inflation, growth or dividends: matches the textbook annuity formulas."""
    return ProjectionParameters(
        present_value=10_000.0,
        monthly_contribution=500.0,
        annual_return_rate=6.0,
        periods=120,
    )


@pytest.fixture
def mc_config():
    return MonteCarloConfig(n_trials=200, seed=7)
