import pytest

from adjustment.adjuster import NO_ADJUSTMENT, DynamicRateAdjuster, classify_market_condition
from core.config import AdjusterConfig
from core.errors import InvalidParameter
from core.schema import MarketCondition


@pytest.fixture
def adjuster():
    return DynamicRateAdjuster()


def test_no_adjustment(adjuster):
    adj = adjuster.adjust(10.0, historical_performance=11.0, volatility_factor=18.5)
    assert adj.adjusted_rate == 10.0
    assert adj.confidence_score == 85
    assert adj.rationale == NO_ADJUSTMENT
    assert adj.applied_rules == ()
    assert adj.market_condition == MarketCondition.NEUTRAL


def test_performance_gap(adjuster):
    adj = adjuster.adjust(10.0, historical_performance=15.0, volatility_factor=18.5)
    assert adj.adjusted_rate == pytest.approx(13.0)
    assert adj.confidence_score == 70
    assert adj.rationale == "Adjusted for observed performance gap of +5.0pp"


def test_large_gap_confidence_floor(adjuster):
    adj = adjuster.adjust(10.0, historical_performance=-10.0, volatility_factor=18.5)
    assert adj.adjusted_rate == pytest.approx(-2.0)
    assert adj.confidence_score == 60


def test_high_volatility(adjuster):
    adj = adjuster.adjust(10.0, historical_performance=10.0, volatility_factor=30.0)
    assert adj.adjusted_rate == pytest.approx(9.0)
    assert adj.confidence_score == 72
    assert adj.applied_rules == ("volatility",)


@pytest.mark.parametrize("condition,rate,confidence", [
    ("BULLISH", 11.0, 94),
    ("bullish", 11.0, 94),
    (MarketCondition.BEARISH, 8.5, 68),
    ("NEUTRAL", 10.0, 85),
])
def test_market_regime(adjuster, condition, rate, confidence):
    adj = adjuster.adjust(10.0, 10.0, 18.5, market_condition=condition)
    assert adj.adjusted_rate == pytest.approx(rate)
    assert adj.confidence_score == confidence


def test_all_rules_compound(adjuster):
    adj = adjuster.adjust(10.0, 20.0, 30.0, market_condition="BEARISH")
    # 10 + 0.6 * 10 = 16 -> * 0.9 = 14.4 -> * 0.85 = 12.24
    assert adj.adjusted_rate == pytest.approx(12.24)
    # max(60, 55) = 60 -> 51 -> 40.8
    assert adj.confidence_score == 41
    assert adj.applied_rules == ("performance", "volatility", "regime")
    assert adj.rationale.count(" | ") == 2


def test_rule_order_changes_outcome():
    default = DynamicRateAdjuster().adjust(10.0, 20.0, 30.0)
    reordered = DynamicRateAdjuster(
        AdjusterConfig(rule_order=("volatility", "performance", "regime"))
    ).adjust(10.0, 20.0, 30.0)

    assert default.adjusted_rate == pytest.approx(14.4)
    assert reordered.adjusted_rate == pytest.approx(15.0)
    assert default.confidence_score == 51
    assert reordered.confidence_score == 60


def test_rule_subset():
    adj = DynamicRateAdjuster(AdjusterConfig(rule_order=("regime",))).adjust(
        10.0, 20.0, 30.0, market_condition="BULLISH"
    )
    assert adj.adjusted_rate == pytest.approx(11.0)
    assert adj.applied_rules == ("regime",)


@pytest.mark.parametrize("rate,expected", [(48.0, 50.0), (-48.0, -50.0)])
def test_rate_is_clamped(adjuster, rate, expected):
    adj = adjuster.adjust(rate, rate, 10.0, market_condition="BULLISH")
    assert adj.adjusted_rate == expected


def test_unknown_condition_is_neutral(adjuster):
    assert classify_market_condition("SIDEWAYS") == MarketCondition.NEUTRAL
    assert classify_market_condition(None) == MarketCondition.NEUTRAL
    adj = adjuster.adjust(10.0, 10.0, 18.5, market_condition="sideways")
    assert adj.adjusted_rate == 10.0


def test_non_finite_inputs_rejected(adjuster):
    with pytest.raises(InvalidParameter):
        adjuster.adjust(float("nan"), 10.0, 18.5)
    with pytest.raises(InvalidParameter):
        adjuster.adjust(10.0, 10.0, float("inf"))


def test_unknown_rule_rejected():
    with pytest.raises(InvalidParameter):
        AdjusterConfig(rule_order=("performance", "momentum"))
