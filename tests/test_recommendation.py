"""Tests for the recommendation synthesizer."""

import numpy as np
import pytest

from quant_analysis.alpha import AggregateSignal, SignalType, TechnicalSignal
from quant_analysis.regime import MarketRegime
from quant_analysis.risk import RiskProfile, RiskLevel
from quant_analysis.valuation import ValuationModelResult, ValuationSignal
from quant_analysis.recommendation import RecommendationEngine, Action


def _risk(level=RiskLevel.LOW):
    return RiskProfile(volatility=15.0, sharpe=1.0, sortino=1.2, max_drawdown=-5.0,
                       var_95=-1.5, cvar_95=-2.0, risk_level=level)


def _aggregate(signal_type):
    return AggregateSignal(signal_type=signal_type, score=0.0, confidence=0.5)


def _valuation(signal):
    return ValuationModelResult(dcf=None, ddm=None, multiples=None, anchor=None, upside=None, signal=signal)


BULLISH_TECH = {
    "rsi": TechnicalSignal.OVERSOLD,
    "macd": TechnicalSignal.BULLISH,
    "bollinger": TechnicalSignal.OVERSOLD,
    "adx": TechnicalSignal.STRONG,
}


class TestRegimeScore:
    """Tests for the regime contribution."""

    @pytest.mark.parametrize("regime,expected", [
        (MarketRegime.STRONG_UPTREND, 1.0),
        (MarketRegime.TRENDING_UPTREND, 0.5),
        (MarketRegime.STRONG_DOWNTREND, -1.0),
        (MarketRegime.TRENDING_DOWNTREND, -0.5),
        (MarketRegime.RANGING, 0.0),
        (MarketRegime.HIGH_VOLATILITY, 0.0),
    ])
    def test_regime_score(self, regime, expected):
        assert RecommendationEngine.regime_score(regime) == expected


class TestRecommend:
    """Tests for the blended action."""

    def test_everything_bullish_is_strong_buy(self):
        rec = RecommendationEngine().recommend(
            BULLISH_TECH, _aggregate(SignalType.STRONG_BUY), MarketRegime.STRONG_UPTREND,
            _risk(), _valuation(ValuationSignal.UNDERVALUED)
        )

        # 3*0.30 + 2*0.35 + 1*0.25 + 1*0.10
        assert rec.score == pytest.approx(1.95)
        assert rec.action == Action.STRONG_BUY
        assert rec.confidence == pytest.approx(min(0.90, 0.6 + 1.95 * 0.15))
        assert rec.components == {"technical": 3, "statistical": 2, "regime": 1.0, "valuation": 1}

    def test_high_risk_damps_score(self):
        rec = RecommendationEngine().recommend(
            {"macd": TechnicalSignal.BULLISH}, _aggregate(SignalType.BUY), MarketRegime.RANGING,
            _risk(RiskLevel.HIGH), _valuation(ValuationSignal.FAIRLY_VALUED)
        )

        # (0.30 + 0.35) * 0.7 = 0.455
        assert rec.score == pytest.approx(0.455)
        assert rec.action == Action.BUY
        assert rec.confidence == pytest.approx(0.5 + 0.455 * 0.15)

    def test_neutral_inputs_hold(self):
        rec = RecommendationEngine().recommend(
            {}, _aggregate(SignalType.NEUTRAL), MarketRegime.TRANSITIONING, _risk(), None,
            current_price=100.0, atr=2.0
        )

        assert rec.action == Action.HOLD
        assert rec.confidence == 0.5
        assert rec.target is None
        assert rec.stop_loss is None

    def test_bearish_is_sell(self):
        rec = RecommendationEngine().recommend(
            {"rsi": TechnicalSignal.OVERBOUGHT, "macd": TechnicalSignal.BEARISH},
            _aggregate(SignalType.SELL), MarketRegime.TRENDING_DOWNTREND, _risk(),
            _valuation(ValuationSignal.OVERVALUED)
        )

        # -2*0.30 - 0.35 - 0.5*0.25 - 0.10
        assert rec.score == pytest.approx(-1.175)
        assert rec.action == Action.SELL
        assert rec.confidence == pytest.approx(0.5 + 1.175 * 0.15)


class TestTargetAndStop:
    """Tests for ATR-based target and stop-loss."""

    def test_buy_in_strong_regime_widens(self):
        target, stop = RecommendationEngine.target_and_stop(Action.BUY, MarketRegime.STRONG_UPTREND, 100.0, 2.0)
        assert target == pytest.approx(106.0)
        assert stop == pytest.approx(97.0)

    def test_buy_in_normal_regime(self):
        target, stop = RecommendationEngine.target_and_stop(Action.STRONG_BUY, MarketRegime.RANGING, 100.0, 2.0)
        assert target == pytest.approx(104.0)
        assert stop == pytest.approx(98.0)

    def test_sell(self):
        target, stop = RecommendationEngine.target_and_stop(Action.SELL, MarketRegime.STRONG_DOWNTREND, 100.0, 2.0)
        assert target == pytest.approx(96.0)
        assert stop == pytest.approx(102.0)

    @pytest.mark.parametrize("atr", [None, 0.0, np.nan])
    def test_missing_atr_uses_two_percent(self, atr):
        target, stop = RecommendationEngine.target_and_stop(Action.BUY, MarketRegime.RANGING, 50.0, atr)
        assert target == pytest.approx(52.0)
        assert stop == pytest.approx(49.0)

    def test_hold_has_no_levels(self):
        assert RecommendationEngine.target_and_stop(Action.HOLD, MarketRegime.RANGING, 100.0, 2.0) == (None, None)
