"""Tests for regime detection."""

import numpy as np
import pandas as pd
import pytest

from quant_analysis.features import FeatureEngine
from quant_analysis.regime import (
    RegimeDetector,
    TrendInfo,
    VolatilityInfo,
    TrendDirection,
    VolatilityClass,
    MarketRegime,
    REGIME_RULES,
    PLAYBOOKS,
    get_playbook,
)
from quant_analysis.config import RegimeConfig


def _trend(direction=TrendDirection.SIDEWAYS, strength=0.0):
    return TrendInfo(direction=direction, strength=strength, slope=0.0, r_squared=0.0,
                     ma_alignment=TrendDirection.UPTREND, confidence=0.0)


def _vol(classification=VolatilityClass.NORMAL):
    return VolatilityInfo(current=20.0, average=20.0, ratio=1.0, classification=classification)


def _first_match(trend, vol, hurst, cfg=None):
    cfg = cfg or RegimeConfig()
    for rule in REGIME_RULES:
        matched = rule(trend, vol, hurst, cfg)
        if matched is not None:
            return matched
    return None


class TestTrendDetection:
    """Tests for least-squares trend detection."""

    def test_linear_uptrend(self, linear_bars):
        """A straight line from 100 to 400 is an uptrend with near-perfect fit."""
        trend = RegimeDetector().detect_trend(linear_bars["close"])

        assert trend.direction == TrendDirection.UPTREND
        assert trend.r_squared > 0.95
        assert trend.ma_alignment == TrendDirection.UPTREND
        assert trend.slope > 0

    def test_linear_downtrend(self):
        closes = pd.Series(np.linspace(400, 100, 300))
        trend = RegimeDetector().detect_trend(closes)
        assert trend.direction == TrendDirection.DOWNTREND

    def test_slope_disagreeing_with_alignment_is_sideways(self):
        """A late rebound after a long decline keeps SMA20 below SMA50."""
        closes = pd.Series(np.concatenate([np.linspace(200, 100, 80), np.linspace(100, 115, 10)]))
        trend = RegimeDetector().detect_trend(closes, window=10)

        assert trend.slope > 0.1
        assert trend.ma_alignment == TrendDirection.DOWNTREND
        assert trend.direction == TrendDirection.SIDEWAYS

    def test_strength_capped(self):
        closes = pd.Series(np.concatenate([np.full(50, 100.0), np.linspace(100, 1000, 60)]))
        trend = RegimeDetector().detect_trend(closes)
        assert 0 <= trend.strength <= 100


class TestVolatilityClassification:
    """Tests for volatility bucketing."""

    def test_short_history_is_normal(self):
        info = RegimeDetector().classify_volatility(pd.Series([0.01, -0.01, 0.02]))
        assert info.classification == VolatilityClass.NORMAL
        assert info.ratio == 1.0

    def test_volatility_spike_is_high(self):
        rng = np.random.default_rng(3)
        returns = np.concatenate([rng.normal(0, 0.005, 200), rng.normal(0, 0.05, 20)])
        info = RegimeDetector().classify_volatility(pd.Series(returns))

        assert info.classification == VolatilityClass.HIGH
        assert info.ratio > 1.5

    def test_calm_after_storm_is_low(self):
        rng = np.random.default_rng(4)
        returns = np.concatenate([rng.normal(0, 0.05, 200), rng.normal(0, 0.005, 20)])
        info = RegimeDetector().classify_volatility(pd.Series(returns))
        assert info.classification == VolatilityClass.LOW


class TestHurst:
    """Tests for the simplified Hurst estimator."""

    def test_short_series_falls_back(self):
        assert RegimeDetector().hurst_exponent(pd.Series([1.0, 2.0, 3.0])) == 0.5

    def test_flat_series_falls_back(self, constant_bars):
        assert RegimeDetector().hurst_exponent(constant_bars["close"]) == 0.5

    def test_trend_is_persistent(self, linear_bars):
        """Lagged differences of a line grow proportionally with the lag."""
        assert RegimeDetector().hurst_exponent(linear_bars["close"]) == pytest.approx(1.0, abs=1e-6)

    def test_sine_is_anti_persistent(self, sine_bars):
        assert RegimeDetector().hurst_exponent(sine_bars["close"]) < 0.5


class TestRegimeCascade:
    """Tests for the ordered rule table."""

    def test_strong_trend_first(self):
        regime = _first_match(_trend(TrendDirection.UPTREND, 70), _vol(VolatilityClass.HIGH), 0.6)
        assert regime == MarketRegime.STRONG_UPTREND

    def test_strong_needs_persistence(self):
        regime = _first_match(_trend(TrendDirection.DOWNTREND, 70), _vol(), 0.5)
        assert regime == MarketRegime.TRENDING_DOWNTREND

    def test_sideways_never_strong(self):
        regime = _first_match(_trend(TrendDirection.SIDEWAYS, 90), _vol(), 0.9)
        assert regime == MarketRegime.RANGING

    def test_mean_reverting_before_high_volatility(self):
        assert _first_match(_trend(), _vol(VolatilityClass.LOW), 0.3) == MarketRegime.MEAN_REVERTING
        assert _first_match(_trend(), _vol(VolatilityClass.HIGH), 0.3) == MarketRegime.HIGH_VOLATILITY

    def test_transitioning_fallback(self):
        regime = _first_match(_trend(TrendDirection.UPTREND, 10), _vol(VolatilityClass.ELEVATED), 0.5)
        assert regime == MarketRegime.TRANSITIONING

    def test_regime_properties(self):
        assert MarketRegime.STRONG_UPTREND.is_strong
        assert MarketRegime.STRONG_DOWNTREND.bias == -1
        assert MarketRegime.TRENDING_UPTREND.bias == 1
        assert MarketRegime.RANGING.bias == 0


class TestDetectRegime:
    """Tests for the combined regime snapshot."""

    def test_sine_is_mean_reverting_or_ranging(self, sine_bars):
        """Oscillation around a constant mean is not a trend."""
        features = FeatureEngine().compute_features(sine_bars).features
        regime = RegimeDetector().detect_regime(features)

        assert regime.hurst < 0.5
        if regime.volatility.classification in (VolatilityClass.LOW, VolatilityClass.NORMAL):
            assert regime.overall in (MarketRegime.MEAN_REVERTING, MarketRegime.RANGING)

    def test_to_dict_uses_labels(self, random_walk_bars):
        features = FeatureEngine().compute_features(random_walk_bars).features
        data = RegimeDetector().detect_regime(features).to_dict()

        assert data["overall"] in {r.value for r in MarketRegime}
        assert data["trend"]["direction"] in {"UPTREND", "DOWNTREND", "SIDEWAYS"}


class TestPlaybook:
    """Tests for the regime playbook."""

    def test_every_regime_has_a_playbook(self):
        for regime in MarketRegime:
            playbook = get_playbook(regime)
            assert playbook.strategy
            assert playbook.tactics

    def test_playbooks_cover_exactly_the_regimes(self):
        assert set(PLAYBOOKS) == set(MarketRegime)
