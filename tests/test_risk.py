"""Tests for the risk engine."""

import numpy as np
import pandas as pd
import pytest

from quant_analysis.risk import RiskEngine, RiskLevel


class TestRiskProfile:
    """Tests for return-based risk metrics."""

    def test_too_few_returns_is_zero_low(self):
        """Fewer than five non-zero returns gives an all-zero LOW profile."""
        profile = RiskEngine().calculate(pd.Series([0.0, 0.01, 0.0, -0.02, np.nan, 0.01]))

        assert profile.volatility == 0
        assert profile.sharpe == 0
        assert profile.max_drawdown == 0
        assert profile.risk_level == RiskLevel.LOW

    def test_zeros_and_nan_are_dropped(self):
        returns = [0.01, -0.02, 0.015, -0.005, 0.02, 0.01]
        padded = [0.0, np.nan] + returns + [0.0]
        assert RiskEngine().calculate(padded) == RiskEngine().calculate(returns)

    def test_volatility_and_sharpe(self):
        returns = np.array([0.01, -0.02, 0.015, -0.005, 0.02, 0.01, -0.01, 0.005])
        profile = RiskEngine().calculate(returns)

        std = returns.std()
        ann_return = returns.mean() * 252
        assert profile.volatility == pytest.approx(std * np.sqrt(252) * 100)
        assert profile.annualized_return == pytest.approx(ann_return)
        assert profile.sharpe == pytest.approx((ann_return - 0.02) / (std * np.sqrt(252)))

    def test_sortino_uses_downside_deviation(self):
        returns = np.array([0.01, -0.02, 0.015, -0.005, 0.02, 0.01, -0.01, 0.005])
        profile = RiskEngine().calculate(returns)

        downside = returns[returns < 0]
        downside_dev = np.sqrt((downside ** 2).mean()) * np.sqrt(252)
        assert profile.sortino == pytest.approx((returns.mean() * 252 - 0.02) / downside_dev)

    def test_max_drawdown_compounds(self):
        """+10%, -50%, +10% ... drawdown is measured from the compounded peak."""
        profile = RiskEngine().calculate([0.1, -0.5, 0.1, 0.1, 0.1])
        assert profile.max_drawdown == pytest.approx(-50.0)

    def test_drawdown_never_positive(self, linear_bars):
        returns = linear_bars["close"].pct_change()
        assert RiskEngine().calculate(returns).max_drawdown == 0

    def test_cvar_not_above_var(self, random_walk_bars):
        profile = RiskEngine().calculate(random_walk_bars["close"].pct_change())

        ordered = np.sort(random_walk_bars["close"].pct_change().dropna().to_numpy())
        idx = int(len(ordered) * 0.05)
        assert profile.var_95 == pytest.approx(ordered[idx] * 100)
        assert profile.cvar_95 <= profile.var_95

    def test_risk_tiers(self):
        rng = np.random.default_rng(11)
        calm = rng.normal(0.0005, 0.005, 250)
        wild = rng.normal(0.0, 0.04, 250)

        assert RiskEngine().calculate(calm).risk_level == RiskLevel.LOW
        assert RiskEngine().calculate(wild).risk_level == RiskLevel.HIGH

    def test_drawdown_alone_raises_tier(self):
        """Low volatility but a deep cumulative loss is still MEDIUM or worse."""
        returns = np.full(100, -0.003) + np.tile([0.0005, -0.0005], 50)
        profile = RiskEngine().calculate(returns)

        assert profile.volatility < 25
        assert profile.max_drawdown < -20
        assert profile.risk_level == RiskLevel.MEDIUM

    def test_to_dict(self):
        data = RiskEngine().calculate([0.01, -0.02, 0.015, -0.005, 0.02]).to_dict()
        assert data["risk_level"] in ("LOW", "MEDIUM", "HIGH")
        assert set(data) >= {"volatility", "sharpe", "sortino", "max_drawdown", "var_95", "cvar_95"}
