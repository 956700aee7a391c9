"""
Risk Engine Module
==================
Return-based risk metrics for a single instrument: volatility,
risk-adjusted returns, drawdown, tail risk and an overall risk tier.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, asdict
from typing import Union
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class RiskLevel(Enum):
    """Risk tiers for an instrument."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass
class RiskProfile:
    """Risk metrics computed from daily returns."""
    volatility: float  # annualized, %
    sharpe: float
    sortino: float
    max_drawdown: float  # %, <= 0
    var_95: float  # daily, %
    cvar_95: float  # daily, %
    risk_level: RiskLevel
    annualized_return: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['risk_level'] = self.risk_level.value
        return data


class RiskEngine:
    """
    Computes the risk profile of a return series.

    Zero and missing returns are dropped before any statistic is taken.
    """

    def __init__(self, config=None):
        from ..config import RiskConfig
        self.config = config or RiskConfig()

    def calculate(self, returns: Union[pd.Series, np.ndarray]) -> RiskProfile:
        """
        Calculate the risk profile.

        Args:
            returns: Simple daily returns, aligned with the bars

        Returns:
            RiskProfile; an all-zero LOW profile when fewer than
            `min_returns` usable returns exist
        """
        values = np.asarray(returns, dtype=float)
        values = values[~np.isnan(values) & (values != 0)]

        if len(values) < self.config.min_returns:
            return RiskProfile(
                volatility=0.0, sharpe=0.0, sortino=0.0, max_drawdown=0.0,
                var_95=0.0, cvar_95=0.0, risk_level=RiskLevel.LOW
            )

        days = self.config.trading_days
        rf = self.config.risk_free_rate

        mean_ret = values.mean()
        std_ret = values.std()
        volatility = std_ret * np.sqrt(days) * 100
        annualized_return = mean_ret * days

        sharpe = (annualized_return - rf) / (std_ret * np.sqrt(days)) if std_ret > 0 else 0.0

        # Downside deviation around zero
        downside = values[values < 0]
        downside_dev = np.sqrt((downside ** 2).mean()) * np.sqrt(days) if len(downside) else 0.0
        sortino = (annualized_return - rf) / downside_dev if downside_dev > 0 else 0.0

        max_drawdown = self._calculate_max_drawdown(values)
        var_95, cvar_95 = self._calculate_var(values)

        risk_level = self._determine_risk_level(volatility, max_drawdown * 100)

        profile = RiskProfile(
            volatility=float(volatility),
            sharpe=float(sharpe),
            sortino=float(sortino),
            max_drawdown=float(max_drawdown * 100),
            var_95=float(var_95),
            cvar_95=float(cvar_95),
            risk_level=risk_level,
            annualized_return=float(annualized_return)
        )

        logger.debug(f"Risk profile: vol={profile.volatility:.1f}% maxDD={profile.max_drawdown:.1f}% "
                     f"level={risk_level.value}")

        return profile

    def _calculate_max_drawdown(self, returns: np.ndarray) -> float:
        """Maximum drawdown of the compounded return index, as a fraction <= 0."""
        cumulative = np.cumprod(1 + returns)
        peak = np.maximum.accumulate(np.maximum(cumulative, 1.0))
        drawdown = (cumulative - peak) / peak
        return min(0.0, float(drawdown.min()))

    def _calculate_var(self, returns: np.ndarray):
        """Historical VaR/CVaR at 95%, in percent of a daily return."""
        ordered = np.sort(returns)
        idx = int(np.floor(len(ordered) * 0.05))
        var_95 = ordered[idx] * 100
        # Mean of every return at or below the VaR observation
        cvar_95 = ordered[:idx + 1].mean() * 100
        return var_95, cvar_95

    def _determine_risk_level(self, volatility: float, max_drawdown_pct: float) -> RiskLevel:
        """Risk tier from annualized volatility (%) and max drawdown (%)."""
        if volatility > self.config.high_volatility or max_drawdown_pct < self.config.high_drawdown:
            return RiskLevel.HIGH
        if volatility > self.config.medium_volatility or max_drawdown_pct < self.config.medium_drawdown:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW
