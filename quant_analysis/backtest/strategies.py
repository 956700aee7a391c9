"""
Backtest Strategies
===================
Per-bar signal rules for the backtest simulator.

A strategy sees the current bar, the previous bar and (for mean reversion)
the close history up to the current index. A rule whose inputs are missing
on either bar emits nothing.
"""

import pandas as pd
import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Type
from enum import Enum
import logging

from ..exceptions import UnknownStrategyError
from ..features.feature_engine import TechnicalIndicators

logger = logging.getLogger(__name__)


class TradeSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


def _defined(bar: Mapping, *keys) -> bool:
    return all(bar.get(k) is not None and not pd.isna(bar.get(k)) for k in keys)


def _crossover(bar: Mapping, prev: Mapping, fast: str, slow: str) -> Optional[TradeSide]:
    """BUY when `fast` crosses above `slow`, SELL on the reverse cross."""
    if not (_defined(bar, fast, slow) and _defined(prev, fast, slow)):
        return None
    if prev[fast] <= prev[slow] and bar[fast] > bar[slow]:
        return TradeSide.BUY
    if prev[fast] >= prev[slow] and bar[fast] < bar[slow]:
        return TradeSide.SELL
    return None


class Strategy(ABC):
    """Base class for backtest strategies."""

    key: str = ""
    name: str = ""
    description: str = ""
    default_params: Dict[str, float] = {}

    # Columns the rule reads; used to warn when they are never defined
    indicator_columns = ()

    def __init__(self, params: Optional[Mapping] = None):
        self.params = {**self.default_params, **(params or {})}

    def prepare(self, bars: pd.DataFrame) -> pd.DataFrame:
        """Attach the indicator columns this strategy needs, computed from its own parameters."""
        return bars

    @abstractmethod
    def generate_signal(self, bar: Mapping, prev: Mapping, closes: np.ndarray, index: int) -> Optional[TradeSide]:
        """Signal for the bar at `index`, or None."""
        pass


class RSIStrategy(Strategy):
    key = "rsi"
    name = "RSI Crossover"
    description = "Buy when RSI drops below oversold, sell when it rises above overbought."
    default_params = {"oversold": 30, "overbought": 70, "period": 14}
    indicator_columns = ('rsi',)

    def prepare(self, bars):
        bars = bars.copy()
        bars['rsi'] = TechnicalIndicators.rsi(bars['close'], int(self.params['period']))
        return bars

    def generate_signal(self, bar, prev, closes, index):
        if not _defined(bar, 'rsi'):
            return None
        if bar['rsi'] < self.params['oversold']:
            return TradeSide.BUY
        if bar['rsi'] > self.params['overbought']:
            return TradeSide.SELL
        return None


class MACDStrategy(Strategy):
    key = "macd"
    name = "MACD Signal"
    description = "Buy on MACD bullish crossover, sell on bearish crossover."
    default_params = {"fastPeriod": 12, "slowPeriod": 26, "signalPeriod": 9}
    indicator_columns = ('macd', 'macd_signal')

    def prepare(self, bars):
        bars = bars.copy()
        macd = TechnicalIndicators.macd(
            bars['close'],
            int(self.params['fastPeriod']),
            int(self.params['slowPeriod']),
            int(self.params['signalPeriod'])
        )
        bars['macd'] = macd['macd']
        bars['macd_signal'] = macd['macd_signal']
        return bars

    def generate_signal(self, bar, prev, closes, index):
        return _crossover(bar, prev, 'macd', 'macd_signal')


class BollingerStrategy(Strategy):
    key = "bollinger"
    name = "Bollinger Bounce"
    description = "Buy when price touches lower band, sell at upper band."
    default_params = {"period": 20, "stdDev": 2}
    indicator_columns = ('bb_upper', 'bb_lower')

    def prepare(self, bars):
        bars = bars.copy()
        bands = TechnicalIndicators.bollinger_bands(
            bars['close'], int(self.params['period']), float(self.params['stdDev'])
        )
        bars['bb_upper'] = bands['bb_upper']
        bars['bb_lower'] = bands['bb_lower']
        return bars

    def generate_signal(self, bar, prev, closes, index):
        if not _defined(bar, 'bb_upper', 'bb_lower'):
            return None
        if bar['close'] < bar['bb_lower']:
            return TradeSide.BUY
        if bar['close'] > bar['bb_upper']:
            return TradeSide.SELL
        return None


class SMACrossStrategy(Strategy):
    key = "sma"
    name = "SMA Crossover"
    description = "Buy when short SMA crosses above long SMA, sell on cross below."
    default_params = {"shortPeriod": 20, "longPeriod": 50}
    indicator_columns = ('sma_short', 'sma_long')

    def prepare(self, bars):
        bars = bars.copy()
        bars['sma_short'] = TechnicalIndicators.sma(bars['close'], int(self.params['shortPeriod']))
        bars['sma_long'] = TechnicalIndicators.sma(bars['close'], int(self.params['longPeriod']))
        return bars

    def generate_signal(self, bar, prev, closes, index):
        return _crossover(bar, prev, 'sma_short', 'sma_long')


class MeanReversionStrategy(Strategy):
    key = "meanrev"
    name = "Mean Reversion"
    description = "Buy when Z-score is deeply negative, sell when deeply positive."
    default_params = {"zThreshold": 2, "lookback": 20}

    def generate_signal(self, bar, prev, closes, index):
        lookback = int(self.params.get('lookback') or 20)
        if index < lookback:
            return None

        # Window ends before the current bar
        window = closes[index - lookback:index]
        std = window.std()
        if std <= 0:
            return None

        z = (bar['close'] - window.mean()) / std
        threshold = self.params['zThreshold']
        if z < -threshold:
            return TradeSide.BUY
        if z > threshold:
            return TradeSide.SELL
        return None


STRATEGIES: Dict[str, Type[Strategy]] = {
    cls.key: cls for cls in (RSIStrategy, MACDStrategy, BollingerStrategy, SMACrossStrategy, MeanReversionStrategy)
}


def get_strategy(key: str, params: Optional[Mapping] = None) -> Strategy:
    """Instantiate a registered strategy by key."""
    try:
        strategy_cls = STRATEGIES[key]
    except KeyError:
        raise UnknownStrategyError(
            f"Unknown strategy '{key}'. Available: {', '.join(STRATEGIES)}"
        ) from None
    return strategy_cls(params)
