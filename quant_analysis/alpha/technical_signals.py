"""
Technical signal reading for the latest enriched bar.
"""

import pandas as pd
from enum import Enum
from typing import Dict, Mapping
import logging

logger = logging.getLogger(__name__)


class TechnicalSignal(Enum):
    """Labels produced by reading one indicator on one bar."""
    OVERSOLD = "OVERSOLD"
    OVERBOUGHT = "OVERBOUGHT"
    NEUTRAL = "NEUTRAL"
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"

    @property
    def score(self) -> int:
        """Contribution to the technical score. ADX strength labels carry no direction."""
        return _SCORES.get(self, 0)


_SCORES = {
    TechnicalSignal.OVERSOLD: 1,
    TechnicalSignal.OVERBOUGHT: -1,
    TechnicalSignal.BULLISH: 1,
    TechnicalSignal.BEARISH: -1,
}


def _value(bar: Mapping, key: str):
    value = bar.get(key)
    if value is None or pd.isna(value):
        return None
    return float(value)


def read_technical_signals(bar: Mapping, oversold: float = 30, overbought: float = 70) -> Dict[str, TechnicalSignal]:
    """
    Read RSI, MACD, Bollinger and ADX on one bar.

    Indicators without a value on the bar are left out.
    """
    signals = {}

    rsi = _value(bar, 'rsi')
    if rsi is not None:
        if rsi < oversold:
            signals['rsi'] = TechnicalSignal.OVERSOLD
        elif rsi > overbought:
            signals['rsi'] = TechnicalSignal.OVERBOUGHT
        else:
            signals['rsi'] = TechnicalSignal.NEUTRAL

    macd, macd_signal = _value(bar, 'macd'), _value(bar, 'macd_signal')
    if macd is not None and macd_signal is not None:
        signals['macd'] = TechnicalSignal.BULLISH if macd > macd_signal else TechnicalSignal.BEARISH

    close, upper, lower = _value(bar, 'close'), _value(bar, 'bb_upper'), _value(bar, 'bb_lower')
    if close is not None and upper is not None and lower is not None:
        if close > upper:
            signals['bollinger'] = TechnicalSignal.OVERBOUGHT
        elif close < lower:
            signals['bollinger'] = TechnicalSignal.OVERSOLD
        else:
            signals['bollinger'] = TechnicalSignal.NEUTRAL

    adx = _value(bar, 'adx')
    if adx is not None:
        if adx > 25:
            signals['adx'] = TechnicalSignal.STRONG
        elif adx > 20:
            signals['adx'] = TechnicalSignal.MODERATE
        else:
            signals['adx'] = TechnicalSignal.WEAK

    logger.debug("Technical signals: " + ", ".join(f"{k}={v.value}" for k, v in signals.items()))
    return signals


def technical_score(signals: Mapping[str, TechnicalSignal]) -> int:
    """Sum of per-indicator scores."""
    return sum(signal.score for signal in signals.values())
