"""
Price-technical stretch index: how far the price has run relative to its
own averages, bands and yearly range.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, asdict
from typing import Optional
from enum import Enum
import logging

from ..features.feature_engine import TechnicalIndicators

logger = logging.getLogger(__name__)


class StretchVerdict(Enum):
    SIGNIFICANTLY_OVERVALUED = "SIGNIFICANTLY OVERVALUED"
    OVERVALUED = "OVERVALUED"
    SLIGHTLY_OVERVALUED = "SLIGHTLY OVERVALUED"
    FAIRLY_VALUED = "FAIRLY VALUED"
    SLIGHTLY_UNDERVALUED = "SLIGHTLY UNDERVALUED"
    UNDERVALUED = "UNDERVALUED"
    SIGNIFICANTLY_UNDERVALUED = "SIGNIFICANTLY UNDERVALUED"


@dataclass
class StretchValuation:
    stretch: float  # 0 to 100
    verdict: StretchVerdict
    dev_sma200: float  # %
    dev_sma50: float  # %
    pct_b: float
    rsi: float
    range52_pct: float
    high52: float
    low52: float
    fair_value: float
    sma200: Optional[float]
    sma50: Optional[float]

    def to_dict(self) -> dict:
        data = asdict(self)
        data['verdict'] = self.verdict.value
        return data


def _last(series: pd.Series) -> Optional[float]:
    value = series.iloc[-1]
    return None if pd.isna(value) else float(value)


def _verdict(stretch: float) -> StretchVerdict:
    if stretch > 80:
        return StretchVerdict.SIGNIFICANTLY_OVERVALUED
    if stretch > 65:
        return StretchVerdict.OVERVALUED
    if stretch > 55:
        return StretchVerdict.SLIGHTLY_OVERVALUED
    if stretch < 20:
        return StretchVerdict.SIGNIFICANTLY_UNDERVALUED
    if stretch < 35:
        return StretchVerdict.UNDERVALUED
    if stretch < 45:
        return StretchVerdict.SLIGHTLY_UNDERVALUED
    return StretchVerdict.FAIRLY_VALUED


def stretch_index(closes: pd.Series, range_bars: int = 252) -> StretchValuation:
    """
    Average of five 0-100 components: deviation from SMA200, deviation from
    SMA50 (scaled by 1.5), Bollinger %B, RSI and the position in the
    `range_bars` high/low range.

    Components without enough history fall back to their neutral value.
    """
    closes = pd.Series(np.asarray(closes, dtype=float))
    last = float(closes.iloc[-1])

    sma200 = _last(TechnicalIndicators.sma(closes, 200))
    sma50 = _last(TechnicalIndicators.sma(closes, 50))
    dev_sma200 = (last - sma200) / sma200 * 100 if sma200 else 0.0
    dev_sma50 = (last - sma50) / sma50 * 100 if sma50 else 0.0

    bands = TechnicalIndicators.bollinger_bands(closes)
    upper, lower = _last(bands['bb_upper']), _last(bands['bb_lower'])
    if upper is not None and lower is not None and upper != lower:
        pct_b = (last - lower) / (upper - lower)
    else:
        pct_b = 0.5

    rsi = _last(TechnicalIndicators.rsi(closes))
    if rsi is None:
        rsi = 50.0

    recent = closes.iloc[-range_bars:]
    high52, low52 = float(recent.max()), float(recent.min())
    range52_pct = (last - low52) / (high52 - low52) * 100 if high52 != low52 else 50.0

    stretch = (
        np.clip(dev_sma200, -50, 50) + 50
        + np.clip(dev_sma50 * 1.5, -50, 50) + 50
        + pct_b * 100
        + rsi
        + range52_pct
    ) / 5

    result = StretchValuation(
        stretch=float(stretch),
        verdict=_verdict(stretch),
        dev_sma200=float(dev_sma200),
        dev_sma50=float(dev_sma50),
        pct_b=float(pct_b),
        rsi=float(rsi),
        range52_pct=float(range52_pct),
        high52=high52,
        low52=low52,
        fair_value=sma200 or sma50 or last,
        sma200=sma200,
        sma50=sma50
    )
    logger.debug(f"Stretch index {result.stretch:.1f} ({result.verdict.value})")
    return result
