"""
Regime Detection Module
=======================
Trend, volatility and persistence classification of a price series,
combined into one overall market regime label.
"""

import pandas as pd
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from dataclasses import dataclass, asdict
from typing import Callable, Optional, Tuple
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class TrendDirection(Enum):
    UPTREND = "UPTREND"
    DOWNTREND = "DOWNTREND"
    SIDEWAYS = "SIDEWAYS"


class VolatilityClass(Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"


class MarketRegime(Enum):
    """Overall market regime states."""
    STRONG_UPTREND = "STRONG_UPTREND"
    STRONG_DOWNTREND = "STRONG_DOWNTREND"
    TRENDING_UPTREND = "TRENDING_UPTREND"
    TRENDING_DOWNTREND = "TRENDING_DOWNTREND"
    MEAN_REVERTING = "MEAN_REVERTING"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"
    RANGING = "RANGING"
    TRANSITIONING = "TRANSITIONING"

    @property
    def is_strong(self) -> bool:
        return self.value.startswith("STRONG_")

    @property
    def bias(self) -> int:
        """+1 for uptrend regimes, -1 for downtrend regimes, 0 otherwise."""
        if self.value.endswith("UPTREND"):
            return 1
        if self.value.endswith("DOWNTREND"):
            return -1
        return 0


@dataclass
class TrendInfo:
    direction: TrendDirection
    strength: float  # 0 to 100
    slope: float  # % of window mean per bar
    r_squared: float
    ma_alignment: TrendDirection
    confidence: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data['direction'] = self.direction.value
        data['ma_alignment'] = self.ma_alignment.value
        return data


@dataclass
class VolatilityInfo:
    current: float  # annualized %
    average: float  # annualized %
    ratio: float
    classification: VolatilityClass

    def to_dict(self) -> dict:
        data = asdict(self)
        data['classification'] = self.classification.value
        return data


@dataclass
class Regime:
    """Regime snapshot for the latest bar."""
    trend: TrendInfo
    volatility: VolatilityInfo
    hurst: float
    overall: MarketRegime

    def to_dict(self) -> dict:
        return {
            'trend': self.trend.to_dict(),
            'volatility': self.volatility.to_dict(),
            'hurst': self.hurst,
            'overall': self.overall.value
        }


RegimeRule = Callable[[TrendInfo, VolatilityInfo, float, object], Optional[MarketRegime]]


def _strong_trend(trend, vol, hurst, cfg):
    if (trend.strength > cfg.strong_trend_strength and hurst > cfg.persistent_hurst
            and trend.direction != TrendDirection.SIDEWAYS):
        return MarketRegime(f"STRONG_{trend.direction.value}")
    return None


def _trending(trend, vol, hurst, cfg):
    if trend.strength > cfg.trending_strength and trend.direction != TrendDirection.SIDEWAYS:
        return MarketRegime(f"TRENDING_{trend.direction.value}")
    return None


def _mean_reverting(trend, vol, hurst, cfg):
    if hurst < cfg.mean_reverting_hurst and vol.classification in (VolatilityClass.LOW, VolatilityClass.NORMAL):
        return MarketRegime.MEAN_REVERTING
    return None


def _high_volatility(trend, vol, hurst, cfg):
    if vol.classification == VolatilityClass.HIGH:
        return MarketRegime.HIGH_VOLATILITY
    return None


def _ranging(trend, vol, hurst, cfg):
    if (trend.direction == TrendDirection.SIDEWAYS
            and vol.classification in (VolatilityClass.LOW, VolatilityClass.NORMAL)):
        return MarketRegime.RANGING
    return None


def _transitioning(trend, vol, hurst, cfg):
    return MarketRegime.TRANSITIONING


# Evaluated in order, first match wins. Reordering changes outcomes.
REGIME_RULES: Tuple[RegimeRule, ...] = (
    _strong_trend,
    _trending,
    _mean_reverting,
    _high_volatility,
    _ranging,
    _transitioning,
)


class RegimeDetector:
    """
    Classifies the market state of a bar series.

    - Trend: least-squares slope of recent closes, confirmed by SMA20/SMA50 alignment
    - Volatility: recent annualized stdev against its historical rolling average
    - Hurst: simplified log-log slope of price-difference RMS against lag
    """

    def __init__(self, config=None):
        from ..config import RegimeConfig
        self.config = config or RegimeConfig()

    def detect_trend(self, closes: pd.Series, window: Optional[int] = None) -> TrendInfo:
        """Fit a line through the last min(window, n) closes."""
        window = window or self.config.trend_window
        prices = np.asarray(closes, dtype=float)
        n = min(window, len(prices))
        recent = prices[-n:]

        x = np.arange(n, dtype=float)
        x_mean = (n - 1) / 2
        y_mean = recent.mean() if n else 0.0

        den = ((x - x_mean) ** 2).sum()
        slope = ((x - x_mean) * (recent - y_mean)).sum() / den if den else 0.0
        norm_slope = (slope / y_mean) * 100 if y_mean else 0.0

        ss_tot = ((recent - y_mean) ** 2).sum()
        fitted = slope * x + (y_mean - slope * x_mean)
        ss_res = ((recent - fitted) ** 2).sum()
        r_squared = max(0.0, 1 - ss_res / ss_tot) if ss_tot > 0 else 0.0

        sma20 = self._last_sma(prices, 20)
        sma50 = self._last_sma(prices, 50)
        ma_alignment = TrendDirection.UPTREND if sma20 > sma50 else TrendDirection.DOWNTREND

        # Slope and MA alignment must agree, otherwise sideways
        direction = TrendDirection.SIDEWAYS
        if norm_slope > self.config.min_slope_pct and ma_alignment == TrendDirection.UPTREND:
            direction = TrendDirection.UPTREND
        elif norm_slope < -self.config.min_slope_pct and ma_alignment == TrendDirection.DOWNTREND:
            direction = TrendDirection.DOWNTREND

        return TrendInfo(
            direction=direction,
            strength=float(min(100.0, abs(norm_slope) * 10 * r_squared)),
            slope=float(norm_slope),
            r_squared=float(r_squared),
            ma_alignment=ma_alignment,
            confidence=float(r_squared)
        )

    def classify_volatility(self, returns: pd.Series, window: Optional[int] = None) -> VolatilityInfo:
        """Compare recent annualized volatility to the average rolling volatility."""
        window = window or self.config.volatility_window
        values = np.asarray(returns, dtype=float)
        values = values[~np.isnan(values) & (values != 0)]

        if len(values) < window + 2:
            return VolatilityInfo(current=0.0, average=0.0, ratio=1.0,
                                  classification=VolatilityClass.NORMAL)

        annualize = np.sqrt(252) * 100
        current = values[-window:].std() * annualize
        rolling_std = sliding_window_view(values, window).std(axis=1)
        average = rolling_std.mean() * annualize if len(rolling_std) else current
        ratio = current / average if average > 0 else 1.0

        if ratio > self.config.high_vol_ratio:
            classification = VolatilityClass.HIGH
        elif ratio > self.config.elevated_vol_ratio:
            classification = VolatilityClass.ELEVATED
        elif ratio < self.config.low_vol_ratio:
            classification = VolatilityClass.LOW
        else:
            classification = VolatilityClass.NORMAL

        return VolatilityInfo(current=float(current), average=float(average),
                              ratio=float(ratio), classification=classification)

    def hurst_exponent(self, closes: pd.Series, max_lag: Optional[int] = None) -> float:
        """
        Hurst-like persistence exponent.

        Slope of log(RMS of lagged price differences) against log(lag) for
        lags 2..max_lag-1. This is a simplified estimator, not canonical
        rescaled-range Hurst. Lags with zero RMS are skipped; 0.5 when fewer
        than two lags remain.
        """
        max_lag = max_lag or self.config.hurst_max_lag
        prices = np.asarray(closes, dtype=float)

        log_lags, log_rms = [], []
        for lag in range(2, min(max_lag, len(prices))):
            diffs = prices[lag:] - prices[:-lag]
            rms = np.sqrt(np.mean(diffs ** 2))
            if rms > 0:
                log_lags.append(np.log(lag))
                log_rms.append(np.log(rms))

        if len(log_lags) < 2:
            return 0.5

        return float(np.polyfit(log_lags, log_rms, 1)[0])

    def detect_regime(self, features: pd.DataFrame) -> Regime:
        """Combine trend, volatility and Hurst through the ordered rule cascade."""
        closes = features['close']
        returns = features['returns'] if 'returns' in features.columns else closes.pct_change().fillna(0.0)

        trend = self.detect_trend(closes)
        volatility = self.classify_volatility(returns)
        hurst = self.hurst_exponent(closes)

        overall = MarketRegime.TRANSITIONING
        for rule in REGIME_RULES:
            matched = rule(trend, volatility, hurst, self.config)
            if matched is not None:
                overall = matched
                break

        logger.debug(
            f"Regime {overall.value}: trend={trend.direction.value} "
            f"strength={trend.strength:.1f} vol={volatility.classification.value} hurst={hurst:.3f}"
        )

        return Regime(trend=trend, volatility=volatility, hurst=hurst, overall=overall)

    @staticmethod
    def _last_sma(prices: np.ndarray, period: int) -> float:
        """Latest SMA value, 0 when there is not enough history."""
        if len(prices) < period:
            return 0.0
        return float(prices[-period:].mean())
