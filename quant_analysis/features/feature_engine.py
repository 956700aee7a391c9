"""
Feature Engineering Module
==========================
Technical indicators computed over an OHLCV bar frame.

Every indicator returns a series aligned with the input bars. Positions
without enough history hold NaN; nothing is forward- or zero-filled.
"""

import pandas as pd
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Dict, List, Union
from dataclasses import dataclass
import logging

from ..exceptions import InvalidBarsError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['open', 'high', 'low', 'close', 'volume']


@dataclass
class FeatureSet:
    """Container for computed features."""
    symbol: str
    features: pd.DataFrame
    feature_names: List[str]
    timestamp: pd.Timestamp

    def to_records(self) -> List[dict]:
        """Enriched bars as dicts, with None marking insufficient history."""
        return frame_to_records(self.features)


def frame_to_records(df: pd.DataFrame) -> List[dict]:
    """Convert a frame to row dicts, mapping NaN to None."""
    return df.astype(object).where(df.notna(), None).to_dict('records')


def normalize_bars(bars: Union[pd.DataFrame, List[dict]]) -> pd.DataFrame:
    """
    Bring raw bars into the canonical frame layout.

    Column names are lower-cased, a datetime-like index becomes a 'date'
    column and rows are re-indexed 0..n-1 so that positions are bar indices.
    """
    df = bars.copy() if isinstance(bars, pd.DataFrame) else pd.DataFrame(list(bars))
    df.columns = [str(c).lower() for c in df.columns]

    if 'date' not in df.columns:
        if 'timestamp' in df.columns:
            df = df.rename(columns={'timestamp': 'date'})
        elif isinstance(df.index, pd.DatetimeIndex) or df.index.name is not None:
            df = df.rename_axis('date').reset_index()
        else:
            df['date'] = df.index

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidBarsError(f"Bars are missing required columns: {missing}")

    for col in REQUIRED_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce').astype(float)

    return df.reset_index(drop=True)


def _window_sum(values: np.ndarray, period: int) -> np.ndarray:
    """Trailing-window sums recomputed from scratch; NaN until a full window exists."""
    out = np.full(len(values), np.nan)
    if period <= 0 or len(values) < period:
        return out
    out[period - 1:] = sliding_window_view(values, period).sum(axis=1)
    return out


class TechnicalIndicators:
    """Technical analysis indicators."""

    @staticmethod
    def sma(prices: pd.Series, period: int) -> pd.Series:
        """Simple Moving Average. NaN until a full window is available."""
        return prices.rolling(window=period).mean()

    @staticmethod
    def ema(prices: pd.Series, period: int) -> pd.Series:
        """
        Exponential Moving Average.

        Seeded with the first price (no SMA warm-up), so it is defined from
        the first bar onwards.
        """
        return prices.ewm(span=period, adjust=False).mean()

    @staticmethod
    def rsi(prices: pd.Series, period: int = 14) -> pd.Series:
        """
        Relative Strength Index.

        Average gain and loss are simple means of the trailing `period`
        deltas, recomputed at every bar. RSI is 100 when the average loss is
        exactly zero.
        """
        values = prices.to_numpy(dtype=float)
        result = np.full(len(values), np.nan)

        if len(values) > period:
            delta = np.diff(values)
            avg_gain = _window_sum(np.where(delta > 0, delta, 0.0), period)[period - 1:] / period
            avg_loss = _window_sum(np.where(delta < 0, -delta, 0.0), period)[period - 1:] / period

            ratio = np.divide(avg_gain, avg_loss, out=np.zeros_like(avg_gain), where=avg_loss > 0)
            result[period:] = np.where(avg_loss == 0, 100.0, 100 - 100 / (1 + ratio))

        return pd.Series(result, index=prices.index)

    @staticmethod
    def macd(prices: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> Dict[str, pd.Series]:
        """Moving Average Convergence Divergence."""
        ema_fast = TechnicalIndicators.ema(prices, fast)
        ema_slow = TechnicalIndicators.ema(prices, slow)
        macd_line = ema_fast - ema_slow
        signal_line = TechnicalIndicators.ema(macd_line, signal)
        histogram = macd_line - signal_line

        return {
            'macd': macd_line,
            'macd_signal': signal_line,
            'macd_hist': histogram
        }

    @staticmethod
    def bollinger_bands(prices: pd.Series, period: int = 20, std_dev: float = 2.0) -> Dict[str, pd.Series]:
        """Bollinger Bands around the SMA, using the population standard deviation."""
        sma = prices.rolling(window=period).mean()
        std = prices.rolling(window=period).std(ddof=0)

        upper = sma + (std * std_dev)
        lower = sma - (std * std_dev)

        # Percent B: where price is relative to bands (0.5 for zero-width bands)
        width = upper - lower
        pct_b = ((prices - lower) / width.where(width != 0)).mask(width == 0, 0.5)

        return {
            'bb_upper': upper,
            'bb_middle': sma,
            'bb_lower': lower,
            'bb_pct_b': pct_b
        }

    @staticmethod
    def true_range(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
        """True range; the first bar uses high - low."""
        prev_close = close.shift(1)

        tr1 = high - low
        tr2 = (high - prev_close).abs()
        tr3 = (low - prev_close).abs()

        return pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)

    @staticmethod
    def atr(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.Series:
        """Average True Range as a simple (not Wilder) average of the true range."""
        return TechnicalIndicators.true_range(high, low, close).rolling(window=period).mean()

    @staticmethod
    def stochastic(high: pd.Series, low: pd.Series, close: pd.Series,
                   k_period: int = 14, d_period: int = 3) -> Dict[str, pd.Series]:
        """Stochastic Oscillator. %K is 50 over a zero-range window."""
        lowest_low = low.rolling(window=k_period).min()
        highest_high = high.rolling(window=k_period).max()
        price_range = highest_high - lowest_low

        stoch_k = (100 * (close - lowest_low) / price_range.where(price_range != 0)).mask(price_range == 0, 50.0)
        stoch_d = stoch_k.fillna(50.0).rolling(window=d_period).mean()

        return {
            'stoch_k': stoch_k,
            'stoch_d': stoch_d
        }

    @staticmethod
    def adx(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> Dict[str, pd.Series]:
        """
        Average Directional Index.

        Directional movement and true range are summed over each trailing
        window from scratch; the reported ADX is the DX of that window.
        """
        n = len(close)
        prev_close = close.shift(1)
        true_range = pd.concat(
            [high - low, (high - prev_close).abs(), (low - prev_close).abs()], axis=1
        ).max(axis=1, skipna=False)

        up_move = high.diff()
        down_move = -low.diff()
        plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0.0)
        minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0.0)

        # Bar 0 has no previous bar, so windows start at bar 1
        tr_sum = _window_sum(true_range.to_numpy(dtype=float)[1:], period)
        plus_sum = _window_sum(plus_dm.to_numpy(dtype=float)[1:], period)
        minus_sum = _window_sum(minus_dm.to_numpy(dtype=float)[1:], period)

        plus_di = np.full(n, np.nan)
        minus_di = np.full(n, np.nan)
        adx = np.full(n, np.nan)

        if n > period:
            ts, dp, dn = tr_sum[period - 1:], plus_sum[period - 1:], minus_sum[period - 1:]
            pdi = np.divide(100 * dp, ts, out=np.zeros_like(ts), where=ts > 0)
            mdi = np.divide(100 * dn, ts, out=np.zeros_like(ts), where=ts > 0)
            di_total = pdi + mdi
            dx = np.divide(100 * np.abs(pdi - mdi), di_total, out=np.zeros_like(di_total), where=di_total > 0)

            plus_di[period:] = pdi
            minus_di[period:] = mdi
            adx[period:] = dx

        return {
            'adx': pd.Series(adx, index=close.index),
            'plus_di': pd.Series(plus_di, index=close.index),
            'minus_di': pd.Series(minus_di, index=close.index)
        }


class StatisticalFeatures:
    """Statistical and mathematical features."""

    @staticmethod
    def returns(prices: pd.Series) -> pd.Series:
        """Simple bar-over-bar returns; the first bar is 0."""
        return prices.pct_change().fillna(0.0)

    @staticmethod
    def log_returns(prices: pd.Series) -> pd.Series:
        """Log returns; the first bar is 0."""
        return np.log(prices / prices.shift(1)).fillna(0.0)

    @staticmethod
    def zscore(values: np.ndarray) -> float:
        """Z-score of the last value against the window mean and population std; 0 for a flat window."""
        values = np.asarray(values, dtype=float)
        if len(values) == 0:
            return 0.0
        std = values.std()
        return float((values[-1] - values.mean()) / std) if std > 0 else 0.0


class FeatureEngine:
    """
    Main feature engineering class.

    Attaches every indicator the downstream engines read to a copy of the
    input bars.
    """

    def __init__(self, config=None):
        from ..config import FeatureConfig
        self.config = config or FeatureConfig()

        self.technical = TechnicalIndicators()
        self.statistical = StatisticalFeatures()

    def compute_features(self, bars: Union[pd.DataFrame, List[dict]], symbol: str = "") -> FeatureSet:
        """
        Compute all features for a given OHLCV frame.

        Args:
            bars: Frame (or list of dicts) with open, high, low, close, volume
            symbol: Symbol name for reference

        Returns:
            FeatureSet with the enriched bars
        """
        df = normalize_bars(bars)
        features = df.copy()
        feature_names = []

        close, high, low = df['close'], df['high'], df['low']

        # Returns
        features['returns'] = self.statistical.returns(close)
        features['log_returns'] = self.statistical.log_returns(close)
        feature_names += ['returns', 'log_returns']

        # Moving averages
        for period in self.config.sma_periods:
            col_name = f'sma_{period}'
            features[col_name] = self.technical.sma(close, period)
            feature_names.append(col_name)

        # Oscillators
        features['rsi'] = self.technical.rsi(close, self.config.rsi_period)
        feature_names.append('rsi')

        macd = self.technical.macd(
            close,
            self.config.macd_fast,
            self.config.macd_slow,
            self.config.macd_signal
        )
        for name, series in macd.items():
            features[name] = series
            feature_names.append(name)

        stoch = self.technical.stochastic(
            high, low, close,
            self.config.stoch_k_period,
            self.config.stoch_d_period
        )
        for name, series in stoch.items():
            features[name] = series
            feature_names.append(name)

        # Volatility
        bb = self.technical.bollinger_bands(
            close,
            self.config.bollinger_period,
            self.config.bollinger_std
        )
        for name, series in bb.items():
            features[name] = series
            feature_names.append(name)

        features['atr'] = self.technical.atr(high, low, close, self.config.atr_period)
        feature_names.append('atr')

        # Trend
        adx = self.technical.adx(high, low, close, self.config.adx_period)
        for name, series in adx.items():
            features[name] = series
            feature_names.append(name)

        logger.debug(f"Computed {len(feature_names)} features for {symbol or 'series'} over {len(df)} bars")

        return FeatureSet(
            symbol=symbol,
            features=features,
            feature_names=feature_names,
            timestamp=pd.Timestamp.now()
        )
