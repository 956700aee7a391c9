"""
Alpha Models Module
==================
Statistical signal generation and aggregation.

Each model reads the enriched bars and emits a 5-level signal; the engine
combines them into a weighted composite with a confidence estimate.
"""

import pandas as pd
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional
from enum import Enum
import logging

from ..features.feature_engine import StatisticalFeatures

logger = logging.getLogger(__name__)


class SignalType(Enum):
    """Trading signal types."""
    STRONG_BUY = 2
    BUY = 1
    NEUTRAL = 0
    SELL = -1
    STRONG_SELL = -2

    @property
    def score(self) -> int:
        return self.value


@dataclass
class Signal:
    """Trading signal from an alpha model."""
    strategy_name: str
    signal_type: SignalType
    metadata: Dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'strategy': self.strategy_name,
            'signal': self.signal_type.name,
            'signal_value': self.signal_type.value,
            **self.metadata
        }


@dataclass
class AggregateSignal:
    """Weighted composite of the statistical signals."""
    signal_type: SignalType
    score: float
    confidence: float  # 0 to 1

    def to_dict(self) -> dict:
        return {
            'signal': self.signal_type.name,
            'score': self.score,
            'confidence': self.confidence
        }


@dataclass
class StatisticalSignals:
    """All statistical signals for one analysis."""
    zscore: Signal
    momentum: Signal
    volume: Signal
    aggregate: AggregateSignal

    def to_dict(self) -> dict:
        return {
            'zscore': self.zscore.to_dict(),
            'momentum': self.momentum.to_dict(),
            'volume': self.volume.to_dict(),
            'aggregate': self.aggregate.to_dict()
        }


def _window_stats(values: np.ndarray):
    """Mean and population std of a window."""
    if len(values) == 0:
        return 0.0, 0.0
    return float(values.mean()), float(values.std())


class AlphaModel(ABC):
    """Abstract base class for alpha models."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def generate_signal(self, features: pd.DataFrame) -> Signal:
        """Generate trading signal from the enriched bars."""
        pass

    def _create_signal(self, signal_type: SignalType, **metadata) -> Signal:
        return Signal(strategy_name=self.name, signal_type=signal_type, metadata=metadata)


class ZScoreAlpha(AlphaModel):
    """
    Z-Score Strategy

    Contrarian: a close far above its rolling mean is a sell, far below a buy.
    """

    def __init__(self, window: int = 20):
        super().__init__("zscore")
        self.window = window

    def generate_signal(self, features: pd.DataFrame) -> Signal:
        closes = features['close'].to_numpy(dtype=float)
        recent = closes[-self.window:]
        mean, std = _window_stats(recent)
        z = StatisticalFeatures.zscore(recent)

        if z > 2:
            signal_type, probability = SignalType.STRONG_SELL, 0.95
        elif z > 1:
            signal_type, probability = SignalType.SELL, 0.68
        elif z < -2:
            signal_type, probability = SignalType.STRONG_BUY, 0.95
        elif z < -1:
            signal_type, probability = SignalType.BUY, 0.68
        else:
            signal_type, probability = SignalType.NEUTRAL, 0.5

        return self._create_signal(signal_type, zscore=z, probability=probability, mean=mean, std=std)


class MomentumAlpha(AlphaModel):
    """
    Momentum Strategy

    Percent change over several lookbacks. A strong signal needs every
    available lookback to agree in sign.
    """

    def __init__(self, lookbacks=(5, 10, 20, 50), strong_pct: float = 5.0, weak_pct: float = 2.0):
        super().__init__("momentum")
        self.lookbacks = list(lookbacks)
        self.strong_pct = strong_pct
        self.weak_pct = weak_pct

    def generate_signal(self, features: pd.DataFrame) -> Signal:
        closes = features['close'].to_numpy(dtype=float)
        current = closes[-1]

        by_period = {}
        for period in self.lookbacks:
            if len(closes) > period:
                by_period[f'{period}d'] = (current / closes[-1 - period] - 1) * 100

        changes = list(by_period.values())
        avg = float(np.mean(changes)) if changes else 0.0
        all_positive = all(c > 0 for c in changes)
        all_negative = all(c < 0 for c in changes)

        if all_positive and avg > self.strong_pct:
            signal_type = SignalType.STRONG_BUY
        elif avg > self.weak_pct:
            signal_type = SignalType.BUY
        elif all_negative and avg < -self.strong_pct:
            signal_type = SignalType.STRONG_SELL
        elif avg < -self.weak_pct:
            signal_type = SignalType.SELL
        else:
            signal_type = SignalType.NEUTRAL

        return self._create_signal(
            signal_type,
            avg_momentum=avg,
            by_period=by_period,
            consistency="HIGH" if (all_positive or all_negative) else "LOW"
        )


class VolumeAlpha(AlphaModel):
    """
    Volume Strategy

    Unusual volume confirms the direction of the latest bar.
    """

    def __init__(self, window: int = 20):
        super().__init__("volume")
        self.window = window

    def generate_signal(self, features: pd.DataFrame) -> Signal:
        volumes = features['volume'].to_numpy(dtype=float)
        mean, std = _window_stats(volumes[-self.window:])
        z = (volumes[-1] - mean) / std if std > 0 else 0.0

        last_return = 0.0
        if 'returns' in features.columns and pd.notna(features['returns'].iloc[-1]):
            last_return = float(features['returns'].iloc[-1])

        if z > 2 and last_return > 0:
            signal_type = SignalType.STRONG_BUY
        elif z > 1 and last_return > 0:
            signal_type = SignalType.BUY
        elif z > 2 and last_return < 0:
            signal_type = SignalType.STRONG_SELL
        elif z > 1 and last_return < 0:
            signal_type = SignalType.SELL
        else:
            signal_type = SignalType.NEUTRAL

        return self._create_signal(
            signal_type,
            volume_zscore=z,
            avg_volume=mean,
            current_volume=float(volumes[-1])
        )


class AlphaEngine:
    """
    Main alpha engine combining the statistical models.

    Responsibilities:
    - Run the z-score, momentum and volume models
    - Combine their signals with fixed weights
    - Map the composite score back onto the 5-level scale
    """

    def __init__(self, config=None):
        from ..config import SignalConfig
        self.config = config or SignalConfig()

        self.models: Dict[str, AlphaModel] = {
            'zscore': ZScoreAlpha(window=self.config.zscore_window),
            'momentum': MomentumAlpha(
                lookbacks=self.config.momentum_lookbacks,
                strong_pct=self.config.strong_momentum_pct,
                weak_pct=self.config.weak_momentum_pct
            ),
            'volume': VolumeAlpha(window=self.config.volume_window)
        }

        # Weights sum to 0.80 by default; not renormalized
        self.weights = self.config.aggregate_weights

    def generate_signals(self, features: pd.DataFrame) -> StatisticalSignals:
        """
        Generate every statistical signal for the latest bar.

        Args:
            features: Enriched bars

        Returns:
            StatisticalSignals with the per-model signals and the aggregate
        """
        signals = {}
        for name, model in self.models.items():
            signals[name] = model.generate_signal(features)
            logger.debug(f"{name} signal: {signals[name].signal_type.name}")

        aggregate = self.aggregate(signals)

        return StatisticalSignals(
            zscore=signals['zscore'],
            momentum=signals['momentum'],
            volume=signals['volume'],
            aggregate=aggregate
        )

    def aggregate(self, signals: Dict[str, Optional[Signal]]) -> AggregateSignal:
        """Combine signals using the configured weights."""
        total = 0.0
        for name, weight in self.weights.items():
            signal = signals.get(name)
            if signal is not None:
                total += signal.signal_type.score * weight

        if total >= 1.5:
            signal_type, cap = SignalType.STRONG_BUY, 0.95
        elif total >= 0.5:
            signal_type, cap = SignalType.BUY, 0.85
        elif total <= -1.5:
            signal_type, cap = SignalType.STRONG_SELL, 0.95
        elif total <= -0.5:
            signal_type, cap = SignalType.SELL, 0.85
        else:
            return AggregateSignal(signal_type=SignalType.NEUTRAL, score=total, confidence=0.5)

        return AggregateSignal(
            signal_type=signal_type,
            score=total,
            confidence=min(cap, 0.5 + abs(total) * 0.3)
        )
