"""
Alpha Module
============
Statistical signal models, their weighted aggregate and the technical
signal reading of the latest bar.
"""

from .alpha_models import (
    SignalType,
    Signal,
    AggregateSignal,
    StatisticalSignals,
    AlphaModel,
    ZScoreAlpha,
    MomentumAlpha,
    VolumeAlpha,
    AlphaEngine
)
from .technical_signals import TechnicalSignal, read_technical_signals, technical_score

__all__ = [
    'SignalType',
    'Signal',
    'AggregateSignal',
    'StatisticalSignals',
    'AlphaModel',
    'ZScoreAlpha',
    'MomentumAlpha',
    'VolumeAlpha',
    'AlphaEngine',
    'TechnicalSignal',
    'read_technical_signals',
    'technical_score'
]
