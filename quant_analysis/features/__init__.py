"""
Feature Engineering Module
==========================
"""
from .feature_engine import (
    FeatureEngine,
    FeatureSet,
    TechnicalIndicators,
    StatisticalFeatures,
    normalize_bars,
    frame_to_records
)

__all__ = [
    'FeatureEngine',
    'FeatureSet',
    'TechnicalIndicators',
    'StatisticalFeatures',
    'normalize_bars',
    'frame_to_records'
]
