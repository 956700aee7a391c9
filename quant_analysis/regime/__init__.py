"""
Regime Detection Module
=======================
"""
from .regime_detector import (
    RegimeDetector,
    Regime,
    TrendInfo,
    VolatilityInfo,
    TrendDirection,
    VolatilityClass,
    MarketRegime,
    REGIME_RULES
)
from .playbook import RegimePlaybook, PLAYBOOKS, get_playbook

__all__ = [
    'RegimeDetector',
    'Regime',
    'TrendInfo',
    'VolatilityInfo',
    'TrendDirection',
    'VolatilityClass',
    'MarketRegime',
    'REGIME_RULES',
    'RegimePlaybook',
    'PLAYBOOKS',
    'get_playbook'
]
