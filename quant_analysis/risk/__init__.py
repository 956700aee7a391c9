"""
Risk Engine Module
==================
"""
from .risk_engine import (
    RiskEngine,
    RiskProfile,
    RiskLevel
)

__all__ = [
    'RiskEngine',
    'RiskProfile',
    'RiskLevel'
]
