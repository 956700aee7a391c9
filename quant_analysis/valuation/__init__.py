"""
Valuation Module
================
Modeled fundamentals, DCF/DDM/multiples evaluation and the price stretch index.
"""

from .fundamentals import (
    Fundamentals,
    FiscalPeriod,
    generate_fundamentals,
    hash_code,
    seeded_random,
    seeded_range
)
from .models import (
    ValuationSignal,
    ValuationAssumptions,
    ValuationModelResult,
    ValuationEngine,
    dcf_value,
    ddm_value
)
from .stretch import StretchVerdict, StretchValuation, stretch_index

__all__ = [
    'Fundamentals',
    'FiscalPeriod',
    'generate_fundamentals',
    'hash_code',
    'seeded_random',
    'seeded_range',
    'ValuationSignal',
    'ValuationAssumptions',
    'ValuationModelResult',
    'ValuationEngine',
    'dcf_value',
    'ddm_value',
    'StretchVerdict',
    'StretchValuation',
    'stretch_index'
]
