"""
Backtest Module
===============
"""
from .strategies import (
    Strategy,
    TradeSide,
    RSIStrategy,
    MACDStrategy,
    BollingerStrategy,
    SMACrossStrategy,
    MeanReversionStrategy,
    STRATEGIES,
    get_strategy
)
from .backtest_engine import (
    BacktestEngine,
    BacktestResult,
    BacktestMetrics,
    EquityPoint,
    Trade,
    Ledger,
    PositionState
)

__all__ = [
    'Strategy',
    'TradeSide',
    'RSIStrategy',
    'MACDStrategy',
    'BollingerStrategy',
    'SMACrossStrategy',
    'MeanReversionStrategy',
    'STRATEGIES',
    'get_strategy',
    'BacktestEngine',
    'BacktestResult',
    'BacktestMetrics',
    'EquityPoint',
    'Trade',
    'Ledger',
    'PositionState'
]
