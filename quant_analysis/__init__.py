"""
Quantitative Stock Analysis
===========================

A single-instrument analysis and backtesting toolkit implementing:

- Technical indicator library (SMA, EMA, RSI, MACD, Bollinger, ATR, Stochastic, ADX)
- Market regime detection (trend, volatility class, Hurst persistence)
- Statistical signals (z-score, momentum, volume) with a weighted aggregate
- Return-based risk profile (volatility, Sharpe, Sortino, drawdown, VaR/CVaR)
- Valuation: price stretch index and DCF/DDM/multiples on MODELED fundamentals
- Blended BUY/HOLD/SELL recommendation with ATR target and stop
- Long-only strategy backtests and a paper trading portfolio

Fundamentals are synthetic and deterministic per ticker. They are labelled
"Modeled" and are not real financial data.

PIPELINE:
    ┌─────────┐
    │  BARS   │  ← OHLCV supplied by the caller
    └────┬────┘
         ↓
    ┌──────────────┐
    │ FEATURE ENG. │  ← SMA, EMA, RSI, MACD, BB, ATR, Stoch, ADX
    └────┬─────────┘
         ↓
    ┌──────────────────────────────┐
    │ REGIME / SIGNALS / RISK      │  ← market state, alpha, risk tier
    └────┬─────────────────────────┘
         ↓
    ┌──────────────┐
    │ VALUATION    │  ← stretch index, DCF / DDM / multiples
    └────┬─────────┘
         ↓
    ┌────────────────┐
    │ RECOMMENDATION │  ← action, confidence, target, stop
    └────────────────┘

USAGE:
    # Analysis report
    python -m quant_analysis.orchestrator analyze --csv bars.csv --ticker AAPL

    # Backtesting
    python -m quant_analysis.orchestrator backtest --csv bars.csv --strategy macd --capital 50000

    # Programmatic usage
    from quant_analysis import AnalysisEngine, AnalysisConfig

    engine = AnalysisEngine(AnalysisConfig())
    result = engine.analyze("AAPL", bars)
    print(result.recommendation.action.value)

MODULES:
    - features: Indicator library
    - regime: Regime detection and per-regime playbook
    - alpha: Statistical signal models and technical signal reading
    - risk: Risk profile
    - valuation: Modeled fundamentals, intrinsic-value models, stretch index
    - recommendation: Recommendation synthesizer
    - backtest: Strategies and backtest simulator
    - paper_trading: Paper portfolio
"""

from .config import AnalysisConfig, DEFAULT_CONFIG
from .exceptions import QuantAnalysisError, InsufficientDataError, InvalidBarsError, UnknownStrategyError
from .orchestrator import AnalysisEngine, AnalysisResult, compare, main
from .features import FeatureEngine, FeatureSet, TechnicalIndicators
from .regime import RegimeDetector, Regime, MarketRegime, get_playbook
from .alpha import AlphaEngine, SignalType, TechnicalSignal
from .risk import RiskEngine, RiskProfile, RiskLevel
from .valuation import ValuationEngine, ValuationAssumptions, generate_fundamentals, stretch_index
from .recommendation import RecommendationEngine, Recommendation, Action
from .backtest import BacktestEngine, BacktestResult, STRATEGIES
from .paper_trading import PaperPortfolio, TradeResult

__version__ = "1.0.0"
__all__ = [
    # Main
    'AnalysisEngine',
    'AnalysisResult',
    'AnalysisConfig',
    'DEFAULT_CONFIG',
    'compare',
    'main',

    # Errors
    'QuantAnalysisError',
    'InsufficientDataError',
    'InvalidBarsError',
    'UnknownStrategyError',

    # Features
    'FeatureEngine',
    'FeatureSet',
    'TechnicalIndicators',

    # Regime
    'RegimeDetector',
    'Regime',
    'MarketRegime',
    'get_playbook',

    # Alpha
    'AlphaEngine',
    'SignalType',
    'TechnicalSignal',

    # Risk
    'RiskEngine',
    'RiskProfile',
    'RiskLevel',

    # Valuation
    'ValuationEngine',
    'ValuationAssumptions',
    'generate_fundamentals',
    'stretch_index',

    # Recommendation
    'RecommendationEngine',
    'Recommendation',
    'Action',

    # Backtest
    'BacktestEngine',
    'BacktestResult',
    'STRATEGIES',

    # Paper trading
    'PaperPortfolio',
    'TradeResult'
]
