"""
Analysis Orchestrator
=====================
Main pipeline orchestrating all components:
    BARS → FEATURES → REGIME / SIGNALS / RISK → VALUATION → RECOMMENDATION

Every stage is a pure transform of the bars it is given; the orchestrator
holds no state between calls, so analyses of different tickers can run in
parallel.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union
import logging

from .config import AnalysisConfig
from .exceptions import InsufficientDataError, QuantAnalysisError
from .features import FeatureEngine, normalize_bars, frame_to_records
from .regime import RegimeDetector, Regime, RegimePlaybook, get_playbook
from .alpha import AlphaEngine, StatisticalSignals, TechnicalSignal, read_technical_signals
from .risk import RiskEngine, RiskProfile
from .valuation import (
    ValuationEngine,
    ValuationModelResult,
    Fundamentals,
    StretchValuation,
    generate_fundamentals,
    stretch_index
)
from .recommendation import RecommendationEngine, Recommendation
from .backtest import BacktestEngine, BacktestResult, STRATEGIES

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything produced by one analysis run."""
    ticker: str
    data: pd.DataFrame
    current_price: float
    tech_signals: Dict[str, TechnicalSignal]
    regime: Regime
    playbook: RegimePlaybook
    stat_signals: StatisticalSignals
    risk: RiskProfile
    valuation: StretchValuation
    fundamentals: Fundamentals
    valuation_models: ValuationModelResult
    recommendation: Recommendation

    @property
    def target(self) -> Optional[float]:
        return self.recommendation.target

    @property
    def stop_loss(self) -> Optional[float]:
        return self.recommendation.stop_loss

    def to_dict(self, include_data: bool = True) -> dict:
        result = {
            'ticker': self.ticker,
            'current_price': self.current_price,
            'tech_signals': {k: v.value for k, v in self.tech_signals.items()},
            'regime': self.regime.to_dict(),
            'playbook': self.playbook.to_dict(),
            'stat_signals': self.stat_signals.to_dict(),
            'risk': self.risk.to_dict(),
            'valuation': self.valuation.to_dict(),
            'fundamentals': self.fundamentals.to_dict(),
            'valuation_models': self.valuation_models.to_dict(),
            'recommendation': self.recommendation.to_dict(),
            'target': self.target,
            'stop_loss': self.stop_loss
        }
        if include_data:
            result['data'] = frame_to_records(self.data)
        return result


class AnalysisEngine:
    """
    Main analysis orchestrator.

    Coordinates the pipeline for one ticker:
    1. FEATURES: Attach indicators to the bars
    2. SIGNALS: Technical readings and statistical signals on the latest bar
    3. REGIME / RISK: Market state and return-based risk
    4. VALUATION: Stretch index, modeled fundamentals, intrinsic-value models
    5. RECOMMENDATION: Blended action with ATR target and stop
    """

    def __init__(self, config: AnalysisConfig = None):
        self.config = config or AnalysisConfig()

        self.feature_engine = FeatureEngine(config=self.config.features)
        self.regime_detector = RegimeDetector(config=self.config.regime)
        self.alpha_engine = AlphaEngine(config=self.config.signals)
        self.risk_engine = RiskEngine(config=self.config.risk)
        self.valuation_engine = ValuationEngine(config=self.config.valuation)
        self.recommendation_engine = RecommendationEngine(config=self.config.recommendation)

    def analyze(self, ticker: str, bars: Union[pd.DataFrame, List[dict]]) -> AnalysisResult:
        """
        Run the full analysis for one ticker.

        Args:
            ticker: Symbol; also seeds the modeled fundamentals
            bars: OHLCV bars, oldest first

        Returns:
            AnalysisResult

        Raises:
            InsufficientDataError: fewer than `min_bars` bars
            InvalidBarsError: required columns are missing
        """
        df = normalize_bars(bars)
        if len(df) < self.config.min_bars:
            raise InsufficientDataError(len(df), self.config.min_bars, context=f"analysis of {ticker or 'series'}")

        feature_set = self.feature_engine.compute_features(df, symbol=ticker)
        data = feature_set.features
        last = data.iloc[-1].to_dict()
        current_price = float(last['close'])

        tech_signals = read_technical_signals(last)
        regime = self.regime_detector.detect_regime(data)
        stat_signals = self.alpha_engine.generate_signals(data)
        risk = self.risk_engine.calculate(data['returns'])

        valuation = stretch_index(data['close'], self.config.valuation.fifty_two_week_bars)
        fundamentals = generate_fundamentals(ticker, current_price)
        assumptions = self.valuation_engine.build_assumptions(fundamentals, current_price, risk)
        valuation_models = self.valuation_engine.evaluate(assumptions, current_price)

        recommendation = self.recommendation_engine.recommend(
            tech_signals,
            stat_signals.aggregate,
            regime.overall,
            risk,
            valuation_models,
            current_price=current_price,
            atr=last.get('atr')
        )

        logger.info(
            f"Analyzed {ticker or 'series'}: {len(data)} bars, {recommendation.action.value} "
            f"({recommendation.confidence:.0%}), regime {regime.overall.value}"
        )

        return AnalysisResult(
            ticker=ticker,
            data=data,
            current_price=current_price,
            tech_signals=tech_signals,
            regime=regime,
            playbook=get_playbook(regime.overall),
            stat_signals=stat_signals,
            risk=risk,
            valuation=valuation,
            fundamentals=fundamentals,
            valuation_models=valuation_models,
            recommendation=recommendation
        )

    def backtest(self, bars, strategy: str = "rsi", params: Optional[dict] = None,
                 initial_capital: Optional[float] = None, commission: Optional[float] = None) -> BacktestResult:
        """Run a strategy backtest with this engine's backtest configuration."""
        return BacktestEngine(config=self.config.backtest).run(
            bars, strategy, params=params, initial_capital=initial_capital, commission=commission
        )


def compare(results: Iterable[AnalysisResult], sort_by: Optional[str] = None,
            ascending: bool = False) -> pd.DataFrame:
    """
    Side-by-side summary of several analyses, one row per ticker.

    Columns: price, action, confidence, sharpe, volatility, max_drawdown,
    momentum_20 (20-bar % change, NaN when too short), stretch, regime.
    """
    rows = []
    for result in results:
        closes = result.data['close'].to_numpy(dtype=float)
        momentum = (closes[-1] / closes[-21] - 1) * 100 if len(closes) > 20 else np.nan
        rows.append({
            'ticker': result.ticker,
            'price': result.current_price,
            'action': result.recommendation.action.value,
            'confidence': result.recommendation.confidence,
            'sharpe': result.risk.sharpe,
            'volatility': result.risk.volatility,
            'max_drawdown': result.risk.max_drawdown,
            'momentum_20': momentum,
            'stretch': result.valuation.stretch,
            'regime': result.regime.overall.value
        })

    columns = ['ticker', 'price', 'action', 'confidence', 'sharpe', 'volatility',
               'max_drawdown', 'momentum_20', 'stretch', 'regime']
    table = pd.DataFrame(rows, columns=columns).set_index('ticker')
    if sort_by:
        table = table.sort_values(sort_by, ascending=ascending)
    return table


def _load_bars(path: str) -> pd.DataFrame:
    """Read bars from CSV; a date/timestamp column is parsed when present."""
    df = pd.read_csv(path)
    for col in df.columns:
        if str(col).lower() in ('date', 'timestamp', 'datetime'):
            df[col] = pd.to_datetime(df[col])
            break
    return df


def _print_analysis(result: AnalysisResult):
    rec = result.recommendation
    print("\n" + "=" * 50)
    print(f"ANALYSIS: {result.ticker}")
    print("=" * 50)
    print(f"Price: {result.current_price:.2f}")
    print(f"Recommendation: {rec.action.value} (confidence {rec.confidence:.0%}, score {rec.score:.2f})")
    if rec.target is not None:
        print(f"Target: {rec.target:.2f}  Stop: {rec.stop_loss:.2f}")
    print(f"Regime: {result.regime.overall.value} - {result.playbook.strategy}")
    print(f"Trend: {result.regime.trend.direction.value} strength {result.regime.trend.strength:.1f}, "
          f"Hurst {result.regime.hurst:.3f}")
    print(f"Risk: {result.risk.risk_level.value} vol {result.risk.volatility:.1f}% "
          f"sharpe {result.risk.sharpe:.2f} maxDD {result.risk.max_drawdown:.1f}%")
    print(f"Stretch: {result.valuation.stretch:.1f} ({result.valuation.verdict.value})")
    models = result.valuation_models
    anchor = f"{models.anchor:.2f}" if models.anchor is not None else "n/a"
    print(f"Valuation (modeled fundamentals): anchor {anchor}, {models.signal.value}")
    for issue in models.issues:
        print(f"  ! {issue}")


def _print_backtest(result: BacktestResult):
    print("\n" + "=" * 50)
    print(f"BACKTEST RESULTS: {result.strategy}")
    print("=" * 50)
    for key, value in result.metrics.to_dict().items():
        if isinstance(value, float):
            print(f"{key}: {value:.4f}")
        else:
            print(f"{key}: {value}")


def main(argv=None):
    """Main entry point for the analysis CLI."""
    import argparse

    parser = argparse.ArgumentParser(description='Quantitative Stock Analysis')
    parser.add_argument('--config', type=str, help='Path to config file')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze_parser = subparsers.add_parser('analyze', help='Analyze one ticker')
    analyze_parser.add_argument('--csv', required=True, help='CSV file with OHLCV bars')
    analyze_parser.add_argument('--ticker', required=True, help='Ticker symbol')

    backtest_parser = subparsers.add_parser('backtest', help='Backtest a strategy')
    backtest_parser.add_argument('--csv', required=True, help='CSV file with OHLCV bars')
    backtest_parser.add_argument('--strategy', choices=sorted(STRATEGIES), default='rsi',
                                 help='Strategy key')
    backtest_parser.add_argument('--capital', type=float, help='Initial capital')
    backtest_parser.add_argument('--commission', type=float, help='Commission per order')

    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = AnalysisConfig.load(args.config) if args.config else AnalysisConfig()
    engine = AnalysisEngine(config)

    try:
        bars = _load_bars(args.csv)
        if args.command == 'analyze':
            _print_analysis(engine.analyze(args.ticker, bars))
        else:
            _print_backtest(engine.backtest(
                bars, args.strategy, initial_capital=args.capital, commission=args.commission
            ))
    except QuantAnalysisError as e:
        logger.error(str(e))
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
