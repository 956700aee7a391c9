"""
Configuration Management
========================
Central configuration for the analysis pipeline and the backtest simulator.
"""

from dataclasses import dataclass, field, asdict, fields
from typing import List, Dict
import json
import os


@dataclass
class FeatureConfig:
    """Indicator library configuration."""
    # Moving averages
    sma_periods: List[int] = field(default_factory=lambda: [20, 50, 200])

    # Oscillators
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    stoch_k_period: int = 14
    stoch_d_period: int = 3

    # Volatility
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    atr_period: int = 14

    # Trend
    adx_period: int = 14


@dataclass
class RegimeConfig:
    """Regime detector configuration."""
    trend_window: int = 50
    volatility_window: int = 20
    hurst_max_lag: int = 20

    # Normalized slope (% of window mean per bar) needed for a directional trend
    min_slope_pct: float = 0.1

    # Rule cascade thresholds
    strong_trend_strength: float = 60.0
    trending_strength: float = 40.0
    persistent_hurst: float = 0.55
    mean_reverting_hurst: float = 0.45

    # Volatility ratio buckets
    high_vol_ratio: float = 1.5
    elevated_vol_ratio: float = 1.2
    low_vol_ratio: float = 0.8


@dataclass
class SignalConfig:
    """Statistical signal aggregator configuration."""
    zscore_window: int = 20
    momentum_lookbacks: List[int] = field(default_factory=lambda: [5, 10, 20, 50])
    volume_window: int = 20

    # Aggregate weights. They sum to 0.80, not 1.0; kept as-is.
    aggregate_weights: Dict[str, float] = field(default_factory=lambda: {
        "zscore": 0.25,
        "momentum": 0.30,
        "volume": 0.25
    })

    # Momentum buckets (percent)
    strong_momentum_pct: float = 5.0
    weak_momentum_pct: float = 2.0


@dataclass
class RiskConfig:
    """Risk engine configuration."""
    trading_days: int = 252
    risk_free_rate: float = 0.02
    min_returns: int = 5

    # Tier thresholds (volatility in annualized %, drawdown in %)
    high_volatility: float = 40.0
    medium_volatility: float = 25.0
    high_drawdown: float = -30.0
    medium_drawdown: float = -20.0


@dataclass
class ValuationConfig:
    """Valuation engine configuration."""
    projection_years: int = 5
    fair_value_band: float = 0.15  # +/-15% around the anchor
    ddm_growth_cap: float = 0.06
    fifty_two_week_bars: int = 252


@dataclass
class RecommendationConfig:
    """Recommendation synthesizer configuration."""
    technical_weight: float = 0.30
    statistical_weight: float = 0.35
    regime_weight: float = 0.25
    valuation_weight: float = 0.10

    high_risk_damping: float = 0.7
    buy_threshold: float = 0.4
    strong_threshold: float = 1.2


@dataclass
class BacktestConfig:
    """Backtest simulator configuration."""
    initial_capital: float = 100000
    commission: float = 0.0
    trading_days: int = 252

    # Default parameters per strategy key
    strategy_params: Dict[str, Dict[str, float]] = field(default_factory=lambda: {
        "rsi": {"oversold": 30, "overbought": 70, "period": 14},
        "macd": {"fastPeriod": 12, "slowPeriod": 26, "signalPeriod": 9},
        "bollinger": {"period": 20, "stdDev": 2},
        "sma": {"shortPeriod": 20, "longPeriod": 50},
        "meanrev": {"zThreshold": 2, "lookback": 20}
    })


@dataclass
class AnalysisConfig:
    """Master configuration."""
    # Absolute usability floor for the top-level analysis call
    min_bars: int = 20

    # Component configs
    features: FeatureConfig = field(default_factory=FeatureConfig)
    regime: RegimeConfig = field(default_factory=RegimeConfig)
    signals: SignalConfig = field(default_factory=SignalConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    valuation: ValuationConfig = field(default_factory=ValuationConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)

    def save(self, filepath: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'AnalysisConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'AnalysisConfig':
        """Create from dictionary. Unknown keys are ignored, missing keys keep defaults."""
        config = cls()
        config.min_bars = data.get('min_bars', config.min_bars)

        for section in fields(cls):
            if section.name == 'min_bars' or section.name not in data:
                continue
            current = getattr(config, section.name)
            known = {f.name for f in fields(current)}
            values = {k: v for k, v in data[section.name].items() if k in known}
            setattr(config, section.name, type(current)(**{**asdict(current), **values}))

        return config


# Default configuration instance
DEFAULT_CONFIG = AnalysisConfig()
