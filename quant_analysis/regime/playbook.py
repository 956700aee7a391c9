"""
Regime Playbook
===============
Static trading guidance for each overall market regime.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .regime_detector import MarketRegime


@dataclass(frozen=True)
class RegimePlaybook:
    strategy: str
    tactics: List[str] = field(default_factory=list)
    avoid: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'strategy': self.strategy, 'tactics': list(self.tactics), 'avoid': list(self.avoid)}


PLAYBOOKS: Dict[MarketRegime, RegimePlaybook] = {
    MarketRegime.STRONG_UPTREND: RegimePlaybook(
        strategy="Ride the trend",
        tactics=["Buy breakouts", "Hold positions", "Trail stops"],
        avoid=["Counter-trend trades"]
    ),
    MarketRegime.STRONG_DOWNTREND: RegimePlaybook(
        strategy="Defensive positioning",
        tactics=["Short breakdowns", "Tight stops", "Capital preservation"],
        avoid=["Catching falling knives"]
    ),
    MarketRegime.TRENDING_UPTREND: RegimePlaybook(
        strategy="Buy the dips",
        tactics=["Buy dips", "Partial positions", "Take profits"],
        avoid=["Overextension"]
    ),
    MarketRegime.TRENDING_DOWNTREND: RegimePlaybook(
        strategy="Reduce risk",
        tactics=["Reduce exposure", "Hedge positions"],
        avoid=["Aggressive longs"]
    ),
    MarketRegime.MEAN_REVERTING: RegimePlaybook(
        strategy="Fade the extremes",
        tactics=["Buy oversold", "Sell overbought", "Range trade"],
        avoid=["Chasing momentum"]
    ),
    MarketRegime.RANGING: RegimePlaybook(
        strategy="Trade the range",
        tactics=["Support/resistance levels", "Oscillator-based entries"],
        avoid=["Trend following"]
    ),
    MarketRegime.HIGH_VOLATILITY: RegimePlaybook(
        strategy="Size down",
        tactics=["Wider stops", "Options strategies"],
        avoid=["Full positions"]
    ),
    MarketRegime.TRANSITIONING: RegimePlaybook(
        strategy="Wait for confirmation",
        tactics=["Small positions", "Watch for confirmation"],
        avoid=["Large commitments"]
    ),
}


def get_playbook(regime: MarketRegime) -> RegimePlaybook:
    """Playbook for a regime."""
    return PLAYBOOKS[regime]
