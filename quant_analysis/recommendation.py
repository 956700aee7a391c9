"""
Recommendation Module
=====================
Blends technical, statistical, regime and valuation views into one action
with a confidence, then sizes an ATR-based target and stop-loss.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from enum import Enum
import logging

from .alpha import AggregateSignal, TechnicalSignal, technical_score
from .regime import MarketRegime
from .risk import RiskLevel, RiskProfile
from .valuation import ValuationModelResult

logger = logging.getLogger(__name__)


class Action(Enum):
    STRONG_BUY = "STRONG BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG SELL"

    @property
    def is_buy(self) -> bool:
        return self in (Action.BUY, Action.STRONG_BUY)

    @property
    def is_sell(self) -> bool:
        return self in (Action.SELL, Action.STRONG_SELL)


@dataclass
class Recommendation:
    """Final call for one instrument."""
    action: Action
    confidence: float
    score: float
    components: Dict[str, float] = field(default_factory=dict)
    target: Optional[float] = None
    stop_loss: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            'action': self.action.value,
            'confidence': self.confidence,
            'score': self.score,
            'components': dict(self.components),
            'target': self.target,
            'stop_loss': self.stop_loss
        }


class RecommendationEngine:
    """
    Weighted blend of the four component scores.

    technical: sum of per-indicator readings
    statistical: aggregate signal on the -2..2 scale
    regime: +/-1 for strong trends, +/-0.5 for ordinary trends
    valuation: +/-1 for under/overvalued
    """

    def __init__(self, config=None):
        from .config import RecommendationConfig
        self.config = config or RecommendationConfig()

    @staticmethod
    def regime_score(regime: MarketRegime) -> float:
        bias = regime.bias
        if bias == 0:
            return 0.0
        return float(bias) if regime.is_strong else bias * 0.5

    def recommend(self,
                  tech_signals: Mapping[str, TechnicalSignal],
                  aggregate: Optional[AggregateSignal],
                  regime: MarketRegime,
                  risk: RiskProfile,
                  valuation: Optional[ValuationModelResult] = None,
                  current_price: Optional[float] = None,
                  atr: Optional[float] = None) -> Recommendation:
        """
        Produce the recommendation and, when a price is given, its target and stop.
        """
        cfg = self.config

        ts = technical_score(tech_signals)
        ss = aggregate.signal_type.score if aggregate is not None else 0
        rs = self.regime_score(regime)
        vb = valuation.signal.bias if valuation is not None else 0

        score = (ts * cfg.technical_weight + ss * cfg.statistical_weight
                 + rs * cfg.regime_weight + vb * cfg.valuation_weight)
        if risk.risk_level == RiskLevel.HIGH:
            score *= cfg.high_risk_damping

        if score >= cfg.strong_threshold:
            action, confidence = Action.STRONG_BUY, min(0.90, 0.6 + abs(score) * 0.15)
        elif score >= cfg.buy_threshold:
            action, confidence = Action.BUY, min(0.75, 0.5 + abs(score) * 0.15)
        elif score <= -cfg.strong_threshold:
            action, confidence = Action.STRONG_SELL, min(0.90, 0.6 + abs(score) * 0.15)
        elif score <= -cfg.buy_threshold:
            action, confidence = Action.SELL, min(0.75, 0.5 + abs(score) * 0.15)
        else:
            action, confidence = Action.HOLD, 0.5

        recommendation = Recommendation(
            action=action,
            confidence=confidence,
            score=score,
            components={'technical': ts, 'statistical': ss, 'regime': rs, 'valuation': vb}
        )

        if current_price is not None:
            recommendation.target, recommendation.stop_loss = self.target_and_stop(
                action, regime, current_price, atr
            )

        logger.debug(f"Recommendation {action.value} score={score:.2f} confidence={confidence:.2f}")
        return recommendation

    @staticmethod
    def target_and_stop(action: Action, regime: MarketRegime, price: float, atr: Optional[float]):
        """
        ATR-scaled target and stop-loss. Buys widen to 3x/1.5x ATR in a strong
        regime; sells always use 2x/1x. Falls back to 2% of price when ATR is
        missing or zero. Both None for HOLD.
        """
        atr_value = atr if atr and not math.isnan(atr) else price * 0.02

        if action.is_buy:
            strong = regime.is_strong
            target = price + atr_value * (3 if strong else 2)
            stop_loss = price - atr_value * (1.5 if strong else 1)
            return target, stop_loss
        if action.is_sell:
            return price - atr_value * 2, price + atr_value

        return None, None
