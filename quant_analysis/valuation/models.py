"""
Valuation Models Module
=======================
Assumptions builder and intrinsic-value models (DCF, DDM, multiples).

The evaluator is a pure function of its assumptions: callers may override
any assumption field and re-run it to get a new result.
"""

import math
from dataclasses import dataclass, asdict, field, replace
from typing import List, Optional
from enum import Enum
import logging

from .fundamentals import Fundamentals, clamp

logger = logging.getLogger(__name__)


class ValuationSignal(Enum):
    UNDERVALUED = "UNDERVALUED"
    FAIRLY_VALUED = "FAIRLY VALUED"
    OVERVALUED = "OVERVALUED"

    @property
    def bias(self) -> int:
        if self is ValuationSignal.UNDERVALUED:
            return 1
        if self is ValuationSignal.OVERVALUED:
            return -1
        return 0


@dataclass
class ValuationAssumptions:
    """Inputs to the valuation models. All rates are fractions."""
    fcf_per_share: float
    dividend_per_share: float
    eps: float
    growth_rate: float
    discount_rate: float
    terminal_growth: float
    target_pe: float
    years: int = 5

    def override(self, **changes) -> 'ValuationAssumptions':
        """Copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValuationModelResult:
    """Output of one evaluation of the valuation models."""
    dcf: Optional[float]
    ddm: Optional[float]
    multiples: Optional[float]
    anchor: Optional[float]
    upside: Optional[float]
    signal: ValuationSignal
    issues: List[str] = field(default_factory=list)
    assumptions: Optional[ValuationAssumptions] = None

    def to_dict(self) -> dict:
        return {
            'dcf': self.dcf,
            'ddm': self.ddm,
            'multiples': self.multiples,
            'anchor': self.anchor,
            'upside': self.upside,
            'signal': self.signal.value,
            'issues': list(self.issues),
            'assumptions': self.assumptions.to_dict() if self.assumptions else None
        }


def dcf_value(fcf_per_share: float, growth_rate: float, discount_rate: float,
              terminal_growth: float, years: int) -> Optional[float]:
    """
    Discounted cash flow value per share.

    Explicit cash flows for years 1..years plus a Gordon-growth terminal value.
    None when there is no cash flow, no projection horizon, or the discount
    rate does not exceed terminal growth.
    """
    if not fcf_per_share or years <= 0:
        return None
    if discount_rate <= terminal_growth:
        return None

    pv = 0.0
    for i in range(1, years + 1):
        cash_flow = fcf_per_share * (1 + growth_rate) ** i
        pv += cash_flow / (1 + discount_rate) ** i

    terminal = (fcf_per_share * (1 + growth_rate) ** years * (1 + terminal_growth)) / (discount_rate - terminal_growth)
    pv += terminal / (1 + discount_rate) ** years
    return pv


def ddm_value(dividend_per_share: float, growth_rate: float, discount_rate: float) -> Optional[float]:
    """Gordon growth dividend discount value per share."""
    if not dividend_per_share:
        return None
    if discount_rate <= growth_rate:
        return None
    return dividend_per_share * (1 + growth_rate) / (discount_rate - growth_rate)


class ValuationEngine:
    """
    Builds valuation assumptions and evaluates the models against a price.
    """

    def __init__(self, config=None):
        from ..config import ValuationConfig
        self.config = config or ValuationConfig()

    def build_assumptions(self, fundamentals: Optional[Fundamentals], price: Optional[float],
                          risk=None) -> ValuationAssumptions:
        """
        Derive clamped assumptions from fundamentals and the current risk profile.

        Args:
            fundamentals: Modeled fundamentals, or None to use price-based fallbacks
            price: Current price
            risk: RiskProfile; its volatility widens the discount rate
        """
        growth = fundamentals.revenue_growth if fundamentals is not None else 0.06
        g = clamp(growth, -0.02, 0.12)

        volatility = getattr(risk, 'volatility', 0) if risk is not None else 0
        vol_adj = min(0.04, volatility / 250) if volatility else 0.01
        discount = clamp(0.08 + vol_adj, 0.07, 0.14)
        terminal_growth = clamp(min(0.03, g * 0.5), 0.01, 0.03)
        target_pe = clamp(12 + g * 100 * 0.8, 10, 28)

        if fundamentals is not None:
            fcf_per_share = fundamentals.fcf_per_share
            dividend_per_share = fundamentals.dividend_per_share
            eps = fundamentals.eps
        else:
            fcf_per_share = price * 0.04 if price else 3
            dividend_per_share = price * 0.015 if price else 1
            eps = price / 20 if price else 5

        return ValuationAssumptions(
            fcf_per_share=fcf_per_share,
            dividend_per_share=dividend_per_share,
            eps=eps,
            growth_rate=g,
            discount_rate=discount,
            terminal_growth=terminal_growth,
            target_pe=target_pe,
            years=self.config.projection_years
        )

    def evaluate(self, assumptions: Optional[ValuationAssumptions], price: Optional[float]) -> ValuationModelResult:
        """
        Run DCF, DDM and multiples and blend them into an anchor value.

        Invalid assumption combinations null out the affected model and add a
        message to `issues`; the other models are unaffected.
        """
        if assumptions is None:
            return ValuationModelResult(dcf=None, ddm=None, multiples=None, anchor=None,
                                        upside=None, signal=ValuationSignal.FAIRLY_VALUED)

        a = assumptions
        issues = []

        dcf = dcf_value(a.fcf_per_share, a.growth_rate, a.discount_rate, a.terminal_growth, a.years)
        if a.discount_rate <= a.terminal_growth:
            issues.append(
                f"Discount rate ({a.discount_rate:.2%}) must exceed terminal growth "
                f"({a.terminal_growth:.2%}) for the DCF model"
            )

        ddm_growth = min(a.growth_rate, self.config.ddm_growth_cap)
        ddm = ddm_value(a.dividend_per_share, ddm_growth, a.discount_rate) if a.dividend_per_share > 0 else None
        if a.dividend_per_share > 0 and a.discount_rate <= ddm_growth:
            issues.append(
                f"Discount rate ({a.discount_rate:.2%}) must exceed dividend growth "
                f"({ddm_growth:.2%}) for the dividend discount model"
            )

        multiples = a.eps * a.target_pe if a.eps and a.target_pe else None

        values = [v for v in (dcf, ddm, multiples) if v is not None and math.isfinite(v) and v > 0]
        anchor = sum(values) / len(values) if values else None
        upside = anchor / price - 1 if anchor and price else None

        band = self.config.fair_value_band
        signal = ValuationSignal.FAIRLY_VALUED
        if upside is not None:
            if upside > band:
                signal = ValuationSignal.UNDERVALUED
            elif upside < -band:
                signal = ValuationSignal.OVERVALUED

        for issue in issues:
            logger.debug(f"Valuation issue: {issue}")

        return ValuationModelResult(
            dcf=dcf,
            ddm=ddm,
            multiples=multiples,
            anchor=anchor,
            upside=upside,
            signal=signal,
            issues=issues,
            assumptions=a
        )
