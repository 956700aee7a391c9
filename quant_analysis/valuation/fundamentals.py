"""
Synthetic Fundamentals
======================
Deterministic, modeled company fundamentals derived from a ticker string.

These numbers are NOT real financial data. They are generated from a hash
of the ticker and a sine-based pseudo-random sequence so that the valuation
models have stable inputs for any symbol. Every output is labelled
``source="Modeled"``.

The hash is a 32-bit signed rolling accumulator over UTF-16 code units and
the generator is ``frac(sin(seed) * 10000)``; both match the JavaScript
dashboard bit for bit, up to the platform's ``sin``.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

PERIOD_LABELS = ["LTM", "FY2023", "FY2022"]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def hash_code(text: str) -> int:
    """Absolute value of the 32-bit rolling hash ``h = (h << 5) - h + code``."""
    h = 0
    data = text.encode('utf-16-le')
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + code)
    return abs(h)


def seeded_random(seed: float) -> float:
    """Fractional part of sin(seed) * 10000, in [0, 1)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def seeded_range(seed: int, salt: int, low: float, high: float) -> float:
    return low + (high - low) * seeded_random(seed + salt * 999)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp into [low, high]; `high` wins when the bounds cross."""
    return min(high, max(low, value))


@dataclass
class FiscalPeriod:
    label: str
    revenue: float
    net_income: float
    fcf: float
    gross_margin: float
    op_margin: float
    net_margin: float
    fcf_margin: float


@dataclass
class Fundamentals:
    """Modeled fundamentals for one ticker."""
    ticker: str
    shares: float
    market_cap: float
    revenue_growth: float
    debt_to_equity: float
    equity: float
    cash: float
    debt: float
    periods: List[FiscalPeriod]
    ratios: Dict[str, float]
    per_share: Dict[str, float]
    base: Dict[str, float]
    source: str = "Modeled"
    currency: str = "USD"

    @property
    def eps(self) -> float:
        return self.per_share['eps']

    @property
    def fcf_per_share(self) -> float:
        return self.per_share['fcf_per_share']

    @property
    def dividend_per_share(self) -> float:
        return self.per_share['dividend_per_share']

    def to_dict(self) -> dict:
        return asdict(self)


def generate_fundamentals(ticker: str, price: Optional[float] = None) -> Fundamentals:
    """
    Generate modeled fundamentals for a ticker at a given price.

    Args:
        ticker: Symbol; an empty symbol is treated as "UNKNOWN"
        price: Current price; 100 when missing or zero

    Returns:
        Fundamentals, identical for identical inputs
    """
    seed = hash_code(ticker or "UNKNOWN")
    px = price or 100

    def rng(salt, low, high):
        return seeded_range(seed, salt, low, high)

    shares = rng(1, 0.4, 5.0) * 1e9
    market_cap = px * shares
    revenue = market_cap / rng(2, 1.5, 8)

    # Margins
    gross_margin = rng(3, 0.3, 0.7)
    op_margin = clamp(gross_margin * rng(4, 0.35, 0.7), 0.08, gross_margin - 0.05)
    net_margin = clamp(op_margin * rng(5, 0.6, 0.85), 0.03, op_margin - 0.01)
    fcf_margin = clamp(op_margin * rng(6, 0.6, 0.95), 0.02, 0.35)

    revenue_growth = rng(7, -0.05, 0.18)
    debt_to_equity = rng(8, 0.0, 1.6)

    # Balance sheet
    equity = market_cap * rng(9, 0.35, 0.8)
    debt = equity * debt_to_equity
    cash = revenue * rng(10, 0.04, 0.25)
    capex = revenue * rng(11, 0.03, 0.08)

    net_income = revenue * net_margin
    fcf = revenue * fcf_margin
    eps = net_income / shares
    fcf_per_share = fcf / shares
    dividend_per_share = px * rng(12, 0.0, 0.035)

    roe = rng(13, 0.08, 0.35)
    roa = rng(14, 0.03, 0.18)
    current_ratio = rng(15, 0.9, 2.5)

    periods = []
    for idx, label in enumerate(PERIOD_LABELS):
        scale = 1 / (1 + revenue_growth) ** idx
        drift = 1 + rng(20 + idx, -0.03, 0.03)
        rev = revenue * scale * drift
        gm = clamp(gross_margin * (1 + rng(30 + idx, -0.02, 0.02)), 0.2, 0.8)
        om = clamp(op_margin * (1 + rng(40 + idx, -0.03, 0.03)), 0.05, gm - 0.04)
        nm = clamp(net_margin * (1 + rng(50 + idx, -0.03, 0.03)), 0.02, om - 0.01)
        fm = clamp(fcf_margin * (1 + rng(60 + idx, -0.04, 0.04)), 0.02, 0.35)
        periods.append(FiscalPeriod(
            label=label,
            revenue=rev,
            net_income=rev * nm,
            fcf=rev * fm,
            gross_margin=gm,
            op_margin=om,
            net_margin=nm,
            fcf_margin=fm
        ))

    logger.debug(f"Modeled fundamentals for {ticker or 'UNKNOWN'} (seed={seed})")

    return Fundamentals(
        ticker=ticker,
        shares=shares,
        market_cap=market_cap,
        revenue_growth=revenue_growth,
        debt_to_equity=debt_to_equity,
        equity=equity,
        cash=cash,
        debt=debt,
        periods=periods,
        ratios={
            'gross_margin': gross_margin,
            'op_margin': op_margin,
            'net_margin': net_margin,
            'fcf_margin': fcf_margin,
            'roe': roe,
            'roa': roa,
            'current_ratio': current_ratio
        },
        per_share={
            'eps': eps,
            'fcf_per_share': fcf_per_share,
            'dividend_per_share': dividend_per_share
        },
        base={
            'revenue': revenue,
            'net_income': net_income,
            'fcf': fcf,
            'gross_margin': gross_margin,
            'op_margin': op_margin,
            'net_margin': net_margin,
            'fcf_margin': fcf_margin,
            'capex': capex,
            'cash': cash,
            'debt': debt,
            'eps': eps,
            'fcf_per_share': fcf_per_share,
            'dividend_per_share': dividend_per_share,
            'roe': roe,
            'roa': roa,
            'current_ratio': current_ratio
        }
    )
