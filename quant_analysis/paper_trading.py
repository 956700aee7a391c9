"""
Paper Trading Portfolio
=======================

Virtual multi-ticker portfolio with:
- Cash and position tracking at volume-weighted average cost
- Trade validation (rejected trades leave the portfolio untouched)
- Newest-first trade history
- Equity curve and P&L summary
"""

from datetime import datetime
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional
from enum import Enum
import threading
import logging

logger = logging.getLogger(__name__)


class TradeAction(Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass
class Position:
    ticker: str
    shares: float
    avg_cost: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PaperTrade:
    """Executed paper trade."""
    trade_id: str
    timestamp: datetime
    action: TradeAction
    ticker: str
    shares: float
    price: float
    realized_pnl: Optional[float] = None

    @property
    def value(self) -> float:
        return self.shares * self.price

    def to_dict(self) -> dict:
        data = asdict(self)
        data['timestamp'] = self.timestamp.strftime('%Y-%m-%d %H:%M:%S')
        data['action'] = self.action.value
        return data


@dataclass
class TradeResult:
    """Outcome of a trade request."""
    accepted: bool
    reason: str = ""
    trade: Optional[PaperTrade] = None

    def to_dict(self) -> dict:
        return {
            'accepted': self.accepted,
            'reason': self.reason,
            'trade': self.trade.to_dict() if self.trade else None
        }


class PaperPortfolio:
    """
    Paper trading portfolio for equities.

    Long-only: a SELL can only reduce an existing position.
    """

    def __init__(self, initial_capital: float = 100000):
        self.initial_capital = initial_capital
        self.cash = initial_capital
        self.positions: Dict[str, Position] = {}
        self.history: List[PaperTrade] = []
        self.equity_curve: List[dict] = [
            {'date': datetime.now().strftime('%Y-%m-%d'), 'value': initial_capital}
        ]
        self.last_prices: Dict[str, float] = {}
        self.realized_pnl = 0.0
        self.trade_counter = 0
        self.lock = threading.Lock()

    def update_price(self, ticker: str, price: float):
        """Record the latest known price for a ticker."""
        self.last_prices[ticker.strip().upper()] = price

    def execute_trade(self, ticker: str, action, shares: float, price: float) -> TradeResult:
        """
        Execute a paper trade.

        Args:
            ticker: Symbol (case-insensitive)
            action: TradeAction or "BUY"/"SELL"
            shares: Number of shares, > 0
            price: Execution price, > 0

        Returns:
            TradeResult; rejected trades carry the reason
        """
        tk = (ticker or "").strip().upper()
        try:
            action = TradeAction(action.upper() if isinstance(action, str) else action)
        except ValueError:
            return self._reject(f"invalid trade: unknown action {action!r}")

        if not tk or not shares or shares <= 0 or not price or price <= 0:
            return self._reject("invalid trade")

        total = shares * price

        with self.lock:
            realized = None
            existing = self.positions.get(tk)

            if action == TradeAction.BUY:
                if total > self.cash:
                    return self._reject(f"insufficient cash: need {total:.2f}, have {self.cash:.2f}")
                self.cash -= total
                if existing:
                    new_shares = existing.shares + shares
                    existing.avg_cost = (existing.avg_cost * existing.shares + total) / new_shares
                    existing.shares = new_shares
                else:
                    self.positions[tk] = Position(ticker=tk, shares=shares, avg_cost=price)
            else:
                if existing is None or existing.shares < shares:
                    held = existing.shares if existing else 0
                    return self._reject(f"insufficient shares: need {shares}, have {held} {tk}")
                self.cash += total
                realized = (price - existing.avg_cost) * shares
                self.realized_pnl += realized
                existing.shares -= shares
                if existing.shares == 0:
                    del self.positions[tk]

            self.trade_counter += 1
            trade = PaperTrade(
                trade_id=f"PT{self.trade_counter:04d}",
                timestamp=datetime.now(),
                action=action,
                ticker=tk,
                shares=shares,
                price=price,
                realized_pnl=realized
            )
            self.history.insert(0, trade)
            self.last_prices[tk] = price

            self.equity_curve.append({
                'date': trade.timestamp.strftime('%Y-%m-%d'),
                'value': self.total_value()
            })

        logger.info(f"Paper {action.value} {shares} {tk} @ {price:.2f} ({trade.trade_id})")
        return TradeResult(accepted=True, trade=trade)

    def _reject(self, reason: str) -> TradeResult:
        logger.debug(f"Paper trade rejected: {reason}")
        return TradeResult(accepted=False, reason=reason)

    def positions_value(self) -> float:
        """Holdings valued at the last known price, falling back to average cost."""
        return sum(
            self.last_prices.get(p.ticker, p.avg_cost) * p.shares
            for p in self.positions.values()
        )

    def total_value(self) -> float:
        return self.cash + self.positions_value()

    def get_portfolio_summary(self) -> dict:
        """Cash, holdings and P&L."""
        positions_value = self.positions_value()
        cost_basis = sum(p.avg_cost * p.shares for p in self.positions.values())
        total_value = self.cash + positions_value

        return {
            'initial_capital': self.initial_capital,
            'cash': self.cash,
            'positions_value': positions_value,
            'total_value': total_value,
            'realized_pnl': self.realized_pnl,
            'unrealized_pnl': positions_value - cost_basis,
            'total_return_pct': (total_value - self.initial_capital) / self.initial_capital * 100,
            'open_positions': len(self.positions),
            'total_trades': len(self.history)
        }

    def get_positions(self) -> List[dict]:
        return [p.to_dict() for p in self.positions.values()]

    def get_trade_history(self, limit: int = 20) -> List[dict]:
        """Most recent trades first."""
        return [t.to_dict() for t in self.history[:limit]]

    def reset(self):
        """Reset portfolio to initial state."""
        with self.lock:
            self.cash = self.initial_capital
            self.positions = {}
            self.history = []
            self.equity_curve = [
                {'date': datetime.now().strftime('%Y-%m-%d'), 'value': self.initial_capital}
            ]
            self.last_prices = {}
            self.realized_pnl = 0.0
            self.trade_counter = 0
