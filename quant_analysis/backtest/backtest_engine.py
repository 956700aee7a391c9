"""
Backtest Engine Module
======================
Single-position, long-only simulation of a strategy over historical bars.

The ledger has two states, FLAT and LONG. A BUY signal while FLAT buys as
many whole shares as cash allows; a SELL signal while LONG closes the whole
position. Signals in any other state are ignored.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, asdict, field
from typing import List, Mapping, Optional, Union
from enum import Enum
import math
import logging

from ..exceptions import InsufficientDataError
from ..features.feature_engine import normalize_bars
from .strategies import Strategy, TradeSide, get_strategy

logger = logging.getLogger(__name__)


class PositionState(Enum):
    FLAT = "FLAT"
    LONG = "LONG"


@dataclass
class Trade:
    """One executed backtest order. pnl fields are set on SELL only."""
    date: object
    side: TradeSide
    price: float
    shares: int
    pnl: Optional[float] = None
    pnl_pct: Optional[float] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data['side'] = self.side.value
        return data


@dataclass
class EquityPoint:
    date: object
    value: float
    benchmark: float


@dataclass
class BacktestMetrics:
    total_return: float  # %
    cagr: float  # %
    max_drawdown: float  # %, <= 0
    sharpe: float
    win_rate: float  # %
    total_trades: int
    avg_win: float  # %
    avg_loss: float  # %
    profit_factor: float
    final_value: float
    gross_profit: float = 0.0
    gross_loss: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BacktestResult:
    strategy: str
    params: dict
    initial_capital: float
    commission: float
    equity_curve: List[EquityPoint]
    trades: List[Trade]
    metrics: BacktestMetrics

    def equity_frame(self) -> pd.DataFrame:
        """Equity curve as a frame with date, value and benchmark columns."""
        return pd.DataFrame([asdict(p) for p in self.equity_curve], columns=['date', 'value', 'benchmark'])

    def to_dict(self) -> dict:
        return {
            'strategy': self.strategy,
            'params': dict(self.params),
            'initial_capital': self.initial_capital,
            'commission': self.commission,
            'equity_curve': [asdict(p) for p in self.equity_curve],
            'trades': [t.to_dict() for t in self.trades],
            'metrics': self.metrics.to_dict()
        }


@dataclass
class Ledger:
    """Cash and the single open position."""
    cash: float
    shares: int = 0
    entry_price: float = 0.0
    trades: List[Trade] = field(default_factory=list)

    @property
    def state(self) -> PositionState:
        return PositionState.LONG if self.shares > 0 else PositionState.FLAT

    def value(self, price: float) -> float:
        return self.cash + self.shares * price

    def buy(self, date, price: float, commission: float) -> Optional[Trade]:
        """FLAT -> LONG with floor((cash - commission) / price) shares, if any."""
        if self.state != PositionState.FLAT:
            return self._reject(date, "BUY", "already long")
        if price <= 0:
            return self._reject(date, "BUY", f"non-positive price {price}")
        available = self.cash - commission
        if available <= 0:
            return self._reject(date, "BUY", f"cash {self.cash:.2f} does not cover commission {commission:.2f}")
        shares = int(math.floor(available / price))
        if shares <= 0:
            return self._reject(date, "BUY", f"cash {available:.2f} buys no shares at {price:.2f}")

        self.shares = shares
        self.entry_price = price
        self.cash -= shares * price + commission

        trade = Trade(date=date, side=TradeSide.BUY, price=price, shares=shares)
        self.trades.append(trade)
        return trade

    def sell(self, date, price: float, commission: float) -> Optional[Trade]:
        """LONG -> FLAT, realizing pnl net of both commissions."""
        if self.state != PositionState.LONG:
            return self._reject(date, "SELL", "no open position")

        shares = self.shares
        self.cash += shares * price - commission
        pnl = (price - self.entry_price) * shares - commission * 2
        pnl_pct = (price - self.entry_price) / self.entry_price * 100
        self.shares = 0

        trade = Trade(date=date, side=TradeSide.SELL, price=price, shares=shares, pnl=pnl, pnl_pct=pnl_pct)
        self.trades.append(trade)
        return trade

    @staticmethod
    def _reject(date, side: str, reason: str) -> None:
        logger.debug(f"Backtest {side} on {date} ignored: {reason}")
        return None


class BacktestEngine:
    """
    Runs a strategy over bars and computes performance metrics.
    """

    def __init__(self, config=None):
        from ..config import BacktestConfig
        self.config = config or BacktestConfig()

    def run(self,
            bars: Union[pd.DataFrame, List[dict]],
            strategy: Union[str, Strategy] = "rsi",
            params: Optional[Mapping] = None,
            initial_capital: Optional[float] = None,
            commission: Optional[float] = None) -> BacktestResult:
        """
        Simulate a strategy.

        Args:
            bars: OHLCV bars
            strategy: Strategy key or instance
            params: Parameter overrides for a strategy given by key
            initial_capital: Starting cash (config default when None)
            commission: Flat cost per order (config default when None)

        Returns:
            BacktestResult with the equity curve, trades and metrics
        """
        if isinstance(strategy, str):
            merged = {**self.config.strategy_params.get(strategy, {}), **(params or {})}
            strategy = get_strategy(strategy, merged)

        capital = self.config.initial_capital if initial_capital is None else initial_capital
        cost = self.config.commission if commission is None else commission

        df = normalize_bars(bars)
        if len(df) < 2:
            raise InsufficientDataError(len(df), 2, context="backtest")

        df = strategy.prepare(df)
        self._check_indicators(strategy, df)

        records = df.to_dict('records')
        closes = df['close'].to_numpy(dtype=float)
        base_price = closes[0] or 1.0

        ledger = Ledger(cash=capital)
        equity = [EquityPoint(date=records[0]['date'], value=capital, benchmark=capital)]

        for i in range(1, len(records)):
            bar, prev = records[i], records[i - 1]
            price = bar['close']
            signal = strategy.generate_signal(bar, prev, closes, i)

            if signal == TradeSide.BUY:
                trade = ledger.buy(bar['date'], price, cost)
                if trade:
                    logger.debug(f"BUY {trade.shares} @ {price:.2f} on {bar['date']}")
            elif signal == TradeSide.SELL:
                trade = ledger.sell(bar['date'], price, cost)
                if trade:
                    logger.debug(f"SELL {trade.shares} @ {price:.2f} on {bar['date']} pnl={trade.pnl:.2f}")

            equity.append(EquityPoint(
                date=bar['date'],
                value=ledger.value(price),
                benchmark=capital * price / base_price
            ))

        metrics = self.calculate_metrics(equity, ledger.trades, capital)

        logger.info(
            f"Backtest {strategy.key}: {len(records)} bars, {metrics.total_trades} round trips, "
            f"return {metrics.total_return:.2f}%"
        )

        return BacktestResult(
            strategy=strategy.key,
            params=dict(strategy.params),
            initial_capital=capital,
            commission=cost,
            equity_curve=equity,
            trades=ledger.trades,
            metrics=metrics
        )

    def calculate_metrics(self, equity: List[EquityPoint], trades: List[Trade], capital: float) -> BacktestMetrics:
        """Return, drawdown, Sharpe and trade statistics over completed round trips."""
        days = self.config.trading_days
        values = np.array([p.value for p in equity], dtype=float)

        final_value = float(values[-1]) if len(values) else capital
        total_return = (final_value - capital) / capital * 100
        years = len(values) / days
        if years <= 0:
            cagr = 0.0
        elif final_value <= 0:
            # Capital wiped out (commissions can push cash below zero)
            cagr = -100.0
        else:
            cagr = ((final_value / capital) ** (1 / years) - 1) * 100

        # Drawdown against the running peak, starting from the initial capital
        peaks = np.maximum.accumulate(np.concatenate([[capital], values]))[1:]
        max_drawdown = min(0.0, float(((values - peaks) / peaks * 100).min())) if len(values) else 0.0

        returns = np.diff(values) / values[:-1] if len(values) > 1 else np.array([])
        std = returns.std(ddof=1) if len(returns) > 1 else 0.0
        sharpe = float(returns.mean() / std * np.sqrt(days)) if std > 0 else 0.0

        sells = [t for t in trades if t.side == TradeSide.SELL]
        wins = [t for t in sells if t.pnl_pct > 0]
        losses = [t for t in sells if t.pnl_pct <= 0]

        win_rate = len(wins) / len(sells) * 100 if sells else 0.0
        avg_win = float(np.mean([t.pnl_pct for t in wins])) if wins else 0.0
        avg_loss = float(np.mean([t.pnl_pct for t in losses])) if losses else 0.0
        gross_profit = float(sum(t.pnl for t in wins))
        gross_loss = abs(float(sum(t.pnl for t in losses)))

        if gross_loss > 0:
            profit_factor = gross_profit / gross_loss
        else:
            profit_factor = float('inf') if gross_profit > 0 else 0.0

        return BacktestMetrics(
            total_return=float(total_return),
            cagr=float(cagr),
            max_drawdown=max_drawdown,
            sharpe=sharpe,
            win_rate=float(win_rate),
            total_trades=len(sells),
            avg_win=avg_win,
            avg_loss=avg_loss,
            profit_factor=profit_factor,
            final_value=final_value,
            gross_profit=gross_profit,
            gross_loss=gross_loss
        )

    @staticmethod
    def _check_indicators(strategy: Strategy, df: pd.DataFrame):
        missing = [c for c in strategy.indicator_columns if c not in df.columns or df[c].isna().all()]
        if missing:
            logger.warning(
                f"Strategy {strategy.key} has no values for {missing} over {len(df)} bars; it will not trade"
            )
