"""Tests for the paper trading portfolio."""

import pytest

from quant_analysis.paper_trading import PaperPortfolio, TradeAction


@pytest.fixture
def portfolio():
    return PaperPortfolio(initial_capital=10_000)


class TestExecuteTrade:
    """Tests for trade validation and execution."""

    def test_buy_reduces_cash(self, portfolio):
        result = portfolio.execute_trade("aapl", "BUY", 10, 150.0)

        assert result.accepted
        assert result.trade.trade_id == "PT0001"
        assert result.trade.ticker == "AAPL"
        assert portfolio.cash == pytest.approx(8_500.0)
        assert portfolio.positions["AAPL"].shares == 10

    def test_average_cost_is_volume_weighted(self, portfolio):
        portfolio.execute_trade("MSFT", TradeAction.BUY, 10, 100.0)
        portfolio.execute_trade("msft", TradeAction.BUY, 30, 120.0)

        position = portfolio.positions["MSFT"]
        assert position.shares == 40
        assert position.avg_cost == pytest.approx((10 * 100 + 30 * 120) / 40)

    def test_sell_realizes_pnl_against_average_cost(self, portfolio):
        portfolio.execute_trade("XYZ", "BUY", 20, 50.0)
        result = portfolio.execute_trade("XYZ", "sell", 5, 60.0)

        assert result.accepted
        assert result.trade.realized_pnl == pytest.approx(50.0)
        assert portfolio.realized_pnl == pytest.approx(50.0)
        assert portfolio.positions["XYZ"].shares == 15
        assert portfolio.positions["XYZ"].avg_cost == 50.0

    def test_selling_everything_closes_position(self, portfolio):
        portfolio.execute_trade("XYZ", "BUY", 20, 50.0)
        portfolio.execute_trade("XYZ", "SELL", 20, 45.0)

        assert "XYZ" not in portfolio.positions
        assert portfolio.cash == pytest.approx(10_000 - 100)

    def test_insufficient_cash_is_rejected(self, portfolio):
        result = portfolio.execute_trade("AAPL", "BUY", 100, 150.0)

        assert not result.accepted
        assert result.reason.startswith("insufficient cash")
        assert portfolio.cash == 10_000
        assert portfolio.history == []

    def test_insufficient_shares_is_rejected(self, portfolio):
        portfolio.execute_trade("AAPL", "BUY", 5, 100.0)
        result = portfolio.execute_trade("AAPL", "SELL", 6, 100.0)

        assert not result.accepted
        assert result.reason.startswith("insufficient shares")
        assert portfolio.positions["AAPL"].shares == 5

    def test_short_selling_is_rejected(self, portfolio):
        result = portfolio.execute_trade("TSLA", "SELL", 1, 200.0)
        assert not result.accepted

    @pytest.mark.parametrize("ticker,shares,price", [
        ("", 10, 100.0),
        ("AAPL", 0, 100.0),
        ("AAPL", -5, 100.0),
        ("AAPL", 10, 0.0),
        ("AAPL", 10, -1.0),
    ])
    def test_invalid_input_is_rejected(self, portfolio, ticker, shares, price):
        result = portfolio.execute_trade(ticker, "BUY", shares, price)

        assert not result.accepted
        assert result.reason == "invalid trade"
        assert portfolio.trade_counter == 0

    def test_unknown_action_is_rejected(self, portfolio):
        result = portfolio.execute_trade("AAPL", "SHORT", 1, 100.0)
        assert not result.accepted
        assert result.reason.startswith("invalid trade")


class TestPortfolioState:
    """Tests for valuation, history and reset."""

    def test_history_is_newest_first(self, portfolio):
        portfolio.execute_trade("A", "BUY", 1, 10.0)
        portfolio.execute_trade("B", "BUY", 1, 20.0)
        portfolio.execute_trade("A", "SELL", 1, 11.0)

        history = portfolio.get_trade_history()
        assert [t["trade_id"] for t in history] == ["PT0003", "PT0002", "PT0001"]
        assert history[0]["action"] == "SELL"
        assert len(portfolio.get_trade_history(limit=2)) == 2

    def test_summary_marks_to_last_price(self, portfolio):
        portfolio.execute_trade("AAPL", "BUY", 10, 100.0)
        portfolio.update_price("aapl", 110.0)

        summary = portfolio.get_portfolio_summary()
        assert summary["cash"] == pytest.approx(9_000.0)
        assert summary["positions_value"] == pytest.approx(1_100.0)
        assert summary["total_value"] == pytest.approx(10_100.0)
        assert summary["unrealized_pnl"] == pytest.approx(100.0)
        assert summary["realized_pnl"] == 0
        assert summary["total_return_pct"] == pytest.approx(1.0)
        assert summary["open_positions"] == 1
        assert summary["total_trades"] == 1

    def test_equity_curve_appends_after_each_trade(self, portfolio):
        portfolio.execute_trade("AAPL", "BUY", 10, 100.0)
        portfolio.execute_trade("AAPL", "BUY", 500, 100.0)

        assert len(portfolio.equity_curve) == 2
        assert portfolio.equity_curve[0]["value"] == 10_000
        assert portfolio.equity_curve[-1]["value"] == pytest.approx(10_000)

    def test_reset(self, portfolio):
        portfolio.execute_trade("AAPL", "BUY", 10, 100.0)
        portfolio.reset()

        assert portfolio.cash == 10_000
        assert portfolio.positions == {}
        assert portfolio.history == []
        assert len(portfolio.equity_curve) == 1
        assert portfolio.execute_trade("AAPL", "BUY", 1, 10.0).trade.trade_id == "PT0001"

    def test_positions_listing(self, portfolio):
        portfolio.execute_trade("AAPL", "BUY", 10, 100.0)
        assert portfolio.get_positions() == [{"ticker": "AAPL", "shares": 10, "avg_cost": 100.0}]
