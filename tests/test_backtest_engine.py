"""
Tests for the backtest engine (strategy battle).

Uses the real habit strategies plus a small recording strategy to observe
exactly what the engine delivers and in which order.
"""

import pytest

from habit_backtester.backtest.engine import BacktestEngine
from habit_backtester.core.trading_strategy import TradingStrategy
from habit_backtester.data.market_data import Security
from habit_backtester.strategies import build_strategies
from habit_backtester.utils.config import BacktestConfig

CONFIG = BacktestConfig()


class RecordingStrategy(TradingStrategy):
    """Never trades; records every observation into a shared call log."""

    def __init__(self, name, calls):
        super().__init__(name=name, initial_cash=CONFIG.initial_cash)
        self.calls = calls
        self.finished_with = None

    @classmethod
    def from_config(cls, config):
        return cls("recorder", [])

    def on_price(self, index, price, change_rate):
        self.calls.append((self.name, index, price, change_rate))
        self.ledger.record_equity(price)

    def on_finish(self, last_price):
        self.finished_with = last_price


def make_engine(prices, names=None) -> BacktestEngine:
    security = Security.from_prices("005930", "삼성전자", prices)
    engine = BacktestEngine(security, CONFIG)
    engine.add_strategies(build_strategies(CONFIG, names))
    return engine


def test_empty_history_yields_no_reports():
    engine = BacktestEngine(Security("005930", "삼성전자", 70000), CONFIG)
    engine.add_strategies(build_strategies(CONFIG))

    assert engine.run_battle() == []
    assert engine.results == []
    assert all(s.ledger.equity_history == [] for s in engine.strategies)


def test_delivers_prices_and_change_rates_in_registration_order(short_prices):
    calls = []
    engine = BacktestEngine(Security.from_prices("005930", "삼성전자", short_prices), CONFIG)
    first = RecordingStrategy("first", calls)
    second = RecordingStrategy("second", calls)
    engine.add_strategy(first)
    engine.add_strategy(second)

    engine.run_battle()

    assert [(c[0], c[1]) for c in calls[:4]] == [("first", 0), ("second", 0), ("first", 1), ("second", 1)]
    rates = [c[3] for c in calls if c[0] == "first"]
    assert rates[0] == 0.0
    assert rates[1] == pytest.approx(1000 / 70000 * 100)
    assert rates[4] == pytest.approx((65000 - 68000) / 68000 * 100)
    assert first.finished_with == 65000
    assert second.finished_with == 65000


def test_reports_follow_registration_order(sample_prices):
    reports = make_engine(sample_prices).run_battle()

    assert [r.strategy_name for r in reports] == ["쫄보 (Panic Seller)", "코치 (DCA)", "존버 (Holder)"]
    assert all(r.initial_cash == 10_000_000 for r in reports)


def test_hold_report_on_short_sequence(short_prices):
    reports = make_engine(short_prices, ["hold"]).run_battle()
    report = reports[0]

    cash = 10_000_000 - 70000 * 71 - int(70000 * 71 * 0.00015)
    assert report.final_shares == 71
    assert report.avg_price == 70000
    assert report.final_equity == cash + 71 * 65000
    assert report.total_return == pytest.approx((report.final_equity - 10_000_000) / 10_000_000 * 100)
    assert report.buy_count == 1
    assert report.sell_count == 0


def test_panic_report_on_sample_sequence(sample_prices):
    engine = make_engine(sample_prices, ["panic_sell"])
    report = engine.run_battle()[0]
    ledger = engine.strategies[0].ledger

    assert report.sell_count == 1
    assert report.final_shares == 0
    assert report.avg_price == 0
    assert report.final_equity == ledger.cash
    assert report.total_return < 0
    assert report.max_drawdown > 0


def test_runs_are_deterministic(sample_prices):
    first = make_engine(sample_prices).run_battle()
    second = make_engine(sample_prices).run_battle()

    assert first == second
    assert [r.to_dict() for r in first] == [r.to_dict() for r in second]


def test_equity_history_has_one_entry_per_step(sample_prices):
    engine = make_engine(sample_prices)
    engine.run_battle()

    for strategy in engine.strategies:
        assert len(strategy.ledger.equity_history) == len(sample_prices)


def test_equity_frame(sample_prices):
    engine = make_engine(sample_prices)
    engine.run_battle()
    frame = engine.equity_frame()

    assert frame.shape == (30, 3)
    assert frame.index.name == "step"
    assert list(frame.columns) == [s.name for s in engine.strategies]
    assert frame["존버 (Holder)"].iloc[0] == engine.strategies[2].ledger.equity_history[0]


def test_rerun_produces_identical_reports(sample_prices):
    engine = make_engine(sample_prices)

    first = engine.run_battle()
    first_trades = [list(s.ledger.trades) for s in engine.strategies]
    second = engine.run_battle()

    assert first == second
    assert len(engine.results) == 3
    assert [list(s.ledger.trades) for s in engine.strategies] == first_trades
    for strategy in engine.strategies:
        assert len(strategy.ledger.equity_history) == len(sample_prices)


def test_rerun_resets_strategy_state(short_prices):
    engine = make_engine(short_prices, ["panic_sell", "dca", "hold"])
    engine.run_battle()
    panic, dca, hold = engine.strategies

    assert panic.has_bought and hold.has_bought
    assert dca.last_buy_index >= 0

    engine.run_battle()

    assert panic.ledger.buy_count == 1
    assert hold.ledger.buy_count == 1
    assert dca.ledger.trades[0].index == 0


def test_calculate_mdd_delegates():
    assert BacktestEngine.calculate_mdd([100, 50]) == pytest.approx(50.0)
