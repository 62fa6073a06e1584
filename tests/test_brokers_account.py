"""
Tests for Account order placement and settlement.

Failed settlements must never touch cash, the portfolio, or the transaction log.
"""

import pytest

from habit_backtester.brokers.account import Account
from habit_backtester.core.order import (
    FillOutcome,
    IdSequence,
    OrderSide,
    OrderStatus,
    calculate_fee,
)
from habit_backtester.data.market_data import Market, Security

FEE_RATE = 0.00015


@pytest.fixture
def market() -> Market:
    market = Market()
    market.add_security(Security("005930", "삼성전자", 70000))
    return market


@pytest.fixture
def account() -> Account:
    return Account("user1_ACC", 1_000_000, fee_rate=FEE_RATE)


def test_place_order_is_pending_without_validation(account):
    order = account.place_order("005930", OrderSide.BUY, 1_000_000)

    assert order.status == OrderStatus.PENDING
    assert account.orders == [order]
    assert account.balance == 1_000_000


def test_buy_settles_at_market_price(account, market):
    order = account.place_order("005930", OrderSide.BUY, 10)

    outcome = account.execute_order(order.order_id, market)

    fee = calculate_fee(700_000, FEE_RATE)
    assert outcome is FillOutcome.FILLED
    assert outcome.succeeded
    assert order.status == OrderStatus.COMPLETED
    assert account.balance == 1_000_000 - 700_000 - fee
    position = account.portfolio.get_position("005930")
    assert position.quantity == 10
    assert position.avg_price == 70000

    tx = account.transactions[0]
    assert tx.order_id == order.order_id
    assert tx.gross_amount == 700_000
    assert tx.fee == fee
    assert tx.net_amount == 700_000 + fee


def test_buy_with_insufficient_cash_leaves_everything_untouched(market):
    account = Account("poor", 700_000, fee_rate=FEE_RATE)
    order = account.place_order("005930", OrderSide.BUY, 10)

    outcome = account.execute_order(order.order_id, market)

    assert outcome is FillOutcome.INSUFFICIENT_CASH
    assert not outcome.succeeded
    assert order.status == OrderStatus.PENDING
    assert account.balance == 700_000
    assert account.portfolio.holding_codes() == []
    assert account.transactions == []


def test_pending_order_can_be_retried_after_deposit(market):
    account = Account("retry", 700_000, fee_rate=FEE_RATE)
    order = account.place_order("005930", OrderSide.BUY, 10)
    account.execute_order(order.order_id, market)

    account.deposit(1_000)
    assert account.execute_order(order.order_id, market) is FillOutcome.FILLED


def test_execute_completed_order_fails_without_side_effects(account, market):
    order = account.place_order("005930", OrderSide.BUY, 10)
    account.execute_order(order.order_id, market)
    balance = account.balance

    assert account.execute_order(order.order_id, market) is FillOutcome.ORDER_NOT_FOUND
    assert account.balance == balance
    assert account.portfolio.get_position("005930").quantity == 10
    assert len(account.transactions) == 1


def test_execute_unknown_order_id(account, market):
    assert account.execute_order(999, market) is FillOutcome.ORDER_NOT_FOUND
    assert account.balance == 1_000_000


def test_execute_unknown_security(account, market):
    order = account.place_order("999999", OrderSide.BUY, 1)

    assert account.execute_order(order.order_id, market) is FillOutcome.UNKNOWN_SECURITY
    assert order.is_pending


def test_sell_credits_gross_minus_fee(account, market):
    buy = account.place_order("005930", OrderSide.BUY, 10)
    account.execute_order(buy.order_id, market)
    balance_after_buy = account.balance

    market.get_security("005930").update_price(75000)
    sell = account.place_order("005930", OrderSide.SELL, 5)
    outcome = account.execute_order(sell.order_id, market)

    assert outcome is FillOutcome.FILLED
    assert account.balance == balance_after_buy + 375_000 - calculate_fee(375_000, FEE_RATE)
    position = account.portfolio.get_position("005930")
    assert position.quantity == 5
    assert position.avg_price == 70000
    assert account.transactions[-1].net_amount == 375_000 - calculate_fee(375_000, FEE_RATE)


def test_sell_more_than_held_fails(account, market):
    buy = account.place_order("005930", OrderSide.BUY, 3)
    account.execute_order(buy.order_id, market)
    balance = account.balance

    sell = account.place_order("005930", OrderSide.SELL, 4)
    assert account.execute_order(sell.order_id, market) is FillOutcome.INSUFFICIENT_QUANTITY
    assert sell.is_pending
    assert account.balance == balance
    assert account.portfolio.get_position("005930").quantity == 3


def test_sell_without_position_fails(account, market):
    sell = account.place_order("005930", OrderSide.SELL, 1)
    assert account.execute_order(sell.order_id, market) is FillOutcome.INSUFFICIENT_QUANTITY


@pytest.mark.parametrize("side", [OrderSide.BUY, OrderSide.SELL])
@pytest.mark.parametrize("quantity", [0, -10, -100])
def test_non_positive_quantity_is_rejected(account, market, side, quantity):
    order = account.place_order("005930", side, quantity)

    outcome = account.execute_order(order.order_id, market)

    assert outcome is FillOutcome.INVALID_QUANTITY
    assert not outcome.succeeded
    assert order.is_pending
    assert account.balance == 1_000_000
    assert account.portfolio.holding_codes() == []
    assert account.transactions == []


def test_negative_sell_cannot_drain_empty_account(market):
    """음수 매도는 거부되므로 잔고 0 계좌의 예수금이 음수로 내려가지 않는다."""
    account = Account("empty", 0, fee_rate=FEE_RATE)
    sell = account.place_order("005930", OrderSide.SELL, -100)

    assert account.execute_order(sell.order_id, market) is FillOutcome.INVALID_QUANTITY
    assert account.balance == 0


def test_negative_buy_does_not_credit_cash(account, market):
    buy = account.place_order("005930", OrderSide.BUY, 3)
    account.execute_order(buy.order_id, market)
    balance = account.balance

    refund = account.place_order("005930", OrderSide.BUY, -10)

    assert account.execute_order(refund.order_id, market) is FillOutcome.INVALID_QUANTITY
    assert account.balance == balance
    assert account.portfolio.get_position("005930").quantity == 3
    assert len(account.transactions) == 1


def test_refused_portfolio_update_keeps_balance(account, market, monkeypatch):
    monkeypatch.setattr(account.portfolio, "add_position", lambda *args, **kwargs: False)
    order = account.place_order("005930", OrderSide.BUY, 1)

    assert account.execute_order(order.order_id, market) is FillOutcome.INVALID_QUANTITY
    assert order.is_pending
    assert account.balance == 1_000_000
    assert account.transactions == []


def test_refused_position_reduce_keeps_balance(account, market, monkeypatch):
    buy = account.place_order("005930", OrderSide.BUY, 2)
    account.execute_order(buy.order_id, market)
    balance = account.balance

    monkeypatch.setattr(account.portfolio, "reduce_position", lambda *args, **kwargs: False)
    sell = account.place_order("005930", OrderSide.SELL, 1)

    assert account.execute_order(sell.order_id, market) is FillOutcome.INSUFFICIENT_QUANTITY
    assert sell.is_pending
    assert account.balance == balance
    assert len(account.transactions) == 1


def test_sell_everything_removes_position(account, market):
    buy = account.place_order("005930", OrderSide.BUY, 2)
    account.execute_order(buy.order_id, market)
    sell = account.place_order("005930", OrderSide.SELL, 2)
    account.execute_order(sell.order_id, market)

    assert not account.portfolio.has_position("005930")
    assert account.total_asset_value == account.balance


def test_cancel_order(account, market):
    order = account.place_order("005930", OrderSide.BUY, 1)

    assert account.cancel_order(order.order_id)
    assert order.status == OrderStatus.CANCELLED
    assert account.cancel_order(order.order_id) is False
    assert account.execute_order(order.order_id, market) is FillOutcome.ORDER_NOT_FOUND
    assert account.pending_orders() == []


def test_injected_id_sequences_are_deterministic(market):
    account = Account("seeded", 10_000_000, order_ids=IdSequence(100), transaction_ids=IdSequence(500))

    first = account.place_order("005930", OrderSide.BUY, 1)
    second = account.place_order("005930", OrderSide.BUY, 1)
    account.execute_order(second.order_id, market)

    assert (first.order_id, second.order_id) == (100, 101)
    assert account.transactions[0].transaction_id == 500


def test_id_sequences_are_per_account():
    a = Account("a")
    b = Account("b")
    assert a.place_order("005930", OrderSide.BUY, 1).order_id == 1
    assert b.place_order("005930", OrderSide.BUY, 1).order_id == 1


def test_deposit_and_withdraw_guards(account):
    assert account.deposit(0) is False
    assert account.deposit(-10) is False
    assert account.withdraw(2_000_000) is False
    assert account.withdraw(400_000)
    assert account.balance == 600_000


def test_account_summary(account, market):
    order = account.place_order("005930", OrderSide.BUY, 10)
    account.execute_order(order.order_id, market)

    summary = account.get_summary()
    assert summary["holdings_value"] == 700_000
    assert summary["total_assets"] == account.balance + 700_000
    assert summary["num_transactions"] == 1
