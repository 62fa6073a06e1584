"""
증권 계좌 모델.

[ 역할 ]
    예수금 + 포트폴리오 + 주문 기록 + 거래 기록을 관리.
    주문 접수(place_order)와 체결(execute_order)을 분리해 실제 매매 흐름을 모사.

[ 체결 규칙 ]
    체결가 = 시장 현재가 (시장가 주문, 슬리피지 없음)
    수량 0 이하 주문은 체결 거부 (INVALID_QUANTITY)
    수수료 = 체결금액 * fee_rate (원 단위 절사)
    매수: 예수금 >= 체결금액 + 수수료 여야 체결, 부족하면 주문은 대기 상태 유지
    매도: 보유 수량 >= 주문 수량 이어야 체결, 입금액 = 체결금액 - 수수료

[ 실패 처리 ]
    예외를 던지지 않고 FillOutcome 으로 사유 반환. 재시도/취소는 호출자 몫.

[ 호출하는 곳 ]
    - run_backtest.py --account-demo
"""

import logging
from typing import Any, Optional

from habit_backtester.core.order import (
    FillOutcome,
    IdSequence,
    Order,
    OrderSide,
    PriceType,
    Transaction,
    calculate_fee,
)
from habit_backtester.data.market_data import Market
from habit_backtester.data.portfolio import Portfolio

logger = logging.getLogger("habit_backtester.account")

DEFAULT_FEE_RATE = 0.00015  # 0.015%


class Account:
    """증권 계좌. 주문 번호/거래 번호 발급기를 직접 소유한다."""

    def __init__(
        self,
        account_number: str,
        initial_balance: int = 0,
        fee_rate: float = DEFAULT_FEE_RATE,
        order_ids: IdSequence | None = None,
        transaction_ids: IdSequence | None = None,
    ):
        self.account_number = account_number
        self.balance = max(int(initial_balance), 0)
        self.fee_rate = fee_rate
        self.portfolio = Portfolio()
        self.orders: list[Order] = []
        self.transactions: list[Transaction] = []
        self._order_ids = order_ids or IdSequence()
        self._transaction_ids = transaction_ids or IdSequence()

    # ─── 입출금 ─────────────────────────────────────────────────────────

    def deposit(self, amount: int) -> bool:
        if amount <= 0:
            return False
        self.balance += amount
        return True

    def withdraw(self, amount: int) -> bool:
        if amount <= 0 or self.balance < amount:
            return False
        self.balance -= amount
        return True

    # ─── 주문 ───────────────────────────────────────────────────────────

    def place_order(
        self,
        code: str,
        side: OrderSide,
        quantity: int,
        price_type: PriceType = PriceType.MARKET,
        requested_price: int = 0,
    ) -> Order:
        """주문 접수. 잔고 검증은 체결 시점에 한다."""
        order = Order(
            order_id=self._order_ids.next(),
            code=code,
            side=side,
            quantity=quantity,
            price_type=price_type,
            requested_price=requested_price,
        )
        self.orders.append(order)
        logger.debug(f"주문 접수: {order.describe()}")
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        for order in self.orders:
            if order.order_id == order_id:
                return order
        return None

    def pending_orders(self) -> list[Order]:
        return [o for o in self.orders if o.is_pending]

    def cancel_order(self, order_id: int) -> bool:
        order = self.get_order(order_id)
        if order is None or not order.cancel():
            return False
        logger.debug(f"주문 취소: {order.describe()}")
        return True

    def execute_order(self, order_id: int, market: Market) -> FillOutcome:
        """대기 주문 체결 시도.

        Returns:
            FillOutcome.FILLED 이면 체결 완료. 그 외에는 상태 변화 없음.
        """
        order = self.get_order(order_id)
        if order is None or not order.is_pending:
            return FillOutcome.ORDER_NOT_FOUND

        security = market.get_security(order.code)
        if security is None:
            logger.warning(f"체결 실패: 알 수 없는 종목 {order.code} (주문 #{order_id})")
            return FillOutcome.UNKNOWN_SECURITY

        if order.quantity <= 0:
            logger.warning(f"체결 실패: 잘못된 수량 {order.quantity}주 (주문 #{order_id})")
            return FillOutcome.INVALID_QUANTITY

        price = security.current_price
        gross = price * order.quantity
        fee = calculate_fee(gross, self.fee_rate)

        # 포지션 반영이 성공한 경우에만 현금을 움직인다
        if order.side == OrderSide.BUY:
            if self.balance < gross + fee:
                logger.info(
                    f"체결 실패: 예수금 부족 (필요 {gross + fee:,}원, 보유 {self.balance:,}원)"
                )
                return FillOutcome.INSUFFICIENT_CASH
            if not self.portfolio.add_position(security, order.quantity, price):
                return FillOutcome.INVALID_QUANTITY
            self.balance -= gross + fee
        else:
            position = self.portfolio.get_position(order.code)
            if position is None or position.quantity < order.quantity:
                held = position.quantity if position else 0
                logger.info(f"체결 실패: 보유 수량 부족 (주문 {order.quantity}주, 보유 {held}주)")
                return FillOutcome.INSUFFICIENT_QUANTITY
            if not self.portfolio.reduce_position(order.code, order.quantity):
                return FillOutcome.INSUFFICIENT_QUANTITY
            self.balance += gross - fee

        order.complete()
        transaction = Transaction(
            transaction_id=self._transaction_ids.next(),
            order_id=order.order_id,
            code=security.code,
            name=security.name,
            side=order.side,
            quantity=order.quantity,
            price=price,
            gross_amount=gross,
            fee=fee,
        )
        self.transactions.append(transaction)
        logger.debug(f"체결: {transaction.describe()} (수수료 {fee:,}원)")
        return FillOutcome.FILLED

    # ─── 조회 ───────────────────────────────────────────────────────────

    @property
    def total_asset_value(self) -> int:
        """총 자산 = 예수금 + 보유 종목 평가금액."""
        return self.balance + self.portfolio.total_value

    def get_summary(self) -> dict[str, Any]:
        return {
            "account_number": self.account_number,
            "balance": self.balance,
            "holdings_value": self.portfolio.total_value,
            "total_assets": self.total_asset_value,
            "total_profit": self.portfolio.total_profit,
            "num_holdings": len(self.portfolio.holding_codes()),
            "num_orders": len(self.orders),
            "num_transactions": len(self.transactions),
        }

    def describe(self) -> str:
        return (
            f"계좌번호: {self.account_number} | 예수금: {self.balance:,}원 "
            f"| 총 자산: {self.total_asset_value:,}원"
        )
