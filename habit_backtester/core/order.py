"""
주문 / 체결 기록 정의.

[ 역할 ]
    Account가 접수하는 주문(Order)과 체결 시점에 생성되는 거래 기록(Transaction).
    주문 번호/거래 번호는 전역 카운터가 아니라 계좌가 소유한 IdSequence에서 발급.

[ 주문 상태 흐름 ]
    PENDING ──execute──→ COMPLETED
       └────cancel────→ CANCELLED
    (COMPLETED / CANCELLED는 종료 상태)

[ 호출하는 곳 ]
    - brokers/account.py::Account.place_order() / execute_order()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ─── Enum ───────────────────────────────────────────────────────────────────

class OrderSide(Enum):
    """매수 / 매도."""
    BUY = "buy"
    SELL = "sell"


class PriceType(Enum):
    """주문 가격 타입: 시장가(MARKET) 또는 지정가(LIMIT)."""
    MARKET = "market"
    LIMIT = "limit"


class OrderStatus(Enum):
    """주문 상태 추적용."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FillOutcome(Enum):
    """execute_order()의 반환값. 예외 대신 결과 코드로 실패 사유 전달."""
    FILLED = "filled"
    ORDER_NOT_FOUND = "order_not_found"            # 없는 주문 또는 대기 상태 아님
    UNKNOWN_SECURITY = "unknown_security"          # 시장에 없는 종목
    INVALID_QUANTITY = "invalid_quantity"          # 주문 수량 0 이하
    INSUFFICIENT_CASH = "insufficient_cash"        # 예수금 부족
    INSUFFICIENT_QUANTITY = "insufficient_quantity"  # 보유 수량 부족

    @property
    def succeeded(self) -> bool:
        return self is FillOutcome.FILLED


# ─── 번호 발급기 ────────────────────────────────────────────────────────────

class IdSequence:
    """단조 증가 번호 발급기. 계좌별로 하나씩 소유.

    사용 예:
        seq = IdSequence(start=100)
        seq.next()  # 100
        seq.next()  # 101
    """

    def __init__(self, start: int = 1):
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    def peek(self) -> int:
        """다음에 발급될 번호 (발급하지 않음)."""
        return self._next


# ─── 주문 ───────────────────────────────────────────────────────────────────

@dataclass
class Order:
    """매수/매도 주문. Account.place_order()가 PENDING 상태로 생성."""
    order_id: int
    code: str
    side: OrderSide
    quantity: int
    price_type: PriceType = PriceType.MARKET
    requested_price: int = 0      # 지정가 주문 시에만 의미 있음
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    def complete(self) -> bool:
        """체결 처리. 대기 중이 아니면 False."""
        if not self.is_pending:
            return False
        self.status = OrderStatus.COMPLETED
        return True

    def cancel(self) -> bool:
        """취소 처리. 대기 중이 아니면 False."""
        if not self.is_pending:
            return False
        self.status = OrderStatus.CANCELLED
        return True

    def describe(self) -> str:
        side = "매수" if self.side == OrderSide.BUY else "매도"
        status = {
            OrderStatus.PENDING: "대기",
            OrderStatus.COMPLETED: "체결",
            OrderStatus.CANCELLED: "취소",
        }[self.status]
        return f"주문 #{self.order_id} [{self.code}] {side} {self.quantity}주 ({status})"


# ─── 체결 기록 ──────────────────────────────────────────────────────────────

def calculate_fee(gross_amount: int, fee_rate: float) -> int:
    """수수료 = 체결금액 * 수수료율 (원 단위 절사)."""
    return int(gross_amount * fee_rate)


@dataclass(frozen=True)
class Transaction:
    """체결 시점에 생성되는 불변 거래 기록."""
    transaction_id: int
    order_id: int
    code: str
    name: str
    side: OrderSide
    quantity: int
    price: int              # 체결 가격
    gross_amount: int       # price * quantity
    fee: int
    executed_at: datetime = field(default_factory=datetime.now)

    @property
    def net_amount(self) -> int:
        """현금 변동폭. 매수는 수수료 포함 지출액, 매도는 수수료 차감 입금액."""
        if self.side == OrderSide.BUY:
            return self.gross_amount + self.fee
        return self.gross_amount - self.fee

    def describe(self) -> str:
        return (
            f"거래 #{self.transaction_id} [{self.side.name}] "
            f"{self.name} {self.quantity}주 @ {self.price:,}원"
        )
