"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    백테스트 전략의 인터페이스 정의.
    가격을 한 시점씩 받아(on_price) 자기 장부(StrategyLedger)에만 매수/매도를 반영.

[ 구현체 ]
    - strategies/panic_sell_strategy.py::PanicSellStrategy (쫄보, 손절)
    - strategies/dca_strategy.py::DCAStrategy              (코치, 분할매수)
    - strategies/hold_strategy.py::HoldStrategy            (존버, 1회 매수)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_battle()에서
      매 시점 on_price(), 종료 시 on_finish() 호출

[ 장부 규칙 (StrategyLedger) ]
    실제 계좌(brokers/account.py)와 완전히 분리된 단순 장부.
    "price에 qty주 매수" 와 "price에 전량 매도" 두 가지 동작만 존재.
    주문 객체, 대기 상태, 부분 매도 없음.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("habit_backtester.strategy")


@dataclass(frozen=True)
class TradeRecord:
    """전략 장부의 개별 거래 기록 (로깅/분석용)."""
    index: int          # 가격 시퀀스 인덱스
    side: str           # "buy" or "sell"
    quantity: int
    price: int
    fee: int
    reason: str = ""


@dataclass
class StrategyLedger:
    """전략별 가상 장부. 전략마다 하나씩 소유하며 서로 공유하지 않는다."""
    cash: int
    shares: int = 0
    avg_price: int = 0
    buy_count: int = 0
    sell_count: int = 0
    equity_history: list[int] = field(default_factory=list)
    trades: list[TradeRecord] = field(default_factory=list)

    def total_value(self, price: int) -> int:
        """평가 자산 = 현금 + 보유주식 * price."""
        return self.cash + self.shares * price

    @staticmethod
    def affordable_quantity(amount: int, price: int, fee_rate: float) -> int:
        """수수료 포함 매수 가능 수량 = amount // (price + int(price * fee_rate))."""
        unit_cost = price + int(price * fee_rate)
        if unit_cost <= 0 or amount <= 0:
            return 0
        return int(amount) // unit_cost

    def buy(
        self,
        price: int,
        quantity: int,
        fee_rate: float,
        index: int = -1,
        reason: str = "",
    ) -> bool:
        """price에 quantity주 매수. 수량 0 이하 또는 현금 부족이면 아무 일도 없음."""
        cost = price * quantity
        fee = int(cost * fee_rate)
        if quantity <= 0 or self.cash < cost + fee:
            return False

        total_cost = self.avg_price * self.shares + cost
        self.shares += quantity
        self.avg_price = total_cost // self.shares
        self.cash -= cost + fee
        self.buy_count += 1
        self.trades.append(TradeRecord(index, "buy", quantity, price, fee, reason))
        return True

    def sell_all(
        self,
        price: int,
        fee_rate: float,
        index: int = -1,
        reason: str = "",
    ) -> bool:
        """price에 전량 매도. 보유 주식이 없으면 아무 일도 없음."""
        if self.shares <= 0:
            return False

        revenue = price * self.shares
        fee = int(revenue * fee_rate)
        self.trades.append(TradeRecord(index, "sell", self.shares, price, fee, reason))
        self.cash += revenue - fee
        self.shares = 0
        self.avg_price = 0
        self.sell_count += 1
        return True

    def record_equity(self, price: int) -> None:
        self.equity_history.append(self.total_value(price))


class TradingStrategy(ABC):
    """매매 전략 추상 클래스.

    새 전략을 만들려면 이 클래스를 상속받아 on_price()를 구현하고
    strategies/__init__.py의 @register 데코레이터로 등록한다.
    매 시점 처리 후에는 반드시 self.ledger.record_equity(price)를 호출해야 한다.
    """

    DEFAULT_PARAMS: dict[str, Any] = {}

    def __init__(
        self,
        name: str,
        initial_cash: int,
        params: dict[str, Any] | None = None,
    ):
        self.name = name
        self.initial_cash = int(initial_cash)
        self.params = {**self.DEFAULT_PARAMS, **(params or {})}
        self.ledger = StrategyLedger(cash=self.initial_cash)

    @classmethod
    @abstractmethod
    def from_config(cls, config) -> "TradingStrategy":
        """utils/config.py::BacktestConfig에서 전략 생성."""
        ...

    @abstractmethod
    def on_price(self, index: int, price: int, change_rate: float) -> None:
        """한 시점 가격 처리.

        Args:
            index: 가격 시퀀스 인덱스 (0부터)
            price: 해당 시점 가격
            change_rate: 직전 시점 대비 등락률 (%), 첫 시점은 0
        """
        ...

    def reset(self) -> None:
        """새 대결 시작 전 장부 초기화. 상태 필드를 가진 전략은 오버라이드 후 super() 호출."""
        self.ledger = StrategyLedger(cash=self.initial_cash)

    def on_finish(self, last_price: int) -> None:
        """시퀀스 종료 시 호출. 기본은 아무 작업 없음."""

    @property
    def fee_rate(self) -> float:
        return float(self.params.get("fee_rate", 0.0))

    def _buy(self, index: int, price: int, quantity: int, reason: str) -> bool:
        success = self.ledger.buy(price, quantity, self.fee_rate, index=index, reason=reason)
        if success:
            logger.debug(f"[{self.name}] #{index} 매수 {quantity}주 @ {price:,}원 ({reason})")
        return success

    def _sell_all(self, index: int, price: int, reason: str) -> bool:
        shares = self.ledger.shares
        success = self.ledger.sell_all(price, self.fee_rate, index=index, reason=reason)
        if success:
            logger.debug(f"[{self.name}] #{index} 전량 매도 {shares}주 @ {price:,}원 ({reason})")
        return success

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, params={self.params})"
