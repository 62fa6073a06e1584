"""
코치 (DCA, 분할매수 / 물타기) 전략 구현.

[ 전략 흐름 ]
    매 시점 on_price() 호출됨 (← backtest/engine.py에서)
        ├── 첫 매수: 현금 >= 가격이면 바로 매수
        └── 이후 매수 조건 (둘 중 하나)
              ├── 마지막 매수 후 interval 시점 이상 경과
              └── 마지막 매수가 대비 drop_rate 이하로 하락 (물타기)

    매수 금액 = 현재 현금 * buy_ratio
    매수 금액이 1주 가격보다 작으면 남은 현금 전부 사용.
    매도는 하지 않는다.

[ 파라미터 ]
    interval:  정기 매수 간격 (시점 수)
    drop_rate: 물타기 기준 하락률 (부호 포함, -0.05 = -5%)
    buy_ratio: 1회 매수 비율 (현재 현금 대비)
    fee_rate:  수수료율
"""

from typing import Any

from habit_backtester.core.trading_strategy import TradingStrategy
from habit_backtester.strategies import register


@register("dca")
class DCAStrategy(TradingStrategy):
    """원칙대로 나눠 사는 습관."""

    DISPLAY_NAME = "코치 (DCA)"
    DEFAULT_PARAMS = {
        "interval": 5,
        "drop_rate": -0.05,
        "buy_ratio": 0.25,
        "fee_rate": 0.00015,
    }

    def __init__(self, initial_cash: int, params: dict[str, Any] | None = None):
        super().__init__(name=self.DISPLAY_NAME, initial_cash=initial_cash, params=params)
        self.last_buy_index = -1
        self.last_buy_price = 0

    def reset(self) -> None:
        super().reset()
        self.last_buy_index = -1
        self.last_buy_price = 0

    @classmethod
    def from_config(cls, config) -> "DCAStrategy":
        return cls(
            initial_cash=config.initial_cash,
            params={
                "interval": config.dca_interval,
                "drop_rate": config.dca_drop_rate,
                "buy_ratio": config.dca_buy_ratio,
                "fee_rate": config.fee_rate,
            },
        )

    @property
    def interval(self) -> int:
        return int(self.params["interval"])

    @property
    def drop_rate(self) -> float:
        return float(self.params["drop_rate"])

    @property
    def buy_ratio(self) -> float:
        return float(self.params["buy_ratio"])

    def buy_reason(self, index: int, price: int) -> str | None:
        """매수 사유. 매수 조건이 아니면 None."""
        if self.ledger.cash < price:
            return None
        if self.last_buy_index < 0:
            return "첫 매수"

        if self.last_buy_price > 0:
            drop = (price - self.last_buy_price) / self.last_buy_price
            if drop <= self.drop_rate:
                return f"물타기 ({drop * 100:.2f}% 하락)"
        if index - self.last_buy_index >= self.interval:
            return f"정기 매수 ({index - self.last_buy_index}시점 경과)"
        return None

    def on_price(self, index: int, price: int, change_rate: float) -> None:
        ledger = self.ledger
        reason = self.buy_reason(index, price)

        if reason is not None:
            buy_amount = int(ledger.cash * self.buy_ratio)
            if buy_amount < price:
                buy_amount = ledger.cash  # 남은 돈이 적으면 전액

            qty = ledger.affordable_quantity(buy_amount, price, self.fee_rate)
            if qty > 0 and self._buy(index, price, qty, reason):
                self.last_buy_index = index
                self.last_buy_price = price

        ledger.record_equity(price)
