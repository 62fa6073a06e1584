"""
존버 (Holder) 전략 구현.

[ 전략 흐름 ]
    1주 이상 살 수 있는 첫 시점에 현금 * buy_ratio 만큼 한 번 매수.
    이후 아무것도 하지 않는다.

[ 파라미터 ]
    buy_ratio: 최초 매수 비율 (0.5 = 현금의 절반)
    fee_rate:  수수료율
"""

from typing import Any

from habit_backtester.core.trading_strategy import TradingStrategy
from habit_backtester.strategies import register


@register("hold")
class HoldStrategy(TradingStrategy):
    """사 놓고 버티는 습관."""

    DISPLAY_NAME = "존버 (Holder)"
    DEFAULT_PARAMS = {
        "buy_ratio": 0.5,
        "fee_rate": 0.00015,
    }

    def __init__(self, initial_cash: int, params: dict[str, Any] | None = None):
        super().__init__(name=self.DISPLAY_NAME, initial_cash=initial_cash, params=params)
        self.has_bought = False

    def reset(self) -> None:
        super().reset()
        self.has_bought = False

    @classmethod
    def from_config(cls, config) -> "HoldStrategy":
        return cls(
            initial_cash=config.initial_cash,
            params={"buy_ratio": config.hold_buy_ratio, "fee_rate": config.fee_rate},
        )

    @property
    def buy_ratio(self) -> float:
        return float(self.params["buy_ratio"])

    def on_price(self, index: int, price: int, change_rate: float) -> None:
        ledger = self.ledger
        if not self.has_bought and ledger.cash >= price:
            buy_amount = int(ledger.cash * self.buy_ratio)
            qty = ledger.affordable_quantity(buy_amount, price, self.fee_rate)
            if qty > 0:
                self._buy(index, price, qty, f"최초 {self.buy_ratio * 100:.0f}% 매수")
                self.has_bought = True
        ledger.record_equity(price)
