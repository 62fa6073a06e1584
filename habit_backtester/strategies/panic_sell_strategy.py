"""
쫄보 (Panic Seller) 전략 구현.

[ 전략 흐름 ]
    매 시점 on_price() 호출됨 (← backtest/engine.py에서)
        ├── 아직 안 샀으면 → 첫 가격에 현금 전액 매수
        ├── 보유 중이면 → 평단 대비 수익률 <= stop_loss_rate 시 전량 손절
        └── 한 번 손절하면 다시 들어가지 않음

[ 파라미터 ]
    stop_loss_rate: 손절 기준 수익률 (부호 포함, -0.10 = -10%)
    fee_rate:       수수료율
"""

from typing import Any

from habit_backtester.core.trading_strategy import TradingStrategy
from habit_backtester.strategies import register


@register("panic_sell")
class PanicSellStrategy(TradingStrategy):
    """공포에 전량 손절하는 습관."""

    DISPLAY_NAME = "쫄보 (Panic Seller)"
    DEFAULT_PARAMS = {
        "stop_loss_rate": -0.10,
        "fee_rate": 0.00015,
    }

    def __init__(self, initial_cash: int, params: dict[str, Any] | None = None):
        super().__init__(name=self.DISPLAY_NAME, initial_cash=initial_cash, params=params)
        self.has_bought = False

    def reset(self) -> None:
        super().reset()
        self.has_bought = False

    @classmethod
    def from_config(cls, config) -> "PanicSellStrategy":
        return cls(
            initial_cash=config.initial_cash,
            params={"stop_loss_rate": config.panic_threshold, "fee_rate": config.fee_rate},
        )

    @property
    def stop_loss_rate(self) -> float:
        return float(self.params["stop_loss_rate"])

    def on_price(self, index: int, price: int, change_rate: float) -> None:
        ledger = self.ledger

        if not self.has_bought and ledger.cash >= price:
            qty = ledger.affordable_quantity(ledger.cash, price, self.fee_rate)
            if qty > 0:
                self._buy(index, price, qty, "첫 시점 전액 매수")
                self.has_bought = True
        elif ledger.shares > 0 and ledger.avg_price > 0:
            profit_rate = (price - ledger.avg_price) / ledger.avg_price
            if profit_rate <= self.stop_loss_rate:
                self._sell_all(
                    index,
                    price,
                    f"손절 ({profit_rate * 100:.2f}% <= {self.stop_loss_rate * 100:.2f}%)",
                )

        ledger.record_equity(price)
