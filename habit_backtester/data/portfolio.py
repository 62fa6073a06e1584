"""
포트폴리오 관리 모듈.

[ 역할 ]
    보유 종목(Position)을 종목 코드별로 관리.
    Account가 주문 체결 시 이 클래스를 통해 수량/평단을 갱신.

[ 주요 클래스 ]
    Position  - 개별 종목의 수량/평균단가/총 투입금 추적
    Portfolio - 종목 코드 → Position 매핑, 평가금액/평가손익 집계

[ 불변 조건 ]
    모든 변경 후 total_invested == quantity * avg_price
    수량이 0이 되면 avg_price, total_invested 모두 0 (원가 정보 소멸)

[ 호출하는 곳 ]
    - brokers/account.py::Account.execute_order()
"""

from typing import Any, Optional

from habit_backtester.data.market_data import Security


class Position:
    """개별 종목 포지션. 금액은 모두 정수(원)."""

    def __init__(self, security: Security, quantity: int = 0, price: int = 0):
        self.security = security       # 소유하지 않음 (Market 소유)
        self.quantity = 0
        self.avg_price = 0
        self.total_invested = 0
        if quantity > 0:
            self.add_quantity(quantity, price)

    @property
    def code(self) -> str:
        return self.security.code

    def add_quantity(self, quantity: int, price: int) -> bool:
        """매수 반영. 평단 = (기존 투입금 + 신규 매수금) // 총 수량 (원 단위 절사)."""
        if quantity <= 0:
            return False
        invested = self.total_invested + quantity * price
        self.quantity += quantity
        self.avg_price = invested // self.quantity
        self.total_invested = self.quantity * self.avg_price
        return True

    def reduce_quantity(self, quantity: int) -> bool:
        """매도 반영. 평단은 그대로, 투입금은 남은 수량만큼 비례 감소."""
        if quantity <= 0 or quantity > self.quantity:
            return False
        self.quantity -= quantity
        if self.quantity == 0:
            self.avg_price = 0
            self.total_invested = 0
        else:
            self.total_invested = self.quantity * self.avg_price
        return True

    @property
    def current_value(self) -> int:
        """현재가 기준 평가금액."""
        return self.security.current_price * self.quantity

    @property
    def profit(self) -> int:
        """평가손익."""
        return self.current_value - self.total_invested

    @property
    def profit_rate(self) -> float:
        """평가 수익률 (%)."""
        if self.total_invested == 0:
            return 0.0
        return self.profit / self.total_invested * 100.0

    def __repr__(self) -> str:
        return (
            f"Position({self.code!r}, quantity={self.quantity}, "
            f"avg_price={self.avg_price}, total_invested={self.total_invested})"
        )


class Portfolio:
    """종목 코드 → Position. Account가 소유."""

    def __init__(self):
        self.positions: dict[str, Position] = {}

    def add_position(self, security: Security, quantity: int, price: int) -> bool:
        """매수 체결 반영. 처음 사는 종목이면 Position 생성."""
        if quantity <= 0:
            return False
        position = self.positions.get(security.code)
        if position is None:
            self.positions[security.code] = Position(security, quantity, price)
            return True
        return position.add_quantity(quantity, price)

    def reduce_position(self, code: str, quantity: int) -> bool:
        """매도 체결 반영. 수량이 0이 되면 포지션 삭제."""
        position = self.positions.get(code)
        if position is None:
            return False
        if not position.reduce_quantity(quantity):
            return False
        if position.quantity == 0:
            del self.positions[code]
        return True

    def get_position(self, code: str) -> Optional[Position]:
        return self.positions.get(code)

    def has_position(self, code: str) -> bool:
        return code in self.positions

    def holding_codes(self) -> list[str]:
        return list(self.positions.keys())

    @property
    def total_value(self) -> int:
        """보유 종목 평가금액 합계."""
        return sum(p.current_value for p in self.positions.values())

    @property
    def total_profit(self) -> int:
        """보유 종목 평가손익 합계."""
        return sum(p.profit for p in self.positions.values())

    def summary(self) -> list[dict[str, Any]]:
        """보유 종목 현황 (출력용)."""
        return [
            {
                "code": code,
                "name": p.security.name,
                "quantity": p.quantity,
                "avg_price": p.avg_price,
                "current_price": p.security.current_price,
                "profit_rate": p.profit_rate,
            }
            for code, p in sorted(self.positions.items())
        ]
