"""
가격 소스 추상 클래스 정의.

[ 역할 ]
    백테스트 엔진이 필요로 하는 최소한의 가격 인터페이스.
    현재가 + 인덱스로 접근 가능한 과거 가격 시퀀스(append-only).

[ 구현체 ]
    - data/market_data.py::Security

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_battle()에서 가격 순회
"""

from abc import ABC, abstractmethod
from typing import Optional


class PriceSource(ABC):
    """가격 소스 추상 클래스.

    가격은 항상 양의 정수(원)이며, 이력은 추가만 가능하다.
    """

    @property
    @abstractmethod
    def current_price(self) -> int:
        """현재가."""
        ...

    @abstractmethod
    def get_price_at(self, index: int) -> Optional[int]:
        """index번째 과거 가격. 범위를 벗어나면 None."""
        ...

    @property
    @abstractmethod
    def history_length(self) -> int:
        """과거 가격 개수."""
        ...

    def __len__(self) -> int:
        return self.history_length
