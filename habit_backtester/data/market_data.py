"""
종목 / 시장 데이터 모듈.

[ 역할 ]
    Security - 종목 코드, 이름, 현재가/직전가, 과거 가격 이력(append-only)
    Market   - 종목들을 소유하는 컨테이너. 코드로 종목 조회 + 랜덤 시세 변동

[ 가격 규칙 ]
    가격은 항상 1원 이상의 정수. 시세 변동 시 1원 미만이면 1원으로 보정.

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine이 Security의 가격 이력을 순회
    - brokers/account.py::Account.execute_order()가 Market에서 현재가 조회
    - run_backtest.py에서 CSV / 랜덤 가격 경로 로드
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from habit_backtester.core.data_provider import PriceSource

MIN_PRICE = 1


class Security(PriceSource):
    """개별 종목. 과거 가격 이력은 추가만 가능하고 인덱스로 조회."""

    def __init__(self, code: str, name: str, price: int):
        self.code = code
        self.name = name
        self._current_price = int(price)
        self.previous_price = int(price)
        self._price_history: list[int] = []

    @property
    def current_price(self) -> int:
        return self._current_price

    @property
    def history_length(self) -> int:
        return len(self._price_history)

    @property
    def price_history(self) -> tuple[int, ...]:
        """읽기 전용 사본."""
        return tuple(self._price_history)

    @property
    def change_rate(self) -> float:
        """직전가 대비 등락률 (%)."""
        if self.previous_price == 0:
            return 0.0
        return (self._current_price - self.previous_price) / self.previous_price * 100.0

    def update_price(self, new_price: int) -> None:
        """시세 갱신. 직전가 ← 현재가, 현재가 ← new_price."""
        self.previous_price = self._current_price
        self._current_price = int(new_price)

    def add_price_history(self, price: int) -> None:
        self._price_history.append(int(price))

    def extend_price_history(self, prices) -> None:
        for price in prices:
            self.add_price_history(price)

    def get_price_at(self, index: int) -> Optional[int]:
        if index < 0 or index >= len(self._price_history):
            return None
        return self._price_history[index]

    def __repr__(self) -> str:
        return f"Security({self.code!r}, {self.name!r}, price={self._current_price})"

    @classmethod
    def from_prices(cls, code: str, name: str, prices: list[int]) -> "Security":
        """가격 리스트로 종목 생성. 현재가는 첫 가격."""
        first = int(prices[0]) if prices else MIN_PRICE
        security = cls(code, name, first)
        security.extend_price_history(prices)
        return security

    @classmethod
    def from_frame(
        cls,
        code: str,
        name: str,
        df: pd.DataFrame,
        column: str = "close",
    ) -> "Security":
        """OHLCV DataFrame에서 종목 생성.

        Args:
            df: date 컬럼이 있으면 날짜순 정렬 후 사용
            column: 가격으로 쓸 컬럼 (기본 종가)

        Raises:
            ValueError: 가격 컬럼이 없을 때
        """
        if column not in df.columns:
            raise ValueError(f"가격 컬럼 없음: '{column}'. 컬럼: {list(df.columns)}")

        df = df.copy()
        if "date" in df.columns:
            df["date"] = pd.to_datetime(df["date"])
            df = df.sort_values("date").reset_index(drop=True)

        prices = df[column].dropna().round().astype(int).clip(lower=MIN_PRICE).tolist()
        return cls.from_prices(code, name, prices)


def load_prices_csv(path: str | Path, column: str = "close") -> pd.DataFrame:
    """CSV에서 가격 데이터 로드. column 이 반드시 있어야 한다."""
    df = pd.read_csv(path)
    if column not in df.columns:
        raise ValueError(f"가격 컬럼 없음: '{column}' ({path})")
    return df


# ─── 랜덤 시세 변동 ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PriceShockModel:
    """시세 변동 분포.

    (1 - shock_probability) 확률로 normal_range 안에서 균등 변동,
    shock_probability 확률로 shock_range 안에서 급락.
    """
    shock_probability: float = 0.05
    normal_range: tuple[float, float] = (-0.03, 0.03)
    shock_range: tuple[float, float] = (-0.15, -0.05)

    def sample_rate(self, rng: np.random.Generator) -> float:
        if rng.random() < self.shock_probability:
            low, high = self.shock_range
        else:
            low, high = self.normal_range
        return float(rng.uniform(low, high))

    def apply(self, price: int, rng: np.random.Generator) -> int:
        new_price = int(price * (1 + self.sample_rate(rng)))
        return max(new_price, MIN_PRICE)


def generate_price_path(
    initial_price: int,
    days: int,
    model: PriceShockModel | None = None,
    seed: int | None = None,
) -> list[int]:
    """랜덤 가격 경로 생성. 첫 가격은 initial_price."""
    if days <= 0:
        return []
    model = model or PriceShockModel()
    rng = np.random.default_rng(seed)

    prices = [max(int(initial_price), MIN_PRICE)]
    for _ in range(days - 1):
        prices.append(model.apply(prices[-1], rng))
    return prices


@dataclass
class Market:
    """종목 컨테이너. 모든 Security는 Market이 소유한다.

    사용 예:
        market = Market()
        market.add_security(Security("005930", "삼성전자", 70000))
        market.get_security("005930").current_price
    """
    shock_model: PriceShockModel = field(default_factory=PriceShockModel)
    _securities: dict[str, Security] = field(default_factory=dict, init=False, repr=False)

    def add_security(self, security: Security) -> bool:
        """종목 등록. 이미 있는 코드면 False."""
        if security.code in self._securities:
            return False
        self._securities[security.code] = security
        return True

    def get_security(self, code: str) -> Optional[Security]:
        return self._securities.get(code)

    def codes(self) -> list[str]:
        return list(self._securities.keys())

    def __iter__(self) -> Iterator[Security]:
        return iter(self._securities.values())

    def __len__(self) -> int:
        return len(self._securities)

    def simulate_price_change(self, rng: np.random.Generator | None = None) -> None:
        """모든 종목 현재가를 shock_model 분포로 한 번 변동."""
        rng = rng if rng is not None else np.random.default_rng()
        for security in self._securities.values():
            security.update_price(self.shock_model.apply(security.current_price, rng))
