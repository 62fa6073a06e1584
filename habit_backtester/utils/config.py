"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    백테스트 파라미터, 종목/가격 시퀀스, 대결 전략 목록, 로깅 설정을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    backtest:         → BacktestConfig (초기 자본, 수수료, 전략 파라미터 7종)
    market:           → MarketConfig (종목 코드/이름, 가격 시퀀스, 랜덤 시세 설정)
    strategies:       → 대결할 전략 키 목록 (순서 = 등록 순서)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py에서 Config.from_yaml()로 로드
    - strategies/__init__.py::create_strategy()에 config.backtest 전달
    - backtest/engine.py::BacktestEngine 생성 시 config.backtest 전달
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from habit_backtester.data.market_data import PriceShockModel

# 기본 샘플 가격 (30일): 하락 → 급락 → 바닥 → 회복 → 신고가
SAMPLE_PRICES: list[int] = [
    70000, 71000, 69500, 68000, 65000,
    62000, 58000, 55000, 53000, 50000,
    48000, 49000, 51000, 52000, 54000,
    56000, 58000, 60000, 62000, 64000,
    65000, 67000, 68000, 70000, 72000,
    74000, 75000, 76000, 78000, 80000,
]


@dataclass(frozen=True)
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응. 실행 중 변경 불가."""
    initial_cash: int = 10_000_000
    fee_rate: float = 0.00015         # 0.015%
    panic_threshold: float = -0.10    # 쫄보 손절 기준 (-10%)
    dca_drop_rate: float = -0.05      # 코치 물타기 기준 (-5%)
    dca_interval: int = 5             # 코치 정기 매수 간격 (시점)
    dca_buy_ratio: float = 0.25       # 코치 1회 매수 비율
    hold_buy_ratio: float = 0.5       # 존버 최초 매수 비율


@dataclass
class MarketConfig:
    """종목/가격 설정. config.yaml의 market 섹션에 대응.

    prices가 비어 있으면 run_backtest.py가 initial_price에서 랜덤 경로를 만든다.
    """
    code: str = "005930"
    name: str = "삼성전자"
    prices: list[int] = field(default_factory=lambda: list(SAMPLE_PRICES))
    initial_price: int = 70000
    seed: int | None = None
    shock_probability: float = 0.05
    normal_range: tuple[float, float] = (-0.03, 0.03)
    shock_range: tuple[float, float] = (-0.15, -0.05)

    def shock_model(self) -> PriceShockModel:
        return PriceShockModel(
            shock_probability=self.shock_probability,
            normal_range=tuple(self.normal_range),
            shock_range=tuple(self.shock_range),
        )


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    strategies: list[str] = field(default_factory=lambda: ["panic_sell", "dca", "hold"])
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data or {})

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성. 모르는 키는 무시."""
        backtest_data = data.get("backtest") or {}
        market_data = dict(data.get("market") or {})

        backtest = BacktestConfig(**{
            k: v for k, v in backtest_data.items()
            if k in BacktestConfig.__dataclass_fields__
        })

        # YAML 리스트 → 튜플
        for key in ("normal_range", "shock_range"):
            if key in market_data:
                market_data[key] = tuple(market_data[key])
        if "prices" in market_data:
            market_data["prices"] = [int(p) for p in (market_data["prices"] or [])]
        market = MarketConfig(**{
            k: v for k, v in market_data.items()
            if k in MarketConfig.__dataclass_fields__
        })

        # 명시적인 빈 목록은 그대로 유지 (키가 없거나 null일 때만 기본값)
        strategies = data.get("strategies")
        if strategies is None:
            strategies = cls().strategies
        return cls(
            backtest=backtest,
            market=market,
            strategies=list(strategies),
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        data = asdict(self)
        for key in ("normal_range", "shock_range"):
            data["market"][key] = list(data["market"][key])
        return data

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)
