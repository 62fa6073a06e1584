"""
백테스팅 엔진 모듈 (전략 대결).

[ 역할 ]
    하나의 가격 시퀀스를 등록된 모든 전략에 똑같이 흘려보내고,
    전략별 자산 추이와 성과(StrategyReport)를 수집.

[ 실행 흐름 ]
    run_battle() 호출 시:
        0. 모든 전략 reset() → 같은 엔진을 다시 돌려도 결과 동일
        1. 가격 이력이 비어 있으면 아무것도 하지 않고 [] 반환
        2. 각 시점 i에 대해 직전 대비 등락률(%) 계산 (첫 시점은 0)
           → 등록 순서대로 strategy.on_price(i, price, change_rate) 호출
        3. 마지막 가격으로 strategy.on_finish() 호출
        4. metrics.build_report()로 전략별 StrategyReport 생성

[ 격리 규칙 ]
    전략은 서로의 상태를 보지 못한다. 공유되는 것은 가격과 등락률뿐.

[ 의존성 ]
    - core/data_provider.py::PriceSource (가격 시퀀스)
    - core/trading_strategy.py::TradingStrategy (전략 인터페이스)
    - backtest/metrics.py::build_report() (성과 계산)

[ 호출하는 곳 ]
    - run_backtest.py (진입점)에서 생성 및 실행
"""

import logging

import pandas as pd

from habit_backtester.backtest.metrics import StrategyReport, build_report, calculate_max_drawdown
from habit_backtester.core.data_provider import PriceSource
from habit_backtester.core.trading_strategy import TradingStrategy
from habit_backtester.utils.config import BacktestConfig

logger = logging.getLogger("habit_backtester.backtest")


class BacktestEngine:
    """전략 대결 엔진. 등록된 전략들은 엔진이 소유한다."""

    def __init__(self, source: PriceSource, config: BacktestConfig | None = None):
        self.source = source
        self.config = config or BacktestConfig()
        self._strategies: list[TradingStrategy] = []
        self.results: list[StrategyReport] = []

    @property
    def strategies(self) -> tuple[TradingStrategy, ...]:
        return tuple(self._strategies)

    def add_strategy(self, strategy: TradingStrategy) -> None:
        self._strategies.append(strategy)

    def add_strategies(self, strategies: list[TradingStrategy]) -> None:
        for strategy in strategies:
            self.add_strategy(strategy)

    @staticmethod
    def calculate_mdd(equity_history: list[int]) -> float:
        return calculate_max_drawdown(equity_history)

    def run_battle(self) -> list[StrategyReport]:
        """전체 가격 시퀀스로 대결 실행.

        Returns:
            전략 등록 순서대로의 StrategyReport 목록. 가격이 없으면 빈 리스트.
        """
        self.results = []
        for strategy in self._strategies:
            strategy.reset()

        length = self.source.history_length
        if length == 0:
            logger.warning("가격 이력이 없습니다. 대결을 건너뜁니다.")
            return []

        logger.info(f"대결 시작: {length}개 시점, 전략 {len(self._strategies)}개")

        prev_price = self.source.get_price_at(0)
        for i in range(length):
            price = self.source.get_price_at(i)
            change_rate = 0.0 if i == 0 else (price - prev_price) / prev_price * 100

            for strategy in self._strategies:
                strategy.on_price(i, price, change_rate)
            prev_price = price

        last_price = self.source.get_price_at(length - 1)
        for strategy in self._strategies:
            strategy.on_finish(last_price)
            report = build_report(strategy, self.config.initial_cash, last_price)
            self.results.append(report)
            logger.info(
                f"[{report.strategy_name}] 최종 자산 {report.final_equity:,}원 "
                f"({report.total_return:+.2f}%), MDD {report.max_drawdown:.2f}%"
            )

        return list(self.results)

    def equity_frame(self) -> pd.DataFrame:
        """전략별 자산 추이. 행 = 시점, 열 = 전략 이름."""
        frame = pd.DataFrame(
            {s.name: pd.Series(s.ledger.equity_history, dtype="int64") for s in self._strategies}
        )
        frame.index.name = "step"
        return frame
