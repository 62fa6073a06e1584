"""
전략 성과 지표 계산 모듈.

[ 역할 ]
    백테스트 종료 후 전략 장부(StrategyLedger)에서 StrategyReport를 만든다.

[ 계산하는 지표 ]
    - 총 수익률 (%) = (최종 자산 - 초기 자본) / 초기 자본 * 100
    - MDD (%)       = 누적 최고 자산 대비 최대 하락률

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_battle() 완료 시 build_report() 호출
"""

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np

from habit_backtester.core.trading_strategy import TradingStrategy


@dataclass(frozen=True)
class StrategyReport:
    """전략별 최종 성과. 생성 후 변경 불가."""
    strategy_name: str
    initial_cash: int
    final_equity: int
    total_return: float    # 총 수익률 (%)
    max_drawdown: float    # 최대 낙폭 MDD (%)
    buy_count: int
    sell_count: int
    final_shares: int
    avg_price: int         # 최종 평균 매수가

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def calculate_max_drawdown(equity_history: Sequence[int]) -> float:
    """MDD (%) 계산.

    고점은 0에서 시작해 누적 최댓값으로만 갱신되며(리셋 없음),
    고점이 0인 구간은 낙폭을 계산하지 않는다.
    """
    if len(equity_history) == 0:
        return 0.0

    values = np.asarray(equity_history, dtype=float)
    peaks = np.maximum.accumulate(np.maximum(values, 0.0))
    mask = peaks > 0
    if not mask.any():
        return 0.0

    drawdowns = (peaks[mask] - values[mask]) / peaks[mask]
    return float(max(drawdowns.max(), 0.0) * 100.0)


def calculate_total_return(final_equity: int, initial_cash: int) -> float:
    """총 수익률 (%). 초기 자본이 0이면 0."""
    if initial_cash == 0:
        return 0.0
    return (final_equity - initial_cash) / initial_cash * 100.0


def build_report(strategy: TradingStrategy, initial_cash: int, last_price: int) -> StrategyReport:
    """전략 장부에서 StrategyReport 생성."""
    ledger = strategy.ledger
    final_equity = ledger.total_value(last_price)
    return StrategyReport(
        strategy_name=strategy.name,
        initial_cash=initial_cash,
        final_equity=final_equity,
        total_return=calculate_total_return(final_equity, initial_cash),
        max_drawdown=calculate_max_drawdown(ledger.equity_history),
        buy_count=ledger.buy_count,
        sell_count=ledger.sell_count,
        final_shares=ledger.shares,
        avg_price=ledger.avg_price,
    )
