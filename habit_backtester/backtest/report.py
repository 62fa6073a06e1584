"""
백테스트 결과 리포트 모듈.

[ 역할 ]
    BacktestEngine.run_battle() 결과(StrategyReport 목록)를 받아
    요약 / 수익률 순위 / 쫄보 vs 코치 비교 코멘트를 만든다.
    출력 형식은 여기서만 다루며 엔진은 값만 넘긴다.

[ 호출하는 곳 ]
    - run_backtest.py에서 write()로 콘솔 출력
"""

from typing import Callable, Optional

import pandas as pd

from habit_backtester.backtest.metrics import StrategyReport

PANIC_KEYWORDS = ("쫄보", "Panic")
DCA_KEYWORDS = ("코치", "DCA")

INSUFFICIENT_RESULTS = "결과 부족"
MISSING_COMPARISON = "비교 대상 전략이 없습니다."


def rank_by_return(results: list[StrategyReport]) -> list[StrategyReport]:
    """수익률 내림차순 정렬 (최댓값 선택 정렬).

    남은 구간에서 가장 높은 수익률 중 가장 앞선 것을 골라 꺼내므로
    동률이면 원래(등록) 순서가 유지된다.
    """
    remaining = list(results)
    ranked: list[StrategyReport] = []
    while remaining:
        best = 0
        for i in range(1, len(remaining)):
            if remaining[i].total_return > remaining[best].total_return:
                best = i
        ranked.append(remaining.pop(best))
    return ranked


def _find_index(results: list[StrategyReport], keywords: tuple[str, ...]) -> int:
    """이름에 keywords 중 하나가 들어간 마지막 리포트 인덱스. 없으면 -1."""
    found = -1
    for i, report in enumerate(results):
        if any(k in report.strategy_name for k in keywords):
            found = i
    return found


class BacktestReport:
    """전략 대결 결과 리포트."""

    def __init__(self, results: list[StrategyReport], stock_name: str = ""):
        self.results = list(results)
        self.stock_name = stock_name

    def ranked(self) -> list[StrategyReport]:
        return rank_by_return(self.results)

    @property
    def winner(self) -> Optional[StrategyReport]:
        ranked = self.ranked()
        return ranked[0] if ranked else None

    def summary_comment(self) -> str:
        """쫄보 vs 코치 수익률 비교 코멘트."""
        if len(self.results) < 2:
            return INSUFFICIENT_RESULTS

        panic_idx = _find_index(self.results, PANIC_KEYWORDS)
        dca_idx = _find_index(self.results, DCA_KEYWORDS)
        if panic_idx == -1 or dca_idx == -1:
            return MISSING_COMPARISON

        diff = self.results[dca_idx].total_return - self.results[panic_idx].total_return
        if diff > 0:
            return (
                f"물타기 전략이 감정적 손절 전략보다 {diff:.2f}%p 높은 수익을 기록했습니다.\n"
                "뇌동매매를 줄이고 원칙을 지키는 습관을 길러보세요."
            )
        return (
            "이번 시나리오에서는 손절 전략이 유리했습니다.\n"
            "하지만 장기적으로는 원칙 투자가 더 안정적입니다."
        )

    def summary(self) -> str:
        """전략별 성과 요약 문자열."""
        lines = [
            "=" * 50,
            "습관 교정 백테스터 결과 리포트",
            "=" * 50,
            f"종목: {self.stock_name}",
        ]
        if not self.results:
            return "\n".join(lines)

        lines.append(f"초기 자본: {self.results[0].initial_cash:,}원")
        for res in self.results:
            lines += [
                "-" * 50,
                f"[{res.strategy_name}]",
                f"최종 자산: {res.final_equity:,}원 | 수익률: {res.total_return:.2f}%",
                f"MDD: {res.max_drawdown:.2f}% | 매수: {res.buy_count}회 | 매도: {res.sell_count}회",
                f"보유: {res.final_shares}주 | 평단: {res.avg_price:,}원",
            ]
        lines.append("=" * 50)
        return "\n".join(lines)

    def ranking_line(self) -> str:
        ranked = self.ranked()
        if not ranked:
            return "순위: 없음"
        parts = [
            f"{i}. {r.strategy_name}({r.total_return:+.0f}%)"
            for i, r in enumerate(ranked, start=1)
        ]
        return f"순위: {' '.join(parts)}\n승자: {ranked[0].strategy_name}"

    def write(self, sink: Callable[[str], None] = print) -> None:
        """요약, 순위, 비교 코멘트를 sink로 출력."""
        sink(self.summary())
        if not self.results:
            return
        sink(self.ranking_line())
        sink("")
        sink(self.summary_comment())

    def to_frame(self) -> pd.DataFrame:
        """순위순 DataFrame (index = 순위)."""
        rows = [r.to_dict() for r in self.ranked()]
        frame = pd.DataFrame(rows, columns=list(StrategyReport.__dataclass_fields__))
        frame.index = pd.RangeIndex(1, len(frame) + 1, name="rank")
        return frame
