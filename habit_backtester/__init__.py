"""
=============================================================================
습관 교정 백테스터 (Habit Backtester)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         │
         ├── data/market_data.py    ← 종목(Security) + 시장(Market)
         │
         ├── strategies/            ← 매매 습관 전략 (쫄보 / 코치 / 존버)
         │     ├── panic_sell_strategy.py
         │     ├── dca_strategy.py
         │     └── hold_strategy.py
         │
         └── backtest/engine.py     ← 동일 가격 흐름으로 전략 대결 (run_battle)
               │
               ├── backtest/metrics.py  ← MDD / StrategyReport 계산
               └── backtest/report.py   ← 순위 + 비교 코멘트


[ 실제 계좌 모델 (백테스트와 독립) ]

    brokers/account.py       → 주문 접수(place_order) / 체결(execute_order)
    data/portfolio.py        → Position / Portfolio (수량, 평단, 투입금)
    core/order.py            → Order / Transaction / IdSequence


[ 핵심 추상 클래스 (core/) ]

    core/data_provider.py    → data/market_data.py::Security (가격 소스)
    core/trading_strategy.py → strategies/*.py (전략 구현체)


[ 데이터 흐름 ]

    1. config.yaml에서 BacktestConfig + 가격 시퀀스 로드
    2. Security에 가격 이력 적재
    3. BacktestEngine이 매 시점 모든 전략의 on_price() 호출 (등록 순서대로)
    4. 각 전략은 자기 StrategyLedger에만 매수/매도 반영 후 자산 기록
    5. 종료 후 전략별 StrategyReport 생성 → BacktestReport가 순위/코멘트 출력
"""

__version__ = "0.1.0"
