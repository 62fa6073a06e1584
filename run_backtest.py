"""
습관 교정 백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 가격 시퀀스 + 전략 목록)
    python run_backtest.py

    # 전략 지정 (순서대로 대결)
    python run_backtest.py --strategies panic_sell dca

    # CSV 가격 사용 (close 컬럼)
    python run_backtest.py --prices data/005930.csv

    # 랜덤 가격 경로 사용
    python run_backtest.py --random-days 60 --seed 42

    # 계좌 주문/체결 데모
    python run_backtest.py --account-demo

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
from pathlib import Path

import numpy as np

from habit_backtester.backtest.engine import BacktestEngine
from habit_backtester.backtest.report import BacktestReport
from habit_backtester.brokers.account import Account
from habit_backtester.core.order import OrderSide
from habit_backtester.data.market_data import (
    Market,
    Security,
    generate_price_path,
    load_prices_csv,
)
from habit_backtester.strategies import build_strategies, list_strategies
from habit_backtester.utils.config import Config
from habit_backtester.utils.logger import setup_logger


def load_security(config: Config, args: argparse.Namespace) -> Security:
    """가격 소스 결정: CSV > 랜덤 경로 > config.yaml 가격."""
    market = config.market

    if args.prices:
        df = load_prices_csv(args.prices, column=args.column)
        print(f"CSV 가격 로드: {args.prices} ({len(df)}행)")
        return Security.from_frame(market.code, market.name, df, column=args.column)

    if args.random_days or not market.prices:
        days = args.random_days or 30
        seed = args.seed if args.seed is not None else market.seed
        prices = generate_price_path(market.initial_price, days, market.shock_model(), seed)
        print(f"랜덤 가격 경로 생성: {days}일 (seed={seed})")
        return Security.from_prices(market.code, market.name, prices)

    return Security.from_prices(market.code, market.name, market.prices)


def run_account_demo(config: Config, security: Security, seed: int | None) -> None:
    """기본 거래 기능 데모: 입금 → 10주 매수 → 시세 변동 → 5주 매도."""
    print("=== 기본 거래 기능 테스트 ===")
    market = Market(shock_model=config.market.shock_model())
    market.add_security(security)
    rng = np.random.default_rng(seed)

    account = Account(f"{security.code}_ACC", fee_rate=config.backtest.fee_rate)
    account.deposit(config.backtest.initial_cash)
    print(account.describe())

    print(f"\n>> 매수 주문 10주 (현재가: {security.current_price:,}원)")
    buy = account.place_order(security.code, OrderSide.BUY, 10)
    print(f"-> {account.execute_order(buy.order_id, market).value}")

    print("\n-- 시세 변동 --")
    market.simulate_price_change(rng)
    print(account.describe())
    for row in account.portfolio.summary():
        print(
            f"[{row['code']}] {row['name']} | 수량: {row['quantity']} | 평단: {row['avg_price']:,} "
            f"| 현재가: {row['current_price']:,} | 수익률: {row['profit_rate']:.2f}%"
        )

    print(f"\n>> 매도 주문 5주 (현재가: {security.current_price:,}원)")
    sell = account.place_order(security.code, OrderSide.SELL, 5)
    print(f"-> {account.execute_order(sell.order_id, market).value}")

    print(account.describe())
    for tx in account.transactions:
        print(f"  {tx.describe()}")
    print("-" * 50)


def main():
    parser = argparse.ArgumentParser(description="습관 교정 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--strategies", nargs="+", metavar="STRATEGY", help="대결할 전략 키 (순서대로)")
    parser.add_argument("--prices", type=str, default=None, help="가격 CSV 경로")
    parser.add_argument("--column", type=str, default="close", help="CSV 가격 컬럼")
    parser.add_argument("--random-days", type=int, default=0, help="랜덤 가격 경로 일수")
    parser.add_argument("--seed", type=int, default=None, help="랜덤 시드")
    parser.add_argument("--account-demo", action="store_true", help="계좌 주문/체결 데모 실행")
    parser.add_argument("--list", action="store_true", help="등록된 전략 목록 출력")
    args = parser.parse_args()

    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            print(f"  - {name}")
        return

    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    setup_logger(level=config.log_level, log_dir=config.log_dir)

    security = load_security(config, args)

    if args.account_demo:
        # 데모는 시세를 바꾸므로 별도 종목 객체 사용
        demo_security = Security.from_prices(security.code, security.name, list(security.price_history))
        run_account_demo(config, demo_security, args.seed)

    strategies = build_strategies(config.backtest, args.strategies or config.strategies)
    engine = BacktestEngine(security, config.backtest)
    engine.add_strategies(strategies)
    results = engine.run_battle()

    BacktestReport(results, stock_name=security.name).write()


if __name__ == "__main__":
    main()
