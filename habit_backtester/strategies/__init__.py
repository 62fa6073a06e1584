"""
전략 모듈.

[ 전략 등록 방식 ]
    @register("전략키") 데코레이터를 붙이면 STRATEGY_REGISTRY에 자동 등록.
    run_backtest.py / config.yaml 에서는 키 이름만으로 전략을 생성한다.

[ 기본 대결 순서 ]
    panic_sell (쫄보) → dca (코치) → hold (존버)
    등록 순서가 곧 엔진의 호출 순서이자 동률 시 순위 순서.

[ 새 전략 추가 방법 ]
    1. 이 디렉토리에 새 .py 파일 생성
    2. TradingStrategy를 상속받고 on_price(), from_config() 구현
    3. @register("키") 데코레이터 추가
    4. config.yaml의 strategies 목록에 키 추가
"""

from importlib import import_module
from pathlib import Path

from habit_backtester.core.trading_strategy import TradingStrategy

# 전략 키 → 전략 클래스 매핑
STRATEGY_REGISTRY: dict[str, type[TradingStrategy]] = {}

DEFAULT_STRATEGY_ORDER = ("panic_sell", "dca", "hold")


def register(name: str):
    """전략 클래스를 STRATEGY_REGISTRY에 등록하는 데코레이터."""
    def decorator(cls: type[TradingStrategy]):
        STRATEGY_REGISTRY[name] = cls
        return cls
    return decorator


def create_strategy(name: str, config) -> TradingStrategy:
    """키로 전략 인스턴스를 생성.

    Args:
        name: 등록된 전략 키 (예: "panic_sell", "dca")
        config: utils/config.py::BacktestConfig

    Raises:
        ValueError: 등록되지 않은 전략 키
    """
    if name not in STRATEGY_REGISTRY:
        available = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise ValueError(f"알 수 없는 전략: '{name}'. 사용 가능: {available}")
    return STRATEGY_REGISTRY[name].from_config(config)


def build_strategies(config, names: list[str] | tuple[str, ...] | None = None) -> list[TradingStrategy]:
    """여러 전략을 순서대로 생성. names가 None이면 기본 대결 순서, 빈 목록이면 빈 리스트."""
    if names is None:
        names = DEFAULT_STRATEGY_ORDER
    return [create_strategy(name, config) for name in names]


def list_strategies() -> list[str]:
    """등록된 전략 키 목록."""
    return sorted(STRATEGY_REGISTRY.keys())


def _auto_discover():
    """이 디렉토리의 모든 전략 모듈을 임포트하여 @register가 실행되게 한다."""
    strategies_dir = Path(__file__).parent
    for py_file in sorted(strategies_dir.glob("*.py")):
        if py_file.name.startswith("_"):
            continue
        import_module(f"habit_backtester.strategies.{py_file.stem}")


_auto_discover()
