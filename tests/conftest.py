"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import habit_backtester...' works
without an editable install, and provides the shared sample price sequences.
"""
import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from habit_backtester.data.market_data import Security  # noqa: E402
from habit_backtester.utils.config import SAMPLE_PRICES  # noqa: E402

SHORT_PRICES = [70000, 71000, 69500, 68000, 65000]


@pytest.fixture
def short_prices() -> list[int]:
    return list(SHORT_PRICES)


@pytest.fixture
def sample_prices() -> list[int]:
    return list(SAMPLE_PRICES)


@pytest.fixture
def samsung() -> Security:
    return Security("005930", "삼성전자", 70000)
