from pathlib import Path

import pytest

from rigcheck.data import PartsRepository
from rigcheck.schemas import Part

ROOT = Path(__file__).resolve().parents[1]

_LLM_ENV = (
    "LLM_PROVIDER",
    "DEEPSEEK_API_KEY",
    "DEEPSEEK_MODEL",
    "DEEPSEEK_BASE_URL",
    "OPENROUTER_API_KEY",
    "OPENAI_API_KEY",
    "LLM_TEMPERATURE",
    "AI_RANK_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def no_llm_credentials(monkeypatch):
    # 测试不访问真实模型
    for name in _LLM_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo():
    return PartsRepository(ROOT / "data" / "parts.json")


@pytest.fixture
def make_part():
    counter = {"n": 0}

    def _make(category, price=1000, name=None, part_id=None, brand="Test", **specs):
        counter["n"] += 1
        return Part(
            id=part_id or f"{category}-{counter['n']}",
            category=category,
            brand=brand,
            name=name or f"{category.upper()} {counter['n']}",
            price=price,
            specs=specs,
        )

    return _make
