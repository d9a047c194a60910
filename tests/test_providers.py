import time

import pytest

from rigcheck.llm.providers import build_llm, classify_failure, configured_provider, invoke_with_turn_timeout


def test_build_llm_without_credentials_returns_none():
    assert build_llm() is None
    assert build_llm("openrouter") is None
    assert build_llm("openai") is None


def test_placeholder_key_counts_as_missing(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "your-deepseek-api-key-here")
    assert build_llm("deepseek") is None


def test_provider_none_disables_llm(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "none")
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    assert configured_provider() is None
    assert build_llm() is None


def test_deepseek_defaults(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    llm = build_llm()
    assert llm is not None
    assert llm.model_name == "deepseek-chat"
    assert llm.openai_api_base == "https://api.deepseek.com"
    assert llm.temperature == 0.3
    assert llm.max_retries == 0


def test_temperature_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.7")
    llm = build_llm("openai")
    assert llm.temperature == 0.7
    assert llm.model_name == "gpt-4o"


@pytest.mark.parametrize(
    "err, reason",
    [
        (RuntimeError("rate limited"), "rate_limited"),
        (RuntimeError("Error code: 429"), "rate_limited"),
        (RuntimeError("401 Unauthorized"), "auth_error"),
        (TimeoutError("slow"), "timeout"),
        (ValueError("boom"), "model_error"),
    ],
)
def test_classify_failure(err, reason):
    assert classify_failure(err) == reason


def test_invoke_with_turn_timeout():
    assert invoke_with_turn_timeout(lambda: 42, timeout_seconds=1) == 42
    assert invoke_with_turn_timeout(lambda: 7) == 7

    with pytest.raises(TimeoutError):
        invoke_with_turn_timeout(lambda: time.sleep(0.5), timeout_seconds=0.05)

    def fail():
        raise ValueError("bad")

    with pytest.raises(ValueError):
        invoke_with_turn_timeout(fail, timeout_seconds=1)
