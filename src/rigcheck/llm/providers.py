"""
LLM 提供商构建与调用管理 - LLM Provider Building and Invocation Management

根据环境变量构建 OpenAI 兼容的对话模型，并提供带超时的单次调用。
Build an OpenAI-compatible chat model from environment variables and invoke it
once under a timeout. No retries: a failure falls straight back to heuristics.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Literal, Optional, TypeVar

from langchain_openai import ChatOpenAI

logger = logging.getLogger(__name__)

Provider = Literal["deepseek", "openrouter", "openai"]
T = TypeVar("T")

_PLACEHOLDER_SUFFIX = "-api-key-here"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _api_key(name: str) -> Optional[str]:
    """读取密钥；空值和 your-xxx-api-key-here 占位符视为未配置"""
    key = (os.getenv(name) or "").strip()
    if not key or key.endswith(_PLACEHOLDER_SUFFIX):
        return None
    return key


def configured_provider() -> Optional[Provider]:
    provider = os.getenv("LLM_PROVIDER", "deepseek").strip().lower()
    if provider in ("deepseek", "openrouter", "openai"):
        return provider  # type: ignore[return-value]
    return None


def ai_timeout_seconds() -> float:
    return _env_float("AI_RANK_TIMEOUT_SECONDS", 15.0)


def build_llm(
    provider: Optional[Provider] = None,
    temperature: Optional[float] = None,
) -> Optional[ChatOpenAI]:
    """
    构建指定提供商的 LLM 实例 - Build LLM Instance for Specified Provider

    参数 Parameters:
        provider: 提供商，默认取 LLM_PROVIDER（deepseek）
                  Provider, defaults to LLM_PROVIDER (deepseek)
        temperature: 生成温度，默认取 LLM_TEMPERATURE（0.3）
                     Sampling temperature, defaults to LLM_TEMPERATURE (0.3)

    返回 Returns:
        ChatOpenAI 实例，如果密钥缺失则返回 None
        ChatOpenAI instance, or None if the credential is missing
    """
    provider = provider or configured_provider()
    if provider is None:
        return None
    if temperature is None:
        temperature = _env_float("LLM_TEMPERATURE", 0.3)

    if provider == "deepseek":
        key = _api_key("DEEPSEEK_API_KEY")
        if not key:
            return None
        return ChatOpenAI(
            model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
            temperature=temperature,
            api_key=key,
            base_url=os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com"),
            max_retries=0,
        )

    if provider == "openrouter":
        key = _api_key("OPENROUTER_API_KEY")
        if not key:
            return None
        return ChatOpenAI(
            model=os.getenv("OPENROUTER_MODEL", "openrouter/free"),
            temperature=temperature,
            api_key=key,
            base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
            max_retries=0,
        )

    if provider == "openai":
        key = _api_key("OPENAI_API_KEY")
        if not key:
            return None
        return ChatOpenAI(
            model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            temperature=temperature,
            api_key=key,
            max_retries=0,
        )

    return None


def invoke_with_turn_timeout(
    invoke_fn: Callable[[], T],
    timeout_seconds: Optional[float] = None,
) -> T:
    """
    带超时控制的 LLM 调用 - LLM Invocation with Timeout Control

    在工作线程中执行调用，超时抛出 TimeoutError，调用本身的异常原样抛出。
    Run the call on a worker thread; raise TimeoutError when it overruns and
    re-raise whatever the call itself raised.
    """
    start = time.time()
    if not timeout_seconds:
        return invoke_fn()

    result: list = [None]
    error: list = [None]

    def worker():
        try:
            result[0] = invoke_fn()
        except Exception as e:
            error[0] = e

    # daemon 线程：超时后不阻塞进程退出
    thread = threading.Thread(target=worker, daemon=True)
    thread.start()
    thread.join(timeout=timeout_seconds)

    if thread.is_alive():
        logger.debug("[PERF] LLM call timed out after %.3fs", time.time() - start)
        raise TimeoutError(f"LLM call timed out after {timeout_seconds}s")
    if error[0] is not None:
        raise error[0]
    logger.debug("[PERF] LLM call took %.3fs", time.time() - start)
    return result[0]


def classify_failure(err: Exception) -> str:
    name = type(err).__name__.lower()
    msg = str(err).lower()
    if "ratelimit" in name or "rate limit" in msg or "429" in msg:
        return "rate_limited"
    if "auth" in name or "api key" in msg or "unauthorized" in msg:
        return "auth_error"
    if "timeout" in name or "timed out" in msg or "timeout" in msg:
        return "timeout"
    return "model_error"
