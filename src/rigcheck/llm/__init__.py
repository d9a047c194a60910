"""LLM 模块：模型构建、带超时调用与 AI 排序"""

from .providers import build_llm, classify_failure, invoke_with_turn_timeout
from .ranker import (
    AIRanker,
    Parsed,
    Rejected,
    extract_json_object,
    parse_build_picks,
    parse_category_picks,
)

__all__ = [
    "build_llm",
    "classify_failure",
    "invoke_with_turn_timeout",
    "AIRanker",
    "Parsed",
    "Rejected",
    "extract_json_object",
    "parse_build_picks",
    "parse_category_picks",
]
