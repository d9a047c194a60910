"""
AI 排序模块 - AI-Augmented Ranker

把当前配置和启发式排好序的候选配件发给 LLM，解析它给出的选择。
Send the current build plus heuristically ordered candidates to an LLM and
parse the picks it returns.

模型输出不可信：任何超时、异常、无 JSON、结构不符、数量不足或不兼容都返回 None，
调用方随即退回启发式结果。
The model output is untrusted: timeouts, exceptions, missing JSON, a wrong
shape, too few picks or an incompatible build all yield None so the caller
falls back to the heuristic result.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from langchain_core.prompts import ChatPromptTemplate

from ..builder.compatibility import evaluate
from ..builder.ranking import ranked_parts
from ..schemas import (
    COMPATIBILITY_CATEGORIES,
    Build,
    CompatibilityReport,
    Explanation,
    Part,
    Suggestion,
)
from .prompts import (
    EXPLAIN_SYSTEM_PROMPT,
    EXPLAIN_USER_PROMPT,
    SUGGEST_SYSTEM_PROMPT,
    SUGGEST_USER_PROMPT,
    WIZARD_SYSTEM_PROMPT,
    WIZARD_USER_PROMPT,
)
from .providers import ai_timeout_seconds, build_llm, classify_failure, invoke_with_turn_timeout

logger = logging.getLogger(__name__)

_AUTO_LLM = object()

SUGGEST_TOP_K = 10
BUILD_TOP_K = 5
MAX_CATEGORY_PICKS = 3
BUILD_QUORUM = 4


@dataclass(frozen=True)
class Parsed:
    picks: Any


@dataclass(frozen=True)
class Rejected:
    reason: str


ParseResult = Union[Parsed, Rejected]


def extract_json_object(text: str) -> Optional[str]:
    """
    提取第一个顶层 JSON 对象 - Extract First Top-Level JSON Object

    括号匹配时跳过字符串内部（含转义），因此 reason 里出现的 { } 不会干扰。
    Brace matching skips string contents (escapes included), so braces inside
    a reason never confuse it.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : pos + 1]
        # 未闭合：从下一个 { 再试
        start = text.find("{", start + 1)
    return None


def _load_object(text: str) -> Union[Dict[str, Any], Rejected]:
    raw = extract_json_object(text or "")
    if raw is None:
        return Rejected("no_json")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return Rejected("no_json")
    if not isinstance(data, dict):
        return Rejected("bad_shape")
    return data


def _read_pick(pick: Any, candidate_count: int) -> Optional[Tuple[int, str]]:
    """校验单个 {"index": int, "reason": str}，返回 (0 起始下标, 理由)"""
    if not isinstance(pick, dict):
        return None
    index = pick.get("index")
    reason = pick.get("reason")
    # bool 是 int 的子类，需单独排除
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if not isinstance(reason, str):
        return None
    if index < 1 or index > candidate_count:
        return None
    return index - 1, reason.strip()


def parse_category_picks(
    text: str,
    candidate_count: int,
    max_picks: int = MAX_CATEGORY_PICKS,
) -> ParseResult:
    """
    解析单类别推荐 - Parse Single-Category Picks

    期望 {"picks": [{"index": 1, "reason": "..."}, ...]}，index 从 1 开始。
    Expects {"picks": [{"index": 1, "reason": "..."}, ...]} with 1-based indices.

    任一 pick 不合法或下标重复都拒绝整个回答；合法时按给出顺序保留前 max_picks 个。
    Any invalid pick or duplicate index rejects the whole answer; otherwise the
    first max_picks picks are kept in the order given.
    """
    data = _load_object(text)
    if isinstance(data, Rejected):
        return data
    picks = data.get("picks")
    if not isinstance(picks, list) or not picks:
        return Rejected("bad_shape")

    seen = set()
    out: List[Tuple[int, str]] = []
    for pick in picks:
        item = _read_pick(pick, candidate_count)
        if item is None or item[0] in seen:
            return Rejected("bad_shape")
        seen.add(item[0])
        out.append(item)
    return Parsed(out[:max_picks])


def parse_build_picks(
    text: str,
    candidate_counts: Mapping[str, int],
    quorum: int = BUILD_QUORUM,
) -> ParseResult:
    """
    解析整机推荐 - Parse Whole-Build Picks

    期望 {"picks": {类别: {"index": int, "reason": str}}}；未知类别忽略，
    出现的类别必须合法，解析出的类别数少于 quorum 时拒绝。
    Expects {"picks": {category: {"index": int, "reason": str}}}. Unknown
    categories are ignored, every known one present must be valid, and fewer
    than `quorum` resolved categories is a rejection.
    """
    data = _load_object(text)
    if isinstance(data, Rejected):
        return data
    picks = data.get("picks")
    if not isinstance(picks, dict):
        return Rejected("bad_shape")

    out: Dict[str, Tuple[int, str]] = {}
    for category in COMPATIBILITY_CATEGORIES:
        if category not in picks:
            continue
        item = _read_pick(picks[category], candidate_counts.get(category, 0))
        if item is None:
            return Rejected("bad_shape")
        out[category] = item

    if len(out) < quorum:
        return Rejected("below_quorum")
    return Parsed(out)


def summarize_build(build: Build) -> str:
    lines = []
    for category in COMPATIBILITY_CATEGORIES:
        part = build.get(category)
        lines.append(f"{category}: {part.label if part else '(empty)'}")
    return "\n".join(lines)


def summarize_candidates(candidates: Sequence[Part]) -> str:
    return "\n".join(
        f"{i}. {part.label} | specs: {json.dumps(part.specs, ensure_ascii=False, sort_keys=True)}"
        for i, part in enumerate(candidates, start=1)
    )


class AIRanker:
    """
    AI 排序器 - AI Ranker

    llm 默认按环境变量自动构建；设为 None 强制纯启发式，测试中可注入假模型。
    The model is built from the environment by default; set llm to None to
    force heuristics only, or inject a fake model in tests.
    """

    def __init__(self, llm: Any = _AUTO_LLM, timeout_seconds: Optional[float] = None):
        self.llm = llm
        self.timeout_seconds = timeout_seconds
        self._llm_cache: Dict[str, Any] = {}

    def _runtime_llm(self):
        if self.llm is _AUTO_LLM:
            if "auto" not in self._llm_cache:
                self._llm_cache["auto"] = build_llm()
            return self._llm_cache["auto"]
        return self.llm

    def _complete(self, system: str, human: str, variables: Dict[str, Any]) -> Union[str, Rejected]:
        llm = self._runtime_llm()
        if llm is None:
            return Rejected("no_model_config")

        timeout = self.timeout_seconds if self.timeout_seconds is not None else ai_timeout_seconds()
        start = time.time()
        try:
            prompt = ChatPromptTemplate.from_messages([("system", system), ("human", human)])
            content = invoke_with_turn_timeout(
                lambda: (prompt | llm).invoke(variables).content,
                timeout_seconds=timeout,
            )
        except Exception as err:
            return Rejected(classify_failure(err))
        logger.debug("[PERF] AI ranking call took %.3fs", time.time() - start)
        if not isinstance(content, str):
            return Rejected("bad_shape")
        return content

    @staticmethod
    def _log_fallback(operation: str, rejected: Rejected) -> None:
        logger.warning("AI %s unavailable, falling back: %s", operation, rejected.reason)

    def rank_category(
        self,
        build: Build,
        candidates: Sequence[Part],
        category: str,
        use_case: Optional[str] = None,
    ) -> Optional[List[Suggestion]]:
        """
        单类别 AI 推荐 - Single-Category AI Suggestions

        参数 Parameters:
            build: 当前配置
                   Current build
            candidates: 已过滤的候选配件；只把启发式前 10 个发给模型
                        Filtered candidates; only the heuristic top 10 are sent
            category: 目标类别
                      Target category

        返回 Returns:
            最多 3 个 Suggestion（source="ai"），失败返回 None
            Up to 3 AI suggestions, or None on any failure
        """
        top = ranked_parts(candidates, category, use_case, limit=SUGGEST_TOP_K)
        if not top:
            return None

        content = self._complete(
            SUGGEST_SYSTEM_PROMPT,
            SUGGEST_USER_PROMPT,
            {
                "category": category,
                "build_summary": summarize_build(build),
                "candidate_summary": summarize_candidates(top),
            },
        )
        result = content if isinstance(content, Rejected) else parse_category_picks(content, len(top))
        if isinstance(result, Rejected):
            self._log_fallback("suggest", result)
            return None

        return [
            Suggestion(id=top[index].id, part=top[index], reason=reason, source="ai")
            for index, reason in result.picks
        ]

    def pick_build(
        self,
        candidates_by_category: Mapping[str, Sequence[Part]],
        use_case: Optional[str] = None,
        platform: Optional[str] = None,
        budget: Optional[float] = None,
    ) -> Optional[Dict[str, Suggestion]]:
        """
        整机 AI 选配 - Whole-Build AI Pick

        每个类别只发启发式前 5 个候选；至少 4 个类别有效且组合后没有 fail 才接受。
        Sends the heuristic top 5 per category; the answer is accepted only when
        at least 4 categories resolve and the assembled build has no fail issue.
        """
        top: Dict[str, List[Part]] = {
            category: ranked_parts(candidates_by_category.get(category, ()), category, use_case, BUILD_TOP_K)
            for category in COMPATIBILITY_CATEGORIES
        }
        sections = [
            f"{category.upper()}:\n{summarize_candidates(parts)}"
            for category, parts in top.items()
            if parts
        ]
        if not sections:
            return None

        platform_name = platform if platform and platform != "any" else "any"
        budget_note = f"Budget: ₹{budget:,.0f}" if budget else "No strict budget"
        content = self._complete(
            WIZARD_SYSTEM_PROMPT,
            WIZARD_USER_PROMPT,
            {
                "use_case": use_case or "general",
                "platform": platform_name,
                "platform_note": f" on {platform_name.upper()} platform" if platform_name != "any" else "",
                "budget_note": budget_note,
                "candidate_summary": "\n\n".join(sections),
            },
        )
        result = (
            content
            if isinstance(content, Rejected)
            else parse_build_picks(content, {c: len(p) for c, p in top.items()})
        )
        if isinstance(result, Rejected):
            self._log_fallback("build", result)
            return None

        picks = {
            category: Suggestion(
                id=top[category][index].id,
                part=top[category][index],
                reason=reason,
                source="ai",
            )
            for category, (index, reason) in result.picks.items()
        }
        report = evaluate(Build(**{c: s.part for c, s in picks.items()}))
        if not report.compatible:
            self._log_fallback("build", Rejected("incompatible"))
            return None
        return picks

    def explain(self, build: Build, report: CompatibilityReport) -> Optional[Explanation]:
        parts = "\n".join(
            f"- {category}: {part.label} ({json.dumps(part.specs, ensure_ascii=False, sort_keys=True)})"
            for category, part in build.filled()
        )
        issues = json.dumps(
            [issue.model_dump(by_alias=True) for issue in report.issues],
            ensure_ascii=False,
        )
        content = self._complete(
            EXPLAIN_SYSTEM_PROMPT,
            EXPLAIN_USER_PROMPT,
            {
                "parts": parts or "(empty)",
                "estimated_wattage": report.estimated_wattage,
                "recommended_psu": report.recommended_psu,
                "score": report.score,
                "issues": issues,
            },
        )
        if isinstance(content, Rejected):
            self._log_fallback("explain", content)
            return None
        data = _load_object(content)
        if isinstance(data, Rejected):
            self._log_fallback("explain", data)
            return None
        try:
            return Explanation.model_validate(data)
        except ValueError:
            # pydantic.ValidationError 是 ValueError 的子类
            self._log_fallback("explain", Rejected("bad_shape"))
            return None
