from __future__ import annotations

import logging
import time
from typing import List, Mapping, Optional, Union

from .builder.compatibility import check_candidate, evaluate
from .builder.explain import attach_compatible_parts, fallback_explanation
from .builder.filters import constraints_for, filter_candidates
from .builder.ranking import rank
from .data.repository import CatalogProtocol
from .errors import InvalidCategoryError, UnknownPartError
from .graph import BuildGraph
from .llm.ranker import AIRanker
from .schemas import (
    BUILD_SLOTS,
    COMPATIBILITY_CATEGORIES,
    Build,
    CompatibilityReport,
    ExplainResult,
    GeneratedBuild,
    Part,
    SuggestResult,
)
from .tools import Toolset

logger = logging.getLogger(__name__)


def resolve_build(
    catalog: CatalogProtocol,
    parts: Mapping[str, Union[str, Part, None]],
    name: Optional[str] = None,
) -> Build:
    """
    把 {槽位: 配件或配件 id} 解析为 Build - Resolve Slot Mapping into a Build

    id 在目录中找不到时抛 UnknownPartError；槽位名非法或配件类别与槽位不符时抛 InvalidCategoryError。
    Raises UnknownPartError for an id missing from the catalog and
    InvalidCategoryError for an unknown slot or a part filed under the wrong slot.
    """
    slots = {}
    for slot, value in parts.items():
        if slot not in BUILD_SLOTS:
            raise InvalidCategoryError(slot)
        if value is None or value == "":
            continue
        part = value if isinstance(value, Part) else catalog.find_by_id(value)
        if part is None:
            raise UnknownPartError(value, slot)
        if part.category != slot:
            raise InvalidCategoryError(part.category)
        slots[slot] = part
    if name:
        return Build(name=name, **slots)
    return Build(**slots)


class AdvisorService:
    """
    装机顾问服务 - Build Advisor Service

    对外的四个操作：evaluate / suggest / generate_build / explain，
    AI 相关失败都在内部降级为启发式结果，不向调用方抛出。
    Exposes evaluate, suggest, generate_build and explain. AI failures are
    absorbed and degrade to heuristic results; callers never see them.
    """

    def __init__(self, catalog: CatalogProtocol, ranker: Optional[AIRanker] = None):
        self.catalog = catalog
        self.ranker = ranker or AIRanker()
        self.toolset = Toolset(catalog)
        self.build_graph = BuildGraph(self.toolset, self.ranker)

    def resolve_build(self, parts: Mapping[str, Union[str, Part, None]], name: Optional[str] = None) -> Build:
        return resolve_build(self.catalog, parts, name)

    def evaluate(self, build: Build) -> CompatibilityReport:
        return evaluate(build)

    def suggest(
        self,
        build: Build,
        target_category: str,
        limit: int = 3,
        use_case: Optional[str] = None,
    ) -> SuggestResult:
        """
        单类别推荐 - Suggest Parts for One Category

        先按已选配件收窄候选；没有候选返回 source="none"；AI 成功返回 "ai"，否则 "heuristic"。
        Candidates are narrowed by the parts already chosen. No candidates gives
        source "none"; an accepted AI answer gives "ai", anything else "heuristic".
        """
        if target_category not in COMPATIBILITY_CATEGORIES:
            raise InvalidCategoryError(target_category)

        start = time.time()
        candidates = filter_candidates(
            self.catalog.by_category(target_category),
            target_category,
            constraints_for(build, target_category),
        )
        if not candidates:
            return SuggestResult(source="none", suggestions=[])

        picks = self.ranker.rank_category(build, candidates, target_category, use_case)
        if picks:
            result = SuggestResult(source="ai", suggestions=picks[:limit])
        else:
            result = SuggestResult(
                source="heuristic",
                suggestions=rank(candidates, target_category, use_case, limit),
            )
        logger.debug("[PERF] suggest %s took %.3fs", target_category, time.time() - start)
        return result

    def generate_build(
        self,
        use_case: str,
        platform: str = "any",
        budget: Optional[float] = None,
    ) -> GeneratedBuild:
        return self.build_graph.invoke(use_case, platform, budget)

    def explain(self, build: Build, report: Optional[CompatibilityReport] = None) -> ExplainResult:
        if report is None:
            report = evaluate(build)
        explanation = self.ranker.explain(build, report)
        source = "ai" if explanation is not None else "fallback"
        if explanation is None:
            explanation = fallback_explanation(report)
        explanation = attach_compatible_parts(explanation, build, self.catalog.by_category)
        return ExplainResult(source=source, explanation=explanation)

    def components(self, category: str, build: Optional[Build] = None) -> List[dict]:
        """列出某类别的全部配件，并标注放进当前配置后是否兼容"""
        if category not in BUILD_SLOTS:
            raise InvalidCategoryError(category)
        build = build or Build()
        out = []
        for part in self.catalog.by_category(category):
            compatible, reason = check_candidate(part, build)
            out.append({"part": part.model_dump(), "compatible": compatible, "reason": reason})
        return out
