"""
配件选择模块 - Part Selection Module

从各类别候选配件中按依赖顺序挑选，组装一套启发式整机方案。
Pick one part per category in dependency order to assemble a heuristic build.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..schemas import COMPATIBILITY_CATEGORIES, Build, Part, Suggestion
from ..specs import numeric_spec
from .compatibility import estimate_wattage, recommended_psu
from .filters import constraints_for, filter_candidates
from .ranking import CATEGORY_REASONS, FALLBACK_CATEGORY_REASON, heuristic_score

# CPU 决定插槽，主板决定内存代数，其余类别之间没有硬约束
PICK_ORDER: Sequence[str] = ("cpu", "motherboard", "ram") + tuple(
    c for c in COMPATIBILITY_CATEGORIES if c not in ("cpu", "motherboard", "ram")
)


def default_psu_target(build: Build) -> float:
    return recommended_psu(estimate_wattage(build))


def pick_build_from_candidates(
    candidates_by_category: Mapping[str, Sequence[Part]],
    use_case: Optional[str] = None,
    fixed: Optional[Mapping[str, Suggestion]] = None,
    psu_target: Callable[[Build], float] = default_psu_target,
) -> Dict[str, Suggestion]:
    """
    从候选配件中选择并组装配置方案 - Pick Build from Candidate Parts

    选择策略 Selection Strategy:
    1. 先选 CPU，再按 CPU 插槽收窄主板，再按主板内存代数收窄内存
    2. 其余类别按启发式得分取最高者
    3. 电源、机箱、散热优先选满足功耗 / 长度 / TDP 的，没有时退回得分最高者

    1. CPU first, then motherboards narrowed by socket, then RAM narrowed by
       the motherboard's memory generation
    2. Every other category takes its best heuristic score
    3. PSU, case and cooler prefer parts that satisfy the wattage, clearance
       and TDP checks, falling back to the best score when none does

    参数 Parameters:
        candidates_by_category: {类别: 候选列表}，未经插槽 / 内存代数过滤
                                Unnarrowed candidate pools per category
        use_case: 用途，用于启发式加权
                  Use case for heuristic weighting
        fixed: 已确定的选择（如 AI 选出的部分类别），原样保留并参与后续收窄
               Picks already made (e.g. a partial AI answer); kept as-is and
               used to narrow the remaining categories
        psu_target: build -> 电源最低瓦数
                    Minimum PSU wattage for the build so far

    返回 Returns:
        {类别: Suggestion}，没有候选的类别不出现
        {category: Suggestion}; categories without candidates are omitted
    """
    build = Build()
    picks: Dict[str, Suggestion] = {}

    def choose(
        category: str,
        predicate: Optional[Callable[[Part], bool]] = None,
    ) -> Optional[Part]:
        pool = filter_candidates(
            candidates_by_category.get(category, ()),
            category,
            constraints_for(build, category),
        )
        scored: List[tuple] = [(p, heuristic_score(p, category, use_case)) for p in pool]
        scored = sorted(scored, key=lambda item: item[1], reverse=True)
        if not scored:
            return None
        if predicate is not None:
            for part, _ in scored:
                if predicate(part):
                    return part
        return scored[0][0]

    def predicate_for(category: str) -> Optional[Callable[[Part], bool]]:
        if category == "psu":
            target = psu_target(build)
            return lambda p: numeric_spec(p, "wattage") >= target
        if category == "case" and build.gpu is not None:
            gpu_length = numeric_spec(build.gpu, "length_mm", "length")
            return lambda p: numeric_spec(p, "max_gpu_length", "maxGpuLength") >= gpu_length
        if category == "cooling" and build.cpu is not None:
            cpu_tdp = numeric_spec(build.cpu, "tdp")
            return lambda p: numeric_spec(p, "tdp_rating", "tdpRating") >= cpu_tdp
        return None

    fixed = fixed or {}
    for category in PICK_ORDER:
        if category in fixed:
            build = build.with_part(category, fixed[category].part)
            picks[category] = fixed[category]
            continue
        part = choose(category, predicate_for(category))
        if part is None:
            continue
        build = build.with_part(category, part)
        picks[category] = Suggestion(
            id=part.id,
            part=part,
            reason=CATEGORY_REASONS.get(category, FALLBACK_CATEGORY_REASON),
            source="heuristic",
            score=heuristic_score(part, category, use_case),
        )

    return picks
