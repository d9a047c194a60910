"""
启发式排序模块 - Heuristic Ranking Module

按类别加权关键规格为候选配件打分，并按用途（游戏 / 剪辑 / 编程 / 办公）调整权重。
Score candidates by the specs that matter for their category, biased by use case.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from ..schemas import Part, Suggestion
from ..specs import numeric_spec

DEFAULT_REASON = "Highest specs in this category among compatible options."

# 整机生成时每个类别给出的理由
CATEGORY_REASONS: Dict[str, str] = {
    "cpu": "Best performance in this category.",
    "motherboard": "Compatible with CPU and feature-rich.",
}
FALLBACK_CATEGORY_REASON = "Best option for this category."


def _cpu_score(part: Part, use_case: Optional[str]) -> float:
    cores = numeric_spec(part, "cores")
    boost = numeric_spec(part, "boost_clock")
    score = cores * 10 + boost * 5 + numeric_spec(part, "threads") * 3
    if use_case == "gaming":
        score += boost * 10
    if use_case in ("editing", "coding"):
        score += cores * 5
    return score


def _gpu_score(part: Part, use_case: Optional[str]) -> float:
    score = numeric_spec(part, "vram") * 15 + numeric_spec(part, "tdp") * 2
    if use_case == "gaming":
        score *= 1.5
    return score


def _motherboard_score(part: Part, use_case: Optional[str]) -> float:
    return numeric_spec(part, "m2_slots") * 10 + numeric_spec(part, "ram_slots") * 5


def _ram_score(part: Part, use_case: Optional[str]) -> float:
    capacity = numeric_spec(part, "capacity_gb")
    score = capacity * 5 + numeric_spec(part, "speed_mhz") / 100
    if use_case == "editing":
        score += capacity * 3
    return score


def _storage_score(part: Part, use_case: Optional[str]) -> float:
    return numeric_spec(part, "capacity_gb") / 10 + numeric_spec(part, "read_speed") / 100


def _psu_score(part: Part, use_case: Optional[str]) -> float:
    return numeric_spec(part, "wattage") / 10


def _cooling_score(part: Part, use_case: Optional[str]) -> float:
    return numeric_spec(part, "tdp_rating") / 5


_SCORERS: Dict[str, Callable[[Part, Optional[str]], float]] = {
    "cpu": _cpu_score,
    "gpu": _gpu_score,
    "motherboard": _motherboard_score,
    "ram": _ram_score,
    "storage": _storage_score,
    "psu": _psu_score,
    "cooling": _cooling_score,
}


def heuristic_score(part: Part, category: str, use_case: Optional[str] = None) -> float:
    scorer = _SCORERS.get(category)
    if scorer is None:
        # case / monitor 没有打分公式，保持目录顺序
        return 0.0
    return float(scorer(part, (use_case or "").strip().lower() or None))


def rank(
    candidates: Sequence[Part],
    category: str,
    use_case: Optional[str] = None,
    limit: Optional[int] = None,
    reason: str = DEFAULT_REASON,
) -> List[Suggestion]:
    """
    启发式排序 - Heuristic Rank

    按得分降序排列；sorted 是稳定排序，同分时保持目录顺序。
    Sort by score, descending; sorted() is stable so ties keep catalog order.

    参数 Parameters:
        candidates: 已过滤的候选配件
                    Already-filtered candidates
        category: 目标类别
                  Target category
        use_case: 用途，决定加权
                  Use case used for weighting
        limit: 返回前 N 个，None 表示全部
               Top N to return, None for all
    """
    scored = [(part, heuristic_score(part, category, use_case)) for part in candidates]
    scored = sorted(scored, key=lambda item: item[1], reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return [
        Suggestion(id=part.id, part=part, reason=reason, source="heuristic", score=score)
        for part, score in scored
    ]


def ranked_parts(
    candidates: Sequence[Part],
    category: str,
    use_case: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Part]:
    return [s.part for s in rank(candidates, category, use_case, limit)]
