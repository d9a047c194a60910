"""Builder 模块：兼容性检查、候选过滤、排序与预算分配"""

from .compatibility import RULES, check_candidate, evaluate, estimate_wattage, recommended_psu
from .budget import allocate_budget, BudgetAllocation
from .filters import CandidateConstraints, constraints_for, filter_candidates
from .ranking import heuristic_score, rank
from .picker import pick_build_from_candidates
from .explain import attach_compatible_parts, compatible_parts_for, fallback_explanation

__all__ = [
    "RULES",
    "check_candidate",
    "evaluate",
    "estimate_wattage",
    "recommended_psu",
    "allocate_budget",
    "BudgetAllocation",
    "CandidateConstraints",
    "constraints_for",
    "filter_candidates",
    "heuristic_score",
    "rank",
    "pick_build_from_candidates",
    "attach_compatible_parts",
    "compatible_parts_for",
    "fallback_explanation",
]
