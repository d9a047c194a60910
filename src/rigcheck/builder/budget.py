"""
预算分配模块 - Budget Allocation Module

根据总预算和用途，按固定比例表为各类配件分配价格上限。
Split a total budget into per-category price ceilings using fixed percentage
tables keyed by use case.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Dict, Optional


@dataclass(frozen=True)
class BudgetAllocation:
    """
    预算分配结果 - Budget Allocation Result

    每个字段是该类别配件的价格上限（整数货币单位）。
    Each field is the price ceiling for that category, in whole currency units.
    """
    cpu: int
    gpu: int
    motherboard: int
    ram: int
    storage: int
    psu: int
    case: int
    cooling: int

    def to_dict(self) -> Dict[str, int]:
        """
        转换为字典 - Convert to Dictionary

        返回 Returns:
            {类别: 上限}
            {category: ceiling}
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def ceiling(self, category: str) -> Optional[int]:
        return self.to_dict().get(category)


DEFAULT_USE_CASE = "gaming"

BUDGET_WEIGHTS: Dict[str, Dict[str, float]] = {
    "gaming": {
        "cpu": 0.18, "gpu": 0.35, "motherboard": 0.12, "ram": 0.08,
        "storage": 0.10, "psu": 0.07, "case": 0.06, "cooling": 0.04,
    },
    "editing": {
        "cpu": 0.25, "gpu": 0.25, "motherboard": 0.12, "ram": 0.12,
        "storage": 0.10, "psu": 0.07, "case": 0.05, "cooling": 0.04,
    },
    "coding": {
        "cpu": 0.25, "gpu": 0.15, "motherboard": 0.12, "ram": 0.15,
        "storage": 0.12, "psu": 0.07, "case": 0.08, "cooling": 0.06,
    },
    "office": {
        "cpu": 0.22, "gpu": 0.15, "motherboard": 0.15, "ram": 0.12,
        "storage": 0.12, "psu": 0.08, "case": 0.10, "cooling": 0.06,
    },
}
"""
各用途预算分配权重 - Budget Weights per Use Case

游戏偏向显卡，剪辑均衡 CPU/显卡，编程偏向 CPU 和内存，办公偏向平台稳定。
Gaming leans on the GPU, editing balances CPU and GPU, coding favours CPU and
RAM, office spreads across the platform.
"""


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def weights_for(use_case: Optional[str]) -> Dict[str, float]:
    key = (use_case or "").strip().lower()
    return BUDGET_WEIGHTS.get(key, BUDGET_WEIGHTS[DEFAULT_USE_CASE])


def allocate_budget(
    total_budget: Optional[float],
    use_case: Optional[str] = None,
) -> Optional[BudgetAllocation]:
    """
    分配预算 - Allocate Budget

    参数 Parameters:
        total_budget: 总预算；None 或非正数表示不限预算
                      Total budget; None or non-positive means unconstrained
        use_case: gaming / editing / coding / office，未知用途按 gaming 处理
                  Unknown use cases fall back to the gaming table

    返回 Returns:
        预算分配结果，不限预算时返回 None
        The allocation, or None when no budget applies
    """
    if not total_budget or total_budget <= 0:
        return None
    weights = weights_for(use_case)
    return BudgetAllocation(
        **{name: _round_half_up(total_budget * weights[name]) for name in weights}
    )
