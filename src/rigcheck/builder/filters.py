"""候选配件过滤：按已选配件的插槽、内存代数、预算上限和平台收窄候选集"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..schemas import Build, Part
from ..specs import string_spec
from .compatibility import ram_type_of

PLATFORM_SOCKETS = {
    "amd": ("am5", "am4"),
    "intel": ("lga1700", "lga1200", "lga1151"),
}

# 这两类受平台约束
PLATFORM_CATEGORIES = ("cpu", "motherboard")


@dataclass(frozen=True)
class CandidateConstraints:
    socket: Optional[str] = None
    ram_type: Optional[str] = None
    max_price: Optional[float] = None
    sockets: Optional[Tuple[str, ...]] = None


def platform_sockets(platform: Optional[str]) -> Optional[Tuple[str, ...]]:
    """平台 -> 插槽族；any 或未知平台不限制"""
    return PLATFORM_SOCKETS.get((platform or "").strip().lower())


def constraints_for(
    build: Build,
    category: str,
    max_price: Optional[float] = None,
    platform: Optional[str] = None,
) -> CandidateConstraints:
    socket = None
    ram_type = None

    if category == "motherboard" and build.cpu is not None:
        socket = string_spec(build.cpu, "socket") or None
    elif category == "cpu" and build.motherboard is not None:
        socket = string_spec(build.motherboard, "socket") or None

    if category == "ram" and build.motherboard is not None:
        ram_type = ram_type_of(build.motherboard) or None
    elif category == "motherboard" and build.ram is not None:
        ram_type = ram_type_of(build.ram) or None

    sockets = platform_sockets(platform) if category in PLATFORM_CATEGORIES else None
    return CandidateConstraints(
        socket=socket,
        ram_type=ram_type,
        max_price=max_price,
        sockets=sockets,
    )


def matches(part: Part, constraints: CandidateConstraints) -> bool:
    # 候选件缺少对应字段时不排除，交给兼容性报告判定
    if constraints.socket:
        socket = string_spec(part, "socket")
        if socket and socket != constraints.socket:
            return False
    if constraints.ram_type:
        ram_type = ram_type_of(part)
        if ram_type and ram_type != constraints.ram_type:
            return False
    if constraints.max_price is not None and part.price > constraints.max_price:
        return False
    if constraints.sockets is not None:
        if string_spec(part, "socket") not in constraints.sockets:
            return False
    return True


def filter_candidates(
    parts: Iterable[Part],
    category: str,
    constraints: CandidateConstraints,
) -> List[Part]:
    """
    过滤候选配件 - Filter Candidates

    纯集合交集，保持输入顺序；排序交给 ranking。
    Pure set intersection that keeps input order; ordering is the ranker's job.
    """
    return [p for p in parts if p.category == category and matches(p, constraints)]
