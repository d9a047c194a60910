from __future__ import annotations

from typing import Dict, List, Optional

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .builder.compatibility import estimate_wattage, evaluate, recommended_psu
from .builder.filters import CandidateConstraints, filter_candidates, platform_sockets
from .builder.ranking import rank
from .data.repository import CatalogProtocol
from .schemas import Build


class SearchPartsInput(BaseModel):
    category: str = Field(description="Part category such as cpu, gpu, motherboard")
    budget_max: Optional[float] = Field(default=None, description="Max acceptable price for this category")
    socket: Optional[str] = Field(default=None, description="Required CPU socket, e.g. AM5")
    ram_type: Optional[str] = Field(default=None, description="Required memory generation, e.g. DDR5")
    platform: Optional[str] = Field(default=None, description="amd, intel or any")
    use_case: Optional[str] = Field(default=None, description="gaming, editing, coding or office")
    limit: Optional[int] = Field(default=5, description="How many parts to return; null for all")


class EstimatePowerInput(BaseModel):
    part_ids: List[str] = Field(default_factory=list)


class CheckCompatibilityInput(BaseModel):
    parts: Dict[str, str] = Field(description="Mapping of category to catalog part id")


class Toolset:
    """把目录查询、功耗估算和兼容性检查注册为 langchain 工具"""

    def __init__(self, repo: CatalogProtocol):
        self.repo = repo

    def register(self):
        repo = self.repo

        @tool("search_parts", args_schema=SearchPartsInput)
        def search_parts(
            category: str,
            budget_max: Optional[float] = None,
            socket: Optional[str] = None,
            ram_type: Optional[str] = None,
            platform: Optional[str] = None,
            use_case: Optional[str] = None,
            limit: Optional[int] = 5,
        ) -> List[dict]:
            """Search catalog parts by category and constraints, sorted by heuristic score."""
            pool = repo.by_category(category) if budget_max is None else repo.priced_at_most(category, budget_max)
            constraints = CandidateConstraints(
                socket=(socket or "").strip().lower() or None,
                ram_type=(ram_type or "").strip().lower() or None,
                sockets=platform_sockets(platform) if category in ("cpu", "motherboard") else None,
            )
            candidates = filter_candidates(pool, category, constraints)
            return [s.part.model_dump() for s in rank(candidates, category, use_case, limit)]

        @tool("estimate_power", args_schema=EstimatePowerInput)
        def estimate_power(part_ids: List[str]) -> dict:
            """Estimate system power draw (CPU + GPU TDP + 80W) and the recommended PSU."""
            build = Build()
            for part_id in part_ids:
                part = repo.find_by_id(part_id)
                if part is not None:
                    build = build.with_part(part.category, part)
            estimated = estimate_wattage(build)
            return {"estimated_wattage": estimated, "recommended_psu": recommended_psu(estimated)}

        @tool("check_compatibility", args_schema=CheckCompatibilityInput)
        def check_compatibility(parts: Dict[str, str]) -> dict:
            """Run every compatibility rule on a build given as category -> part id."""
            build = Build()
            for category, part_id in parts.items():
                part = repo.find_by_id(part_id)
                # 目录中找不到的 id 视为空槽位
                if part is not None and part.category == category:
                    build = build.with_part(category, part)
            return evaluate(build).model_dump(by_alias=True)

        return {
            "search_parts": search_parts,
            "estimate_power": estimate_power,
            "check_compatibility": check_compatibility,
        }
