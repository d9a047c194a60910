"""
整机生成流程 - Whole-Build Generation Graph

allocate_budget -> gather_candidates -> ai_pick -> complete_build | heuristic_pick -> evaluate_build

AI 选配被采纳时由 complete_build 启发式补齐 AI 没选的类别（以 AI 的选择收窄插槽和内存代数）；
AI 选配失败（返回 None）时走 heuristic_pick。两条路径都在 evaluate_build 汇合。
An accepted AI answer goes through complete_build, which fills the categories
the AI left out heuristically, narrowed by the AI's own picks. When the AI pick
yields nothing the flow routes through heuristic_pick; both paths meet at
evaluate_build.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Literal, Optional, TypedDict

from langgraph.graph import END, StateGraph

from .builder.budget import BudgetAllocation, allocate_budget
from .builder.picker import pick_build_from_candidates
from .llm.ranker import AIRanker
from .schemas import (
    COMPATIBILITY_CATEGORIES,
    Build,
    CompatibilityReport,
    GeneratedBuild,
    Part,
    Suggestion,
    SuggestionSource,
)
from .tools import Toolset

logger = logging.getLogger(__name__)


class BuildState(TypedDict):
    use_case: str
    platform: str
    budget: Optional[float]
    allocation: Optional[BudgetAllocation]
    candidates: Dict[str, List[Part]]
    picks: Dict[str, Suggestion]
    source: SuggestionSource
    report: Optional[CompatibilityReport]


class BuildGraph:
    def __init__(self, toolset: Toolset, ranker: Optional[AIRanker] = None):
        self.tool_map = toolset.register()
        self.ranker = ranker or AIRanker()
        self.graph = self._build_graph()

    def _build_graph(self):
        builder = StateGraph(BuildState)
        builder.add_node("allocate_budget", self.allocate_budget)
        builder.add_node("gather_candidates", self.gather_candidates)
        builder.add_node("ai_pick", self.ai_pick)
        builder.add_node("complete_build", self.complete_build)
        builder.add_node("heuristic_pick", self.heuristic_pick)
        builder.add_node("evaluate_build", self.evaluate_build)

        builder.set_entry_point("allocate_budget")
        builder.add_edge("allocate_budget", "gather_candidates")
        builder.add_edge("gather_candidates", "ai_pick")
        builder.add_conditional_edges(
            "ai_pick",
            self.route_after_ai,
            {"accepted": "complete_build", "fallback": "heuristic_pick"},
        )
        builder.add_edge("complete_build", "evaluate_build")
        builder.add_edge("heuristic_pick", "evaluate_build")
        builder.add_edge("evaluate_build", END)

        return builder.compile()

    def allocate_budget(self, state: BuildState):
        return {"allocation": allocate_budget(state.get("budget"), state["use_case"])}

    def gather_candidates(self, state: BuildState):
        start = time.time()
        allocation = state.get("allocation")
        search = self.tool_map["search_parts"]
        candidates: Dict[str, List[Part]] = {}
        for category in COMPATIBILITY_CATEGORIES:
            raw = search.invoke(
                {
                    "category": category,
                    "budget_max": allocation.ceiling(category) if allocation else None,
                    "platform": state["platform"],
                    "use_case": state["use_case"],
                    "limit": None,
                }
            )
            candidates[category] = [Part.model_validate(item) for item in raw]
        logger.debug("[PERF] gather_candidates took %.3fs", time.time() - start)
        return {"candidates": candidates}

    def ai_pick(self, state: BuildState):
        picks = self.ranker.pick_build(
            state["candidates"],
            use_case=state["use_case"],
            platform=state["platform"],
            budget=state.get("budget"),
        )
        if picks is None:
            return {"picks": {}, "source": "heuristic"}
        return {"picks": picks, "source": "ai"}

    def route_after_ai(self, state: BuildState) -> Literal["accepted", "fallback"]:
        if state.get("source") == "ai" and state.get("picks"):
            return "accepted"
        return "fallback"

    def psu_target(self, build: Build) -> float:
        part_ids = [part.id for _, part in build.filled()]
        power = self.tool_map["estimate_power"].invoke({"part_ids": part_ids})
        return power["recommended_psu"]

    def complete_build(self, state: BuildState):
        picks = pick_build_from_candidates(
            state["candidates"],
            state["use_case"],
            fixed=state["picks"],
            psu_target=self.psu_target,
        )
        filled = sorted(set(picks) - set(state["picks"]))
        if filled:
            logger.info("AI picks completed heuristically for: %s", ", ".join(filled))
        return {"picks": picks}

    def heuristic_pick(self, state: BuildState):
        picks = pick_build_from_candidates(
            state["candidates"],
            state["use_case"],
            psu_target=self.psu_target,
        )
        return {"picks": picks, "source": "heuristic"}

    def evaluate_build(self, state: BuildState):
        parts = {category: s.id for category, s in state["picks"].items()}
        raw = self.tool_map["check_compatibility"].invoke({"parts": parts})
        return {"report": CompatibilityReport.model_validate(raw)}

    def invoke(
        self,
        use_case: str,
        platform: str = "any",
        budget: Optional[float] = None,
    ) -> GeneratedBuild:
        start = time.time()
        initial: BuildState = {
            "use_case": (use_case or "").strip().lower(),
            "platform": (platform or "any").strip().lower(),
            "budget": budget,
            "allocation": None,
            "candidates": {},
            "picks": {},
            "source": "heuristic",
            "report": None,
        }
        out = self.graph.invoke(initial)
        logger.debug("[PERF] generate_build took %.3fs", time.time() - start)
        allocation = out.get("allocation")
        return GeneratedBuild(
            source=out.get("source", "heuristic"),
            picks=out.get("picks", {}),
            budget_allocation=allocation.to_dict() if allocation else {},
            report=out.get("report"),
        )
