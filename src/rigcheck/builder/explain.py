"""兼容性报告解读：确定性的问题说明、行动建议，以及每个问题的可替换配件"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ..schemas import (
    Build,
    CompatibilityReport,
    Explanation,
    Issue,
    IssueExplanation,
    IssueFix,
    OverallAdvice,
    Part,
)
from ..specs import numeric_spec, string_spec
from .compatibility import ram_type_of

COMPATIBLE_PARTS_LIMIT = 5

WHY_IT_MATTERS: Dict[str, str] = {
    "socket-mismatch": (
        "The CPU physically cannot be installed in an incompatible motherboard socket. "
        "This will prevent your system from working entirely."
    ),
    "ram-mismatch": (
        "DDR4 and DDR5 RAM have different physical connectors and voltages. "
        "Using the wrong type will prevent the system from booting."
    ),
    "psu-insufficient": (
        "An underpowered PSU can cause system instability, random shutdowns, "
        "or permanent damage to components under load."
    ),
    "psu-low-headroom": (
        "While technically functional, low PSU headroom reduces efficiency and leaves "
        "no room for future upgrades or power spikes."
    ),
    "no-graphics": (
        "Without integrated or discrete graphics, you will have no video output "
        "and cannot use the system."
    ),
    "gpu-too-long": (
        "A GPU that exceeds case clearance will not physically fit, requiring case "
        "modification or component replacement."
    ),
    "cooler-weak": (
        "An inadequate cooler may cause thermal throttling, reducing performance "
        "and potentially shortening CPU lifespan."
    ),
}
DEFAULT_WHY = "This affects the compatibility or performance of your build."


def why_it_matters(issue: Issue) -> str:
    return WHY_IT_MATTERS.get(issue.id, DEFAULT_WHY)


def fallback_explanation(report: CompatibilityReport) -> Explanation:
    problems = [i for i in report.issues if i.severity != "pass"]
    explanations = [
        IssueExplanation(
            id=issue.id,
            summary=issue.detail,
            why_it_matters=why_it_matters(issue),
            fixes=[
                IssueFix(
                    title="Recommended Fix",
                    detail=issue.suggested_fix,
                    impact="high" if issue.severity == "fail" else "medium",
                )
            ],
        )
        for issue in problems
    ]

    fail_count = report.count("fail")
    warn_count = report.count("warn")
    one_liner = "Your build looks good!"
    if fail_count > 0:
        one_liner = f"Critical: {fail_count} compatibility issue(s) must be resolved before building."
    elif warn_count > 0:
        one_liner = f"{warn_count} warning(s) to consider for optimal performance."

    actions = [i.suggested_fix for i in report.issues if i.severity == "fail"][:2]
    warns = [i.suggested_fix for i in report.issues if i.severity == "warn"]
    actions.extend(warns[: max(0, 3 - len(actions))])
    if not actions:
        actions.append("Your build is compatible - proceed with confidence!")

    return Explanation(
        issue_explanations=explanations,
        overall_advice=OverallAdvice(one_liner=one_liner, top_3_actions=actions[:3]),
    )


def _socket_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    cpu_socket = string_spec(build.cpu, "socket")
    if cpu_socket:
        return [p for p in by_category("motherboard") if string_spec(p, "socket") == cpu_socket]
    mb_socket = string_spec(build.motherboard, "socket")
    if mb_socket:
        return [p for p in by_category("cpu") if string_spec(p, "socket") == mb_socket]
    return []


def _ram_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    mb_ram_type = ram_type_of(build.motherboard)
    if not mb_ram_type:
        return []
    return [p for p in by_category("ram") if ram_type_of(p) == mb_ram_type]


def _psu_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    current = numeric_spec(build.psu, "wattage")
    psus = sorted(by_category("psu"), key=lambda p: p.price)
    return [p for p in psus if numeric_spec(p, "wattage") > current]


def _case_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    gpu_length = numeric_spec(build.gpu, "length_mm", "length")
    return [
        p
        for p in by_category("case")
        if numeric_spec(p, "max_gpu_length", "max_gpu_length_mm") >= gpu_length
    ]


def _cooler_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    cpu_tdp = numeric_spec(build.cpu, "tdp")
    return [
        p
        for p in by_category("cooling")
        if numeric_spec(p, "tdp_rating", "tdp_rating_watts") >= cpu_tdp
    ]


def _gpu_alternatives(build: Build, by_category: Callable[[str], List[Part]]) -> List[Part]:
    return sorted(by_category("gpu"), key=lambda p: p.price)


_ALTERNATIVES = {
    "socket-mismatch": _socket_alternatives,
    "ram-mismatch": _ram_alternatives,
    "psu-insufficient": _psu_alternatives,
    "psu-low-headroom": _psu_alternatives,
    "gpu-too-long": _case_alternatives,
    "cooler-weak": _cooler_alternatives,
    "no-graphics": _gpu_alternatives,
}


def compatible_parts_for(
    issue_id: str,
    build: Build,
    by_category: Callable[[str], List[Part]],
    limit: int = COMPATIBLE_PARTS_LIMIT,
) -> List[Part]:
    """按问题 id 从目录里找能解决该问题的配件，最多 limit 个"""
    finder = _ALTERNATIVES.get(issue_id)
    if finder is None:
        return []
    return finder(build, by_category)[:limit]


def attach_compatible_parts(
    explanation: Explanation,
    build: Build,
    by_category: Optional[Callable[[str], List[Part]]],
) -> Explanation:
    if by_category is None:
        return explanation
    enriched = [
        item.model_copy(update={"compatible_parts": compatible_parts_for(item.id, build, by_category)})
        for item in explanation.issue_explanations
    ]
    return explanation.model_copy(update={"issue_explanations": enriched})
