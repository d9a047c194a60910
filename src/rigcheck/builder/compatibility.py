"""
兼容性检查模块 - Compatibility Rule Set

六条确定性规则，每条返回一个 Issue（pass/warn/fail）或 None（前提不满足，跳过）。
Six deterministic rules, each returning an Issue (pass/warn/fail) or None when
its precondition is not met.

同一套规则同时服务于最终报告 evaluate() 和装机过程中的实时过滤 check_candidate()。
The same rules back both the final report (evaluate) and live filtering while
building (check_candidate).
"""

from __future__ import annotations

import math
import re
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..schemas import Build, CompatibilityReport, Issue, Part
from ..specs import bool_spec, format_number, numeric_spec, string_spec

# 主板、硬盘、风扇等其他配件的固定功耗估算
SYSTEM_OVERHEAD_WATTS = 80
PSU_SAFETY_FACTOR = 1.2

FAIL_PENALTY = 30
WARN_PENALTY = 10
PASS_BONUS = 5

NO_ACTION = "No action needed"

# 型号后缀 F / KF / X3D 通常表示无核显，仅作为低置信度信号
_NO_IGPU_MODEL = re.compile(r"^\d{3,5}(k|x)?(f|3d)$")

Rule = Callable[[Build], Optional[Issue]]


def estimate_wattage(build: Build) -> Union[int, float]:
    cpu_tdp = numeric_spec(build.cpu, "tdp")
    gpu_tdp = numeric_spec(build.gpu, "tdp")
    # 不取整：小数 TDP（如 "65.5W"）原样参与 PSU 比较和推荐值计算
    total = cpu_tdp + gpu_tdp + SYSTEM_OVERHEAD_WATTS
    return int(total) if float(total).is_integer() else total


def recommended_psu(estimated_wattage: float) -> int:
    # 先消掉浮点误差再向上取整，否则 385 * 1.2 = 462.00000000000006 会变成 463
    return int(math.ceil(round(estimated_wattage * PSU_SAFETY_FACTOR, 6)))


def check_socket(build: Build) -> Optional[Issue]:
    cpu, motherboard = build.cpu, build.motherboard
    if cpu is None or motherboard is None:
        return None
    cpu_socket = string_spec(cpu, "socket")
    mb_socket = string_spec(motherboard, "socket")
    if not cpu_socket or not mb_socket:
        return None

    if cpu_socket == mb_socket:
        return Issue(
            id="socket-match",
            severity="pass",
            category="cpu",
            title="CPU Socket Compatible",
            detail=f"{cpu.label} ({cpu_socket.upper()}) is compatible with {motherboard.label}",
            suggested_fix=NO_ACTION,
            affected_parts=["cpu", "motherboard"],
        )
    return Issue(
        id="socket-mismatch",
        severity="fail",
        category="cpu",
        title="CPU Socket Mismatch",
        detail=f"CPU requires {cpu_socket.upper()} socket but motherboard has {mb_socket.upper()}",
        suggested_fix=(
            f"Replace motherboard with one that supports {cpu_socket.upper()} socket, "
            "or choose a different CPU"
        ),
        affected_parts=["cpu", "motherboard"],
    )


def ram_type_of(part: Optional[Part]) -> str:
    """内存条读 type，主板读 ram_type，两者都兼容 ramType 写法"""
    if part is None:
        return ""
    if part.category == "motherboard":
        return string_spec(part, "ram_type", "ramType")
    return string_spec(part, "type", "ramType")


def check_ram_type(build: Build) -> Optional[Issue]:
    ram, motherboard = build.ram, build.motherboard
    if ram is None or motherboard is None:
        return None
    ram_type = ram_type_of(ram)
    mb_ram_type = ram_type_of(motherboard)
    if not ram_type or not mb_ram_type:
        return None

    if ram_type == mb_ram_type:
        return Issue(
            id="ram-match",
            severity="pass",
            category="ram",
            title="RAM Type Compatible",
            detail=f"{ram_type.upper()} RAM is compatible with your motherboard",
            suggested_fix=NO_ACTION,
            affected_parts=["ram", "motherboard"],
        )
    return Issue(
        id="ram-mismatch",
        severity="fail",
        category="ram",
        title="RAM Type Mismatch",
        detail=f"Your RAM is {ram_type.upper()} but motherboard requires {mb_ram_type.upper()}",
        suggested_fix=(
            f"Replace RAM with {mb_ram_type.upper()} modules, "
            f"or choose a motherboard that supports {ram_type.upper()}"
        ),
        affected_parts=["ram", "motherboard"],
    )


def check_psu(build: Build) -> Optional[Issue]:
    if build.psu is None:
        return None
    psu_wattage = numeric_spec(build.psu, "wattage")
    if psu_wattage <= 0:
        return None

    estimated = estimate_wattage(build)
    recommended = recommended_psu(estimated)
    watts, estimated_w = format_number(psu_wattage), format_number(estimated)

    if psu_wattage >= recommended:
        return Issue(
            id="psu-adequate",
            severity="pass",
            category="psu",
            title="PSU Wattage Adequate",
            detail=f"{watts}W PSU provides sufficient headroom for {estimated_w}W system",
            suggested_fix=NO_ACTION,
            affected_parts=["psu"],
        )
    if psu_wattage >= estimated:
        return Issue(
            id="psu-low-headroom",
            severity="warn",
            category="psu",
            title="Low PSU Headroom",
            detail=f"{watts}W PSU meets minimum but recommended is {recommended}W for stability",
            suggested_fix=(
                f"Consider upgrading to a {recommended}W or higher PSU "
                "for better efficiency and future upgrades"
            ),
            affected_parts=["psu"],
        )
    return Issue(
        id="psu-insufficient",
        severity="fail",
        category="psu",
        title="Insufficient PSU Wattage",
        detail=f"{watts}W PSU cannot power {estimated_w}W system. Risk of instability or shutdown",
        suggested_fix=f"Upgrade to at least {recommended}W PSU immediately",
        affected_parts=["psu"],
    )


def has_integrated_graphics(cpu: Part) -> bool:
    """
    判断 CPU 是否带核显 - Detect Integrated Graphics

    优先使用显式字段 integrated_graphics / igpu；缺失时才按型号后缀推断。
    The explicit integrated_graphics / igpu attribute wins; the model-suffix
    heuristic is used only when it is absent.
    """
    explicit = bool_spec(cpu, "integrated_graphics", "igpu")
    if explicit is not None:
        return explicit
    if string_spec(cpu, "igpu", "integrated_graphics"):
        # 例如 "UHD 730"、"Radeon Graphics"
        return True
    tokens = re.split(r"[\s\-_/]+", f"{cpu.name} {cpu.model}".lower())
    return not any(_NO_IGPU_MODEL.match(token) for token in tokens if token)


def check_graphics_output(build: Build) -> Optional[Issue]:
    cpu = build.cpu
    if cpu is None or build.gpu is not None:
        return None
    if has_integrated_graphics(cpu):
        return None
    return Issue(
        id="no-graphics",
        severity="warn",
        category="gpu",
        title="No Graphics Output",
        detail=f"{cpu.label} has no integrated graphics and no discrete GPU selected",
        suggested_fix="Add a discrete GPU to enable display output",
        affected_parts=["cpu", "gpu"],
    )


def check_gpu_clearance(build: Build) -> Optional[Issue]:
    gpu, case = build.gpu, build.case
    if gpu is None or case is None:
        return None
    gpu_length = numeric_spec(gpu, "length_mm", "length")
    max_length = numeric_spec(case, "max_gpu_length", "maxGpuLength", "max_gpu_length_mm")
    if gpu_length <= 0 or max_length <= 0:
        return None

    length, limit = format_number(gpu_length), format_number(max_length)
    if gpu_length <= max_length:
        return Issue(
            id="gpu-fits",
            severity="pass",
            category="gpu",
            title="GPU Fits Case",
            detail=f"{length}mm GPU fits within {limit}mm case clearance",
            suggested_fix=NO_ACTION,
            affected_parts=["gpu", "case"],
        )
    overage = format_number(gpu_length - max_length)
    return Issue(
        id="gpu-too-long",
        severity="warn",
        category="gpu",
        title="GPU May Not Fit",
        detail=f"{length}mm GPU exceeds {limit}mm case clearance by {overage}mm",
        suggested_fix="Choose a shorter GPU or a larger case with more clearance",
        affected_parts=["gpu", "case"],
    )


def check_cooler(build: Build) -> Optional[Issue]:
    cpu, cooling = build.cpu, build.cooling
    if cpu is None or cooling is None:
        return None
    cpu_tdp = numeric_spec(cpu, "tdp")
    cooler_tdp = numeric_spec(cooling, "tdp_rating", "tdpRating", "tdp_rating_watts")
    if cpu_tdp <= 0 or cooler_tdp <= 0:
        return None

    cpu_w, cooler_w = format_number(cpu_tdp), format_number(cooler_tdp)
    if cooler_tdp >= cpu_tdp:
        return Issue(
            id="cooler-adequate",
            severity="pass",
            category="cooling",
            title="Cooler TDP Adequate",
            detail=f"{cooler_w}W cooler can handle {cpu_w}W CPU",
            suggested_fix=NO_ACTION,
            affected_parts=["cpu", "cooling"],
        )
    return Issue(
        id="cooler-weak",
        severity="warn",
        category="cooling",
        title="Cooler May Be Insufficient",
        detail=f"{cooler_w}W cooler rating is below {cpu_w}W CPU TDP",
        suggested_fix=f"Consider a cooler rated for at least {cpu_w}W or higher for optimal temperatures",
        affected_parts=["cpu", "cooling"],
    )


# 评估顺序即报告中 issues 的顺序
RULES: Tuple[Rule, ...] = (
    check_socket,
    check_ram_type,
    check_psu,
    check_graphics_output,
    check_gpu_clearance,
    check_cooler,
)


def score_issues(issues: Sequence[Issue]) -> int:
    fail_count = sum(1 for i in issues if i.severity == "fail")
    warn_count = sum(1 for i in issues if i.severity == "warn")
    pass_count = sum(1 for i in issues if i.severity == "pass")

    score = 100 - fail_count * FAIL_PENALTY - warn_count * WARN_PENALTY
    score = max(0, min(100, score))
    if pass_count > 0 and fail_count == 0:
        score = min(100, score + pass_count * PASS_BONUS)
    return score


def run_rules(build: Build, rules: Sequence[Rule] = RULES) -> List[Issue]:
    issues: List[Issue] = []
    for rule in rules:
        issue = rule(build)
        if issue is not None:
            issues.append(issue)
    return issues


def evaluate(build: Build) -> CompatibilityReport:
    """
    评估整机兼容性 - Evaluate Build Compatibility

    按固定顺序运行全部规则，汇总为带评分的报告。纯函数，不修改 build。
    Run every rule in a fixed order and aggregate them into a scored report.
    Pure: the build is never mutated.
    """
    issues = run_rules(build)
    estimated = estimate_wattage(build)
    return CompatibilityReport(
        estimated_wattage=estimated,
        recommended_psu=recommended_psu(estimated),
        issues=issues,
        score=score_issues(issues),
        total_price=build.total_price(),
        parts_count=build.parts_count(),
    )


def check_candidate(part: Part, build: Build) -> Tuple[bool, Optional[str]]:
    """
    实时检查候选配件 - Live Candidate Check

    把候选配件放进当前 build 的对应槽位，只看它会不会引入硬性冲突（插槽 / 内存代数）。
    Slot the candidate into the current build and report whether it would
    introduce a hard conflict (socket or RAM generation), with a short reason.
    """
    trial = build.with_part(part.category, part)

    if part.category in ("cpu", "motherboard"):
        issue = check_socket(trial)
        if issue is not None and issue.severity == "fail":
            other = trial.motherboard if part.category == "cpu" else trial.cpu
            return False, f"Requires {string_spec(other, 'socket').upper()} socket"

    if part.category in ("ram", "motherboard"):
        issue = check_ram_type(trial)
        if issue is not None and issue.severity == "fail":
            if part.category == "ram":
                return False, f"Requires {ram_type_of(trial.motherboard).upper()}"
            return False, f"Selected RAM is {ram_type_of(trial.ram).upper()}"

    return True, None
