from __future__ import annotations

from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PartCategory = Literal[
    "cpu",
    "gpu",
    "motherboard",
    "ram",
    "storage",
    "psu",
    "case",
    "cooling",
    "monitor",
]

# 参与兼容性检查的 8 个类别（显示器只计价）
COMPATIBILITY_CATEGORIES: Tuple[str, ...] = (
    "cpu",
    "gpu",
    "motherboard",
    "ram",
    "storage",
    "psu",
    "case",
    "cooling",
)
BUILD_SLOTS: Tuple[str, ...] = COMPATIBILITY_CATEGORIES + ("monitor",)

Severity = Literal["pass", "warn", "fail"]
SuggestionSource = Literal["ai", "heuristic"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Part(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: PartCategory
    brand: str
    name: str
    price: float = Field(ge=0)
    model: str = ""
    image_url: Optional[str] = None
    # 各类别字段不同，统一经 specs.py 的访问器读取
    specs: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"{self.brand} {self.name}".strip()


class Build(BaseModel):
    name: str = "My PC Build"
    currency: Literal["INR"] = "INR"
    cpu: Optional[Part] = None
    gpu: Optional[Part] = None
    motherboard: Optional[Part] = None
    ram: Optional[Part] = None
    storage: Optional[Part] = None
    psu: Optional[Part] = None
    case: Optional[Part] = None
    cooling: Optional[Part] = None
    monitor: Optional[Part] = None

    def get(self, category: str) -> Optional[Part]:
        if category not in BUILD_SLOTS:
            return None
        return getattr(self, category)

    def filled(self) -> Iterator[Tuple[str, Part]]:
        for key in BUILD_SLOTS:
            part = getattr(self, key)
            if part is not None:
                yield key, part

    def total_price(self) -> float:
        return sum(part.price for _, part in self.filled())

    def parts_count(self) -> int:
        return sum(1 for key in COMPATIBILITY_CATEGORIES if getattr(self, key) is not None)

    def with_part(self, category: str, part: Optional[Part]) -> "Build":
        """返回替换了某个槽位的新 Build，原对象不变"""
        return self.model_copy(update={category: part})

    def as_dict(self) -> Dict[str, Optional[dict]]:
        return {
            key: (getattr(self, key).model_dump() if getattr(self, key) else None)
            for key in BUILD_SLOTS
        }


class Issue(_CamelModel):
    id: str
    severity: Severity
    category: str
    title: str
    detail: str
    suggested_fix: str
    affected_parts: List[str]


class CompatibilityReport(_CamelModel):
    estimated_wattage: Union[int, float]
    recommended_psu: int
    issues: List[Issue] = Field(default_factory=list)
    score: int = 100
    total_price: float = 0
    parts_count: int = 0

    def count(self, severity: Severity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def compatible(self) -> bool:
        return self.count("fail") == 0


class Suggestion(BaseModel):
    id: str
    part: Part
    reason: str
    source: SuggestionSource = "heuristic"
    score: Optional[float] = None


class SuggestResult(BaseModel):
    source: Literal["ai", "heuristic", "none"]
    suggestions: List[Suggestion] = Field(default_factory=list)


class GeneratedBuild(BaseModel):
    source: SuggestionSource
    picks: Dict[str, Suggestion] = Field(default_factory=dict)
    budget_allocation: Dict[str, int] = Field(default_factory=dict)
    report: Optional[CompatibilityReport] = None

    def to_build(self, name: str = "My PC Build") -> Build:
        return Build(name=name, **{k: s.part for k, s in self.picks.items()})


class IssueFix(BaseModel):
    title: str
    detail: str
    impact: Literal["low", "medium", "high"]


class IssueExplanation(BaseModel):
    id: str
    summary: str
    why_it_matters: str
    fixes: List[IssueFix] = Field(default_factory=list)
    compatible_parts: List[Part] = Field(default_factory=list)


class OverallAdvice(BaseModel):
    one_liner: str
    top_3_actions: List[str] = Field(default_factory=list)


class Explanation(BaseModel):
    issue_explanations: List[IssueExplanation] = Field(default_factory=list)
    overall_advice: OverallAdvice


class ExplainResult(BaseModel):
    source: Literal["ai", "fallback"]
    explanation: Explanation


# === HTTP 请求体 ===

BuildInput = Dict[str, Union[str, Part, None]]


class CompatibilityRequest(BaseModel):
    name: Optional[str] = None
    parts: BuildInput = Field(default_factory=dict)


class SuggestRequest(BaseModel):
    build: BuildInput = Field(default_factory=dict)
    target_category: str
    limit: int = Field(default=3, ge=1, le=10)


class WizardRequest(BaseModel):
    use_case: str
    platform: Literal["amd", "intel", "any"] = "any"
    budget: Optional[float] = Field(default=None, ge=0)


class ExplainRequest(BaseModel):
    parts: BuildInput = Field(default_factory=dict)
