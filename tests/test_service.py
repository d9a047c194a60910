import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from rigcheck.data import PartsRepository
from rigcheck.errors import InvalidCategoryError, UnknownPartError
from rigcheck.llm.ranker import AIRanker
from rigcheck.schemas import Build
from rigcheck.service import AdvisorService, resolve_build


@pytest.fixture
def service(repo):
    return AdvisorService(repo, AIRanker(llm=None))


def test_resolve_build_accepts_ids_and_parts(repo):
    gpu = repo.find_by_id("gpu-rtx4060")
    build = resolve_build(repo, {"cpu": "cpu-r5-7600x", "gpu": gpu, "ram": None, "psu": ""}, name="Desk rig")
    assert build.name == "Desk rig"
    assert build.cpu.id == "cpu-r5-7600x"
    assert build.gpu is gpu
    assert build.ram is None
    assert build.currency == "INR"


def test_resolve_build_errors(repo):
    with pytest.raises(UnknownPartError) as err:
        resolve_build(repo, {"cpu": "cpu-missing"})
    assert err.value.part_id == "cpu-missing"

    with pytest.raises(InvalidCategoryError):
        resolve_build(repo, {"fan": "cpu-r5-7600x"})

    with pytest.raises(InvalidCategoryError):
        resolve_build(repo, {"gpu": "cpu-r5-7600x"})


def test_suggest_heuristic_respects_constraints(service, repo):
    build = Build(motherboard=repo.find_by_id("mb-b550-ddr4"))
    result = service.suggest(build, "ram")
    assert result.source == "heuristic"
    assert [s.id for s in result.suggestions] == ["ram-ddr4-32-3600", "ram-ddr4-16-3200"]


def test_suggest_limit_and_invalid_category(service):
    assert len(service.suggest(Build(), "gpu", limit=1).suggestions) == 1
    with pytest.raises(InvalidCategoryError):
        service.suggest(Build(), "keyboard")


def test_suggest_with_no_candidates():
    class EmptyCatalog(PartsRepository):
        def __init__(self):
            self._parts = []

    result = AdvisorService(EmptyCatalog(), AIRanker(llm=None)).suggest(Build(), "cpu")
    assert result.source == "none"
    assert result.suggestions == []


def test_suggest_uses_ai_answer_when_valid(repo):
    answer = json.dumps({"picks": [{"index": 2, "reason": "cheaper board with enough slots"}]})
    service = AdvisorService(repo, AIRanker(llm=FakeListChatModel(responses=[answer])))
    result = service.suggest(Build(cpu=repo.find_by_id("cpu-r5-7600x")), "motherboard")
    assert result.source == "ai"
    assert [s.id for s in result.suggestions] == ["mb-a620-ddr5"]
    assert result.suggestions[0].reason == "cheaper board with enough slots"


def test_generate_build_amd_gaming_budget(service):
    result = service.generate_build("gaming", "amd", 150000)
    assert result.source == "heuristic"
    assert result.budget_allocation["gpu"] == 52500
    assert {c: s.id for c, s in result.picks.items()} == {
        "cpu": "cpu-r5-7600x",
        "motherboard": "mb-b650-ddr5",
        "ram": "ram-ddr5-32-6000",
        "gpu": "gpu-rx7800xt",
        "storage": "ssd-2tb-nvme",
        "psu": "psu-650",
        "case": "case-mid",
        "cooling": "cool-hyper-212",
    }
    assert all(s.part.price <= result.budget_allocation[c] for c, s in result.picks.items())
    assert result.report.estimated_wattage == 448
    assert result.report.recommended_psu == 538
    assert result.report.score == 100
    assert result.to_build().cpu.id == "cpu-r5-7600x"


def test_generate_build_without_budget(service):
    result = service.generate_build("office", "intel")
    assert result.budget_allocation == {}
    assert result.picks["cpu"].id == "cpu-i7-13700k"
    assert result.picks["motherboard"].part.specs["socket"] == "LGA1700"
    assert result.report.compatible


def test_generate_build_with_ai_picks(repo):
    service = AdvisorService(repo, AIRanker(llm=None))
    pools_answer = {
        "picks": {
            c: {"index": 1, "reason": f"AI {c}"}
            for c in ("cpu", "gpu", "motherboard", "ram", "storage", "psu", "case", "cooling")
        }
    }
    service.ranker.llm = FakeListChatModel(responses=[json.dumps(pools_answer)])
    result = service.generate_build("gaming", "amd", 150000)
    # 各类别启发式第一名恰好互相兼容
    assert result.source == "ai"
    assert result.picks["cpu"].reason == "AI cpu"
    assert result.picks["gpu"].id == "gpu-rx7800xt"
    assert result.report.compatible


def test_generate_build_completes_partial_ai_answer(repo):
    service = AdvisorService(repo, AIRanker(llm=None))
    answer = {
        "picks": {c: {"index": 1, "reason": f"AI {c}"} for c in ("cpu", "motherboard", "ram", "storage")}
    }
    service.ranker.llm = FakeListChatModel(responses=[json.dumps(answer)])
    result = service.generate_build("gaming", "amd", 150000)

    assert result.source == "ai"
    assert len(result.picks) == 8
    assert {c for c, s in result.picks.items() if s.source == "ai"} == {"cpu", "motherboard", "ram", "storage"}
    assert result.picks["cpu"].reason == "AI cpu"
    assert result.picks["gpu"].id == "gpu-rx7800xt"
    assert result.picks["psu"].id == "psu-650"
    assert result.picks["case"].id == "case-mid"
    assert result.picks["cooling"].id == "cool-hyper-212"
    assert result.report.parts_count == 8
    assert result.report.recommended_psu == 538
    assert result.report.compatible


def test_explain_fallback_with_compatible_parts(service, repo):
    build = Build(cpu=repo.find_by_id("cpu-r5-7600x"), motherboard=repo.find_by_id("mb-b550-ddr4"))
    result = service.explain(build)
    assert result.source == "fallback"
    first = result.explanation.issue_explanations[0]
    assert first.id == "socket-mismatch"
    assert [p.id for p in first.compatible_parts] == ["mb-b650-ddr5", "mb-a620-ddr5"]


def test_components_flags_incompatible_parts(service, repo):
    items = service.components("ram", Build(motherboard=repo.find_by_id("mb-b650-ddr5")))
    flags = {item["part"]["id"]: (item["compatible"], item["reason"]) for item in items}
    assert flags["ram-ddr5-32-6000"] == (True, None)
    assert flags["ram-ddr4-16-3200"] == (False, "Requires DDR5")
    with pytest.raises(InvalidCategoryError):
        service.components("keyboard")
