import pytest

from rigcheck.builder.ranking import DEFAULT_REASON, heuristic_score, rank


def test_cpu_score_formula(repo):
    cpu = repo.find_by_id("cpu-r5-7600x")
    assert heuristic_score(cpu, "cpu") == pytest.approx(6 * 10 + 5.3 * 5 + 12 * 3)
    assert heuristic_score(cpu, "cpu", "gaming") == pytest.approx(122.5 + 53)
    assert heuristic_score(cpu, "cpu", "coding") == pytest.approx(122.5 + 30)
    assert heuristic_score(cpu, "cpu", "office") == pytest.approx(122.5)


def test_gpu_gaming_multiplier(repo):
    gpu = repo.find_by_id("gpu-rtx4070")
    assert heuristic_score(gpu, "gpu") == 12 * 15 + 200 * 2
    assert heuristic_score(gpu, "gpu", "gaming") == pytest.approx(580 * 1.5)


def test_ram_editing_bonus(repo):
    ram = repo.find_by_id("ram-ddr5-32-6000")
    assert heuristic_score(ram, "ram") == 32 * 5 + 60
    assert heuristic_score(ram, "ram", "editing") == 32 * 5 + 60 + 32 * 3


def test_other_category_formulas(repo):
    assert heuristic_score(repo.find_by_id("mb-b760-ddr5"), "motherboard") == 3 * 10 + 4 * 5
    assert heuristic_score(repo.find_by_id("ssd-1tb-nvme"), "storage") == 100 + 70
    assert heuristic_score(repo.find_by_id("psu-650"), "psu") == 65
    assert heuristic_score(repo.find_by_id("cool-hyper-212"), "cooling") == 30
    assert heuristic_score(repo.find_by_id("case-mid"), "case") == 0
    assert heuristic_score(repo.find_by_id("mon-27-1440p"), "monitor") == 0


def test_rank_orders_by_score_with_limit(repo):
    suggestions = rank(repo.by_category("gpu"), "gpu", limit=3)
    assert [s.id for s in suggestions] == ["gpu-rtx4090", "gpu-rx7800xt", "gpu-rtx4070"]
    assert all(s.source == "heuristic" and s.reason == DEFAULT_REASON for s in suggestions)
    assert suggestions[0].score == 24 * 15 + 450 * 2


def test_rank_is_stable_for_ties(repo):
    cases = repo.by_category("case")
    assert [s.id for s in rank(cases, "case")] == [p.id for p in cases]
    assert [s.id for s in rank(list(reversed(cases)), "case")] == [p.id for p in reversed(cases)]


def test_rank_handles_missing_specs(make_part):
    blank = make_part("cpu")
    strong = make_part("cpu", cores="8", boost_clock="5.0 GHz", threads=16)
    assert [s.part for s in rank([blank, strong], "cpu")] == [strong, blank]
