from rigcheck.builder.compatibility import evaluate
from rigcheck.builder.picker import pick_build_from_candidates
from rigcheck.schemas import Build, Suggestion


def _pools(repo):
    return {c: repo.by_category(c) for c in ("cpu", "gpu", "motherboard", "ram", "storage", "psu", "case", "cooling")}


def test_unconstrained_gaming_pick(repo):
    picks = pick_build_from_candidates(_pools(repo), "gaming")
    assert {c: s.id for c, s in picks.items()} == {
        "cpu": "cpu-i7-13700k",
        "motherboard": "mb-b760-ddr5",
        "ram": "ram-ddr5-32-6000",
        "gpu": "gpu-rtx4090",
        "storage": "ssd-2tb-nvme",
        "psu": "psu-1000",
        "case": "case-mid",
        "cooling": "cool-aio-240",
    }
    assert picks["cpu"].reason == "Best performance in this category."
    assert picks["motherboard"].reason == "Compatible with CPU and feature-rich."
    assert picks["gpu"].reason == "Best option for this category."
    assert all(s.source == "heuristic" for s in picks.values())

    report = evaluate(Build(**{c: s.part for c, s in picks.items()}))
    assert report.compatible
    assert report.score == 100


def test_sequential_narrowing_beats_raw_score(repo):
    candidates = {
        "cpu": [repo.find_by_id("cpu-r5-7600x")],
        "motherboard": [repo.find_by_id("mb-b550-ddr4"), repo.find_by_id("mb-a620-ddr5")],
        "ram": [repo.find_by_id("ram-ddr4-32-3600"), repo.find_by_id("ram-ddr5-16-5200")],
    }
    picks = pick_build_from_candidates(candidates, "gaming")
    assert picks["motherboard"].id == "mb-a620-ddr5"
    assert picks["ram"].id == "ram-ddr5-16-5200"
    assert set(picks) == {"cpu", "motherboard", "ram"}


def test_soft_predicates_fall_back_to_best_score(repo):
    candidates = {
        "cpu": [repo.find_by_id("cpu-i7-13700k")],
        "gpu": [repo.find_by_id("gpu-rtx4090")],
        "psu": [repo.find_by_id("psu-400")],
        "case": [repo.find_by_id("case-compact")],
        "cooling": [repo.find_by_id("cool-ag300")],
    }
    picks = pick_build_from_candidates(candidates)
    assert picks["psu"].id == "psu-400"
    assert picks["case"].id == "case-compact"
    assert picks["cooling"].id == "cool-ag300"


def test_psu_prefers_recommended_wattage(repo):
    candidates = {
        "cpu": [repo.find_by_id("cpu-r5-7600x")],
        "gpu": [repo.find_by_id("gpu-rx7800xt")],
        "psu": [repo.find_by_id("psu-550"), repo.find_by_id("psu-650"), repo.find_by_id("psu-400")],
    }
    picks = pick_build_from_candidates(candidates, "gaming")
    # 105 + 263 + 80 = 448W，推荐 538W
    assert picks["psu"].id == "psu-650"


def test_empty_pools_are_skipped():
    assert pick_build_from_candidates({}) == {}


def test_fixed_picks_are_kept_and_narrow_the_rest(repo):
    cpu = repo.find_by_id("cpu-r5-5600")
    fixed = {"cpu": Suggestion(id=cpu.id, part=cpu, reason="budget AM4 chip", source="ai")}
    picks = pick_build_from_candidates(_pools(repo), "gaming", fixed=fixed)

    assert picks["cpu"] is fixed["cpu"]
    assert picks["motherboard"].id == "mb-b550-ddr4"
    assert picks["ram"].id == "ram-ddr4-32-3600"
    assert len(picks) == 8
    assert all(s.source == "heuristic" for c, s in picks.items() if c != "cpu")


def test_psu_target_callback_sets_minimum_wattage(repo):
    seen = []

    def target(build):
        seen.append(sorted(c for c, _ in build.filled()))
        return 800

    candidates = {
        "cpu": [repo.find_by_id("cpu-r5-7600x")],
        "gpu": [repo.find_by_id("gpu-rx7800xt")],
        "psu": [repo.find_by_id("psu-550"), repo.find_by_id("psu-650"), repo.find_by_id("psu-850")],
    }
    picks = pick_build_from_candidates(candidates, "gaming", psu_target=target)
    assert picks["psu"].id == "psu-850"
    assert seen == [["cpu", "gpu"]]
