import pytest

from foodsense.config import ScoreWeights
from foodsense.health_score import (
    compute_health_score,
    count_additives,
    detect_ultra_processed,
    score_to_stars,
    score_to_ten,
)
from foodsense.utils.numbers import round_half_up


def test_all_missing_fields_score_from_zero_defaults():
    res = compute_health_score({})
    assert res.final_score == 100
    assert res.components.penalties == 0
    assert res.components.bonuses == 0
    assert compute_health_score(None).final_score == 100


def test_breakdown_matches_formula():
    res = compute_health_score({
        "sugar_g_per_100g": 20,
        "saturated_fat_g_per_100g": 5,
        "sodium_mg_per_100g": 500,
        "calories": 240,
        "fiber_g_per_100g": 6,
        "protein_g_per_100g": 8,
    })
    assert res.components.penalties == pytest.approx(11.5)
    assert res.components.bonuses == pytest.approx(1.6)
    assert res.final_score == 90


def test_score_is_bounded_for_extreme_inputs():
    worst = compute_health_score(
        {
            "sugar_g_per_100g": 500,
            "saturated_fat_g_per_100g": 500,
            "sodium_mg_per_100g": 1e6,
            "calories": 1e5,
        },
        additives_count=100,
        ultra_processed=True,
    )
    assert worst.final_score == 0
    assert worst.components.normalized.sodium_mg_per_100g == 5000

    negative = compute_health_score({"sugar_g_per_100g": -50, "fiber_g_per_100g": 999})
    assert 0 <= negative.final_score <= 100
    assert negative.components.normalized.sugar_g_per_100g == 0


def test_nan_counts_as_missing():
    res = compute_health_score({"sugar_g_per_100g": float("nan")})
    assert res.final_score == 100


def test_infinite_values_clamp_to_domain_bounds():
    top = compute_health_score({"sugar_g_per_100g": float("inf")})
    assert top.components.normalized.sugar_g_per_100g == 100
    assert top.final_score == 65
    assert top.final_score < compute_health_score({"sugar_g_per_100g": 90}).final_score

    bottom = compute_health_score({"sodium_mg_per_100g": float("-inf")})
    assert bottom.components.normalized.sodium_mg_per_100g == 0
    assert bottom.final_score == 100


def test_more_sugar_strictly_lowers_score():
    low = compute_health_score({"sugar_g_per_100g": 10, "calories": 200})
    high = compute_health_score({"sugar_g_per_100g": 90, "calories": 200})
    assert high.final_score < low.final_score


def test_more_fiber_never_lowers_score():
    base = {"sugar_g_per_100g": 30, "sodium_mg_per_100g": 400}
    without = compute_health_score({**base, "fiber_g_per_100g": 0})
    with_fiber = compute_health_score({**base, "fiber_g_per_100g": 30})
    assert with_fiber.final_score >= without.final_score


def test_additives_and_ultra_processed_penalties():
    assert compute_health_score({}, additives_count=30).final_score == 90
    assert compute_health_score({}, ultra_processed=True).final_score == 90


def test_weights_are_tunable():
    no_sugar = ScoreWeights(sugar=0.0)
    res = compute_health_score({"sugar_g_per_100g": 90}, weights=no_sugar)
    assert res.final_score == 100


def test_deterministic():
    facts = {"sugar_g_per_100g": 12.3, "protein_g_per_100g": 7.7, "calories": 321}
    assert compute_health_score(facts) == compute_health_score(facts)


def test_round_half_up():
    assert round_half_up(82.5) == 83
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_detect_ultra_processed():
    assert detect_ultra_processed("Cola Soda")
    assert detect_ultra_processed("Noodles", "Instant meals")
    assert detect_ultra_processed("Snack", flags=["packaged snack"])
    assert not detect_ultra_processed("Apple", "fruit")
    assert not detect_ultra_processed()


def test_count_additives():
    assert count_additives(["E330", "e330", "Lecithin"], ["preservatives", "organic"]) == 3
    assert count_additives() == 0


def test_display_conversions():
    assert score_to_ten(85) == 9
    assert score_to_ten(0) == 0
    assert score_to_ten(150) == 10
    assert score_to_stars(90) == 4.5
    assert score_to_stars(73) == 3.5
    assert score_to_stars(100) == 5.0
