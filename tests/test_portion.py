import pytest

import foodsense.portion as portion
from foodsense.config import NutritionFacts, PortionSource, ProductInput
from foodsense.portion import (
    from_category,
    from_nutrition_ratio,
    from_size_tokens,
    resolve_portion,
    to_per_portion,
)


def test_ratio_from_calories():
    est = resolve_portion({"nutrition": {"calories_per_100g": 500, "calories": 150}})
    assert est.grams == 30
    assert est.source == PortionSource.RATIO_COMPUTED
    assert est.confidence == 0.7


def test_ratio_skips_implausible_nutrient():
    facts = NutritionFacts(
        calories_per_100g=10, calories=500,          # 5000 g, rejected
        protein_g_per_100g=20, protein_g=10,         # 50 g
    )
    est = from_nutrition_ratio(facts)
    assert est.grams == 50
    assert est.confidence == 0.6
    assert "protein" in est.label


def test_ratio_ignores_fat():
    assert from_nutrition_ratio(NutritionFacts(fat_g_per_100g=20, fat_g=10)) is None


def test_ratio_survives_vanishing_per_100g_value():
    facts = NutritionFacts(
        calories_per_100g=1e-320, calories=150,      # ratio overflows to inf
        protein_g_per_100g=20, protein_g=10,
    )
    est = from_nutrition_ratio(facts)
    assert est.grams == 50
    assert "protein" in est.label


def test_granola_bar_uses_category_median():
    est = resolve_portion({"name": "granola bar"})
    assert est.grams == 40
    assert est.source == PortionSource.CATEGORY_ESTIMATE
    assert est.confidence == 0.5


def test_category_table_order_and_density():
    assert from_category("Protein Bars").grams == 60
    # "juice" precedes "orange" in the table; 240 ml * 1.04
    assert from_category("orange juice").grams == pytest.approx(249.6)
    assert from_category("chocolate chip cookies").grams == 30
    assert from_category("eggplant parmesan") is None


def test_size_tokens():
    est = resolve_portion({"name": "grande latte"})
    assert est.source == PortionSource.TOKEN_PARSED
    assert est.grams == 473
    assert est.confidence == 0.4

    assert from_size_tokens("family size nachos").grams == 90
    assert from_size_tokens("family size nachos", base_grams=100).grams == 300
    assert from_size_tokens("fun size treats").grams == 18
    assert from_size_tokens("plain nachos") is None


def test_fallback_default_never_raises():
    for product in [None, {}, ProductInput(name="quinoa surprise")]:
        est = resolve_portion(product)
        assert est.grams == 30
        assert est.source == PortionSource.FALLBACK_DEFAULT
        assert est.confidence == 0.1


def test_fallback_uses_coarse_category():
    est = resolve_portion({"name": "mystery drink", "category": "beverage"})
    assert est.grams == 240
    assert est.source == PortionSource.FALLBACK_DEFAULT


def test_user_setting_wins():
    est = resolve_portion(ProductInput(name="granola bar", user_grams=75, ocr_serving_text="40 g"))
    assert est.grams == 75
    assert est.source == PortionSource.USER_SET
    assert est.confidence == 1.0


def test_declared_ocr_beats_ratio():
    est = resolve_portion({
        "name": "granola bar",
        "ocr_serving_text": "1 bar (45 g)",
        "nutrition": {"calories_per_100g": 500, "calories": 150},
    })
    assert est.grams == 45
    assert est.source == PortionSource.OCR_DECLARED
    assert est.confidence == 0.95


def test_implausible_ocr_falls_through_to_db():
    est = resolve_portion({"ocr_serving_text": "5000 g", "db_serving_grams": 50})
    assert est.grams == 50
    assert est.source == PortionSource.DB_DECLARED


def test_db_text_volume_uses_category_density():
    est = resolve_portion({"name": "whole milk", "db_serving_text": "250 ml"})
    assert est.source == PortionSource.DB_DECLARED
    assert est.grams == pytest.approx(257.5)


def test_invalid_input_degrades_to_fallback():
    est = resolve_portion({"user_grams": "lots"})
    assert est.source == PortionSource.FALLBACK_DEFAULT


def test_one_bad_field_keeps_the_rest_of_the_product():
    est = resolve_portion({"name": "granola bar", "user_grams": "lots"})
    assert est.source == PortionSource.CATEGORY_ESTIMATE
    assert est.grams == 40

    est = resolve_portion({
        "name": "granola bar",
        "nutrition": {"calories_per_100g": 500, "calories": 150, "fat_g": "n/a"},
    })
    assert est.source == PortionSource.RATIO_COMPUTED
    assert est.grams == 30


def test_failing_strategy_is_skipped(monkeypatch):
    def boom(_):
        raise RuntimeError("broken")

    monkeypatch.setattr(portion, "from_nutrition_ratio", boom)
    est = resolve_portion({
        "name": "granola bar",
        "nutrition": {"calories_per_100g": 500, "calories": 150},
    })
    assert est.source == PortionSource.CATEGORY_ESTIMATE


def test_to_per_portion_scales_known_fields():
    facts = NutritionFacts(calories_per_100g=500, protein_g_per_100g=10, fiber_g=2)
    out = to_per_portion(facts, 30)
    assert out.calories == 150
    assert out.protein_g == 3.0
    assert out.sugar_g is None
    # per-serving value with no per-100g counterpart is kept
    assert out.fiber_g == 2
    assert out.calories_per_100g == 500
