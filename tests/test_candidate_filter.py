from foodsense.candidate_filter import drop_non_food, quality_filter, throttle_citrus
from foodsense.config import DetectionCandidate


def _c(name, confidence, category=None):
    return DetectionCandidate(name=name, confidence=confidence, category=category)


def _names(items):
    return [c.name for c in items]


def test_citrus_close_confidences_keep_only_best():
    out = throttle_citrus([_c("lemon", 0.9), _c("lime", 0.85)])
    assert _names(out) == ["lemon"]


def test_citrus_wide_gap_keeps_both():
    out = throttle_citrus([_c("lemon", 0.9), _c("lime", 0.5)])
    assert _names(out) == ["lemon", "lime"]


def test_citrus_match_is_case_insensitive():
    out = throttle_citrus([_c("Lime", 0.7), _c("LEMON ", 0.75)])
    assert _names(out) == ["LEMON "]


def test_citrus_tie_keeps_first_detection():
    out = throttle_citrus([_c("lime", 0.8), _c("lemon", 0.8)])
    assert _names(out) == ["lime"]


def test_repeated_citrus_object_collapses_to_one():
    lemon = _c("lemon", 0.9)
    out = throttle_citrus([lemon, _c("rice", 0.7), lemon])
    assert _names(out) == ["lemon", "rice"]


def test_single_citrus_is_untouched():
    items = [_c("lemon", 0.4), _c("rice", 0.9)]
    assert throttle_citrus(items) == items


def test_quality_filter_preserves_order_of_other_items():
    items = [_c("apple", 0.7), _c("lime", 0.85), _c("lemon", 0.9), _c("rice", 0.6)]
    out = quality_filter(items)
    assert _names(out) == ["apple", "lemon", "rice"]
    # input list is not mutated
    assert len(items) == 4


def test_quality_filter_is_idempotent():
    items = [_c("lemon", 0.8), _c("lime", 0.78), _c("plate", 0.99), _c("salmon", 0.55, "protein")]
    once = quality_filter(items)
    twice = quality_filter(once)
    assert once == twice
    assert _names(once) == ["lemon", "salmon"]


def test_drop_non_food_uses_exact_names():
    items = [_c("plate", 0.99), _c("rice", 0.8), _c("cupcake", 0.7), _c("  ", 0.5)]
    assert _names(drop_non_food(items)) == ["rice", "cupcake"]


def test_quality_filter_can_keep_tableware():
    out = quality_filter([_c("bowl", 0.9), _c("rice", 0.8)], drop_non_food_items=False)
    assert _names(out) == ["bowl", "rice"]


def test_quality_filter_accepts_dicts_and_empty_input():
    out = quality_filter([{"name": "lemon", "confidence": 0.6, "portionHint": "1 wedge"}])
    assert out[0].portion_hint == "1 wedge"
    assert quality_filter([]) == []
    assert quality_filter(None) == []
