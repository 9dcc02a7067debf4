from __future__ import annotations

"""
Canonical class inference for items with no live enrichment match.

When neither the product database nor the enrichment service knows an item,
we still want a stable, explainable nutrition baseline rather than nothing.
Free text is matched against :data:`CLASS_PATTERNS`, an ordered table: the
first matching pattern of the first matching class wins, and later classes
are never consulted once one matches.  The resulting ``class_id`` keys into
:data:`GENERIC_MACROS`.

Anchored patterns (containing ``\\b``) are trusted more than bare substring
patterns because they cannot fire inside an unrelated word.
"""

import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Pattern, Tuple

from loguru import logger

from .config import (
    ANCHORED_MATCH_CONFIDENCE,
    SUBSTRING_MATCH_CONFIDENCE,
    ClassificationResult,
    GenericMacroRecord,
    NutritionFacts,
)
from .normalize import basic_clean, normalize_food_name

# ---------------------------------------------------------------------------
# Ordered class table (declaration order is priority order)
# ---------------------------------------------------------------------------

CLASS_PATTERNS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("hot_dog_link", (r"\bhot ?dogs?\b", r"frankfurter", r"\bwieners?\b")),
    ("sausage_link", (r"\bsausages?\b", r"bratwurst", r"\bchorizo\b")),
    ("bacon_strip", (r"\bbacon\b",)),
    ("fish_fillet_link", (
        r"\bsalmon\b",
        r"\bcod\b",
        r"\btilapia\b",
        r"\btrout\b",
        r"\bhalibut\b",
        r"\bfish fillets?\b",
        r"fish",
    )),
    ("shrimp_serving", (r"\bshrimps?\b", r"\bprawns?\b")),
    ("chicken_breast", (r"\bchicken breasts?\b", r"\bchicken\b(?!.*\bsoup\b)")),
    ("beef_patty", (r"\b(?:ham)?burgers?\b", r"\bbeef patty\b")),
    ("steak_cut", (r"\bsteak\b", r"sirloin", r"ribeye")),
    ("egg_large", (r"\beggs?\b", r"omelet")),
    ("pizza_slice", (r"\bpizza\b",)),
    ("teriyaki_bowl", (r"teriyaki",)),
    ("california_roll", (r"\bcalifornia rolls?\b", r"\bsushi\b", r"\bmaki\b")),
    ("rice_cooked", (r"\brice\b",)),
    ("oatmeal_cooked", (r"oatmeal", r"porridge", r"\boats\b")),
    ("pasta_cooked", (r"\bpasta\b", r"spaghetti", r"penne", r"macaroni")),
    ("bread_slice", (r"\bbread\b", r"\btoast\b", r"baguette")),
    ("yogurt_plain", (r"yogh?urt",)),
    ("salad_mixed", (r"\bsalad\b", r"lettuce")),
    ("fruit_whole", (r"\bapples?\b", r"\bbananas?\b", r"\boranges?\b", r"\bpears?\b")),
    ("vegetable_mixed", (r"broccoli", r"asparagus", r"\bcarrots?\b", r"\bgreen beans\b")),
)

_COMPILED: Tuple[Tuple[str, Tuple[Tuple[str, Pattern[str]], ...]], ...] = tuple(
    (class_id, tuple((p, re.compile(p, re.IGNORECASE)) for p in patterns))
    for class_id, patterns in CLASS_PATTERNS
)

# ---------------------------------------------------------------------------
# Generic macros per 100 g (reference data, never mutated)
# ---------------------------------------------------------------------------

_MACROS: Dict[str, GenericMacroRecord] = {
    "hot_dog_link": GenericMacroRecord(calories=290, protein=10.0, carbs=2.0, fat=26.0),
    "sausage_link": GenericMacroRecord(calories=301, protein=12.0, carbs=2.0, fat=27.0),
    "bacon_strip": GenericMacroRecord(calories=541, protein=37.0, carbs=1.4, fat=42.0),
    "fish_fillet_link": GenericMacroRecord(calories=206, protein=22.0, carbs=0.0, fat=12.0),
    "shrimp_serving": GenericMacroRecord(calories=99, protein=24.0, carbs=0.2, fat=0.3),
    "chicken_breast": GenericMacroRecord(calories=165, protein=31.0, carbs=0.0, fat=3.6),
    "beef_patty": GenericMacroRecord(calories=254, protein=17.0, carbs=0.0, fat=20.0),
    "steak_cut": GenericMacroRecord(calories=271, protein=25.0, carbs=0.0, fat=19.0),
    "egg_large": GenericMacroRecord(calories=155, protein=13.0, carbs=1.1, fat=11.0),
    "pizza_slice": GenericMacroRecord(calories=266, protein=11.0, carbs=33.0, fat=10.0),
    "teriyaki_bowl": GenericMacroRecord(calories=163, protein=12.0, carbs=21.0, fat=4.0),
    "california_roll": GenericMacroRecord(calories=129, protein=4.0, carbs=18.0, fat=6.0),
    "rice_cooked": GenericMacroRecord(calories=130, protein=2.7, carbs=28.0, fat=0.3),
    "oatmeal_cooked": GenericMacroRecord(calories=68, protein=2.4, carbs=12.0, fat=1.4),
    "pasta_cooked": GenericMacroRecord(calories=158, protein=5.8, carbs=31.0, fat=0.9),
    "bread_slice": GenericMacroRecord(calories=265, protein=9.0, carbs=49.0, fat=3.2),
    "yogurt_plain": GenericMacroRecord(calories=61, protein=3.5, carbs=4.7, fat=3.3),
    "salad_mixed": GenericMacroRecord(calories=20, protein=1.5, carbs=3.6, fat=0.2),
    "fruit_whole": GenericMacroRecord(calories=52, protein=0.3, carbs=14.0, fat=0.2),
    "vegetable_mixed": GenericMacroRecord(calories=34, protein=2.8, carbs=7.0, fat=0.4),
}
GENERIC_MACROS: Mapping[str, GenericMacroRecord] = MappingProxyType(_MACROS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def pattern_confidence(pattern: str) -> float:
    """0.9 for word-boundary anchored patterns, 0.7 for bare substrings."""
    return ANCHORED_MATCH_CONFIDENCE if r"\b" in pattern else SUBSTRING_MATCH_CONFIDENCE


def classify_food_name(text: str | None) -> ClassificationResult:
    """
    Match free text against the ordered class table.

    No match is an expected outcome: ``ClassificationResult(class_id=None,
    confidence=0)`` tells the caller to look elsewhere for nutrition.
    """
    norm = normalize_food_name(text)
    if not norm:
        return ClassificationResult()

    for class_id, patterns in _COMPILED:
        for raw, rx in patterns:
            if rx.search(norm):
                conf = pattern_confidence(raw)
                logger.debug("Classified '{}' as {} via {} ({})", norm, class_id, raw, conf)
                return ClassificationResult(class_id=class_id, confidence=conf, matched_pattern=raw)

    logger.debug("No canonical class for '{}'", norm)
    return ClassificationResult()


def _display_name(class_id: str, display_name: Optional[str]) -> str:
    cleaned = basic_clean(display_name)
    if cleaned:
        return cleaned
    return class_id.replace("_", " ").capitalize()


def generic_fallback(class_id: str | None, display_name: Optional[str] = None) -> Optional[dict]:
    """
    Generic nutrition record for a class, or None for an unknown class.

    The record carries per-100g macros (fiber/sugar/sodium zero-filled, the
    table has none) and echoes calories/macros at the top level so callers
    that only read the flat fields still work.
    """
    if not class_id:
        return None
    macros = GENERIC_MACROS.get(class_id)
    if macros is None:
        logger.debug("No generic macros for class '{}'", class_id)
        return None

    per_100g = {
        "calories": macros.calories,
        "protein": macros.protein,
        "carbs": macros.carbs,
        "fat": macros.fat,
        "fiber": 0.0,
        "sugar": 0.0,
        "sodium": 0.0,
    }
    return {
        "name": _display_name(class_id, display_name),
        "class_id": class_id,
        "per_100g": per_100g,
        "calories": macros.calories,
        "protein": macros.protein,
        "carbs": macros.carbs,
        "fat": macros.fat,
        "is_estimated": True,
        "data_source": "generic_class",
    }


def generic_nutrition_facts(class_id: str | None) -> Optional[NutritionFacts]:
    """The same macros as :func:`generic_fallback`, shaped for the scorer and portion resolver."""
    macros = GENERIC_MACROS.get(class_id or "")
    if macros is None:
        return None
    return NutritionFacts(
        calories_per_100g=macros.calories,
        protein_g_per_100g=macros.protein,
        carbs_g_per_100g=macros.carbs,
        fat_g_per_100g=macros.fat,
        sugar_g_per_100g=0.0,
        fiber_g_per_100g=0.0,
        sodium_mg_per_100g=0.0,
    )


def infer_generic_nutrition(
    text: str | None,
    display_name: Optional[str] = None,
) -> Tuple[ClassificationResult, Optional[dict]]:
    """Classify ``text`` and look up its generic record in one call."""
    result = classify_food_name(text)
    record = generic_fallback(result.class_id, display_name or text)
    return result, record
