from __future__ import annotations

"""
Bounded 0-100 health score.

Every input is clamped into a fixed domain and expressed as a percentage of
that domain before it is weighted, so one absurd value (a mis-read 50 000 mg
sodium) can only cost its own weight.  The result carries the penalty and
bonus totals plus the clamped inputs so a score can always be explained.
"""

from typing import Iterable, Optional

from loguru import logger

from .config import (
    DEFAULT_WEIGHTS,
    HealthScoreResult,
    NormalizedNutrition,
    NutritionFacts,
    ScoreComponents,
    ScoreWeights,
)
from .constants import ADDITIVE_FLAGS, ULTRA_PROCESSED_KEYWORDS
from .normalize import normalize_food_name
from .utils.numbers import clamp, clamp_to_domain, coerce_float, round_half_up


def _as_facts(facts) -> NutritionFacts:
    if isinstance(facts, NutritionFacts):
        return facts
    return NutritionFacts.model_validate(facts or {})


def normalize_inputs(
    facts,
    additives_count: Optional[float] = None,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> NormalizedNutrition:
    """Zero-fill missing (or NaN) fields and clamp each one into its domain."""
    f = _as_facts(facts)

    def _c(value, hi: float) -> float:
        return clamp_to_domain(value, 0.0, hi)

    return NormalizedNutrition(
        calories_per_serving=_c(f.calories, weights.calories_per_serving_max),
        sugar_g_per_100g=_c(f.sugar_g_per_100g, weights.sugar_g_per_100g_max),
        saturated_fat_g_per_100g=_c(f.saturated_fat_g_per_100g, weights.saturated_fat_g_per_100g_max),
        sodium_mg_per_100g=_c(f.sodium_mg_per_100g, weights.sodium_mg_per_100g_max),
        fiber_g_per_100g=_c(f.fiber_g_per_100g, weights.fiber_g_per_100g_max),
        protein_g_per_100g=_c(f.protein_g_per_100g, weights.protein_g_per_100g_max),
        additives_count=_c(additives_count, weights.additives_count_max),
    )


def _pct(value: float, hi: float) -> float:
    return value / hi * 100.0 if hi > 0 else 0.0


def compute_health_score(
    facts=None,
    *,
    additives_count: Optional[float] = None,
    ultra_processed: bool = False,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> HealthScoreResult:
    """
    facts: NutritionFacts (or dict); ``calories`` is read as per-serving, the
           rest per 100 g. Missing values count as 0.
    additives_count: number of additives / additive flags
    ultra_processed: flat penalty switch

    Deterministic; never raises for missing or out-of-range numbers.
    """
    n = normalize_inputs(facts, additives_count=additives_count, weights=weights)
    w = weights

    penalties = (
        w.sugar * _pct(n.sugar_g_per_100g, w.sugar_g_per_100g_max)
        + w.saturated_fat * _pct(n.saturated_fat_g_per_100g, w.saturated_fat_g_per_100g_max)
        + w.sodium * _pct(n.sodium_mg_per_100g, w.sodium_mg_per_100g_max)
        + w.calories * _pct(n.calories_per_serving, w.calories_per_serving_max)
        + w.additives * _pct(n.additives_count, w.additives_count_max)
    )
    if ultra_processed:
        penalties += w.ultra_processed_penalty

    bonuses = (
        w.fiber_bonus * _pct(n.fiber_g_per_100g, w.fiber_g_per_100g_max)
        + w.protein_bonus * _pct(n.protein_g_per_100g, w.protein_g_per_100g_max)
    )

    final = int(clamp(round_half_up(100.0 - penalties + bonuses), 0, 100))
    logger.debug("Health score {} (penalties={:.2f}, bonuses={:.2f})", final, penalties, bonuses)

    return HealthScoreResult(
        final_score=final,
        components=ScoreComponents(penalties=penalties, bonuses=bonuses, normalized=n),
    )


# ---------------------------------------------------------------------------
# Input heuristics
# ---------------------------------------------------------------------------

def detect_ultra_processed(
    name: str | None = None,
    category: str | None = None,
    flags: Optional[Iterable[str]] = None,
) -> bool:
    """Keyword check over name, category and any upstream flags."""
    haystack = " ".join(
        normalize_food_name(part)
        for part in [name, category, *(flags or [])]
        if part
    )
    if not haystack:
        return False
    return any(kw in haystack for kw in ULTRA_PROCESSED_KEYWORDS)


def count_additives(
    additives: Optional[Iterable[str]] = None,
    flags: Optional[Iterable[str]] = None,
) -> int:
    """Distinct listed additives plus any recognised additive flags."""
    listed = {normalize_food_name(a) for a in additives or [] if normalize_food_name(a)}
    flagged = {normalize_food_name(f) for f in flags or []} & ADDITIVE_FLAGS
    return len(listed) + len(flagged)


# ---------------------------------------------------------------------------
# Display conversions
# ---------------------------------------------------------------------------

def score_to_ten(score: float) -> int:
    return int(clamp(round_half_up(coerce_float(score) / 10.0), 0, 10))


def score_to_stars(score: float) -> float:
    """0-100 -> 0-5 stars in half-star steps."""
    s = clamp(coerce_float(score), 0.0, 100.0)
    return round_half_up(s / 100.0 * 5 * 2) / 2
