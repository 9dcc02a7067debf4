from __future__ import annotations

"""
Stage wiring in the fixed order detector -> filter -> rank -> classify ->
portion -> score.

These helpers only call the stage modules in sequence; callers that need a
single stage should import it directly.  Nothing here does I/O: enrichment
and product data are looked up by the caller and passed in.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .balance import select_with_protein_survival
from .candidate_filter import quality_filter
from .class_inference import classify_food_name, generic_nutrition_facts
from .config import NutritionFacts, ProductInput, RankedCandidate
from .health_score import compute_health_score, count_additives, detect_ultra_processed
from .normalize import normalize_food_name
from .pipeline_types import ItemParts
from .portion import resolve_portion, to_per_portion


def select_candidates(candidates: Iterable, k: Optional[int] = None) -> List[RankedCandidate]:
    """Quality filter, then boost + protein-survival top-K."""
    filtered = quality_filter(list(candidates or []))
    return select_with_protein_survival(filtered, k=k)


def _has_values(facts: Optional[NutritionFacts]) -> bool:
    return facts is not None and any(v is not None for v in facts.model_dump().values())


def _as_facts(facts) -> Optional[NutritionFacts]:
    if facts is None or isinstance(facts, NutritionFacts):
        return facts
    return NutritionFacts.model_validate(facts)


def resolve_item(
    name: Optional[str] = None,
    *,
    candidate: Optional[RankedCandidate] = None,
    enrichment=None,
    product=None,
    additives: Optional[Iterable[str]] = None,
    flags: Optional[Iterable[str]] = None,
) -> ItemParts:
    """
    Nutrition, portion and score for one item.

    name:       display/search name (falls back to candidate.name, then product name)
    enrichment: per-100g NutritionFacts from a live lookup; when empty the
                generic class macros are used instead
    product:    ProductInput (or dict) with declared serving data
    """
    item = product if isinstance(product, ProductInput) else ProductInput.model_validate(product or {})
    display = name or (candidate.name if candidate else "") or item.name
    category = item.category or (candidate.category if candidate else None)

    facts = _as_facts(enrichment)
    classification = None
    is_estimated = False
    if not _has_values(facts):
        facts = item.nutrition if _has_values(item.nutrition) else None
    if facts is None:
        classification = classify_food_name(display)
        facts = generic_nutrition_facts(classification.class_id) or NutritionFacts()
        is_estimated = True
        logger.debug("No enrichment for '{}'; class={}", display, classification.class_id)

    item = item.model_copy(update={
        "name": item.name or display,
        "category": category,
        "nutrition": item.nutrition if _has_values(item.nutrition) else facts,
    })
    portion = resolve_portion(item)
    scaled = to_per_portion(facts, portion.grams)

    health = compute_health_score(
        scaled,
        additives_count=count_additives(additives, flags),
        ultra_processed=detect_ultra_processed(display, category, flags),
    )
    return ItemParts(
        name=display,
        portion=portion,
        nutrition=scaled,
        health=health,
        candidate=candidate,
        classification=classification,
        is_estimated=is_estimated,
    )


def resolve_plate(
    candidates: Iterable,
    k: Optional[int] = None,
    enrichment: Optional[Mapping[str, object]] = None,
) -> List[ItemParts]:
    """
    Full pass over one detector result.

    enrichment maps a food name (any casing) to its per-100g facts; names
    missing from it go through class inference.
    """
    lookup: Dict[str, object] = {
        normalize_food_name(key): v for key, v in (enrichment or {}).items()
    }
    selected = select_candidates(candidates, k=k)
    parts = [
        resolve_item(
            candidate=c,
            enrichment=lookup.get(normalize_food_name(c.name)),
        )
        for c in selected
    ]
    logger.info("Resolved {} items ({} estimated)", len(parts), sum(p.is_estimated for p in parts))
    return parts
