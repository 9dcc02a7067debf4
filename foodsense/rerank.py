# foodsense/rerank.py
from __future__ import annotations

from typing import Iterable, List

from loguru import logger

from .config import PROTEIN_BOOST, PROTEIN_CATEGORY, DetectionCandidate, RankedCandidate
from .constants import PROTEIN_NAMES
from .normalize import normalize_food_name


# ---------------------------------------------------------------------------
# Class helpers
# ---------------------------------------------------------------------------

def is_protein_class(candidate: DetectionCandidate) -> bool:
    """Protein by declared category or by a known protein name."""
    category = normalize_food_name(candidate.category)
    if category == PROTEIN_CATEGORY:
        return True
    return normalize_food_name(candidate.name) in PROTEIN_NAMES


def boost_score(candidate: DetectionCandidate) -> float:
    """
    Selection score for one candidate.

    Always derived from ``confidence`` (never from a previous ``score``), so
    boosting an already-boosted candidate gives the same number.
    """
    score = float(candidate.confidence)
    if is_protein_class(candidate):
        score += PROTEIN_BOOST
    return score


# ---------------------------------------------------------------------------
# Main entry
# ---------------------------------------------------------------------------

def boost_candidates(candidates: Iterable) -> List[RankedCandidate]:
    """Attach a boosted score to every candidate, keeping detector order."""
    ranked: List[RankedCandidate] = []
    for c in candidates or []:
        if not isinstance(c, DetectionCandidate):
            c = DetectionCandidate.model_validate(c)
        fields = c.model_dump(exclude={"score"})
        ranked.append(RankedCandidate(**fields, score=boost_score(c)))
    return ranked


def rank_candidates(candidates: Iterable) -> List[RankedCandidate]:
    """
    Boost and sort by score descending.

    Python's sort is stable, so ties keep the detector's original order.
    """
    ranked = boost_candidates(candidates)
    ranked.sort(key=lambda c: -c.score)
    if ranked:
        logger.debug(
            "Ranked {} candidates; top='{}' ({:.2f})",
            len(ranked), ranked[0].name, ranked[0].score,
        )
    return ranked
