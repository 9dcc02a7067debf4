from __future__ import annotations

"""
Quality filtering for raw detector output.

The detector is noisy in a few predictable ways: it labels tableware, and it
reports a lemon wedge as both "lemon" and "lime" with near-identical
confidence.  This module removes that noise before ranking so it cannot push
real items out of the top-K.

:func:`quality_filter` is the single entry point; new class-specific
throttles belong there.
"""

from typing import Iterable, List, Sequence

from loguru import logger

from .config import CITRUS_GAP_THRESHOLD, DetectionCandidate
from .constants import CITRUS_NAMES, NON_FOOD_NAMES
from .normalize import normalize_food_name


def _as_candidates(candidates: Iterable) -> List[DetectionCandidate]:
    return [
        c if isinstance(c, DetectionCandidate) else DetectionCandidate.model_validate(c)
        for c in candidates or []
    ]


def throttle_citrus(candidates: Sequence[DetectionCandidate]) -> List[DetectionCandidate]:
    """
    Collapse lemon/lime double detections.

    If the top two citrus confidences are within ``CITRUS_GAP_THRESHOLD`` of
    each other they are treated as one fruit and only the best survives.  A
    larger gap means both may genuinely be on the plate, so all are kept.
    """
    items = _as_candidates(candidates)
    citrus = [i for i, c in enumerate(items) if normalize_food_name(c.name) in CITRUS_NAMES]
    if len(citrus) <= 1:
        return items

    # sorted() is stable, so equal confidences keep detector order
    ordered = sorted(citrus, key=lambda i: -items[i].confidence)
    best, second = items[ordered[0]], items[ordered[1]]
    gap = best.confidence - second.confidence
    if gap > CITRUS_GAP_THRESHOLD:
        logger.debug("Citrus gap {:.2f} > {}; keeping all {} citrus items", gap, CITRUS_GAP_THRESHOLD, len(citrus))
        return items

    dropped = set(ordered[1:])
    logger.debug("Citrus throttle kept '{}' and dropped {} near-duplicate(s)", best.name, len(dropped))
    return [c for i, c in enumerate(items) if i not in dropped]


def drop_non_food(candidates: Sequence[DetectionCandidate]) -> List[DetectionCandidate]:
    """Remove unnamed candidates and tableware labels (exact name match)."""
    items = _as_candidates(candidates)
    kept: List[DetectionCandidate] = []
    for c in items:
        name = normalize_food_name(c.name)
        if not name or name in NON_FOOD_NAMES:
            logger.debug("Dropping non-food candidate '{}'", c.name)
            continue
        kept.append(c)
    return kept


def quality_filter(
    candidates: Sequence[DetectionCandidate],
    drop_non_food_items: bool = True,
) -> List[DetectionCandidate]:
    """
    Run every detector-noise throttle; order of surviving items is unchanged.

    Applying it twice is a no-op.
    """
    items = _as_candidates(candidates)
    n_in = len(items)
    if drop_non_food_items:
        items = drop_non_food(items)
    items = throttle_citrus(items)
    if len(items) != n_in:
        logger.info("Quality filter kept {} of {} candidates", len(items), n_in)
    return items
