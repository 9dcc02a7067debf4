from __future__ import annotations

"""
Top-K selection that cannot starve a protein detection.

After boosting and sorting, a plain ``ranked[:k]`` can cut a protein the
detector was only moderately sure of when the plate also has several
confident sides.  "Is there protein on this plate" matters more to the user
than the exact list length, so any protein-class candidate at or above
``SURVIVAL_THRESHOLD`` is always kept, even when that makes the list longer
than ``k``.  Remaining slots are then filled in score order after them.
"""

from typing import Iterable, List, Optional

from loguru import logger

from .config import SURVIVAL_THRESHOLD, TOP_K_DEFAULT, RankedCandidate
from .rerank import is_protein_class, rank_candidates


def select_with_protein_survival(
    candidates: Iterable,
    k: Optional[int] = None,
) -> List[RankedCandidate]:
    """
    candidates: detector output (raw or already ranked); boosts are recomputed
    k: target list size (defaults to TOP_K_DEFAULT)

    Returns the protein survivors first (in score order), then the fill in
    score order.
    """
    if k is None:
        k = TOP_K_DEFAULT
    k = max(0, int(k))

    ranked = rank_candidates(candidates)
    if not ranked:
        return []

    high_protein = [
        i for i, c in enumerate(ranked)
        if c.score >= SURVIVAL_THRESHOLD and is_protein_class(c)
    ]
    if not high_protein:
        return ranked[:k]

    # Protein signals are never truncated, even past k
    picked_idx = list(high_protein)
    seen = set(picked_idx)
    for i in range(len(ranked)):
        if len(picked_idx) >= k:
            break
        if i not in seen:
            picked_idx.append(i)
            seen.add(i)

    if len(high_protein) > k:
        logger.info(
            "Protein survival kept {} protein candidates (k={})",
            len(high_protein), k,
        )

    return [ranked[i] for i in picked_idx]
