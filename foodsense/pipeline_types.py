"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import (
    ClassificationResult,
    HealthScoreResult,
    NutritionFacts,
    PortionEstimate,
    RankedCandidate,
)


@dataclass
class ItemParts:
    """
    Per-item outputs of the later stages, handed back to the caller.

    The caller merges these into its own record shape; ``classification`` is
    None when enrichment data was supplied and no class lookup ran.
    """

    name: str
    portion: PortionEstimate
    nutrition: NutritionFacts
    health: HealthScoreResult
    candidate: Optional[RankedCandidate] = None
    classification: Optional[ClassificationResult] = None
    is_estimated: bool = False
