from __future__ import annotations

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------
# Candidate filter
# ---------------------------

# best - second_best <= gap -> the two citrus detections are the same fruit
CITRUS_GAP_THRESHOLD = 0.2


# ---------------------------
# Ranking & survival policy
# ---------------------------

PROTEIN_BOOST = 0.15          # additive, applied once per candidate
SURVIVAL_THRESHOLD = 0.6      # boosted score a protein needs to dodge top-K truncation

DEFAULT_TOP_K = 5
TOP_K_DEFAULT = int(os.getenv("FOODSENSE_TOP_K", str(DEFAULT_TOP_K)))

PROTEIN_CATEGORY = "protein"


# ---------------------------
# Class inference
# ---------------------------

ANCHORED_MATCH_CONFIDENCE = 0.9   # pattern carries a \b anchor
SUBSTRING_MATCH_CONFIDENCE = 0.7


# ---------------------------
# Portion resolution
# ---------------------------

DEFAULT_PORTION_GRAMS = 30.0

RATIO_MIN_GRAMS = 5
RATIO_MAX_GRAMS = 300

# Declared serving sizes outside this window are treated as OCR/DB noise
DECLARED_MIN_GRAMS = 1.0
DECLARED_MAX_GRAMS = 1000.0

USER_SET_CONFIDENCE = 1.0
OCR_DECLARED_CONFIDENCE = 0.95
DB_DECLARED_CONFIDENCE = 0.9
RATIO_CALORIES_CONFIDENCE = 0.7
RATIO_MACRO_CONFIDENCE = 0.6
CATEGORY_CONFIDENCE = 0.5
TOKEN_CONFIDENCE = 0.4
FALLBACK_CONFIDENCE = 0.1


# ---------------------------
# Health score
# ---------------------------

ULTRA_PROCESSED_PENALTY = 10.0


class ScoreWeights(BaseModel):
    """
    Tunable constants for the health score.

    The weights and clamp domains were picked empirically, not fitted, so they
    live here where tests and callers can swap them without touching the
    formula.
    """

    model_config = ConfigDict(frozen=True)

    sugar: float = 0.35
    saturated_fat: float = 0.20
    sodium: float = 0.15
    calories: float = 0.10
    additives: float = 0.10
    fiber_bonus: float = 0.06
    protein_bonus: float = 0.04
    ultra_processed_penalty: float = ULTRA_PROCESSED_PENALTY

    # upper bound of each clamp domain (lower bound is always 0)
    calories_per_serving_max: float = 1200.0
    sugar_g_per_100g_max: float = 100.0
    saturated_fat_g_per_100g_max: float = 100.0
    sodium_mg_per_100g_max: float = 5000.0
    fiber_g_per_100g_max: float = 30.0
    protein_g_per_100g_max: float = 80.0
    additives_count_max: float = 30.0


DEFAULT_WEIGHTS = ScoreWeights()


# ---------------------------
# Pydantic models shared around the library
# ---------------------------

class DetectionCandidate(BaseModel):
    """
    One item reported by the upstream vision/object detector.

    Untrusted: names may be duplicated, oddly cased or not food at all.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    category: Optional[str] = None
    portion_hint: Optional[str] = Field(default=None, alias="portionHint")


class RankedCandidate(DetectionCandidate):
    """Detection candidate plus its selection score (confidence + any boost)."""

    score: float


class ClassificationResult(BaseModel):
    """Outcome of canonical class inference; ``class_id=None`` means no match."""

    model_config = ConfigDict(frozen=True)

    class_id: Optional[str] = None
    confidence: float = 0.0
    matched_pattern: Optional[str] = None


class GenericMacroRecord(BaseModel):
    """Reference macros per 100 g for a canonical food class."""

    model_config = ConfigDict(frozen=True)

    calories: float
    protein: float
    carbs: float
    fat: float


class PortionSource(str, Enum):
    OCR_DECLARED = "ocr_declared"
    DB_DECLARED = "db_declared"
    RATIO_COMPUTED = "ratio_computed"
    CATEGORY_ESTIMATE = "category_estimate"
    TOKEN_PARSED = "token_parsed"
    USER_SET = "user_set"
    FALLBACK_DEFAULT = "fallback_default"


class PortionEstimate(BaseModel):
    grams: float = Field(gt=0)
    source: PortionSource
    confidence: float = Field(ge=0.0, le=1.0)
    label: Optional[str] = None


class NutritionFacts(BaseModel):
    """
    Flat nutrition record: per-100g fields plus optional per-serving fields.

    Every field is optional. Absence is meaningful (it means "unknown") and is
    handled by each consumer; the health score treats it as zero.
    """

    model_config = ConfigDict(extra="ignore")

    # per 100 g
    calories_per_100g: Optional[float] = None
    protein_g_per_100g: Optional[float] = None
    carbs_g_per_100g: Optional[float] = None
    fat_g_per_100g: Optional[float] = None
    sugar_g_per_100g: Optional[float] = None
    saturated_fat_g_per_100g: Optional[float] = None
    fiber_g_per_100g: Optional[float] = None
    sodium_mg_per_100g: Optional[float] = None

    # per declared serving
    calories: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None
    sugar_g: Optional[float] = None
    saturated_fat_g: Optional[float] = None
    fiber_g: Optional[float] = None
    sodium_mg: Optional[float] = None


class NormalizedNutrition(BaseModel):
    """The clamped values the health score was computed from."""

    calories_per_serving: float = 0.0
    sugar_g_per_100g: float = 0.0
    saturated_fat_g_per_100g: float = 0.0
    sodium_mg_per_100g: float = 0.0
    fiber_g_per_100g: float = 0.0
    protein_g_per_100g: float = 0.0
    additives_count: float = 0.0


class ScoreComponents(BaseModel):
    penalties: float
    bonuses: float
    normalized: NormalizedNutrition


class HealthScoreResult(BaseModel):
    final_score: int = Field(ge=0, le=100)
    components: ScoreComponents


class ProductInput(BaseModel):
    """
    Everything the portion resolver may look at for a single item.

    Collected by the caller from the OCR reader, the product database and the
    detector; any subset may be missing.
    """

    name: str = ""
    category: Optional[str] = None
    ocr_serving_text: Optional[str] = None
    db_serving_text: Optional[str] = None
    db_serving_grams: Optional[float] = None
    nutrition: NutritionFacts = Field(default_factory=NutritionFacts)
    user_grams: Optional[float] = None
