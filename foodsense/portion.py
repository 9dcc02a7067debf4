from __future__ import annotations

"""
Portion size resolution.

Every food item needs a gram quantity, even when nothing trustworthy is known
about it.  :func:`resolve_portion` walks a fixed waterfall of strategies,
most trustworthy first, and returns the first estimate one of them produces:

    user_set -> declared (OCR, then DB) -> nutrition ratio -> category median
    -> size tokens in the name -> fallback default

Each strategy is a pure function returning a :class:`PortionEstimate` or
``None``.  Missing data only ever lowers the confidence of the answer; the
resolver itself never raises.
"""

import copy
import math
import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from .config import (
    CATEGORY_CONFIDENCE,
    DB_DECLARED_CONFIDENCE,
    DECLARED_MAX_GRAMS,
    DECLARED_MIN_GRAMS,
    DEFAULT_PORTION_GRAMS,
    FALLBACK_CONFIDENCE,
    OCR_DECLARED_CONFIDENCE,
    RATIO_CALORIES_CONFIDENCE,
    RATIO_MACRO_CONFIDENCE,
    RATIO_MAX_GRAMS,
    RATIO_MIN_GRAMS,
    TOKEN_CONFIDENCE,
    USER_SET_CONFIDENCE,
    NutritionFacts,
    PortionEstimate,
    PortionSource,
    ProductInput,
)
from .normalize import normalize_food_name
from .text_utils import parse_serving_size
from .utils.numbers import coerce_float, round_half_up


# ---------------------------------------------------------------------------
# Reference tables (ordered: first match wins)
# ---------------------------------------------------------------------------

class PortionRule(NamedTuple):
    median: float          # grams, or ml for beverages
    cap: float             # grams
    density: float = 1.0   # g per ml; 1.0 for solids


# More specific keywords precede the generic ones they contain.
CATEGORY_PORTIONS: Tuple[Tuple[str, PortionRule], ...] = (
    # bars
    ("protein bar", PortionRule(60, 70)),
    ("granola bar", PortionRule(40, 50)),
    ("cereal bar", PortionRule(25, 40)),
    ("candy bar", PortionRule(50, 60)),
    ("bar", PortionRule(40, 60)),
    # cereals & grains
    ("granola", PortionRule(55, 60)),
    ("muesli", PortionRule(45, 60)),
    ("cereal", PortionRule(40, 60)),
    ("oatmeal", PortionRule(234, 250)),
    ("rice", PortionRule(158, 250)),
    ("pasta", PortionRule(140, 250)),
    ("bread", PortionRule(30, 60)),
    ("pizza", PortionRule(107, 150)),
    # snacks
    ("chips", PortionRule(28, 50)),
    ("crackers", PortionRule(30, 50)),
    ("cookie", PortionRule(30, 60)),
    ("chocolate", PortionRule(40, 50)),
    ("candy", PortionRule(40, 60)),
    ("nuts", PortionRule(30, 50)),
    ("almonds", PortionRule(30, 50)),
    # spreads
    ("peanut butter", PortionRule(32, 40)),
    ("butter", PortionRule(14, 20)),
    ("jam", PortionRule(20, 30)),
    # dairy
    ("yogurt", PortionRule(170, 250)),
    ("yoghurt", PortionRule(170, 250)),
    ("cheese", PortionRule(28, 60)),
    # beverages (median in ml)
    ("smoothie", PortionRule(300, 500, 1.05)),
    ("milk", PortionRule(240, 350, 1.03)),
    ("juice", PortionRule(240, 350, 1.04)),
    ("soda", PortionRule(355, 500, 1.04)),
    ("beer", PortionRule(355, 500, 1.01)),
    ("coffee", PortionRule(240, 480, 1.0)),
    ("tea", PortionRule(240, 480, 1.0)),
    ("water", PortionRule(500, 750, 1.0)),
    # proteins
    ("chicken breast", PortionRule(150, 250)),
    ("salmon", PortionRule(140, 200)),
    ("fillet", PortionRule(140, 200)),
    ("steak", PortionRule(200, 300)),
    ("egg", PortionRule(50, 60)),
    # produce
    ("salad", PortionRule(80, 150)),
    ("apple", PortionRule(182, 250)),
    ("banana", PortionRule(118, 150)),
    ("orange", PortionRule(131, 200)),
)


class SizeToken(NamedTuple):
    kind: str      # "grams" | "ml" | "multiplier"
    value: float


SIZE_TOKENS: Tuple[Tuple[str, SizeToken], ...] = (
    ("family size", SizeToken("multiplier", 3.0)),
    ("party size", SizeToken("multiplier", 4.0)),
    ("king size", SizeToken("multiplier", 2.0)),
    ("fun size", SizeToken("grams", 18.0)),
    ("snack size", SizeToken("grams", 28.0)),
    ("venti", SizeToken("ml", 591.0)),
    ("grande", SizeToken("ml", 473.0)),
    ("tall", SizeToken("ml", 354.0)),
    ("triple", SizeToken("multiplier", 3.0)),
    ("double", SizeToken("multiplier", 2.0)),
    ("family", SizeToken("multiplier", 3.0)),
    ("combo", SizeToken("multiplier", 1.5)),
    ("jumbo", SizeToken("multiplier", 1.75)),
    ("large", SizeToken("multiplier", 1.5)),
    ("medium", SizeToken("multiplier", 1.0)),
    ("regular", SizeToken("multiplier", 1.0)),
    ("small", SizeToken("multiplier", 0.75)),
    ("mini", SizeToken("multiplier", 0.5)),
    ("half", SizeToken("multiplier", 0.5)),
)

# Coarse detector categories -> last-resort grams
CATEGORY_FALLBACK_GRAMS = {
    "protein": 100.0,
    "vegetable": 80.0,
    "fruit": 120.0,
    "grain": 150.0,
    "dairy": 150.0,
    "fat_oil": 14.0,
    "sauce_condiment": 15.0,
    "beverage": 240.0,
    "snack": 30.0,
}

# (nutrient, per-100g field, per-serving field, confidence); fat is not used
RATIO_NUTRIENTS = (
    ("calories", "calories_per_100g", "calories", RATIO_CALORIES_CONFIDENCE),
    ("protein", "protein_g_per_100g", "protein_g", RATIO_MACRO_CONFIDENCE),
    ("carbs", "carbs_g_per_100g", "carbs_g", RATIO_MACRO_CONFIDENCE),
)


def _keyword_rx(keyword: str) -> re.Pattern:
    # whole words, optional plural: "cookie" matches "cookies", "egg" not "eggplant"
    return re.compile(r"\b" + re.escape(keyword) + r"(?:e?s)?\b")


_CATEGORY_RX = tuple((kw, _keyword_rx(kw), rule) for kw, rule in CATEGORY_PORTIONS)
_TOKEN_RX = tuple((tok, re.compile(r"\b" + re.escape(tok) + r"\b"), st) for tok, st in SIZE_TOKENS)


def _fmt(grams: float) -> str:
    return f"{grams:g}g"


def _estimate(grams: float, source: PortionSource, confidence: float, label: str) -> PortionEstimate:
    return PortionEstimate(grams=float(grams), source=source, confidence=confidence, label=label)


def _plausible_declared(grams: Optional[float]) -> bool:
    return grams is not None and DECLARED_MIN_GRAMS <= grams <= DECLARED_MAX_GRAMS


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def from_user_setting(product: ProductInput) -> Optional[PortionEstimate]:
    """A gram amount the user typed or confirmed always wins."""
    grams = coerce_float(product.user_grams, default=0.0)
    if grams <= 0:
        return None
    return _estimate(grams, PortionSource.USER_SET, USER_SET_CONFIDENCE, _fmt(grams))


def from_declared(product: ProductInput) -> Optional[PortionEstimate]:
    """Serving size printed on the label (OCR) or stored in the product database."""
    density = category_density(product.name)

    if product.ocr_serving_text:
        grams = parse_serving_size(product.ocr_serving_text, density=density)
        if _plausible_declared(grams):
            return _estimate(grams, PortionSource.OCR_DECLARED, OCR_DECLARED_CONFIDENCE, f"{_fmt(grams)} · OCR")
        logger.debug("Unusable OCR serving '{}' -> {}", product.ocr_serving_text, grams)

    db_grams = coerce_float(product.db_serving_grams, default=0.0)
    if _plausible_declared(db_grams):
        return _estimate(round(db_grams, 1), PortionSource.DB_DECLARED, DB_DECLARED_CONFIDENCE, f"{_fmt(round(db_grams, 1))} · DB")

    if product.db_serving_text:
        grams = parse_serving_size(product.db_serving_text, density=density)
        if _plausible_declared(grams):
            return _estimate(grams, PortionSource.DB_DECLARED, DB_DECLARED_CONFIDENCE, f"{_fmt(grams)} · DB")
        logger.debug("Unusable DB serving '{}' -> {}", product.db_serving_text, grams)
    return None


def from_nutrition_ratio(nutrition: NutritionFacts) -> Optional[PortionEstimate]:
    """
    Back out the serving weight from per-serving vs per-100g values.

    Tries calories, then protein, then carbs; a nutrient whose ratio gives a
    weight outside [RATIO_MIN_GRAMS, RATIO_MAX_GRAMS] is skipped.
    """
    for nutrient, per100_field, serving_field, confidence in RATIO_NUTRIENTS:
        per100 = coerce_float(getattr(nutrition, per100_field), default=0.0)
        serving = coerce_float(getattr(nutrition, serving_field), default=0.0)
        if per100 <= 0 or serving <= 0:
            continue
        raw = serving / per100 * 100
        if not math.isfinite(raw):
            logger.debug("Ratio on {} overflowed; trying next nutrient", nutrient)
            continue
        grams = round_half_up(raw)
        if RATIO_MIN_GRAMS <= grams <= RATIO_MAX_GRAMS:
            return _estimate(grams, PortionSource.RATIO_COMPUTED, confidence, f"{_fmt(grams)} · calc ({nutrient})")
        logger.debug("Ratio on {} gave implausible {}g; trying next nutrient", nutrient, grams)
    return None


def match_category(name: str | None) -> Optional[Tuple[str, PortionRule]]:
    """First ``CATEGORY_PORTIONS`` keyword found in ``name``."""
    norm = normalize_food_name(name)
    if not norm:
        return None
    for keyword, rx, rule in _CATEGORY_RX:
        if rx.search(norm):
            return keyword, rule
    return None


def category_density(name: str | None) -> float:
    match = match_category(name)
    return match[1].density if match else 1.0


def from_category(name: str | None) -> Optional[PortionEstimate]:
    """Typical serving for the food's category: ``min(median * density, cap)``."""
    match = match_category(name)
    if match is None:
        return None
    keyword, rule = match
    grams = round(min(rule.median * rule.density, rule.cap), 1)
    return _estimate(grams, PortionSource.CATEGORY_ESTIMATE, CATEGORY_CONFIDENCE, f"{_fmt(grams)} · {keyword}")


def from_size_tokens(name: str | None, base_grams: Optional[float] = None) -> Optional[PortionEstimate]:
    """
    Menu/packaging size words in the name ("venti", "family size", "mini").

    Multipliers scale ``base_grams`` (the caller's best base weight, default
    DEFAULT_PORTION_GRAMS).  Only the first token in table order is used.
    """
    norm = normalize_food_name(name)
    if not norm:
        return None
    base = base_grams if base_grams and base_grams > 0 else DEFAULT_PORTION_GRAMS
    for token, rx, size in _TOKEN_RX:
        if not rx.search(norm):
            continue
        if size.kind == "grams":
            grams = size.value
        elif size.kind == "ml":
            # category table already missed, so no beverage density applies
            grams = size.value
        else:
            grams = base * size.value
        grams = round(grams, 1)
        return _estimate(grams, PortionSource.TOKEN_PARSED, TOKEN_CONFIDENCE, f"{_fmt(grams)} · {token}")
    return None


def fallback_grams(category: str | None) -> float:
    return CATEGORY_FALLBACK_GRAMS.get(normalize_food_name(category), DEFAULT_PORTION_GRAMS)


def fallback_default(category: str | None = None) -> PortionEstimate:
    grams = fallback_grams(category)
    return _estimate(grams, PortionSource.FALLBACK_DEFAULT, FALLBACK_CONFIDENCE, f"{_fmt(grams)} · est.")


# ---------------------------------------------------------------------------
# Waterfall
# ---------------------------------------------------------------------------

def _drop_path(data: dict, loc: Tuple) -> bool:
    """Remove ``data[loc[0]][loc[1]]...``; False when the path is not there."""
    node = data
    for key in loc[:-1]:
        node = node.get(key) if isinstance(node, dict) else None
        if node is None:
            return False
    if isinstance(node, dict) and loc and loc[-1] in node:
        del node[loc[-1]]
        return True
    return False


def _as_product(product) -> ProductInput:
    """
    Validate caller input, discarding only the fields that fail.

    One bad value (a non-numeric ``user_grams``) must not throw away a good
    name or declared serving.
    """
    if isinstance(product, ProductInput):
        return product
    if not isinstance(product, dict):
        if product is not None:
            logger.warning("Unsupported portion input {!r}; resolving with defaults", type(product))
        return ProductInput()

    data = copy.deepcopy(product)
    for _ in range(len(ProductInput.model_fields) + 1):
        try:
            return ProductInput.model_validate(data)
        except ValidationError as e:
            dropped = []
            for err in e.errors():
                loc = tuple(err["loc"])
                if _drop_path(data, loc) or (loc and data.pop(loc[0], None) is not None):
                    dropped.append(".".join(str(p) for p in loc))
            if not dropped:
                break
            logger.warning("Invalid portion input fields {} dropped", dropped)
    return ProductInput()


def _strategies(product: ProductInput) -> List[Tuple[str, Callable[[], Optional[PortionEstimate]]]]:
    return [
        ("user_set", lambda: from_user_setting(product)),
        ("declared", lambda: from_declared(product)),
        ("ratio", lambda: from_nutrition_ratio(product.nutrition)),
        ("category", lambda: from_category(product.name)),
        ("tokens", lambda: from_size_tokens(product.name, fallback_grams(product.category))),
    ]


def resolve_portion(product=None) -> PortionEstimate:
    """
    Pick exactly one gram estimate for an item.

    ``product`` may be a :class:`ProductInput`, a plain dict of the same
    fields, or None.  A strategy that errors is logged and skipped.
    """
    item = _as_product(product)
    for name, strategy in _strategies(item):
        try:
            estimate = strategy()
        except Exception as e:
            logger.warning("Portion strategy '{}' failed for '{}': {}", name, item.name, e)
            continue
        if estimate is not None:
            logger.debug("Portion for '{}' from {}: {}", item.name, name, estimate.label)
            return estimate

    logger.debug("No portion signal for '{}'; using fallback", item.name)
    return fallback_default(item.category)


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------

_SCALE_FIELDS = (
    ("calories_per_100g", "calories", 0),
    ("protein_g_per_100g", "protein_g", 1),
    ("carbs_g_per_100g", "carbs_g", 1),
    ("fat_g_per_100g", "fat_g", 1),
    ("sugar_g_per_100g", "sugar_g", 1),
    ("saturated_fat_g_per_100g", "saturated_fat_g", 1),
    ("fiber_g_per_100g", "fiber_g", 1),
    ("sodium_mg_per_100g", "sodium_mg", 0),
)


def to_per_portion(per_100g: NutritionFacts, grams: float) -> NutritionFacts:
    """
    Fill the per-serving fields from per-100g values for a ``grams`` portion.

    Per-100g fields are carried over. A per-serving field whose per-100g
    value is unknown keeps whatever the input already had.
    """
    if not isinstance(per_100g, NutritionFacts):
        per_100g = NutritionFacts.model_validate(per_100g or {})
    out = per_100g.model_dump()
    factor = coerce_float(grams, default=0.0) / 100.0
    if factor <= 0:
        return per_100g.model_copy()
    for per100_field, serving_field, ndigits in _SCALE_FIELDS:
        value = getattr(per_100g, per100_field)
        if value is None:
            continue
        scaled = value * factor
        out[serving_field] = float(round_half_up(scaled)) if ndigits == 0 else round(scaled, ndigits)
    return NutritionFacts(**out)
