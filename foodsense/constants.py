from __future__ import annotations

"""Closed vocabularies shared by the filter, ranker and score heuristics.

Kept in one place so the detector-facing stages and the scoring stage agree on
what counts as citrus, protein, tableware and so on.
"""

# Mutually exclusive visual variants: the detector routinely reports both for
# a single wedge.
CITRUS_NAMES = frozenset({"lemon", "lime"})

PROTEIN_NAMES = frozenset({
    "salmon",
    "tuna",
    "cod",
    "trout",
    "tilapia",
    "fish",
    "shrimp",
    "prawn",
    "chicken",
    "chicken breast",
    "turkey",
    "beef",
    "steak",
    "pork",
    "lamb",
    "bacon",
    "sausage",
    "ham",
    "egg",
    "eggs",
    "tofu",
    "tempeh",
    "meat",
})

# Exact names only: "cup" is tableware, "cupcake" is not.
NON_FOOD_NAMES = frozenset({
    "plate",
    "dish",
    "bowl",
    "table",
    "tableware",
    "cutlery",
    "fork",
    "knife",
    "spoon",
    "cup",
    "glass",
    "napkin",
    "container",
    "wrapper",
    "package",
})

ULTRA_PROCESSED_KEYWORDS = [
    "soda",
    "candy",
    "chips",
    "crackers",
    "cookies",
    "instant",
    "frozen meal",
    "packaged snack",
]

ADDITIVE_FLAGS = frozenset({
    "artificial_colors",
    "artificial_flavors",
    "preservatives",
    "high_fructose_corn_syrup",
    "trans_fats",
})
