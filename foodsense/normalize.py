from __future__ import annotations

"""
Text normalisation helpers shared across the filter, ranker and classifier.

Detector labels and product titles arrive with inconsistent casing, curly
quotes and stray whitespace.  Every stage compares names through
:func:`normalize_food_name` so "Lemon ", "lemon" and "LEMON" are one item.
"""

import re
import unicodedata

MAX_NAME_CHARS = 500


def _normalise_unicode(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("‘", "'").replace("’", "'")
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("–", "-").replace("—", "-")
    return text


def basic_clean(text: str | None) -> str:
    """Unicode + whitespace clean, case preserved.

    Used for display labels where the original casing should survive.
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)

    if len(text) > MAX_NAME_CHARS:
        text = text[:MAX_NAME_CHARS]

    text = _normalise_unicode(text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def normalize_food_name(text: str | None) -> str:
    """Lower-cased, whitespace-collapsed name used for every comparison."""
    return basic_clean(text).lower()
