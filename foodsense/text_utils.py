import re
from typing import Optional, Tuple

_NUM = r"(\d+(?:\.\d+)?)"

# (regex, grams per matched unit); checked in order, first hit wins
MASS_PATTERNS = [
    (re.compile(_NUM + r"\s*(?:g|gr|grams?)\b"), 1.0),
    (re.compile(_NUM + r"\s*(?:kg|kilograms?)\b"), 1000.0),
]
VOLUME_PATTERNS = [
    (re.compile(_NUM + r"\s*(?:ml|millilit(?:er|re)s?)\b"), 1.0),
    (re.compile(_NUM + r"\s*(?:l|lit(?:er|re)s?)\b"), 1000.0),
    (re.compile(_NUM + r"\s*fl\.?\s*oz\b"), 29.57),
]
OUNCE_PATTERN = re.compile(_NUM + r"\s*(?:oz|ounces?)\b")
OUNCE_GRAMS = 28.35

# Household units seen on labels: (unit, grams for one)
UNIT_GRAMS = [
    ("cup", 240.0),
    ("tbsp", 15.0),
    ("tablespoon", 15.0),
    ("tsp", 5.0),
    ("teaspoon", 5.0),
    ("bar", 40.0),
    ("cookie", 30.0),
    ("cracker", 10.0),
    ("slice", 30.0),
    ("piece", 25.0),
    ("bottle", 500.0),
    ("can", 355.0),
    ("pack", 25.0),
    ("sachet", 15.0),
    ("serving", 30.0),
    ("portion", 30.0),
]


def _parse_quantity(text: str, unit: str) -> Optional[float]:
    """Quantity written before ``unit``: '2 cookies' -> 2, '1/2 cup' -> 0.5, 'cup' -> 1."""
    m = re.search(r"(\d+)\s*/\s*(\d+)\s*" + unit + r"(?:e?s)?\b", text)
    if m:
        den = float(m.group(2))
        return float(m.group(1)) / den if den else None
    m = re.search(_NUM + r"\s*" + unit + r"(?:e?s)?\b", text)
    if m:
        return float(m.group(1))
    if re.search(r"\b" + unit + r"(?:e?s)?\b", text):
        return 1.0
    return None


def parse_serving_quantity(text: str) -> Optional[Tuple[float, str]]:
    """
    Parse a declared serving string into ``(amount, unit)`` where unit is
    ``"g"`` or ``"ml"``. Examples:
      '30g' -> (30, 'g'), '1 bar (40 g)' -> (40, 'g'), '250 ml' -> (250, 'ml'),
      '12 fl oz' -> (354.84, 'ml'), '2 cookies' -> (60, 'g')
    Returns None when nothing recognisable is found.
    """
    if not text:
        return None
    t = str(text).lower()

    for rx, factor in MASS_PATTERNS:
        m = rx.search(t)
        if m:
            return float(m.group(1)) * factor, "g"

    for rx, factor in VOLUME_PATTERNS:
        m = rx.search(t)
        if m:
            return round(float(m.group(1)) * factor, 2), "ml"

    m = OUNCE_PATTERN.search(t)
    if m:
        return round(float(m.group(1)) * OUNCE_GRAMS, 2), "g"

    for unit, grams in UNIT_GRAMS:
        qty = _parse_quantity(t, unit)
        if qty:
            return qty * grams, "g"
    return None


def parse_serving_size(text: str, density: float = 1.0) -> Optional[float]:
    """Declared serving string -> grams. Volumes are converted with ``density`` (g/ml)."""
    parsed = parse_serving_quantity(text)
    if parsed is None:
        return None
    amount, unit = parsed
    if unit == "ml":
        return round(amount * density, 2)
    return amount
