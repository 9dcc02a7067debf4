from foodsense.normalize import MAX_NAME_CHARS, basic_clean, normalize_food_name


def test_basic_clean_collapses_whitespace_and_keeps_case():
    assert basic_clean("  Greek\tYogurt \n") == "Greek Yogurt"
    assert basic_clean(None) == ""


def test_basic_clean_normalises_quotes_and_dashes():
    assert basic_clean("Ben’s “best” – mix") == "Ben's \"best\" - mix"


def test_normalize_food_name_lowercases():
    assert normalize_food_name("LEMON ") == "lemon"
    assert normalize_food_name(42) == "42"


def test_long_names_are_capped():
    assert len(basic_clean("x" * (MAX_NAME_CHARS + 100))) == MAX_NAME_CHARS
