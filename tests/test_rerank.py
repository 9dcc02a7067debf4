import pytest

from foodsense.config import DetectionCandidate
from foodsense.rerank import boost_candidates, boost_score, is_protein_class, rank_candidates


def test_boost_by_category_or_name():
    salmon = DetectionCandidate(name="salmon", confidence=0.5, category="protein")
    chicken = DetectionCandidate(name="Chicken", confidence=0.5)
    asparagus = DetectionCandidate(name="asparagus", confidence=0.9, category="vegetable")

    assert boost_score(salmon) == pytest.approx(0.65)
    assert boost_score(chicken) == pytest.approx(0.65)
    assert boost_score(asparagus) == pytest.approx(0.9)
    assert not is_protein_class(asparagus)


def test_boost_is_not_compounded_on_rerun():
    items = [{"name": "tuna", "confidence": 0.4}, {"name": "rice", "confidence": 0.7}]
    first = boost_candidates(items)
    second = boost_candidates(first)
    assert [c.score for c in first] == [c.score for c in second]
    assert first[0].score == pytest.approx(0.55)


def test_rank_sorts_by_score_and_is_stable_on_ties():
    items = [
        {"name": "bread", "confidence": 0.5},
        {"name": "egg", "confidence": 0.4},
        {"name": "rice", "confidence": 0.5},
    ]
    ranked = rank_candidates(items)
    assert [c.name for c in ranked] == ["egg", "bread", "rice"]


def test_rank_empty():
    assert rank_candidates([]) == []
