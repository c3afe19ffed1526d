import pytest

from retail_assistant.matching.similarity import word_similarity

PAIRS = [
    ("product", "products"),
    ("sales", "sale"),
    ("store", "stores"),
    ("forecast", "forecasts"),
    ("analytics", "analysis"),
    ("replenish", "replenishment"),
    ("mumbai", "powai"),
]


@pytest.mark.parametrize("token", ["top", "sales", "replenishment", "kpis"])
def test_identical_tokens_score_one(token: str) -> None:
    assert word_similarity(token, token) == 1.0


@pytest.mark.parametrize("a,b", PAIRS)
def test_similarity_is_symmetric_and_bounded(a: str, b: str) -> None:
    forward = word_similarity(a, b)
    assert forward == pytest.approx(word_similarity(b, a))
    assert 0.0 <= forward <= 1.0


def test_short_tokens_score_zero() -> None:
    assert word_similarity("me", "men") == 0.0
    assert word_similarity("abc", "ab") == 0.0


def test_blend_of_prefix_suffix_and_jaccard() -> None:
    # prefix 7/7 * 0.4, no common suffix, jaccard 7/8 * 0.3
    assert word_similarity("product", "products") == pytest.approx(0.4 + 0.0 + 0.875 * 0.3)


def test_unrelated_tokens_score_low() -> None:
    assert word_similarity("dashboard", "mumbai") < 0.3
