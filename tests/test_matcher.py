import pytest

from retail_assistant.config import Settings
from retail_assistant.matching.matcher import (
    EXACT_MATCH_SCORE,
    TemplateMatcher,
    clean_text,
    tokenize,
)
from retail_assistant.matching.templates import (
    ActionId,
    Template,
    TemplateCategory,
    TemplateRegistry,
    build_default_registry,
)


@pytest.fixture
def matcher(cfg: Settings) -> TemplateMatcher:
    return TemplateMatcher(build_default_registry(), cfg)


def test_clean_and_tokenize() -> None:
    assert clean_text("  What's the KPI?! ") == "what s the kpi"
    assert tokenize("Show me top 5 products!") == ["show", "top", "products"]


def test_every_trigger_matches_itself_exactly(matcher: TemplateMatcher) -> None:
    for template in matcher.registry:
        candidate = matcher.match(template.trigger_phrase)
        assert candidate is not None
        assert candidate.template.trigger_phrase == template.trigger_phrase
        assert candidate.score == EXACT_MATCH_SCORE
        assert candidate.exact


def test_exact_match_ignores_case_and_punctuation(matcher: TemplateMatcher) -> None:
    candidate = matcher.match("Show me the Analytics Dashboard?")
    assert candidate is not None
    assert candidate.exact
    assert candidate.template.action_id is ActionId.GET_ANALYTICS_DASHBOARD


def test_location_phrasing_extracts_location(matcher: TemplateMatcher) -> None:
    candidate = matcher.match("Which was the top performing item in Surat?")
    assert candidate is not None
    assert candidate.strategy == "location"
    assert candidate.template.action_id is ActionId.GET_TOP_PERFORMING_ITEM
    assert candidate.params["location"] == "surat"
    assert candidate.missing_inputs == []


def test_missing_required_input_reported(matcher: TemplateMatcher) -> None:
    candidate = matcher.match("which was top performing item in")
    assert candidate is not None
    assert candidate.missing_inputs == ["location"]
    assert candidate.template.input_prompt


def test_store_code_extracted(matcher: TemplateMatcher) -> None:
    candidate = matcher.match("what are the top products in store ABC-12")
    assert candidate is not None
    assert candidate.template.action_id is ActionId.GET_STORE_TOP_PRODUCTS
    assert candidate.params["storeId"] == "ABC-12"
    assert candidate.missing_inputs == []


def test_scored_match_for_near_phrasing(matcher: TemplateMatcher) -> None:
    candidate = matcher.match("replenishment recommendations please")
    assert candidate is not None
    assert candidate.strategy == "scored"
    assert candidate.template.action_id is ActionId.GET_REPLENISHMENT_RECOMMENDATIONS
    assert {"replenishment", "recommendations"} <= candidate.matched_words


def test_no_match_returns_none(matcher: TemplateMatcher) -> None:
    assert matcher.match("xyzzy") is None
    assert matcher.match("") is None
    assert matcher.match("?!") is None


def test_ties_go_to_first_registered(cfg: Settings) -> None:
    first = Template("alpha beta report", ActionId.SHOW_HELP, TemplateCategory.GENERAL, "first")
    second = Template("beta alpha report", ActionId.SHOW_CAPABILITIES, TemplateCategory.GENERAL, "second")

    forward = TemplateMatcher(TemplateRegistry([first, second]), cfg).match("alpha beta")
    backward = TemplateMatcher(TemplateRegistry([second, first]), cfg).match("alpha beta")

    assert forward is not None and backward is not None
    assert forward.score == backward.score
    assert forward.template.trigger_phrase == "alpha beta report"
    assert backward.template.trigger_phrase == "beta alpha report"


def test_keyword_fallback_when_scoring_is_rejected(cfg: Settings) -> None:
    cfg.TEMPLATE_MIN_SCORE = 1_000.0
    cfg.TEMPLATE_MIN_MATCHED_WORDS = 1_000
    matcher = TemplateMatcher(build_default_registry(), cfg)

    candidate = matcher.match("show me top 5 products please")

    assert candidate is not None
    assert candidate.strategy == "keyword"
    assert candidate.template.trigger_phrase == "show me top 5 products"
    assert candidate.params["limit"] == 5


def test_suggest_ranks_by_overlap(matcher: TemplateMatcher) -> None:
    suggestions = matcher.suggest("sales forecast")
    assert 0 < len(suggestions) <= 3
    assert suggestions[0] == "what is the sales forecast for next month"
    assert matcher.suggest("xyzzy") == []
