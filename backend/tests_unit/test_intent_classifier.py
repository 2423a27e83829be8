"""
Intent Classifier Tests (Unit)
==============================

WHAT: Keyword signals and the data-independent intent predicates.
WHY: The precedence table only works if each predicate fires for its own
     phrasing and stays quiet for the neighbouring intents.

REFERENCES:
- backend/adinsight/answer/intent_classifier.py
"""

import pytest

from adinsight.answer.intent_classifier import (
    account_rate_requested,
    is_ad_ranking,
    is_campaign_ranking,
    is_count_query,
    is_efficiency_definition,
    is_metric_definition,
    read_signals,
    total_metric_requested,
)
from adinsight.answer.metrics import Metric


def test_signals_for_ad_ranking_question() -> None:
    s = read_signals("Show top 5 ads by CTR")
    assert s.asks_for_ads
    assert s.wants_top
    assert not s.wants_worst
    assert s.metric == Metric.CTR


def test_ad_word_must_be_a_whole_word() -> None:
    """"broadcast" and "add" contain "ad" but are not about ads."""
    assert not read_signals("add a broadcast campaign").asks_for_ads


def test_count_needs_an_entity_word() -> None:
    assert is_count_query(read_signals("how many campaigns are there"))
    assert is_count_query(read_signals("number of ads"))
    assert not is_count_query(read_signals("how many clicks"))


class TestEfficiencyPrecedence:
    """Definition wins unless ranking or performance language is present."""

    def test_plain_question_is_definition(self):
        s = read_signals("what is the efficiency score?")
        assert is_efficiency_definition(s)
        assert not is_ad_ranking(s)

    def test_bare_word_is_definition(self):
        assert is_efficiency_definition(read_signals("Efficiency"))

    @pytest.mark.parametrize(
        "question",
        [
            "which ad has the best efficiency score",
            "what is the lowest efficiency score",
            "efficiency score winner",
        ],
    )
    def test_ranking_language_turns_it_into_a_ranking(self, question):
        s = read_signals(question)
        assert not is_efficiency_definition(s)
        assert is_ad_ranking(s)


@pytest.mark.parametrize(
    "question,expected",
    [
        ("what is cpc", True),
        ("define CTR", True),
        ("what are impressions", True),
        ("what is my ctr", False),
        ("what is the total spend", False),
        ("what is the highest cpc", False),
        ("cpc", False),
    ],
)
def test_metric_definition(question, expected) -> None:
    assert is_metric_definition(read_signals(question)) is expected


@pytest.mark.parametrize(
    "question,expected",
    [
        ("total spend", Metric.SPEND),
        ("how much did we spend", Metric.SPEND),
        ("overall impressions", Metric.IMPRESSIONS),
        ("total clicks", Metric.CLICKS),
        ("total conversions", Metric.RESULTS),
        ("most clicks", None),
        ("clicks", None),
    ],
)
def test_total_metric_requested(question, expected) -> None:
    assert total_metric_requested(read_signals(question)) == expected


def test_account_rate_requires_no_ranking_or_comparison() -> None:
    assert account_rate_requested(read_signals("what's our cpm")) == Metric.CPM
    assert account_rate_requested(read_signals("top campaign by ctr")) is None
    assert account_rate_requested(read_signals("compare cpc of these")) is None


def test_campaign_ranking_needs_ranking_language() -> None:
    assert is_campaign_ranking(read_signals("top campaign by ctr"))
    assert is_campaign_ranking(read_signals("lowest cpc"))
    assert is_campaign_ranking(read_signals("best campaigns"))
    assert not is_campaign_ranking(read_signals("campaigns by ctr"))
