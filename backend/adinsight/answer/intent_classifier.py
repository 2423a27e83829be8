"""
Intent Classifier - Reads keyword signals out of a question

WHAT: Turns the raw question into a QuestionSignals record (ranking words,
      definition phrasing, ad vs campaign scope, detected metric, ...) and
      exposes one predicate per answer intent.
WHY: The answer builder evaluates an ordered list of (intent, predicate,
     handler) rules; keeping the keyword logic here makes each predicate
     testable on its own, without datasets or history.
WHERE: Called by adinsight/answer/answer_builder.py::compose_answer()

Design Philosophy:
- Simple keyword rules (not ML), easy to debug
- Signals are computed once per question and are immutable
- Predicates never look at data; data-dependent checks live in the builder

References:
- adinsight/answer/metrics.py: detect_metric()
- adinsight/answer/answer_builder.py: ANSWER_RULES (precedence order)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from adinsight.answer.metrics import Metric, detect_metric
from adinsight.answer.text import normalize


class AnswerIntent(str, Enum):
    """
    Answer intents, listed in evaluation order.

    The first intent whose predicate matches (and whose handler produces
    text) answers the question.
    """
    COUNT = "count"
    EFFICIENCY_DEFINITION = "efficiency_definition"
    AD_RANKING = "ad_ranking"
    METRIC_DEFINITION = "metric_definition"
    SUMMARY = "summary"
    PLATFORM_BREAKDOWN = "platform_breakdown"
    TOTAL_METRIC = "total_metric"
    ACCOUNT_RATE = "account_rate"
    COMPARISON = "comparison"
    ENTITY_PROFILE = "entity_profile"
    CAMPAIGN_RANKING = "campaign_ranking"
    RECOMMENDATIONS = "recommendations"
    HELP = "help"


_ADS = re.compile(r"\b(ad|ads|creative|creatives)\b")
_TOP_WORDS = re.compile(r"\b(top|best|highest|most)\b")
_WORST_WORDS = re.compile(r"\b(worst|lowest|least)\b")
_BARE_DEFINITION = re.compile(r"\b(what(?:'s| is| are)|define|meaning)\b")
_COMPARISON = re.compile(r"\b(compare|comparison|vs|versus)\b")
_RECOMMENDATION = re.compile(r"(recommend|improve|optimi[sz]|suggest)")
# "what is my ctr" asks for a value, not a definition
_ACCOUNT_SCOPE = re.compile(r"\b(my|our|total|overall|average|avg|account)\b")
_TOTAL_SCOPE = re.compile(r"\b(total|overall)\b")
_SPEND_TOTAL = re.compile(r"(total spend|how much (?:did (?:we|i) )?spen[dt]|spent in total)")

ACCOUNT_RATE_METRICS = frozenset({Metric.CTR, Metric.CPC, Metric.CPM})
TOTAL_METRICS = frozenset({Metric.IMPRESSIONS, Metric.CLICKS, Metric.RESULTS})


@dataclass(frozen=True)
class QuestionSignals:
    """Keyword signals extracted from one question."""
    text: str
    normalized: str
    metric: Optional[Metric]
    asks_count: bool
    asks_for_ads: bool
    mentions_campaign: bool
    asks_efficiency: bool
    wants_top: bool
    wants_worst: bool
    mentions_performance: bool
    wants_comparison: bool

    @property
    def has_ranking_language(self) -> bool:
        return self.wants_top or self.wants_worst


def read_signals(question: str) -> QuestionSignals:
    """
    Extract keyword signals from the question.

    Examples:
        >>> s = read_signals("Show top 5 ads by CTR")
        >>> (s.asks_for_ads, s.wants_top, s.metric)
        (True, True, Metric.CTR)
    """
    q = question.lower().strip()
    normalized = normalize(question)

    return QuestionSignals(
        text=q,
        normalized=normalized,
        metric=detect_metric(question),
        asks_count="how many" in q or "number of" in q,
        asks_for_ads=bool(_ADS.search(q)),
        mentions_campaign="campaign" in q,
        asks_efficiency="efficiency score" in normalized or normalized == "efficiency",
        wants_top=bool(_TOP_WORDS.search(q)),
        wants_worst=bool(_WORST_WORDS.search(q)),
        mentions_performance="perform" in q or "winner" in q,
        wants_comparison=bool(_COMPARISON.search(q)),
    )


# =============================================================================
# INTENT PREDICATES (data-independent)
# =============================================================================

def is_count_query(s: QuestionSignals) -> bool:
    return s.asks_count and (s.mentions_campaign or s.asks_for_ads)


def is_efficiency_definition(s: QuestionSignals) -> bool:
    """Efficiency questions are definitions unless they also ask for a ranking."""
    return s.asks_efficiency and not s.has_ranking_language and not s.mentions_performance


def is_ad_ranking(s: QuestionSignals) -> bool:
    return (s.asks_for_ads or s.asks_efficiency) and (s.has_ranking_language or s.mentions_performance)


def is_metric_definition(s: QuestionSignals) -> bool:
    """"what is CPC", "define CTR" - but not "what is my CTR"."""
    return (
        s.metric is not None
        and bool(_BARE_DEFINITION.search(s.text))
        and not _ACCOUNT_SCOPE.search(s.text)
        and not s.has_ranking_language
        and not s.mentions_campaign
    )


def is_summary_query(s: QuestionSignals) -> bool:
    return "summary" in s.text or "overview" in s.text


def is_platform_query(s: QuestionSignals) -> bool:
    return "platform" in s.text


def total_metric_requested(s: QuestionSignals) -> Optional[Metric]:
    """Metric of a bare account total question ("total spend", "overall clicks")."""
    if s.has_ranking_language:
        return None
    if _SPEND_TOTAL.search(s.text) or (s.metric == Metric.SPEND and _TOTAL_SCOPE.search(s.text)):
        return Metric.SPEND
    if s.metric in TOTAL_METRICS and _TOTAL_SCOPE.search(s.text):
        return s.metric
    return None


def account_rate_requested(s: QuestionSignals) -> Optional[Metric]:
    """CTR / CPC / CPM asked about without ranking or comparison language."""
    if s.has_ranking_language or s.wants_comparison:
        return None
    if s.metric in ACCOUNT_RATE_METRICS:
        return s.metric
    return None


def is_comparison_query(s: QuestionSignals) -> bool:
    return s.wants_comparison


def is_campaign_ranking(s: QuestionSignals) -> bool:
    return s.has_ranking_language and (s.mentions_campaign or s.metric is not None)


def is_recommendation_query(s: QuestionSignals) -> bool:
    return bool(_RECOMMENDATION.search(s.text))
