"""
Metric Detection
================

Maps free text to one canonical metric, a sort direction and a top-N count.

WHAT:
- detect_metric(): ordered keyword match → Metric (or None)
- detect_order(): explicit direction words, then best/worst polarity
- find_top_n(): "top 5", "worst 3" → clamped count

WHY polarity matters:
- Cost metrics (CPC, CPM) are "lower is better"
- "best CPC" therefore means ascending, "worst CPC" descending
- Volume metrics (spend, clicks, CTR, ...) are the other way round

Truth table for best/worst words (no explicit lowest/highest word present):
    | Word  | Metric type | Order      |
    |-------|-------------|------------|
    | best  | cost        | ascending  |
    | best  | volume      | descending |
    | worst | cost        | descending |
    | worst | volume      | ascending  |

References:
- Used by: adinsight/answer/answer_builder.py, adinsight/answer/intent_classifier.py
"""

import re
from enum import Enum
from typing import Dict, Optional, Tuple

from adinsight.answer.text import normalize


class Metric(str, Enum):
    """Canonical metrics the rule-based engine can rank and format."""
    SPEND = "spend"
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    RESULTS = "results"
    CTR = "ctr"
    CPC = "cpc"
    CPM = "cpm"
    EFFICIENCY = "efficiency"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Lower is better
COST_METRICS = frozenset({Metric.CPC, Metric.CPM})

# Ordered: more specific phrases are checked before generic ones.
# "cost per click" must win over bare "cost", "click through rate" over "click".
METRIC_KEYWORDS: Tuple[Tuple[Metric, Tuple[str, ...]], ...] = (
    (Metric.CPC, (r"cost per click", r"\bcpc\b")),
    (Metric.CPM, (r"cost per thousand", r"cost per mille", r"\bcpm\b")),
    (Metric.CTR, (r"click through rate", r"clickthrough rate", r"\bctr\b")),
    (Metric.IMPRESSIONS, (r"impression",)),
    (Metric.CLICKS, (r"click",)),
    (Metric.RESULTS, (r"result", r"conversion")),
    (Metric.SPEND, (r"spend", r"spent", r"cost", r"budget")),
)

_ASCENDING_WORDS = re.compile(r"\b(lowest|least|min|bottom)\b")
_DESCENDING_WORDS = re.compile(r"\b(highest|most|max|top)\b")
_TOP_N = re.compile(r"\b(top|best|highest|lowest|worst|least|most)\s+(\d{1,2})\b", re.IGNORECASE)

MAX_TOP_N = 10

DEFINITIONS: Dict[Metric, str] = {
    Metric.CTR: (
        "CTR (Click-Through Rate) = clicks / impressions x 100. "
        "It measures how often people click after seeing the ad."
    ),
    Metric.CPC: (
        "CPC (Cost Per Click) = spend / clicks. "
        "Lower CPC means you are paying less for each click."
    ),
    Metric.CPM: (
        "CPM (Cost Per Mille) = spend / impressions x 1,000. "
        "It is the cost to get 1,000 impressions."
    ),
    Metric.SPEND: "Spend is the total amount of money used on ads in the imported reporting window.",
    Metric.IMPRESSIONS: "Impressions are how many times your ads were shown.",
    Metric.CLICKS: "Clicks are how many times users clicked your ad.",
    Metric.RESULTS: (
        "Results are the outcome metric captured from your import "
        "(for example conversions or landing actions)."
    ),
    Metric.EFFICIENCY: (
        "Efficiency score is a custom ranking in this dashboard: "
        "Efficiency Score = CTR / max(CPC, 0.01), where CTR is in percentage points. "
        "Higher is better."
    ),
}


def is_cost_metric(metric: Optional[Metric]) -> bool:
    return metric in COST_METRICS


def detect_metric(question: str) -> Optional[Metric]:
    """
    Return the first metric whose keywords appear in the question.

    Examples:
        >>> detect_metric("Which campaign has the best cost per click?")
        Metric.CPC

        >>> detect_metric("total cost")
        Metric.SPEND

        >>> detect_metric("hello")
        None
    """
    text = normalize(question)
    for metric, patterns in METRIC_KEYWORDS:
        if any(re.search(pattern, text) for pattern in patterns):
            return metric
    return None


def detect_order(question: str, metric: Optional[Metric]) -> SortOrder:
    """
    Decide the sort direction for a ranking question.

    Explicit direction words win; otherwise best/worst are interpreted
    through the metric's polarity; with no signal at all, volume metrics
    sort descending and cost metrics ascending.

    Examples:
        >>> detect_order("best", Metric.CPC)
        SortOrder.ASC

        >>> detect_order("worst", Metric.SPEND)
        SortOrder.ASC

        >>> detect_order("lowest ctr", Metric.CTR)
        SortOrder.ASC
    """
    q = question.lower()
    cost = is_cost_metric(metric)

    if _ASCENDING_WORDS.search(q):
        return SortOrder.ASC
    if _DESCENDING_WORDS.search(q):
        return SortOrder.DESC

    if "best" in q:
        return SortOrder.ASC if cost else SortOrder.DESC
    if "worst" in q:
        return SortOrder.DESC if cost else SortOrder.ASC

    return SortOrder.ASC if cost else SortOrder.DESC


def find_top_n(question: str) -> int:
    """
    Extract the requested list length, clamped to [1, 10]; 1 when absent.

    Examples:
        >>> find_top_n("show top 5 by CTR")
        5

        >>> find_top_n("top 25 campaigns")
        10

        >>> find_top_n("best campaign")
        1
    """
    match = _TOP_N.search(question)
    if not match:
        return 1
    try:
        n = int(match.group(2))
    except ValueError:
        return 1
    return min(max(1, n), MAX_TOP_N)


def is_favourable_order(metric: Optional[Metric], order: SortOrder) -> bool:
    """
    True when the order puts the best performers first.

    Descending is favourable for volume metrics and the efficiency score,
    ascending is favourable for cost metrics.
    """
    if is_cost_metric(metric):
        return order == SortOrder.ASC
    return order == SortOrder.DESC
