"""
Ranking Engine
==============

Filter → sort → truncate for top/bottom-N questions.

Rules:
- Entities with no signal (spend, impressions and clicks all zero) are left
  out of rankings; counts and totals elsewhere still include them.
- Efficiency rankings only consider ads with >= 100 impressions and > 0 clicks.
- Sorting is stable: equal metric values keep their dataset order. There is
  no secondary tie-break key.

References:
- adinsight/answer/aggregates.py: derived values being ranked
- adinsight/answer/metrics.py: Metric / SortOrder
"""

from typing import List, Sequence, TypeVar

from adinsight.answer.aggregates import EFFICIENCY_MIN_IMPRESSIONS, DerivedAd, DerivedCampaign
from adinsight.answer.metrics import Metric, SortOrder

T = TypeVar("T", DerivedCampaign, DerivedAd)

METRIC_ATTRIBUTES = {
    Metric.SPEND: "spend",
    Metric.IMPRESSIONS: "impressions",
    Metric.CLICKS: "clicks",
    Metric.RESULTS: "results",
    Metric.CTR: "ctr",
    Metric.CPC: "safe_cpc",
    Metric.CPM: "safe_cpm",
    Metric.EFFICIENCY: "efficiency_score",
}


def metric_value(entity, metric: Metric) -> float:
    """Derived value of `metric` for a campaign or ad (spend when unknown)."""
    attribute = METRIC_ATTRIBUTES.get(metric, "spend")
    return float(getattr(entity, attribute, 0.0) or 0.0)


def has_signal(entity) -> bool:
    return entity.spend > 0 or entity.impressions > 0 or entity.clicks > 0


def efficiency_eligible(ad: DerivedAd) -> bool:
    return ad.impressions >= EFFICIENCY_MIN_IMPRESSIONS and ad.clicks > 0


def sort_by_metric(entities: Sequence[T], metric: Metric, order: SortOrder) -> List[T]:
    # reverse=True keeps equal keys in their original order, like ascending does
    return sorted(
        entities,
        key=lambda entity: metric_value(entity, metric),
        reverse=order == SortOrder.DESC,
    )


def rank_entities(
    entities: Sequence[T],
    metric: Metric,
    order: SortOrder,
    top_n: int,
) -> List[T]:
    """Rank campaigns or ads by `metric`, dropping zero-activity rows."""
    pool = [entity for entity in entities if has_signal(entity)]
    if metric == Metric.EFFICIENCY:
        pool = [entity for entity in pool if isinstance(entity, DerivedAd) and efficiency_eligible(entity)]
    return sort_by_metric(pool, metric, order)[:max(top_n, 0)]


def spend_rank(campaign: DerivedCampaign, campaigns: Sequence[DerivedCampaign]) -> int:
    """1-based position of `campaign` when all campaigns are sorted by spend (desc)."""
    ordered = sort_by_metric(campaigns, Metric.SPEND, SortOrder.DESC)
    for position, item in enumerate(ordered, start=1):
        if item.id == campaign.id:
            return position
    return 0
