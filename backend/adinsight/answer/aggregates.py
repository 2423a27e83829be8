"""
Aggregate Calculator
====================

WHAT: Derives CTR, cost-per-click, cost-per-mille and the ad efficiency score
      from raw metric rows, plus account-wide totals.
WHY: Every answer template and the gateway context read the same derived
     numbers, so the formulas live in exactly one place.
WHERE: Called once per request by QAService / the answer builder.

ARCHITECTURE:
- Frozen dataclasses: rows are immutable snapshots
- Pure functions (no filtering here, that is the ranking engine's job)
- Nothing is cached between requests

FORMULAS:
    ctr        = clicks / impressions * 100        (0 if impressions == 0)
    safe_cpc   = spend / clicks                    (stored cpc if clicks == 0)
    safe_cpm   = spend / impressions * 1000        (stored cpm if impressions == 0)
    efficiency = ctr / max(safe_cpc, 0.01)         (0 unless impressions >= 100 and clicks > 0)
"""

from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

# Ads below this delivery level are too noisy to score
EFFICIENCY_MIN_IMPRESSIONS = 100
MIN_CPC_FLOOR = 0.01


@dataclass(frozen=True)
class CampaignMetric:
    """Campaign row as read from the dataset snapshot."""
    id: str
    name: str
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    results: int = 0
    cpc: Optional[float] = None
    cpm: Optional[float] = None
    platform: Optional[str] = None


@dataclass(frozen=True)
class AdMetric:
    """Ad row joined with its owning campaign (and optional ad set) name."""
    id: str
    name: str
    campaign_name: str
    ad_set_name: Optional[str] = None
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    results: int = 0
    cpc: Optional[float] = None
    cpm: Optional[float] = None


@dataclass(frozen=True)
class DerivedCampaign(CampaignMetric):
    ctr: float = 0.0
    safe_cpc: float = 0.0
    safe_cpm: float = 0.0


@dataclass(frozen=True)
class DerivedAd(AdMetric):
    ctr: float = 0.0
    safe_cpc: float = 0.0
    safe_cpm: float = 0.0
    efficiency_score: float = 0.0


@dataclass(frozen=True)
class AccountTotals:
    """Account-wide sums and blended rates over all campaigns."""
    campaign_count: int
    spend: float
    impressions: int
    clicks: int
    results: int
    ctr: float
    avg_cpc: float
    avg_cpm: float


def compute_ctr(clicks: float, impressions: float) -> float:
    return (clicks / impressions) * 100 if impressions > 0 else 0.0


def compute_cpc(spend: float, clicks: float, stored: Optional[float] = None) -> float:
    if clicks > 0:
        return spend / clicks
    return stored or 0.0


def compute_cpm(spend: float, impressions: float, stored: Optional[float] = None) -> float:
    if impressions > 0:
        return (spend / impressions) * 1000
    return stored or 0.0


def ctr_per_cost(ctr: float, cpc: float) -> float:
    """CTR divided by CPC with a one-cent floor; shared by efficiency and comparisons."""
    return ctr / max(cpc, MIN_CPC_FLOOR)


def compute_efficiency(ctr: float, cpc: float, impressions: int, clicks: int) -> float:
    if impressions < EFFICIENCY_MIN_IMPRESSIONS or clicks <= 0:
        return 0.0
    return ctr_per_cost(ctr, cpc)


def derive_campaign(row: CampaignMetric) -> DerivedCampaign:
    return DerivedCampaign(
        **asdict(row),
        ctr=compute_ctr(row.clicks, row.impressions),
        safe_cpc=compute_cpc(row.spend, row.clicks, row.cpc),
        safe_cpm=compute_cpm(row.spend, row.impressions, row.cpm),
    )


def derive_ad(row: AdMetric) -> DerivedAd:
    ctr = compute_ctr(row.clicks, row.impressions)
    safe_cpc = compute_cpc(row.spend, row.clicks, row.cpc)
    return DerivedAd(
        **asdict(row),
        ctr=ctr,
        safe_cpc=safe_cpc,
        safe_cpm=compute_cpm(row.spend, row.impressions, row.cpm),
        efficiency_score=compute_efficiency(ctr, safe_cpc, row.impressions, row.clicks),
    )


def derive_campaigns(rows: Iterable[CampaignMetric]) -> List[DerivedCampaign]:
    return [derive_campaign(row) for row in rows]


def derive_ads(rows: Iterable[AdMetric]) -> List[DerivedAd]:
    return [derive_ad(row) for row in rows]


def compute_totals(campaigns: Iterable[CampaignMetric]) -> AccountTotals:
    """
    Sum campaign rows and compute blended account rates.

    Blended rates are ratio-of-sums (total spend / total clicks), not the
    average of per-campaign rates.
    """
    rows = list(campaigns)
    spend = sum(row.spend for row in rows)
    impressions = sum(row.impressions for row in rows)
    clicks = sum(row.clicks for row in rows)
    results = sum(row.results for row in rows)

    return AccountTotals(
        campaign_count=len(rows),
        spend=spend,
        impressions=impressions,
        clicks=clicks,
        results=results,
        ctr=compute_ctr(clicks, impressions),
        avg_cpc=spend / clicks if clicks > 0 else 0.0,
        avg_cpm=(spend / impressions) * 1000 if impressions > 0 else 0.0,
    )
