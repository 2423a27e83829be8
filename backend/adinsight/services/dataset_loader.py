"""
Dataset Loader
==============

Reads the current campaign/ad snapshot the answer engine works on.

WHAT:
- Dataset: immutable snapshot (campaign rows + ad rows joined with names)
- SqlDatasetLoader: two read-only queries against campaigns / ads
- StaticDatasetLoader: serves a pre-built snapshot (tests, scripts)

WHY:
- The engine never touches the database itself; it receives plain rows
- Loaders are swappable through the get_dataset_loader dependency

Ordering:
    Rows come back ordered by creation time, then id. This is the "dataset
    order" that ranking ties fall back to, so it must be deterministic.

Related files:
- adinsight/models.py: ORM mapping
- adinsight/answer/aggregates.py: CampaignMetric / AdMetric rows
- adinsight/deps.py: get_dataset_loader()
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Tuple, Union

from sqlalchemy.orm import Session

from adinsight.answer.aggregates import AdMetric, CampaignMetric
from adinsight.models import Ad, AdSet, Campaign

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal, None]


@dataclass(frozen=True)
class Dataset:
    """One request's snapshot of campaign and ad rows."""
    campaigns: Tuple[CampaignMetric, ...] = ()
    ads: Tuple[AdMetric, ...] = ()

    @property
    def is_empty(self) -> bool:
        """No campaigns means nothing to answer about (ads alone are not enough)."""
        return not self.campaigns


class DatasetLoader(Protocol):
    def load(self) -> Dataset:
        ...


def _as_float(value: Number) -> float:
    return float(value) if value is not None else 0.0


def _as_int(value: Number) -> int:
    return int(value) if value is not None else 0


def _as_optional_float(value: Number) -> Optional[float]:
    return float(value) if value is not None else None


class SqlDatasetLoader:
    """
    Loads the snapshot with two read-only queries.

    Usage:
        loader = SqlDatasetLoader(db)
        dataset = loader.load()
    """

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Dataset:
        campaigns = tuple(
            CampaignMetric(
                id=str(row.id),
                name=row.name,
                spend=_as_float(row.spend),
                impressions=_as_int(row.impressions),
                clicks=_as_int(row.clicks),
                results=_as_int(row.results),
                cpc=_as_optional_float(row.cpc),
                cpm=_as_optional_float(row.cpm),
                platform=row.platform,
            )
            for row in self.db.query(Campaign).order_by(Campaign.created_at, Campaign.id).all()
        )

        ad_rows = (
            self.db.query(Ad, Campaign.name, AdSet.name)
            .join(Campaign, Ad.campaign_id == Campaign.id)
            .outerjoin(AdSet, Ad.ad_set_id == AdSet.id)
            .order_by(Ad.created_at, Ad.id)
            .all()
        )
        ads = tuple(
            AdMetric(
                id=str(ad.id),
                name=ad.name,
                campaign_name=campaign_name,
                ad_set_name=ad_set_name,
                spend=_as_float(ad.spend),
                impressions=_as_int(ad.impressions),
                clicks=_as_int(ad.clicks),
                results=_as_int(ad.results),
                cpc=_as_optional_float(ad.cpc),
                cpm=_as_optional_float(ad.cpm),
            )
            for ad, campaign_name, ad_set_name in ad_rows
        )

        logger.info(f"[DATASET] Loaded {len(campaigns)} campaigns and {len(ads)} ads")
        return Dataset(campaigns=campaigns, ads=ads)


class StaticDatasetLoader:
    """Serves a fixed snapshot."""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def load(self) -> Dataset:
        return self.dataset
