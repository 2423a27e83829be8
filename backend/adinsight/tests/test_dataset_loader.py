"""Tests for the SQL dataset loader: ordering, joins and numeric conversion."""

from decimal import Decimal

from adinsight.answer.aggregates import CampaignMetric
from adinsight.services.dataset_loader import Dataset, SqlDatasetLoader, StaticDatasetLoader


def test_empty_database_gives_empty_dataset(test_db_session):
    dataset = SqlDatasetLoader(test_db_session).load()

    assert dataset == Dataset()
    assert dataset.is_empty


def test_campaigns_load_in_creation_order(test_db_session, seeded_campaigns):
    campaign_a, _ = seeded_campaigns

    dataset = SqlDatasetLoader(test_db_session).load()

    assert [c.name for c in dataset.campaigns] == ["A", "B"]
    first = dataset.campaigns[0]
    assert first.id == str(campaign_a.id)
    assert first.spend == 100.0
    assert isinstance(first.spend, float)
    assert first.platform == "meta"
    assert first.results == 0
    assert first.cpc is None


def test_ads_carry_campaign_and_optional_ad_set_names(test_db_session, seeded_campaigns):
    dataset = SqlDatasetLoader(test_db_session).load()

    hero, search = dataset.ads
    assert (hero.name, hero.campaign_name, hero.ad_set_name) == ("Hero Video", "A", "Broad")
    assert (search.name, search.campaign_name, search.ad_set_name) == ("Search Text", "B", None)
    assert search.cpc == 2.5


def test_stored_decimals_become_floats(test_db_session):
    from adinsight.models import Campaign

    test_db_session.add(Campaign(name="Precise", spend=Decimal("12.3456"), cpm=Decimal("7.1000")))
    test_db_session.commit()

    campaign = SqlDatasetLoader(test_db_session).load().campaigns[0]

    assert campaign.spend == 12.3456
    assert campaign.cpm == 7.1
    assert campaign.impressions == 0


def test_static_loader_returns_its_snapshot():
    dataset = Dataset(campaigns=(CampaignMetric(id="1", name="Only"),))
    assert StaticDatasetLoader(dataset).load() is dataset
