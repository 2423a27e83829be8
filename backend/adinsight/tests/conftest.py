"""Pytest configuration for adinsight integration tests

WHAT: Provides shared fixtures for HTTP endpoint and dataset-loading tests
WHY: Ensures consistent test setup, database isolation, and a gateway-free
     QAService unless a test installs its own
REFERENCES:
    - adinsight/main.py: FastAPI application
    - adinsight/database.py: Database configuration
    - adinsight/deps.py: Dependency injection
    - adinsight/services/qa_service.py: QA service
"""

import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend is in path
BACKEND_ROOT = Path(__file__).resolve().parents[2]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Set test environment (before adinsight.database builds its engine)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def test_db_engine():
    """Create in-memory test database engine."""
    # StaticPool: the loader runs in FastAPI's threadpool and must see the same in-memory DB
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from adinsight.models import Base
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session with rollback."""
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )

    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(test_db_session):
    """Create FastAPI test application without a gateway."""
    from adinsight.deps import Settings, get_dataset_loader
    from adinsight.main import create_app
    from adinsight.services.dataset_loader import SqlDatasetLoader
    from adinsight.services.qa_service import QAService

    test_app = create_app(Settings(_env_file=None, SENTRY_DSN=None))
    test_app.state.qa_service = QAService(gateway=None)

    test_app.dependency_overrides[get_dataset_loader] = lambda: SqlDatasetLoader(test_db_session)

    return test_app


@pytest.fixture
def client(app) -> TestClient:
    """Create TestClient for HTTP testing."""
    return TestClient(app)


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture
def seeded_campaigns(test_db_session):
    """
    Two campaigns (A created first) with one ad each.

    A: $100 spend, 1,000 impressions, 10 clicks → CTR 1.00%
    B: $50 spend, 500 impressions, 20 clicks   → CTR 4.00%
    """
    from adinsight.models import Ad, AdSet, Campaign

    base = datetime(2025, 1, 1, 12, 0, 0)
    campaign_a = Campaign(
        name="A", platform="meta", spend=Decimal("100.00"), impressions=1000, clicks=10,
        created_at=base,
    )
    campaign_b = Campaign(
        name="B", platform="google", spend=Decimal("50.00"), impressions=500, clicks=20,
        created_at=base + timedelta(minutes=1),
    )
    test_db_session.add_all([campaign_a, campaign_b])
    test_db_session.flush()

    ad_set = AdSet(name="Broad", campaign_id=campaign_a.id, created_at=base)
    test_db_session.add(ad_set)
    test_db_session.flush()

    test_db_session.add_all([
        Ad(
            name="Hero Video", campaign_id=campaign_a.id, ad_set_id=ad_set.id,
            spend=Decimal("60.00"), impressions=600, clicks=6, created_at=base,
        ),
        Ad(
            name="Search Text", campaign_id=campaign_b.id, ad_set_id=None,
            spend=Decimal("50.00"), impressions=500, clicks=20, cpc=Decimal("2.50"),
            created_at=base + timedelta(minutes=1),
        ),
    ])
    test_db_session.commit()

    return campaign_a, campaign_b
