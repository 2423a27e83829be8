"""SQLAlchemy ORM models.

Read-only mapping of the dashboard's imported reporting tables. Rows are
written by the CSV importer; the chat service only reads them.

Campaign ──< AdSet ──< Ad
    └───────────────────┘   (every ad also points at its campaign directly)

Metric columns hold the totals for the imported reporting window. `cpc` and
`cpm` are the values stored at import time and may be missing.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship, declarative_base


# Single Base used by the entire application
Base = declarative_base()


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    platform = Column(String, nullable=True)  # "meta", "google", ... (None when the import had no column)

    spend = Column(Numeric(18, 4), nullable=False, default=0)
    impressions = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    results = Column(Integer, nullable=False, default=0)
    cpc = Column(Numeric(18, 4), nullable=True)
    cpm = Column(Numeric(18, 4), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    ad_sets = relationship("AdSet", back_populates="campaign")
    ads = relationship("Ad", back_populates="campaign")


class AdSet(Base):
    __tablename__ = "ad_sets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    campaign_id = Column(Uuid, ForeignKey("campaigns.id"), nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campaign = relationship("Campaign", back_populates="ad_sets")
    ads = relationship("Ad", back_populates="ad_set")


class Ad(Base):
    __tablename__ = "ads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    campaign_id = Column(Uuid, ForeignKey("campaigns.id"), nullable=False)
    ad_set_id = Column(Uuid, ForeignKey("ad_sets.id"), nullable=True)

    spend = Column(Numeric(18, 4), nullable=False, default=0)
    impressions = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    results = Column(Integer, nullable=False, default=0)
    cpc = Column(Numeric(18, 4), nullable=True)
    cpm = Column(Numeric(18, 4), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campaign = relationship("Campaign", back_populates="ads")
    ad_set = relationship("AdSet", back_populates="ads")
