"""
Marketing automation models
Social scheduling, competitor intelligence and report history
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


# ============================================================================
# SOCIAL
# ============================================================================


class SocialAccount(Base):
    __tablename__ = "social_accounts"

    id = Column(Integer, primary_key=True, index=True)
    platform = Column(String(20), nullable=False)
    account_name = Column(String(255), nullable=False)
    buffer_profile_id = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())


class ScheduledPost(Base):
    __tablename__ = "scheduled_posts"

    id = Column(Integer, primary_key=True, index=True)
    social_account_id = Column(Integer, ForeignKey("social_accounts.id"), nullable=True)
    platform = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    media_urls = Column(JSON, default=list)
    link_url = Column(String(500), nullable=True)
    scheduled_for = Column(DateTime, nullable=True, index=True)
    # draft, scheduled, publishing, published, failed, cancelled
    status = Column(String(20), default="draft", index=True)
    retry_count = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    buffer_post_id = Column(String(100), nullable=True)
    published_at = Column(DateTime, nullable=True)
    engagement = Column(Integer, default=0)
    impressions = Column(Integer, default=0)
    clicks = Column(Integer, default=0)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    social_account = relationship("SocialAccount")


class ContentSuggestion(Base):
    __tablename__ = "content_suggestions"

    id = Column(Integer, primary_key=True, index=True)
    suggestion_date = Column(Date, nullable=False, index=True)
    platform = Column(String(20), nullable=True)
    content = Column(Text, nullable=False)
    status = Column(String(20), default="pending")  # pending, accepted, modified, rejected
    created_at = Column(DateTime, server_default=func.now())


# ============================================================================
# COMPETITORS
# ============================================================================


class Competitor(Base):
    __tablename__ = "competitors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    website_url = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    # tour_operator, content_benchmark, indirect, aggregator
    competitor_type = Column(String(30), default="tour_operator")
    priority_level = Column(String(10), default="medium")  # high, medium, low
    monitor_pricing = Column(Boolean, default=True)
    monitor_promotions = Column(Boolean, default=True)
    monitor_packages = Column(Boolean, default=True)
    monitor_content = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    last_checked_at = Column(DateTime, nullable=True)
    last_change_detected_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    snapshots = relationship("CompetitorSnapshot", back_populates="competitor", cascade="all, delete-orphan")
    changes = relationship("CompetitorChange", back_populates="competitor", cascade="all, delete-orphan")
    swot_items = relationship("CompetitorSwot", back_populates="competitor", cascade="all, delete-orphan")


class CompetitorSnapshot(Base):
    __tablename__ = "competitor_snapshots"
    __table_args__ = (UniqueConstraint("competitor_id", "page_type", name="uq_competitor_snapshot_page"),)

    id = Column(Integer, primary_key=True, index=True)
    competitor_id = Column(Integer, ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False)
    page_type = Column(String(20), nullable=False)  # homepage, pricing, tours
    page_url = Column(String(500), nullable=False)
    content_hash = Column(String(64), nullable=False)
    content_text = Column(Text, nullable=True)
    http_status = Column(Integer, nullable=True)
    captured_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    competitor = relationship("Competitor", back_populates="snapshots")


class CompetitorChange(Base):
    __tablename__ = "competitor_changes"

    id = Column(Integer, primary_key=True, index=True)
    competitor_id = Column(Integer, ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False)
    change_type = Column(String(30), nullable=False)  # pricing, promotion, new_offering, content
    significance = Column(String(10), default="low")
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    threat_level = Column(String(10), default="low")  # high, medium, low, none
    recommended_actions = Column(JSON, default=list)
    source_url = Column(String(500), nullable=True)
    status = Column(String(20), default="new", index=True)  # new, reviewed, actioned, dismissed, archived
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    action_taken = Column(Text, nullable=True)
    detected_at = Column(DateTime, server_default=func.now())

    competitor = relationship("Competitor", back_populates="changes")


class CompetitorSwot(Base):
    __tablename__ = "competitor_swot"

    id = Column(Integer, primary_key=True, index=True)
    competitor_id = Column(Integer, ForeignKey("competitors.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(20), nullable=False)  # strength, weakness, opportunity, threat
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    impact_level = Column(String(10), default="medium")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    competitor = relationship("Competitor", back_populates="swot_items")


# ============================================================================
# REPORTS
# ============================================================================


class MarketingReportLog(Base):
    __tablename__ = "marketing_report_logs"

    id = Column(Integer, primary_key=True, index=True)
    report_type = Column(String(30), nullable=False)
    report_date = Column(Date, nullable=False)
    content = Column(Text, nullable=True)
    metrics = Column(JSON, nullable=True)
    sent_to = Column(String(255), nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
