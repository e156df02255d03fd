# landbot/models.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# -----------------------------
# Core enums
# -----------------------------
class JobRunStatus(str, enum.Enum):
    running = "running"
    completed = "completed"
    failed = "failed"


# -----------------------------
# Models
# -----------------------------
class PropertyRow(Base):
    """Current state of a listing, keyed by the stable (source, source_id) hash."""

    __tablename__ = "properties"
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_property_source_ref"),
    )

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    source: Mapped[str] = mapped_column(String(64), index=True)
    source_id: Mapped[str] = mapped_column(String(255))
    url: Mapped[str] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    acres: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(8), nullable=True, index=True)
    county: Mapped[str | None] = mapped_column(String(120), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    water_features: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    structures: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    utilities: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    distance_to_town_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)
    terrain_tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    score: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    field_completeness: Mapped[int | None] = mapped_column(Integer, nullable=True)

    first_seen: Mapped[datetime] = mapped_column(DateTime, index=True)
    last_seen: Mapped[datetime] = mapped_column(DateTime, index=True)
    last_checked: Mapped[datetime] = mapped_column(DateTime)


class PropertySnapshot(Base):
    """Append-only copy of a listing's comparable fields at one observation."""

    __tablename__ = "property_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    scraped_at: Mapped[datetime] = mapped_column(DateTime, index=True)

    # comparable fields + raw payload, as plain JSON
    data: Mapped[dict[str, Any]] = mapped_column(JSON)
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class PriceHistory(Base):
    __tablename__ = "price_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    price: Mapped[float] = mapped_column(Float)
    previous_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, index=True)


class DuplicateLink(Base):
    """Directed edge: `duplicate_id` is a duplicate of `canonical_id` per `match_method`."""

    __tablename__ = "property_duplicates"
    __table_args__ = (
        UniqueConstraint("canonical_id", "duplicate_id", "match_method", name="uq_duplicate_edge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    canonical_id: Mapped[str] = mapped_column(String(16), index=True)
    duplicate_id: Mapped[str] = mapped_column(String(16), index=True)
    match_method: Mapped[str] = mapped_column(String(64))
    confidence: Mapped[float] = mapped_column(Float)
    detected_at: Mapped[datetime] = mapped_column(DateTime)


class SearchRun(Base):
    """Audit record, one per orchestrated search."""

    __tablename__ = "search_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_name: Mapped[str] = mapped_column(String(120), index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime)
    completed_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    properties_found: Mapped[int] = mapped_column(Integer, default=0)

    sources_used: Mapped[list[str]] = mapped_column(JSON, default=list)
    filters_applied: Mapped[dict[str, list[str]]] = mapped_column(JSON, default=dict)
    criteria_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    errors: Mapped[list[str]] = mapped_column(JSON, default=list)


class MonitoringJob(Base):
    __tablename__ = "monitoring_jobs"

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    profile_name: Mapped[str] = mapped_column(String(120), index=True)
    schedule: Mapped[str] = mapped_column(String(120))  # 5-field cron expression
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    notification_channels: Mapped[list[str]] = mapped_column(JSON, default=list)

    last_run_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(DateTime)


class MonitoringJobRun(Base):
    __tablename__ = "monitoring_job_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(ForeignKey("monitoring_jobs.id", ondelete="CASCADE"), index=True)

    status: Mapped[JobRunStatus] = mapped_column(Enum(JobRunStatus), default=JobRunStatus.running, index=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    new_properties: Mapped[int] = mapped_column(Integer, default=0)
    price_changes: Mapped[int] = mapped_column(Integer, default=0)
    total_properties: Mapped[int] = mapped_column(Integer, default=0)
