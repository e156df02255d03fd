from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Channel = Literal["console", "file", "webhook"]


class PropertyOut(BaseModel):
    id: str
    source: str
    source_id: str
    url: str
    title: str

    description: str | None = None
    acres: float | None = None
    price: float | None = None
    state: str | None = None
    county: str | None = None
    city: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    water_features: dict[str, Any] | None = None
    structures: dict[str, Any] | None = None
    utilities: dict[str, Any] | None = None
    distance_to_town_minutes: float | None = None
    terrain_tags: list[str] | None = None
    images: list[str] | None = None

    score: float | None = None
    field_completeness: int | None = None

    first_seen: datetime | None = None
    last_seen: datetime | None = None
    last_checked: datetime | None = None


class SnapshotOut(BaseModel):
    scraped_at: datetime
    fields: dict[str, Any]


class PriceHistoryOut(BaseModel):
    price: float
    previous_price: float | None = None
    recorded_at: datetime


class DuplicateLinkOut(BaseModel):
    canonical_id: str
    duplicate_id: str
    match_method: str
    confidence: float
    detected_at: datetime


class ScoreBreakdownOut(BaseModel):
    profile: str
    water: float
    structures: float
    terrain: float
    utilities: float
    distance: float
    total: float
    explain: str


class PropertyDetailOut(BaseModel):
    property: PropertyOut
    snapshots: list[SnapshotOut]
    price_history: list[PriceHistoryOut]
    duplicates: list[DuplicateLinkOut]
    score_breakdown: ScoreBreakdownOut | None = None


class MergeOut(BaseModel):
    canonical_id: str
    duplicate_id: str
    created: bool


class PriceChangeOut(BaseModel):
    property: PropertyOut
    old_price: float | None = None
    new_price: float | None = None
    change: float
    recorded_at: datetime


class SearchResultOut(BaseModel):
    properties_found: int = Field(..., ge=0)
    sources_used: list[str]
    filters_applied: dict[str, list[str]]
    errors: list[str]
    per_source: dict[str, int]
    inserted: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    unchanged: int = Field(..., ge=0)
    duplicates_linked: int = Field(..., ge=0)
    audit_error: str | None = None


class LastRunOut(BaseModel):
    profile: str | None = None
    completed_at: datetime | None = None


class MonitoringJobCreate(BaseModel):
    profile_name: str
    schedule: str = Field(..., description="5-field cron expression")
    notification_channels: list[Channel] = Field(default_factory=lambda: ["console"])


class MonitoringJobOut(BaseModel):
    id: str
    profile_name: str
    schedule: str
    enabled: bool
    notification_channels: list[str]
    last_run_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MonitoringJobUpdate(BaseModel):
    schedule: str


class MonitoringRunOut(BaseModel):
    id: int
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    error: str | None = None
    new_properties: int
    price_changes: int
    total_properties: int


class ProfileSummaryOut(BaseModel):
    name: str
    description: str = ""
    active: bool


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1)
    from_profile: str | None = Field(None, description="Profile to copy; defaults to the active profile")
    description: str | None = None
