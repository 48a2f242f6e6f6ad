# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the OpenVote monitoring dashboard.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, AliasChoices, field_validator, ConfigDict
from .base import BaseRecord
from .enums import ReportStatus, UserRole, MatchType


_WKT_POINT_RE = re.compile(
    r'^\s*POINT\s*\(\s*([-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s+'
    r'([-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*\)\s*$',
    re.IGNORECASE
)
_FRACTION_RE = re.compile(r'\.(\d+)')


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 / ISO 8601 timestamp.

    Args:
        value: Timestamp string or datetime

    Returns:
        Parsed datetime, or None when the value is missing or malformed
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text[-1] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    # fromisoformat only understands microsecond precision
    text = _FRACTION_RE.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1)

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class GeoPoint(BaseModel):
    """Longitude/latitude pair."""

    model_config = ConfigDict(frozen=True)

    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")

    @classmethod
    def from_wkt(cls, text: str) -> Optional["GeoPoint"]:
        """Parse a `POINT(longitude latitude)` string, returning None if malformed."""
        match = _WKT_POINT_RE.match(text or "")
        if not match:
            return None
        longitude, latitude = float(match.group(1)), float(match.group(2))
        if not (-180 <= longitude <= 180 and -90 <= latitude <= 90):
            return None
        return cls(longitude=longitude, latitude=latitude)

    def to_wkt(self) -> str:
        return f"POINT({self.longitude} {self.latitude})"


class Report(BaseRecord):
    """Field-submitted incident report."""

    id: str = Field(..., min_length=1, description="Unique report identifier")
    incident_type: str = Field(..., description="Incident category label")
    description: Optional[str] = Field(None, description="Free text description")
    location: Optional[GeoPoint] = Field(
        None,
        validation_alias=AliasChoices("location", "gps_location"),
        description="Report coordinates"
    )
    status: ReportStatus = Field(..., description="Triage status")
    created_at: Optional[str] = Field(None, description="Creation timestamp as sent by the backend")
    h3_index: Optional[str] = Field(None, description="H3 spatial cell")
    observer_id: str = Field("", description="Submitter identifier")
    proof_url: Optional[str] = Field(None, description="Evidence object URL")
    author_role: Optional[UserRole] = Field(None, description="Role of the submitter")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Identifiers are opaque; numeric ids are kept as strings."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('location', mode='before')
    @classmethod
    def parse_location(cls, v):
        """Accept WKT strings and mappings."""
        if v is None or isinstance(v, GeoPoint):
            return v
        if isinstance(v, str):
            return GeoPoint.from_wkt(v)
        return v

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, v):
        """Status must never be null."""
        if v is None:
            raise ValueError('Report status cannot be null')
        return v

    @field_validator('created_at', mode='before')
    @classmethod
    def normalize_created_at(cls, v):
        if isinstance(v, datetime):
            return v.isoformat()
        return v

    @field_validator('author_role', mode='before')
    @classmethod
    def drop_empty_role(cls, v):
        return v or None

    def created_datetime(self) -> Optional[datetime]:
        """Parsed creation timestamp, None when missing or malformed."""
        return parse_timestamp(self.created_at)

    def is_pending(self) -> bool:
        return self.status == ReportStatus.PENDING


class AuthSession(BaseModel):
    """Authenticated identity decoded from a bearer credential."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, description="Opaque bearer credential")
    role: UserRole = Field(..., description="Role carried by the credential")
    username: str = Field(..., description="Display name of the user")
    expires_at: datetime = Field(..., description="Expiry extracted from the credential")
    user_id: Optional[str] = Field(None, description="Subject claim")
    region_id: Optional[str] = Field(None, description="Region scope, when present")

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """A session is valid iff now < expires_at."""
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at


class LegalMatch(BaseRecord):
    """Ranked match between a report and a legal article."""

    id: Optional[str] = Field(None, description="Match identifier")
    report_id: str = Field(..., description="Qualified report")
    article_id: str = Field(..., description="Matched legal article")
    similarity_score: float = Field(..., ge=0.0, le=1.0, description="Semantic closeness")
    match_type: MatchType = Field(default=MatchType.AUTO, description="auto (model) or manual")
    notes: Optional[str] = Field(None, description="Reviewer notes")
    created_at: Optional[str] = Field(None, description="Match timestamp")
    article_number: Optional[str] = Field(None, description="Article number")
    article_title: Optional[str] = Field(None, description="Article title")
    article_content: Optional[str] = Field(None, description="Article text")


class ManagedUser(BaseRecord):
    """User account as listed by the administration endpoints."""

    id: str = Field(..., description="User identifier")
    username: str = Field(..., description="Login name")
    role: UserRole = Field(..., description="Assigned role")
    region_id: Optional[str] = Field(None, description="Region scope")
    created_at: Optional[str] = Field(None, description="Creation timestamp")
    updated_at: Optional[str] = Field(None, description="Last update timestamp")
    last_login_at: Optional[str] = Field(None, description="Last login timestamp")


class AuditLogEntry(BaseRecord):
    """Administrative action recorded by the backend."""

    id: str = Field(..., description="Entry identifier")
    admin_id: Optional[str] = Field(None, description="Acting administrator id")
    admin_name: Optional[str] = Field(None, description="Acting administrator name")
    action: str = Field(..., description="Action code, e.g. DELETE_USER")
    target_id: Optional[str] = Field(None, description="Affected entity")
    details: Optional[str] = Field(None, description="Human readable details")
    created_at: Optional[str] = Field(None, description="Action timestamp")


class IncidentCount(BaseModel):
    """Number of reports for one incident type."""

    model_config = ConfigDict(frozen=True)

    incident_type: str
    count: int


class ObserverCount(BaseModel):
    """Number of reports submitted by one observer."""

    model_config = ConfigDict(frozen=True)

    observer_id: str
    count: int


class AggregateView(BaseModel):
    """Statistics derived from a report snapshot."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    last_24h: int = 0
    unique_observers: int = 0
    status_totals: Dict[str, int] = Field(default_factory=dict)
    incident_breakdown: List[IncidentCount] = Field(default_factory=list)
    hourly_histogram: List[int] = Field(default_factory=lambda: [0] * 24)
    top_observers: List[ObserverCount] = Field(default_factory=list)
    recent_reports: List[Report] = Field(default_factory=list)
