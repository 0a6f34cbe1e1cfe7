"""
Pydantic models for geotagged civic reports.

A Report is immutable once created except for `confirmations` and `status`;
updates produce a new copy via `with_confirmation`.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class ReportCategory(str, Enum):
    """Closed set of report categories."""
    LIGHT = "light"
    WATER = "water"
    FUEL = "fuel"
    PRICE = "price"
    TRAFFIC = "traffic"
    INFRASTRUCTURE = "infrastructure"
    ENVIRONMENT = "environment"
    SAFETY = "safety"


class ReportStatus(str, Enum):
    """
    Report lifecycle:
    PENDING → CONFIRMED (confirmation threshold) → RESOLVED (set externally)
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RESOLVED = "resolved"


class Severity(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"


class QueueLength(str, Enum):
    NONE = "none"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class DurationClass(str, Enum):
    NEW = "new"
    FEW_DAYS = "2-3days"
    ONGOING = "ongoing"


class GeoPoint(BaseModel):
    """WGS84 position in degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class PriceDetails(BaseModel):
    item_name: str = Field(..., min_length=1)
    unit_of_measure: str
    quantity: float
    price: float
    previous_price: Optional[float] = None


class FuelStation(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    location: Optional[GeoPoint] = None


class ReportMetadata(BaseModel):
    """
    Category-specific optional fields.

    Malformed values are dropped field by field rather than failing the whole
    report, so detectors simply see the field as absent.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    severity: Optional[Severity] = None
    availability: Optional[bool] = None
    queue_length: Optional[QueueLength] = None
    duration: Optional[DurationClass] = None
    subcategory: Optional[str] = None
    price_details: Optional[PriceDetails] = None
    fuel_station: Optional[FuelStation] = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _drop_malformed(cls, value, handler, info):
        try:
            return handler(value)
        except ValidationError:
            logger.debug(f"Dropping malformed metadata field '{info.field_name}': {value!r}")
            return None


class SubmittedLocation(GeoPoint):
    """Client-submitted position; must lie on the globe."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ReportCreate(BaseModel):
    """Incoming report submission."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: ReportCategory
    location: SubmittedLocation
    address: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    user_id: str = Field("anonymous", min_length=1)
    anonymous: bool = False
    is_sponsored: bool = False
    sponsored_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[ReportMetadata] = None

    @field_validator("location", mode="before")
    @classmethod
    def _recheck_point(cls, value):
        if isinstance(value, GeoPoint) and not isinstance(value, SubmittedLocation):
            return value.model_dump()
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Fuel available at Total",
                "category": "fuel",
                "location": {"latitude": 8.9778, "longitude": 38.7991},
                "address": "Bole Airport Road, Addis Ababa",
                "user_id": "user456",
                "metadata": {"availability": True, "queue_length": "short"},
            }
        }


class Report(BaseModel):
    """Stored report as returned by the report repository."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: Optional[str] = None
    category: ReportCategory
    status: ReportStatus = ReportStatus.PENDING
    location: GeoPoint
    address: Optional[str] = None
    timestamp: datetime
    image_url: Optional[str] = None
    user_id: str = "anonymous"
    anonymous: bool = False
    confirmations: int = Field(0, ge=0)
    is_sponsored: bool = False
    sponsored_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[ReportMetadata] = None

    @field_validator("timestamp", "expires_at")
    @classmethod
    def _ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        """Sponsored reports stop being listed after expires_at."""
        return self.expires_at is not None and self.expires_at <= now

    def with_confirmation(self, threshold: int) -> "Report":
        """
        Return a copy with one more confirmation.

        PENDING is promoted to CONFIRMED once confirmations reach `threshold`.
        RESOLVED is never changed here.
        """
        confirmations = self.confirmations + 1
        status = self.status
        if status == ReportStatus.PENDING and confirmations >= threshold:
            status = ReportStatus.CONFIRMED
        return self.model_copy(update={"confirmations": confirmations, "status": status})


class ReportFilters(BaseModel):
    """Optional filters for listing reports."""
    categories: Optional[List[ReportCategory]] = None
    since: Optional[datetime] = None
    include_expired: bool = False
