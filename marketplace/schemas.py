"""
marketplace/schemas.py

Pydantic schemas for the listing endpoints.

Request bodies accept both snake_case and the camelCase names the dashboards
send (locationCity, rejectionMessage...). Ownership fields (owner_agent_id,
agency_id, status) are never accepted from the client; unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from domains.listing.models.listing import (
    Currency,
    Listing,
    ListingStatus,
    Project,
    Property,
    PropertyType,
    QuadrantStatus,
    QuadrantType,
    TransactionType,
)
from domains.listing.status_labels import (
    property_type_label,
    status_label,
    status_variant,
    transaction_type_label,
)


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UpdateRequest(RequestModel):
    """
    Partial update body. Omitted fields are left alone; an explicit null is
    only accepted for the fields listed in NULLABLE.
    """
    NULLABLE: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        cleared = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.NULLABLE
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


def _trim(v):
    if isinstance(v, str):
        return v.strip()
    return v


# ========================================================================
# PROPERTY SCHEMAS
# ========================================================================

class PropertyCreateRequest(RequestModel):
    """Request schema for publishing a property. New properties start PENDING."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    price: float = Field(..., ge=0)
    currency: Currency = Currency.BOLIVIANOS
    exchange_rate: Optional[float] = Field(None, gt=0)
    bedrooms: int = Field(0, ge=0)
    bathrooms: float = Field(0, ge=0)
    garage_spaces: int = Field(0, ge=0)
    area: float = Field(..., gt=0, description="Square meters")
    property_type: PropertyType
    transaction_type: TransactionType
    location_state: str = Field("", max_length=100)
    location_city: str = Field("", max_length=100)
    location_neighborhood: str = Field("", max_length=100)
    address: str = Field("", max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    features: List[str] = Field(default_factory=list)

    @field_validator(
        "title", "description", "location_state", "location_city",
        "location_neighborhood", "address", mode="before",
    )
    @classmethod
    def trim_text(cls, v):
        return _trim(v)


class PropertyUpdateRequest(UpdateRequest):
    """Partial update; only fields present in the body are written."""
    NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"exchange_rate", "latitude", "longitude"})

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[Currency] = None
    exchange_rate: Optional[float] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    garage_spaces: Optional[int] = Field(None, ge=0)
    area: Optional[float] = Field(None, gt=0)
    property_type: Optional[PropertyType] = None
    transaction_type: Optional[TransactionType] = None
    location_state: Optional[str] = Field(None, max_length=100)
    location_city: Optional[str] = Field(None, max_length=100)
    location_neighborhood: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    features: Optional[List[str]] = None

    @field_validator(
        "title", "description", "location_state", "location_city",
        "location_neighborhood", "address", mode="before",
    )
    @classmethod
    def trim_text(cls, v):
        return _trim(v)


# ========================================================================
# PROJECT SCHEMAS
# ========================================================================

class QuadrantCreateRequest(RequestModel):
    custom_id: str = Field(..., min_length=1, max_length=50, description="Unit label, e.g. 3B")
    type: QuadrantType = QuadrantType.DEPARTAMENTO
    area: float = Field(..., gt=0)
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    currency: Currency = Currency.BOLIVIANOS
    exchange_rate: Optional[float] = Field(None, gt=0)
    status: QuadrantStatus = QuadrantStatus.AVAILABLE
    active: bool = True

    @field_validator("custom_id", mode="before")
    @classmethod
    def trim_custom_id(cls, v):
        return _trim(v)


class FloorCreateRequest(RequestModel):
    number: int = Field(..., ge=1)
    name: Optional[str] = Field(None, max_length=100)
    quadrants: List[QuadrantCreateRequest] = Field(default_factory=list)


class ProjectCreateRequest(RequestModel):
    """Request schema for publishing a project with optional nested floors."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    location: str = Field("", max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    floors: List[FloorCreateRequest] = Field(default_factory=list)

    @field_validator("name", "description", "location", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _trim(v)

    @field_validator("floors")
    @classmethod
    def unique_floor_numbers(cls, v):
        numbers = [floor.number for floor in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("floor numbers must be unique")
        return v


class ProjectUpdateRequest(UpdateRequest):
    NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"latitude", "longitude"})

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("name", "description", "location", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _trim(v)


# ========================================================================
# MODERATION SCHEMAS
# ========================================================================

class RejectRequest(RequestModel):
    """Optional message shown to the agent; trimmed, blank stored as null."""
    rejection_message: Optional[str] = Field(None, max_length=1000)


class ReviewRequest(RequestModel):
    """Admin review queue decision."""
    id: str = Field(..., min_length=1)
    status: ListingStatus
    rejection_reason: Optional[str] = Field(None, max_length=1000)


# ========================================================================
# RESPONSE SCHEMAS
# ========================================================================

def serialize_listing(listing: Listing) -> Dict[str, Any]:
    """JSON-ready listing with display labels attached."""
    data = listing.model_dump(mode="json")
    data["status_label"] = status_label(listing.status)
    data["status_variant"] = status_variant(listing.status)
    if isinstance(listing, Property):
        data["property_type_label"] = property_type_label(listing.property_type)
        data["transaction_type_label"] = transaction_type_label(listing.transaction_type)
    if isinstance(listing, Project):
        data["quadrant_counts"] = listing.quadrant_counts()
    return data


class StatusCounts(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class ListingResponse(BaseModel):
    item: Dict[str, Any]
    message: Optional[str] = None


class ListingListResponse(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = Field(0, description="Matches before pagination")
    limit: int
    offset: int


class DashboardResponse(BaseModel):
    """Scoped + filtered items; counts cover the scoped collection before filtering."""
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    counts: StatusCounts


class PendingQueueResponse(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class PropertyStatsResponse(BaseModel):
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0
    total_value: float = Field(0.0, description="Sum of approved property prices")


class CityOption(BaseModel):
    value: str
    label: str
    state: str


class NeighborhoodOption(BaseModel):
    value: str
    label: str
    city: str


class LocationsResponse(BaseModel):
    states: List[str] = Field(default_factory=list)
    cities: List[CityOption] = Field(default_factory=list)
    neighborhoods: List[NeighborhoodOption] = Field(default_factory=list)


class SearchSuggestion(BaseModel):
    type: str
    value: str
    label: str
    category: Optional[str] = None


class SearchSuggestionsResponse(BaseModel):
    suggestions: List[SearchSuggestion] = Field(default_factory=list)
