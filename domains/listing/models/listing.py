from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ListingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ListingKind(str, Enum):
    PROPERTY = "property"
    PROJECT = "project"


class Currency(str, Enum):
    BOLIVIANOS = "BOLIVIANOS"
    DOLLARS = "DOLLARS"


class PropertyType(str, Enum):
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    OFFICE = "OFFICE"
    LAND = "LAND"


class TransactionType(str, Enum):
    SALE = "SALE"
    RENT = "RENT"
    ANTICRETICO = "ANTICRETICO"


class QuadrantType(str, Enum):
    DEPARTAMENTO = "DEPARTAMENTO"
    OFICINA = "OFICINA"
    LOCAL_COMERCIAL = "LOCAL_COMERCIAL"
    PARQUEO = "PARQUEO"
    BAULERA = "BAULERA"


class QuadrantStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    RESERVED = "RESERVED"


class Listing(BaseModel):
    """
    Fields shared by every moderated listing.

    owner_agent_id and agency_id are fixed at creation; the store never
    writes them again.
    """

    id: str
    status: ListingStatus = ListingStatus.PENDING
    rejection_message: Optional[str] = Field(
        None, description="Set only while status is REJECTED"
    )
    owner_agent_id: str
    agency_id: str
    created_at: datetime
    updated_at: datetime

    kind: ListingKind = ListingKind.PROPERTY

    def searchable_text(self) -> str:
        return ""


class Property(Listing):
    """A single property published by an agent."""

    kind: ListingKind = ListingKind.PROPERTY

    title: str
    description: str = ""
    price: float
    currency: Currency = Currency.BOLIVIANOS
    exchange_rate: Optional[float] = Field(
        None, description="Bolivianos per dollar when the price is not in Bs."
    )
    bedrooms: int = 0
    bathrooms: float = 0
    garage_spaces: int = 0
    area: float = Field(..., description="Square meters")
    property_type: PropertyType
    transaction_type: TransactionType

    # Location
    location_state: str = ""
    location_city: str = ""
    location_neighborhood: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    features: List[str] = Field(default_factory=list)

    def searchable_text(self) -> str:
        return " ".join(
            [self.title, self.description, self.address or "", self.location_city or ""]
        )


class Quadrant(BaseModel):
    """A sellable unit on one floor of a project."""

    id: str
    custom_id: str
    type: QuadrantType = QuadrantType.DEPARTAMENTO
    area: float
    bedrooms: int = 0
    bathrooms: int = 0
    price: float
    currency: Currency = Currency.BOLIVIANOS
    exchange_rate: Optional[float] = None
    status: QuadrantStatus = QuadrantStatus.AVAILABLE
    active: bool = True


class Floor(BaseModel):
    id: str
    number: int
    name: Optional[str] = None
    quadrants: List[Quadrant] = Field(default_factory=list)


class Project(Listing):
    """A development with floors of units, moderated as one listing."""

    kind: ListingKind = ListingKind.PROJECT

    name: str
    description: str = ""
    location: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    floors: List[Floor] = Field(default_factory=list)

    def searchable_text(self) -> str:
        return " ".join([self.name, self.description, self.location or ""])

    def quadrant_counts(self) -> dict:
        counts = {"total": 0, "available": 0, "unavailable": 0, "reserved": 0}
        for floor in self.floors:
            for quadrant in floor.quadrants:
                counts["total"] += 1
                counts[quadrant.status.value.lower()] += 1
        return counts
