from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domains.listing.models.listing import ListingStatus, PropertyType, TransactionType


RANGE_FIELDS = (
    ("min_price", "max_price"),
    ("min_bedrooms", "max_bedrooms"),
    ("min_bathrooms", "max_bathrooms"),
    ("min_square_meters", "max_square_meters"),
)


class ListingFilter(BaseModel):
    """
    Filter criteria applied to a listing collection.
    Every field is optional; an unset field imposes no constraint.
    Accepts the camelCase names used by the dashboards (minPrice, locationCity...).
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", frozen=True, allow_inf_nan=False
    )

    search: Optional[str] = Field(None, max_length=200)
    status: Optional[ListingStatus] = None
    location_state: Optional[str] = Field(None, alias="locationState")
    location_city: Optional[str] = Field(None, alias="locationCity")

    min_price: Optional[float] = Field(None, ge=0, alias="minPrice")
    max_price: Optional[float] = Field(None, ge=0, alias="maxPrice")
    min_bedrooms: Optional[float] = Field(None, ge=0, alias="minBedrooms")
    max_bedrooms: Optional[float] = Field(None, ge=0, alias="maxBedrooms")
    min_bathrooms: Optional[float] = Field(None, ge=0, alias="minBathrooms")
    max_bathrooms: Optional[float] = Field(None, ge=0, alias="maxBathrooms")
    min_square_meters: Optional[float] = Field(None, ge=0, alias="minSquareMeters")
    max_square_meters: Optional[float] = Field(None, ge=0, alias="maxSquareMeters")

    property_type: Optional[PropertyType] = Field(None, alias="propertyType")
    transaction_type: Optional[TransactionType] = Field(None, alias="transactionType")

    # Matches listings carrying at least one of these
    features: Optional[List[str]] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Form inputs send "" for untouched fields."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("search", "location_state", "location_city")
    @classmethod
    def trim_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("features", mode="before")
    @classmethod
    def split_features(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        cleaned = [str(item).strip() for item in v if str(item).strip()]
        return cleaned or None

    @model_validator(mode="after")
    def check_ranges(self):
        for low_name, high_name in RANGE_FIELDS:
            low = getattr(self, low_name)
            high = getattr(self, high_name)
            if low is not None and high is not None and low > high:
                raise ValueError(f"{low_name} must not be greater than {high_name}")
        return self

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)
