"""Domain models for one price search run"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """Geographic coordinates"""
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class LocationHint(BaseModel):
    """Location sources supplied with a search; the resolver picks exactly one"""
    explicit_point: Optional[Coordinates] = None
    device_point: Optional[Coordinates] = None
    postal_code: Optional[str] = None


class CandidateLocation(BaseModel):
    """Retail location returned by discovery, not yet priced"""
    name: str
    address: Optional[str] = None
    # Kept from discovery only; never forwarded to the price lookup
    location: Optional[Coordinates] = None


class Citation(BaseModel):
    """Source reference collected from an external lookup"""
    uri: Optional[str] = None
    title: Optional[str] = None


class PriceRecord(BaseModel):
    """A fully priced item at one location"""
    item_name: str
    location_name: str
    location_address: Optional[str] = None
    price: float
    currency: str = "USD"
    product_url: Optional[str] = None
    image_url: Optional[str] = None
    last_updated: Optional[str] = None
    notes: Optional[str] = None


class EnrichedRecord(PriceRecord):
    """Price record plus an optional synthesized product image"""
    generated_image: Optional[str] = None


class DisplayItem(EnrichedRecord):
    """Enriched record with an identity assigned at aggregation time"""
    id: str


class LocationGroup(BaseModel):
    """All items priced at one location name"""
    location_name: str
    representative_address: Optional[str] = None
    items: List[DisplayItem] = Field(default_factory=list)


class PriceLookupResult(BaseModel):
    """Outcome of one per-location price fetch"""
    record: Optional[PriceRecord] = None
    citations: List[Citation] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Observable output of a search run"""
    session_id: Optional[str] = None
    phase: str
    progress_label: str = ""
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    info_message: Optional[str] = None
    empty_reason: Optional[str] = None
    search_descriptor: Optional[str] = None
    groups: List[LocationGroup] = Field(default_factory=list)
    citations: List[Citation] = Field(default_factory=list)
    candidate_count: int = 0
    priced_count: int = 0
    degraded_count: int = 0
