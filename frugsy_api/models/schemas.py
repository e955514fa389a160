"""API request/response schemas"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator
from frugsy_api.models.domain import Coordinates


class SearchRequest(BaseModel):
    """POST /api/search request"""
    item_query: str = Field(..., description="Free-text item to price, e.g. 'Organic Bananas'")
    postal_code: str = Field(default="", description="Optional 5-digit US ZIP code")
    radius_miles: Optional[float] = Field(default=None, description="Search radius; server default when omitted")
    explicit_point: Optional[Coordinates] = Field(default=None, description="Point selected on the map")
    device_point: Optional[Coordinates] = Field(default=None, description="Live device location")
    session_id: Optional[str] = Field(default=None, description="Rerun the search inside an existing session")

    @field_validator("item_query", "postal_code", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class SearchResponse(BaseModel):
    """POST /api/search response

    Returns session_id for tracking search progress via SSE.
    """
    session_id: str


class ProgressEvent(BaseModel):
    """SSE progress event"""
    ts: str
    session_id: str
    phase: str = Field(..., description="IDLE|RESOLVING_LOCATION|DISCOVERING_PLACES|FETCHING_PRICES|ENRICHING_IMAGES|AGGREGATING|DONE|FAILED|EMPTY")
    detail: str
    terminal: bool = False


class ErrorResponse(BaseModel):
    """Error response"""
    error_id: str
    code: str
    message: str
    hint: Optional[str] = None
    retryable: bool = False
    session_id: Optional[str] = None
