"""Search data models"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Union

from .listing import ListingsSource, PropertyListing, StoredPropertyListing


DEFAULT_CITY_LIMIT = 100
MAX_CITY_LIMIT = 100


class SearchMode(str, Enum):
    """Query shape of a search"""
    ADDRESS = "address"
    CITY = "city"


class AddressSearchRequest(BaseModel):
    """Single-property lookup by free-text address"""
    mode: Literal["address"]
    address: str = Field(min_length=5, max_length=200)

    @property
    def display_query(self) -> str:
        return self.address


class CitySearchRequest(BaseModel):
    """For-sale listings in a city"""
    mode: Literal["city"]
    city: str = Field(min_length=2, max_length=100)
    state: str = Field(min_length=2, max_length=50)
    limit: Optional[int] = Field(None, ge=1, le=MAX_CITY_LIMIT)

    @field_validator("state")
    @classmethod
    def uppercase_state(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def effective_limit(self) -> int:
        return self.limit if self.limit is not None else DEFAULT_CITY_LIMIT

    @property
    def display_query(self) -> str:
        return f"{self.city}, {self.state}"


# Discriminated on ``mode`` where it is parsed
SearchRequest = Union[AddressSearchRequest, CitySearchRequest]


class SearchResponse(BaseModel):
    """Result of POST /v1/search"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search_id: str
    properties: List[PropertyListing]
    cached: bool = False


class SearchSummary(BaseModel):
    """Search metadata without its listings"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    mode: SearchMode
    query: str
    source: ListingsSource = ListingsSource.REPLIERS
    created_at: datetime
    retrieved_at: datetime

    # Stored alongside the record but not part of the API payload
    query_key: Optional[str] = Field(None, exclude=True)
    result_count: int = Field(0, exclude=True)


class SearchRecord(SearchSummary):
    """Search metadata with its stored listings"""
    properties: List[StoredPropertyListing] = Field(default_factory=list)


class SearchListResponse(BaseModel):
    """Result of GET /v1/searches"""
    searches: List[SearchSummary]
