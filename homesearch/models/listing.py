"""Property listing data models"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union


Numeric = Union[int, float]


class ListingsSource(str, Enum):
    """Provider a listing was retrieved from"""
    REPLIERS = "repliers"


class PropertyListing(BaseModel):
    """Canonical, provider-independent listing.

    Numeric fields are None when the provider did not report them.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: ListingsSource = ListingsSource.REPLIERS
    source_id: str
    address: str
    price: Optional[Numeric] = None
    beds: Optional[Numeric] = None
    baths: Optional[Numeric] = None
    sqft: Optional[Numeric] = None
    photos: List[str] = Field(default_factory=list)


class StoredPropertyListing(PropertyListing):
    """Listing as persisted under a search"""
    retrieved_at: Optional[datetime] = None
