from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union

# The string "any" means "no constraint" and is treated exactly like absence.
ANY = "any"

Scalar = Union[float, str]
StrList = Union[List[str], str]


class ListingFilter(BaseModel):
    """Sparse catalog search criteria, as received from the query string."""

    favorite_ids: Optional[Union[List[int], str]] = None  # Id allow-list
    price_min: Optional[Scalar] = None
    price_max: Optional[Scalar] = None
    beds: Optional[Scalar] = None
    baths: Optional[Scalar] = None
    property_type: Optional[str] = None
    square_feet_min: Optional[Scalar] = None
    square_feet_max: Optional[Scalar] = None
    amenities: Optional[StrList] = None
    available_from: Optional[str] = None
    latitude: Optional[Scalar] = None
    longitude: Optional[Scalar] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
