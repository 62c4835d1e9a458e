from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, List, Literal, Optional, Union
from datetime import datetime
from enum import Enum


class PropertyType(str, Enum):
    ROOMS = "Rooms"
    TINYHOUSE = "Tinyhouse"
    APARTMENT = "Apartment"
    VILLA = "Villa"
    TOWNHOUSE = "Townhouse"
    COTTAGE = "Cottage"


class RoomType(str, Enum):
    PRIVATE = "PRIVATE"
    SHARED = "SHARED"


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# --- Responses ---

class Coordinates(CamelModel):
    latitude: float
    longitude: float


class LocationResponse(CamelModel):
    id: int
    address: str
    city: str
    state: Optional[str] = None
    country: str
    postal_code: Optional[str] = None
    coordinates: Coordinates


class ListingResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = ""
    property_type: Optional[str] = ""
    price_per_month: float
    security_deposit: float
    application_fee: float
    beds: int
    baths: float
    square_feet: int
    is_pets_allowed: bool = False
    is_parking_included: bool = False
    amenities: List[str] = []
    highlights: List[str] = []
    photo_urls: List[str] = []
    manager_cognito_id: str
    location_id: int
    posted_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    location: LocationResponse

    # Non-fatal side effects of the request (e.g. media ACL confirmation)
    warnings: List[str] = []


class RoomBase(CamelModel):
    id: int
    property_id: int
    name: str
    description: Optional[str] = ""
    price_per_month: float
    security_deposit: float = 0
    square_feet: Optional[int] = None
    photo_urls: List[str] = []
    is_available: bool = True
    available_from: Optional[datetime] = None
    room_type: str = RoomType.PRIVATE.value
    capacity: int = 1
    amenities: List[str] = []
    features: List[str] = []


class PersistedRoom(RoomBase):
    kind: Literal["persisted"] = "persisted"
    synthetic: Literal[False] = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SynthesizedRoom(RoomBase):
    """Display-only room derived from the listing itself; never stored."""

    kind: Literal["synthesized"] = "synthesized"
    synthetic: Literal[True] = True


RoomView = Annotated[Union[PersistedRoom, SynthesizedRoom], Field(discriminator="kind")]


class ListingDetailResponse(ListingResponse):
    rooms: List[RoomView] = []


class DeleteListingResponse(CamelModel):
    message: str
    id: int
    warnings: List[str] = []


# --- Requests ---

class ListingForm(CamelModel):
    """
    Raw multipart form values for create/update. Values arrive as strings
    (or lists for repeated keys) and are decoded by services.catalog.decoding.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    property_type: Optional[str] = None
    price_per_month: Optional[Any] = None
    security_deposit: Optional[Any] = None
    application_fee: Optional[Any] = None
    beds: Optional[Any] = None
    baths: Optional[Any] = None
    square_feet: Optional[Any] = None
    is_pets_allowed: Optional[Any] = None
    is_parking_included: Optional[Any] = None
    amenities: Optional[Any] = None
    highlights: Optional[Any] = None

    # Location
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    manager_cognito_id: Optional[str] = None
    replace_photos: Optional[Any] = None
