"""Shape ORM rows into API responses."""

from datetime import datetime, timezone
from typing import List, Optional

from rentcatalog.models import Listing, Location, Room
from rentcatalog.schemas.listing import (
    Coordinates,
    ListingDetailResponse,
    ListingResponse,
    LocationResponse,
    PersistedRoom,
    RoomType,
    SynthesizedRoom,
)
from rentcatalog.services.geo.geometry import GeoPoint

_LISTING_COLUMNS = (
    "id", "name", "description", "property_type",
    "price_per_month", "security_deposit", "application_fee",
    "beds", "baths", "square_feet", "is_pets_allowed", "is_parking_included",
    "amenities", "highlights", "photo_urls", "manager_cognito_id", "location_id",
    "posted_date", "created_at", "updated_at",
)

_ROOM_COLUMNS = (
    "id", "property_id", "name", "description", "price_per_month", "security_deposit",
    "square_feet", "photo_urls", "is_available", "available_from", "room_type",
    "capacity", "amenities", "features", "created_at", "updated_at",
)


def location_response(location: Location, point: GeoPoint) -> LocationResponse:
    return LocationResponse(
        id=location.id,
        address=location.address,
        city=location.city,
        state=location.state,
        country=location.country,
        postal_code=location.postal_code,
        coordinates=Coordinates(**point.as_dict()),
    )


def listing_response(
    listing: Listing,
    location: Location,
    point: GeoPoint,
    warnings: Optional[List[str]] = None,
) -> ListingResponse:
    data = {name: getattr(listing, name) for name in _LISTING_COLUMNS}
    return ListingResponse(
        **data,
        location=location_response(location, point),
        warnings=list(warnings or []),
    )


def synthesize_room(listing: Listing) -> SynthesizedRoom:
    """Transient room mirroring the listing, for listings without persisted rooms."""
    return SynthesizedRoom(
        id=listing.id * 1000,
        property_id=listing.id,
        name=listing.name or "Default Room",
        description=listing.description or "No description available",
        price_per_month=listing.price_per_month or 0,
        security_deposit=listing.security_deposit or 0,
        square_feet=listing.square_feet or 0,
        photo_urls=list(listing.photo_urls or []),
        is_available=True,
        available_from=datetime.now(timezone.utc),
        room_type=RoomType.PRIVATE.value,
        capacity=listing.beds or 1,
        amenities=list(listing.amenities or []),
        features=list(listing.highlights or []),
    )


def persisted_room(room: Room) -> PersistedRoom:
    return PersistedRoom(**{name: getattr(room, name) for name in _ROOM_COLUMNS})


def listing_detail_response(listing: Listing, point: GeoPoint) -> ListingDetailResponse:
    rooms = [persisted_room(room) for room in listing.rooms or []]
    if not rooms:
        rooms = [synthesize_room(listing)]
    base = listing_response(listing, listing.location, point)
    return ListingDetailResponse(**base.model_dump(), rooms=rooms)
