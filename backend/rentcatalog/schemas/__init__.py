from rentcatalog.schemas.listing import (
    Coordinates,
    LocationResponse,
    ListingResponse,
    ListingDetailResponse,
    DeleteListingResponse,
    PersistedRoom,
    SynthesizedRoom,
    RoomView,
    ListingForm,
    PropertyType,
    RoomType,
)
from rentcatalog.schemas.filters import ListingFilter
