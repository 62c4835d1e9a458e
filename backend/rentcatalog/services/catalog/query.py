"""
Catalog Query Service.
Search and single-listing reads, with stored points reshaped to
{latitude, longitude}.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rentcatalog.errors import NotFound
from rentcatalog.schemas.filters import ListingFilter
from rentcatalog.schemas.listing import ListingDetailResponse, ListingResponse
from rentcatalog.services.catalog import repository
from rentcatalog.services.catalog.predicates import combine, compose_predicates
from rentcatalog.services.catalog.views import listing_detail_response, listing_response
from rentcatalog.services.geo.geometry import to_lat_lng

logger = logging.getLogger(__name__)


class CatalogQueryService:
    def __init__(self, db: Session, radius_km: Optional[float] = None):
        self.db = db
        self.radius_km = radius_km

    def search(self, filters: ListingFilter) -> List[ListingResponse]:
        """
        Every listing matching all supplied filters. Unpaginated.
        A row whose point cannot be decoded fails the search (GeometryParseError).
        """
        predicates = compose_predicates(filters, radius_km=self.radius_km)
        logger.debug(f"Searching with {len(predicates)} predicate(s): {predicates}")

        rows = repository.search_listings(self.db, combine(predicates))
        results = [
            listing_response(listing, location, to_lat_lng(wkt))
            for listing, location, wkt in rows
        ]
        logger.info(f"Search returned {len(results)} listing(s)")
        return results

    def get_one(self, listing_id: int) -> ListingDetailResponse:
        """A listing with its location and rooms (one synthesized room if none are stored)."""
        listing = repository.get_listing(self.db, listing_id, with_rooms=True)
        if listing is None:
            raise NotFound("Property not found", stage="lookup", details={"id": listing_id})

        point = to_lat_lng(repository.location_wkt(self.db, listing.location_id))
        detail = listing_detail_response(listing, point)
        logger.info(f"Returning property {listing_id} with {len(detail.rooms)} room(s)")
        return detail
