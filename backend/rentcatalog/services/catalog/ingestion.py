"""
Listing Ingestion.
Orchestrates a new listing submission: validate -> upload media -> geocode ->
persist location + listing -> respond with coordinates.

The location and listing rows are committed together, so a failed listing
write never leaves a location behind. Media uploaded before a later failure is
NOT cleaned up; its URLs are reported in the error details instead.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentcatalog.config import settings
from rentcatalog.errors import GeocodeFailure, PersistenceFailure
from rentcatalog.schemas.listing import ListingForm, ListingResponse
from rentcatalog.services.catalog import repository
from rentcatalog.services.catalog.decoding import decode_new_listing
from rentcatalog.services.catalog.views import listing_response
from rentcatalog.services.external.google_maps import GoogleMapsClient
from rentcatalog.services.external.s3_storage import MediaFile, S3MediaStorage
from rentcatalog.services.geo.geometry import to_lat_lng

logger = logging.getLogger(__name__)


class ListingIngestion:
    """Creates listings from form submissions."""

    def __init__(
        self,
        db: Session,
        geocoder: GoogleMapsClient,
        storage: S3MediaStorage,
        namespace: Optional[str] = None,
    ):
        self.db = db
        self.geocoder = geocoder
        self.storage = storage
        self.namespace = namespace or settings.property_media_namespace

    def create(self, form: ListingForm, files: Sequence[MediaFile] = ()) -> ListingResponse:
        # Step 1: validate and decode; raises ValidationError before any side effect
        submission = decode_new_listing(form)
        logger.info(
            f"Creating listing for manager {submission.manager_cognito_id} "
            f"at {submission.address.address}, {submission.address.city} ({len(files)} file(s))"
        )

        # Step 2: media
        photo_urls: List[str] = []
        warnings: List[str] = []
        if files:
            uploads = self.storage.upload_many(files, self.namespace)
            photo_urls = [u.url for u in uploads]
            warnings = [w for u in uploads for w in u.warnings]
            logger.info(f"Uploaded {len(photo_urls)} photo(s)")

        # Step 3: geocode
        try:
            point = self.geocoder.geocode(submission.address)
        except GeocodeFailure as e:
            if photo_urls:
                e.details["orphaned_media"] = photo_urls
                logger.error(f"Geocoding failed after upload; orphaned media: {photo_urls}")
            raise

        # Steps 4 and 5: location and listing, one transaction
        try:
            location = repository.insert_location(self.db, submission.address, point)
            listing = repository.insert_listing(
                self.db,
                submission.fields,
                location_id=location.id,
                manager_cognito_id=submission.manager_cognito_id,
                photo_urls=photo_urls,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating listing: {e}")
            raise PersistenceFailure(
                f"Error creating property: {e}",
                stage="persist_listing",
                cause=e,
                details={"orphaned_media": photo_urls},
            )

        # Step 6: respond with the stored point
        stored = repository.location_wkt(self.db, location.id)
        stored_point = to_lat_lng(stored) if stored else point
        logger.info(f"Listing {listing.id} created at location {location.id}")
        return listing_response(listing, location, stored_point, warnings=warnings)
