"""
Listing Update/Delete.

Update re-geocodes only when a supplied address component differs from the
stored one, and either appends new photos or replaces the old set.
Delete removes media first (best effort), then leases, applications, the
listing and its location in one transaction. A failed transaction rolls back
all four deletions; media already removed from storage is not restored.
"""

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentcatalog.config import settings
from rentcatalog.errors import (
    AuthorizationError,
    GeocodeFailure,
    MissingCredentials,
    NotFound,
    PersistenceFailure,
    TransactionFailure,
)
from rentcatalog.models import Listing, Location
from rentcatalog.schemas.listing import DeleteListingResponse, ListingForm, ListingResponse
from rentcatalog.services.catalog import repository
from rentcatalog.services.catalog.decoding import decode_listing_update, parse_bool
from rentcatalog.services.catalog.views import listing_response
from rentcatalog.services.external.google_maps import AddressComponents, GoogleMapsClient
from rentcatalog.services.external.s3_storage import MediaFile, S3MediaStorage
from rentcatalog.services.geo.geometry import to_lat_lng

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("address", "city", "state", "country", "postal_code")


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Presence/format check only; verifying the token is the auth layer's job."""
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token
    raise MissingCredentials("Unauthorized - Missing authentication token", stage="authorize")


def authorize_owner(listing: Listing, claimed_owner: Optional[str], is_admin: bool, action: str) -> None:
    if claimed_owner and claimed_owner != listing.manager_cognito_id and not is_admin:
        raise AuthorizationError(
            f"Unauthorized to {action} this property",
            stage="authorize",
            details={"id": listing.id},
        )


def supplied_address_changes(form: ListingForm) -> Dict[str, str]:
    changes = {}
    for name in ADDRESS_FIELDS:
        value = getattr(form, name)
        if isinstance(value, str) and value.strip():
            changes[name] = value.strip()
    return changes


def address_changed(location: Location, changes: Dict[str, str]) -> bool:
    return any(getattr(location, name) != value for name, value in changes.items())


class ListingMaintenance:
    """Updates and deletes existing listings."""

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

    def _load(self, listing_id: int) -> Listing:
        listing = repository.get_listing(self.db, listing_id)
        if listing is None:
            raise NotFound("Property not found", stage="lookup", details={"id": listing_id})
        return listing

    def update(
        self,
        listing_id: int,
        form: ListingForm,
        files: Sequence[MediaFile] = (),
        is_admin: bool = False,
    ) -> ListingResponse:
        existing = self._load(listing_id)
        authorize_owner(existing, form.manager_cognito_id, is_admin, "update")
        logger.info(f"Updating property {listing_id} ({len(files)} new file(s))")

        # Media
        old_urls = list(existing.photo_urls or [])
        new_urls: List[str] = []
        warnings: List[str] = []
        replace = parse_bool(form.replace_photos) if form.replace_photos is not None else False
        if files:
            uploads = self.storage.upload_many(files, self.namespace)
            new_urls = [u.url for u in uploads]
            warnings.extend(w for u in uploads for w in u.warnings)
        photo_urls = new_urls if (files and replace) else old_urls + new_urls

        # Location
        location = existing.location
        changes = supplied_address_changes(form)
        try:
            if changes and address_changed(location, changes):
                merged = {name: changes.get(name, getattr(location, name)) for name in ADDRESS_FIELDS}
                point = self.geocoder.geocode(AddressComponents(**merged))
                repository.update_location(self.db, location, changes, point=point)
                logger.info(f"Property {listing_id}: address changed, location re-geocoded")
            elif changes:
                repository.update_location(self.db, location, changes)
        except GeocodeFailure as e:
            self.db.rollback()
            if new_urls:
                e.details["orphaned_media"] = new_urls
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(
                f"Error updating location: {e}", stage="update_location", cause=e,
                details={"orphaned_media": new_urls},
            )

        # Listing fields
        try:
            for name, value in decode_listing_update(form, existing).items():
                setattr(existing, name, value)
            existing.photo_urls = photo_urls
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(
                f"Error updating property: {e}", stage="update_listing", cause=e,
                details={"orphaned_media": new_urls},
            )

        # Old media goes only once nothing references it any more
        if files and replace and old_urls:
            failures = self.storage.delete_best_effort(old_urls)
            for message in failures:
                logger.warning(f"Error deleting old photo: {message}")
            warnings.extend(failures)

        point = to_lat_lng(repository.location_wkt(self.db, existing.location_id))
        logger.info(f"Property {listing_id} updated")
        return listing_response(existing, existing.location, point, warnings=warnings)

    def delete(
        self,
        listing_id: int,
        authorization: Optional[str],
        claimed_owner: Optional[str] = None,
        is_admin: bool = False,
    ) -> DeleteListingResponse:
        parse_bearer_token(authorization)
        existing = self._load(listing_id)
        authorize_owner(existing, claimed_owner, is_admin, "delete")
        logger.info(f"Deleting property {listing_id}")

        media = list(existing.photo_urls or [])
        failures = self.storage.delete_best_effort(media)
        for message in failures:
            logger.warning(f"Error deleting photo from S3: {message}")

        try:
            repository.delete_listing_rows(self.db, existing)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transaction error deleting property {listing_id}: {e}")
            raise TransactionFailure(
                f"Error deleting property: {e}",
                stage="delete_transaction",
                cause=e,
                details={"id": listing_id, "media_deletion_attempted": media},
            )

        logger.info(f"Property {listing_id} deleted successfully")
        return DeleteListingResponse(
            message="Property deleted successfully", id=listing_id, warnings=failures
        )
