"""Datastore helpers for listings and their locations."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.sql.elements import ColumnElement

from rentcatalog.models import Application, Lease, Listing, Location
from rentcatalog.services.external.google_maps import AddressComponents
from rentcatalog.services.geo.geometry import GeoPoint, to_spatial_literal

logger = logging.getLogger(__name__)


def insert_location(db: Session, components: AddressComponents, point: GeoPoint) -> Location:
    """Add a location row and flush to obtain its id. Caller commits."""
    location = Location(
        **components.as_dict(),
        coordinates=to_spatial_literal(point.longitude, point.latitude),
    )
    db.add(location)
    db.flush()
    return location


def insert_listing(
    db: Session,
    fields: Dict[str, Any],
    location_id: int,
    manager_cognito_id: str,
    photo_urls: List[str],
) -> Listing:
    """Add a listing row and flush to obtain its id. Caller commits."""
    listing = Listing(
        **fields,
        photo_urls=list(photo_urls),
        location_id=location_id,
        manager_cognito_id=manager_cognito_id,
    )
    db.add(listing)
    db.flush()
    return listing


def get_listing(db: Session, listing_id: int, with_rooms: bool = False) -> Optional[Listing]:
    query = db.query(Listing).options(joinedload(Listing.location))
    if with_rooms:
        query = query.options(selectinload(Listing.rooms))
    return query.filter(Listing.id == listing_id).first()


def location_wkt(db: Session, location_id: int) -> Optional[str]:
    """Current point of a location as WKT text."""
    return db.execute(
        select(func.ST_AsText(Location.coordinates)).where(Location.id == location_id)
    ).scalar()


def search_listings(db: Session, where: ColumnElement) -> List[Tuple[Listing, Location, str]]:
    """Listings joined to their location, with the point as WKT."""
    stmt = (
        select(Listing, Location, func.ST_AsText(Location.coordinates).label("coordinates_wkt"))
        .join(Location, Listing.location_id == Location.id)
        .where(where)
        .order_by(Listing.id)
    )
    return [(row[0], row[1], row[2]) for row in db.execute(stmt).all()]


def update_location(
    db: Session,
    location: Location,
    changes: Dict[str, Optional[str]],
    point: Optional[GeoPoint] = None,
) -> Location:
    """Apply address changes; the point only moves when a new geocode is given."""
    for key, value in changes.items():
        setattr(location, key, value)
    if point is not None:
        location.coordinates = to_spatial_literal(point.longitude, point.latitude)
    db.flush()
    return location


def delete_listing_rows(db: Session, listing: Listing) -> None:
    """
    Delete leases, applications, the listing and its location, in that order.
    Runs inside the caller's transaction; the caller commits or rolls back.
    """
    listing_id, location_id = listing.id, listing.location_id
    leases = db.query(Lease).filter(Lease.property_id == listing_id).delete(synchronize_session=False)
    applications = (
        db.query(Application).filter(Application.property_id == listing_id).delete(synchronize_session=False)
    )
    db.query(Listing).filter(Listing.id == listing_id).delete(synchronize_session=False)
    db.query(Location).filter(Location.id == location_id).delete(synchronize_session=False)
    db.flush()
    logger.debug(
        f"Listing {listing_id}: removed {leases} lease(s), {applications} application(s) and location {location_id}"
    )
