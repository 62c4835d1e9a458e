"""
Predicate Composer.
Turns a sparse ListingFilter into an ordered, deduplicated list of tagged
predicate fragments, and compiles those fragments into SQLAlchemy clauses.

Caller-supplied values only ever reach SQL as bound parameters: fragments
carry typed values, and column names come from a fixed whitelist.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple, Union

from sqlalchemy import and_, func, select, true
from sqlalchemy.sql.elements import ColumnElement

from rentcatalog.config import settings
from rentcatalog.models import Lease, Listing, Location
from rentcatalog.schemas.filters import ANY, ListingFilter
from rentcatalog.services.geo.geometry import SRID, WithinRadius, radius_predicate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdIn:
    ids: Tuple[int, ...]


@dataclass(frozen=True)
class AtLeast:
    field: str
    value: float


@dataclass(frozen=True)
class AtMost:
    field: str
    value: float


@dataclass(frozen=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True)
class ContainsAll:
    field: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class LeaseStartsBy:
    """At least one lease on the listing starts on or before `threshold`."""

    threshold: datetime


Predicate = Union[IdIn, AtLeast, AtMost, Equals, ContainsAll, LeaseStartsBy, WithinRadius]

# Only these columns can be targeted by a fragment
_COLUMNS = {
    "price_per_month": Listing.price_per_month,
    "beds": Listing.beds,
    "baths": Listing.baths,
    "square_feet": Listing.square_feet,
    "property_type": Listing.property_type,
    "amenities": Listing.amenities,
}

# properties.id is a 32-bit INTEGER
_MIN_ID, _MAX_ID = -(2**31), 2**31 - 1


# --- Wire value helpers ---

def _is_set(value: Any) -> bool:
    """Absent, blank and the "any" sentinel all mean no constraint."""
    if value is None:
        return False
    if isinstance(value, str):
        stripped = value.strip()
        return bool(stripped) and stripped.lower() != ANY
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def _number(value: Any) -> Optional[float]:
    if not _is_set(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric filter value {value!r}")
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _split(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return [item.strip() for item in items if item.strip()]


def _ids(value: Any) -> Tuple[int, ...]:
    ids = []
    for item in _split(value):
        try:
            listing_id = int(float(item))
        except (ValueError, OverflowError):
            logger.debug(f"Ignoring non-numeric id {item!r} in id allow-list")
            continue
        if not _MIN_ID <= listing_id <= _MAX_ID:
            logger.debug(f"Ignoring out-of-range id {item!r} in id allow-list")
            continue
        ids.append(listing_id)
    return tuple(ids)


def _date(value: Any) -> Optional[datetime]:
    """Parse an ISO date; unparseable dates yield None rather than an error."""
    if not _is_set(value):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring unparseable availability date {value!r}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# --- Composition ---

def compose_predicates(filters: ListingFilter, radius_km: Optional[float] = None) -> List[Predicate]:
    """Build the ordered, deduplicated fragment list for a filter."""
    predicates: List[Predicate] = []

    if _is_set(filters.favorite_ids):
        ids = _ids(filters.favorite_ids)
        if ids:
            predicates.append(IdIn(ids))

    for value, cls in ((filters.price_min, AtLeast), (filters.price_max, AtMost)):
        number = _number(value)
        if number is not None:
            predicates.append(cls("price_per_month", number))

    for value, field in ((filters.beds, "beds"), (filters.baths, "baths")):
        number = _number(value)
        if number is not None:
            predicates.append(AtLeast(field, number))

    for value, cls in ((filters.square_feet_min, AtLeast), (filters.square_feet_max, AtMost)):
        number = _number(value)
        if number is not None:
            predicates.append(cls("square_feet", number))

    if _is_set(filters.property_type):
        predicates.append(Equals("property_type", filters.property_type.strip()))

    if _is_set(filters.amenities):
        amenities = tuple(_split(filters.amenities))
        if amenities:
            predicates.append(ContainsAll("amenities", amenities))

    threshold = _date(filters.available_from)
    if threshold is not None:
        predicates.append(LeaseStartsBy(threshold))

    lat, lng = _number(filters.latitude), _number(filters.longitude)
    if lat is not None and lng is not None:
        radius = settings.search_radius_km if radius_km is None else radius_km
        predicates.append(radius_predicate(lng, lat, radius))

    return list(dict.fromkeys(predicates))


def to_clause(predicate: Predicate) -> ColumnElement:
    """Compile one fragment into a parameter-bound SQLAlchemy clause."""
    if isinstance(predicate, IdIn):
        return Listing.id.in_(predicate.ids)
    if isinstance(predicate, AtLeast):
        return _COLUMNS[predicate.field] >= predicate.value
    if isinstance(predicate, AtMost):
        return _COLUMNS[predicate.field] <= predicate.value
    if isinstance(predicate, Equals):
        return _COLUMNS[predicate.field] == predicate.value
    if isinstance(predicate, ContainsAll):
        return _COLUMNS[predicate.field].contains(list(predicate.values))
    if isinstance(predicate, LeaseStartsBy):
        return (
            select(Lease.id)
            .where(Lease.property_id == Listing.id, Lease.start_date <= predicate.threshold)
            .exists()
        )
    if isinstance(predicate, WithinRadius):
        center = func.ST_SetSRID(func.ST_MakePoint(predicate.center_lng, predicate.center_lat), SRID)
        return func.ST_DWithin(Location.coordinates, center, predicate.degrees)
    raise TypeError(f"Unknown predicate type: {type(predicate).__name__}")


def combine(predicates: Iterable[Predicate]) -> ColumnElement:
    """AND all fragments together; no fragments means match everything."""
    clauses = [to_clause(p) for p in predicates]
    if not clauses:
        return true()
    return and_(*clauses)
