"""
Geometry Adapter.
Converts between the datastore's spatial representation (WKT / EWKT text and
GeoAlchemy2 elements) and a plain latitude/longitude pair, and builds the
distance-radius predicate used by catalog search.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from geoalchemy2.elements import WKBElement, WKTElement
from geoalchemy2.shape import to_shape
from shapely import wkt
from shapely.errors import ShapelyError

from rentcatalog.errors import GeometryParseError

logger = logging.getLogger(__name__)

SRID = 4326

# 1 degree of latitude ~ 111 km. Only locally accurate: fine for city/country
# scale searches, wrong near the poles or for very large radii.
KM_PER_DEGREE = 111.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class WithinRadius:
    """Predicate fragment: location lies within `degrees` of the center."""

    center_lng: float
    center_lat: float
    degrees: float


def _strip_srid(text: str) -> str:
    # EWKT: "SRID=4326;POINT(18.4 -33.9)"
    if text.upper().startswith("SRID="):
        _, _, text = text.partition(";")
    return text.strip()


def to_lat_lng(spatial: Union[str, WKTElement, WKBElement, Any]) -> GeoPoint:
    """
    Parse a point geometry into a GeoPoint.

    Accepts WKT/EWKT text or a GeoAlchemy2 element. Raises GeometryParseError
    for empty, malformed or non-point values; stored coordinates are never
    defaulted.
    """
    if spatial is None:
        raise GeometryParseError("Empty spatial value", stage="geometry")

    try:
        if isinstance(spatial, WKBElement):
            shape = to_shape(spatial)
        else:
            text = spatial.data if isinstance(spatial, WKTElement) else spatial
            if not isinstance(text, str) or not text.strip():
                raise GeometryParseError("Empty spatial value", stage="geometry")
            shape = wkt.loads(_strip_srid(text))
    except GeometryParseError:
        raise
    except (ShapelyError, ValueError, TypeError) as e:
        raise GeometryParseError(
            f"Malformed spatial value: {spatial!r}", stage="geometry", cause=e
        )

    if shape.geom_type != "Point" or shape.is_empty:
        raise GeometryParseError(
            f"Expected a point geometry, got {shape.geom_type}", stage="geometry"
        )
    return GeoPoint(latitude=shape.y, longitude=shape.x)


def to_spatial_literal(longitude: float, latitude: float) -> WKTElement:
    """
    Build a spatial value for a write. Longitude first, matching the
    datastore's (x, y) convention.
    """
    # repr() keeps the shortest exact float representation
    return WKTElement(f"POINT({float(longitude)!r} {float(latitude)!r})", srid=SRID)


def radius_predicate(center_lng: float, center_lat: float, radius_km: float) -> WithinRadius:
    """Distance predicate in decimal degrees (radius_km / 111)."""
    return WithinRadius(
        center_lng=float(center_lng),
        center_lat=float(center_lat),
        degrees=float(radius_km) / KM_PER_DEGREE,
    )
