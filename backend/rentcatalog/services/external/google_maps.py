"""
Google Maps Geocoding Client.
Resolves listing addresses to coordinates. One outbound call per lookup,
no retries; callers treat any failure as terminal for the step that needed it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from rentcatalog.config import settings
from rentcatalog.errors import GeocodeFailure
from rentcatalog.services.geo.geometry import GeoPoint

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


@dataclass(frozen=True)
class AddressComponents:
    address: str  # Street
    city: str
    country: str
    state: Optional[str] = None  # Region
    postal_code: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "postal_code": self.postal_code,
        }


def build_address_string(components: AddressComponents) -> str:
    """
    Join street, city, [region], [postal code], country.
    Region and postal code are skipped when blank.
    """
    parts = [components.address, components.city]
    if components.state and components.state.strip():
        parts.append(components.state)
    if components.postal_code and components.postal_code.strip():
        parts.append(components.postal_code)
    parts.append(components.country)
    return ", ".join(parts)


class GoogleMapsClient:
    """Client for the Google Maps geocoding API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.timeout = timeout if timeout is not None else settings.geocode_timeout_seconds
        self.session = session or requests.Session()
        self.enabled = bool(self.api_key)

    def close(self) -> None:
        self.session.close()

    def geocode(self, components: AddressComponents) -> GeoPoint:
        """
        Geocode address components to a GeoPoint.
        Raises GeocodeFailure unless the provider answers OK with at least one result.
        """
        address = build_address_string(components)

        if not self.enabled:
            raise GeocodeFailure(
                "Geocoding is not configured (GOOGLE_MAPS_API_KEY missing)",
                status="NOT_CONFIGURED",
                stage="geocode",
                details={"address": address},
            )

        try:
            resp = self.session.get(
                GEOCODE_URL,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data: Dict[str, Any] = resp.json()
        except requests.Timeout as e:
            logger.warning(f"Geocoding timed out for {address}: {e}")
            raise GeocodeFailure(
                "Geocoding request timed out", status="TIMEOUT", stage="geocode",
                cause=e, details={"address": address},
            )
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Geocoding request failed for {address}: {e}")
            raise GeocodeFailure(
                "Geocoding request failed", status="REQUEST_FAILED", stage="geocode",
                cause=e, details={"address": address},
            )

        status = str(data.get("status", ""))
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning(f"Could not geocode {address}: status={status}, results={len(results)}")
            raise GeocodeFailure(
                "Could not geocode the address", status=status, stage="geocode",
                details={"address": address},
            )

        try:
            location = results[0]["geometry"]["location"]
            point = GeoPoint(latitude=float(location["lat"]), longitude=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeFailure(
                "Geocoding response missing geometry.location", status=status,
                stage="geocode", cause=e, details={"address": address},
            )

        logger.info(f"Geocoded {address} -> ({point.latitude}, {point.longitude})")
        return point
