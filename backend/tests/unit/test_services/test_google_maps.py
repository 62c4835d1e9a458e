"""Tests for the Google Maps geocoding client."""

from unittest.mock import MagicMock

import pytest
import requests

from rentcatalog.errors import GeocodeFailure
from rentcatalog.services.external.google_maps import (
    GEOCODE_URL,
    AddressComponents,
    GoogleMapsClient,
    build_address_string,
)
from rentcatalog.services.geo.geometry import GeoPoint

CAPE_TOWN = AddressComponents(address="1 Main St", city="Cape Town", country="South Africa")


def mock_session(payload=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value.json.return_value = payload
    return session


@pytest.mark.unit
def test_address_string_skips_missing_region_and_postal_code():
    """Test address joining without optional parts."""
    assert build_address_string(CAPE_TOWN) == "1 Main St, Cape Town, South Africa"


@pytest.mark.unit
def test_address_string_full():
    """Test address joining order with every part present."""
    components = AddressComponents(
        address="12 Queen St", city="Auckland", country="New Zealand", state="Auckland Region", postal_code="1010"
    )

    assert build_address_string(components) == "12 Queen St, Auckland, Auckland Region, 1010, New Zealand"


@pytest.mark.unit
def test_address_string_skips_blank_region():
    """Test that whitespace-only optional parts are skipped."""
    components = AddressComponents(address="1 Main St", city="Cape Town", country="South Africa", state="  ")

    assert build_address_string(components) == "1 Main St, Cape Town, South Africa"


@pytest.mark.unit
def test_geocode_returns_first_result():
    """Test a successful lookup."""
    session = mock_session({
        "status": "OK",
        "results": [
            {"geometry": {"location": {"lat": -33.9, "lng": 18.4}}},
            {"geometry": {"location": {"lat": 1.0, "lng": 2.0}}},
        ],
    })
    client = GoogleMapsClient(api_key="key", timeout=3, session=session)

    point = client.geocode(CAPE_TOWN)

    assert point == GeoPoint(latitude=-33.9, longitude=18.4)
    session.get.assert_called_once_with(
        GEOCODE_URL,
        params={"address": "1 Main St, Cape Town, South Africa", "key": "key"},
        timeout=3,
    )


@pytest.mark.unit
def test_geocode_zero_results():
    """Test that a non-OK status raises with the provider status."""
    client = GoogleMapsClient(api_key="key", session=mock_session({"status": "ZERO_RESULTS", "results": []}))

    with pytest.raises(GeocodeFailure) as exc_info:
        client.geocode(CAPE_TOWN)

    assert exc_info.value.status == "ZERO_RESULTS"
    assert exc_info.value.stage == "geocode"
    assert exc_info.value.details["address"] == "1 Main St, Cape Town, South Africa"
    assert exc_info.value.details["provider_status"] == "ZERO_RESULTS"


@pytest.mark.unit
def test_geocode_ok_without_results():
    """Test that OK with an empty result list still fails."""
    client = GoogleMapsClient(api_key="key", session=mock_session({"status": "OK", "results": []}))

    with pytest.raises(GeocodeFailure) as exc_info:
        client.geocode(CAPE_TOWN)

    assert exc_info.value.status == "OK"


@pytest.mark.unit
def test_geocode_missing_geometry():
    """Test a result without geometry.location."""
    client = GoogleMapsClient(api_key="key", session=mock_session({"status": "OK", "results": [{"geometry": {}}]}))

    with pytest.raises(GeocodeFailure):
        client.geocode(CAPE_TOWN)


@pytest.mark.unit
def test_geocode_timeout():
    """Test that a timeout is reported, not retried."""
    session = mock_session(side_effect=requests.Timeout("slow"))
    client = GoogleMapsClient(api_key="key", session=session)

    with pytest.raises(GeocodeFailure) as exc_info:
        client.geocode(CAPE_TOWN)

    assert exc_info.value.status == "TIMEOUT"
    assert session.get.call_count == 1


@pytest.mark.unit
def test_geocode_connection_error():
    """Test transport failures."""
    client = GoogleMapsClient(api_key="key", session=mock_session(side_effect=requests.ConnectionError("down")))

    with pytest.raises(GeocodeFailure) as exc_info:
        client.geocode(CAPE_TOWN)

    assert exc_info.value.status == "REQUEST_FAILED"


@pytest.mark.unit
def test_geocode_without_api_key():
    """Test that an unconfigured client never calls out."""
    session = MagicMock()
    client = GoogleMapsClient(api_key="", session=session)

    with pytest.raises(GeocodeFailure) as exc_info:
        client.geocode(CAPE_TOWN)

    assert client.enabled is False
    assert exc_info.value.status == "NOT_CONFIGURED"
    session.get.assert_not_called()
