"""Shared pytest fixtures and configuration."""

import os
from typing import Dict, List, Optional, Sequence
from unittest.mock import MagicMock

import pytest

# Set test environment variables before rentcatalog.config is imported
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test-maps-key")
os.environ.setdefault("AWS_BUCKET_NAME", "test-bucket")
os.environ.setdefault("AWS_REGION", "eu-north-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test-access-key")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("SEARCH_RADIUS_KM", "1000")

from rentcatalog.errors import GeocodeFailure, StorageFailure  # noqa: E402
from rentcatalog.models import Listing, Location  # noqa: E402
from rentcatalog.schemas.listing import ListingForm  # noqa: E402
from rentcatalog.services.external.google_maps import AddressComponents  # noqa: E402
from rentcatalog.services.external.s3_storage import (  # noqa: E402
    MediaFile,
    UploadResult,
    build_object_key,
)
from rentcatalog.services.geo.geometry import GeoPoint  # noqa: E402


class FakeGeocoder:
    """Stands in for GoogleMapsClient; returns a fixed point or fails."""

    def __init__(self, point: Optional[GeoPoint] = None, status: Optional[str] = None):
        self.point = point or GeoPoint(latitude=-33.9, longitude=18.4)
        self.status = status
        self.calls: List[AddressComponents] = []

    def geocode(self, components: AddressComponents) -> GeoPoint:
        self.calls.append(components)
        if self.status is not None:
            raise GeocodeFailure("Could not geocode the address", status=self.status, stage="geocode")
        return self.point

    def close(self) -> None:
        pass


class FakeStorage:
    """In-memory S3MediaStorage. `objects` maps URL -> bytes."""

    def __init__(self, fail_uploads: bool = False, fail_deletes: bool = False, acl_warning: bool = False):
        self.objects: Dict[str, bytes] = {}
        self.fail_uploads = fail_uploads
        self.fail_deletes = fail_deletes
        self.acl_warning = acl_warning
        self.upload_calls = 0
        self.deleted: List[str] = []

    def upload_many(self, files: Sequence[MediaFile], namespace: str) -> List[UploadResult]:
        self.upload_calls += 1
        if self.fail_uploads:
            raise StorageFailure("Error uploading files to S3: bucket unavailable", stage="media")
        results = []
        for f in files:
            key = build_object_key(namespace, f.filename)
            url = f"https://test-bucket.s3.eu-north-1.amazonaws.com/{key}"
            self.objects[url] = f.content
            warnings = [f"Could not confirm public-read ACL for {key}"] if self.acl_warning else []
            results.append(UploadResult(url=url, key=key, warnings=warnings))
        return results

    def delete_best_effort(self, urls: Sequence[str]) -> List[str]:
        failures = []
        for url in urls:
            if self.fail_deletes:
                failures.append(f"Failed to delete file from S3: {url}")
                continue
            self.objects.pop(url, None)
            self.deleted.append(url)
        return failures

    def close(self) -> None:
        pass


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def failing_geocoder():
    return FakeGeocoder(status="ZERO_RESULTS")


@pytest.fixture
def geocoder_factory():
    return FakeGeocoder


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def storage_factory():
    return FakeStorage


@pytest.fixture
def mock_db():
    """Mock SQLAlchemy session."""
    return MagicMock()


@pytest.fixture
def photo():
    return MediaFile(content=b"\x89PNG fake image", filename="front view.png", content_type="image/png")


@pytest.fixture
def cape_town_form():
    """Scenario listing: 1 Main St, Cape Town, no region, no postal code, R1000."""
    return ListingForm(
        name="Sea Point Flat",
        description="Two minutes from the promenade",
        property_type="Apartment",
        price_per_month="1000",
        security_deposit="500",
        application_fee="50",
        beds="2",
        baths="1",
        square_feet="700",
        is_pets_allowed="true",
        is_parking_included="false",
        amenities="WasherDryer,Pool",
        highlights="GreatView",
        address="1 Main St",
        city="Cape Town",
        country="South Africa",
        manager_cognito_id="manager-1",
    )


@pytest.fixture
def make_listing():
    """Factory for transient Listing + Location objects."""

    def _make(listing_id: int = 5, **overrides) -> Listing:
        location = Location(
            id=overrides.pop("location_id", 11),
            address="1 Main St",
            city="Cape Town",
            state=None,
            country="South Africa",
            postal_code=None,
        )
        values = dict(
            id=listing_id,
            name="Sea Point Flat",
            description="Two minutes from the promenade",
            property_type="Apartment",
            price_per_month=1000.0,
            security_deposit=500.0,
            application_fee=50.0,
            beds=2,
            baths=1.0,
            square_feet=700,
            is_pets_allowed=True,
            is_parking_included=False,
            amenities=["WasherDryer", "Pool"],
            highlights=["GreatView"],
            photo_urls=[],
            manager_cognito_id="manager-1",
        )
        values.update(overrides)
        listing = Listing(location_id=location.id, **values)
        listing.location = location
        return listing

    return _make
