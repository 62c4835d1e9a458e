"""Tests for listing ingestion."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from rentcatalog.errors import GeocodeFailure, PersistenceFailure, StorageFailure, ValidationError
from rentcatalog.models import Listing, Location
from rentcatalog.schemas.listing import Coordinates, ListingForm
from rentcatalog.services.catalog import repository
from rentcatalog.services.catalog.ingestion import ListingIngestion
from rentcatalog.services.catalog.views import location_response
from rentcatalog.services.external.google_maps import AddressComponents
from rentcatalog.services.geo.geometry import GeoPoint, to_lat_lng


@pytest.fixture
def repo():
    """Patch datastore helpers with in-memory stand-ins."""
    with patch("rentcatalog.services.catalog.ingestion.repository") as repository:
        def insert_location(db, components, point):
            return Location(id=11, **components.as_dict())

        def insert_listing(db, fields, location_id, manager_cognito_id, photo_urls):
            return Listing(
                id=5,
                location_id=location_id,
                manager_cognito_id=manager_cognito_id,
                photo_urls=list(photo_urls),
                **fields,
            )

        repository.insert_location.side_effect = insert_location
        repository.insert_listing.side_effect = insert_listing
        repository.location_wkt.return_value = "POINT(18.4 -33.9)"
        yield repository


@pytest.mark.unit
def test_create_cape_town_listing(repo, mock_db, fake_geocoder, fake_storage, cape_town_form):
    """Test the end-to-end creation flow without photos."""
    ingestion = ListingIngestion(mock_db, fake_geocoder, fake_storage)

    response = ingestion.create(cape_town_form)

    assert fake_geocoder.calls[0].address == "1 Main St"
    assert fake_geocoder.calls[0].state is None
    assert response.id == 5
    assert response.price_per_month == 1000
    assert response.location.coordinates == Coordinates(latitude=-33.9, longitude=18.4)
    assert response.location.city == "Cape Town"
    assert response.photo_urls == []
    assert fake_storage.upload_calls == 0
    mock_db.commit.assert_called_once()

    body = response.model_dump(by_alias=True)
    assert body["pricePerMonth"] == 1000
    assert body["location"]["coordinates"] == {"latitude": -33.9, "longitude": 18.4}


@pytest.mark.unit
def test_create_with_photos(repo, mock_db, fake_geocoder, fake_storage, cape_town_form, photo):
    """Test that uploaded URLs are stored on the listing."""
    response = ListingIngestion(mock_db, fake_geocoder, fake_storage).create(cape_town_form, [photo, photo])

    assert len(response.photo_urls) == 2
    assert len(set(response.photo_urls)) == 2
    assert set(response.photo_urls) == set(fake_storage.objects)
    assert all(url.startswith("https://test-bucket.s3.eu-north-1.amazonaws.com/properties/") for url in response.photo_urls)
    assert repo.insert_listing.call_args.kwargs["photo_urls"] == response.photo_urls


@pytest.mark.unit
def test_create_reports_acl_warnings(repo, mock_db, fake_geocoder, storage_factory, cape_town_form, photo):
    """Test that ACL confirmation failures surface as warnings."""
    storage = storage_factory(acl_warning=True)
    response = ListingIngestion(mock_db, fake_geocoder, storage).create(cape_town_form, [photo])

    assert len(response.warnings) == 1


@pytest.mark.unit
def test_geocode_failure_persists_nothing(repo, mock_db, failing_geocoder, fake_storage, cape_town_form, photo):
    """Test that a failed geocode writes no rows and reports orphaned media."""
    ingestion = ListingIngestion(mock_db, failing_geocoder, fake_storage)

    with pytest.raises(GeocodeFailure) as exc_info:
        ingestion.create(cape_town_form, [photo])

    repo.insert_location.assert_not_called()
    repo.insert_listing.assert_not_called()
    mock_db.commit.assert_not_called()
    orphaned = exc_info.value.details["orphaned_media"]
    assert len(orphaned) == 1
    assert orphaned[0] in fake_storage.objects


@pytest.mark.unit
def test_missing_fields_have_no_side_effects(repo, mock_db, fake_geocoder, fake_storage, photo):
    """Test that validation runs before upload and geocoding."""
    form = ListingForm(address="1 Main St", country="South Africa", manager_cognito_id="manager-1")

    with pytest.raises(ValidationError) as exc_info:
        ListingIngestion(mock_db, fake_geocoder, fake_storage).create(form, [photo])

    assert exc_info.value.details["missing_fields"]["city"] is True
    assert fake_storage.upload_calls == 0
    assert fake_geocoder.calls == []
    repo.insert_location.assert_not_called()


@pytest.mark.unit
def test_upload_failure_stops_before_geocode(repo, mock_db, fake_geocoder, storage_factory, cape_town_form, photo):
    """Test that a storage failure aborts the flow."""
    with pytest.raises(StorageFailure):
        ListingIngestion(mock_db, fake_geocoder, storage_factory(fail_uploads=True)).create(cape_town_form, [photo])

    assert fake_geocoder.calls == []
    repo.insert_location.assert_not_called()


@pytest.mark.unit
def test_listing_write_failure_rolls_back(repo, mock_db, fake_geocoder, fake_storage, cape_town_form, photo):
    """Test that a failed listing insert rolls back the location too."""
    repo.insert_listing.side_effect = OperationalError("INSERT INTO properties", {}, Exception("connection lost"))

    with pytest.raises(PersistenceFailure) as exc_info:
        ListingIngestion(mock_db, fake_geocoder, fake_storage).create(cape_town_form, [photo])

    mock_db.rollback.assert_called_once()
    mock_db.commit.assert_not_called()
    assert exc_info.value.stage == "persist_listing"
    assert exc_info.value.details["orphaned_media"] == list(fake_storage.objects)


@pytest.mark.unit
def test_insert_location_copies_components(mock_db):
    """Test the location row carries every address component and the point."""
    components = AddressComponents(
        address="1 Main St", city="Cape Town", country="South Africa", state="Western Cape", postal_code="8001"
    )

    location = repository.insert_location(mock_db, components, GeoPoint(latitude=-33.9, longitude=18.4))

    assert (location.address, location.city, location.state, location.country, location.postal_code) == (
        "1 Main St", "Cape Town", "Western Cape", "South Africa", "8001"
    )
    assert to_lat_lng(location.coordinates) == GeoPoint(latitude=-33.9, longitude=18.4)
    mock_db.add.assert_called_once_with(location)
    mock_db.flush.assert_called_once()


@pytest.mark.unit
def test_location_response_coordinates():
    """Test the response exposes latitude and longitude from the point."""
    location = Location(id=11, address="1 Main St", city="Cape Town", country="South Africa")

    response = location_response(location, GeoPoint(latitude=-33.9, longitude=18.4))

    assert response.coordinates == Coordinates(latitude=-33.9, longitude=18.4)
    assert response.model_dump(by_alias=True)["coordinates"] == {"latitude": -33.9, "longitude": 18.4}
