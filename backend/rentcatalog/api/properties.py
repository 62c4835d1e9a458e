from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from pydantic import ValidationError as SchemaValidationError
from starlette.datastructures import UploadFile
from typing import List, Optional, Tuple

from rentcatalog.database import get_db
from rentcatalog.errors import ValidationError
from rentcatalog.schemas.filters import ListingFilter
from rentcatalog.schemas.listing import (
    DeleteListingResponse,
    ListingDetailResponse,
    ListingForm,
    ListingResponse,
)
from rentcatalog.services.catalog.ingestion import ListingIngestion
from rentcatalog.services.catalog.maintenance import ListingMaintenance
from rentcatalog.services.catalog.query import CatalogQueryService
from rentcatalog.services.external.google_maps import GoogleMapsClient
from rentcatalog.services.external.s3_storage import MediaFile, S3MediaStorage

router = APIRouter()

PHOTOS_FIELD = "photos"


# --- Dependencies ---

def get_geocoder(request: Request) -> GoogleMapsClient:
    return request.app.state.geocoder


def get_storage(request: Request) -> S3MediaStorage:
    return request.app.state.storage


def get_listing_filter(request: Request) -> ListingFilter:
    """Flat query string -> ListingFilter (camelCase keys, comma-separated lists)."""
    return ListingFilter.model_validate(dict(request.query_params))


async def read_listing_form(request: Request) -> Tuple[ListingForm, List[MediaFile]]:
    """Split a multipart submission into raw field values and attached photos."""
    form = await request.form()
    values = {}
    files: List[MediaFile] = []
    for key in form.keys():
        entries = form.getlist(key)
        uploads = [e for e in entries if isinstance(e, UploadFile)]
        for upload in uploads:
            files.append(MediaFile(
                content=await upload.read(),
                filename=upload.filename or "upload",
                content_type=upload.content_type,
            ))
        scalars = [e for e in entries if not isinstance(e, UploadFile)]
        if key == PHOTOS_FIELD or not scalars:
            continue
        values[key] = scalars[0] if len(scalars) == 1 else scalars
    try:
        listing_form = ListingForm.model_validate(values)
    except SchemaValidationError as e:
        raise ValidationError(
            "Invalid form fields",
            stage="validate",
            cause=e,
            details={"errors": e.errors(include_url=False, include_context=False)},
        )
    return listing_form, files


def _is_admin(role: Optional[str]) -> bool:
    return (role or "").lower() == "admin"


# --- Endpoints ---

@router.get("", response_model=List[ListingResponse])
def get_properties(
    filters: ListingFilter = Depends(get_listing_filter),
    db: Session = Depends(get_db),
):
    """Search the catalog. Every filter is optional; "any" means unconstrained."""
    return CatalogQueryService(db).search(filters)


@router.get("/{property_id}", response_model=ListingDetailResponse)
def get_property(property_id: int, db: Session = Depends(get_db)):
    """Single listing with location and rooms."""
    return CatalogQueryService(db).get_one(property_id)


@router.post("", response_model=ListingResponse, status_code=201)
async def create_property(
    request: Request,
    db: Session = Depends(get_db),
    geocoder: GoogleMapsClient = Depends(get_geocoder),
    storage: S3MediaStorage = Depends(get_storage),
):
    """Create a listing from a multipart form with optional `photos` files."""
    form, files = await read_listing_form(request)
    ingestion = ListingIngestion(db, geocoder, storage)
    return await run_in_threadpool(ingestion.create, form, files)


@router.put("/{property_id}", response_model=ListingResponse)
async def update_property(
    property_id: int,
    request: Request,
    x_user_role: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    geocoder: GoogleMapsClient = Depends(get_geocoder),
    storage: S3MediaStorage = Depends(get_storage),
):
    """Update a listing; set `replacePhotos=true` to replace instead of append photos."""
    form, files = await read_listing_form(request)
    maintenance = ListingMaintenance(db, geocoder, storage)
    return await run_in_threadpool(
        maintenance.update, property_id, form, files, _is_admin(x_user_role)
    )


@router.delete("/{property_id}", response_model=DeleteListingResponse)
def delete_property(
    property_id: int,
    manager_cognito_id: Optional[str] = Query(None, alias="managerCognitoId"),
    authorization: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    geocoder: GoogleMapsClient = Depends(get_geocoder),
    storage: S3MediaStorage = Depends(get_storage),
):
    """Delete a listing, its media, location and dependent leases/applications."""
    maintenance = ListingMaintenance(db, geocoder, storage)
    return maintenance.delete(
        property_id,
        authorization,
        claimed_owner=manager_cognito_id,
        is_admin=_is_admin(x_user_role),
    )
