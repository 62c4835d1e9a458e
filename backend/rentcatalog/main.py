import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rentcatalog.config import settings
from rentcatalog.database import init_db
from rentcatalog.errors import CatalogError
from rentcatalog.api import properties
from rentcatalog.services.external.google_maps import GoogleMapsClient
from rentcatalog.services.external.s3_storage import S3MediaStorage

# Configure logging so all loggers output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    stream=sys.stdout,
)
logging.getLogger("rentcatalog").setLevel(settings.log_level.upper())

if settings.log_file:
    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    logging.getLogger("rentcatalog").addHandler(file_handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and own the lifecycle of the outbound clients."""
    init_db()
    app.state.geocoder = GoogleMapsClient()
    app.state.storage = S3MediaStorage()
    if not app.state.geocoder.enabled:
        logger.warning("GOOGLE_MAPS_API_KEY not set; listing creation will fail at geocoding")
    logger.info("Rental catalog started")
    try:
        yield
    finally:
        app.state.geocoder.close()
        app.state.storage.close()
        logger.info("Rental catalog stopped")


app = FastAPI(
    title="Rental Catalog",
    description="Property catalog ingestion and geospatial search for the rental marketplace",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Render every catalog failure as a structured, stage-tagged message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed at {exc.stage}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routers
app.include_router(properties.router, prefix="/properties", tags=["Properties"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "version": "1.0.0"}
