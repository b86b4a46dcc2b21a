"""FastAPI application entry point."""
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from laundromat.config import settings
from laundromat.database import Base, engine

# Import routers
from laundromat.routers import laundry, profiles, collections, notifications

# Import all models so Base.metadata knows about them
from laundromat.models.laundry_request import LaundryRequest        # noqa: F401
from laundromat.models.status_transition import StatusTransition    # noqa: F401
from laundromat.models.profile import Profile                       # noqa: F401
from laundromat.models.saved_photo import SavedPhoto                # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Laundromat",
    description="Laundry drop-off, status tracking and signed collection for a residential community",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(profiles.router, prefix="/api/profile", tags=["Profiles"])
app.include_router(laundry.router, prefix="/api/laundry", tags=["Laundry"])
app.include_router(collections.router, prefix="/api/collections", tags=["Collections"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])

# Uploaded photos are served back by their stored relative path
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.on_event("startup")
def on_startup():
    """Create the upload directory, and database tables in SQLite dev mode."""
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
