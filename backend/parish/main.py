"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from parish.config import settings
from parish.database import Base, engine
from parish.errors import register_exception_handlers

# Import routers
from parish.routers import masses, reservations, activities, notifications

# Import all models so Base.metadata knows about them
from parish.models.mass import Mass                    # noqa: F401
from parish.models.reservation import Reservation      # noqa: F401
from parish.models.activity import ActivityRecord      # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Parish Reservations",
    description="Mass intention and thanksgiving bookings with capacity-bounded slots",
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

register_exception_handlers(app)

# Register routers
app.include_router(masses.router, prefix="/api/masses", tags=["Masses"])
app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(activities.router, prefix="/api/activities", tags=["Activities"])
app.include_router(notifications.router, prefix="/api", tags=["Notifications"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
