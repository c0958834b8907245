"""Renewly - Document Expiry Reminder API."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.log_level, json_output=not settings.debug)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create tables and start the reminder scheduler
    from app.database import Base, engine
    from app.scheduler import shutdown_scheduler, start_scheduler

    # Import all models so they're registered with Base
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    start_scheduler()

    yield

    shutdown_scheduler()


app = FastAPI(
    title=settings.app_name,
    description="Track document expiry dates and get renewal reminders before it is too late",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from app.api import dashboard, documents, profile, reminders  # noqa: E402

app.include_router(documents.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(reminders.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
