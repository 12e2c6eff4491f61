"""Native Calendar Web Application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from native_calendar.core.config import settings
from native_calendar.core.database import create_db_and_tables
from native_calendar.routes import calendar

# Configure logging
log_dir = Path(settings.log_dir).expanduser()
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


def seed_local_calendar():
    """Make sure the local store has a writable primary calendar."""
    from native_calendar.backends.local import LocalCalendarBackend

    LocalCalendarBackend().add_calendar(
        settings.default_calendar_id, "Local", is_primary=True
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info(f"Starting Native Calendar ({settings.backend} backend, {settings.platform_family} family)")
    if settings.backend == "local":
        create_db_and_tables()
        seed_local_calendar()
    yield
    # Shutdown
    logger.info("Native Calendar application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Schedule calendar events through provider and event-store calendar backends",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(calendar.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
