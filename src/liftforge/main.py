"""FastAPI application for the LiftForge gamification engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.deps import get_gamification_db
from .api.exception_handlers import register_exception_handlers
from .api.routes import gamification
from .config import get_settings
from .utils.log_sanitizer import install_log_sanitizer

# Must run before any logging occurs
install_log_sanitizer()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # basicConfig may have added a handler after the sanitizer was installed
    install_log_sanitizer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting LiftForge v{__version__}")
    logger.info(f"Database: {settings.database_path}")
    logger.info(f"Default timezone: {settings.default_timezone}")

    db = get_gamification_db()
    logger.info(f"Achievements ready ({len(db.get_achievements())} defined)")

    yield

    logger.info("Shutting down LiftForge")


app = FastAPI(
    title="LiftForge API",
    description="Gamification engine for strength training: XP, levels, PRs, streaks and badges",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(gamification.router, prefix="/api/v1/gamification", tags=["gamification"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "LiftForge API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "liftforge.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
