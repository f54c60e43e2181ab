import os
import asyncio
import logging

# Configure logging before any other imports
debug_mode = os.getenv("DEBUG", "false").lower() == "true"
logging.basicConfig(
    level=logging.DEBUG if debug_mode else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
)

import importlib.metadata
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.routes import chapters, config, convert
from .app import get_app_state
from .core.config import get_app_config, get_settings

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()


def get_app_version():
    """Get the application version from package metadata"""
    try:
        return importlib.metadata.version("chaptercrack")
    except importlib.metadata.PackageNotFoundError:
        return "vDEV"


# noinspection PyUnusedLocal
@asynccontextmanager
async def lifespan(chaptercrack_app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Starting chaptercrack")
    logger.info(f"Media base: {settings.MEDIA_BASE}")

    detection = get_app_config().detection
    logger.info(
        f"Detection defaults: noise={detection.noise_threshold}, duration={detection.min_silence_duration}"
    )

    get_app_state()
    logger.info("App state initialized")

    yield

    logger.info("Shutting down chaptercrack")
    app_state = get_app_state()
    if app_state.running:
        logger.warning("Shutting down while a conversion is still running")


app = FastAPI(
    title="chaptercrack",
    description="Split a long recording into chapters at silences and write an M4B audiobook",
    version=get_app_version(),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.include_router(chapters.router, prefix="/api", tags=["chapters"])
app.include_router(convert.router, prefix="/api", tags=["convert"])
app.include_router(config.router, prefix="/api", tags=["config"])


@app.get("/api")
async def api_root():
    """API root endpoint"""
    return {
        "message": "chaptercrack API",
        "version": get_app_version(),
        "status": "running",
        "endpoints": {
            "docs": "/docs",
            "redoc": "/redoc",
            "health": "/health",
            "preview": "/api/chapters/preview",
            "convert": "/api/convert",
            "config": "/api/config/detection",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    app_state = get_app_state()
    return {
        "status": "healthy",
        "conversion_running": app_state.running,
        "version": get_app_version(),
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.middleware("http")
async def log_requests(request, call_next):
    """Log HTTP requests"""
    start_time = asyncio.get_event_loop().time()

    if request.url.path not in ["/health", "/favicon.ico"]:
        logger.info(f"{request.method} {request.url.path}")

    response = await call_next(request)

    process_time = asyncio.get_event_loop().time() - start_time
    if request.url.path.startswith("/api/") and process_time > 1.0:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {process_time:.2f}s")

    return response


def run():
    import uvicorn

    uvicorn.run(
        "chaptercrack.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )


if __name__ == "__main__":
    run()
