"""
Best Edit Clips - FastAPI Backend
Main application entry point with error mapping, static media and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import settings, validate_security_settings
from database import engine, Base, async_session_maker
import models  # noqa: F401
from routers import (
    health,
    auth,
    videos,
    categories,
    discovery,
    bootstrap,
)
from services.catalog_store import SqlCatalogStore, get_memory_store
from services.errors import CatalogError, StorageError, ValidationError
from services.media_store import upload_root
from services.seed import seed_default_data

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _seed_catalog() -> None:
    if settings.CATALOG_BACKEND == "memory":
        result = await seed_default_data(get_memory_store())
    else:
        async with async_session_maker() as session:
            result = await seed_default_data(SqlCatalogStore(session))
    print(f"🌱 Catalog seeded: categories={result['categories']} sample_videos={result['videos']}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Best Edit Clips API...")
    validate_security_settings()
    upload_root()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    if settings.SEED_ON_STARTUP:
        try:
            await _seed_catalog()
        except CatalogError as exc:
            print(f"⚠️ Catalog seeding skipped: {exc.message}")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Best Edit Clips API",
    description="Catalog of copyright-free video edits with search, trending and engagement counters",
    version=settings.API_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if isinstance(exc, StorageError):
        logger.error("storage_error path=%s error=%s", request.url.path, exc.message, exc_info=exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    content = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"detail": f"{field}: {message}" if field else message, "field": field},
    )


# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(bootstrap.router, prefix="/api", tags=["Bootstrap"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(videos.router, prefix="/api/videos", tags=["Videos"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(discovery.router, prefix="/api", tags=["Discovery"])

app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Best Edit Clips API",
        "version": settings.API_VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
