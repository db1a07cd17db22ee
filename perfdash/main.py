"""
Product Performance Dashboard
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from perfdash import __version__
from perfdash.config import get_settings
from perfdash.exceptions import register_exception_handlers
from perfdash.models.base import check_connection, dispose_engine, init_db
from perfdash.utils.logger import log

# Import routers
from perfdash.api import comparison, health, products

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Acquire the connection pool at startup, release it at shutdown"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}, channel: {settings.channel}")

    if settings.auto_create_tables:
        init_db()
        log.info("Database tables created")

    check_connection()
    try:
        yield
    finally:
        dispose_engine()
        log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Internal product performance dashboard API

    All endpoints are POST with a JSON body and answer with a return_code:
    - Product listing with season / brand / owner / segment / search filters
    - Week-over-week and month comparison against historical snapshots
    - Filter option lists (owners, brands, segments)
    - Product details: weekly history, price changes, recent sales
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
)

# Gzip compression (product lists are large JSON payloads)
app.add_middleware(GZipMiddleware, minimum_size=500)

register_exception_handlers(app)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(products.router)
app.include_router(comparison.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "perfdash.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
