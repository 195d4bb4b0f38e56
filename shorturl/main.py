import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .config import settings
from .database import create_tables, engine
from .api import urls, redirect
from .api.errors import register_error_handlers
from .middleware import RequestLoggingMiddleware
from .observability import PrometheusMiddleware, metrics_endpoint
from .logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    if settings.CREATE_TABLES:
        await create_tables(engine)
    if settings.ENFORCE_EXPIRY:
        logger.warning("ENFORCE_EXPIRY is on: expired links no longer redirect")
    logger.info(f"URL shortener started ({settings.ENVIRONMENT})")
    yield
    # Shutdown logic
    await engine.dispose()

app = FastAPI(
    title="URL Shortener",
    description="Maps long URLs to short codes, redirects and counts clicks",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)
register_error_handlers(app)

app.add_route("/metrics", metrics_endpoint)

@app.get("/health")
async def health():
    return {"status": "ok"}

app.include_router(urls.router)
# Catch-all /{code}; must stay last
app.include_router(redirect.router)
