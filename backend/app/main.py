# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .core.request_context import attach_request_id_filter
from .errors import register_error_handlers
from .middleware.performance import PerformanceMiddleware
from .middleware.prometheus_middleware import PrometheusMiddleware
from .ratelimit import get_rate_limit_store
from .routes import prometheus
from .routes.v1 import (
    admin as admin_v1,
    auth as auth_v1,
    bookings as bookings_v1,
    geocoding as geocoding_v1,
    health as health_v1,
    privacy as privacy_v1,
    studios as studios_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
attach_request_id_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if settings.is_production and settings.rate_limit_backend == "memory":
        logger.warning("In-memory rate limiting is per process; use RATE_LIMIT_BACKEND=redis with several workers")

    # Build the configured store eagerly so a bad Redis URL shows at boot.
    get_rate_limit_store()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", settings.allowed_origins, True)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(PerformanceMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Note: Route order matters - static studio paths are declared before /studios/{studio_id}
api_v1.include_router(auth_v1.router, prefix="/auth")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(studios_v1.router, prefix="/studios")
api_v1.include_router(geocoding_v1.router, prefix="/geocoding")
api_v1.include_router(privacy_v1.router, prefix="/privacy")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(prometheus.router)

app.include_router(api_v1)


@app.get("/", include_in_schema=False)
def root() -> dict[str, str]:
    return {"service": f"{BRAND_NAME.lower()}-api", "version": API_VERSION, "docs": "/docs"}
