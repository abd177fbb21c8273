# garage_booking/main.py
"""
Garage booking engine API.

Wires the versioned booking routes, the problem-details error envelope,
request id and timing middleware, and the Prometheus scrape endpoint.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response

from .core.config import is_running_tests, settings
from .core.request_context import attach_request_id_filter
from .database import init_db
from .errors import register_error_handlers
from .middleware.request_id import RequestIdMiddleware
from .middleware.timing import METRICS_PATH, TimingMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import bookings as bookings_v1

API_TITLE = "Garage Booking API"
API_VERSION = "1.0.0"

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
attach_request_id_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up (environment={settings.environment})")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        init_db()
    yield
    logger.info(f"{API_TITLE} shutting down")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

# Last added runs first: the request id must be set before timing logs anything
app.add_middleware(TimingMiddleware)
app.add_middleware(RequestIdMiddleware)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
app.include_router(api_v1)


@app.get(METRICS_PATH, include_in_schema=False)
def prometheus_scrape() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
