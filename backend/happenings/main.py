import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import search as search_routes
from .logging_config import SERVICE_VERSION, configure_structlog, get_logger
from .metrics import PrometheusMiddleware, get_metrics
from .settings import settings

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"happenings-query@{SERVICE_VERSION}",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

logger = get_logger(__name__)

app = FastAPI(
    title="Happenings Query API",
    version=SERVICE_VERSION,
    description="Turns free-text event requests into search specs and ranked events",
)
app.add_middleware(PrometheusMiddleware)

API_PREFIX = "/v1"

app.include_router(search_routes.router, prefix=API_PREFIX)


@app.get("/health")
def health():
    return {"status": "ok", "service": "happenings-query", "version": SERVICE_VERSION}


@app.get("/metrics", include_in_schema=False)
def metrics():
    return get_metrics()


logger.info(
    "app_configured",
    default_city=settings.DEFAULT_CITY,
    fallback_city=settings.FALLBACK_CITY,
    tags_llm=settings.tags_llm_available,
)
