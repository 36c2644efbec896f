import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST

from formflow.api.deps import get_store_metrics
from formflow.api.v1.router import api_v1_router
from formflow.core.config import settings
from formflow.services.metrics import PrometheusStoreMetrics, StoreMetrics

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "%s starting (retries=%d, retry_interval_ms=%d, enforce_required_fields=%s)",
        settings.PROJECT_NAME,
        settings.DB_MAX_RETRIES,
        settings.DB_RETRY_INTERVAL_MS,
        settings.ENFORCE_REQUIRED_FIELDS,
    )

    yield

    logger.info("Shutting down; store metrics: %s", app.state.store_metrics.snapshot())


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
)

# Created with the app so requests served without the lifespan (tests) report too.
app.state.store_metrics = PrometheusStoreMetrics()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/health/store")
def store_health(metrics: StoreMetrics = Depends(get_store_metrics)):
    return {"status": "healthy", "metrics": metrics.snapshot()}


@app.get("/metrics", include_in_schema=False)
def metrics_exposition(request: Request):
    metrics = request.app.state.store_metrics
    return Response(content=metrics.exposition(), media_type=CONTENT_TYPE_LATEST)
