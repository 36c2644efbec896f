from fastapi import Request

from formflow.services.metrics import NullStoreMetrics, StoreMetrics


def get_store_metrics(request: Request) -> StoreMetrics:
    """Metrics sink kept on ``app.state``; a no-op sink if none is installed."""
    return getattr(request.app.state, "store_metrics", None) or NullStoreMetrics()
