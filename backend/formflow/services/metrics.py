"""Store metrics sinks.

The response store reports query, retry and transaction outcomes to a sink it
is handed, rather than to module-level counters. The application keeps one
``PrometheusStoreMetrics`` on ``app.state``; library callers that do not care
get ``NullStoreMetrics``.
"""

from abc import ABC, abstractmethod

from prometheus_client import CollectorRegistry, Counter, generate_latest


class StoreMetrics(ABC):
    """Interface the store reports to."""

    @abstractmethod
    def query(self, count: int = 1) -> None: ...

    @abstractmethod
    def retry(self) -> None: ...

    @abstractmethod
    def transaction_committed(self) -> None: ...

    @abstractmethod
    def transaction_failed(self) -> None: ...

    @abstractmethod
    def snapshot(self) -> dict[str, int]: ...


class NullStoreMetrics(StoreMetrics):
    def query(self, count: int = 1) -> None:
        pass

    def retry(self) -> None:
        pass

    def transaction_committed(self) -> None:
        pass

    def transaction_failed(self) -> None:
        pass

    def snapshot(self) -> dict[str, int]:
        return {}


class PrometheusStoreMetrics(StoreMetrics):
    """Prometheus counters in a registry owned by this sink.

    Each instance has its own ``CollectorRegistry`` so several sinks (one per
    app, one per test) never collide on metric names.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._queries = Counter(
            "formflow_store_queries",
            "Statements issued by the response store",
            registry=self.registry,
        )
        self._retries = Counter(
            "formflow_store_retries",
            "Transactions re-run after a transient store error",
            registry=self.registry,
        )
        self._transactions = Counter(
            "formflow_store_transactions",
            "Store transactions by outcome",
            ["outcome"],
            registry=self.registry,
        )
        # Expose both outcomes from the start.
        self._committed = self._transactions.labels(outcome="committed")
        self._failed = self._transactions.labels(outcome="failed")

    def query(self, count: int = 1) -> None:
        self._queries.inc(count)

    def retry(self) -> None:
        self._retries.inc()

    def transaction_committed(self) -> None:
        self._committed.inc()

    def transaction_failed(self) -> None:
        self._failed.inc()

    def _sample(self, name: str, labels: dict[str, str] | None = None) -> int:
        return int(self.registry.get_sample_value(name, labels) or 0)

    def snapshot(self) -> dict[str, int]:
        committed = self._sample("formflow_store_transactions_total", {"outcome": "committed"})
        failed = self._sample("formflow_store_transactions_total", {"outcome": "failed"})
        return {
            "total_queries": self._sample("formflow_store_queries_total"),
            "retries": self._sample("formflow_store_retries_total"),
            "total_transactions": committed + failed,
            "failed_transactions": failed,
        }

    def exposition(self) -> bytes:
        """Prometheus text format of this sink's registry."""
        return generate_latest(self.registry)
