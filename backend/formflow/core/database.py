import logging
import time
from collections.abc import Callable, Generator
from typing import TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from formflow.core.config import settings
from formflow.services.exceptions import FormflowError, IllegalTransition, StoreError
from formflow.services.metrics import NullStoreMetrics, StoreMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Session.info key under which the active metrics sink is exposed to the
# store collaborators.
METRICS_KEY = "store_metrics"

# SQLSTATE codes worth another attempt: serialization failure, deadlock,
# connection exceptions, and server shutdown/restart.
RETRYABLE_SQLSTATES = frozenset(
    {
        "40001",
        "40P01",
        "08000",
        "08001",
        "08003",
        "08004",
        "08006",
        "57P01",
        "57P02",
        "57P03",
    }
)


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_retryable(exc: BaseException) -> bool:
    """Return True if ``exc`` is a transient store error."""
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code in RETRYABLE_SQLSTATES


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    *,
    metrics: StoreMetrics | None = None,
    max_retries: int | None = None,
    retry_interval_ms: int | None = None,
) -> T:
    """Run ``work(db)`` and commit it as a single transaction.

    Transient errors roll back and re-run ``work`` with linearly increasing
    backoff. Domain errors raised by ``work`` roll back and propagate as-is.
    Everything else the store raises is rolled back and surfaced as
    ``StoreError``.
    """
    metrics = metrics or NullStoreMetrics()
    if max_retries is None:
        max_retries = settings.DB_MAX_RETRIES
    if retry_interval_ms is None:
        retry_interval_ms = settings.DB_RETRY_INTERVAL_MS

    previous_metrics = db.info.get(METRICS_KEY)
    db.info[METRICS_KEY] = metrics
    try:
        return _retry_loop(db, work, metrics, max_retries, retry_interval_ms)
    finally:
        db.info[METRICS_KEY] = previous_metrics


def _retry_loop(
    db: Session,
    work: Callable[[Session], T],
    metrics: StoreMetrics,
    max_retries: int,
    retry_interval_ms: int,
) -> T:
    attempt = 0
    while True:
        try:
            result = work(db)
            db.commit()
        except FormflowError:
            db.rollback()
            raise
        except StaleDataError as exc:
            db.rollback()
            metrics.transaction_failed()
            raise IllegalTransition("Form was modified concurrently; reload and retry") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            if is_retryable(exc) and attempt < max_retries:
                attempt += 1
                metrics.retry()
                logger.warning(
                    "Transient store error, retrying (attempt %d/%d): %s",
                    attempt,
                    max_retries,
                    exc,
                )
                time.sleep(retry_interval_ms * attempt / 1000)
                continue
            metrics.transaction_failed()
            logger.exception("Store transaction failed")
            raise StoreError(f"Store operation failed: {exc}", transient=is_retryable(exc)) from exc
        except BaseException:
            db.rollback()
            metrics.transaction_failed()
            raise

        metrics.transaction_committed()
        return result
