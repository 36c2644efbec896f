import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.dialects.sqlite import base as sqlite_base
from sqlalchemy.orm import sessionmaker

import formflow.models  # noqa: F401 (registers models with Base.metadata)
from formflow.core.config import settings
from formflow.core.database import Base, get_db
from formflow.main import app as fastapi_app
from formflow.models import Form, FormField
from formflow.models.enums import FormStatus
from formflow.services.metrics import PrometheusStoreMetrics

settings.DEBUG = True

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL-specific types (JSONB, UUID, Vector)
# ---------------------------------------------------------------------------
sqlite_base.SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)

# pgvector Vector → TEXT in SQLite; values round-trip through pgvector's text format
sqlite_base.SQLiteTypeCompiler.visit_VECTOR = lambda self, type_, **kw: "TEXT"

# In-memory SQLite shared across the test session
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """No sleeping between retried transactions."""
    monkeypatch.setattr(settings, "DB_RETRY_INTERVAL_MS", 0)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store_metrics():
    return PrometheusStoreMetrics()


@pytest.fixture
def client(db, store_metrics):
    """TestClient with overridden DB dependency and a fresh metrics sink."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    previous_metrics = fastapi_app.state.store_metrics
    fastapi_app.state.store_metrics = store_metrics
    yield TestClient(fastapi_app)
    fastapi_app.state.store_metrics = previous_metrics
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_form(db):
    def _make_form(title="Customer Feedback", description="Tell us how we did", status=FormStatus.DRAFT):
        form = Form(title=title, description=description, status=str(status))
        db.add(form)
        db.commit()
        db.refresh(form)
        return form

    return _make_form


@pytest.fixture
def make_field(db):
    seq = {"next": 0}

    def _make_field(
        form,
        field_type="text",
        field_order=1,
        required=False,
        options=None,
        label=None,
    ):
        seq["next"] += 1
        field = FormField(
            form_id=form.id,
            label=label or {"en": f"Question {field_order}"},
            placeholder={},
            help_text={},
            field_type=field_type,
            field_order=field_order,
            insertion_seq=seq["next"],
            required=required,
            options=options,
        )
        db.add(field)
        db.commit()
        db.refresh(field)
        return field

    return _make_field


@pytest.fixture
def published_form(make_form, make_field):
    """A published form with a select field and a text field."""
    form = make_form(status=FormStatus.PUBLISHED)
    make_field(form, field_type="select", field_order=1, options={"1": "A", "2": "B"})
    make_field(form, field_type="text", field_order=2)
    return form
