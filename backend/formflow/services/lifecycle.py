"""Form lifecycle — Draft/Published/Closed state machine and form persistence."""

import logging
import uuid

from sqlalchemy.orm import Session

from formflow.core.database import run_in_transaction
from formflow.models.enums import FormStatus
from formflow.models.form import Form
from formflow.services import repositories
from formflow.services.exceptions import IllegalTransition, NotFound, ValidationError
from formflow.services.metrics import StoreMetrics

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

VALID_TRANSITIONS: dict[str, set[str]] = {
    FormStatus.DRAFT: {FormStatus.PUBLISHED, FormStatus.CLOSED},
    FormStatus.PUBLISHED: {FormStatus.CLOSED},
    FormStatus.CLOSED: set(),
}


def _assert_transition(current: str, target: str) -> None:
    allowed = VALID_TRANSITIONS.get(FormStatus.parse(current), set())
    if target not in allowed:
        raise IllegalTransition(f"Cannot transition form from '{current}' to '{target}'")


def _validate_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationError("title is required")
    return title


def create_form_entity(title: str, description: str | None = None) -> Form:
    """Build a new Draft form. Nothing is persisted."""
    return Form(
        id=uuid.uuid4(),
        title=_validate_title(title),
        description=description,
        status=FormStatus.DRAFT.value,
    )


def publish(form: Form) -> Form:
    """Draft -> Published. Any other starting state is illegal."""
    _assert_transition(form.status, FormStatus.PUBLISHED)
    form.status = FormStatus.PUBLISHED.value
    return form


def close(form: Form) -> bool:
    """Move ``form`` to Closed from any state.

    Closing a Closed form is a no-op. Returns whether the status changed.
    """
    if form.status == FormStatus.CLOSED:
        return False
    _assert_transition(form.status, FormStatus.CLOSED)
    form.status = FormStatus.CLOSED.value
    return True


def can_mutate_fields(form: Form) -> bool:
    return form.status != FormStatus.CLOSED


def can_accept_responses(form: Form) -> bool:
    return form.status == FormStatus.PUBLISHED


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def get_form(db: Session, form_id: uuid.UUID) -> Form:
    form = repositories.get_form_by_id(db, form_id)
    if form is None:
        raise NotFound("Form", form_id)
    return form


def _get_form_for_update(db: Session, form_id: uuid.UUID) -> Form:
    form = repositories.get_form_by_id(db, form_id, lock="update")
    if form is None:
        raise NotFound("Form", form_id)
    return form


def list_forms(
    db: Session,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Form], int]:
    if status is not None:
        parsed = FormStatus.parse(status)
        if parsed is None:
            raise ValidationError(f"invalid form status: {status}")
        status = parsed.value
    return repositories.list_form_rows(db, status=status, page=page, page_size=page_size)


def create_form(
    db: Session,
    title: str,
    description: str | None = None,
    *,
    metrics: StoreMetrics | None = None,
) -> Form:
    form = create_form_entity(title, description)

    def work(session: Session) -> Form:
        repositories.create_form_row(session, form)
        return form

    run_in_transaction(db, work, metrics=metrics)
    db.refresh(form)
    logger.info("Form %s created (draft)", form.id)
    return form


def update_form(
    db: Session,
    form_id: uuid.UUID,
    title: str,
    description: str | None = None,
    *,
    metrics: StoreMetrics | None = None,
) -> Form:
    """Replace a form's title and description. Closed forms are frozen."""
    _validate_title(title)

    def work(session: Session) -> Form:
        form = _get_form_for_update(session, form_id)
        if form.status == FormStatus.CLOSED:
            raise IllegalTransition(f"Form {form_id} is closed and cannot be edited")
        form.title = title
        form.description = description
        repositories.update_form_row(session, form)
        return form

    form = run_in_transaction(db, work, metrics=metrics)
    db.refresh(form)
    return form


def publish_form(db: Session, form_id: uuid.UUID, *, metrics: StoreMetrics | None = None) -> Form:
    def work(session: Session) -> Form:
        form = _get_form_for_update(session, form_id)
        publish(form)
        repositories.update_form_row(session, form)
        return form

    form = run_in_transaction(db, work, metrics=metrics)
    db.refresh(form)
    logger.info("Form %s published", form_id)
    return form


def close_form(db: Session, form_id: uuid.UUID, *, metrics: StoreMetrics | None = None) -> Form:
    changed = False

    def work(session: Session) -> Form:
        nonlocal changed
        form = _get_form_for_update(session, form_id)
        changed = close(form)
        if changed:
            repositories.update_form_row(session, form)
        return form

    form = run_in_transaction(db, work, metrics=metrics)
    db.refresh(form)
    if changed:
        logger.info("Form %s closed", form_id)
    else:
        logger.debug("Form %s already closed", form_id)
    return form


def delete_form(
    db: Session,
    form_id: uuid.UUID,
    cascade: bool = False,
    *,
    metrics: StoreMetrics | None = None,
) -> None:
    """Delete a form with its fields.

    A form that has responses is only removed with ``cascade=True``, which
    also deletes the responses, their answers and vectors.
    """

    def work(session: Session) -> int:
        form = _get_form_for_update(session, form_id)
        response_count = repositories.count_responses(session, form_id)
        if response_count and not cascade:
            raise ValidationError(
                f"Form {form_id} has {response_count} responses; delete with cascade to remove them"
            )
        repositories.delete_form_row(session, form)
        return response_count

    response_count = run_in_transaction(db, work, metrics=metrics)
    logger.info("Form %s deleted (%d responses removed)", form_id, response_count)
