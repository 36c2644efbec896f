"""Field catalog — validation and persistence of a form's field definitions."""

import logging
import uuid

from sqlalchemy.orm import Session

from formflow.core.database import run_in_transaction
from formflow.models.enums import FieldType
from formflow.models.form_field import FormField, localized_text
from formflow.schemas.forms import FieldSpec
from formflow.services import repositories
from formflow.services.exceptions import IllegalTransition, NotFound, ValidationError
from formflow.services.lifecycle import can_mutate_fields
from formflow.services.metrics import StoreMetrics

logger = logging.getLogger(__name__)


def validate_field_spec(spec: FieldSpec) -> tuple[FieldType, dict | None]:
    """Check a field definition.

    Returns the parsed field type and the options to store. Choice types
    (select, radio, checkbox) need a non-empty options map; other types may
    not carry options, and an empty map on them is dropped.
    """
    field_type = FieldType.parse(spec.field_type)
    if field_type is None:
        raise ValidationError(f"invalid field type: {spec.field_type}")
    if spec.field_order <= 0:
        raise ValidationError("field_order must be greater than zero")

    options = spec.options or None
    if field_type.requires_options and options is None:
        raise ValidationError("missing options")
    if not field_type.requires_options and options is not None:
        raise ValidationError(f"options are not allowed for {field_type.value} fields")
    return field_type, options


def _assert_form_mutable(form) -> None:
    if not can_mutate_fields(form):
        raise IllegalTransition(f"Form {form.id} is {form.status}; its fields cannot be changed")


def _apply_spec(field: FormField, spec: FieldSpec, field_type: FieldType, options: dict | None) -> None:
    field.label = dict(spec.label)
    field.placeholder = dict(spec.placeholder)
    field.help_text = dict(spec.help_text)
    field.field_type = field_type.value
    field.field_order = spec.field_order
    field.required = spec.required
    field.options = options


def create_field(
    db: Session,
    form_id: uuid.UUID,
    spec: FieldSpec,
    *,
    metrics: StoreMetrics | None = None,
) -> FormField:
    field_type, options = validate_field_spec(spec)

    def work(session: Session) -> FormField:
        # Lock the form so a concurrent close or field insert waits for us.
        form = repositories.get_form_by_id(session, form_id, lock="update")
        if form is None:
            raise NotFound("Form", form_id)
        _assert_form_mutable(form)

        field = FormField(id=uuid.uuid4(), form_id=form_id)
        _apply_spec(field, spec, field_type, options)
        field.insertion_seq = repositories.next_field_insertion_seq(session, form_id)
        repositories.create_field_row(session, field)
        return field

    field = run_in_transaction(db, work, metrics=metrics)
    db.refresh(field)
    logger.info(
        "Field %s (%s, order %d) added to form %s", field.id, field.field_type, field.field_order, form_id
    )
    return field


def get_field(db: Session, field_id: uuid.UUID) -> FormField:
    field = repositories.get_field_by_id(db, field_id)
    if field is None:
        raise NotFound("Field", field_id)
    return field


def list_fields(db: Session, form_id: uuid.UUID) -> list[FormField]:
    """Fields of an existing form, ascending by field_order then insertion."""
    if repositories.get_form_by_id(db, form_id) is None:
        raise NotFound("Form", form_id)
    return repositories.list_fields_by_form_id(db, form_id)


def update_field(
    db: Session,
    field_id: uuid.UUID,
    spec: FieldSpec,
    *,
    metrics: StoreMetrics | None = None,
) -> FormField:
    field_type, options = validate_field_spec(spec)

    def work(session: Session) -> FormField:
        field = repositories.get_field_by_id(session, field_id)
        if field is None:
            raise NotFound("Field", field_id)
        form = repositories.get_form_by_id(session, field.form_id, lock="update")
        _assert_form_mutable(form)
        _apply_spec(field, spec, field_type, options)
        repositories.update_field_row(session, field)
        return field

    field = run_in_transaction(db, work, metrics=metrics)
    db.refresh(field)
    return field


def delete_field(db: Session, field_id: uuid.UUID, *, metrics: StoreMetrics | None = None) -> None:
    """Delete a field regardless of the form's status.

    Answers already submitted for it keep their copied field type.
    """

    def work(session: Session) -> None:
        field = repositories.get_field_by_id(session, field_id)
        if field is None:
            raise NotFound("Field", field_id)
        repositories.delete_field_row(session, field)

    run_in_transaction(db, work, metrics=metrics)
    logger.info("Field %s deleted", field_id)


def localize_field(field: FormField, language: str) -> dict[str, str]:
    """Label, placeholder and help text of ``field`` resolved for ``language``."""
    return {
        "language": language,
        "label": localized_text(field.label, language),
        "placeholder": localized_text(field.placeholder, language),
        "help_text": localized_text(field.help_text, language),
    }
