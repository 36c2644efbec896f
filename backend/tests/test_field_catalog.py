"""Tests for field definition validation, ordering and mutation rules."""

import uuid

import pytest

from formflow.models import FormField
from formflow.models.enums import FormStatus
from formflow.schemas.forms import FieldSpec
from formflow.services import field_catalog
from formflow.services.exceptions import IllegalTransition, NotFound, ValidationError


def _spec(**overrides):
    data = {
        "label": {"en": "Favourite colour", "ne": "मनपर्ने रङ"},
        "field_type": "text",
        "field_order": 1,
    }
    data.update(overrides)
    return FieldSpec(**data)


class TestValidateFieldSpec:
    def test_valid_text_field(self):
        field_type, options = field_catalog.validate_field_spec(_spec())
        assert field_type == "text"
        assert options is None

    def test_invalid_type(self):
        with pytest.raises(ValidationError, match="invalid field type"):
            field_catalog.validate_field_spec(_spec(field_type="slider"))

    @pytest.mark.parametrize("order", [0, -1])
    def test_field_order_must_be_positive(self, order):
        with pytest.raises(ValidationError, match="field_order"):
            field_catalog.validate_field_spec(_spec(field_order=order))

    @pytest.mark.parametrize("field_type", ["select", "radio", "checkbox"])
    def test_choice_types_require_options(self, field_type):
        with pytest.raises(ValidationError, match="missing options"):
            field_catalog.validate_field_spec(_spec(field_type=field_type))
        with pytest.raises(ValidationError, match="missing options"):
            field_catalog.validate_field_spec(_spec(field_type=field_type, options={}))

    def test_choice_type_with_options(self):
        field_type, options = field_catalog.validate_field_spec(
            _spec(field_type="radio", options={"1": "Yes", "2": "No"})
        )
        assert field_type == "radio"
        assert options == {"1": "Yes", "2": "No"}

    def test_options_rejected_on_non_choice_type(self):
        with pytest.raises(ValidationError, match="not allowed"):
            field_catalog.validate_field_spec(_spec(field_type="number", options={"1": "A"}))

    def test_empty_options_dropped_on_non_choice_type(self):
        _, options = field_catalog.validate_field_spec(_spec(field_type="email", options={}))
        assert options is None


class TestCreateField:
    def test_create_on_draft_form(self, db, make_form):
        form = make_form()
        field = field_catalog.create_field(db, form.id, _spec(required=True))
        assert field.form_id == form.id
        assert field.required is True
        assert field.get_label("ne") == "मनपर्ने रङ"
        assert db.get(FormField, field.id) is not None

    def test_create_on_published_form(self, db, make_form):
        form = make_form(status=FormStatus.PUBLISHED)
        field = field_catalog.create_field(db, form.id, _spec())
        assert field.id is not None

    def test_closed_form_rejects_new_fields(self, db, make_form):
        form = make_form(status=FormStatus.CLOSED)
        with pytest.raises(IllegalTransition):
            field_catalog.create_field(db, form.id, _spec())
        assert db.query(FormField).count() == 0

    def test_missing_form(self, db):
        with pytest.raises(NotFound):
            field_catalog.create_field(db, uuid.uuid4(), _spec())

    def test_select_without_options_is_not_persisted(self, db, make_form):
        form = make_form()
        with pytest.raises(ValidationError, match="missing options"):
            field_catalog.create_field(db, form.id, _spec(field_type="select"))
        assert db.query(FormField).count() == 0


class TestListFields:
    def test_ordered_by_field_order(self, db, make_form):
        form = make_form()
        third = field_catalog.create_field(db, form.id, _spec(field_order=3))
        first = field_catalog.create_field(db, form.id, _spec(field_order=1))
        second = field_catalog.create_field(db, form.id, _spec(field_order=2))
        ids = [f.id for f in field_catalog.list_fields(db, form.id)]
        assert ids == [first.id, second.id, third.id]

    def test_equal_order_keeps_insertion_order(self, db, make_form):
        form = make_form()
        created = [field_catalog.create_field(db, form.id, _spec(field_order=5)) for _ in range(4)]
        listed = field_catalog.list_fields(db, form.id)
        assert [f.id for f in listed] == [f.id for f in created]

    def test_empty_form_lists_nothing(self, db, make_form):
        form = make_form()
        assert field_catalog.list_fields(db, form.id) == []

    def test_missing_form(self, db):
        with pytest.raises(NotFound):
            field_catalog.list_fields(db, uuid.uuid4())


class TestUpdateAndDeleteField:
    def test_update_field(self, db, make_form, make_field):
        form = make_form()
        field = make_field(form)
        updated = field_catalog.update_field(
            db, field.id, _spec(field_type="select", field_order=4, options={"a": "A"})
        )
        assert updated.field_type == "select"
        assert updated.field_order == 4
        assert updated.options == {"a": "A"}

    def test_update_field_on_closed_form(self, db, make_form, make_field):
        form = make_form()
        field = make_field(form)
        form.status = "closed"
        db.commit()
        with pytest.raises(IllegalTransition):
            field_catalog.update_field(db, field.id, _spec(field_order=2))

    def test_update_validates_spec(self, db, make_form, make_field):
        form = make_form()
        field = make_field(form)
        with pytest.raises(ValidationError):
            field_catalog.update_field(db, field.id, _spec(field_order=0))

    def test_delete_field_on_closed_form(self, db, make_form, make_field):
        form = make_form()
        field = make_field(form)
        field_id = field.id
        form.status = "closed"
        db.commit()
        field_catalog.delete_field(db, field_id)
        assert db.get(FormField, field_id) is None

    def test_missing_field(self, db):
        with pytest.raises(NotFound):
            field_catalog.get_field(db, uuid.uuid4())
        with pytest.raises(NotFound):
            field_catalog.delete_field(db, uuid.uuid4())


def test_localize_field(make_form, make_field):
    form = make_form()
    field = make_field(form, label={"en": "Name", "ne": "नाम"})
    assert field_catalog.localize_field(field, "ne") == {
        "language": "ne",
        "label": "नाम",
        "placeholder": "",
        "help_text": "",
    }
    assert field_catalog.localize_field(field, "fr")["label"] == "Name"
