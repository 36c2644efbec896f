"""Tests for the form and field HTTP endpoints."""

import uuid

from formflow.models import Form, FormField
from formflow.models.enums import FormStatus

NONEXISTENT_UUID = str(uuid.uuid4())


def _create_form_via_api(client, title="Customer Feedback"):
    resp = client.post("/api/v1/forms/", json={"title": title, "description": "Post-visit survey"})
    assert resp.status_code == 201
    return resp.json()


def _field_payload(form_id, **overrides):
    payload = {
        "form_id": form_id,
        "label": {"en": "How did you hear about us?", "ne": "हाम्रो बारेमा कसरी थाहा पाउनुभयो?"},
        "placeholder": {"en": "Pick one"},
        "help_text": {},
        "field_type": "select",
        "field_order": 1,
        "required": True,
        "options": {"1": "TV", "2": "Radio"},
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


class TestCreateForm:
    def test_create_form_success(self, client, db):
        data = _create_form_via_api(client)
        assert data["title"] == "Customer Feedback"
        assert data["status"] == "draft"
        assert data["version"] == 1
        assert db.get(Form, uuid.UUID(data["id"])) is not None

    def test_create_form_empty_title(self, client):
        resp = client.post("/api/v1/forms/", json={"title": "  "})
        assert resp.status_code == 400

    def test_create_form_title_too_long(self, client):
        resp = client.post("/api/v1/forms/", json={"title": "x" * 256})
        assert resp.status_code == 422


class TestListAndGetForms:
    def test_list_forms(self, client, make_form):
        make_form(title="a")
        make_form(title="b", status=FormStatus.PUBLISHED)
        data = client.get("/api/v1/forms/").json()
        assert data["total"] == 2
        assert data["page"] == 1

    def test_list_forms_by_status(self, client, make_form):
        make_form(title="a")
        make_form(title="b", status=FormStatus.PUBLISHED)
        data = client.get("/api/v1/forms/", params={"status": "published"}).json()
        assert [f["title"] for f in data["items"]] == ["b"]

    def test_list_forms_bad_status(self, client):
        resp = client.get("/api/v1/forms/", params={"status": "archived"})
        assert resp.status_code == 400

    def test_get_form_counts(self, client, published_form):
        data = client.get(f"/api/v1/forms/{published_form.id}").json()
        assert data["field_count"] == 2
        assert data["response_count"] == 0

    def test_get_form_not_found(self, client):
        resp = client.get(f"/api/v1/forms/{NONEXISTENT_UUID}")
        assert resp.status_code == 404

    def test_get_form_bad_id(self, client):
        resp = client.get("/api/v1/forms/not-a-uuid")
        assert resp.status_code == 422


class TestUpdateAndDeleteForm:
    def test_update_form(self, client, make_form):
        form = make_form()
        resp = client.put(f"/api/v1/forms/{form.id}", json={"title": "Renamed"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"

    def test_update_closed_form(self, client, make_form):
        form = make_form(status=FormStatus.CLOSED)
        resp = client.put(f"/api/v1/forms/{form.id}", json={"title": "Renamed"})
        assert resp.status_code == 400

    def test_delete_form(self, client, db, make_form):
        form = make_form()
        form_id = form.id
        resp = client.delete(f"/api/v1/forms/{form_id}")
        assert resp.status_code == 204
        assert db.get(Form, form_id) is None

    def test_delete_form_with_responses_needs_cascade(self, client, published_form):
        field = client.get(f"/api/v1/forms/{published_form.id}/fields").json()[0]
        client.post(
            "/api/v1/responses/",
            json={
                "form_id": str(published_form.id),
                "respondent": {"email": "a@b.com"},
                "answers": [{"field_id": field["id"], "field_type": "select", "value": {"en": "1"}}],
            },
        )
        resp = client.delete(f"/api/v1/forms/{published_form.id}")
        assert resp.status_code == 400
        resp = client.delete(f"/api/v1/forms/{published_form.id}", params={"cascade": "true"})
        assert resp.status_code == 204

    def test_delete_missing_form(self, client):
        resp = client.delete(f"/api/v1/forms/{NONEXISTENT_UUID}")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycleEndpoints:
    def test_publish_then_close(self, client):
        form = _create_form_via_api(client)
        resp = client.post(f"/api/v1/forms/{form['id']}/publish")
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"

        resp = client.post(f"/api/v1/forms/{form['id']}/close")
        assert resp.status_code == 200
        assert resp.json()["status"] == "closed"

    def test_publish_closed_form(self, client, make_form):
        form = make_form(status=FormStatus.CLOSED)
        resp = client.post(f"/api/v1/forms/{form.id}/publish")
        assert resp.status_code == 400

    def test_publish_twice(self, client, make_form):
        form = make_form()
        assert client.post(f"/api/v1/forms/{form.id}/publish").status_code == 200
        assert client.post(f"/api/v1/forms/{form.id}/publish").status_code == 400

    def test_close_is_idempotent(self, client, make_form):
        form = make_form(status=FormStatus.PUBLISHED)
        first = client.post(f"/api/v1/forms/{form.id}/close")
        second = client.post(f"/api/v1/forms/{form.id}/close")
        assert first.status_code == second.status_code == 200
        assert second.json()["status"] == "closed"

    def test_publish_missing_form(self, client):
        resp = client.post(f"/api/v1/forms/{NONEXISTENT_UUID}/publish")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


class TestFieldEndpoints:
    def test_create_field(self, client, db):
        form = _create_form_via_api(client)
        resp = client.post("/api/v1/fields/", json=_field_payload(form["id"]))
        assert resp.status_code == 201
        data = resp.json()
        assert data["field_type"] == "select"
        assert data["options"] == {"1": "TV", "2": "Radio"}
        assert db.query(FormField).count() == 1

    def test_select_without_options(self, client):
        form = _create_form_via_api(client)
        resp = client.post("/api/v1/fields/", json=_field_payload(form["id"], options=None))
        assert resp.status_code == 400
        assert "missing options" in resp.json()["detail"]

    def test_invalid_field_type(self, client):
        form = _create_form_via_api(client)
        resp = client.post("/api/v1/fields/", json=_field_payload(form["id"], field_type="slider"))
        assert resp.status_code == 400

    def test_zero_field_order(self, client):
        form = _create_form_via_api(client)
        resp = client.post("/api/v1/fields/", json=_field_payload(form["id"], field_order=0))
        assert resp.status_code == 400

    def test_field_on_closed_form(self, client, make_form):
        form = make_form(status=FormStatus.CLOSED)
        resp = client.post("/api/v1/fields/", json=_field_payload(str(form.id)))
        assert resp.status_code == 400

    def test_field_on_missing_form(self, client):
        resp = client.post("/api/v1/fields/", json=_field_payload(NONEXISTENT_UUID))
        assert resp.status_code == 404

    def test_list_fields_localized(self, client):
        form = _create_form_via_api(client)
        client.post("/api/v1/fields/", json=_field_payload(form["id"], field_order=2))
        client.post(
            "/api/v1/fields/",
            json=_field_payload(form["id"], field_type="text", options=None, label={"en": "Name"}),
        )
        data = client.get(f"/api/v1/forms/{form['id']}/fields", params={"lang": "ne"}).json()
        assert [f["field_order"] for f in data] == [1, 2]
        assert data[0]["localized"]["label"] == "Name"
        assert data[1]["localized"]["label"] == "हाम्रो बारेमा कसरी थाहा पाउनुभयो?"
        assert data[1]["localized"]["placeholder"] == "Pick one"

    def test_list_fields_without_lang(self, client, published_form):
        data = client.get(f"/api/v1/forms/{published_form.id}/fields").json()
        assert all(f["localized"] is None for f in data)

    def test_get_update_delete_field(self, client):
        form = _create_form_via_api(client)
        field = client.post("/api/v1/fields/", json=_field_payload(form["id"])).json()

        resp = client.get(f"/api/v1/fields/{field['id']}", params={"lang": "en"})
        assert resp.status_code == 200
        assert resp.json()["localized"]["label"] == "How did you hear about us?"

        update = _field_payload(form["id"], field_type="radio", field_order=3)
        del update["form_id"]
        resp = client.put(f"/api/v1/fields/{field['id']}", json=update)
        assert resp.status_code == 200
        assert resp.json()["field_type"] == "radio"
        assert resp.json()["field_order"] == 3

        assert client.delete(f"/api/v1/fields/{field['id']}").status_code == 204
        assert client.get(f"/api/v1/fields/{field['id']}").status_code == 404
