import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from fake_twenty import graphql_error

client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_create_and_list_notes(make_company, override_twenty):
    company = make_company(client)

    created = client.post(
        "/api/notes",
        json={"leadId": "lead-1", "companyId": company["id"], "title": "Site visit", "noteBody": "Hail damage on north slope"},
    )

    assert created.status_code == 200
    note = created.json()["note"]
    assert note["title"] == "Site visit"
    assert note["body"] == "Hail damage on north slope"

    listed = client.get("/api/notes", params={"leadId": "lead-1", "companyId": company["id"]})
    assert listed.status_code == 200
    assert [n["id"] for n in listed.json()["notes"]] == [note["id"]]
    assert client.get("/api/notes", params={"leadId": "lead-2", "companyId": company["id"]}).json()["notes"] == []


def test_note_title_defaults(make_company, override_twenty):
    company = make_company(client)
    response = client.post("/api/notes", json={"leadId": "lead-1", "companyId": company["id"], "noteBody": "Called back"})
    assert response.json()["note"]["title"] == "Note"


def test_note_requires_body(make_company, override_twenty):
    company = make_company(client)
    response = client.post("/api/notes", json={"leadId": "lead-1", "companyId": company["id"], "noteBody": ""})
    assert response.status_code == 400
    assert override_twenty.calls == []


def test_notes_require_lead_and_company():
    assert client.get("/api/notes").status_code == 400


def test_note_for_unknown_company(override_twenty):
    response = client.get("/api/notes", params={"leadId": "lead-1", "companyId": "missing"})
    assert response.status_code == 404
    assert response.json() == {"error": "Company not found"}


def test_remote_error_is_reported(make_company, override_twenty):
    company = make_company(client)
    override_twenty.responders["GetNotesForLead"] = lambda variables: graphql_error("Forbidden")

    response = client.get("/api/notes", params={"leadId": "lead-1", "companyId": company["id"]})

    assert response.status_code == 500
    assert response.json()["error"] == "Twenty CRM request failed"
