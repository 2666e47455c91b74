import pytest
from fastapi.testclient import TestClient

from backend.app.api.leads import format_enum_label
from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_lead(company_id, **overrides):
    payload = {"companyId": company_id, "name": "Jane Roof", "phone": "555-0101", "city": "Denver"}
    payload.update(overrides)
    return client.post("/api/leads", json=payload)


def mirror_remote_lead(company_id, fake_twenty, **fields):
    fake_twenty.add_lead(**fields)
    response = client.post("/api/sync/twenty", params={"company": company_id})
    assert response.status_code == 200, response.text
    return client.get("/api/leads", params={"company_id": company_id}).json()["leads"][0]


def test_create_and_list_leads(make_company):
    company = make_company(client)

    response = create_lead(company["id"])

    assert response.status_code == 201
    lead = response.json()["lead"]
    assert lead["status"] == "new"
    assert lead["source"] == "website"

    listed = client.get("/api/leads", params={"company_id": company["id"]}).json()["leads"]
    assert [item["id"] for item in listed] == [lead["id"]]


def test_list_requires_company_id():
    response = client.get("/api/leads")
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_leads_are_scoped_to_company(make_company):
    first = make_company(client)
    second = make_company(client, name="Second Roofing")
    create_lead(first["id"])

    assert client.get("/api/leads", params={"company_id": second["id"]}).json()["leads"] == []


def test_create_lead_rejects_bad_status(make_company):
    company = make_company(client)
    response = create_lead(company["id"], status="maybe")
    assert response.status_code == 400


def test_create_lead_unknown_company():
    response = create_lead("missing")
    assert response.status_code == 404


def test_update_local_lead_does_not_call_remote(make_company, override_twenty):
    company = make_company(client)
    lead = create_lead(company["id"]).json()["lead"]

    response = client.patch("/api/leads", json={"id": lead["id"], "status": "contacted", "city": "Aurora"})

    assert response.status_code == 200
    assert response.json()["lead"]["status"] == "contacted"
    assert response.json()["lead"]["city"] == "Aurora"
    assert override_twenty.calls == []


def test_update_mirrored_lead_pushes_contact_fields(make_company, override_twenty):
    company = make_company(client)
    lead = mirror_remote_lead(company["id"], override_twenty, id="t-1", name="Remote Jane", city="Denver")
    assert lead["twentyId"] == "t-1"

    response = client.patch("/api/leads", json={"id": lead["id"], "city": "Boulder", "status": "won"})

    assert response.status_code == 200
    assert override_twenty.calls[-1] == ("UpdateLead", {"id": "t-1", "data": {"city": "Boulder"}})
    assert override_twenty.leads["t-1"]["city"] == "Boulder"


def test_remote_push_failure_keeps_local_update(make_company, override_twenty):
    company = make_company(client)
    lead = mirror_remote_lead(company["id"], override_twenty, id="t-1", name="Remote Jane")
    override_twenty.leads.clear()

    response = client.patch("/api/leads", json={"id": lead["id"], "name": "Local Jane"})

    assert response.status_code == 200
    assert response.json()["lead"]["name"] == "Local Jane"


def test_update_missing_lead_is_404():
    response = client.patch("/api/leads", json={"id": "missing", "name": "X"})
    assert response.status_code == 404
    assert response.json() == {"error": "Lead not found"}


def test_delete_lead(make_company):
    company = make_company(client)
    lead = create_lead(company["id"]).json()["lead"]

    response = client.delete("/api/leads", params={"id": lead["id"]})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.delete("/api/leads", params={"id": lead["id"]}).status_code == 404


def test_lead_enums_are_labelled(make_company, override_twenty):
    company = make_company(client)

    response = client.get("/api/leads/enums", params={"companyId": company["id"]})

    assert response.status_code == 200
    enums = response.json()["enums"]
    assert enums["salesRep"] == [
        {"value": "JOHN_SMITH", "label": "John Smith"},
        {"value": "JANE_DOE", "label": "Jane Doe"},
    ]
    assert enums["canvasser"] == []


def test_format_enum_label():
    assert format_enum_label("PROPOSAL_SENT") == "Proposal Sent"
    assert format_enum_label("won") == "Won"
