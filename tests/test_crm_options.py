import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.company import Company

client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_sales_reps_and_canvassers(make_company, override_twenty):
    company = make_company(client)

    reps = client.get("/api/sales-reps", params={"companyId": company["id"]})
    canvassers = client.get("/api/canvassers", params={"companyId": company["id"]})

    assert reps.json() == {"salesReps": ["JOHN_SMITH", "JANE_DOE"]}
    assert canvassers.json() == {"canvassers": ["ALEX_FIELD"]}


def test_unconfigured_company_is_rejected(make_company, override_twenty):
    company = make_company(client)
    db = SessionLocal()
    try:
        db.query(Company).filter(Company.id == company["id"]).update({"twenty_api_key": ""})
        db.commit()
    finally:
        db.close()

    response = client.get("/api/sales-reps", params={"companyId": company["id"]})

    assert response.status_code == 400
    assert response.json() == {"error": "Twenty CRM not configured for this company"}
    assert override_twenty.calls == []


def test_undecryptable_key_is_500(make_company, override_twenty):
    company = make_company(client)
    db = SessionLocal()
    try:
        db.query(Company).filter(Company.id == company["id"]).update({"twenty_api_key": "garbage"})
        db.commit()
    finally:
        db.close()

    response = client.get("/api/sales-reps", params={"companyId": company["id"]})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to process credentials"
