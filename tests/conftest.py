import os

# Must be set before backend.app.core.settings is first imported
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-secret")
os.environ.setdefault("SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_spartan.db")
os.environ.setdefault("OFFLINE_DATABASE_URL", "sqlite:///./test_spartan_offline.db")

import pytest

from fake_twenty import FakeTwenty


@pytest.fixture
def fake_twenty():
    return FakeTwenty()


@pytest.fixture
def override_twenty(fake_twenty):
    """Route every API call to the tenant CRM through ``fake_twenty``."""
    from backend.app.dependencies.crm import get_twenty_client_factory
    from backend.app.main import app

    app.dependency_overrides[get_twenty_client_factory] = lambda: fake_twenty.factory
    yield fake_twenty
    app.dependency_overrides.pop(get_twenty_client_factory, None)


def company_payload(**overrides):
    payload = {
        "name": "Spartan Exteriors",
        "contactEmail": "office@spartan.example.com",
        "contactPhone": "555-0100",
        "address": "1 Main St",
        "city": "Denver",
        "state": "CO",
        "zipCode": "80202",
        "twentyApiUrl": "https://crm.example.com",
        "twentyApiKey": "twenty-secret-key",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_company():
    def _make(client, **overrides):
        response = client.post("/api/companies", json=company_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["company"]

    return _make


@pytest.fixture
def company_data():
    return company_payload()
