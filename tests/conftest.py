import mongomock
import pytest
from mongoengine.connection import disconnect, get_db

from invoicely import create_app
from invoicely.models import BusinessSettings, Client, Invoice, TaxConfiguration, User


@pytest.fixture
def app():
    app = create_app(
        "testing",
        {"MONGODB_CONNECT_OPTIONS": {"mongo_client_class": mongomock.MongoClient}},
    )
    for model in (User, BusinessSettings, Client, TaxConfiguration, Invoice):
        model.ensure_indexes()
    yield app
    db = get_db()
    db.client.drop_database(db.name)
    disconnect()


@pytest.fixture
def client(app):
    return app.test_client()


def _register(client, email="owner@example.com", full_name="Olivia Owner", password="s3cret-pass"):
    resp = client.post("/api/v1/auth/register", json={
        "email": email, "full_name": full_name, "password": password,
    })
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


@pytest.fixture
def register(client):
    """Register an account; returns (headers, user)."""
    return lambda **kwargs: _register(client, **kwargs)


@pytest.fixture
def auth_headers(register):
    headers, _ = register()
    return headers


@pytest.fixture
def client_id(client, auth_headers):
    resp = client.post("/api/v1/clients", json={"company_name": "Acme Corp"}, headers=auth_headers)
    assert resp.status_code == 201
    return resp.get_json()["id"]
