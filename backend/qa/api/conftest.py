"""
Fixtures for API integration tests.
Uses FastAPI's TestClient against the real app with an in-memory SQLite
database (StaticPool) swapped in through dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gstdesk.main import app
from gstdesk.db import Base, init_db
from gstdesk.dependencies import get_db
from gstdesk.security.auth import get_current_user
from gstdesk.domain.models import User


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Separate session for asserting on committed state."""
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def anon_client(session_factory):
    """Client without authentication override."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client):
    """Client authenticated as an admin user."""
    app.dependency_overrides[get_current_user] = lambda: User(id=1, username="tester", password_hash="x", is_admin=True)
    return anon_client


@pytest.fixture
def unit(client):
    return client.post("/units", json={"name": "Pieces", "abbreviation": "pcs"}).json()


@pytest.fixture
def category(client):
    return client.post("/categories", json={"name": "Stationery"}).json()


@pytest.fixture
def make_product(client, unit, category):
    def _make(name="Notebook", stock_quantity=0, unit_price="100", tax_rate="0.18", **extra):
        body = {
            "name": name,
            "stock_quantity": stock_quantity,
            "unit_price": unit_price,
            "tax_rate": tax_rate,
            "unit_id": unit["id"],
            "category_id": category["id"],
            "hsn_code": "4820",
        }
        body.update(extra)
        r = client.post("/products", json=body)
        assert r.status_code == 201, r.text
        return r.json()
    return _make


@pytest.fixture
def make_customer(client):
    def _make(name="Asha Traders", phone="9876543210", **extra):
        r = client.post("/customers", json={"name": name, "phone": phone, **extra})
        assert r.status_code == 201, r.text
        return r.json()
    return _make
