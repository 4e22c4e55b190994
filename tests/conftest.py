import os
import tempfile

import pytest

# The engine is created at import time, so the database has to be chosen
# before anything from the application is imported.
_DB_DIR = tempfile.mkdtemp(prefix="invoicing-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ["CRON_SECRET"] = "test-cron-secret"

from fastapi.testclient import TestClient  # noqa: E402

import utils.email  # noqa: E402
from database import SessionLocal, engine  # noqa: E402
from models import Base, Customer, Organization, User  # noqa: E402
from services import auth_service  # noqa: E402

CRON_SECRET = os.environ["CRON_SECRET"]


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing email instead of calling Brevo."""
    sent = []

    def fake_send_email(to_email, to_name, subject, html, sender_name=None):
        sent.append({"to": to_email, "name": to_name, "subject": subject, "html": html})
        return f"msg-{len(sent)}"

    monkeypatch.setattr(utils.email, "send_email", fake_send_email)
    return sent


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def org(db) -> Organization:
    org = Organization(name="Print Shop", email="owner@printshop.com", payment_terms=30)
    db.add(org)
    db.commit()
    return org


@pytest.fixture
def user(db, org) -> User:
    user = User(
        org_id=org.id,
        email="owner@printshop.com",
        password=auth_service.hash_password("correct-horse"),
        name="Olive Owner",
        role="ADMIN",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def customer(db, org, user) -> Customer:
    customer = Customer(org_id=org.id, name="Acme Ltd", email="billing@acme.com", created_by=user.id)
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_token(user)}"}


@pytest.fixture
def cron_headers() -> dict:
    return {"Authorization": f"Bearer {CRON_SECRET}"}
