import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from woodflow.core import mailer
from woodflow.core.database import Base, get_db, sqlite_connect_args
from woodflow.main import app
from woodflow.schemas import CompanyCreate, LineItemCreate, QuotationCreate, SignupRequest, StaffInvite
from woodflow.services.access_service import resolve_context
from woodflow.services.company_service import CompanyService
from woodflow.services.quotation_service import QuotationService
from woodflow.services.staff_service import StaffService
from woodflow.services.user_service import UserService

import woodflow.models  # noqa: F401


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'woodflow-test.db'}",
        connect_args=sqlite_connect_args("sqlite"),
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sent_mail(monkeypatch):
    """Capture outbound email and SMS instead of sending them"""
    outbox = {"email": [], "sms": []}

    def fake_email(to, subject, text=None, html=None, attachments=()):
        outbox["email"].append({"to": to, "subject": subject, "text": text, "html": html})
        return True

    def fake_sms(to, message):
        outbox["sms"].append({"to": to, "message": message})
        return True

    monkeypatch.setattr(mailer, "send_email", fake_email)
    monkeypatch.setattr(mailer, "send_sms", fake_sms)
    return outbox


@pytest.fixture
def client(session_factory, sent_mail):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------- builders ----------

def make_user(db, email, full_name="Test User", password="secret123"):
    user = UserService(db).create(SignupRequest(full_name=full_name, email=email, password=password))
    db.commit()
    return user


def make_company(db, owner, name):
    company = CompanyService(db).create(CompanyCreate(name=name), owner)
    db.commit()
    return company


def context_for(db, user):
    db.refresh(user)
    return resolve_context(user)


def add_staff(db, owner_ctx, email, permissions=None, role="staff"):
    user = make_user(db, email, full_name=email.split("@")[0].title())
    StaffService(db).invite(owner_ctx, StaffInvite(email=email, role=role, permissions=permissions or {}))
    db.commit()
    return user


def make_quotation(db, ctx, items=None, discount="0", status="draft", **fields):
    """Quotations are created as draft or sent; any other status is applied afterwards"""
    items = items if items is not None else [{"cost_price": "1000", "selling_price": "1500", "quantity": 2}]
    data = QuotationCreate(
        client_name=fields.pop("client_name", "Ada Client"),
        items=[LineItemCreate(wood_type="mahogany", **item) for item in items],
        discount=discount,
        status=status if status in ("draft", "sent") else "draft",
        **fields,
    )
    service = QuotationService(db)
    quotation = service.create(ctx, data)
    if quotation.status != status:
        quotation = service.update_status(quotation.id, ctx, status)
    db.commit()
    return quotation


@pytest.fixture
def tenant(db):
    """An owner with an active company"""
    owner = make_user(db, "owner@example.com", full_name="Olu Owner")
    company = make_company(db, owner, "Oak & Iron")
    return {"owner": owner, "company": company, "ctx": context_for(db, owner)}


def auth_headers(client, email, password="secret123"):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
