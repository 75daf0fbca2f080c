"""Shared pytest fixtures.

Settings are read from the environment at import time, so the test
environment is set up here before anything from identity_api is imported.
"""
import os
import re

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALLOWED_EMAIL_DOMAINS"] = "gmail.com,x.com"
os.environ["MAIL_FROM"] = "no-reply@gmail.com"
os.environ["SENDGRID_API_KEY"] = "SG.test"
os.environ["S3_PUBLIC_BASE_URL"] = "https://cdn.test.local"

import pytest
from fastapi.testclient import TestClient

from identity_api.core.exceptions import DeliveryFailedException
from identity_api.database import Base, engine, SessionLocal, get_db
from identity_api.main import app
from identity_api.models.user import Gender
from identity_api.services.credential_store import CredentialStore
from identity_api.services.email_service import get_mailer
from identity_api.services.storage_service import get_blob_store

CODE_PATTERN = re.compile(r">(\d{6,8})<")


class FakeMailer:
    """Records every message instead of sending it."""

    def __init__(self):
        self.outbox = []
        self.fail = False

    async def send(self, to, subject: str, html: str, **options) -> str:
        if self.fail:
            raise DeliveryFailedException()
        self.outbox.append({"to": to, "subject": subject, "html": html, **options})
        return f"<msg-{len(self.outbox)}@test>"

    def last_code(self) -> str:
        match = CODE_PATTERN.search(self.outbox[-1]["html"])
        assert match, "no OTP code in the last message"
        return match.group(1)

    async def close(self):
        self.closed = True


class FakeBlobStore:
    def __init__(self):
        self.objects = {}

    def upload_image(self, content: bytes, content_type: str) -> dict:
        key = f"communities/img{len(self.objects)}"
        self.objects[key] = content
        return {"secure_url": f"https://cdn.test.local/{key}", "public_id": key}

    def upload_document(self, content: bytes, content_type: str) -> dict:
        key = f"communities/documents/doc{len(self.objects)}.pdf"
        self.objects[key] = content
        return {"secure_url": f"https://cdn.test.local/{key}", "public_id": key}

    def delete_image(self, url: str) -> str:
        prefix = "https://cdn.test.local/"
        if not url.startswith(prefix):
            return "ignored"
        return "ok" if self.objects.pop(url[len(prefix):], None) is not None else "not found"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def make_user(store):
    def _make(name="Alice", email="alice@x.com", password="correct-pw", gender=Gender.female, **extra):
        user = store.create(name=name, email=email, password=password, gender=gender,
                            avatar_url=f"https://robohash.org/{email}")
        if extra:
            user = store.update_fields(user.id, **extra)
        return user

    return _make


@pytest.fixture
def client(db, mailer, blob_store):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
