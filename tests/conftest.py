"""Test configuration: in-memory SQLite, a recording mailer and a private template directory."""
import os

# Set *before* any project imports so settings pick them up
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_HOST"] = ""
os.environ["DEBUG"] = "false"
os.environ["CHECK_EMAIL_MX"] = "false"

import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from greenghost import models  # noqa: F401
from greenghost.config import settings
from greenghost.database import Base, get_db
from greenghost.dependencies import get_renderer, get_template_store
from greenghost.main import app
from greenghost.models.admin import Admin
from greenghost.services.email_templates import SystemTemplateStore, TemplateRenderer
from greenghost.services.mailer import SendResult, get_mailer
from greenghost.utils.hash import hash_password
from greenghost.utils.token import create_access_token

CODE_IN_HTML = re.compile(r">(\d{6})</span>")


@dataclass
class SentMessage:
    to: str
    subject: str
    html: str
    from_address: str
    display_name: Optional[str] = None


class RecordingMailer:
    """Records every send attempt; addresses in ``failures`` fail with the mapped message."""

    def __init__(self):
        self.sent = []
        self.failures = {}
        self.raises = {}

    async def send(self, to, subject, html, from_address, display_name=None):
        self.sent.append(SentMessage(to, subject, html, from_address, display_name))
        if to in self.raises:
            raise self.raises[to]
        if to in self.failures:
            return SendResult(success=False, error=self.failures[to])
        return SendResult(success=True)

    def to(self, email):
        return [m for m in self.sent if m.to == email]

    def last_code(self):
        match = CODE_IN_HTML.search(self.sent[-1].html)
        return match.group(1) if match else None


class FakeClock:
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2025, 3, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def template_dir(tmp_path):
    target = tmp_path / "email"
    shutil.copytree(settings.TEMPLATE_DIR, target)
    return str(target)


@pytest.fixture
def store(template_dir):
    return SystemTemplateStore(template_dir, settings)


@pytest.fixture
def renderer(template_dir):
    return TemplateRenderer(template_dir)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(session_factory, mailer, store, renderer):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_template_store] = lambda: store
    app.dependency_overrides[get_renderer] = lambda: renderer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db_session):
    admin = Admin(username="admin", email="admin@greenghost.io", hashed_password=hash_password("s3cret-pass"))
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def auth_headers(admin):
    token = create_access_token({"sub": admin.username, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
