import os
import re
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_ROOT = Path(tempfile.mkdtemp(prefix="universe-tests-"))

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_ROOT / 'test.db'}")
os.environ.setdefault("UPLOAD_ROOT", str(TEST_ROOT / "uploads"))
os.environ.setdefault("SESSION_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import universe.main as main  # noqa: E402  (import after env vars are set)
from universe.database import Base, SessionLocal, engine  # noqa: E402
from universe.models.account import Account  # noqa: E402
from universe.models.profile import Profile  # noqa: E402
from universe.services import email_services  # noqa: E402

CODE_PATTERN = re.compile(r"verification code is: (\d{4})")


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing email instead of talking to SMTP."""
    sent = []

    def _fake_send(to_email, subject, body):
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(email_services, "send_email", _fake_send)
    return sent


@pytest.fixture()
def client():
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def last_code(outbox) -> str:
    match = CODE_PATTERN.search(outbox[-1]["body"])
    assert match, outbox[-1]["body"]
    return match.group(1)


def signup(client, email="a@x.com", name="Ada", pin="1234", **extra):
    data = {"name": name, "email": email, "pin": pin, "phone": "555-0100", "dob": "2000-01-01"}
    data.update(extra)
    return client.post("/", data=data, follow_redirects=False)


def make_account(db, email="member@x.com", pin="1234", with_profile=False, verified=True) -> Account:
    account = Account(
        name="Member",
        email=email,
        pin=pin,
        email_verified=verified,
        profile_created=with_profile,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    if with_profile:
        db.add(Profile(account_id=account.id, display_name="Member", gender="other", bio="hi"))
        db.commit()
    return account


def sign_in(client, email="member@x.com", pin="1234"):
    return client.post("/sign_in", data={"email": email, "pin": pin}, follow_redirects=False)
