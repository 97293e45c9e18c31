# tests/conftest.py
import itertools
import re

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from jobboard.core.config import Settings
from jobboard.db.mongo import ensure_indexes
from jobboard.main import create_app
from jobboard.services.mailer import MailDeliveryError

PASSWORD = "Passw0rd!"
CONFIRM_LINK_RE = re.compile(r"/user/confirm-email/(\S+)")
RESET_LINK_RE = re.compile(r"/user/reset-password/(\S+)")


class RecordingMailer:
    """Mailer double that keeps every message instead of sending it."""

    def __init__(self):
        self.outbox = []
        self.fail = False

    async def send(self, to, subject, text, html=""):
        if self.fail:
            raise MailDeliveryError("smtp unavailable")
        self.outbox.append({"to": to, "subject": subject, "text": text, "html": html})

    def last_token(self, pattern=CONFIRM_LINK_RE):
        match = pattern.search(self.outbox[-1]["text"])
        assert match, self.outbox[-1]["text"]
        return match.group(1)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        LOGIN_SECRET="test-login-secret",
        CONFIRMATION_SECRET="test-confirmation-secret",
        RESET_PASSWORD_SECRET="test-reset-secret",
        PASSWORD_HASH_ROUNDS=1000,
        MAIL_BACKEND="console",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture
async def db():
    database = AsyncMongoMockClient()["job_board_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def app(settings, db, mailer):
    return create_app(settings, db=db, mailer=mailer)


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


_seq = itertools.count(1)


def signup_payload(**overrides):
    n = next(_seq)
    payload = {
        "firstName": "alice",
        "lastName": "smith",
        "email": f"user{n}@jobs.com",
        "password": PASSWORD,
        "DOB": "1995-05-20",
        "mobileNumber": f"+2010{n:08d}",
        "role": "User",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_account(client, mailer):
    """Sign up (and by default confirm and log in) a fresh account."""

    async def _make(role="User", confirmed=True, login=True, **overrides):
        payload = signup_payload(role=role, **overrides)
        r = await client.post("/user/sign-up", json=payload)
        assert r.status_code == 201, r.text
        account = {
            "id": r.json()["user"]["id"],
            "email": payload["email"],
            "mobile": payload["mobileNumber"],
            "password": payload["password"],
        }
        if confirmed:
            token = mailer.last_token()
            rc = await client.get(f"/user/confirm-email/{token}")
            assert rc.status_code == 200, rc.text
        if login:
            rl = await client.post("/user/login", json={"credential": payload["email"], "password": payload["password"]})
            assert rl.status_code == 200, rl.text
            account["token"] = rl.json()["token"]
            account["headers"] = {"Authorization": f"Bearer {account['token']}"}
        return account

    return _make


@pytest.fixture
def make_company(client):
    async def _make(hr, **overrides):
        n = next(_seq)
        payload = {
            "companyName": f"Acme {n}",
            "description": "Builds rockets",
            "industry": "Aerospace",
            "address": "1 Launch Road",
            "numberOfEmployees": "51-100",
            "companyEmail": f"hr{n}@acme.com",
        }
        payload.update(overrides)
        r = await client.post("/company/add", json=payload, headers=hr["headers"])
        assert r.status_code == 201, r.text
        return r.json()["company"]

    return _make


@pytest.fixture
def make_job(client):
    async def _make(hr, **overrides):
        payload = {
            "jobTitle": "Backend Engineer",
            "jobLocation": "remotely",
            "workingTime": "full-time",
            "seniorityLevel": "Senior",
            "jobDescription": "Design and build Python services.",
            "technicalSkills": ["python", "mongodb"],
            "softSkills": ["communication"],
        }
        payload.update(overrides)
        r = await client.post("/job/add", json=payload, headers=hr["headers"])
        assert r.status_code == 201, r.text
        return r.json()["job"]

    return _make
