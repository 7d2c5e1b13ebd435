from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from humanid.app.api.deps import get_verification_flow
from humanid.app.core.config import Settings, get_settings
from humanid.app.db import init_models
from humanid.app.db.session import create_engine_from_settings, create_session_factory, get_db
from humanid.app.main import app
from humanid.app.models import Admin
from humanid.app.security.hashing import CredentialHasher, get_password_hash
from humanid.app.services.app_registry import AppRegistry
from humanid.app.services.identity import IdentityResolver
from humanid.app.services.verification import build_verification_flow

ADMIN_EMAIL = "admin@local.host"
ADMIN_PASSWORD = "admin123"


class FakeNexmo:
    """Answers the Nexmo Verify and SMS endpoints, records every call."""

    def __init__(self):
        self.calls = []
        self.sms_status = "0"
        self.verify_status = "0"
        self.check_status = "0"
        self.valid_code = "1234"
        self.fail_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail_with is not None:
            raise self.fail_with

        path = request.url.path
        if request.method == "POST":
            params = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        else:
            params = dict(request.url.params)
        self.calls.append((request.method, path, params))

        if path == "/sms/json":
            return httpx.Response(200, json={"messages": [{"status": self.sms_status, "message-id": "MSG-1"}]})
        if path == "/verify/json":
            if self.verify_status != "0":
                return httpx.Response(200, json={"status": self.verify_status, "error_text": "Throttled"})
            return httpx.Response(200, json={"status": "0", "request_id": "REQ-1"})
        if path == "/verify/check/json":
            if self.check_status == "0" and params.get("code") == self.valid_code:
                return httpx.Response(200, json={"status": "0", "request_id": params.get("request_id")})
            return httpx.Response(200, json={"status": "16", "error_text": "The code provided does not match"})
        return httpx.Response(404, text="not found")

    def sent_texts(self):
        return [params["text"] for method, path, params in self.calls if path == "/sms/json"]


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        ENVIRONMENT="test",
        SECRET_KEY="test-secret-key",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/humanid-test.db",
        NEXMO_API_KEY="nexmo-key",
        NEXMO_API_SECRET="nexmo-secret",
        VERIFICATION_FLOW="sms",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def nexmo():
    return FakeNexmo()


@pytest_asyncio.fixture
async def http_client(nexmo):
    async with httpx.AsyncClient(transport=httpx.MockTransport(nexmo.handler)) as client:
        yield client


@pytest.fixture
def verification_flow(settings, http_client):
    return build_verification_flow(settings, http_client)


@pytest.fixture
def hasher(settings):
    return CredentialHasher(settings.SECRET_KEY)


@pytest.fixture
def registry(hasher):
    return AppRegistry(hasher)


@pytest.fixture
def resolver(registry, hasher, verification_flow):
    return IdentityResolver(registry, hasher, verification_flow)


@pytest_asyncio.fixture
async def admin(session_factory):
    async with session_factory() as session:
        admin = Admin(email=ADMIN_EMAIL, hashed_password=get_password_hash(ADMIN_PASSWORD))
        session.add(admin)
        await session.commit()
        return admin


@pytest_asyncio.fixture
async def api_client(settings, session_factory, verification_flow):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_verification_flow] = lambda: verification_flow

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(api_client, admin):
    res = await api_client.post("/console/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['accessToken']}"}


@pytest_asyncio.fixture
async def create_app(api_client, auth_headers):
    async def _create(app_id: str, **extra) -> dict:
        res = await api_client.post("/console/apps", headers=auth_headers, json={"appId": app_id, **extra})
        assert res.status_code == 200, res.text
        return res.json()
    return _create

