import httpx

from humanid.app.api.deps import get_verification_flow
from humanid.app.crud import verification as store
from humanid.app.main import app as fastapi_app
from humanid.app.services.verification import TestModeFlow

INVALID_APP_ID = "Validation error: App ID must be 5-20 alphanumeric characters"


async def pending_code(session_factory, number):
    async with session_factory() as session:
        return (await store.find(session, number)).request_id


async def test_root_is_public(api_client):
    res = await api_client.get("/")
    assert res.status_code == 200
    assert "version" in res.json()


async def test_unknown_route(api_client):
    res = await api_client.get("/nowhere")
    assert res.status_code == 404
    assert res.json()["code"] == "HTTP_ERROR"


async def test_console_login_rejects_bad_password(api_client, admin):
    res = await api_client.post("/console/login", json={"email": "admin@local.host", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["code"] == "INVALID_CREDENTIALS"


async def test_console_requires_token(api_client):
    res = await api_client.get("/console/apps")
    assert res.status_code == 401

    res = await api_client.get("/console/apps", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401
    assert res.json()["code"] == "INVALID_TOKEN"


async def test_console_app_lifecycle(api_client, auth_headers, create_app):
    created = await create_app("NEW_YORK_TIMES", platform="IOS")
    assert created["id"] == "NEW_YORK_TIMES"
    assert created["platform"] == "IOS"
    assert len(created["secret"]) >= 10

    res = await api_client.post("/console/apps", headers=auth_headers, json={"appId": "NEW_YORK_TIMES"})
    assert res.status_code == 400
    assert res.json()["code"] == "DUPLICATE"

    res = await api_client.get("/console/apps", headers=auth_headers)
    assert res.json()["total"] == 1
    assert "secret" not in res.json()["data"][0]

    res = await api_client.post("/console/apps/NEW_YORK_TIMES/secret", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["secret"] != created["secret"]

    res = await api_client.delete("/console/apps/NEW_YORK_TIMES", headers=auth_headers)
    assert res.json() == {"success": True}

    res = await api_client.get("/console/apps/NEW_YORK_TIMES", headers=auth_headers)
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


async def test_register_end_to_end(api_client, auth_headers, create_app, session_factory):
    app = await create_app("NEW_YORK_TIMES")
    credentials = {"appId": app["id"], "appSecret": app["secret"]}

    res = await api_client.post("/console/apps", headers=auth_headers, json={"appId": "invalid@pp!d"})
    assert res.status_code == 400
    assert res.json()["error"] == INVALID_APP_ID

    phone = {"countryCode": "62", "phone": "80989999"}
    res = await api_client.post("/mobile/users/verifyPhone", json={**credentials, **phone})
    assert res.status_code == 200, res.text
    assert res.json() == {"success": True}

    register = {**credentials, **phone, "deviceId": "device-1"}
    res = await api_client.post("/mobile/users/register", json={**register, "verificationCode": "XXXX"})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_VERIFICATION_CODE"

    code = await pending_code(session_factory, "6280989999")
    res = await api_client.post("/mobile/users/register", json={**register, "verificationCode": code})
    assert res.status_code == 200, res.text
    body = res.json()
    assert set(body) == {"appId", "hash"}
    assert body["appId"] == "NEW_YORK_TIMES"

    res = await api_client.get("/mobile/users/login", params={**credentials, "hash": body["hash"]})
    assert res.json() == {"success": True}


async def test_cross_app_login(api_client, create_app, session_factory):
    first = await create_app("NEW_YORK_TIMES")
    second = await create_app("DEMO_APP")
    phone = {"countryCode": "62", "phone": "80989999", "deviceId": "device-1"}

    await api_client.post(
        "/mobile/users/verifyPhone",
        json={"appId": first["id"], "appSecret": first["secret"], **phone},
    )
    res = await api_client.post(
        "/mobile/users/register",
        json={
            "appId": first["id"],
            "appSecret": first["secret"],
            "verificationCode": await pending_code(session_factory, "6280989999"),
            **phone,
        },
    )
    origin = res.json()["hash"]

    second_credentials = {"appId": second["id"], "appSecret": second["secret"]}
    res = await api_client.post("/mobile/users/login", json={**second_credentials, "existingHash": origin})
    assert res.status_code == 200, res.text
    assert res.json()["appId"] == "DEMO_APP"
    assert res.json()["hash"] != origin

    res = await api_client.get("/mobile/users/login", params={**second_credentials, "hash": origin})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_HASH"

    res = await api_client.put(
        "/mobile/users/notifId",
        json={"appId": first["id"], "appSecret": first["secret"], "hash": origin, "notifId": "fcm-token"},
    )
    assert res.json() == {"success": True}


async def test_mobile_rejects_bad_credentials(api_client, create_app):
    app = await create_app("NEW_YORK_TIMES")
    phone = {"countryCode": "62", "phone": "80989999"}

    res = await api_client.post("/mobile/users/verifyPhone", json={"appId": "MISSING_APP", "appSecret": "x", **phone})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_APP_ID"

    res = await api_client.post("/mobile/users/verifyPhone", json={"appId": app["id"], "appSecret": "x", **phone})
    assert res.json()["code"] == "INVALID_SECRET"


async def test_missing_fields_are_validation_errors(api_client):
    res = await api_client.post("/mobile/users/verifyPhone", json={"appId": "NEW_YORK_TIMES"})
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"
    assert res.json()["error"] == "Validation error: appSecret is required"


async def test_provider_failure_is_bad_gateway(api_client, create_app, nexmo):
    app = await create_app("NEW_YORK_TIMES")
    nexmo.fail_with = httpx.ConnectError("boom")

    res = await api_client.post(
        "/mobile/users/verifyPhone",
        json={"appId": app["id"], "appSecret": app["secret"], "countryCode": "62", "phone": "80989999"},
    )
    assert res.status_code == 502
    assert res.json()["code"] == "PROVIDER_ERROR"


async def test_test_mode_echoes_sentinel(api_client, create_app):
    fastapi_app.dependency_overrides[get_verification_flow] = lambda: TestModeFlow()
    app = await create_app("NEW_YORK_TIMES")
    credentials = {"appId": app["id"], "appSecret": app["secret"], "countryCode": "62", "phone": "80989999"}

    res = await api_client.post("/mobile/users/verifyPhone", json=credentials)
    assert res.json() == {"success": True, "testCode": "TEST_CODE"}

    res = await api_client.post(
        "/mobile/users/register",
        json={**credentials, "deviceId": "device-1", "verificationCode": "TEST_CODE"},
    )
    assert res.status_code == 200, res.text
