from datetime import datetime, timedelta, timezone

import httpx
import pytest

from humanid.app.core.exceptions import (
    InvalidVerificationCode,
    ProviderError,
    VerificationFailed,
)
from humanid.app.crud import verification as store
from humanid.app.services import verification as flows
from humanid.app.services.verification import build_verification_flow, combine_phone
from tests.conftest import make_settings

NUMBER = "6280989999"


@pytest.mark.parametrize(
    "country_code, phone, expected",
    [
        ("62", "80989999", "6280989999"),
        ("62", "080989999", "6280989999"),
        ("1", "5551234", "15551234"),
    ],
)
def test_combine_phone(country_code, phone, expected):
    assert combine_phone(country_code, phone) == expected


async def test_store_create_replaces_pending_code(db):
    await store.create(db, NUMBER, "1111")
    await store.create(db, NUMBER, "2222")
    await db.commit()

    pending = await store.find(db, NUMBER)
    assert pending.request_id == "2222"
    assert await store.destroy_by_number_and_code(db, NUMBER, "1111") == 0


async def test_store_check_and_delete_counts_rows(db):
    await store.create(db, NUMBER, "1234")
    await db.commit()

    assert await store.destroy_by_number_and_code(db, NUMBER, "9999") == 0
    assert await store.destroy_by_number_and_code(db, NUMBER, "1234") == 1
    assert await store.destroy_by_number_and_code(db, NUMBER, "1234") == 0
    assert await store.find(db, NUMBER) is None


async def test_store_destroy_by_number(db):
    await store.create(db, NUMBER, "1234")
    assert await store.destroy_by_number(db, NUMBER) == 1
    assert await store.destroy_by_number(db, NUMBER) == 0


async def test_same_code_is_consumed_by_one_session_only(session_factory):
    async with session_factory() as setup:
        await store.create(setup, NUMBER, "1234")
        await setup.commit()

    async with session_factory() as first, session_factory() as second:
        assert await store.find(first, NUMBER) is not None
        assert await store.find(second, NUMBER) is not None

        assert await store.destroy_by_number_and_code(first, NUMBER, "1234") == 1
        await first.commit()
        assert await store.destroy_by_number_and_code(second, NUMBER, "1234") == 0
        await second.commit()


async def test_is_expired(db):
    pending = await store.create(db, NUMBER, "1234")
    now = datetime.now(timezone.utc)

    assert not store.is_expired(pending, 60, now=now)
    assert store.is_expired(pending, 60, now=now + timedelta(seconds=61))

    pending.created_at = pending.created_at.replace(tzinfo=None)
    assert store.is_expired(pending, 60, now=now + timedelta(seconds=61))


async def test_build_picks_test_mode_without_credentials(tmp_path, http_client):
    settings = make_settings(tmp_path, NEXMO_API_KEY=None, NEXMO_API_SECRET=None)
    flow = build_verification_flow(settings, http_client)
    assert isinstance(flow, flows.TestModeFlow)
    assert flow.sentinel == flows.TEST_CODE

    settings = make_settings(tmp_path, NEXMO_API_KEY=None, VERIFICATION_FLOW="verify")
    assert build_verification_flow(settings, http_client).sentinel == flows.TEST_REQUEST_ID


async def test_build_picks_live_flows(tmp_path, http_client):
    assert isinstance(build_verification_flow(make_settings(tmp_path), http_client), flows.LocalCodeFlow)
    settings = make_settings(tmp_path, VERIFICATION_FLOW="verify")
    assert isinstance(build_verification_flow(settings, http_client), flows.RemoteProviderFlow)


async def test_test_mode_makes_no_calls(db, nexmo):
    flow = flows.TestModeFlow()
    assert await flow.request(db, NUMBER) == flows.TEST_CODE
    await flow.confirm(db, NUMBER, "anything")

    assert nexmo.calls == []
    assert await store.find(db, NUMBER) is None


async def test_local_code_flow_sends_and_consumes_code(db, nexmo, verification_flow):
    assert await verification_flow.request(db, NUMBER) is None

    pending = await store.find(db, NUMBER)
    assert len(pending.request_id) == 4 and pending.request_id.isdigit()

    method, path, params = nexmo.calls[0]
    assert (method, path) == ("POST", "/sms/json")
    assert params["to"] == NUMBER
    assert params["api_key"] == "nexmo-key"
    assert pending.request_id in params["text"]

    with pytest.raises(InvalidVerificationCode):
        await verification_flow.confirm(db, NUMBER, "WRONG")
    await verification_flow.confirm(db, NUMBER, pending.request_id)
    with pytest.raises(InvalidVerificationCode):
        await verification_flow.confirm(db, NUMBER, pending.request_id)


async def test_local_code_flow_rejects_expired_code(db, verification_flow):
    await verification_flow.request(db, NUMBER)
    pending = await store.find(db, NUMBER)
    pending.created_at = datetime.now(timezone.utc) - timedelta(seconds=verification_flow.ttl_seconds + 1)

    with pytest.raises(InvalidVerificationCode, match="expired"):
        await verification_flow.confirm(db, NUMBER, pending.request_id)


async def test_local_code_flow_reports_rejected_sms(db, nexmo, verification_flow):
    nexmo.sms_status = "2"
    with pytest.raises(VerificationFailed) as exc_info:
        await verification_flow.request(db, NUMBER)
    assert exc_info.value.details == {"provider_status": "2"}


async def test_provider_timeout_is_a_provider_error(db, nexmo, verification_flow):
    nexmo.fail_with = httpx.ConnectTimeout("timed out")
    with pytest.raises(ProviderError) as exc_info:
        await verification_flow.request(db, NUMBER)
    assert exc_info.value.retryable


async def test_provider_http_error_is_a_provider_error(db, tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with httpx.AsyncClient(transport=transport) as client:
        flow = build_verification_flow(make_settings(tmp_path), client)
        with pytest.raises(ProviderError):
            await flow.request(db, NUMBER)


async def test_remote_flow_roundtrip(db, nexmo, tmp_path, http_client):
    flow = build_verification_flow(make_settings(tmp_path, VERIFICATION_FLOW="verify"), http_client)

    await flow.request(db, NUMBER)
    assert (await store.find(db, NUMBER)).request_id == "REQ-1"
    assert nexmo.calls[0][1] == "/verify/json"
    assert nexmo.calls[0][2]["brand"] == "humanID"

    with pytest.raises(VerificationFailed):
        await flow.confirm(db, NUMBER, "0000")
    # A rejected code leaves the request pending
    assert await store.find(db, NUMBER) is not None

    await flow.confirm(db, NUMBER, nexmo.valid_code)
    assert await store.find(db, NUMBER) is None


async def test_remote_flow_without_pending_request(db, tmp_path, http_client):
    flow = build_verification_flow(make_settings(tmp_path, VERIFICATION_FLOW="verify"), http_client)
    with pytest.raises(InvalidVerificationCode):
        await flow.confirm(db, NUMBER, "1234")


async def test_remote_flow_rejected_request(db, nexmo, tmp_path, http_client):
    nexmo.verify_status = "1"
    flow = build_verification_flow(make_settings(tmp_path, VERIFICATION_FLOW="verify"), http_client)

    with pytest.raises(VerificationFailed, match="Throttled"):
        await flow.request(db, NUMBER)
    assert await store.find(db, NUMBER) is None
