"""
humanid/app/services/verification.py

Phone verification flows.

Which flow runs is decided once, when the app starts:

- no Nexmo credentials  → TestModeFlow (no network, every code accepted)
- VERIFICATION_FLOW=sms → LocalCodeFlow (our code, sent by SMS, checked locally)
- VERIFICATION_FLOW=verify → RemoteProviderFlow (Nexmo Verify owns the code)

Flows write to the verification store but never commit.
"""

import secrets
import string
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.core.config import Settings
from humanid.app.core.exceptions import InvalidVerificationCode, VerificationFailed
from humanid.app.core.logging import get_logger, mask_number
from humanid.app.crud import verification as verification_store
from humanid.app.services.nexmo import NexmoClient

logger = get_logger(__name__)

TEST_CODE = "TEST_CODE"
TEST_REQUEST_ID = "TEST_REQUEST_ID"


def combine_phone(country_code: str, phone: str) -> str:
    """Drop one national trunk prefix ``0`` and prepend the country code."""
    phone = phone[1:] if phone.startswith("0") else phone
    return f"{country_code}{phone}"


def generate_code(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


class VerificationFlow(ABC):
    test_mode = False

    @abstractmethod
    async def request(self, db: AsyncSession, number: str) -> Optional[str]:
        """
        Start verifying ``number``.

        Returns a value only in test mode (the sentinel); live flows never
        echo the code.
        """

    @abstractmethod
    async def confirm(self, db: AsyncSession, number: str, code: str) -> None:
        """Consume the pending verification or raise InvalidVerificationCode."""


class TestModeFlow(VerificationFlow):
    """Provider not configured: deterministic, offline behaviour."""
    __test__ = False  # not a pytest class
    test_mode = True

    def __init__(self, sentinel: str = TEST_CODE):
        self.sentinel = sentinel

    async def request(self, db: AsyncSession, number: str) -> Optional[str]:
        logger.info(f"Test mode: skipping provider for {mask_number(number)}")
        return self.sentinel

    async def confirm(self, db: AsyncSession, number: str, code: str) -> None:
        return None


class _StoredFlow(VerificationFlow):

    def __init__(self, client: NexmoClient, ttl_seconds: int):
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def _pending(self, db: AsyncSession, number: str):
        verification = await verification_store.find(db, number)
        if verification is None:
            raise InvalidVerificationCode(f"No pending verification for {mask_number(number)}")
        if verification_store.is_expired(verification, self.ttl_seconds):
            raise InvalidVerificationCode("Verification code expired")
        return verification


class LocalCodeFlow(_StoredFlow):
    """We generate the code, Nexmo only delivers it."""

    def __init__(self, client: NexmoClient, ttl_seconds: int, code_length: int = 4):
        super().__init__(client, ttl_seconds)
        self.code_length = code_length

    async def request(self, db: AsyncSession, number: str) -> Optional[str]:
        code = generate_code(self.code_length)
        await verification_store.create(db, number, code)

        result = await self.client.send_sms(number, f"Your {self.client.brand} verification code is {code}")
        if not result.success:
            raise VerificationFailed(
                result.error_text or "Could not send verification code",
                provider_status=result.status,
            )
        return None

    async def confirm(self, db: AsyncSession, number: str, code: str) -> None:
        await self._pending(db, number)
        if await verification_store.destroy_by_number_and_code(db, number, code) != 1:
            raise InvalidVerificationCode()


class RemoteProviderFlow(_StoredFlow):
    """Nexmo Verify generates and checks the code; we keep its request id."""

    async def request(self, db: AsyncSession, number: str) -> Optional[str]:
        result = await self.client.request_verification(number)
        if not result.success:
            raise VerificationFailed(
                result.error_text or "Could not start verification",
                provider_status=result.status,
            )
        await verification_store.create(db, number, result.request_id)
        return None

    async def confirm(self, db: AsyncSession, number: str, code: str) -> None:
        verification = await self._pending(db, number)
        result = await self.client.check_verification(verification.request_id, code)
        if not result.success:
            raise VerificationFailed(
                result.error_text or "Invalid verification code",
                provider_status=result.status,
            )
        # Another request may have consumed it while the provider answered
        if await verification_store.destroy_by_number_and_code(db, number, verification.request_id) != 1:
            raise InvalidVerificationCode()


def build_verification_flow(settings: Settings, http_client: httpx.AsyncClient) -> VerificationFlow:
    if not settings.provider_configured:
        sentinel = TEST_REQUEST_ID if settings.VERIFICATION_FLOW == "verify" else TEST_CODE
        logger.warning("Nexmo credentials missing, phone verification runs in test mode")
        return TestModeFlow(sentinel)

    client = NexmoClient(settings, http_client)
    if settings.VERIFICATION_FLOW == "verify":
        return RemoteProviderFlow(client, settings.OTP_EXPIRY_SECONDS)
    return LocalCodeFlow(client, settings.OTP_EXPIRY_SECONDS, settings.VERIFICATION_CODE_LENGTH)
