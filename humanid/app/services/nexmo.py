"""
humanid/app/services/nexmo.py

Nexmo (Vonage) HTTP client.

- Verify API: Nexmo generates, sends and checks the code
- SMS API: we send a code we generated ourselves
- Transport failures raise ProviderError; a payload with a non-zero status
  comes back as an unsuccessful ProviderResult
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from humanid.app.core.config import Settings
from humanid.app.core.exceptions import ProviderError
from humanid.app.core.logging import get_logger, mask_number

logger = get_logger(__name__)

SUCCESS_STATUS = "0"


@dataclass(frozen=True)
class ProviderResult:
    success: bool
    request_id: Optional[str] = None
    status: Optional[str] = None
    error_text: Optional[str] = None


class NexmoClient:
    """Thin async wrapper over the Nexmo Verify and SMS endpoints."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.api_url = settings.NEXMO_API_URL.rstrip("/")
        self.rest_url = settings.NEXMO_REST_URL.rstrip("/")
        self.api_key = settings.NEXMO_API_KEY
        self.api_secret = settings.NEXMO_API_SECRET
        self.sender = settings.NEXMO_FROM
        self.brand = settings.NEXMO_BRAND
        self.code_length = settings.VERIFICATION_CODE_LENGTH
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS
        self._client = http_client

    @property
    def _credentials(self) -> Dict[str, str]:
        return {"api_key": self.api_key, "api_secret": self.api_secret}

    async def request_verification(self, number: str) -> ProviderResult:
        """Ask Nexmo Verify to send a code to ``number``."""
        body = await self._call(
            "GET",
            f"{self.api_url}/verify/json",
            params={
                **self._credentials,
                "number": number,
                "brand": self.brand,
                "code_length": self.code_length,
            },
        )
        status = str(body.get("status"))
        request_id = body.get("request_id")
        if status == SUCCESS_STATUS and request_id:
            logger.info(f"Verify request created for {mask_number(number)}")
            return ProviderResult(success=True, request_id=request_id, status=status)

        logger.warning(f"Verify request rejected (status={status}): {body.get('error_text')}")
        return ProviderResult(success=False, status=status, error_text=body.get("error_text"))

    async def check_verification(self, request_id: str, code: str) -> ProviderResult:
        body = await self._call(
            "GET",
            f"{self.api_url}/verify/check/json",
            params={**self._credentials, "request_id": request_id, "code": code},
        )
        status = str(body.get("status"))
        if status == SUCCESS_STATUS and body.get("request_id"):
            return ProviderResult(success=True, request_id=body.get("request_id"), status=status)

        logger.info(f"Verify check rejected (status={status}): {body.get('error_text')}")
        return ProviderResult(success=False, request_id=request_id, status=status, error_text=body.get("error_text"))

    async def send_sms(self, number: str, text: str) -> ProviderResult:
        body = await self._call(
            "POST",
            f"{self.rest_url}/sms/json",
            data={
                **self._credentials,
                "from": self.sender,
                "to": number,
                "text": text,
            },
        )
        messages = body.get("messages") or []
        if len(messages) == 1 and str(messages[0].get("status")) == SUCCESS_STATUS:
            logger.info(f"SMS sent to {mask_number(number)}")
            return ProviderResult(success=True, request_id=messages[0].get("message-id"), status=SUCCESS_STATUS)

        first = messages[0] if messages else {}
        logger.warning(f"SMS rejected (status={first.get('status')}): {first.get('error-text')}")
        return ProviderResult(
            success=False,
            status=None if not first else str(first.get("status")),
            error_text=first.get("error-text"),
        )

    async def _call(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"Nexmo timeout: {method} {url}")
            raise ProviderError("SMS provider timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"Nexmo HTTP {e.response.status_code}: {method} {url}")
            raise ProviderError(f"SMS provider returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Nexmo transport error: {e}")
            raise ProviderError("SMS provider unreachable")

        try:
            return response.json()
        except ValueError:
            raise ProviderError("SMS provider sent an unreadable response")
