# humanid/app/core/exceptions.py
"""
Error taxonomy.

Every error raised by the service layer is a HumanIDError carrying an
ErrorKind. Handlers and callers branch on ``kind``, never on the message.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_APP_ID = "INVALID_APP_ID"
    INVALID_SECRET = "INVALID_SECRET"
    INVALID_HASH = "INVALID_HASH"
    INVALID_VERIFICATION_CODE = "INVALID_VERIFICATION_CODE"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    DUPLICATE = "DUPLICATE"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PROVIDER_ERROR = "PROVIDER_ERROR"


class HumanIDError(Exception):
    """
    Base exception for the humanID service.
    """
    kind: ErrorKind = ErrorKind.VALIDATION_ERROR
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


class ValidationError(HumanIDError):
    """Malformed input, e.g. a bad app id."""
    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, detail: str, details: Optional[Any] = None):
        self.detail = detail
        super().__init__(f"Validation error: {detail}", details=details)


class InvalidAppId(HumanIDError):
    kind = ErrorKind.INVALID_APP_ID

    def __init__(self, app_id: str):
        super().__init__(f"Invalid app ID: {app_id}")


class InvalidSecret(HumanIDError):
    kind = ErrorKind.INVALID_SECRET

    def __init__(self, message: str = "Invalid app secret"):
        super().__init__(message)


class InvalidHash(HumanIDError):
    kind = ErrorKind.INVALID_HASH

    def __init__(self, message: str = "Invalid login hash"):
        super().__init__(message)


class InvalidVerificationCode(HumanIDError):
    kind = ErrorKind.INVALID_VERIFICATION_CODE

    def __init__(self, message: str = "Invalid verification code"):
        super().__init__(message)


class VerificationFailed(InvalidVerificationCode):
    """The provider answered, but rejected the code or the request."""
    kind = ErrorKind.VERIFICATION_FAILED

    def __init__(self, message: str = "Verification failed", provider_status: Optional[str] = None):
        super().__init__(message)
        self.details = {"provider_status": provider_status} if provider_status else None


class DuplicateError(HumanIDError):
    kind = ErrorKind.DUPLICATE


class ConflictError(HumanIDError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    retryable = True


class NotFoundError(HumanIDError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InvalidToken(HumanIDError):
    kind = ErrorKind.INVALID_TOKEN
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class InvalidCredentials(HumanIDError):
    kind = ErrorKind.INVALID_CREDENTIALS
    status_code = 401

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class ProviderError(HumanIDError):
    """Network or provider fault talking to the SMS backend."""
    kind = ErrorKind.PROVIDER_ERROR
    status_code = 502
    retryable = True
