# humanid/app/models/verification.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime

from humanid.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Verification(Base):
    """
    Pending phone verification, one per number.

    ``request_id`` is either the provider's Verify request id or the code we
    generated and sent by SMS, depending on the verification flow.
    """
    __tablename__ = "verifications"

    number = Column(String(32), primary_key=True)
    request_id = Column(String(64), nullable=False)

    # Set in Python so the TTL check compares like with like on every backend
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
