# humanid/app/crud/verification.py
"""
Pending phone verifications, keyed by number.

None of these functions commit; the caller owns the transaction so that
consuming a code and writing the identity it unlocks succeed or fail
together.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.models.verification import Verification


async def create(db: AsyncSession, number: str, request_id: str) -> Verification:
    """Upsert: a new request replaces whatever was pending for this number."""
    verification = await db.get(Verification, number)
    now = datetime.now(timezone.utc)
    if verification:
        verification.request_id = request_id
        verification.created_at = now
    else:
        verification = Verification(number=number, request_id=request_id, created_at=now)
        db.add(verification)
    await db.flush()
    return verification


async def find(db: AsyncSession, number: str) -> Optional[Verification]:
    result = await db.execute(select(Verification).where(Verification.number == number))
    return result.scalars().first()


async def destroy_by_number_and_code(db: AsyncSession, number: str, code: str) -> int:
    """
    Check-and-delete in one statement.

    Returns the number of rows removed (0 or 1). Two requests racing on the
    same code cannot both get 1.
    """
    result = await db.execute(
        delete(Verification).where(
            Verification.number == number,
            Verification.request_id == code,
        )
    )
    return result.rowcount or 0


async def destroy_by_number(db: AsyncSession, number: str) -> int:
    result = await db.execute(delete(Verification).where(Verification.number == number))
    return result.rowcount or 0


def is_expired(verification: Verification, ttl_seconds: int, now: Optional[datetime] = None) -> bool:
    """True once ``verification`` is older than ``ttl_seconds``."""
    now = now or datetime.now(timezone.utc)
    created_at = verification.created_at
    if created_at is None:
        return True
    # SQLite hands back naive datetimes
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return now - created_at > timedelta(seconds=ttl_seconds)
