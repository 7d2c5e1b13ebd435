# humanid/app/models/user.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from humanid.app.db.base import Base


class User(Base):
    """
    Global, app-independent anchor for a person.

    The phone number is never stored. ``hash`` is an HMAC of the normalized
    number, which lets a returning number find its user without keeping the
    number itself.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    hash = Column(String(64), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
