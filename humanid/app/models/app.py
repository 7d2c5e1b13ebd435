# humanid/app/models/app.py
import enum

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from humanid.app.db.base import Base


class Platform(str, enum.Enum):
    ANDROID = "ANDROID"
    IOS = "IOS"
    WEB = "WEB"


class App(Base):
    """
    A tenant app. The id is chosen by the tenant and never changes.
    The secret is an HMAC over random entropy; it can be regenerated but
    never re-derived.
    """
    __tablename__ = "apps"

    id = Column(String(20), primary_key=True)
    secret = Column(String(128), nullable=False)
    platform = Column(String(16), nullable=False, default=Platform.ANDROID.value)

    # Push delivery credential (FCM server key), optional
    server_key = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
