# humanid/app/models/app_user.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from humanid.app.db.base import Base


class AppUser(Base):
    """
    Per-(user, app) identity. ``hash`` is the credential the SDK keeps on the
    device in place of a password.
    """
    __tablename__ = "app_users"
    __table_args__ = (
        UniqueConstraint("user_id", "app_id", name="uq_app_users_user_app"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    app_id = Column(String(20), ForeignKey("apps.id", ondelete="CASCADE"), nullable=False, index=True)

    hash = Column(String(64), unique=True, index=True, nullable=False)

    device_id = Column(String(255), nullable=True)
    notif_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
