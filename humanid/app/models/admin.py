# humanid/app/models/admin.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from humanid.app.db.base import Base


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash, see security/hashing.py
    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
