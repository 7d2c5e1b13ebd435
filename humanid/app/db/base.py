# humanid/app/db/base.py
"""
SQLAlchemy declarative base.

Kept apart from db/session.py so models can import Base without creating
an engine.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.
    """
    pass


__all__ = ["Base"]
