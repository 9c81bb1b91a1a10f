"""SQLAlchemy declarative base shared by all server ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
