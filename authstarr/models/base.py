"""SQLAlchemy declarative Base shared by the users, clients, tokens and id_counters tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
