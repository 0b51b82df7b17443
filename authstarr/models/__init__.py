"""SQLAlchemy ORM models."""

from authstarr.models.base import Base
from authstarr.models.client import Client
from authstarr.models.counter import IdCounter
from authstarr.models.token import Token
from authstarr.models.user import User

__all__ = ["Base", "Client", "IdCounter", "Token", "User"]
