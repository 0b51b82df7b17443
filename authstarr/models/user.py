"""ORM model for user accounts (base accounts and derived role accounts)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from authstarr.models.base import Base


class User(Base):
    """
    Account that can authenticate with a username and password.

    role: 'client' for a base account; any other value marks a role account
    derived from the base account with the same userid.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    userid = Column(Integer, nullable=False, index=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(64), nullable=False, default="client")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
