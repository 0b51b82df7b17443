"""ORM model for client applications allowed to request tokens."""

from sqlalchemy import Column, DateTime, Integer, String, func

from authstarr.models.base import Base


class Client(Base):
    """Application credentials (name + secret) permitted to act on behalf of users."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clientid = Column(Integer, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    secret_hash = Column(String(255), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
