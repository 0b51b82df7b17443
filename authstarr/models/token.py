"""ORM model for issued grants: a client may act as a user in a role."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func

from authstarr.models.base import Base


class Token(Base):
    """
    Opaque bearer token for a (userid, clientid, role) grant.

    At most one live token per tuple; rows are never updated, only deleted on revocation.
    """

    __tablename__ = "tokens"
    __table_args__ = (
        UniqueConstraint("userid", "clientid", "role", name="uq_tokens_grant"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(255), nullable=False, unique=True, index=True)
    userid = Column(Integer, nullable=False, index=True)
    clientid = Column(Integer, nullable=False)
    role = Column(String(64), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
