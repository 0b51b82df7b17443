"""ORM model for monotonic id counters (userid, clientid)."""

from sqlalchemy import Column, Integer, String

from authstarr.models.base import Base


class IdCounter(Base):
    """Last id handed out for a named sequence; incremented with a single UPDATE."""

    __tablename__ = "id_counters"

    name = Column(String(32), primary_key=True)
    value = Column(Integer, nullable=False)
