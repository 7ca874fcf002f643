"""
SQLAlchemy ORM models for database tables.

For Pydantic request/response schemas, see schemas.py.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Text

from messages_api.storage import Base


# Range of the 64-bit signed integer primary key
MIN_MESSAGE_ID = -(2 ** 63)
MAX_MESSAGE_ID = 2 ** 63 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """
    SQLAlchemy model for stored messages.

    Table: messages
    Primary Key: id (assigned on insert)
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    content = Column(Text, nullable=False)
    # Set once at insert time, never updated
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
