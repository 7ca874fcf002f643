"""
Pytest configuration and shared fixtures.

Test settings are set here, before anything imports messages_api, so the
engine is bound to a throwaway SQLite file instead of the real database.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_messages.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Clear settings cache before any app imports to ensure test env vars are used
from messages_api.config import get_settings  # noqa: E402
get_settings.cache_clear()

from messages_api.models import Message  # noqa: E402


T0 = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def build_row(message_id: int, content: str, created_at: datetime = None) -> Message:
    """Build a detached Message row as the repository would return it."""
    if created_at is None:
        created_at = T0 + timedelta(minutes=message_id)
    return Message(id=message_id, content=content, created_at=created_at)


@pytest.fixture
def rows():
    """Two stored messages, in insertion order."""
    return [build_row(1, "Message 1"), build_row(2, "Message 2")]


@pytest.fixture
def make_row():
    return build_row
