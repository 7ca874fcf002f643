"""
Message service: cache-aside reads and write-invalidate creates.

Reads check the "messages" cache namespace first and fall back to the
repository on a miss. The list of all messages and each single message are
cached under separate keys. A create inserts through the repository and
then evicts the whole namespace before returning, so no read after a create
can observe cache content older than that create.

Repository errors are not caught here; they propagate to the HTTP layer.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from messages_api.cache import NamespacedCache
from messages_api.config import settings
from messages_api.errors import InvalidArgumentError
from messages_api.models import MAX_MESSAGE_ID, MIN_MESSAGE_ID
from messages_api.schemas import CreateMessageRequest, MessageResponse
from messages_api.storage import MessageRepository

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "messages"
ALL_MESSAGES_KEY = "all"


class MessageService:

    def __init__(self, repository: MessageRepository, cache: NamespacedCache):
        self.repository = repository
        self.cache = cache

    def list_messages(self) -> List[MessageResponse]:
        """All messages in store order."""
        messages = self.cache.get_or_compute(
            CACHE_NAMESPACE, ALL_MESSAGES_KEY, self._load_all
        )
        return list(messages)

    def get_message(self, message_id: Optional[int]) -> Optional[MessageResponse]:
        """The message with the given id, or None if there is none."""
        if message_id is None:
            raise InvalidArgumentError("ID must not be null")
        if not MIN_MESSAGE_ID <= message_id <= MAX_MESSAGE_ID:
            # No row can hold an id outside the key column range
            return None
        # Integer keys never collide with ALL_MESSAGES_KEY
        return self.cache.get_or_compute(
            CACHE_NAMESPACE, message_id, lambda: self._load_one(message_id)
        )

    def create_message(self, command: CreateMessageRequest) -> MessageResponse:
        """Store a new message and invalidate every cached read."""
        saved = self.repository.insert(command.content)
        self.cache.evict_all(CACHE_NAMESPACE)
        logger.info(f"Message {saved.id} created, cache namespace '{CACHE_NAMESPACE}' evicted")
        return MessageResponse.model_validate(saved)

    def _load_all(self) -> tuple:
        return tuple(MessageResponse.model_validate(row) for row in self.repository.find_all())

    def _load_one(self, message_id: int) -> Optional[MessageResponse]:
        row = self.repository.find_by_id(message_id)
        return MessageResponse.model_validate(row) if row is not None else None


@lru_cache()
def get_message_service() -> MessageService:
    """
    Process-wide service instance, used as a FastAPI dependency.
    Tests replace it through app.dependency_overrides.
    """
    return MessageService(
        repository=MessageRepository(),
        cache=NamespacedCache(
            max_size=settings.CACHE_MAX_SIZE,
            ttl_seconds=settings.CACHE_TTL_SECONDS,
        ),
    )
