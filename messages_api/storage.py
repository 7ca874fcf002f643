import logging
from typing import Callable, List

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from messages_api.config import settings

logger = logging.getLogger(__name__)


def _connect_args(database_url: str) -> dict:
    # check_same_thread=False lets SQLite connections cross FastAPI's threadpool
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=False,
)

# Create SessionLocal class for creating database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()


def init_db() -> None:
    """
    Initialize the database by creating all tables.
    Called during application startup.
    """
    logger.debug(f"Initializing database with URL: {settings.DATABASE_URL}")
    try:
        # Import models to register them with Base.metadata
        from messages_api.models import Message  # noqa: F401

        logger.debug("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def check_db_health() -> bool:
    """
    Check if the database is reachable and schema is applied.

    Returns:
        True if DB is healthy and schema exists, False otherwise.
    """
    logger.debug("Checking database health...")
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            logger.debug("Database connectivity OK")

        if not inspect(engine).has_table("messages"):
            logger.error("Database schema not applied: 'messages' table not found")
            return False
        logger.debug("Database health check passed")
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


# =============================================================================
# Message Repository
# =============================================================================

class MessageRepository:
    """
    Persistent store for messages.

    Every call opens its own session from the factory and closes it before
    returning, so instances can be shared across requests. Rows are returned
    detached with their columns already loaded.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def find_all(self) -> List:
        """Return every message in primary-key order."""
        from messages_api.models import Message

        with self._session_factory() as db:
            messages = db.query(Message).order_by(Message.id.asc()).all()
        logger.info(f"Loaded {len(messages)} messages from the database")
        return messages

    def find_by_id(self, message_id: int):
        """
        Retrieve a message by its ID.

        Returns:
            Message object if found, None otherwise
        """
        from messages_api.models import Message

        logger.info(f"Looking up message by ID: {message_id}")
        with self._session_factory() as db:
            result = db.get(Message, message_id)
        logger.info(f"Message lookup result: {'found' if result else 'not found'}")
        return result

    def insert(self, content: str):
        """
        Insert a new message. The id and created_at are assigned on insert.

        Errors roll back the session and propagate to the caller.
        """
        from messages_api.models import Message

        logger.debug(f"Inserting message with {len(content)} characters")
        with self._session_factory() as db:
            message = Message(content=content)
            db.add(message)
            try:
                db.commit()
            except Exception:
                db.rollback()
                raise
            db.refresh(message)
        logger.info(f"Message created successfully: {message.id}")
        return message
