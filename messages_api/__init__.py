"""Messages API: a small CRUD service with a cache-aside cache over SQLAlchemy."""

__version__ = "1.0.0"
