"""Persistence layer (database and log store)."""

from .database import init_schema, open_connection
from .log_store import LogStore

__all__ = ["LogStore", "init_schema", "open_connection"]
