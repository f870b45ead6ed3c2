"""
Pluggable task store implementations.

This module provides two interchangeable backends behind one interface:
- In-memory (default, single-process, lost on restart)
- PostgreSQL (durable, pooled connections)

Configure via STORE_BACKEND environment variable:
- "memory" (default)
- "postgresql" (uses DATABASE_URL or DB_HOST/DB_PORT/DB_NAME/DB_USER/DB_PASSWORD)
"""

from .base import Snapshot, TaskStore, get_task_store, initialize_store
from .memory_store import InMemoryTaskStore
from .postgres_store import PostgresTaskStore

__all__ = [
    "Snapshot",
    "TaskStore",
    "get_task_store",
    "initialize_store",
    "InMemoryTaskStore",
    "PostgresTaskStore",
]
