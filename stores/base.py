"""
Task store interface and factory.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from errors import StorageError

if TYPE_CHECKING:
    from app.core.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """
    Result of a mutating store call.

    `tasks` is always the full listing read after the mutation; `task` is the
    newly created row when the store assigns identity (durable backend only).
    """

    tasks: List[Any]
    task: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"tasks": self.tasks}
        if self.task is not None:
            out["task"] = self.task
        return out


class TaskStore(ABC):
    """
    Abstract base class for task stores.

    Implementations own the whole collection and expose three operations:
    - add: validate the name, insert, return a fresh Snapshot
    - list: return the current listing in the store's order
    - delete: validate the key, remove, return a fresh Snapshot

    `identity_field` names the request field a delete is keyed on.
    """

    identity_field: str = "name"
    durable: bool = False

    def initialize(self) -> None:
        """Prepare backing storage. Must be idempotent."""

    @abstractmethod
    def add(self, name: Any) -> Snapshot:
        """Add a task."""
        pass

    @abstractmethod
    def list(self) -> List[Any]:
        """List all tasks."""
        pass

    @abstractmethod
    def delete(self, key: Any) -> Snapshot:
        """Delete a task by its identity field."""
        pass

    # Health check
    @abstractmethod
    def ping(self) -> bool:
        """Check if store is healthy."""
        pass

    def close(self) -> None:
        """Close connections."""


def get_task_store(settings: "Settings") -> TaskStore:
    """
    Factory function to get the configured task store.

    Configure via environment:
    - STORE_BACKEND: "memory" or "postgresql" (default: "memory")
    - DATABASE_URL or DB_HOST/DB_PORT/DB_NAME/DB_USER/DB_PASSWORD (postgresql)
    - STORE_INIT_STRICT: raise instead of logging when initialization fails
    """
    if settings.durable:
        from .postgres_store import PostgresTaskStore

        store: TaskStore = PostgresTaskStore(
            settings.database_url,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    else:
        from .memory_store import InMemoryTaskStore

        store = InMemoryTaskStore()

    initialize_store(store, strict=settings.STORE_INIT_STRICT)
    return store


def initialize_store(store: TaskStore, *, strict: bool = False) -> bool:
    """
    Run `store.initialize()` under the startup failure policy.

    Non-strict: the failure is logged and the process keeps serving; requests
    then fail individually with StorageError. Strict: the failure is raised.
    """
    try:
        store.initialize()
        return True
    except StorageError:
        if strict:
            raise
        logger.error("Task store initialization failed; continuing in degraded mode")
        return False
