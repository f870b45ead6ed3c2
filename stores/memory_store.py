"""
In-memory task store for single-process deployments.
"""

from __future__ import annotations

import threading
from typing import Any, List

from errors import NotFoundError, ValidationError

from .base import Snapshot, TaskStore


class InMemoryTaskStore(TaskStore):
    """
    Ordered sequence of task names held in process memory.

    Tasks have no identity beyond their name: duplicates are allowed and a
    delete removes every occurrence. Data is lost on restart.
    """

    identity_field = "name"
    durable = False

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tasks: List[str] = []

    def add(self, name: Any) -> Snapshot:
        if not name:
            raise ValidationError("name")
        with self._lock:
            self._tasks.append(name)
            return Snapshot(tasks=list(self._tasks))

    def list(self) -> List[str]:
        with self._lock:
            return list(self._tasks)

    def delete(self, key: Any) -> Snapshot:
        if not key:
            raise ValidationError("name")
        with self._lock:
            if key not in self._tasks:
                raise NotFoundError(key, tasks=list(self._tasks))
            self._tasks = [task for task in self._tasks if task != key]
            return Snapshot(tasks=list(self._tasks))

    def ping(self) -> bool:
        return True
