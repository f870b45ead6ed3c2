"""
Standardized error taxonomy for the Tasks API.

Every error raised by the store layer derives from `TaskApiError` and carries:
- `code`: stable machine-readable identifier (e.g. VAL_101)
- `message`: public, client-safe description
- `category`: coarse grouping used for logging
- `status_code`: HTTP status the transport layer maps it to
- `data`: extra payload merged into the JSON error body (e.g. current `tasks`)

Storage failures never leak driver detail through `message`; the detail is
logged server-side by the store that caught it.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class TaskApiError(Exception):
    """Base class for all Tasks API errors."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        status_code: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.category = category
        if status_code is not None:
            self.status_code = status_code
        self.data: Dict[str, Any] = dict(data or {})

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "status_code": self.status_code,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, default=str)


class ValidationError(TaskApiError):
    """A required request field is missing or malformed (client-caused)."""

    status_code = 400

    def __init__(self, field: str = "name", message: Optional[str] = None) -> None:
        super().__init__(
            code="VAL_101",
            message=message or f"Task {field} is required",
            category=ErrorCategory.VALIDATION,
            data={},
        )
        self.field = field


class NotFoundError(TaskApiError):
    """The referenced task does not exist; carries the unchanged listing."""

    status_code = 404

    def __init__(self, key: Any = None, tasks: Optional[list] = None) -> None:
        data: Dict[str, Any] = {}
        if tasks is not None:
            data["tasks"] = tasks
        super().__init__(
            code="NF_201",
            message="Task not found",
            category=ErrorCategory.NOT_FOUND,
            data=data,
        )
        self.key = key


class StorageError(TaskApiError):
    """The backing table or connection failed."""

    status_code = 500

    def __init__(self, operation: str, message: Optional[str] = None) -> None:
        super().__init__(
            code="STORE_301",
            message=message or f"Failed to {operation}",
            category=ErrorCategory.STORAGE,
        )
        self.operation = operation


class ConfigurationError(TaskApiError):
    """Startup configuration is invalid or incomplete."""

    status_code = 500

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code="CONFIG_401",
            message=message,
            category=ErrorCategory.CONFIGURATION,
            data=data,
        )


def classify_exception(exc: BaseException) -> TaskApiError:
    """
    Map an arbitrary exception onto the taxonomy.

    TaskApiError instances pass through untouched; SQLAlchemy failures become
    StorageError; everything else is an opaque internal error.
    """
    if isinstance(exc, TaskApiError):
        return exc

    if isinstance(exc, SQLAlchemyError):
        return StorageError("access storage")

    return TaskApiError(code="SYS_901", message="Internal server error", category=ErrorCategory.SYSTEM)


def json_error_response(error: TaskApiError) -> Dict[str, Any]:
    """
    Build the HTTP error body: `{"error": message}` plus any error data
    (for example the current `tasks` listing on a 404).
    """
    body: Dict[str, Any] = {"error": error.message}
    body.update(error.data)
    return body
