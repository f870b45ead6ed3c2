from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt, StrictStr

from app.core.settings import Settings, get_settings
from errors import StorageError, TaskApiError, ValidationError, classify_exception, json_error_response
from observability import build_log_context, log_event
from stores import TaskStore, get_task_store

INVALID_FIELD_MESSAGES = {
    "name": "Task name must be a string",
    "id": "Task id must be an integer",
}


class AddTaskRequest(BaseModel):
    name: Optional[str] = None


class DeleteTaskRequest(BaseModel):
    name: Optional[str] = None
    id: Optional[Union[StrictInt, StrictStr]] = None


def _body_validation_error(errors: list, default_field: str) -> ValidationError:
    """Collapse framework body-validation errors into a single ValidationError."""
    for err in errors:
        if err.get("type") == "json_invalid":
            return ValidationError(default_field, "Request body must be valid JSON")
        loc = err.get("loc") or ()
        if len(loc) >= 2 and loc[0] == "body" and loc[1] in INVALID_FIELD_MESSAGES:
            return ValidationError(loc[1], INVALID_FIELD_MESSAGES[loc[1]])
    return ValidationError(default_field)


def create_app(store: Optional[TaskStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the Tasks API around a single store instance.

    The store is chosen once at startup; handlers only ever talk to it through
    the TaskStore interface. `/health` exists only for the durable backend.
    Raises ConfigurationError when the environment is invalid.
    """
    settings = settings or get_settings()
    if store is None:
        store = get_task_store(settings)

    log_ctx = build_log_context(tool="api_server", backend=settings.STORE_BACKEND)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        store.close()

    app = FastAPI(title="Tasks API", version=settings.VERSION, lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings
    app.state.log_ctx = log_ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def error_response(request: Request, exc: TaskApiError) -> JSONResponse:
        event = "storage_error" if isinstance(exc, StorageError) else "task_error"
        log_event(
            event,
            ctx=log_ctx,
            data={"path": request.url.path, "code": exc.code, "status": exc.status_code},
        )
        return JSONResponse(status_code=exc.status_code, content=json_error_response(exc))

    @app.exception_handler(TaskApiError)
    async def task_api_error_handler(request: Request, exc: TaskApiError):
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        default_field = store.identity_field if request.url.path == "/deleteTask" else "name"
        return error_response(request, _body_validation_error(exc.errors(), default_field))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        err = classify_exception(exc)
        log_event(
            "unhandled_error",
            ctx=log_ctx,
            data={"path": request.url.path, "code": err.code, "type": type(exc).__name__},
        )
        return JSONResponse(status_code=err.status_code, content=json_error_response(err))

    @app.post("/addTask")
    def add_task(req: Optional[AddTaskRequest] = None):
        snapshot = store.add(req.name if req else None)
        log_event("task_added", ctx=log_ctx, data={"count": len(snapshot.tasks)})
        return {"message": "Task added", **snapshot.to_dict()}

    @app.get("/listTasks")
    def list_tasks():
        return {"tasks": store.list()}

    @app.delete("/deleteTask")
    def delete_task(req: Optional[DeleteTaskRequest] = None):
        key = getattr(req, store.identity_field) if req else None
        snapshot = store.delete(key)
        log_event("task_deleted", ctx=log_ctx, data={"count": len(snapshot.tasks)})
        return {"message": "Task deleted", **snapshot.to_dict()}

    if store.durable:

        @app.get("/health")
        def health_check():
            timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
            return {"status": "OK", "timestamp": timestamp}

    return app


def main() -> None:
    """
    Build the app from the environment and serve it.

    Importing this module has no side effects; for an external ASGI server use
    `uvicorn api_server:create_app --factory`.
    """
    import uvicorn

    app = create_app()
    settings: Settings = app.state.settings
    data: Dict[str, Any] = {
        "host": settings.API_HOST,
        "port": settings.API_PORT,
        "url": f"http://{settings.API_HOST}:{settings.API_PORT}",
    }
    log_event("api_server_started", ctx=app.state.log_ctx, data=data)
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
