"""
Process entrypoint.

`api_server.py` builds the FastAPI application; this module re-exports the
factory for `python -m app.main` and `uvicorn app.main:create_app --factory`.
"""

from __future__ import annotations

from api_server import create_app, main

__all__ = ["create_app", "main"]

if __name__ == "__main__":
    main()
