"""Middleware registration."""

from fastapi import FastAPI

from greenkiddo.config import Settings
from greenkiddo.middleware.cors import setup_cors
from greenkiddo.middleware.error_handler import setup_error_handlers
from greenkiddo.middleware.logging import setup_logging
from greenkiddo.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost).
    CORS is added last so it wraps error responses from inner middleware.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
