"""Boundary exception handlers — clients get a status and a short message, never internals."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lore_engine.infra.deadline import DeadlineExceeded
from lore_engine.infra.state_store import StateConflictError

logger = logging.getLogger("lore-engine.errors")


async def _conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Save conflict on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=409,
        content={"error": "The game state changed during this turn. Please retry.", "retryable": True},
    )


async def _deadline_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Deadline exceeded on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=504, content={"error": "Request timed out"})


async def _http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "An internal error occurred"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(StateConflictError, _conflict_handler)
    app.add_exception_handler(DeadlineExceeded, _deadline_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
