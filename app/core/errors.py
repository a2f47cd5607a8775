"""Error taxonomy for the billing back office.

Services raise these; the HTTP layer renders them as
``{"success": false, "error": "<message>"}`` with the mapped status code.
Missing stock items, parties or bank accounts referenced from inside a ledger
update are *not* errors: the ledgers log and skip them.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("billing.http")


class BillingError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(BillingError):
    status_code = 400


class NotFound(BillingError):
    status_code = 404


class Conflict(BillingError):
    status_code = 409


class RemoteSyncError(BillingError):
    status_code = 502


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BillingError)
    async def _billing_error(request: Request, exc: BillingError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(_describe_validation_error(exc)))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("%s %s raised", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body(str(exc) or exc.__class__.__name__))
