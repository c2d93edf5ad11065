# File: civic_portal/core/errors.py
# Project: civic-portal

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base for failures surfaced to the client through the notice envelope."""
    status_code = 500
    level = "error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class GatewayError(PortalError):
    status_code = 502


class EntityNotFound(GatewayError):
    status_code = 404


class EntityValidationError(GatewayError):
    status_code = 422


class NotAuthenticated(GatewayError):
    status_code = 401


class Forbidden(GatewayError):
    status_code = 403


class WizardError(PortalError):
    status_code = 409


class GeolocationError(PortalError):
    status_code = 422
    level = "warning"


def notice(message: str, level: str = "error") -> dict:
    return {"level": level, "message": message}


async def _portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "notice": notice(exc.message, exc.level)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, _portal_error_handler)
