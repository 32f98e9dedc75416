# prodtrack/errors.py
"""
Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``main.py`` turn them into
``{"error": message}`` JSON bodies with the matching status code.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input data"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class ReferentialConflictError(AppError):
    status_code = 400
    default_message = "Resource is still referenced"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(AppError):
    # Same response as AuthenticationError.
    status_code = 401
    default_message = "Unauthorized"


def _pydantic_details(errors) -> List[Dict[str, str]]:
    details = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


def install_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        body = {"error": "Invalid input data", "details": _pydantic_details(exc.errors())}
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("ERR %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
