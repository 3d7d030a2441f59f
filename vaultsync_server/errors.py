"""
VaultSync Server - API Errors

Error type raised by the endpoints and the handler that renders it as
{error, code, details?, policy?}.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class VaultAPIError(Exception):
    """
    Error returned to clients with a machine readable code

    Attributes:
        message: Human readable description
        status_code: HTTP status code
        code: Machine readable code (CONFLICT, FILE_EXISTS, NOT_FOUND, ...)
        details: Optional structured details (e.g. server content on conflict)
        policy: Optional policy that caused a rejection
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        policy: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.policy = policy

    def ToResponseBody(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        if self.policy is not None:
            body["policy"] = self.policy
        return body


async def vault_api_error_handler(request: Request, exc: VaultAPIError) -> JSONResponse:
    """
    Render a VaultAPIError, logging server faults louder than client mistakes
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.ToResponseBody())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render request body and query validation failures in the same error format
    """
    logger.warning(f"{request.method} {request.url.path} -> invalid request: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "code": "MISSING_PARAM", "details": {"errors": _SerializeValidationErrors(exc)}}
    )


def _SerializeValidationErrors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


def RegisterErrorHandlers(app: FastAPI) -> None:
    """
    Attach the VaultSync error handlers to an application
    """
    app.add_exception_handler(VaultAPIError, vault_api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
