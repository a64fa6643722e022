"""Centralized JSON error handling for the API.

Every error leaves the application in the same envelope the services use::

    {"success": false, "error": {"code": "...", "message": "..."}, "request_id": "..."}
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from cyclo.core.logger import ensure_request_id

log = logging.getLogger(__name__)

# Error code -> HTTP status used when serializing service results
ERROR_STATUS: dict[str, int] = {
    "USER_EXISTS": HTTPStatus.CONFLICT,
    "USERNAME_TAKEN": HTTPStatus.CONFLICT,
    "INVALID_CREDENTIALS": HTTPStatus.UNAUTHORIZED,
    "INVALID_CURRENT_PASSWORD": HTTPStatus.BAD_REQUEST,
    "USER_BANNED": HTTPStatus.FORBIDDEN,
    "INVALID_TOKEN": HTTPStatus.UNAUTHORIZED,
    "TOKEN_BLACKLISTED": HTTPStatus.UNAUTHORIZED,
    "NO_TOKEN": HTTPStatus.UNAUTHORIZED,
    "TOKEN_EXPIRED": HTTPStatus.BAD_REQUEST,
    "ALREADY_VERIFIED": HTTPStatus.BAD_REQUEST,
    "VALIDATION_ERROR": HTTPStatus.BAD_REQUEST,
    "USER_NOT_FOUND": HTTPStatus.NOT_FOUND,
}


def status_for_code(code: str | None) -> int:
    """Map a service error code to an HTTP status.

    ``*_FAILED`` codes signal infrastructure failures and map to 500; any
    other unknown code is treated as a client error.
    """
    if code is None:
        return HTTPStatus.OK
    if code in ERROR_STATUS:
        return int(ERROR_STATUS[code])
    if code.endswith("_FAILED"):
        return HTTPStatus.INTERNAL_SERVER_ERROR
    return HTTPStatus.BAD_REQUEST


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to stable error codes."""
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    return mapping.get(status_code, "ERROR")


def error_envelope(
    *, code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build the failure envelope, always attaching the correlation id."""
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error, "request_id": ensure_request_id()}


def _envelope_response(payload: dict[str, Any], status: int) -> tuple[Response, int]:
    return jsonify(payload), status


class APIError(Exception):
    """
    Represent a JSON-serializable API error raised from the HTTP layer.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``"BAD_REQUEST"``.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "BAD_REQUEST",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_envelope(self) -> dict[str, Any]:
        return error_envelope(code=self.code, message=self.message, details=self.details or None)


class Unauthorized(APIError):
    """401 when authentication fails."""

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - 5xx are logged with ``exc_info``; 4xx as warnings.
    - Internal details never reach the client.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        level = log.error if err.status_code >= 500 else log.warning
        level("APIError: code=%s status=%s msg=%s", err.code, err.status_code, err.message)
        return _envelope_response(err.to_envelope(), err.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = _http_status_to_code(status)
        message = (err.description or code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        level = log.error if status >= 500 else log.warning
        level("HTTPException: code=%s status=%s detail=%s", code, status, message)
        return _envelope_response(error_envelope(code=code, message=message), status)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        log.error("OperationalError while serving %s", request.path, exc_info=True)
        payload = error_envelope(
            code="SERVICE_UNAVAILABLE", message="Service temporarily unavailable"
        )
        return _envelope_response(payload, HTTPStatus.SERVICE_UNAVAILABLE)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("Unhandled exception while serving %s", request.path, exc_info=True)
        payload = error_envelope(
            code="INTERNAL_SERVER_ERROR", message="An internal server error occurred"
        )
        return _envelope_response(payload, HTTPStatus.INTERNAL_SERVER_ERROR)
