"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from cyclo.core.errors import Unauthorized, status_for_code
from cyclo.core.logger import ensure_request_id
from cyclo.core.wiring import AUTH_SERVICE_KEY
from cyclo.services import AuthService, ServiceResult

F = TypeVar("F", bound=Callable[..., Any])


def get_auth_service() -> AuthService:
    """Return the :class:`AuthService` wired at application start-up."""

    service = current_app.extensions.get(AUTH_SERVICE_KEY)
    if service is None:
        raise RuntimeError("AuthService is not configured on this application.")
    return cast(AuthService, service)


def json_body() -> dict[str, Any]:
    """Return the JSON request body, or an empty mapping when absent or invalid."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def bearer_token() -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, unrevoked access token.

    On success ``g.token_payload`` and ``g.current_user_id`` are set.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("Access token is required", code="NO_TOKEN")
        result = get_auth_service().authenticate(token)
        if not result.success or result.error is not None:
            code = result.error_code or "INVALID_TOKEN"
            message = result.error.message if result.error else "Invalid token"
            if code.endswith("_FAILED"):
                raise RuntimeError(message)
            raise Unauthorized(message, code=code)
        g.token_payload = result.data
        g.current_user_id = result.data.user_id
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def result_response(
    result: ServiceResult,
    *,
    success_status: int = 200,
    status_overrides: Mapping[str, int] | None = None,
) -> Response:
    """Serialize a :class:`ServiceResult`, picking the status from its error code.

    ``status_overrides`` maps error codes to statuses that differ on one route.
    """

    body = result.to_dict()
    if result.success:
        return json_response(body, status=success_status)
    body["request_id"] = ensure_request_id()
    code = result.error_code
    if status_overrides and code in status_overrides:
        return json_response(body, status=status_overrides[code])
    return json_response(body, status=status_for_code(code))


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
