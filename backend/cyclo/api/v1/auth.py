"""Authentication endpoints using the service layer.

Handlers stay thin: they hand the JSON body to :class:`AuthService` and
serialize its result; validation and status selection happen elsewhere.
"""

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus

from flask import Blueprint, g

from cyclo.api.deps import (
    bearer_token,
    get_auth_service,
    json_body,
    json_response,
    require_auth,
    result_response,
    timing,
)
from cyclo.core.errors import APIError

bp = Blueprint("auth", __name__)

_VALIDATE_TOKEN_STATUS = {
    "TOKEN_EXPIRED": HTTPStatus.UNAUTHORIZED,
    "USER_NOT_FOUND": HTTPStatus.UNAUTHORIZED,
}


@bp.get("/health")
def health():
    """Liveness probe for the auth routes."""

    return json_response(
        {
            "success": True,
            "data": {
                "status": "healthy",
                "timestamp": datetime.now(UTC).isoformat(),
                "service": "auth-service",
            },
        }
    )


@bp.post("/register")
@timing
def register():
    """Create an account and return a token pair with the new profile."""

    result = get_auth_service().register(json_body())
    return result_response(result, success_status=201)


@bp.post("/login")
@timing
def login():
    return result_response(get_auth_service().login(json_body()))


@bp.post("/refresh")
@timing
def refresh():
    return result_response(get_auth_service().refresh(json_body()))


@bp.post("/forgot-password")
@timing
def forgot_password():
    return result_response(get_auth_service().forgot_password(json_body()))


@bp.post("/reset-password")
@timing
def reset_password():
    return result_response(get_auth_service().reset_password(json_body()))


@bp.post("/verify-email")
@timing
def verify_email():
    return result_response(get_auth_service().verify_email(json_body()))


@bp.post("/resend-verification")
@timing
def resend_verification():
    return result_response(get_auth_service().resend_verification(json_body()))


@bp.post("/logout")
@timing
def logout():
    """Revoke the bearer token, or the ``token`` field of the body."""

    body = json_body()
    token = bearer_token() or body.get("token")
    return result_response(get_auth_service().logout({"token": token}))


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the profile of the authenticated user."""

    return result_response(get_auth_service().get_profile(g.current_user_id))


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    """Replace the password of the authenticated user."""

    return result_response(get_auth_service().change_password(g.current_user_id, json_body()))


@bp.post("/validate-token")
@timing
def validate_token():
    """Report whether an access token is usable, with its user's profile.

    The token comes from the ``token`` field of the body or, failing that,
    the bearer header. An expired token or a deleted user answers 401 here.
    """

    token = json_body().get("token") or bearer_token()
    if not token:
        raise APIError("Token is required", code="NO_TOKEN")
    result = get_auth_service().validate_token({"token": token})
    return result_response(result, status_overrides=_VALIDATE_TOKEN_STATUS)
