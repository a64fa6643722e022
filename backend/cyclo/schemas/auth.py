"""Authentication-related Marshmallow schemas.

Loaded at the service boundary; a ``ValidationError`` becomes a
``VALIDATION_ERROR`` result before any storage is touched.
"""

from __future__ import annotations

import re
from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, pre_load, validate

PASSWORD_SPECIALS = r"!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?"
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(f"[{PASSWORD_SPECIALS}]"), "one special character"),
)
NAME_RE = re.compile(r"^[A-Za-z\s'-]*$")


def validate_password_strength(value: str) -> None:
    """
    Require at least one lowercase, uppercase, digit and special character.

    :raises ValidationError: Listing every missing character class.
    """
    missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(value)]
    if missing:
        raise ValidationError(f"Password must contain at least {', '.join(missing)}.")


def _email_field() -> fields.Email:
    return fields.Email(required=True, validate=validate.Length(min=1, max=255))


def _token_field() -> fields.String:
    return fields.String(required=True, validate=validate.Length(min=1, max=1000))


def _strong_password_field() -> fields.String:
    return fields.String(
        required=True,
        validate=[validate.Length(min=8, max=128), validate_password_strength],
    )


def _optional_name_field() -> fields.String:
    return fields.String(
        load_default=None,
        allow_none=True,
        validate=[
            validate.Length(max=50),
            validate.Regexp(
                NAME_RE,
                error="Name can only contain letters, spaces, hyphens, and apostrophes.",
            ),
        ],
    )


class _AuthSchema(Schema):
    """Common behaviour: ignore unknown keys and normalise ``email``."""

    class Meta:
        unknown = EXCLUDE

    @pre_load
    def _strip_email(self, data: Any, **_: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = {**data, "email": data["email"].strip()}
        return data

    @post_load
    def _lower_email(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].lower()
        return data


class RegisterSchema(_AuthSchema):
    """Input payload for account registration."""

    email = _email_field()
    password = _strong_password_field()
    display_name = fields.String(required=True, validate=validate.Length(min=1, max=50))
    first_name = _optional_name_field()
    last_name = _optional_name_field()

    @post_load
    def _strip_names(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        for key in ("display_name", "first_name", "last_name"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip() or None
        if data.get("display_name") is None:
            raise ValidationError("Display name is required.", field_name="display_name")
        return data


class LoginSchema(_AuthSchema):
    """Input payload for authenticating a user."""

    email = _email_field()
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(_AuthSchema):
    refresh_token = _token_field()


class ForgotPasswordSchema(_AuthSchema):
    email = _email_field()


class ResetPasswordSchema(_AuthSchema):
    token = _token_field()
    password = _strong_password_field()


class VerifyEmailSchema(_AuthSchema):
    token = _token_field()


class ResendVerificationSchema(_AuthSchema):
    email = _email_field()


class LogoutSchema(_AuthSchema):
    token = _token_field()


class ChangePasswordSchema(_AuthSchema):
    """Input payload for changing the password of a signed-in user."""

    current_password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    new_password = _strong_password_field()


class ValidateTokenSchema(_AuthSchema):
    token = _token_field()


class UserProfileSchema(Schema):
    """Public profile returned by register, login and ``/me``."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    username = fields.String(required=True)
    display_username = fields.String(required=True)
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    website = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    role = fields.Function(lambda user: getattr(user.role, "value", user.role))
    is_email_verified = fields.Boolean()
    posts_count = fields.Integer()
    followers_count = fields.Integer()
    following_count = fields.Integer()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
