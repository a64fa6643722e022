"""Tests for the marshmallow schemas guarding the auth endpoints."""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from cyclo.schemas import (
    ChangePasswordSchema,
    LoginSchema,
    RegisterSchema,
    ResetPasswordSchema,
)
from cyclo.schemas.auth import validate_password_strength
from tests.helpers.utils import STRONG_PASSWORD


class TestRegisterSchema:
    def test_normalizes_email_and_names(self):
        data = RegisterSchema().load(
            {
                "email": "  Alice@Example.COM ",
                "password": STRONG_PASSWORD,
                "display_name": "  Alice Smith ",
                "first_name": " Alice ",
            }
        )

        assert data["email"] == "alice@example.com"
        assert data["display_name"] == "Alice Smith"
        assert data["first_name"] == "Alice"
        assert data["last_name"] is None

    def test_unknown_keys_are_ignored(self):
        data = RegisterSchema().load(
            {
                "email": "a@example.com",
                "password": STRONG_PASSWORD,
                "display_name": "A",
                "role": "admin",
            }
        )

        assert "role" not in data

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("email", "not-an-email"),
            ("password", "short1!"),
            ("display_name", ""),
            ("display_name", "x" * 51),
            ("first_name", "R2-D2"),
        ],
    )
    def test_rejects_bad_field(self, field, value):
        payload = {
            "email": "a@example.com",
            "password": STRONG_PASSWORD,
            "display_name": "Alice",
            field: value,
        }

        with pytest.raises(ValidationError) as info:
            RegisterSchema().load(payload)
        assert field in info.value.messages

    def test_blank_display_name_after_strip(self):
        with pytest.raises(ValidationError) as info:
            RegisterSchema().load(
                {"email": "a@example.com", "password": STRONG_PASSWORD, "display_name": "   "}
            )
        assert "display_name" in info.value.messages

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as info:
            RegisterSchema().load({})
        assert set(info.value.messages) == {"email", "password", "display_name"}


class TestPasswordStrength:
    @pytest.mark.parametrize(
        ("password", "missing"),
        [
            ("UPPERCASE1!", "one lowercase letter"),
            ("lowercase1!", "one uppercase letter"),
            ("NoDigits!!", "one number"),
            ("NoSpecial12", "one special character"),
        ],
    )
    def test_reports_missing_class(self, password, missing):
        with pytest.raises(ValidationError, match=missing):
            validate_password_strength(password)

    def test_accepts_strong_password(self):
        validate_password_strength(STRONG_PASSWORD)

    def test_reset_requires_strong_password(self):
        with pytest.raises(ValidationError) as info:
            ResetPasswordSchema().load({"token": "t", "password": "weakpass"})
        assert "password" in info.value.messages


def test_login_accepts_any_non_empty_password():
    data = LoginSchema().load({"email": "A@B.CO", "password": "x"})

    assert data == {"email": "a@b.co", "password": "x"}


class TestChangePasswordSchema:
    def test_current_password_skips_strength_rules(self):
        data = ChangePasswordSchema().load(
            {"current_password": "legacy", "new_password": STRONG_PASSWORD}
        )

        assert data == {"current_password": "legacy", "new_password": STRONG_PASSWORD}

    def test_new_password_must_be_strong(self):
        with pytest.raises(ValidationError) as exc:
            ChangePasswordSchema().load({"current_password": "x", "new_password": "weakpass"})

        assert set(exc.value.messages) == {"new_password"}
