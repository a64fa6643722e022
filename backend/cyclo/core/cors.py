"""CORS configuration for the auth API consumed by the Cyclo frontend."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Allow the configured frontend origins to call ``/api/*``.

    A blank or ``"*"`` ``CORS_ORIGINS`` opens the API to any origin and turns
    credential support off, since browsers reject that combination.
    """
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    allow_any = not origins or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if allow_any else origins}},
        supports_credentials=not allow_any,
        expose_headers=["X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
