"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text

from cyclo.api.deps import json_response, timing
from cyclo.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and revocation backend health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    payload = {
        "status": "ok",
        "db": db_status,
        "revocation_backend": current_app.config.get("REVOCATION_BACKEND", "memory"),
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
