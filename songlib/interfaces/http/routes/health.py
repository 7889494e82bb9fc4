from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from songlib.database.db_manager import db

health_bp = Blueprint("health_bp", __name__)


def _database_check() -> tuple[bool, str]:
    try:
        db.session.execute(text("SELECT 1"))
        return True, "ok"
    except Exception as exc:  # pragma: no cover - DB failure path
        db.session.rollback()
        return False, f"error: {exc}"


def _metadata_configured() -> bool:
    client = current_app.extensions.get("metadata_client")
    return bool(client is not None and client.configured)


@health_bp.route("/healthz")
def healthz():
    healthy, detail = _database_check()
    checks = {
        "database": detail,
        "metadata_api": "configured" if _metadata_configured() else "unconfigured",
    }
    status = 200 if healthy else 503
    overall = "ok" if healthy else "degraded"
    return jsonify({"status": overall, "checks": checks}), status


@health_bp.route("/readyz")
def readyz():
    db_ok, _ = _database_check()
    metadata_ok = _metadata_configured()
    ready = db_ok and metadata_ok
    payload = {
        "status": "ready" if ready else "blocked",
        "database": db_ok,
        "metadata_api": metadata_ok,
    }
    return jsonify(payload), 200 if ready else 503
