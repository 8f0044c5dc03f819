# backend/wholesale/routes/system.py
"""
Health and reference-data endpoints.
"""

import time

from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import RestrictedState
from wholesale.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(db.text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    return jsonify(body), 200 if healthy else 503


@system_bp.get("/restricted-states")
def restricted_states():
    rows = db.session.query(RestrictedState).order_by(RestrictedState.state_code.asc()).all()
    return jsonify([r.to_dict() for r in rows]), 200
