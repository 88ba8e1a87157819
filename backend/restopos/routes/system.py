# backend/restopos/routes/system.py
"""
System health endpoint.

Checks the database and the tenant directory so a deployment can tell an
unreachable database from a directory that lost its superadmin.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Restaurant, SessionToken, User
from ..permissions import Role
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    """Check database connectivity with a couple of cheap counts."""
    start_time = time.time()
    try:
        restaurant_count = db.session.query(Restaurant).count()
        user_count = db.session.query(User).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {
                "restaurants": restaurant_count,
                "users": user_count,
            },
        }
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Database error",
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            },
        }
    except SQLAlchemyError:
        current_app.logger.exception("Session service health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Session service error",
        }


def check_directory_health() -> dict:
    """A populated directory must still have at least one superadmin."""
    start_time = time.time()
    try:
        has_restaurants = db.session.query(Restaurant.id).first() is not None
        superadmins = db.session.query(User).filter(User.role == Role.SUPERADMIN.value).count()
        result = {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"superadmins": superadmins},
        }
        if has_restaurants and superadmins == 0:
            result["status"] = "degraded"
            result["warning"] = "No superadmin exists"
        return result
    except SQLAlchemyError:
        current_app.logger.exception("Directory health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Directory error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
        "directory": check_directory_health(),
    }
    statuses = [check["status"] for check in checks.values()]

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
