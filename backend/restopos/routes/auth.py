# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Login throttling to prevent brute-force attacks
- Account lockout after repeated failed attempts
- Session management with token-based auth
- Active tenant scope stored on the session
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..permissions import Action
from ..services import auth_service, login_throttle_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(context_user, scope) -> dict:
    return {
        "user": context_user.to_dict(),
        "restaurant": context_user.restaurant.to_dict() if context_user.restaurant else None,
        "scope": scope.to_dict(),
    }


def _locked_response(status):
    return jsonify({
        "error": "Account temporarily locked due to too many failed login attempts",
        "code": "locked",
        "retry_after_seconds": status.seconds_until_unlock,
    }), 429


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required", "code": "validation_error"}), 400

    status = login_throttle_service.lockout_status(email)
    if status.locked:
        return _locked_response(status)

    user = auth_service.authenticate(email, password)

    if not user:
        status = login_throttle_service.record_failed_attempt(email)
        if status.locked:
            return _locked_response(status)
        body = {"error": "Invalid credentials", "code": "unauthenticated"}
        if status.remaining <= login_throttle_service.WARN_WHEN_REMAINING:
            body["warning"] = f"{status.remaining} attempts remaining before account lockout"
        return jsonify(body), 401

    login_throttle_service.record_successful_login(user)

    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    context = session_service.validate_session(token)

    payload = _session_payload(user, context.active_scope)
    payload["token"] = token
    payload["session"] = session.to_dict()
    return jsonify(payload), 200


@auth_bp.post("/logout")
def logout_route():
    """Revoke session token (logout)."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return jsonify({"error": "Authorization header required", "code": "unauthenticated"}), 401

    token = auth_header.split(" ", 1)[1]
    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token", "code": "unauthenticated"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, their restaurant and the scope this request resolved to."""
    return jsonify(_session_payload(g.current_user, g.scope)), 200


@auth_bp.put("/scope")
@require_auth
def switch_scope_route():
    """
    Change the active restaurant of the session.

    Body: {"scope": "all" | "<restaurant_id>"}. Only superadmins can pick
    another restaurant or "all".
    """
    data = request.get_json(silent=True) or {}
    scope = session_service.switch_scope(g.session_context, data.get("scope"))
    return jsonify({"scope": scope.to_dict()}), 200


@auth_bp.get("/lockout-status/<identifier>")
@require_auth
@require_action(Action.MANAGE_USERS)
def lockout_status_route(identifier: str):
    """Failed login count and lockout state for one staff email of the current scope."""
    status = login_throttle_service.lockout_status_in_scope(g.scope, identifier)
    return jsonify(status.to_dict()), 200
