# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .permissions import Action
from .services import permission_service, session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.actor: Policy view of the user (id, role, restaurant_id)
    - g.scope: Tenant scope for this request (Scoped or AllTenants)
    - g.session_context: The full SessionContext object

    The scope comes from the "scope" query parameter when present, else
    from the session's active restaurant. Non-superadmins are always pinned
    to their own restaurant.

    Returns 401 if the Authorization header is missing or the token is
    invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "code": "unauthenticated"}), 401

        g.current_user = context.user
        g.actor = context.actor
        g.session_context = context
        g.scope = session_service.scope_for_request(context, request.args.get("scope"))

        return f(*args, **kwargs)

    return decorated_function


def require_action(action: Action):
    """
    Require the actor's role to hold the action in the policy table.

    Collection-level check only; per-row tenant checks happen through the
    scope and, for directory operations, in the services.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "actor"):
                return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

            # Raises PermissionDeniedError, rendered as 403 by the app error handler
            permission_service.require_action(g.actor, action)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
