# Overview: Service-layer enforcement of the authorization policy, with audit logging.

"""
Permission Enforcement and Security Event Logging

WHY: The policy in restopos.permissions decides; this module enforces.
Every denial is written to security_events so cross-tenant access and
privilege escalation attempts are visible.

DESIGN PRINCIPLES:
- Fail closed: anything not granted by the policy table is denied
- Log denials only: grants are not logged
- log_security_event commits on its own, so call it before any writes of
  the surrounding operation are pending
"""

from flask import current_app, has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..permissions import Action, Actor, Decision, authorize
from ..time_utils import utcnow


def log_security_event(
    user_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    restaurant_id: str | None = None,
) -> SecurityEvent:
    """
    Append a security event to the audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - CROSS_TENANT_ACCESS_DENIED
    - LOGIN_FAILED
    - LOGIN_SUCCEEDED
    - USER_DELETED
    - RESTAURANT_DELETED
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=user_id,
        restaurant_id=restaurant_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    if not success:
        current_app.logger.warning(
            "security event %s user=%s restaurant=%s action=%s reason=%s",
            event_type, user_id, restaurant_id, action, reason,
        )

    return event


def enforce(actor: Actor, decision: Decision, *, action: str, restaurant_id: str | None = None) -> None:
    """Raise the typed error for a denied decision, logging permission denials first."""
    if decision.allowed:
        return
    if decision.kind == "permission":
        log_security_event(
            user_id=actor.id,
            event_type="PERMISSION_DENIED",
            success=False,
            action=action,
            reason=decision.reason,
            restaurant_id=restaurant_id or actor.restaurant_id,
        )
    decision.raise_for_denial()


def require_action(actor: Actor, action: Action, owner_restaurant_id: str | None = None) -> None:
    """
    Gate an operation on the policy table.

    Raises PermissionDeniedError if the actor's role lacks the action, or the
    target belongs to another restaurant and the grant is own-tenant only.
    """
    decision = authorize(actor, action, owner_restaurant_id)
    if not decision.allowed and owner_restaurant_id and owner_restaurant_id != actor.restaurant_id:
        log_security_event(
            user_id=actor.id,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            action=action.value,
            reason=f"Restaurant {owner_restaurant_id} is outside the actor's tenant",
            restaurant_id=actor.restaurant_id,
        )
        decision.raise_for_denial()
    enforce(actor, decision, action=action.value)
