# Overview: Flask API routes for staff accounts; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..permissions import Action
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_action(Action.VIEW_USERS)
def list_users():
    users = user_service.list_users(g.scope)
    return jsonify([user.to_dict() for user in users]), 200


@users_bp.post("")
@require_auth
@require_action(Action.MANAGE_USERS)
def create_user():
    user = user_service.add_user(g.actor, g.scope, request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 201


@users_bp.get("/<user_id>")
@require_auth
@require_action(Action.VIEW_USERS)
def get_user(user_id: str):
    user = user_service.get_user(g.scope, user_id)
    return jsonify(user.to_dict()), 200


@users_bp.put("/<user_id>")
@require_auth
@require_action(Action.MANAGE_USERS)
def update_user(user_id: str):
    user = user_service.update_user(g.actor, g.scope, user_id, request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_action(Action.MANAGE_USERS)
def delete_user(user_id: str):
    user_service.delete_user(g.actor, g.scope, user_id)
    return jsonify({"deleted": user_id}), 200
