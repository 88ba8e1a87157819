# Overview: Flask API routes for the restaurant directory; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..permissions import Action, authorize
from ..services import permission_service, restaurant_service

restaurants_bp = Blueprint("restaurants", __name__, url_prefix="/api/restaurants")


@restaurants_bp.post("/register")
def register_restaurant():
    """
    Public sign-up: create a restaurant and its first user.

    Body: {"restaurant": {name, address, phone}, "admin": {name, email, password}}
    The very first registration in an empty system gets the superadmin role.
    """
    data = request.get_json(silent=True) or {}
    restaurant_id = restaurant_service.create_restaurant(data.get("restaurant"), data.get("admin"))
    return jsonify({"id": restaurant_id}), 201


@restaurants_bp.get("")
@require_auth
@require_action(Action.VIEW_RESTAURANTS)
def list_restaurants():
    restaurants = restaurant_service.list_all()
    return jsonify([r.to_dict(include_users=True) for r in restaurants]), 200


@restaurants_bp.get("/<restaurant_id>")
@require_auth
def get_restaurant(restaurant_id: str):
    permission_service.require_action(g.actor, Action.VIEW_OWN_RESTAURANT, restaurant_id)
    restaurant = restaurant_service.get_by_id(restaurant_id)
    include_users = authorize(g.actor, Action.VIEW_USERS, restaurant.id).allowed
    return jsonify(restaurant.to_dict(include_users=include_users)), 200


@restaurants_bp.put("/<restaurant_id>")
@require_auth
@require_action(Action.MANAGE_RESTAURANTS)
def update_restaurant(restaurant_id: str):
    data = request.get_json(silent=True) or {}
    restaurant = restaurant_service.update_restaurant(
        restaurant_id,
        restaurant_fields=data.get("restaurant"),
        admin_fields=data.get("admin"),
    )
    return jsonify(restaurant.to_dict(include_users=True)), 200


@restaurants_bp.delete("/<restaurant_id>")
@require_auth
@require_action(Action.MANAGE_RESTAURANTS)
def delete_restaurant(restaurant_id: str):
    restaurant_service.delete_restaurant(restaurant_id, actor_id=g.actor.id)
    return jsonify({"deleted": restaurant_id}), 200
