# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..permissions import Action
from ..services import sales_service

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_action(Action.VIEW_SALES)
def list_sales():
    sales = sales_service.list_sales(g.scope, status=request.args.get("status") or None)
    return jsonify([sale.to_dict() for sale in sales]), 200


@sales_bp.post("")
@require_auth
@require_action(Action.CREATE_SALE)
def create_sale():
    sale = sales_service.create_sale(g.scope, request.get_json(silent=True) or {}, recorded_by=g.current_user)
    return jsonify(sale.to_dict()), 201


@sales_bp.post("/bulk-delete")
@require_auth
@require_action(Action.DELETE_SALES)
def bulk_delete_sales():
    data = request.get_json(silent=True) or {}
    deleted = sales_service.bulk_delete_sales(g.scope, data.get("ids"))
    return jsonify({"deleted": deleted}), 200


@sales_bp.get("/<sale_id>")
@require_auth
@require_action(Action.VIEW_SALES)
def get_sale(sale_id: str):
    sale = sales_service.get_sale(g.scope, sale_id, actor_id=g.actor.id)
    return jsonify(sale.to_dict()), 200


@sales_bp.put("/<sale_id>")
@require_auth
@require_action(Action.EDIT_SALE)
def update_sale(sale_id: str):
    sale = sales_service.update_sale(g.scope, sale_id, request.get_json(silent=True) or {}, actor_id=g.actor.id)
    return jsonify(sale.to_dict()), 200


@sales_bp.put("/<sale_id>/status")
@require_auth
@require_action(Action.UPDATE_SALE_STATUS)
def update_sale_status(sale_id: str):
    data = request.get_json(silent=True) or {}
    sale = sales_service.update_sale_status(g.scope, sale_id, data.get("status"), actor_id=g.actor.id)
    return jsonify(sale.to_dict()), 200


@sales_bp.delete("/<sale_id>")
@require_auth
@require_action(Action.DELETE_SALES)
def delete_sale(sale_id: str):
    sales_service.delete_sale(g.scope, sale_id, actor_id=g.actor.id)
    return jsonify({"deleted": sale_id}), 200
