# Overview: Flask API routes for products, categories, customers and purchases.

"""
Catalog routes

One set of CRUD endpoints per catalog resource, generated from
catalog_service.RESOURCES:

    GET    /api/<resource>          list in scope
    POST   /api/<resource>          create in scope
    GET    /api/<resource>/<id>
    PUT    /api/<resource>/<id>
    DELETE /api/<resource>/<id>

Viewing needs the resource's view action, writing its manage action.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_action, require_auth
from ..services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


def _register(resource: catalog_service.CatalogResource) -> None:
    name = resource.name

    @require_auth
    @require_action(resource.view_action)
    def list_view():
        records = catalog_service.list_records(name, g.scope)
        return jsonify([record.to_dict() for record in records]), 200

    @require_auth
    @require_action(resource.manage_action)
    def create_view():
        record = catalog_service.create_record(name, g.scope, request.get_json(silent=True) or {})
        return jsonify(record.to_dict()), 201

    @require_auth
    @require_action(resource.view_action)
    def get_view(record_id: str):
        record = catalog_service.get_record(name, g.scope, record_id, actor_id=g.actor.id)
        return jsonify(record.to_dict()), 200

    @require_auth
    @require_action(resource.manage_action)
    def update_view(record_id: str):
        record = catalog_service.update_record(
            name, g.scope, record_id, request.get_json(silent=True) or {}, actor_id=g.actor.id
        )
        return jsonify(record.to_dict()), 200

    @require_auth
    @require_action(resource.manage_action)
    def delete_view(record_id: str):
        catalog_service.delete_record(name, g.scope, record_id, actor_id=g.actor.id)
        return jsonify({"deleted": record_id}), 200

    catalog_bp.add_url_rule(f"/{name}", f"list_{name}", list_view, methods=["GET"])
    catalog_bp.add_url_rule(f"/{name}", f"create_{name}", create_view, methods=["POST"])
    catalog_bp.add_url_rule(f"/{name}/<record_id>", f"get_{name}", get_view, methods=["GET"])
    catalog_bp.add_url_rule(f"/{name}/<record_id>", f"update_{name}", update_view, methods=["PUT"])
    catalog_bp.add_url_rule(f"/{name}/<record_id>", f"delete_{name}", delete_view, methods=["DELETE"])


for _resource in catalog_service.RESOURCES.values():
    _register(_resource)
