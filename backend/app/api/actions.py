"""Retrospective action item API endpoints."""

from flask import Blueprint, request, jsonify

from app.api.common import get_retro_service
from services.errors import InvalidActionItemError

bp = Blueprint("actions", __name__, url_prefix="/api/actions")


@bp.route("", methods=["GET"])
def list_actions():
    return jsonify({"data": get_retro_service().list_action_items()})


@bp.route("", methods=["POST"])
def create_action():
    """Save a new action item.

    Expects JSON body with:
        - title: required
        - description: optional
        - priority: optional (default "Medium")
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({"error": "Missing request body"}), 400

    try:
        action = get_retro_service().add_action_item(
            data.get("title"), data.get("description"), data.get("priority")
        )
    except InvalidActionItemError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"data": action}), 201
