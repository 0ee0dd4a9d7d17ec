"""Dashboard API endpoint."""

from flask import Blueprint, request, jsonify

from app.api.common import get_retro_service

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@bp.route("", methods=["GET"])
def get_dashboard():
    """Get everything the dashboard shows in one call.

    Query params:
        - recent_actions: Number of recent action items to include (default 5)
    """
    recent_actions = request.args.get("recent_actions", 5, type=int)
    return jsonify({"data": get_retro_service().dashboard(recent_actions)})
