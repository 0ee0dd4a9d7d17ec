"""Cross-sprint pattern API endpoints."""

from flask import Blueprint, jsonify

from app.api.common import get_retro_service

bp = Blueprint("patterns", __name__, url_prefix="/api/patterns")


@bp.route("", methods=["GET"])
def get_patterns():
    """Identify patterns across all analyzed sprints.

    Returns:
        - Number of sprints analyzed
        - Summary and velocity trend patterns
        - Recommendations
    """
    return jsonify({"data": get_retro_service().patterns()})
