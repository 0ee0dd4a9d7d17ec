"""Sprint analysis API endpoints."""

from flask import Blueprint, current_app, request, jsonify
import requests

from app.api.common import get_jira_client, get_jira_credentials, get_retro_service
from services.errors import DivisionUndefinedError
from services.retro_service import SprintNotAnalyzedError

bp = Blueprint("sprints", __name__, url_prefix="/api/sprints")
webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


def _fetch_sprint(client, board_id=None, sprint_id=None):
    """Fetch a sprint and its issues from Jira.

    Returns:
        Tuple of (issues, sprint); sprint is None when nothing was found
    """
    if sprint_id:
        sprint = client.get_sprint(sprint_id)
    else:
        sprint = client.get_latest_sprint(board_id)

    if not sprint:
        return [], None

    return client.get_sprint_issues(sprint["id"]), sprint


def _log_analysis(analysis):
    for decision in analysis["decisions"]:
        current_app.logger.debug(decision)

    metrics = analysis["metrics"]
    current_app.logger.info(
        f"Analyzed sprint {metrics['sprintId']}: health {metrics['healthScore']}, "
        f"velocity {metrics['velocity']}, completion {metrics['completionRate']}%"
    )


@bp.route("/analyze", methods=["POST"])
def analyze_sprint():
    """Analyze a sprint and store its metrics.

    Expects JSON body with either:
        - issues: raw Jira issues to analyze directly
        - sprint: { id, name } for those issues
        - isRealData: optional provenance flag (default true)
    or, to fetch from Jira (requires X-Jira-* headers):
        - sprintId: optional sprint to analyze
        - boardId: optional board whose latest sprint is analyzed

    Returns metrics with health score, insights and the decision trace.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    service = get_retro_service()

    if "issues" in data:
        # Only a JSON boolean can mark sample data; anything else keeps the default
        is_real_data = data.get("isRealData")
        if not isinstance(is_real_data, bool):
            is_real_data = True

        analysis = service.analyze(
            data.get("issues"),
            data.get("sprint") or {},
            is_real_data=is_real_data
        )
        _log_analysis(analysis)
        return jsonify({"data": analysis})

    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    try:
        client = get_jira_client(server, email, token)
        issues, sprint = _fetch_sprint(client, data.get("boardId"), data.get("sprintId"))
    except requests.exceptions.Timeout:
        return jsonify({"error": "Connection to Jira timed out"}), 504
    except requests.exceptions.RequestException as e:
        current_app.logger.warning(f"Jira request failed: {e}")
        return jsonify({"error": f"Failed to fetch sprint from Jira: {str(e)}"}), 502

    if sprint is None:
        return jsonify({"error": "No sprint found to analyze"}), 404

    analysis = service.analyze(issues, sprint)
    _log_analysis(analysis)
    return jsonify({"data": analysis})


@bp.route("/<sprint_id>", methods=["GET"])
def get_sprint(sprint_id):
    """Get stored metrics for a sprint with freshly generated insights."""
    try:
        return jsonify({"data": get_retro_service().get_sprint(sprint_id)})
    except SprintNotAnalyzedError as e:
        return jsonify({"error": str(e)}), 404


@bp.route("/<sprint_id>/retro", methods=["GET"])
def get_retro_report(sprint_id):
    """Get the retrospective report for an analyzed sprint."""
    try:
        return jsonify({"data": get_retro_service().retro_report(sprint_id)})
    except SprintNotAnalyzedError as e:
        return jsonify({"error": str(e)}), 404


@bp.route("/compare", methods=["POST"])
def compare_sprints():
    """Compare two analyzed sprints.

    Expects JSON body with:
        - firstSprint: baseline sprint id
        - secondSprint: sprint id to compare against the baseline
    """
    data = request.get_json(silent=True)

    if not data or not isinstance(data, dict):
        return jsonify({"error": "Missing request body"}), 400

    first_sprint = data.get("firstSprint")
    second_sprint = data.get("secondSprint")

    if first_sprint is None or second_sprint is None:
        return jsonify({"error": "Missing required fields: firstSprint, secondSprint"}), 400

    try:
        comparison = get_retro_service().compare(first_sprint, second_sprint)
    except SprintNotAnalyzedError:
        return jsonify({
            "error": "Sprint data not found. Please analyze both sprints first."
        }), 404
    except DivisionUndefinedError as e:
        return jsonify({"error": str(e)}), 422

    return jsonify({"data": comparison})


@webhooks_bp.route("/sprint-complete", methods=["POST"])
def sprint_complete():
    """Analyze a sprint automatically when Jira reports it completed.

    Expects JSON body with sprint.id or sprintId, plus X-Jira-* headers.
    """
    data = request.get_json(silent=True) or {}
    sprint = data.get("sprint") if isinstance(data.get("sprint"), dict) else {}
    sprint_id = sprint.get("id") or data.get("sprintId")

    if not sprint_id:
        return jsonify({"data": {
            "analyzed": False,
            "message": "Sprint completion event processed (no sprint ID found)"
        }})

    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    service = get_retro_service()

    try:
        client = get_jira_client(server, email, token)
        issues, sprint = _fetch_sprint(client, sprint_id=sprint_id)
    except requests.exceptions.RequestException as e:
        current_app.logger.warning(f"Auto-analysis of sprint {sprint_id} failed: {e}")
        service.store.mark_auto_analyzed(sprint_id, "failed")
        return jsonify({"error": f"Failed to fetch sprint from Jira: {str(e)}"}), 502

    analysis = service.analyze(issues, sprint or {"id": sprint_id})
    service.store.mark_auto_analyzed(sprint_id, "success")
    _log_analysis(analysis)

    return jsonify({"data": {
        "analyzed": True,
        "message": "Sprint automatically analyzed on completion",
        "sprintId": str(sprint_id),
        "healthScore": analysis["metrics"]["healthScore"]
    }})
