"""Request helpers shared by the API blueprints."""

from flask import current_app, request

from services.health import get_health_policy
from services.jira_client import JiraClient
from services.retro_service import RetroService


def get_jira_credentials():
    """Extract Jira credentials from request headers."""
    server = request.headers.get("X-Jira-Server", "").rstrip("/")
    email = request.headers.get("X-Jira-Email")
    token = request.headers.get("X-Jira-Token")

    if not all([server, email, token]):
        return None, None, None

    return server, email, token


def get_jira_client(server, email, token):
    return JiraClient(server, email, token,
                      story_point_fields=current_app.config["STORY_POINT_FIELDS"])


def get_retro_service():
    """Build the retro service from the app configuration."""
    config = current_app.config
    return RetroService(
        current_app.extensions["snapshot_store"],
        policy=get_health_policy(config["HEALTH_POLICY"]),
        story_point_fields=config["STORY_POINT_FIELDS"],
    )
