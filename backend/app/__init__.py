"""Flask application factory."""

import json
import os
from flask import Flask
from flask_cors import CORS

from services.health import DEFAULT_HEALTH_POLICY, get_health_policy
from services.snapshot_store import SnapshotStore
from services.story_points import STORY_POINT_FIELDS

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "config")


def load_retro_config(app):
    """Load engine settings from config/retro-config.json if present."""
    config_path = os.path.join(CONFIG_DIR, "retro-config.json")

    if not os.path.exists(config_path):
        app.logger.info("No retro-config.json found, using defaults")
        return {}

    try:
        with open(config_path, "r") as f:
            config = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        app.logger.warning(f"Failed to load retro config: {e}")
        return {}

    if not isinstance(config, dict):
        app.logger.warning("Ignoring retro-config.json: expected a JSON object")
        return {}

    app.logger.info(f"Loaded retro config with keys: {', '.join(sorted(config))}")
    return config


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)

    file_config = load_retro_config(app)
    app.config.update(
        HEALTH_POLICY=file_config.get("healthPolicy", DEFAULT_HEALTH_POLICY),
        STORY_POINT_FIELDS=file_config.get("storyPointFields", STORY_POINT_FIELDS),
        SNAPSHOT_FILE=file_config.get(
            "snapshotFile", os.path.join(CONFIG_DIR, "snapshots.json")
        ),
    )
    if test_config:
        app.config.update(test_config)

    # Relative snapshot paths are resolved against backend/
    if not os.path.isabs(app.config["SNAPSHOT_FILE"]):
        app.config["SNAPSHOT_FILE"] = os.path.join(
            CONFIG_DIR, "..", app.config["SNAPSHOT_FILE"]
        )

    # Fail at startup rather than on the first analysis
    get_health_policy(app.config["HEALTH_POLICY"])

    # One store per app so its lock covers every request thread
    app.extensions["snapshot_store"] = SnapshotStore(app.config["SNAPSHOT_FILE"])

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": [
                "Content-Type",
                "X-Jira-Token", "X-Jira-Email", "X-Jira-Server"
            ]
        }
    })

    # Register blueprints
    from app.api import sprints, patterns, dashboard, actions
    app.register_blueprint(sprints.bp)
    app.register_blueprint(sprints.webhooks_bp)
    app.register_blueprint(patterns.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(actions.bp)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app
