"""Shared fixtures for Sprint Retro tests."""

import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.models import MetricsSnapshot


def make_issue(key, status="To Do", category="new", points=None, created=None,
               resolved=None, labels=None, flagged=False, points_field="customfield_10016"):
    """Build a raw Jira issue in the shape the agile API returns."""
    fields = {
        "summary": f"Work for {key}",
        "issuetype": {"name": "Story", "subtask": False},
        "status": {"name": status, "statusCategory": {"key": category}},
        "created": created,
        "resolutiondate": resolved,
        "labels": labels or [],
    }
    if points is not None:
        fields[points_field] = points
    if flagged:
        fields["flagged"] = True
    return {"key": key, "fields": fields}


@pytest.fixture
def mock_jira_credentials():
    """Mock Jira credentials for testing."""
    return {
        "server": "https://test.atlassian.net",
        "email": "test@example.com",
        "token": "test-token-123"
    }


@pytest.fixture
def jira_headers(mock_jira_credentials):
    return {
        "X-Jira-Server": mock_jira_credentials["server"],
        "X-Jira-Email": mock_jira_credentials["email"],
        "X-Jira-Token": mock_jira_credentials["token"]
    }


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_sprint():
    """Sample sprint data."""
    return {
        "id": 42,
        "name": "Sprint 42 - Performance Boost",
        "state": "active",
        "startDate": "2024-01-01T00:00:00.000Z",
        "endDate": "2024-01-14T00:00:00.000Z",
        "goal": "Speed up search"
    }


@pytest.fixture
def sample_issue_completed():
    """Sample completed issue with story points."""
    return make_issue(
        "PROJ-123", status="Done", category="done", points=5.0,
        created="2024-01-02T10:00:00.000Z", resolved="2024-01-10T10:00:00.000Z"
    )


@pytest.fixture
def sample_issue_in_progress():
    """Sample in-progress issue."""
    return make_issue(
        "PROJ-124", status="In Progress", category="indeterminate", points=3.0,
        created="2024-01-05T10:00:00.000Z"
    )


@pytest.fixture
def sample_issue_blocked():
    """Sample issue blocked by label while in code review."""
    return make_issue(
        "PROJ-125", status="Code Review", category="indeterminate", points=2,
        created="2024-01-03T10:00:00.000Z", labels=["Blocked-by-vendor"]
    )


@pytest.fixture
def sample_issue_no_points():
    """Sample completed issue without story points."""
    return make_issue(
        "PROJ-126", status="Closed", category="unknown",
        created="2024-01-03T10:00:00.000Z", resolved="2024-01-05T10:00:00.000Z"
    )


@pytest.fixture
def sample_sprint_issues(sample_issue_completed, sample_issue_in_progress,
                         sample_issue_blocked, sample_issue_no_points):
    """Collection of issues for a sprint."""
    return [
        sample_issue_completed,
        sample_issue_in_progress,
        sample_issue_blocked,
        sample_issue_no_points
    ]


@pytest.fixture
def fourteen_issue_sprint():
    """12 completed issues (42 points, one flagged) and 2 open ones (7 points).

    Every completed issue took exactly two days.
    """
    completed_points = [5, 3, 8, 2, 5, 3, 5, 3, 2, 3, 1, 2]
    issues = [
        make_issue(
            f"PERF-{i + 1}", status="Done", category="done", points=points,
            created="2024-01-02T09:00:00.000+0000",
            resolved="2024-01-04T09:00:00.000+0000",
            flagged=(i == 0)
        )
        for i, points in enumerate(completed_points)
    ]
    issues.append(make_issue("PERF-13", status="In Progress", category="indeterminate", points=4))
    issues.append(make_issue("PERF-14", status="To Do", category="new", points="3"))
    return issues


@pytest.fixture
def snapshot_factory():
    """Build MetricsSnapshot objects with only the fields a test cares about."""
    def _make(**overrides):
        return MetricsSnapshot(**overrides)
    return _make


@pytest.fixture
def snapshot_file(tmp_path):
    return str(tmp_path / "config" / "snapshots.json")


@pytest.fixture
def app(snapshot_file):
    """Create Flask test app backed by a temporary snapshot file."""
    from app import create_app
    app = create_app({"TESTING": True, "SNAPSHOT_FILE": snapshot_file})
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
