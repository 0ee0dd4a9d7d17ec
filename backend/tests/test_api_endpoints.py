"""Tests for API endpoints."""

import json
from unittest.mock import patch

import pytest
import requests

from conftest import make_issue


def analyze(client, issues, sprint, **extra):
    body = {"issues": issues, "sprint": sprint}
    body.update(extra)
    return client.post("/api/sprints/analyze", json=body)


class TestHealth:
    """Test the health check."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert json.loads(response.data) == {"status": "ok"}


class TestCreateApp:
    """Test application configuration."""

    def test_unknown_health_policy_fails_fast(self, snapshot_file):
        from app import create_app
        from services.errors import UnknownHealthPolicyError

        with pytest.raises(UnknownHealthPolicyError):
            create_app({"SNAPSHOT_FILE": snapshot_file, "HEALTH_POLICY": "vibes"})

    def test_completion_gap_policy_selectable(self, snapshot_file, fourteen_issue_sprint):
        from app import create_app
        app = create_app({
            "TESTING": True,
            "SNAPSHOT_FILE": snapshot_file,
            "HEALTH_POLICY": "completion_gap"
        })

        response = analyze(app.test_client(), fourteen_issue_sprint, {"id": 42})

        assert json.loads(response.data)["data"]["metrics"]["healthScore"] == 88


class TestAnalyzeSprint:
    """Test sprint analysis endpoint."""

    def test_analyze_posted_issues(self, client, fourteen_issue_sprint):
        response = analyze(client, fourteen_issue_sprint,
                           {"id": 42, "name": "Sprint 42 - Performance Boost"})

        assert response.status_code == 200
        data = json.loads(response.data)["data"]
        assert data["isRealData"] is True
        assert data["sprint"] == {"id": "42", "name": "Sprint 42 - Performance Boost"}

        metrics = data["metrics"]
        assert metrics["totalPoints"] == 49
        assert metrics["completedPoints"] == 42
        assert metrics["completionRate"] == "85.7"
        assert metrics["blockedIssues"] == 1
        assert metrics["velocity"] == 42
        assert metrics["healthScore"] == 91
        assert metrics["isRealData"] is True
        assert metrics["analyzedAt"]

        assert [i["type"] for i in data["insights"]] == ["alert", "success"]
        assert "PERF-1: blocked" in data["decisions"]

    def test_analysis_is_stored(self, client, fourteen_issue_sprint):
        analyze(client, fourteen_issue_sprint, {"id": 42})

        response = client.get("/api/sprints/42")

        assert response.status_code == 200
        data = json.loads(response.data)["data"]
        assert data["metrics"]["velocity"] == 42
        assert [i["title"] for i in data["insights"]] == ["Active Blockers", "Great Sprint!"]

    def test_demo_data_flag(self, client, fourteen_issue_sprint):
        response = analyze(client, fourteen_issue_sprint, {"id": 42}, isRealData=False)
        assert json.loads(response.data)["data"]["metrics"]["isRealData"] is False

    def test_non_boolean_data_flag_keeps_default(self, client, fourteen_issue_sprint):
        response = analyze(client, fourteen_issue_sprint, {"id": 42}, isRealData="false")
        assert json.loads(response.data)["data"]["metrics"]["isRealData"] is True

    def test_malformed_issues_still_analyzed(self, client):
        response = analyze(client, [None, {"key": "X"}, 3], None)

        assert response.status_code == 200
        metrics = json.loads(response.data)["data"]["metrics"]
        assert metrics["totalIssues"] == 3
        assert metrics["sprintId"] == "unknown"

    def test_missing_credentials(self, client):
        response = client.post("/api/sprints/analyze", json={})
        assert response.status_code == 401

    @patch("app.api.sprints.get_jira_client")
    def test_fetches_latest_sprint_from_jira(self, mock_get_client, client, jira_headers,
                                             sample_sprint, sample_sprint_issues):
        jira = mock_get_client.return_value
        jira.get_latest_sprint.return_value = sample_sprint
        jira.get_sprint_issues.return_value = sample_sprint_issues

        response = client.post("/api/sprints/analyze", json={"boardId": 7},
                               headers=jira_headers)

        assert response.status_code == 200
        data = json.loads(response.data)["data"]
        assert data["sprint"]["id"] == "42"
        assert data["metrics"]["totalIssues"] == 4
        jira.get_latest_sprint.assert_called_once_with(7)
        jira.get_sprint_issues.assert_called_once_with(42)

    @patch("app.api.sprints.get_jira_client")
    def test_fetches_requested_sprint(self, mock_get_client, client, jira_headers, sample_sprint):
        jira = mock_get_client.return_value
        jira.get_sprint.return_value = sample_sprint
        jira.get_sprint_issues.return_value = []

        response = client.post("/api/sprints/analyze", json={"sprintId": 42},
                               headers=jira_headers)

        assert response.status_code == 200
        jira.get_sprint.assert_called_once_with(42)
        jira.get_latest_sprint.assert_not_called()

    @patch("app.api.sprints.get_jira_client")
    def test_no_sprint_found(self, mock_get_client, client, jira_headers):
        mock_get_client.return_value.get_latest_sprint.return_value = None

        response = client.post("/api/sprints/analyze", json={}, headers=jira_headers)

        assert response.status_code == 404

    @patch("app.api.sprints.get_jira_client")
    def test_jira_error(self, mock_get_client, client, jira_headers):
        mock_get_client.return_value.get_latest_sprint.side_effect = \
            requests.exceptions.HTTPError("500 Server Error")

        response = client.post("/api/sprints/analyze", json={}, headers=jira_headers)

        assert response.status_code == 502
        assert "500 Server Error" in json.loads(response.data)["error"]

    @patch("app.api.sprints.get_jira_client")
    def test_jira_timeout(self, mock_get_client, client, jira_headers):
        mock_get_client.return_value.get_latest_sprint.side_effect = \
            requests.exceptions.Timeout()

        response = client.post("/api/sprints/analyze", json={}, headers=jira_headers)

        assert response.status_code == 504


class TestGetSprint:
    """Test stored sprint lookup."""

    def test_unknown_sprint(self, client):
        response = client.get("/api/sprints/999")
        assert response.status_code == 404
        assert "999" in json.loads(response.data)["error"]


class TestCompareSprints:
    """Test sprint comparison endpoint."""

    def test_compare(self, client):
        analyze(client, [make_issue("A-1", "Done", "done", points=20),
                         make_issue("A-2", "To Do", "new", points=5)], {"id": 1})
        analyze(client, [make_issue("B-1", "Done", "done", points=30)], {"id": 2})

        response = client.post("/api/sprints/compare",
                               json={"firstSprint": "1", "secondSprint": "2"})

        assert response.status_code == 200
        data = json.loads(response.data)["data"]
        assert data["changes"] == {
            "velocityChangePct": "50.0",
            "completionRateDeltaPts": "50.0"
        }
        assert data["sprint1"]["sprintId"] == "1"
        assert data["sprint2"]["sprintId"] == "2"

    def test_zero_baseline_velocity(self, client):
        analyze(client, [make_issue("A-1", "To Do", "new", points=3)], {"id": 1})
        analyze(client, [make_issue("B-1", "Done", "done", points=3)], {"id": 2})

        response = client.post("/api/sprints/compare",
                               json={"firstSprint": 1, "secondSprint": 2})

        assert response.status_code == 422
        assert "undefined" in json.loads(response.data)["error"]

    def test_missing_sprint(self, client):
        analyze(client, [], {"id": 1})

        response = client.post("/api/sprints/compare",
                               json={"firstSprint": "1", "secondSprint": "2"})

        assert response.status_code == 404

    def test_missing_fields(self, client):
        response = client.post("/api/sprints/compare", json={"firstSprint": "1"})
        assert response.status_code == 400

    def test_missing_body(self, client):
        response = client.post("/api/sprints/compare", content_type="application/json")
        assert response.status_code == 400


class TestRetroReport:
    """Test retrospective report endpoint."""

    def test_report_for_analyzed_sprint(self, client, fourteen_issue_sprint):
        analyze(client, fourteen_issue_sprint, {"id": 42, "name": "Sprint 42"})

        response = client.get("/api/sprints/42/retro")

        assert response.status_code == 200
        report = json.loads(response.data)["data"]
        assert report["title"] == "Sprint Retrospective: Sprint 42"
        assert report["summary"].startswith("Excellent sprint!")
        assert report["retroQuestions"]["actionItems"] == [
            {"title": "Address blocked issues earlier (1 blockers this sprint)",
             "priority": "high"}
        ]

    def test_report_for_unknown_sprint(self, client):
        assert client.get("/api/sprints/999/retro").status_code == 404


class TestPatterns:
    """Test pattern endpoint."""

    def test_no_history(self, client):
        response = client.get("/api/patterns")

        data = json.loads(response.data)["data"]
        assert data["sprintsAnalyzed"] == 0
        assert data["patterns"][0]["title"] == "Analyze More Sprints"
        assert data["recommendations"][0]["relatedPattern"] == "Analyze More Sprints"

    def test_improving_history(self, client):
        for sprint_id, points in [(1, 10), (2, 10), (3, 20), (4, 20)]:
            analyze(client, [make_issue(f"S{sprint_id}", "Done", "done", points=points)],
                    {"id": sprint_id})

        data = json.loads(client.get("/api/patterns").data)["data"]

        assert data["sprintsAnalyzed"] == 4
        assert [p["title"] for p in data["patterns"]] == ["Sprint Averages", "Velocity Improving"]


class TestDashboard:
    """Test dashboard endpoint."""

    def test_empty_dashboard(self, client):
        data = json.loads(client.get("/api/dashboard").data)["data"]

        assert data["latestSprint"] is None
        assert data["sprintHistory"] == []
        assert data["stats"]["totalSprints"] == 0
        assert data["recentActions"] == []

    def test_dashboard_with_history(self, client, fourteen_issue_sprint):
        analyze(client, [make_issue("A-1", "Done", "done", points=8)], {"id": 41})
        analyze(client, fourteen_issue_sprint, {"id": 42})
        client.post("/api/actions", json={"title": "Clear blockers daily"})

        data = json.loads(client.get("/api/dashboard").data)["data"]

        assert data["latestSprint"]["sprintId"] == "42"
        assert [i["type"] for i in data["latestSprint"]["insights"]] == ["alert", "success"]
        assert [s["sprintId"] for s in data["sprintHistory"]] == ["42", "41"]
        assert data["stats"]["avgVelocity"] == 25
        assert data["stats"]["trend"] == "improving"
        assert data["recentActions"][0]["title"] == "Clear blockers daily"


class TestActions:
    """Test action item endpoints."""

    def test_create_and_list(self, client):
        response = client.post("/api/actions", json={
            "title": "Add automated testing for API",
            "priority": "High"
        })

        assert response.status_code == 201
        action = json.loads(response.data)["data"]
        assert action["status"] == "pending"
        assert action["id"].startswith("action-")

        listed = json.loads(client.get("/api/actions").data)["data"]
        assert [a["title"] for a in listed] == ["Add automated testing for API"]

    def test_missing_title(self, client):
        response = client.post("/api/actions", json={"description": "No title"})
        assert response.status_code == 400
        assert "title is required" in json.loads(response.data)["error"]

    def test_missing_body(self, client):
        response = client.post("/api/actions", content_type="application/json")
        assert response.status_code == 400


class TestSprintCompleteWebhook:
    """Test automatic analysis on sprint completion."""

    def test_no_sprint_id(self, client):
        response = client.post("/api/webhooks/sprint-complete", json={})

        assert response.status_code == 200
        assert json.loads(response.data)["data"]["analyzed"] is False

    def test_missing_credentials(self, client):
        response = client.post("/api/webhooks/sprint-complete", json={"sprintId": 42})
        assert response.status_code == 401

    @patch("app.api.sprints.get_jira_client")
    def test_analyzes_completed_sprint(self, mock_get_client, app, client, jira_headers,
                                       sample_sprint, fourteen_issue_sprint):
        jira = mock_get_client.return_value
        jira.get_sprint.return_value = sample_sprint
        jira.get_sprint_issues.return_value = fourteen_issue_sprint

        response = client.post("/api/webhooks/sprint-complete",
                               json={"sprint": {"id": 42}}, headers=jira_headers)

        assert response.status_code == 200
        data = json.loads(response.data)["data"]
        assert data["analyzed"] is True
        assert data["sprintId"] == "42"
        assert data["healthScore"] == 91
        assert app.extensions["snapshot_store"].auto_analyzed(42)["result"] == "success"

    @patch("app.api.sprints.get_jira_client")
    def test_records_failure(self, mock_get_client, app, client, jira_headers):
        mock_get_client.return_value.get_sprint.side_effect = \
            requests.exceptions.ConnectionError("unreachable")

        response = client.post("/api/webhooks/sprint-complete",
                               json={"sprintId": 42}, headers=jira_headers)

        assert response.status_code == 502
        assert app.extensions["snapshot_store"].auto_analyzed(42)["result"] == "failed"
