"""Thin Jira REST client for fetching boards, sprints and sprint issues."""

import logging
from typing import Optional

import requests

from services.story_points import STORY_POINT_FIELDS

logger = logging.getLogger(__name__)

ISSUE_FIELDS = [
    "summary", "issuetype", "status", "resolution", "created",
    "resolutiondate", "labels", "flagged", "customfield_10021",
]


class JiraClient:
    """Fetches raw Jira data for the retrospective engine."""

    def __init__(self, server: str, email: str, token: str,
                 story_point_fields: Optional[list] = None):
        self.server = server.rstrip("/")
        self.email = email
        self.token = token
        self.story_point_fields = list(story_point_fields or STORY_POINT_FIELDS)

    def _request(self, endpoint: str, params: Optional[dict] = None):
        """Make authenticated request to Jira API."""
        response = requests.get(
            f"{self.server}{endpoint}",
            auth=(self.email, self.token),
            headers={"Accept": "application/json"},
            params=params,
            timeout=30
        )
        response.raise_for_status()
        return response.json()

    def get_boards(self) -> list:
        data = self._request("/rest/agile/1.0/board")
        return data.get("values", [])

    def get_sprints(self, board_id: int, state: str = "active,closed",
                    max_results: int = 50) -> list:
        """Get sprints for a board, active first, then newest first by id."""
        data = self._request(
            f"/rest/agile/1.0/board/{board_id}/sprint",
            params={"state": state, "maxResults": max_results}
        )
        sprints = data.get("values", [])
        sprints.sort(key=lambda s: (s.get("state") != "active", -(s.get("id") or 0)))
        return sprints

    def get_sprint(self, sprint_id) -> dict:
        return self._request(f"/rest/agile/1.0/sprint/{sprint_id}")

    def get_sprint_issues(self, sprint_id) -> list:
        """Get all issues in a sprint."""
        fields = ISSUE_FIELDS + [f for f in self.story_point_fields if f not in ISSUE_FIELDS]

        all_issues = []
        start_at = 0
        max_results = 100

        while True:
            data = self._request(
                f"/rest/agile/1.0/sprint/{sprint_id}/issue",
                params={
                    "startAt": start_at,
                    "maxResults": max_results,
                    "fields": ",".join(fields)
                }
            )

            issues = data.get("issues", [])
            all_issues.extend(issues)

            if len(issues) < max_results:
                break

            start_at += max_results
            logger.debug(f"Sprint {sprint_id}: fetched {len(all_issues)} issues, continuing")

        logger.info(f"Sprint {sprint_id}: {len(all_issues)} issues")
        return all_issues

    def get_latest_sprint(self, board_id: Optional[int] = None) -> Optional[dict]:
        """Return the active (or most recent closed) sprint.

        Uses the first visible board when no board is given.
        """
        if board_id is None:
            boards = self.get_boards()
            if not boards:
                logger.warning("No boards visible to this Jira user")
                return None
            board_id = boards[0]["id"]
            logger.info(f"Using board {board_id}")

        sprints = self.get_sprints(board_id)
        if not sprints:
            logger.warning(f"Board {board_id} has no active or closed sprints")
            return None
        return sprints[0]
