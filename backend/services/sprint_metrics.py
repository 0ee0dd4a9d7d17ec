"""Sprint metrics aggregation from raw Jira issues."""

from datetime import datetime, timezone
from typing import Callable, Optional

from services.models import AnalysisResult, MetricsSnapshot, format_one_decimal
from services.story_points import STORY_POINT_FIELDS, find_story_points

STATUS_CATEGORIES = {"done", "indeterminate", "new", "unknown"}

# Status names counted as done even when the category is missing or wrong
DONE_STATUSES = {"done", "closed", "resolved"}

IN_PROGRESS_MARKERS = ("progress", "review")

# Jira's "Flagged" field
IMPEDIMENT_FIELD = "customfield_10021"

SECONDS_PER_DAY = 60 * 60 * 24


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SprintMetricsAggregator:
    """Turns a sprint's issue list into a MetricsSnapshot.

    Every lookup on the raw issue degrades to a default, so malformed
    issues are counted but never raise.
    """

    def __init__(self, story_point_fields: Optional[list] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.story_point_fields = list(story_point_fields or STORY_POINT_FIELDS)
        self.clock = clock or _utc_now

    @staticmethod
    def _fields(issue) -> dict:
        if not isinstance(issue, dict):
            return {}
        fields = issue.get("fields")
        return fields if isinstance(fields, dict) else {}

    @staticmethod
    def _issue_key(issue) -> str:
        if isinstance(issue, dict) and issue.get("key"):
            return str(issue["key"])
        return "<no key>"

    @staticmethod
    def _status(fields: dict) -> tuple:
        """Return (lowercase status name, status category key)."""
        status = fields.get("status")
        if not isinstance(status, dict):
            return "", "unknown"

        name = status.get("name")
        name = name.lower() if isinstance(name, str) else ""

        category = status.get("statusCategory")
        key = category.get("key") if isinstance(category, dict) else None
        if not isinstance(key, str) or key.lower() not in STATUS_CATEGORIES:
            return name, "unknown"
        return name, key.lower()

    def _is_completed(self, fields: dict) -> bool:
        name, category = self._status(fields)
        return category == "done" or name in DONE_STATUSES

    def _is_in_progress(self, fields: dict) -> bool:
        name, category = self._status(fields)
        return category == "indeterminate" or any(m in name for m in IN_PROGRESS_MARKERS)

    def _is_flagged(self, fields: dict) -> bool:
        if fields.get("flagged") is True:
            return True

        impediment = fields.get(IMPEDIMENT_FIELD)
        if impediment == "Impediment":
            return True
        if isinstance(impediment, list):
            return any(
                isinstance(option, dict) and option.get("value") == "Impediment"
                for option in impediment
            )
        return False

    def _is_blocked(self, fields: dict) -> bool:
        if self._is_flagged(fields):
            return True

        labels = fields.get("labels")
        if isinstance(labels, list):
            if any(isinstance(l, str) and "block" in l.lower() for l in labels):
                return True

        name, _ = self._status(fields)
        return "block" in name

    @staticmethod
    def _parse_date(date_str) -> Optional[datetime]:
        """Parse a Jira date string into an aware UTC datetime."""
        if not date_str or not isinstance(date_str, str):
            return None

        # Jira formats: "2024-10-31T12:11:56.289-0400" or "2024-10-31T12:11:56.289Z"
        formats = [
            "%Y-%m-%dT%H:%M:%S.%f%z",  # With milliseconds and timezone
            "%Y-%m-%dT%H:%M:%S%z",      # Without milliseconds, with timezone
            "%Y-%m-%dT%H:%M:%S.%f",     # With milliseconds, no timezone
            "%Y-%m-%dT%H:%M:%S",        # Basic ISO format
            "%Y-%m-%d"                   # Date only
        ]

        for fmt in formats:
            try:
                parsed = datetime.strptime(date_str, fmt)
            except ValueError:
                continue
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

        return None

    def _cycle_time_days(self, fields: dict) -> Optional[float]:
        """Days from creation to resolution; unresolved items run until now."""
        created = self._parse_date(fields.get("created"))
        if created is None:
            return None

        resolved = self._parse_date(fields.get("resolutiondate"))
        if resolved is None:
            resolved = self.clock()
            if resolved.tzinfo is None:
                resolved = resolved.replace(tzinfo=timezone.utc)

        days = (resolved - created).total_seconds() / SECONDS_PER_DAY
        return days if days > 0 else None

    def aggregate(self, issues, sprint) -> AnalysisResult:
        """Calculate metrics for one sprint.

        Args:
            issues: Raw Jira issues (non-list input is treated as empty)
            sprint: Raw sprint dict with optional ``id`` and ``name``

        Returns:
            AnalysisResult with the unscored snapshot and decision trace
        """
        issues = issues if isinstance(issues, list) else []
        sprint = sprint if isinstance(sprint, dict) else {}
        decisions = []

        completed_count = 0
        in_progress_count = 0
        blocked_count = 0
        completed_points = 0
        spillover_points = 0
        cycle_times = []

        for issue in issues:
            fields = self._fields(issue)
            key = self._issue_key(issue)

            points, field_id = find_story_points(fields, self.story_point_fields)
            if field_id:
                decisions.append(f"{key}: {points} points from {field_id}")
            else:
                decisions.append(f"{key}: no story points found")

            if self._is_completed(fields):
                completed_count += 1
                completed_points += points
                cycle_time = self._cycle_time_days(fields)
                if cycle_time is not None:
                    cycle_times.append(cycle_time)
                else:
                    decisions.append(f"{key}: excluded from cycle time")
            else:
                spillover_points += points

            if self._is_in_progress(fields):
                in_progress_count += 1

            if self._is_blocked(fields):
                blocked_count += 1
                decisions.append(f"{key}: blocked")

        total_count = len(issues)
        if total_count > 0:
            completion_rate = format_one_decimal(completed_count / total_count * 100)
        else:
            completion_rate = "0"

        avg_cycle_time = sum(cycle_times) / len(cycle_times) if cycle_times else 0

        decisions.append(
            f"{completed_count}/{total_count} issues completed, "
            f"{completed_points} points delivered"
        )

        snapshot = MetricsSnapshot(
            sprintId=str(sprint.get("id") or "unknown"),
            sprintName=sprint.get("name") or "Unknown Sprint",
            totalIssues=total_count,
            completedIssues=completed_count,
            inProgressIssues=in_progress_count,
            blockedIssues=blocked_count,
            spilloverIssues=total_count - completed_count,
            totalPoints=completed_points + spillover_points,
            completedPoints=completed_points,
            spilloverPoints=spillover_points,
            completionRate=completion_rate,
            velocity=completed_points,
            avgCycleTime=format_one_decimal(avg_cycle_time),
        )
        return AnalysisResult(snapshot=snapshot, decisions=decisions)


def calculate_sprint_metrics(issues, sprint, story_point_fields: Optional[list] = None,
                             clock: Optional[Callable[[], datetime]] = None) -> MetricsSnapshot:
    """Shortcut returning only the snapshot."""
    aggregator = SprintMetricsAggregator(story_point_fields, clock)
    return aggregator.aggregate(issues, sprint).snapshot
