"""Qualitative insights for a single sprint snapshot."""

from services.models import Insight, MetricsSnapshot

LOW_COMPLETION_THRESHOLD = 70
LONG_CYCLE_TIME_DAYS = 5
GREAT_SPRINT_SCORE = 80


def generate_insights(snapshot: MetricsSnapshot) -> list:
    """Evaluate each insight rule independently; order is fixed."""
    insights = []

    if snapshot.completion_rate_value < LOW_COMPLETION_THRESHOLD:
        insights.append(Insight(
            type="warning",
            title="Low Completion Rate",
            message=(
                f"Only {snapshot.completionRate}% of issues completed. "
                "Consider smaller scope or identifying blockers earlier."
            ),
        ))

    if (snapshot.blockedIssues or 0) > 0:
        insights.append(Insight(
            type="alert",
            title="Active Blockers",
            message=(
                f"{snapshot.blockedIssues} issues are blocked. "
                "Schedule a blocker-clearing session."
            ),
        ))

    if snapshot.cycle_time_value > LONG_CYCLE_TIME_DAYS:
        insights.append(Insight(
            type="info",
            title="Long Cycle Time",
            message=(
                f"Average cycle time is {snapshot.avgCycleTime} days. "
                "Review work-in-progress limits."
            ),
        ))

    if snapshot.healthScore is not None and snapshot.healthScore >= GREAT_SPRINT_SCORE:
        insights.append(Insight(
            type="success",
            title="Great Sprint!",
            message=(
                f"Health score of {snapshot.healthScore}. "
                "Team is performing well. Document what worked!"
            ),
        ))

    return insights
