"""Retrospective report built from a scored sprint snapshot."""

from datetime import datetime, timezone
from typing import Optional

from services.models import MetricsSnapshot

DEFAULT_HEALTH_SCORE = 50
GOOD_COMPLETION_RATE = 70
FAST_CYCLE_TIME_DAYS = 3
HIGH_VELOCITY_POINTS = 30


def _summary(health_score: int) -> str:
    if health_score >= 80:
        return "Excellent sprint! The team performed above expectations."
    if health_score >= 60:
        return ("Good sprint with room for improvement. "
                "Review insights for optimization opportunities.")
    return ("Challenging sprint. Focus on blockers and scope management "
            "in the next sprint.")


def _retro_questions(snapshot: MetricsSnapshot) -> dict:
    went_well = []
    could_improve = []

    if snapshot.completion_rate_value >= GOOD_COMPLETION_RATE:
        went_well.append(f"Strong completion rate ({snapshot.completionRate}%)")
    else:
        could_improve.append(f"Improve completion rate (currently {snapshot.completionRate}%)")

    if snapshot.cycle_time_value <= FAST_CYCLE_TIME_DAYS:
        went_well.append(f"Fast cycle time ({snapshot.avgCycleTime} days)")
    else:
        could_improve.append(f"Reduce cycle time (currently {snapshot.avgCycleTime} days)")

    blocked = snapshot.blockedIssues or 0
    if blocked == 0:
        went_well.append("No blocked issues during sprint")
    else:
        could_improve.append(
            f"Address blocked issues earlier ({blocked} blockers this sprint)"
        )

    return {
        "whatWentWell": went_well,
        "whatCouldImprove": could_improve,
        "actionItems": [
            {"title": item, "priority": "high" if i == 0 else "medium"}
            for i, item in enumerate(could_improve)
        ],
    }


def build_retro_report(snapshot: MetricsSnapshot,
                       generated_at: Optional[str] = None) -> dict:
    """Build the retrospective report for one sprint.

    A snapshot without a health score is reported as a middling sprint.
    """
    health_score = snapshot.healthScore
    if health_score is None:
        health_score = DEFAULT_HEALTH_SCORE

    velocity = snapshot.velocity or 0
    rate_ok = snapshot.completion_rate_value >= GOOD_COMPLETION_RATE
    cycle_ok = snapshot.cycle_time_value <= FAST_CYCLE_TIME_DAYS

    return {
        "title": f"Sprint Retrospective: {snapshot.sprintName or 'Sprint'}",
        "generatedAt": generated_at or datetime.now(timezone.utc).isoformat(),
        "isRealData": bool(snapshot.isRealData),
        "summary": _summary(health_score),
        "dataHighlights": {
            "velocity": {
                "value": velocity,
                "label": "Story Points",
                "status": "good" if velocity > HIGH_VELOCITY_POINTS else "neutral",
            },
            "completionRate": {
                "value": f"{snapshot.completionRate}%",
                "label": "Completion Rate",
                "status": "good" if rate_ok else "warning",
            },
            "cycleTime": {
                "value": f"{snapshot.avgCycleTime}d",
                "label": "Cycle Time",
                "status": "good" if cycle_ok else "warning",
            },
            "healthScore": {
                "value": health_score,
                "label": "Health Score",
                "status": "good" if health_score >= 70 else "warning",
            },
        },
        "discussionTopics": [
            {
                "title": "Sprint Velocity",
                "question": f"We delivered {velocity} points this sprint. How did the workload feel?",
            },
            {
                "title": "Blockers",
                "question": (
                    f"We had {snapshot.blockedIssues or 0} blocked issues. "
                    "What caused them and how can we prevent them?"
                ),
            },
        ],
        "retroQuestions": _retro_questions(snapshot),
    }
