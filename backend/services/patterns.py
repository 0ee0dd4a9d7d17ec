"""Cross-sprint pattern and trend detection over stored history."""

import math
from typing import Optional

from services.models import MetricsSnapshot, Pattern, format_one_decimal

IMPROVING_FACTOR = 1.1
DECLINING_FACTOR = 0.9


def _mean(values: list) -> float:
    return sum(values) / len(values) if values else 0


def _velocity(snapshot: MetricsSnapshot) -> float:
    return snapshot.velocity or 0


def _split_halves(history: list) -> tuple:
    """Split at len // 2; for odd lengths the second half is longer."""
    mid = len(history) // 2
    return history[:mid], history[mid:]


def velocity_trend(history: list) -> Optional[str]:
    """Classify velocity as improving, declining or stable.

    Compares the mean velocity of the older half of the history with the
    newer half. Returns None when fewer than two sprints are available.
    """
    if len(history) < 2:
        return None

    first_half, second_half = _split_halves(history)
    first_avg = _mean([_velocity(s) for s in first_half])
    second_avg = _mean([_velocity(s) for s in second_half])

    if second_avg > first_avg * IMPROVING_FACTOR:
        return "improving"
    if second_avg < first_avg * DECLINING_FACTOR:
        return "declining"
    return "stable"


def summarize_history(history: list) -> dict:
    """Average velocity, completion rate and cycle time across sprints."""
    return {
        "avgVelocity": int(math.floor(_mean([_velocity(s) for s in history]) + 0.5)),
        "avgCompletionRate": format_one_decimal(_mean([s.completion_rate_value for s in history])),
        "avgCycleTime": format_one_decimal(_mean([s.cycle_time_value for s in history])),
        "trend": velocity_trend(history),
        "totalSprints": len(history),
    }


_TREND_PATTERNS = {
    "improving": Pattern(
        type="success",
        category="velocity",
        title="Velocity Improving",
        description="Your team velocity is trending upward!",
        confidence="high",
    ),
    "declining": Pattern(
        type="warning",
        category="velocity",
        title="Velocity Declining",
        description="Velocity has decreased recently. Consider reviewing blockers.",
        confidence="medium",
    ),
    "stable": Pattern(
        type="info",
        category="velocity",
        title="Velocity Stable",
        description="Your team velocity has remained consistent.",
        confidence="medium",
    ),
}


def analyze_patterns(history: list) -> list:
    """Derive patterns from snapshots ordered oldest first."""
    if not history:
        return [Pattern(
            type="info",
            category="data",
            title="Analyze More Sprints",
            description="Run a sprint analysis to build pattern history.",
            confidence="low",
        )]

    stats = summarize_history(history)
    patterns = [Pattern(
        type="stats",
        category="summary",
        title="Sprint Averages",
        description=(
            f"Velocity: {stats['avgVelocity']} pts | "
            f"Completion: {stats['avgCompletionRate']}% | "
            f"Cycle Time: {stats['avgCycleTime']} days"
        ),
        confidence="high",
    )]

    trend = stats["trend"]
    if trend is not None:
        patterns.append(_TREND_PATTERNS[trend])

    return patterns


def recommend(patterns: list) -> list:
    if not patterns:
        return []
    return [{
        "priority": "medium",
        "action": "Continue tracking sprint metrics",
        "relatedPattern": patterns[0].title,
    }]
