"""Sprint health scoring policies."""

import math
from typing import Optional

from services.errors import UnknownHealthPolicyError
from services.models import MetricsSnapshot

DEFAULT_HEALTH_POLICY = "weighted"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(score: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, score))


class HealthScorePolicy:
    """Maps a metrics snapshot to an integer score in [0, 100]."""

    name = None

    def raw_score(self, snapshot: MetricsSnapshot) -> float:
        raise NotImplementedError

    def score(self, snapshot: MetricsSnapshot) -> int:
        return _clamp(_round_half_up(self.raw_score(snapshot)))


class WeightedCompletionPolicy(HealthScorePolicy):
    """Completion rate at 60% weight, 40 point base less 10 per blocker,
    plus a velocity bonus of 5 above 15 points or 10 above 30 points.
    """

    name = "weighted"

    def raw_score(self, snapshot: MetricsSnapshot) -> float:
        completed = snapshot.completedPoints or 0
        if completed > 30:
            velocity_bonus = 10
        elif completed > 15:
            velocity_bonus = 5
        else:
            velocity_bonus = 0

        return (
            snapshot.completion_rate_value * 0.6
            + (40 - (snapshot.blockedIssues or 0) * 10)
            + velocity_bonus
        )


class CompletionGapPolicy(HealthScorePolicy):
    """100 less half the completion gap and 5 per blocker."""

    name = "completion_gap"

    def raw_score(self, snapshot: MetricsSnapshot) -> float:
        return (
            100
            - (100 - snapshot.completion_rate_value) * 0.5
            - (snapshot.blockedIssues or 0) * 5
        )


HEALTH_POLICIES = {
    WeightedCompletionPolicy.name: WeightedCompletionPolicy,
    CompletionGapPolicy.name: CompletionGapPolicy,
}


def get_health_policy(name: Optional[str] = None) -> HealthScorePolicy:
    """Look up a scoring policy by name (default: weighted)."""
    policy_cls = HEALTH_POLICIES.get(name or DEFAULT_HEALTH_POLICY)
    if policy_cls is None:
        raise UnknownHealthPolicyError(
            f"Unknown health policy '{name}'. "
            f"Available: {', '.join(sorted(HEALTH_POLICIES))}"
        )
    return policy_cls()


def score_snapshot(snapshot: MetricsSnapshot,
                   policy: Optional[HealthScorePolicy] = None) -> MetricsSnapshot:
    """Return a copy of the snapshot with its health score attached."""
    policy = policy or get_health_policy()
    return snapshot.with_health_score(policy.score(snapshot))
