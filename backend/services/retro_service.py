"""Sprint retrospective service tying the engine to snapshot storage."""

from datetime import datetime, timezone
from typing import Optional

from services.action_items import new_action_item
from services.comparison import compare_snapshots
from services.health import HealthScorePolicy, get_health_policy
from services.insights import generate_insights
from services.patterns import analyze_patterns, recommend, summarize_history
from services.retro_report import build_retro_report
from services.snapshot_store import SnapshotStore
from services.sprint_metrics import SprintMetricsAggregator


class SprintNotAnalyzedError(LookupError):
    """No stored snapshot exists for the requested sprint."""

    def __init__(self, sprint_id):
        super().__init__(f"Sprint {sprint_id} has not been analyzed")
        self.sprint_id = sprint_id


class RetroService:
    """Runs sprint analyses and reads back stored history."""

    def __init__(self, store: SnapshotStore,
                 policy: Optional[HealthScorePolicy] = None,
                 story_point_fields: Optional[list] = None):
        self.store = store
        self.policy = policy or get_health_policy()
        self.aggregator = SprintMetricsAggregator(story_point_fields)

    def _require(self, sprint_id):
        snapshot = self.store.get(sprint_id)
        if snapshot is None:
            raise SprintNotAnalyzedError(sprint_id)
        return snapshot

    def analyze(self, issues, sprint, is_real_data: bool = True) -> dict:
        """Score a sprint's issues, store the snapshot and return the analysis."""
        result = self.aggregator.aggregate(issues, sprint)
        snapshot = result.snapshot.with_health_score(self.policy.score(result.snapshot))
        snapshot = snapshot.with_provenance(
            is_real_data, datetime.now(timezone.utc).isoformat()
        )
        self.store.set(snapshot.sprintId, snapshot)

        return {
            "isRealData": is_real_data,
            "sprint": {"id": snapshot.sprintId, "name": snapshot.sprintName},
            "metrics": snapshot.to_dict(),
            "insights": [i.to_dict() for i in generate_insights(snapshot)],
            "decisions": result.decisions,
        }

    def get_sprint(self, sprint_id) -> dict:
        snapshot = self._require(sprint_id)
        return {
            "metrics": snapshot.to_dict(),
            "insights": [i.to_dict() for i in generate_insights(snapshot)],
        }

    def compare(self, first_sprint, second_sprint) -> dict:
        """Compare two stored sprints.

        Raises:
            SprintNotAnalyzedError: either sprint is missing from storage
            DivisionUndefinedError: first sprint has zero velocity
        """
        first = self._require(first_sprint)
        second = self._require(second_sprint)
        return {
            "sprint1": first.to_dict(),
            "sprint2": second.to_dict(),
            "changes": compare_snapshots(first, second),
        }

    def patterns(self) -> dict:
        history = self.store.history()
        patterns = analyze_patterns(history)
        return {
            "sprintsAnalyzed": len(history),
            "patterns": [p.to_dict() for p in patterns],
            "recommendations": recommend(patterns),
        }

    def retro_report(self, sprint_id) -> dict:
        return build_retro_report(self._require(sprint_id))

    def dashboard(self, recent_actions: int = 5) -> dict:
        """Latest sprint, history newest first, stats, patterns and actions."""
        history = self.store.history()
        latest = None
        if history:
            latest = history[-1].to_dict()
            latest["insights"] = [i.to_dict() for i in generate_insights(history[-1])]

        return {
            "latestSprint": latest,
            "sprintHistory": [s.to_dict() for s in reversed(history)],
            "stats": summarize_history(history),
            "patterns": [p.to_dict() for p in analyze_patterns(history)],
            "recentActions": list(reversed(self.store.list_action_items()))[:recent_actions],
        }

    def add_action_item(self, title, description=None, priority=None) -> dict:
        item = new_action_item(title, description, priority)
        self.store.add_action_item(item)
        return item

    def list_action_items(self) -> list:
        return self.store.list_action_items()
