"""Data shapes produced by the retrospective engine."""

from dataclasses import dataclass, field, replace, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregated metrics for one sprint.

    Field names are camelCase so that ``to_dict`` matches the JSON the API
    returns and the snapshot store persists.
    """

    sprintId: str = "unknown"
    sprintName: str = "Unknown Sprint"
    totalIssues: int = 0
    completedIssues: int = 0
    inProgressIssues: int = 0
    blockedIssues: int = 0
    spilloverIssues: int = 0
    totalPoints: float = 0
    completedPoints: float = 0
    spilloverPoints: float = 0
    completionRate: str = "0"
    velocity: float = 0
    avgCycleTime: str = "0.0"
    healthScore: Optional[int] = None
    isRealData: Optional[bool] = None
    analyzedAt: Optional[str] = None

    def with_health_score(self, score: int) -> "MetricsSnapshot":
        return replace(self, healthScore=score)

    def with_provenance(self, is_real_data: bool, analyzed_at: str) -> "MetricsSnapshot":
        return replace(self, isRealData=is_real_data, analyzedAt=analyzed_at)

    @property
    def completion_rate_value(self) -> float:
        return _as_float(self.completionRate)

    @property
    def cycle_time_value(self) -> float:
        return _as_float(self.avgCycleTime)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MetricsSnapshot":
        """Build a snapshot from a stored dict, ignoring unknown keys.

        Older entries may lack fields; the dataclass defaults fill them in.
        """
        known = cls.__dataclass_fields__
        values = {k: v for k, v in (data or {}).items() if k in known}
        if "sprintId" in values and values["sprintId"] is not None:
            values["sprintId"] = str(values["sprintId"])
        return cls(**values)


@dataclass(frozen=True)
class Insight:
    type: str
    title: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Pattern:
    type: str
    category: str
    title: str
    description: str
    confidence: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AnalysisResult:
    """A snapshot plus the trace of decisions taken while building it."""

    snapshot: MetricsSnapshot
    decisions: list = field(default_factory=list)


def _as_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def format_one_decimal(value) -> str:
    """Format a number with one decimal place, rounding halves away from zero."""
    number = Decimal(value)
    if not number.is_finite():
        return str(number)
    return str(number.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
