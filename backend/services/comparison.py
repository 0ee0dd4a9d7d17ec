"""Sprint-over-sprint comparison."""

from services.errors import DivisionUndefinedError
from services.models import MetricsSnapshot, format_one_decimal


def compare_snapshots(first: MetricsSnapshot, second: MetricsSnapshot) -> dict:
    """Relative change from ``first`` (baseline) to ``second``.

    Raises:
        DivisionUndefinedError: The baseline velocity is zero, so a
            percentage change cannot be expressed.
    """
    baseline = first.velocity or 0
    if baseline == 0:
        raise DivisionUndefinedError(
            f"Velocity change is undefined: sprint {first.sprintId} has zero velocity"
        )

    velocity_change = ((second.velocity or 0) - baseline) / baseline * 100
    rate_delta = second.completion_rate_value - first.completion_rate_value

    return {
        "velocityChangePct": format_one_decimal(velocity_change),
        "completionRateDeltaPts": format_one_decimal(rate_delta),
    }
