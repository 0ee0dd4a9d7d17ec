"""Story points extraction across Jira schema variants."""

import math
from numbers import Number
from typing import Optional

# Candidate custom fields in priority order. customfield_10016 is the
# Jira Cloud default; the rest come from older or team-managed schemes.
STORY_POINT_FIELDS = [
    "customfield_10016",  # Story Points (Jira Cloud)
    "customfield_10034",  # Story point estimate (newer)
    "customfield_10019",  # Story point estimate
    "customfield_10026",
    "customfield_10028",
]


def _is_number(value) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def parse_numeric(value) -> Optional[float]:
    """Value is already a number."""
    if _is_number(value):
        return value
    return None


def parse_numeric_string(value) -> Optional[float]:
    """Value is a string holding a number, e.g. "12.5"."""
    if not isinstance(value, str):
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def parse_wrapped_value(value) -> Optional[float]:
    """Value is an option object like {"value": 5}."""
    if isinstance(value, dict) and _is_number(value.get("value")):
        return value["value"]
    return None


# Tried in order for each candidate field; first non-None result wins.
VALUE_PARSERS = [parse_numeric, parse_numeric_string, parse_wrapped_value]


def _parse_points(value) -> Optional[float]:
    for parser in VALUE_PARSERS:
        parsed = parser(value)
        if parsed is None:
            continue
        try:
            finite = math.isfinite(parsed)
        except (OverflowError, TypeError):
            # ints beyond float range, or exotic numbers with no float form
            return None
        # zero is indistinguishable from "not estimated"
        if finite and parsed > 0:
            return parsed
        return None
    return None


def find_story_points(fields, candidates: Optional[list] = None) -> tuple:
    """Find story points on an issue's field bag.

    Args:
        fields: The issue's ``fields`` dict (anything else yields no points)
        candidates: Field ids to try, highest priority first

    Returns:
        Tuple of (points, field_id). Points is 0 and field_id is None when
        no candidate holds a positive number.
    """
    if not isinstance(fields, dict):
        return 0, None

    for field_id in candidates if candidates is not None else STORY_POINT_FIELDS:
        points = _parse_points(fields.get(field_id))
        if points is not None:
            return points, field_id

    return 0, None


def extract_story_points(fields, candidates: Optional[list] = None) -> float:
    """Return the first positive story points value, else 0."""
    points, _ = find_story_points(fields, candidates)
    return points
