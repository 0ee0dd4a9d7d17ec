"""Retrospective action items."""

from datetime import datetime, timezone
from typing import Optional

from services.errors import InvalidActionItemError

DEFAULT_PRIORITY = "Medium"


def new_action_item(title, description: Optional[str] = None,
                    priority: Optional[str] = None,
                    now: Optional[datetime] = None) -> dict:
    """Create a pending action item.

    Raises:
        InvalidActionItemError: title is missing or blank
    """
    if not isinstance(title, str) or not title.strip():
        raise InvalidActionItemError("Action item title is required.")

    now = now or datetime.now(timezone.utc)
    return {
        "id": f"action-{int(now.timestamp() * 1000)}",
        "title": title.strip(),
        "description": description or "",
        "priority": priority or DEFAULT_PRIORITY,
        "status": "pending",
        "createdAt": now.isoformat(),
    }
