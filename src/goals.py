"""Goal statuses, counters and form validation."""
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional

from src.errors import ValidationError
from src.models import Goal


class GoalStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def icon(self) -> str:
        return {"pending": "🕒", "in_progress": "▶️", "completed": "✅"}[self.value]


def count_completed(goals: Iterable[Goal]) -> int:
    return sum(1 for g in goals if g.status == GoalStatus.COMPLETED.value)


def count_active(goals: Iterable[Goal]) -> int:
    return sum(1 for g in goals if g.status != GoalStatus.COMPLETED.value)


def parse_status(value: str) -> GoalStatus:
    try:
        return GoalStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown goal status: {value!r}") from None


def validate_goal_form(
    title: str,
    description: str = "",
    target_date: Optional[date] = None,
    status: str = GoalStatus.PENDING.value,
) -> Dict:
    """Form values -> goals row fields. Title is required."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Goal title is required")
    return {
        "title": title,
        "description": (description or "").strip(),
        "target_date": target_date.isoformat() if target_date else None,
        "status": parse_status(status).value,
    }


def status_of(goal: Goal) -> GoalStatus:
    """Goal's status; rows with an unknown value show as pending."""
    try:
        return GoalStatus(goal.status)
    except ValueError:
        return GoalStatus.PENDING
