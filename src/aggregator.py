"""
Study-time aggregation: weekly totals, per-subject breakdown, average session length.
Pure functions over StudySession lists. No UI, no database.

A session counts toward a week when it has ended and its start_time falls inside
[week start, week start + 7 days). Only start_time is tested, so a session that
crosses a week boundary is attributed entirely to the week it started in.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import config
from src.errors import ValidationError
from src.formatting import round_half_up
from src.models import StudySession, Subject

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

UNKNOWN_SUBJECT_NAME = "Unknown Subject"
UNKNOWN_SUBJECT_COLOR = "#3b82f6"


@dataclass(frozen=True)
class SubjectShare:
    subject_id: str
    name: str
    color: str
    minutes: int
    percentage: float


@dataclass(frozen=True)
class WeeklyStats:
    week_start: datetime
    week_end: datetime
    total_minutes: int = 0
    breakdown: List[SubjectShare] = field(default_factory=list)


def parse_week_start(value: Union[str, int, None]) -> int:
    """Weekday name or index -> 0 (Monday) .. 6 (Sunday). None uses config.WEEK_STARTS_ON."""
    if value is None:
        value = config.WEEK_STARTS_ON
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValidationError(f"Week start must be 0..6, got {value}")
    name = str(value).strip().lower()
    for i, day in enumerate(WEEKDAYS):
        if name == day or (len(name) >= 3 and day.startswith(name)):
            return i
    raise ValidationError(f"Unknown week start day: {value!r}")


def local_now() -> datetime:
    """Naive wall-clock time. Aware session times are converted to local time per instant."""
    return datetime.now()


def week_bounds(now: datetime, week_starts_on: Union[str, int, None] = None) -> Tuple[datetime, datetime]:
    """
    Start (inclusive) and end (exclusive) of the calendar week containing `now`.

    `now` should be naive local time or carry a ZoneInfo zone; a fixed UTC offset
    puts the week start an hour off when a DST change falls inside the week.
    """
    first_day = parse_week_start(week_starts_on)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = midnight - timedelta(days=(now.weekday() - first_day) % 7)
    return start, start + timedelta(days=7)


def _align(ts: datetime, now: datetime) -> datetime:
    """Make ts comparable with now (aware vs naive)."""
    if now.tzinfo is None and ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts


def session_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, partial minutes truncated."""
    seconds = (_align(end, start) - start).total_seconds()
    return int(seconds / 60)


def sessions_in_week(
    sessions: Iterable[StudySession],
    now: datetime,
    week_starts_on: Union[str, int, None] = None,
) -> List[StudySession]:
    """Ended sessions whose start_time lies in the week containing now."""
    start, end = week_bounds(now, week_starts_on)
    return [
        s for s in sessions
        if s.end_time is not None and start <= _align(s.start_time, now) < end
    ]


def weekly_total_minutes(
    sessions: Iterable[StudySession],
    now: datetime,
    week_starts_on: Union[str, int, None] = None,
) -> int:
    return sum(s.duration_minutes or 0 for s in sessions_in_week(sessions, now, week_starts_on))


def weekly_stats(
    sessions: Sequence[StudySession],
    subjects: Sequence[Subject],
    now: datetime,
    week_starts_on: Union[str, int, None] = None,
) -> WeeklyStats:
    """
    Weekly total plus per-subject breakdown.

    Every subject with at least one qualifying session gets an entry, in the order of
    `subjects`. Sessions for subjects not in the list are grouped under
    "Unknown Subject" so the subtotals always add up to the total.
    """
    week_start, week_end = week_bounds(now, week_starts_on)
    weekly = sessions_in_week(sessions, now, week_starts_on)
    total = sum(s.duration_minutes or 0 for s in weekly)

    minutes_by_subject: Dict[str, int] = {}
    fallback_meta: Dict[str, Tuple[str, str]] = {}
    for s in weekly:
        minutes_by_subject[s.subject_id] = minutes_by_subject.get(s.subject_id, 0) + (s.duration_minutes or 0)
        fallback_meta.setdefault(
            s.subject_id,
            (s.subject_name or UNKNOWN_SUBJECT_NAME, s.subject_color or UNKNOWN_SUBJECT_COLOR),
        )

    def share(subject_id: str, name: str, color: str) -> SubjectShare:
        minutes = minutes_by_subject[subject_id]
        percentage = (minutes / total) * 100 if total > 0 else 0.0
        return SubjectShare(subject_id=subject_id, name=name, color=color, minutes=minutes, percentage=percentage)

    breakdown = []
    known = set()
    for subject in subjects:
        if subject.id in minutes_by_subject:
            breakdown.append(share(subject.id, subject.name, subject.color))
            known.add(subject.id)
    for subject_id, (name, color) in fallback_meta.items():
        if subject_id not in known:
            breakdown.append(share(subject_id, name, color))

    logger.debug("Week %s: %d sessions, %d minutes", week_start.date(), len(weekly), total)
    return WeeklyStats(week_start=week_start, week_end=week_end, total_minutes=total, breakdown=breakdown)


def average_session_length(sessions: Iterable[StudySession]) -> int:
    """Mean minutes of completed sessions, rounded half up. 0 when there are none."""
    durations = [s.duration_minutes or 0 for s in sessions if s.end_time is not None]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def find_active_session(sessions: Iterable[StudySession]) -> Optional[StudySession]:
    """First session without an end_time (lists come newest first)."""
    return next((s for s in sessions if s.end_time is None), None)


def completed_sessions(sessions: Iterable[StudySession], limit: Optional[int] = None) -> List[StudySession]:
    ended = [s for s in sessions if s.end_time is not None]
    return ended[:limit] if limit is not None else ended
