"""Display helpers for minutes, elapsed time and percentages."""
import math


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (37.5 -> 38, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def format_duration(minutes: int) -> str:
    """125 -> '02:05'."""
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours:02d}:{mins:02d}"


def format_hours_minutes(minutes: int) -> str:
    """125 -> '2h 5m' (dashboard card)."""
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours}h {mins}m"


def format_elapsed(seconds: float) -> str:
    """Live timer text, 3725 -> '01:02:05'."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    mins, secs = divmod(rest, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"
