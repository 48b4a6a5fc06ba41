"""
Report a user's study time for the current week, by subject.
Run: python study_report.py <user_id>
      python study_report.py <user_id> --week-start sunday
Reading another user's time_entries needs the service-role key in SUPABASE_KEY (RLS).
"""
import argparse
import logging
import sys
from pathlib import Path

path = Path(__file__).resolve().parent
if str(path) not in sys.path:
    sys.path.insert(0, str(path))

import config
from src.aggregator import average_session_length, completed_sessions, find_active_session, local_now, weekly_stats
from src.database import DatabaseClient
from src.errors import StudyTrackError
from src.formatting import format_duration, round_half_up


def render_report(stats, sessions, active=None) -> str:
    lines = [
        "=" * 60,
        f"STUDY TIME {stats.week_start:%b %d} - {stats.week_end:%b %d, %Y}",
        "=" * 60,
        f"\nThis week: {format_duration(stats.total_minutes)}",
        f"Completed sessions (all time): {len(completed_sessions(sessions))}",
        f"Average session: {format_duration(average_session_length(sessions))}",
    ]
    if active is not None:
        lines.append(f"In progress: {active.subject_name or active.subject_id} since {active.start_time.astimezone():%b %d, %H:%M}")
    lines.append("\n--- By subject ---")
    if not stats.breakdown:
        lines.append("  (no completed sessions this week)")
    for share in stats.breakdown:
        lines.append(f"  {format_duration(share.minutes)}  {round_half_up(share.percentage):3d}%  {share.name}")
    return "\n".join(lines)


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Weekly study-time breakdown for one user.")
    parser.add_argument("user_id", help="auth user id")
    parser.add_argument("--week-start", default=None, help=f"Weekday the week starts on (default {config.WEEK_STARTS_ON})")
    args = parser.parse_args()

    try:
        db = DatabaseClient()
        subjects = db.list_subjects()
        sessions = db.list_sessions(args.user_id)
        stats = weekly_stats(sessions, subjects, local_now(), week_starts_on=args.week_start)
    except StudyTrackError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print()
    print(render_report(stats, sessions, find_active_session(sessions)))
    print()


if __name__ == "__main__":
    main()
