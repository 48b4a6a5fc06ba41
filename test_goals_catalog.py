"""Goal helpers, subject search, note grouping and row parsing."""
from datetime import date, datetime, timezone

import pytest

from src.catalog import filter_subjects, split_notes
from src.errors import ValidationError
from src.goals import GoalStatus, count_active, count_completed, status_of, validate_goal_form
from src.models import Goal, Note, StudySession, Subject, parse_timestamp


def goal(gid, status):
    return Goal(id=gid, user_id="u1", title=f"Goal {gid}", status=status)


def test_goal_counts():
    goals = [goal("1", "completed"), goal("2", "pending"), goal("3", "in_progress"), goal("4", "completed")]
    assert count_completed(goals) == 2
    assert count_active(goals) == 2


def test_validate_goal_form():
    row = validate_goal_form("  Revise calculus ", "ch 1-3", date(2024, 6, 1), "in_progress")
    assert row == {
        "title": "Revise calculus",
        "description": "ch 1-3",
        "target_date": "2024-06-01",
        "status": "in_progress",
    }
    assert validate_goal_form("x")["target_date"] is None
    with pytest.raises(ValidationError):
        validate_goal_form("   ")
    with pytest.raises(ValidationError):
        validate_goal_form("x", status="someday")


def test_status_labels_and_fallback():
    assert GoalStatus.IN_PROGRESS.label == "In Progress"
    assert status_of(goal("1", "archived")) is GoalStatus.PENDING


def test_filter_subjects():
    subjects = [
        Subject(id="1", name="Physics", description="Mechanics and optics"),
        Subject(id="2", name="Chemistry", description="Organic and inorganic"),
    ]
    assert filter_subjects(subjects, "") == subjects
    assert [s.id for s in filter_subjects(subjects, "PHYS")] == ["1"]
    assert [s.id for s in filter_subjects(subjects, "organic")] == ["2"]
    assert filter_subjects(subjects, "history") == []


def test_split_notes():
    notes = [
        Note(id="1", topic_id="t", title="Full", content="text"),
        Note(id="2", topic_id="t", title="Map", note_type="mindmap", mind_map_url="https://img/map.png"),
        Note(id="3", topic_id="t", title="Map without image", note_type="mindmap"),
    ]
    mind_maps, text_notes = split_notes(notes)
    assert [n.id for n in mind_maps] == ["2"]
    assert [n.id for n in text_notes] == ["1", "3"]


def test_parse_timestamp_variants():
    assert parse_timestamp(None) is None
    assert parse_timestamp("2024-05-15T10:00:00Z") == datetime(2024, 5, 15, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-05-15T10:00:00.5+00:00").microsecond == 500000


def test_session_row_without_join():
    s = StudySession.from_row({
        "id": 7,
        "subject_id": 3,
        "start_time": "2024-05-15T10:00:00+00:00",
        "end_time": "2024-05-15T10:30:00+00:00",
        "duration_minutes": 30,
    })
    assert s.id == "7"
    assert s.subject_name is None
    assert not s.is_active
