"""DatabaseClient against an in-memory stand-in for the Supabase query builder."""
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from src.database import DatabaseClient, create_supabase_client
from src.errors import AuthenticationError, ConfigurationError, NotFoundError, TransportError, ValidationError
from init_db import TABLES, check_tables


class FakeQuery:
    """Records chained builder calls; execute() returns the canned rows or raises."""

    def __init__(self, table, rows=None, error=None):
        self.table = table
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self.error:
            raise self.error
        return SimpleNamespace(data=self.rows)


class FakeAuth:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error
        self.calls = []

    def sign_in_with_password(self, credentials):
        self.calls.append(("sign_in", credentials))
        if self.error:
            raise self.error
        return SimpleNamespace(user=self.user, session=SimpleNamespace(access_token="jwt"))

    def sign_up(self, credentials):
        self.calls.append(("sign_up", credentials))
        if self.error:
            raise self.error
        return SimpleNamespace(user=self.user, session=None)

    def sign_out(self):
        self.calls.append(("sign_out",))


class FakeClient:
    def __init__(self, rows=None, error=None, auth=None):
        self.rows = rows or {}
        self.error = error
        self.queries = []
        self.auth = auth or FakeAuth()

    def table(self, name):
        query = FakeQuery(name, self.rows.get(name), self.error)
        self.queries.append(query)
        return query


SESSION_ROW = {
    "id": "s1",
    "user_id": "u1",
    "subject_id": "math",
    "start_time": "2024-05-15T10:00:00Z",
    "end_time": None,
    "duration_minutes": None,
    "notes": "chapter 3",
    "created_at": "2024-05-15T10:00:00.123456+00:00",
    "subjects": {"name": "Mathematics", "color": "#f00"},
}


def test_list_sessions_parses_join_and_orders_newest_first():
    client = FakeClient(rows={"time_entries": [SESSION_ROW]})
    sessions = DatabaseClient(client).list_sessions("u1", limit=10)
    assert len(sessions) == 1
    s = sessions[0]
    assert s.subject_name == "Mathematics"
    assert s.start_time == datetime(2024, 5, 15, 10, 0, tzinfo=timezone.utc)
    assert s.is_active
    calls = client.queries[0].calls
    assert ("eq", ("user_id", "u1"), {}) in calls
    assert ("order", ("created_at",), {"desc": True}) in calls
    assert ("limit", (10,), {}) in calls


def test_list_sessions_since_filters_on_start_time_without_limit():
    client = FakeClient(rows={"time_entries": [SESSION_ROW]})
    since = datetime(2024, 5, 13, 0, 0, tzinfo=timezone.utc)
    DatabaseClient(client).list_sessions("u1", since=since)
    calls = client.queries[0].calls
    assert ("gte", ("start_time", "2024-05-13T00:00:00+00:00"), {}) in calls
    assert not any(name == "limit" for name, _, _ in calls)


def test_list_subjects_ordered_by_name():
    client = FakeClient(rows={"subjects": [{"id": "1", "name": "Biology", "color": "#0f0"}]})
    subjects = DatabaseClient(client).list_subjects()
    assert subjects[0].name == "Biology"
    assert ("order", ("name",), {}) in client.queries[0].calls


def test_list_questions_skips_malformed_rows():
    rows = [
        {"id": "q1", "topic_id": "t", "question": "2+2?", "options": ["3", "4"], "correct_answer": 1},
        {"id": "q2", "topic_id": "t", "question": "bad", "options": ["only"], "correct_answer": 0},
        {"id": "q3", "topic_id": "t", "question": "bad index", "options": ["a", "b"], "correct_answer": 5},
        {"id": "q4", "topic_id": "t", "question": "too many", "options": [str(i) for i in range(11)], "correct_answer": 10},
    ]
    questions = DatabaseClient(FakeClient(rows={"practice_questions": rows})).list_questions("t")
    assert [q.id for q in questions] == ["q1"]
    assert questions[0].prompt == "2+2?"
    assert questions[0].correct_option_index == 1


def test_failures_become_transport_errors():
    db = DatabaseClient(FakeClient(error=RuntimeError("connection reset")))
    with pytest.raises(TransportError):
        db.list_subjects()
    with pytest.raises(TransportError):
        db.list_goals("u1")


def test_start_session_requires_subject():
    client = FakeClient()
    with pytest.raises(ValidationError):
        DatabaseClient(client).start_session("u1", "", "notes")
    assert client.queries == []


def test_start_session_inserts_open_row():
    client = FakeClient(rows={"time_entries": [SESSION_ROW]})
    started = datetime(2024, 5, 15, 10, 0, tzinfo=timezone.utc)
    session = DatabaseClient(client).start_session("u1", "math", "chapter 3", started_at=started)
    assert session.end_time is None
    name, args, _ = client.queries[0].calls[0]
    assert name == "insert"
    assert args[0]["start_time"] == started.isoformat()
    assert "end_time" not in args[0]


def test_end_session_sets_end_and_duration():
    ended_row = dict(SESSION_ROW, end_time="2024-05-15T10:45:00Z", duration_minutes=45)
    client = FakeClient(rows={"time_entries": [ended_row]})
    end = datetime(2024, 5, 15, 10, 45, tzinfo=timezone.utc)
    session = DatabaseClient(client).end_session("s1", end, 45, "done")
    assert session.duration_minutes == 45
    assert not session.is_active
    calls = client.queries[0].calls
    assert calls[0][0] == "update"
    assert calls[0][1][0] == {"end_time": end.isoformat(), "duration_minutes": 45, "notes": "done"}
    assert ("eq", ("id", "s1"), {}) in calls


def test_end_session_missing_row_is_not_found():
    with pytest.raises(NotFoundError):
        DatabaseClient(FakeClient()).end_session("nope", datetime.now(timezone.utc), 5)


def test_goal_status_update_and_delete():
    goal_row = {"id": "g1", "user_id": "u1", "title": "Finish algebra", "status": "completed", "target_date": "2024-06-01"}
    client = FakeClient(rows={"goals": [goal_row]})
    db = DatabaseClient(client)
    goal = db.set_goal_status("g1", "completed")
    assert goal.status == "completed"
    assert goal.target_date.isoformat() == "2024-06-01"
    db.delete_goal("g1")
    assert client.queries[-1].calls[0][0] == "delete"


def test_get_profile_missing_is_not_found():
    with pytest.raises(NotFoundError):
        DatabaseClient(FakeClient()).get_profile("u1")


def test_sign_in_returns_user_and_wraps_errors():
    user = SimpleNamespace(id="u1", email="a@b.c", user_metadata={"full_name": "Asha"})
    db = DatabaseClient(FakeClient(auth=FakeAuth(user=user)))
    signed_in = db.sign_in("a@b.c", "secret")
    assert signed_in.id == "u1"
    assert signed_in.access_token == "jwt"
    assert signed_in.metadata["full_name"] == "Asha"

    failing = DatabaseClient(FakeClient(auth=FakeAuth(error=RuntimeError("Invalid login credentials"))))
    with pytest.raises(AuthenticationError):
        failing.sign_in("a@b.c", "wrong")


def test_sign_up_creates_profile_row():
    user = SimpleNamespace(id="u2", email="new@b.c", user_metadata={})
    client = FakeClient(rows={"profiles": [{"id": "u2"}]}, auth=FakeAuth(user=user))
    DatabaseClient(client).sign_up("new@b.c", "secret", "New Student", "12", "arts")
    profile_insert = client.queries[0]
    assert profile_insert.table == "profiles"
    assert profile_insert.calls[0][1][0]["stream"] == "arts"


def test_missing_credentials_is_configuration_error(monkeypatch):
    monkeypatch.setattr("config.SUPABASE_URL", None)
    monkeypatch.setattr("config.SUPABASE_KEY", None)
    with pytest.raises(ConfigurationError):
        create_supabase_client()


def test_create_goal_with_empty_insert_returns_none():
    client = FakeClient(rows={"goals": []})
    goal = DatabaseClient(client).create_goal("u1", {"title": "Read chapter 4", "status": "pending"})
    assert goal is None
    name, args, _ = client.queries[0].calls[0]
    assert name == "insert"
    assert args[0] == {"user_id": "u1", "title": "Read chapter 4", "status": "pending"}


def test_check_tables_logs_unreachable_tables(caplog):
    with caplog.at_level("ERROR", logger="init_db"):
        assert check_tables(FakeClient(error=RuntimeError("relation does not exist"))) is False
    assert len(caplog.records) == len(TABLES)
    assert "relation does not exist" in caplog.records[0].getMessage()
    assert check_tables(FakeClient()) is True
