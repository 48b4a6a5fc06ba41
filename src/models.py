"""
Typed rows for the StudyTrack tables.
Each model is built from a Supabase row dict via from_row(); the UI and the core
logic only ever see these objects, never raw dicts.
"""
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import List, Optional


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a Postgres/ISO-8601 timestamp (trailing 'Z' allowed). None passes through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = "#3b82f6"

    @classmethod
    def from_row(cls, row: dict) -> "Subject":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            icon=row.get("icon") or "",
            color=row.get("color") or "#3b82f6",
        )


@dataclass(frozen=True)
class Topic:
    id: str
    subject_id: str
    title: str
    description: str = ""
    order_index: int = 0

    @classmethod
    def from_row(cls, row: dict) -> "Topic":
        return cls(
            id=str(row["id"]),
            subject_id=str(row["subject_id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            order_index=int(row.get("order_index") or 0),
        )


NOTE_TYPES = ("full", "short", "mindmap")


@dataclass(frozen=True)
class Note:
    id: str
    topic_id: str
    title: str
    content: str = ""
    short_notes: str = ""
    mind_map_url: Optional[str] = None
    note_type: str = "full"

    @classmethod
    def from_row(cls, row: dict) -> "Note":
        note_type = row.get("note_type") or "full"
        if note_type not in NOTE_TYPES:
            note_type = "full"
        return cls(
            id=str(row["id"]),
            topic_id=str(row["topic_id"]),
            title=row.get("title") or "",
            content=row.get("content") or "",
            short_notes=row.get("short_notes") or "",
            mind_map_url=row.get("mind_map_url") or None,
            note_type=note_type,
        )

    @property
    def is_mind_map(self) -> bool:
        return self.note_type == "mindmap"


@dataclass(frozen=True)
class Question:
    """One practice question. `options` has at least two entries."""
    id: str
    prompt: str
    options: List[str]
    correct_option_index: int
    explanation: Optional[str] = None
    topic_id: Optional[str] = None
    difficulty: str = "medium"

    @classmethod
    def from_row(cls, row: dict) -> "Question":
        # practice_questions stores the prompt in "question" and the index in "correct_answer"
        return cls(
            id=str(row["id"]),
            prompt=row.get("question") or "",
            options=list(row.get("options") or []),
            correct_option_index=int(row.get("correct_answer", 0)),
            explanation=row.get("explanation") or None,
            topic_id=str(row["topic_id"]) if row.get("topic_id") else None,
            difficulty=row.get("difficulty") or "medium",
        )


@dataclass(frozen=True)
class StudySession:
    """
    A single timed study interval (row of time_entries).
    In progress while end_time is None; duration_minutes is set only when ended.
    """
    id: str
    subject_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    user_id: Optional[str] = None
    topic_id: Optional[str] = None
    created_at: Optional[datetime] = None
    # Filled from the joined "subjects (name, color)" select
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "StudySession":
        joined = row.get("subjects") or {}
        duration = row.get("duration_minutes")
        return cls(
            id=str(row["id"]),
            subject_id=str(row["subject_id"]),
            start_time=parse_timestamp(row["start_time"]),
            end_time=parse_timestamp(row.get("end_time")),
            duration_minutes=int(duration) if duration is not None else None,
            notes=row.get("notes") or None,
            user_id=str(row["user_id"]) if row.get("user_id") else None,
            topic_id=str(row["topic_id"]) if row.get("topic_id") else None,
            created_at=parse_timestamp(row.get("created_at")),
            subject_name=joined.get("name"),
            subject_color=joined.get("color"),
        )

    @property
    def is_active(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class Goal:
    id: str
    user_id: str
    title: str
    description: str = ""
    target_date: Optional[date] = None
    status: str = "pending"
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Goal":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            target_date=parse_date(row.get("target_date")),
            status=row.get("status") or "pending",
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class UserProfile:
    id: str
    email: str
    full_name: str = ""
    class_level: str = "11"
    stream: str = "science"

    @classmethod
    def from_row(cls, row: dict) -> "UserProfile":
        return cls(
            id=str(row["id"]),
            email=row.get("email") or "",
            full_name=row.get("full_name") or "",
            class_level=str(row.get("class_level") or "11"),
            stream=row.get("stream") or "science",
        )


@dataclass
class AuthUser:
    """Signed-in user kept in st.session_state."""
    id: str
    email: str
    access_token: Optional[str] = None
    metadata: dict = field(default_factory=dict)
