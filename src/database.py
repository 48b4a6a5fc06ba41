"""
Database operations for StudyTrack.
Handles Supabase CRUD for subjects, topics, notes, practice questions, study sessions
(time_entries), goals and profiles, plus Supabase auth.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

import config
from src.errors import AuthenticationError, ConfigurationError, NotFoundError, TransportError, ValidationError
from src.models import AuthUser, Goal, Note, Question, StudySession, Subject, Topic, UserProfile

logger = logging.getLogger(__name__)

SESSION_SELECT = "*, subjects (name, color)"


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    url = url or config.SUPABASE_URL
    key = key or config.SUPABASE_KEY
    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


class DatabaseClient:
    """Wrapper around Supabase client with StudyTrack-specific operations."""

    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client if client is not None else create_supabase_client()

    def _execute(self, action: str, query) -> List[Dict]:
        """Run a postgrest query; any failure becomes TransportError."""
        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error {action}: {e}")
            raise TransportError(f"Could not complete '{action}': {e}") from e
        return response.data if response.data else []

    # ============= Reference data =============

    def list_subjects(self) -> List[Subject]:
        rows = self._execute("fetching subjects", self.client.table("subjects").select("*").order("name"))
        return [Subject.from_row(r) for r in rows]

    def list_topics(self, subject_id: str) -> List[Topic]:
        rows = self._execute(
            f"fetching topics for subject {subject_id}",
            self.client.table("topics").select("*").eq("subject_id", str(subject_id)).order("order_index"),
        )
        return [Topic.from_row(r) for r in rows]

    def list_notes(self, topic_id: str) -> List[Note]:
        rows = self._execute(
            f"fetching notes for topic {topic_id}",
            self.client.table("notes").select("*").eq("topic_id", str(topic_id)).order("created_at"),
        )
        return [Note.from_row(r) for r in rows]

    def list_questions(self, topic_id: str) -> List[Question]:
        """Practice questions for a topic, in creation order. Malformed rows are skipped."""
        rows = self._execute(
            f"fetching questions for topic {topic_id}",
            self.client.table("practice_questions").select("*").eq("topic_id", str(topic_id)).order("created_at"),
        )
        questions = []
        for row in rows:
            q = Question.from_row(row)
            if not 2 <= len(q.options) <= config.MAX_OPTIONS or not 0 <= q.correct_option_index < len(q.options):
                logger.warning(f"Skipping malformed question {q.id}")
                continue
            questions.append(q)
        return questions

    # ============= Study sessions =============

    def list_sessions(
        self,
        user_id: str,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
    ) -> List[StudySession]:
        """User's sessions, newest first, with subject name and color joined in.

        `since` keeps sessions started at or after that instant; naive values are local time.
        """
        query = (
            self.client.table("time_entries")
            .select(SESSION_SELECT)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        if since is not None:
            query = query.gte("start_time", since.astimezone(timezone.utc).isoformat())
        if limit:
            query = query.limit(limit)
        rows = self._execute(f"fetching sessions for user {user_id}", query)
        return [StudySession.from_row(r) for r in rows]

    def start_session(
        self,
        user_id: str,
        subject_id: Optional[str],
        notes: str = "",
        started_at: Optional[datetime] = None,
    ) -> StudySession:
        """Insert an in-progress session (no end_time)."""
        if not subject_id:
            raise ValidationError("Choose a subject before starting a session")
        row = {
            "user_id": str(user_id),
            "subject_id": str(subject_id),
            "start_time": (started_at or datetime.now(timezone.utc)).isoformat(),
            "notes": notes,
        }
        data = self._execute("starting session", self.client.table("time_entries").insert(row))
        if not data:
            raise TransportError("Session insert returned no row")
        logger.info(f"Started session {data[0]['id']} for subject {subject_id}")
        return StudySession.from_row(data[0])

    def end_session(
        self,
        session_id: str,
        end_time: datetime,
        duration_minutes: int,
        notes: str = "",
    ) -> StudySession:
        """Set end_time and duration_minutes once; the session is immutable afterwards."""
        update_data = {
            "end_time": end_time.isoformat(),
            "duration_minutes": int(duration_minutes),
            "notes": notes,
        }
        data = self._execute(
            f"ending session {session_id}",
            self.client.table("time_entries").update(update_data).eq("id", str(session_id)),
        )
        if not data:
            raise NotFoundError(f"Session {session_id} not found")
        logger.info(f"Ended session {session_id} after {duration_minutes} min")
        return StudySession.from_row(data[0])

    # ============= Goals =============

    def list_goals(self, user_id: str, limit: Optional[int] = None) -> List[Goal]:
        query = (
            self.client.table("goals")
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        if limit:
            query = query.limit(limit)
        rows = self._execute(f"fetching goals for user {user_id}", query)
        return [Goal.from_row(r) for r in rows]

    def create_goal(self, user_id: str, fields: Dict[str, Any]) -> Optional[Goal]:
        row = {"user_id": str(user_id), **fields}
        data = self._execute("creating goal", self.client.table("goals").insert(row))
        logger.info(f"Created goal '{fields.get('title')}'")
        return Goal.from_row(data[0]) if data else None

    def update_goal(self, goal_id: str, fields: Dict[str, Any]) -> Goal:
        data = self._execute(
            f"updating goal {goal_id}",
            self.client.table("goals").update(fields).eq("id", str(goal_id)),
        )
        if not data:
            raise NotFoundError(f"Goal {goal_id} not found")
        return Goal.from_row(data[0])

    def set_goal_status(self, goal_id: str, status: str) -> Goal:
        logger.info(f"Goal {goal_id} -> {status}")
        return self.update_goal(goal_id, {"status": status})

    def delete_goal(self, goal_id: str) -> None:
        self._execute(f"deleting goal {goal_id}", self.client.table("goals").delete().eq("id", str(goal_id)))
        logger.info(f"Deleted goal {goal_id}")

    # ============= Profiles & auth =============

    def get_profile(self, user_id: str) -> UserProfile:
        rows = self._execute(
            f"fetching profile {user_id}",
            self.client.table("profiles").select("*").eq("id", str(user_id)).limit(1),
        )
        if not rows:
            raise NotFoundError(f"No profile for user {user_id}")
        return UserProfile.from_row(rows[0])

    def sign_in(self, email: str, password: str) -> AuthUser:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.error(f"Sign-in failed for {email}: {e}")
            raise AuthenticationError(str(e)) from e
        return self._auth_user(response)

    def sign_up(self, email: str, password: str, full_name: str, class_level: str, stream: str) -> AuthUser:
        """Create the auth user, then its profiles row."""
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            })
        except Exception as e:
            logger.error(f"Sign-up failed for {email}: {e}")
            raise AuthenticationError(str(e)) from e
        user = self._auth_user(response)
        profile = {
            "id": user.id,
            "email": email,
            "full_name": full_name,
            "class_level": class_level,
            "stream": stream,
        }
        self._execute("creating profile", self.client.table("profiles").insert(profile))
        logger.info(f"Registered user {user.id}")
        return user

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.error(f"Sign-out failed: {e}")
            raise TransportError(str(e)) from e

    @staticmethod
    def _auth_user(response) -> AuthUser:
        user = getattr(response, "user", None)
        if user is None:
            raise AuthenticationError("Supabase returned no user")
        session = getattr(response, "session", None)
        return AuthUser(
            id=str(user.id),
            email=user.email or "",
            access_token=getattr(session, "access_token", None),
            metadata=dict(getattr(user, "user_metadata", None) or {}),
        )
