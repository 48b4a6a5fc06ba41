"""StudyTrack: subjects, notes, practice quizzes, goals and a study timer."""
import logging
import sys
from pathlib import Path
from datetime import datetime, timezone

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

import config
from db import get_database, forget_client
from src.aggregator import (
    average_session_length,
    completed_sessions,
    find_active_session,
    local_now,
    parse_week_start,
    session_minutes,
    week_bounds,
    weekly_stats,
)
from src.catalog import filter_subjects, split_notes
from src.errors import NotFoundError, StudyTrackError, TransportError, ValidationError
from src.formatting import format_duration, format_elapsed, format_hours_minutes, round_half_up
from src.goals import GoalStatus, count_active, count_completed, status_of, validate_goal_form
from src.quiz_engine import QuizEngine
from src.view_scope import ScopeRegistry

logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

PAGES = ["Dashboard", "Subjects", "Goals", "Time Tracker", "Profile"]
OPTION_LABELS = "ABCDEFGHIJ"[: config.MAX_OPTIONS]

st.set_page_config(page_title="StudyTrack", layout="wide")

try:
    WEEK_START = parse_week_start(config.WEEK_STARTS_ON)
except ValidationError as e:
    st.error(f"Invalid STUDY_WEEK_START in .env: {e}")
    st.stop()


def view_state(page: str) -> dict:
    """Mutable state owned by one page; dropped when the user navigates away."""
    return st.session_state.setdefault(f"view:{page}", {})


def load(scope, state: dict, key: str, loader):
    """Fetch once per view. The result is only written while the page's scope is open."""
    if key not in state:
        ticket = scope.begin()
        value = loader()
        scope.commit(ticket, state, **{key: value})
    return state.get(key)


def invalidate(state: dict, *keys: str) -> None:
    for key in keys:
        state.pop(key, None)


# ----- Auth -----
if "user" not in st.session_state:
    st.title("StudyTrack")
    sign_up = st.toggle("Create a new account", key="auth_sign_up")
    with st.form("auth_form"):
        full_name = st.text_input("Full Name") if sign_up else ""
        email = st.text_input("Email Address")
        password = st.text_input("Password", type="password")
        if sign_up:
            col1, col2 = st.columns(2)
            with col1:
                class_level = st.selectbox("Class", ["11", "12"], format_func=lambda c: f"Class {c}")
            with col2:
                stream = st.selectbox("Stream", ["science", "commerce", "arts"], format_func=str.title)
        submitted = st.form_submit_button("Create Account" if sign_up else "Sign In", type="primary")
    if submitted:
        if not email or not password or (sign_up and not full_name):
            st.warning("Please fill in all fields.")
        else:
            try:
                db = get_database()
                if sign_up:
                    user = db.sign_up(email, password, full_name, class_level, stream)
                else:
                    user = db.sign_in(email, password)
                st.session_state["user"] = user
                st.rerun()
            except StudyTrackError as e:
                st.error(str(e))
    st.stop()

user = st.session_state["user"]
db = get_database()

st.sidebar.title("StudyTrack")
st.sidebar.caption(user.email)
page = st.sidebar.radio("Navigate", PAGES, key="nav", label_visibility="collapsed")
if st.sidebar.button("Sign out"):
    try:
        db.sign_out()
    except TransportError as e:
        logger.warning(f"Sign-out error ignored: {e}")
    forget_client()
    st.session_state.clear()
    st.rerun()

registry = st.session_state.setdefault("_scopes", ScopeRegistry())
scope = registry.enter(page)
for closed in registry.closed_pages:
    st.session_state.pop(f"view:{closed}", None)
state = view_state(page)

# ----- Dashboard -----
if page == "Dashboard":
    name = user.metadata.get("full_name")
    st.header(f"Welcome back, {name}!" if name else "Welcome back!")
    try:
        subjects = load(scope, state, "subjects", db.list_subjects)
        goals = load(scope, state, "goals", lambda: db.list_goals(user.id, limit=config.DASHBOARD_GOALS_LIMIT))
        sessions = load(scope, state, "sessions", lambda: db.list_sessions(user.id, limit=config.DASHBOARD_SESSIONS_LIMIT))
        now = local_now()
        week_start, _ = week_bounds(now, WEEK_START)
        week_sessions = load(scope, state, "week_sessions", lambda: db.list_sessions(user.id, since=week_start))
    except TransportError as e:
        st.error(f"Could not load your dashboard. Check your connection and .env (SUPABASE_URL, SUPABASE_KEY). {e}")
        st.stop()

    weekly = weekly_stats(week_sessions, subjects, now, WEEK_START)
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Subjects", len(subjects))
    with col2:
        st.metric("This Week", format_hours_minutes(weekly.total_minutes))
    with col3:
        st.metric("Completed Goals", count_completed(goals))
    with col4:
        st.metric("Active Goals", count_active(goals))

    left, right = st.columns(2)
    with left:
        st.subheader("Recent Goals")
        if not goals:
            st.info("No goals yet. Create your first goal on the Goals page.")
        for goal in goals[: config.DASHBOARD_GOALS_LIMIT]:
            status = status_of(goal)
            due = goal.target_date.strftime("%b %d, %Y") if goal.target_date else ""
            st.write(f"{status.icon} **{goal.title}** · {status.label} {('· ' + due) if due else ''}")
    with right:
        st.subheader("Recent Study Sessions")
        if not sessions:
            st.info("No study sessions yet. Start one on the Time Tracker page.")
        for entry in sessions[: config.DASHBOARD_SESSIONS_LIMIT]:
            length = f"{entry.duration_minutes}m" if entry.duration_minutes else "Active"
            st.write(f"**{entry.subject_name or 'Unknown Subject'}** · {entry.start_time.astimezone():%b %d, %H:%M} · {length}")

# ----- Subjects / Topic view -----
elif page == "Subjects":
    selected = state.get("selected_topic")
    if selected is None:
        st.header("Subjects")
        try:
            subjects = load(scope, state, "subjects", db.list_subjects)
        except TransportError as e:
            st.error(f"Could not load subjects: {e}")
            st.stop()

        term = st.text_input("Search subjects...", key="subject_search")
        matches = filter_subjects(subjects, term)
        if not matches:
            st.info("No subjects found. Try a different search term.")
        topics_by_subject = state.setdefault("topics", {})
        for subject in matches:
            with st.container(border=True):
                title = f"{subject.icon} {subject.name}".strip()
                st.markdown(f"**{title}**")
                if subject.description:
                    st.caption(subject.description)
                if not st.toggle("Show topics", key=f"topics_open_{subject.id}"):
                    continue
                if subject.id not in topics_by_subject:
                    try:
                        ticket = scope.begin()
                        fetched = db.list_topics(subject.id)
                        if scope.is_current(ticket):
                            topics_by_subject[subject.id] = fetched
                    except TransportError as e:
                        st.error(f"Could not load topics: {e}")
                        continue
                topics = topics_by_subject.get(subject.id, [])
                if not topics:
                    st.write("No topics yet.")
                for topic in topics:
                    if st.button(topic.title, key=f"topic_{topic.id}", help=topic.description or None):
                        state["selected_topic"] = (subject, topic)
                        st.rerun()
        st.stop()

    subject, topic = selected
    if st.button("← Back to subjects"):
        invalidate(state, "selected_topic", "notes", "questions", "quiz")
        st.rerun()
    st.header(topic.title)
    st.caption(f"{subject.name}{' · ' + topic.description if topic.description else ''}")

    try:
        notes = load(scope, state, "notes", lambda: db.list_notes(topic.id))
        questions = load(scope, state, "questions", lambda: db.list_questions(topic.id))
    except TransportError as e:
        st.error(f"Could not load topic content: {e}")
        st.stop()

    notes_tab, practice_tab = st.tabs(["Notes", f"Practice ({len(questions)})" if questions else "Practice"])

    with notes_tab:
        if not notes:
            st.info("No notes available for this topic yet.")
        mind_maps, text_notes = split_notes(notes)
        for note in text_notes:
            st.subheader(note.title)
            if note.content:
                st.markdown(note.content)
            if note.short_notes:
                st.info(f"**Quick Notes:** {note.short_notes}")
        for note in mind_maps:
            st.subheader(note.title)
            st.image(note.mind_map_url, caption="Mind Map")

    with practice_tab:
        try:
            engine = QuizEngine(questions)
        except NotFoundError:
            st.info("No practice questions available for this topic yet.")
            st.stop()

        attempt = state.setdefault("quiz", engine.start())
        quiz_round = state.setdefault("quiz_round", 0)

        col1, col2, col3 = st.columns([2, 2, 1])
        with col1:
            st.write(f"Question {attempt.current_index + 1} of {engine.total_questions}")
        with col2:
            st.write(f"Score: {attempt.score}/{attempt.answered_count}")
        with col3:
            if st.button("Reset"):
                state["quiz"] = engine.reset()
                state["quiz_round"] = quiz_round + 1
                st.rerun()
        st.progress(engine.progress(attempt))

        if engine.is_complete(attempt):
            st.success("Quiz Complete!")
            st.metric("Your Score", f"{attempt.score}/{engine.total_questions} ({engine.percentage(attempt)}%)")
            if st.button("Try Again", type="primary"):
                state["quiz"] = engine.reset()
                state["quiz_round"] = quiz_round + 1
                st.rerun()
            st.stop()

        q = engine.current_question(attempt)
        n_opts = len(q.options)
        st.subheader(q.prompt)
        choice = st.radio(
            "Choose your answer:",
            options=list(range(n_opts)),
            format_func=lambda i: f"{OPTION_LABELS[i]}. {q.options[i]}",
            index=attempt.selected_index,
            key=f"quiz_{topic.id}_{quiz_round}_{attempt.current_index}",
            disabled=attempt.revealed,
        )
        if choice is not None and choice != attempt.selected_index:
            attempt = engine.select_option(attempt, choice)
            state["quiz"] = attempt

        if not attempt.revealed:
            if st.button("Submit Answer", type="primary"):
                try:
                    state["quiz"] = engine.submit(attempt)
                    st.rerun()
                except ValidationError as e:
                    st.warning(str(e))
        else:
            for i in range(n_opts):
                label = f"{OPTION_LABELS[i]}. {q.options[i]}"
                if i == q.correct_option_index:
                    st.success(f"✓ {label}")
                elif i == attempt.selected_index:
                    st.error(f"✗ {label}")
            if engine.is_correct_selection(attempt):
                st.success("✓ Correct! Well done.")
            else:
                st.error(f"✗ Incorrect. The correct answer is {OPTION_LABELS[q.correct_option_index]}.")
            if q.explanation:
                st.info(f"**Explanation:** {q.explanation}")
            if not engine.is_last(attempt) and st.button("Next Question →", type="primary"):
                state["quiz"] = engine.advance(attempt)
                st.rerun()

# ----- Goals -----
elif page == "Goals":
    st.header("Goals")
    try:
        goals = load(scope, state, "goals", lambda: db.list_goals(user.id))
    except TransportError as e:
        st.error(f"Could not load goals: {e}")
        st.stop()

    editing = state.get("editing")
    if st.button("+ New Goal") and editing is None:
        state["editing"] = "new"
        st.rerun()

    if editing is not None:
        current = next((g for g in goals if g.id == editing), None)
        statuses = [s.value for s in GoalStatus]
        with st.form("goal_form"):
            st.subheader("Edit Goal" if current else "Create New Goal")
            title = st.text_input("Title", value=current.title if current else "")
            description = st.text_area("Description", value=current.description if current else "")
            target_date = st.date_input("Target Date", value=current.target_date if current else None)
            status = st.selectbox(
                "Status",
                statuses,
                index=statuses.index(current.status) if current and current.status in statuses else 0,
                format_func=lambda s: GoalStatus(s).label,
            )
            col1, col2 = st.columns(2)
            with col1:
                save = st.form_submit_button("Update Goal" if current else "Create Goal", type="primary")
            with col2:
                cancel = st.form_submit_button("Cancel")
        if cancel:
            invalidate(state, "editing")
            st.rerun()
        if save:
            try:
                fields = validate_goal_form(title, description, target_date, status)
                if current:
                    db.update_goal(current.id, fields)
                else:
                    db.create_goal(user.id, fields)
                invalidate(state, "editing", "goals")
                st.rerun()
            except ValidationError as e:
                st.warning(str(e))
            except StudyTrackError as e:
                st.error(f"Could not save goal: {e}")

    if not goals:
        st.info("No goals yet. Set a goal to stay on track with your studies.")
    for goal in goals:
        status = status_of(goal)
        with st.container(border=True):
            st.markdown(f"{status.icon} **{goal.title}** · {status.label}")
            if goal.description:
                st.write(goal.description)
            if goal.target_date:
                st.caption(f"Target: {goal.target_date:%b %d, %Y}")
            cols = st.columns(5)
            for col, target in zip(cols, GoalStatus):
                with col:
                    if st.button(target.label, key=f"status_{goal.id}_{target.value}", disabled=target == status):
                        try:
                            db.set_goal_status(goal.id, target.value)
                            invalidate(state, "goals")
                            st.rerun()
                        except StudyTrackError as e:
                            st.error(f"Could not update goal: {e}")
            with cols[3]:
                if st.button("Edit", key=f"edit_{goal.id}"):
                    state["editing"] = goal.id
                    st.rerun()
            with cols[4]:
                if state.get("confirm_delete") == goal.id:
                    if st.button("Confirm delete", key=f"confirm_{goal.id}", type="primary"):
                        try:
                            db.delete_goal(goal.id)
                            invalidate(state, "goals", "confirm_delete")
                            st.rerun()
                        except StudyTrackError as e:
                            st.error(f"Could not delete goal: {e}")
                elif st.button("Delete", key=f"delete_{goal.id}"):
                    state["confirm_delete"] = goal.id
                    st.rerun()

# ----- Time Tracker -----
elif page == "Time Tracker":
    st.header("Time Tracker")
    try:
        subjects = load(scope, state, "subjects", db.list_subjects)
        sessions = load(scope, state, "sessions", lambda: db.list_sessions(user.id))
    except TransportError as e:
        st.error(f"Could not load study sessions: {e}")
        st.stop()

    active = find_active_session(sessions)
    subject_names = {s.id: s.name for s in subjects}

    @st.fragment(run_every=config.TIMER_TICK_SECONDS)
    def live_timer(started_at: datetime):
        elapsed = (datetime.now(timezone.utc) - started_at).total_seconds()
        st.metric("Elapsed", format_elapsed(elapsed))

    main, side = st.columns([2, 1])
    with main:
        with st.container(border=True):
            if active is None:
                st.metric("Elapsed", format_duration(0))
                subject_id = st.selectbox(
                    "Select Subject",
                    [s.id for s in subjects],
                    index=None,
                    format_func=lambda sid: subject_names.get(sid, sid),
                    placeholder="Choose a subject",
                )
                notes = st.text_area("Session Notes (optional)", placeholder="What are you studying?")
                if st.button("Start Session", type="primary"):
                    try:
                        db.start_session(user.id, subject_id, notes)
                        invalidate(state, "sessions")
                        st.rerun()
                    except ValidationError as e:
                        st.warning(str(e))
                    except TransportError as e:
                        st.error(f"Could not start session: {e}")
            else:
                st.write(f"Studying **{active.subject_name or subject_names.get(active.subject_id, 'Unknown Subject')}**")
                live_timer(active.start_time)
                notes = st.text_area("Session Notes (optional)", value=active.notes or "")
                if st.button("End Session", type="primary"):
                    ended_at = datetime.now(timezone.utc)
                    try:
                        db.end_session(active.id, ended_at, session_minutes(active.start_time, ended_at), notes)
                        invalidate(state, "sessions")
                        st.rerun()
                    except StudyTrackError as e:
                        st.error(f"Could not end session: {e}")

        st.subheader("Recent Sessions")
        recent = completed_sessions(sessions, limit=config.RECENT_SESSIONS_LIMIT)
        if not recent:
            st.info("No completed sessions yet.")
        for entry in recent:
            line = f"**{entry.subject_name or 'Unknown Subject'}** · {entry.start_time.astimezone():%b %d, %H:%M} · {format_duration(entry.duration_minutes or 0)}"
            st.write(line)
            if entry.notes:
                st.caption(entry.notes)

    with side:
        weekly = weekly_stats(sessions, subjects, local_now(), WEEK_START)
        st.subheader("This Week")
        st.metric("Total study time", format_duration(weekly.total_minutes))
        if weekly.breakdown:
            st.write("**By Subject**")
        for share in weekly.breakdown:
            st.write(f"{share.name} · {format_duration(share.minutes)} ({round_half_up(share.percentage)}%)")
            st.progress(min(1.0, share.percentage / 100))

        st.subheader("Quick Stats")
        st.write(f"Total Sessions: **{len(completed_sessions(sessions))}**")
        st.write(f"Average Session: **{format_duration(average_session_length(sessions))}**")
        st.write(f"Subjects Studied: **{len(weekly.breakdown)}**")

# ----- Profile -----
elif page == "Profile":
    st.header("Profile")
    try:
        profile = load(scope, state, "profile", lambda: db.get_profile(user.id))
    except NotFoundError:
        st.info("Profile not set up yet.")
        st.stop()
    except TransportError as e:
        st.error(f"Could not load profile: {e}")
        st.stop()
    st.metric("Name", profile.full_name or "Not set")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Email", profile.email)
    with col2:
        st.metric("Class", profile.class_level)
    with col3:
        st.metric("Stream", profile.stream.title())
