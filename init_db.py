"""Print the StudyTrack Supabase schema and optionally check that every table is reachable."""
import argparse
import logging
import sys
from pathlib import Path

path = Path(__file__).resolve().parent
if str(path) not in sys.path:
    sys.path.insert(0, str(path))

import config
from src.database import create_supabase_client
from src.errors import StudyTrackError

logger = logging.getLogger(__name__)

TABLES = ("profiles", "subjects", "topics", "notes", "practice_questions", "goals", "time_entries")

# SQL schema
SCHEMA_SQL = """
-- Student profiles (one per auth user)
CREATE TABLE IF NOT EXISTS profiles (
    id UUID PRIMARY KEY REFERENCES auth.users(id) ON DELETE CASCADE,
    email TEXT NOT NULL,
    full_name TEXT,
    class_level VARCHAR(2) CHECK (class_level IN ('11', '12')),
    stream VARCHAR(20) CHECK (stream IN ('science', 'commerce', 'arts')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Reference data
CREATE TABLE IF NOT EXISTS subjects (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    description TEXT,
    icon TEXT,
    color VARCHAR(20) DEFAULT '#3b82f6',
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS topics (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    subject_id UUID NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    order_index INT DEFAULT 0,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS notes (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    topic_id UUID NOT NULL REFERENCES topics(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    content TEXT,
    short_notes TEXT,
    mind_map_url TEXT,
    note_type VARCHAR(10) DEFAULT 'full' CHECK (note_type IN ('full', 'short', 'mindmap')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS practice_questions (
    id UUID PRIMARY KEY,
    topic_id UUID NOT NULL REFERENCES topics(id) ON DELETE CASCADE,
    question TEXT NOT NULL,
    options JSONB NOT NULL,
    correct_answer INT NOT NULL CHECK (correct_answer >= 0),
    explanation TEXT,
    difficulty VARCHAR(10) DEFAULT 'medium' CHECK (difficulty IN ('easy', 'medium', 'hard')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Per-user data
CREATE TABLE IF NOT EXISTS goals (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    target_date DATE,
    status VARCHAR(20) DEFAULT 'pending' CHECK (status IN ('pending', 'in_progress', 'completed')),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Study sessions; end_time/duration_minutes are NULL while in progress
CREATE TABLE IF NOT EXISTS time_entries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    subject_id UUID NOT NULL REFERENCES subjects(id),
    topic_id UUID REFERENCES topics(id),
    start_time TIMESTAMPTZ NOT NULL,
    end_time TIMESTAMPTZ,
    duration_minutes INT,
    notes TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Row level security: users only see their own rows
ALTER TABLE profiles ENABLE ROW LEVEL SECURITY;
ALTER TABLE goals ENABLE ROW LEVEL SECURITY;
ALTER TABLE time_entries ENABLE ROW LEVEL SECURITY;
CREATE POLICY "own profile" ON profiles FOR ALL USING (auth.uid() = id) WITH CHECK (auth.uid() = id);
CREATE POLICY "own goals" ON goals FOR ALL USING (auth.uid() = user_id) WITH CHECK (auth.uid() = user_id);
CREATE POLICY "own time entries" ON time_entries FOR ALL USING (auth.uid() = user_id) WITH CHECK (auth.uid() = user_id);

-- Create indexes for performance
CREATE INDEX IF NOT EXISTS idx_topics_subject_id ON topics(subject_id);
CREATE INDEX IF NOT EXISTS idx_notes_topic_id ON notes(topic_id);
CREATE INDEX IF NOT EXISTS idx_practice_questions_topic_id ON practice_questions(topic_id);
CREATE INDEX IF NOT EXISTS idx_goals_user_id ON goals(user_id);
CREATE INDEX IF NOT EXISTS idx_time_entries_user_id ON time_entries(user_id);
"""


def check_tables(client) -> bool:
    """Probe each table with a one-row select. Returns True when all respond."""
    ok = True
    for table in TABLES:
        try:
            response = client.table(table).select("id").limit(1).execute()
            print(f"✓ {table} table exists (rows visible: {len(response.data or [])})")
        except Exception as e:
            ok = False
            logger.error(f"Error probing table {table}: {e}")
            print(f"✗ {table}: {e}")
    return ok


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Print the StudyTrack schema SQL (paste into the Supabase SQL Editor).")
    parser.add_argument("--check", action="store_true", help="Connect with SUPABASE_URL/SUPABASE_KEY and probe every table")
    args = parser.parse_args()

    if not args.check:
        print(SCHEMA_SQL)
        print("Run the SQL above in Supabase: SQL Editor > New Query.")
        return

    print(f"URL: {config.SUPABASE_URL}")
    try:
        client = create_supabase_client()
    except StudyTrackError as e:
        print(f"✗ {e}")
        sys.exit(1)
    if not check_tables(client):
        print("\nSome tables are missing. Run `python init_db.py` and paste the SQL into the Supabase SQL Editor.")
        sys.exit(1)
    print("\n=== All tables reachable ===")


if __name__ == "__main__":
    main()
