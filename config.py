"""App settings: Supabase credentials, week boundary, dashboard limits. No UI."""
import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Weekday name the study week starts on (monday..sunday)
WEEK_STARTS_ON = os.getenv("STUDY_WEEK_START", "monday")

TIMER_TICK_SECONDS = 1
DASHBOARD_GOALS_LIMIT = 5
DASHBOARD_SESSIONS_LIMIT = 10
RECENT_SESSIONS_LIMIT = 10

# Practice questions are labelled A..J
MAX_OPTIONS = 10

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
