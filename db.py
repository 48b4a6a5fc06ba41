"""Supabase client wiring. One client per browser session (auth state lives on the client)."""
import logging

import streamlit as st
from supabase import Client

from src.database import DatabaseClient, create_supabase_client

logger = logging.getLogger(__name__)

_CLIENT_KEY = "_supabase_client"
_DB_KEY = "_database"


def get_supabase() -> Client:
    """Client for the current Streamlit session. Signing in on it scopes queries to that user."""
    if _CLIENT_KEY not in st.session_state:
        st.session_state[_CLIENT_KEY] = create_supabase_client()
        logger.debug("Created Supabase client for new browser session")
    return st.session_state[_CLIENT_KEY]


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return create_supabase_client()


def get_database() -> DatabaseClient:
    if _DB_KEY not in st.session_state:
        st.session_state[_DB_KEY] = DatabaseClient(get_supabase())
    return st.session_state[_DB_KEY]


def forget_client() -> None:
    """Drop the session's client after sign-out."""
    st.session_state.pop(_DB_KEY, None)
    st.session_state.pop(_CLIENT_KEY, None)
