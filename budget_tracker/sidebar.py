"""Shared sidebar and authentication gate for every page.

The signed-in :class:`SessionContext` lives in ``st.session_state`` between
reruns, but it is only ever read here and then handed explicitly to the
repository by each page.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import streamlit as st

from . import config
from .backend import get_client
from .errors import BudgetTrackerError
from .forms import SignInDraft, SignUpDraft
from .repository import BudgetRepository
from .session import SessionContext
from .ui import report_error

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"
REPOSITORY_KEY = "repository"


def get_repository() -> BudgetRepository:
    """Repository bound to the configured backend, built once per browser session."""
    repo = st.session_state.get(REPOSITORY_KEY)
    if repo is None:
        config.configure_logging()
        repo = BudgetRepository(get_client())
        st.session_state[REPOSITORY_KEY] = repo
    return repo


def current_session() -> Optional[SessionContext]:
    return st.session_state.get(SESSION_KEY)


def render_auth_form(repo: BudgetRepository) -> None:
    """Sign-in / sign-up forms shown until a session exists."""
    st.title("💰 Budget Tracker")
    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("sign_in_form"):
            email = st.text_input("Email address")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                session = repo.sign_in(SignInDraft(email=email, password=password))
            except BudgetTrackerError as exc:
                report_error("signing in", exc)
            else:
                st.session_state[SESSION_KEY] = session
                st.rerun()

    with sign_up_tab:
        with st.form("sign_up_form"):
            full_name = st.text_input("Full name")
            email = st.text_input("Email address", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                session = repo.sign_up(SignUpDraft(email=email, password=password, full_name=full_name))
            except BudgetTrackerError as exc:
                report_error("creating your account", exc)
            else:
                st.session_state[SESSION_KEY] = session
                st.rerun()


def render_shared_sidebar() -> Optional[Dict[str, Any]]:
    """Render shared sidebar elements, or the auth form when signed out.

    Returns:
        Dict with keys 'session' and 'repository', or None when no user is
        signed in (the caller should stop rendering).
    """
    repo = get_repository()
    session = current_session()
    if session is None:
        render_auth_form(repo)
        return None

    st.sidebar.markdown(f"**👤 {session.display_name}**")
    st.sidebar.caption(session.email)
    if st.sidebar.button("🚪 Sign out"):
        try:
            repo.sign_out(session)
        except BudgetTrackerError as exc:
            # The local session is dropped either way
            logger.warning("Sign-out failed for %s: %s", session.email, exc)
        st.session_state.pop(SESSION_KEY, None)
        st.rerun()
        return None

    return {"session": session, "repository": repo}
