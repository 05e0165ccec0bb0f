"""Home view of the budget tracker: auth gate and welcome screen."""

from __future__ import annotations

import streamlit as st

from . import config
from .sidebar import render_shared_sidebar
from .ui import BudgetTrackerUI


def main():
    """Main entry point for the budget tracker app."""
    ui = BudgetTrackerUI()
    ui.setup_page_config()
    config.ensure_data_directories()

    sidebar = render_shared_sidebar()
    if sidebar is None:
        return
    _render_welcome_screen(sidebar["session"].display_name)


def _render_welcome_screen(name: str) -> None:
    st.markdown(f"""
    # Welcome, {name}! 💰

    Use the pages in the sidebar to:
    - 📊 **See this month at a glance** on the Dashboard
    - 💳 **Record income and expenses** on the Transactions page
    - 📋 **Set monthly spending limits** per category on the Budgets page
    - 👥 **Share expenses** with friends and family on the Groups page
    - 📈 **Review trends and export reports** on the Reports page
    """)
    backend = "hosted backend" if config.use_rest_backend() else f"local database at `{config.get_db_path()}`"
    st.caption(f"Connected to the {backend}.")
