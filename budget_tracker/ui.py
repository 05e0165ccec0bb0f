"""Streamlit UI components shared by the budget tracker pages.

Components only render; every number they show comes from
:mod:`budget_tracker.aggregation`, and every chart from
:mod:`budget_tracker.visualization`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple

import streamlit as st
from streamlit.errors import StreamlitAPIException

from .aggregation import BudgetUtilization, CategoryBudgetRow, GroupShare, PeriodTotals
from .errors import BudgetTrackerError, ConflictError, NotFoundError, ValidationError
from .formatting import escape_currency_for_markdown, format_currency, format_percent
from .models import Group, Transaction
from .visualization import transactions_frame

logger = logging.getLogger(__name__)

# (threshold, colour, label) checked from the top
PROGRESS_LEVELS: Tuple[Tuple[float, str, str], ...] = (
    (100.0, "red", "Over budget"),
    (80.0, "orange", "Near limit"),
    (60.0, "yellow", "On track"),
    (0.0, "green", "On track"),
)

STATUS_ICONS = {"red": "🔴", "orange": "🟠", "yellow": "🟡", "green": "🟢"}


def progress_status(percent_used: float) -> Tuple[str, str]:
    """Colour and label for a budget progress bar."""
    for threshold, colour, label in PROGRESS_LEVELS:
        if percent_used >= threshold:
            return colour, label
    return "green", "On track"


def report_error(action: str, exc: BudgetTrackerError) -> None:
    """Surface a failed operation to the user.

    Validation problems, conflicts and missing records are expected and shown
    as-is; anything else is a backend failure and is logged first.
    """
    if isinstance(exc, ValidationError):
        st.error(exc.message)
    elif isinstance(exc, (ConflictError, NotFoundError)):
        st.warning(exc.message)
    else:
        logger.error("Error %s: %s", action, exc)
        st.error(f"Error {action}: {exc.message}")


class BudgetTrackerUI:
    """UI components for the budget tracker pages."""

    def setup_page_config(self, title: str = "Budget Tracker", icon: str = "💰") -> None:
        """Configure Streamlit page settings; later calls in the same run are ignored."""
        try:
            st.set_page_config(page_title=title, page_icon=icon, layout="wide", initial_sidebar_state="expanded")
        except StreamlitAPIException:
            logger.debug("Page config already set for this run")

    def render_header(self, title: str) -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.header(title)
        with col2:
            st.metric(label="Current Month", value=datetime.now().strftime("%B %Y"))

    def render_summary_cards(self, totals: PeriodTotals) -> None:
        """Income, expenses, net savings and transaction count."""
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("💰 Total Income", format_currency(totals.income))
        with col2:
            st.metric("💸 Total Expenses", format_currency(totals.expenses))
        with col3:
            st.metric(
                "🐷 Net Savings",
                format_currency(abs(totals.savings)),
                delta="Surplus" if totals.savings >= 0 else "Deficit",
                delta_color="normal" if totals.savings >= 0 else "inverse",
            )
        with col4:
            st.metric("🧾 Transactions", totals.transaction_count)

    def render_over_budget_alerts(self, rows: Iterable[CategoryBudgetRow]) -> None:
        over = [row for row in rows if row.over_by > 0]
        if not over:
            return
        st.subheader("⚠️ Budget Alerts")
        for row in over:
            st.error(f"**{row.category}** is over budget by {escape_currency_for_markdown(row.over_by)}")

    def render_category_budget_progress(self, rows: Sequence[CategoryBudgetRow]) -> None:
        """Spend against budget per category for the dashboard."""
        st.subheader("🎯 Budget Progress")
        if not rows:
            st.info("No budget data available")
            return
        for row in rows:
            budget_label = escape_currency_for_markdown(row.budget) if row.budget > 0 else "no budget"
            st.markdown(f"**{row.category}**: {escape_currency_for_markdown(row.spent)} / {budget_label}")
            ratio = float(row.spent / max(row.budget, Decimal("1")))
            st.progress(min(ratio, 1.0))

    def render_recent_transactions(self, transactions: Sequence[Transaction]) -> None:
        st.subheader("🕒 Recent Transactions")
        if not transactions:
            st.info("No transactions yet. Add one from the Transactions page.")
            return
        for txn in transactions:
            sign = "+" if txn.is_income else "-"
            note = f" · {txn.notes}" if txn.notes else ""
            st.markdown(f"{txn.date:%d %b %Y} · **{txn.category}**{note} · {sign}{escape_currency_for_markdown(txn.amount)}")

    def render_budget_card(self, row: BudgetUtilization) -> None:
        colour, label = progress_status(row.percent_used)
        st.markdown(f"#### {row.category}")
        st.markdown(f"{STATUS_ICONS[colour]} {label} · {format_percent(row.percent_used)} used")
        st.progress(row.percent_used / 100.0)
        col1, col2, col3 = st.columns(3)
        col1.metric("Budget", format_currency(row.amount))
        col2.metric("Spent", format_currency(row.spent))
        col3.metric("Remaining", format_currency(row.remaining))

    def render_group_summary(self, group: Group, share: GroupShare, recent: List[Transaction]) -> None:
        st.markdown(f"### 👥 {group.name}")
        col1, col2, col3 = st.columns(3)
        col1.metric("Total Expenses", format_currency(share.total_expenses))
        col2.metric("Per Person", format_currency(share.per_person_share))
        col3.metric("Members", share.member_count)
        if recent:
            st.markdown("**Recent Expenses**")
            for txn in recent:
                st.markdown(f"- {txn.category}: {escape_currency_for_markdown(txn.amount)}")

    def render_transactions_table(self, transactions: Sequence[Transaction]) -> None:
        if not transactions:
            st.info("No transactions match the selected filters.")
            return
        st.dataframe(transactions_frame(transactions), use_container_width=True, hide_index=True)
