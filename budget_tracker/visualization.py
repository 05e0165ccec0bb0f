"""Plotly visualisation and table helpers for the budget tracker.

This module turns the result objects produced by
:mod:`budget_tracker.aggregation` into pandas DataFrames (for
``st.dataframe``) and interactive Plotly figures (for
``st.plotly_chart``).  Each function is focused on a single chart or
table so the views stay short.  Decimal amounts are converted to floats
only here, at the rendering edge.

Every chart function returns a ``plotly.graph_objects.Figure``; when
there is nothing to plot the figure carries a "No data to display"
title instead of raising.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregation import (
    BudgetUtilization,
    CategoryRow,
    DailySpend,
    MonthlyPoint,
    PeriodTotals,
)
from .models import Transaction

COLORS = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#F97316", "#06B6D4", "#84CC16"]
INCOME_COLOR = "#10B981"
EXPENSE_COLOR = "#EF4444"
SAVINGS_COLOR = "#3B82F6"
DEFICIT_COLOR = "#F59E0B"


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


# ----------------------------------------------------------------------
# Tables
# ----------------------------------------------------------------------
def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Tabulate transactions for display, newest rows as given."""
    return pd.DataFrame(
        [
            {
                "Date": txn.date,
                "Type": txn.kind.capitalize(),
                "Category": txn.category,
                "Amount": float(txn.amount),
                "Notes": txn.notes or "",
            }
            for txn in transactions
        ],
        columns=["Date", "Type", "Category", "Amount", "Notes"],
    )


def trend_frame(points: Sequence[MonthlyPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Month": point.label,
                "Income": float(point.income),
                "Expenses": float(point.expenses),
                "Savings": float(point.savings),
            }
            for point in points
        ],
        columns=["Month", "Income", "Expenses", "Savings"],
    )


def category_frame(rows: Sequence[CategoryRow]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Category": row.category,
                "Amount": float(row.amount),
                "Percentage": round(row.percentage, 1),
                "Transactions": row.transaction_count,
            }
            for row in rows
        ],
        columns=["Category", "Amount", "Percentage", "Transactions"],
    )


def budget_frame(rows: Sequence[BudgetUtilization]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Category": row.category,
                "Budget": float(row.amount),
                "Spent": float(row.spent),
                "Remaining": float(row.remaining),
                "Percent Used": round(row.percent_used, 1),
            }
            for row in rows
        ],
        columns=["Category", "Budget", "Spent", "Remaining", "Percent Used"],
    )


# ----------------------------------------------------------------------
# Charts
# ----------------------------------------------------------------------
def create_trend_chart(points: Sequence[MonthlyPoint], title: str | None = None) -> go.Figure:
    """Line chart of monthly income, expenses and savings.

    Parameters
    ----------
    points : sequence of MonthlyPoint
        Output of :func:`budget_tracker.aggregation.monthly_trend`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Three-series line chart, one point per month.
    """
    if not points:
        return _empty_figure()
    df = trend_frame(points)
    long_df = df.melt(id_vars="Month", value_vars=["Income", "Expenses", "Savings"], var_name="Series", value_name="Amount")
    fig = px.line(
        long_df,
        x="Month",
        y="Amount",
        color="Series",
        markers=True,
        color_discrete_map={"Income": INCOME_COLOR, "Expenses": EXPENSE_COLOR, "Savings": SAVINGS_COLOR},
    )
    fig.update_layout(
        title=title or "Monthly Trends",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_category_pie_chart(rows: Sequence[CategoryRow], title: str | None = None) -> go.Figure:
    """Pie chart of expense share per category.

    Parameters
    ----------
    rows : sequence of CategoryRow
        Category report rows, typically from
        :func:`budget_tracker.aggregation.category_breakdown`.
    title : str, optional
        Chart title.
    """
    if not rows:
        return _empty_figure()
    df = category_frame(rows)
    fig = px.pie(df, names="Category", values="Amount", color_discrete_sequence=COLORS)
    fig.update_traces(textposition="inside", textinfo="percent+label")
    fig.update_layout(title=title or "Spending by Category")
    return fig


def create_income_expense_chart(totals: PeriodTotals, title: str | None = None) -> go.Figure:
    """Bar chart comparing income, expenses and net savings."""
    if totals.transaction_count == 0:
        return _empty_figure()
    savings_color = SAVINGS_COLOR if totals.savings >= 0 else DEFICIT_COLOR
    fig = go.Figure(
        go.Bar(
            x=["Income", "Expenses", "Savings"],
            y=[float(totals.income), float(totals.expenses), float(totals.savings)],
            marker_color=[INCOME_COLOR, EXPENSE_COLOR, savings_color],
        )
    )
    fig.update_layout(title=title or "Income vs Expenses", yaxis_title="Amount")
    return fig


def create_daily_spending_chart(days: Sequence[DailySpend], title: str | None = None) -> go.Figure:
    """Line chart of expense totals per day."""
    if not days:
        return _empty_figure()
    df = pd.DataFrame({"Date": [d.date for d in days], "Spent": [float(d.amount) for d in days]})
    fig = px.line(df, x="Date", y="Spent", markers=True, color_discrete_sequence=[EXPENSE_COLOR])
    fig.update_layout(title=title or "Daily Spending (Last 30 Days)", xaxis_title="Date", yaxis_title="Spent")
    return fig


def create_budget_chart(rows: Sequence[BudgetUtilization], title: str | None = None) -> go.Figure:
    """Grouped bars of budget versus actual spend per category."""
    if not rows:
        return _empty_figure()
    df = budget_frame(rows)
    fig = go.Figure()
    fig.add_trace(go.Bar(name="Budget", x=df["Category"], y=df["Budget"], marker_color=SAVINGS_COLOR))
    fig.add_trace(go.Bar(name="Spent", x=df["Category"], y=df["Spent"], marker_color=EXPENSE_COLOR))
    fig.update_layout(title=title or "Budget vs Actual Spending", barmode="group")
    return fig
