import datetime as dt
from decimal import Decimal

import plotly.graph_objects as go

from budget_tracker import aggregation as agg
from budget_tracker import visualization as viz
from budget_tracker.models import Budget, Transaction


def _transactions():
    return [
        Transaction(id='1', user_id='u', amount=Decimal('40'), kind='expense', category='Travel', date=dt.date(2024, 1, 2)),
        Transaction(id='2', user_id='u', amount=Decimal('60'), kind='expense', category='Shopping', date=dt.date(2024, 1, 3)),
        Transaction(id='3', user_id='u', amount=Decimal('500'), kind='income', category='Business', date=dt.date(2024, 1, 1)),
    ]


def test_empty_inputs_produce_placeholder_figures():
    for fig in (
        viz.create_trend_chart([]),
        viz.create_category_pie_chart([]),
        viz.create_income_expense_chart(agg.PeriodTotals()),
        viz.create_daily_spending_chart([]),
        viz.create_budget_chart([]),
    ):
        assert isinstance(fig, go.Figure)
        assert fig.layout.title.text == 'No data to display'


def test_trend_chart_has_three_series():
    trend = agg.monthly_trend(_transactions(), months=3, today=dt.date(2024, 1, 31))
    fig = viz.create_trend_chart(trend)
    assert sorted(trace.name for trace in fig.data) == ['Expenses', 'Income', 'Savings']
    assert len(fig.data[0].x) == 3


def test_category_frame_and_pie():
    rows = agg.category_breakdown(_transactions())
    frame = viz.category_frame(rows)
    assert list(frame['Category']) == ['Shopping', 'Travel']
    assert list(frame['Percentage']) == [60.0, 40.0]
    fig = viz.create_category_pie_chart(rows)
    assert list(fig.data[0].labels) == ['Shopping', 'Travel']


def test_budget_chart_groups_budget_and_spent():
    budget = Budget(id='b', user_id='u', category='Travel', amount=Decimal('100'), month=1, year=2024)
    rows = agg.budget_utilizations([budget], _transactions())
    fig = viz.create_budget_chart(rows)
    assert [trace.name for trace in fig.data] == ['Budget', 'Spent']
    assert list(fig.data[1].y) == [40.0]
    assert fig.layout.barmode == 'group'


def test_transactions_frame_columns():
    frame = viz.transactions_frame(_transactions())
    assert list(frame.columns) == ['Date', 'Type', 'Category', 'Amount', 'Notes']
    assert frame['Type'].tolist() == ['Expense', 'Expense', 'Income']
