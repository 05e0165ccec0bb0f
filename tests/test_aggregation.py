import datetime as dt
from decimal import Decimal

import pytest

from budget_tracker import aggregation as agg
from budget_tracker.models import Budget, GroupMember, Transaction


def _txn(amount, kind='expense', category='Food & Dining', date='2024-01-10', user='u1', txn_id=None, group=None, notes=None):
    return Transaction(
        id=txn_id or f'{kind}-{category}-{date}-{amount}',
        user_id=user,
        amount=Decimal(amount),
        kind=kind,
        category=category,
        date=dt.date.fromisoformat(date),
        group_id=group,
        notes=notes,
    )


def _budget(amount, category='Food & Dining', month=1, year=2024, user='u1'):
    return Budget(id=f'b-{category}-{month}-{year}', user_id=user, category=category, amount=Decimal(amount), month=month, year=year)


def _scenario():
    return [
        _txn('500', date='2024-01-05'),
        _txn('3000', kind='income', category='Business', date='2024-01-01'),
        _txn('200', date='2024-02-03'),
    ]


def test_category_spend_ignores_income_and_sums_to_total_expenses():
    txns = [
        _txn('120.50'),
        _txn('79.50', category='Transportation'),
        _txn('1000', kind='income', category='Business'),
        _txn('30', category='Transportation'),
    ]
    spend = agg.category_spend(txns)
    assert spend == {'Food & Dining': Decimal('120.50'), 'Transportation': Decimal('109.50')}
    assert sum(spend.values()) == agg.period_totals(txns).expenses


def test_category_spend_scoped_to_month():
    spend = agg.category_spend(_scenario(), year=2024, month=2)
    assert spend == {'Food & Dining': Decimal('200')}


def test_period_totals_savings_can_be_negative():
    totals = agg.period_totals([_txn('50', kind='income'), _txn('80')])
    assert totals.income == Decimal('50')
    assert totals.expenses == Decimal('80')
    assert totals.savings == Decimal('-30')
    assert totals.transaction_count == 2


def test_monthly_trend_has_fixed_length_with_zero_months():
    trend = agg.monthly_trend(_scenario(), months=6, today=dt.date(2024, 3, 15))
    assert [p.label for p in trend] == ['Oct 2023', 'Nov 2023', 'Dec 2023', 'Jan 2024', 'Feb 2024', 'Mar 2024']
    assert trend[0].income == trend[0].expenses == trend[0].savings == Decimal('0')
    jan = trend[3]
    assert (jan.income, jan.expenses, jan.savings) == (Decimal('3000'), Decimal('500'), Decimal('2500'))
    assert trend[5].expenses == Decimal('0')


def test_monthly_trend_crosses_year_boundary():
    trend = agg.monthly_trend([], months=3, today=dt.date(2024, 1, 31))
    assert [(p.year, p.month) for p in trend] == [(2023, 11), (2023, 12), (2024, 1)]


def test_monthly_trend_rejects_non_positive_months():
    with pytest.raises(ValueError):
        agg.monthly_trend([], months=0)


def test_budget_utilization_end_to_end_scenario():
    rows = agg.budget_utilizations([_budget('600')], _scenario())
    assert len(rows) == 1
    row = rows[0]
    assert row.spent == Decimal('500')
    assert row.remaining == Decimal('100')
    assert row.percent_used == pytest.approx(83.33, abs=0.01)
    assert not row.is_over_budget
    # February has no budget so nothing is reported for it
    assert all(r.budget.month == 1 for r in rows)


def test_budget_utilization_remaining_plus_spent_is_exact_and_percent_clamped():
    budget = _budget('100.10')
    row = agg.budget_utilization(budget, {'Food & Dining': Decimal('250.25')})
    assert row.remaining + row.spent == budget.amount
    assert row.remaining == Decimal('-150.15')
    assert row.percent_used == 100.0
    assert row.is_over_budget


def test_zero_budget_percent_used():
    budget = _budget('0')
    assert agg.budget_utilization(budget, {}).percent_used == 0.0
    assert agg.budget_utilization(budget, {'Food & Dining': Decimal('1')}).percent_used == 100.0


def test_budget_utilizations_only_count_owner_and_month():
    txns = [
        _txn('40', date='2024-01-02'),
        _txn('60', date='2024-01-03', user='someone-else'),
        _txn('70', date='2023-12-31'),
    ]
    rows = agg.budget_utilizations([_budget('100')], txns)
    assert rows[0].spent == Decimal('40')


def test_budget_overview_totals_and_over_budget():
    rows = agg.budget_utilizations(
        [_budget('600'), _budget('100', category='Shopping')],
        _scenario() + [_txn('150', category='Shopping', date='2024-01-20')],
    )
    overview = agg.budget_overview(rows)
    assert overview.total_budget == Decimal('700')
    assert overview.total_spent == Decimal('650')
    assert overview.total_remaining == Decimal('50')
    assert [r.category for r in overview.over_budget] == ['Shopping']


def test_category_budget_comparison_marks_unbudgeted_and_over():
    spend = {'Food & Dining': Decimal('700'), 'Travel': Decimal('50')}
    rows = agg.category_budget_comparison(spend, [_budget('600')])
    assert [r.category for r in rows] == ['Food & Dining', 'Travel']
    assert rows[0].over_by == Decimal('100')
    assert rows[1].budget == Decimal('0')
    assert rows[1].over_by == Decimal('0')


def test_group_share_equal_split():
    members = [GroupMember(id=str(i), group_id='g', user_id=f'u{i}') for i in range(3)]
    txns = [_txn('400', group='g'), _txn('500', group='g')]
    share = agg.group_share(txns, members)
    assert share.total_expenses == Decimal('900')
    assert share.member_count == 3
    assert share.per_person_share == Decimal('300')


def test_group_share_without_members_is_zero():
    share = agg.group_share([_txn('900', group='g')], [])
    assert share.per_person_share == Decimal('0')
    assert share.member_count == 0


def test_category_percentages_sum_to_hundred():
    rows = agg.category_percentages({'A': Decimal('1'), 'B': Decimal('1'), 'C': Decimal('1')})
    assert sum(r.percentage for r in rows) == pytest.approx(100.0)


def test_category_percentages_all_zero_when_total_zero():
    rows = agg.category_percentages({'A': Decimal('0'), 'B': Decimal('0')})
    assert [r.percentage for r in rows] == [0.0, 0.0]


def test_category_breakdown_counts_expense_rows():
    txns = [_txn('10'), _txn('30'), _txn('60', category='Travel'), _txn('999', kind='income')]
    rows = agg.category_breakdown(txns)
    assert rows[0].category == 'Travel'
    assert rows[0].percentage == pytest.approx(60.0)
    food = next(r for r in rows if r.category == 'Food & Dining')
    assert food.transaction_count == 2
    assert food.amount == Decimal('40')


def test_daily_spending_ascending_and_limited():
    txns = [_txn('5', date=f'2024-01-{day:02d}') for day in range(1, 11)]
    txns.append(_txn('5', date='2024-01-10', txn_id='second'))
    txns.append(_txn('100', kind='income', date='2024-01-11'))
    days = agg.daily_spending(txns, limit=3)
    assert [d.date.day for d in days] == [8, 9, 10]
    assert days[-1].amount == Decimal('10')


def test_filter_transactions_search_kind_and_dates():
    txns = [
        _txn('10', notes='Lunch with team', date='2024-01-05'),
        _txn('20', category='Travel', date='2024-01-15'),
        _txn('30', kind='income', category='Business', date='2024-01-20'),
    ]
    assert len(agg.filter_transactions(txns, search='lunch')) == 1
    assert len(agg.filter_transactions(txns, search='TRAVEL')) == 1
    assert [t.kind for t in agg.filter_transactions(txns, kind='income')] == ['income']
    assert len(agg.filter_transactions(txns, start=dt.date(2024, 1, 10), end=dt.date(2024, 1, 15))) == 1


def test_recent_transactions_newest_first():
    txns = [_txn('1', date='2024-01-01'), _txn('2', date='2024-03-01'), _txn('3', date='2024-02-01')]
    recent = agg.recent_transactions(txns, limit=2)
    assert [t.amount for t in recent] == [Decimal('2'), Decimal('3')]
