import datetime as dt
import threading
import time
from decimal import Decimal

import pytest

from budget_tracker import aggregation as agg
from budget_tracker.db import SqliteClient
from budget_tracker.errors import AuthError, ConflictError, NotFoundError, ValidationError
from budget_tracker.forms import (
    BudgetDraft,
    GroupDraft,
    GroupExpenseDraft,
    MemberInviteDraft,
    SignInDraft,
    SignUpDraft,
    TransactionDraft,
)
from budget_tracker.repository import (
    BUDGET_CONFLICT_MESSAGE,
    MEMBER_CONFLICT_MESSAGE,
    MEMBER_NOT_FOUND_MESSAGE,
    BudgetRepository,
    load_together,
)


@pytest.fixture
def repo(tmp_path):
    client = SqliteClient(tmp_path / 'budget.db')
    client.init_db()
    return BudgetRepository(client)


def _sign_up(repo, email='ana@example.com', name='Ana'):
    return repo.sign_up(SignUpDraft(email=email, password='secret1', full_name=name))


def test_end_to_end_budget_scenario(repo):
    session = _sign_up(repo)
    repo.create_transaction(session, TransactionDraft(amount='500', kind='expense', category='Food & Dining', date='2024-01-05'))
    repo.create_transaction(session, TransactionDraft(amount='3000', kind='income', category='Business', date='2024-01-01'))
    repo.create_transaction(session, TransactionDraft(amount='200', kind='expense', category='Food & Dining', date='2024-02-03'))
    repo.create_budget(session, BudgetDraft(category='Food & Dining', amount='600', month=1, year=2024))

    budgets, transactions = load_together(
        lambda: repo.list_budgets(session, month=1, year=2024),
        lambda: repo.list_transactions(session),
    )
    rows = agg.budget_utilizations(budgets, transactions)
    assert len(rows) == 1
    assert rows[0].spent == Decimal('500')
    assert rows[0].remaining == Decimal('100')
    assert rows[0].percent_used == pytest.approx(83.33, abs=0.01)
    assert repo.list_budgets(session, month=2, year=2024) == []


def test_sign_in_with_wrong_password(repo):
    _sign_up(repo)
    assert repo.sign_in(SignInDraft(email='ANA@example.com', password='secret1')).email == 'ana@example.com'
    with pytest.raises(AuthError):
        repo.sign_in(SignInDraft(email='ana@example.com', password='nope-nope'))


def test_operations_require_a_session(repo):
    with pytest.raises(AuthError):
        repo.list_transactions(None)


def test_list_transactions_filters_and_orders(repo):
    session = _sign_up(repo)
    for day, category in ((3, 'Travel'), (1, 'Food & Dining'), (2, 'Travel')):
        repo.create_transaction(session, TransactionDraft(amount='10', category=category, date=dt.date(2024, 1, day)))
    travel = repo.list_transactions(session, category='Travel')
    assert [t.date.day for t in travel] == [3, 2]
    oldest_first = repo.list_transactions(session, descending=False)
    assert [t.date.day for t in oldest_first] == [1, 2, 3]
    assert len(repo.list_transactions(session, start=dt.date(2024, 1, 2), end=dt.date(2024, 1, 2))) == 1


def test_update_and_delete_transaction(repo):
    session = _sign_up(repo)
    txn = repo.create_transaction(session, TransactionDraft(amount='10', category='Travel', date='2024-01-01'))
    updated = repo.update_transaction(
        session, txn.id, TransactionDraft(amount='12.5', kind='expense', category='Shopping', date='2024-01-02', notes='Shoes')
    )
    assert updated.amount == Decimal('12.50')
    assert updated.category == 'Shopping'
    assert updated.notes == 'Shoes'
    repo.delete_transaction(session, txn.id)
    assert repo.list_transactions(session) == []


def test_invalid_draft_never_reaches_the_backend(repo):
    session = _sign_up(repo)
    with pytest.raises(ValidationError):
        repo.create_transaction(session, TransactionDraft(amount='ten', category='Travel'))
    assert repo.list_transactions(session) == []


def test_duplicate_budget_gets_friendly_message(repo):
    session = _sign_up(repo)
    draft = BudgetDraft(category='Shopping', amount='100', month=3, year=2024)
    repo.create_budget(session, draft)
    with pytest.raises(ConflictError) as excinfo:
        repo.create_budget(session, draft)
    assert excinfo.value.message == BUDGET_CONFLICT_MESSAGE


def test_update_budget_into_existing_period_conflicts(repo):
    session = _sign_up(repo)
    repo.create_budget(session, BudgetDraft(category='Shopping', amount='100', month=3, year=2024))
    other = repo.create_budget(session, BudgetDraft(category='Travel', amount='100', month=3, year=2024))
    with pytest.raises(ConflictError) as excinfo:
        repo.update_budget(session, other.id, BudgetDraft(category='Shopping', amount='50', month=3, year=2024))
    assert excinfo.value.message == BUDGET_CONFLICT_MESSAGE


def test_group_flow_with_members_and_share(repo):
    owner = _sign_up(repo)
    friend = _sign_up(repo, email='ben@example.com', name='Ben')
    group = repo.create_group(owner, GroupDraft(name='Flatmates'))

    members = repo.list_members(owner, group.id)
    assert [(m.user_id, m.role) for m in members] == [(owner.user_id, 'admin')]

    repo.add_member(owner, group.id, MemberInviteDraft(email='Ben@Example.com'))
    with pytest.raises(ConflictError) as excinfo:
        repo.add_member(owner, group.id, MemberInviteDraft(email='ben@example.com'))
    assert excinfo.value.message == MEMBER_CONFLICT_MESSAGE

    repo.add_group_expense(owner, GroupExpenseDraft(group_id=group.id, amount='600', date='2024-01-01'))
    repo.add_group_expense(friend, GroupExpenseDraft(group_id=group.id, amount='300', date='2024-01-02'))

    members, transactions = repo.load_group_details(owner, group.id)
    share = agg.group_share(transactions, members)
    assert share.total_expenses == Decimal('900')
    assert share.per_person_share == Decimal('450')
    assert [t.date.day for t in transactions] == [2, 1]

    assert [g.id for g in repo.list_groups(friend)] == [group.id]
    assert [g.id for g in repo.list_groups(owner)] == [group.id]


def test_add_member_unknown_email(repo):
    owner = _sign_up(repo)
    group = repo.create_group(owner, GroupDraft(name='Trip'))
    with pytest.raises(NotFoundError) as excinfo:
        repo.add_member(owner, group.id, MemberInviteDraft(email='ghost@example.com'))
    assert excinfo.value.message == MEMBER_NOT_FOUND_MESSAGE


def test_only_creator_adds_members_and_only_members_add_expenses(repo):
    owner = _sign_up(repo)
    outsider = _sign_up(repo, email='eve@example.com', name='Eve')
    group = repo.create_group(owner, GroupDraft(name='Trip'))
    with pytest.raises(AuthError):
        repo.add_member(outsider, group.id, MemberInviteDraft(email='eve@example.com'))
    with pytest.raises(AuthError):
        repo.add_group_expense(outsider, GroupExpenseDraft(group_id=group.id, amount='10', date='2024-01-01'))


def test_load_together_runs_calls_concurrently_and_keeps_order():
    barrier = threading.Barrier(2, timeout=5)

    def first():
        barrier.wait()
        return 'a'

    def second():
        barrier.wait()
        time.sleep(0.01)
        return 'b'

    assert load_together(first, second) == ('a', 'b')
    assert load_together() == ()


def test_load_together_propagates_errors():
    def boom():
        raise NotFoundError('missing')

    with pytest.raises(NotFoundError):
        load_together(lambda: 1, boom)
