"""Aggregation and reporting calculations shared by every view.

All functions here are pure folds over already-fetched records: they never
touch the backend and never mutate their inputs.  Money stays in
:class:`~decimal.Decimal` so totals are exact; percentages are returned as
floats because they are only ever displayed or charted.
"""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import EXPENSE, INCOME, Budget, Transaction

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_TREND_MONTHS = 6
DAILY_SPENDING_LIMIT = 30
RECENT_LIMIT = 5


@dataclass(frozen=True)
class PeriodTotals:
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    transaction_count: int = 0

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True)
class BudgetUtilization:
    budget: Budget
    spent: Decimal
    remaining: Decimal
    percent_used: float

    @property
    def category(self) -> str:
        return self.budget.category

    @property
    def amount(self) -> Decimal:
        return self.budget.amount

    @property
    def is_over_budget(self) -> bool:
        return self.percent_used >= 100


@dataclass(frozen=True)
class BudgetOverview:
    total_budget: Decimal = ZERO
    total_spent: Decimal = ZERO
    over_budget: Tuple[BudgetUtilization, ...] = field(default_factory=tuple)

    @property
    def total_remaining(self) -> Decimal:
        return self.total_budget - self.total_spent


@dataclass(frozen=True)
class MonthlyPoint:
    year: int
    month: int
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses

    @property
    def label(self) -> str:
        return dt.date(self.year, self.month, 1).strftime("%b %Y")


@dataclass(frozen=True)
class GroupShare:
    total_expenses: Decimal
    member_count: int
    per_person_share: Decimal


@dataclass(frozen=True)
class CategoryRow:
    category: str
    amount: Decimal
    percentage: float
    transaction_count: int = 0


@dataclass(frozen=True)
class CategoryBudgetRow:
    category: str
    spent: Decimal
    budget: Decimal

    @property
    def over_by(self) -> Decimal:
        """Amount spent beyond a non-zero budget (zero otherwise)."""
        if self.budget > 0 and self.spent > self.budget:
            return self.spent - self.budget
        return ZERO


@dataclass(frozen=True)
class DailySpend:
    date: dt.date
    amount: Decimal


# ----------------------------------------------------------------------
# Scoping helpers
# ----------------------------------------------------------------------
def transactions_in_month(transactions: Iterable[Transaction], year: int, month: int) -> List[Transaction]:
    """Transactions dated within the given calendar month."""
    return [t for t in transactions if t.date.year == year and t.date.month == month]


def filter_transactions(
    transactions: Iterable[Transaction],
    search: Optional[str] = None,
    kind: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[Transaction]:
    """Apply the transaction list filters.

    Args:
        search: Case-insensitive substring matched against category and notes.
        kind: ``"income"`` or ``"expense"``; ``None`` keeps both.
        category: Exact category; ``None`` keeps all.
        start, end: Inclusive date bounds.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for txn in transactions:
        if needle and needle not in txn.category.lower() and needle not in (txn.notes or "").lower():
            continue
        if kind and txn.kind != kind:
            continue
        if category and txn.category != category:
            continue
        if start and txn.date < start:
            continue
        if end and txn.date > end:
            continue
        result.append(txn)
    return result


def recent_transactions(transactions: Iterable[Transaction], limit: int = RECENT_LIMIT) -> List[Transaction]:
    """Newest transactions first."""
    ordered = sorted(transactions, key=lambda t: (t.date, t.created_at or ""), reverse=True)
    return ordered[:limit]


# ----------------------------------------------------------------------
# Totals
# ----------------------------------------------------------------------
def period_totals(transactions: Iterable[Transaction]) -> PeriodTotals:
    """Income, expense and count totals for a set of transactions."""
    income = ZERO
    expenses = ZERO
    count = 0
    for txn in transactions:
        count += 1
        if txn.kind == INCOME:
            income += txn.amount
        elif txn.kind == EXPENSE:
            expenses += txn.amount
    return PeriodTotals(income=income, expenses=expenses, transaction_count=count)


def category_spend(
    transactions: Iterable[Transaction],
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict[str, Decimal]:
    """Sum expense amounts per category.

    Income rows never contribute.  When ``year``/``month`` are given only
    transactions in that calendar month are counted.

    Example:
        >>> category_spend(january_transactions)
        {'Food & Dining': Decimal('500.00')}
    """
    totals: Dict[str, Decimal] = {}
    for txn in transactions:
        if txn.kind != EXPENSE:
            continue
        if year is not None and txn.date.year != year:
            continue
        if month is not None and txn.date.month != month:
            continue
        totals[txn.category] = totals.get(txn.category, ZERO) + txn.amount
    return totals


# ----------------------------------------------------------------------
# Budgets
# ----------------------------------------------------------------------
def percent_of(part: Decimal, whole: Decimal) -> float:
    """``part / whole * 100`` as a float, 0 when ``whole`` is zero."""
    if whole == 0:
        return 0.0
    return float(part / whole * HUNDRED)


def budget_utilization(budget: Budget, spend: Mapping[str, Decimal]) -> BudgetUtilization:
    """Compare one budget against the category spend for its month.

    ``spend`` must come from :func:`category_spend` over the same user and
    (month, year) as the budget.  ``remaining`` may go negative when the
    budget is exceeded; ``percent_used`` is clamped to ``[0, 100]``.  A zero
    budget reports 100% once anything is spent and 0% otherwise.
    """
    spent = spend.get(budget.category, ZERO)
    remaining = budget.amount - spent
    if budget.amount == 0:
        percent = 100.0 if spent > 0 else 0.0
    else:
        percent = min(max(percent_of(spent, budget.amount), 0.0), 100.0)
    return BudgetUtilization(budget=budget, spent=spent, remaining=remaining, percent_used=percent)


def budget_utilizations(
    budgets: Iterable[Budget],
    transactions: Sequence[Transaction],
) -> List[BudgetUtilization]:
    """One utilization row per budget, each measured against its own month.

    Months without a budget produce no rows, whatever was spent in them.
    """
    by_period: Dict[Tuple[str, int, int], Dict[str, Decimal]] = {}
    rows = []
    for budget in budgets:
        key = (budget.user_id, budget.year, budget.month)
        if key not in by_period:
            owned = [t for t in transactions if t.user_id == budget.user_id]
            by_period[key] = category_spend(owned, year=budget.year, month=budget.month)
        rows.append(budget_utilization(budget, by_period[key]))
    return rows


def budget_overview(utilizations: Iterable[BudgetUtilization]) -> BudgetOverview:
    """Totals across a month's budgets plus the categories at or over 100%."""
    total_budget = ZERO
    total_spent = ZERO
    over = []
    for row in utilizations:
        total_budget += row.amount
        total_spent += row.spent
        if row.is_over_budget:
            over.append(row)
    return BudgetOverview(total_budget=total_budget, total_spent=total_spent, over_budget=tuple(over))


def category_budget_comparison(
    spend: Mapping[str, Decimal],
    budgets: Iterable[Budget],
) -> List[CategoryBudgetRow]:
    """Pair each spent category with its budget amount (zero when unbudgeted).

    ``budgets`` should all belong to the month ``spend`` was computed for.
    Rows are ordered by amount spent, largest first.
    """
    budget_by_category = {budget.category: budget.amount for budget in budgets}
    rows = [
        CategoryBudgetRow(category=category, spent=amount, budget=budget_by_category.get(category, ZERO))
        for category, amount in spend.items()
    ]
    return sorted(rows, key=lambda r: r.spent, reverse=True)


# ----------------------------------------------------------------------
# Trends
# ----------------------------------------------------------------------
def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def monthly_trend(
    transactions: Iterable[Transaction],
    months: int = DEFAULT_TREND_MONTHS,
    today: Optional[dt.date] = None,
) -> List[MonthlyPoint]:
    """Income/expense/savings for the ``months`` calendar months ending today.

    The series always has exactly ``months`` points ordered oldest to
    newest; a month without transactions is reported as zeros rather than
    omitted.
    """
    if months < 1:
        raise ValueError("months must be at least 1")
    today = today or dt.date.today()
    last = _month_index(today.year, today.month)
    periods = [divmod(index, 12) for index in range(last - months + 1, last + 1)]

    income: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    expenses: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    wanted = {(year, zero_month + 1) for year, zero_month in periods}
    for txn in transactions:
        key = (txn.date.year, txn.date.month)
        if key not in wanted:
            continue
        if txn.kind == INCOME:
            income[key] += txn.amount
        elif txn.kind == EXPENSE:
            expenses[key] += txn.amount

    series = []
    for year, zero_month in periods:
        key = (year, zero_month + 1)
        series.append(MonthlyPoint(year=year, month=zero_month + 1, income=income[key], expenses=expenses[key]))
    return series


def daily_spending(transactions: Iterable[Transaction], limit: int = DAILY_SPENDING_LIMIT) -> List[DailySpend]:
    """Expense totals per day, ascending, keeping the last ``limit`` days seen."""
    per_day: Dict[dt.date, Decimal] = {}
    for txn in transactions:
        if txn.kind == EXPENSE:
            per_day[txn.date] = per_day.get(txn.date, ZERO) + txn.amount
    ordered = [DailySpend(date=day, amount=per_day[day]) for day in sorted(per_day)]
    return ordered[-limit:] if limit > 0 else []


# ----------------------------------------------------------------------
# Groups
# ----------------------------------------------------------------------
def group_share(transactions: Iterable[Transaction], members: Sequence) -> GroupShare:
    """Equal split of everything recorded against a group.

    Every group transaction counts toward the total, whatever its kind.
    With no members the share is zero.
    """
    total = sum((txn.amount for txn in transactions), ZERO)
    count = len(members)
    share = total / count if count else ZERO
    return GroupShare(total_expenses=total, member_count=count, per_person_share=share)


# ----------------------------------------------------------------------
# Category report rows
# ----------------------------------------------------------------------
def category_percentages(
    spend: Mapping[str, Decimal],
    total_expenses: Optional[Decimal] = None,
    counts: Optional[Mapping[str, int]] = None,
) -> List[CategoryRow]:
    """Share of total expenses per category, largest amount first.

    ``total_expenses`` defaults to the sum of ``spend``.  Every percentage is
    zero when the total is zero.
    """
    total = sum(spend.values(), ZERO) if total_expenses is None else total_expenses
    counts = counts or {}
    rows = [
        CategoryRow(
            category=category,
            amount=amount,
            percentage=percent_of(amount, total),
            transaction_count=counts.get(category, 0),
        )
        for category, amount in spend.items()
    ]
    return sorted(rows, key=lambda r: r.amount, reverse=True)


def category_breakdown(transactions: Sequence[Transaction]) -> List[CategoryRow]:
    """Category report rows (amount, percentage, count) for expense rows."""
    spend = category_spend(transactions)
    counts: Dict[str, int] = defaultdict(int)
    for txn in transactions:
        if txn.kind == EXPENSE:
            counts[txn.category] += 1
    total = period_totals(transactions).expenses
    return category_percentages(spend, total, counts)
