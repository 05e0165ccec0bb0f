#!/usr/bin/env python3
"""Seed a local database with a demo account and sample data."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from budget_tracker import config
from budget_tracker.db import SqliteClient
from budget_tracker.errors import BudgetTrackerError, ConflictError
from budget_tracker.forms import BudgetDraft, GroupDraft, GroupExpenseDraft, SignInDraft, SignUpDraft, TransactionDraft
from budget_tracker.repository import BudgetRepository

logger = logging.getLogger("seed_demo_data")

# (days ago, type, category, amount, notes)
SAMPLE_TRANSACTIONS = [
    (2, "expense", "Food & Dining", "450.00", "Groceries"),
    (4, "expense", "Transportation", "120.00", "Metro card"),
    (6, "income", "Business", "3000.00", "Salary"),
    (9, "expense", "Entertainment", "350.00", "Concert tickets"),
    (13, "expense", "Bills & Utilities", "980.50", "Electricity"),
    (20, "expense", "Shopping", "1500.00", "Shoes"),
    (35, "expense", "Food & Dining", "620.00", "Dinner out"),
    (38, "income", "Business", "3000.00", "Salary"),
    (64, "expense", "Healthcare", "400.00", "Pharmacy"),
    (68, "income", "Business", "3000.00", "Salary"),
]

SAMPLE_BUDGETS = [
    ("Food & Dining", "600.00"),
    ("Transportation", "300.00"),
    ("Shopping", "1000.00"),
    ("Bills & Utilities", "1200.00"),
]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db", default=config.get_db_path(), help="SQLite database path")
    parser.add_argument("--email", default="demo@example.com")
    parser.add_argument("--password", default="demo1234")
    parser.add_argument("--name", default="Demo User")
    return parser.parse_args(argv)


def seed(repo: BudgetRepository, email: str, password: str, name: str, today: dt.date) -> int:
    """Create the demo account (or sign in to it) and add sample rows."""
    try:
        session = repo.sign_up(SignUpDraft(email=email, password=password, full_name=name))
    except ConflictError:
        logger.info("Demo user %s already exists; signing in", email)
        session = repo.sign_in(SignInDraft(email=email, password=password))

    for days_ago, kind, category, amount, notes in SAMPLE_TRANSACTIONS:
        draft = TransactionDraft(
            amount=amount,
            kind=kind,
            category=category,
            date=today - dt.timedelta(days=days_ago),
            notes=notes,
        )
        repo.create_transaction(session, draft)

    created = 0
    for category, amount in SAMPLE_BUDGETS:
        try:
            repo.create_budget(session, BudgetDraft(category=category, amount=amount, month=today.month, year=today.year))
        except ConflictError:
            logger.info("Budget for %s already set", category)
        else:
            created += 1

    group = repo.create_group(session, GroupDraft(name="Flatmates"))
    repo.add_group_expense(
        session,
        GroupExpenseDraft(group_id=group.id, amount="900.00", category="Food & Dining", date=today, notes="Shared groceries"),
    )
    return len(SAMPLE_TRANSACTIONS) + created


def main(argv=None) -> int:
    args = parse_args(argv)
    config.configure_logging()
    config.ensure_data_directories()
    client = SqliteClient(args.db)
    client.init_db()
    try:
        count = seed(BudgetRepository(client), args.email, args.password, args.name, dt.date.today())
    except BudgetTrackerError as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    print(f"Seeded {count} rows for {args.email} into {args.db}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
