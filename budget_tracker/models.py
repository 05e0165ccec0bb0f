"""Record types shared by the data access layer, forms and aggregation.

Rows come back from the query client as plain dictionaries keyed by column
name.  Each record type builds itself from such a row with ``from_row``;
column values going the other way come from the drafts in
:mod:`budget_tracker.forms`.  Money is always :class:`decimal.Decimal`; dates
are :class:`datetime.date`.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

INCOME = "income"
EXPENSE = "expense"
KINDS: Tuple[str, ...] = (INCOME, EXPENSE)

ADMIN = "admin"
MEMBER = "member"

CATEGORIES: Tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Business",
    "Other",
)

# Subset offered by the group expense form
GROUP_CATEGORIES: Tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Entertainment",
    "Travel",
    "Other",
)

MONTH_NAMES: Tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Table names on the persistence boundary
USERS = "users"
TRANSACTIONS = "transactions"
BUDGETS = "budgets"
GROUPS = "groups"
GROUP_MEMBERS = "group_members"


def to_decimal(value: Any) -> Decimal:
    """Convert a stored amount into a Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def to_date(value: Any) -> dt.date:
    """Convert an ISO date string (or datetime) into a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Transaction:
    id: str
    user_id: str
    amount: Decimal
    kind: str
    category: str
    date: dt.date
    group_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.kind == INCOME

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            amount=to_decimal(row["amount"]),
            kind=str(row["type"]),
            category=str(row["category"]),
            date=to_date(row["date"]),
            group_id=row.get("group_id") or None,
            notes=row.get("notes") or None,
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class Budget:
    id: str
    user_id: str
    category: str
    amount: Decimal
    month: int
    year: int
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Budget":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            category=str(row["category"]),
            amount=to_decimal(row["amount"]),
            month=int(row["month"]),
            year=int(row["year"]),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class Group:
    id: str
    name: str
    created_by: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Group":
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            created_by=str(row["created_by"]),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class GroupMember:
    id: str
    group_id: str
    user_id: str
    role: str = MEMBER
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GroupMember":
        return cls(
            id=str(row["id"]),
            group_id=str(row["group_id"]),
            user_id=str(row["user_id"]),
            role=str(row.get("role") or MEMBER),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class UserProfile:
    id: str
    email: str
    full_name: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserProfile":
        return cls(
            id=str(row["id"]),
            email=str(row["email"]),
            full_name=row.get("full_name") or None,
            created_at=row.get("created_at"),
        )
