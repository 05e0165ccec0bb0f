"""Typed form drafts.

Widgets hand back loosely typed values (strings from text inputs, floats from
number inputs, dates or ``None`` from date pickers).  A draft keeps those raw
values together and ``clean()`` converts them, once, into the typed column
values the repository persists.  Anything that cannot be converted raises
:class:`~budget_tracker.errors.ValidationError` naming the offending field, so
unparsed strings never travel past this module.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional

from .errors import ValidationError
from .models import CATEGORIES, EXPENSE, KINDS, Budget, Transaction

CENTS = Decimal("0.01")
MIN_YEAR = 2000
MAX_YEAR = 2100
MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Convert widget input into a non-negative amount rounded to cents."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field_name, "Amount is required.")
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        raise ValidationError(field_name, f"'{value}' is not a valid amount.") from None
    if not amount.is_finite():
        raise ValidationError(field_name, f"'{value}' is not a valid amount.")
    if amount < 0:
        raise ValidationError(field_name, "Amount cannot be negative.")
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(field_name, f"'{value}' is too large.") from None


def parse_date(value: Any, field_name: str = "date") -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if value is None or not str(value).strip():
        raise ValidationError(field_name, "Date is required.")
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(field_name, f"'{value}' is not a date (expected YYYY-MM-DD).") from None


def parse_choice(value: Any, choices: Iterable[str], field_name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(field_name, f"Please select a {field_name}.")
    if text not in tuple(choices):
        raise ValidationError(field_name, f"'{text}' is not a valid {field_name}.")
    return text


def parse_month(value: Any) -> int:
    try:
        month = int(value)
    except (TypeError, ValueError):
        raise ValidationError("month", f"'{value}' is not a month.") from None
    if not 1 <= month <= 12:
        raise ValidationError("month", "Month must be between 1 and 12.")
    return month


def parse_year(value: Any) -> int:
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValidationError("year", f"'{value}' is not a year.") from None
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError("year", f"Year must be between {MIN_YEAR} and {MAX_YEAR}.")
    return year


def parse_text(value: Any, field_name: str, required: bool = True) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    if not text:
        if required:
            raise ValidationError(field_name, f"{field_name.replace('_', ' ').capitalize()} is required.")
        return None
    return text


def parse_email(value: Any) -> str:
    email = parse_text(value, "email")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email", f"'{email}' is not a valid email address.")
    return email.lower()


@dataclass
class TransactionDraft:
    amount: Any = ""
    kind: str = EXPENSE
    category: str = ""
    date: Any = field(default_factory=dt.date.today)
    notes: str = ""

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionDraft":
        return cls(
            amount=str(txn.amount),
            kind=txn.kind,
            category=txn.category,
            date=txn.date,
            notes=txn.notes or "",
        )

    def clean(self) -> Dict[str, Any]:
        return {
            "amount": parse_amount(self.amount),
            "type": parse_choice(self.kind, KINDS, "type"),
            "category": parse_choice(self.category, CATEGORIES, "category"),
            "date": parse_date(self.date).isoformat(),
            "notes": parse_text(self.notes, "notes", required=False),
        }


@dataclass
class BudgetDraft:
    category: str = ""
    amount: Any = ""
    month: Any = field(default_factory=lambda: dt.date.today().month)
    year: Any = field(default_factory=lambda: dt.date.today().year)

    @classmethod
    def from_budget(cls, budget: Budget) -> "BudgetDraft":
        return cls(
            category=budget.category,
            amount=str(budget.amount),
            month=budget.month,
            year=budget.year,
        )

    def clean(self) -> Dict[str, Any]:
        return {
            "category": parse_choice(self.category, CATEGORIES, "category"),
            "amount": parse_amount(self.amount),
            "month": parse_month(self.month),
            "year": parse_year(self.year),
        }


@dataclass
class GroupDraft:
    name: str = ""

    def clean(self) -> Dict[str, Any]:
        return {"name": parse_text(self.name, "group_name")}


@dataclass
class MemberInviteDraft:
    email: str = ""

    def clean(self) -> str:
        return parse_email(self.email)


@dataclass
class GroupExpenseDraft:
    group_id: str = ""
    amount: Any = ""
    category: str = "Food & Dining"
    date: Any = field(default_factory=dt.date.today)
    notes: str = ""

    def clean(self) -> Dict[str, Any]:
        return {
            "group_id": parse_text(self.group_id, "group"),
            "amount": parse_amount(self.amount),
            "type": EXPENSE,
            "category": parse_choice(self.category, CATEGORIES, "category"),
            "date": parse_date(self.date).isoformat(),
            "notes": parse_text(self.notes, "notes", required=False),
        }


@dataclass
class SignInDraft:
    email: str = ""
    password: str = ""

    def clean(self) -> Dict[str, str]:
        password = self.password or ""
        if not password:
            raise ValidationError("password", "Password is required.")
        return {"email": parse_email(self.email), "password": password}


@dataclass
class SignUpDraft:
    email: str = ""
    password: str = ""
    full_name: str = ""

    def clean(self) -> Dict[str, str]:
        password = self.password or ""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )
        return {
            "email": parse_email(self.email),
            "password": password,
            "full_name": parse_text(self.full_name, "full_name"),
        }
