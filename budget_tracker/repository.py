"""Domain data access on top of a query client.

Every operation takes the caller's :class:`SessionContext` explicitly and
scopes owned records by ``session.user_id``.  Forms are cleaned here, at the
submission boundary, so callers hand over drafts and get records back.
"""

from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

from .backend import QueryClient
from .errors import AuthError, ConflictError, NotFoundError
from .forms import (
    BudgetDraft,
    GroupDraft,
    GroupExpenseDraft,
    MemberInviteDraft,
    SignInDraft,
    SignUpDraft,
    TransactionDraft,
)
from .models import (
    ADMIN,
    BUDGETS,
    GROUP_MEMBERS,
    GROUPS,
    MEMBER,
    TRANSACTIONS,
    USERS,
    Budget,
    Group,
    GroupMember,
    Transaction,
    UserProfile,
)
from .session import SessionContext, require_session

logger = logging.getLogger(__name__)

BUDGET_CONFLICT_MESSAGE = "A budget for this category already exists for the selected month and year."
MEMBER_CONFLICT_MESSAGE = "User is already a member of this group"
MEMBER_NOT_FOUND_MESSAGE = "User not found with this email"


def load_together(*calls: Callable[[], Any]) -> Tuple[Any, ...]:
    """Run independent fetches concurrently and wait for all of them.

    Results come back in the order the calls were given.  If any call fails
    its exception propagates once every call has finished.
    """
    if not calls:
        return ()
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
    return tuple(future.result() for future in futures)


class BudgetRepository:
    """CRUD operations for transactions, budgets and groups."""

    def __init__(self, client: QueryClient):
        self.client = client

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def sign_up(self, draft: SignUpDraft) -> SessionContext:
        fields = draft.clean()
        return self.client.sign_up(fields["email"], fields["password"], fields["full_name"])

    def sign_in(self, draft: SignInDraft) -> SessionContext:
        fields = draft.clean()
        return self.client.sign_in(fields["email"], fields["password"])

    def sign_out(self, session: SessionContext) -> None:
        self.client.sign_out(session)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def list_transactions(
        self,
        session: SessionContext,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
        category: Optional[str] = None,
        kind: Optional[str] = None,
        descending: bool = True,
    ) -> List[Transaction]:
        session = require_session(session)
        eq: Dict[str, Any] = {"user_id": session.user_id}
        if category:
            eq["category"] = category
        if kind:
            eq["type"] = kind
        rows = self.client.select(
            session,
            TRANSACTIONS,
            eq=eq,
            gte={"date": start} if start else None,
            lte={"date": end} if end else None,
            order="date",
            descending=descending,
        )
        return [Transaction.from_row(row) for row in rows]

    def create_transaction(self, session: SessionContext, draft: TransactionDraft) -> Transaction:
        session = require_session(session)
        values = {"user_id": session.user_id, **draft.clean()}
        row = self.client.insert(session, TRANSACTIONS, values)
        logger.info("Created %s transaction %s", values["type"], row.get("id"))
        return Transaction.from_row(row)

    def update_transaction(self, session: SessionContext, transaction_id: str, draft: TransactionDraft) -> Transaction:
        session = require_session(session)
        row = self.client.update(session, TRANSACTIONS, transaction_id, draft.clean())
        return Transaction.from_row(row)

    def delete_transaction(self, session: SessionContext, transaction_id: str) -> None:
        session = require_session(session)
        self.client.delete(session, TRANSACTIONS, transaction_id)
        logger.info("Deleted transaction %s", transaction_id)

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------
    def list_budgets(
        self,
        session: SessionContext,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[Budget]:
        session = require_session(session)
        eq: Dict[str, Any] = {"user_id": session.user_id}
        if month is not None:
            eq["month"] = month
        if year is not None:
            eq["year"] = year
        rows = self.client.select(session, BUDGETS, eq=eq, order="category")
        return [Budget.from_row(row) for row in rows]

    def create_budget(self, session: SessionContext, draft: BudgetDraft) -> Budget:
        session = require_session(session)
        values = {"user_id": session.user_id, **draft.clean()}
        try:
            row = self.client.insert(session, BUDGETS, values)
        except ConflictError as exc:
            raise ConflictError(BUDGET_CONFLICT_MESSAGE) from exc
        logger.info("Created budget for %s %02d/%d", values["category"], values["month"], values["year"])
        return Budget.from_row(row)

    def update_budget(self, session: SessionContext, budget_id: str, draft: BudgetDraft) -> Budget:
        session = require_session(session)
        try:
            row = self.client.update(session, BUDGETS, budget_id, draft.clean())
        except ConflictError as exc:
            raise ConflictError(BUDGET_CONFLICT_MESSAGE) from exc
        return Budget.from_row(row)

    def delete_budget(self, session: SessionContext, budget_id: str) -> None:
        session = require_session(session)
        self.client.delete(session, BUDGETS, budget_id)
        logger.info("Deleted budget %s", budget_id)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    def get_group(self, session: SessionContext, group_id: str) -> Group:
        rows = self.client.select(session, GROUPS, eq={"id": group_id})
        if not rows:
            raise NotFoundError(f"Group {group_id} not found")
        return Group.from_row(rows[0])

    def list_groups(self, session: SessionContext) -> List[Group]:
        """Groups the user belongs to or created, without duplicates."""
        session = require_session(session)
        memberships, created = load_together(
            lambda: self.client.select(session, GROUP_MEMBERS, eq={"user_id": session.user_id}),
            lambda: self.client.select(session, GROUPS, eq={"created_by": session.user_id}, order="created_at"),
        )
        groups: Dict[str, Group] = {}
        created_ids = {str(row["id"]) for row in created}
        for membership in memberships:
            group_id = str(membership["group_id"])
            if group_id in groups or group_id in created_ids:
                continue
            rows = self.client.select(session, GROUPS, eq={"id": group_id})
            if rows:
                groups[group_id] = Group.from_row(rows[0])
        for row in created:
            groups[str(row["id"])] = Group.from_row(row)
        return list(groups.values())

    def create_group(self, session: SessionContext, draft: GroupDraft) -> Group:
        session = require_session(session)
        fields = draft.clean()
        row = self.client.insert(session, GROUPS, {"name": fields["name"], "created_by": session.user_id})
        group = Group.from_row(row)
        self.client.insert(
            session,
            GROUP_MEMBERS,
            {"group_id": group.id, "user_id": session.user_id, "role": ADMIN},
        )
        logger.info("Created group %s (%s)", group.name, group.id)
        return group

    def list_members(self, session: SessionContext, group_id: str) -> List[GroupMember]:
        rows = self.client.select(session, GROUP_MEMBERS, eq={"group_id": group_id}, order="created_at")
        return [GroupMember.from_row(row) for row in rows]

    def list_group_transactions(self, session: SessionContext, group_id: str) -> List[Transaction]:
        rows = self.client.select(session, TRANSACTIONS, eq={"group_id": group_id}, order="date", descending=True)
        return [Transaction.from_row(row) for row in rows]

    def load_group_details(
        self, session: SessionContext, group_id: str
    ) -> Tuple[List[GroupMember], List[Transaction]]:
        session = require_session(session)
        members, transactions = load_together(
            lambda: self.list_members(session, group_id),
            lambda: self.list_group_transactions(session, group_id),
        )
        return members, transactions

    def find_user_by_email(self, session: SessionContext, email: str) -> UserProfile:
        rows = self.client.select(session, USERS, eq={"email": email})
        if not rows:
            raise NotFoundError(MEMBER_NOT_FOUND_MESSAGE)
        return UserProfile.from_row(rows[0])

    def add_member(self, session: SessionContext, group_id: str, draft: MemberInviteDraft) -> GroupMember:
        session = require_session(session)
        email = draft.clean()
        group = self.get_group(session, group_id)
        if group.created_by != session.user_id:
            raise AuthError("Only the group creator can add members.")
        profile = self.find_user_by_email(session, email)
        try:
            row = self.client.insert(
                session,
                GROUP_MEMBERS,
                {"group_id": group_id, "user_id": profile.id, "role": MEMBER},
            )
        except ConflictError as exc:
            raise ConflictError(MEMBER_CONFLICT_MESSAGE) from exc
        logger.info("Added %s to group %s", email, group_id)
        return GroupMember.from_row(row)

    def add_group_expense(self, session: SessionContext, draft: GroupExpenseDraft) -> Transaction:
        session = require_session(session)
        values = {"user_id": session.user_id, **draft.clean()}
        members = self.list_members(session, values["group_id"])
        if not any(member.user_id == session.user_id for member in members):
            raise AuthError("You are not a member of this group.")
        row = self.client.insert(session, TRANSACTIONS, values)
        logger.info("Added group expense %s to group %s", row.get("id"), values["group_id"])
        return Transaction.from_row(row)
