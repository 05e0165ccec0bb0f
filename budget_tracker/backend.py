"""Query client interface and backend selection."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from . import config
from .session import SessionContext

logger = logging.getLogger(__name__)


class QueryClient(Protocol):
    """Generic filtered CRUD plus authentication against a relational store."""

    def select(
        self,
        session: Optional[SessionContext],
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        gte: Optional[Mapping[str, Any]] = None,
        lte: Optional[Mapping[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]: ...

    def insert(self, session: Optional[SessionContext], table: str, values: Mapping[str, Any]) -> Dict[str, Any]: ...

    def update(
        self, session: Optional[SessionContext], table: str, row_id: str, values: Mapping[str, Any]
    ) -> Dict[str, Any]: ...

    def delete(self, session: Optional[SessionContext], table: str, row_id: str) -> None: ...

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> SessionContext: ...

    def sign_in(self, email: str, password: str) -> SessionContext: ...

    def sign_out(self, session: SessionContext) -> None: ...


def get_client() -> QueryClient:
    """Build the configured query client.

    A hosted backend is used when ``BUDGET_TRACKER_API_URL`` is set; otherwise
    a local SQLite database at ``BUDGET_TRACKER_DB_PATH`` is initialised.
    """
    if config.use_rest_backend():
        from .rest_client import RestClient

        logger.debug("Using hosted backend at %s", config.API_URL)
        return RestClient(config.API_URL, config.API_KEY)

    from .db import SqliteClient

    config.ensure_data_directories()
    client = SqliteClient(config.DB_PATH)
    client.init_db()
    logger.debug("Using local database at %s", config.get_db_path())
    return client
