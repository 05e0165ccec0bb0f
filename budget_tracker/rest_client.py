"""Query client for the hosted backend.

Talks to a PostgREST-style REST interface (``/rest/v1/<table>``) and a
token-based auth service (``/auth/v1``) over ``httpx``.  Every call carries
the project API key plus the caller's bearer token, so the server-side
row-level policies see the signed-in user.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from . import config
from .errors import AuthError, BackendError, ConflictError, NotFoundError, UNIQUE_VIOLATION
from .models import USERS
from .session import SessionContext

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return str(value)


def _json_default(value: Any) -> Any:
    # Decimals travel as strings; the server casts them into numeric columns.
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


_UNDECODABLE = object()


def _decode(text: str) -> Any:
    """Parse a JSON body with Decimal numbers; proxy error pages come back as HTML."""
    if not text.strip():
        return None
    try:
        return json.loads(text, parse_float=Decimal)
    except ValueError:
        return _UNDECODABLE


def _error_message(payload: Any, fallback: str) -> Tuple[str, Optional[str]]:
    if not isinstance(payload, dict):
        return fallback, None
    message = (
        payload.get("message")
        or payload.get("msg")
        or payload.get("error_description")
        or payload.get("error")
        or fallback
    )
    code = payload.get("code")
    return str(message), str(code) if code is not None else None


class RestClient:
    """Query client speaking to the hosted REST backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        base_url = base_url or config.API_URL
        if not base_url:
            raise BackendError("No backend URL configured (set BUDGET_TRACKER_API_URL).")
        self.api_key = api_key if api_key is not None else (config.API_KEY or "")
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout if timeout is not None else config.API_TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------
    def _headers(self, session: Optional[SessionContext], **extra: str) -> Dict[str, str]:
        token = session.access_token if session and session.access_token else self.api_key
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        session: Optional[SessionContext] = None,
        params: Any = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        content = json.dumps(body, default=_json_default) if body is not None else None
        try:
            response = self._http.request(
                method,
                path,
                params=params,
                content=content,
                headers=headers or self._headers(session),
            )
        except httpx.HTTPError as exc:
            logger.error("Backend request %s %s failed: %s", method, path, exc)
            raise BackendError(f"Could not reach the backend: {exc}") from exc

        payload = _decode(response.text)
        if response.is_error:
            message, code = _error_message(payload, response.reason_phrase or "Request failed")
            logger.warning("Backend %s %s returned %s: %s", method, path, response.status_code, message)
            if code == UNIQUE_VIOLATION:
                raise ConflictError(message, status=response.status_code)
            if path.startswith("/auth/") and response.status_code in (400, 401, 403, 422):
                raise AuthError(message)
            raise BackendError(message, code=code, status=response.status_code)
        if payload is _UNDECODABLE:
            logger.error("Backend %s %s returned a non-JSON body", method, path)
            raise BackendError("The backend returned an unreadable response.", status=response.status_code)
        return payload

    @staticmethod
    def _filters(
        eq: Optional[Mapping[str, Any]],
        gte: Optional[Mapping[str, Any]],
        lte: Optional[Mapping[str, Any]],
    ) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        for column, value in (eq or {}).items():
            params.append((column, "is.null" if value is None else f"eq.{_format_value(value)}"))
        for column, value in (gte or {}).items():
            params.append((column, f"gte.{_format_value(value)}"))
        for column, value in (lte or {}).items():
            params.append((column, f"lte.{_format_value(value)}"))
        return params

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------
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
    ) -> List[Dict[str, Any]]:
        params = [("select", "*"), *self._filters(eq, gte, lte)]
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        return self._request("GET", f"/rest/v1/{table}", session=session, params=params) or []

    def insert(self, session: Optional[SessionContext], table: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        rows = self._request(
            "POST",
            f"/rest/v1/{table}",
            session=session,
            body=[dict(values)],
            headers=self._headers(session, Prefer="return=representation"),
        )
        if not rows:
            raise BackendError(f"Insert into {table} returned no row")
        return rows[0]

    def update(
        self,
        session: Optional[SessionContext],
        table: str,
        row_id: str,
        values: Mapping[str, Any],
    ) -> Dict[str, Any]:
        rows = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            session=session,
            params=[("id", f"eq.{row_id}")],
            body=dict(values),
            headers=self._headers(session, Prefer="return=representation"),
        )
        if not rows:
            raise NotFoundError(f"No {table} row with id {row_id}")
        return rows[0]

    def delete(self, session: Optional[SessionContext], table: str, row_id: str) -> None:
        rows = self._request(
            "DELETE",
            f"/rest/v1/{table}",
            session=session,
            params=[("id", f"eq.{row_id}")],
            headers=self._headers(session, Prefer="return=representation"),
        )
        if not rows:
            raise NotFoundError(f"No {table} row with id {row_id}")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    @staticmethod
    def _session_from_auth(payload: Mapping[str, Any], fallback_name: Optional[str] = None) -> SessionContext:
        user = payload.get("user") or {}
        metadata = user.get("user_metadata") or {}
        return SessionContext(
            user_id=str(user["id"]),
            email=str(user.get("email", "")),
            access_token=payload.get("access_token"),
            full_name=metadata.get("full_name") or fallback_name,
        )

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> SessionContext:
        payload = self._request(
            "POST",
            "/auth/v1/signup",
            body={"email": email, "password": password, "data": {"full_name": full_name}},
        )
        if not payload or not payload.get("access_token"):
            raise AuthError("Check your email to confirm your account, then sign in.")
        session = self._session_from_auth(payload, fallback_name=full_name)
        try:
            self.insert(session, USERS, {"id": session.user_id, "email": email, "full_name": full_name})
        except ConflictError:
            # Profile row already created server-side
            logger.debug("Profile for %s already exists", email)
        logger.info("Registered user %s", email)
        return session

    def sign_in(self, email: str, password: str) -> SessionContext:
        payload = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            body={"email": email, "password": password},
        )
        if not payload or not payload.get("access_token"):
            raise AuthError("Invalid login credentials")
        logger.info("Signed in user %s", email)
        return self._session_from_auth(payload)

    def sign_out(self, session: SessionContext) -> None:
        self._request("POST", "/auth/v1/logout", session=session)
        logger.info("Signed out user %s", session.email)
