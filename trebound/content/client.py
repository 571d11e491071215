"""
Content store query clients.

The loader only needs `query(table, filters, limit) -> list of records`.
RestContentClient talks to a Supabase/PostgREST backend; StaticContentClient
serves in-memory tables (offline development and tests).
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import requests

logger = logging.getLogger("content.client")

Record = Dict[str, Any]


class ContentQueryError(Exception):
    """Raised when the content store rejects or fails a query."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code {self.code})"
        return self.message


def _parse_order(order: str) -> tuple[str, bool]:
    """Split "column.desc" / "column.asc" / "column" into (column, descending)."""
    column, _, direction = order.partition(".")
    return column, direction == "desc"


class ContentQueryClient(ABC):
    """Interface every content store client implements."""

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        *,
        select: str = "*",
        order: Optional[str] = None,
    ) -> List[Record]:
        """
        Fetch records from a table.

        Args:
            table: Table name (e.g. "activities")
            filters: column -> value (equality) or column -> list (membership)
            limit: Maximum number of records
            select: Column list, "*" for all
            order: "column.asc" or "column.desc"

        Returns:
            List of records (untyped field bags)

        Raises:
            ContentQueryError: The backend failed or rejected the query
        """
        pass

    async def close(self) -> None:
        """Release client resources."""
        return None


class RestContentClient(ContentQueryClient):
    """
    PostgREST client (Supabase REST API) built on requests.

    requests is blocking, so every call runs in a worker thread. A caller that
    stops waiting (timeout) does not stop the HTTP request; its result is
    simply dropped.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @staticmethod
    def build_params(
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        select: str = "*",
        order: Optional[str] = None,
    ) -> Dict[str, str]:
        """Translate query arguments into PostgREST query parameters."""
        params = {"select": select}
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                params[column] = "in.(" + ",".join(str(v) for v in value) + ")"
            else:
                params[column] = f"eq.{value}"
        if order:
            column, descending = _parse_order(order)
            params["order"] = f"{column}.{'desc' if descending else 'asc'}"
        if limit:
            params["limit"] = str(limit)
        return params

    def _query_sync(self, table: str, params: Dict[str, str]) -> List[Record]:
        try:
            response = self._session.get(
                f"{self._base_url}/rest/v1/{table}",
                headers=self._get_headers(),
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Content store request failed for {table}: {e}")
            raise ContentQueryError(f"Request for {table} failed: {e}") from e

        if response.status_code >= 400:
            message = response.text
            code = str(response.status_code)
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("message") or message
                    code = body.get("code") or code
            except ValueError:
                pass
            logger.error(f"Content store error for {table}: {response.status_code} - {message}")
            raise ContentQueryError(message, code=code)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Content store returned malformed JSON for {table}: {e}")
            raise ContentQueryError(f"Malformed payload for {table}: {e}") from e
        if not isinstance(data, list):
            raise ContentQueryError(f"Unexpected payload for {table}: expected a list")
        return data

    async def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        *,
        select: str = "*",
        order: Optional[str] = None,
    ) -> List[Record]:
        params = self.build_params(filters, limit, select, order)
        return await asyncio.to_thread(self._query_sync, table, params)

    async def close(self) -> None:
        self._session.close()


class StaticContentClient(ContentQueryClient):
    """
    In-memory content store with the same filter/order/limit semantics.

    Unknown tables raise ContentQueryError, like a missing relation would.
    """

    def __init__(self, tables: Optional[Mapping[str, List[Record]]] = None):
        self._tables: Dict[str, List[Record]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }
        self.calls: List[str] = []

    async def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        *,
        select: str = "*",
        order: Optional[str] = None,
    ) -> List[Record]:
        self.calls.append(table)
        if table not in self._tables:
            raise ContentQueryError(f'relation "{table}" does not exist', code="42P01")

        rows = self._tables[table]
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                rows = [r for r in rows if r.get(column) in value]
            else:
                rows = [r for r in rows if r.get(column) == value]

        if order:
            column, descending = _parse_order(order)
            # Records missing the column sort last
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            rows = sorted(present, key=lambda r: r[column], reverse=descending) + missing

        if limit:
            rows = rows[:limit]

        if select != "*":
            columns = [c.strip() for c in select.split(",")]
            rows = [{c: r.get(c) for c in columns} for r in rows]

        return [dict(r) for r in rows]
