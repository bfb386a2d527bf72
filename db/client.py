"""
db/client.py — Relational store client
=======================================

The portfolio rows live in a hosted relational store. Everything here is a
thin passthrough: select / single-row select / insert / update-by-id /
delete-by-id. No caching, no retries, no pagination.

Implementations:
  RestStore    → hosted REST endpoint ({url}/rest/v1/{table}) via httpx
  SqliteStore  → local SQLite file (db/models.py), for development and tests

Clients are constructed once at application start-up (create_store) and
handed to whoever needs them; nothing in this module keeps global state.
"""

import abc
import logging
from typing import Any, Optional

import httpx

from db.records import TABLES

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Any failure talking to the store or the object storage."""


class StoreError(BackendError):
    """Query or transport failure on the relational store."""


class Store(abc.ABC):
    """Minimal query surface used by the site and the admin dashboard."""

    def _check_table(self, table: str) -> None:
        if table not in TABLES:
            raise StoreError(f"Unknown table '{table}'")

    @abc.abstractmethod
    def select(
        self,
        table: str,
        eq: Optional[dict] = None,
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Return all rows matching the equality filters."""

    @abc.abstractmethod
    def select_single(self, table: str, eq: Optional[dict] = None) -> dict:
        """Return exactly one row; raise StoreError on zero or several."""

    @abc.abstractmethod
    def insert(self, table: str, row: dict) -> dict:
        """Insert one row and return it as stored."""

    @abc.abstractmethod
    def update(self, table: str, row_id: str, changes: dict) -> dict:
        """Update the row with this id and return it as stored."""

    @abc.abstractmethod
    def delete(self, table: str, row_id: str) -> None:
        """Delete the row with this id."""

    def close(self) -> None:
        pass


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class RestStore(Store):
    """
    Client for the hosted store's REST interface.

    Filters are sent as `col=eq.value`, ordering as `order=col.asc|desc`.
    Writes ask for the stored row back (Prefer: return=representation) and
    single-row reads use the object media type, which makes the server
    reject zero or multiple matches.
    """

    OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

    def __init__(self, url: str, key: str, timeout: float = 10, transport: httpx.BaseTransport = None):
        if not url or not key:
            raise StoreError("Store URL and key must both be configured")
        self.url = url.rstrip("/")
        self._http = httpx.Client(
            base_url=f"{self.url}/rest/v1",
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            timeout=timeout,
            transport=transport,
        )

    def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        self._check_table(table)
        try:
            resp = self._http.request(method, f"/{table}", **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{method} {table} failed with {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table} failed: {e}") from e
        return resp

    @staticmethod
    def _filters(eq: Optional[dict]) -> dict:
        return {col: f"eq.{_literal(val)}" for col, val in (eq or {}).items()}

    def select(self, table, eq=None, order=None, ascending=True, limit=None):
        params = {"select": "*", **self._filters(eq)}
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        if limit:
            params["limit"] = str(limit)
        return self._request("GET", table, params=params).json()

    def select_single(self, table, eq=None):
        params = {"select": "*", **self._filters(eq)}
        resp = self._request("GET", table, params=params, headers={"Accept": self.OBJECT_MEDIA_TYPE})
        return resp.json()

    def insert(self, table, row):
        resp = self._request(
            "POST", table,
            params={"select": "*"},
            json=[row],
            headers={"Prefer": "return=representation", "Accept": self.OBJECT_MEDIA_TYPE},
        )
        return resp.json()

    def update(self, table, row_id, changes):
        resp = self._request(
            "PATCH", table,
            params={"select": "*", "id": f"eq.{row_id}"},
            json=changes,
            headers={"Prefer": "return=representation", "Accept": self.OBJECT_MEDIA_TYPE},
        )
        return resp.json()

    def delete(self, table, row_id):
        self._request("DELETE", table, params={"id": f"eq.{row_id}"})

    def close(self):
        self._http.close()


def create_store(config: dict) -> Store:
    """
    Build the store client from the `store` config section.
    backend: rest | sqlite  (defaults to rest when a URL is configured)
    """
    cfg = config.get("store", {})
    backend = cfg.get("backend") or ("rest" if cfg.get("url") else "sqlite")

    if backend == "rest":
        logger.info(f"Using hosted store at {cfg.get('url')}")
        return RestStore(cfg.get("url", ""), cfg.get("key", ""), timeout=cfg.get("timeout", 10))
    if backend == "sqlite":
        from db.models import SqliteStore

        logger.info(f"Using SQLite store at {cfg['sqlite_path']}")
        return SqliteStore(cfg["sqlite_path"])
    raise StoreError(f"Unknown store backend '{backend}'")
