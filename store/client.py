"""
store/client.py -- Generic CRUD client for the remote record store.

The record store is a schemaless HTTP resource server (json-server style):

    GET    /{resource}                 list, equality filters as query params
    GET    /{resource}/{id}            single record, 404 if absent
    POST   /{resource}                 create, server assigns integer id
    PUT    /{resource}/{id}            full replace
    PATCH  /{resource}/{id}            partial merge
    DELETE /{resource}/{id}            remove

Pattern: Repository over HTTP. RecordStoreClient knows nothing about users
or tasks -- callers pass the collection name. Services map records to
dataclasses; route code never touches the client directly.

Error policy:
  404 on a single-record call means "absent" and is returned as None/False.
  Anything else that goes wrong (connection refused, timeout, 5xx, non-JSON
  body) raises StoreFailureError carrying resource + operation. Callers must
  never confuse "record missing" with "store unreachable".

Every request carries a bounded timeout. There are no retries: a failure
surfaces immediately to the caller.

Layer rule: store/ imports only from core/ and third-party libraries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from core.errors import StoreFailureError

logger = logging.getLogger("taskvault.store")

Record = dict[str, Any]


class RecordStoreClient:
    """Resource-agnostic CRUD client.

    Usage:
        store = RecordStoreClient("http://localhost:3001", timeout=5.0)
        user = store.find_by_field("users", "email", "a@x.com")
        task = store.create("tasks", {"title": "T", "userId": 1})
        store.close()

    One instance is built at application startup and shared by every request.
    requests.Session is safe to share across FastAPI's worker threads for
    plain request/response calls and gives us connection pooling.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        # The store is a known internal host; never follow long redirect chains.
        self._session.max_redirects = 3

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_all(self, resource: str, filters: Optional[dict[str, Any]] = None) -> list[Record]:
        """Return every record in `resource` whose fields equal `filters`.

        Returns an empty list when nothing matches -- never an error.
        """
        resp = self._request("find_all", resource, "GET", self._url(resource), params=filters or None)
        records = self._json(resp, resource, "find_all")
        if not isinstance(records, list):
            raise StoreFailureError(resource, "find_all", "expected a JSON array")
        return records

    def find_by_id(self, resource: str, record_id: int) -> Optional[Record]:
        """Return the record with `record_id`, or None if the store answers 404."""
        resp = self._request("find_by_id", resource, "GET", self._url(resource, record_id), allow_404=True)
        if resp is None:
            return None
        return self._json(resp, resource, "find_by_id")

    def find_by_field(self, resource: str, field: str, value: Any) -> Optional[Record]:
        """Return the first record where `field == value`, or None.

        The store does not guarantee ordering, so callers should only use
        fields expected to be unique (e.g. email).
        """
        records = self.find_all(resource, {field: value})
        return records[0] if records else None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self, resource: str, data: Record) -> Record:
        """Insert `data`; the store assigns the id. Returns the stored record."""
        resp = self._request("create", resource, "POST", self._url(resource), json=data)
        return self._json(resp, resource, "create")

    def update(self, resource: str, record_id: int, data: Record) -> Optional[Record]:
        """Replace the record wholesale. None if `record_id` does not exist."""
        resp = self._request("update", resource, "PUT", self._url(resource, record_id), json=data, allow_404=True)
        if resp is None:
            return None
        return self._json(resp, resource, "update")

    def patch(self, resource: str, record_id: int, data: Record) -> Optional[Record]:
        """Merge `data` into the record. None if `record_id` does not exist."""
        resp = self._request("patch", resource, "PATCH", self._url(resource, record_id), json=data, allow_404=True)
        if resp is None:
            return None
        return self._json(resp, resource, "patch")

    def delete(self, resource: str, record_id: int) -> bool:
        """Remove the record. True if removed, False if it did not exist."""
        resp = self._request("delete", resource, "DELETE", self._url(resource, record_id), allow_404=True)
        return resp is not None

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def ping(self, resource: str = "users") -> bool:
        """Return True if the store answers a cheap list request on `resource`."""
        try:
            self._request("ping", resource, "GET", self._url(resource), params={"_limit": 1})
        except StoreFailureError:
            return False
        return True

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, resource: str, record_id: Optional[int] = None) -> str:
        if record_id is None:
            return f"{self.base_url}/{resource}"
        return f"{self.base_url}/{resource}/{record_id}"

    def _request(
        self,
        operation: str,
        resource: str,
        method: str,
        url: str,
        allow_404: bool = False,
        **kwargs: Any,
    ) -> Optional[requests.Response]:
        """Send one request. Returns None for a tolerated 404.

        Timeouts and connection errors are requests.RequestException
        subclasses, so they land in the same StoreFailureError path as 5xx.
        """
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
            if resp.status_code == 404 and allow_404:
                return None
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Store %s on %s failed: %s", operation, resource, exc)
            raise StoreFailureError(resource, operation, exc) from exc
        return resp

    @staticmethod
    def _json(resp: requests.Response, resource: str, operation: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Store %s on %s returned a non-JSON body", operation, resource)
            raise StoreFailureError(resource, operation, "invalid JSON response") from exc
