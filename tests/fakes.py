"""
tests/fakes.py -- In-memory stand-in for RecordStoreClient.

Emulates the json-server behaviour the services rely on:
  - integer ids assigned on create, never reused
  - list filters are equality matches on the stringified value (query
    params arrive as strings at a real json-server)
  - PUT replaces, PATCH merges, missing ids are None/False

Set `fail = True` to make every call raise StoreFailureError, mimicking an
unreachable store.
"""

from __future__ import annotations

import copy
import itertools
from typing import Any, Optional

from core.errors import StoreFailureError


class FakeRecordStore:
    def __init__(self) -> None:
        self.collections: dict[str, dict[int, dict[str, Any]]] = {}
        self._ids: dict[str, itertools.count] = {}
        self.fail = False
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, resource: str) -> dict[int, dict[str, Any]]:
        self.calls.append((operation, resource))
        if self.fail:
            raise StoreFailureError(resource, operation, "connection refused")
        return self.collections.setdefault(resource, {})

    def find_all(self, resource: str, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        rows = self._check("find_all", resource)
        result = []
        for record in rows.values():
            if all(str(record.get(k)) == str(v) for k, v in (filters or {}).items()):
                result.append(copy.deepcopy(record))
        return result

    def find_by_id(self, resource: str, record_id: int) -> Optional[dict[str, Any]]:
        rows = self._check("find_by_id", resource)
        record = rows.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def find_by_field(self, resource: str, field: str, value: Any) -> Optional[dict[str, Any]]:
        records = self.find_all(resource, {field: value})
        return records[0] if records else None

    def create(self, resource: str, data: dict[str, Any]) -> dict[str, Any]:
        rows = self._check("create", resource)
        counter = self._ids.setdefault(resource, itertools.count(1))
        record = dict(data)
        record["id"] = next(counter)
        rows[record["id"]] = record
        return copy.deepcopy(record)

    def update(self, resource: str, record_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        rows = self._check("update", resource)
        if record_id not in rows:
            return None
        record = dict(data)
        record["id"] = record_id
        rows[record_id] = record
        return copy.deepcopy(record)

    def patch(self, resource: str, record_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        rows = self._check("patch", resource)
        if record_id not in rows:
            return None
        rows[record_id].update(data)
        rows[record_id]["id"] = record_id
        return copy.deepcopy(rows[record_id])

    def delete(self, resource: str, record_id: int) -> bool:
        rows = self._check("delete", resource)
        return rows.pop(record_id, None) is not None

    def ping(self, resource: str = "users") -> bool:
        return not self.fail

    def close(self) -> None:
        pass
