"""In-process backend — implements BackendPort without a hosted project.

Used for local development when Supabase is not configured.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from stage_agent.adapters.backend.supabase_rest import ON_CONFLICT
from stage_agent.ports.outbound import AuthUser, BackendError


def _matches(row: Dict[str, Any], match: Dict[str, Any]) -> bool:
    return all(row.get(column) == value for column, value in match.items())


class InMemoryBackend:
    def __init__(self, user: Optional[AuthUser] = None):
        self.user = user
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.writes = 0

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    async def get_user(self) -> Optional[AuthUser]:
        return self.user

    async def select(self, table: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._rows(table) if _matches(r, match)]

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        record = copy.deepcopy(row)
        record.setdefault("id", uuid.uuid4().hex)
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        if any(r.get("id") == record["id"] for r in self._rows(table)):
            raise BackendError(f'duplicate key value violates unique constraint "{table}_pkey"', status=409)
        self._rows(table).append(record)
        self.writes += 1
        return copy.deepcopy(record)

    async def update(
        self, table: str, match: Dict[str, Any], changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        updated = None
        for r in self._rows(table):
            if _matches(r, match):
                r.update(copy.deepcopy(changes))
                updated = updated or r
        if updated is None:
            return None
        self.writes += 1
        return copy.deepcopy(updated)

    async def upsert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        key = ON_CONFLICT.get(table, "id")
        if row.get(key) is not None:
            for r in self._rows(table):
                if r.get(key) == row[key]:
                    r.update(copy.deepcopy(row))
                    self.writes += 1
                    return copy.deepcopy(r)
        return await self.insert(table, row)

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        if not match:
            raise BackendError("Refusing to delete without a filter")
        rows = self._rows(table)
        keep = [r for r in rows if not _matches(r, match)]
        removed = len(rows) - len(keep)
        self.tables[table] = keep
        if removed:
            self.writes += 1
        return removed
