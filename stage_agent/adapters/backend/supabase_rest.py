"""Supabase client using aiohttp — implements BackendPort.

Talks to the hosted project's GoTrue (``/auth/v1``) and PostgREST
(``/rest/v1``) endpoints with the anon key plus the signed-in user's
access token, so row-level security applies as it does in the browser.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from stage_agent.config import CONFIG
from stage_agent.ports.outbound import AuthUser, BackendError

# Upsert conflict targets for tables keyed by something other than id
ON_CONFLICT: Dict[str, str] = {
    "user_settings": "user_id",
    "user_profiles": "user_id",
    "family_member_status": "family_member_id",
}


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _error_message(data: Any, status: int) -> str:
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    if data:
        return str(data)
    return f"HTTP {status}"


class SupabaseBackend:
    """Async PostgREST/GoTrue client."""

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        access_token: Optional[str] = None,
    ):
        self.url = (url if url is not None else CONFIG["supabase_url"]).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else CONFIG["supabase_anon_key"]
        self.access_token = access_token if access_token is not None else CONFIG["supabase_access_token"]

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.url}{path}"
        async with aiohttp.ClientSession() as session:
            async with session.request(
                method, url, params=params, json=payload, headers=self._headers(prefer)
            ) as resp:
                body = await resp.text()
                try:
                    data = json.loads(body) if body else None
                except ValueError:
                    data = body
                if resp.status >= 400:
                    print(f"[{datetime.now().isoformat()}] Supabase {method} {path} -> {resp.status}")
                    raise BackendError(_error_message(data, resp.status), status=resp.status)
                return data

    # -- auth --

    async def get_user(self) -> Optional[AuthUser]:
        if not self.access_token:
            return None
        try:
            data = await self._request("GET", "/auth/v1/user")
        except BackendError as e:
            if e.status in (401, 403):
                return None
            raise
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return AuthUser(id=str(data["id"]), email=data.get("email"))

    # -- tables --

    @staticmethod
    def _filters(match: Dict[str, Any]) -> Dict[str, str]:
        return {column: _filter_value(value) for column, value in match.items()}

    async def select(self, table: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        params = {"select": "*", **self._filters(match)}
        data = await self._request("GET", f"/rest/v1/{table}", params=params)
        return data if isinstance(data, list) else []

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request(
            "POST", f"/rest/v1/{table}", payload=[row], prefer="return=representation"
        )
        if isinstance(data, list) and data:
            return data[0]
        return dict(row)

    async def update(
        self, table: str, match: Dict[str, Any], changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        data = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._filters(match),
            payload=changes,
            prefer="return=representation",
        )
        if isinstance(data, list) and data:
            return data[0]
        return None

    async def upsert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        params = {}
        if table in ON_CONFLICT:
            params["on_conflict"] = ON_CONFLICT[table]
        data = await self._request(
            "POST",
            f"/rest/v1/{table}",
            params=params or None,
            payload=[row],
            prefer="resolution=merge-duplicates,return=representation",
        )
        if isinstance(data, list) and data:
            return data[0]
        return dict(row)

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        if not match:
            raise BackendError("Refusing to delete without a filter")
        data = await self._request(
            "DELETE",
            f"/rest/v1/{table}",
            params=self._filters(match),
            prefer="return=representation",
        )
        return len(data) if isinstance(data, list) else 0
