"""Outbound ports — interfaces for external system adapters."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


class BackendError(Exception):
    """Raised by backend adapters when the hosted store rejects a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass
class AuthUser:
    """Currently authenticated hosted-backend user."""

    id: str
    email: Optional[str] = None


@runtime_checkable
class LLMPort(Protocol):
    """Interface for LLM execution backends."""

    async def execute(
        self,
        message: str,
        system_prompt: Optional[str] = None,
        session_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str: ...


@runtime_checkable
class BackendPort(Protocol):
    """Interface for the hosted database/auth service.

    Match dicts are equality filters. Write methods return the stored row(s)
    and raise BackendError on failure.
    """

    async def get_user(self) -> Optional[AuthUser]: ...

    async def select(self, table: str, match: Dict[str, Any]) -> List[Dict[str, Any]]: ...

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(
        self, table: str, match: Dict[str, Any], changes: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]: ...

    async def upsert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete(self, table: str, match: Dict[str, Any]) -> int: ...


@runtime_checkable
class StoragePort(Protocol):
    """Interface for local key-value storage."""

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def remove(self, key: str) -> None: ...


@runtime_checkable
class ClientPort(Protocol):
    """Interface for user-visible effects applied by the front end."""

    def toast(self, title: str, description: str) -> None: ...
    def apply_theme(self, theme: str) -> None: ...
    def navigate(self, route: str, page: str) -> None: ...
    def download(self, filename: str, content: str, mime_type: str = "application/json") -> str: ...
