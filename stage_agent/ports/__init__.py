"""Port interfaces (Hexagonal Architecture)."""

from stage_agent.ports.outbound import (
    AuthUser,
    BackendError,
    BackendPort,
    ClientPort,
    LLMPort,
    StoragePort,
)

__all__ = [
    "AuthUser",
    "BackendError",
    "BackendPort",
    "ClientPort",
    "LLMPort",
    "StoragePort",
]
