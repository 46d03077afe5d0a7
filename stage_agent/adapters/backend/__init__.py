"""Hosted-backend adapters."""

from stage_agent.adapters.backend.supabase_rest import SupabaseBackend
from stage_agent.adapters.backend.memory_backend import InMemoryBackend

__all__ = ["SupabaseBackend", "InMemoryBackend"]
