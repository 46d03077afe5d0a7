"""Local key-value storage adapters."""

from stage_agent.adapters.storage.json_store import JsonStorage

__all__ = ["JsonStorage"]
