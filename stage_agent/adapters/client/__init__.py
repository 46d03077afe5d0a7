"""Client effect adapters."""

from stage_agent.adapters.client.effects import ClientEffects

__all__ = ["ClientEffects"]
