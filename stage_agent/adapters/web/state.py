"""Application state — wires ports to adapters for the HTTP server."""

from __future__ import annotations

import sys
from typing import Optional

from stage_agent.adapters.backend import InMemoryBackend, SupabaseBackend
from stage_agent.adapters.client import ClientEffects
from stage_agent.adapters.llm import GeminiAdapter
from stage_agent.adapters.storage import JsonStorage
from stage_agent.config import AppConfig
from stage_agent.domain.advisor import AdvisorSession
from stage_agent.domain.dispatcher import ActionDispatcher, DispatchContext
from stage_agent.domain.history import ActionHistory
from stage_agent.ports.outbound import BackendPort, LLMPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class AppState:
    """Container for the advisor and its collaborators."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        llm: Optional[LLMPort] = None,
        backend: Optional[BackendPort] = None,
    ):
        self.config = config or AppConfig.from_env()
        _log("Initializing Stage advisor state...")

        if backend is None:
            supabase = SupabaseBackend(
                url=self.config.supabase.url,
                anon_key=self.config.supabase.anon_key,
                access_token=self.config.supabase.access_token,
            )
            if supabase.is_configured:
                backend = supabase
            else:
                _log("Supabase not configured, using in-memory backend")
                backend = InMemoryBackend()
        self.backend = backend

        if llm is None:
            llm = GeminiAdapter(api_key=self.config.gemini.api_key, model=self.config.gemini.model)
            if not llm.is_configured:
                _log("GEMINI_API_KEY not set; advisor replies will fall back to error cards")
        self.llm = llm

        self.storage = JsonStorage(storage_dir=self.config.storage_dir)
        self.client = ClientEffects(export_dir=self.config.export_dir)
        self.history = ActionHistory(limit=self.config.action_history_limit)
        self.dispatcher = ActionDispatcher(
            DispatchContext(
                backend=self.backend,
                client=self.client,
                storage=self.storage,
                history=self.history,
            )
        )
        self.advisor = AdvisorSession(
            llm=self.llm,
            dispatcher=self.dispatcher,
            storage=self.storage,
            life_rules=self.config.life_rules,
            session_id=self.config.session_id,
        )
        _log("Stage advisor state initialized.")


# Module-level singleton
_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the singleton (tests and embedding)."""
    global _state
    _state = state
