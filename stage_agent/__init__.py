"""Stage Agent — AI advisor and action dispatcher for the Stage life dashboard."""

from stage_agent.config import CONFIG, AppConfig, __version__
from stage_agent.domain import (
    ActionDispatcher,
    ActionHistory,
    ActionResult,
    ActionType,
    AdvisorSession,
    AgenticAction,
    ConfirmationGate,
    DispatchContext,
    classify_response,
)

__all__ = [
    "CONFIG",
    "AppConfig",
    "__version__",
    "ActionDispatcher",
    "ActionHistory",
    "ActionResult",
    "ActionType",
    "AdvisorSession",
    "AgenticAction",
    "ConfirmationGate",
    "DispatchContext",
    "classify_response",
]
