"""Domain layer — pure Python, no framework dependencies beyond pydantic."""

from stage_agent.domain.models import (
    ActionResult,
    ActionSpec,
    ActionType,
    AgenticAction,
    ClassifiedResponse,
    ResponseKind,
    TranscriptEntry,
)
from stage_agent.domain.response_classifier import classify_response, extract_json
from stage_agent.domain.history import ActionHistory
from stage_agent.domain.dispatcher import ActionDispatcher, DispatchContext
from stage_agent.domain.confirmation import ConfirmationGate, PendingConfirmation
from stage_agent.domain.advisor import AdvisorBusy, AdvisorSession

__all__ = [
    "ActionResult",
    "ActionSpec",
    "ActionType",
    "AgenticAction",
    "ClassifiedResponse",
    "ResponseKind",
    "TranscriptEntry",
    "classify_response",
    "extract_json",
    "ActionHistory",
    "ActionDispatcher",
    "DispatchContext",
    "ConfirmationGate",
    "PendingConfirmation",
    "AdvisorBusy",
    "AdvisorSession",
]
