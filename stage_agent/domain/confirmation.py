"""Confirmation gate for actions the advisor flags as needing approval.

Actions are held in memory until the user confirms or cancels them.
Pending entries never expire; only the most recent resolved entries are
kept, so a repeated decision can still be reported as already resolved.

States: pending -> confirmed
         \\-> cancelled
"""

from __future__ import annotations

import asyncio
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from stage_agent.domain.dispatcher import ActionDispatcher
from stage_agent.domain.models import ActionResult, AgenticAction

DEFAULT_CONFIRMATION_MESSAGE = "Do you want me to go ahead with this action?"
CANCELLED_MESSAGE = "Action cancelled."
RESOLVED_LIMIT = 50


@dataclass
class PendingConfirmation:
    id: str
    action: AgenticAction
    message: str
    status: str  # "pending" | "confirmed" | "cancelled"
    created_at: str
    updated_at: str
    result: Optional[ActionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.to_payload(),
            "message": self.message,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "result": self.result.to_dict() if self.result else None,
        }


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def confirmation_message_for(action: AgenticAction) -> str:
    spec = action.action
    if spec is not None and spec.confirmation_message:
        return spec.confirmation_message
    if action.content:
        return action.content
    return DEFAULT_CONFIRMATION_MESSAGE


class ConfirmationGate:
    """Holds confirmation-gated actions until an explicit decision."""

    def __init__(self, dispatcher: ActionDispatcher, resolved_limit: int = RESOLVED_LIMIT):
        self._dispatcher = dispatcher
        self._records: Dict[str, PendingConfirmation] = {}
        self._resolved: OrderedDict[str, PendingConfirmation] = OrderedDict()
        self._resolved_limit = resolved_limit
        self._lock = asyncio.Lock()

    @staticmethod
    def requires_confirmation(action: AgenticAction) -> bool:
        return bool(action.is_action and action.action and action.action.confirmation_required)

    async def submit(self, action: AgenticAction) -> PendingConfirmation:
        now = _now_iso()
        rec = PendingConfirmation(
            id=str(uuid.uuid4())[:8],
            action=action,
            message=confirmation_message_for(action),
            status="pending",
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._records[rec.id] = rec
        return rec

    def get(self, rec_id: str) -> Optional[PendingConfirmation]:
        return self._records.get(rec_id) or self._resolved.get(rec_id)

    def list_pending(self) -> List[PendingConfirmation]:
        return [r for r in self._records.values() if r.status == "pending"]

    async def _resolve(self, rec_id: str, status: str) -> PendingConfirmation | ActionResult:
        async with self._lock:
            target = self._records.pop(rec_id, None) or self._resolved.get(rec_id)
            if target is None:
                return ActionResult(success=False, message="Confirmation not found", error="not_found")
            if target.status != "pending":
                return ActionResult(
                    success=False,
                    message="Confirmation already resolved",
                    error=f"invalid_status:{target.status}",
                )
            target.status = status
            target.updated_at = _now_iso()
            self._resolved[rec_id] = target
            while len(self._resolved) > self._resolved_limit:
                self._resolved.popitem(last=False)
            return target

    async def confirm(self, rec_id: str) -> ActionResult:
        resolved = await self._resolve(rec_id, "confirmed")
        if isinstance(resolved, ActionResult):
            return resolved
        result = await self._dispatcher.dispatch(resolved.action)
        resolved.result = result
        return result

    async def cancel(self, rec_id: str) -> ActionResult:
        resolved = await self._resolve(rec_id, "cancelled")
        if isinstance(resolved, ActionResult):
            return resolved
        return ActionResult(success=True, message=CANCELLED_MESSAGE, data={"id": resolved.id})
