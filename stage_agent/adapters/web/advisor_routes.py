"""Advisor API routes."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from stage_agent.adapters.web.state import get_state
from stage_agent.domain.advisor import AdvisorBusy

advisor_router = APIRouter(prefix="/advisor", tags=["Advisor"])


class AskRequest(BaseModel):
    message: str = Field(min_length=1)


class AnalyzeTaskRequest(BaseModel):
    text: str = Field(min_length=1)


class ConfirmationRequest(BaseModel):
    id: str


class AskResponse(BaseModel):
    entries: List[Dict[str, Any]]
    effects: List[Dict[str, Any]] = []


class ActionResultResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
    error: Optional[str] = None
    effects: List[Dict[str, Any]] = []


@advisor_router.post("/ask", response_model=AskResponse)
async def ask(req: AskRequest):
    state = get_state()
    try:
        entries = await state.advisor.ask(req.message)
    except AdvisorBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    return AskResponse(entries=[e.to_dict() for e in entries], effects=state.client.drain())


@advisor_router.post("/analyze-task")
async def analyze_task(req: AnalyzeTaskRequest):
    return {"analysis": await get_state().advisor.analyze_task(req.text)}


# --- Confirmation endpoints ---


@advisor_router.get("/confirmations/pending")
async def confirmations_pending():
    return {"pending": [r.to_dict() for r in get_state().advisor.gate.list_pending()]}


@advisor_router.post("/confirmations/confirm", response_model=ActionResultResponse)
async def confirmations_confirm(req: ConfirmationRequest):
    state = get_state()
    try:
        result = await state.advisor.confirm(req.id)
    except AdvisorBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ActionResultResponse(**result.to_dict(), effects=state.client.drain())


@advisor_router.post("/confirmations/cancel", response_model=ActionResultResponse)
async def confirmations_cancel(req: ConfirmationRequest):
    state = get_state()
    try:
        result = await state.advisor.cancel(req.id)
    except AdvisorBusy as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ActionResultResponse(**result.to_dict(), effects=state.client.drain())


# --- Transcript & history ---


@advisor_router.get("/transcript")
async def transcript():
    return {"entries": [e.to_dict() for e in get_state().advisor.transcript]}


@advisor_router.delete("/transcript")
async def clear_transcript():
    get_state().advisor.clear()
    return {"success": True}


@advisor_router.get("/history")
async def history():
    state = get_state()
    return {
        "limit": state.history.limit,
        "actions": [a.to_payload() for a in state.history.entries()],
    }


@advisor_router.delete("/history")
async def clear_history():
    get_state().history.clear()
    return {"success": True}
