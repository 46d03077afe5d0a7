"""AdvisorSession — conversation loop between the user, the model, and the dispatcher.

Handles:
- Single in-flight request (busy flag, no queue)
- LLM invocation via LLMPort
- Response classification (text / advice / action)
- Confirmation gating and dispatch
- Transcript caching in local storage
"""

import sys
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from stage_agent.domain.confirmation import CANCELLED_MESSAGE, ConfirmationGate
from stage_agent.domain.dispatcher import ActionDispatcher
from stage_agent.domain.models import ActionResult, AgenticAction, ResponseKind, TranscriptEntry
from stage_agent.domain.normalizer import normalize_task_params
from stage_agent.domain.prompts import build_advisor_prompt, build_task_analysis_prompt
from stage_agent.domain.response_classifier import classify_response, extract_json, processing_error_card
from stage_agent.ports.outbound import LLMPort, StoragePort

TRANSCRIPT_STORAGE_KEY = "advisor-conversation"


def _log(msg: str):
    print(msg, file=sys.stderr)


class AdvisorBusy(Exception):
    """Raised when a message arrives while another is still in flight."""


class AdvisorSession:
    _MAX_TRANSCRIPT = 200

    def __init__(
        self,
        llm: LLMPort,
        dispatcher: ActionDispatcher,
        storage: StoragePort,
        life_rules: str,
        gate: Optional[ConfirmationGate] = None,
        session_id: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ):
        self.llm = llm
        self.dispatcher = dispatcher
        self.gate = gate or ConfirmationGate(dispatcher)
        self.storage = storage
        self.life_rules = life_rules
        self.session_id = session_id
        self._today = today
        self._busy = False
        self._transcript: List[TranscriptEntry] = self._load_transcript()

    # -- transcript --

    def _load_transcript(self) -> List[TranscriptEntry]:
        raw = self.storage.get(TRANSCRIPT_STORAGE_KEY, [])
        if not isinstance(raw, list):
            return []
        return [TranscriptEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    def _save_transcript(self):
        self.storage.set(TRANSCRIPT_STORAGE_KEY, [e.to_dict() for e in self._transcript])

    def _append(self, *entries: TranscriptEntry) -> List[TranscriptEntry]:
        self._transcript.extend(entries)
        if len(self._transcript) > self._MAX_TRANSCRIPT:
            self._transcript = self._transcript[-self._MAX_TRANSCRIPT:]
        self._save_transcript()
        return list(entries)

    @property
    def transcript(self) -> List[TranscriptEntry]:
        return list(self._transcript)

    @property
    def busy(self) -> bool:
        return self._busy

    def clear(self):
        """Reset the conversation; pending confirmations are left alone."""
        self._transcript = []
        self._save_transcript()
        _log("[advisor] conversation cleared")

    # -- rendering --

    @staticmethod
    def _advice_entry(action: AgenticAction) -> TranscriptEntry:
        content = action.advice or action.content or action.rule_match or ""
        return TranscriptEntry(role="assistant", kind="advice", content=content, data=action.to_payload())

    @staticmethod
    def _result_entry(result: ActionResult) -> TranscriptEntry:
        content = result.message
        if not result.success and result.error:
            content = f"{result.message}: {result.error}"
        return TranscriptEntry(role="assistant", kind="action_result", content=content, data=result.to_dict())

    # -- conversation --

    async def ask(self, text: str) -> List[TranscriptEntry]:
        """Run one classify-and-dispatch cycle; returns the entries it added."""
        if self._busy:
            raise AdvisorBusy("A message is already being processed")
        self._busy = True
        try:
            return await self._ask(text)
        finally:
            self._busy = False

    async def _ask(self, text: str) -> List[TranscriptEntry]:
        added = self._append(TranscriptEntry(role="user", kind="text", content=text))

        try:
            raw = await self.llm.execute(
                text,
                system_prompt=build_advisor_prompt(self.life_rules),
                session_id=self.session_id,
            )
        except Exception as e:
            _log(f"[advisor] generation failed: {e}")
            return added + self._append(self._advice_entry(processing_error_card()))

        classified = classify_response(raw)

        if classified.kind is ResponseKind.TEXT:
            return added + self._append(TranscriptEntry(role="assistant", kind="text", content=classified.text))

        action = classified.action
        if classified.kind is ResponseKind.ADVICE:
            return added + self._append(self._advice_entry(action))

        if self.gate.requires_confirmation(action):
            pending = await self.gate.submit(action)
            return added + self._append(
                TranscriptEntry(
                    role="assistant",
                    kind="confirmation",
                    content=pending.message,
                    data={"id": pending.id, "action": action.to_payload()},
                )
            )

        entries = []
        if action.content:
            entries.append(TranscriptEntry(role="assistant", kind="text", content=action.content))
        result = await self.dispatcher.dispatch(action)
        entries.append(self._result_entry(result))
        return added + self._append(*entries)

    async def confirm(self, confirmation_id: str) -> ActionResult:
        if self._busy:
            raise AdvisorBusy("A message is already being processed")
        self._busy = True
        try:
            pending = self.gate.get(confirmation_id)
            result = await self.gate.confirm(confirmation_id)
        finally:
            self._busy = False
        # Only a dispatched action is rendered; gate rejections are not
        if pending is not None and pending.result is result:
            self._append(self._result_entry(result))
        return result

    async def cancel(self, confirmation_id: str) -> ActionResult:
        if self._busy:
            raise AdvisorBusy("A message is already being processed")
        result = await self.gate.cancel(confirmation_id)
        if result.success:
            self._append(TranscriptEntry(role="assistant", kind="notice", content=CANCELLED_MESSAGE))
        return result

    # -- task analysis --

    def _fallback_analysis(self, task_input: str) -> Dict[str, Any]:
        analysis = normalize_task_params({"title": task_input[:50], "description": task_input}, today=self._today())
        analysis["steps"] = [task_input]
        return analysis

    async def analyze_task(self, task_input: str) -> Dict[str, Any]:
        """Structured breakdown of free-form task input.

        Never raises; falls back to a minimal analysis when the model call
        or its output is unusable.
        """
        today = self._today()
        try:
            raw = await self.llm.execute(
                f'Analyze this task input: "{task_input}"',
                system_prompt=build_task_analysis_prompt(today.isoformat(), today.year, self.life_rules),
            )
        except Exception as e:
            _log(f"[advisor] task analysis failed: {e}")
            return self._fallback_analysis(task_input)

        payload = extract_json(raw)
        if payload is None:
            _log("[advisor] task analysis returned no JSON")
            return self._fallback_analysis(task_input)

        analysis = normalize_task_params(payload, today=today)
        steps = payload.get("steps")
        if isinstance(steps, list) and steps:
            analysis["steps"] = [str(step) for step in steps]
        else:
            analysis["steps"] = [analysis["title"]]
        return analysis
