"""ActionDispatcher — executes normalized AI actions against the backend.

Every handler performs at most one logical write, converts storage errors
into a failed ActionResult, and emits a toast on success. Nothing is
retried; a repeated dispatch writes again.
"""

import asyncio
import json
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from stage_agent.domain.history import ActionHistory
from stage_agent.domain.models import ActionResult, ActionType, AgenticAction
from stage_agent.domain.normalizer import (
    Theme,
    family_member_id_from,
    normalize_diary_params,
    normalize_family_status,
    normalize_habit_params,
    normalize_page,
    normalize_profile_updates,
    normalize_settings_updates,
    normalize_task_params,
    normalize_task_updates,
    normalize_theme,
    task_id_from,
)
from stage_agent.ports.outbound import AuthUser, BackendError, BackendPort, ClientPort, StoragePort


def _log(msg: str):
    print(msg, file=sys.stderr)


TASKS_TABLE = "tasks"
CONTACTS_TABLE = "contacts"
DIARY_TABLE = "diary_entries"
PROFILES_TABLE = "user_profiles"
SETTINGS_TABLE = "user_settings"
FAMILY_MEMBERS_TABLE = "family_members"
FAMILY_STATUS_TABLE = "family_member_status"

THEME_STORAGE_KEY = "theme-mode"
NOT_AUTHENTICATED = "User not authenticated"

Handler = Callable[[Dict[str, Any]], Awaitable[ActionResult]]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _failure(message: str, exc: Exception) -> ActionResult:
    return ActionResult(success=False, message=message, error=str(exc) or type(exc).__name__)


@dataclass
class DispatchContext:
    """Collaborators the dispatcher acts through."""

    backend: BackendPort
    client: ClientPort
    storage: StoragePort
    history: ActionHistory = field(default_factory=ActionHistory)
    today: Callable[[], date] = date.today


class ActionDispatcher:
    def __init__(self, context: DispatchContext):
        self.context = context
        self._handlers: Dict[ActionType, Handler] = {
            ActionType.CREATE_TASK: self._create_task,
            ActionType.CREATE_HABIT: self._create_habit,
            ActionType.DELETE_TASK: self._delete_task,
            ActionType.UPDATE_TASK: self._update_task,
            ActionType.CHANGE_THEME: self._change_theme,
            ActionType.UPDATE_PROFILE: self._update_profile,
            ActionType.DELETE_FAMILY_MEMBER: self._delete_family_member,
            ActionType.UPDATE_FAMILY_STATUS: self._update_family_status,
            ActionType.NAVIGATE_TO_PAGE: self._navigate_to_page,
            ActionType.EXPORT_DATA: self._export_data,
            ActionType.CREATE_DIARY_ENTRY: self._create_diary_entry,
            ActionType.UPDATE_SETTINGS: self._update_settings,
        }

    @property
    def history(self) -> ActionHistory:
        return self.context.history

    async def dispatch(self, action: AgenticAction) -> ActionResult:
        if not action.is_action:
            return ActionResult(success=True, message="Advice provided", data=action.to_payload())

        if action.action is None:
            return ActionResult(success=False, message="No action specified", error="Missing action parameters")

        self.context.history.append(action)

        spec = action.action
        kind = spec.kind
        if kind is None:
            return ActionResult(
                success=False,
                message="Unknown action type",
                error=f"Action type {spec.action_type} not supported",
            )

        try:
            return await self._handlers[kind](spec.parameters)
        except Exception as e:
            _log(f"[dispatcher] {kind.value} failed: {e}")
            return _failure("Action execution failed", e)

    # ── helpers ─────────────────────────────────────────────

    async def _current_user(self) -> Optional[AuthUser]:
        return await self.context.backend.get_user()

    def _toast(self, title: str, description: str) -> None:
        self.context.client.toast(title, description)

    # ── tasks & habits ──────────────────────────────────────

    async def _create_task(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        task = normalize_task_params(params, today=self.context.today())
        row = {
            "user_id": user.id,
            "title": task["title"],
            "description": task["description"],
            "main_topic": task["main_topic"],
            "sub_topic": task["sub_topic"],
            "location": task["location"],
            "due_date": task["due_date"],
            "due_time": task["due_time"],
            "priority": task["priority"],
            "rule_id": task["rule_alignment"],
            "is_holiday": task["is_holiday"],
            "holiday_name": task["holiday_name"],
            "status": "pending",
            "is_habit": False,
        }
        try:
            record = await self.context.backend.insert(TASKS_TABLE, row)
        except BackendError as e:
            return _failure("Error creating task", e)

        title = record.get("title", task["title"])
        self._toast("Task Created", f"Successfully created task: {title}")
        return ActionResult(success=True, message=f'Task "{title}" created successfully', data=record)

    async def _create_habit(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        habit = normalize_habit_params(params)
        # Habits live in the tasks table, flagged is_habit
        row = {
            "user_id": user.id,
            "title": habit["title"],
            "description": habit["description"],
            "main_topic": "Habit",
            "sub_topic": habit["category"],
            "location": None,
            "due_date": None,
            "due_time": None,
            "is_holiday": False,
            "holiday_name": None,
            "status": "pending",
            "priority": "medium",
            "rule_id": habit["rule_alignment"],
            "gemini_analysis": {"type": "habit", "category": habit["category"]},
            "is_habit": True,
            "habit_frequency": habit["frequency"],
            "habit_target_count": habit["target_count"],
            "habit_streak_count": 0,
            "habit_best_streak": 0,
            "habit_color": habit["color"],
            "habit_category": habit["category"],
        }
        try:
            record = await self.context.backend.insert(TASKS_TABLE, row)
        except BackendError as e:
            return _failure("Error creating habit", e)

        title = record.get("title", habit["title"])
        self._toast("Habit Created", f"Successfully created habit: {title}")
        return ActionResult(success=True, message=f'Habit "{title}" created successfully', data=record)

    async def _delete_task(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        task_id = task_id_from(params)
        if not task_id:
            return ActionResult(success=False, message="Failed to delete task", error="Missing taskId")
        try:
            deleted = await self.context.backend.delete(TASKS_TABLE, {"id": task_id, "user_id": user.id})
        except BackendError as e:
            return _failure("Error deleting task", e)

        if not deleted:
            return ActionResult(success=False, message="Failed to delete task", error=f"Task {task_id} not found")
        self._toast("Task Deleted", "Task has been successfully deleted")
        return ActionResult(success=True, message="Task deleted successfully", data={"id": task_id})

    async def _update_task(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        task_id = task_id_from(params)
        if not task_id:
            return ActionResult(success=False, message="Failed to update task", error="Missing taskId")
        updates = normalize_task_updates(params)
        if not updates:
            return ActionResult(success=False, message="Failed to update task", error="No fields to update")
        updates["updated_at"] = _now_iso()
        try:
            record = await self.context.backend.update(
                TASKS_TABLE, {"id": task_id, "user_id": user.id}, updates
            )
        except BackendError as e:
            return _failure("Error updating task", e)

        if not record:
            return ActionResult(success=False, message="Failed to update task", error=f"Task {task_id} not found")
        title = record.get("title", "")
        self._toast("Task Updated", f"Successfully updated task: {title}")
        return ActionResult(success=True, message=f'Task "{title}" updated successfully', data=record)

    # ── client-side preferences ─────────────────────────────

    async def _change_theme(self, params: Dict[str, Any]) -> ActionResult:
        theme = normalize_theme(params)
        self.context.client.apply_theme(theme.value)
        self.context.storage.set(THEME_STORAGE_KEY, theme.value)

        user = await self._current_user()
        if user is not None:
            try:
                await self.context.backend.upsert(
                    SETTINGS_TABLE,
                    {
                        "user_id": user.id,
                        "dark_mode": None if theme is Theme.SYSTEM else theme is Theme.DARK,
                        "updated_at": _now_iso(),
                    },
                )
            except BackendError as e:
                # Local theme already applied; the settings row is best-effort
                _log(f"[dispatcher] theme preference not saved: {e}")

        self._toast("Theme Changed", f"Theme changed to {theme.value} mode")
        return ActionResult(
            success=True,
            message=f"Theme changed to {theme.value} mode successfully",
            data={"theme": theme.value},
        )

    async def _navigate_to_page(self, params: Dict[str, Any]) -> ActionResult:
        target = normalize_page(params)
        if not target["page"]:
            return ActionResult(success=False, message="Navigation not available", error="Missing page")
        self.context.client.navigate(target["route"], target["page"])
        return ActionResult(success=True, message=f"Navigated to {target['page']} page", data=target)

    # ── profile & settings ──────────────────────────────────

    async def _update_profile(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        updates = normalize_profile_updates(params)
        try:
            await self.context.backend.upsert(
                PROFILES_TABLE,
                {"user_id": user.id, "email": user.email, **updates, "updated_at": _now_iso()},
            )
        except BackendError as e:
            return _failure("Error updating profile", e)

        self._toast("Profile Updated", "Your profile has been updated successfully")
        return ActionResult(success=True, message="Profile updated successfully", data=updates)

    async def _update_settings(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        updates = normalize_settings_updates(params)
        try:
            await self.context.backend.upsert(
                SETTINGS_TABLE,
                {"user_id": user.id, **updates, "updated_at": _now_iso()},
            )
        except BackendError as e:
            return _failure("Error updating settings", e)

        self._toast("Settings Updated", "Your settings have been updated successfully")
        return ActionResult(success=True, message="Settings updated successfully", data=updates)

    # ── family portal ───────────────────────────────────────

    async def _delete_family_member(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        member_id = family_member_id_from(params)
        if not member_id:
            return ActionResult(
                success=False, message="Failed to delete family member", error="Missing familyMemberId"
            )
        try:
            deleted = await self.context.backend.delete(FAMILY_MEMBERS_TABLE, {"id": member_id})
        except BackendError as e:
            return _failure("Error deleting family member", e)

        if not deleted:
            return ActionResult(
                success=False,
                message="Failed to delete family member",
                error=f"Family member {member_id} not found",
            )
        self._toast("Family Member Removed", "Family member has been successfully removed")
        return ActionResult(success=True, message="Family member deleted successfully", data={"id": member_id})

    async def _update_family_status(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        status = normalize_family_status(params)
        if not status["family_member_id"]:
            return ActionResult(
                success=False, message="Failed to update family status", error="Missing familyMemberId"
            )
        try:
            record = await self.context.backend.upsert(
                FAMILY_STATUS_TABLE, {**status, "updated_at": _now_iso()}
            )
        except BackendError as e:
            return _failure("Error updating family status", e)

        self._toast("Status Updated", "Family member status updated successfully")
        return ActionResult(success=True, message="Family status updated successfully", data=record)

    # ── diary & export ──────────────────────────────────────

    async def _create_diary_entry(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        entry = normalize_diary_params(params, today=self.context.today())
        try:
            record = await self.context.backend.insert(
                DIARY_TABLE, {"user_id": user.id, **entry, "created_at": _now_iso()}
            )
        except BackendError as e:
            return _failure("Error creating diary entry", e)

        self._toast("Diary Entry Created", "Your diary entry has been saved successfully")
        return ActionResult(success=True, message="Diary entry created successfully", data=record)

    async def _export_data(self, params: Dict[str, Any]) -> ActionResult:
        user = await self._current_user()
        if user is None:
            return ActionResult(success=False, message=NOT_AUTHENTICATED)

        backend = self.context.backend
        owner = {"user_id": user.id}
        try:
            contacts, tasks, diary = await asyncio.gather(
                backend.select(CONTACTS_TABLE, owner),
                backend.select(TASKS_TABLE, owner),
                backend.select(DIARY_TABLE, owner),
            )
        except BackendError as e:
            return _failure("Error exporting data", e)

        document = {
            "exported_at": _now_iso(),
            "user_info": {"id": user.id, "email": user.email},
            "contacts": contacts or [],
            "tasks": tasks or [],
            "diary_entries": diary or [],
        }
        filename = f"stage-data-export-{self.context.today().isoformat()}.json"
        location = self.context.client.download(
            filename, json.dumps(document, indent=2, ensure_ascii=False, default=str)
        )

        self._toast("Data Exported", "Your data has been exported successfully")
        return ActionResult(
            success=True,
            message="Data exported successfully",
            data={
                "filename": filename,
                "location": location,
                "counts": {
                    "contacts": len(document["contacts"]),
                    "tasks": len(document["tasks"]),
                    "diary_entries": len(document["diary_entries"]),
                },
            },
        )
