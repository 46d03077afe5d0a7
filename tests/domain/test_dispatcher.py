"""Tests for domain/dispatcher.py — mock ports only."""

import json
import tempfile
from datetime import date

import pytest

from stage_agent.adapters.backend.memory_backend import InMemoryBackend
from stage_agent.domain.dispatcher import ActionDispatcher, DispatchContext, THEME_STORAGE_KEY
from stage_agent.domain.history import ActionHistory
from stage_agent.domain.models import AgenticAction
from stage_agent.ports.outbound import AuthUser, BackendError


# --- Mock Ports ---


class MockClient:
    """Mock ClientPort implementation."""

    def __init__(self):
        self.toasts = []
        self.themes = []
        self.navigations = []
        self.downloads = []

    def toast(self, title, description):
        self.toasts.append((title, description))

    def apply_theme(self, theme):
        self.themes.append(theme)

    def navigate(self, route, page):
        self.navigations.append((route, page))

    def download(self, filename, content, mime_type="application/json"):
        self.downloads.append((filename, content))
        return f"/tmp/{filename}"


class MockStorage:
    def __init__(self):
        self.data = {}

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value):
        self.data[key] = value

    def remove(self, key):
        self.data.pop(key, None)


class FailingBackend(InMemoryBackend):
    """Backend whose writes are rejected by the store."""

    async def insert(self, table, row):
        raise BackendError('new row violates row-level security policy for table "tasks"', status=403)

    async def upsert(self, table, row):
        raise BackendError("permission denied", status=403)


USER = AuthUser(id="user-1", email="me@example.com")


def _make_dispatcher(user=USER, backend=None, history_limit=100):
    backend = backend or InMemoryBackend(user=user)
    client = MockClient()
    storage = MockStorage()
    context = DispatchContext(
        backend=backend,
        client=client,
        storage=storage,
        history=ActionHistory(limit=history_limit),
        today=lambda: date(2025, 6, 27),
    )
    return ActionDispatcher(context), backend, client, storage


def _action(action_type, **parameters):
    return AgenticAction(
        type="action",
        content="",
        action={"actionType": action_type, "parameters": parameters},
    )


# --- Tests ---


class TestDispatchBasics:
    @pytest.mark.asyncio
    async def test_advice_is_not_dispatched(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(AgenticAction(type="advice", advice="Rest"))
        assert result.success is True
        assert result.message == "Advice provided"
        assert backend.writes == 0
        assert len(dispatcher.history) == 0

    @pytest.mark.asyncio
    async def test_missing_action_object(self):
        dispatcher, _, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(AgenticAction(type="action"))
        assert result.success is False
        assert result.message == "No action specified"

    @pytest.mark.asyncio
    async def test_unknown_action_type(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("launch_rocket"))
        assert result.success is False
        assert result.message == "Unknown action type"
        assert result.error == "Action type launch_rocket not supported"
        assert backend.writes == 0

    @pytest.mark.asyncio
    async def test_upper_and_lower_case_types_are_equivalent(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        r1 = await dispatcher.dispatch(_action("CREATE_TASK", title="A"))
        r2 = await dispatcher.dispatch(_action("create_task", title="B"))
        assert r1.success and r2.success
        assert len(backend.tables["tasks"]) == 2

    @pytest.mark.asyncio
    async def test_history_records_actions(self):
        dispatcher, _, _, _ = _make_dispatcher(history_limit=2)
        for title in ("a", "b", "c"):
            await dispatcher.dispatch(_action("CREATE_TASK", title=title))
        titles = [a.action.parameters["title"] for a in dispatcher.history.entries()]
        assert titles == ["b", "c"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failure(self):
        class BrokenBackend(InMemoryBackend):
            async def get_user(self):
                raise ConnectionError("network down")

        dispatcher, _, _, _ = _make_dispatcher(backend=BrokenBackend())
        result = await dispatcher.dispatch(_action("CREATE_TASK", title="x"))
        assert result.success is False
        assert result.message == "Action execution failed"
        assert result.error == "network down"


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_unauthenticated_does_not_write(self):
        dispatcher, backend, client, _ = _make_dispatcher(user=None)
        result = await dispatcher.dispatch(_action("CREATE_TASK", title="Call mom", dueDate="2025-06-27"))
        assert result.success is False
        assert result.message == "User not authenticated"
        assert backend.writes == 0
        assert client.toasts == []

    @pytest.mark.asyncio
    async def test_creates_normalized_record(self):
        dispatcher, backend, client, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("CREATE_TASK", title="Call mom", dueDate="2025-06-27"))
        assert result.success is True
        assert result.message == 'Task "Call mom" created successfully'
        row = backend.tables["tasks"][0]
        assert row["user_id"] == "user-1"
        assert row["due_date"] == "2025-06-27"
        assert row["priority"] == "medium"
        assert row["rule_id"] == 2
        assert row["status"] == "pending"
        assert row["is_habit"] is False
        assert result.data["id"] == row["id"]
        assert client.toasts == [("Task Created", "Successfully created task: Call mom")]

    @pytest.mark.asyncio
    async def test_duplicate_dispatch_creates_two_records(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        action = _action("CREATE_TASK", title="Call mom", dueDate="2025-06-27")
        first = await dispatcher.dispatch(action)
        second = await dispatcher.dispatch(action)
        assert first.success and second.success
        assert len(backend.tables["tasks"]) == 2
        assert first.data["id"] != second.data["id"]

    @pytest.mark.asyncio
    async def test_backend_error_is_reported(self):
        dispatcher, _, client, _ = _make_dispatcher(backend=FailingBackend(user=USER))
        result = await dispatcher.dispatch(_action("CREATE_TASK", title="x"))
        assert result.success is False
        assert result.message == "Error creating task"
        assert "row-level security" in result.error
        assert client.toasts == []


class TestHabitsAndTaskEdits:
    @pytest.mark.asyncio
    async def test_create_habit(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("CREATE_HABIT", title="Daily Reading", category="Learning"))
        assert result.success is True
        row = backend.tables["tasks"][0]
        assert row["is_habit"] is True
        assert row["main_topic"] == "Habit"
        assert row["habit_category"] == "Learning"
        assert row["habit_frequency"] == "daily"
        assert row["habit_color"] == "#8B5CF6"

    @pytest.mark.asyncio
    async def test_update_task(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        created = await dispatcher.dispatch(_action("CREATE_TASK", title="Draft"))
        task_id = created.data["id"]
        result = await dispatcher.dispatch(_action("UPDATE_TASK", taskId=task_id, status="completed"))
        assert result.success is True
        assert backend.tables["tasks"][0]["status"] == "completed"
        assert result.message == 'Task "Draft" updated successfully'

    @pytest.mark.asyncio
    async def test_update_missing_task(self):
        dispatcher, _, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("UPDATE_TASK", taskId="nope", title="x"))
        assert result.success is False
        assert result.message == "Failed to update task"

    @pytest.mark.asyncio
    async def test_update_requires_fields(self):
        dispatcher, _, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("UPDATE_TASK", taskId="t1"))
        assert result.success is False
        assert result.error == "No fields to update"

    @pytest.mark.asyncio
    async def test_delete_task(self):
        dispatcher, backend, client, _ = _make_dispatcher()
        created = await dispatcher.dispatch(_action("CREATE_TASK", title="Old"))
        result = await dispatcher.dispatch(_action("DELETE_TASK", taskId=created.data["id"]))
        assert result.success is True
        assert backend.tables["tasks"] == []
        assert client.toasts[-1][0] == "Task Deleted"

    @pytest.mark.asyncio
    async def test_delete_other_users_task_fails(self):
        backend = InMemoryBackend(user=USER)
        await backend.insert("tasks", {"id": "t9", "user_id": "someone-else", "title": "theirs"})
        dispatcher, _, _, _ = _make_dispatcher(backend=backend)
        result = await dispatcher.dispatch(_action("DELETE_TASK", taskId="t9"))
        assert result.success is False
        assert len(backend.tables["tasks"]) == 1


class TestThemeAndNavigation:
    @pytest.mark.asyncio
    async def test_change_theme(self):
        dispatcher, backend, client, storage = _make_dispatcher()
        result = await dispatcher.dispatch(_action("CHANGE_THEME", theme="please switch to NIGHT mode"))
        assert result.success is True
        assert result.message == "Theme changed to dark mode successfully"
        assert client.themes == ["dark"]
        assert storage.data[THEME_STORAGE_KEY] == "dark"
        assert backend.tables["user_settings"][0]["dark_mode"] is True

    @pytest.mark.asyncio
    async def test_system_theme_stores_null_preference(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        await dispatcher.dispatch(_action("change_theme", mode="auto"))
        assert backend.tables["user_settings"][0]["dark_mode"] is None

    @pytest.mark.asyncio
    async def test_theme_applies_when_settings_write_fails(self):
        dispatcher, _, client, storage = _make_dispatcher(backend=FailingBackend(user=USER))
        result = await dispatcher.dispatch(_action("CHANGE_THEME", theme="light"))
        assert result.success is True
        assert result.message == "Theme changed to light mode successfully"
        assert client.themes == ["light"]
        assert storage.data[THEME_STORAGE_KEY] == "light"
        assert client.toasts == [("Theme Changed", "Theme changed to light mode")]

    @pytest.mark.asyncio
    async def test_theme_without_user_is_local_only(self):
        dispatcher, backend, client, storage = _make_dispatcher(user=None)
        result = await dispatcher.dispatch(_action("CHANGE_THEME", theme="light"))
        assert result.success is True
        assert client.themes == ["light"]
        assert storage.data[THEME_STORAGE_KEY] == "light"
        assert backend.writes == 0

    @pytest.mark.asyncio
    async def test_navigate(self):
        dispatcher, _, client, _ = _make_dispatcher(user=None)
        result = await dispatcher.dispatch(_action("NAVIGATE_TO_PAGE", page="Calendar"))
        assert result.success is True
        assert result.message == "Navigated to calendar page"
        assert client.navigations == [("/calendar-timeline", "calendar")]

    @pytest.mark.asyncio
    async def test_navigate_without_page(self):
        dispatcher, _, client, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("NAVIGATE_TO_PAGE"))
        assert result.success is False
        assert client.navigations == []


class TestProfileSettingsFamily:
    @pytest.mark.asyncio
    async def test_update_profile(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("UPDATE_PROFILE", fullName="Ritesh", occupation="Engineer"))
        assert result.success is True
        assert result.data == {"full_name": "Ritesh", "occupation": "Engineer"}
        row = backend.tables["user_profiles"][0]
        assert row["email"] == "me@example.com"

    @pytest.mark.asyncio
    async def test_update_settings_upserts_single_row(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        await dispatcher.dispatch(_action("UPDATE_SETTINGS", language="en"))
        await dispatcher.dispatch(_action("UPDATE_SETTINGS", notifications=False))
        rows = backend.tables["user_settings"]
        assert len(rows) == 1
        assert rows[0]["language"] == "en"
        assert rows[0]["notifications_enabled"] is False

    @pytest.mark.asyncio
    async def test_settings_backend_error(self):
        dispatcher, _, _, _ = _make_dispatcher(backend=FailingBackend(user=USER))
        result = await dispatcher.dispatch(_action("UPDATE_SETTINGS", language="en"))
        assert result.success is False
        assert result.error == "permission denied"

    @pytest.mark.asyncio
    async def test_update_family_status(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(
            _action("UPDATE_FAMILY_STATUS", familyMemberId="f1", status="busy", statusMessage="At work")
        )
        assert result.success is True
        row = backend.tables["family_member_status"][0]
        assert row["status"] == "busy"
        assert row["status_message"] == "At work"

    @pytest.mark.asyncio
    async def test_delete_family_member(self):
        backend = InMemoryBackend(user=USER)
        await backend.insert("family_members", {"id": "f1", "name": "Asha"})
        dispatcher, _, _, _ = _make_dispatcher(backend=backend)
        result = await dispatcher.dispatch(_action("DELETE_FAMILY_MEMBER", familyMemberId="f1"))
        assert result.success is True
        assert backend.tables["family_members"] == []

    @pytest.mark.asyncio
    async def test_delete_family_member_requires_id(self):
        dispatcher, _, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("DELETE_FAMILY_MEMBER"))
        assert result.success is False
        assert result.error == "Missing familyMemberId"


class TestDiaryAndExport:
    @pytest.mark.asyncio
    async def test_create_diary_entry(self):
        dispatcher, backend, _, _ = _make_dispatcher()
        result = await dispatcher.dispatch(_action("CREATE_DIARY_ENTRY", content="Good day", tags=["gym"]))
        assert result.success is True
        row = backend.tables["diary_entries"][0]
        assert row["entry_date"] == "2025-06-27"
        assert row["mood"] == "neutral"
        assert row["tags"] == ["gym"]

    @pytest.mark.asyncio
    async def test_export_data(self):
        backend = InMemoryBackend(user=USER)
        await backend.insert("contacts", {"user_id": "user-1", "name": "Asha"})
        await backend.insert("tasks", {"user_id": "user-1", "title": "Mine"})
        await backend.insert("tasks", {"user_id": "other", "title": "Theirs"})
        dispatcher, _, client, _ = _make_dispatcher(backend=backend)

        result = await dispatcher.dispatch(_action("EXPORT_DATA"))

        assert result.success is True
        assert result.data["filename"] == "stage-data-export-2025-06-27.json"
        assert result.data["counts"] == {"contacts": 1, "tasks": 1, "diary_entries": 0}
        filename, content = client.downloads[0]
        document = json.loads(content)
        assert document["user_info"] == {"id": "user-1", "email": "me@example.com"}
        assert [t["title"] for t in document["tasks"]] == ["Mine"]

    @pytest.mark.asyncio
    async def test_export_unauthenticated(self):
        dispatcher, _, client, _ = _make_dispatcher(user=None)
        result = await dispatcher.dispatch(_action("EXPORT_DATA"))
        assert result.success is False
        assert client.downloads == []
