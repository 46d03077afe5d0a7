"""Parameter normalization for AI-issued actions.

The model names fields loosely (``title`` or ``name``, ``dueDate`` or
``date``, camelCase or snake_case). Each helper maps a parameter bag onto
the canonical record shape the dispatcher writes, applying defaults.
"""

from __future__ import annotations

import re
import sys
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Optional


def _log(msg: str):
    print(msg, file=sys.stderr)


PRIORITIES = ("low", "medium", "high", "urgent")
TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")
HABIT_FREQUENCIES = ("daily", "weekly", "monthly", "custom")
FAMILY_STATUSES = ("available", "busy", "do_not_disturb")

DEFAULT_PRIORITY = "medium"
DEFAULT_RULE_ALIGNMENT = 2
DEFAULT_CATEGORY = "General"
DEFAULT_HABIT_COLOR = "#8B5CF6"

PAGE_ROUTES: Dict[str, str] = {
    "dashboard": "/dashboard",
    "tasks": "/dashboard",
    "contacts": "/contacts",
    "hierarchy": "/hierarchy",
    "profile": "/profile",
    "settings": "/dashboard/settings",
    "diary": "/dashboard/daily-diary",
    "calendar": "/calendar-timeline",
    "timeline": "/calendar-timeline",
    "family": "/family-profile",
    "login": "/login",
}


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"
    SYSTEM = "system"


# Checked in order; first keyword hit wins
THEME_KEYWORDS = (
    (Theme.DARK, ("dark", "night", "black")),
    (Theme.LIGHT, ("light", "bright", "white")),
    (Theme.SYSTEM, ("system", "auto", "default")),
)
FALLBACK_THEME = Theme.DARK


def _pick(params: Dict[str, Any], names: Iterable[str], default: Any = None) -> Any:
    """First truthy value among the given keys."""
    for name in names:
        value = params.get(name)
        if value not in (None, "", [], {}):
            return value
    return default


def _present(params: Dict[str, Any], names: Iterable[str]) -> Optional[str]:
    """First key present in params, even if its value is falsy."""
    for name in names:
        if name in params and params[name] is not None:
            return name
    return None


def _as_dict(params: Any) -> Dict[str, Any]:
    return params if isinstance(params, dict) else {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_rule_alignment(value: Any) -> int:
    """Rule tag 1-3; anything else becomes the default."""
    try:
        rule = int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_RULE_ALIGNMENT
    return rule if 1 <= rule <= 3 else DEFAULT_RULE_ALIGNMENT


def coerce_priority(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in PRIORITIES:
        return value.strip().lower()
    return DEFAULT_PRIORITY


def normalize_task_params(params: Any, today: Optional[date] = None) -> Dict[str, Any]:
    """Canonical task fields with defaults applied.

    ``today`` stands in for the ``"today"`` keyword the model sometimes
    emits as a due date.
    """
    params = _as_dict(params)
    due_date = _as_text(_pick(params, ("dueDate", "due_date", "date")))
    if due_date and due_date.lower() == "today":
        due_date = (today or date.today()).isoformat()
    return {
        "title": str(_pick(params, ("title", "name"), "New Task")),
        "description": str(_pick(params, ("description", "details"), "")),
        "main_topic": str(_pick(params, ("mainTopic", "main_topic", "category"), DEFAULT_CATEGORY)),
        "sub_topic": str(_pick(params, ("subTopic", "sub_topic", "subcategory"), "Task")),
        "location": _as_text(_pick(params, ("location",))),
        "due_date": due_date,
        "due_time": _as_text(_pick(params, ("dueTime", "due_time", "time"))),
        "priority": coerce_priority(_pick(params, ("priority",))),
        "rule_alignment": coerce_rule_alignment(
            _pick(params, ("ruleAlignment", "rule_alignment", "ruleId", "rule_id"), DEFAULT_RULE_ALIGNMENT)
        ),
        "is_holiday": _as_bool(_pick(params, ("isHoliday", "is_holiday"), False)),
        "holiday_name": _as_text(_pick(params, ("holidayName", "holiday_name"))),
    }


def normalize_habit_params(params: Any) -> Dict[str, Any]:
    params = _as_dict(params)
    frequency = str(_pick(params, ("frequency",), "daily")).strip().lower()
    if frequency not in HABIT_FREQUENCIES:
        frequency = "daily"
    try:
        target_count = max(1, int(_pick(params, ("targetCount", "target_count"), 1)))
    except (TypeError, ValueError, OverflowError):
        target_count = 1
    return {
        "title": str(_pick(params, ("title", "name"), "New Habit")),
        "description": str(_pick(params, ("description", "details"), "")),
        "category": str(_pick(params, ("category", "mainTopic"), DEFAULT_CATEGORY)),
        "frequency": frequency,
        "target_count": target_count,
        "color": str(_pick(params, ("color",), DEFAULT_HABIT_COLOR)),
        "rule_alignment": coerce_rule_alignment(
            _pick(params, ("ruleAlignment", "rule_alignment", "ruleId"), DEFAULT_RULE_ALIGNMENT)
        ),
    }


def normalize_theme(params: Any) -> Theme:
    """Fuzzy keyword match onto dark/light/system.

    Unrecognized input falls back to dark.
    """
    if isinstance(params, dict):
        raw = _pick(params, ("theme", "mode"), FALLBACK_THEME.value)
    elif params is None:
        raw = FALLBACK_THEME.value
    else:
        raw = params

    value = str(raw).strip().lower()
    for theme, keywords in THEME_KEYWORDS:
        if any(keyword in value for keyword in keywords):
            return theme
    _log(f"[normalizer] unrecognized theme {raw!r}, falling back to {FALLBACK_THEME.value}")
    return FALLBACK_THEME


def task_id_from(params: Any) -> Optional[str]:
    return _as_text(_pick(_as_dict(params), ("taskId", "task_id", "id")))


def normalize_task_updates(params: Any) -> Dict[str, Any]:
    """Only the fields the model actually supplied."""
    params = _as_dict(params)
    updates: Dict[str, Any] = {}
    title = _pick(params, ("title", "name"))
    if title:
        updates["title"] = str(title)
    description = _pick(params, ("description", "details"))
    if description:
        updates["description"] = str(description)
    status = _pick(params, ("status",))
    if isinstance(status, str) and status.strip().lower() in TASK_STATUSES:
        updates["status"] = status.strip().lower()
    priority = _pick(params, ("priority",))
    if priority:
        updates["priority"] = coerce_priority(priority)
    due_date = _pick(params, ("dueDate", "due_date", "date"))
    if due_date:
        updates["due_date"] = str(due_date)
    due_time = _pick(params, ("dueTime", "due_time", "time"))
    if due_time:
        updates["due_time"] = str(due_time)
    return updates


def normalize_page(params: Any) -> Dict[str, str]:
    """Route for a loosely named page; unknown names map to /<letters>."""
    if isinstance(params, dict):
        raw = _pick(params, ("page", "pageName", "route"), "")
    else:
        raw = params or ""
    page = re.sub(r"[^a-z]", "", str(raw).lower())
    route = PAGE_ROUTES.get(page) or f"/{page}"
    return {"page": page, "route": route}


PROFILE_FIELDS = (
    ("fullName", "full_name"),
    ("bio", "bio"),
    ("location", "location"),
    ("occupation", "occupation"),
    ("company", "company"),
    ("interests", "interests"),
    ("goals", "goals"),
)


def normalize_profile_updates(params: Any) -> Dict[str, Any]:
    params = _as_dict(params)
    updates: Dict[str, Any] = {}
    for camel, column in PROFILE_FIELDS:
        value = _pick(params, (camel, column))
        if value:
            updates[column] = value
    return updates


SETTINGS_FLAGS = (
    ("notifications", "notifications_enabled"),
    ("emailNotifications", "email_notifications"),
    ("autoSave", "auto_save"),
)


def normalize_settings_updates(params: Any) -> Dict[str, Any]:
    """Boolean flags are kept even when false."""
    params = _as_dict(params)
    updates: Dict[str, Any] = {}
    for camel, column in SETTINGS_FLAGS:
        key = _present(params, (camel, column))
        if key is not None:
            updates[column] = _as_bool(params[key])
    for name in ("language", "timezone"):
        value = _pick(params, (name,))
        if value:
            updates[name] = str(value)
    return updates


def normalize_diary_params(params: Any, today: Optional[date] = None) -> Dict[str, Any]:
    params = _as_dict(params)
    tags = params.get("tags") or []
    if isinstance(tags, str):
        tags = [tag.strip() for tag in tags.split(",") if tag.strip()]
    return {
        "entry_date": str(_pick(params, ("date", "entryDate", "entry_date"), (today or date.today()).isoformat())),
        "content": str(_pick(params, ("content", "text", "entry"), "")),
        "mood": str(_pick(params, ("mood",), "neutral")),
        "tags": list(tags),
    }


def normalize_family_status(params: Any) -> Dict[str, Any]:
    params = _as_dict(params)
    status = str(_pick(params, ("status",), "available")).strip().lower().replace(" ", "_")
    if status not in FAMILY_STATUSES:
        status = "available"
    return {
        "family_member_id": _as_text(_pick(params, ("familyMemberId", "family_member_id", "memberId", "id"))),
        "status": status,
        "status_message": _as_text(_pick(params, ("statusMessage", "status_message", "message"))),
    }


def family_member_id_from(params: Any) -> Optional[str]:
    return _as_text(_pick(_as_dict(params), ("familyMemberId", "family_member_id", "memberId", "id")))
