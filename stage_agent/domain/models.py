"""Domain data models."""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionType(str, Enum):
    """Side-effecting operations the advisor may request."""

    CREATE_TASK = "create_task"
    CREATE_HABIT = "create_habit"
    DELETE_TASK = "delete_task"
    UPDATE_TASK = "update_task"
    CHANGE_THEME = "change_theme"
    UPDATE_PROFILE = "update_profile"
    DELETE_FAMILY_MEMBER = "delete_family_member"
    UPDATE_FAMILY_STATUS = "update_family_status"
    NAVIGATE_TO_PAGE = "navigate_to_page"
    EXPORT_DATA = "export_data"
    CREATE_DIARY_ENTRY = "create_diary_entry"
    UPDATE_SETTINGS = "update_settings"

    @classmethod
    def parse(cls, raw: Any) -> Optional["ActionType"]:
        """Case-insensitive lookup; None for anything unrecognized."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class ResponseKind(str, Enum):
    TEXT = "text"
    ADVICE = "advice"
    ACTION = "action"


def _scalar_text(value: Any) -> Optional[str]:
    """Strings pass, numbers are rendered, anything else is dropped."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


class ActionSpec(BaseModel):
    """The `action` member of an action payload.

    Only ``actionType`` is required; loosely typed siblings are coerced
    so a usable action is never lost to a stray field.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    action_type: str = Field(alias="actionType", min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    confirmation_required: bool = Field(default=False, alias="confirmationRequired")
    confirmation_message: Optional[str] = Field(default=None, alias="confirmationMessage")

    @field_validator("action_type", mode="before")
    @classmethod
    def _numeric_action_type(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("parameters", mode="before")
    @classmethod
    def _parameters_object(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("confirmation_required", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1")
        return bool(value)

    @field_validator("confirmation_message", mode="before")
    @classmethod
    def _message_text(cls, value: Any) -> Optional[str]:
        return _scalar_text(value)

    @property
    def kind(self) -> Optional[ActionType]:
        return ActionType.parse(self.action_type)


ADVICE_TEXT_FIELDS = (
    "rule_match",
    "status_emoji",
    "rule_icon",
    "alignment_strength",
    "alignment_class",
    "quote",
    "advice",
)


class AgenticAction(BaseModel):
    """Parsed AI payload: an advice card or an action request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Literal["advice", "action"] = "advice"
    content: str = ""
    action: Optional[ActionSpec] = None

    # Advice card
    rule_match: Optional[str] = Field(default=None, alias="ruleMatch")
    rule_number: Optional[int] = Field(default=None, alias="ruleNumber")
    status_emoji: Optional[str] = Field(default=None, alias="statusEmoji")
    rule_icon: Optional[str] = Field(default=None, alias="ruleIcon")
    alignment_strength: Optional[str] = Field(default=None, alias="alignmentStrength")
    alignment_class: Optional[str] = Field(default=None, alias="alignmentClass")
    quote: Optional[str] = None
    advice: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _content_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator(*ADVICE_TEXT_FIELDS, mode="before")
    @classmethod
    def _card_text(cls, value: Any) -> Optional[str]:
        return _scalar_text(value)

    @field_validator("rule_number", mode="before")
    @classmethod
    def _rule_number(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and math.isfinite(value) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    @property
    def is_action(self) -> bool:
        return self.type == "action"

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ActionResult:
    """Outcome of one dispatched action."""

    success: bool
    message: str
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ClassifiedResponse:
    """Output of the response classifier."""

    kind: ResponseKind
    text: str
    action: Optional[AgenticAction] = None


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TranscriptEntry:
    """One rendered line of the advisor conversation."""

    role: str  # "user" | "assistant"
    kind: str  # "text" | "advice" | "action_result" | "confirmation" | "notice"
    content: str
    data: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TranscriptEntry":
        return cls(
            role=str(raw.get("role", "assistant")),
            kind=str(raw.get("kind", "text")),
            content=str(raw.get("content", "")),
            data=raw.get("data"),
            timestamp=str(raw.get("timestamp") or now_iso()),
        )
