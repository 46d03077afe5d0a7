"""Configuration and shared state."""

__version__ = "0.1.0"

import os
import sys
import uuid
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

DEFAULT_LIFE_RULES = (
    "1. Seek Truth with Relentless Curiosity - learning, research, investigation, studying\n"
    "2. Live with Uncompromising Integrity - ethical actions, meaningful work, commitments\n"
    "3. Grow Through Challenges as an Antifragile System - difficult tasks, growth opportunities, challenges"
)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default


ACTION_HISTORY_LIMIT = _int_env("ACTION_HISTORY_LIMIT", 100)
if ACTION_HISTORY_LIMIT < 1:
    _stderr_print(f"ACTION_HISTORY_LIMIT must be positive, got {ACTION_HISTORY_LIMIT}; using 100")
    ACTION_HISTORY_LIMIT = 100

CONFIG = {
    "port": _int_env("PORT", 3000),
    "session_id": str(uuid.uuid4()),
    # Gemini
    "gemini_api_key": os.getenv("GEMINI_API_KEY", ""),
    "gemini_model": os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL).strip() or DEFAULT_GEMINI_MODEL,
    "generation": {
        "temperature": 0.7,
        "top_k": 40,
        "top_p": 0.95,
        "max_output_tokens": 2048,
    },
    # Supabase (hosted backend)
    "supabase_url": os.getenv("SUPABASE_URL", "").rstrip("/"),
    "supabase_anon_key": os.getenv("SUPABASE_ANON_KEY", ""),
    "supabase_access_token": os.getenv("SUPABASE_ACCESS_TOKEN", ""),
    # Local state
    "storage_dir": os.getenv("STAGE_STORAGE_DIR", "memory"),
    "export_dir": os.getenv("STAGE_EXPORT_DIR", "exports"),
    "action_history_limit": ACTION_HISTORY_LIMIT,
    "life_rules": os.getenv("STAGE_LIFE_RULES", DEFAULT_LIFE_RULES),
}


# ── Typed config ────────────────────────────────────────────


@dataclass
class GenerationConfig:
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = DEFAULT_GEMINI_MODEL
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class SupabaseConfig:
    url: str = ""
    anon_key: str = ""
    access_token: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)


@dataclass
class AppConfig:
    """Typed configuration built from CONFIG."""

    port: int = 3000
    session_id: str = ""
    storage_dir: str = "memory"
    export_dir: str = "exports"
    action_history_limit: int = 100
    life_rules: str = DEFAULT_LIFE_RULES
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            session_id=CONFIG["session_id"],
            storage_dir=CONFIG["storage_dir"],
            export_dir=CONFIG["export_dir"],
            action_history_limit=CONFIG["action_history_limit"],
            life_rules=CONFIG["life_rules"],
            gemini=GeminiConfig(
                api_key=CONFIG["gemini_api_key"],
                model=CONFIG["gemini_model"],
                generation=GenerationConfig(**CONFIG["generation"]),
            ),
            supabase=SupabaseConfig(
                url=CONFIG["supabase_url"],
                anon_key=CONFIG["supabase_anon_key"],
                access_token=CONFIG["supabase_access_token"],
            ),
        )
