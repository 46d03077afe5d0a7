"""Client effect queue — implements ClientPort.

Effects the browser used to apply directly (toasts, the dark-mode class,
router navigation, file downloads) are queued here and handed to the
front end with the next HTTP response.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List


class ClientEffects:
    def __init__(self, export_dir: str = "exports"):
        self._export_dir = Path(export_dir)
        self._events: List[Dict[str, Any]] = []

    def _emit(self, event_type: str, **payload):
        self._events.append({"type": event_type, **payload})

    def toast(self, title: str, description: str) -> None:
        print(f"[{datetime.now().isoformat()}] {title}: {description}")
        self._emit("toast", title=title, description=description)

    def apply_theme(self, theme: str) -> None:
        # "system" leaves the dark class to the browser's prefers-color-scheme
        self._emit("theme", theme=theme, dark=None if theme == "system" else theme == "dark")

    def navigate(self, route: str, page: str) -> None:
        self._emit("navigate", route=route, page=page)

    def download(self, filename: str, content: str, mime_type: str = "application/json") -> str:
        self._export_dir.mkdir(parents=True, exist_ok=True)
        path = self._export_dir / Path(filename).name
        path.write_text(content, encoding="utf-8")
        self._emit("download", filename=path.name, path=str(path), mime_type=mime_type)
        return str(path)

    def pending(self) -> List[Dict[str, Any]]:
        return list(self._events)

    def drain(self) -> List[Dict[str, Any]]:
        events, self._events = self._events, []
        return events
