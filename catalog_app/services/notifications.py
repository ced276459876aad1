# catalog_app/services/notifications.py
import itertools
from collections import deque
import logging
from dataclasses import dataclass
from typing import Deque, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    id: int
    kind: str  # success, info, error, loading
    title: str
    description: Optional[str] = None
    dismissed: bool = False


class Notifier:
    """
    Minimal in-memory toast queue. Every notification is also logged so a
    headless session still leaves a trace of what the user would have seen.
    """

    def __init__(self, max_history: int = 50):
        self._ids = itertools.count(1)
        # oldest toasts fall off once the cap is reached
        self.history: Deque[Notification] = deque(maxlen=max_history)

    def _push(self, kind: str, title: str, description: Optional[str]) -> Notification:
        note = Notification(id=next(self._ids), kind=kind, title=title, description=description)
        self.history.append(note)
        level = logging.WARNING if kind == "error" else logging.INFO
        logger.log(level, "[%s] %s%s", kind, title, f": {description}" if description else "")
        return note

    def success(self, title: str, description: Optional[str] = None) -> Notification:
        return self._push("success", title, description)

    def info(self, title: str, description: Optional[str] = None) -> Notification:
        return self._push("info", title, description)

    def error(self, title: str, description: Optional[str] = None) -> Notification:
        return self._push("error", title, description)

    def loading(self, title: str, description: Optional[str] = None) -> Notification:
        return self._push("loading", title, description)

    def dismiss(self, note_id: int) -> None:
        for note in self.history:
            if note.id == note_id:
                note.dismissed = True

    @property
    def active(self) -> List[Notification]:
        return [n for n in self.history if not n.dismissed]

    def titles(self, kind: Optional[str] = None) -> List[str]:
        return [n.title for n in self.history if kind is None or n.kind == kind]
