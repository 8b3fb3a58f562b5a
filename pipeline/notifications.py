"""
Toast notifications raised by dashboard operations.

The service pushes a Notification for every user-visible outcome (data
loaded, cache fallback, save succeeded/failed, export rejected, connection
changes).  The HTML layer drains them into toasts that dismiss themselves
after KnownValues.TOAST_TIMEOUT_SECONDS.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from utils.config import KnownValues


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    kind: str = "success"
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def __post_init__(self) -> None:
        if self.kind not in KnownValues.TOAST_KINDS:
            raise ValueError(
                f"Invalid notification kind: '{self.kind}'. "
                f"Must be one of: {', '.join(KnownValues.TOAST_KINDS)}"
            )

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "message": self.message,
            "kind": self.kind,
            "created_at": self.created_at,
        }


class NotificationCenter:
    """Bounded, thread-safe queue of pending notifications."""

    def __init__(self, maxlen: int = 20) -> None:
        self._queue: deque[Notification] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def push(self, title: str, message: str, kind: str = "success") -> Notification:
        note = Notification(title=title, message=message, kind=kind)
        with self._lock:
            self._queue.append(note)
        return note

    def drain(self) -> list[Notification]:
        """Return and forget every pending notification, oldest first."""
        with self._lock:
            notes = list(self._queue)
            self._queue.clear()
        return notes

    def peek(self) -> list[Notification]:
        with self._lock:
            return list(self._queue)

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)
