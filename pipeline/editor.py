"""
Action-Plan Editor — one edit session per work order.

Lifecycle::

    CLOSED -> EDITING -> SAVING -> SAVED -> CLOSED
                           |
                           +-> FAILED -> SAVING (retry)
                                     \\-> CLOSED (cancel)

The editor holds only the buffer and its state.  Talking to the backend,
queueing offline edits and updating the record set is the dashboard
service's job; it drives the editor through begin_save(), mark_saved() and
mark_failed().
"""

from __future__ import annotations

from enum import Enum

from pipeline.records import WorkOrderRecord
from utils.errors import ValidationError
from utils.formatting import char_count_level


class EditState(str, Enum):
    CLOSED = "closed"
    EDITING = "editing"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


class ActionPlanEditor:
    """Edit session for one record, keyed by its request number."""

    def __init__(self) -> None:
        self.state = EditState.CLOSED
        self.request_no: str | None = None
        self.buffer = ""
        self.error: str | None = None
        self.record: WorkOrderRecord | None = None

    # ── lifecycle ─────────────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self.state is not EditState.CLOSED

    def open(self, record: WorkOrderRecord) -> "ActionPlanEditor":
        """Start editing *record*; the buffer gets its current action plan."""
        self.state = EditState.EDITING
        self.request_no = record.request_no
        self.record = record
        self.buffer = record.action_plan or ""
        self.error = None
        return self

    def update_buffer(self, text: str) -> None:
        if not self.is_open:
            raise RuntimeError("edit session is closed")
        self.buffer = text or ""

    def begin_save(self, text: str | None = None) -> str:
        """Validate the buffer and move to SAVING.

        Args:
            text: New buffer contents (default: keep the current buffer).

        Returns:
            The trimmed action plan to persist.

        Raises:
            ValidationError: the trimmed buffer is empty; the session stays
                             in its current state
            RuntimeError: the session is closed or already saving
        """
        if self.state not in (EditState.EDITING, EditState.FAILED):
            raise RuntimeError(f"cannot save from state {self.state.value}")
        if text is not None:
            self.buffer = text
        action_plan = self.buffer.strip()
        if not action_plan:
            raise ValidationError()
        self.state = EditState.SAVING
        self.error = None
        return action_plan

    def mark_saved(self) -> None:
        if self.state is not EditState.SAVING:
            raise RuntimeError(f"cannot mark saved from state {self.state.value}")
        self.state = EditState.SAVED

    def mark_failed(self, error: str) -> None:
        """Record a failed save; the session stays open for a retry."""
        if self.state is not EditState.SAVING:
            raise RuntimeError(f"cannot mark failed from state {self.state.value}")
        self.state = EditState.FAILED
        self.error = error

    def close(self) -> None:
        """Discard the buffer; no side effects."""
        self.state = EditState.CLOSED
        self.request_no = None
        self.record = None
        self.buffer = ""
        self.error = None

    # ── character counter ─────────────────────────────────────────────────

    @property
    def char_count(self) -> int:
        return len(self.buffer)

    @property
    def char_level(self) -> str:
        return char_count_level(self.char_count)

    def to_dict(self) -> dict:
        return {
            "request_no": self.request_no,
            "state": self.state.value,
            "buffer": self.buffer,
            "char_count": self.char_count,
            "char_level": self.char_level,
            "error": self.error,
        }
