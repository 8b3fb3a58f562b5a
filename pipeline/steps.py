"""
Typed outcomes for the dashboard's multi-step operations.

  - StepResult: what a single step (fetch remote, read cache, submit edit)
    produced, or the error that stopped it.
  - LoadOutcome: what a whole load did: where the records came from,
    whether the cache fallback was used, and the final error if any.
  - SaveOutcome / ReplayOutcome: results of an action plan save and of an
    explicit pending-queue replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass
class StepResult(Generic[T]):
    """Result of one step: either ``value`` or ``error``."""

    step_name: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, step_name: str, value: T) -> "StepResult[T]":
        return cls(step_name=step_name, value=value)

    @classmethod
    def failure(cls, step_name: str, error: Exception) -> "StepResult[T]":
        return cls(step_name=step_name, error=error)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"step_name": self.step_name, "ok": self.ok}
        if self.error is not None:
            d["error"] = str(self.error)
            d["error_type"] = type(self.error).__name__
        return d


@dataclass
class LoadOutcome:
    """Summary of one load attempt."""

    ok: bool
    source: str | None = None          # "remote" | "cache" | None
    count: int = 0
    used_fallback: bool = False
    error: str | None = None
    steps: list[StepResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "ok": self.ok,
            "source": self.source,
            "count": self.count,
            "used_fallback": self.used_fallback,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class SaveOutcome:
    """A successful action plan save."""

    request_no: str
    action_plan: str
    queued: bool                        # True when saved offline
    message: str
    reload_scheduled: bool = False


@dataclass
class ReplayOutcome:
    """Result of sending queued offline edits."""

    sent: int = 0
    remaining: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
