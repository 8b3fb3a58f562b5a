"""
Record types for the work order pipeline.

  - WorkOrderRecord: one normalized row of the work order sheet.
  - PendingUpdate: an action plan edit queued while offline.
  - FilterState: the selector + search box values driving the filtered view.
  - FilterOptions / Stats: derived values the presentation layer renders.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from utils.config import KnownValues
from utils.strings import is_blank


@dataclass
class WorkOrderRecord:
    """One maintenance/service request.

    ``id`` is the 1-based position in the batch it was loaded with and is
    reassigned on every load; ``request_no`` is the stable business key.
    """

    id: int
    request_no: str
    hospital: str
    request_date: str
    services: str
    sub_system: str
    action_plan: str
    vendor: str
    cost: float
    request_year: int
    month: int
    raw: dict[str, Any] = field(default_factory=dict, repr=False)
    updated: str | None = None

    @property
    def is_open(self) -> bool:
        """A record with no action plan is open."""
        return is_blank(self.action_plan)

    def with_action_plan(self, action_plan: str, updated: str | None = None) -> "WorkOrderRecord":
        """Copy of this record carrying *action_plan*."""
        return replace(
            self,
            action_plan=action_plan,
            updated=updated or datetime.now(timezone.utc).isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "request_no": self.request_no,
            "hospital": self.hospital,
            "request_date": self.request_date,
            "services": self.services,
            "sub_system": self.sub_system,
            "action_plan": self.action_plan,
            "vendor": self.vendor,
            "cost": self.cost,
            "request_year": self.request_year,
            "month": self.month,
            "is_open": self.is_open,
            "updated": self.updated,
        }


@dataclass(frozen=True)
class PendingUpdate:
    """An offline edit waiting to be sent to the backend."""

    request_no: str
    action_plan: str
    timestamp: str

    @classmethod
    def create(cls, request_no: str, action_plan: str) -> "PendingUpdate":
        return cls(
            request_no=request_no,
            action_plan=action_plan,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PendingUpdate":
        return cls(
            request_no=str(data.get("request_no", "")),
            action_plan=str(data.get("action_plan", "")),
            timestamp=str(data.get("timestamp", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "request_no": self.request_no,
            "action_plan": self.action_plan,
            "timestamp": self.timestamp,
        }

    def to_payload(self) -> dict[str, str]:
        """Body of the updateActionPlan POST that replays this edit."""
        return {
            "action": KnownValues.ACTION_UPDATE_ACTION_PLAN,
            "request_no": self.request_no,
            "action_plan": self.action_plan,
        }


@dataclass(frozen=True)
class FilterState:
    """Selector values plus the free-text search term.

    Each selector holds either a concrete value or ``"all"``.  Year and
    month are kept as the selector sends them and compared numerically.
    """

    hospital: str = KnownValues.ALL
    year: str = KnownValues.ALL
    month: str = KnownValues.ALL
    service: str = KnownValues.ALL
    search: str = ""

    @classmethod
    def reset(cls) -> "FilterState":
        return cls()

    @classmethod
    def from_params(
        cls,
        hospital: str | None = None,
        year: str | int | None = None,
        month: str | int | None = None,
        service: str | None = None,
        search: str | None = None,
    ) -> "FilterState":
        """Build a filter state from request parameters; blanks mean "all"."""
        def _sel(value) -> str:
            if value is None or str(value).strip() == "":
                return KnownValues.ALL
            return str(value).strip()

        return cls(
            hospital=_sel(hospital),
            year=_sel(year),
            month=_sel(month),
            service=_sel(service),
            search=search or "",
        )

    @property
    def is_default(self) -> bool:
        return self == FilterState()

    def to_dict(self) -> dict[str, str]:
        return {
            "hospital": self.hospital,
            "year": self.year,
            "month": self.month,
            "service": self.service,
            "search": self.search,
        }


@dataclass(frozen=True)
class FilterOptions:
    """Values offered by the filter selectors."""

    hospitals: tuple[str, ...] = ()
    years: tuple[int, ...] = ()
    services: tuple[str, ...] = ()
    months: tuple[int, ...] = tuple(range(1, 13))

    def to_dict(self) -> dict[str, list]:
        return {
            "hospitals": list(self.hospitals),
            "years": list(self.years),
            "services": list(self.services),
            "months": list(self.months),
        }


@dataclass(frozen=True)
class Stats:
    """Header statistics: loaded count and open (no action plan) count."""

    total: int = 0
    open_count: int = 0
