"""
Dashboard service: owns the application state and sequences the
multi-step operations over it.

    load:  fetch remote -> save cache -> normalize -> install
                 |
                 +-> (failure) read cache -> normalize -> install
                                  |
                                  +-> (failure) record load_error

    save:  begin_save -> submit (online) | queue (offline)
                 -> patch records -> schedule reload (online only)

Each step returns a StepResult, so a failed step is a value the next step
inspects instead of an exception unwinding through nested handlers.  Pure
transitions live in pipeline.state; this module only decides which
transition to apply and swaps the state reference under a lock.

Usage::

    service = DashboardService.from_config(AppConfig.from_env())
    outcome = service.load()
    page = service.state.current_page
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pipeline import state as transitions
from pipeline.editor import ActionPlanEditor
from pipeline.export import export_filename, to_csv, to_xlsx
from pipeline.filters import options_from_remote
from pipeline.normalize import normalize
from pipeline.notifications import NotificationCenter
from pipeline.pagination import PAGE_SIZE
from pipeline.records import FilterOptions, FilterState, PendingUpdate, WorkOrderRecord
from pipeline.state import SOURCE_CACHE, SOURCE_REMOTE, DashboardState
from pipeline.steps import LoadOutcome, ReplayOutcome, SaveOutcome, StepResult
from utils.cache import LocalStore, TTLCache
from utils.config import AppConfig, KnownValues
from utils.errors import (
    DashboardError,
    ExportEmptyError,
    NetworkError,
    NoCacheAvailable,
    RecordNotFoundError,
    RemoteError,
    SessionNotOpenError,
    ValidationError,
)
from utils.http import RemoteClient

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], Any]], Any]
Subscriber = Callable[[DashboardState], None]

_SAVED_REMOTE = "Action plan saved to Google Sheets"
_SAVED_LOCAL = "Action plan saved locally (will sync when online)"
_FILTER_OPTIONS_KEY = "filter_options"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def timer_scheduler(delay: float, fn: Callable[[], Any]) -> threading.Timer:
    """Run *fn* once after *delay* seconds on a daemon thread."""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class DashboardService:
    """Single owner of the dashboard's state, edit sessions and queue."""

    def __init__(self, client: Optional[RemoteClient], store: LocalStore, *,
                 page_size: int = PAGE_SIZE, reload_delay: float = 1.0,
                 online: bool = True, scheduler: Optional[Scheduler] = None,
                 notifications: Optional[NotificationCenter] = None) -> None:
        """Initialize the service.

        Args:
            client: Remote API client, or None when no API URL is configured
                    (every remote step then fails with NetworkError)
            store: Local key-value store for the cache and offline queue
            page_size: Rows per page
            reload_delay: Seconds between a successful online save and the
                          reconciling reload
            online: Initial connectivity flag
            scheduler: ``scheduler(delay, fn)`` used for the post-save
                       reload (default: a daemon threading.Timer)
            notifications: Toast queue (default: a new NotificationCenter)
        """
        self.client = client
        self.store = store
        self.reload_delay = reload_delay
        self.online = online
        self.notifications = notifications or NotificationCenter()
        self._scheduler = scheduler or timer_scheduler
        self._state = DashboardState(page_size=page_size,
                                     last_sync=store.last_sync_time())
        self._lock = threading.Lock()
        self._sessions: dict[str, ActionPlanEditor] = {}
        self._subscribers: list[Subscriber] = []
        self._timers: list[Any] = []
        self._options_cache = TTLCache(maxsize=4, ttl_seconds=300)

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> "DashboardService":
        client = None
        if config.api_url:
            client = RemoteClient(config.api_url, timeout=config.http_timeout)
        return cls(
            client,
            LocalStore(config.store_path),
            page_size=config.page_size,
            reload_delay=config.reload_delay,
            online=not config.start_offline,
            **kwargs,
        )

    # ── state ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> DashboardState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call *callback* with every new state; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return _unsubscribe

    def _swap(self, transition: Callable[[DashboardState], DashboardState]) -> DashboardState:
        with self._lock:
            new_state = transition(self._state)
            self._state = new_state
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("State subscriber %r failed", callback)
        return new_state

    # ── connectivity ──────────────────────────────────────────────────────

    def set_online(self, online: bool) -> bool:
        """Switch connectivity; returns True if the flag changed.

        Going back online does not replay queued edits; see replay_pending().
        """
        if online == self.online:
            return False
        self.online = online
        if online:
            logger.info("Connection restored")
            self.notifications.push("Connection restored", "Connected to network", "success")
        else:
            logger.info("Connection lost; working offline")
            self.notifications.push("Connection lost", "Working in offline mode", "warning")
        return True

    def status(self) -> dict[str, Any]:
        state = self._state
        return {
            "online": self.online,
            "source": state.source,
            "last_sync": state.last_sync,
            "pending_count": len(self.store.pending_updates()),
            "load_error": state.load_error,
            "remote_configured": self.client is not None,
        }

    def _require_client(self) -> RemoteClient:
        if self.client is None:
            raise NetworkError("No remote API URL configured")
        return self.client

    # ── load ──────────────────────────────────────────────────────────────

    def _fetch_remote(self) -> StepResult[list]:
        try:
            result = self._require_client().fetch_list(KnownValues.ACTION_GET_WORK_ORDERS)
        except DashboardError as e:
            return StepResult.failure("fetch_remote", e)
        # Never replace the cached snapshot with an envelope that carries no rows
        if not isinstance(result.records, list):
            return StepResult.failure(
                "fetch_remote",
                RemoteError("getWorkOrders returned no rows array", envelope=result.raw),
            )
        return StepResult.success("fetch_remote", result.records)

    def _read_cache(self) -> StepResult[list]:
        rows = self.store.cached_work_orders()
        if rows is None:
            return StepResult.failure("read_cache", NoCacheAvailable())
        return StepResult.success("read_cache", rows)

    def _save_cache(self, rows: list, synced_at: str) -> StepResult[None]:
        try:
            self.store.save_work_orders(rows, synced_at)
        except OSError as e:
            logger.warning("Could not write local cache %s: %s", self.store.path, e)
            return StepResult.failure("save_cache", e)
        return StepResult.success("save_cache", None)

    def _install(self, rows: list, source: str,
                 synced_at: Optional[str] = None) -> list[WorkOrderRecord]:
        records = normalize(rows)
        self._swap(lambda s: transitions.with_records(s, records, source, synced_at))
        self._options_cache.clear()
        return records

    def load(self) -> LoadOutcome:
        """Load work orders: remote when online, the local cache otherwise.

        A failed remote fetch falls back to the cache; if that also fails
        the previous records stay displayed and ``state.load_error`` is set.
        Never raises for remote or cache failures.
        """
        steps: list[StepResult] = []

        if self.online:
            remote = self._fetch_remote()
            steps.append(remote)
            if remote.ok:
                synced_at = _utc_now()
                steps.append(self._save_cache(remote.value, synced_at))
                records = self._install(remote.value, SOURCE_REMOTE, synced_at)
                logger.info("Loaded %d work orders from remote", len(records))
                self.notifications.push(
                    "Data Loaded",
                    f"Loaded {len(records)} work orders from Google Sheets",
                )
                return LoadOutcome(ok=True, source=SOURCE_REMOTE,
                                   count=len(records), steps=steps)

            logger.error("Error loading work orders: %s", remote.error)
            cached = self._read_cache()
            steps.append(cached)
            if cached.ok:
                records = self._install(cached.value, SOURCE_CACHE)
                self.notifications.push(
                    "Using Cached Data", "Unable to connect to Google Sheets", "warning",
                )
                return LoadOutcome(ok=True, source=SOURCE_CACHE, count=len(records),
                                   used_fallback=True, steps=steps)
            error = remote.error
        else:
            cached = self._read_cache()
            steps.append(cached)
            if cached.ok:
                records = self._install(cached.value, SOURCE_CACHE)
                self.notifications.push("Offline Mode", "Using cached data", "warning")
                self.notifications.push(
                    "Data Loaded", f"Loaded {len(records)} work orders from cache",
                )
                return LoadOutcome(ok=True, source=SOURCE_CACHE,
                                   count=len(records), steps=steps)
            error = cached.error

        message = f"Failed to load data: {error}"
        logger.error(message)
        self._swap(lambda s: transitions.with_load_error(s, message))
        return LoadOutcome(ok=False, error=message, steps=steps)

    def sync(self) -> LoadOutcome:
        """Manual sync: a remote load, only available while online."""
        if not self.online:
            raise NetworkError("Manual sync is unavailable while offline")
        return self.load()

    # ── filters & pages ───────────────────────────────────────────────────

    def set_filters(self, filters: FilterState) -> DashboardState:
        return self._swap(lambda s: transitions.with_filters(s, filters))

    def reset_filters(self) -> DashboardState:
        new_state = self.set_filters(FilterState.reset())
        self.notifications.push("Filters Reset", "All filters have been reset", "info")
        return new_state

    def go_to_page(self, page: int) -> DashboardState:
        return self._swap(lambda s: transitions.with_page(s, page))

    def prev_page(self) -> DashboardState:
        return self._swap(transitions.with_prev_page)

    def next_page(self) -> DashboardState:
        return self._swap(transitions.with_next_page)

    def get_record(self, request_no: str) -> WorkOrderRecord:
        record = self._state.find(request_no)
        if record is None:
            raise RecordNotFoundError(request_no)
        return record

    def filter_options(self, source: str = "data") -> FilterOptions:
        """Selector options, derived from the records or asked of the backend.

        ``source="remote"`` calls getFilterOptions (cached for five minutes)
        and falls back to the record-derived options on any failure.
        """
        if source != "remote":
            return self._state.options

        cached = self._options_cache.get(_FILTER_OPTIONS_KEY)
        if cached is not None:
            return cached
        try:
            result = self._require_client().fetch_list(KnownValues.ACTION_GET_FILTER_OPTIONS)
            options = options_from_remote(result.records)
        except (DashboardError, ValueError) as e:
            logger.warning("Falling back to derived filter options: %s", e)
            return self._state.options
        self._options_cache.set(_FILTER_OPTIONS_KEY, options)
        return options

    # ── action plan editing ───────────────────────────────────────────────

    def open_edit(self, request_no: str) -> ActionPlanEditor:
        """Open (or reopen) the edit session for *request_no*."""
        record = self.get_record(request_no)
        editor = self._sessions.get(request_no)
        if editor is not None and editor.is_open:
            return editor
        editor = ActionPlanEditor().open(record)
        self._sessions[request_no] = editor
        return editor

    def get_session(self, request_no: str) -> ActionPlanEditor:
        editor = self._sessions.get(request_no)
        if editor is None or not editor.is_open:
            raise SessionNotOpenError(request_no)
        return editor

    def close_edit(self, request_no: str) -> None:
        editor = self._sessions.pop(request_no, None)
        if editor is not None:
            editor.close()

    def view_action_plan(self, request_no: str) -> str:
        """Read-only action plan text of *request_no* ("" when open)."""
        return self.get_record(request_no).action_plan

    def _submit_remote(self, request_no: str, action_plan: str) -> StepResult[str]:
        update = PendingUpdate.create(request_no, action_plan)
        try:
            result = self._require_client().submit(update.to_payload())
        except DashboardError as e:
            return StepResult.failure("submit_remote", e)
        if not result.success:
            return StepResult.failure("submit_remote",
                                      RemoteError("Failed to save action plan", envelope=result.raw))
        return StepResult.success("submit_remote", result.message or _SAVED_REMOTE)

    def _schedule_reload(self) -> None:
        """Schedule the post-save reload; only timers still pending are kept."""
        self._timers = [t for t in self._timers
                        if getattr(t, "is_alive", None) is not None and t.is_alive()]
        timer = self._scheduler(self.reload_delay, self.load)
        if timer is not None:
            self._timers.append(timer)

    def _queue_local(self, request_no: str, action_plan: str) -> StepResult[str]:
        update = PendingUpdate.create(request_no, action_plan)
        try:
            depth = self.store.append_pending(update.to_dict())
        except OSError as e:
            return StepResult.failure("queue_local", e)
        logger.info("Queued offline action plan for %s (%d pending)", request_no, depth)
        return StepResult.success("queue_local", _SAVED_LOCAL)

    def save_action_plan(self, request_no: str, text: Optional[str] = None) -> SaveOutcome:
        """Save the open session's buffer (or *text*) for *request_no*.

        Online: submit to the backend, patch the in-memory records and
        schedule a full reload.  Offline: queue a PendingUpdate and patch
        the records; no remote call and no reload.

        Raises:
            SessionNotOpenError: no edit session is open for *request_no*
            ValidationError: the trimmed text is empty (nothing is sent)
            NetworkError / RemoteError / OSError: the save failed; the
                session stays open in the FAILED state for a retry
        """
        editor = self.get_session(request_no)
        try:
            action_plan = editor.begin_save(text)
        except ValidationError as e:
            self.notifications.push("Validation Error", str(e), "error")
            raise

        online = self.online
        step = (self._submit_remote(request_no, action_plan) if online
                else self._queue_local(request_no, action_plan))
        if not step.ok:
            editor.mark_failed(str(step.error))
            logger.error("Error saving action plan for %s: %s", request_no, step.error)
            self.notifications.push("Error", f"Failed to save: {step.error}", "error")
            raise step.error

        updated = _utc_now()
        self._swap(lambda s: transitions.with_action_plan(s, request_no, action_plan, updated))
        editor.mark_saved()
        self.close_edit(request_no)
        self.notifications.push("Success", step.value, "success")

        if online:
            self._schedule_reload()
        return SaveOutcome(request_no=request_no, action_plan=action_plan,
                           queued=not online, message=step.value,
                           reload_scheduled=online)

    # ── offline queue ─────────────────────────────────────────────────────

    def pending_updates(self) -> list[PendingUpdate]:
        return [PendingUpdate.from_dict(u) for u in self.store.pending_updates()
                if isinstance(u, dict)]

    def replay_pending(self) -> ReplayOutcome:
        """Send queued offline edits oldest first; only ever caller-initiated.

        Stops at the first failure and keeps that edit and everything after
        it queued.  No deduplication: every queued edit is sent as-is.

        Raises:
            NetworkError: while offline
        """
        if not self.online:
            raise NetworkError("Cannot send pending updates while offline")
        queue = self.pending_updates()
        sent = 0
        error: Optional[str] = None
        for update in queue:
            try:
                self._require_client().submit(update.to_payload())
            except DashboardError as e:
                error = str(e)
                logger.error("Replay stopped at %s: %s", update.request_no, e)
                break
            sent += 1

        remaining = queue[sent:]
        self.store.replace_pending([u.to_dict() for u in remaining])
        if error:
            self.notifications.push("Sync Incomplete",
                                    f"Sent {sent} of {len(queue)} pending updates: {error}",
                                    "error")
        elif sent:
            self.notifications.push("Sync Complete", f"Sent {sent} pending updates")
        return ReplayOutcome(sent=sent, remaining=len(remaining), error=error)

    # ── export ────────────────────────────────────────────────────────────

    def export_csv(self) -> tuple[str, str]:
        """(filename, CSV text) of the filtered view.

        Raises:
            ExportEmptyError: the filtered view is empty
        """
        records = self._state.filtered
        try:
            text = to_csv(records)
        except ExportEmptyError as e:
            self.notifications.push("Export Failed", str(e), "warning")
            raise
        self.notifications.push("Export Complete", f"Exported {len(records)} records to CSV")
        return export_filename("csv"), text

    def export_xlsx(self) -> tuple[str, bytes]:
        records = self._state.filtered
        try:
            data = to_xlsx(records)
        except ExportEmptyError as e:
            self.notifications.push("Export Failed", str(e), "warning")
            raise
        self.notifications.push("Export Complete", f"Exported {len(records)} records to Excel")
        return export_filename("xlsx"), data

    # ── lifecycle ─────────────────────────────────────────────────────────

    def close(self) -> None:
        """Cancel scheduled reloads and release the HTTP session."""
        for timer in self._timers:
            cancel = getattr(timer, "cancel", None)
            if cancel is not None:
                cancel()
        self._timers.clear()
        if self.client is not None:
            self.client.close()
