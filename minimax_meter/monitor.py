"""Polling state machine behind the menu-bar display.

``UsageMonitor`` owns the current snapshot and the loading/error state,
refreshes on a repeating timer, and tells subscribers about every change.
Refreshes may overlap (a timer tick during a slow manual refresh); both
run to completion and the last one to finish wins.
"""

import logging
import random
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from .api import UsageAPIError, UsageSnapshot, Unauthorized
from .reset_time import format_countdown, format_duration, seconds_until_reset

DEMO_TOTAL = 1_000_000
DEMO_MODEL_NAME = "MiniMax-M2 (demo)"


def format_number(number):
    """Compact count: 999 -> '999', 250000 -> '250.0K', 1000000 -> '1.0M'."""
    if number >= 1_000_000:
        return f"{number / 1_000_000:.1f}M"
    if number >= 1_000:
        return f"{number / 1_000:.1f}K"
    return str(number)


def utcnow():
    return datetime.now(timezone.utc)


def run_in_thread(fn):
    threading.Thread(target=fn, daemon=True).start()


class IntervalTimer:
    """Repeating timer on a daemon thread, call-compatible with rumps.Timer."""

    def __init__(self, callback, interval):
        self.callback = callback
        self.interval = interval
        self._stopped = threading.Event()
        self._thread = None

    def start(self):
        if self.is_alive():
            return
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stopped,), daemon=True
        )
        self._thread.start()

    def _run(self, stopped):
        while not stopped.wait(self.interval):
            self.callback(self)

    def stop(self):
        self._stopped.set()

    def is_alive(self):
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stopped.is_set()
        )


@dataclass
class MonitorState:
    snapshot: Optional[UsageSnapshot] = None
    is_loading: bool = False
    last_error: Optional[UsageAPIError] = None
    last_updated: Optional[datetime] = None


class UsageMonitor:
    """Keeps MonitorState current by polling the usage API.

    Args:
        settings: ``config.Settings``; the API key and interval are read
            from it on every use.
        client: ``api.UsageAPIClient`` (or anything with ``fetch_usage``).
        timer_factory: ``factory(callback, interval)`` returning an object
            with ``start()`` and ``stop()``. ``rumps.Timer`` fits.
        spawn: runs a zero-argument callable in the background.
        clock: returns the current aware datetime.
    """

    def __init__(self, settings, client, timer_factory=IntervalTimer,
                 spawn=run_in_thread, clock=utcnow):
        self.settings = settings
        self.client = client
        self.timer_factory = timer_factory
        self.spawn = spawn
        self.clock = clock

        self._state = MonitorState()
        self._lock = threading.RLock()
        self._observers = []
        self._timer = None

        settings.add_api_key_listener(self._on_api_key_changed)

    # ── State ─────────────────────────────────────────────────────────

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return replace(self._state)

    @property
    def snapshot(self):
        return self._state.snapshot

    @property
    def is_loading(self):
        return self._state.is_loading

    @property
    def last_error(self):
        return self._state.last_error

    @property
    def last_updated(self):
        return self._state.last_updated

    def subscribe(self, callback):
        """Call ``callback(field, state)`` after every state change.

        Returns a function that removes the subscription.
        """
        with self._lock:
            self._observers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def _set(self, field, value):
        with self._lock:
            setattr(self._state, field, value)
            state = replace(self._state)
            for callback in list(self._observers):
                callback(field, state)

    # ── Polling ───────────────────────────────────────────────────────

    @property
    def is_monitoring(self):
        return self._timer is not None

    def start_monitoring(self):
        self.refresh_in_background()
        self.reschedule()

    def reschedule(self):
        """Replace the refresh timer, picking up the current interval."""
        with self._lock:
            if self._timer is not None:
                self._timer.stop()
            interval = self.settings.refresh_interval
            self._timer = self.timer_factory(self._on_timer, interval)
            self._timer.start()
        logging.info(f"Refresh timer armed: every {interval}s")

    def stop_monitoring(self):
        with self._lock:
            if self._timer is None:
                return
            self._timer.stop()
            self._timer = None
        logging.info("Refresh timer stopped")

    def _on_timer(self, _):
        self.refresh_in_background()

    def _on_api_key_changed(self):
        logging.info("API key changed, refreshing")
        self.refresh_in_background()

    def refresh_in_background(self):
        self.spawn(self.refresh)

    def refresh(self):
        """Fetch usage once and publish the outcome.

        Client failures end up in ``last_error``; the previous snapshot is
        kept. Anything else is logged and re-raised.
        """
        if self.settings.demo_mode:
            self._refresh_demo()
            return

        api_key = self.settings.api_key
        if not api_key:
            logging.info("No API key configured, skipping refresh")
            self._set("last_error", Unauthorized())
            return

        self._set("last_error", None)
        self._set("is_loading", True)
        try:
            snapshot = self.client.fetch_usage(api_key)
        except UsageAPIError as e:
            logging.warning(f"Usage refresh failed: {e}")
            self._set("last_error", e)
        except Exception:
            logging.error("Unexpected error during usage refresh", exc_info=True)
            raise
        else:
            self._set("snapshot", snapshot)
            self._set("last_updated", self.clock())
            logging.debug(
                f"Usage refresh: {snapshot.used_count}/{snapshot.total_count} "
                f"({int(snapshot.usage_percentage * 100)}%)"
            )
        finally:
            self._set("is_loading", False)

    def _refresh_demo(self):
        self._set("last_error", None)
        self._set("is_loading", True)
        used = random.randint(200_000, 700_000)
        now = self.clock()
        self._set("snapshot", UsageSnapshot(
            total_count=DEMO_TOTAL,
            used_count=used,
            remaining_count=DEMO_TOTAL - used,
            remaining_time_ms=seconds_until_reset(now) * 1000,
            model_name=DEMO_MODEL_NAME,
        ))
        self._set("last_updated", now)
        self._set("is_loading", False)

    # ── Derived views ─────────────────────────────────────────────────

    @property
    def has_valid_key(self):
        return self.settings.has_api_key

    @property
    def usage_percentage(self):
        snapshot = self.snapshot
        return snapshot.usage_percentage if snapshot else 0.0

    def _formatted(self, attr):
        snapshot = self.snapshot
        if snapshot is None:
            return "Unknown"
        return format_number(getattr(snapshot, attr))

    @property
    def formatted_remaining(self):
        return self._formatted("remaining_count")

    @property
    def formatted_total(self):
        return self._formatted("total_count")

    @property
    def formatted_used(self):
        return self._formatted("used_count")

    @property
    def remaining_time_seconds(self):
        """Seconds until the quota resets.

        The server's ``remains_time`` wins; without it the next UTC reset
        boundary is used.
        """
        snapshot = self.snapshot
        if snapshot is not None and snapshot.remaining_time_ms > 0:
            return snapshot.remaining_time_seconds
        return seconds_until_reset(self.clock())

    @property
    def formatted_time_remaining(self):
        seconds = self.remaining_time_seconds
        if seconds <= 0:
            return None
        return format_duration(seconds)

    @property
    def reset_countdown(self):
        """Countdown to the next fixed UTC reset boundary."""
        return format_countdown(self.clock())
