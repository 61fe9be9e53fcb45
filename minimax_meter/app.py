"""MiniMax Meter menu bar front end (rumps)."""

import logging

import rumps

from .api import Unauthorized
from .keychain import KeychainError

INTERVALS = [
    ("10 seconds", 10),
    ("30 seconds", 30),
    ("1 minute", 60),
    ("2 minutes", 120),
    ("5 minutes", 300),
]


def bar(pct, width=20):
    """Render a text progress bar: [████████░░░░░░░░░░░░]."""
    filled = round(width * pct / 100)
    return "█" * filled + "░" * (width - filled)


def level_icon(pct):
    if pct < 50:
        return "●"
    if pct < 80:
        return "◐"
    return "○"


class MiniMaxMeterApp(rumps.App):
    def __init__(self, monitor, settings):
        super().__init__("MiniMax Meter", title="◉ —", quit_button=None)

        self.monitor = monitor
        self.settings = settings

        self._build_menu()
        self.monitor.subscribe(self._on_state_change)

        self.monitor.start_monitoring()

        # live countdown between refreshes
        self.clock_timer = rumps.Timer(self._on_clock, 1)
        self.clock_timer.start()

    # ── Menu ──────────────────────────────────────────────────────────

    def _build_menu(self):
        self.status_item = rumps.MenuItem("")

        self.model_item = rumps.MenuItem("Model:  —")
        self.used_item = rumps.MenuItem("Used:   —")
        self.usage_bar = rumps.MenuItem("")
        self.left_item = rumps.MenuItem("Left:   —")
        self.total_item = rumps.MenuItem("Total:  —")
        self.reset_item = rumps.MenuItem("")
        self.error_item = rumps.MenuItem("")

        self.checked_item = rumps.MenuItem("Last checked: never")

        self.interval_menu = rumps.MenuItem("Auto-refresh")
        self._interval_items = {}
        for label, secs in INTERVALS:
            item = rumps.MenuItem(label, callback=self._make_interval_cb(secs))
            item.state = 1 if secs == self.settings.refresh_interval else 0
            self._interval_items[secs] = item
            self.interval_menu.add(item)

        self.percentage_item = rumps.MenuItem(
            "Show Percentage", callback=self._on_toggle_percentage
        )
        self.percentage_item.state = int(self.settings.show_percentage)
        self.gradient_item = rumps.MenuItem(
            "Usage-Level Icon", callback=self._on_toggle_gradient
        )
        self.gradient_item.state = int(self.settings.use_gradient)
        self.demo_item = rumps.MenuItem("Demo Mode", callback=self._on_toggle_demo)
        self.demo_item.state = int(self.settings.demo_mode)

        self.menu = [
            self.status_item,
            None,
            self.model_item,
            self.used_item,
            self.usage_bar,
            self.left_item,
            self.total_item,
            self.reset_item,
            self.error_item,
            None,
            self.checked_item,
            None,
            rumps.MenuItem("Refresh Now", callback=self._on_refresh),
            self.interval_menu,
            self.percentage_item,
            self.gradient_item,
            self.demo_item,
            None,
            rumps.MenuItem("Set API Key…", callback=self._on_set_key),
            rumps.MenuItem("Clear API Key", callback=self._on_clear_key),
            None,
            rumps.MenuItem("Quit MiniMax Meter", callback=self._on_quit),
        ]

    def _make_interval_cb(self, seconds):
        def cb(sender):
            self.settings.refresh_interval = seconds
            self.monitor.reschedule()
            for secs, item in self._interval_items.items():
                item.state = 1 if secs == seconds else 0

        return cb

    # ── Callbacks ─────────────────────────────────────────────────────

    def _on_refresh(self, _):
        self.monitor.refresh_in_background()

    def _on_clock(self, _):
        self._update_reset()

    def _on_toggle_percentage(self, sender):
        self.settings.show_percentage = not self.settings.show_percentage
        sender.state = int(self.settings.show_percentage)
        self._update_display()

    def _on_toggle_gradient(self, sender):
        self.settings.use_gradient = not self.settings.use_gradient
        sender.state = int(self.settings.use_gradient)
        self._update_display()

    def _on_toggle_demo(self, sender):
        self.settings.demo_mode = not self.settings.demo_mode
        sender.state = int(self.settings.demo_mode)
        self.monitor.refresh_in_background()

    def _on_set_key(self, _):
        window = rumps.Window(
            message="Paste your MiniMax API key. It is stored in the macOS Keychain.",
            title="MiniMax API Key",
            default_text="",
            ok="Save",
            cancel="Cancel",
            dimensions=(320, 24),
        )
        response = window.run()
        if not response.clicked or not response.text.strip():
            return
        self._write_key(response.text)

    def _on_clear_key(self, _):
        self._write_key("")

    def _write_key(self, value):
        try:
            self.settings.set_api_key(value)
        except KeychainError as e:
            logging.error(f"Failed to save API key: {e}")
            rumps.alert("MiniMax Meter", f"Could not update the Keychain: {e}")

    def _on_quit(self, _):
        self.monitor.stop_monitoring()
        rumps.quit_application()

    def _on_state_change(self, field, state):
        self._update_display()

    # ── Display ───────────────────────────────────────────────────────

    def _update_display(self):
        m = self.monitor
        snapshot = m.snapshot
        error = m.last_error
        pct = m.usage_percentage * 100

        if snapshot is not None:
            self.model_item.title = f"Model:  {snapshot.model_name or '—'}"
            self.used_item.title = f"Used:   {m.formatted_used} ({pct:.0f}%)"
            self.usage_bar.title = f"  {bar(pct)}"
            self.left_item.title = f"Left:   {m.formatted_remaining}"
            self.total_item.title = f"Total:  {m.formatted_total}"

        if m.is_loading:
            self.status_item.title = "Refreshing…"
        elif isinstance(error, Unauthorized) and not m.has_valid_key:
            self.status_item.title = "No API Key — add one with “Set API Key…”"
        elif snapshot is not None:
            self.status_item.title = f"MiniMax Meter — {pct:.0f}% used"
        else:
            self.status_item.title = "MiniMax Meter — no data"

        self.error_item.title = f"⚠ {str(error)[:60]}" if error else ""

        if m.last_updated:
            local = m.last_updated.astimezone()
            self.checked_item.title = f"Last checked: {local.strftime('%-I:%M:%S %p')}"

        if snapshot is None:
            self.title = "◉ ⚠" if error else "◉ —"
        else:
            icon = level_icon(pct) if self.settings.use_gradient else "◉"
            if self.settings.show_percentage:
                self.title = f"{icon} {pct:.0f}%"
            else:
                self.title = f"{icon} {m.formatted_remaining}"

        self._update_reset()

    def _update_reset(self):
        remaining = self.monitor.formatted_time_remaining
        self.reset_item.title = f"Resets in {remaining}" if remaining else ""
