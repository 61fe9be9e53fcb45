"""User settings for MiniMax Meter.

Plain preferences live in a small JSON file. The API key is kept only in
the Keychain and is re-read from there on every access.
"""

import json
import logging
import os

from .keychain import KeychainError, KeychainItemNotFound, KeychainStore

CONFIG_DIR = os.environ.get(
    "MINIMAX_METER_CONFIG_DIR", os.path.expanduser("~/.config/minimax-meter")
)
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
LOG_PATH = os.path.join(CONFIG_DIR, "debug.log")

DEFAULT_REFRESH_SECONDS = 60
MIN_REFRESH_SECONDS = 10
MAX_REFRESH_SECONDS = 300


def setup_logging(path=LOG_PATH, level=logging.INFO):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    logging.basicConfig(
        filename=path,
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def clamp_interval(seconds):
    return max(MIN_REFRESH_SECONDS, min(MAX_REFRESH_SECONDS, seconds))


class Settings:
    """Preferences plus the Keychain-backed API key.

    Listeners registered with ``add_api_key_listener`` are called after
    every successful write of the key.
    """

    def __init__(self, keychain=None, config_path=CONFIG_PATH):
        self.keychain = keychain or KeychainStore()
        self.config_path = config_path
        self._refresh_seconds = DEFAULT_REFRESH_SECONDS
        self._show_percentage = False
        self._use_gradient = False
        self._demo_mode = False
        self._key_listeners = []
        self._load_config()

    # ── Config file ───────────────────────────────────────────────────

    def _load_config(self):
        if not os.path.exists(self.config_path):
            return
        try:
            with open(self.config_path) as f:
                cfg = json.load(f)
            self._refresh_seconds = clamp_interval(
                float(cfg.get("refresh_seconds", DEFAULT_REFRESH_SECONDS))
            )
            self._show_percentage = cfg.get("show_percentage") is True
            self._use_gradient = cfg.get("use_gradient") is True
            self._demo_mode = cfg.get("demo_mode") is True
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"Ignoring unreadable config {self.config_path}: {e}")

    def _save_config(self):
        os.makedirs(os.path.dirname(self.config_path), exist_ok=True)
        fd = os.open(self.config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(
                {
                    "refresh_seconds": self._refresh_seconds,
                    "show_percentage": self._show_percentage,
                    "use_gradient": self._use_gradient,
                    "demo_mode": self._demo_mode,
                },
                f,
                indent=2,
            )

    # ── Preferences ───────────────────────────────────────────────────

    @property
    def refresh_interval(self):
        return self._refresh_seconds

    @refresh_interval.setter
    def refresh_interval(self, seconds):
        self._refresh_seconds = clamp_interval(seconds)
        self._save_config()

    @property
    def show_percentage(self):
        return self._show_percentage

    @show_percentage.setter
    def show_percentage(self, value):
        self._show_percentage = bool(value)
        self._save_config()

    @property
    def use_gradient(self):
        return self._use_gradient

    @use_gradient.setter
    def use_gradient(self, value):
        self._use_gradient = bool(value)
        self._save_config()

    @property
    def demo_mode(self):
        return self._demo_mode

    @demo_mode.setter
    def demo_mode(self, value):
        self._demo_mode = bool(value)
        self._save_config()

    # ── API key ───────────────────────────────────────────────────────

    @property
    def api_key(self):
        try:
            return self.keychain.load()
        except KeychainItemNotFound:
            return ""
        except KeychainError as e:
            logging.warning(f"Could not read API key from Keychain: {e}")
            return ""

    @api_key.setter
    def api_key(self, value):
        self.set_api_key(value)

    def set_api_key(self, value):
        """Store ``value`` in the Keychain, or delete the key when empty.

        Raises KeychainError if the Keychain rejects the write.
        """
        value = (value or "").strip()
        if value:
            self.keychain.save(value)
        else:
            self.keychain.delete()
        self._notify_api_key_changed()

    def clear(self):
        self.set_api_key("")

    @property
    def has_api_key(self):
        return bool(self.api_key)

    def add_api_key_listener(self, callback):
        """Register ``callback()``; returns a function that unregisters it."""
        self._key_listeners.append(callback)

        def remove():
            if callback in self._key_listeners:
                self._key_listeners.remove(callback)

        return remove

    def _notify_api_key_changed(self):
        for callback in list(self._key_listeners):
            callback()
