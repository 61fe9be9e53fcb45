"""
Unit test configuration for MiniMax Meter.

Provides an in-memory keychain and settings isolated in a temp directory,
so tests never touch the real macOS Keychain or ~/.config.
"""

import pytest

from minimax_meter.config import Settings
from minimax_meter.keychain import KeychainItemNotFound


class FakeKeychain:
    """Same save/load/delete contract as KeychainStore, kept in memory."""

    def __init__(self, secret=None):
        self.secret = secret
        self.calls = []

    def save(self, secret):
        self.calls.append("save")
        self.secret = secret

    def load(self):
        self.calls.append("load")
        if self.secret is None:
            raise KeychainItemNotFound("Item not found in keychain")
        return self.secret

    def delete(self):
        self.calls.append("delete")
        self.secret = None


@pytest.fixture
def keychain():
    return FakeKeychain()


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "minimax-meter" / "config.json")


@pytest.fixture
def settings(keychain, config_path):
    return Settings(keychain=keychain, config_path=config_path)
