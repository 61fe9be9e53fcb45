"""macOS Keychain storage for the MiniMax API key.

Talks to the Keychain through the ``security`` command-line tool, so the key
is stored encrypted at rest and never touches the preferences file.
"""

import logging
import subprocess

SERVICE = "com.minimaxmenu.MinimaxMenuMonitor"
ACCOUNT = "apiKey"

# errSecItemNotFound, as reported by `security` on exit
ITEM_NOT_FOUND_STATUS = 44


class KeychainError(Exception):
    """A Keychain operation failed."""


class KeychainItemNotFound(KeychainError):
    """No API key is stored in the Keychain."""


class KeychainStore:
    """Stores a single secret under a fixed service/account pair."""

    def __init__(self, service=SERVICE, account=ACCOUNT, timeout=5):
        self.service = service
        self.account = account
        self.timeout = timeout

    def _run(self, *args):
        cmd = ["security", *args, "-s", self.service, "-a", self.account]
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise KeychainError(f"Keychain unavailable: {e}") from e

    def save(self, secret):
        """Add the secret, or update it if an item already exists."""
        # `security` only takes the password as an argument, so it is briefly
        # visible in the process list while the command runs.
        result = self._run("add-generic-password", "-U", "-w", secret)
        if result.returncode != 0:
            logging.warning(f"Keychain save failed: status {result.returncode}")
            raise KeychainError(f"Keychain error: {result.returncode}")
        logging.info("Keychain save: success")

    def load(self):
        result = self._run("find-generic-password", "-w")
        if result.returncode == ITEM_NOT_FOUND_STATUS:
            raise KeychainItemNotFound("Item not found in keychain")
        if result.returncode != 0:
            raise KeychainError(f"Keychain error: {result.returncode}")
        return result.stdout.rstrip("\n")

    def delete(self):
        """Remove the secret. Deleting a missing item is not an error."""
        result = self._run("delete-generic-password")
        if result.returncode not in (0, ITEM_NOT_FOUND_STATUS):
            logging.warning(f"Keychain delete failed: status {result.returncode}")
            raise KeychainError(f"Keychain error: {result.returncode}")
        logging.info("Keychain delete: success")
