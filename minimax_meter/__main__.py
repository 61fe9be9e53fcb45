"""Entry point: ``python -m minimax_meter [--test | --set-key | --clear-key]``."""

import getpass
import sys

from .api import UsageAPIClient, UsageAPIError
from .config import CONFIG_PATH, Settings, setup_logging
from .keychain import KeychainError
from .monitor import UsageMonitor, format_number
from .reset_time import format_countdown, format_duration

USAGE_TEXT = f"""\
MiniMax Meter — menu bar monitor for the MiniMax coding plan quota

Usage:
  minimax-meter              Run the menu bar app
  minimax-meter --test       Fetch usage once and print it
  minimax-meter --set-key    Store the API key in the macOS Keychain
  minimax-meter --clear-key  Remove the stored API key

Config: {CONFIG_PATH}
"""


def cmd_test(settings, client):
    api_key = settings.api_key
    if not api_key:
        print("❌ No API key in the Keychain. Run with --set-key first.")
        return 1

    print(f"Calling {client.url} …\n")
    try:
        snapshot = client.fetch_usage(api_key)
    except UsageAPIError as e:
        print(f"❌ {e}")
        if e.recovery_suggestion:
            print(f"   {e.recovery_suggestion}")
        return 1

    print(f"  Model:   {snapshot.model_name or '—'}")
    print(f"  Used:    {format_number(snapshot.used_count)}"
          f"  ({snapshot.usage_percentage * 100:.1f}%)")
    print(f"  Left:    {format_number(snapshot.remaining_count)}")
    print(f"  Total:   {format_number(snapshot.total_count)}")
    if snapshot.remaining_time_seconds > 0:
        print(f"  Resets:  in {format_duration(snapshot.remaining_time_seconds)}")
    else:
        print(f"  Resets:  in {format_countdown()} (UTC schedule)")
    return 0


def cmd_set_key(settings):
    key = getpass.getpass("MiniMax API key: ").strip()
    if not key:
        print("No key entered; nothing changed.")
        return 1
    try:
        settings.set_api_key(key)
    except KeychainError as e:
        print(f"❌ Could not save the key: {e}")
        return 1
    print("✅ API key saved to the Keychain.")
    return 0


def cmd_clear_key(settings):
    try:
        settings.clear()
    except KeychainError as e:
        print(f"❌ Could not remove the key: {e}")
        return 1
    print("API key removed.")
    return 0


def run_app(settings, client):
    import rumps

    from .app import MiniMaxMeterApp

    monitor = UsageMonitor(settings, client, timer_factory=rumps.Timer)
    MiniMaxMeterApp(monitor, settings).run()
    return 0


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv

    if "--help" in args or "-h" in args:
        print(USAGE_TEXT)
        return 0

    setup_logging()
    settings = Settings()
    client = UsageAPIClient()

    if "--test" in args:
        return cmd_test(settings, client)
    if "--set-key" in args:
        return cmd_set_key(settings)
    if "--clear-key" in args:
        return cmd_clear_key(settings)
    return run_app(settings, client)


if __name__ == "__main__":
    sys.exit(main())
