"""Tests for the command-line entry point."""

import pytest
from unittest.mock import MagicMock, patch

from minimax_meter.__main__ import cmd_clear_key, cmd_set_key, cmd_test, main
from minimax_meter.api import Unauthorized, UsageSnapshot
from minimax_meter.keychain import KeychainError


@pytest.fixture
def client():
    client = MagicMock()
    client.url = "https://example.invalid/remains"
    client.fetch_usage.return_value = UsageSnapshot(
        total_count=1_000_000,
        used_count=250_000,
        remaining_count=750_000,
        remaining_time_ms=5_400_000,
        model_name="MiniMax-M2",
    )
    return client


class TestCmdTest:

    def test_prints_usage(self, settings, keychain, client, capsys):
        keychain.secret = "sk-test"
        assert cmd_test(settings, client) == 0
        out = capsys.readouterr().out
        assert "MiniMax-M2" in out
        assert "250.0K" in out
        assert "750.0K" in out
        assert "1.0M" in out
        assert "1h 30m" in out

    def test_no_key(self, settings, client, capsys):
        assert cmd_test(settings, client) == 1
        client.fetch_usage.assert_not_called()
        assert "--set-key" in capsys.readouterr().out

    def test_api_error(self, settings, keychain, client, capsys):
        keychain.secret = "sk-bad"
        client.fetch_usage.side_effect = Unauthorized()
        assert cmd_test(settings, client) == 1
        out = capsys.readouterr().out
        assert "Invalid API key" in out
        assert "Open Settings" in out


class TestKeyCommands:

    def test_set_key(self, settings, keychain):
        with patch("minimax_meter.__main__.getpass.getpass", return_value=" sk-new \n"):
            assert cmd_set_key(settings) == 0
        assert keychain.secret == "sk-new"

    def test_set_key_empty(self, settings, keychain):
        with patch("minimax_meter.__main__.getpass.getpass", return_value=""):
            assert cmd_set_key(settings) == 1
        assert keychain.secret is None

    def test_set_key_keychain_failure(self, settings, keychain, capsys):
        keychain.save = MagicMock(side_effect=KeychainError("Keychain error: 45"))
        with patch("minimax_meter.__main__.getpass.getpass", return_value="sk-new"):
            assert cmd_set_key(settings) == 1
        assert "Could not save" in capsys.readouterr().out

    def test_clear_key(self, settings, keychain):
        keychain.secret = "sk-old"
        assert cmd_clear_key(settings) == 0
        assert keychain.secret is None


class TestMain:

    def test_help(self, capsys):
        assert main(["--help"]) == 0
        assert "--test" in capsys.readouterr().out

    def test_dispatches_test(self, settings, client):
        with patch("minimax_meter.__main__.setup_logging"), \
             patch("minimax_meter.__main__.Settings", return_value=settings), \
             patch("minimax_meter.__main__.UsageAPIClient", return_value=client), \
             patch("minimax_meter.__main__.cmd_test", return_value=0) as cmd:
            assert main(["--test"]) == 0
        cmd.assert_called_once_with(settings, client)

    def test_default_runs_app(self, settings, client):
        with patch("minimax_meter.__main__.setup_logging"), \
             patch("minimax_meter.__main__.Settings", return_value=settings), \
             patch("minimax_meter.__main__.UsageAPIClient", return_value=client), \
             patch("minimax_meter.__main__.run_app", return_value=0) as run_app:
            assert main([]) == 0
        run_app.assert_called_once_with(settings, client)
