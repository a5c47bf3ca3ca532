"""Tests for CLI interface"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from form3.cli import _die, cli, load_account, main, setup_logging
from form3.domain.errors import OperationError
from form3.domain.models.account import Account

FIXTURE = Path(__file__).parent / "fixtures" / "uk_account.json"


@pytest.fixture
def mock_client():
    """Patch Client.from_config and yield the client used inside the command"""
    with patch("form3.cli.Client") as mock_client_class:
        client = MagicMock()
        mock_client_class.from_config.return_value.__enter__.return_value = client
        client.mock_class = mock_client_class
        yield client


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FORM3_BASE_URL", raising=False)


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=ValueError("Test exception"))


class TestLoadAccount:
    """Tests for load_account"""

    def test_load_fixture(self):
        account = load_account(FIXTURE)
        assert account.data.attributes.bank_id == "400302"

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_account(bad)


class TestCommands:
    """Tests for create, fetch and delete commands"""

    def test_create(self, mock_client):
        mock_client.accounts.create.side_effect = lambda account: account

        result = CliRunner().invoke(cli, ["create", str(FIXTURE)], catch_exceptions=False)

        assert result.exit_code == 0
        assert json.loads(result.output) == json.loads(FIXTURE.read_text(encoding="utf-8"))
        sent = mock_client.accounts.create.call_args.args[0]
        assert isinstance(sent, Account)

    @pytest.mark.parametrize(
        "content,message",
        [
            ("[1, 2]", "account document must be a JSON object"),
            ('{"data": [1]}', "account data must be a JSON object"),
            ('{"data": "x"}', "account data must be a JSON object"),
            ('{"data": {"attributes": "x"}}', "account attributes must be a JSON object"),
        ],
    )
    def test_create_with_invalid_file(self, mock_client, tmp_path, content, message):
        bad = tmp_path / "bad.json"
        bad.write_text(content, encoding="utf-8")

        result = CliRunner().invoke(cli, ["create", str(bad)])

        assert result.exit_code == 1
        assert not isinstance(result.exception, AttributeError)
        assert message in result.output
        mock_client.accounts.create.assert_not_called()

    def test_fetch(self, mock_client):
        mock_client.accounts.fetch.return_value = load_account(FIXTURE)

        result = CliRunner().invoke(cli, ["fetch", "ad27e265-9605-4b4b-a0e5-3003ea9cc4dc"], catch_exceptions=False)

        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["attributes"]["bic"] == "NWBKGB42"
        mock_client.accounts.fetch.assert_called_once_with("ad27e265-9605-4b4b-a0e5-3003ea9cc4dc")

    def test_fetch_error(self, mock_client):
        mock_client.accounts.fetch.side_effect = OperationError(
            "could not perform operation, Response: HTTP 404 Not Found: record 1 does not exist"
        )

        result = CliRunner().invoke(cli, ["fetch", "1"])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_delete(self, mock_client):
        result = CliRunner().invoke(cli, ["delete", "1", "--version", "3"], catch_exceptions=False)

        assert result.exit_code == 0
        assert "Account 1 deleted" in result.output
        mock_client.accounts.delete.assert_called_once_with("1", 3)

    def test_base_url_and_verbose_override_config(self, mock_client):
        CliRunner().invoke(
            cli, ["--verbose", "--base-url", "http://localhost:8080", "delete", "1"], catch_exceptions=False
        )

        client_config, retry_config = mock_client.mock_class.from_config.call_args.args
        assert client_config.base_url == "http://localhost:8080"
        assert client_config.debug is True
        assert retry_config.max_attempts == 3

    def test_invalid_config_file(self, tmp_path):
        config_file = tmp_path / "bad.yml"
        config_file.write_text("retry:\n  max_attempts: -1\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(config_file), "fetch", "1"])

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output


class TestMain:
    """Tests for main function"""

    @patch("form3.cli.cli")
    def test_main_calls_cli(self, mock_cli):
        main()
        mock_cli.assert_called_once_with(obj={})
