"""Tests for the flame command-line interface."""

import json

import pytest
import structlog
import yaml
from click.testing import CliRunner

from flame_client.cli import main


@pytest.fixture
def runner():
  yield CliRunner()
  structlog.reset_defaults()


class TestOfflineCommands:
  """Commands answered from built-in sample data."""

  def test_check_login(self, runner):
    result = runner.invoke(main, ["--offline", "check-login"])

    assert result.exit_code == 0
    assert json.loads(result.output) is True

  def test_projects(self, runner):
    result = runner.invoke(main, ["--offline", "projects"])

    assert result.exit_code == 0
    assert json.loads(result.output) == ["test1", "test2", "test3"]

  def test_ls(self, runner):
    result = runner.invoke(main, ["--offline", "ls", "test1"])

    assert result.exit_code == 0
    assert json.loads(result.output) == [
      {"name": "next/"},
      {"name": "package.json"},
      {"name": "README.md"},
    ]

  def test_cat(self, runner):
    result = runner.invoke(main, ["--offline", "cat", "proj", "README.md"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"binary": False, "data": "This is a test readme file."}

  def test_search(self, runner):
    result = runner.invoke(main, ["--offline", "search", "readme", "--limit", "10"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["match_pattern"] == "[Tt]his is"
    assert payload["items"][0]["matches"] == [{"line": 1, "text": "This is a test readme file."}]

  def test_search_rejects_zero_limit(self, runner):
    result = runner.invoke(main, ["--offline", "search", "readme", "--limit", "0"])

    assert result.exit_code != 0


class TestConfiguredCommands:
  """Commands that need a server configuration."""

  def test_missing_config_is_reported(self, runner, tmp_path):
    result = runner.invoke(main, ["--config-dir", str(tmp_path), "projects"])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output

  def test_unreachable_server_is_retryable_fault(self, runner, tmp_path):
    (tmp_path / "flame-client.yaml").write_text(
      yaml.dump({"client": {"base_url": "http://127.0.0.1:9", "timeout": 2}})
    )

    result = runner.invoke(main, ["--config-dir", str(tmp_path), "projects"])

    assert result.exit_code == 1
    assert "Unavailable" in result.output
    assert "retried" in result.output

  def test_invalid_base_url_option(self, runner):
    result = runner.invoke(main, ["--base-url", "flame.example.com", "projects"])

    assert result.exit_code == 1
    assert "http or https" in result.output
