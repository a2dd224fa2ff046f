"""
Unit tests for the Poyesis Env CLI interface.

Covers argument parsing, dispatch to the sync manager and exit codes.
"""

import argparse
import json
import os
from pathlib import Path
from typing import Any
from unittest import TestCase
from unittest.mock import Mock, patch

import pytest

from poyesis_env.cli import (
  EXIT_ERROR,
  EXIT_USAGE,
  build_parser,
  handle_create,
  handle_init,
  handle_pull,
  handle_push,
  main,
)
from poyesis_env.managers.sync_manager import SyncReport
from poyesis_env.secret_clients.base import HttpStatusError, MissingFieldError


class TestCLIBase(TestCase):
  """Base test class with common setup."""

  def setUp(self) -> None:
    """Set up test fixtures."""
    self.mock_app = Mock()
    self.mock_logger = Mock()
    self.mock_sync_manager = Mock()

    self.mock_app.get_logger.return_value = self.mock_logger
    self.mock_app.sync_manager = self.mock_sync_manager
    for command in ("init", "create", "push", "pull", "pull_single"):
      getattr(self.mock_sync_manager, command).return_value = SyncReport()
    self.mock_app.config.single_pull_path = ".env"
    self.mock_app.config.map_name = None

  def create_args(self, **kwargs: Any) -> argparse.Namespace:
    """Create an argparse.Namespace with default values."""
    defaults = {
      "project": "proj",
      "category": "backend",
      "secret": None,
      "quiet": False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestParser(TestCLIBase):
  """Test cases for build_parser."""

  def test_options_after_command(self) -> None:
    """Options are accepted after the command."""
    args = build_parser().parse_args(
      ["pull", "abc", "-p", ".production.env", "--name", "prod", "-c", "cfg.json", "-u", "https://h.test", "-q"]
    )

    assert args.command == "pull"
    assert args.secret == "abc"
    assert args.path == ".production.env"
    assert args.name == "prod"
    assert args.config == "cfg.json"
    assert args.base_url == "https://h.test"
    assert args.quiet is True

  def test_defaults(self) -> None:
    """Defaults match the documented CLI surface."""
    args = build_parser().parse_args(["push"])

    assert args.config == "envs.json"
    assert args.path == ".env"
    assert args.name is None
    assert args.read_path == "/env/read-cli/{secret}"
    assert args.create_path == "/env/create-cli"
    assert args.push_path == "/env/push-cli/{secret}"
    assert args.list_path == "/env/list-cli/{project}/{category}"
    assert args.overwrite is False

  def test_init_positionals(self) -> None:
    """init takes a project and a category."""
    args = build_parser().parse_args(["init", "proj", "backend", "--overwrite"])

    assert (args.project, args.category, args.overwrite) == ("proj", "backend", True)
    assert args.func is handle_init


class TestHandlers(TestCLIBase):
  """Test cases for the command handlers."""

  def test_handle_init(self) -> None:
    """init forwards the positionals."""
    handle_init(self.create_args(), self.mock_app)

    self.mock_sync_manager.init.assert_called_once_with("proj", "backend")

  def test_handle_create(self) -> None:
    """create runs the create flow."""
    handle_create(self.create_args(), self.mock_app)

    self.mock_sync_manager.create.assert_called_once_with()

  def test_handle_push(self) -> None:
    """push runs the push flow."""
    handle_push(self.create_args(), self.mock_app)

    self.mock_sync_manager.push.assert_called_once_with()

  def test_handle_pull_multi(self) -> None:
    """pull without a secret pulls every entry."""
    handle_pull(self.create_args(secret=None), self.mock_app)

    self.mock_sync_manager.pull.assert_called_once_with()
    self.mock_sync_manager.pull_single.assert_not_called()

  def test_handle_pull_blank_secret_is_multi(self) -> None:
    """A blank secret argument is treated as no secret."""
    handle_pull(self.create_args(secret="   "), self.mock_app)

    self.mock_sync_manager.pull.assert_called_once_with()

  def test_handle_pull_single(self) -> None:
    """pull <secret> uses the configured path and name."""
    self.mock_app.config.single_pull_path = "deploy/.env"
    self.mock_app.config.map_name = "deploy"

    handle_pull(self.create_args(secret=" abc "), self.mock_app)

    self.mock_sync_manager.pull_single.assert_called_once_with("abc", "deploy/.env", "deploy")

  @patch("poyesis_env.cli.sys.exit")
  def test_handle_create_missing_secret_exits_1(self, mock_exit: Mock) -> None:
    """A fatal remote error is logged with a traceback and exits 1."""
    self.mock_sync_manager.create.side_effect = MissingFieldError('API did not return a "secret" for .env')

    handle_create(self.create_args(), self.mock_app)

    self.mock_logger.error.assert_called_once()
    assert ".env" in self.mock_logger.error.call_args.args[0]
    assert self.mock_logger.error.call_args.kwargs["exc_info"] is True
    mock_exit.assert_called_once_with(EXIT_ERROR)

  @patch("poyesis_env.cli.sys.exit")
  def test_handle_push_http_error_exits_1(self, mock_exit: Mock) -> None:
    """HTTP failures abort push."""
    self.mock_sync_manager.push.side_effect = HttpStatusError(500, "Server Error", "oops", "https://h/p")

    handle_push(self.create_args(), self.mock_app)

    assert "HTTP 500" in self.mock_logger.error.call_args.args[0]
    mock_exit.assert_called_once_with(EXIT_ERROR)

  @patch("poyesis_env.cli.sys.exit")
  def test_handle_init_error_exits_1(self, mock_exit: Mock) -> None:
    """Any unhandled exception exits 1."""
    self.mock_sync_manager.init.side_effect = RuntimeError("disk full")

    handle_init(self.create_args(), self.mock_app)

    mock_exit.assert_called_once_with(EXIT_ERROR)


class TestMainExitCodes:
  """Test exit codes of main."""

  def test_no_command_prints_help_and_exits_2(self, capsys: pytest.CaptureFixture) -> None:
    """Running without a command shows help and exits 2."""
    with pytest.raises(SystemExit) as exc_info:
      main([])

    assert exc_info.value.code == EXIT_USAGE
    assert "usage: poyesis-env" in capsys.readouterr().out

  def test_unknown_command_exits_2(self) -> None:
    """An unknown verb is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
      main(["sync"])

    assert exc_info.value.code == EXIT_USAGE

  def test_init_missing_positional_exits_2(self) -> None:
    """init without a category is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
      main(["init", "proj"])

    assert exc_info.value.code == EXIT_USAGE

  def test_invalid_base_url_exits_2(self) -> None:
    """Configuration errors are usage errors."""
    with pytest.raises(SystemExit) as exc_info:
      main(["pull", "--base-url", "ftp://nope"])

    assert exc_info.value.code == EXIT_USAGE

  @patch("poyesis_env.cli.AppManager")
  def test_main_dispatches_with_explicit_config(self, mock_app_class: Mock) -> None:
    """main builds one configuration and hands it to the app manager."""
    mock_app_class.return_value.sync_manager.pull_single.return_value = SyncReport()

    main(["pull", "abc", "--path", "x.env", "--name", "x", "-u", "https://h.test/"])

    config = mock_app_class.call_args.args[0]
    assert config.base_url == "https://h.test"
    assert config.single_pull_path == "x.env"
    assert config.map_name == "x"
    mock_app_class.return_value.sync_manager.pull_single.assert_called_once()


class TestEndToEnd:
  """Run main against a mocked HTTP session in a temporary directory."""

  @pytest.fixture
  def session(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Patch requests.Session and chdir into tmp_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("POYESIS_ENV_BASE_URL", raising=False)
    with patch("poyesis_env.secret_clients.http.requests.Session") as mock_session_class:
      yield mock_session_class.return_value

  @staticmethod
  def respond(session: Mock, body: Any, status: int = 200) -> None:
    response = Mock()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.text = json.dumps(body)
    response.json.return_value = body
    session.request.return_value = response

  def test_pull_single_end_to_end(self, session: Mock, tmp_path: Path) -> None:
    """pull <secret> writes .env and records it in envs.json."""
    self.respond(session, {"env": "A=1"})

    main(["pull", "abc", "-q"])

    assert (tmp_path / ".env").read_text() == "A=1"
    assert os.stat(tmp_path / ".env").st_mode & 0o777 == 0o600
    assert json.loads((tmp_path / "envs.json").read_text()) == {
      "project": "",
      "envs": [{"name": ".env", "secret": "abc"}],
    }
    assert session.request.call_args.args == ("GET", "https://api.poyesis.fr/env/read-cli/abc")

  def test_create_end_to_end(self, session: Mock, tmp_path: Path) -> None:
    """create registers a local .env and saves the secret."""
    (tmp_path / ".env").write_text("A=1")
    self.respond(session, {"secret": "xyz"})

    main(["create", "-q"])

    assert json.loads((tmp_path / "envs.json").read_text()) == {
      "project": "",
      "envs": [{"name": ".env", "secret": "xyz"}],
    }

  def test_http_error_exits_1(self, session: Mock, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    """A non-2xx response terminates with exit code 1 and a diagnostic on stderr."""
    (tmp_path / "envs.json").write_text(json.dumps([{"name": ".env", "secret": "s1"}]))
    self.respond(session, {"error": "nope"}, status=403)

    with pytest.raises(SystemExit) as exc_info:
      main(["pull"])

    assert exc_info.value.code == EXIT_ERROR
    assert "HTTP 403" in capsys.readouterr().err
    assert not (tmp_path / ".env").exists()
