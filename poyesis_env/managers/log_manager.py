"""
Poyesis Env - Logging

Console output for the poyesis-env CLI: progress messages on stdout,
warnings and errors on stderr. When POYESIS_ENV_LOG_DIR is set every record
is also appended to a rotating file tagged with the emitting component.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


@dataclass
class EnvSyncLoggerConfig:
  """Logger settings."""

  log_dir: str
  log_level: str

  def __post_init__(self) -> None:
    """Initialize from environment variables after dataclass creation."""
    self.log_dir = os.getenv("POYESIS_ENV_LOG_DIR", self.log_dir)
    self.log_level = os.getenv("POYESIS_ENV_LOG_LEVEL", self.log_level)


class ComponentLoggerAdapter(logging.LoggerAdapter):
  """Tags every record with the component (sync, mapping, http, ...) that emitted it."""

  def __init__(self, logger: logging.Logger, component: str) -> None:
    super().__init__(logger, {"component": component})
    self.component = component

  def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
    kwargs.setdefault("extra", {})["component"] = self.component
    return msg, kwargs


class _BelowLevelFilter(logging.Filter):
  """Pass only records strictly below a level."""

  def __init__(self, level: int) -> None:
    super().__init__()
    self.level = level

  def filter(self, record: logging.LogRecord) -> bool:
    return record.levelno < self.level


class EnvSyncLogger:
  """
  Builds the "poyesis_env" logger tree for one CLI invocation.

  quiet mutes stdout only, so warnings about skipped entries stay visible.
  debug forces the DEBUG level over POYESIS_ENV_LOG_LEVEL.
  """

  BASE_LOGGER_NAME = "poyesis_env"
  LOG_FILE_NAME = "poyesis-env.log"
  DEFAULT_LOG_LEVEL = "INFO"
  MAX_LOG_BYTES = 5 * 1024 * 1024
  LOG_BACKUPS = 3

  CONSOLE_FORMAT = "%(message)s"
  FILE_FORMAT = "%(asctime)s %(levelname)s [%(component)s] %(name)s: %(message)s"
  DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

  def __init__(self, quiet: bool = False, debug: bool = False, console_output: bool = True) -> None:
    config = EnvSyncLoggerConfig(log_dir="", log_level=self.DEFAULT_LOG_LEVEL)
    self.log_level = "DEBUG" if debug else config.log_level.upper()
    self.log_dir = config.log_dir
    self.quiet = quiet
    self._adapters: dict[tuple[str, str], ComponentLoggerAdapter] = {}

    level = getattr(logging, self.log_level, logging.INFO)
    root = logging.getLogger(self.BASE_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
      root.removeHandler(handler)
      handler.close()

    if console_output:
      self._add_console_handlers(root, level)
    if self.log_dir:
      self._add_file_handler(root, level)

  def _add_console_handlers(self, root: logging.Logger, level: int) -> None:
    formatter = logging.Formatter(self.CONSOLE_FORMAT)

    progress = logging.StreamHandler(sys.stdout)
    progress.setLevel(logging.WARNING if self.quiet else level)
    progress.addFilter(_BelowLevelFilter(logging.WARNING))
    progress.setFormatter(formatter)

    problems = logging.StreamHandler(sys.stderr)
    problems.setLevel(logging.WARNING)
    problems.setFormatter(formatter)

    root.addHandler(progress)
    root.addHandler(problems)

  def _add_file_handler(self, root: logging.Logger, level: int) -> None:
    try:
      Path(self.log_dir).mkdir(parents=True, exist_ok=True)
      handler = logging.handlers.RotatingFileHandler(
        self.log_file_path,
        maxBytes=self.MAX_LOG_BYTES,
        backupCount=self.LOG_BACKUPS,
      )
    except OSError as e:
      print(f"Error setting up file logging: {e}", file=sys.stderr)
      return
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(self.FILE_FORMAT, self.DATE_FORMAT))
    root.addHandler(handler)

  @property
  def log_file_path(self) -> Path:
    return Path(self.log_dir) / self.LOG_FILE_NAME

  def get_logger(self, name: Optional[str], component: Optional[str]) -> ComponentLoggerAdapter:
    """
    Return the adapter for name/component, creating it on first use.

    Names are placed under the "poyesis_env" logger; the component
    defaults to "system".
    """
    name = name or self.BASE_LOGGER_NAME
    component = component or "system"
    key = (name, component)
    if key not in self._adapters:
      base = self.BASE_LOGGER_NAME
      full_name = name if name == base or name.startswith(f"{base}.") else f"{base}.{name}"
      self._adapters[key] = ComponentLoggerAdapter(logging.getLogger(full_name), component)
    return self._adapters[key]
