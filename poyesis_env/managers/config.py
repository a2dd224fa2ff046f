"""
Poyesis Env - Configuration

Single configuration object built once from CLI arguments and passed
explicitly to every component.
"""

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "https://api.poyesis.fr"
DEFAULT_CONFIG_PATH = "envs.json"
DEFAULT_LIST_PATH = "/env/list-cli/{project}/{category}"
DEFAULT_READ_PATH = "/env/read-cli/{secret}"
DEFAULT_CREATE_PATH = "/env/create-cli"
DEFAULT_PUSH_PATH = "/env/push-cli/{secret}"
DEFAULT_SINGLE_PULL_PATH = ".env"


class EnvSyncConfigError(Exception):
  """EnvSyncConfig-related errors."""

  pass


@dataclass
class EnvSyncConfig:
  """Runtime settings for one invocation."""

  config_path: str = DEFAULT_CONFIG_PATH
  base_url: Optional[str] = None
  list_path: str = DEFAULT_LIST_PATH
  read_path: str = DEFAULT_READ_PATH
  create_path: str = DEFAULT_CREATE_PATH
  push_path: str = DEFAULT_PUSH_PATH
  overwrite: bool = False
  single_pull_path: str = DEFAULT_SINGLE_PULL_PATH
  map_name: Optional[str] = None
  quiet: bool = False
  debug: bool = False
  scan_root: str = "."
  timeout: Optional[float] = field(default=None)

  def __post_init__(self) -> None:
    """Apply environment fallbacks and validate after dataclass creation."""
    base_url = self.base_url or os.getenv("POYESIS_ENV_BASE_URL") or DEFAULT_BASE_URL
    self.base_url = base_url.rstrip("/")
    if not self.base_url.startswith(("http://", "https://")):
      raise EnvSyncConfigError(f"base_url must be an http(s) URL: {base_url}")

    if self.timeout is None:
      raw_timeout = os.getenv("POYESIS_ENV_TIMEOUT", "")
      if raw_timeout:
        try:
          self.timeout = float(raw_timeout)
        except ValueError:
          raise EnvSyncConfigError(f"Invalid POYESIS_ENV_TIMEOUT: {raw_timeout}") from None
    if self.timeout is not None and self.timeout <= 0:
      raise EnvSyncConfigError(f"timeout must be positive: {self.timeout}")

    if not self.config_path:
      raise EnvSyncConfigError("config_path cannot be empty")
    if not self.single_pull_path:
      raise EnvSyncConfigError("path cannot be empty")
    for option, template in (
      ("list_path", self.list_path),
      ("read_path", self.read_path),
      ("create_path", self.create_path),
      ("push_path", self.push_path),
    ):
      if not template:
        raise EnvSyncConfigError(f"{option} cannot be empty")

  @property
  def mapping_path(self) -> Path:
    """Absolute path of the envs.json mapping file."""
    return Path(self.config_path).resolve()

  @classmethod
  def from_args(cls, args: argparse.Namespace) -> "EnvSyncConfig":
    """Build the configuration from parsed CLI arguments."""
    return cls(
      config_path=getattr(args, "config", None) or DEFAULT_CONFIG_PATH,
      base_url=getattr(args, "base_url", None),
      list_path=getattr(args, "list_path", None) or DEFAULT_LIST_PATH,
      read_path=getattr(args, "read_path", None) or DEFAULT_READ_PATH,
      create_path=getattr(args, "create_path", None) or DEFAULT_CREATE_PATH,
      push_path=getattr(args, "push_path", None) or DEFAULT_PUSH_PATH,
      overwrite=bool(getattr(args, "overwrite", False)),
      single_pull_path=getattr(args, "path", None) or DEFAULT_SINGLE_PULL_PATH,
      map_name=getattr(args, "name", None) or None,
      quiet=bool(getattr(args, "quiet", False)),
      debug=bool(getattr(args, "debug", False)),
    )
