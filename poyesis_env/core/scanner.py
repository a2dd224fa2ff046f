"""
Poyesis Env - Env File Scanner

Recursively discovers local environment files (.env, .env.local,
.production.env, ...) while skipping dependency, build and hidden directories.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

from ..managers.log_manager import EnvSyncLogger

IGNORED_DIRECTORIES = frozenset(
  {
    "node_modules",
    "dist",
    "build",
    "vendor",
    "coverage",
    "target",
    "__pycache__",
    "venv",
  }
)

ENV_FILE_PATTERNS = (
  re.compile(r"^\.env(\..+)?$"),
  re.compile(r"^\..+\.env$"),
)


class ScannerError(Exception):
  """Filesystem scan related errors."""

  pass


class EnvFileScanner:
  """Read-only discovery of env files under a root directory."""

  def __init__(self, log_manager: EnvSyncLogger) -> None:
    self.logger = log_manager.get_logger(name="core", component="scanner")

  @staticmethod
  def is_env_file(basename: str) -> bool:
    """Check whether a file name looks like an env file."""
    return any(pattern.match(basename) for pattern in ENV_FILE_PATTERNS)

  @staticmethod
  def is_ignored_directory(basename: str) -> bool:
    """Check whether a directory must be pruned from the walk."""
    return basename in IGNORED_DIRECTORIES or basename.startswith(".")

  def scan(self, root_dir: Union[str, Path] = ".", cwd: Optional[Union[str, Path]] = None) -> list[str]:
    """
    Discover env files under root_dir.

    The root itself is always walked, even if its own name is hidden.

    Args:
        root_dir: Directory to walk
        cwd: Directory results are made relative to (default: current directory)

    Returns:
        list[str]: Sorted, de-duplicated POSIX paths relative to cwd

    Raises:
        ScannerError: If a directory cannot be read
    """
    root = Path(root_dir).resolve()
    base = Path(cwd).resolve() if cwd is not None else Path.cwd()

    def _raise(error: OSError) -> None:
      raise ScannerError(f"Cannot read directory '{error.filename}': {error.strerror}") from error

    found: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
      dirnames[:] = [d for d in dirnames if not self.is_ignored_directory(d)]
      for filename in filenames:
        if self.is_env_file(filename):
          relative = os.path.relpath(os.path.join(dirpath, filename), base)
          found.add(Path(relative).as_posix())

    self.logger.debug(f"Discovered {len(found)} env files under {root}")
    return sorted(found)
