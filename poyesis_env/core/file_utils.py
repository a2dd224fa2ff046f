"""
Poyesis Env - File Utilities

Atomic writes and owner-only permissions for env files and the mapping file.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

OWNER_READ_WRITE = 0o600


class FileUtilsError(Exception):
  """File read/write related errors."""

  pass


class FileUtils:
  @staticmethod
  def write_text_atomically(target: Union[str, Path], content: str, mode: int = OWNER_READ_WRITE) -> Path:
    """
    Writes text to a file through a temporary file and an atomic rename.

    Missing parent directories are created. The final file carries the
    requested permission bits regardless of the process umask.

    Args:
        target: Path of the file to write.
        content: Text content, written as UTF-8.
        mode: Permission bits for the written file. Defaults to 0o600.

    Returns:
        The absolute path of the written file.

    Raises:
        FileUtilsError: If the directory cannot be created or the write fails.
    """
    target_path = Path(target).resolve()
    temp_path = None
    try:
      target_path.parent.mkdir(parents=True, exist_ok=True)
      with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=target_path.parent,
        prefix=f".{target_path.name}.",
        suffix=".tmp",
        delete=False,
      ) as tmp_file:
        tmp_file.write(content)
        tmp_file.flush()
        os.fsync(tmp_file.fileno())
        temp_path = tmp_file.name
      os.chmod(temp_path, mode)
      # Atomic rename
      os.replace(temp_path, target_path)
      return target_path
    except Exception as e:
      try:
        if temp_path:
          os.unlink(temp_path)
      except OSError:
        pass
      raise FileUtilsError(f"Failed to write file '{target_path}': {e}") from e

  @staticmethod
  def read_text(source: Union[str, Path]) -> Optional[str]:
    """
    Read a UTF-8 text file.

    Returns:
        The file content, or None if the file does not exist.

    Raises:
        FileUtilsError: If the path exists but cannot be read.
    """
    source_path = Path(source)
    if not source_path.is_file():
      return None
    try:
      return source_path.read_text(encoding="utf-8")
    except OSError as e:
      raise FileUtilsError(f"Failed to read file '{source_path}': {e}") from e
