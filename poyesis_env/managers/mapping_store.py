"""
Poyesis Env - Mapping Store

Loads and persists the envs.json document that maps local env file names to
remote secrets. Provides merge/upsert operations that keep entries unique by
name and sorted for deterministic diffs.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ..core.common_utils import CommonUtils, UtilsError
from ..core.file_utils import FileUtils, FileUtilsError
from .log_manager import EnvSyncLogger

LOAD_STATUS_LOADED = "loaded"
LOAD_STATUS_MISSING = "missing"
LOAD_STATUS_INVALID = "invalid"


class MappingStoreError(Exception):
  """Mapping persistence related errors."""

  pass


@dataclass(frozen=True)
class MappingEntry:
  """One local file name and the remote secret it is bound to."""

  name: str
  secret: str = ""

  @property
  def has_secret(self) -> bool:
    return bool(self.secret and self.secret.strip())

  def to_dict(self) -> dict[str, str]:
    return {"name": self.name, "secret": self.secret or ""}


@dataclass(frozen=True)
class MappingDocument:
  """The full envs.json content: project binding plus entries."""

  project: str = ""
  entries: tuple[MappingEntry, ...] = field(default_factory=tuple)

  @property
  def is_empty(self) -> bool:
    return not self.entries

  @property
  def names(self) -> list[str]:
    return [entry.name for entry in self.entries]

  def get(self, name: str) -> Optional[MappingEntry]:
    for entry in self.entries:
      if entry.name == name:
        return entry
    return None

  def to_dict(self) -> dict[str, Any]:
    return {
      "project": self.project or "",
      "envs": [entry.to_dict() for entry in _sorted_entries(self.entries)],
    }


@dataclass(frozen=True)
class MappingLoadResult:
  """Outcome of a lenient load: always a document, plus why it may be empty."""

  document: MappingDocument
  status: str = LOAD_STATUS_LOADED
  error: str = ""

  @property
  def is_invalid(self) -> bool:
    return self.status == LOAD_STATUS_INVALID


def _sorted_entries(entries: Iterable[MappingEntry]) -> tuple[MappingEntry, ...]:
  return tuple(sorted(entries, key=lambda entry: entry.name))


def _coerce_secret(value: Any) -> str:
  if value is None:
    return ""
  return str(value)


class MappingStore:
  """
  Reads, writes and transforms mapping documents.

  The store is the only writer of the mapping file. Every save replaces the
  whole file; upsert and merge return new documents and never remove entries.
  """

  def __init__(self, log_manager: EnvSyncLogger) -> None:
    self.logger = log_manager.get_logger(name="managers", component="mapping")

  def parse(self, data: Any) -> MappingDocument:
    """
    Build a document from decoded JSON.

    Accepts {"project": str, "envs": [...]} or a bare [...] list. Items
    without a name are dropped with a warning.

    Raises:
        MappingStoreError: If the JSON has neither shape
    """
    if isinstance(data, list):
      project = ""
      raw_entries = data
    elif isinstance(data, dict):
      project = data.get("project") or ""
      raw_entries = data.get("envs") or []
      if not isinstance(project, str):
        raise MappingStoreError(f"'project' must be a string, got {type(project).__name__}")
      if not isinstance(raw_entries, list):
        raise MappingStoreError(f"'envs' must be a list, got {type(raw_entries).__name__}")
    else:
      raise MappingStoreError("expected an object with 'envs' or an array of { name, secret }")

    entries: dict[str, MappingEntry] = {}
    nameless = 0
    for item in raw_entries:
      if not isinstance(item, dict):
        continue
      name = item.get("name")
      name = "" if name is None else str(name)
      if not name.strip():
        nameless += 1
        continue
      # Last duplicate wins
      entries[name] = MappingEntry(name=name, secret=_coerce_secret(item.get("secret")))

    if nameless:
      self.logger.warning(f"dropping {nameless} mapping entries without a \"name\"")

    return MappingDocument(project=project, entries=_sorted_entries(entries.values()))

  def load(self, path: Union[str, Path]) -> MappingLoadResult:
    """
    Load the mapping file without ever raising.

    Args:
        path: Path to envs.json

    Returns:
        MappingLoadResult: The document (empty when missing or invalid) and its status
    """
    mapping_path = Path(path)
    try:
      raw = FileUtils.read_text(mapping_path)
    except FileUtilsError as e:
      self.logger.debug(f"Could not read {mapping_path}: {e}")
      return MappingLoadResult(MappingDocument(), LOAD_STATUS_INVALID, str(e))

    if raw is None:
      self.logger.debug(f"Mapping file {mapping_path} not found, starting empty")
      return MappingLoadResult(MappingDocument(), LOAD_STATUS_MISSING)

    try:
      document = self.parse(CommonUtils.parse_json(str(mapping_path), raw))
    except (UtilsError, MappingStoreError) as e:
      self.logger.debug(f"Ignoring unparsable mapping file {mapping_path}: {e}")
      return MappingLoadResult(MappingDocument(), LOAD_STATUS_INVALID, str(e))

    self.logger.debug(f"Loaded {len(document.entries)} entries from {mapping_path}")
    return MappingLoadResult(document)

  def save(self, path: Union[str, Path], document: MappingDocument) -> Path:
    """
    Replace the mapping file with the given document.

    Raises:
        MappingStoreError: If the file cannot be written
    """
    text = json.dumps(document.to_dict(), indent=2) + "\n"
    try:
      written = FileUtils.write_text_atomically(path, text, mode=0o644)
    except FileUtilsError as e:
      raise MappingStoreError(f"Failed to save mapping: {e}") from None
    self.logger.debug(f"Saved {len(document.entries)} entries to {written}")
    return written

  @staticmethod
  def upsert(document: MappingDocument, name: str, secret: str) -> MappingDocument:
    """
    Set the secret for name, appending the entry if it does not exist.

    Raises:
        MappingStoreError: If name is empty
    """
    if not name:
      raise MappingStoreError("Cannot upsert an entry without a name")
    updated = [entry for entry in document.entries if entry.name != name]
    updated.append(MappingEntry(name=name, secret=_coerce_secret(secret)))
    return MappingDocument(project=document.project, entries=_sorted_entries(updated))

  @staticmethod
  def merge(document: MappingDocument, discovered_names: Iterable[str]) -> MappingDocument:
    """Add every discovered name that is not mapped yet, with an empty secret."""
    known = set(document.names)
    added = []
    for name in discovered_names:
      if name and name not in known:
        known.add(name)
        added.append(MappingEntry(name=name, secret=""))
    return MappingDocument(project=document.project, entries=_sorted_entries([*document.entries, *added]))

  @staticmethod
  def with_project(document: MappingDocument, project: str) -> MappingDocument:
    """Return the document bound to another project."""
    return MappingDocument(project=project or "", entries=document.entries)

  def require_entries(self, result: MappingLoadResult, command: str, path: Union[str, Path]) -> bool:
    """
    Strict check for commands that only work from an existing mapping.

    Returns:
        bool: False (after a warning) when there is nothing to act on
    """
    self.report_invalid(result, command, path)
    if result.document.is_empty:
      self.logger.warning(f"{command}: no entries in {path}, nothing to do")
      return False
    return True

  def report_invalid(self, result: MappingLoadResult, command: str, path: Union[str, Path]) -> None:
    """Warn when a mapping file exists but could not be parsed."""
    if result.is_invalid:
      self.logger.warning(f"{command}: could not parse {path}, treating it as empty ({result.error})")
