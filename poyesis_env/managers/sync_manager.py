"""
Poyesis Env - Sync Manager

Reconciles local env files, the envs.json mapping and the remote secret API.
Each command processes entries strictly in order, one remote call at a time,
and persists the mapping only at phase boundaries.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..core.file_utils import FileUtils
from ..core.scanner import EnvFileScanner
from ..secret_clients.base import RemoteEnvRecord, SecretClientBase
from .config import EnvSyncConfig
from .log_manager import EnvSyncLogger
from .mapping_store import MappingDocument, MappingStore


class SyncError(Exception):
  """Invalid sync command input."""

  pass


@dataclass
class SyncReport:
  """What a command did, entry by entry."""

  created: list[str] = field(default_factory=list)
  pushed: list[str] = field(default_factory=list)
  pulled: list[str] = field(default_factory=list)
  written: list[str] = field(default_factory=list)
  skipped: list[str] = field(default_factory=list)
  mapping_saved: bool = False


def _is_inside(root: Path, name: str) -> bool:
  """Whether name, taken relative to root, resolves to a path below root."""
  base = root.resolve()
  return base in (base / name).resolve().parents


class SyncManager:
  """
  Runs the init, create, push, pull and single-secret pull commands.

  The manager owns the in-memory mapping document for the duration of a
  command; the MappingStore is the only component that writes it to disk.
  """

  def __init__(
    self,
    config: EnvSyncConfig,
    mapping_store: MappingStore,
    scanner: EnvFileScanner,
    client: SecretClientBase,
    log_manager: EnvSyncLogger,
  ) -> None:
    self.config = config
    self.mapping_store = mapping_store
    self.scanner = scanner
    self.client = client
    self.logger = log_manager.get_logger(name="managers", component="sync")

  @property
  def mapping_path(self) -> Path:
    return self.config.mapping_path

  def _save(self, document: MappingDocument, report: SyncReport) -> None:
    self.mapping_store.save(self.mapping_path, document)
    report.mapping_saved = True
    self.logger.info(f"updated {self.config.config_path}")

  def _write_env(self, command: str, name: str, text: str) -> Path:
    written = FileUtils.write_text_atomically(name, text)
    self.logger.info(f"{command}: wrote {written} ({len(text)} bytes)")
    return written

  def _pull_to_file(self, command: str, secret: str, name: str) -> bool:
    """
    Read a secret and write its content to name.

    Returns:
        bool: False when the remote returned no content and nothing was written
    """
    env_text = self.client.read(secret)
    if not env_text:
      self.logger.warning(f"{command}: secret for {name} returned empty env, leaving local file untouched")
      return False
    self._write_env(command, name, env_text)
    return True

  def init(self, project: str, category: str) -> SyncReport:
    """
    Seed local files and the mapping from the remote catalogue.

    Existing local files are kept unless overwrite is enabled. Every listed
    record is upserted into the mapping, which is then bound to project.
    """
    if not project or not category:
      raise SyncError("init requires both a project and a category")

    report = SyncReport()
    self.logger.info(f"init: fetching envs for {project}/{category}")

    records = self.client.list_envs(project, category)
    if not records:
      self.logger.warning(f"init: no envs listed for {project}/{category}")

    resolved: list[RemoteEnvRecord] = []
    for record in records:
      if not _is_inside(Path.cwd(), record.name):
        self.logger.warning(f"init: {record.name} points outside the working directory, skipping")
        report.skipped.append(record.name)
        continue
      if not record.has_content and record.secret:
        record = RemoteEnvRecord(name=record.name, secret=record.secret, env=self.client.read(record.secret))
      resolved.append(record)

    for record in resolved:
      if not record.env:
        self.logger.warning(f"init: {record.name} has no content, not writing a file")
        report.skipped.append(record.name)
        continue
      if Path(record.name).exists() and not self.config.overwrite:
        self.logger.info(f"init: {record.name} exists locally, keeping it (use --overwrite to replace)")
        report.skipped.append(record.name)
        continue
      self._write_env("init", record.name, record.env)
      report.written.append(record.name)

    result = self.mapping_store.load(self.mapping_path)
    self.mapping_store.report_invalid(result, "init", self.config.config_path)
    document = MappingStore.with_project(result.document, project)
    for record in resolved:
      # Never clear a stored secret
      if record.secret or document.get(record.name) is None:
        document = MappingStore.upsert(document, record.name, record.secret or "")
    self._save(document, report)
    return report

  def create(self) -> SyncReport:
    """
    Register every local env file that has no secret yet.

    Discovered files are merged into the mapping and persisted before any
    remote call, then the mapping is saved again if new secrets came back.
    """
    report = SyncReport()

    discovered = self.scanner.scan(self.config.scan_root)
    self.logger.info(f"create: found {len(discovered)} env files locally")

    result = self.mapping_store.load(self.mapping_path)
    self.mapping_store.report_invalid(result, "create", self.config.config_path)
    document = MappingStore.merge(result.document, discovered)
    self._save(document, report)

    changed = False
    for entry in document.entries:
      if entry.has_secret:
        self.logger.info(f"create: {entry.name} already has a secret, skipping")
        continue

      env_text = FileUtils.read_text(entry.name)
      if env_text is None:
        self.logger.warning(f"create: {entry.name} missing locally, skipping (no file to upload)")
        report.skipped.append(entry.name)
        continue
      if not env_text.strip():
        self.logger.warning(f"create: {entry.name} is empty, skipping")
        report.skipped.append(entry.name)
        continue

      secret = self.client.create(entry.name, env_text, document.project or None)
      document = MappingStore.upsert(document, entry.name, secret)
      report.created.append(entry.name)
      changed = True
      self.logger.info(f"create: {entry.name} -> secret saved")

    if changed:
      self._save(document, report)
    return report

  def push(self) -> SyncReport:
    """Upload local content for every entry that has a secret."""
    report = SyncReport()
    result = self.mapping_store.load(self.mapping_path)
    if not self.mapping_store.require_entries(result, "push", self.config.config_path):
      return report

    for entry in result.document.entries:
      if not entry.has_secret:
        self.logger.warning(f"push: skipping {entry.name} (missing secret)")
        report.skipped.append(entry.name)
        continue

      env_text = FileUtils.read_text(entry.name)
      if env_text is None:
        self.logger.warning(f"push: {entry.name} missing locally, skipping")
        report.skipped.append(entry.name)
        continue

      self.client.push(entry.secret, env_text)
      report.pushed.append(entry.name)
      self.logger.info(f"push: {entry.name} pushed")
    return report

  def pull(self) -> SyncReport:
    """Download content for every entry that has a secret. The mapping is not rewritten."""
    report = SyncReport()
    result = self.mapping_store.load(self.mapping_path)
    if not self.mapping_store.require_entries(result, "pull", self.config.config_path):
      return report

    for entry in result.document.entries:
      if not entry.has_secret:
        self.logger.warning(f"pull: skipping {entry.name} (missing secret)")
        report.skipped.append(entry.name)
        continue
      if self._pull_to_file("pull", entry.secret, entry.name):
        report.pulled.append(entry.name)
      else:
        report.skipped.append(entry.name)
    return report

  def pull_single(self, secret: str, output_path: Optional[str] = None, map_name: Optional[str] = None) -> SyncReport:
    """
    Pull one secret into output_path and record it in the mapping.

    The mapping entry is named map_name, or output_path when not given, and
    its secret is overwritten unconditionally.
    """
    secret = (secret or "").strip()
    if not secret:
      raise SyncError("pull requires a non-empty secret")

    report = SyncReport()
    output_path = output_path or self.config.single_pull_path
    name = map_name or self.config.map_name or output_path

    self.logger.info(f"pull: single secret -> writing to {output_path}")
    if self._pull_to_file("pull", secret, output_path):
      report.pulled.append(name)
    else:
      report.skipped.append(name)

    result = self.mapping_store.load(self.mapping_path)
    self.mapping_store.report_invalid(result, "pull", self.config.config_path)
    document = MappingStore.upsert(result.document, name, secret)
    self._save(document, report)
    self.logger.info(f'pull: recorded {{ name: "{name}" }} in {self.config.config_path}')
    return report
