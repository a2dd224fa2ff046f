from typing import Optional

from ..core.scanner import EnvFileScanner
from ..secret_clients.base import SecretClientBase
from ..secret_clients.http import HttpSecretClient
from .config import EnvSyncConfig
from .log_manager import ComponentLoggerAdapter, EnvSyncLogger
from .mapping_store import MappingStore
from .sync_manager import SyncManager


class AppManager:
  def __init__(
    self,
    config: EnvSyncConfig,
    log_manager: Optional[EnvSyncLogger] = None,
  ) -> None:
    """
    A service locator for the components of one CLI invocation.

    Components are created lazily and share the configuration and the log
    manager they were built from. One instance is created per invocation
    and passed explicitly to the command handlers.

    Args:
      config: The configuration built from the CLI arguments.
      log_manager: Optional pre-built log manager.
    """
    self.config = config
    self._log_manager = log_manager or EnvSyncLogger(quiet=config.quiet, debug=config.debug)

    # Lazy Load
    self._mapping_store: Optional[MappingStore] = None
    self._scanner: Optional[EnvFileScanner] = None
    self._secret_client: Optional[SecretClientBase] = None
    self._sync_manager: Optional[SyncManager] = None

  @property
  def log_manager(self) -> EnvSyncLogger:
    return self._log_manager

  @property
  def mapping_store(self) -> MappingStore:
    """Get fully configured MappingStore instance."""
    if self._mapping_store is None:
      self._mapping_store = MappingStore(self._log_manager)
    return self._mapping_store

  @property
  def scanner(self) -> EnvFileScanner:
    """Get fully configured EnvFileScanner instance."""
    if self._scanner is None:
      self._scanner = EnvFileScanner(self._log_manager)
    return self._scanner

  @property
  def secret_client(self) -> SecretClientBase:
    """Get fully configured secret client instance."""
    if self._secret_client is None:
      self._secret_client = HttpSecretClient(self.config, self._log_manager)
    return self._secret_client

  @secret_client.setter
  def secret_client(self, client: SecretClientBase) -> None:
    self._secret_client = client
    self._sync_manager = None

  @property
  def sync_manager(self) -> SyncManager:
    """Get fully configured SyncManager instance."""
    if self._sync_manager is None:
      self._sync_manager = SyncManager(
        self.config,
        self.mapping_store,
        self.scanner,
        self.secret_client,
        self._log_manager,
      )
    return self._sync_manager

  def get_logger(
    self,
    name: Optional[str] = None,
    component: Optional[str] = None,
  ) -> ComponentLoggerAdapter:
    """
    Get fully configured logger instance.
    Args:
        name: Optional logger name
        component: Optional component name for logging
    Returns:
        ComponentLoggerAdapter: Configured logger instance
    """
    return self._log_manager.get_logger(
      name=name,
      component=component,
    )
