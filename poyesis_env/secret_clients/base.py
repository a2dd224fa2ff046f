"""
Poyesis Env - Secret Client Base Class

Abstract base class defining the remote operations the sync engine relies on,
plus the error taxonomy and the canonical record type for listed envs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..managers.log_manager import EnvSyncLogger


class SecretClientError(Exception):
  """Base exception for remote secret operations."""

  pass


class NetworkError(SecretClientError):
  """Transport-level errors (connection, DNS, timeout)."""

  pass


class HttpStatusError(SecretClientError):
  """Non-2xx response from the remote API."""

  def __init__(self, status: int, reason: str, body: str, url: str) -> None:
    self.status = status
    self.reason = reason
    self.body = body
    self.url = url
    message = f"HTTP {status} {reason} for {url}"
    if body:
      message = f"{message}\n{body}"
    super().__init__(message)


class MissingFieldError(SecretClientError):
  """A required field is absent from a remote response."""

  pass


@dataclass(frozen=True)
class RemoteEnvRecord:
  """One env as listed by the remote catalogue."""

  name: str
  secret: Optional[str] = None
  env: Optional[str] = None

  @property
  def has_content(self) -> bool:
    return bool(self.env)

  @classmethod
  def from_dict(cls, data: Any) -> Optional["RemoteEnvRecord"]:
    """
    Normalize one raw list item.

    Returns:
        RemoteEnvRecord, or None when the item has no usable name
    """
    if not isinstance(data, dict):
      return None
    name = data.get("name")
    if name is None or not str(name).strip():
      return None
    secret = data.get("secret")
    env = data.get("env")
    return cls(
      name=str(name),
      secret=str(secret) if secret not in (None, "") else None,
      env=env if isinstance(env, str) else None,
    )


class SecretClientBase(ABC):
  """
  Abstract base class for remote secret storage clients.

  Every method is a single request/response exchange. Failures raise
  SecretClientError subclasses and are never retried.
  """

  def __init__(self, log_manager: EnvSyncLogger) -> None:
    self.logger = log_manager.get_logger(name="secret_clients", component="base")

  @staticmethod
  def normalize_list(payload: Any) -> list[RemoteEnvRecord]:
    """
    Convert a list response into records.

    Accepts a bare array or {"envs": [...]}; anything else yields no records.
    """
    if isinstance(payload, dict):
      payload = payload.get("envs")
    if not isinstance(payload, list):
      return []
    records = []
    for item in payload:
      record = RemoteEnvRecord.from_dict(item)
      if record is not None:
        records.append(record)
    return records

  @abstractmethod
  def list_envs(self, project: str, category: str) -> list[RemoteEnvRecord]:
    """
    Fetch the remote catalogue for a project/category.

    Returns:
        list[RemoteEnvRecord]: Named records, possibly without inline content
    """
    raise NotImplementedError

  @abstractmethod
  def read(self, secret: str) -> str:
    """
    Fetch raw file content for a secret.

    Returns:
        str: The content, or "" when the remote returned none
    """
    raise NotImplementedError

  @abstractmethod
  def create(self, name: str, text: str, project: Optional[str] = None) -> str:
    """
    Register new content.

    Returns:
        str: The secret assigned by the remote

    Raises:
        MissingFieldError: If the response carries no secret
    """
    raise NotImplementedError

  @abstractmethod
  def push(self, secret: str, text: str) -> None:
    """Overwrite remote content stored under an existing secret."""
    raise NotImplementedError

  def __repr__(self) -> str:
    """String representation of the secret client."""
    return f"{self.__class__.__name__}"
