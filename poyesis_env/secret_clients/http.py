"""
Poyesis Env - HTTP Secret Client

Talks to the Poyesis env API over HTTPS with JSON bodies.
"""

from typing import Any, Optional

import requests

from ..core.common_utils import CommonUtils, UtilsError
from ..managers.config import EnvSyncConfig
from ..managers.log_manager import EnvSyncLogger
from .base import (
  HttpStatusError,
  MissingFieldError,
  NetworkError,
  RemoteEnvRecord,
  SecretClientBase,
  SecretClientError,
)


class HttpSecretClient(SecretClientBase):
  """
  Secret client backed by a requests.Session.

  Paths come from the configuration and are templated with {project},
  {category} and {secret}.
  """

  def __init__(
    self,
    config: EnvSyncConfig,
    log_manager: EnvSyncLogger,
    session: Optional[requests.Session] = None,
  ) -> None:
    super().__init__(log_manager)
    self.logger = log_manager.get_logger(name="secret_clients", component="http")
    self.base_url = config.base_url or ""
    self.list_path = config.list_path
    self.read_path = config.read_path
    self.create_path = config.create_path
    self.push_path = config.push_path
    self.timeout = config.timeout
    self._session = session or requests.Session()

  def _url(self, template: str, **values: str) -> str:
    try:
      return f"{self.base_url}{CommonUtils.render_path(template, **values)}"
    except UtilsError as e:
      raise SecretClientError(str(e)) from None

  def _request(self, method: str, url: str, payload: Optional[dict[str, Any]] = None) -> Any:
    """
    Perform one JSON exchange.

    Returns:
        Decoded JSON body, or {} for an empty or non-JSON success body

    Raises:
        HttpStatusError: On a non-2xx status
        NetworkError: If the request could not be completed
    """
    headers = {"Accept": "application/json"}
    if payload is not None:
      headers["Content-Type"] = "application/json"

    try:
      resp = self._session.request(method, url, headers=headers, json=payload, timeout=self.timeout)
    except requests.RequestException as e:
      raise NetworkError(f"{method} {url} failed: {e}") from e

    if not 200 <= resp.status_code < 300:
      raise HttpStatusError(resp.status_code, resp.reason or "", resp.text or "", url)

    if not resp.text:
      return {}
    try:
      return resp.json()
    except ValueError:
      self.logger.debug(f"{method} {url} returned a non-JSON body, ignoring it")
      return {}

  def list_envs(self, project: str, category: str) -> list[RemoteEnvRecord]:
    url = self._url(self.list_path, project=project, category=category)
    self.logger.info(f"GET {url}")
    records = self.normalize_list(self._request("GET", url))
    self.logger.debug(f"Remote listed {len(records)} envs for {project}/{category}")
    return records

  def read(self, secret: str) -> str:
    url = self._url(self.read_path, secret=secret)
    self.logger.info(f"GET {url}")
    data = self._request("GET", url)
    env = data.get("env") if isinstance(data, dict) else None
    return env if isinstance(env, str) else ""

  def create(self, name: str, text: str, project: Optional[str] = None) -> str:
    url = self._url(self.create_path)
    self.logger.info(f'POST {url} (name="{name}")')
    payload: dict[str, Any] = {"name": name, "env": text}
    if project:
      payload = {"project": project, **payload}
    data = self._request("POST", url, payload)
    secret = data.get("secret") if isinstance(data, dict) else None
    if secret is None or str(secret) == "":
      raise MissingFieldError(f'API did not return a "secret" for {name}')
    return str(secret)

  def push(self, secret: str, text: str) -> None:
    url = self._url(self.push_path, secret=secret)
    self.logger.info(f"PUT {url}")
    self._request("PUT", url, {"env": text})
