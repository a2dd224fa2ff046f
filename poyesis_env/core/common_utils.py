import json
from typing import Any
from urllib.parse import quote


class UtilsError(Exception):
  """Parsing and templating related errors."""

  pass


class CommonUtils:
  """
  Utility class for parsing JSON strings and building request paths.

  Provides methods to parse JSON and fill path templates with error handling.
  """

  @staticmethod
  def parse_json(source: str, json_str: str) -> Any:
    """Parse JSON, naming the source in the error."""
    try:
      return json.loads(json_str)
    except json.JSONDecodeError as e:
      raise UtilsError(f"Invalid {source} JSON: {e}") from None

  @staticmethod
  def ensure_leading_slash(path: str) -> str:
    """Return path with exactly one guaranteed leading slash."""
    return path if path.startswith("/") else f"/{path}"

  @staticmethod
  def render_path(template: str, **values: str) -> str:
    """
    Fill {placeholder} tokens in a path template with URL-encoded values.

    Args:
        template: Path template such as "/env/read-cli/{secret}"
        **values: Placeholder values, e.g. secret="abc"

    Returns:
        str: Rendered path, always starting with "/"

    Raises:
        UtilsError: If a value is empty
    """
    rendered = template
    for key, value in values.items():
      if value is None or str(value) == "":
        raise UtilsError(f"Empty value for path placeholder '{key}' in '{template}'")
      rendered = rendered.replace(f"{{{key}}}", quote(str(value), safe=""))
    return CommonUtils.ensure_leading_slash(rendered)
