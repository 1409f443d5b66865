"""Validated Firebase connection configuration and snippet parsing."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from homework_gallery.core.errors import ConnectionConfigError

_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_JSON_LITERALS = {"true", "false", "null"}


class ConnectionConfig(BaseModel):
  """Firebase web config as pasted from the console, plus transport extras."""

  api_key: str = Field(alias="apiKey", min_length=1)
  project_id: str = Field(alias="projectId", min_length=1)
  auth_domain: str | None = Field(default=None, alias="authDomain")
  storage_bucket: str | None = Field(default=None, alias="storageBucket")
  messaging_sender_id: str | None = Field(default=None, alias="messagingSenderId")
  app_id: str | None = Field(default=None, alias="appId")
  measurement_id: str | None = Field(default=None, alias="measurementId")
  service_account_path: str | None = Field(default=None, alias="serviceAccountPath")
  model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True, frozen=True)

  @field_validator("messaging_sender_id", "app_id", "measurement_id", "auth_domain", "storage_bucket", "service_account_path", mode="before")
  @classmethod
  def _coerce_optional(cls, value: Any) -> Any:
    if value is None:
      return None
    text = str(value).strip()
    return text or None

  @property
  def bucket_name(self) -> str:
    """Return the configured bucket, defaulting to the project's default bucket."""
    return self.storage_bucket or f"{self.project_id}.appspot.com"

  def to_stored(self) -> dict[str, Any]:
    """Return the camelCase payload persisted on disk."""
    return self.model_dump(by_alias=True, exclude_none=True)


def parse_connection_snippet(text: str) -> ConnectionConfig:
  """Parse a pasted `const firebaseConfig = { ... };` block or plain JSON."""
  raw = text or ""
  first_brace = raw.find("{")
  last_brace = raw.rfind("}")
  if first_brace == -1 or last_brace <= first_brace:
    raise ConnectionConfigError("Could not parse the configuration. Paste the block including { ... }.")

  try:
    payload = _object_literal_to_python(raw[first_brace : last_brace + 1])
  except (json.JSONDecodeError, ValueError) as exc:
    raise ConnectionConfigError("Could not parse the configuration. Paste the block including { ... }.") from exc

  if not isinstance(payload, dict):
    raise ConnectionConfigError("Configuration must be an object.")

  return validate_connection_payload(payload)


def validate_connection_payload(payload: dict[str, Any]) -> ConnectionConfig:
  """Validate an already-decoded config mapping."""
  try:
    return ConnectionConfig.model_validate(payload)
  except ValidationError as exc:
    missing = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
    raise ConnectionConfigError(f"Invalid configuration: missing or empty {', '.join(missing)} (apiKey and projectId are required).") from exc


def _object_literal_to_python(source: str) -> Any:
  """Convert a JavaScript object literal into JSON and decode it.

  Handles bare keys, single-quoted strings, `//` and block comments, and
  trailing commas. Anything else (expressions, references) fails to decode.
  """
  out: list[str] = []
  i = 0
  n = len(source)
  while i < n:
    ch = source[i]
    if ch in "\"'":
      i, literal = _read_string(source, i)
      out.append(literal)
      continue
    if source.startswith("//", i):
      newline = source.find("\n", i)
      i = n if newline == -1 else newline
      continue
    if source.startswith("/*", i):
      end = source.find("*/", i + 2)
      if end == -1:
        raise ValueError("Unterminated comment.")
      i = end + 2
      continue
    if ch in "}]":
      # Drop a trailing comma before the closing bracket.
      while out and out[-1].isspace():
        out.pop()
      if out and out[-1] == ",":
        out.pop()
      out.append(ch)
      i += 1
      continue
    match = _IDENT_RE.match(source, i)
    if match:
      word = match.group(0)
      out.append(word if word in _JSON_LITERALS else json.dumps(word))
      i = match.end()
      continue
    out.append(ch)
    i += 1

  return json.loads("".join(out))


def _read_string(source: str, start: int) -> tuple[int, str]:
  quote = source[start]
  chars: list[str] = []
  i = start + 1
  while i < len(source):
    ch = source[i]
    if ch == "\\" and i + 1 < len(source):
      escaped = source[i + 1]
      # JSON has no \' escape; every other escape is passed through as-is.
      chars.append("'" if escaped == "'" else "\\" + escaped)
      i += 2
      continue
    if ch == quote:
      return i + 1, '"' + "".join(chars) + '"'
    chars.append('\\"' if ch == '"' else ch)
    i += 1
  raise ValueError("Unterminated string literal.")
