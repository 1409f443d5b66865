"""Minimal .env support so local runs pick up Firebase and Gemini settings."""

from __future__ import annotations

import os
import re
from pathlib import Path

ENV_FILE_VARIABLE = "HOMEWORK_ENV_FILE"
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def default_env_path() -> Path:
  """Return `$HOMEWORK_ENV_FILE`, or the .env next to the project root."""
  explicit = os.getenv(ENV_FILE_VARIABLE)
  if explicit:
    return Path(explicit).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(raw: str) -> tuple[str, str] | None:
  """Parse `KEY=value` (optionally `export`-prefixed); None for blanks, comments, and junk."""
  line = raw.strip()
  if not line or line.startswith("#"):
    return None
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()

  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not _KEY_RE.match(key):
    return None

  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
    quoted = value[1:-1]
    return key, quoted.replace("\\n", "\n") if value[0] == '"' else quoted

  # Unquoted values may carry a trailing ` # comment`.
  comment = re.search(r"\s#", value)
  if comment:
    value = value[: comment.start()].rstrip()
  return key, value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Export the file's variables into os.environ and return the keys that were set."""
  if not path.is_file():
    return []

  applied: list[str] = []
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = parse_env_line(raw_line)
    if parsed is None:
      continue
    key, value = parsed
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    applied.append(key)
  return applied
