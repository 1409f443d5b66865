"""Identifier and storage key utilities."""

from __future__ import annotations

import re
import secrets
import string
import unicodedata
import uuid

_NAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def generate_nanoid(size: int = 16) -> str:
  """Return a short non-sequential id suitable for public references."""
  alphabet = string.ascii_lowercase + string.digits
  return "".join(secrets.choice(alphabet) for _ in range(size))


def generate_download_token() -> str:
  """Return a token for Firebase-style public download URLs."""
  return str(uuid.uuid4())


def sanitize_file_name(file_name: str, *, fallback: str = "file") -> str:
  """Reduce a client-supplied file name to a safe single path segment."""
  # Drop any directory components a browser or client may have sent.
  base = (file_name or "").replace("\\", "/").rsplit("/", 1)[-1]
  ascii_name = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
  sanitized = _NAME_UNSAFE_RE.sub("-", ascii_name).strip("-_.")
  return sanitized or fallback


def make_blob_key(prefix: str, file_name: str, *, epoch_ms: int, token: str | None = None) -> str:
  """Build a collision-resistant blob key: {prefix}/{epoch_ms}_{token}_{name}."""
  token = token or generate_nanoid(10)
  return f"{prefix.strip('/')}/{epoch_ms}_{token}_{sanitize_file_name(file_name)}"
