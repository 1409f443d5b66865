"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from homework_gallery.schema.homework import DEFAULT_ALLOWED_MIME_TYPES
from homework_gallery.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_DEFAULT_ORIGINS = "http://localhost:5173"
_FIVE_MEGABYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
  """Typed settings for the homework gallery service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_dir: Path
  log_max_bytes: int
  log_backup_count: int
  connection_path: Path
  max_upload_bytes: int
  allowed_mime_types: tuple[str, ...]
  admin_password: str
  gemini_api_key: str | None
  gemini_model: str
  annotation_timeout_seconds: float
  annotation_language: str
  notification_millis: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  origins = [origin.strip() for origin in (raw or _DEFAULT_ORIGINS).split(",") if origin.strip()]

  if not origins:
    raise ValueError("HOMEWORK_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("HOMEWORK_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_mime_types(raw: str | None) -> tuple[str, ...]:
  if raw is None or not raw.strip():
    return DEFAULT_ALLOWED_MIME_TYPES

  mime_types = tuple(dict.fromkeys(item.strip().lower() for item in raw.split(",") if item.strip()))
  if any("/" not in item or "*" in item for item in mime_types):
    raise ValueError("HOMEWORK_ALLOWED_MIME_TYPES must list exact types such as image/png.")

  return mime_types


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("HOMEWORK_ENV", "development").lower()
  debug = _parse_bool(os.getenv("HOMEWORK_DEBUG"))

  log_max_bytes = _positive_int("HOMEWORK_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("HOMEWORK_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("HOMEWORK_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Uploads are capped at 5MB unless overridden.
  max_upload_bytes = _positive_int("HOMEWORK_MAX_UPLOAD_BYTES", str(_FIVE_MEGABYTES))

  annotation_timeout_seconds = float(os.getenv("HOMEWORK_ANNOTATION_TIMEOUT_SECONDS", "30"))
  if annotation_timeout_seconds <= 0:
    raise ValueError("HOMEWORK_ANNOTATION_TIMEOUT_SECONDS must be positive.")

  admin_password = os.getenv("HOMEWORK_ADMIN_PASSWORD", "teacher123")
  if not admin_password:
    raise ValueError("HOMEWORK_ADMIN_PASSWORD must not be empty.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("HOMEWORK_ALLOWED_ORIGINS")),
    debug=debug,
    log_dir=Path(os.getenv("HOMEWORK_LOG_DIR", "./logs")).expanduser(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    connection_path=Path(os.getenv("HOMEWORK_CONNECTION_PATH", "./data/connection.json")).expanduser(),
    max_upload_bytes=max_upload_bytes,
    allowed_mime_types=_parse_mime_types(os.getenv("HOMEWORK_ALLOWED_MIME_TYPES")),
    admin_password=admin_password,
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=(os.getenv("HOMEWORK_GEMINI_MODEL") or "gemini-2.5-flash").strip(),
    annotation_timeout_seconds=annotation_timeout_seconds,
    annotation_language=(os.getenv("HOMEWORK_ANNOTATION_LANGUAGE") or "English").strip(),
    notification_millis=_positive_int("HOMEWORK_NOTIFICATION_MILLIS", "3000"),
  )
