"""Local persistence for the single active connection configuration."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from homework_gallery.core.errors import ConnectionConfigError
from homework_gallery.schema.connection import ConnectionConfig, validate_connection_payload

logger = logging.getLogger(__name__)


class ConnectionStore:
  """Persist one connection config as JSON so it survives restarts."""

  def __init__(self, path: Path) -> None:
    self._path = path

  @property
  def path(self) -> Path:
    return self._path

  def load(self) -> ConnectionConfig | None:
    """Return the stored config, or None when absent or unreadable."""
    if not self._path.is_file():
      return None

    try:
      payload = json.loads(self._path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
      logger.warning("Ignoring unreadable connection config at %s: %s", self._path, exc)
      return None

    if not isinstance(payload, dict):
      logger.warning("Ignoring malformed connection config at %s.", self._path)
      return None

    try:
      return validate_connection_payload(payload)
    except ConnectionConfigError as exc:
      logger.warning("Ignoring invalid connection config at %s: %s", self._path, exc.message)
      return None

  def save(self, config: ConnectionConfig) -> None:
    """Write the config atomically, replacing any previous one."""
    self._path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(config.to_stored(), indent=2, sort_keys=True), encoding="utf-8")
    os.replace(tmp_path, self._path)
    logger.info("Saved connection config for project %s to %s.", config.project_id, self._path)

  def clear(self) -> bool:
    """Remove the stored config; returns whether one existed."""
    try:
      self._path.unlink()
    except FileNotFoundError:
      return False
    logger.info("Cleared connection config at %s.", self._path)
    return True
