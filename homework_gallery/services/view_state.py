"""In-memory projection of the gallery plus session mode.

Every mutator is a plain synchronous method, so on the event loop each one is
atomic with respect to other coroutines; observers never see a half-applied
patch.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from homework_gallery.schema.homework import HomeworkRecord

logger = logging.getLogger(__name__)

NotificationLevel = Literal["info", "success", "error"]
_PATCHABLE_FIELDS = {"annotation", "is_annotating"}


class Screen(str, Enum):
  """Active screen selector."""

  GALLERY = "GALLERY"
  UPLOAD = "UPLOAD"
  LOGIN = "LOGIN"
  SETUP = "SETUP"


@dataclass(frozen=True)
class Notification:
  message: str
  level: NotificationLevel
  expires_at_millis: int


@dataclass(frozen=True)
class ViewSnapshot:
  """Immutable copy of the view for rendering or serialization."""

  records: tuple[HomeworkRecord, ...]
  screen: Screen
  is_admin: bool
  notification: Notification | None


def _now_millis() -> int:
  return int(time.time() * 1000)


class ViewState:
  """Ordered records (newest first), current screen, admin flag, and one notification."""

  def __init__(self, *, screen: Screen = Screen.GALLERY, default_notification_millis: int = 3000, clock: Callable[[], int] = _now_millis) -> None:
    self._records: list[HomeworkRecord] = []
    self._screen = screen
    self._is_admin = False
    self._notification: Notification | None = None
    self._default_notification_millis = default_notification_millis
    self._clock = clock

  @property
  def records(self) -> tuple[HomeworkRecord, ...]:
    return tuple(self._records)

  @property
  def screen(self) -> Screen:
    return self._screen

  @property
  def is_admin(self) -> bool:
    return self._is_admin

  def get(self, record_id: str) -> HomeworkRecord | None:
    for record in self._records:
      if record.id == record_id:
        return record
    return None

  def replace_all(self, records: Iterable[HomeworkRecord]) -> None:
    """Rebuild the record list wholesale, as on initial load."""
    self._records = list(records)

  def insert_front(self, record: HomeworkRecord) -> None:
    self._records.insert(0, record)

  def patch_by_id(self, record_id: str, **fields: Any) -> bool:
    """Apply annotation-related fields to one record; an absent id is a no-op."""
    unknown = set(fields) - _PATCHABLE_FIELDS
    if unknown:
      raise ValueError(f"Only {sorted(_PATCHABLE_FIELDS)} may be patched, got {sorted(unknown)}.")

    for index, record in enumerate(self._records):
      if record.id == record_id:
        self._records[index] = dataclasses.replace(record, **fields)
        return True

    logger.debug("Patch for absent record %s ignored.", record_id)
    return False

  def remove_by_id(self, record_id: str) -> bool:
    for index, record in enumerate(self._records):
      if record.id == record_id:
        del self._records[index]
        return True
    return False

  def clear_records(self) -> None:
    self._records = []

  def set_screen(self, screen: Screen) -> None:
    self._screen = screen

  def set_admin(self, is_admin: bool) -> None:
    self._is_admin = is_admin

  def notify(self, message: str, auto_dismiss_millis: int | None = None, *, level: NotificationLevel = "info") -> Notification:
    """Replace the current notification with a short-lived one."""
    ttl = self._default_notification_millis if auto_dismiss_millis is None else auto_dismiss_millis
    self._notification = Notification(message=message, level=level, expires_at_millis=self._clock() + ttl)
    return self._notification

  def active_notification(self, now_millis: int | None = None) -> Notification | None:
    """Return the notification unless it has auto-dismissed."""
    notification = self._notification
    if notification is None:
      return None
    now = self._clock() if now_millis is None else now_millis
    if now >= notification.expires_at_millis:
      self._notification = None
      return None
    return notification

  def snapshot(self) -> ViewSnapshot:
    return ViewSnapshot(records=tuple(self._records), screen=self._screen, is_admin=self._is_admin, notification=self.active_notification())
