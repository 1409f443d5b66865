from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from homework_gallery.schema.homework import FileKind, HomeworkRecord
from homework_gallery.services.view_state import Notification, Screen, ViewSnapshot


class ApiModel(BaseModel):
  """Base model that speaks camelCase on the wire."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnnotationOut(ApiModel):
  subject: str
  summary: str
  comment: str


class HomeworkRecordOut(ApiModel):
  """Response model for one gallery entry."""

  id: str
  student_name: str
  original_file_name: str
  file_kind: FileKind
  content_location: str
  uploaded_at_millis: int
  annotation: AnnotationOut | None
  is_annotating: bool

  @classmethod
  def from_record(cls, record: HomeworkRecord) -> HomeworkRecordOut:
    annotation = None
    if record.annotation is not None:
      annotation = AnnotationOut(subject=record.annotation.subject, summary=record.annotation.summary, comment=record.annotation.comment)
    return cls(
      id=record.id or "",
      student_name=record.student_name,
      original_file_name=record.original_file_name,
      file_kind=record.file_kind,
      content_location=record.content_location,
      uploaded_at_millis=record.uploaded_at_millis,
      annotation=annotation,
      is_annotating=record.is_annotating,
    )


class NotificationOut(ApiModel):
  message: str
  level: str
  expires_at_millis: int

  @classmethod
  def from_notification(cls, notification: Notification) -> NotificationOut:
    return cls(message=notification.message, level=notification.level, expires_at_millis=notification.expires_at_millis)


class SessionOut(ApiModel):
  """Screen, admin flag, active notification, and the ordered records."""

  screen: Screen
  is_admin: bool
  notification: NotificationOut | None
  records: list[HomeworkRecordOut]

  @classmethod
  def from_snapshot(cls, snapshot: ViewSnapshot) -> SessionOut:
    notification = NotificationOut.from_notification(snapshot.notification) if snapshot.notification else None
    return cls(screen=snapshot.screen, is_admin=snapshot.is_admin, notification=notification, records=[HomeworkRecordOut.from_record(record) for record in snapshot.records])


class SetupStatusOut(ApiModel):
  configured: bool
  project_id: str | None = None
  storage_bucket: str | None = None


class SetupRequest(ApiModel):
  """The Firebase config block pasted from the console."""

  snippet: str = Field(min_length=1, max_length=10_000)


class ScreenRequest(ApiModel):
  screen: Screen


class LoginRequest(ApiModel):
  password: str = Field(min_length=1, max_length=256)
