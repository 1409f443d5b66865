"""Domain models for homework records and their AI annotations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FileKind(str, Enum):
  """Coarse file category derived from the upload MIME type."""

  IMAGE = "IMAGE"
  PDF = "PDF"
  WORD = "WORD"
  UNKNOWN = "UNKNOWN"

  @classmethod
  def from_mime_type(cls, mime_type: str | None) -> FileKind:
    """Classify a MIME type by substring, checked in image, pdf, word order."""
    normalized = (mime_type or "").lower()
    if "image" in normalized:
      return cls.IMAGE
    if "pdf" in normalized:
      return cls.PDF
    if "word" in normalized:
      return cls.WORD
    return cls.UNKNOWN


@dataclass(frozen=True)
class Annotation:
  """AI-derived subject, summary and short comment, always set as a trio."""

  subject: str
  summary: str
  comment: str


FALLBACK_ANNOTATION = Annotation(subject="general", summary="submitted file", comment="received")

COLLECTION_NAME = "homeworks"

# Upload types accepted by the classroom form: JPG, PNG, WebP, PDF and Word.
DEFAULT_ALLOWED_MIME_TYPES = (
  "image/jpeg",
  "image/png",
  "image/webp",
  "application/pdf",
  "application/msword",
  "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

# Firestore document field names.
F_STUDENT_NAME = "studentName"
F_FILE_NAME = "originalFileName"
F_FILE_KIND = "fileKind"
F_CONTENT_LOCATION = "contentLocation"
F_UPLOADED_AT = "uploadedAtMillis"
F_IS_ANNOTATING = "isAnnotating"
F_SUBJECT = "subject"
F_SUMMARY = "summary"
F_AI_COMMENT = "aiComment"

# Field names written by the first version of the gallery, read as fallbacks.
LEGACY_FIELDS = {
  F_FILE_NAME: "fileName",
  F_FILE_KIND: "fileType",
  F_CONTENT_LOCATION: "dataUrl",
  F_UPLOADED_AT: "uploadDate",
  F_IS_ANNOTATING: "isAnalyzing",
}


def _field(data: dict[str, Any], name: str, default: Any = None) -> Any:
  value = data.get(name)
  if value is None and name in LEGACY_FIELDS:
    value = data.get(LEGACY_FIELDS[name])
  return default if value is None else value


@dataclass(frozen=True)
class HomeworkRecord:
  """One student's submitted-homework metadata entry."""

  student_name: str
  original_file_name: str
  file_kind: FileKind
  content_location: str
  uploaded_at_millis: int
  annotation: Annotation | None = None
  is_annotating: bool = False
  id: str | None = None

  def to_document(self) -> dict[str, Any]:
    """Serialize creation fields into a Firestore document payload."""
    document: dict[str, Any] = {
      F_STUDENT_NAME: self.student_name,
      F_FILE_NAME: self.original_file_name,
      F_FILE_KIND: self.file_kind.value,
      F_CONTENT_LOCATION: self.content_location,
      F_UPLOADED_AT: self.uploaded_at_millis,
      F_IS_ANNOTATING: self.is_annotating,
    }
    if self.annotation is not None:
      document.update(annotation_fields(self.annotation))
    return document

  @classmethod
  def from_document(cls, record_id: str, data: dict[str, Any]) -> HomeworkRecord:
    """Build a record from a stored document.

    Missing fields fall back to the names used by the first gallery version
    (`fileName`, `fileType`, `dataUrl`, `uploadDate`, `isAnalyzing`), then to
    empty defaults.
    """
    try:
      file_kind = FileKind(str(_field(data, F_FILE_KIND) or FileKind.UNKNOWN.value))
    except ValueError:
      file_kind = FileKind.UNKNOWN

    return cls(
      id=record_id,
      student_name=str(_field(data, F_STUDENT_NAME, "")),
      original_file_name=str(_field(data, F_FILE_NAME, "")),
      file_kind=file_kind,
      content_location=str(_field(data, F_CONTENT_LOCATION, "")),
      uploaded_at_millis=int(_field(data, F_UPLOADED_AT, 0)),
      annotation=_annotation_from_document(data),
      is_annotating=bool(_field(data, F_IS_ANNOTATING, False)),
    )


def annotation_fields(annotation: Annotation) -> dict[str, str]:
  """Return the stored field trio for an annotation."""
  return {F_SUBJECT: annotation.subject, F_SUMMARY: annotation.summary, F_AI_COMMENT: annotation.comment}


def _annotation_from_document(data: dict[str, Any]) -> Annotation | None:
  # Only surface an annotation when the full trio is present.
  values = [data.get(F_SUBJECT), data.get(F_SUMMARY), data.get(F_AI_COMMENT)]
  if not all(isinstance(value, str) and value.strip() for value in values):
    return None
  subject, summary, comment = values
  return Annotation(subject=subject, summary=summary, comment=comment)
