"""Submission workflow: persist blob, persist record, surface it, then annotate in the background."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Collection
from typing import Protocol

from homework_gallery.core.errors import FileReadError, GalleryError, StoreError, SubmissionRejectedError
from homework_gallery.schema.homework import DEFAULT_ALLOWED_MIME_TYPES, FALLBACK_ANNOTATION, Annotation, FileKind, HomeworkRecord
from homework_gallery.services.annotation_tasks import AnnotationTaskRegistry
from homework_gallery.services.view_state import Screen, ViewState

logger = logging.getLogger(__name__)


class UploadedFile(Protocol):
  """The slice of starlette's UploadFile the workflow relies on."""

  filename: str | None
  content_type: str | None

  async def read(self) -> bytes: ...


class RecordStore(Protocol):
  async def list_all(self) -> list[HomeworkRecord]: ...

  async def create(self, record: HomeworkRecord) -> str: ...

  async def update_annotation(self, record_id: str, annotation: Annotation | None, *, is_annotating: bool) -> None: ...

  async def delete(self, record_id: str) -> None: ...


class BlobStorage(Protocol):
  async def put_blob(self, data: bytes, file_name: str, content_type: str | None = None) -> str: ...

  async def delete_blob(self, location: str) -> None: ...


class Annotator(Protocol):
  async def annotate(self, image_bytes: bytes, mime_type: str) -> Annotation: ...


def _now_millis() -> int:
  return int(time.time() * 1000)


def _base_mime_type(content_type: str | None) -> str:
  """Lowercase a Content-Type and drop parameters such as `; charset=...`."""
  return (content_type or "").split(";", 1)[0].strip().lower()


class SubmissionWorkflow:
  """Coordinate uploads, deletes, and background annotation against one view."""

  def __init__(
    self,
    *,
    records: RecordStore,
    blobs: BlobStorage,
    annotator: Annotator,
    view: ViewState,
    tasks: AnnotationTaskRegistry | None = None,
    max_upload_bytes: int = 5 * 1024 * 1024,
    allowed_mime_types: Collection[str] = DEFAULT_ALLOWED_MIME_TYPES,
    clock: Callable[[], int] = _now_millis,
  ) -> None:
    self._records = records
    self._blobs = blobs
    self._annotator = annotator
    self._view = view
    self._tasks = tasks or AnnotationTaskRegistry()
    self._max_upload_bytes = max_upload_bytes
    self._allowed_mime_types = frozenset(item.lower() for item in allowed_mime_types)
    self._clock = clock

  @property
  def view(self) -> ViewState:
    return self._view

  @property
  def tasks(self) -> AnnotationTaskRegistry:
    return self._tasks

  async def load_gallery(self) -> list[HomeworkRecord]:
    """Rebuild the view from the store."""
    records = await self._records.list_all()
    self._view.replace_all(records)
    logger.info("Gallery loaded with %d record(s).", len(records))
    return records

  async def settle_stale_annotations(self) -> list[str]:
    """Give the fallback annotation to loaded records left in flight by an earlier process.

    Only records with no annotation task in this registry are touched. Each
    gets one store patch and one view patch; a failed store patch is logged
    and the view is patched anyway.
    """
    live = set(self._tasks.pending_ids())
    stale = [record.id for record in self._view.records if record.is_annotating and record.id and record.id not in live]
    for record_id in stale:
      try:
        await self._records.update_annotation(record_id, FALLBACK_ANNOTATION, is_annotating=False)
      except StoreError as exc:
        logger.error("Settling stale annotation for %s failed; view updated locally only: %s", record_id, exc.message)
      self._view.patch_by_id(record_id, annotation=FALLBACK_ANNOTATION, is_annotating=False)

    if stale:
      logger.warning("Settled %d annotation(s) interrupted by a previous run.", len(stale))
    return stale

  async def submit(self, student_name: str, upload: UploadedFile) -> HomeworkRecord:
    """Persist a submission and return once the record is visible.

    Annotation of image submissions continues in a detached task after this
    returns. Any failure before the record exists aborts the whole submission.
    """
    try:
      record, data = await self._persist(student_name, upload)
    except GalleryError as exc:
      self._view.notify(f"Upload failed: {exc.message}", level="error")
      raise

    self._view.insert_front(record)
    self._view.set_screen(Screen.GALLERY)
    self._view.notify("Homework uploaded!", level="success")

    if record.file_kind is FileKind.IMAGE:
      mime_type = upload.content_type or "application/octet-stream"
      self._tasks.spawn(record.id, self._annotate_and_patch(record.id, data, mime_type))

    return record

  async def _persist(self, student_name: str, upload: UploadedFile) -> tuple[HomeworkRecord, bytes]:
    name = (student_name or "").strip()
    if not name:
      raise SubmissionRejectedError("Student name is required.")

    file_name = upload.filename or "upload"
    mime_type = _base_mime_type(upload.content_type)
    if mime_type not in self._allowed_mime_types:
      raise SubmissionRejectedError("Please upload an image (JPG, PNG, WebP), a PDF, or a Word document.", status_code=415)

    try:
      data = await upload.read()
    except Exception as exc:
      logger.warning("Reading upload %s failed: %s", file_name, exc)
      raise FileReadError("The file could not be read.") from exc

    if not data:
      raise SubmissionRejectedError("The file is empty.")
    if len(data) > self._max_upload_bytes:
      raise SubmissionRejectedError(f"Files must be smaller than {self._max_upload_bytes // (1024 * 1024)}MB.", status_code=413)

    file_kind = FileKind.from_mime_type(upload.content_type)
    location = await self._blobs.put_blob(data, file_name, upload.content_type)

    pending = HomeworkRecord(
      student_name=name,
      original_file_name=file_name,
      file_kind=file_kind,
      content_location=location,
      uploaded_at_millis=self._clock(),
      is_annotating=file_kind is FileKind.IMAGE,
    )
    try:
      record_id = await self._records.create(pending)
    except StoreError:
      await self._discard_blob(location)
      raise

    return dataclasses.replace(pending, id=record_id), data

  async def _discard_blob(self, location: str) -> None:
    # Best effort: the record failure is what the caller sees.
    try:
      await self._blobs.delete_blob(location)
    except StoreError as exc:
      logger.warning("Orphaned blob %s left behind: %s", location, exc.message)

  async def _annotate_and_patch(self, record_id: str, data: bytes, mime_type: str) -> None:
    """Annotate once, persist the result, and patch the view regardless of persistence outcome."""
    try:
      annotation = await self._annotator.annotate(data, mime_type)
    except Exception:
      logger.exception("Annotator raised for %s; using fallback.", record_id)
      annotation = FALLBACK_ANNOTATION

    try:
      await self._records.update_annotation(record_id, annotation, is_annotating=False)
    except StoreError as exc:
      logger.error("Persisting annotation for %s failed; view updated locally only: %s", record_id, exc.message)

    self._view.patch_by_id(record_id, annotation=annotation, is_annotating=False)

  async def delete(self, record_id: str) -> None:
    """Delete from the store first; the view changes only after confirmation."""
    try:
      await self._records.delete(record_id)
    except StoreError as exc:
      self._view.notify(f"Delete failed: {exc.message}", level="error")
      raise

    self._view.remove_by_id(record_id)
    self._view.notify("Homework deleted.", level="success")
