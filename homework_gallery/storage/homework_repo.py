"""Firestore-backed repository for homework records."""

from __future__ import annotations

import logging
from typing import Any

from google.cloud.firestore import Client as FirestoreClient
from starlette.concurrency import run_in_threadpool

from homework_gallery.core.errors import RecordNotFoundError
from homework_gallery.schema.homework import COLLECTION_NAME, F_IS_ANNOTATING, Annotation, HomeworkRecord, annotation_fields
from homework_gallery.storage.errors import translate_store_error

logger = logging.getLogger(__name__)


class HomeworkRepository:
  """CRUD over the homework collection; every call is a single non-retried request."""

  def __init__(self, client: FirestoreClient, collection_name: str = COLLECTION_NAME) -> None:
    self._client = client
    self._collection_name = collection_name

  def _collection(self) -> Any:
    return self._client.collection(self._collection_name)

  async def list_all(self) -> list[HomeworkRecord]:
    """Return every record, newest upload first."""

    def _list() -> list[HomeworkRecord]:
      # No order_by: Firestore would drop first-version documents that only carry `uploadDate`.
      return [HomeworkRecord.from_document(snapshot.id, snapshot.to_dict() or {}) for snapshot in self._collection().stream()]

    try:
      records = await run_in_threadpool(_list)
    except Exception as exc:
      raise translate_store_error(exc, operation="list") from exc

    records.sort(key=lambda record: record.uploaded_at_millis, reverse=True)
    return records

  async def create(self, record: HomeworkRecord) -> str:
    """Insert a new record and return the store-assigned id."""
    if record.id is not None:
      raise ValueError("Homework records must not carry an id before creation.")

    def _create() -> str:
      _, doc_ref = self._collection().add(record.to_document())
      return doc_ref.id

    try:
      record_id = await run_in_threadpool(_create)
    except Exception as exc:
      raise translate_store_error(exc, operation="create") from exc

    logger.info("Created homework record %s (%s).", record_id, record.file_kind.value)
    return record_id

  async def update_annotation(self, record_id: str, annotation: Annotation | None, *, is_annotating: bool) -> None:
    """Patch only the annotation trio and the in-flight flag."""
    fields: dict[str, Any] = {F_IS_ANNOTATING: is_annotating}
    if annotation is not None:
      fields.update(annotation_fields(annotation))

    def _update() -> None:
      self._collection().document(record_id).update(fields)

    try:
      await run_in_threadpool(_update)
    except Exception as exc:
      raise translate_store_error(exc, operation="update", record_id=record_id) from exc

  async def delete(self, record_id: str) -> None:
    """Delete a record; a missing id is an error, not a no-op."""

    def _delete() -> bool:
      doc_ref = self._collection().document(record_id)
      if not doc_ref.get().exists:
        return False
      doc_ref.delete()
      return True

    try:
      existed = await run_in_threadpool(_delete)
    except Exception as exc:
      raise translate_store_error(exc, operation="delete", record_id=record_id) from exc

    if not existed:
      raise RecordNotFoundError(f"Homework record {record_id} does not exist.")
    logger.info("Deleted homework record %s.", record_id)

  async def test_reachability(self) -> None:
    """Read at most one document to confirm the store is reachable and authorized."""

    def _read_one() -> None:
      list(self._collection().limit(1).stream())

    try:
      await run_in_threadpool(_read_one)
    except Exception as exc:
      error = translate_store_error(exc, operation="connection test")
      logger.warning("Connection test failed kind=%s error_type=%s", error.kind, type(exc).__name__)
      raise error from exc
