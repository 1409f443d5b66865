"""Wiring of store, blob, and AI clients built from one validated connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from homework_gallery.ai.annotation import AnnotationClient
from homework_gallery.config import Settings
from homework_gallery.core.firebase import FirebaseConnection
from homework_gallery.services.annotation_tasks import AnnotationTaskRegistry
from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import ViewState
from homework_gallery.storage.blob_store import BlobStore
from homework_gallery.storage.homework_repo import HomeworkRepository

logger = logging.getLogger(__name__)

# Headroom beyond the model timeout for the store write that follows it.
STORE_PATCH_MARGIN_SECONDS = 15.0


@dataclass
class GalleryRuntime:
  """Everything constructed from one connection; replaced wholesale on reconfiguration."""

  connection: FirebaseConnection
  repository: HomeworkRepository
  blobs: BlobStore
  workflow: SubmissionWorkflow
  drain_timeout_seconds: float | None = None

  async def close(self) -> None:
    """Let in-flight annotations settle, then release the Firebase app.

    The drain bound outlasts one model call plus its store write, so a started
    annotation is only cancelled if the store itself hangs. None waits for all.
    """
    await self.workflow.tasks.drain(timeout=self.drain_timeout_seconds)
    self.connection.close()


def build_runtime(connection: FirebaseConnection, *, settings: Settings, view: ViewState, annotator: AnnotationClient | None = None) -> GalleryRuntime:
  """Construct the adapters and workflow for a freshly opened connection."""
  repository = HomeworkRepository(connection.firestore)
  blobs = BlobStore(connection.bucket)
  workflow = SubmissionWorkflow(
    records=repository,
    blobs=blobs,
    annotator=annotator or AnnotationClient.from_settings(settings),
    view=view,
    tasks=AnnotationTaskRegistry(),
    max_upload_bytes=settings.max_upload_bytes,
    allowed_mime_types=settings.allowed_mime_types,
  )
  logger.info("Runtime built for project %s (bucket %s).", connection.config.project_id, connection.config.bucket_name)
  drain_timeout_seconds = settings.annotation_timeout_seconds + STORE_PATCH_MARGIN_SECONDS
  return GalleryRuntime(connection=connection, repository=repository, blobs=blobs, workflow=workflow, drain_timeout_seconds=drain_timeout_seconds)
