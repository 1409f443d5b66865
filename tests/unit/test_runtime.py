"""Runtime teardown lets started annotations finish their store and view patches."""

from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import MagicMock

import pytest

from homework_gallery.config import get_settings
from homework_gallery.schema.connection import ConnectionConfig
from homework_gallery.schema.homework import Annotation
from homework_gallery.services.runtime import STORE_PATCH_MARGIN_SECONDS, GalleryRuntime, build_runtime
from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import ViewState
from tests.fakes import FakeBlobStore, FakeConnection, FakeUpload, ReachableRecordStore


class _SlowAnnotator:
  def __init__(self, delay: float) -> None:
    self.delay = delay

  async def annotate(self, image_bytes: bytes, mime_type: str) -> Annotation:
    await asyncio.sleep(self.delay)
    return Annotation(subject="Math", summary="Long division.", comment="Keep it up!")


@pytest.mark.anyio
async def test_close_waits_for_slow_annotation_to_patch_store_and_view() -> None:
  records = ReachableRecordStore()
  view = ViewState()
  workflow = SubmissionWorkflow(records=records, blobs=FakeBlobStore(), annotator=_SlowAnnotator(0.2), view=view)
  connection = FakeConnection(ConnectionConfig(api_key="k", project_id="demo"))
  runtime = GalleryRuntime(connection=connection, repository=records, blobs=FakeBlobStore(), workflow=workflow, drain_timeout_seconds=5.0)

  record = await workflow.submit("Ada", FakeUpload(b"img"))
  await runtime.close()

  assert records.updates == [(record.id, Annotation(subject="Math", summary="Long division.", comment="Keep it up!"), False)]
  assert records.records[record.id].is_annotating is False
  assert view.get(record.id).is_annotating is False
  assert connection.closed is True


def test_drain_bound_covers_model_timeout_plus_store_write() -> None:
  settings = dataclasses.replace(get_settings(), annotation_timeout_seconds=30.0)
  connection = MagicMock()
  connection.config = ConnectionConfig(api_key="k", project_id="demo")

  runtime = build_runtime(connection, settings=settings, view=ViewState(), annotator=_SlowAnnotator(0))

  assert runtime.drain_timeout_seconds == 30.0 + STORE_PATCH_MARGIN_SECONDS
  assert runtime.drain_timeout_seconds > settings.annotation_timeout_seconds
