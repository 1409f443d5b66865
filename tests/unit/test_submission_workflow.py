"""Behavioral tests for the upload, annotate, and delete workflow."""

from __future__ import annotations

import asyncio

import pytest

from homework_gallery.core.errors import FileReadError, PermissionDeniedError, RecordNotFoundError, StoreUnavailableError, SubmissionRejectedError
from homework_gallery.schema.homework import DEFAULT_ALLOWED_MIME_TYPES, FALLBACK_ANNOTATION, Annotation, FileKind, HomeworkRecord
from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import Screen, ViewState
from tests.fakes import FakeRecordStore, FakeUpload


async def _until(predicate, attempts: int = 200) -> None:
  for _ in range(attempts):
    if predicate():
      return
    await asyncio.sleep(0)
  raise AssertionError("condition never became true")


@pytest.mark.anyio
async def test_image_submission_is_visible_before_annotation_settles(workflow, records, view, annotator):
  release = annotator.gate(b"img", Annotation(subject="Science", summary="A volcano diagram.", comment="Lovely colors!"))

  record = await workflow.submit("Ada", FakeUpload(b"img"))

  assert record.id == "rec-1"
  assert record.file_kind is FileKind.IMAGE
  assert record.is_annotating is True
  assert view.records[0].id == record.id
  assert view.records[0].annotation is None
  assert view.screen is Screen.GALLERY
  assert view.active_notification().message == "Homework uploaded!"

  release.set()
  await workflow.tasks.drain()

  patched = view.get(record.id)
  assert patched.is_annotating is False
  assert patched.annotation.subject == "Science"
  assert records.updates == [(record.id, patched.annotation, False)]
  assert records.records[record.id].annotation == patched.annotation


@pytest.mark.anyio
async def test_non_image_submission_never_annotates(workflow, records, view, annotator):
  record = await workflow.submit("Ada", FakeUpload(b"%PDF-1.4", filename="essay.pdf", content_type="application/pdf"))

  assert record.file_kind is FileKind.PDF
  assert record.is_annotating is False
  assert workflow.tasks.pending_ids() == []
  await workflow.tasks.drain()
  assert annotator.calls == []
  assert records.updates == []
  assert view.get(record.id).annotation is None


@pytest.mark.anyio
async def test_word_and_unknown_kinds_are_derived_from_mime_type(records, blobs, annotator, view):
  workflow = SubmissionWorkflow(records=records, blobs=blobs, annotator=annotator, view=view, allowed_mime_types=[*DEFAULT_ALLOWED_MIME_TYPES, "text/plain"])
  word = await workflow.submit("Ada", FakeUpload(b"doc", filename="notes.docx", content_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document"))
  unknown = await workflow.submit("Ada", FakeUpload(b"txt", filename="notes.txt", content_type="text/plain"))

  assert word.file_kind is FileKind.WORD
  assert unknown.file_kind is FileKind.UNKNOWN


@pytest.mark.anyio
async def test_annotations_settle_out_of_order_without_clobbering(workflow, view, annotator):
  first_gate = annotator.gate(b"first", Annotation(subject="Math", summary="Long division.", comment="Keep it up!"))
  second_gate = annotator.gate(b"second", Annotation(subject="Art", summary="A landscape sketch.", comment="Beautiful shading!"))

  first = await workflow.submit("Ada", FakeUpload(b"first"))
  second = await workflow.submit("Grace", FakeUpload(b"second"))
  assert [record.id for record in view.records] == [second.id, first.id]

  second_gate.set()
  await _until(lambda: view.get(second.id).is_annotating is False)
  assert view.get(second.id).annotation.subject == "Art"
  assert view.get(first.id).is_annotating is True
  assert view.get(first.id).annotation is None

  first_gate.set()
  await workflow.tasks.drain()
  assert view.get(first.id).annotation.subject == "Math"
  assert view.get(second.id).annotation.subject == "Art"
  assert [record.id for record in view.records] == [second.id, first.id]


@pytest.mark.anyio
async def test_failed_annotation_persists_fallback(records, blobs, view):
  class _Exploding:
    async def annotate(self, image_bytes, mime_type):
      raise RuntimeError("model offline")

  workflow = SubmissionWorkflow(records=records, blobs=blobs, annotator=_Exploding(), view=view)
  record = await workflow.submit("Ada", FakeUpload(b"img"))
  await workflow.tasks.drain()

  assert view.get(record.id).annotation == FALLBACK_ANNOTATION
  assert records.records[record.id].annotation == FALLBACK_ANNOTATION
  assert records.records[record.id].is_annotating is False


@pytest.mark.anyio
async def test_annotation_update_failure_still_patches_view(workflow, records, view):
  record = await workflow.submit("Ada", FakeUpload(b"img"))
  records.fail_update = StoreUnavailableError("offline")

  await workflow.tasks.drain()

  assert view.get(record.id).is_annotating is False
  assert view.get(record.id).annotation.subject == "Math"
  # The store keeps the in-flight flag it was created with.
  assert records.records[record.id].is_annotating is True


@pytest.mark.anyio
async def test_deleted_record_ignores_late_annotation(workflow, records, view, annotator):
  release = annotator.gate(b"img", Annotation(subject="Math", summary="Sums.", comment="Nice!"))
  record = await workflow.submit("Ada", FakeUpload(b"img"))
  view.remove_by_id(record.id)

  release.set()
  await workflow.tasks.drain()

  assert view.get(record.id) is None
  assert view.records == ()


@pytest.mark.anyio
async def test_blob_failure_aborts_without_record(workflow, records, blobs, view):
  blobs.fail_put = PermissionDeniedError("Permission denied during upload.")

  with pytest.raises(PermissionDeniedError):
    await workflow.submit("Ada", FakeUpload(b"img"))

  assert records.records == {}
  assert view.records == ()
  assert view.active_notification().message.startswith("Upload failed:")
  assert view.active_notification().level == "error"
  assert workflow.tasks.pending_ids() == []


@pytest.mark.anyio
async def test_record_failure_discards_uploaded_blob(workflow, records, blobs, view):
  records.fail_create = StoreUnavailableError("Could not reach the store during create.")

  with pytest.raises(StoreUnavailableError):
    await workflow.submit("Ada", FakeUpload(b"img"))

  assert len(blobs.deleted) == 1
  assert blobs.blobs == {}
  assert view.records == ()


@pytest.mark.anyio
async def test_unreadable_file_is_a_read_error(workflow, blobs, view):
  with pytest.raises(FileReadError):
    await workflow.submit("Ada", FakeUpload(b"", error=OSError("disk gone")))

  assert blobs.blobs == {}
  assert view.records == ()


@pytest.mark.anyio
async def test_blank_student_name_is_rejected(workflow, blobs):
  with pytest.raises(SubmissionRejectedError):
    await workflow.submit("   ", FakeUpload(b"img"))
  assert blobs.blobs == {}


@pytest.mark.anyio
async def test_oversized_file_is_rejected_with_413(workflow, blobs):
  with pytest.raises(SubmissionRejectedError) as excinfo:
    await workflow.submit("Ada", FakeUpload(b"x" * 2048))
  assert excinfo.value.status_code == 413
  assert blobs.blobs == {}


@pytest.mark.anyio
async def test_student_name_is_trimmed(workflow):
  record = await workflow.submit("  Ada Lovelace ", FakeUpload(b"%PDF", filename="a.pdf", content_type="application/pdf"))
  assert record.student_name == "Ada Lovelace"


@pytest.mark.anyio
async def test_annotation_is_spawned_once_per_record(workflow):
  record = await workflow.submit("Ada", FakeUpload(b"img"))

  async def _noop() -> None:
    return None

  with pytest.raises(RuntimeError):
    workflow.tasks.spawn(record.id, _noop())
  await workflow.tasks.drain()


@pytest.mark.anyio
async def test_load_gallery_orders_newest_first(blobs, annotator):
  older = HomeworkRecord(student_name="Ada", original_file_name="a.png", file_kind=FileKind.IMAGE, content_location="loc-a", uploaded_at_millis=100, id="a")
  newer = HomeworkRecord(student_name="Grace", original_file_name="b.pdf", file_kind=FileKind.PDF, content_location="loc-b", uploaded_at_millis=200, id="b")
  view = ViewState()
  workflow = SubmissionWorkflow(records=FakeRecordStore([older, newer]), blobs=blobs, annotator=annotator, view=view)

  loaded = await workflow.load_gallery()

  assert [record.id for record in loaded] == ["b", "a"]
  assert [record.id for record in view.records] == ["b", "a"]


@pytest.mark.anyio
async def test_delete_removes_only_after_store_confirms(workflow, records, view):
  record = await workflow.submit("Ada", FakeUpload(b"%PDF", filename="a.pdf", content_type="application/pdf"))
  records.fail_delete = StoreUnavailableError("offline")

  with pytest.raises(StoreUnavailableError):
    await workflow.delete(record.id)
  assert view.get(record.id) is not None
  assert view.active_notification().message.startswith("Delete failed:")

  records.fail_delete = None
  await workflow.delete(record.id)
  assert view.get(record.id) is None
  assert record.id not in records.records
  assert view.active_notification().message == "Homework deleted."


@pytest.mark.anyio
async def test_delete_of_missing_record_leaves_view_untouched(workflow, view):
  record = await workflow.submit("Ada", FakeUpload(b"%PDF", filename="a.pdf", content_type="application/pdf"))

  with pytest.raises(RecordNotFoundError):
    await workflow.delete("ghost")
  assert [item.id for item in view.records] == [record.id]


@pytest.mark.anyio
async def test_blob_and_record_both_hold_content_location(workflow, records, blobs):
  record = await workflow.submit("Ada", FakeUpload(b"img", filename="volcano.png"))
  assert record.content_location in blobs.blobs
  assert records.records[record.id].content_location == record.content_location
  await workflow.tasks.drain()


@pytest.mark.anyio
@pytest.mark.parametrize(("file_name", "content_type"), [("virus.exe", "application/x-msdownload"), ("drawing.svg", "image/svg+xml"), ("notes.txt", "text/plain"), ("blob", None)])
async def test_disallowed_file_types_are_rejected_before_upload(workflow, records, blobs, view, file_name, content_type):
  with pytest.raises(SubmissionRejectedError) as excinfo:
    await workflow.submit("Ada", FakeUpload(b"PK\x03\x04", filename=file_name, content_type=content_type))

  assert excinfo.value.status_code == 415
  assert blobs.blobs == {}
  assert records.records == {}
  assert view.records == ()
  assert view.active_notification().message.startswith("Upload failed:")


@pytest.mark.anyio
async def test_content_type_parameters_and_case_are_ignored(workflow):
  record = await workflow.submit("Ada", FakeUpload(b"%PDF", filename="a.pdf", content_type="Application/PDF; charset=binary"))
  assert record.file_kind is FileKind.PDF


@pytest.mark.anyio
async def test_stale_in_flight_records_get_the_fallback(blobs, annotator):
  stale = HomeworkRecord(student_name="Ada", original_file_name="a.png", file_kind=FileKind.IMAGE, content_location="loc-a", uploaded_at_millis=100, is_annotating=True, id="a")
  done = HomeworkRecord(student_name="Grace", original_file_name="b.png", file_kind=FileKind.IMAGE, content_location="loc-b", uploaded_at_millis=200, annotation=Annotation(subject="Art", summary="A sketch.", comment="Lovely!"), id="b")
  records = FakeRecordStore([stale, done])
  view = ViewState()
  workflow = SubmissionWorkflow(records=records, blobs=blobs, annotator=annotator, view=view)

  await workflow.load_gallery()
  settled = await workflow.settle_stale_annotations()

  assert settled == ["a"]
  assert records.updates == [("a", FALLBACK_ANNOTATION, False)]
  assert view.get("a").annotation == FALLBACK_ANNOTATION
  assert view.get("a").is_annotating is False
  assert view.get("b").annotation.subject == "Art"


@pytest.mark.anyio
async def test_settling_skips_records_with_a_live_task(workflow, records, view, annotator):
  release = annotator.gate(b"img", Annotation(subject="Math", summary="Sums.", comment="Nice!"))
  record = await workflow.submit("Ada", FakeUpload(b"img"))

  assert await workflow.settle_stale_annotations() == []
  assert records.updates == []

  release.set()
  await workflow.tasks.drain()
  assert view.get(record.id).annotation.subject == "Math"
