"""Gallery routes: list, submit, and moderate homework entries."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from homework_gallery.api.deps import get_view, get_workflow, require_admin
from homework_gallery.api.models import HomeworkRecordOut
from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import ViewState

router = APIRouter()


@router.get("", response_model=list[HomeworkRecordOut])
async def list_homework(refresh: bool = Query(default=False), workflow: SubmissionWorkflow = Depends(get_workflow), view: ViewState = Depends(get_view)) -> list[HomeworkRecordOut]:  # noqa: B008
  """Return the gallery newest first, optionally reloading it from the store."""
  if refresh:
    await workflow.load_gallery()
  return [HomeworkRecordOut.from_record(record) for record in view.records]


@router.post("", response_model=HomeworkRecordOut, status_code=status.HTTP_201_CREATED)
async def submit_homework(student_name: str = Form(alias="studentName"), file: UploadFile = File(...), workflow: SubmissionWorkflow = Depends(get_workflow)) -> HomeworkRecordOut:  # noqa: B008
  """Store the upload and return the visible record; image annotation finishes in the background."""
  record = await workflow.submit(student_name, file)
  return HomeworkRecordOut.from_record(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_homework(record_id: str, workflow: SubmissionWorkflow = Depends(get_workflow)) -> Response:  # noqa: B008
  await workflow.delete(record_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)
