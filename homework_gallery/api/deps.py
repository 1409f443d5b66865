"""Shared FastAPI dependencies for the gallery routes."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from homework_gallery.services.setup import ConnectionSetupService
from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import ViewState


def get_setup_service(request: Request) -> ConnectionSetupService:
  """Return the process-wide setup service installed by the lifespan."""
  return request.app.state.setup


def get_view(setup: ConnectionSetupService = Depends(get_setup_service)) -> ViewState:  # noqa: B008
  return setup.view


def get_workflow(setup: ConnectionSetupService = Depends(get_setup_service)) -> SubmissionWorkflow:  # noqa: B008
  """Resolve the active workflow; 503 until a connection is configured."""
  return setup.require_runtime().workflow


def require_admin(view: ViewState = Depends(get_view)) -> None:  # noqa: B008
  """Allow the call only while teacher mode is on."""
  if not view.is_admin:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher mode required")
