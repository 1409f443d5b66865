"""Setup routes: connect, inspect, and reset the store configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from homework_gallery.api.deps import get_setup_service
from homework_gallery.api.models import SetupRequest, SetupStatusOut
from homework_gallery.services.setup import ConnectionSetupService

router = APIRouter()


def _status(setup: ConnectionSetupService) -> SetupStatusOut:
  runtime = setup.runtime
  if runtime is None:
    return SetupStatusOut(configured=False)
  config = runtime.connection.config
  return SetupStatusOut(configured=True, project_id=config.project_id, storage_bucket=config.bucket_name)


@router.get("", response_model=SetupStatusOut)
async def get_setup_status(setup: ConnectionSetupService = Depends(get_setup_service)) -> SetupStatusOut:  # noqa: B008
  return _status(setup)


@router.post("", response_model=SetupStatusOut)
async def configure_connection(payload: SetupRequest, setup: ConnectionSetupService = Depends(get_setup_service)) -> SetupStatusOut:  # noqa: B008
  """Validate, test, persist, and activate a pasted Firebase config."""
  await setup.configure(payload.snippet)
  return _status(setup)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def reset_connection(setup: ConnectionSetupService = Depends(get_setup_service)) -> Response:  # noqa: B008
  await setup.reset()
  return Response(status_code=status.HTTP_204_NO_CONTENT)
