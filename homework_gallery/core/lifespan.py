import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from homework_gallery.config import get_settings
from homework_gallery.core.logging import initialize_logging
from homework_gallery.services.setup import ConnectionSetupService
from homework_gallery.services.view_state import ViewState
from homework_gallery.storage.connection_store import ConnectionStore


def build_setup_service() -> ConnectionSetupService:
  """Create the view and setup service for one process."""
  settings = get_settings()
  view = ViewState(default_notification_millis=settings.notification_millis)
  return ConnectionSetupService(settings=settings, store=ConnectionStore(settings.connection_path), view=view)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, restore the stored connection, and tear it down on exit."""
  settings = get_settings()
  logger = logging.getLogger("homework_gallery.core.lifespan")

  try:
    initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # Keep serving with whatever logging is already configured.
    logger.warning("Initial logging setup failed.", exc_info=True)

  # Tests may pre-install a setup service with fakes.
  setup = getattr(app.state, "setup", None)
  if setup is None:
    setup = build_setup_service()
    app.state.setup = setup
    runtime = await setup.restore()
    if runtime is None:
      logger.info("No usable stored connection; waiting for setup.")

  yield

  await setup.shutdown()
  logger.info("Shutdown complete.")
