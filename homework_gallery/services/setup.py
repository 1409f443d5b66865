"""Connection setup: validate, test, persist, and activate a store configuration."""

from __future__ import annotations

import logging
from collections.abc import Callable

from homework_gallery.config import Settings
from homework_gallery.core.errors import ConnectionConfigError, GalleryNotConfiguredError, StoreError
from homework_gallery.core.firebase import FirebaseConnection, open_connection
from homework_gallery.schema.connection import ConnectionConfig, parse_connection_snippet
from homework_gallery.services.runtime import GalleryRuntime, build_runtime
from homework_gallery.services.view_state import Screen, ViewState
from homework_gallery.storage.connection_store import ConnectionStore
from homework_gallery.storage.errors import translate_store_error

logger = logging.getLogger(__name__)

ConnectionOpener = Callable[[ConnectionConfig], FirebaseConnection]
RuntimeBuilder = Callable[..., GalleryRuntime]


class ConnectionSetupService:
  """Own the single active runtime and its persisted configuration."""

  def __init__(self, *, settings: Settings, store: ConnectionStore, view: ViewState, opener: ConnectionOpener = open_connection, builder: RuntimeBuilder = build_runtime) -> None:
    self._settings = settings
    self._store = store
    self._view = view
    self._opener = opener
    self._builder = builder
    self._runtime: GalleryRuntime | None = None

  @property
  def runtime(self) -> GalleryRuntime | None:
    return self._runtime

  @property
  def view(self) -> ViewState:
    return self._view

  def require_runtime(self) -> GalleryRuntime:
    if self._runtime is None:
      raise GalleryNotConfiguredError("The gallery is not connected to a store yet. Complete setup first.")
    return self._runtime

  async def configure(self, snippet: str) -> GalleryRuntime:
    """Parse and test a pasted config; on success persist it and make it active."""
    try:
      config = parse_connection_snippet(snippet)
    except ConnectionConfigError as exc:
      self._view.notify(exc.message, level="error")
      raise

    try:
      runtime = await self._connect(config)
    except (ConnectionConfigError, StoreError) as exc:
      self._view.notify(f"Connection test failed: {exc.message}", level="error")
      raise

    self._store.save(config)
    self._view.notify("Connected! Loading the gallery.", level="success")
    await self._activate(runtime)
    return runtime

  async def restore(self) -> GalleryRuntime | None:
    """Reopen the persisted config at startup, if there is one."""
    config = self._store.load()
    if config is None:
      self._view.set_screen(Screen.SETUP)
      return None

    try:
      runtime = await self._connect(config)
    except (ConnectionConfigError, StoreError) as exc:
      logger.warning("Stored connection for project %s is not usable: %s", config.project_id, exc.message)
      self._view.set_screen(Screen.SETUP)
      self._view.notify(f"Stored connection failed: {exc.message}", level="error")
      return None

    await self._activate(runtime)
    return runtime

  async def reset(self) -> None:
    """Forget the stored config and tear down the active runtime."""
    self._store.clear()
    await self.shutdown()
    self._view.clear_records()
    self._view.set_admin(False)
    self._view.set_screen(Screen.SETUP)
    self._view.notify("Connection settings cleared.")

  async def shutdown(self) -> None:
    runtime, self._runtime = self._runtime, None
    if runtime is not None:
      await runtime.close()

  async def _connect(self, config: ConnectionConfig) -> GalleryRuntime:
    try:
      connection = self._opener(config)
    except (ValueError, OSError) as exc:
      raise ConnectionConfigError(f"Firebase could not be initialized: {exc}") from exc

    try:
      runtime = self._builder(connection, settings=self._settings, view=self._view)
      await runtime.repository.test_reachability()
    except Exception as exc:
      connection.close()
      raise translate_store_error(exc, operation="connection test") from exc
    return runtime

  async def _activate(self, runtime: GalleryRuntime) -> None:
    previous, self._runtime = self._runtime, runtime
    if previous is not None:
      await previous.close()

    try:
      await runtime.workflow.load_gallery()
      await runtime.workflow.settle_stale_annotations()
    except StoreError as exc:
      logger.warning("Initial gallery load failed: %s", exc.message)
      self._view.clear_records()
      self._view.notify(f"Could not load the gallery: {exc.message}", level="error")
    self._view.set_screen(Screen.GALLERY)
