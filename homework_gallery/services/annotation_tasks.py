"""Registry of detached annotation tasks keyed by record id."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class AnnotationTaskRegistry:
  """Start at most one background task per record and track it until it settles."""

  def __init__(self) -> None:
    self._pending: dict[str, asyncio.Task[None]] = {}
    self._started: set[str] = set()

  def spawn(self, record_id: str, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
    """Schedule `coro` on the running loop; a second spawn for the same id is refused."""
    if record_id in self._started:
      coro.close()
      raise RuntimeError(f"Annotation already started for record {record_id}.")

    self._started.add(record_id)
    task = asyncio.get_running_loop().create_task(coro, name=f"annotate:{record_id}")
    self._pending[record_id] = task
    task.add_done_callback(lambda done, rid=record_id: self._on_done(rid, done))
    return task

  def _on_done(self, record_id: str, task: asyncio.Task[None]) -> None:
    self._pending.pop(record_id, None)
    if task.cancelled():
      logger.warning("Annotation task for %s was cancelled.", record_id)
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Annotation task for %s crashed.", record_id, exc_info=exc)

  def pending_ids(self) -> list[str]:
    return list(self._pending)

  async def drain(self, timeout: float | None = None) -> None:
    """Wait for in-flight tasks, e.g. before shutdown; leftovers are cancelled on timeout."""
    tasks = list(self._pending.values())
    if not tasks:
      return
    _, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
      task.cancel()
    if pending:
      logger.warning("Cancelled %d annotation task(s) still running after %.1fs.", len(pending), timeout or 0.0)
