"""Translate Google Cloud SDK failures into gallery store errors."""

from __future__ import annotations

import logging

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc

from homework_gallery.core.errors import NotProvisionedError, PermissionDeniedError, RecordNotFoundError, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

_NOT_PROVISIONED_HINTS = ("has not been used", "does not exist", "is disabled", "not found for project")


def translate_store_error(exc: BaseException, *, operation: str, record_id: str | None = None) -> StoreError:
  """Map an SDK exception to the matching StoreError subclass.

  `record_id` marks per-document operations, where NotFound means the
  document is missing rather than the database.
  """
  if isinstance(exc, StoreError):
    return exc

  message = str(exc)
  if isinstance(exc, (gexc.PermissionDenied, gexc.Forbidden, gexc.Unauthenticated, gexc.Unauthorized, auth_exc.DefaultCredentialsError, auth_exc.RefreshError)):
    return PermissionDeniedError(f"Permission denied during {operation}. Check the security rules and credentials for this project.")

  if isinstance(exc, gexc.NotFound) and record_id is not None and not _mentions_provisioning(message):
    return RecordNotFoundError(f"Homework record {record_id} does not exist.")

  if isinstance(exc, (gexc.FailedPrecondition, gexc.NotFound, gexc.MethodNotImplemented)) or _mentions_provisioning(message):
    return NotProvisionedError(f"The database or storage bucket is not set up yet ({operation}). Create it in the Firebase console first.")

  if isinstance(exc, (gexc.ServiceUnavailable, gexc.DeadlineExceeded, gexc.RetryError, auth_exc.TransportError, ConnectionError, TimeoutError)):
    return StoreUnavailableError(f"Could not reach the store during {operation}.")

  logger.warning("Unclassified store failure during %s: %s", operation, type(exc).__name__)
  return StoreUnavailableError(f"Store request failed during {operation}.")


def _mentions_provisioning(message: str) -> bool:
  lowered = message.lower()
  return any(hint in lowered for hint in _NOT_PROVISIONED_HINTS)
