"""Domain errors shared by the store adapters, workflow, and HTTP layer."""

from __future__ import annotations


class GalleryError(Exception):
  """Base error carrying a user-facing message and a stable kind."""

  kind = "error"
  status_code = 500

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class FileReadError(GalleryError):
  """The uploaded file could not be read; nothing was persisted."""

  kind = "read_error"
  status_code = 400


class SubmissionRejectedError(GalleryError):
  """The submission failed validation before any persistence."""

  kind = "rejected"
  status_code = 422

  def __init__(self, message: str, *, status_code: int = 422) -> None:
    super().__init__(message)
    self.status_code = status_code


class ConnectionConfigError(GalleryError):
  """The pasted connection configuration is unparseable or incomplete."""

  kind = "invalid_config"
  status_code = 422


class GalleryNotConfiguredError(GalleryError):
  """No store connection is active yet."""

  kind = "not_configured"
  status_code = 503


class StoreError(GalleryError):
  """Base for record and blob store failures."""

  kind = "store_error"
  status_code = 502


class StoreUnavailableError(StoreError):
  """Network, transport, or otherwise unclassified store failure."""

  kind = "store_unavailable"
  status_code = 503


class PermissionDeniedError(StoreError):
  """The store rejected the credentials or security rules."""

  kind = "permission_denied"
  status_code = 502


class NotProvisionedError(StoreError):
  """The project exists but the database or bucket has not been created."""

  kind = "not_provisioned"
  status_code = 502


class RecordNotFoundError(StoreError):
  """The addressed homework record does not exist."""

  kind = "not_found"
  status_code = 404
