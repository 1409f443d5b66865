"""Firebase Cloud Storage helper for uploaded homework files."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote, unquote, urlparse

from starlette.concurrency import run_in_threadpool

from homework_gallery.storage.errors import translate_store_error
from homework_gallery.utils.ids import generate_download_token, make_blob_key

logger = logging.getLogger(__name__)

BLOB_PREFIX = "homeworks"
_DOWNLOAD_HOST = "https://firebasestorage.googleapis.com"


def download_url(bucket_name: str, object_name: str, token: str) -> str:
  """Return the Firebase-style public download URL for an object."""
  return f"{_DOWNLOAD_HOST}/v0/b/{bucket_name}/o/{quote(object_name, safe='')}?alt=media&token={token}"


def object_name_from_location(location: str) -> str:
  """Recover the object path from a download URL, or pass a bare path through."""
  parsed = urlparse(location)
  if not parsed.scheme:
    return location
  _, marker, encoded = parsed.path.partition("/o/")
  if not marker or not encoded:
    raise ValueError(f"Not a storage download URL: {location}")
  return unquote(encoded)


class BlobStore:
  """Thin wrapper over a google.cloud.storage bucket for homework uploads."""

  def __init__(self, bucket: Any, *, prefix: str = BLOB_PREFIX, clock: Callable[[], float] = time.time) -> None:
    self._bucket = bucket
    self._prefix = prefix
    self._clock = clock

  @property
  def bucket_name(self) -> str:
    return self._bucket.name

  async def put_blob(self, data: bytes, file_name: str, content_type: str | None = None) -> str:
    """Upload bytes under a unique key and return a fetchable URL."""
    object_name = make_blob_key(self._prefix, file_name, epoch_ms=int(self._clock() * 1000))
    token = generate_download_token()
    blob = self._bucket.blob(object_name)
    # Firebase serves public download links keyed by this metadata token.
    blob.metadata = {"firebaseStorageDownloadTokens": token}

    try:
      await run_in_threadpool(blob.upload_from_string, data, content_type=content_type or "application/octet-stream")
    except Exception as exc:
      raise translate_store_error(exc, operation="upload") from exc

    logger.info("Uploaded blob %s (%d bytes).", object_name, len(data))
    return download_url(self.bucket_name, object_name, token)

  async def delete_blob(self, location: str) -> None:
    """Delete an uploaded object given its download URL or object path."""
    object_name = object_name_from_location(location)
    blob = self._bucket.blob(object_name)
    try:
      await run_in_threadpool(blob.delete)
    except Exception as exc:
      raise translate_store_error(exc, operation="blob delete") from exc
    logger.info("Deleted blob %s.", object_name)
