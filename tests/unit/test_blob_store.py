from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gexc

from homework_gallery.core.errors import PermissionDeniedError
from homework_gallery.storage.blob_store import BlobStore, download_url, object_name_from_location
from homework_gallery.utils.ids import make_blob_key, sanitize_file_name


def _bucket() -> MagicMock:
  bucket = MagicMock()
  bucket.name = "demo.appspot.com"
  return bucket


def test_blob_key_format() -> None:
  key = make_blob_key("homeworks", "My Essay (final).docx", epoch_ms=1700000000000, token="abc123")
  assert key == "homeworks/1700000000000_abc123_My-Essay-final-.docx"


def test_sanitize_file_name_drops_directories() -> None:
  assert sanitize_file_name("../../etc/passwd") == "passwd"
  assert sanitize_file_name("C:\\Users\\kid\\photo.png") == "photo.png"
  assert sanitize_file_name("///") == "file"


def test_download_url_quotes_object_path() -> None:
  url = download_url("demo.appspot.com", "homeworks/1_a_b.png", "tok")
  assert url == "https://firebasestorage.googleapis.com/v0/b/demo.appspot.com/o/homeworks%2F1_a_b.png?alt=media&token=tok"
  assert object_name_from_location(url) == "homeworks/1_a_b.png"


def test_object_name_from_bare_path_and_bad_url() -> None:
  assert object_name_from_location("homeworks/1_a_b.png") == "homeworks/1_a_b.png"
  with pytest.raises(ValueError):
    object_name_from_location("https://example.com/not-storage")


@pytest.mark.anyio
async def test_put_blob_uploads_with_token_and_returns_url() -> None:
  bucket = _bucket()
  store = BlobStore(bucket, clock=lambda: 1700000000.0)

  url = await store.put_blob(b"data", "photo.png", "image/png")

  object_name = bucket.blob.call_args.args[0]
  assert object_name.startswith("homeworks/1700000000000_")
  assert object_name.endswith("_photo.png")
  blob = bucket.blob.return_value
  blob.upload_from_string.assert_called_once_with(b"data", content_type="image/png")
  token = blob.metadata["firebaseStorageDownloadTokens"]
  assert url.endswith(f"alt=media&token={token}")
  assert object_name_from_location(url) == object_name


@pytest.mark.anyio
async def test_put_blob_translates_permission_failure() -> None:
  bucket = _bucket()
  bucket.blob.return_value.upload_from_string.side_effect = gexc.Forbidden("denied")

  with pytest.raises(PermissionDeniedError):
    await BlobStore(bucket).put_blob(b"data", "photo.png")


@pytest.mark.anyio
async def test_delete_blob_resolves_url() -> None:
  bucket = _bucket()
  await BlobStore(bucket).delete_blob(download_url("demo.appspot.com", "homeworks/1_a_b.png", "tok"))
  bucket.blob.assert_called_once_with("homeworks/1_a_b.png")
  bucket.blob.return_value.delete.assert_called_once_with()
