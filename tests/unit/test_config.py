from __future__ import annotations

import pytest

from homework_gallery.config import get_settings
from homework_gallery.schema.homework import DEFAULT_ALLOWED_MIME_TYPES


@pytest.fixture
def fresh_settings():
  get_settings.cache_clear()
  yield get_settings
  get_settings.cache_clear()


def test_allowed_mime_types_default_to_classroom_list(fresh_settings, monkeypatch) -> None:
  monkeypatch.delenv("HOMEWORK_ALLOWED_MIME_TYPES", raising=False)
  assert fresh_settings().allowed_mime_types == DEFAULT_ALLOWED_MIME_TYPES


def test_allowed_mime_types_override(fresh_settings, monkeypatch) -> None:
  monkeypatch.setenv("HOMEWORK_ALLOWED_MIME_TYPES", "image/PNG, application/pdf,image/png")
  assert fresh_settings().allowed_mime_types == ("image/png", "application/pdf")


def test_wildcard_mime_types_are_rejected(fresh_settings, monkeypatch) -> None:
  monkeypatch.setenv("HOMEWORK_ALLOWED_MIME_TYPES", "image/*")
  with pytest.raises(ValueError):
    fresh_settings()
