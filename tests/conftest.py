"""Shared fixtures for the gallery test suite."""

from __future__ import annotations

import itertools

import pytest

from homework_gallery.services.submissions import SubmissionWorkflow
from homework_gallery.services.view_state import ViewState
from tests.fakes import FakeBlobStore, FakeRecordStore, GatedAnnotator


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def records() -> FakeRecordStore:
  return FakeRecordStore()


@pytest.fixture
def blobs() -> FakeBlobStore:
  return FakeBlobStore()


@pytest.fixture
def annotator() -> GatedAnnotator:
  return GatedAnnotator()


@pytest.fixture
def view() -> ViewState:
  return ViewState(clock=lambda: 1_000)


@pytest.fixture
def workflow(records, blobs, annotator, view) -> SubmissionWorkflow:
  ticks = itertools.count(1_000, 10)
  return SubmissionWorkflow(records=records, blobs=blobs, annotator=annotator, view=view, max_upload_bytes=1024, clock=lambda: next(ticks))
