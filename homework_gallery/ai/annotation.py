"""Gemini-backed annotation of image submissions using the google-genai SDK."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from homework_gallery.config import Settings
from homework_gallery.schema.homework import FALLBACK_ANNOTATION, Annotation

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).resolve().parent / "prompts" / "annotate.md"
_DEFAULT_PROMPT = "Identify the subject of this homework, summarize it in one sentence, and write a short encouraging comment."


class AnnotationError(Exception):
  """Raised internally when an annotation attempt cannot produce a usable result."""


class AnnotationPayload(BaseModel):
  """Structured response schema requested from the model."""

  subject: str = Field(min_length=1)
  summary: str = Field(min_length=1)
  comment: str = Field(min_length=1)
  model_config = ConfigDict(str_strip_whitespace=True)


def _system_instruction(language: str) -> str:
  return (
    "You are a helpful, encouraging middle-school teaching assistant. "
    "You look at photos of student homework or project covers, identify the subject, "
    "give a very short one-sentence summary, and write a brief encouraging comment. "
    f"Always answer in {language}."
  )


def _load_prompt() -> str:
  try:
    return _PROMPT_PATH.read_text(encoding="utf-8").strip()
  except OSError as exc:
    logger.error("Failed to load annotation prompt: %s", exc)
    return _DEFAULT_PROMPT


class AnnotationClient:
  """One-shot image annotation with a bounded timeout and a fixed fallback."""

  def __init__(self, *, api_key: str | None, model: str, timeout_seconds: float, language: str = "English", client: Any = None) -> None:
    self._api_key = api_key
    self._model = model
    self._timeout_seconds = timeout_seconds
    self._language = language
    self._client = client
    self._prompt = _load_prompt()

  @classmethod
  def from_settings(cls, settings: Settings) -> AnnotationClient:
    return cls(api_key=settings.gemini_api_key, model=settings.gemini_model, timeout_seconds=settings.annotation_timeout_seconds, language=settings.annotation_language)

  @property
  def model(self) -> str:
    return self._model

  def _get_client(self) -> Any:
    if self._client is None:
      if not self._api_key:
        raise AnnotationError("GEMINI_API_KEY is not configured.")
      try:
        self._client = genai.Client(api_key=self._api_key)
      except Exception as exc:
        raise AnnotationError(f"Gemini client could not be created: {exc}") from exc
    return self._client

  async def analyze(self, image_bytes: bytes, mime_type: str) -> Annotation:
    """Request an annotation; raises AnnotationError on any failure."""
    client = self._get_client()
    contents = [types.Part.from_bytes(data=image_bytes, mime_type=mime_type), self._prompt]
    config = {"system_instruction": _system_instruction(self._language), "response_mime_type": "application/json", "response_schema": AnnotationPayload}

    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await asyncio.wait_for(client.aio.models.generate_content(model=self._model, contents=contents, config=config), timeout=self._timeout_seconds)
    except asyncio.TimeoutError as exc:
      raise AnnotationError(f"Gemini did not respond within {self._timeout_seconds}s.") from exc
    except Exception as exc:
      raise AnnotationError(f"Gemini request failed: {exc}") from exc

    text = getattr(response, "text", None)
    if not text:
      raise AnnotationError("Gemini returned an empty response.")

    try:
      payload = AnnotationPayload.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError, TypeError) as exc:
      raise AnnotationError(f"Gemini returned an unusable annotation: {exc}") from exc

    return Annotation(subject=payload.subject, summary=payload.summary, comment=payload.comment)

  async def annotate(self, image_bytes: bytes, mime_type: str) -> Annotation:
    """Return a real annotation, or the fixed fallback when anything goes wrong."""
    try:
      annotation = await self.analyze(image_bytes, mime_type)
    except AnnotationError as exc:
      logger.warning("Annotation failed, using fallback: %s", exc)
      return FALLBACK_ANNOTATION

    logger.info("Annotation succeeded subject=%s", annotation.subject)
    return annotation
