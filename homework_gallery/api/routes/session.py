"""Session routes: screen routing, notifications, and teacher mode."""

from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, HTTPException, status

from homework_gallery.api.deps import get_view
from homework_gallery.api.models import LoginRequest, ScreenRequest, SessionOut
from homework_gallery.config import Settings, get_settings
from homework_gallery.services.view_state import Screen, ViewState

router = APIRouter()


@router.get("", response_model=SessionOut)
async def get_session(view: ViewState = Depends(get_view)) -> SessionOut:  # noqa: B008
  return SessionOut.from_snapshot(view.snapshot())


@router.put("/screen", response_model=SessionOut)
async def set_screen(payload: ScreenRequest, view: ViewState = Depends(get_view)) -> SessionOut:  # noqa: B008
  view.set_screen(payload.screen)
  return SessionOut.from_snapshot(view.snapshot())


@router.post("/login", response_model=SessionOut)
async def login(payload: LoginRequest, view: ViewState = Depends(get_view), settings: Settings = Depends(get_settings)) -> SessionOut:  # noqa: B008
  """Switch on teacher mode when the shared password matches."""
  if not secrets.compare_digest(payload.password.encode("utf-8"), settings.admin_password.encode("utf-8")):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect password")

  view.set_admin(True)
  view.set_screen(Screen.GALLERY)
  view.notify("Welcome back, teacher!", level="success")
  return SessionOut.from_snapshot(view.snapshot())


@router.post("/logout", response_model=SessionOut)
async def logout(view: ViewState = Depends(get_view)) -> SessionOut:  # noqa: B008
  view.set_admin(False)
  view.notify("Logged out.")
  return SessionOut.from_snapshot(view.snapshot())
