from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from homework_gallery import __version__
from homework_gallery.api.routes import homework, session, setup
from homework_gallery.config import get_settings
from homework_gallery.core.errors import GalleryError
from homework_gallery.core.exceptions import gallery_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from homework_gallery.core.lifespan import lifespan
from homework_gallery.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="Homework Gallery", version=__version__, lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=True, allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"], allow_headers=["content-type"], expose_headers=["content-length", "x-request-id"])

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(GalleryError, gallery_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(setup.router, prefix="/v1/setup", tags=["setup"])
app.include_router(homework.router, prefix="/v1/homework", tags=["homework"])
app.include_router(session.router, prefix="/v1/session", tags=["session"])
