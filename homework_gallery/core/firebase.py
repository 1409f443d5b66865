"""Firebase Admin SDK lifecycle for one active connection configuration."""

from __future__ import annotations

import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore, storage
from google.cloud.firestore import Client as FirestoreClient

from homework_gallery.schema.connection import ConnectionConfig
from homework_gallery.utils.ids import generate_nanoid

logger = logging.getLogger(__name__)

_APP_NAME_PREFIX = "homework-gallery"


class FirebaseConnection:
  """Own a named Firebase app plus its Firestore client and storage bucket.

  Each connection gets a uniquely named app so a reconfiguration can build
  the new connection before the old one is torn down.
  """

  def __init__(self, config: ConnectionConfig, app: firebase_admin.App) -> None:
    self.config = config
    self._app = app
    self._firestore: FirestoreClient | None = None
    self._bucket: Any = None

  @property
  def app_name(self) -> str:
    return self._app.name

  @property
  def firestore(self) -> FirestoreClient:
    """Return the Firestore client, created on first use."""
    if self._firestore is None:
      self._firestore = firestore.client(app=self._app)
    return self._firestore

  @property
  def bucket(self) -> Any:
    """Return the google.cloud.storage bucket for uploads."""
    if self._bucket is None:
      self._bucket = storage.bucket(self.config.bucket_name, app=self._app)
    return self._bucket

  def close(self) -> None:
    """Delete the underlying Firebase app; safe to call more than once."""
    try:
      firebase_admin.delete_app(self._app)
      logger.info("Firebase app %s closed.", self._app.name)
    except ValueError:
      logger.debug("Firebase app %s was already deleted.", self._app.name)


def open_connection(config: ConnectionConfig) -> FirebaseConnection:
  """Initialize a Firebase app for the given configuration."""
  options = {"projectId": config.project_id, "storageBucket": config.bucket_name}
  name = f"{_APP_NAME_PREFIX}-{generate_nanoid(8)}"

  if config.service_account_path:
    cred = credentials.Certificate(config.service_account_path)
    app = firebase_admin.initialize_app(cred, options, name=name)
  else:
    # Use default credentials (e.g. Google Application Default Credentials)
    app = firebase_admin.initialize_app(options=options, name=name)

  logger.info("Firebase app %s initialized for project %s.", name, config.project_id)
  return FirebaseConnection(config, app)
