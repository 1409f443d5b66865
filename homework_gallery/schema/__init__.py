"""Schema package exports."""

from .connection import ConnectionConfig, parse_connection_snippet, validate_connection_payload
from .homework import FALLBACK_ANNOTATION, Annotation, FileKind, HomeworkRecord

__all__ = ["Annotation", "ConnectionConfig", "FALLBACK_ANNOTATION", "FileKind", "HomeworkRecord", "parse_connection_snippet", "validate_connection_payload"]
