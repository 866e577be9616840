"""Custom exception hierarchy for dictionary-editor."""

from __future__ import annotations


class DictionaryEditorError(Exception):
    """Base exception for all dictionary-editor errors.

    ``category`` is what a request layer should branch on when choosing a
    client-facing response; the message is for humans.
    """

    category = "error"


class ValidationError(DictionaryEditorError):
    """Invalid or missing input (empty text, malformed id, duplicates)."""

    category = "validation"


class EntityNotFoundError(DictionaryEditorError):
    """Referenced record doesn't exist in the database."""

    category = "not_found"


class ConflictError(DictionaryEditorError):
    """Conflicting state (stale version on save)."""

    category = "conflict"


class PersistenceError(DictionaryEditorError):
    """A store operation failed while creating a record.

    The message is deliberately generic; the underlying failure is kept as
    ``cause`` (and ``__cause__`` when raised with ``from``).
    """

    category = "persistence"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class DatabaseError(DictionaryEditorError):
    """Schema version mismatch, connection failure."""

    category = "database"


class ConfigError(DictionaryEditorError):
    """Unreadable or malformed configuration."""

    category = "config"
