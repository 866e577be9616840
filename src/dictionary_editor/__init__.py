"""Suggestion review and merge backend for a crowd-sourced dictionary."""

__version__ = "0.1.0"

from .editor import DictionaryEditor as DictionaryEditor
from .config import (
    EditorConfig as EditorConfig,
    load_config as load_config,
)
from .exceptions import (
    DictionaryEditorError as DictionaryEditorError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    ConflictError as ConflictError,
    PersistenceError as PersistenceError,
    DatabaseError as DatabaseError,
    ConfigError as ConfigError,
)
from .models import (
    SuggestionType as SuggestionType,
    EditOperation as EditOperation,
    MergeStatus as MergeStatus,
    WordModel as WordModel,
    PopulatedWordModel as PopulatedWordModel,
    ExampleModel as ExampleModel,
    WordSuggestionModel as WordSuggestionModel,
    ExampleSuggestionModel as ExampleSuggestionModel,
    MergeIntentModel as MergeIntentModel,
    EditRecord as EditRecord,
)
from .notifications import (
    MergeNotification as MergeNotification,
    NotificationDispatcher as NotificationDispatcher,
    StaticUserDirectory as StaticUserDirectory,
)
from .reconcile import (
    union as union,
    union_values as union_values,
    union_references as union_references,
)

__all__ = [
    # Editor
    "DictionaryEditor",
    # Configuration
    "EditorConfig",
    "load_config",
    # Exceptions
    "DictionaryEditorError",
    "ValidationError",
    "EntityNotFoundError",
    "ConflictError",
    "PersistenceError",
    "DatabaseError",
    "ConfigError",
    # Enums
    "SuggestionType",
    "EditOperation",
    "MergeStatus",
    # Models
    "WordModel",
    "PopulatedWordModel",
    "ExampleModel",
    "WordSuggestionModel",
    "ExampleSuggestionModel",
    "MergeIntentModel",
    "EditRecord",
    # Notifications
    "MergeNotification",
    "NotificationDispatcher",
    "StaticUserDirectory",
    # Reconciliation
    "union",
    "union_values",
    "union_references",
]
