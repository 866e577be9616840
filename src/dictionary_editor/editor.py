"""DictionaryEditor — main entry point for the dictionary-editor library."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar
from urllib.parse import urlencode

from dictionary_editor import db as _db
from dictionary_editor import history as _hist
from dictionary_editor import merge as _merge
from dictionary_editor.config import EditorConfig
from dictionary_editor.exceptions import EntityNotFoundError, ValidationError
from dictionary_editor.models import (
    EditRecord,
    ExampleModel,
    ExampleSuggestionModel,
    MergeIntentModel,
    PopulatedWordModel,
    SuggestionType,
    WordModel,
    WordSuggestionModel,
)
from dictionary_editor.notifications import (
    NotificationDispatcher,
    NotificationSender,
    UserDirectory,
)
from dictionary_editor.reconcile import has_duplicates, union_values

_F = TypeVar("_F", bound=Callable[..., Any])

# Sentinel for "no change" in update methods
_UNSET: Any = type("_UNSET", (), {"__repr__": lambda self: "..."})()


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps single-document mutation methods in a transaction."""

    @functools.wraps(method)
    def wrapper(self: DictionaryEditor, *args: Any, **kwargs: Any) -> Any:
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _split_ids(value: str | Iterable[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return list(value)


class DictionaryEditor:
    """Review and merge crowd-sourced dictionary suggestions."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        config: EditorConfig | None = None,
        users: UserDirectory | None = None,
        sender: NotificationSender | None = None,
    ) -> None:
        self._config = config or EditorConfig()
        self._db_path = str(db_path if db_path is not None else self._config.db_path)
        self._conn = _db.connect(self._db_path)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)
        self._notifier = NotificationDispatcher(
            sender,
            users,
            attempts=self._config.notification_attempts,
            wait_multiplier=self._config.notification_wait_multiplier,
            max_wait=self._config.notification_max_wait,
            background=self._config.notifications_in_background,
        )

    @property
    def config(self) -> EditorConfig:
        return self._config

    def close(self) -> None:
        """Wait for queued notifications, then close the database connection."""
        self._notifier.close()
        self._conn.close()

    def __enter__(self) -> DictionaryEditor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def flush_notifications(self) -> None:
        self._notifier.flush()

    # ------------------------------------------------------------------
    # Words
    # ------------------------------------------------------------------

    def create_word(
        self,
        word: str,
        word_class: str | None = None,
        *,
        definitions: Iterable[str] = (),
        variations: Iterable[str] = (),
        stems: Iterable[str] = (),
        examples: Iterable[Mapping[str, Any]] = (),
    ) -> WordModel:
        """Create a canonical word; each of *examples* becomes a canonical example."""
        return _merge.create_word(self._conn, {
            "word": word,
            "word_class": word_class,
            "definitions": list(definitions),
            "variations": list(variations),
            "stems": list(stems),
            "examples": list(examples),
        })

    def get_word(self, word_id: str) -> WordModel:
        word = _db.get(self._conn, WordModel, word_id)
        if word is None:
            raise EntityNotFoundError(f"Word not found: {word_id!r}")
        return word

    def get_populated_word(self, word_id: str) -> PopulatedWordModel:
        """The word plus every example linked to it, by id or by association."""
        return _merge.populate_word(self._conn, self.get_word(word_id))

    def find_words(
        self,
        *,
        word: str | None = None,
        word_contains: str | None = None,
    ) -> list[WordModel]:
        return _db.find_words(self._conn, word=word, word_contains=word_contains)

    @_modifies_db
    def update_word(
        self,
        word_id: str,
        *,
        word: str | None = None,
        word_class: Any = _UNSET,
        definitions: Iterable[str] | None = None,
        variations: Iterable[str] | None = None,
        stems: Iterable[str] | None = None,
    ) -> WordModel:
        """Edit a canonical word directly, outside of any suggestion."""
        current = _merge.find_word_for_update(self._conn, word_id)
        if word is not None and not word:
            raise ValidationError(_merge.MISSING_INFORMATION)

        updates: dict[str, Any] = {}
        if word is not None:
            updates["word"] = word
        if word_class is not _UNSET:
            updates["word_class"] = word_class
        if definitions is not None:
            updates["definitions"] = tuple(union_values(definitions))
        if variations is not None:
            updates["variations"] = tuple(union_values(variations))
        if stems is not None:
            updates["stems"] = tuple(union_values(stems))

        for field, val in updates.items():
            old_val = getattr(current, field)
            _hist.record_update(
                self._conn, "word", word_id, field,
                list(old_val) if isinstance(old_val, tuple) else old_val,
                list(val) if isinstance(val, tuple) else val,
            )
        if not updates:
            return current
        return _db.save(self._conn, replace(current, **updates))

    def delete_word(
        self, to_be_deleted_word_id: str, primary_word_id: str | None
    ) -> WordModel:
        """Delete a word, folding its definitions, spellings and examples into another."""
        return _merge.delete_word(
            self._conn, to_be_deleted_word_id, primary_word_id
        )

    # ------------------------------------------------------------------
    # Examples
    # ------------------------------------------------------------------

    def create_example(
        self,
        igbo: str = "",
        english: str = "",
        *,
        associated_words: str | Iterable[str] = (),
    ) -> ExampleModel:
        associated = _split_ids(associated_words)
        self._validate_example(igbo, english, associated)
        return _merge.create_example(self._conn, {
            "igbo": igbo,
            "english": english,
            "associated_words": associated,
        })

    def get_example(self, example_id: str) -> ExampleModel:
        example = _db.get(self._conn, ExampleModel, example_id)
        if example is None:
            raise EntityNotFoundError(f"Example not found: {example_id!r}")
        return example

    def find_examples_by_associated_word(self, word_id: str) -> list[ExampleModel]:
        return _db.find_examples_by_associated_word(self._conn, word_id)

    @_modifies_db
    def update_example(
        self,
        example_id: str,
        *,
        igbo: str | None = None,
        english: str | None = None,
        associated_words: str | Iterable[str] | None = None,
    ) -> ExampleModel:
        """Edit a canonical example directly.

        *associated_words* may be a comma-separated string of ids.
        """
        current = _db.get(self._conn, ExampleModel, example_id)
        if current is None:
            raise EntityNotFoundError(_merge.EXAMPLE_NOT_FOUND)

        updated = replace(
            current,
            igbo=current.igbo if igbo is None else igbo,
            english=current.english if english is None else english,
            associated_words=(
                current.associated_words if associated_words is None
                else tuple(_split_ids(associated_words))
            ),
        )
        self._validate_example(
            updated.igbo, updated.english, updated.associated_words
        )
        for field in ("igbo", "english", "associated_words"):
            old_val, new_val = getattr(current, field), getattr(updated, field)
            if old_val != new_val:
                _hist.record_update(
                    self._conn, "example", example_id, field,
                    list(old_val) if isinstance(old_val, tuple) else old_val,
                    list(new_val) if isinstance(new_val, tuple) else new_val,
                )
        return _db.save(self._conn, updated)

    @staticmethod
    def _validate_example(
        igbo: str, english: str, associated_words: Iterable[str]
    ) -> None:
        associated_words = list(associated_words)
        if not igbo and not english:
            raise ValidationError(_merge.MISSING_INFORMATION)
        if not all(_db.is_valid_id(w) for w in associated_words):
            raise ValidationError(_merge.INVALID_ASSOCIATED_WORD)
        if has_duplicates(associated_words, key=str):
            raise ValidationError(_merge.DUPLICATE_ASSOCIATED_WORDS)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    @_modifies_db
    def create_word_suggestion(
        self,
        word: str,
        word_class: str | None = None,
        *,
        definitions: Iterable[str] = (),
        variations: Iterable[str] = (),
        stems: Iterable[str] = (),
        examples: Iterable[Mapping[str, Any]] = (),
        original_word_id: str | None = None,
        author_id: str | None = None,
    ) -> WordSuggestionModel:
        values = {
            "word": word,
            "word_class": word_class,
            "definitions": list(definitions),
            "variations": list(variations),
            "stems": list(stems),
            "examples": [
                {"igbo": e.get("igbo", ""), "english": e.get("english", "")}
                for e in examples
            ],
            "original_word_id": original_word_id,
            "author_id": author_id,
        }
        suggestion = _db.insert(self._conn, WordSuggestionModel, values)
        _hist.record_create(
            self._conn, "word_suggestion", suggestion.id,
            {"word": word, "original_word_id": original_word_id},
        )
        return suggestion

    @_modifies_db
    def create_example_suggestion(
        self,
        igbo: str = "",
        english: str = "",
        *,
        associated_words: str | Iterable[str] = (),
        original_example_id: str | None = None,
        author_id: str | None = None,
    ) -> ExampleSuggestionModel:
        values = {
            "igbo": igbo,
            "english": english,
            "associated_words": _split_ids(associated_words),
            "original_example_id": original_example_id,
            "author_id": author_id,
        }
        suggestion = _db.insert(self._conn, ExampleSuggestionModel, values)
        _hist.record_create(
            self._conn, "example_suggestion", suggestion.id,
            {"igbo": igbo, "english": english},
        )
        return suggestion

    def get_word_suggestion(self, suggestion_id: str) -> WordSuggestionModel:
        suggestion = _db.get(self._conn, WordSuggestionModel, suggestion_id)
        if suggestion is None:
            raise EntityNotFoundError(f"Word suggestion not found: {suggestion_id!r}")
        return suggestion

    def get_example_suggestion(self, suggestion_id: str) -> ExampleSuggestionModel:
        suggestion = _db.get(self._conn, ExampleSuggestionModel, suggestion_id)
        if suggestion is None:
            raise EntityNotFoundError(
                f"Example suggestion not found: {suggestion_id!r}"
            )
        return suggestion

    def find_example_suggestions(
        self, *, associated_word: str
    ) -> list[ExampleSuggestionModel]:
        return _db.find_example_suggestions_by_associated_word(
            self._conn, associated_word
        )

    def find_word_suggestions(
        self, *, original_word_id: str
    ) -> list[WordSuggestionModel]:
        return _db.find_word_suggestions_by_original_word_id(
            self._conn, original_word_id
        )

    def delete_word_suggestions_by_original_word_id(self, word_id: str) -> int:
        return _merge.delete_word_suggestions_by_original_word_id(
            self._conn, word_id
        )

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def merge_word(
        self, suggestion_id: str, merged_by: str
    ) -> PopulatedWordModel:
        """Merge a word suggestion and its nested example suggestions.

        Returns the canonical word with its examples resolved. The author,
        if known, is notified in the background once the merge has succeeded.
        """
        populated = _merge.merge_word(self._conn, suggestion_id, merged_by)
        suggestion = self.get_word_suggestion(suggestion_id)
        self._notifier.dispatch(
            suggestion.author_id,
            SuggestionType.WORD.value,
            self._word_link(populated.word.word),
            populated.to_dict(),
        )
        return populated

    def merge_example(self, suggestion_id: str, merged_by: str) -> ExampleModel:
        """Merge an example suggestion into a new or existing example."""
        example = _merge.merge_example(self._conn, suggestion_id, merged_by)
        suggestion = self.get_example_suggestion(suggestion_id)
        headword = ""
        if example.associated_words:
            first = _db.get(self._conn, WordModel, example.associated_words[0])
            headword = first.word if first is not None else ""
        self._notifier.dispatch(
            suggestion.author_id,
            SuggestionType.EXAMPLE.value,
            self._word_link(headword),
            example.to_dict(),
        )
        return example

    def get_merge_intent(self, suggestion_id: str) -> MergeIntentModel | None:
        return _db.get_latest_intent(self._conn, suggestion_id)

    def list_pending_merges(self) -> list[MergeIntentModel]:
        return _db.list_pending_intents(self._conn)

    def _word_link(self, headword: str) -> str:
        base = self._config.dictionary_app_url.rstrip("/")
        return f"{base}/word?{urlencode({'word': headword})}"

    # ------------------------------------------------------------------
    # Change Tracking
    # ------------------------------------------------------------------

    def get_history(
        self,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        field_name: str | None = None,
        since: str | None = None,
        operation: str | None = None,
        merged_by: str | None = None,
        merged_into: str | None = None,
    ) -> list[EditRecord]:
        return _hist.query_history(
            self._conn,
            entity_type=entity_type,
            entity_id=entity_id,
            field_name=field_name,
            since=since,
            operation=operation,
            merged_by=merged_by,
            merged_into=merged_into,
        )

    def get_changes_since(self, timestamp: str) -> list[EditRecord]:
        return self.get_history(since=timestamp)
