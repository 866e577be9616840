"""Suggestion merge engines and word consolidation for dictionary-editor.

Every document is written on its own (``with conn:`` per step), the way a
document store without multi-document transactions behaves. A failed
operation leaves its completed steps applied. Word merges keep a durable
intent record so that calling :func:`merge_word` again resumes the
cascade instead of repeating finished work.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any, TypeVar

from dictionary_editor import db as _db
from dictionary_editor import history as _hist
from dictionary_editor.exceptions import (
    EntityNotFoundError,
    PersistenceError,
    ValidationError,
)
from dictionary_editor.models import (
    ExampleModel,
    ExampleSuggestionModel,
    MergeIntentModel,
    MergeStatus,
    PopulatedWordModel,
    SuggestionType,
    WordModel,
    WordSuggestionModel,
)
from dictionary_editor.reconcile import (
    has_duplicates,
    union,
    union_references,
    union_values,
)
from dictionary_editor.relink import relink_associated_words, relink_examples

logger = logging.getLogger(__name__)

_S = TypeVar("_S", WordSuggestionModel, ExampleSuggestionModel)

MISSING_INFORMATION = (
    "Required information is missing, double check your provided data"
)
NO_EXAMPLE_SUGGESTION = (
    "There is no associated example suggestion, double check your provided data"
)
NO_WORD_SUGGESTION = (
    "There is no associated word suggestion, double check your provided data"
)
INVALID_ASSOCIATED_WORD = "Invalid id found in associatedWords"
UNKNOWN_ASSOCIATED_WORD = (
    "Example suggestion associated words can only contain Word ids before merging"
)
DUPLICATE_ASSOCIATED_WORDS = "Duplicates are not allowed in associated words"
EXAMPLE_NOT_FOUND = "Example doesn't exist"
WORD_NOT_FOUND = "Word doesn't exist"
NO_WORD_ID = "No word id provided"
INVALID_WORD_ID = "Invalid word id provided"
NEW_EXAMPLE_FAILURE = "An error occurred while saving the new example"
NEW_WORD_FAILURE = "An error occurred while saving the new word"


# ---------------------------------------------------------------------------
# Direct creation
# ---------------------------------------------------------------------------

def create_example(
    conn: sqlite3.Connection, fields: Mapping[str, Any]
) -> ExampleModel:
    """Create a canonical example from *fields* (igbo, english, associated_words)."""
    values = {
        "igbo": fields.get("igbo") or "",
        "english": fields.get("english") or "",
        "associated_words": union_references(fields.get("associated_words")),
    }
    with conn:
        example = _db.insert(conn, ExampleModel, values)
        _hist.record_create(conn, "example", example.id, values)
    return example


def create_word(conn: sqlite3.Connection, fields: Mapping[str, Any]) -> WordModel:
    """Create a canonical word, plus one canonical example per embedded example.

    The word is saved first so the examples can reference its id, then
    saved again with the example ids attached.
    """
    word = insert_word(conn, fields)
    return attach_embedded_examples(conn, word, fields.get("examples"))


def insert_word(conn: sqlite3.Connection, fields: Mapping[str, Any]) -> WordModel:
    """First save of a new word: its own fields, no examples yet."""
    if not fields.get("word"):
        raise ValidationError(MISSING_INFORMATION)
    values = {
        "word": fields["word"],
        "word_class": fields.get("word_class"),
        "definitions": union_values(fields.get("definitions")),
        "variations": union_values(fields.get("variations")),
        "stems": union_values(fields.get("stems")),
        "examples": [],
    }
    with conn:
        word = _db.insert(conn, WordModel, values)
        _hist.record_create(conn, "word", word.id, {"word": word.word})
    return word


def attach_embedded_examples(
    conn: sqlite3.Connection,
    word: WordModel,
    examples: Iterable[Mapping[str, Any]] | None,
) -> WordModel:
    """Create the canonical examples of a freshly inserted word and attach them.

    Examples that already point at *word* count as created, so running
    this again after a failure only creates the missing ones.
    """
    existing = [e.id for e in _db.find_examples_by_associated_word(conn, word.id)]
    example_ids = list(existing)
    for example in list(examples or ())[len(existing):]:
        example_ids.append(create_example(conn, {
            "igbo": example.get("igbo"),
            "english": example.get("english"),
            "associated_words": [word.id],
        }).id)
    with conn:
        return _db.save(conn, replace(
            word, examples=tuple(union_references(word.examples, example_ids)),
        ))


def populate_word(conn: sqlite3.Connection, word: WordModel) -> PopulatedWordModel:
    """Resolve the examples of *word*: its own list first, then any other
    example that lists the word among its associated words.
    """
    examples = [_db.get(conn, ExampleModel, example_id) for example_id in word.examples]
    examples = union(
        [e for e in examples if e is not None],
        _db.find_examples_by_associated_word(conn, word.id),
        key=lambda e: e.id,
    )
    return PopulatedWordModel(word=word, examples=tuple(examples))


def find_word_for_update(conn: sqlite3.Connection, word_id: str | None) -> WordModel:
    """Load a word that is about to be modified, validating *word_id* first."""
    if not word_id:
        raise ValidationError(NO_WORD_ID)
    if not _db.is_valid_id(word_id):
        raise ValidationError(INVALID_WORD_ID)
    word = _db.get(conn, WordModel, word_id)
    if word is None:
        raise EntityNotFoundError(WORD_NOT_FOUND)
    return word


def _stamp(
    conn: sqlite3.Connection,
    suggestion: _S,
    entity_type: str,
    canonical_id: str,
    merged_by: str,
) -> _S:
    stamped = replace(
        suggestion,
        merged=canonical_id,
        merged_by=merged_by,
        merged_at=_db.timestamp(conn),
    )
    with conn:
        saved = _db.save(conn, stamped)
        _hist.record_merge(conn, entity_type, suggestion.id, canonical_id, merged_by)
    return saved


# ---------------------------------------------------------------------------
# Example merge
# ---------------------------------------------------------------------------

def validate_example_suggestion(
    conn: sqlite3.Connection, suggestion: ExampleSuggestionModel
) -> None:
    """Reject an example suggestion that can't be merged as-is."""
    if not suggestion.igbo and not suggestion.english:
        raise ValidationError(MISSING_INFORMATION)
    if not all(_db.is_valid_id(w) for w in suggestion.associated_words):
        raise ValidationError(INVALID_ASSOCIATED_WORD)
    for word_id in suggestion.associated_words:
        if _db.get(conn, WordModel, word_id) is None:
            raise ValidationError(UNKNOWN_ASSOCIATED_WORD)
    if has_duplicates(suggestion.associated_words, key=str):
        raise ValidationError(DUPLICATE_ASSOCIATED_WORDS)


def merge_example(
    conn: sqlite3.Connection, suggestion_id: str, merged_by: str
) -> ExampleModel:
    """Merge an example suggestion into a new or an existing canonical example."""
    suggestion = _db.get(conn, ExampleSuggestionModel, suggestion_id)
    if suggestion is None:
        raise EntityNotFoundError(NO_EXAMPLE_SUGGESTION)
    validate_example_suggestion(conn, suggestion)

    if suggestion.original_example_id:
        example = _merge_into_example(conn, suggestion, merged_by)
    else:
        example = _create_example_from_suggestion(conn, suggestion, merged_by)
    logger.info(
        "Merged example suggestion %s into example %s", suggestion.id, example.id
    )
    return example


def _merge_into_example(
    conn: sqlite3.Connection,
    suggestion: ExampleSuggestionModel,
    merged_by: str,
) -> ExampleModel:
    example = _db.get(conn, ExampleModel, suggestion.original_example_id)
    if example is None:
        raise EntityNotFoundError(EXAMPLE_NOT_FOUND)
    updated = replace(
        example,
        igbo=suggestion.igbo,
        english=suggestion.english,
        associated_words=tuple(union_references(suggestion.associated_words)),
    )
    with conn:
        example = _db.save(conn, updated)
        _hist.record_update(
            conn, "example", example.id, "merge_from", None, suggestion.id
        )
    _stamp(conn, suggestion, "example_suggestion", example.id, merged_by)
    return example


def _create_example_from_suggestion(
    conn: sqlite3.Connection,
    suggestion: ExampleSuggestionModel,
    merged_by: str,
) -> ExampleModel:
    try:
        example = create_example(conn, {
            "igbo": suggestion.igbo,
            "english": suggestion.english,
            "associated_words": suggestion.associated_words,
        })
        _stamp(conn, suggestion, "example_suggestion", example.id, merged_by)
    except Exception as e:
        raise PersistenceError(NEW_EXAMPLE_FAILURE, cause=e) from e
    return example


# ---------------------------------------------------------------------------
# Word merge
# ---------------------------------------------------------------------------

def merge_word(
    conn: sqlite3.Connection, suggestion_id: str, merged_by: str
) -> PopulatedWordModel:
    """Merge a word suggestion into a new or an existing canonical word.

    Example suggestions that point at the word suggestion are merged too
    (the cascade). If an earlier attempt for the same suggestion failed
    part-way, this call picks up where it stopped. Returns the canonical
    word with its examples resolved.
    """
    suggestion = _db.get(conn, WordSuggestionModel, suggestion_id)
    if suggestion is None:
        raise EntityNotFoundError(NO_WORD_SUGGESTION)
    if not suggestion.word:
        raise ValidationError(MISSING_INFORMATION)
    if (suggestion.original_word_id
            and _db.get(conn, WordModel, suggestion.original_word_id) is None):
        raise EntityNotFoundError(WORD_NOT_FOUND)
    intent = _begin_intent(conn, suggestion, merged_by)

    if suggestion.original_word_id:
        word = _merge_into_word(conn, suggestion, intent, merged_by)
    else:
        word = _create_word_from_suggestion(conn, suggestion, intent, merged_by)
    logger.info("Merged word suggestion %s into word %s", suggestion.id, word.id)
    return populate_word(conn, word)


def _begin_intent(
    conn: sqlite3.Connection,
    suggestion: WordSuggestionModel,
    merged_by: str,
) -> MergeIntentModel:
    intent = _db.get_pending_intent(conn, suggestion.id)
    if intent is not None:
        logger.info(
            "Resuming merge of word suggestion %s (%s, %d/%d nested done)",
            suggestion.id, intent.status,
            len(intent.completed), len(intent.nested),
        )
        return intent
    with conn:
        return _db.insert(conn, MergeIntentModel, {
            "suggestion_type": SuggestionType.WORD.value,
            "suggestion_id": suggestion.id,
            "merged_by": merged_by,
            "status": MergeStatus.PENDING.value,
            "canonical_id": None,
        })


def _save_intent(conn: sqlite3.Connection, intent: MergeIntentModel) -> MergeIntentModel:
    with conn:
        return _db.save(conn, intent)


def _merge_into_word(
    conn: sqlite3.Connection,
    suggestion: WordSuggestionModel,
    intent: MergeIntentModel,
    merged_by: str,
) -> WordModel:
    word = _db.get(conn, WordModel, suggestion.original_word_id)
    if word is None:
        raise EntityNotFoundError(WORD_NOT_FOUND)
    updated = replace(
        word,
        word=suggestion.word,
        word_class=suggestion.word_class,
        definitions=tuple(union_values(suggestion.definitions)),
        variations=tuple(union_values(suggestion.variations)),
        stems=tuple(union_values(suggestion.stems)),
    )
    with conn:
        word = _db.save(conn, updated)
        _hist.record_update(conn, "word", word.id, "merge_from", None, suggestion.id)
    if intent.canonical_id != word.id:
        intent = _save_intent(conn, replace(intent, canonical_id=word.id))
    return _after_merge(conn, suggestion, word, intent, merged_by)


def _create_word_from_suggestion(
    conn: sqlite3.Connection,
    suggestion: WordSuggestionModel,
    intent: MergeIntentModel,
    merged_by: str,
) -> WordModel:
    try:
        word = None
        if intent.canonical_id:
            word = _db.get(conn, WordModel, intent.canonical_id)
        if word is None:
            word = insert_word(conn, {
                "word": suggestion.word,
                "word_class": suggestion.word_class,
                "definitions": suggestion.definitions,
                "variations": suggestion.variations,
                "stems": suggestion.stems,
            })
            intent = _save_intent(conn, replace(intent, canonical_id=word.id))
        if intent.status == MergeStatus.PENDING.value:
            word = attach_embedded_examples(conn, word, suggestion.examples)
        return _after_merge(conn, suggestion, word, intent, merged_by)
    except Exception as e:
        raise PersistenceError(NEW_WORD_FAILURE, cause=e) from e


def _after_merge(
    conn: sqlite3.Connection,
    suggestion: WordSuggestionModel,
    word: WordModel,
    intent: MergeIntentModel,
    merged_by: str,
) -> WordModel:
    """Merge the nested example suggestions, then stamp the word suggestion."""
    if intent.status == MergeStatus.PENDING.value:
        nested = _db.find_example_suggestions_by_associated_word(conn, suggestion.id)
        intent = _save_intent(conn, replace(
            intent,
            status=MergeStatus.CASCADING.value,
            nested=tuple(s.id for s in nested),
        ))

    for nested_id in intent.nested:
        if nested_id in intent.completed:
            continue
        _merge_nested_example(conn, nested_id, suggestion.id, word.id, merged_by)
        intent = _save_intent(
            conn, replace(intent, completed=intent.completed + (nested_id,))
        )

    produced = []
    for nested_id in intent.nested:
        nested = _db.get(conn, ExampleSuggestionModel, nested_id)
        if nested is not None and nested.merged:
            produced.append(nested.merged)
    word = _db.get(conn, WordModel, word.id)
    examples = union_references(word.examples, produced)
    if examples != list(word.examples):
        with conn:
            word = _db.save(conn, replace(word, examples=tuple(examples)))

    # Stamp last: a failure above leaves the suggestion pending.
    _stamp(conn, suggestion, "word_suggestion", word.id, merged_by)
    _save_intent(conn, replace(intent, status=MergeStatus.COMPLETE.value))
    return _db.get(conn, WordModel, word.id)


def _merge_nested_example(
    conn: sqlite3.Connection,
    nested_id: str,
    word_suggestion_id: str,
    word_id: str,
    merged_by: str,
) -> None:
    nested = _db.get(conn, ExampleSuggestionModel, nested_id)
    if nested is None:
        raise EntityNotFoundError(NO_EXAMPLE_SUGGESTION)
    if nested.is_merged:
        # merged by an interrupted earlier attempt
        return
    associated = relink_associated_words(
        nested.associated_words, word_suggestion_id, word_id
    )
    if associated != list(nested.associated_words):
        with conn:
            _db.save(conn, replace(nested, associated_words=tuple(associated)))
            _hist.record_update(
                conn, "example_suggestion", nested.id, "associated_words",
                list(nested.associated_words), associated,
            )
    merge_example(conn, nested_id, merged_by)


# ---------------------------------------------------------------------------
# Word deletion / consolidation
# ---------------------------------------------------------------------------

def delete_word_suggestions_by_original_word_id(
    conn: sqlite3.Connection, word_id: str
) -> int:
    """Delete every word suggestion targeting *word_id*, merged or not."""
    suggestions = _db.find_word_suggestions_by_original_word_id(conn, word_id)
    with conn:
        for suggestion in suggestions:
            _db.delete(conn, WordSuggestionModel, suggestion.id)
            _hist.record_delete(
                conn, "word_suggestion", suggestion.id,
                {"word": suggestion.word, "merged": suggestion.merged},
            )
    return len(suggestions)


def delete_word(
    conn: sqlite3.Connection,
    to_be_deleted_word_id: str,
    primary_word_id: str | None,
) -> WordModel:
    """Delete a word, folding its data into *primary_word_id*.

    The deleted headword becomes a variation of the primary word and every
    example pointing at the deleted word is relinked to the primary one.
    """
    doomed = _db.get(conn, WordModel, to_be_deleted_word_id)
    if doomed is None:
        raise EntityNotFoundError(f"Word not found: {to_be_deleted_word_id!r}")
    examples = _db.find_examples_by_associated_word(conn, doomed.id)
    primary = find_word_for_update(conn, primary_word_id)
    if primary.id == doomed.id:
        raise ValidationError("A word can't be merged into itself")

    combined = replace(
        primary,
        definitions=tuple(union_values(primary.definitions, doomed.definitions)),
        variations=tuple(
            union_values(primary.variations, doomed.variations, [doomed.word])
        ),
        stems=tuple(union_values(primary.stems, doomed.stems)),
        examples=tuple(union_references(primary.examples, doomed.examples)),
    )

    with conn:
        _db.delete(conn, WordModel, doomed.id)
        _hist.record_delete(conn, "word", doomed.id, {"word": doomed.word})
    removed = delete_word_suggestions_by_original_word_id(conn, doomed.id)
    relink_examples(conn, examples, doomed.id, primary.id)

    with conn:
        saved = _db.save(conn, combined)
        _hist.record_update(conn, "word", saved.id, "merge_from", None, doomed.id)
    logger.info(
        "Deleted word %s into %s (%d suggestion(s) removed, %d example(s) relinked)",
        doomed.id, primary.id, removed, len(examples),
    )
    return saved
