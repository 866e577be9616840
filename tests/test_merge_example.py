"""Tests for example suggestion merging."""

import sqlite3

import pytest

from dictionary_editor import (
    EntityNotFoundError,
    PersistenceError,
    ValidationError,
)
from dictionary_editor import merge as merge_mod


class TestMergeExampleCreate:

    def test_creates_new_example(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Ọ na-eri nri", "He is eating food", associated_words=[w1.id]
        )
        example = ed.merge_example(s.id, "editor-1")
        assert example.id not in (shared.id, ex2.id)
        assert example.igbo == "Ọ na-eri nri"
        assert example.associated_words == (w1.id,)

    def test_stamps_suggestion(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=[w1.id])
        example = ed.merge_example(s.id, "editor-1")
        stamped = ed.get_example_suggestion(s.id)
        assert stamped.merged == example.id
        assert stamped.merged_by == "editor-1"
        assert stamped.merged_at is not None
        assert stamped.is_merged

    def test_records_merge_history(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=[w1.id])
        ed.merge_example(s.id, "editor-1")
        merges = ed.get_history(entity_id=s.id, operation="MERGE")
        assert len(merges) == 1
        assert merges[0].entity_type == "example_suggestion"

    def test_store_failure_is_masked(self, editor_with_words, monkeypatch):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=[w1.id])

        def broken(conn, fields):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(merge_mod, "create_example", broken)
        with pytest.raises(PersistenceError) as exc_info:
            ed.merge_example(s.id, "editor-1")
        assert str(exc_info.value) == merge_mod.NEW_EXAMPLE_FAILURE
        assert isinstance(exc_info.value.cause, sqlite3.OperationalError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert exc_info.value.category == "persistence"

    def test_unexpected_failure_is_masked(self, editor_with_words, monkeypatch):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=[w1.id])

        def broken(conn, fields):
            raise RuntimeError("store down")

        monkeypatch.setattr(merge_mod, "create_example", broken)
        with pytest.raises(PersistenceError) as exc_info:
            ed.merge_example(s.id, "editor-1")
        assert str(exc_info.value) == merge_mod.NEW_EXAMPLE_FAILURE
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert not ed.get_example_suggestion(s.id).is_merged


class TestMergeExampleUpdate:

    def test_overwrites_existing_example(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Nri a dị ụtọ", "This food is tasty",
            associated_words=[w1.id],
            original_example_id=shared.id,
        )
        example = ed.merge_example(s.id, "editor-1")
        assert example.id == shared.id
        assert example.igbo == "Nri a dị ụtọ"
        assert example.english == "This food is tasty"
        assert example.associated_words == (w1.id,)
        assert ed.get_example_suggestion(s.id).merged == shared.id

    def test_missing_original_example(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Nri", "", associated_words=[w1.id], original_example_id="f" * 24,
        )
        with pytest.raises(EntityNotFoundError, match="Example doesn't exist"):
            ed.merge_example(s.id, "editor-1")
        assert not ed.get_example_suggestion(s.id).is_merged


class TestMergeExampleValidation:

    def test_missing_suggestion(self, editor):
        with pytest.raises(EntityNotFoundError) as exc_info:
            editor.merge_example("f" * 24, "editor-1")
        assert str(exc_info.value) == merge_mod.NO_EXAMPLE_SUGGESTION

    def test_missing_text(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("", "", associated_words=[w1.id])
        with pytest.raises(ValidationError, match="Required information"):
            ed.merge_example(s.id, "editor-1")

    def test_invalid_id(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=["nope"])
        with pytest.raises(ValidationError, match="Invalid id found"):
            ed.merge_example(s.id, "editor-1")

    def test_unknown_word(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=["f" * 24])
        with pytest.raises(ValidationError, match="can only contain Word ids"):
            ed.merge_example(s.id, "editor-1")

    def test_duplicate_words(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Nri", "", associated_words=[w1.id, w1.id]
        )
        with pytest.raises(ValidationError, match="Duplicates are not allowed"):
            ed.merge_example(s.id, "editor-1")

    def test_rejection_persists_nothing(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        before = ed._conn.execute("SELECT COUNT(*) FROM examples").fetchone()[0]
        s = ed.create_example_suggestion("", "", associated_words=[w1.id])
        with pytest.raises(ValidationError):
            ed.merge_example(s.id, "editor-1")
        after = ed._conn.execute("SELECT COUNT(*) FROM examples").fetchone()[0]
        assert after == before
        assert ed.get_example_suggestion(s.id).merged is None


class TestMergeExampleNotification:

    def test_notifies_author(self, editor_with_words, sender):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Nri", "", associated_words=[w1.id], author_id="author-1"
        )
        example = ed.merge_example(s.id, "editor-1")
        assert len(sender.sent) == 1
        note = sender.sent[0]
        assert note.destination == "author@example.com"
        assert note.suggestion_type == "example"
        assert note.deep_link == "https://dictionary.test/word?word=nri"
        assert note.payload["id"] == example.id

    def test_no_author_no_notification(self, editor_with_words, sender):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion("Nri", "", associated_words=[w1.id])
        ed.merge_example(s.id, "editor-1")
        assert sender.sent == []
