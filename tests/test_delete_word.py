"""Tests for word deletion and consolidation."""

import pytest

from dictionary_editor import EntityNotFoundError, ValidationError


class TestDeleteWord:

    def test_consolidates_arrays(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        primary = ed.delete_word(w2.id, w1.id)
        assert primary.id == w1.id
        assert primary.definitions == ("food", "feast")
        assert primary.variations == ("nri ọma", "oriri")
        assert primary.stems == ("ri",)

    def test_headword_becomes_variation(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        primary = ed.delete_word(w1.id, w2.id)
        assert primary.variations == ("oriri", "nri ọma", "nri")

    def test_word_removed(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        ed.delete_word(w2.id, w1.id)
        with pytest.raises(EntityNotFoundError):
            ed.get_word(w2.id)

    def test_examples_relinked(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        ed.delete_word(w2.id, w1.id)
        assert ed.get_example(shared.id).associated_words == (w1.id,)
        assert ed.get_example(ex2.id).associated_words == (w1.id,)
        assert ed.find_examples_by_associated_word(w2.id) == []

    def test_example_ids_unioned(self, editor):
        w1 = editor.create_word("nri", examples=[{"igbo": "Nri", "english": "Food"}])
        w2 = editor.create_word("oriri", examples=[{"igbo": "Oriri", "english": "Feast"}])
        primary = editor.delete_word(w2.id, w1.id)
        assert primary.examples == w1.examples + w2.examples

    def test_orphaned_suggestions_deleted(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        pending = ed.create_word_suggestion("oriri", original_word_id=w2.id)
        merged = ed.create_word_suggestion("oriri", original_word_id=w2.id)
        ed.merge_word(merged.id, "editor-1")
        kept = ed.create_word_suggestion("nri", original_word_id=w1.id)

        ed.delete_word(w2.id, w1.id)
        assert ed.find_word_suggestions(original_word_id=w2.id) == []
        with pytest.raises(EntityNotFoundError):
            ed.get_word_suggestion(pending.id)
        assert ed.get_word_suggestion(kept.id).id == kept.id

    def test_history(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        ed.delete_word(w2.id, w1.id)
        deleted = ed.get_history(entity_id=w2.id, operation="DELETE")
        assert len(deleted) == 1
        merged = ed.get_history(entity_id=w1.id, operation="UPDATE")
        assert merged[-1].field_name == "merge_from"

    def test_no_duplicates_after_delete(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        primary = ed.delete_word(w2.id, w1.id)
        for field in ("definitions", "variations", "stems", "examples"):
            values = getattr(primary, field)
            assert len(values) == len(set(values))


class TestDeleteWordValidation:

    def test_missing_word(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        with pytest.raises(EntityNotFoundError):
            ed.delete_word("f" * 24, w1.id)

    def test_no_primary_id(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        with pytest.raises(ValidationError, match="No word id provided"):
            ed.delete_word(w2.id, None)
        assert ed.get_word(w2.id).id == w2.id

    def test_invalid_primary_id(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        with pytest.raises(ValidationError, match="Invalid word id provided"):
            ed.delete_word(w2.id, "bad-id")

    def test_missing_primary(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        with pytest.raises(EntityNotFoundError, match="Word doesn't exist"):
            ed.delete_word(w2.id, "f" * 24)
        assert ed.get_word(w2.id).id == w2.id

    def test_into_itself(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        with pytest.raises(ValidationError):
            ed.delete_word(w1.id, w1.id)
        assert ed.get_word(w1.id).id == w1.id
