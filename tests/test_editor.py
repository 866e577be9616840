"""Tests for editor lifecycle and suggestion CRUD."""

import pytest

from dictionary_editor import (
    DictionaryEditor,
    EditorConfig,
    EntityNotFoundError,
)


class TestLifecycle:

    def test_context_manager(self):
        with DictionaryEditor() as ed:
            assert ed.create_word("ji").word == "ji"

    def test_file_database_persists(self, tmp_path):
        db_file = tmp_path / "dictionary.db"
        with DictionaryEditor(db_file) as ed:
            word = ed.create_word("ji")
        with DictionaryEditor(db_file) as ed:
            assert ed.get_word(word.id).word == "ji"

    def test_db_path_from_config(self, tmp_path):
        config = EditorConfig(db_path=str(tmp_path / "from-config.db"))
        with DictionaryEditor(config=config) as ed:
            ed.create_word("ji")
        assert (tmp_path / "from-config.db").exists()

    def test_explicit_path_wins(self, tmp_path):
        config = EditorConfig(db_path=str(tmp_path / "ignored.db"))
        with DictionaryEditor(tmp_path / "used.db", config=config) as ed:
            assert ed.config is config
        assert (tmp_path / "used.db").exists()
        assert not (tmp_path / "ignored.db").exists()

    def test_background_notifications_flushed_on_close(self, users):
        sent = []
        with DictionaryEditor(users=users, sender=sent.append) as ed:
            s = ed.create_word_suggestion("ji", author_id="author-1")
            ed.merge_word(s.id, "editor-1")
        assert len(sent) == 1


class TestWordSuggestions:

    def test_create_and_get(self, editor):
        s = editor.create_word_suggestion(
            "ji", "noun",
            definitions=["yam"],
            examples=[{"igbo": "Ji", "english": "Yam", "extra": 1}],
            author_id="author-1",
        )
        fetched = editor.get_word_suggestion(s.id)
        assert fetched == s
        assert fetched.examples == ({"igbo": "Ji", "english": "Yam"},)
        assert fetched.merged is None
        assert not fetched.is_merged

    def test_not_found(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.get_word_suggestion("f" * 24)

    def test_find_by_original_word(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s1 = ed.create_word_suggestion("nri", original_word_id=w1.id)
        ed.create_word_suggestion("oriri", original_word_id=w2.id)
        s3 = ed.create_word_suggestion("nri", original_word_id=w1.id)
        found = ed.find_word_suggestions(original_word_id=w1.id)
        assert [s.id for s in found] == [s1.id, s3.id]

    def test_delete_by_original_word(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        ed.create_word_suggestion("nri", original_word_id=w1.id)
        ed.create_word_suggestion("nri", original_word_id=w1.id)
        other = ed.create_word_suggestion("oriri", original_word_id=w2.id)
        assert ed.delete_word_suggestions_by_original_word_id(w1.id) == 2
        assert ed.find_word_suggestions(original_word_id=w1.id) == []
        assert ed.get_word_suggestion(other.id).id == other.id

    def test_delete_none(self, editor):
        assert editor.delete_word_suggestions_by_original_word_id("f" * 24) == 0


class TestExampleSuggestions:

    def test_create_and_get(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s = ed.create_example_suggestion(
            "Nri", "Food",
            associated_words=f"{w1.id},{w2.id}",
            original_example_id=shared.id,
        )
        fetched = ed.get_example_suggestion(s.id)
        assert fetched.associated_words == (w1.id, w2.id)
        assert fetched.original_example_id == shared.id

    def test_not_found(self, editor):
        with pytest.raises(EntityNotFoundError):
            editor.get_example_suggestion("f" * 24)

    def test_find_by_associated_word(self, editor_with_words):
        ed, w1, w2, shared, ex2 = editor_with_words
        s1 = ed.create_example_suggestion("Nri", associated_words=[w1.id])
        ed.create_example_suggestion("Oriri", associated_words=[w2.id])
        found = ed.find_example_suggestions(associated_word=w1.id)
        assert [s.id for s in found] == [s1.id]
