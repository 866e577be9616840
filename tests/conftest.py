"""Shared test fixtures for dictionary-editor."""

import pytest

from dictionary_editor import DictionaryEditor, EditorConfig, StaticUserDirectory


class RecordingSender:
    """Sender that keeps every notification it is given."""

    def __init__(self):
        self.sent = []

    def __call__(self, notification):
        self.sent.append(notification)


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def users():
    return StaticUserDirectory({
        "author-1": {"email": "author@example.com"},
        "no-email": {},
    })


@pytest.fixture
def editor(sender, users):
    """Create an in-memory editor that delivers notifications inline."""
    config = EditorConfig(
        notifications_in_background=False,
        notification_wait_multiplier=0,
        dictionary_app_url="https://dictionary.test",
    )
    with DictionaryEditor(":memory:", config=config, users=users, sender=sender) as ed:
        yield ed


@pytest.fixture
def editor_with_words(editor):
    """Editor with two words, one shared example and one example each."""
    ed = editor
    w1 = ed.create_word(
        "nri", "noun",
        definitions=["food"],
        variations=["nri ọma"],
        stems=["ri"],
    )
    w2 = ed.create_word(
        "oriri", "noun",
        definitions=["feast", "food"],
        variations=["oriri"],
    )
    shared = ed.create_example(
        "Nri dị ụtọ", "The food is tasty", associated_words=[w1.id, w2.id]
    )
    ex2 = ed.create_example("Oriri a", "This feast", associated_words=[w2.id])
    w1 = ed.get_word(w1.id)
    w2 = ed.get_word(w2.id)
    return ed, w1, w2, shared, ex2
