"""Rewriting of example -> word back-references when a word's id changes."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import replace

from dictionary_editor import db as _db
from dictionary_editor import history as _hist
from dictionary_editor.models import ExampleModel
from dictionary_editor.reconcile import union_references

logger = logging.getLogger(__name__)


def relink_associated_words(
    associated_words: Iterable[str],
    old_word_id: str,
    new_word_id: str,
) -> list[str]:
    """Replace *old_word_id* with *new_word_id*, without duplicates.

    The new id is appended only if it isn't already present; every
    occurrence of the old id is dropped.
    """
    old = str(old_word_id)
    kept = [w for w in associated_words if str(w) != old]
    return union_references(kept, [new_word_id])


def relink_examples(
    conn: sqlite3.Connection,
    examples: Iterable[ExampleModel],
    old_word_id: str,
    new_word_id: str,
) -> list[ExampleModel]:
    """Point every example in *examples* at *new_word_id* instead of *old_word_id*.

    Each example is saved on its own. Applying the same relink twice
    leaves the associated words unchanged the second time.
    """
    relinked: list[ExampleModel] = []
    for example in examples:
        associated = relink_associated_words(
            example.associated_words, old_word_id, new_word_id
        )
        with conn:
            saved = _db.save(
                conn, replace(example, associated_words=tuple(associated))
            )
            _hist.record_update(
                conn, "example", example.id, "associated_words",
                list(example.associated_words), associated,
            )
        relinked.append(saved)
    logger.debug(
        "Relinked %d example(s) from word %s to %s",
        len(relinked), old_word_id, new_word_id,
    )
    return relinked
