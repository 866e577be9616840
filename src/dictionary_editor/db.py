"""Database connection, DDL, and per-document CRUD for dictionary-editor."""

from __future__ import annotations

import json
import re
import secrets
import sqlite3
from dataclasses import fields
from pathlib import Path
from typing import Any, TypeVar

from dictionary_editor.exceptions import (
    ConflictError,
    DatabaseError,
    EntityNotFoundError,
)
from dictionary_editor.models import (
    ExampleModel,
    ExampleSuggestionModel,
    MergeIntentModel,
    MergeStatus,
    WordModel,
    WordSuggestionModel,
)

SCHEMA_VERSION = "2.0"

_M = TypeVar("_M")

# ---------------------------------------------------------------------------
# JSON type converter (array columns)
# ---------------------------------------------------------------------------

def _convert_json(data: bytes) -> Any:
    if data is None or data == b"":
        return None
    return json.loads(data)


sqlite3.register_converter("JSON", _convert_json)


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Document tables keep the implicit rowid, used for insertion order

-- Canonical records
CREATE TABLE IF NOT EXISTS words (
    id TEXT NOT NULL PRIMARY KEY,
    word TEXT NOT NULL,
    word_class TEXT,
    definitions JSON NOT NULL DEFAULT '[]',
    variations JSON NOT NULL DEFAULT '[]',
    stems JSON NOT NULL DEFAULT '[]',
    examples JSON NOT NULL DEFAULT '[]',
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS word_word_index ON words (word);

CREATE TABLE IF NOT EXISTS examples (
    id TEXT NOT NULL PRIMARY KEY,
    igbo TEXT NOT NULL DEFAULT '',
    english TEXT NOT NULL DEFAULT '',
    associated_words JSON NOT NULL DEFAULT '[]',
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Suggestions
CREATE TABLE IF NOT EXISTS word_suggestions (
    id TEXT NOT NULL PRIMARY KEY,
    word TEXT NOT NULL DEFAULT '',
    word_class TEXT,
    definitions JSON NOT NULL DEFAULT '[]',
    variations JSON NOT NULL DEFAULT '[]',
    stems JSON NOT NULL DEFAULT '[]',
    examples JSON NOT NULL DEFAULT '[]',
    original_word_id TEXT,
    author_id TEXT,
    merged TEXT,
    merged_by TEXT,
    merged_at TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS word_suggestion_original_index
    ON word_suggestions (original_word_id);

CREATE TABLE IF NOT EXISTS example_suggestions (
    id TEXT NOT NULL PRIMARY KEY,
    igbo TEXT NOT NULL DEFAULT '',
    english TEXT NOT NULL DEFAULT '',
    associated_words JSON NOT NULL DEFAULT '[]',
    original_example_id TEXT,
    author_id TEXT,
    merged TEXT,
    merged_by TEXT,
    merged_at TEXT,
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Word merge progress
CREATE TABLE IF NOT EXISTS merge_intents (
    id TEXT NOT NULL PRIMARY KEY,
    suggestion_type TEXT NOT NULL,
    suggestion_id TEXT NOT NULL,
    merged_by TEXT NOT NULL,
    status TEXT NOT NULL CHECK( status IN ('pending', 'cascading', 'complete') ),
    canonical_id TEXT,
    nested JSON NOT NULL DEFAULT '[]',
    completed JSON NOT NULL DEFAULT '[]',
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS merge_intent_suggestion_index
    ON merge_intents (suggestion_id, status);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    entity_type TEXT NOT NULL CHECK( entity_type IN ('word','example','word_suggestion','example_suggestion') ),
    entity_id TEXT NOT NULL,
    field_name TEXT,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE', 'DELETE', 'MERGE') ),
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_entity_index ON edit_history (entity_type, entity_id);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""

_NOW = "strftime('%Y-%m-%dT%H:%M:%f', 'now')"

# model class -> (table, label, writable columns)
_TABLES: dict[type, tuple[str, str, tuple[str, ...]]] = {
    WordModel: (
        "words", "Word",
        ("word", "word_class", "definitions", "variations", "stems",
         "examples"),
    ),
    ExampleModel: (
        "examples", "Example",
        ("igbo", "english", "associated_words"),
    ),
    WordSuggestionModel: (
        "word_suggestions", "Word suggestion",
        ("word", "word_class", "definitions", "variations", "stems",
         "examples", "original_word_id", "author_id", "merged",
         "merged_by", "merged_at"),
    ),
    ExampleSuggestionModel: (
        "example_suggestions", "Example suggestion",
        ("igbo", "english", "associated_words", "original_example_id",
         "author_id", "merged", "merged_by", "merged_at"),
    ),
    MergeIntentModel: (
        "merge_intents", "Merge intent",
        ("suggestion_type", "suggestion_id", "merged_by", "status",
         "canonical_id", "nested", "completed"),
    ),
}

_JSON_COLUMNS = frozenset({
    "definitions", "variations", "stems", "examples", "associated_words",
    "nested", "completed",
})

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with editor PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(
        db_path_str,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
    )
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        f"VALUES ('created_at', {_NOW})",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def timestamp(conn: sqlite3.Connection) -> str:
    """Current UTC time in the format the database stores."""
    return conn.execute(f"SELECT {_NOW}").fetchone()[0]


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def new_id() -> str:
    """Generate a fresh 24-hex-digit document id."""
    return secrets.token_hex(12)


def is_valid_id(value: Any) -> bool:
    """True if *value* is syntactically a document id."""
    return isinstance(value, str) and _ID_PATTERN.match(value) is not None


# ---------------------------------------------------------------------------
# Generic document helpers
# ---------------------------------------------------------------------------

def _encode(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return json.dumps(list(value or ()), ensure_ascii=False)
    return value


def _row_to_model(cls: type[_M], row: sqlite3.Row) -> _M:
    kwargs = {}
    for f in fields(cls):
        value = row[f.name]
        if f.name in _JSON_COLUMNS:
            value = tuple(value or ())
        kwargs[f.name] = value
    return cls(**kwargs)


def get(conn: sqlite3.Connection, cls: type[_M], doc_id: str) -> _M | None:
    """Fetch one document by id, or None."""
    table = _TABLES[cls][0]
    row = conn.execute(
        f"SELECT * FROM {table} WHERE id = ?", (doc_id,)
    ).fetchone()
    return _row_to_model(cls, row) if row else None


def insert(conn: sqlite3.Connection, cls: type[_M], values: dict[str, Any]) -> _M:
    """Insert a new document and return it as stored."""
    table, _, writable = _TABLES[cls]
    doc_id = new_id()
    columns = ["id"] + [c for c in writable if c in values]
    params = [doc_id] + [_encode(c, values[c]) for c in columns[1:]]
    placeholders = ", ".join("?" for _ in columns)
    conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}, created_at, updated_at) "
        f"VALUES ({placeholders}, {_NOW}, {_NOW})",
        params,
    )
    return get(conn, cls, doc_id)


def save(conn: sqlite3.Connection, model: _M) -> _M:
    """Write every field of *model* back, guarded by its version.

    Raises ConflictError when the stored version moved on since *model*
    was read.
    """
    cls = type(model)
    table, label, writable = _TABLES[cls]
    assignments = ", ".join(f"{c} = ?" for c in writable)
    cur = conn.execute(
        f"UPDATE {table} SET {assignments}, version = version + 1, "
        f"updated_at = {_NOW} WHERE id = ? AND version = ?",
        (*(_encode(c, getattr(model, c)) for c in writable),
         model.id, model.version),
    )
    if cur.rowcount == 0:
        if get(conn, cls, model.id) is None:
            raise EntityNotFoundError(f"{label} not found: {model.id!r}")
        raise ConflictError(
            f"{label} {model.id!r} was modified concurrently "
            f"(stale version {model.version})"
        )
    return get(conn, cls, model.id)


def delete(conn: sqlite3.Connection, cls: type, doc_id: str) -> int:
    """Delete a document by id; returns the number of rows removed."""
    table = _TABLES[cls][0]
    return conn.execute(f"DELETE FROM {table} WHERE id = ?", (doc_id,)).rowcount


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def find_words(
    conn: sqlite3.Connection,
    *,
    word: str | None = None,
    word_contains: str | None = None,
) -> list[WordModel]:
    """Find words by exact headword or headword substring."""
    clauses: list[str] = []
    params: list[str] = []
    if word is not None:
        clauses.append("word = ?")
        params.append(word)
    if word_contains is not None:
        clauses.append("word LIKE ?")
        params.append(f"%{word_contains}%")
    where = " AND ".join(clauses) if clauses else "1=1"
    rows = conn.execute(
        f"SELECT * FROM words WHERE {where} ORDER BY rowid", params
    ).fetchall()
    return [_row_to_model(WordModel, r) for r in rows]


def find_examples_by_associated_word(
    conn: sqlite3.Connection, word_id: str
) -> list[ExampleModel]:
    """All examples whose associated words include *word_id*."""
    rows = conn.execute(
        "SELECT * FROM examples e WHERE EXISTS "
        "(SELECT 1 FROM json_each(e.associated_words) WHERE value = ?) "
        "ORDER BY e.rowid",
        (str(word_id),),
    ).fetchall()
    return [_row_to_model(ExampleModel, r) for r in rows]


def find_example_suggestions_by_associated_word(
    conn: sqlite3.Connection, word_id: str
) -> list[ExampleSuggestionModel]:
    """All example suggestions whose associated words include *word_id*."""
    rows = conn.execute(
        "SELECT * FROM example_suggestions s WHERE EXISTS "
        "(SELECT 1 FROM json_each(s.associated_words) WHERE value = ?) "
        "ORDER BY s.rowid",
        (str(word_id),),
    ).fetchall()
    return [_row_to_model(ExampleSuggestionModel, r) for r in rows]


def find_word_suggestions_by_original_word_id(
    conn: sqlite3.Connection, word_id: str
) -> list[WordSuggestionModel]:
    """All word suggestions that target the canonical word *word_id*."""
    rows = conn.execute(
        "SELECT * FROM word_suggestions WHERE original_word_id = ? "
        "ORDER BY rowid",
        (word_id,),
    ).fetchall()
    return [_row_to_model(WordSuggestionModel, r) for r in rows]


def get_pending_intent(
    conn: sqlite3.Connection, suggestion_id: str
) -> MergeIntentModel | None:
    """The unfinished merge intent for a suggestion, if any."""
    row = conn.execute(
        "SELECT * FROM merge_intents WHERE suggestion_id = ? AND status != ? "
        "ORDER BY rowid DESC LIMIT 1",
        (suggestion_id, MergeStatus.COMPLETE.value),
    ).fetchone()
    return _row_to_model(MergeIntentModel, row) if row else None


def get_latest_intent(
    conn: sqlite3.Connection, suggestion_id: str
) -> MergeIntentModel | None:
    """The most recent merge intent for a suggestion, whatever its status."""
    row = conn.execute(
        "SELECT * FROM merge_intents WHERE suggestion_id = ? "
        "ORDER BY rowid DESC LIMIT 1",
        (suggestion_id,),
    ).fetchone()
    return _row_to_model(MergeIntentModel, row) if row else None


def list_pending_intents(conn: sqlite3.Connection) -> list[MergeIntentModel]:
    """Every merge intent that has not completed, oldest first."""
    rows = conn.execute(
        "SELECT * FROM merge_intents WHERE status != ? ORDER BY rowid",
        (MergeStatus.COMPLETE.value,),
    ).fetchall()
    return [_row_to_model(MergeIntentModel, r) for r in rows]
