"""Edit history: who changed which document, and which suggestion became what.

Every mutation of a word, example or suggestion appends one row. Merges
are their own operation so the trail of a suggestion can be followed to
the canonical record it ended up in, and filtered by the editor who
merged it.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from dictionary_editor.models import EditOperation, EditRecord

# query_history keyword -> SQL condition
_FILTERS = {
    "entity_type": "entity_type = ?",
    "entity_id": "entity_id = ?",
    "field_name": "field_name = ?",
    "operation": "operation = ?",
    "since": "timestamp > ?",
    "merged_by": "operation = 'MERGE' AND json_extract(new_value, '$.merged_by') = ?",
    "merged_into": "operation = 'MERGE' AND json_extract(new_value, '$.merged') = ?",
}


def _record(
    conn: sqlite3.Connection,
    operation: EditOperation,
    entity_type: str,
    entity_id: str,
    *,
    field_name: str | None = None,
    old_value: str | None = None,
    new_value: str | None = None,
) -> None:
    conn.execute(
        "INSERT INTO edit_history "
        "(entity_type, entity_id, field_name, operation, old_value, new_value) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (entity_type, entity_id, field_name, operation.value, old_value, new_value),
    )


def _snapshot(value: dict | None) -> str | None:
    return json.dumps(value, ensure_ascii=False) if value else None


def record_create(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    new_value: dict | None = None,
) -> None:
    _record(
        conn, EditOperation.CREATE, entity_type, entity_id,
        new_value=_snapshot(new_value),
    )


def record_update(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    field_name: str,
    old_value: Any,
    new_value: Any,
) -> None:
    """Record one changed field; both values are stored as JSON."""
    _record(
        conn, EditOperation.UPDATE, entity_type, entity_id,
        field_name=field_name,
        old_value=json.dumps(old_value, ensure_ascii=False),
        new_value=json.dumps(new_value, ensure_ascii=False),
    )


def record_delete(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    old_value: dict | None = None,
) -> None:
    _record(
        conn, EditOperation.DELETE, entity_type, entity_id,
        old_value=_snapshot(old_value),
    )


def record_merge(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    canonical_id: str,
    merged_by: str,
) -> None:
    """Record that suggestion *entity_id* was merged into *canonical_id*."""
    _record(
        conn, EditOperation.MERGE, entity_type, entity_id,
        field_name="merged",
        new_value=_snapshot({"merged": canonical_id, "merged_by": merged_by}),
    )


def query_history(conn: sqlite3.Connection, **filters: str | None) -> list[EditRecord]:
    """Edit records matching every given filter, oldest first.

    Filters: ``entity_type``, ``entity_id``, ``field_name``, ``operation``,
    ``since`` (exclusive timestamp), ``merged_by`` (MERGE records made
    by that editor) and ``merged_into`` (MERGE records of suggestions that
    became that canonical id). ``None`` means "don't filter".

    Raises:
        TypeError: For an unknown filter name
    """
    unknown = sorted(set(filters) - set(_FILTERS))
    if unknown:
        raise TypeError(f"Unknown history filter(s): {', '.join(unknown)}")
    active = [(name, value) for name, value in filters.items() if value is not None]
    where = " AND ".join(_FILTERS[name] for name, _ in active) or "1=1"
    rows = conn.execute(
        f"SELECT rowid, * FROM edit_history WHERE {where} "
        "ORDER BY timestamp ASC, rowid ASC",
        [value for _, value in active],
    ).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            field_name=row["field_name"],
            operation=row["operation"],
            old_value=row["old_value"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]

