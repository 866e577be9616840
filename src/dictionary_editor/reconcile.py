"""Union/dedup helpers for the denormalized array fields of words and examples."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from typing import Any


def union(
    *arrays: Iterable[Any] | None,
    key: Callable[[Any], Hashable] | None = None,
) -> list[Any]:
    """Concatenate *arrays*, keeping the first occurrence of each value.

    Values compare by ``key(value)`` when *key* is given. ``None`` inputs
    are treated as empty.
    """
    seen: set[Hashable] = set()
    result: list[Any] = []
    for array in arrays:
        for value in array or ():
            marker = key(value) if key is not None else value
            if marker in seen:
                continue
            seen.add(marker)
            result.append(value)
    return result


def union_values(*arrays: Iterable[str] | None) -> list[str]:
    """Union of text arrays (definitions, variations, stems)."""
    return union(*arrays)


def union_references(*arrays: Iterable[Any] | None) -> list[str]:
    """Union of id arrays, compared and returned in string form."""
    return [str(value) for value in union(*arrays, key=str)]


def has_duplicates(
    values: Iterable[Any],
    key: Callable[[Any], Hashable] | None = None,
) -> bool:
    values = list(values)
    return len(union(values, key=key)) != len(values)
