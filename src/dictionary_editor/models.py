"""Domain model dataclasses and enums for dictionary-editor."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SuggestionType(str, Enum):
    """Kind of suggestion a merge notification refers to."""

    WORD = "word"
    EXAMPLE = "example"


class EditOperation(str, Enum):
    """Type of mutation recorded in the edit history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MERGE = "MERGE"


class MergeStatus(str, Enum):
    """Progress of a durable word-merge intent."""

    PENDING = "pending"
    CASCADING = "cascading"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WordModel:
    """A canonical, published headword."""

    id: str
    word: str
    word_class: str | None
    definitions: tuple[str, ...]
    variations: tuple[str, ...]
    stems: tuple[str, ...]
    examples: tuple[str, ...]
    version: int
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ExampleModel:
    """A canonical example sentence shared by one or more words."""

    id: str
    igbo: str
    english: str
    associated_words: tuple[str, ...]
    version: int
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class PopulatedWordModel:
    """A word together with the example documents it is linked to."""

    word: WordModel
    examples: tuple[ExampleModel, ...]

    @property
    def id(self) -> str:
        return self.word.id

    def to_dict(self) -> dict[str, Any]:
        data = self.word.to_dict()
        data["examples"] = [e.to_dict() for e in self.examples]
        return data


@dataclass(frozen=True, slots=True)
class WordSuggestionModel:
    """A user-proposed new word, or an edit of an existing one.

    ``examples`` holds embedded ``{"igbo": ..., "english": ...}`` payloads
    that become canonical examples when the suggestion creates a new word.
    ``merged`` is the canonical word id once the suggestion is merged.
    """

    id: str
    word: str
    word_class: str | None
    definitions: tuple[str, ...]
    variations: tuple[str, ...]
    stems: tuple[str, ...]
    examples: tuple[dict[str, Any], ...]
    original_word_id: str | None
    author_id: str | None
    merged: str | None
    merged_by: str | None
    merged_at: str | None
    version: int
    created_at: str
    updated_at: str

    @property
    def is_merged(self) -> bool:
        return self.merged is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ExampleSuggestionModel:
    """A user-proposed new example, or an edit of an existing one.

    Before the owning word suggestion is merged, ``associated_words`` may
    hold word *suggestion* ids.
    """

    id: str
    igbo: str
    english: str
    associated_words: tuple[str, ...]
    original_example_id: str | None
    author_id: str | None
    merged: str | None
    merged_by: str | None
    merged_at: str | None
    version: int
    created_at: str
    updated_at: str

    @property
    def is_merged(self) -> bool:
        return self.merged is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class MergeIntentModel:
    """Durable progress record for one word-suggestion merge."""

    id: str
    suggestion_type: str
    suggestion_id: str
    merged_by: str
    status: str
    canonical_id: str | None
    nested: tuple[str, ...]
    completed: tuple[str, ...]
    version: int
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry recording one change."""

    id: int
    entity_type: str
    entity_id: str
    field_name: str | None
    operation: str
    old_value: str | None
    new_value: str | None
    timestamp: str
