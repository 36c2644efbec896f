"""Canonical enum <-> string tables.

Every status, field type and embedding model name is persisted and sent over
the wire as the ``value`` of one of these enums. Nothing else in the codebase
keeps its own string mapping.
"""

from enum import Enum


class _StrEnum(str, Enum):
    @classmethod
    def parse(cls, value):
        """Return the member for ``value`` or ``None`` when it is not recognized.

        Matching ignores case and surrounding whitespace.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    def __str__(self) -> str:
        return self.value


class FormStatus(_StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class FieldType(_StrEnum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"

    @property
    def requires_options(self) -> bool:
        return self in CHOICE_FIELD_TYPES


# Choice-like types must carry an options map; all others must not.
CHOICE_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX})


class ResponseStatus(_StrEnum):
    SUBMITTED = "submitted"


class EmbeddingModel(_StrEnum):
    TEXT_EMBEDDING_3_SMALL = "text-embedding-3-small"
    TEXT_EMBEDDING_3_LARGE = "text-embedding-3-large"
    TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"
    # Gemini
    TEXT_EMBEDDING_004 = "text-embedding-004"
