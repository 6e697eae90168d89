"""
Primary-key and insert modes.

Both are closed sets; values are the lowercase names accepted in configuration
(`PK_MODE=record_key`, `INSERT_MODE=upsert`). Parsing is case-insensitive.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class _CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value: object) -> Optional["_CaseInsensitiveEnum"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class PrimaryKeyMode(_CaseInsensitiveEnum):
    """How the identifying columns of a row are derived from a record."""

    NONE = "none"
    KAFKA = "kafka"
    RECORD_KEY = "record_key"
    RECORD_VALUE = "record_value"


class InsertMode(_CaseInsensitiveEnum):
    """
    Statement family used for non-delete records.

    Only placeholder ordering depends on it: INSERT and UPSERT bind key columns
    first, UPDATE binds them last (they land in the WHERE clause).
    """

    INSERT = "insert"
    UPSERT = "upsert"
    UPDATE = "update"


__all__ = ["PrimaryKeyMode", "InsertMode"]
