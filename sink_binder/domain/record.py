"""
Sink record model.

One change event as handed to the sink: its position in the source log, an
optional key and an optional value, each with an optional schema. A record
without a value is a tombstone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, InstanceOf

from sink_binder.domain.metadata import SchemaPair
from sink_binder.domain.schema import Schema


class SinkRecord(BaseModel):
    """
    Immutable change record.

    `key` and `value` are either a `Struct` (struct schemas) or a plain Python
    value matching a primitive schema.
    """

    topic: str = Field(..., description="Source topic name.")
    partition: int = Field(..., ge=0, description="Source partition.")
    offset: int = Field(..., ge=0, description="Offset within the partition.")
    key: Any = Field(None, description="Record key (Struct or primitive).")
    key_schema: Optional[InstanceOf[Schema]] = Field(None, description="Schema of the key.")
    value: Any = Field(None, description="Record value; None marks a tombstone.")
    value_schema: Optional[InstanceOf[Schema]] = Field(None, description="Schema of the value.")
    timestamp: Optional[datetime] = Field(None, description="Record timestamp, when known.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @property
    def is_tombstone(self) -> bool:
        return self.value is None

    @property
    def schema_pair(self) -> SchemaPair:
        return SchemaPair(key_schema=self.key_schema, value_schema=self.value_schema)

    def position(self) -> str:
        return f"{self.topic}-{self.partition}@{self.offset}"


__all__ = ["SinkRecord"]
