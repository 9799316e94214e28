"""
BadgeWatch - Snapshot Schemas
Typed results of one fetch, tagged by diff policy
"""

from typing import Dict, List, Literal, Union, Annotated
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimestampedItem(BaseModel):
    """An item whose novelty is judged by its creation time."""
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Backend timestamps come without an offset
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TimestampSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy: Literal["timestamp"] = "timestamp"
    items: List[TimestampedItem] = Field(default_factory=list)

    @property
    def latest(self) -> datetime | None:
        if not self.items:
            return None
        return max(item.created_at for item in self.items)


class CountSnapshot(BaseModel):
    """
    Current cardinality of a source.

    ``count`` is the category-level figure not covered by ``sub_counts``.
    """
    model_config = ConfigDict(frozen=True)

    policy: Literal["count"] = "count"
    count: int = Field(0, ge=0)
    sub_counts: Dict[str, int] = Field(default_factory=dict)


class WindowSubItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_updates: bool = False
    count: int = Field(0, ge=0)


class WindowSnapshot(BaseModel):
    """Backend-evaluated "anything changed in the last K hours" verdict."""
    model_config = ConfigDict(frozen=True)

    policy: Literal["window"] = "window"
    has_updates: bool = False
    count: int = Field(0, ge=0)
    sub_items: Dict[str, WindowSubItem] = Field(default_factory=dict)


Snapshot = Annotated[
    Union[TimestampSnapshot, CountSnapshot, WindowSnapshot],
    Field(discriminator="policy")
]
