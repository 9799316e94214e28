"""
BadgeWatch - Notification Schemas
Store state tree, deltas and API responses
"""

from typing import Optional, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field


# ==================== Store State ====================

class SubItemState(BaseModel):
    """Count and flag of one named subdivision of a category."""
    model_config = ConfigDict(frozen=True)

    count: int = Field(0, ge=0)
    has_updates: bool = False


class CategoryState(BaseModel):
    """
    Notification state of one category.

    ``own_count``/``own_has_updates`` hold category-only increments; the
    exposed ``count`` and ``has_updates`` fold in every sub-item.
    """
    model_config = ConfigDict(frozen=True)

    own_count: int = Field(0, ge=0)
    own_has_updates: bool = False
    sub_items: Dict[str, SubItemState] = Field(default_factory=dict)
    last_update: Optional[datetime] = None

    @computed_field
    @property
    def count(self) -> int:
        return self.own_count + sum(sub.count for sub in self.sub_items.values())

    @computed_field
    @property
    def has_updates(self) -> bool:
        return self.own_has_updates or any(sub.has_updates for sub in self.sub_items.values())


class SystemUpdateState(BaseModel):
    """Cross-cutting "something changed in the reports recently" slice."""
    model_config = ConfigDict(frozen=True)

    has_updates: bool = False
    count: int = Field(0, ge=0)
    last_check: Optional[datetime] = None


class NotificationState(BaseModel):
    """Whole store tree. Replaced, never mutated."""
    model_config = ConfigDict(frozen=True)

    categories: Dict[str, CategoryState] = Field(default_factory=dict)
    system: SystemUpdateState = Field(default_factory=SystemUpdateState)


# ==================== Deltas ====================

class SubItemDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    count_delta: int = Field(0, ge=0)
    has_updates_new: bool = False


class Delta(BaseModel):
    """What is new for a category since its last observation."""
    model_config = ConfigDict(frozen=True)

    category: str
    count_delta: int = Field(0, ge=0)
    has_updates_new: bool = False
    sub_item_deltas: Dict[str, SubItemDelta] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.count_delta + sum(d.count_delta for d in self.sub_item_deltas.values())

    @property
    def is_empty(self) -> bool:
        return (
            self.total == 0
            and not self.has_updates_new
            and not any(d.has_updates_new for d in self.sub_item_deltas.values())
        )


class SystemDelta(BaseModel):
    model_config = ConfigDict(frozen=True)

    count_delta: int = Field(0, ge=0)
    has_updates_new: bool = False


# ==================== Responses ====================

class CategoryResponse(BaseModel):
    """Single category as seen by a presentation surface."""
    category: str
    total: int
    has_updates: bool
    state: CategoryState


class NotificationTreeResponse(BaseModel):
    """Whole notification tree with the any-notifications verdict."""
    success: bool = True
    has_any: bool
    categories: Dict[str, CategoryState]
    system: SystemUpdateState


class RefreshResponse(BaseModel):
    success: bool = True
    source: str
    outcome: str
    alert_count: int = 0
    message: Optional[str] = None
