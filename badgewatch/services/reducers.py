"""
BadgeWatch - State Reducers
Pure functions from (previous state, action) to next state.

Counts are merged by addition and flags by OR, so two deltas for the same
category commute. Only the view-clear reducers assign absolute values.
"""

from typing import Dict, Iterable, Mapping, Optional
from datetime import datetime

from badgewatch.schemas.notifications import (
    CategoryState,
    Delta,
    NotificationState,
    SubItemState,
    SystemDelta,
    SystemUpdateState,
)

_CLEARED = SubItemState()


def initial_state(sub_items: Mapping[str, Iterable[str]]) -> NotificationState:
    """Zeroed tree with every category and its declared sub-items."""
    return NotificationState(
        categories={
            category: CategoryState(sub_items={name: _CLEARED for name in names})
            for category, names in sub_items.items()
        }
    )


def _merge_sub_item(current: Optional[SubItemState], count_delta: int, has_updates_new: bool) -> SubItemState:
    current = current or _CLEARED
    return SubItemState(
        count=current.count + count_delta,
        has_updates=current.has_updates or has_updates_new
    )


def _replace_category(state: NotificationState, key: str, category: CategoryState) -> NotificationState:
    categories = dict(state.categories)
    categories[key] = category
    return state.model_copy(update={"categories": categories})


def apply_delta(state: NotificationState, delta: Delta, now: datetime) -> NotificationState:
    if delta.is_empty:
        return state

    current = state.categories.get(delta.category, CategoryState())

    sub_items: Dict[str, SubItemState] = dict(current.sub_items)
    for name, sub_delta in delta.sub_item_deltas.items():
        sub_items[name] = _merge_sub_item(
            sub_items.get(name),
            sub_delta.count_delta,
            sub_delta.has_updates_new
        )

    merged = CategoryState(
        own_count=current.own_count + delta.count_delta,
        own_has_updates=current.own_has_updates or delta.has_updates_new,
        sub_items=sub_items,
        last_update=now
    )
    return _replace_category(state, delta.category, merged)


def mark_viewed(
    state: NotificationState,
    category: str,
    sub_item: Optional[str],
    now: datetime
) -> NotificationState:
    current = state.categories.get(category, CategoryState())

    if sub_item is None:
        cleared = CategoryState(
            sub_items={name: _CLEARED for name in current.sub_items},
            last_update=now
        )
        return _replace_category(state, category, cleared)

    sub_items = dict(current.sub_items)
    sub_items[sub_item] = _CLEARED
    cleared = current.model_copy(update={"sub_items": sub_items, "last_update": now})
    return _replace_category(state, category, cleared)


def apply_system_delta(state: NotificationState, delta: SystemDelta, now: datetime) -> NotificationState:
    system = SystemUpdateState(
        has_updates=state.system.has_updates or delta.has_updates_new,
        count=state.system.count + delta.count_delta,
        last_check=now
    )
    return state.model_copy(update={"system": system})


def clear_system(state: NotificationState, now: datetime) -> NotificationState:
    return state.model_copy(update={"system": SystemUpdateState(last_check=now)})


def restore(state: NotificationState, saved: NotificationState, now: datetime) -> NotificationState:
    """
    Lay a saved tree over the current one.

    Categories the current tree does not declare are dropped; declared
    sub-items missing from the saved tree keep their current value.
    """
    categories = dict(state.categories)
    for key, category in saved.categories.items():
        if key not in categories:
            continue
        sub_items = dict(categories[key].sub_items)
        sub_items.update(category.sub_items)
        categories[key] = category.model_copy(update={"sub_items": sub_items})
    return state.model_copy(update={"categories": categories, "system": saved.system})
