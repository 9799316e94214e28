"""
BadgeWatch - Notification Store
Single source of truth for badge counts and update flags
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional
from datetime import datetime, timezone
import threading
import logging

from badgewatch.core.exceptions import NotFoundError
from badgewatch.schemas.common import CategoryKey
from badgewatch.schemas.notifications import (
    CategoryState,
    Delta,
    NotificationState,
    SubItemState,
    SystemDelta,
    SystemUpdateState,
)
from badgewatch.services import reducers

logger = logging.getLogger(__name__)

Listener = Callable[[NotificationState], None]


DEFAULT_SUB_ITEMS: Dict[str, List[str]] = {
    CategoryKey.RETURNS.value: ["Pending Returns"],
    CategoryKey.REPORTS.value: [
        "Stock In Report",
        "Stock Out Report",
        "Sales Report",
        "Inventory Balance Report",
        "Supplier Report",
        "Cashier Performance Report",
        "Stock Adjustment Report",
        "Login Logs Report",
    ],
    CategoryKey.WAREHOUSE.value: ["Low Stock", "Expiring", "Out of Stock", "Expired"],
    CategoryKey.LOGS.value: ["Login Logs"],
    CategoryKey.USERS.value: ["Pending Approvals", "Inactive Users"],
    CategoryKey.SUPPLIERS.value: ["Pending Approvals", "Inactive Suppliers"],
    # one sub-item per warehouse, created as the backend reports them
    CategoryKey.WAREHOUSE_SITES.value: [],
    CategoryKey.SYSTEM_ACTIVITY.value: [
        "Product Entry",
        "Stock Out",
        "Inventory Balance",
        "Cashier Report",
        "Sales Report",
        "POS Activity",
    ],
}

# Categories whose badge also lights up while the system slice is flagged
SYSTEM_LINKED = {CategoryKey.REPORTS.value, CategoryKey.LOGS.value}


class NotificationStore:
    """
    Process-wide notification state.

    Every write replaces the immutable state tree with the result of a pure
    reducer, under one writer lock and with no suspension point between read
    and write, so updates arriving from different poll callbacks in the same
    loop tick never interleave. Presentation surfaces subscribe to be told
    about each new tree.
    """

    def __init__(self, sub_items: Optional[Mapping[str, Iterable[str]]] = None):
        self._state = reducers.initial_state(sub_items if sub_items is not None else DEFAULT_SUB_ITEMS)
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    # ==================== Reads ====================

    @property
    def state(self) -> NotificationState:
        return self._state

    @property
    def categories(self) -> List[str]:
        return list(self._state.categories)

    @property
    def system(self) -> SystemUpdateState:
        return self._state.system

    def get_category(self, category: str) -> CategoryState:
        self._require(category)
        return self._state.categories[category]

    def get_total(self, category: str) -> int:
        """Category count including every sub-item."""
        return self.get_category(category).count

    def get_sub_item(self, category: str, sub_item: str) -> SubItemState:
        state = self.get_category(category)
        return state.sub_items.get(sub_item, SubItemState())

    def has_updates(self, category: str) -> bool:
        state = self.get_category(category)
        if category in SYSTEM_LINKED and self._state.system.has_updates:
            return True
        return state.has_updates

    def has_any(self) -> bool:
        """True iff any category or the system slice carries a count or flag."""
        current = self._state
        if current.system.has_updates or current.system.count > 0:
            return True
        return any(
            category.count > 0 or category.has_updates
            for category in current.categories.values()
        )

    # ==================== Writes ====================

    def apply_delta(self, delta: Delta) -> NotificationState:
        """Merge a delta additively into its category."""
        self._require(delta.category)
        return self._dispatch(lambda state, now: reducers.apply_delta(state, delta, now))

    def apply_system_delta(self, delta: SystemDelta) -> NotificationState:
        return self._dispatch(lambda state, now: reducers.apply_system_delta(state, delta, now))

    def mark_viewed(self, category: str, sub_item: Optional[str] = None) -> NotificationState:
        """
        Zero a category, or one of its sub-items, because a user looked at it.

        This is the only write that lowers a count.

        Raises:
            NotFoundError: Unknown category, or a sub-item the category does not have
        """
        self._require(category)
        if sub_item is not None and sub_item not in self._state.categories[category].sub_items:
            raise NotFoundError("Sub-item", sub_item)
        logger.debug(f"Marking viewed: {category}" + (f" / {sub_item}" if sub_item else ""))
        return self._dispatch(lambda state, now: reducers.mark_viewed(state, category, sub_item, now))

    def clear_system_updates(self) -> NotificationState:
        return self._dispatch(reducers.clear_system)

    def clear_all(self) -> NotificationState:
        def _clear(state: NotificationState, now: datetime) -> NotificationState:
            for category in state.categories:
                state = reducers.mark_viewed(state, category, None, now)
            return reducers.clear_system(state, now)

        return self._dispatch(_clear)

    def restore(self, saved: NotificationState) -> NotificationState:
        """Replace the state with a previously saved tree."""
        return self._dispatch(lambda state, now: reducers.restore(state, saved, now))

    # ==================== Subscriptions ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with every new state.

        Returns:
            A callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    # ==================== Internals ====================

    def _require(self, category: str) -> None:
        if category not in self._state.categories:
            raise NotFoundError("Notification category", category)

    def _dispatch(self, reducer: Callable[[NotificationState, datetime], NotificationState]) -> NotificationState:
        with self._lock:
            previous = self._state
            self._state = reducer(previous, datetime.now(timezone.utc))
            current = self._state

        if current is not previous:
            self._notify(current)
        return current

    def _notify(self, state: NotificationState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Notification listener failed: {e}")
