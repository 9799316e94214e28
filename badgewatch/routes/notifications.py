"""
BadgeWatch - Notifications Routes
Badge tree reads, view-clear and manual refresh
"""

from fastapi import APIRouter, Depends
import logging

from badgewatch.schemas import (
    BaseResponse,
    CategoryResponse,
    NotificationTreeResponse,
    PollOutcome,
    RefreshResponse,
)
from badgewatch.services.engine import NotificationEngine, get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _category_response(engine: NotificationEngine, category: str) -> CategoryResponse:
    state = engine.store.get_category(category)
    return CategoryResponse(
        category=category,
        total=state.count,
        has_updates=engine.store.has_updates(category),
        state=state
    )


# ==================== Badge Tree ====================

@router.get("", response_model=NotificationTreeResponse)
async def get_notifications(engine: NotificationEngine = Depends(get_engine)):
    """
    Whole notification tree.

    ``has_any`` drives the single header icon; per-category counts drive
    the sidebar badges.
    """
    state = engine.store.state
    return NotificationTreeResponse(
        has_any=engine.store.has_any(),
        categories=state.categories,
        system=state.system
    )


@router.get("/sources")
async def list_sources(engine: NotificationEngine = Depends(get_engine)):
    """List poll sources with their schedule and last run."""
    return {"success": True, "data": engine.sources_info()}


@router.delete("/system", response_model=BaseResponse)
async def clear_system_updates(engine: NotificationEngine = Depends(get_engine)):
    engine.store.clear_system_updates()
    return BaseResponse(message="System updates cleared")


@router.post("/sources/{name}/refresh", response_model=RefreshResponse)
async def refresh_source(name: str, engine: NotificationEngine = Depends(get_engine)):
    """
    Poll one source now.

    Unlike background polls, a failed fetch is reported to the caller
    (502 with the backend's message). Badge state is left untouched.
    """
    result = await engine.refresh(name)
    if result is PollOutcome.SKIPPED:
        return RefreshResponse(
            source=name,
            outcome=PollOutcome.SKIPPED.value,
            message="A poll of this source is already running"
        )

    return RefreshResponse(
        source=name,
        outcome=PollOutcome.APPLIED.value,
        alert_count=result.alert_count,
        message=f"{result.new_count} new" + (" (baseline)" if result.baseline else "")
    )


# ==================== Categories ====================

@router.get("/{category}", response_model=CategoryResponse)
async def get_category(category: str, engine: NotificationEngine = Depends(get_engine)):
    return _category_response(engine, category)


@router.put("/{category}/viewed", response_model=CategoryResponse)
async def mark_category_viewed(category: str, engine: NotificationEngine = Depends(get_engine)):
    """Zero a whole category, sub-items included."""
    engine.store.mark_viewed(category)
    return _category_response(engine, category)


@router.put("/{category}/sub-items/{sub_item}/viewed", response_model=CategoryResponse)
async def mark_sub_item_viewed(
    category: str,
    sub_item: str,
    engine: NotificationEngine = Depends(get_engine)
):
    """Zero one sub-item; the rest of the category keeps its counts."""
    engine.store.mark_viewed(category, sub_item)
    return _category_response(engine, category)
