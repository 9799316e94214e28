"""
BadgeWatch - Routes Module
All API endpoints organized by resource
"""

from fastapi import APIRouter

# Import all routers
from badgewatch.routes.notifications import router as notifications_router
from badgewatch.routes.preferences import router as preferences_router

# Main router
api_router = APIRouter()

# Include all routers
api_router.include_router(notifications_router)
api_router.include_router(preferences_router)

__all__ = ["api_router"]
