"""
BadgeWatch - Common Schemas
Base models and enums shared across the application
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel
from enum import Enum


# ==================== Enums ====================

class CategoryKey(str, Enum):
    RETURNS = "returns"
    REPORTS = "reports"
    WAREHOUSE = "warehouse"
    LOGS = "logs"
    USERS = "users"
    SUPPLIERS = "suppliers"
    WAREHOUSE_SITES = "warehouse_sites"
    SYSTEM_ACTIVITY = "system_activity"


class DiffPolicy(str, Enum):
    """How a poll source decides what is new."""
    TIMESTAMP = "timestamp"
    COUNT = "count"
    WINDOW = "window"


class PollState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class PollOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


# Target name of the cross-cutting system update slice
SYSTEM_TARGET = "system"


# ==================== Base Response Models ====================

class BaseResponse(BaseModel):
    """Base response model."""
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
