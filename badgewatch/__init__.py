"""
BadgeWatch
Notification badge aggregation and change detection for the store dashboard
"""

__version__ = "1.0.0"
