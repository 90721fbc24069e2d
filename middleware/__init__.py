"""
Recipedium Middleware
Request logging and structured event helpers
"""

from .logging import LoggingMiddleware, log_user_activity, log_business_event

__all__ = [
    "LoggingMiddleware",
    "log_user_activity",
    "log_business_event"
]
