"""
Recipedium Client
Python wrapper for the REST API
"""

from .api_client import RecipediumClient, ApiError

__all__ = ["RecipediumClient", "ApiError"]
