"""
Utility package providing configuration helpers for oauthredis.
"""

from .config import get_config_value

__all__ = [
    "get_config_value",
]
