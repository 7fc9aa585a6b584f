"""
Common helpers shared across the oauthredis package.
"""

from .utils import (
    generate_id,
    get_current_time,
    get_current_time_like,
    format_timestamp,
    parse_iso_timestamp,
)

__all__ = [
    "generate_id",
    "get_current_time",
    "get_current_time_like",
    "format_timestamp",
    "parse_iso_timestamp",
]
