"""
Common utilities and helper functions for oauthredis.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: str = "") -> str:
    """Generate a unique identifier with optional prefix."""
    unique_id = str(uuid.uuid4())
    return f"{prefix}{unique_id}" if prefix else unique_id


def get_current_time() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def get_current_time_like(value: datetime) -> datetime:
    """Get the current UTC time, naive when ``value`` is naive."""
    now = get_current_time()
    if value.tzinfo is None:
        return now.replace(tzinfo=None)
    return now


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO 8601, keeping naive values naive."""
    if value is None:
        return None
    return value.isoformat()


def parse_iso_timestamp(timestamp_str: str) -> datetime:
    """
    Parse ISO 8601 timestamp string to datetime.
    
    Args:
        timestamp_str: ISO 8601 timestamp string
        
    Returns:
        Parsed datetime object
    """
    return datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))
