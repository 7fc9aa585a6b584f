"""
Configuration utilities for oauthredis.
Reads storage settings from prefixed environment variables.
"""

import os
from typing import Any, Optional


DEFAULT_ENV_PREFIX = "OAUTHREDIS_"


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[type] = None,
                     env_prefix: str = DEFAULT_ENV_PREFIX) -> Any:
    """
    Get configuration value from environment or return default.
    Optionally cast to specified type.
    """
    env_key = f"{env_prefix}{key.upper()}"
    value = os.environ.get(env_key, default)
    
    if value is None or cast_type is None:
        return value
    
    try:
        return cast_type(value)
    except (ValueError, TypeError):
        return default
