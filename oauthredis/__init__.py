"""
oauthredis Python Package

Redis storage backend for an OAuth2 authorization server.
"""

__version__ = "0.1.0"

from .errors import (
    StorageError,
    EncodeError,
    DecodeError,
    AccessNotFoundError,
)
from .storage import (
    Client,
    AuthorizeData,
    AccessData,
    Storage,
    RedisStorageConfig,
    RedisStorage,
    create_redis_storage,
)

__all__ = [
    "StorageError",
    "EncodeError",
    "DecodeError",
    "AccessNotFoundError",
    "Client",
    "AuthorizeData",
    "AccessData",
    "Storage",
    "RedisStorageConfig",
    "RedisStorage",
    "create_redis_storage",
]
