"""
Storage package for oauthredis.

This package provides the OAuth2 entity records, the abstract storage
interface consumed by the authorization server and its Redis implementation.
"""

from .types import (
    JSONValue,
    Client,
    AuthorizeData,
    AccessData,
    Storage,
)

from .codec import encode, decode

from .redis_store import (
    RedisStorageConfig,
    RedisStorage,
    create_redis_storage,
)

__all__ = [
    # Records and interface
    "JSONValue",
    "Client",
    "AuthorizeData",
    "AccessData",
    "Storage",

    # Codec
    "encode",
    "decode",

    # Redis store
    "RedisStorageConfig",
    "RedisStorage",
    "create_redis_storage",
]
