"""
Redis storage implementation for oauthredis.

Clients, authorization codes and access grants are stored under
``{prefix}:{namespace}:{id}`` keys. An access grant is kept under a random
grant id, with the access token and refresh token stored as pointer keys to
that id, so both tokens resolve to the same record and all three keys expire
together.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..common.utils import generate_id
from ..errors import AccessNotFoundError, StorageError
from ..util.config import DEFAULT_ENV_PREFIX, get_config_value
from .codec import decode, decode_str, encode
from .types import AccessData, AuthorizeData, Client, Storage


logger = logging.getLogger(__name__)


CLIENT_NAMESPACE = "client"
AUTHORIZE_NAMESPACE = "auth"
ACCESS_NAMESPACE = "access"
ACCESS_TOKEN_NAMESPACE = "access_token"
REFRESH_TOKEN_NAMESPACE = "refresh_token"


@dataclass
class RedisStorageConfig:
    """Configuration for Redis storage."""

    url: str = "redis://localhost:6379/0"
    key_prefix: str = "oauth"
    max_connections: Optional[int] = None
    socket_timeout: Optional[float] = None
    socket_connect_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "RedisStorageConfig":
        """Create configuration from environment variables"""
        defaults = cls()
        return cls(
            url=get_config_value("url", defaults.url, env_prefix=prefix),
            key_prefix=get_config_value("key_prefix", defaults.key_prefix, env_prefix=prefix),
            max_connections=get_config_value("max_connections", None, int, env_prefix=prefix),
            socket_timeout=get_config_value("socket_timeout", None, float, env_prefix=prefix),
            socket_connect_timeout=get_config_value(
                "socket_connect_timeout", None, float, env_prefix=prefix
            ),
        )

    def validate(self) -> bool:
        """Validate the configuration"""
        if not self.url:
            raise ValueError("url is required")
        if not self.key_prefix:
            raise ValueError("key_prefix is required")
        if self.max_connections is not None and self.max_connections <= 0:
            raise ValueError("max_connections must be positive")
        if self.socket_timeout is not None and self.socket_timeout <= 0:
            raise ValueError("socket_timeout must be positive")
        if self.socket_connect_timeout is not None and self.socket_connect_timeout <= 0:
            raise ValueError("socket_connect_timeout must be positive")
        return True

    def connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments passed to ``redis.asyncio.from_url``."""
        kwargs = {}
        if self.max_connections is not None:
            kwargs["max_connections"] = self.max_connections
        if self.socket_timeout is not None:
            kwargs["socket_timeout"] = self.socket_timeout
        if self.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self.socket_connect_timeout
        return kwargs


class RedisStorage(Storage):
    """
    Redis-backed authorization server storage.

    The storage holds no per-request state. Every command borrows a
    connection from the client's pool and hands it back when the command
    completes, so one instance can be shared by all tasks.

    Loads and removals of the same grant are not isolated from each other:
    a removal racing a load may let the load observe the grant just before
    it disappears.
    """

    def __init__(self, client: redis.Redis, key_prefix: str):
        """
        Initialize Redis storage.

        Args:
            client: Redis client whose connection pool is shared
            key_prefix: Prefix for every key written by this storage
        """
        self._redis = client
        self.key_prefix = key_prefix
        self._owns_client = False

    @classmethod
    def from_config(cls, config: RedisStorageConfig) -> "RedisStorage":
        """Create a storage owning a Redis client built from ``config``."""
        config.validate()
        client = redis.from_url(config.url, **config.connection_kwargs())
        storage = cls(client, config.key_prefix)
        storage._owns_client = True
        return storage

    def clone(self) -> "RedisStorage":
        return self

    async def close(self) -> None:
        """
        Release per-request resources.

        The connection pool is shared, so there is nothing to release.
        """

    async def disconnect(self) -> None:
        """Close the Redis client if this storage created it."""
        if self._owns_client:
            await self._redis.aclose()
            logger.info("Disconnected from Redis")

    def make_key(self, namespace: str, identifier: str) -> str:
        """Get Redis key for an identifier within a namespace."""
        return f"{self.key_prefix}:{namespace}:{identifier}"

    # Clients

    async def create_client(self, client: Client) -> None:
        """Store a client, replacing any previous record."""
        payload = encode(client)
        key = self.make_key(CLIENT_NAMESPACE, client.client_id)

        try:
            await self._redis.set(key, payload)
        except RedisError as e:
            raise StorageError("failed to save client", key=key, cause=e) from e

        logger.debug(f"Stored client {client.client_id}")

    async def get_client(self, client_id: str) -> Optional[Client]:
        """Retrieve a client by identifier."""
        key = self.make_key(CLIENT_NAMESPACE, client_id)

        try:
            raw = await self._redis.get(key)
        except RedisError as e:
            raise StorageError("unable to GET client", key=key, cause=e) from e

        if raw is None:
            return None

        return decode(raw, Client)

    async def update_client(self, client: Client) -> None:
        """Replace a stored client. Fields are overwritten, never merged."""
        await self.create_client(client)

    async def delete_client(self, client: Client) -> None:
        """Delete a client. Records referencing it are left in place."""
        key = self.make_key(CLIENT_NAMESPACE, client.client_id)

        try:
            await self._redis.delete(key)
        except RedisError as e:
            raise StorageError("failed to delete client", key=key, cause=e) from e

        logger.debug(f"Deleted client {client.client_id}")

    # Authorization codes

    async def save_authorize(self, data: AuthorizeData) -> None:
        """
        Save authorization data with a native expiry of ``data.expires_in``.

        Non-positive expiries are rejected by Redis and surface as a
        StorageError.
        """
        payload = encode(data)
        key = self.make_key(AUTHORIZE_NAMESPACE, data.code)

        try:
            await self._redis.set(key, payload, ex=data.expires_in)
        except RedisError as e:
            raise StorageError("failed to set auth", key=key, cause=e) from e

        logger.debug(f"Stored authorization {data.code}")

    async def load_authorize(self, code: str) -> Optional[AuthorizeData]:
        """Look up authorization data by code, with its client resolved."""
        key = self.make_key(AUTHORIZE_NAMESPACE, code)

        try:
            raw = await self._redis.get(key)
        except RedisError as e:
            raise StorageError("unable to GET auth", key=key, cause=e) from e

        if raw is None:
            return None

        data = decode(raw, AuthorizeData)
        data.client = await self._resolve_client(data.client)
        return data

    async def remove_authorize(self, code: str) -> None:
        """Delete an authorization code. Unknown codes are ignored."""
        key = self.make_key(AUTHORIZE_NAMESPACE, code)

        try:
            await self._redis.delete(key)
        except RedisError as e:
            raise StorageError("failed to delete auth", key=key, cause=e) from e

    # Access grants

    async def save_access(self, data: AccessData) -> None:
        """
        Save access data under a new grant id.

        The record and its token pointers are written in one MULTI/EXEC
        transaction, all with the same expiry. No refresh pointer is
        written when the grant has no refresh token.
        """
        payload = encode(data)
        grant_id = generate_id()
        access_key = self.make_key(ACCESS_NAMESPACE, grant_id)

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(access_key, payload, ex=data.expires_in)
                pipe.set(
                    self.make_key(ACCESS_TOKEN_NAMESPACE, data.access_token),
                    grant_id,
                    ex=data.expires_in,
                )
                if data.refresh_token:
                    pipe.set(
                        self.make_key(REFRESH_TOKEN_NAMESPACE, data.refresh_token),
                        grant_id,
                        ex=data.expires_in,
                    )
                await pipe.execute()
        except RedisError as e:
            raise StorageError("failed to save access", key=access_key, cause=e) from e

        logger.debug(f"Stored access grant {grant_id}")

    async def load_access(self, token: str) -> Optional[AccessData]:
        """Look up access data by access token."""
        return await self._load_access_by_key(self.make_key(ACCESS_TOKEN_NAMESPACE, token))

    async def remove_access(self, token: str) -> None:
        """
        Delete the grant owning an access token.

        Raises:
            AccessNotFoundError: If the access token is unknown
        """
        await self._remove_access_by_key(self.make_key(ACCESS_TOKEN_NAMESPACE, token))

    async def load_refresh(self, token: str) -> Optional[AccessData]:
        """Look up access data by refresh token."""
        return await self._load_access_by_key(self.make_key(REFRESH_TOKEN_NAMESPACE, token))

    async def remove_refresh(self, token: str) -> None:
        """
        Delete the grant owning a refresh token.

        Raises:
            AccessNotFoundError: If the refresh token is unknown
        """
        await self._remove_access_by_key(self.make_key(REFRESH_TOKEN_NAMESPACE, token))

    async def _get_grant_id(self, pointer_key: str) -> Optional[str]:
        """Resolve a token pointer key to its grant id."""
        try:
            raw = await self._redis.get(pointer_key)
        except RedisError as e:
            raise StorageError("unable to get access ID", key=pointer_key, cause=e) from e

        if raw is None:
            return None

        return decode_str(raw)

    async def _load_grant(self, grant_id: str) -> Optional[AccessData]:
        """Load a grant record with ``expires_in`` set to its live TTL."""
        access_key = self.make_key(ACCESS_NAMESPACE, grant_id)

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.get(access_key)
                pipe.ttl(access_key)
                raw, ttl = await pipe.execute()
        except RedisError as e:
            raise StorageError("unable to get access", key=access_key, cause=e) from e

        if raw is None:
            return None

        access = decode(raw, AccessData)

        # -1 means no expiry is set; keep the stored value then
        if ttl is not None and ttl >= 0:
            access.expires_in = int(ttl)

        return access

    async def _load_access_by_key(self, pointer_key: str) -> Optional[AccessData]:
        grant_id = await self._get_grant_id(pointer_key)
        if grant_id is None:
            return None

        access = await self._load_grant(grant_id)
        if access is None:
            return None

        await self._resolve_access_clients(access)
        return access

    async def _resolve_access_clients(self, access: AccessData) -> None:
        """Replace client references in a grant and its snapshots with live clients."""
        access.client = await self._resolve_client(access.client)

        if access.authorize_data is not None:
            access.authorize_data.client = await self._resolve_client(
                access.authorize_data.client
            )

        if access.access_data is not None:
            await self._resolve_access_clients(access.access_data)

    async def _remove_access_by_key(self, pointer_key: str) -> None:
        grant_id = await self._get_grant_id(pointer_key)
        if grant_id is None:
            raise AccessNotFoundError("failed to get access", key=pointer_key)

        access = await self._load_grant(grant_id)

        keys = [pointer_key]
        if access is not None:
            keys = [
                self.make_key(ACCESS_NAMESPACE, grant_id),
                self.make_key(ACCESS_TOKEN_NAMESPACE, access.access_token),
            ]
            if access.refresh_token:
                keys.append(self.make_key(REFRESH_TOKEN_NAMESPACE, access.refresh_token))

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for key in keys:
                    pipe.delete(key)
                await pipe.execute()
        except RedisError as e:
            raise StorageError("failed to delete access", key=pointer_key, cause=e) from e

        logger.debug(f"Removed access grant {grant_id}")

    async def _resolve_client(self, reference: Optional[Client]) -> Optional[Client]:
        """
        Fetch the current client record for a stored reference.

        A client deleted since the record was saved resolves to None.
        """
        if reference is None:
            return None
        return await self.get_client(reference.client_id)


def create_redis_storage(url: str = "redis://localhost:6379/0",
                         key_prefix: str = "oauth",
                         **kwargs) -> RedisStorage:
    """
    Create a Redis storage owning its own client.

    Args:
        url: Redis URL
        key_prefix: Prefix for Redis keys
        **kwargs: Additional configuration options

    Returns:
        RedisStorage instance
    """
    config = RedisStorageConfig(url=url, key_prefix=key_prefix, **kwargs)
    return RedisStorage.from_config(config)
