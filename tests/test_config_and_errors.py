"""
Tests for storage configuration, record encoding and error wrapping.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from oauthredis import (
    AccessData,
    AccessNotFoundError,
    AuthorizeData,
    Client,
    DecodeError,
    EncodeError,
    RedisStorage,
    RedisStorageConfig,
    StorageError,
    create_redis_storage,
)
from oauthredis.errors import ErrorCode
from oauthredis.storage.codec import decode, encode


class TestConfig:
    """Test Redis storage configuration"""

    def test_defaults(self):
        """Test default configuration is valid"""
        config = RedisStorageConfig()
        assert config.url == "redis://localhost:6379/0"
        assert config.key_prefix == "oauth"
        assert config.validate()
        assert config.connection_kwargs() == {}

    def test_from_env(self, monkeypatch):
        """Test configuration from environment variables"""
        monkeypatch.setenv("OAUTHREDIS_URL", "redis://cache:6380/2")
        monkeypatch.setenv("OAUTHREDIS_KEY_PREFIX", "auth")
        monkeypatch.setenv("OAUTHREDIS_MAX_CONNECTIONS", "16")
        monkeypatch.setenv("OAUTHREDIS_SOCKET_CONNECT_TIMEOUT", "2.5")

        config = RedisStorageConfig.from_env()

        assert config.url == "redis://cache:6380/2"
        assert config.key_prefix == "auth"
        assert config.max_connections == 16
        assert config.socket_timeout is None
        assert config.connection_kwargs() == {
            "max_connections": 16,
            "socket_connect_timeout": 2.5,
        }

    def test_from_env_ignores_bad_numbers(self, monkeypatch):
        """Test unparsable numeric settings fall back to defaults"""
        monkeypatch.setenv("OAUTHREDIS_MAX_CONNECTIONS", "many")

        assert RedisStorageConfig.from_env().max_connections is None

    @pytest.mark.parametrize("overrides", [
        {"url": ""},
        {"key_prefix": ""},
        {"max_connections": 0},
        {"socket_timeout": -1.0},
        {"socket_connect_timeout": 0},
    ])
    def test_invalid_config(self, overrides):
        """Test validation rejects empty or non-positive settings"""
        with pytest.raises(ValueError):
            RedisStorageConfig(**overrides).validate()

    @pytest.mark.asyncio
    async def test_create_redis_storage(self):
        """Test the factory builds a storage owning its client"""
        storage = create_redis_storage("redis://localhost:6379/3", key_prefix="app")

        assert isinstance(storage, RedisStorage)
        assert storage.make_key("client", "c1") == "app:client:c1"
        await storage.disconnect()

    def test_from_config_validates(self):
        """Test an invalid configuration is refused"""
        with pytest.raises(ValueError):
            RedisStorage.from_config(RedisStorageConfig(key_prefix=""))


class TestSessionHooks:
    """Test clone and close hooks"""

    @pytest.mark.asyncio
    async def test_clone_returns_self(self, storage):
        """Test the storage is shared across requests"""
        assert storage.clone() is storage

    @pytest.mark.asyncio
    async def test_close_keeps_shared_client(self, storage, client):
        """Test closing a clone leaves the storage usable"""
        await storage.clone().close()

        await storage.create_client(client)
        assert await storage.get_client(client.client_id) == client

    @pytest.mark.asyncio
    async def test_disconnect_leaves_injected_client(self):
        """Test a caller-supplied client is never closed by the storage"""
        redis_client = MagicMock()
        redis_client.aclose = AsyncMock()

        await RedisStorage(redis_client, "test").disconnect()

        redis_client.aclose.assert_not_called()


class TestCodec:
    """Test record encoding"""

    def test_encode_stores_client_reference(self):
        """Test embedded clients are stored by identifier only"""
        client = Client(client_id="c1", secret="do-not-copy")
        payload = encode(AccessData(client=client, access_token="at", expires_in=60))

        assert "do-not-copy" not in payload
        assert decode(payload, AccessData).client == Client(client_id="c1")

    def test_encode_rejects_non_json_values(self):
        """Test values JSON cannot represent are refused"""
        client = Client(client_id="c1", user_data={"handle": object()})

        with pytest.raises(EncodeError) as exc_info:
            encode(client)

        assert exc_info.value.code == ErrorCode.ENCODE_FAILED

    @pytest.mark.parametrize("payload,record_type", [
        (b"not json", Client),
        ("[1, 2, 3]", Client),
        ('{"secret": "missing id"}', Client),
        ('{"client": {"client_id": "c1"}, "access_token": "at", "expires_in": 1, "created_at": "yesterday"}', AccessData),
    ])
    def test_decode_rejects_bad_payloads(self, payload, record_type):
        """Test malformed payloads raise DecodeError"""
        with pytest.raises(DecodeError):
            decode(payload, record_type)


class TestErrorWrapping:
    """Test Redis failures surface as StorageError"""

    @pytest.fixture
    def failing_storage(self):
        """Create a storage whose Redis commands all fail"""
        redis_client = MagicMock()
        failure = RedisConnectionError("connection refused")
        redis_client.get = AsyncMock(side_effect=failure)
        redis_client.set = AsyncMock(side_effect=failure)
        redis_client.delete = AsyncMock(side_effect=failure)
        return RedisStorage(redis_client, "test")

    @pytest.mark.asyncio
    async def test_get_client_failure(self, failing_storage):
        """Test read failures are wrapped with the failing step"""
        with pytest.raises(StorageError) as exc_info:
            await failing_storage.get_client("c1")

        error = exc_info.value
        assert error.message == "unable to GET client"
        assert error.key == "test:client:c1"
        assert isinstance(error.cause, RedisConnectionError)
        assert isinstance(error.__cause__, RedisConnectionError)
        assert error.to_dict()["error"] == "storage_error"

    @pytest.mark.asyncio
    async def test_create_client_failure(self, failing_storage):
        """Test write failures are wrapped"""
        with pytest.raises(StorageError, match="failed to save client"):
            await failing_storage.create_client(Client(client_id="c1"))

    @pytest.mark.asyncio
    async def test_save_authorize_failure(self, failing_storage):
        """Test expiring writes go through SET EX and are wrapped"""
        data = AuthorizeData(client=Client(client_id="c1"), code="code", expires_in=60)

        with pytest.raises(StorageError, match="failed to set auth"):
            await failing_storage.save_authorize(data)

        failing_storage._redis.set.assert_awaited_once()
        assert failing_storage._redis.set.await_args.kwargs == {"ex": 60}

    @pytest.mark.asyncio
    async def test_remove_authorize_failure(self, failing_storage):
        """Test delete failures are wrapped"""
        with pytest.raises(StorageError, match="failed to delete auth"):
            await failing_storage.remove_authorize("code")

    @pytest.mark.asyncio
    async def test_load_access_failure(self, failing_storage):
        """Test pointer lookup failures are errors, not misses"""
        with pytest.raises(StorageError) as exc_info:
            await failing_storage.load_access("at")

        assert not isinstance(exc_info.value, AccessNotFoundError)

    @pytest.mark.asyncio
    async def test_remove_unknown_token_error(self, storage):
        """Test the unknown-token error carries the pointer key"""
        with pytest.raises(AccessNotFoundError) as exc_info:
            await storage.remove_refresh("missing")

        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert exc_info.value.key == "test123:refresh_token:missing"
