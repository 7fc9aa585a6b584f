"""
Shared fixtures for oauthredis tests.
"""

import fakeredis
import pytest

from oauthredis import AuthorizeData, AccessData, Client, RedisStorage


KEY_PREFIX = "test123"


@pytest.fixture
def redis_client():
    """Create an isolated in-process Redis"""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())


@pytest.fixture
def storage(redis_client):
    """Create a storage backed by the in-process Redis"""
    return RedisStorage(redis_client, KEY_PREFIX)


@pytest.fixture
def client():
    """Create a test client"""
    return Client(
        client_id="clientID",
        secret="secret",
        redirect_uri="http://localhost/",
        user_data={},
    )


@pytest.fixture
def authorize_data(client):
    """Create authorization data for the test client"""
    return AuthorizeData(
        client=client,
        code="8888",
        expires_in=3600,
        redirect_uri="http://localhost/",
    )


@pytest.fixture
def access_data(authorize_data):
    """Create access data issued from the test authorization"""
    return AccessData(
        client=authorize_data.client,
        authorize_data=authorize_data,
        access_token="8888",
        refresh_token="r8888",
        expires_in=3600,
    )
