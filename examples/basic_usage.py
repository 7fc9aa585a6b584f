"""
Basic oauthredis usage example.

This example demonstrates the storage operations an authorization server
performs during the authorization code flow:
- Registering a client
- Saving and loading an authorization code
- Issuing, loading and revoking an access grant

Requires a Redis server (set OAUTHREDIS_URL to point elsewhere).
"""

import asyncio
import logging

from oauthredis import (
    AccessData,
    AuthorizeData,
    Client,
    RedisStorage,
    RedisStorageConfig,
)


async def basic_example():
    """Demonstrate basic storage usage"""
    print("Basic oauthredis Example")
    print("=" * 30)

    # 1. Create storage from environment configuration
    storage = RedisStorage.from_config(RedisStorageConfig.from_env())
    print(f"✓ Created storage with prefix '{storage.key_prefix}'")

    try:
        # 2. Register a client
        client = Client(
            client_id="basic-example-client",
            secret="example-secret",
            redirect_uri="http://localhost/callback",
            user_data={"name": "Basic Example"},
        )
        await storage.create_client(client)
        print(f"✓ Client registered: {client.client_id}")

        # 3. Save an authorization code
        authorize = AuthorizeData(
            client=client,
            code="basic-code",
            expires_in=600,
            scope="read",
            redirect_uri=client.redirect_uri,
        )
        await storage.save_authorize(authorize)
        loaded_code = await storage.load_authorize(authorize.code)
        print(f"✓ Authorization loaded for client: {loaded_code.client.client_id}")

        # 4. Exchange the code for an access grant
        access = AccessData(
            client=client,
            authorize_data=loaded_code,
            access_token="basic-access-token",
            refresh_token="basic-refresh-token",
            expires_in=3600,
            scope=loaded_code.scope,
        )
        await storage.remove_authorize(authorize.code)
        await storage.save_access(access)
        print("✓ Access grant saved")

        # 5. Look the grant up by either token
        by_access = await storage.load_access(access.access_token)
        by_refresh = await storage.load_refresh(access.refresh_token)
        print(f"✓ Grant expires in {by_access.expires_in}s")
        print(f"✓ Refresh token resolves to: {by_refresh.access_token}")

        # 6. Revoke the grant
        await storage.remove_access(access.access_token)
        print(f"✓ Grant revoked, refresh lookup: {await storage.load_refresh(access.refresh_token)}")

        await storage.delete_client(client)

    finally:
        # 7. Cleanup
        await storage.disconnect()
        print("✓ Storage disconnected")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(basic_example())
