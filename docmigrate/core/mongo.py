"""
MongoDB client construction.

Clients are created on first use so that importing the package never opens
a connection. One client is kept per connection URI.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from docmigrate.core.config import Settings, settings as default_settings

_clients: dict[str, AsyncIOMotorClient] = {}


def get_client(config: Optional[Settings] = None) -> AsyncIOMotorClient:
    """
    Get the shared MongoDB client for the configured URI, creating it if needed.

    Args:
        config: Settings to build the client from. Defaults to the
            environment-loaded settings. The server selection timeout of the
            first call for a URI is the one that sticks.
    """
    config = config or default_settings
    client = _clients.get(config.mongodb)
    if client is None:
        client = AsyncIOMotorClient(
            config.mongodb,
            serverSelectionTimeoutMS=config.mongo_server_selection_timeout_ms,
            tz_aware=True,
        )
        _clients[config.mongodb] = client
    return client


def get_database(config: Optional[Settings] = None) -> AsyncIOMotorDatabase:
    """
    Get the configured MongoDB database.

    Returns:
        The MongoDB database instance.
    """
    config = config or default_settings
    return get_client(config)[config.mongodb_database]


def close_client() -> None:
    """Close every client created so far."""
    while _clients:
        _, client = _clients.popitem()
        client.close()
