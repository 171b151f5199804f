"""
Example demonstrating how to manage named datastores from configuration files.
"""
import asyncio
import logging
from pathlib import Path

from storehub import ConfigurationManager, DatastoreRegistry, RedisManager, StoreError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent / "configs"


async def registry_example():
    """Example using DatastoreRegistry for every configured datastore"""
    print("\n=== Datastore Registry Example ===")

    registry = DatastoreRegistry.from_path(str(CONFIG_DIR))

    try:
        # Connects handles flagged is_connect_at_start, exits on fatal errors
        await registry.startup()

        for handle in registry.all_handles():
            print(f"{handle.name_id}: {handle.describe()}")

        cache = registry.redis["cache"]
        await cache.set("greeting", {"text": "hello", "count": 1}, expiration=60)
        print(f"Cached value: {await cache.get('greeting')}")

        main = registry.databases["main"]
        affected = await registry.databases.get_script("bootstrap").execute()
        print(f"Bootstrap script affected {affected} rows")

        users = await main.query("SELECT id, name FROM users ORDER BY id")
        print(f"Users: {users}")

        # Handles not connected at start connect on demand
        reporting = registry.databases["reporting"]
        await reporting.connect()
        print(f"MySQL version: {await reporting.query_one('SELECT VERSION() AS version')}")

    except StoreError as e:
        print(f"Error: {e}")
    finally:
        await registry.shutdown()


async def manager_example():
    """Example registering a Redis handle by hand"""
    print("\n=== Redis Manager Example ===")

    configuration = ConfigurationManager()
    configuration.new_configuration("redis", {
        "scratch": {"address": "localhost:6379", "database_index": 3},
    })

    manager = RedisManager(configuration)
    manager.new_redis("scratch", is_connect_at_start=True)

    async with manager:
        scratch = manager["scratch"]
        await scratch.set("counter", 41)
        print(f"Counter: {await scratch.must_get('counter')}")
        print(f"Deleted: {await scratch.delete('counter')}")


async def main():
    """Run all examples"""
    print("=== Storehub Examples ===")
    print("Note: These examples require running PostgreSQL, MySQL and Redis servers.")

    await registry_example()
    await manager_example()

if __name__ == "__main__":
    asyncio.run(main())
