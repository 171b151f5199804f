"""Pytest configuration and fixtures for Storehub tests."""

import logging
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from storehub.config.configuration_manager import ConfigurationManager
from storehub.core.enums import DatabaseType
from storehub.datastore import database_handle
from storehub.datastore.database_handle import DatabaseManager
from storehub.datastore.redis_handle import RedisHandle, RedisManager
from storehub.datastore.sql_drivers import SqlDriver

# Configure logging
logging.basicConfig(level=logging.INFO)


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis"""

    def __init__(self):
        self.data: Dict[str, bytes] = {}
        self.expirations: Dict[str, Any] = {}
        self.fail_ping = False
        self.fail_close = False
        self.fail_ops = False
        self.closed = False
        self.ping_count = 0

    async def ping(self):
        self.ping_count += 1
        if self.fail_ping:
            raise ConnectionError("Connection refused")
        return True

    async def get(self, key):
        if self.fail_ops:
            raise ConnectionError("Connection reset by peer")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.fail_ops:
            raise ConnectionError("Connection reset by peer")
        self.data[key] = value
        self.expirations[key] = ex
        return True

    async def delete(self, *keys):
        if self.fail_ops:
            raise ConnectionError("Connection reset by peer")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def aclose(self):
        if self.fail_close:
            raise ConnectionError("close failed")
        self.closed = True


class FakePool:
    """Records statements and answers queries from canned rows"""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.rowcount = 1
        self.statements: List[tuple] = []
        self.closed = False
        self.fail_ops = False


class FakeSqlDriver(SqlDriver):
    """Driver adapter over FakePool, one pool per create_pool call"""

    database_type = DatabaseType.POSTGRES

    def __init__(self):
        self.pools: List[FakePool] = []
        self.configs = []
        self.fail_ping = False
        self.fail_close = False

    @property
    def pool(self) -> Optional[FakePool]:
        return self.pools[-1] if self.pools else None

    async def create_pool(self, config):
        self.configs.append(config)
        pool = FakePool()
        self.pools.append(pool)
        return pool

    async def ping(self, pool):
        if self.fail_ping:
            raise OSError("could not connect to server")

    async def fetch(self, pool, query, params=None):
        if pool.fail_ops:
            raise RuntimeError("relation does not exist")
        pool.statements.append((query, params))
        return list(pool.rows)

    async def execute(self, pool, query, params=None):
        if pool.fail_ops:
            raise RuntimeError("syntax error")
        pool.statements.append((query, params))
        return pool.rowcount

    async def close(self, pool):
        if self.fail_close:
            raise OSError("close failed")
        pool.closed = True


@pytest.fixture
def redis_section() -> Dict[str, Any]:
    return {
        'cache': {
            'is_connect_at_start': True,
            'must_connected': False,
            'address': 'localhost:6379',
            'database_index': 2,
        },
        'sessions': {
            'is_connect_at_start': False,
            'address': 'redis.internal:6380',
            'user_name': 'app',
            'password': 'secret',
        },
    }


@pytest.fixture
def databases_section() -> Dict[str, Any]:
    return {
        'main': {
            'is_connect_at_start': True,
            'must_connected': True,
            'database_type': 'postgres',
            'address': 'localhost:5432',
            'database_name': 'app',
            'user_name': 'postgres',
            'password': 'password',
        },
        'reporting': {
            'is_connect_at_start': False,
            'database_type': 'mysql',
            'address': 'mysql.internal',
            'database_name': 'reports',
        },
    }


@pytest.fixture
def configuration(redis_section, databases_section) -> ConfigurationManager:
    manager = ConfigurationManager()
    manager.new_configuration('redis', redis_section)
    manager.new_configuration('databases', databases_section)
    manager.new_configuration('database_scripts', {
        'bootstrap': {
            'database': 'main',
            'statements': [
                'CREATE TABLE IF NOT EXISTS users (id SERIAL PRIMARY KEY)',
                'INSERT INTO users DEFAULT VALUES',
            ],
        },
    })
    return manager


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Every RedisHandle connects to the same in-memory fake"""
    fake = FakeRedis()
    monkeypatch.setattr(RedisHandle, '_create_client', AsyncMock(return_value=fake))
    return fake


@pytest.fixture
def fake_driver(monkeypatch) -> FakeSqlDriver:
    """Every DatabaseHandle gets the same fake driver, whatever its database_type"""
    driver = FakeSqlDriver()
    monkeypatch.setattr(database_handle, 'get_driver', lambda database_type: driver)
    return driver


@pytest.fixture
def redis_manager(configuration) -> RedisManager:
    return RedisManager(configuration)


@pytest.fixture
def database_manager(configuration) -> DatabaseManager:
    return DatabaseManager(configuration)
