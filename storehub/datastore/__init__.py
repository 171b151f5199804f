"""
Datastore handles and managers.

A manager registers named handles of one kind, configures them from a
configuration section and connects or disconnects them as a group.
"""

from .base_handle import BaseHandle
from .base_manager import BaseHandleManager
from .redis_handle import RedisHandle, RedisManager
from .database_handle import DatabaseHandle, DatabaseManager
from .database_script import DatabaseScript
from .sql_drivers import SqlDriver, PostgresDriver, MySQLDriver, get_driver

__all__ = [
    'BaseHandle',
    'BaseHandleManager',
    'RedisHandle',
    'RedisManager',
    'DatabaseHandle',
    'DatabaseManager',
    'DatabaseScript',
    'SqlDriver',
    'PostgresDriver',
    'MySQLDriver',
    'get_driver',
]
