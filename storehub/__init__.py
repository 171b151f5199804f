"""
Storehub - lifecycle management for named database and Redis connections

Main modules:
- core: Enums, typed configuration schemas and the error taxonomy
- config: Named configuration sections loaded from dicts, YAML or JSON
- datastore: Handles and managers for SQL databases and Redis
- registry: DatastoreRegistry, the startup/shutdown orchestrator
- cli: Command-line interface
"""

from .config.configuration_manager import Configuration, ConfigurationManager
from .core.enums import HandleState, DatabaseType
from .core.exceptions import StoreError
from .datastore.database_handle import DatabaseHandle, DatabaseManager
from .datastore.database_script import DatabaseScript
from .datastore.redis_handle import RedisHandle, RedisManager
from .registry import DatastoreRegistry

__version__ = "1.0.0"
__all__ = [
    'Configuration',
    'ConfigurationManager',
    'HandleState',
    'DatabaseType',
    'StoreError',
    'DatabaseHandle',
    'DatabaseManager',
    'DatabaseScript',
    'RedisHandle',
    'RedisManager',
    'DatastoreRegistry',
]
