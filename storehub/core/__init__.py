from .enums import HandleState, DatabaseType, StoreKind
from .exceptions import (
    StoreError,
    ConfigurationNotFoundError,
    MalformedConfigurationEntryError,
    MandatoryFieldMissingError,
    ConfigurationUnusableError,
    ConnectionFailureError,
    SerializationFailureError,
    KeyNotFoundError,
    OperationFailureError,
    NotConnectedError,
    HandleNotFoundError,
)
from .models import HandleOptions, RedisConnectionConfig, DatabaseConnectionConfig, ScriptConfig

__all__ = [
    'HandleState',
    'DatabaseType',
    'StoreKind',
    'StoreError',
    'ConfigurationNotFoundError',
    'MalformedConfigurationEntryError',
    'MandatoryFieldMissingError',
    'ConfigurationUnusableError',
    'ConnectionFailureError',
    'SerializationFailureError',
    'KeyNotFoundError',
    'OperationFailureError',
    'NotConnectedError',
    'HandleNotFoundError',
    'HandleOptions',
    'RedisConnectionConfig',
    'DatabaseConnectionConfig',
    'ScriptConfig',
]
