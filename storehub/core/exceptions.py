"""
Error taxonomy for datastore handles and their managers.

Every error carries the handle name and, for key/value operations, the key,
so a log line is enough to locate the failing datastore. Errors flagged as
``fatal`` mean the handle was marked ``must_connected``; the startup
orchestrator decides whether that ends the process.
"""
from typing import Optional


class StoreError(Exception):
    """Base exception for all datastore handle errors."""

    def __init__(
        self,
        message: str,
        name_id: Optional[str] = None,
        key: Optional[str] = None,
        fatal: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.name_id = name_id
        self.key = key
        self.fatal = fatal


class ConfigurationNotFoundError(StoreError):
    """Raised when a named configuration section does not exist."""

    pass


class MalformedConfigurationEntryError(StoreError):
    """Raised when a configuration entry cannot be read as a mapping."""

    pass


class MandatoryFieldMissingError(StoreError):
    """Raised when a must-connect handle lacks its record or a required field."""

    def __init__(self, message: str, name_id: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message, name_id=name_id, key=key, fatal=True)


class ConfigurationUnusableError(StoreError):
    """Raised when an optional handle cannot be configured."""

    pass


class ConnectionFailureError(StoreError):
    """Raised when a client cannot be built or does not answer its ping."""

    pass


class SerializationFailureError(StoreError):
    """Raised when a value cannot be encoded for or decoded from the store."""

    pass


class KeyNotFoundError(StoreError):
    """Raised by must-get lookups when the key does not exist."""

    pass


class OperationFailureError(StoreError):
    """Raised when the underlying client fails a read, write, delete or close."""

    pass


class NotConnectedError(StoreError):
    """Raised when a data operation is attempted on a handle that is not connected."""

    pass


class HandleNotFoundError(StoreError):
    """Raised when a manager has no handle registered under a name."""

    pass
