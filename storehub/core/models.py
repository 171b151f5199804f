"""
Typed configuration schemas for datastore handles.

Raw configuration records are plain mappings. Each schema validates a record
in a single pass and raises ``ValueError`` naming the offending field; the
handle turns that into a fatal or a recoverable error depending on its
``must_connected`` flag.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .enums import DatabaseType


def _optional_str(record: Mapping[str, Any], field_name: str) -> Optional[str]:
    value = record.get(field_name)
    return value if isinstance(value, str) else None


def _required_str(record: Mapping[str, Any], field_name: str) -> str:
    value = record.get(field_name)
    if not isinstance(value, str) or not value:
        raise ValueError(f"mandatory {field_name} field not exist or is not a string")
    return value


def _int_field(record: Mapping[str, Any], field_name: str, default: int) -> int:
    """
    Read an integer field.

    JSON numbers with an integral value are accepted, and so are decimal
    strings, which is what ``${VAR}`` substitution produces.
    """
    if field_name not in record or record[field_name] is None:
        return default
    value = record[field_name]
    if isinstance(value, bool):
        raise ValueError(f"{field_name} field must be an integer, not a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('+-').isdigit():
        return int(value.strip())
    raise ValueError(f"{field_name} field must be an integer, got {value!r}")


def _bool_flag(record: Mapping[str, Any], field_name: str) -> bool:
    # Real booleans, or "true"/"false" from ${VAR} substitution; anything else is false
    value = record.get(field_name)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return False


def split_address(address: str, default_port: int) -> Tuple[str, int]:
    """
    Split ``host[:port]`` into its parts, falling back to ``default_port``.

    IPv6 hosts are written ``[::1]`` or ``[::1]:6379``; an unbracketed
    address with more than one ``:`` is ambiguous and rejected.
    """
    if address.startswith('['):
        host, sep, rest = address[1:].partition(']')
        if not sep or not host:
            raise ValueError(f"address {address!r} has an unterminated IPv6 host")
        if not rest:
            return host, default_port
        if not rest.startswith(':') or not rest[1:].isdigit():
            raise ValueError(f"address {address!r} has an invalid port")
        return host, int(rest[1:])

    if address.count(':') > 1:
        raise ValueError(f"address {address!r} is ambiguous, write IPv6 hosts as [host]:port")
    host, sep, port = address.partition(':')
    if not sep:
        return address, default_port
    if not host or not port.isdigit():
        raise ValueError(f"address {address!r} has an invalid port")
    return host, int(port)


@dataclass(frozen=True)
class HandleOptions:
    """Policy flags shared by every handle kind"""
    is_connect_at_start: bool = False
    must_connected: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'HandleOptions':
        return cls(
            is_connect_at_start=_bool_flag(record, 'is_connect_at_start'),
            must_connected=_bool_flag(record, 'must_connected')
        )


@dataclass(frozen=True)
class RedisConnectionConfig:
    """Connection parameters of a Redis handle"""
    address: str
    user_name: Optional[str] = None
    password: Optional[str] = None
    database_index: int = 0

    DEFAULT_PORT = 6379

    @property
    def has_user_name(self) -> bool:
        return self.user_name is not None

    @property
    def has_password(self) -> bool:
        return self.password is not None

    @property
    def host_and_port(self) -> Tuple[str, int]:
        return split_address(self.address, self.DEFAULT_PORT)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'RedisConnectionConfig':
        address = _required_str(record, 'address')
        split_address(address, cls.DEFAULT_PORT)
        database_index = _int_field(record, 'database_index', 0)
        if database_index < 0:
            raise ValueError(f"database_index field must not be negative, got {database_index}")
        return cls(
            address=address,
            user_name=_optional_str(record, 'user_name'),
            password=_optional_str(record, 'password'),
            database_index=database_index
        )

    def describe(self) -> str:
        """Location string used in log messages, never includes credentials"""
        return f"{self.address}/{self.database_index}"


@dataclass(frozen=True)
class DatabaseConnectionConfig:
    """Connection parameters of a SQL database handle"""
    database_type: DatabaseType
    address: str
    database_name: str
    user_name: Optional[str] = None
    password: Optional[str] = None
    min_connections: int = 1
    max_connections: int = 10

    DEFAULT_PORTS = {
        DatabaseType.POSTGRES: 5432,
        DatabaseType.MYSQL: 3306,
    }

    @property
    def host_and_port(self) -> Tuple[str, int]:
        return split_address(self.address, self.DEFAULT_PORTS[self.database_type])

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'DatabaseConnectionConfig':
        raw_type = _required_str(record, 'database_type')
        try:
            database_type = DatabaseType(raw_type.lower())
        except ValueError:
            supported = ', '.join(t.value for t in DatabaseType)
            raise ValueError(f"unsupported database_type {raw_type!r}, supported: {supported}")

        address = _required_str(record, 'address')
        split_address(address, cls.DEFAULT_PORTS[database_type])

        min_connections = _int_field(record, 'min_connections', 1)
        max_connections = _int_field(record, 'max_connections', 10)
        if min_connections < 0 or max_connections < 1 or min_connections > max_connections:
            raise ValueError(
                f"invalid pool size min_connections={min_connections} max_connections={max_connections}"
            )

        return cls(
            database_type=database_type,
            address=address,
            database_name=_required_str(record, 'database_name'),
            user_name=_optional_str(record, 'user_name'),
            password=_optional_str(record, 'password'),
            min_connections=min_connections,
            max_connections=max_connections
        )

    def describe(self) -> str:
        return f"{self.database_type.value}://{self.address}/{self.database_name}"


@dataclass(frozen=True)
class ScriptConfig:
    """A named list of SQL statements bound to one database handle"""
    database: str
    statements: Tuple[str, ...]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'ScriptConfig':
        database = _required_str(record, 'database')
        statements = record.get('statements')
        if isinstance(statements, str):
            statements = [statements]
        if not isinstance(statements, (list, tuple)) or not all(isinstance(s, str) for s in statements):
            raise ValueError("statements field must be a string or a list of strings")
        return cls(database=database, statements=tuple(statements))


def as_record(value: Any) -> Optional[Dict[str, Any]]:
    """Return ``value`` as a dict when it is a mapping, else ``None``."""
    if isinstance(value, Mapping):
        return dict(value)
    return None
