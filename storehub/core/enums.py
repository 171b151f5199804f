from enum import Enum


class HandleState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    CONNECTED = "connected"


class DatabaseType(str, Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"


class StoreKind(str, Enum):
    DATABASE = "database"
    REDIS = "redis"
