"""
Driver adapters for SQL database handles.

Each adapter wraps one async driver's pool: creation, liveness test, query,
statement execution and close. Drivers are imported lazily so only the ones
actually configured need to be installed.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..core.enums import DatabaseType
from ..core.models import DatabaseConnectionConfig

Params = Optional[Sequence[Any]]


class SqlDriver(ABC):
    """Common interface of the async SQL driver adapters"""

    database_type: DatabaseType

    @abstractmethod
    async def create_pool(self, config: DatabaseConnectionConfig) -> Any:
        pass

    @abstractmethod
    async def ping(self, pool: Any) -> None:
        pass

    @abstractmethod
    async def fetch(self, pool: Any, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a query and return its rows as dictionaries"""
        pass

    @abstractmethod
    async def execute(self, pool: Any, query: str, params: Params = None) -> int:
        """Run a statement and return the number of affected rows"""
        pass

    @abstractmethod
    async def close(self, pool: Any) -> None:
        pass


class PostgresDriver(SqlDriver):
    """PostgreSQL via asyncpg; placeholders are $1, $2, ..."""

    database_type = DatabaseType.POSTGRES

    async def create_pool(self, config: DatabaseConnectionConfig) -> Any:
        try:
            import asyncpg
        except ImportError:
            raise ImportError(
                "asyncpg is required for PostgreSQL databases. "
                "Install it with: pip install asyncpg"
            )

        host, port = config.host_and_port
        return await asyncpg.create_pool(
            host=host,
            port=port,
            user=config.user_name,
            password=config.password,
            database=config.database_name,
            min_size=config.min_connections,
            max_size=config.max_connections
        )

    async def ping(self, pool: Any) -> None:
        async with pool.acquire() as conn:
            result = await conn.fetchval("SELECT 1")
            if result != 1:
                raise RuntimeError("PostgreSQL connection test failed")

    async def fetch(self, pool: Any, query: str, params: Params = None) -> List[Dict[str, Any]]:
        rows = await pool.fetch(query, *(params or []))
        return [dict(row) for row in rows]

    async def execute(self, pool: Any, query: str, params: Params = None) -> int:
        result = await pool.execute(query, *(params or []))
        # asyncpg returns a status string like "INSERT 0 5" or "UPDATE 3"
        if isinstance(result, str):
            parts = result.split()
            if len(parts) >= 2 and parts[-1].isdigit():
                return int(parts[-1])
            return 0
        return result or 0

    async def close(self, pool: Any) -> None:
        await pool.close()


class MySQLDriver(SqlDriver):
    """MySQL via aiomysql; placeholders are %s"""

    database_type = DatabaseType.MYSQL

    async def create_pool(self, config: DatabaseConnectionConfig) -> Any:
        try:
            import aiomysql
        except ImportError:
            raise ImportError(
                "aiomysql is required for MySQL databases. "
                "Install it with: pip install aiomysql"
            )

        host, port = config.host_and_port
        options = {
            'host': host,
            'port': port,
            'db': config.database_name,
            'autocommit': True,
            'minsize': config.min_connections,
            'maxsize': config.max_connections,
        }
        if config.user_name is not None:
            options['user'] = config.user_name
        if config.password is not None:
            options['password'] = config.password
        return await aiomysql.create_pool(**options)

    async def ping(self, pool: Any) -> None:
        async with pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                result = await cur.fetchone()
                if not result or result[0] != 1:
                    raise RuntimeError("MySQL connection test failed")

    async def fetch(self, pool: Any, query: str, params: Params = None) -> List[Dict[str, Any]]:
        async with pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params or None)
                columns = [desc[0] for desc in cur.description] if cur.description else []
                rows = await cur.fetchall()
                return [dict(zip(columns, row)) for row in rows]

    async def execute(self, pool: Any, query: str, params: Params = None) -> int:
        async with pool.acquire() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params or None)
                await conn.commit()
                return cur.rowcount

    async def close(self, pool: Any) -> None:
        pool.close()
        await pool.wait_closed()


_DRIVERS = {
    DatabaseType.POSTGRES: PostgresDriver,
    DatabaseType.MYSQL: MySQLDriver,
}


def get_driver(database_type: DatabaseType) -> SqlDriver:
    """Return a driver adapter for ``database_type``"""
    driver_class = _DRIVERS.get(database_type)
    if driver_class is None:
        raise ValueError(f"Unsupported database type: {database_type}")
    return driver_class()
