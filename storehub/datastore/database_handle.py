"""
SQL database handle and its manager.
"""
from typing import Any, Dict, List, Mapping, Optional

from ..core.enums import StoreKind
from ..core.exceptions import HandleNotFoundError, MalformedConfigurationEntryError, OperationFailureError
from ..core.models import DatabaseConnectionConfig, ScriptConfig, as_record
from .base_handle import BaseHandle
from .base_manager import BaseHandleManager
from .database_script import DatabaseScript
from .sql_drivers import Params, SqlDriver, get_driver


class DatabaseHandle(BaseHandle):
    """
    Named SQL database backed by the pool of its driver (asyncpg or aiomysql).

    Parameter placeholders follow the driver: ``$1`` for PostgreSQL, ``%s``
    for MySQL.
    """

    kind = StoreKind.DATABASE
    kind_label = "Database"

    config: Optional[DatabaseConnectionConfig]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._driver: Optional[SqlDriver] = None

    @property
    def driver(self) -> SqlDriver:
        if self._driver is None:
            self._driver = get_driver(self.config.database_type)
        return self._driver

    def _parse_config(self, record: Mapping[str, Any]) -> DatabaseConnectionConfig:
        return DatabaseConnectionConfig.from_record(record)

    async def _create_client(self) -> Any:
        return await self.driver.create_pool(self.config)

    async def _ping_client(self, client: Any) -> None:
        await self.driver.ping(client)

    async def _close_client(self, client: Any) -> None:
        await self.driver.close(client)

    def _operation_error(self, operation: str, query: str, error: Exception) -> OperationFailureError:
        message = f"Cannot {operation} on Database {self.name_id} ({error})"
        self._logger.error(f"{message}: {query}")
        return OperationFailureError(message, name_id=self.name_id)

    async def query(self, sql: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a query and return every row as a dictionary"""
        pool = self._require_connection('query')
        self._logger.debug(f"Executing query on {self.name_id}: {sql}")
        try:
            return await self.driver.fetch(pool, sql, params)
        except Exception as e:
            raise self._operation_error('query', sql, e) from e

    async def query_one(self, sql: str, params: Params = None) -> Optional[Dict[str, Any]]:
        """Run a query and return its first row, or None when it has no rows"""
        rows = await self.query(sql, params)
        return rows[0] if rows else None

    async def execute(self, sql: str, params: Params = None) -> int:
        """Run a statement and return the number of affected rows"""
        pool = self._require_connection('execute')
        self._logger.debug(f"Executing statement on {self.name_id}: {sql}")
        try:
            return await self.driver.execute(pool, sql, params)
        except Exception as e:
            raise self._operation_error('execute', sql, e) from e


class DatabaseManager(BaseHandleManager):
    """Registry of SQL database handles and of the scripts that run against them"""

    handle_class = DatabaseHandle
    default_configuration_name_id = "databases"
    default_scripts_configuration_name_id = "database_scripts"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scripts: Dict[str, DatabaseScript] = {}

    def new_database(self, name_id: str, is_connect_at_start: bool = False,
                     must_connected: bool = False) -> DatabaseHandle:
        return self.new_handle(name_id, is_connect_at_start, must_connected)

    def new_script(self, name_id: str, database_name_id: str, statements: List[str]) -> DatabaseScript:
        """Register a script, replacing any previous one with the same name"""
        script = DatabaseScript(self, name_id, database_name_id, statements)
        self.scripts[name_id] = script
        return script

    def load_scripts_from_configuration(self, configuration_name_id: Optional[str] = None) -> List[str]:
        """
        Register the scripts of a configuration section.

        Entries look like ``{"database": "main", "statements": ["CREATE ...", ...]}``.
        A missing section registers nothing.
        """
        section_name = configuration_name_id or self.default_scripts_configuration_name_id
        section = self.configuration.get_section(section_name)
        if section is None:
            return []

        names = []
        for name_id, value in section.items():
            record = as_record(value)
            try:
                if record is None:
                    raise ValueError("entry is not a mapping")
                script_config = ScriptConfig.from_record(record)
            except ValueError as e:
                message = f"Cannot read database script {name_id} ({e})"
                self.logger.error(message)
                raise MalformedConfigurationEntryError(message, name_id=name_id) from e
            self.new_script(name_id, script_config.database, list(script_config.statements))
            names.append(name_id)
        return names

    def get_script(self, name_id: str) -> DatabaseScript:
        script = self.scripts.get(name_id)
        if script is None:
            raise HandleNotFoundError(f"Database script {name_id} is not registered", name_id=name_id)
        return script
