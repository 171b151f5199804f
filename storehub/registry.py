"""
Process-level entry point to every configured datastore.

Build one ``DatastoreRegistry`` at startup and hand it to whatever needs
datastore access. Library code only raises; this is the one place where a
fatal error turns into process termination.
"""
import logging
from typing import List, Optional

from .config.configuration_manager import ConfigurationManager
from .core.exceptions import HandleNotFoundError, StoreError
from .datastore.base_handle import BaseHandle
from .datastore.database_handle import DatabaseManager
from .datastore.redis_handle import RedisManager

logger = logging.getLogger(__name__)


class DatastoreRegistry:
    """Configuration, database and Redis managers bound together"""

    def __init__(
        self,
        configuration: Optional[ConfigurationManager] = None,
        databases_section: str = "databases",
        redis_section: str = "redis",
        scripts_section: str = "database_scripts"
    ):
        self.configuration = configuration or ConfigurationManager()
        self.databases = DatabaseManager(self.configuration, databases_section)
        self.redis = RedisManager(self.configuration, redis_section)
        self.scripts_section = scripts_section
        self._loaded = False

    @classmethod
    def from_path(cls, config_path: str, **kwargs) -> 'DatastoreRegistry':
        """Build a registry from a directory of section files or a single sections file"""
        configuration = ConfigurationManager()
        configuration.load_from_path(config_path)
        return cls(configuration, **kwargs)

    def load(self) -> None:
        """Create and configure the handles of every section present - idempotent operation"""
        if self._loaded:
            return
        for manager in (self.databases, self.redis):
            section_name = manager.default_configuration_name_id
            if not self.configuration.has_section(section_name):
                logger.info(f"No {section_name} configuration, no {manager.kind_label} handles registered")
                continue
            names = manager.load_from_configuration(section_name)
            logger.info(f"Registered {len(names)} {manager.kind_label} handle(s): {', '.join(names)}")
        self.databases.load_scripts_from_configuration(self.scripts_section)
        self._loaded = True

    async def startup(self, exit_on_fatal: bool = True) -> None:
        """
        Load the configuration and connect every handle flagged is_connect_at_start.

        Args:
            exit_on_fatal: Raise SystemExit(1) instead of the error when it is fatal

        Raises:
            StoreError: first failure, unless fatal and exit_on_fatal is set
        """
        try:
            self.load()
            await self.databases.connect_all_at_start()
            await self.redis.connect_all_at_start()
        except StoreError as e:
            if e.fatal and exit_on_fatal:
                logger.critical(f"Fatal datastore error during startup, terminating: {e}")
                raise SystemExit(1) from e
            raise

    async def shutdown(self) -> None:
        """Disconnect Redis handles, then databases, stopping at the first failure"""
        await self.redis.disconnect_all()
        await self.databases.disconnect_all()

    def get_handle(self, name_id: str) -> BaseHandle:
        """Find a handle of either kind by name, databases first"""
        handle: Optional[BaseHandle] = self.databases.get(name_id) or self.redis.get(name_id)
        if handle is None:
            raise HandleNotFoundError(f"No datastore named {name_id}", name_id=name_id)
        return handle

    def all_handles(self) -> List[BaseHandle]:
        return list(self.databases) + list(self.redis)

    async def __aenter__(self):
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
