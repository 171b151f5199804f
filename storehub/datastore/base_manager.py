"""
Registry of named handles of one datastore kind.
"""
import logging
from typing import Dict, Iterator, List, Optional, Type

from ..config.configuration_manager import ConfigurationManager
from ..core.exceptions import (
    StoreError,
    ConfigurationNotFoundError,
    HandleNotFoundError,
    MalformedConfigurationEntryError,
)
from ..core.models import HandleOptions, as_record
from .base_handle import BaseHandle


class BaseHandleManager:
    """Named handles of one kind, loaded and connected as a group"""

    handle_class: Type[BaseHandle] = BaseHandle
    default_configuration_name_id: str = ""

    def __init__(self, configuration: ConfigurationManager,
                 default_configuration_name_id: Optional[str] = None):
        self.configuration = configuration
        if default_configuration_name_id:
            self.default_configuration_name_id = default_configuration_name_id
        self.handles: Dict[str, BaseHandle] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def kind_label(self) -> str:
        return self.handle_class.kind_label

    def new_handle(self, name_id: str, is_connect_at_start: bool = False,
                   must_connected: bool = False,
                   configuration_name_id: Optional[str] = None) -> BaseHandle:
        """Create an unconfigured handle and register it, replacing any previous one"""
        handle = self.handle_class(
            self,
            name_id,
            is_connect_at_start=is_connect_at_start,
            must_connected=must_connected,
            configuration_name_id=configuration_name_id
        )
        self.handles[name_id] = handle
        return handle

    def load_from_configuration(self, configuration_name_id: Optional[str] = None) -> List[str]:
        """
        Create and configure one handle per entry of a configuration section.

        Aborts on the first entry that cannot be configured.

        Returns:
            Names of the handles created, in section order
        """
        section_name = configuration_name_id or self.default_configuration_name_id
        section = self.configuration.get_section(section_name)
        if section is None:
            raise ConfigurationNotFoundError(f"CONFIGURATION_NOT_FOUND:{section_name}")

        names = []
        for name_id, value in section.items():
            record = as_record(value)
            if record is None:
                message = f"Cannot read {name_id} as a {self.kind_label} configuration record"
                self.logger.error(message)
                raise MalformedConfigurationEntryError(message, name_id=name_id)

            options = HandleOptions.from_record(record)
            handle = self.new_handle(
                name_id,
                is_connect_at_start=options.is_connect_at_start,
                must_connected=options.must_connected,
                configuration_name_id=section_name
            )
            handle.apply_from_configuration(section_name)
            names.append(name_id)
        return names

    def _configure_for_connect(self, handle: BaseHandle, configuration_name_id: Optional[str]) -> None:
        try:
            handle.apply_from_configuration(configuration_name_id)
        except StoreError:
            self.logger.error(f"Cannot configure {self.kind_label} {handle.name_id} to connect")
            raise

    async def connect_all_at_start(self, configuration_name_id: Optional[str] = None) -> None:
        """Configure every handle, then connect those flagged is_connect_at_start"""
        if not self.handles:
            return
        self.logger.info(f"Connecting to {self.kind_label} Manager... start")
        for handle in list(self.handles.values()):
            self._configure_for_connect(handle, configuration_name_id)
            if handle.is_connect_at_start:
                await handle.connect()
        self.logger.info(f"Connecting to {self.kind_label} Manager... done")

    async def connect_all(self, configuration_name_id: Optional[str] = None) -> None:
        """Configure and connect every handle"""
        for handle in list(self.handles.values()):
            self._configure_for_connect(handle, configuration_name_id)
            await handle.connect()

    async def disconnect_all(self) -> None:
        """Disconnect every handle, stopping at the first failure"""
        for handle in list(self.handles.values()):
            await handle.disconnect()

    def get(self, name_id: str) -> Optional[BaseHandle]:
        return self.handles.get(name_id)

    def list_names(self) -> List[str]:
        return list(self.handles.keys())

    def connected_names(self) -> List[str]:
        return [name for name, handle in self.handles.items() if handle.connected]

    def __getitem__(self, name_id: str) -> BaseHandle:
        handle = self.handles.get(name_id)
        if handle is None:
            raise HandleNotFoundError(f"{self.kind_label} {name_id} is not registered", name_id=name_id)
        return handle

    def __contains__(self, name_id: object) -> bool:
        return name_id in self.handles

    def __len__(self) -> int:
        return len(self.handles)

    def __iter__(self) -> Iterator[BaseHandle]:
        return iter(list(self.handles.values()))

    async def __aenter__(self):
        await self.connect_all_at_start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect_all()
