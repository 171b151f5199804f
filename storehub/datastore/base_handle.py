"""
Base handle for all named datastore connections.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from ..core.enums import HandleState, StoreKind
from ..core.exceptions import (
    StoreError,
    ConfigurationUnusableError,
    ConnectionFailureError,
    MandatoryFieldMissingError,
    NotConnectedError,
    OperationFailureError,
)
from ..core.models import as_record

if TYPE_CHECKING:
    from .base_manager import BaseHandleManager


class BaseHandle(ABC):
    """
    Abstract base class for a named, lazily configured, lazily connected datastore.

    Lifecycle is UNCONFIGURED -> CONFIGURED -> CONNECTED, and back to
    CONFIGURED on disconnect. Configuration is read once and kept across
    reconnects. The live client is owned by the handle and only present
    while connected.

    Subclasses provide:
    - how a configuration record is parsed (``_parse_config``)
    - how a client is built, pinged and closed
    """

    kind: StoreKind
    kind_label = "Datastore"

    def __init__(
        self,
        owner: 'BaseHandleManager',
        name_id: str,
        is_connect_at_start: bool = False,
        must_connected: bool = False,
        configuration_name_id: Optional[str] = None
    ):
        self.owner = owner
        self.name_id = name_id
        self.is_connect_at_start = is_connect_at_start
        self.must_connected = must_connected
        self.configuration_name_id = configuration_name_id or owner.default_configuration_name_id
        self.config = None
        self.connection: Any = None
        self._state = HandleState.UNCONFIGURED
        self._connection_lock = asyncio.Lock()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def is_configured(self) -> bool:
        return self._state != HandleState.UNCONFIGURED

    @property
    def connected(self) -> bool:
        return self._state == HandleState.CONNECTED

    @abstractmethod
    def _parse_config(self, record: Mapping[str, Any]) -> Any:
        """Validate a raw record into the typed config; raise ValueError on bad fields"""
        pass

    @abstractmethod
    async def _create_client(self) -> Any:
        """Build the client (or driver pool) from ``self.config``"""
        pass

    @abstractmethod
    async def _ping_client(self, client: Any) -> None:
        """Raise if ``client`` does not answer a liveness check"""
        pass

    @abstractmethod
    async def _close_client(self, client: Any) -> None:
        """Release ``client`` and every connection it holds"""
        pass

    def _configuration_error(self, message: str) -> StoreError:
        if self.must_connected:
            self._logger.critical(message)
            return MandatoryFieldMissingError(message, name_id=self.name_id)
        message = f"configuration is unusable, {message}"
        self._logger.warning(message)
        return ConfigurationUnusableError(message, name_id=self.name_id)

    def apply_from_configuration(self, configuration_name_id: Optional[str] = None) -> None:
        """
        Read this handle's record from its configuration section - idempotent operation.

        Args:
            configuration_name_id: Section to read from, defaults to the handle's own

        Raises:
            MandatoryFieldMissingError: record or required field missing on a must-connect handle
            ConfigurationUnusableError: same, on an optional handle
        """
        if self.is_configured:
            return

        section_name = configuration_name_id or self.configuration_name_id
        self._logger.info(f"Configuring {self.kind_label} {self.name_id}... start")

        section = self.owner.configuration.get_section(section_name)
        if section is None:
            raise self._configuration_error(
                f"{self.kind_label} configuration section {section_name} not found"
            )

        record = as_record(section.get(self.name_id))
        if record is None:
            raise self._configuration_error(
                f"{self.kind_label} {self.name_id} configuration not found in {section_name}"
            )

        try:
            config = self._parse_config(record)
        except ValueError as e:
            raise self._configuration_error(
                f"{self.kind_label} {self.name_id} configuration invalid: {e}"
            ) from e

        self.config = config
        self.configuration_name_id = section_name
        self._state = HandleState.CONFIGURED
        self._logger.info(f"Configuring {self.kind_label} {self.name_id}... done")

    async def connect(self) -> None:
        """
        Connect to the datastore - idempotent operation.

        Configures the handle first when needed, builds the client and pings it.
        A client that fails its ping is released and the handle stays configured.

        Raises:
            ConnectionFailureError: client could not be built or pinged, fatal when must_connected
        """
        async with self._connection_lock:
            if self.connected:
                return

            try:
                self.apply_from_configuration()
            except StoreError as e:
                self._logger.error(f"Cannot configure {self.kind_label} {self.name_id} to connect ({e})")
                raise

            location = self.config.describe()
            self._logger.info(f"Connecting to {self.kind_label} {self.name_id} at {location}... start")

            client = None
            try:
                client = await self._create_client()
                await self._ping_client(client)
            except Exception as e:
                if client is not None:
                    await self._close_client_quietly(client)
                message = f"Cannot connect to {self.kind_label} {self.name_id} at {location} ({e})"
                if self.must_connected:
                    self._logger.critical(message)
                else:
                    self._logger.error(message)
                raise ConnectionFailureError(message, name_id=self.name_id, fatal=self.must_connected) from e

            self.connection = client
            self._state = HandleState.CONNECTED
            self._logger.info(f"Connecting to {self.kind_label} {self.name_id} at {location}... done CONNECTED")

    async def disconnect(self) -> None:
        """
        Disconnect from the datastore - idempotent operation.

        A failing close leaves the handle connected with its client kept.

        Raises:
            OperationFailureError: the client failed to close
        """
        async with self._connection_lock:
            if not self.connected:
                return

            location = self.config.describe()
            self._logger.info(f"Disconnecting from {self.kind_label} {self.name_id} at {location}... start")
            try:
                await self._close_client(self.connection)
            except Exception as e:
                message = f"Disconnecting from {self.kind_label} {self.name_id} at {location} error ({e})"
                self._logger.error(message)
                raise OperationFailureError(message, name_id=self.name_id) from e

            self.connection = None
            self._state = HandleState.CONFIGURED
            self._logger.info(f"Disconnecting from {self.kind_label} {self.name_id} at {location}... done DISCONNECTED")

    async def ping(self) -> None:
        """Check that the connected client still answers"""
        client = self._require_connection('ping')
        try:
            await self._ping_client(client)
        except Exception as e:
            message = f"{self.kind_label} {self.name_id} did not answer ping ({e})"
            self._logger.error(message)
            raise ConnectionFailureError(message, name_id=self.name_id) from e

    def _require_connection(self, operation: str, key: Optional[str] = None) -> Any:
        if not self.connected or self.connection is None:
            raise NotConnectedError(
                f"{self.kind_label} {self.name_id} is not connected, cannot {operation}. Call connect() first.",
                name_id=self.name_id,
                key=key
            )
        return self.connection

    async def _close_client_quietly(self, client: Any) -> None:
        try:
            await self._close_client(client)
        except Exception as e:
            self._logger.debug(f"Ignoring close error of unusable {self.kind_label} {self.name_id} client: {e}")

    def describe(self) -> Dict[str, Any]:
        """Summary of the handle used by status reports"""
        return {
            'name': self.name_id,
            'kind': self.kind.value,
            'state': self._state.value,
            'is_connect_at_start': self.is_connect_at_start,
            'must_connected': self.must_connected,
            'location': self.config.describe() if self.config is not None else None,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name_id={self.name_id!r}, state={self._state.value!r})"
