"""
Named configuration sections consumed by the datastore managers.

A section is a mapping of entry name to record, e.g. the ``redis`` section
maps every Redis handle name to its connection record. Sections come from
dicts, YAML/JSON files or a whole directory of such files.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.exceptions import ConfigurationNotFoundError, MalformedConfigurationEntryError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.yaml', '.yml', '.json')


def resolve_env_vars(value: Any) -> Any:
    """Substitute ``${VAR}`` and ``${VAR:default}`` strings from the environment"""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        default_value = ""
        if ":" in env_var:
            env_var, default_value = env_var.split(":", 1)
        return os.getenv(env_var, default_value)
    elif isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_env_vars(item) for item in value]
    return value


def _read_file(path: Path) -> Any:
    with open(path, 'r') as f:
        try:
            if path.suffix.lower() == '.json':
                return json.load(f)
            return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise MalformedConfigurationEntryError(
                f"Cannot parse configuration file {path}: {e}"
            ) from e


@dataclass
class Configuration:
    """One named configuration section"""
    name_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    file_path: Optional[str] = None


class ConfigurationManager:
    """Registry of configuration sections keyed by name"""

    def __init__(self):
        self.configurations: Dict[str, Configuration] = {}

    def new_configuration(self, name_id: str, data: Optional[Dict[str, Any]] = None,
                          file_path: Optional[str] = None) -> Configuration:
        """Register a section, replacing any previous one with the same name"""
        if data is not None and not isinstance(data, dict):
            raise MalformedConfigurationEntryError(
                f"Configuration {name_id} must be a mapping, got {type(data).__name__}",
                name_id=name_id
            )
        configuration = Configuration(
            name_id=name_id,
            data=resolve_env_vars(data or {}),
            file_path=file_path
        )
        self.configurations[name_id] = configuration
        return configuration

    def load_from_dict(self, sections: Dict[str, Any]) -> List[str]:
        """Register every top-level key of ``sections`` as its own section"""
        names = []
        for name_id, data in sections.items():
            self.new_configuration(name_id, data)
            names.append(name_id)
        return names

    def load_from_file(self, file_path: str, name_id: Optional[str] = None) -> Configuration:
        """Load one YAML or JSON file as a section named after the file stem"""
        path = Path(file_path)
        if not path.exists():
            raise ConfigurationNotFoundError(f"Configuration file not found: {file_path}")
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported configuration file type: {file_path}")

        data = _read_file(path)
        section_name = name_id or path.stem
        configuration = self.new_configuration(section_name, data or {}, file_path=str(path))
        logger.info(f"Loaded configuration {section_name} from {path}")
        return configuration

    def load_from_directory(self, directory: str) -> List[str]:
        """Load every supported file of ``directory``, one section per file"""
        path = Path(directory)
        if not path.is_dir():
            raise ConfigurationNotFoundError(f"Configuration directory not found: {directory}")
        names = []
        for file_path in sorted(path.iterdir()):
            if file_path.is_file() and file_path.suffix.lower() in SUPPORTED_SUFFIXES:
                names.append(self.load_from_file(str(file_path)).name_id)
        return names

    def load_from_path(self, config_path: str) -> List[str]:
        """Load a directory of section files, or a single file of several sections"""
        path = Path(config_path)
        if path.is_dir():
            return self.load_from_directory(config_path)
        if not path.exists():
            raise ConfigurationNotFoundError(f"Configuration path not found: {config_path}")
        data = _read_file(path)
        if not isinstance(data, dict):
            raise MalformedConfigurationEntryError(
                f"Configuration file {config_path} must contain a mapping of sections"
            )
        return self.load_from_dict(data)

    def get_section(self, name_id: str) -> Optional[Dict[str, Any]]:
        """Return the data of a section, or ``None`` when it does not exist"""
        configuration = self.configurations.get(name_id)
        if configuration is None:
            return None
        return configuration.data

    def has_section(self, name_id: str) -> bool:
        return name_id in self.configurations

    def list_sections(self) -> List[str]:
        return list(self.configurations.keys())
