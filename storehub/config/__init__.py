from .configuration_manager import Configuration, ConfigurationManager, resolve_env_vars

__all__ = ['Configuration', 'ConfigurationManager', 'resolve_env_vars']
