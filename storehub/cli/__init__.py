from .store_cli import cli, StoreCLI

__all__ = ['cli', 'StoreCLI']
