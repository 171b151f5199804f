#!/usr/bin/env python3
"""
Storehub CLI

Inspect configured datastores and run one-off key/value, SQL and script
operations against them.
"""

import asyncio
import click
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from ..core.exceptions import StoreError
from ..registry import DatastoreRegistry


def setup_logging(level: str = "INFO"):
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def parse_value(raw: str) -> Any:
    """Decode a JSON literal, falling back to the raw string"""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class StoreCLI:
    """Command-line interface over a DatastoreRegistry"""

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.logger = logging.getLogger(__name__)

    async def _run(self, operation: Callable[[DatastoreRegistry], Awaitable[Optional[int]]],
                   connect_at_start: bool = False) -> int:
        """Build a registry, run ``operation`` and always disconnect afterwards"""
        try:
            registry = DatastoreRegistry.from_path(self.config_path)
        except StoreError as e:
            click.echo(f"Error loading configuration: {e}", err=True)
            return 1

        try:
            if connect_at_start:
                await registry.startup(exit_on_fatal=False)
            else:
                registry.load()
            return await operation(registry) or 0
        except StoreError as e:
            prefix = "Fatal" if e.fatal else "Error"
            click.echo(f"{prefix}: {e}", err=True)
            return 1
        finally:
            try:
                await registry.shutdown()
            except StoreError as e:
                self.logger.warning(f"Error during shutdown: {e}")

    async def status(self) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handles = registry.all_handles()
            if not handles:
                click.echo("No datastores configured")
                return 0
            for handle in handles:
                info = handle.describe()
                flags = []
                if info['is_connect_at_start']:
                    flags.append('at-start')
                if info['must_connected']:
                    flags.append('must-connect')
                click.echo(
                    f"{info['kind']:<9} {info['name']:<20} {info['state']:<13} "
                    f"{info['location'] or '-'} {' '.join(flags)}".rstrip()
                )
            return 0

        return await self._run(operation, connect_at_start=True)

    async def ping(self, name_id: str) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.get_handle(name_id)
            await handle.connect()
            await handle.ping()
            click.echo(f"{name_id}: PONG")
            return 0

        return await self._run(operation)

    async def kv_get(self, name_id: str, key: str, must: bool) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.redis[name_id]
            await handle.connect()
            value = await (handle.must_get(key) if must else handle.get(key))
            if value is None and not must:
                click.echo("(nil)")
            else:
                click.echo(json.dumps(value, indent=2, default=str))
            return 0

        return await self._run(operation)

    async def kv_set(self, name_id: str, key: str, raw_value: str, ttl: Optional[int]) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.redis[name_id]
            await handle.connect()
            await handle.set(key, parse_value(raw_value), expiration=ttl)
            click.echo("OK")
            return 0

        return await self._run(operation)

    async def kv_delete(self, name_id: str, key: str) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.redis[name_id]
            await handle.connect()
            removed = await handle.delete(key)
            click.echo(f"Deleted {removed} key(s)")
            return 0

        return await self._run(operation)

    async def sql_query(self, name_id: str, sql: str) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.databases[name_id]
            await handle.connect()
            rows = await handle.query(sql)
            for row in rows:
                click.echo(json.dumps(row, default=str))
            click.echo(f"({len(rows)} row(s))")
            return 0

        return await self._run(operation)

    async def sql_execute(self, name_id: str, sql: str) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            handle = registry.databases[name_id]
            await handle.connect()
            affected = await handle.execute(sql)
            click.echo(f"{affected} row(s) affected")
            return 0

        return await self._run(operation)

    async def run_script(self, script_name: str) -> int:
        async def operation(registry: DatastoreRegistry) -> int:
            script = registry.databases.get_script(script_name)
            affected = await script.execute()
            click.echo(f"Script {script_name} done, {affected} row(s) affected")
            return 0

        return await self._run(operation)


@click.group()
@click.option('--config', 'config_path', required=True, envvar='STOREHUB_CONFIG',
              type=click.Path(exists=True),
              help='Configuration directory or sections file')
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              help='Set the logging level')
@click.pass_context
def cli(ctx, config_path, log_level):
    """Storehub - manage named database and Redis connections"""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj['cli'] = StoreCLI(config_path)


@cli.command()
@click.pass_context
def status(ctx):
    """Connect at-start datastores and show the state of every handle"""
    sys.exit(asyncio.run(ctx.obj['cli'].status()))


@cli.command()
@click.argument('name')
@click.pass_context
def ping(ctx, name):
    """Connect one datastore and ping it"""
    sys.exit(asyncio.run(ctx.obj['cli'].ping(name)))


@cli.group()
def kv():
    """Key/value operations on a Redis handle"""
    pass


@kv.command('get')
@click.argument('name')
@click.argument('key')
@click.option('--must', is_flag=True, help='Fail when the key does not exist')
@click.pass_context
def kv_get(ctx, name, key, must):
    """Print the value stored under KEY"""
    sys.exit(asyncio.run(ctx.obj['cli'].kv_get(name, key, must)))


@kv.command('set')
@click.argument('name')
@click.argument('key')
@click.argument('value')
@click.option('--ttl', type=int, default=None, help='Expiration in seconds')
@click.pass_context
def kv_set(ctx, name, key, value, ttl):
    """Store VALUE (a JSON literal or plain string) under KEY"""
    sys.exit(asyncio.run(ctx.obj['cli'].kv_set(name, key, value, ttl)))


@kv.command('delete')
@click.argument('name')
@click.argument('key')
@click.pass_context
def kv_delete(ctx, name, key):
    """Delete KEY"""
    sys.exit(asyncio.run(ctx.obj['cli'].kv_delete(name, key)))


@cli.group()
def sql():
    """Raw SQL on a database handle"""
    pass


@sql.command('query')
@click.argument('name')
@click.argument('statement')
@click.pass_context
def sql_query(ctx, name, statement):
    """Run a query and print its rows as JSON lines"""
    sys.exit(asyncio.run(ctx.obj['cli'].sql_query(name, statement)))


@sql.command('execute')
@click.argument('name')
@click.argument('statement')
@click.pass_context
def sql_execute(ctx, name, statement):
    """Run a statement and print the affected row count"""
    sys.exit(asyncio.run(ctx.obj['cli'].sql_execute(name, statement)))


@cli.group()
def script():
    """Configured database scripts"""
    pass


@script.command('run')
@click.argument('name')
@click.pass_context
def script_run(ctx, name):
    """Run a database script"""
    sys.exit(asyncio.run(ctx.obj['cli'].run_script(name)))


if __name__ == "__main__":
    cli()
