"""Command-line interface for CrudBase.

This module provides the CLI commands for running and managing
the CrudBase application.
"""

import asyncio
import json
from typing import NoReturn

import click

from crudbase.core.config import get_settings
from crudbase.core.exceptions import StorageError
from crudbase.core.logging import configure_logging, get_logger
from crudbase.infrastructure.storage import StorageFactory, StorageManager, StorageType


@click.group()
@click.version_option(version="0.1.0", prog_name="CrudBase")
def cli() -> None:
    """CrudBase - Collection-based JSON record storage over HTTP.

    Configuration is read from CRUDBASE_* environment variables and .env.
    """


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the CrudBase server.

    By default, the server runs on 0.0.0.0:8000 with a single worker.
    """
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    if bind_workers > 1 and settings.resolved_storage_type != StorageType.MEMORY.value:
        click.echo(
            "Error: file storage does not support multiple worker processes. "
            "Use --workers 1 or set CRUDBASE_STORAGE_TYPE=memory.",
            err=True,
        )
        raise SystemExit(1)

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting CrudBase server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "crudbase.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
def info() -> None:
    """Display CrudBase configuration."""
    settings = get_settings()

    click.echo(f"""
CrudBase v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Storage:
  Type:         {settings.storage_type or 'auto'}
  Dev Storage:  {settings.dev_storage or '-'}
  Data File:    {settings.data_path}
  Backup Dir:   {settings.backup_path}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


@cli.command("storage-info")
def storage_info() -> None:
    """Show how the storage backend is selected for this environment."""
    factory = StorageFactory(get_settings())
    payload = {
        "config": factory.get_config(),
        "recommendation": factory.get_recommendation(),
    }
    click.echo(json.dumps(payload, indent=2))


@cli.command()
@click.option(
    "--output",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory receiving the backup file (defaults to the configured backup dir)",
)
@click.option(
    "--type",
    "storage_type",
    type=click.Choice(StorageType.values()),
    default=None,
    help="Storage backend to back up (overrides config)",
)
def backup(output: str | None, storage_type: str | None) -> None:
    """Write a backup of the stored data to a JSON file."""
    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def run() -> str:
        manager = StorageManager(StorageFactory(settings))
        storage = await manager.init(storage_type)
        path = await storage.write_backup(output or settings.backup_path)
        return str(path)

    try:
        path = asyncio.run(run())
    except StorageError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error("Backup failed", error=e.message)
        raise SystemExit(1)

    click.echo(f"Backup written to {path}")


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def clear(force: bool) -> None:
    """Reset the storage to its default collections. Refused in production."""
    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    if settings.is_production:
        click.echo(
            "Error: Clear operation not allowed in production environment",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will delete every stored record. Continue?",
            abort=True,
            default=False,
        )

    async def run() -> str:
        manager = StorageManager(StorageFactory(settings))
        storage = await manager.init()
        await storage.clear()
        return storage.storage_type.value

    try:
        storage_type = asyncio.run(run())
    except StorageError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error("Clear failed", error=e.message)
        raise SystemExit(1)

    click.echo(f"Storage cleared ({storage_type}).")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `crudbase` command is run
    or when using `python -m crudbase`.
    """
    cli()


if __name__ == "__main__":
    main()
