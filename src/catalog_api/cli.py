# cli.py
import logging

import click

from catalog_api.config.settings import get_settings
from catalog_api.errors import DatabaseError

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the catalog uploads API"""
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to HOST setting)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to PORT setting)")
@click.option("--reload", is_flag=True, help="Restart on code changes (development only)")
def serve(host, port, reload):
    """Run the API with uvicorn"""
    import uvicorn
    from catalog_api.main import configure_logging

    settings = get_settings()
    configure_logging(settings.log_level)
    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting {settings.app_name} on {host}:{port}")
    uvicorn.run(
        "catalog_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    for key, value in settings.masked_dict().items():
        click.echo(f"  {key}: {value}")
    click.echo(f"  database_name: {settings.database_name}")


@cli.command()
def init_db():
    """Create the database collections if they do not exist"""
    from catalog_api.adapters.records import MongoRecordStore
    from catalog_api.main import configure_logging

    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        store = MongoRecordStore.from_settings(settings)
    except ValueError as e:
        raise click.ClickException(str(e))
    try:
        created = store.init_collections()
    except DatabaseError as e:
        raise click.ClickException(e.message)
    finally:
        store.close()

    if created:
        click.echo(f"Created collections: {', '.join(created)}")
    else:
        click.echo("All collections already exist")


if __name__ == "__main__":
    cli()
