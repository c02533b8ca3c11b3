"""Click CLI interface for the schema scaffolder."""

import logging
import sys

import click

from . import __version__
from .base.models import DatabaseModel, Table
from .config import ScaffoldConfig
from .exceptions import (
    ConfigurationError,
    ConnectionError,
    FormatError,
    SchemaScaffoldError,
)
from .factory import DatabaseModelFactory
from .postgresql import PostgreSQLConnection


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def connection_options(func):
    """Shared connection options."""
    options = [
        click.option("-h", "--host", envvar="PGHOST", help="Database server hostname"),
        click.option("-P", "--port", type=int, envvar="PGPORT", help="Database server port"),
        click.option("-d", "--database", envvar="PGDATABASE", help="Database name"),
        click.option("-u", "--username", envvar="PGUSER", help="Database username"),
        click.option("-p", "--password", envvar="PGPASSWORD", help="Database password"),
        click.option("-c", "--connection-string", envvar="DATABASE_URL",
                     help="libpq connection string or URI"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def format_table(table: Table) -> list[str]:
    """Render one table of the model as summary lines."""
    lines = [table.full_name + (f"  -- {table.comment}" if table.comment else "")]
    for column in table.columns:
        flags = []
        if not column.is_nullable:
            flags.append("NOT NULL")
        if column.value_generation_strategy:
            flags.append(column.value_generation_strategy.value)
        if column.default_value_sql:
            flags.append(f"DEFAULT {column.default_value_sql}")
        lines.append(f"  {column.name} {column.store_type} {' '.join(flags)}".rstrip())
    if table.primary_key:
        names = ", ".join(c.name for c in table.primary_key.columns)
        lines.append(f"  PK {table.primary_key.name} ({names})")
    for fk in table.foreign_keys:
        names = ", ".join(c.name for c in fk.columns)
        principal = ", ".join(c.name for c in fk.principal_columns)
        lines.append(
            f"  FK {fk.name} ({names}) -> {fk.principal_full_name} ({principal}) "
            f"ON DELETE {fk.on_delete.value}"
        )
    for unique in table.unique_constraints:
        names = ", ".join(c.name for c in unique.columns)
        lines.append(f"  UNIQUE {unique.name} ({names})")
    for index in table.indexes:
        names = ", ".join(c.name for c in index.columns)
        kind = "UNIQUE INDEX" if index.is_unique else "INDEX"
        using = f" USING {index.method}" if index.method else ""
        where = f" WHERE {index.filter}" if index.filter else ""
        lines.append(f"  {kind} {index.name}{using} ({names}){where}")
    return lines


def format_model(model: DatabaseModel) -> list[str]:
    """Render the whole model as summary lines."""
    lines = [f"Database: {model.database_name}"]
    for table in model.tables:
        lines.extend(format_table(table))
    for sequence in model.sequences:
        lines.append(
            f"SEQUENCE {sequence.full_name} {sequence.store_type} "
            f"INCREMENT {sequence.increment_by}"
            + (f" START {sequence.start_value}" if sequence.start_value is not None else "")
            + (f" MINVALUE {sequence.min_value}" if sequence.min_value is not None else "")
            + (f" MAXVALUE {sequence.max_value}" if sequence.max_value is not None else "")
            + (" CYCLE" if sequence.is_cyclic else "")
        )
    for enum_type in model.enums:
        name = f"{enum_type.schema_name}.{enum_type.name}" if enum_type.schema_name else enum_type.name
        lines.append(f"ENUM {name} ({', '.join(enum_type.labels)})")
    for extension in model.extensions:
        lines.append(f"EXTENSION {extension.name} {extension.version or ''}".rstrip())
    return lines


@click.group()
@click.version_option(version=__version__)
def cli():
    """Schema Scaffold - Reverse-engineer a PostgreSQL schema."""
    pass


@cli.command()
@connection_options
@click.option("-s", "--schema", "schemas", multiple=True, help="Include a schema (repeatable)")
@click.option("-t", "--table", "tables", multiple=True,
              help='Include a table, e.g. orders or "My Schema"."My Table" (repeatable)')
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def inspect(
    host: str | None,
    port: int | None,
    database: str | None,
    username: str | None,
    password: str | None,
    connection_string: str | None,
    schemas: tuple[str, ...],
    tables: tuple[str, ...],
    verbose: int,
) -> None:
    """Reverse-engineer the database and print the resulting model."""
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        config = ScaffoldConfig(
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connection_string=connection_string,
            schemas=list(schemas),
            tables=list(tables),
            verbosity=verbose,
        )
        config.validate()

        factory = DatabaseModelFactory(config)
        model = factory.create(PostgreSQLConnection(config), config.tables, config.schemas)

        for line in format_model(model):
            click.echo(line)
        click.echo(
            f"\nFound {len(model.tables)} tables, {len(model.sequences)} sequences, "
            f"{len(model.enums)} enums, {len(model.extensions)} extensions"
        )

    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except FormatError as e:
        click.echo(f"Invalid table name: {e}", err=True)
        sys.exit(1)
    except ConnectionError as e:
        click.echo(f"Connection error: {e}", err=True)
        sys.exit(1)
    except SchemaScaffoldError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command("test-connection")
@connection_options
def test_connection(
    host: str | None,
    port: int | None,
    database: str | None,
    username: str | None,
    password: str | None,
    connection_string: str | None,
) -> None:
    """Test database connection."""
    try:
        config = ScaffoldConfig(
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connection_string=connection_string,
        )
        config.validate()

        click.echo("Connecting to PostgreSQL database...")
        with PostgreSQLConnection(config) as conn:
            version = conn.get_version()
            click.echo("Connection successful!")
            click.echo(f"\nServer version:\n{version}")

    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except ConnectionError as e:
        click.echo(f"Connection failed: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
