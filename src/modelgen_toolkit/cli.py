"""Command line interface for the model generator."""

import logging
import sys
from json import dumps
from pathlib import Path
from typing import Any, Literal

from cyclopts import App
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from modelgen import (
    CatalogSchemaSource,
    MigrationSchemaSource,
    Settings,
    create_catalog_engine,
    load_settings,
    model_flags,
    write_models,
)
from modelgen.config import DEFAULT_ENV_FILE
from modelgen.types import SchemaSource, TableSchema

app = App(name="modelgen", help="Generate SQLAlchemy models from SQL migrations")

type Format = Literal["table", "json"]

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_warning(message: str) -> None:
    """Print warning message to stderr."""
    err_console.print(f"[bold yellow]![/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure(env: Path) -> Settings:
    """Load settings and route library logging through rich."""
    if not env.is_file():
        print_warning(f"{env} file not found")
    try:
        settings = load_settings(env)
    except ValidationError as e:
        print_error(f"Invalid settings: {escape(str(e))}")
        sys.exit(1)
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    return settings


def read_tables(source: SchemaSource) -> list[TableSchema]:
    """Read tables from a source, exiting on I/O or database errors."""
    try:
        return source.tables()
    except OSError as e:
        print_error(f"Failed to read migrations: {e}")
        sys.exit(1)
    except SQLAlchemyError as e:
        print_error(f"Failed to read database catalog: {e}")
        sys.exit(1)


def collect_tables(
    settings: Settings,
    migrations: Path | None,
    schema: str | None,
    *,
    from_db: bool,
) -> list[TableSchema]:
    """Build the final table schemas from the catalog or the migrations."""
    if not from_db:
        migrations_dir = migrations or settings.migrations_dir
        print_info(f"Migrations: {migrations_dir}")
        return read_tables(MigrationSchemaSource(migrations_dir))

    if not settings.db_connection_string:
        print_error("DB_CONNECTION_STRING environment variable is not set")
        sys.exit(1)

    try:
        engine = create_catalog_engine(settings.db_connection_string, settings.db_timeout)
    except ImportError as e:
        print_error(f"Database driver {e.name} is not installed")
        print_info(escape("PostgreSQL catalogs need: pip install 'modelgen-toolkit[postgres]'"))
        sys.exit(1)
    except SQLAlchemyError as e:
        print_error(f"Invalid DB_CONNECTION_STRING: {escape(str(e))}")
        sys.exit(1)

    print_info(f"Database: {engine.url.render_as_string(hide_password=True)}")
    try:
        return read_tables(CatalogSchemaSource(engine, schema or settings.db_schema))
    finally:
        engine.dispose()


def format_schema_table(tables: list[TableSchema]) -> None:
    """Format accumulated tables as rich tables."""
    for schema_table in tables:
        flags = model_flags(schema_table)
        uses = [name for name, enabled in flags._asdict().items() if enabled]
        table = Table(
            title=schema_table["name"],
            caption=f"uses: {', '.join(uses)}" if uses else None,
        )
        table.add_column("Column", style="bold cyan")
        table.add_column("SQL Type")
        table.add_column("Python Type", style="bold yellow")
        table.add_column("Primary Key")
        for column in schema_table["columns"]:
            table.add_row(
                column["name"],
                column["sql_type"],
                column["type"].python,
                "yes" if column["primary_key"] else "",
            )
        console.print(table)


def schema_to_json(tables: list[TableSchema]) -> list[dict[str, Any]]:
    """Convert tables to plain JSON structures."""
    return [
        {
            "name": table["name"],
            "columns": [
                {**column, "type": column["type"]._asdict()} for column in table["columns"]
            ],
        }
        for table in tables
    ]


@app.command
def generate(
    *,
    env: Path = DEFAULT_ENV_FILE,
    output: Path | None = None,
    migrations: Path | None = None,
    from_db: bool = False,
    schema: str | None = None,
) -> None:
    """Generate one model module per table."""
    settings = configure(env)
    output_dir = output or settings.models_dir

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
        ) as progress:
            task = progress.add_task("Reading schema...", total=None)
            tables = collect_tables(settings, migrations, schema, from_db=from_db)

            progress.update(task, description="Generating models...")
            try:
                report = write_models(tables, output_dir)
            except OSError as e:
                print_error(f"Failed to write models: {e}")
                sys.exit(1)
    except KeyboardInterrupt:
        print_error("Generation interrupted by user")
        sys.exit(1)

    for name in report.failed:
        print_warning(f"Skipped table {name}")

    if report.failed and not report.written:
        print_error("No models were generated")
        sys.exit(1)

    print_success(f"Generated {len(report.written)} models in {output_dir}")


@app.command
def schema(
    *,
    env: Path = DEFAULT_ENV_FILE,
    migrations: Path | None = None,
    from_db: bool = False,
    schema: str | None = None,
    fmt: Format = "table",
) -> None:
    """Print the current schema without writing models."""
    settings = configure(env)
    tables = collect_tables(settings, migrations, schema, from_db=from_db)

    if fmt == "json":
        sys.stdout.write(dumps(schema_to_json(tables)))
    elif fmt == "table":
        format_schema_table(tables)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
