"""Schema source reading table metadata from a live database catalog."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any
from warnings import catch_warnings, filterwarnings

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import CompileError, SAWarning

from modelgen.type_conversion import build_column

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import Engine, Inspector
    from sqlalchemy.engine.interfaces import ReflectedColumn
    from sqlalchemy.types import TypeEngine

    from modelgen.types import TableSchema

logger = getLogger(__name__)

# Bookkeeping table created by migration runners
DEFAULT_EXCLUDE = frozenset({"schema_migrations"})


def create_catalog_engine(url: str, timeout: int = 30) -> Engine:
    """Create an engine whose connections and queries are bounded by `timeout` seconds."""
    connect_args: dict[str, Any] = {}
    if url.startswith("postgres"):
        connect_args = {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        }
    elif url.startswith("sqlite"):
        connect_args = {"timeout": timeout}

    # golang-migrate style URLs use the bare postgres scheme
    if url.startswith("postgres://"):
        url = "postgresql://" + url.removeprefix("postgres://")

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def compile_type(sql_type: TypeEngine[Any], engine: Engine) -> str:
    """Render a reflected type the way the database spells it."""
    try:
        return str(sql_type.compile(dialect=engine.dialect))
    except CompileError:
        return type(sql_type).__name__


def _table_from_inspector(
    inspector: Inspector,
    engine: Engine,
    table_name: str,
    schema: str | None,
) -> TableSchema:
    """Derive TableSchema from reflected columns and primary key."""
    primary_keys = set(
        inspector.get_pk_constraint(table_name, schema=schema)["constrained_columns"],
    )
    reflected: list[ReflectedColumn] = inspector.get_columns(table_name, schema=schema)
    return {
        "name": table_name,
        "columns": [
            build_column(
                column["name"],
                compile_type(column["type"], engine),
                nullable=bool(column["nullable"]),
                primary_key=column["name"] in primary_keys,
            )
            for column in reflected
        ],
    }


class CatalogSchemaSource:
    """Schema source reflecting the current state of a database."""

    def __init__(
        self,
        engine: Engine,
        schema: str | None = None,
        exclude: Iterable[str] = DEFAULT_EXCLUDE,
    ) -> None:
        """Initialize the source with an engine and optional catalog schema."""
        self.engine = engine
        self.schema = schema
        self.exclude = frozenset(exclude)

    def tables(self) -> list[TableSchema]:
        """Reflect every table, sorted by name."""
        inspector = inspect(self.engine)
        names = sorted(
            name
            for name in inspector.get_table_names(schema=self.schema)
            if name not in self.exclude
        )
        logger.info("Reflecting %d tables", len(names))
        # Unknown column types warn and reflect as NullType
        with catch_warnings():
            filterwarnings("ignore", category=SAWarning)
            return [
                _table_from_inspector(inspector, self.engine, name, self.schema)
                for name in names
            ]
