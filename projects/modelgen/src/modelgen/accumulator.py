"""Fold an ordered stream of DDL statements into the current table schemas."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from modelgen.splitting import (
    is_constraint,
    parse_column_definition,
    primary_key_columns,
    split_column_list,
    split_statements,
)
from modelgen.statements import (
    AlterAddColumn,
    AlterAlterColumn,
    AlterDropColumn,
    CreateTable,
    Statement,
    Unrecognized,
    classify,
    split_alter_actions,
)
from modelgen.type_conversion import build_column, refresh_column

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from modelgen.types import ColumnSchema, SchemaStore, TableSchema

logger = getLogger(__name__)

MIGRATION_SUFFIX = ".up.sql"
VERSION_PREFIX = re.compile(r"^(\d+)_")

ADD_PREFIX = re.compile(r"^ADD\s+(?:COLUMN\s+)?(?:IF\s+NOT\s+EXISTS\s+)?", re.IGNORECASE)
SET_TYPE = re.compile(
    r"^(?:SET\s+DATA\s+)?TYPE\s+(.+?)(?:\s+(?:USING|COLLATE)\s+.*)?$",
    re.IGNORECASE,
)
SET_NOT_NULL = re.compile(r"^SET\s+NOT\s+NULL\b", re.IGNORECASE)
DROP_NOT_NULL = re.compile(r"^DROP\s+NOT\s+NULL\b", re.IGNORECASE)


def find_column(table: TableSchema, name: str) -> ColumnSchema | None:
    """Return the column with the given name, if present."""
    return next((col for col in table["columns"] if col["name"] == name), None)


def mark_primary_keys(table: TableSchema, names: Iterable[str]) -> None:
    """Flag the named columns as primary keys, forcing them non-nullable."""
    for name in names:
        if column := find_column(table, name):
            column["primary_key"] = True
            refresh_column(column)


def create_table(store: SchemaStore, statement: CreateTable) -> None:
    """Define a new table from its CREATE TABLE body."""
    if statement.table in store:
        logger.debug("Table %s already defined, ignoring CREATE", statement.table)
        return

    table: TableSchema = {"name": statement.table, "columns": []}
    table_keys: list[str] = []
    for fragment in split_column_list(statement.columns):
        if is_constraint(fragment):
            table_keys.extend(primary_key_columns(fragment))
            continue
        name, sql_type, nullable, primary_key = parse_column_definition(fragment)
        if find_column(table, name):
            continue
        table["columns"].append(
            build_column(name, sql_type, nullable=nullable, primary_key=primary_key),
        )

    mark_primary_keys(table, table_keys)
    store[statement.table] = table


def add_columns(table: TableSchema, statement: AlterAddColumn) -> None:
    """Append new columns, skipping names that already exist."""
    for action in split_column_list(statement.clause):
        match = ADD_PREFIX.match(action)
        if not match:
            logger.debug("Ignoring ALTER TABLE action: %s", action)
            continue
        fragment = action[match.end() :]
        if is_constraint(fragment):
            mark_primary_keys(table, primary_key_columns(fragment))
            continue
        name, sql_type, nullable, primary_key = parse_column_definition(fragment)
        if find_column(table, name):
            logger.debug("Column %s.%s already exists", table["name"], name)
            continue
        table["columns"].append(
            build_column(name, sql_type, nullable=nullable, primary_key=primary_key),
        )


def alter_column(table: TableSchema, statement: AlterAlterColumn) -> None:
    """Apply a TYPE, SET NOT NULL or DROP NOT NULL action to a column."""
    column = find_column(table, statement.column)
    if column is None:
        logger.debug("Unknown column %s.%s", table["name"], statement.column)
        return

    if match := SET_TYPE.match(statement.action):
        column["sql_type"] = match[1].strip()
    elif SET_NOT_NULL.match(statement.action):
        column["nullable"] = False
    elif DROP_NOT_NULL.match(statement.action):
        column["nullable"] = True
    else:
        logger.debug("Ignoring ALTER COLUMN action: %s", statement.action)
        return

    refresh_column(column)


def drop_column(table: TableSchema, statement: AlterDropColumn) -> None:
    """Remove a column from the table."""
    table["columns"] = [
        col for col in table["columns"] if col["name"] != statement.column
    ]


def apply_statement(store: SchemaStore, statement: Statement) -> None:
    """Apply one classified statement to the schema store."""
    if isinstance(statement, Unrecognized):
        return
    if isinstance(statement, CreateTable):
        create_table(store, statement)
        return

    table = store.get(statement.table)
    if table is None:
        logger.debug("Ignoring ALTER for undefined table %s", statement.table)
        return

    match statement:
        case AlterAddColumn():
            add_columns(table, statement)
        case AlterAlterColumn():
            alter_column(table, statement)
        case AlterDropColumn():
            drop_column(table, statement)


def accumulate(
    statements: Iterable[str],
    store: SchemaStore | None = None,
) -> SchemaStore:
    """Classify and apply raw statements in order, one ALTER action at a time."""
    store = {} if store is None else store
    for text in statements:
        for action in split_alter_actions(text):
            statement = classify(action)
            if isinstance(statement, Unrecognized):
                logger.debug("Skipping unsupported statement: %.60s", action)
            apply_statement(store, statement)
    return store


def migration_version(path: Path) -> int:
    """Return the leading numeric version of a migration file name."""
    if match := VERSION_PREFIX.match(path.name):
        return int(match[1])
    return 0


def migration_files(directory: Path) -> list[Path]:
    """List `.up.sql` migrations in ascending version order."""
    if not directory.is_dir():
        msg = f"Migrations directory does not exist: {directory}"
        raise NotADirectoryError(msg)

    files = [
        path
        for path in directory.iterdir()
        if path.is_file() and path.name.endswith(MIGRATION_SUFFIX)
    ]
    return sorted(files, key=lambda path: (migration_version(path), path.name))


def load_schema(directory: Path) -> SchemaStore:
    """Build the current schema from every migration in a directory."""
    store: SchemaStore = {}
    for path in migration_files(directory):
        logger.info("Processing migration %s", path.name)
        accumulate(split_statements(path.read_text(encoding="utf-8")), store)
    return store


class MigrationSchemaSource:
    """Schema source reading ordered `.up.sql` migration files."""

    def __init__(self, directory: Path) -> None:
        """Initialize the source with the migrations directory."""
        self.directory = directory

    def tables(self) -> list[TableSchema]:
        """Return accumulated tables in order of definition."""
        return list(load_schema(self.directory).values())
