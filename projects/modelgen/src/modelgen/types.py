"""Typed structures describing tables reconstructed from DDL or a live catalog."""

from __future__ import annotations

from typing import Literal, NamedTuple, Protocol, TypedDict

type TypeKind = Literal[
    "integer",
    "bigint",
    "float",
    "boolean",
    "string",
    "temporal",
    "json",
]


class TypeDescriptor(NamedTuple):
    """Target representation of a SQL column type."""

    kind: TypeKind
    nullable: bool
    python: str  # Annotation expression, e.g. "int | None"
    module: str  # Module to import `name` from, "builtins" when nothing is needed
    name: str
    sql: str  # SQLAlchemy column type expression, e.g. "DateTime(timezone=True)"


class ColumnSchema(TypedDict):
    """Schema for a single table column."""

    name: str
    sql_type: str
    nullable: bool
    primary_key: bool
    type: TypeDescriptor


class TableSchema(TypedDict):
    """Schema for a table, columns in declaration order."""

    name: str
    columns: list[ColumnSchema]


# Table name -> current schema, the only mutable state of a generation run
type SchemaStore = dict[str, TableSchema]


class SchemaSource(Protocol):
    """Anything able to produce the final table schemas of a database."""

    def tables(self) -> list[TableSchema]:
        """Return the table schemas in a stable order."""
        ...
