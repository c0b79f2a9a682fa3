"""Module for mapping raw SQL type names onto model type descriptors."""

import re
from typing import NamedTuple

from modelgen.types import ColumnSchema, TypeDescriptor, TypeKind

PRECISION = re.compile(r"\([^)]*\)")
WHITESPACE = re.compile(r"\s+")


class TargetType(NamedTuple):
    """Python and SQLAlchemy spelling of a SQL type family."""

    kind: TypeKind
    module: str
    name: str
    sql: str


INTEGER = TargetType("integer", "builtins", "int", "Integer")
BIGINT = TargetType("bigint", "builtins", "int", "BigInteger")
FLOAT = TargetType("float", "builtins", "float", "Float")
BOOLEAN = TargetType("boolean", "builtins", "bool", "Boolean")
STRING = TargetType("string", "builtins", "str", "String")
UUID = TargetType("string", "builtins", "str", "Uuid(as_uuid=False)")
DATE = TargetType("temporal", "datetime", "date", "Date")
DATETIME = TargetType("temporal", "datetime", "datetime", "DateTime")
DATETIME_TZ = TargetType("temporal", "datetime", "datetime", "DateTime(timezone=True)")
TIME = TargetType("temporal", "datetime", "time", "Time")
TIME_TZ = TargetType("temporal", "datetime", "time", "Time(timezone=True)")
JSON = TargetType("json", "typing", "Any", "JSON")

SQL_TYPES: dict[str, TargetType] = {
    # Integers
    "integer": INTEGER,
    "int": INTEGER,
    "int2": INTEGER,
    "int4": INTEGER,
    "smallint": INTEGER,
    "serial": INTEGER,
    "serial4": INTEGER,
    "smallserial": INTEGER,
    "bigint": BIGINT,
    "int8": BIGINT,
    "bigserial": BIGINT,
    "serial8": BIGINT,
    # Floating point and fixed precision
    "numeric": FLOAT,
    "decimal": FLOAT,
    "real": FLOAT,
    "float": FLOAT,
    "float4": FLOAT,
    "float8": FLOAT,
    "double": FLOAT,
    "double precision": FLOAT,
    # Booleans
    "boolean": BOOLEAN,
    "bool": BOOLEAN,
    # Text
    "text": STRING,
    "varchar": STRING,
    "char": STRING,
    "character": STRING,
    "character varying": STRING,
    "citext": STRING,
    "bpchar": STRING,
    "uuid": UUID,
    # Dates and times
    "date": DATE,
    "timestamp": DATETIME,
    "datetime": DATETIME,
    "timestamp without time zone": DATETIME,
    "timestamptz": DATETIME_TZ,
    "timestamp with time zone": DATETIME_TZ,
    "time": TIME,
    "time without time zone": TIME,
    "timetz": TIME_TZ,
    "time with time zone": TIME_TZ,
    # Raw payloads
    "json": JSON,
    "jsonb": JSON,
}


def normalize_sql_type(sql_type: str) -> str:
    """Lower-case a SQL type and drop any precision or length arguments.

    Examples:
        VARCHAR(255) -> varchar
        NUMERIC(10, 2) -> numeric
        TIMESTAMP(3) WITH TIME ZONE -> timestamp with time zone

    """
    base = PRECISION.sub(" ", sql_type.lower())
    return WHITESPACE.sub(" ", base).strip()


def resolve_target(normalized: str) -> TargetType:
    """Look up the longest leading run of words naming a known type.

    Trailing vendor keywords are ignored, so `int unsigned` resolves to `int`
    while `timestamp with time zone` still wins over `timestamp`.
    """
    words = normalized.split()
    for end in range(len(words), 0, -1):
        if target := SQL_TYPES.get(" ".join(words[:end])):
            return target
    return STRING


def sql_to_descriptor(sql_type: str, *, nullable: bool) -> TypeDescriptor:
    """Map a raw SQL type and its nullability onto a TypeDescriptor.

    Unknown types never fail, they fall back to a string representation.
    JSON payloads are never wrapped as optional since `None` already decodes
    from a JSON null.
    """
    target = resolve_target(normalize_sql_type(sql_type))
    optional = nullable and target.kind != "json"
    python = f"{target.name} | None" if optional else target.name

    return TypeDescriptor(
        kind=target.kind,
        nullable=optional,
        python=python,
        module=target.module,
        name=target.name,
        sql=target.sql,
    )


def build_column(
    name: str,
    sql_type: str,
    *,
    nullable: bool,
    primary_key: bool = False,
) -> ColumnSchema:
    """Create a ColumnSchema, primary keys are never nullable."""
    nullable = nullable and not primary_key
    return {
        "name": name,
        "sql_type": sql_type,
        "nullable": nullable,
        "primary_key": primary_key,
        "type": sql_to_descriptor(sql_type, nullable=nullable),
    }


def refresh_column(column: ColumnSchema) -> None:
    """Recompute the derived type after the raw type or nullability changed."""
    column["nullable"] = column["nullable"] and not column["primary_key"]
    column["type"] = sql_to_descriptor(column["sql_type"], nullable=column["nullable"])
