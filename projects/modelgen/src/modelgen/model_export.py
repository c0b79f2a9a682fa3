"""SQLAlchemy model generation, one module per table schema."""

from __future__ import annotations

import ast
import keyword
from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from re import sub
from typing import TYPE_CHECKING, NamedTuple

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from modelgen.types import ColumnSchema, TableSchema

logger = getLogger(__name__)

type Imports = dict[str, set[str]]

TEMPLATE_DIR = Path(__file__).parent / "templates"
MODEL_SUFFIX = ".py"
BASE_MODULE = "_base.py"

# Attribute names claimed by the declarative base
RESERVED_ATTRIBUTES = frozenset({"metadata", "registry"})

_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


class ModelFlags(NamedTuple):
    """Properties of a table's final columns that shape the generated module."""

    temporal: bool
    optional: bool
    json: bool


@dataclass
class EmitReport:
    """Outcome of writing models for a set of tables."""

    written: list[Path] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def pascal_case(name: str) -> str:
    """Convert name to PascalCase."""
    return "".join(word[0].upper() + word[1:] for word in name.split("_") if word)


def snake_case(name: str) -> str:
    """Convert name to snake_case."""
    return sub("([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])", r"\1\3_\2\4", name).lower()


def singularize(name: str) -> str:
    """Derive a singular noun from a pluralized table name."""
    lowered = name.lower()
    if lowered.endswith("ies") and len(name) > 3:  # noqa: PLR2004
        return name[:-3] + ("Y" if name[-3:].isupper() else "y")
    if lowered.endswith(("sses", "xes", "ches", "shes", "zzes")):
        return name[:-2]
    if lowered.endswith(("ss", "us", "is")):
        return name
    if lowered.endswith("s"):
        return name[:-1]
    return name


def class_name(table_name: str) -> str:
    """Model class name for a table, e.g. `order_items` -> `OrderItem`."""
    name = pascal_case(sub(r"\W", "_", singularize(table_name)))
    if name[:1].isdigit():
        name = f"Table{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def attribute_name(column_name: str) -> str:
    """Python attribute name for a column."""
    name = sub(r"\W", "_", snake_case(column_name))
    if name[:1].isdigit():
        name = f"col_{name}"
    if keyword.iskeyword(name) or name in RESERVED_ATTRIBUTES:
        name = f"{name}_"
    return name


def attribute_names(column_names: Iterable[str]) -> list[str]:
    """Attribute names for a table's columns, numbered where two collide."""
    taken: set[str] = set()
    names: list[str] = []
    for column_name in column_names:
        base = name = attribute_name(column_name)
        counter = 2
        while name in taken:
            name = f"{base}_{counter}"
            counter += 1
        taken.add(name)
        names.append(name)
    return names


def model_flags(table: TableSchema) -> ModelFlags:
    """Scan the final columns of a table for temporal, optional and JSON types."""
    kinds = [col["type"] for col in table["columns"]]
    return ModelFlags(
        temporal=any(desc.kind == "temporal" for desc in kinds),
        optional=any(desc.nullable for desc in kinds),
        json=any(desc.kind == "json" for desc in kinds),
    )


def column_arguments(column: ColumnSchema, imports: Imports) -> str:
    """Build the mapped_column arguments: tag, type and key/nullability."""
    sql = column["type"].sql
    imports["sqlalchemy"].add(sql.split("(", 1)[0])

    args = [f'"{column["name"]}"', sql]
    if column["primary_key"]:
        args.append("primary_key=True")
    else:
        args.append(f"nullable={column['nullable']}")
    return ", ".join(args)


def generate_imports(imports: Imports) -> list[str]:
    """Generate sorted import statements from collected imports."""
    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(imports.items())
    ]


def table_context(table: TableSchema, flags: ModelFlags) -> dict[str, object]:
    """Collect everything the model template needs for a table."""
    sqlalchemy: Imports = defaultdict(set)
    temporal_names = sorted(
        {col["type"].name for col in table["columns"] if col["type"].kind == "temporal"},
    )
    attributes = attribute_names(col["name"] for col in table["columns"])
    columns = [
        {
            "attribute": attribute,
            "annotation": column["type"].python,
            "arguments": column_arguments(column, sqlalchemy),
        }
        for attribute, column in zip(attributes, table["columns"], strict=True)
    ]

    # Without a primary key every column joins a composite mapper key
    composite_key = (
        []
        if any(col["primary_key"] for col in table["columns"])
        else [col["attribute"] for col in columns]
    )

    return {
        "table": table["name"],
        "class_name": class_name(table["name"]),
        "flags": flags,
        "temporal_names": temporal_names,
        "sqlalchemy_imports": generate_imports(sqlalchemy),
        "columns": columns,
        "composite_key": composite_key,
    }


def table_to_model(table: TableSchema) -> str:
    """Render the model module for a table.

    Raises:
        ValueError: If the table has no columns left to map.
        TemplateError: If the template cannot be rendered.
        SyntaxError: If the rendered module is not valid Python.

    """
    if not table["columns"]:
        msg = f"Table {table['name']} has no columns"
        raise ValueError(msg)

    template = _JINJA_ENV.get_template("model.py.jinja")
    source = template.render(table_context(table, model_flags(table)))
    ast.parse(source, filename=f"{table['name']}{MODEL_SUFFIX}")
    return source


def base_module() -> str:
    """Render the shared declarative base module."""
    return _JINJA_ENV.get_template("base.py.jinja").render()


def write_models(tables: Iterable[TableSchema], output_dir: Path) -> EmitReport:
    """Write one model module per table, skipping tables that fail to render."""
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / BASE_MODULE).write_text(base_module(), encoding="utf-8")

    report = EmitReport()
    for table in tables:
        path = output_dir / f"{table['name']}{MODEL_SUFFIX}"
        if path.name == BASE_MODULE:
            logger.error("Table %s would overwrite the shared base module", table["name"])
            report.failed.append(table["name"])
            continue

        try:
            source = table_to_model(table)
        except (TemplateError, SyntaxError, ValueError) as e:
            logger.error("Failed to generate model for %s: %s", table["name"], e)  # noqa: TRY400
            report.failed.append(table["name"])
            continue

        path.write_text(source, encoding="utf-8")
        logger.info("Generated model %s", path)
        report.written.append(path)

    return report
