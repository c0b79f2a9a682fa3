"""Model generation from SQL migrations or a live database catalog."""

from modelgen.accumulator import (
    MigrationSchemaSource,
    accumulate,
    apply_statement,
    load_schema,
    migration_files,
)
from modelgen.config import Settings, load_settings
from modelgen.introspection import CatalogSchemaSource, create_catalog_engine
from modelgen.model_export import EmitReport, model_flags, table_to_model, write_models
from modelgen.splitting import split_column_list, split_statements
from modelgen.statements import classify
from modelgen.type_conversion import sql_to_descriptor

__all__ = [
    "CatalogSchemaSource",
    "EmitReport",
    "MigrationSchemaSource",
    "Settings",
    "accumulate",
    "apply_statement",
    "classify",
    "create_catalog_engine",
    "load_schema",
    "load_settings",
    "migration_files",
    "model_flags",
    "split_column_list",
    "split_statements",
    "sql_to_descriptor",
    "table_to_model",
    "write_models",
]
