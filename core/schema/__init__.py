# ============================================================================
# SCHEMA MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Schema generation and overrides
# PURPOSE: Field metadata -> SchemaDefinition -> DDL, plus package overrides
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.schema.ddl_utils import (
    ColumnBuilder,
    TableBuilder,
    IndexBuilder,
    TriggerBuilder,
    TYPE_MAP,
    get_sql_type,
    sql_literal,
    class_name_to_table_name,
)
from core.schema.versioning import canonical_json, content_hash
from core.schema.sql_generator import SchemaGenerator, VersionStrategy
from core.schema.field_sources import (
    FieldSource,
    ScanResultFieldSource,
    RegistryFieldSource,
    FieldRegistry,
)
from core.schema.override_system import (
    apply_override,
    merge_overrides,
    create_override,
)

__all__ = [
    # Generator
    "SchemaGenerator",
    "VersionStrategy",
    # Field sources
    "FieldSource",
    "ScanResultFieldSource",
    "RegistryFieldSource",
    "FieldRegistry",
    # Overrides
    "apply_override",
    "merge_overrides",
    "create_override",
    # Utilities
    "ColumnBuilder",
    "TableBuilder",
    "IndexBuilder",
    "TriggerBuilder",
    "TYPE_MAP",
    "get_sql_type",
    "sql_literal",
    "class_name_to_table_name",
    "canonical_json",
    "content_hash",
]
