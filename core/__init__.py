# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models, and schema utilities
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import (
    FieldType,
    ReferentialAction,
    SchemaState,
    SchemaError,
    CircularDependencyError,
    SchemaInitializationError,
)
from core.models import (
    FieldDefinition,
    ClassMetadata,
    ColumnDefinition,
    IndexDefinition,
    TriggerDefinition,
    SchemaDefinition,
    SchemaOverride,
    SchemaManifest,
)
from core.schema import SchemaGenerator, FieldRegistry, apply_override, merge_overrides

__all__ = [
    # Enums
    "FieldType",
    "ReferentialAction",
    "SchemaState",
    # Errors
    "SchemaError",
    "CircularDependencyError",
    "SchemaInitializationError",
    # Models
    "FieldDefinition",
    "ClassMetadata",
    "ColumnDefinition",
    "IndexDefinition",
    "TriggerDefinition",
    "SchemaDefinition",
    "SchemaOverride",
    "SchemaManifest",
    # Schema
    "SchemaGenerator",
    "FieldRegistry",
    "apply_override",
    "merge_overrides",
]
