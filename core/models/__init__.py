# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Field metadata (generator input) and schema definitions (generator output,
override input, runtime manager input).
"""

from core.models.fields import FieldDefinition, ClassMetadata
from core.models.schema import (
    ColumnDefinition,
    ForeignKeyReference,
    IndexDefinition,
    TriggerDefinition,
    ForeignKeyDefinition,
    SchemaDefinition,
    SchemaOverride,
    SchemaManifest,
)

__all__ = [
    # Field metadata
    "FieldDefinition",
    "ClassMetadata",
    # Schema structures
    "ColumnDefinition",
    "ForeignKeyReference",
    "IndexDefinition",
    "TriggerDefinition",
    "ForeignKeyDefinition",
    "SchemaDefinition",
    "SchemaOverride",
    "SchemaManifest",
]
